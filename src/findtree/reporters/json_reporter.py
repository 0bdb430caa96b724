from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from findtree import __version__
from findtree.engine.types import Location, ProcessingError, SuppressedViolation, UselessSuppression, Violation
from findtree.tree import BranchNode, LeafNode, ReportTree
from findtree.utils import display_path

REPORT_SCHEMA_VERSION = 1


def render_json(tree: ReportTree, *, project_root: Path | None = None) -> str:
    payload = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "tool": {"name": "findtree", "version": __version__},
        "totals": {
            "violations": tree.total_violations(),
            "suppressed": tree.total_suppressed(),
            "useless_suppressions": tree.total_useless_suppressions(),
            "processing_errors": tree.total_errors(),
        },
        "branches": [_branch_to_dict(b, project_root=project_root) for b in tree.branches()],
    }
    return json.dumps(payload, indent=2, sort_keys=False)


def _branch_to_dict(branch: BranchNode, *, project_root: Path | None) -> dict[str, Any]:
    out: dict[str, Any] = {
        "kind": branch.kind,
        "label": branch.label,
        "count": branch.count,
    }
    if branch.rule_key is not None:
        out["priority"] = branch.rule_key.priority
    if branch.tooltip:
        out["description"] = branch.tooltip
    out["children"] = [
        _branch_to_dict(child, project_root=project_root)
        if isinstance(child, BranchNode)
        else _leaf_to_dict(child, project_root=project_root)
        for child in branch.children
    ]
    return out


def _leaf_to_dict(leaf: LeafNode, *, project_root: Path | None) -> dict[str, Any]:
    payload = leaf.payload
    out: dict[str, Any] = {"kind": leaf.kind}
    if isinstance(payload, Violation):
        out.update(_violation_to_dict(payload, project_root=project_root))
    elif isinstance(payload, SuppressedViolation):
        out.update(_violation_to_dict(payload.violation, project_root=project_root))
        out["suppressed_by"] = "annotation" if payload.by_annotation else "marker"
        out["user_message"] = payload.user_message
    elif isinstance(payload, UselessSuppression):
        out["rule"] = payload.rule_name
        out["scope"] = payload.declaration.scope
        out["location"] = _location_to_dict(payload.location, project_root=project_root)
    elif isinstance(payload, ProcessingError):
        out["path"] = display_path(payload.path, project_root)
        out["message"] = payload.message
        out["detail"] = payload.detail
    return out


def _violation_to_dict(v: Violation, *, project_root: Path | None) -> dict[str, Any]:
    return {
        "rule": v.rule.name,
        "priority": v.rule.priority,
        "severity": v.rule.severity,
        "message": v.message,
        "scope": v.scope,
        "class": v.class_name,
        "location": _location_to_dict(v.location, project_root=project_root),
    }


def _location_to_dict(loc: Location, *, project_root: Path | None) -> dict[str, Any]:
    return {
        "path": display_path(loc.path, project_root),
        "begin_line": loc.begin_line,
        "begin_col": loc.begin_col,
        "end_line": loc.end_line,
        "end_col": loc.end_col,
    }
