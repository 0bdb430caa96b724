from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from findtree.engine.aggregator import ReportAggregator
from findtree.engine.types import (
    HIGHEST_PRIORITY,
    LOWEST_PRIORITY,
    WILDCARD_RULE,
    Location,
    ProcessingError,
    Rule,
    SuppressedViolation,
    SuppressionDeclaration,
    Violation,
)

logger = logging.getLogger(__name__)


class EventsError(ValueError):
    """Raised when a findings document cannot be parsed."""


@dataclass(frozen=True, slots=True)
class FindingsStream:
    # (file id, violations in arrival order)
    batches: tuple[tuple[str, tuple[Violation, ...]], ...] = ()
    suppressed: tuple[SuppressedViolation, ...] = ()
    declarations: tuple[SuppressionDeclaration, ...] = ()
    errors: tuple[ProcessingError, ...] = ()


def load_events(text: str, *, project_root: Path | None = None) -> FindingsStream:
    """
    Parse a findings document produced by an analysis run.

    Expected shape::

        {
          "files": [{"path": "A.java", "violations": [...]}],
          "suppressed": [{"violation": {...}, "by_annotation": true}],
          "suppressions": [{"path": "A.java", "line": 3, "scope": "run()", "rules": ["UnusedLocal"]}],
          "errors": [{"path": "B.java", "message": "parse failure"}]
        }

    Relative paths are resolved against `project_root` when given.
    """

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise EventsError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise EventsError("Findings document must be an object.")

    batches: list[tuple[str, tuple[Violation, ...]]] = []
    for item in _list_field(data, "files"):
        raw_path = item.get("path")
        if not isinstance(raw_path, str) or not raw_path:
            raise EventsError("Every entry in `files` needs a `path`.")
        raw_violations = item.get("violations", [])
        if not isinstance(raw_violations, list):
            raise EventsError(f"`files[].violations` must be a list ({raw_path}).")
        violations = tuple(
            _parse_violation(v, default_path=raw_path, project_root=project_root)
            for v in raw_violations
            if isinstance(v, dict)
        )
        batches.append((raw_path, violations))

    suppressed = tuple(_parse_suppressed(item, project_root=project_root) for item in _list_field(data, "suppressed"))
    declarations = tuple(
        _parse_declaration(item, project_root=project_root) for item in _list_field(data, "suppressions")
    )
    errors = tuple(_parse_error(item, project_root=project_root) for item in _list_field(data, "errors"))

    logger.debug(
        "loaded %d file batch(es), %d suppressed, %d declaration(s), %d error(s)",
        len(batches),
        len(suppressed),
        len(declarations),
        len(errors),
    )
    return FindingsStream(
        batches=tuple(batches),
        suppressed=suppressed,
        declarations=declarations,
        errors=errors,
    )


def feed(aggregator: ReportAggregator, stream: FindingsStream) -> None:
    """Deliver `stream` to `aggregator` in producer order. Does not finish the report."""
    for file_id, violations in stream.batches:
        aggregator.process_file_violations(file_id, violations)
    for suppressed in stream.suppressed:
        aggregator.record_suppressed(suppressed)
    for declaration in stream.declarations:
        aggregator.record_suppression(declaration)
    for error in stream.errors:
        aggregator.record_processing_error(error)


def _list_field(data: dict[str, Any], name: str) -> list[dict[str, Any]]:
    raw = data.get(name, [])
    if not isinstance(raw, list):
        raise EventsError(f"`{name}` must be a list.")
    return [item for item in raw if isinstance(item, dict)]


def _resolve(raw_path: str, project_root: Path | None) -> Path:
    candidate = Path(raw_path)
    if project_root is None or candidate.is_absolute():
        return candidate
    return project_root / candidate


def _positive_int(value: Any) -> int | None:
    return int(value) if isinstance(value, int) and not isinstance(value, bool) and value > 0 else None


def _parse_rule(raw: Any) -> Rule:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, dict):
        raise EventsError("Violation is missing its `rule`.")
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise EventsError("Rule is missing its `name`.")

    priority = raw.get("priority", 3)
    if not isinstance(priority, int) or isinstance(priority, bool):
        raise EventsError(f"Rule `{name}` priority must be an integer.")
    # Clamp rather than reject: producers disagree on the exact range.
    priority = min(max(priority, HIGHEST_PRIORITY), LOWEST_PRIORITY)

    url = raw.get("url")
    return Rule(
        name=name.strip(),
        priority=priority,
        description=str(raw.get("description", "")),
        ruleset=str(raw.get("ruleset", "")),
        external_info_url=url if isinstance(url, str) and url else None,
    )


def _parse_location(item: dict[str, Any], *, default_path: str | None, project_root: Path | None) -> Location:
    raw_path = item.get("path", default_path)
    if not isinstance(raw_path, str) or not raw_path:
        raise EventsError("Finding is missing its `path`.")
    return Location(
        path=_resolve(raw_path, project_root),
        begin_line=_positive_int(item.get("begin_line", item.get("line"))),
        begin_col=_positive_int(item.get("begin_col", item.get("col"))),
        end_line=_positive_int(item.get("end_line")),
        end_col=_positive_int(item.get("end_col")),
    )


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _parse_violation(item: dict[str, Any], *, default_path: str | None, project_root: Path | None) -> Violation:
    return Violation(
        rule=_parse_rule(item.get("rule")),
        location=_parse_location(item, default_path=default_path, project_root=project_root),
        message=str(item.get("message", "")),
        scope=_optional_str(item.get("scope")),
        class_name=_optional_str(item.get("class")),
    )


def _parse_suppressed(item: dict[str, Any], *, project_root: Path | None) -> SuppressedViolation:
    raw_violation = item.get("violation")
    if not isinstance(raw_violation, dict):
        raise EventsError("Suppressed entry is missing its `violation`.")
    by_annotation = item.get("by_annotation", False)
    if not isinstance(by_annotation, bool):
        raise EventsError("`suppressed[].by_annotation` must be a boolean.")
    return SuppressedViolation(
        violation=_parse_violation(raw_violation, default_path=None, project_root=project_root),
        by_annotation=by_annotation,
        user_message=_optional_str(item.get("user_message")),
    )


def _parse_declaration(item: dict[str, Any], *, project_root: Path | None) -> SuppressionDeclaration:
    raw_rules = item.get("rules", [])
    if isinstance(raw_rules, str):
        raw_rules = [raw_rules]
    if not isinstance(raw_rules, list) or any(not isinstance(r, str) for r in raw_rules):
        raise EventsError("`suppressions[].rules` must be a list of strings.")
    rule_names = frozenset(_normalize_rule_name(r) for r in raw_rules if r.strip())
    return SuppressionDeclaration(
        location=_parse_location(item, default_path=None, project_root=project_root),
        scope=_optional_str(item.get("scope")),
        rule_names=rule_names,
    )


def _normalize_rule_name(value: str) -> str:
    normalized = value.strip()
    if normalized.lower() == WILDCARD_RULE:
        return WILDCARD_RULE
    return normalized


def _parse_error(item: dict[str, Any], *, project_root: Path | None) -> ProcessingError:
    raw_path = item.get("path")
    if not isinstance(raw_path, str) or not raw_path:
        raise EventsError("Processing error is missing its `path`.")
    return ProcessingError(
        path=_resolve(raw_path, project_root),
        message=str(item.get("message", "")),
        detail=_optional_str(item.get("detail")),
    )
