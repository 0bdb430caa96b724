from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

from findtree.engine.errors import TreeFrozenError
from findtree.engine.rule_key import RuleKey
from findtree.engine.types import ProcessingError, SuppressedViolation, UselessSuppression, Violation

BranchKind = Literal["rule_group", "error_branch", "suppressed_branch", "useless_suppression_branch"]
LeafKind = Literal["violation", "error", "suppressed", "useless_suppression"]

LeafPayload = Violation | ProcessingError | SuppressedViolation | UselessSuppression

SUPPRESSED_BY_ANNOTATION_LABEL = "Suppressed violations by annotation"
SUPPRESSED_BY_MARKER_LABEL = "Suppressed violations by marker"
USELESS_SUPPRESSIONS_LABEL = "Useless suppressions"
PROCESSING_ERRORS_LABEL = "Processing errors"


# Nodes compare by identity: two groups holding equal leaves are still two groups.
@dataclass(eq=False, slots=True)
class LeafNode:
    kind: LeafKind
    payload: LeafPayload

    @property
    def count(self) -> int:
        return 1


@dataclass(eq=False, slots=True)
class BranchNode:
    kind: BranchKind
    label: str
    tooltip: str = ""
    rule_key: RuleKey | None = None
    children: list[Node] = field(default_factory=list)
    violation_count: int = 0
    suppressed_count: int = 0
    error_count: int = 0
    frozen: bool = False

    @property
    def child_count(self) -> int:
        return len(self.children)

    @property
    def count(self) -> int:
        if self.kind == "suppressed_branch":
            return self.suppressed_count
        if self.kind == "error_branch":
            return self.error_count
        return self.violation_count

    def add(self, child: Node) -> None:
        if self.frozen:
            raise TreeFrozenError(f"cannot add to finalized branch {self.label!r}")
        self.children.append(child)

    def calculate_counts(self) -> None:
        """Recompute rollup counts from the leaves currently attached."""
        violations = suppressed = errors = 0
        for leaf in self.iter_leaves():
            if leaf.kind in ("violation", "useless_suppression"):
                violations += 1
            elif leaf.kind == "suppressed":
                suppressed += 1
            elif leaf.kind == "error":
                errors += 1
        self.violation_count = violations
        self.suppressed_count = suppressed
        self.error_count = errors

    def iter_leaves(self) -> Iterator[LeafNode]:
        for child in self.children:
            if isinstance(child, LeafNode):
                yield child
            else:
                yield from child.iter_leaves()

    def freeze(self) -> None:
        self.calculate_counts()
        self.frozen = True
        for child in self.children:
            if isinstance(child, BranchNode):
                child.freeze()


Node = BranchNode | LeafNode


def rule_group_node(key: RuleKey, *, description: str = "") -> BranchNode:
    return BranchNode(kind="rule_group", label=key.name, tooltip=description, rule_key=key)


def violation_leaf(violation: Violation) -> LeafNode:
    return LeafNode(kind="violation", payload=violation)


def error_leaf(error: ProcessingError) -> LeafNode:
    return LeafNode(kind="error", payload=error)


def suppressed_leaf(suppressed: SuppressedViolation) -> LeafNode:
    return LeafNode(kind="suppressed", payload=suppressed)


def useless_suppression_leaf(useless: UselessSuppression) -> LeafNode:
    return LeafNode(kind="useless_suppression", payload=useless)


@dataclass(eq=False, slots=True)
class ReportTree:
    """
    Aggregate result of one analysis run.

    `groups` is the output list in attach order: rule groups as they first
    become non-empty, followed by the branches attached at finalization.
    Consumers should use `branches()`, which presents rule groups in `RuleKey`
    order.
    """

    groups: list[BranchNode] = field(default_factory=list)
    error_branch: BranchNode = field(
        default_factory=lambda: BranchNode(kind="error_branch", label=PROCESSING_ERRORS_LABEL)
    )

    def rule_groups(self) -> list[BranchNode]:
        groups = [g for g in self.groups if g.kind == "rule_group" and g.rule_key is not None]
        return sorted(groups, key=lambda g: g.rule_key)  # type: ignore[arg-type,return-value]

    def branch(self, label: str) -> BranchNode | None:
        for group in self.groups:
            if group.label == label and group.kind != "rule_group":
                return group
        return None

    def branches(self) -> list[BranchNode]:
        out: list[BranchNode] = [g for g in self.rule_groups() if g.child_count > 0]
        for label in (SUPPRESSED_BY_ANNOTATION_LABEL, SUPPRESSED_BY_MARKER_LABEL, USELESS_SUPPRESSIONS_LABEL):
            node = self.branch(label)
            if node is not None and node.child_count > 0:
                out.append(node)
        if self.error_branch.child_count > 0:
            out.append(self.error_branch)
        return out

    def total_violations(self) -> int:
        return sum(g.violation_count for g in self.rule_groups())

    def total_suppressed(self) -> int:
        return sum(g.suppressed_count for g in self.groups if g.kind == "suppressed_branch")

    def total_useless_suppressions(self) -> int:
        node = self.branch(USELESS_SUPPRESSIONS_LABEL)
        return node.violation_count if node is not None else 0

    def total_errors(self) -> int:
        return self.error_branch.error_count
