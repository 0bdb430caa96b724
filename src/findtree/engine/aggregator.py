from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from findtree.config import FindTreeConfig
from findtree.engine.errors import ProducerContractError, ReportFinalizedError
from findtree.engine.rule_key import RuleKey
from findtree.engine.tracker import SuppressionTracker
from findtree.engine.types import ProcessingError, SuppressedViolation, SuppressionDeclaration, Violation
from findtree.tree import (
    SUPPRESSED_BY_ANNOTATION_LABEL,
    SUPPRESSED_BY_MARKER_LABEL,
    USELESS_SUPPRESSIONS_LABEL,
    BranchNode,
    ReportTree,
    error_leaf,
    rule_group_node,
    suppressed_leaf,
    useless_suppression_leaf,
    violation_leaf,
)

logger = logging.getLogger(__name__)

DEFAULT_FILE_EXTENSION = "txt"


@dataclass(slots=True)
class RunReport:
    """Append-only record of everything the producer delivered, used for totals."""

    violations: list[Violation] = field(default_factory=list)
    suppressed: list[SuppressedViolation] = field(default_factory=list)
    errors: list[ProcessingError] = field(default_factory=list)
    files: list[str] = field(default_factory=list)

    def add_violation(self, violation: Violation) -> None:
        self.violations.append(violation)


class ReportAggregator:
    """
    Folds a stream of findings into a `ReportTree`.

    Violations arrive in per-file batches via `process_file_violations()`;
    processing errors, suppressed violations and suppression declarations may
    be interleaved. `finish()` then classifies suppressions, looks for useless
    ones and renders processing errors. The tree is read-only afterwards.
    """

    def __init__(
        self,
        *,
        config: FindTreeConfig | None = None,
        tree: ReportTree | None = None,
        report: RunReport | None = None,
    ) -> None:
        self.config = config or FindTreeConfig()
        self.tree = tree if tree is not None else ReportTree()
        self.report = report if report is not None else RunReport()
        self.tracker = SuppressionTracker(active_rules=self.config.active_rules)
        self._groups_by_key: dict[RuleKey, BranchNode] = {}
        self._registered: set[RuleKey] = set()
        self._suppressed: list[SuppressedViolation] = []
        self._errors: list[ProcessingError] = []
        self._files_with_error: set[Path] = set()
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def groups_by_key(self) -> dict[RuleKey, BranchNode]:
        """Rule groups in `RuleKey` order."""
        return {key: self._groups_by_key[key] for key in sorted(self._groups_by_key)}

    def process_file_violations(self, file_id: str, violations: Iterable[Violation]) -> None:
        self._check_open()
        touched: set[RuleKey] = set()
        for violation in violations:
            if violation is None or violation.rule is None:
                raise ProducerContractError(f"violation without a rule in {file_id}")
            self.report.add_violation(violation)
            key = RuleKey.for_rule(violation.rule)
            group = self._groups_by_key.get(key)
            if group is None:
                group = rule_group_node(key, description=violation.rule.description)
                self._groups_by_key[key] = group
            group.add(violation_leaf(violation))
            self.tracker.record_violation(violation)
            touched.add(key)

        self.report.files.append(file_id)
        for key in sorted(touched):
            group = self._groups_by_key[key]
            group.calculate_counts()
            if group.child_count > 0 and key not in self._registered:
                self.tree.groups.append(group)
                self._registered.add(key)
        logger.debug("%s: %d rule group(s) touched", file_id, len(touched))

    def record_processing_error(self, error: ProcessingError) -> None:
        self._check_open()
        self.report.errors.append(error)
        self._errors.append(error)

    def record_suppressed(self, suppressed: SuppressedViolation) -> None:
        self._check_open()
        if suppressed.violation is None or suppressed.violation.rule is None:
            raise ProducerContractError("suppressed violation without a rule")
        self.report.suppressed.append(suppressed)
        self._suppressed.append(suppressed)
        self.tracker.record_suppressed(suppressed)

    def record_suppression(self, declaration: SuppressionDeclaration) -> None:
        self._check_open()
        self.tracker.record_declaration(declaration)

    def finish(self) -> ReportTree:
        """
        Run the end-of-stream passes and return the finalized tree.

        Calling this again is a no-op that returns the same tree.
        """

        if self._finished:
            logger.debug("report already finalized; ignoring repeated finish()")
            return self.tree
        self._finished = True

        if self.config.show_suppressed:
            self._render_suppressed_violations()
        if self.config.detect_useless_suppressions:
            self._render_useless_suppressions()
        self._render_errors()

        for group in self.tree.groups:
            group.freeze()
        self.tree.error_branch.freeze()
        logger.debug(
            "finalized report: %d violation(s), %d suppressed, %d error(s)",
            self.tree.total_violations(),
            self.tree.total_suppressed(),
            self.tree.total_errors(),
        )
        return self.tree

    def _render_suppressed_violations(self) -> None:
        if not self._suppressed:
            return
        by_annotation = BranchNode(kind="suppressed_branch", label=SUPPRESSED_BY_ANNOTATION_LABEL)
        by_marker = BranchNode(kind="suppressed_branch", label=SUPPRESSED_BY_MARKER_LABEL)
        for suppressed in self._suppressed:
            if suppressed.by_annotation:
                by_annotation.add(suppressed_leaf(suppressed))
            else:
                by_marker.add(suppressed_leaf(suppressed))

        for branch in (by_annotation, by_marker):
            branch.calculate_counts()
            if branch.suppressed_count > 0:
                self.tree.groups.append(branch)

    def _render_useless_suppressions(self) -> None:
        useless = self.tracker.find_useless_suppressions(self.groups_by_key)
        if not useless:
            return
        branch = BranchNode(kind="useless_suppression_branch", label=USELESS_SUPPRESSIONS_LABEL)
        for item in useless:
            branch.add(useless_suppression_leaf(item))
        branch.calculate_counts()
        if branch.violation_count > 0:
            self.tree.groups.append(branch)

    def _render_errors(self) -> None:
        errors_node = self.tree.error_branch
        for error in self._errors:
            if error.path in self._files_with_error:
                continue
            errors_node.add(error_leaf(error))
            self._files_with_error.add(error.path)
        errors_node.calculate_counts()
        if errors_node.error_count > 0:
            self.tree.groups.append(errors_node)

    def _check_open(self) -> None:
        if self._finished:
            raise ReportFinalizedError("report is already finalized")
