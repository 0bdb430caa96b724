from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from findtree.engine.errors import DoubleFinalizationError, ProducerContractError
from findtree.engine.rule_key import RuleKey
from findtree.engine.types import (
    WILDCARD_RULE,
    SuppressedViolation,
    SuppressionDeclaration,
    UselessSuppression,
    Violation,
)
from findtree.tree import BranchNode

logger = logging.getLogger(__name__)

# (file, enclosing declaration signature). A `None` signature means the file itself.
ScopeKey = tuple[Path, str | None]


def scope_of(violation: Violation) -> ScopeKey:
    return (violation.location.path, violation.scope)


class SuppressionTracker:
    """
    Correlates suppression declarations with the findings seen in their scope.

    Scopes are matched by file path plus enclosing declaration signature. A
    declaration without a signature (e.g. on a type or module) covers every
    finding in its file.
    """

    def __init__(self, *, active_rules: Iterable[str] | None = None) -> None:
        self._active_rules = frozenset(active_rules) if active_rules is not None else None
        self._guarded: dict[ScopeKey, set[str]] = {}
        self._guarded_by_file: dict[Path, set[str]] = {}
        self._seen: dict[ScopeKey, set[str]] = {}
        self._seen_by_file: dict[Path, set[str]] = {}
        self._declarations: list[SuppressionDeclaration] = []
        self._finished = False

    def record_scope(self, scope: ScopeKey, rule_name: str) -> None:
        """Note that `rule_name` was suppressed at `scope`. Idempotent."""
        self._guarded.setdefault(scope, set()).add(rule_name)
        self._guarded_by_file.setdefault(scope[0], set()).add(rule_name)

    def record_suppressed(self, suppressed: SuppressedViolation) -> None:
        violation = suppressed.violation
        if violation.rule is None:
            raise ProducerContractError("suppressed violation has no rule")
        self.record_scope(scope_of(violation), violation.rule.name)

    def record_violation(self, violation: Violation) -> None:
        scope = scope_of(violation)
        self._seen.setdefault(scope, set()).add(violation.rule.name)
        self._seen_by_file.setdefault(scope[0], set()).add(violation.rule.name)

    def record_declaration(self, declaration: SuppressionDeclaration) -> None:
        if declaration.location is None or not str(declaration.location.path):
            raise ProducerContractError("suppression declaration has no target location")
        if not declaration.rule_names:
            raise ProducerContractError(f"suppression declaration at {declaration.location.path} names no rules")
        self._declarations.append(declaration)

    def find_useless_suppressions(self, rule_groups_by_key: Mapping[RuleKey, BranchNode]) -> list[UselessSuppression]:
        """
        Return the declared suppressions that suppress nothing.

        Must run after every finding has been streamed; a rule that never
        produced a finding anywhere (per the final rule groups) cannot have
        been observed at any scope, so the per-scope lookup is skipped for it.
        """

        if self._finished:
            raise DoubleFinalizationError("useless suppressions were already computed")
        self._finished = True

        fired = {key.name for key, group in rule_groups_by_key.items() if group.child_count > 0}
        fired.update(name for names in self._guarded_by_file.values() for name in names)

        useless: list[UselessSuppression] = []
        for declaration in self._declarations:
            observed = self._observed_at(declaration)
            for rule_name in sorted(declaration.rule_names):
                if rule_name == WILDCARD_RULE:
                    if not observed:
                        useless.append(UselessSuppression(declaration=declaration, rule_name=rule_name))
                    continue
                if self._active_rules is not None and rule_name not in self._active_rules:
                    logger.debug("skipping suppression of inactive rule %s at %s", rule_name, declaration.location.path)
                    continue
                if rule_name not in fired or rule_name not in observed:
                    useless.append(UselessSuppression(declaration=declaration, rule_name=rule_name))

        useless.sort(key=_useless_sort_key)
        logger.debug("found %d useless suppression(s) in %d declaration(s)", len(useless), len(self._declarations))
        return useless

    def _observed_at(self, declaration: SuppressionDeclaration) -> set[str]:
        path = declaration.location.path
        if declaration.scope is None:
            return self._guarded_by_file.get(path, set()) | self._seen_by_file.get(path, set())
        scope = (path, declaration.scope)
        return self._guarded.get(scope, set()) | self._seen.get(scope, set())


def _useless_sort_key(item: UselessSuppression) -> tuple[str, str, int, int]:
    loc = item.location
    return (item.rule_name, loc.path.as_posix(), loc.begin_line or 0, loc.begin_col or 0)
