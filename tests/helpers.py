from __future__ import annotations

from pathlib import Path

from findtree.engine.types import (
    Location,
    ProcessingError,
    Rule,
    SuppressedViolation,
    SuppressionDeclaration,
    Violation,
)


def make_rule(name: str, *, priority: int = 3, description: str = "") -> Rule:
    return Rule(name=name, priority=priority, description=description or f"{name} description")


def make_violation(
    rule: Rule,
    *,
    path: str = "A.java",
    line: int = 1,
    scope: str | None = None,
    message: str = "problem",
) -> Violation:
    return Violation(
        rule=rule,
        location=Location(path=Path(path), begin_line=line, begin_col=1),
        message=message,
        scope=scope,
    )


def make_suppressed(violation: Violation, *, by_annotation: bool) -> SuppressedViolation:
    return SuppressedViolation(violation=violation, by_annotation=by_annotation)


def make_declaration(*rule_names: str, path: str = "A.java", line: int = 1, scope: str | None = None) -> SuppressionDeclaration:
    return SuppressionDeclaration(
        location=Location(path=Path(path), begin_line=line, begin_col=5),
        scope=scope,
        rule_names=frozenset(rule_names),
    )


def make_error(path: str, message: str = "parse failure") -> ProcessingError:
    return ProcessingError(path=Path(path), message=message)
