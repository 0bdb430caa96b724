from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

Severity = Literal["error", "warn", "info"]

# 1 is the most important priority, 5 the least.
HIGHEST_PRIORITY = 1
LOWEST_PRIORITY = 5

WILDCARD_RULE = "all"


def severity_for_priority(priority: int) -> Severity:
    if priority <= 2:
        return "error"
    if priority == 3:
        return "warn"
    return "info"


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    priority: int = 3
    description: str = ""
    ruleset: str = ""
    external_info_url: str | None = None

    @property
    def severity(self) -> Severity:
        return severity_for_priority(self.priority)


@dataclass(frozen=True, slots=True)
class Location:
    path: Path
    begin_line: int | None = None  # 1-based
    begin_col: int | None = None  # 1-based
    end_line: int | None = None  # 1-based
    end_col: int | None = None  # 1-based


@dataclass(frozen=True, slots=True)
class Violation:
    rule: Rule
    location: Location
    message: str
    scope: str | None = None  # enclosing method/declaration signature; None is file level
    class_name: str | None = None


@dataclass(frozen=True, slots=True)
class SuppressedViolation:
    violation: Violation
    by_annotation: bool
    user_message: str | None = None


@dataclass(frozen=True, slots=True)
class ProcessingError:
    path: Path
    message: str
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class SuppressionDeclaration:
    """
    A suppression annotation found in source.

    `rule_names` lists the rules it suppresses; `"all"` suppresses every rule.
    """

    location: Location
    scope: str | None
    rule_names: frozenset[str]


@dataclass(frozen=True, slots=True)
class UselessSuppression:
    declaration: SuppressionDeclaration
    rule_name: str

    @property
    def location(self) -> Location:
        return self.declaration.location
