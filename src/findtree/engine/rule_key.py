from __future__ import annotations

from dataclasses import dataclass

from findtree.engine.errors import ProducerContractError
from findtree.engine.types import Rule


@dataclass(frozen=True, slots=True, order=True)
class RuleKey:
    """
    Grouping identity of a rule.

    Keys compare by priority first (1 sorts before 5), then by name, so sorting
    a collection of keys yields a severity-then-alphabetical sequence. Priority
    is part of the identity: the same name at two priorities is two keys.
    """

    priority: int
    name: str

    @classmethod
    def for_rule(cls, rule: Rule | None) -> RuleKey:
        if rule is None:
            raise ProducerContractError("violation has no rule")
        if not rule.name:
            raise ProducerContractError("rule has an empty name")
        return cls(priority=int(rule.priority), name=rule.name)
