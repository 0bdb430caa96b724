from __future__ import annotations

from pathlib import Path

import pytest
from helpers import make_declaration, make_rule, make_suppressed, make_violation

from findtree.engine.errors import DoubleFinalizationError, ProducerContractError
from findtree.engine.rule_key import RuleKey
from findtree.engine.tracker import SuppressionTracker
from findtree.engine.types import Location, SuppressionDeclaration, Violation
from findtree.tree import BranchNode, rule_group_node, violation_leaf


def _groups(*violations: Violation) -> dict[RuleKey, BranchNode]:
    groups: dict[RuleKey, BranchNode] = {}
    for v in violations:
        key = RuleKey.for_rule(v.rule)
        groups.setdefault(key, rule_group_node(key)).add(violation_leaf(v))
    return groups


def _track(tracker: SuppressionTracker, *violations: Violation) -> dict[RuleKey, BranchNode]:
    for v in violations:
        tracker.record_violation(v)
    return _groups(*violations)


def test_suppression_without_matching_violation_is_useless() -> None:
    tracker = SuppressionTracker()
    declaration = make_declaration("UnusedLocal", scope="run()")
    tracker.record_declaration(declaration)

    (useless,) = tracker.find_useless_suppressions({})
    assert useless.rule_name == "UnusedLocal"
    assert useless.declaration is declaration


def test_active_violation_in_scope_keeps_suppression_useful() -> None:
    tracker = SuppressionTracker()
    groups = _track(tracker, make_violation(make_rule("UnusedLocal"), scope="run()"))
    tracker.record_declaration(make_declaration("UnusedLocal", scope="run()"))

    assert tracker.find_useless_suppressions(groups) == []


def test_suppressed_violation_in_scope_keeps_suppression_useful() -> None:
    tracker = SuppressionTracker()
    suppressed = make_suppressed(make_violation(make_rule("UnusedLocal"), scope="run()"), by_annotation=True)
    tracker.record_suppressed(suppressed)
    tracker.record_declaration(make_declaration("UnusedLocal", scope="run()"))

    assert tracker.find_useless_suppressions({}) == []


def test_violation_in_another_scope_does_not_count() -> None:
    tracker = SuppressionTracker()
    groups = _track(tracker, make_violation(make_rule("UnusedLocal"), scope="stop()"))
    tracker.record_declaration(make_declaration("UnusedLocal", scope="run()"))

    (useless,) = tracker.find_useless_suppressions(groups)
    assert useless.declaration.scope == "run()"


def test_violation_in_another_file_does_not_count() -> None:
    tracker = SuppressionTracker()
    groups = _track(tracker, make_violation(make_rule("UnusedLocal"), path="B.java", scope="run()"))
    tracker.record_declaration(make_declaration("UnusedLocal", path="A.java", scope="run()"))

    assert len(tracker.find_useless_suppressions(groups)) == 1


def test_file_level_declaration_covers_every_scope_in_its_file() -> None:
    tracker = SuppressionTracker()
    groups = _track(tracker, make_violation(make_rule("UnusedLocal"), scope="run()"))
    tracker.record_declaration(make_declaration("UnusedLocal", scope=None))
    tracker.record_declaration(make_declaration("UnusedLocal", path="B.java", scope=None))

    (useless,) = tracker.find_useless_suppressions(groups)
    assert useless.location.path == Path("B.java")


def test_wildcard_is_useless_only_when_nothing_fired_in_scope() -> None:
    tracker = SuppressionTracker()
    groups = _track(tracker, make_violation(make_rule("AnyRule"), scope="run()"))
    tracker.record_declaration(make_declaration("all", scope="run()"))
    tracker.record_declaration(make_declaration("all", scope="stop()"))

    (useless,) = tracker.find_useless_suppressions(groups)
    assert useless.rule_name == "all"
    assert useless.declaration.scope == "stop()"


def test_inactive_rules_are_not_judged() -> None:
    tracker = SuppressionTracker(active_rules=["UnusedLocal"])
    tracker.record_declaration(make_declaration("UnusedLocal", "SomeOtherToolsRule", scope="run()"))

    (useless,) = tracker.find_useless_suppressions({})
    assert useless.rule_name == "UnusedLocal"


def test_results_are_sorted_by_rule_then_location() -> None:
    tracker = SuppressionTracker()
    tracker.record_declaration(make_declaration("Zeta", path="B.java", line=3, scope="b()"))
    tracker.record_declaration(make_declaration("Alpha", path="B.java", line=9, scope="b()"))
    tracker.record_declaration(make_declaration("Zeta", path="A.java", line=7, scope="a()"))
    tracker.record_declaration(make_declaration("Alpha", path="B.java", line=1, scope="c()"))

    result = tracker.find_useless_suppressions({})
    assert [(u.rule_name, u.location.path.as_posix(), u.location.begin_line) for u in result] == [
        ("Alpha", "B.java", 1),
        ("Alpha", "B.java", 9),
        ("Zeta", "A.java", 7),
        ("Zeta", "B.java", 3),
    ]


def test_record_scope_is_idempotent() -> None:
    tracker = SuppressionTracker()
    scope = (Path("A.java"), "run()")
    tracker.record_scope(scope, "UnusedLocal")
    tracker.record_scope(scope, "UnusedLocal")
    tracker.record_declaration(make_declaration("UnusedLocal", scope="run()"))

    assert tracker.find_useless_suppressions({}) == []


def test_declaration_without_rules_is_rejected() -> None:
    tracker = SuppressionTracker()
    empty = SuppressionDeclaration(location=Location(path=Path("A.java")), scope="run()", rule_names=frozenset())
    with pytest.raises(ProducerContractError):
        tracker.record_declaration(empty)


def test_find_useless_suppressions_runs_once() -> None:
    tracker = SuppressionTracker()
    tracker.find_useless_suppressions({})
    with pytest.raises(DoubleFinalizationError):
        tracker.find_useless_suppressions({})
