from __future__ import annotations

import pytest
from helpers import make_error, make_rule, make_suppressed, make_violation

from findtree.engine.errors import TreeFrozenError
from findtree.engine.rule_key import RuleKey
from findtree.tree import (
    BranchNode,
    ReportTree,
    error_leaf,
    rule_group_node,
    suppressed_leaf,
    violation_leaf,
)


def test_counts_are_only_updated_by_calculate_counts() -> None:
    rule = make_rule("R")
    group = rule_group_node(RuleKey(3, "R"))
    group.add(violation_leaf(make_violation(rule)))
    group.add(violation_leaf(make_violation(rule, line=2)))

    assert group.child_count == 2
    assert group.violation_count == 0
    group.calculate_counts()
    assert group.violation_count == 2
    assert group.count == 2


def test_calculate_counts_splits_leaf_kinds() -> None:
    rule = make_rule("R")
    branch = BranchNode(kind="suppressed_branch", label="mixed")
    branch.add(suppressed_leaf(make_suppressed(make_violation(rule), by_annotation=True)))
    nested = BranchNode(kind="error_branch", label="nested")
    nested.add(error_leaf(make_error("X.java")))
    branch.add(nested)

    branch.calculate_counts()
    assert (branch.violation_count, branch.suppressed_count, branch.error_count) == (0, 1, 1)
    assert branch.count == 1


def test_freeze_recomputes_and_blocks_mutation() -> None:
    branch = BranchNode(kind="error_branch", label="errors")
    branch.add(error_leaf(make_error("X.java")))
    branch.freeze()

    assert branch.error_count == 1
    with pytest.raises(TreeFrozenError):
        branch.add(error_leaf(make_error("Y.java")))


def test_nodes_compare_by_identity() -> None:
    key = RuleKey(3, "R")
    assert rule_group_node(key) != rule_group_node(key)


def test_report_tree_starts_empty() -> None:
    tree = ReportTree()
    assert tree.branches() == []
    assert tree.total_violations() == 0
    assert tree.total_suppressed() == 0
    assert tree.total_useless_suppressions() == 0
    assert tree.total_errors() == 0
    assert tree.error_branch.kind == "error_branch"
