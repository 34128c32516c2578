import math

import pytest

from phasealloc.allocation import calculate_tree, index_nodes, iter_nodes
from phasealloc.models import AllocNode, FixedRule, PercentageRule, RemainderRule


def _node(node_id, rule=None, children=None, name=None):
    return AllocNode(
        id=node_id,
        name=name if name is not None else node_id,
        rule=rule if rule is not None else RemainderRule(),
        children=list(children or []),
    )


def _root(*children):
    return _node("root", children=children, name="")


def _assert_conserved(node, results):
    if node.is_leaf:
        return
    received = sum(results[child.id].amount for child in node.children)
    total = received + results[node.id].unallocated
    assert abs(total - results[node.id].amount) <= 0.01
    for child in node.children:
        _assert_conserved(child, results)


def test_childless_root_keeps_full_amount_without_warning():
    root = _root()

    results = calculate_tree(root, 1000.0)

    assert set(results) == {"root"}
    result = results["root"]
    assert result.amount == 1000.0
    assert result.unallocated == 1000.0
    assert result.percent_of_parent == 0.0
    assert not result.is_error
    assert not result.is_warning


def test_fixed_child_paid_first_and_remainder_takes_rest():
    root = _root(_node("rest"), _node("fixed", FixedRule(300.0)))

    results = calculate_tree(root, 1000.0)

    assert results["fixed"].amount == 300.0
    assert results["fixed"].percent_of_parent == pytest.approx(0.3)
    assert results["rest"].amount == pytest.approx(700.0)
    assert results["rest"].percent_of_parent == pytest.approx(0.7)
    assert results["root"].unallocated == 0.0
    assert not results["root"].is_error
    assert not results["root"].is_warning


def test_percentage_child_leaves_warning_on_parent():
    root = _root(_node("half", PercentageRule(50.0)))

    results = calculate_tree(root, 1000.0)

    assert results["half"].amount == pytest.approx(500.0)
    assert results["half"].percent_of_parent == 0.5
    assert results["root"].unallocated == pytest.approx(500.0)
    assert results["root"].is_warning
    assert not results["root"].is_error


def test_over_allocation_flags_error():
    root = _root(_node("big", FixedRule(150.0)))

    results = calculate_tree(root, 100.0)

    assert results["root"].unallocated == pytest.approx(-50.0)
    assert results["root"].is_error
    assert not results["root"].is_warning


def test_negative_input_marks_leaf_as_error():
    results = calculate_tree(_root(), -5.0)

    assert results["root"].is_error
    assert not results["root"].is_warning


def test_values_within_a_cent_do_not_raise_flags():
    root = _root(_node("a", FixedRule(100.005)), _node("b", PercentageRule(0.0)))

    results = calculate_tree(root, 100.0)

    assert results["root"].unallocated == pytest.approx(-0.005)
    assert not results["root"].is_error
    assert not results["root"].is_warning


def test_zero_input_never_produces_non_finite_shares():
    root = _root(
        _node("fixed", FixedRule(10.0)),
        _node("pct", PercentageRule(25.0)),
        _node("rest"),
    )

    results = calculate_tree(root, 0.0)

    for result in results.values():
        assert math.isfinite(result.percent_of_parent)
        assert math.isfinite(result.amount)
    assert results["fixed"].amount == 10.0
    assert results["fixed"].percent_of_parent == 0.0
    assert results["pct"].amount == 0.0
    assert results["pct"].percent_of_parent == 0.25
    assert results["rest"].amount == pytest.approx(-10.0)
    assert results["rest"].percent_of_parent == 0.0
    assert results["rest"].is_error
    assert results["root"].unallocated == 0.0
    assert not results["root"].is_error


def test_fixed_amount_is_verbatim_for_negative_parent():
    root = _root(_node("fixed", FixedRule(40.0)), _node("pct", PercentageRule(10.0)))

    results = calculate_tree(root, -200.0)

    assert results["fixed"].amount == 40.0
    assert results["fixed"].percent_of_parent == pytest.approx(-0.2)
    assert results["pct"].amount == pytest.approx(-20.0)
    assert results["pct"].percent_of_parent == 0.1
    assert results["root"].is_error


def test_remainder_only_children_split_evenly():
    root = _root(_node("a"), _node("b"), _node("c"))

    results = calculate_tree(root, 900.0)

    for node_id in ("a", "b", "c"):
        assert results[node_id].amount == pytest.approx(300.0)
        assert results[node_id].percent_of_parent == pytest.approx(1 / 3)
    assert results["root"].unallocated == 0.0


def test_remainder_absorbs_negative_leftover():
    root = _root(_node("fixed", FixedRule(120.0)), _node("rest"))

    results = calculate_tree(root, 100.0)

    assert results["rest"].amount == pytest.approx(-20.0)
    assert results["rest"].is_error
    assert results["root"].unallocated == 0.0
    assert not results["root"].is_error


def test_nested_tree_conserves_every_amount():
    team = _node(
        "team",
        PercentageRule(60.0),
        children=[
            _node("alice", FixedRule(100.0), name="Alice"),
            _node("bob", PercentageRule(30.0), name="Bob"),
            _node("carol", name="Carol"),
            _node("dave", name="Dave"),
        ],
    )
    ops = _node(
        "ops",
        FixedRule(250.0),
        children=[_node("eve", PercentageRule(40.0), name="Eve")],
    )
    root = _root(team, ops, _node("reserve"))

    results = calculate_tree(root, 2000.0)

    assert results["team"].amount == pytest.approx(1200.0)
    assert results["bob"].amount == pytest.approx(360.0)
    assert results["carol"].amount == pytest.approx(370.0)
    assert results["dave"].amount == pytest.approx(370.0)
    assert results["ops"].amount == 250.0
    assert results["eve"].amount == pytest.approx(100.0)
    assert results["ops"].unallocated == pytest.approx(150.0)
    assert results["ops"].is_warning
    assert results["reserve"].amount == pytest.approx(550.0)
    assert len(results) == len(list(iter_nodes(root)))
    _assert_conserved(root, results)


def test_each_run_returns_a_fresh_mapping():
    root = _root(_node("a", FixedRule(10.0)))

    first = calculate_tree(root, 100.0)
    second = calculate_tree(root, 50.0)

    assert first is not second
    assert first["root"].unallocated == pytest.approx(90.0)
    assert second["root"].unallocated == pytest.approx(40.0)


def test_iter_nodes_walks_in_pre_order():
    root = _root(_node("a", children=[_node("a1"), _node("a2")]), _node("b"))

    assert [node.id for node in iter_nodes(root)] == ["root", "a", "a1", "a2", "b"]


def test_index_nodes_rejects_duplicate_ids():
    root = _root(_node("a"), _node("b", children=[_node("a")]))

    with pytest.raises(ValueError, match="Duplicate node id"):
        index_nodes(root)

    assert set(index_nodes(_root(_node("a")))) == {"root", "a"}


def _chain(depth):
    root = _root()
    node = root
    for level in range(depth):
        child = _node(f"n{level}")
        node.children.append(child)
        node = child
    return root, node


def test_deep_chain_does_not_hit_recursion_limit():
    root, deepest = _chain(5000)

    results = calculate_tree(root, 100.0)

    assert len(results) == 5001
    assert results[deepest.id].amount == 100.0
    assert results[deepest.id].percent_of_parent == 1.0
    assert results["n0"].unallocated == 0.0
    assert not any(result.is_error or result.is_warning for result in results.values())
