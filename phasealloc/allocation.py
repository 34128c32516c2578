"""Core allocation and calculation utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple

from .models import (
    AllocNode,
    CalculationMap,
    CalculationResult,
    FixedRule,
    PercentageRule,
    PhaseData,
    PreAllocation,
    RemainderRule,
)

logger = logging.getLogger(__name__)

# Amounts within one cent of zero are treated as zero when flagging nodes.
ALLOCATION_TOLERANCE = 0.01


@dataclass(slots=True)
class PreAllocationAmount:
    """Deduction actually taken by one pre-allocation."""

    pre_allocation_id: str
    name: str
    amount: float
    percent_of_phase: float


@dataclass(slots=True)
class PhaseCalculation:
    rest_value: float
    results: CalculationMap


def _safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def _pre_allocation_amount(phase_value: float, pre_allocation: PreAllocation) -> float:
    rule = pre_allocation.rule
    if isinstance(rule, FixedRule):
        return rule.value
    if isinstance(rule, PercentageRule):
        return rule.value / 100 * phase_value
    raise ValueError(f"Unsupported pre-allocation rule: {rule!r}")


def compute_rest_value(phase_value: float, pre_allocations: Iterable[PreAllocation]) -> float:
    """Return the phase value left after applying every deduction in order.

    Percentage deductions are always taken from the original ``phase_value``,
    not from the running total, so two 10% deductions remove 20% of the phase.
    The result may be negative.
    """

    running = phase_value
    for pre_allocation in pre_allocations:
        running -= _pre_allocation_amount(phase_value, pre_allocation)
    return running


def calculate_phase_rest_value(phase: PhaseData) -> float:
    return compute_rest_value(phase.phase_value, phase.pre_allocations)


def describe_pre_allocations(phase: PhaseData) -> List[PreAllocationAmount]:
    """Return the amount and phase share of each deduction for display."""

    described: List[PreAllocationAmount] = []
    for pre_allocation in phase.pre_allocations:
        rule = pre_allocation.rule
        amount = _pre_allocation_amount(phase.phase_value, pre_allocation)
        if isinstance(rule, PercentageRule):
            share = rule.value / 100
        else:
            share = _safe_ratio(rule.value, phase.phase_value)
        described.append(
            PreAllocationAmount(
                pre_allocation_id=pre_allocation.id,
                name=pre_allocation.name,
                amount=amount,
                percent_of_phase=share,
            )
        )
    return described


def _calculate_node(
    node: AllocNode,
    input_amount: float,
    percent_of_parent: float,
    results: CalculationMap,
) -> List[Tuple[AllocNode, float, float]]:
    """Record the result for ``node`` and return its children with their amounts."""

    result = CalculationResult(
        amount=input_amount,
        percent_of_parent=percent_of_parent,
        is_error=input_amount < -ALLOCATION_TOLERANCE,
        is_warning=False,
        unallocated=input_amount,
    )
    results[node.id] = result

    if node.is_leaf:
        return []

    fixed_nodes = [child for child in node.children if isinstance(child.rule, FixedRule)]
    percent_nodes = [child for child in node.children if isinstance(child.rule, PercentageRule)]
    remainder_nodes = [child for child in node.children if isinstance(child.rule, RemainderRule)]

    pending: List[Tuple[AllocNode, float, float]] = []
    remaining_amount = input_amount

    for child in fixed_nodes:
        allocated = child.rule.value
        remaining_amount -= allocated
        pending.append((child, allocated, _safe_ratio(allocated, input_amount)))

    for child in percent_nodes:
        allocated = input_amount * (child.rule.value / 100)
        remaining_amount -= allocated
        pending.append((child, allocated, child.rule.value / 100))

    if remainder_nodes:
        amount_per_node = remaining_amount / len(remainder_nodes)
        share = _safe_ratio(amount_per_node, input_amount)
        for child in remainder_nodes:
            pending.append((child, amount_per_node, share))
        result.unallocated = 0.0
    else:
        result.unallocated = remaining_amount

    result.is_error = (
        input_amount < -ALLOCATION_TOLERANCE or result.unallocated < -ALLOCATION_TOLERANCE
    )
    result.is_warning = not result.is_error and result.unallocated > ALLOCATION_TOLERANCE
    return pending


def calculate_tree(node: AllocNode, input_amount: float) -> CalculationMap:
    """Distribute ``input_amount`` through the tree rooted at ``node``.

    Fixed children are paid first, then percentage children, and any
    remainder children split what is left equally. The returned mapping is
    keyed by node id and covers ``node`` and all of its descendants. Numeric
    problems such as over-allocation are reported through the ``is_error``
    and ``is_warning`` flags rather than raised. The walk uses an explicit
    stack, so tree depth is not bounded by the interpreter's recursion limit.
    """

    results: CalculationMap = {}
    stack: List[Tuple[AllocNode, float, float]] = [(node, input_amount, 0.0)]
    while stack:
        current, amount, share = stack.pop()
        stack.extend(reversed(_calculate_node(current, amount, share, results)))
    return results


def calculate_phase(phase: PhaseData) -> PhaseCalculation:
    rest_value = calculate_phase_rest_value(phase)
    results = calculate_tree(phase.root_node, rest_value)
    root = results[phase.root_node.id]
    logger.debug(
        "Phase %s: rest value %.2f, unallocated %.2f, error=%s, warning=%s",
        phase.id,
        rest_value,
        root.unallocated,
        root.is_error,
        root.is_warning,
    )
    return PhaseCalculation(rest_value=rest_value, results=results)


def iter_nodes(root: AllocNode) -> Iterator[AllocNode]:
    """Yield ``root`` and its descendants in depth-first pre-order."""

    stack: List[AllocNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def index_nodes(root: AllocNode) -> Dict[str, AllocNode]:
    """Return a node-id index of the tree, rejecting duplicate ids."""

    index: Dict[str, AllocNode] = {}
    for node in iter_nodes(root):
        if node.id in index:
            raise ValueError(f"Duplicate node id in allocation tree: {node.id!r}")
        index[node.id] = node
    return index
