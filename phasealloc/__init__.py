"""Hierarchical money allocation across projects and phases."""
from .aggregation import aggregate_stats
from .allocation import (
    ALLOCATION_TOLERANCE,
    PhaseCalculation,
    PreAllocationAmount,
    calculate_phase,
    calculate_phase_rest_value,
    calculate_tree,
    compute_rest_value,
    describe_pre_allocations,
    index_nodes,
    iter_nodes,
)
from .models import (
    AllocNode,
    CalculationResult,
    FixedRule,
    PercentageRule,
    PersonStat,
    PhaseData,
    PhaseView,
    PreAllocation,
    ProjectData,
    RemainderRule,
    RuleType,
    SourceData,
)

__all__ = [
    "ALLOCATION_TOLERANCE",
    "AllocNode",
    "CalculationResult",
    "FixedRule",
    "PercentageRule",
    "PersonStat",
    "PhaseCalculation",
    "PhaseData",
    "PhaseView",
    "PreAllocation",
    "PreAllocationAmount",
    "ProjectData",
    "RemainderRule",
    "RuleType",
    "SourceData",
    "aggregate_stats",
    "calculate_phase",
    "calculate_phase_rest_value",
    "calculate_tree",
    "compute_rest_value",
    "describe_pre_allocations",
    "index_nodes",
    "iter_nodes",
]
