"""Data models for the phase allocation engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple, Union


class RuleType(str, Enum):
    """Tag of an allocation rule, as stored in project documents."""

    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"
    REMAINDER = "REMAINDER"


@dataclass(frozen=True, slots=True)
class FixedRule:
    """Claims an absolute amount from the parent, whatever its size."""

    value: float

    @property
    def kind(self) -> RuleType:
        return RuleType.FIXED


@dataclass(frozen=True, slots=True)
class PercentageRule:
    """Claims ``value`` percent (0-100 scale) of the parent amount."""

    value: float

    @property
    def kind(self) -> RuleType:
        return RuleType.PERCENTAGE


@dataclass(frozen=True, slots=True)
class RemainderRule:
    """Shares equally whatever is left once fixed and percentage siblings are paid."""

    @property
    def kind(self) -> RuleType:
        return RuleType.REMAINDER


AllocationRule = Union[FixedRule, PercentageRule, RemainderRule]
PreAllocationRule = Union[FixedRule, PercentageRule]


@dataclass(slots=True)
class AllocNode:
    """A recipient node in an allocation tree."""

    id: str
    name: str
    rule: AllocationRule
    children: List["AllocNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(slots=True)
class PreAllocation:
    """A deduction taken off the phase value before the tree is distributed."""

    id: str
    name: str
    rule: PreAllocationRule

    def __post_init__(self) -> None:
        if not isinstance(self.rule, (FixedRule, PercentageRule)):
            raise ValueError(
                f"Pre-allocation {self.id!r} must use a fixed or percentage rule, "
                f"got {type(self.rule).__name__}"
            )


@dataclass(slots=True)
class PhaseView:
    """Editor layout preferences, carried through untouched."""

    node_layouts: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class PhaseData:
    """One allocation round of a project."""

    id: str
    name: str
    phase_value: float
    root_node: AllocNode
    pre_allocations: List[PreAllocation] = field(default_factory=list)
    view: PhaseView = field(default_factory=PhaseView)


@dataclass(slots=True)
class ProjectData:
    id: str
    name: str
    phases: List[PhaseData] = field(default_factory=list)


@dataclass(slots=True)
class CalculationResult:
    """Computed figures for a single node of one allocation run."""

    amount: float
    percent_of_parent: float
    is_error: bool
    is_warning: bool
    unallocated: float


CalculationMap = Dict[str, CalculationResult]


@dataclass(slots=True)
class SourceData:
    """Where one contribution to a recipient's total came from."""

    project_id: str
    phase_id: str
    path: Tuple[str, ...]
    amount: float


@dataclass(slots=True)
class PersonStat:
    """Aggregated amount received by one recipient name."""

    name: str
    total_amount: float = 0.0
    sources: List[SourceData] = field(default_factory=list)


__all__ = [
    "AllocNode",
    "AllocationRule",
    "CalculationMap",
    "CalculationResult",
    "FixedRule",
    "PercentageRule",
    "PersonStat",
    "PhaseData",
    "PhaseView",
    "PreAllocation",
    "PreAllocationRule",
    "ProjectData",
    "RemainderRule",
    "RuleType",
    "SourceData",
]
