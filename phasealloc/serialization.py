"""Conversion between model objects and the editor's plain-dict documents."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from .allocation import index_nodes
from .models import (
    AllocationRule,
    AllocNode,
    FixedRule,
    PercentageRule,
    PhaseData,
    PhaseView,
    PreAllocation,
    ProjectData,
    RemainderRule,
    RuleType,
)


def _parse_rule_type(data: Mapping[str, Any]) -> RuleType:
    raw = data.get("type")
    try:
        return RuleType(raw)
    except ValueError as exc:
        raise ValueError(f"Unknown rule type: {raw!r}") from exc


def _parse_value(data: Mapping[str, Any], rule_type: RuleType) -> float:
    if "value" not in data:
        raise ValueError(f"{rule_type.value} rule requires a value")
    try:
        return float(data["value"])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Rule value must be numeric: {data['value']!r}") from exc


def rule_from_dict(data: Mapping[str, Any]) -> AllocationRule:
    rule_type = _parse_rule_type(data)
    if rule_type is RuleType.REMAINDER:
        if data.get("value") is not None:
            raise ValueError("REMAINDER rule does not take a value")
        return RemainderRule()
    value = _parse_value(data, rule_type)
    if rule_type is RuleType.FIXED:
        return FixedRule(value)
    return PercentageRule(value)


def rule_to_dict(rule: AllocationRule) -> Dict[str, Any]:
    if isinstance(rule, RemainderRule):
        return {"type": rule.kind.value}
    return {"type": rule.kind.value, "value": rule.value}


def _node_shell_from_dict(data: Mapping[str, Any]) -> AllocNode:
    return AllocNode(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        rule=rule_from_dict(data["rule"]),
    )


def node_from_dict(data: Mapping[str, Any]) -> AllocNode:
    """Build an :class:`AllocNode` tree from its nested document form."""

    root = _node_shell_from_dict(data)
    stack: List[Tuple[Mapping[str, Any], AllocNode]] = [(data, root)]
    while stack:
        node_data, node = stack.pop()
        for child_data in node_data.get("children", []):
            child = _node_shell_from_dict(child_data)
            node.children.append(child)
            stack.append((child_data, child))
    return root


def _node_shell_to_dict(node: AllocNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "name": node.name,
        "rule": rule_to_dict(node.rule),
        "children": [],
    }


def node_to_dict(node: AllocNode) -> Dict[str, Any]:
    root = _node_shell_to_dict(node)
    stack: List[Tuple[AllocNode, Dict[str, Any]]] = [(node, root)]
    while stack:
        current, current_data = stack.pop()
        for child in current.children:
            child_data = _node_shell_to_dict(child)
            current_data["children"].append(child_data)
            stack.append((child, child_data))
    return root


def pre_allocation_from_dict(data: Mapping[str, Any]) -> PreAllocation:
    rule = rule_from_dict(data["rule"])
    if isinstance(rule, RemainderRule):
        raise ValueError(f"Pre-allocation {data.get('id')!r} cannot use a REMAINDER rule")
    return PreAllocation(id=str(data["id"]), name=str(data.get("name", "")), rule=rule)


def pre_allocation_to_dict(pre_allocation: PreAllocation) -> Dict[str, Any]:
    return {
        "id": pre_allocation.id,
        "name": pre_allocation.name,
        "rule": rule_to_dict(pre_allocation.rule),
    }


def phase_from_dict(data: Mapping[str, Any]) -> PhaseData:
    """Build a :class:`PhaseData` from its document form.

    The allocation tree is checked for duplicate node ids, since calculation
    results are keyed by id.
    """

    root = node_from_dict(data["rootNode"])
    index_nodes(root)
    view_data = data.get("view") or {}
    return PhaseData(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        phase_value=float(data.get("phaseValue", 0.0)),
        root_node=root,
        pre_allocations=[pre_allocation_from_dict(item) for item in data.get("preAllocations", [])],
        view=PhaseView(node_layouts=dict(view_data.get("nodeLayouts", {}))),
    )


def phase_to_dict(phase: PhaseData) -> Dict[str, Any]:
    return {
        "id": phase.id,
        "name": phase.name,
        "phaseValue": phase.phase_value,
        "preAllocations": [pre_allocation_to_dict(item) for item in phase.pre_allocations],
        "rootNode": node_to_dict(phase.root_node),
        "view": {"nodeLayouts": dict(phase.view.node_layouts)},
    }


def project_from_dict(data: Mapping[str, Any]) -> ProjectData:
    return ProjectData(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        phases=[phase_from_dict(phase) for phase in data.get("phases", [])],
    )


def project_to_dict(project: ProjectData) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "phases": [phase_to_dict(phase) for phase in project.phases],
    }


def projects_from_dicts(items: List[Mapping[str, Any]]) -> List[ProjectData]:
    return [project_from_dict(item) for item in items]


__all__ = [
    "node_from_dict",
    "node_to_dict",
    "phase_from_dict",
    "phase_to_dict",
    "pre_allocation_from_dict",
    "pre_allocation_to_dict",
    "project_from_dict",
    "project_to_dict",
    "projects_from_dicts",
    "rule_from_dict",
    "rule_to_dict",
]
