"""Roll leaf allocations up into per-recipient totals across projects."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from .allocation import calculate_phase
from .models import AllocNode, CalculationMap, PersonStat, ProjectData, SourceData

logger = logging.getLogger(__name__)


def _collect_leaves(
    root: AllocNode,
    results: CalculationMap,
    project_id: str,
    phase_id: str,
    stats: Dict[str, PersonStat],
) -> None:
    stack: List[Tuple[AllocNode, Tuple[str, ...]]] = [(root, ())]
    while stack:
        node, path = stack.pop()
        if node.is_leaf and path:
            result = results.get(node.id)
            if result is None:
                continue
            stat = stats.get(node.name)
            if stat is None:
                stat = stats[node.name] = PersonStat(name=node.name)
            stat.total_amount += result.amount
            stat.sources.append(
                SourceData(
                    project_id=project_id,
                    phase_id=phase_id,
                    # The first entry is always the root, which names no recipient.
                    path=path[1:],
                    amount=result.amount,
                )
            )
            continue

        child_path = path + (node.name,)
        stack.extend((child, child_path) for child in reversed(node.children))


def aggregate_stats(projects: Iterable[ProjectData]) -> List[PersonStat]:
    """Return the total received by each recipient name, largest first.

    Every phase of every project is calculated from scratch. Leaves sharing a
    name are merged into one :class:`PersonStat`, each contribution recorded
    as a :class:`SourceData` with the ancestor path below the root. Equal
    totals are ordered by name.
    """

    stats: Dict[str, PersonStat] = {}
    project_count = 0
    phase_count = 0
    for project in projects:
        project_count += 1
        for phase in project.phases:
            phase_count += 1
            calculation = calculate_phase(phase)
            _collect_leaves(
                phase.root_node,
                calculation.results,
                project.id,
                phase.id,
                stats,
            )

    logger.debug(
        "Aggregated %d recipients from %d phases in %d projects",
        len(stats),
        phase_count,
        project_count,
    )
    return sorted(stats.values(), key=lambda stat: (-stat.total_amount, stat.name))
