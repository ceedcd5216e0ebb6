"""Teaching-order sequencing of a curated selection."""

from __future__ import annotations

import heapq
import logging
from typing import Dict, List, Sequence, Set, Tuple

from . import affinities
from .curation import CuratedConcept
from .models import GoalContext

logger = logging.getLogger(__name__)

NEW_CONCEPTS_BEFORE_REINFORCEMENT = 2

PriorityKey = Tuple[bool, bool, float, float, int]


def _priority_key(item: CuratedConcept, index: int, context: GoalContext) -> PriorityKey:
    quick_win = context.is_immediate and affinities.is_quick_win(item.title)
    return (
        not quick_win,
        not affinities.is_foundational(item.title),
        -item.adjusted_score,
        -item.final_score,
        index,
    )


def _is_deferred(item: CuratedConcept, context: GoalContext) -> bool:
    """Reinforcement items wait for new material unless they are foundations or quick wins."""
    if not item.is_learned:
        return False
    if affinities.is_foundational(item.title):
        return False
    return not (context.is_immediate and affinities.is_quick_win(item.title))


def order_by_progression(selection: Sequence[CuratedConcept], context: GoalContext) -> List[CuratedConcept]:
    """Order foundations first, honour prerequisites and interleave reinforcement items."""
    items = list(selection)
    if not items:
        return []

    keys: Dict[int, PriorityKey] = {index: _priority_key(item, index, context) for index, item in enumerate(items)}
    graph: Dict[int, Set[int]] = {index: set() for index in keys}
    indegree: Dict[int, int] = {index: 0 for index in keys}

    for first_index, first in enumerate(items):
        for second_index, second in enumerate(items):
            if first_index == second_index:
                continue
            if affinities.is_prerequisite(first.title, second.title) and second_index not in graph[first_index]:
                graph[first_index].add(second_index)
                indegree[second_index] += 1

    available: List[Tuple[PriorityKey, int]] = []
    for index, degree in indegree.items():
        if degree == 0:
            heapq.heappush(available, (keys[index], index))

    ordered: List[int] = []
    new_placed = 0
    previous_was_reinforcement = False
    while available:
        skipped: List[Tuple[PriorityKey, int]] = []
        chosen = None
        while available:
            entry = heapq.heappop(available)
            item = items[entry[1]]
            if not _is_deferred(item, context):
                chosen = entry
                break
            if new_placed >= NEW_CONCEPTS_BEFORE_REINFORCEMENT and not previous_was_reinforcement:
                chosen = entry
                break
            skipped.append(entry)
        if chosen is None:
            # Only reinforcement items remain available.
            chosen = skipped.pop(0)
        for entry in skipped:
            heapq.heappush(available, entry)

        index = chosen[1]
        ordered.append(index)
        if items[index].is_learned:
            previous_was_reinforcement = _is_deferred(items[index], context)
        else:
            new_placed += 1
            previous_was_reinforcement = False

        for neighbour in graph[index]:
            indegree[neighbour] -= 1
            if indegree[neighbour] == 0:
                heapq.heappush(available, (keys[neighbour], neighbour))

    if len(ordered) != len(items):
        unresolved = [items[index].id for index, degree in indegree.items() if degree > 0]
        logger.warning(
            "Detected prerequisite cycle involving %s; falling back to priority order.",
            ", ".join(unresolved),
        )
        return [items[index] for index in sorted(keys, key=lambda index: keys[index])]

    return [items[index] for index in ordered]


__all__ = ["order_by_progression"]
