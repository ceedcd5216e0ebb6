"""Greedy selection of a diverse, mutually reinforcing set of concepts."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from . import affinities
from .goal_analysis import active_classifications
from .models import BIAS_TYPES, MENTAL_MODEL, ConceptType, GoalContext, ScoredCandidate

logger = logging.getLogger(__name__)

MIN_STEPS = 5
MAX_STEPS = 7
MIN_MENTAL_MODELS = 2
MIN_BIASES = 1
NEW_CATEGORY_CAP = 2
LEARNED_CATEGORY_CAP = 3
SYNERGY_CAP = 0.3


@dataclass(frozen=True)
class CuratedConcept:
    """A candidate chosen for the roadmap with the synergy it was chosen with."""

    candidate: ScoredCandidate
    adjusted_score: float
    synergy: float

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def title(self) -> str:
        return self.candidate.title

    @property
    def category(self) -> str:
        return self.candidate.category

    @property
    def type(self) -> ConceptType:
        return self.candidate.type

    @property
    def is_learned(self) -> bool:
        return self.candidate.is_learned

    @property
    def final_score(self) -> float:
        return self.candidate.final_score


def synergy_score(candidate: ScoredCandidate, selected: Sequence[ScoredCandidate]) -> float:
    """Bonus for how well ``candidate`` complements what has already been chosen."""
    if not selected:
        return 0.0

    score = 0.0
    partners = affinities.SYNERGY_PAIRS.get(candidate.title)
    if partners:
        matching = [
            chosen
            for chosen in selected
            if any(affinities.titles_overlap(chosen.title, partner) for partner in partners)
        ]
        score += len(matching) * 0.1

    synergistic_categories = affinities.CATEGORY_SYNERGIES.get(candidate.category)
    if synergistic_categories:
        matching_categories = sum(1 for chosen in selected if chosen.category in synergistic_categories)
        score += (matching_categories / len(selected)) * 0.05

    type_counts = Counter(chosen.type for chosen in selected)
    if max(type_counts.values()) / len(selected) > 0.6 and candidate.type not in type_counts:
        score += 0.1

    if affinities.is_foundational(candidate.title) and len(selected) < 3:
        score += 0.05

    if candidate.is_learned:
        pairs_with_new = any(
            not chosen.is_learned
            and (
                chosen.category == candidate.category
                or affinities.are_titles_related(candidate.title, chosen.title)
            )
            for chosen in selected
        )
        if pairs_with_new:
            score += 0.08

    return min(score, SYNERGY_CAP)


def seed_titles(context: GoalContext) -> List[str]:
    titles = list(affinities.BASE_SEED_TITLES)
    for classification in active_classifications(context):
        titles.extend(affinities.CLASSIFICATION_SEED_TITLES.get(classification, ()))
    titles.extend(affinities.DOMAIN_SEED_TITLES.get(context.domain, ()))
    return titles


def priority_categories(context: GoalContext) -> List[str]:
    categories: List[str] = []
    for classification in active_classifications(context):
        categories.extend(affinities.CLASSIFICATION_PRIORITY_CATEGORIES.get(classification, ()))
    categories.extend(affinities.DOMAIN_PRIORITY_CATEGORIES.get(context.domain, ()))
    return list(dict.fromkeys(categories))


def _category_cap(candidate: ScoredCandidate) -> int:
    return LEARNED_CATEGORY_CAP if candidate.is_learned else NEW_CATEGORY_CAP


def _count_types(selection: Sequence[CuratedConcept]) -> Dict[str, int]:
    mental_models = sum(1 for item in selection if item.type == MENTAL_MODEL)
    biases = sum(1 for item in selection if item.type in BIAS_TYPES)
    return {"mental_models": mental_models, "biases": biases}


class _Selection:
    """Mutable working set used while a single curation pass runs."""

    def __init__(self, ranked: Sequence[ScoredCandidate]) -> None:
        self.ranked = list(ranked)
        self.items: List[CuratedConcept] = []
        self.category_counts: Counter[str] = Counter()

    def chosen_ids(self) -> set:
        return {item.id for item in self.items}

    def candidates(self, exclude: Optional[str] = None) -> List[ScoredCandidate]:
        return [item.candidate for item in self.items if item.id != exclude]

    def curate(self, candidate: ScoredCandidate, *, exclude: Optional[str] = None) -> CuratedConcept:
        synergy = synergy_score(candidate, self.candidates(exclude))
        return CuratedConcept(candidate=candidate, adjusted_score=candidate.final_score + synergy, synergy=synergy)

    def add(self, candidate: ScoredCandidate) -> None:
        self.items.append(self.curate(candidate))
        self.category_counts[candidate.category] += 1

    def under_cap(self, candidate: ScoredCandidate) -> bool:
        return self.category_counts[candidate.category] < _category_cap(candidate)

    def fill(
        self,
        limit: int,
        *,
        accept: Callable[[ScoredCandidate], bool],
        respect_caps: bool = True,
    ) -> None:
        """Repeatedly add the eligible candidate with the best synergy-adjusted score."""
        while len(self.items) < limit:
            chosen = self.chosen_ids()
            best: Optional[ScoredCandidate] = None
            best_score = 0.0
            for candidate in self.ranked:
                if candidate.id in chosen or not accept(candidate):
                    continue
                if respect_caps and not self.under_cap(candidate):
                    continue
                score = candidate.final_score + synergy_score(candidate, self.candidates())
                # Strict comparison keeps the earlier-ranked candidate on ties.
                if best is None or score > best_score:
                    best = candidate
                    best_score = score
            if best is None:
                return
            self.add(best)


def curate_learning_path(candidates: Sequence[ScoredCandidate], context: GoalContext) -> List[CuratedConcept]:
    """Pick between five and seven concepts, in selection order."""
    ranked = sorted(candidates, key=lambda candidate: candidate.final_score, reverse=True)
    selection = _Selection(ranked)

    seeds = seed_titles(context)
    for candidate in ranked:
        if len(selection.items) >= MAX_STEPS:
            break
        if any(affinities.titles_overlap(candidate.title, seed) for seed in seeds):
            selection.add(candidate)

    for category in priority_categories(context):
        selection.fill(MAX_STEPS, accept=lambda candidate, category=category: candidate.category == category)

    selection.fill(MAX_STEPS, accept=lambda candidate: True)

    if len(selection.items) < MIN_STEPS:
        selection.fill(MIN_STEPS, accept=lambda candidate: True, respect_caps=False)

    _enforce_type_balance(selection)
    logger.debug(
        "Curated %s of %s candidates: %s",
        len(selection.items),
        len(ranked),
        [item.id for item in selection.items],
    )
    return selection.items


def _enforce_type_balance(selection: _Selection) -> None:
    counts = _count_types(selection.items)
    if counts["mental_models"] < MIN_MENTAL_MODELS:
        _top_up(
            selection,
            needed=MIN_MENTAL_MODELS - counts["mental_models"],
            wanted=lambda item: item.type == MENTAL_MODEL,
            replaceable=lambda item, counts: item.type != MENTAL_MODEL
            and not (item.type in BIAS_TYPES and counts["biases"] <= MIN_BIASES),
        )

    counts = _count_types(selection.items)
    if counts["biases"] < MIN_BIASES:
        _top_up(
            selection,
            needed=MIN_BIASES - counts["biases"],
            wanted=lambda item: item.type in BIAS_TYPES,
            replaceable=lambda item, counts: item.type == MENTAL_MODEL and counts["mental_models"] > MIN_MENTAL_MODELS,
        )

    _truncate(selection)


def _top_up(
    selection: _Selection,
    *,
    needed: int,
    wanted: Callable[[ScoredCandidate], bool],
    replaceable: Callable[[CuratedConcept, Dict[str, int]], bool],
) -> None:
    """Swap in (or append) the best unselected candidates of a missing type."""
    chosen = selection.chosen_ids()
    available = sorted(
        (candidate for candidate in selection.ranked if candidate.id not in chosen and wanted(candidate)),
        key=lambda candidate: candidate.final_score,
        reverse=True,
    )
    for candidate in available[:needed]:
        counts = _count_types(selection.items)
        swappable = [
            item
            for item in selection.items
            if not affinities.is_foundational(item.title) and replaceable(item, counts)
        ]
        if swappable:
            victim = min(swappable, key=lambda item: item.final_score)
            index = selection.items.index(victim)
            logger.debug("Type balance: replacing %s with %s", victim.id, candidate.id)
            selection.items[index] = selection.curate(candidate, exclude=victim.id)
            selection.category_counts[victim.category] -= 1
            selection.category_counts[candidate.category] += 1
        else:
            logger.debug("Type balance: appending %s", candidate.id)
            selection.add(candidate)


def _truncate(selection: _Selection) -> None:
    """Drop the lowest scorers beyond the ceiling without breaking the type minimums."""
    while len(selection.items) > MAX_STEPS:
        counts = _count_types(selection.items)
        droppable = [
            item
            for item in selection.items
            if not (item.type == MENTAL_MODEL and counts["mental_models"] <= MIN_MENTAL_MODELS)
            and not (item.type in BIAS_TYPES and counts["biases"] <= MIN_BIASES)
        ]
        victim = min(droppable or selection.items, key=lambda item: item.final_score)
        selection.items.remove(victim)
        selection.category_counts[victim.category] -= 1


__all__ = [
    "CuratedConcept",
    "MAX_STEPS",
    "MIN_BIASES",
    "MIN_MENTAL_MODELS",
    "MIN_STEPS",
    "curate_learning_path",
    "priority_categories",
    "seed_titles",
    "synergy_score",
]
