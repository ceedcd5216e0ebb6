"""Composite relevance scoring for search hits."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from . import affinities
from .goal_analysis import active_classifications
from .models import Concept, GoalContext, ScoredCandidate, SearchHit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    semantic_similarity: float = 0.35
    category_alignment: float = 0.15
    type_diversity_bonus: float = 0.15
    goal_example_match: float = 0.15


DEFAULT_WEIGHTS = ScoringWeights()

NOVELTY_BONUS = 0.15
SPACED_REPETITION_WEIGHT = 0.05
OPTIMAL_SPACED_INTERVALS = (1, 3, 7, 30, 90)
SPACED_INTERVAL_TOLERANCE = 0.2

_WHITESPACE = re.compile(r"\s+")


def spaced_repetition_score(days_since_last_use: int, effectiveness_rating: int) -> float:
    for interval in OPTIMAL_SPACED_INTERVALS:
        deviation = abs(days_since_last_use - interval) / interval
        if deviation <= SPACED_INTERVAL_TOLERANCE:
            return SPACED_REPETITION_WEIGHT * (effectiveness_rating / 5)
    return 0.0


def category_alignment(category: str, context: GoalContext) -> float:
    score = affinities.CATEGORY_BASE_SCORES.get(category, affinities.DEFAULT_CATEGORY_SCORE)

    for classification in active_classifications(context):
        if category in affinities.CLASSIFICATION_CATEGORIES[classification]:
            score += affinities.CLASSIFICATION_BOOST

    domain_boost = affinities.DOMAIN_CATEGORY_BOOSTS.get(context.domain)
    if domain_boost is not None:
        boost, categories = domain_boost
        if category in categories:
            score += boost

    if context.is_immediate and category in affinities.URGENCY_CATEGORIES:
        score += affinities.URGENCY_BOOST

    return min(score, 1.0)


def type_diversity_bonus(concept_type: str) -> float:
    return affinities.TYPE_DIVERSITY_SCORES.get(concept_type, affinities.DEFAULT_TYPE_SCORE)


def word_overlap(first: str, second: str) -> float:
    """Jaccard similarity over the words longer than two characters."""
    words_first = {word for word in _WHITESPACE.split(first) if len(word) > 2}
    words_second = {word for word in _WHITESPACE.split(second) if len(word) > 2}
    union = words_first | words_second
    if not union:
        return 0.0
    return len(words_first & words_second) / len(union)


def goal_example_match(
    concept: Concept,
    goal_description: str,
    keywords: Sequence[str] = affinities.HIGH_VALUE_GOAL_KEYWORDS,
) -> float:
    """Small keyword bonus on top of the embedding, which already covers example text."""
    if not concept.goal_examples:
        return 0.0

    goal_lower = goal_description.lower()
    bonus = 0.0
    for example in concept.goal_examples:
        example_lower = example.goal.lower()
        matches = sum(1 for keyword in keywords if keyword in goal_lower and keyword in example_lower)
        if matches:
            bonus = max(bonus, matches * affinities.KEYWORD_MATCH_BONUS)
        if word_overlap(goal_lower, example_lower) > affinities.SIMILAR_GOAL_THRESHOLD:
            bonus = max(bonus, affinities.SIMILAR_GOAL_BONUS)

    return min(bonus, affinities.MAX_GOAL_EXAMPLE_BONUS)


def score_hit(
    hit: SearchHit,
    context: GoalContext,
    goal_description: str,
    *,
    days_since_last_use: Optional[int] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> ScoredCandidate:
    concept = hit.concept
    rating = hit.learned_data.effectiveness_rating if hit.learned_data else None

    repetition = 0.0
    if hit.is_learned and days_since_last_use is not None and rating is not None:
        repetition = spaced_repetition_score(days_since_last_use, rating)

    alignment = category_alignment(concept.category, context)
    diversity = type_diversity_bonus(concept.type)
    example_match = goal_example_match(concept, goal_description)
    novelty = 0.0 if hit.is_learned else NOVELTY_BONUS

    final_score = (
        hit.similarity * weights.semantic_similarity
        + alignment * weights.category_alignment
        + diversity * weights.type_diversity_bonus
        + example_match * weights.goal_example_match
        + novelty
        + repetition
    )

    return ScoredCandidate(
        concept=concept,
        semantic_similarity=hit.similarity,
        category_alignment=alignment,
        type_diversity_bonus=diversity,
        goal_example_match=example_match,
        novelty_score=novelty,
        spaced_repetition_score=repetition,
        final_score=final_score,
        is_learned=hit.is_learned,
        days_since_last_use=days_since_last_use if hit.is_learned else None,
        effectiveness_rating=rating if hit.is_learned else None,
    )


__all__ = [
    "DEFAULT_WEIGHTS",
    "NOVELTY_BONUS",
    "OPTIMAL_SPACED_INTERVALS",
    "ScoringWeights",
    "category_alignment",
    "goal_example_match",
    "score_hit",
    "spaced_repetition_score",
    "type_diversity_bonus",
    "word_overlap",
]
