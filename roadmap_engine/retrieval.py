"""Goal embedding, vector search and candidate scoring."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .cache import RoadmapCache
from .collaborators import ConceptSearchService, EmbeddingService
from .config import Settings, get_settings
from .errors import DatabaseSearchError, EmbeddingServiceError
from .models import GoalContext, LearnedConcept, LearningHistory, ScoredCandidate, SearchHit
from .retry import RetryPolicy
from .scoring import score_hit

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed from ``earlier`` to ``later``, never negative."""
    if earlier.tzinfo is None:
        earlier = earlier.replace(tzinfo=timezone.utc)
    if later.tzinfo is None:
        later = later.replace(tzinfo=timezone.utc)
    elapsed = (later - earlier).total_seconds() / SECONDS_PER_DAY
    return max(math.floor(elapsed), 0)


class CandidateRetriever:
    """Turns a goal and a learning history into a ranked list of scored candidates."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        search_service: ConceptSearchService,
        *,
        cache: RoadmapCache,
        retry_policy: RetryPolicy,
        settings: Optional[Settings] = None,
    ) -> None:
        self._embedding_service = embedding_service
        self._search_service = search_service
        self._cache = cache
        self._retry = retry_policy
        self._settings = settings or get_settings()

    def resolve_embedding(self, goal_description: str) -> List[float]:
        cached = self._cache.get_embedding(goal_description)
        if cached is not None:
            logger.debug("Embedding cache hit for goal")
            return cached

        try:
            embedding = self._retry.run(
                lambda: self._embedding_service.generate_embedding(goal_description),
                "embedding generation",
            )
        except EmbeddingServiceError:
            raise
        except Exception as exc:
            raise EmbeddingServiceError(
                "Failed to generate embedding for goal",
                {"goal": goal_description, "error": str(exc)},
            ) from exc

        self._cache.set_embedding(goal_description, embedding)
        return list(embedding)

    def search(self, embedding: List[float], history: LearningHistory) -> List[SearchHit]:
        threshold = self._settings.similarity_threshold
        count = self._settings.candidate_count
        history_hash = RoadmapCache.hash_learning_history(history.learned_ids())

        cached = self._cache.get_search_results(embedding, threshold, count, history_hash)
        if cached is not None:
            # The key only covers learned ids; ratings and dates come from this caller.
            return annotate_hits(cached, history)

        try:
            hits = self._retry.run(
                lambda: self._search_service.search_by_embedding(embedding, threshold, count, history),
                "concept search",
            )
        except DatabaseSearchError:
            raise
        except Exception as exc:
            raise DatabaseSearchError(
                "Failed to search knowledge content",
                {"threshold": threshold, "error": str(exc)},
            ) from exc

        annotated = annotate_hits(hits, history)
        self._cache.set_search_results(embedding, threshold, count, annotated, history_hash)
        return annotated

    def find_candidates(
        self,
        goal_description: str,
        history: LearningHistory,
        context: GoalContext,
        *,
        embedding: Optional[List[float]] = None,
        now: Optional[datetime] = None,
    ) -> List[ScoredCandidate]:
        if embedding is None:
            embedding = self.resolve_embedding(goal_description)
        hits = self.search(embedding, history)
        current = now or datetime.now(timezone.utc)

        scored: List[ScoredCandidate] = []
        for hit in hits:
            days = None
            if hit.is_learned and hit.learned_data is not None:
                days = days_between(hit.learned_data.last_reflection_at, current)
            scored.append(score_hit(hit, context, goal_description, days_since_last_use=days))

        # sorted() is stable, so equal scores keep search order.
        scored = sorted(scored, key=lambda candidate: candidate.final_score, reverse=True)
        return scored[: self._settings.candidate_count]


def annotate_hits(hits: List[SearchHit], history: LearningHistory) -> List[SearchHit]:
    """Re-apply the caller's history and drop duplicate concept ids, keeping the closest hit."""
    learned: Dict[str, LearnedConcept] = {entry.concept_id: entry for entry in history.learned_concepts}
    best: Dict[str, SearchHit] = {}
    for hit in hits:
        entry = learned.get(hit.concept.id)
        annotated = hit.model_copy(update={"is_learned": entry is not None, "learned_data": entry})
        existing = best.get(annotated.concept.id)
        if existing is None or annotated.similarity > existing.similarity:
            best[annotated.concept.id] = annotated
    return sorted(best.values(), key=lambda hit: hit.similarity, reverse=True)


__all__ = ["CandidateRetriever", "annotate_hits", "days_between"]
