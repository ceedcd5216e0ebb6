"""Roadmap generation entry point and the standard retrieval-based strategy."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Optional, Protocol

from .assembly import assemble_roadmap
from .cache import RoadmapCache
from .collaborators import ConceptCorpus, ConceptSearchService, EmbeddingService
from .config import Settings, get_settings
from .curation import curate_learning_path
from .errors import InsufficientContentError, InvalidGoalError, RoadmapValidationError, log_error
from .goal_analysis import analyze_goal_context
from .models import GeneratedRoadmap, GoalInput, LearningHistory
from .performance import PerformanceMonitor
from .progression import order_by_progression
from .retrieval import CandidateRetriever
from .retry import RetryPolicy
from .synthesis import AdvancedSynthesisStrategy
from .telemetry import emit_event
from .validator import validate_goal_description, validate_roadmap

logger = logging.getLogger(__name__)


class GenerationStrategy(Protocol):
    name: str

    def generate(
        self,
        goal_input: GoalInput,
        history: LearningHistory,
        *,
        now: Optional[datetime] = None,
    ) -> GeneratedRoadmap:
        ...


class StandardStrategy:
    """Vector search, scoring, curation, progression ordering and assembly."""

    name = "standard"

    def __init__(
        self,
        retriever: CandidateRetriever,
        *,
        monitor: PerformanceMonitor,
        settings: Optional[Settings] = None,
    ) -> None:
        self._retriever = retriever
        self._monitor = monitor
        self._settings = settings or get_settings()

    def generate(
        self,
        goal_input: GoalInput,
        history: LearningHistory,
        *,
        now: Optional[datetime] = None,
    ) -> GeneratedRoadmap:
        goal = goal_input.goal_description

        self._monitor.start_timer("goalAnalysis")
        embedding = self._retriever.resolve_embedding(goal)
        context = analyze_goal_context(goal)
        self._monitor.end_timer("goalAnalysis")

        self._monitor.start_timer("findCandidates")
        candidates = self._retriever.find_candidates(goal, history, context, embedding=embedding, now=now)
        self._monitor.end_timer("findCandidates")

        if len(candidates) < self._settings.min_candidates:
            raise InsufficientContentError(
                "Not enough relevant content found for your goal",
                {"candidate_count": len(candidates), "goal": goal},
            )

        self._monitor.start_timer("curateLearningPath")
        selection = curate_learning_path(candidates, context)
        ordered = order_by_progression(selection, context)
        self._monitor.end_timer("curateLearningPath")

        self._monitor.start_timer("assembleRoadmap")
        roadmap = assemble_roadmap(goal, ordered, generated_at=now)
        self._monitor.end_timer("assembleRoadmap")
        return roadmap


class RoadmapGenerator:
    """Validates the goal, picks a strategy, runs it and checks the result."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        search_service: ConceptSearchService,
        corpus: ConceptCorpus,
        *,
        cache: Optional[RoadmapCache] = None,
        settings: Optional[Settings] = None,
        monitor: Optional[PerformanceMonitor] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        self.cache = cache or RoadmapCache.from_settings(self._settings)
        self.monitor = monitor or PerformanceMonitor()
        retry_policy = RetryPolicy.from_settings(self._settings, sleep=sleep)
        retriever = CandidateRetriever(
            embedding_service,
            search_service,
            cache=self.cache,
            retry_policy=retry_policy,
            settings=self._settings,
        )
        self.standard = StandardStrategy(retriever, monitor=self.monitor, settings=self._settings)
        self.advanced = AdvancedSynthesisStrategy(corpus, retry_policy=retry_policy)

    def select_strategy(self, history: LearningHistory) -> GenerationStrategy:
        if len(history.learned_concepts) >= self._settings.advanced_synthesis_threshold:
            return self.advanced
        return self.standard

    def generate_roadmap(
        self,
        goal_input: GoalInput,
        history: LearningHistory,
        *,
        now: Optional[datetime] = None,
    ) -> GeneratedRoadmap:
        self.monitor.start_timer("generateRoadmap")
        phase = "validateGoal"
        strategy_name: Optional[str] = None
        try:
            check = validate_goal_description(goal_input.goal_description)
            if not check.is_valid:
                raise InvalidGoalError(
                    check.error or "Invalid goal description",
                    {"goal": goal_input.goal_description},
                )
            prepared = goal_input.model_copy(update={"goal_description": check.processed_goal})

            phase = "generateRoadmap"
            strategy = self.select_strategy(history)
            strategy_name = strategy.name
            roadmap = self._run_strategy(strategy, prepared, history, now)
            strategy_name = roadmap.strategy

            phase = "validateRoadmap"
            if self._settings.validate_output:
                self._check_output(roadmap)
        except Exception as exc:  # noqa: BLE001
            duration_ms = self.monitor.end_timer("generateRoadmap")
            log_error(exc, user_id=goal_input.user_id, goal=goal_input.goal_description, phase=phase)
            emit_event(
                "roadmap_generation",
                user_id=goal_input.user_id,
                status="error",
                strategy=strategy_name,
                phase=phase,
                duration_ms=round(duration_ms, 2),
                step_count=0,
                error=str(exc),
                error_code=getattr(exc, "code", None),
                exception_type=exc.__class__.__name__,
            )
            raise

        duration_ms = self.monitor.end_timer("generateRoadmap")
        summary = roadmap.learning_mix_summary
        emit_event(
            "roadmap_generation",
            user_id=goal_input.user_id,
            status="success",
            strategy=roadmap.strategy,
            duration_ms=round(duration_ms, 2),
            step_count=roadmap.total_steps,
            new_concepts=summary.new_concepts,
            reinforcement_concepts=summary.reinforcement_concepts,
        )
        logger.info("Generated %s roadmap for %s in %.1fms", roadmap.strategy, goal_input.user_id, duration_ms)
        return roadmap

    def _run_strategy(
        self,
        strategy: GenerationStrategy,
        goal_input: GoalInput,
        history: LearningHistory,
        now: Optional[datetime],
    ) -> GeneratedRoadmap:
        if strategy is not self.advanced:
            return strategy.generate(goal_input, history, now=now)
        try:
            return strategy.generate(goal_input, history, now=now)
        except InsufficientContentError as exc:
            logger.warning(
                "Advanced synthesis unavailable for %s (%s); using standard strategy.",
                goal_input.user_id,
                exc,
            )
            emit_event(
                "roadmap_strategy_fallback",
                user_id=goal_input.user_id,
                from_strategy=strategy.name,
                to_strategy=self.standard.name,
                reason=str(exc),
            )
            return self.standard.generate(goal_input, history, now=now)

    def _check_output(self, roadmap: GeneratedRoadmap) -> None:
        result = validate_roadmap(roadmap, require_type_balance=roadmap.strategy == "standard")
        if not result.is_valid:
            raise RoadmapValidationError(
                "Generated roadmap failed validation",
                result.errors,
                {"strategy": roadmap.strategy, "step_count": roadmap.total_steps},
            )


__all__ = ["GenerationStrategy", "RoadmapGenerator", "StandardStrategy"]
