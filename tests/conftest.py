from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

import pytest

from roadmap_engine.collaborators import InMemoryConceptStore
from roadmap_engine.config import Settings
from roadmap_engine.models import Concept, GoalExample, LearnedConcept, LearningHistory
from roadmap_engine.telemetry import TelemetryEvent, clear_listeners, register_listener

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
GOAL_VECTOR = [1.0, 0.0, 0.0, 0.0]


def vector_for(similarity: float) -> List[float]:
    """Unit vector whose cosine similarity with ``GOAL_VECTOR`` is ``similarity``."""
    return [similarity, math.sqrt(max(1.0 - similarity * similarity, 0.0)), 0.0, 0.0]


def make_concept(
    concept_id: str,
    title: str,
    *,
    category: str = "Decision Making",
    type: str = "mental-model",
    similarity: float = 0.8,
    summary: Optional[str] = None,
    goal_examples: Sequence[str] = (),
) -> Concept:
    return Concept(
        id=concept_id,
        title=title,
        category=category,
        type=type,
        summary=summary or f"{title} keeps you honest.",
        description=f"{title} explained.",
        application=f"Apply {title} daily.",
        keywords=[title.lower()],
        embedding=vector_for(similarity),
        goal_examples=[GoalExample(goal=goal) for goal in goal_examples],
    )


def learned(concept_id: str, *, days_ago: float, rating: int = 4, now: datetime = FIXED_NOW) -> LearnedConcept:
    reflected = now - timedelta(days=days_ago)
    return LearnedConcept(
        concept_id=concept_id,
        completed_at=reflected - timedelta(days=1),
        last_reflection_at=reflected,
        effectiveness_rating=rating,
        application_count=1,
    )


def history(entries: Iterable[LearnedConcept] = (), user_id: str = "learner-1") -> LearningHistory:
    return LearningHistory(user_id=user_id, learned_concepts=list(entries))


def default_corpus() -> List[Concept]:
    return [
        make_concept("first-principles", "First Principles", category="Decision Making", similarity=0.85),
        make_concept("inversion", "Inversion", category="Problem Solving", similarity=0.8),
        make_concept("second-order", "Second-Order Thinking", category="Decision Making", similarity=0.78),
        make_concept(
            "confirmation-bias",
            "Confirmation Bias",
            category="Psychology",
            type="cognitive-bias",
            similarity=0.75,
        ),
        make_concept("sunk-cost", "Sunk Cost Fallacy", category="Decision Making", type="fallacy", similarity=0.72),
        make_concept("anchoring", "Anchoring", category="Psychology", type="cognitive-bias", similarity=0.7),
        make_concept("opportunity-cost", "Opportunity Cost", category="Economics", similarity=0.68),
        make_concept("probabilistic", "Probabilistic Thinking", category="Decision Making", similarity=0.66),
        make_concept(
            "availability",
            "Availability Heuristic",
            category="Psychology",
            type="cognitive-bias",
            similarity=0.62,
        ),
        make_concept("habit-loop", "Habit Loop", category="Habits", similarity=0.6),
        make_concept("stoicism", "Stoicism", category="Philosophy", similarity=0.55),
        make_concept("straw-man", "Straw Man", category="Logic", type="fallacy", similarity=0.5),
    ]


class FakeEmbeddingService:
    """Returns a fixed vector, optionally failing a number of times first."""

    def __init__(
        self,
        vector: Sequence[float] = GOAL_VECTOR,
        *,
        failures: int = 0,
        error: Optional[Exception] = None,
    ) -> None:
        self.vector = list(vector)
        self.failures = failures
        self.error = error or RuntimeError("embedding provider unavailable")
        self.calls: List[str] = []

    def generate_embedding(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.failures > 0:
            self.failures -= 1
            raise self.error
        return list(self.vector)


class CountingSearchService:
    """Wraps a search service and records how often it was called."""

    def __init__(self, inner: InMemoryConceptStore, *, failures: int = 0) -> None:
        self.inner = inner
        self.failures = failures
        self.calls = 0

    def search_by_embedding(self, embedding, threshold, count, learning_history=None):
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("vector index unavailable")
        return self.inner.search_by_embedding(embedding, threshold, count, learning_history)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_settings(**overrides) -> Settings:
    values = {"retry_jitter_seconds": 0.0, "openai_api_key": "test-key"}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> InMemoryConceptStore:
    return InMemoryConceptStore(default_corpus())


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def telemetry_events():
    events: List[TelemetryEvent] = []
    unregister = register_listener(events.append)
    yield events
    unregister()


@pytest.fixture(autouse=True)
def _reset_telemetry_listeners():
    yield
    clear_listeners()
