from __future__ import annotations

import logging
import threading

import pytest

from roadmap_engine import (
    GoalInput,
    InsufficientContentError,
    InvalidGoalError,
    RoadmapGenerator,
    RoadmapValidationError,
)
from roadmap_engine.collaborators import InMemoryConceptStore
from roadmap_engine.synthesis import GOAL_PREFIX
from roadmap_engine.validator import validate_roadmap

from conftest import (
    FIXED_NOW,
    CountingSearchService,
    FakeEmbeddingService,
    RecordingSleep,
    default_corpus,
    history,
    learned,
    make_concept,
    make_settings,
)

DECISION_GOAL = "I want to improve my decision making skills"
WORK_GOAL = "I want to make better decisions at work"


def _goal(text: str = DECISION_GOAL) -> GoalInput:
    return GoalInput(user_id="learner-1", goal_description=text, timestamp=FIXED_NOW)


def _generator(concepts=None, *, embeddings=None, search=None, settings=None, sleep=None) -> RoadmapGenerator:
    store = InMemoryConceptStore(default_corpus() if concepts is None else concepts)
    return RoadmapGenerator(
        embeddings or FakeEmbeddingService(),
        search or store,
        store,
        settings=settings or make_settings(),
        sleep=sleep or RecordingSleep(),
    )


def _advanced_learner(*, top_rating: int = 5):
    entries = [
        learned("m1", days_ago=1, rating=top_rating),
        learned("m2", days_ago=2, rating=top_rating),
        learned("m3", days_ago=3, rating=top_rating),
        learned("b1", days_ago=4, rating=top_rating),
        learned("b2", days_ago=5, rating=top_rating),
    ]
    entries.extend(learned(f"filler-{index}", days_ago=10 + index, rating=3) for index in range(75))
    return history(entries)


def _synthesis_corpus():
    return default_corpus() + [
        make_concept("m1", "Occam's Razor"),
        make_concept("m2", "Hanlon's Razor"),
        make_concept("m3", "Circle of Competence"),
        make_concept("b1", "Hindsight Bias", type="cognitive-bias"),
        make_concept("b2", "Gambler's Fallacy", type="fallacy"),
    ]


def test_decision_goal_produces_balanced_new_roadmap() -> None:
    roadmap = _generator().generate_roadmap(_goal(), history(), now=FIXED_NOW)

    assert roadmap.strategy == "standard"
    assert 5 <= roadmap.total_steps <= 7
    assert roadmap.total_steps == len(roadmap.steps)
    assert roadmap.estimated_duration == f"{roadmap.total_steps} weeks"
    assert [step.order for step in roadmap.steps] == list(range(1, roadmap.total_steps + 1))
    assert sum(1 for step in roadmap.steps if step.type == "mental-model") >= 2
    assert any(step.type in {"cognitive-bias", "fallacy"} for step in roadmap.steps)
    assert len(set(roadmap.ordered_concept_ids())) == roadmap.total_steps
    assert all(step.learning_status == "new" for step in roadmap.steps)
    assert roadmap.learning_mix_summary.expansion_percentage == pytest.approx(100.0)
    assert roadmap.generated_at == FIXED_NOW
    assert validate_roadmap(roadmap).is_valid


def test_concept_learned_a_week_ago_returns_as_reinforcement() -> None:
    concepts = [
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
        make_concept("anchoring", "Anchoring", category="Psychology", type="cognitive-bias", similarity=0.7),
        make_concept("opportunity-cost", "Opportunity Cost", category="Economics", similarity=0.68),
    ]
    learner = history([learned("confirmation-bias", days_ago=7, rating=4)])

    roadmap = _generator(concepts).generate_roadmap(_goal(), learner, now=FIXED_NOW)

    review = next(step for step in roadmap.steps if step.concept_id == "confirmation-bias")
    assert review.learning_status == "reinforcement"
    assert review.reinforcement_context.last_applied_days_ago == 7
    assert review.reinforcement_context.effectiveness_rating == 4
    assert review.reinforcement_context.spaced_interval == "7-day review"
    assert review.order >= 3
    assert roadmap.learning_mix_summary.reinforcement_concepts == 1
    assert roadmap.learning_mix_summary.new_concepts == roadmap.total_steps - 1


def test_advanced_learner_gets_synthesis_roadmap() -> None:
    embeddings = FakeEmbeddingService()
    generator = _generator(_synthesis_corpus(), embeddings=embeddings)

    roadmap = generator.generate_roadmap(_goal(WORK_GOAL), _advanced_learner(), now=FIXED_NOW)

    assert roadmap.strategy == "advanced-synthesis"
    assert roadmap.goal_description == GOAL_PREFIX + WORK_GOAL
    assert roadmap.total_steps == 7
    assert roadmap.estimated_duration == "14 weeks"
    assert all(step.learning_status == "new" for step in roadmap.steps)
    assert roadmap.steps[0].concept_id == "synthesis-m1-b1"
    assert embeddings.calls == []


def test_advanced_learner_without_highly_rated_concepts_falls_back(telemetry_events, caplog) -> None:
    generator = _generator(_synthesis_corpus())

    with caplog.at_level(logging.WARNING, logger="roadmap_engine.generator"):
        roadmap = generator.generate_roadmap(_goal(WORK_GOAL), _advanced_learner(top_rating=3), now=FIXED_NOW)

    assert roadmap.strategy == "standard"
    assert roadmap.goal_description == WORK_GOAL
    assert "using standard strategy" in caplog.text
    fallback = [event for event in telemetry_events if event.name == "roadmap_strategy_fallback"]
    assert len(fallback) == 1
    assert fallback[0].payload["from_strategy"] == "advanced-synthesis"
    assert fallback[0].payload["to_strategy"] == "standard"


def test_select_strategy_uses_threshold() -> None:
    generator = _generator()

    assert generator.select_strategy(history()).name == "standard"
    assert generator.select_strategy(_advanced_learner()).name == "advanced-synthesis"


def test_too_little_content_raises_insufficient_content(telemetry_events) -> None:
    concepts = default_corpus()[:4]

    with pytest.raises(InsufficientContentError) as excinfo:
        _generator(concepts).generate_roadmap(_goal(), history(), now=FIXED_NOW)

    assert excinfo.value.details["candidate_count"] == 4
    error_event = telemetry_events[-1]
    assert error_event.name == "roadmap_generation"
    assert error_event.payload["status"] == "error"
    assert error_event.payload["phase"] == "generateRoadmap"
    assert error_event.payload["error_code"] == "INSUFFICIENT_CONTENT"
    assert error_event.payload["exception_type"] == "InsufficientContentError"


def test_invalid_goal_fails_before_any_collaborator_call(telemetry_events) -> None:
    embeddings = FakeEmbeddingService()

    with pytest.raises(InvalidGoalError) as excinfo:
        _generator(embeddings=embeddings).generate_roadmap(_goal("I want to be better"), history())

    assert "more specific" in excinfo.value.message
    assert embeddings.calls == []
    assert telemetry_events[-1].payload["phase"] == "validateGoal"


def test_processed_goal_is_used_for_generation() -> None:
    roadmap = _generator().generate_roadmap(_goal("I don't want to be indecisive anymore"), history(), now=FIXED_NOW)

    assert roadmap.goal_description == "I want to overcome being indecisive"


def test_transient_embedding_failures_back_off_exponentially() -> None:
    sleep = RecordingSleep()
    embeddings = FakeEmbeddingService(failures=2)

    roadmap = _generator(embeddings=embeddings, sleep=sleep).generate_roadmap(_goal(), history(), now=FIXED_NOW)

    assert roadmap.total_steps >= 5
    assert len(embeddings.calls) == 3
    assert sleep.delays == [1.0, 2.0]


def _all_model_corpus():
    return [
        make_concept(f"model-{index}", f"Model {index}", category=f"Category {index}", similarity=0.9 - index * 0.05)
        for index in range(7)
    ]


def test_unbalanced_output_is_rejected(telemetry_events) -> None:
    with pytest.raises(RoadmapValidationError) as excinfo:
        _generator(_all_model_corpus()).generate_roadmap(_goal(), history(), now=FIXED_NOW)

    assert "Roadmap should include at least 1 cognitive bias or logical fallacy" in excinfo.value.errors
    assert excinfo.value.details["strategy"] == "standard"
    assert telemetry_events[-1].payload["phase"] == "validateRoadmap"


def test_output_validation_can_be_disabled() -> None:
    generator = _generator(_all_model_corpus(), settings=make_settings(validate_output=False))

    roadmap = generator.generate_roadmap(_goal(), history(), now=FIXED_NOW)

    assert all(step.type == "mental-model" for step in roadmap.steps)


def test_repeat_requests_reuse_cached_embedding_and_search() -> None:
    embeddings = FakeEmbeddingService()
    search = CountingSearchService(InMemoryConceptStore(default_corpus()))
    generator = _generator(embeddings=embeddings, search=search)

    first = generator.generate_roadmap(_goal(), history(), now=FIXED_NOW)
    second = generator.generate_roadmap(_goal(), history(), now=FIXED_NOW)

    assert first.ordered_concept_ids() == second.ordered_concept_ids()
    assert len(embeddings.calls) == 1
    assert search.calls == 1
    stats = generator.cache.stats()
    assert stats["embeddings"].hits == 1
    assert stats["search"].hits == 1


def test_success_emits_generation_event_and_records_timings(telemetry_events) -> None:
    generator = _generator()

    roadmap = generator.generate_roadmap(_goal(), history(), now=FIXED_NOW)

    event = telemetry_events[-1]
    assert event.name == "roadmap_generation"
    assert event.payload["status"] == "success"
    assert event.payload["strategy"] == "standard"
    assert event.payload["step_count"] == roadmap.total_steps
    assert event.payload["new_concepts"] == roadmap.learning_mix_summary.new_concepts
    assert event.payload["duration_ms"] >= 0
    for operation in ("generateRoadmap", "goalAnalysis", "findCandidates", "curateLearningPath", "assembleRoadmap"):
        assert generator.monitor.get_stats(operation).count == 1


class _RendezvousEmbeddingService(FakeEmbeddingService):
    """Holds each caller until the other request is also inside the embedding call."""

    def __init__(self, parties: int) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)

    def generate_embedding(self, text: str):
        self.barrier.wait()
        return super().generate_embedding(text)


def test_overlapping_requests_each_report_their_own_duration(telemetry_events, caplog) -> None:
    generator = _generator(embeddings=_RendezvousEmbeddingService(parties=2))
    failures = []

    def _request(user_id: str) -> None:
        try:
            generator.generate_roadmap(
                GoalInput(user_id=user_id, goal_description=DECISION_GOAL, timestamp=FIXED_NOW),
                history(user_id=user_id),
                now=FIXED_NOW,
            )
        except Exception as exc:  # noqa: BLE001
            failures.append(exc)

    with caplog.at_level(logging.WARNING, logger="roadmap_engine.performance"):
        workers = [threading.Thread(target=_request, args=(user_id,)) for user_id in ("alice", "bob")]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

    assert failures == []
    assert "No timer found" not in caplog.text
    durations = [event.payload["duration_ms"] for event in telemetry_events if event.name == "roadmap_generation"]
    assert len(durations) == 2
    assert all(duration > 0 for duration in durations)
    assert generator.monitor.get_stats("generateRoadmap").count == 2
    assert generator.monitor.get_stats("goalAnalysis").count == 2
