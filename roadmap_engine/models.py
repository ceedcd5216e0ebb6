"""Concept, learning-history, candidate and roadmap models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

ConceptType = Literal["mental-model", "cognitive-bias", "fallacy"]
LearningStatus = Literal["new", "reinforcement"]
GoalDomain = Literal["professional", "relational", "health", "financial", "personal"]

MENTAL_MODEL: ConceptType = "mental-model"
BIAS_TYPES = frozenset({"cognitive-bias", "fallacy"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoalExample(BaseModel):
    """Example goal phrase attached to a concept with an implementation-intention or spotting mission."""

    goal: str
    if_then_example: Optional[str] = None
    spotting_mission_example: Optional[str] = None


class Concept(BaseModel):
    """Immutable reference unit served by the concept corpus."""

    model_config = {"frozen": True}

    id: str
    title: str
    category: str
    type: ConceptType
    summary: str = ""
    description: str = ""
    application: str = ""
    keywords: List[str] = Field(default_factory=list)
    embedding: List[float] = Field(default_factory=list)
    goal_examples: List[GoalExample] = Field(default_factory=list)


class LearnedConcept(BaseModel):
    """Per-user record of a completed concept and how it has been applied since."""

    concept_id: str
    completed_at: datetime
    last_reflection_at: datetime
    effectiveness_rating: int = Field(default=3, ge=1, le=5)
    application_count: int = Field(default=0, ge=0)


class LearningHistory(BaseModel):
    user_id: str
    learned_concepts: List[LearnedConcept] = Field(default_factory=list)
    current_roadmap_id: Optional[str] = None

    def learned_ids(self) -> List[str]:
        return [entry.concept_id for entry in self.learned_concepts]


class GoalInput(BaseModel):
    user_id: str
    goal_description: str
    timestamp: datetime = Field(default_factory=_utcnow)


class GoalContext(BaseModel):
    """Keyword classification of a goal used by scoring, curation and ordering."""

    is_behavioral: bool = False
    is_cognitive: bool = False
    is_emotional: bool = False
    is_skill_based: bool = False
    is_immediate: bool = False
    is_long_term: bool = False
    domain: GoalDomain = "personal"


class SearchHit(BaseModel):
    """A corpus concept returned by vector search, annotated with the caller's history."""

    concept: Concept
    similarity: float
    is_learned: bool = False
    learned_data: Optional[LearnedConcept] = None


class ScoredCandidate(BaseModel):
    """Request-scoped candidate carrying every sub-score from creation."""

    concept: Concept
    semantic_similarity: float
    category_alignment: float
    type_diversity_bonus: float
    goal_example_match: float
    novelty_score: float
    spaced_repetition_score: float
    final_score: float
    is_learned: bool = False
    days_since_last_use: Optional[int] = Field(default=None, ge=0)
    effectiveness_rating: Optional[int] = Field(default=None, ge=1, le=5)

    @property
    def id(self) -> str:
        return self.concept.id

    @property
    def title(self) -> str:
        return self.concept.title

    @property
    def category(self) -> str:
        return self.concept.category

    @property
    def type(self) -> ConceptType:
        return self.concept.type

    @model_validator(mode="after")
    def _learned_fields_consistent(self) -> "ScoredCandidate":
        if not self.is_learned and self.days_since_last_use is not None:
            raise ValueError("days_since_last_use is only tracked for learned concepts")
        return self


class ReinforcementContext(BaseModel):
    last_applied_days_ago: int = Field(ge=0)
    effectiveness_rating: int = Field(ge=1, le=5)
    spaced_interval: str


class RoadmapStep(BaseModel):
    """Single ordered step in a generated roadmap."""

    order: int = Field(ge=1)
    concept_id: str
    title: str
    type: ConceptType
    category: str
    relevance_score: float
    learning_status: LearningStatus = "new"
    reinforcement_context: Optional[ReinforcementContext] = None
    rationale: str = ""
    suggested_focus: str = ""


class LearningMixSummary(BaseModel):
    new_concepts: int = Field(default=0, ge=0)
    reinforcement_concepts: int = Field(default=0, ge=0)
    expansion_percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class GeneratedRoadmap(BaseModel):
    """Roadmap handed back to the calling service for persistence."""

    goal_description: str
    total_steps: int = Field(default=0, ge=0)
    estimated_duration: str
    learning_mix_summary: LearningMixSummary = Field(default_factory=LearningMixSummary)
    steps: List[RoadmapStep] = Field(default_factory=list)
    strategy: Literal["standard", "advanced-synthesis"] = "standard"
    generated_at: datetime = Field(default_factory=_utcnow)

    def ordered_concept_ids(self) -> List[str]:
        return [step.concept_id for step in sorted(self.steps, key=lambda step: step.order)]


__all__ = [
    "BIAS_TYPES",
    "Concept",
    "ConceptType",
    "GeneratedRoadmap",
    "GoalContext",
    "GoalDomain",
    "GoalExample",
    "GoalInput",
    "LearnedConcept",
    "LearningHistory",
    "LearningMixSummary",
    "LearningStatus",
    "MENTAL_MODEL",
    "ReinforcementContext",
    "RoadmapStep",
    "ScoredCandidate",
    "SearchHit",
]
