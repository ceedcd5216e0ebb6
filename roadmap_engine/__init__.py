"""Personalized learning-roadmap generation over a concept corpus."""

from .errors import (
    DatabaseSearchError,
    EmbeddingServiceError,
    InsufficientContentError,
    InvalidGoalError,
    RoadmapGenerationError,
    RoadmapValidationError,
    user_message,
)
from .generator import RoadmapGenerator
from .models import Concept, GeneratedRoadmap, GoalInput, LearnedConcept, LearningHistory

__all__ = [
    "Concept",
    "DatabaseSearchError",
    "EmbeddingServiceError",
    "GeneratedRoadmap",
    "GoalInput",
    "InsufficientContentError",
    "InvalidGoalError",
    "LearnedConcept",
    "LearningHistory",
    "RoadmapGenerationError",
    "RoadmapGenerator",
    "RoadmapValidationError",
    "user_message",
]
