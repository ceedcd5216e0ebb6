"""Goal-text checks before generation and structural checks after it."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

from .models import BIAS_TYPES, MENTAL_MODEL, GeneratedRoadmap

MIN_GOAL_LENGTH = 10
MIN_STEPS = 5
MAX_STEPS = 7
MIN_MENTAL_MODELS = 2
ADVANCED_LEARNER_THRESHOLD = 80

_VAGUE_PATTERNS = [
    re.compile(r"^i want to be better$", re.IGNORECASE),
    re.compile(r"^be better$", re.IGNORECASE),
    re.compile(r"^improve$", re.IGNORECASE),
    re.compile(r"^get better$", re.IGNORECASE),
    re.compile(r"^be good$", re.IGNORECASE),
]

_NEGATIVE_REWRITES = [
    (re.compile(r"don'?t want to be (.*) anymore", re.IGNORECASE), r"want to overcome being \1"),
    (re.compile(r"stop being (.*)", re.IGNORECASE), r"become less \1 and more effective"),
    (re.compile(r"get rid of (.*)", re.IGNORECASE), r"overcome \1"),
    (re.compile(r"hate (.*)", re.IGNORECASE), r"want to improve my relationship with \1"),
]

_MULTIPLE_GOAL_PATTERNS = [
    re.compile(r" and also ", re.IGNORECASE),
    re.compile(r" plus ", re.IGNORECASE),
    re.compile(r" as well as ", re.IGNORECASE),
    re.compile(r"\d+\."),
    re.compile(r";"),
]

_UNREALISTIC_PATTERNS = [
    re.compile(r"perfect", re.IGNORECASE),
    re.compile(r"never make mistakes", re.IGNORECASE),
    re.compile(r"always be right", re.IGNORECASE),
    re.compile(r"best at everything", re.IGNORECASE),
]

TOO_SHORT_MESSAGE = "Goal description must be at least 10 characters long"
VAGUE_MESSAGE = "Please provide a more specific goal. What exactly do you want to improve?"
MULTIPLE_GOALS_MESSAGE = (
    "Please focus on one primary goal. You can create additional roadmaps for other goals later."
)
PERFECTIONISM_CAVEAT = " (focusing on continuous improvement rather than perfection)"


@dataclass(frozen=True)
class GoalValidationResult:
    is_valid: bool
    error: Optional[str] = None
    processed_goal: Optional[str] = None


@dataclass(frozen=True)
class RoadmapValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EdgeCaseDecision:
    should_proceed: bool
    message: Optional[str] = None
    fallback_strategy: Optional[str] = None


def validate_goal_description(goal: Optional[str]) -> GoalValidationResult:
    if not goal or len(goal.strip()) < MIN_GOAL_LENGTH:
        return GoalValidationResult(is_valid=False, error=TOO_SHORT_MESSAGE)

    stripped = goal.strip()
    if any(pattern.search(stripped) for pattern in _VAGUE_PATTERNS):
        return GoalValidationResult(is_valid=False, error=VAGUE_MESSAGE)

    processed = goal
    for pattern, replacement in _NEGATIVE_REWRITES:
        processed = pattern.sub(replacement, processed, count=1)

    if any(pattern.search(processed) for pattern in _MULTIPLE_GOAL_PATTERNS):
        return GoalValidationResult(is_valid=False, error=MULTIPLE_GOALS_MESSAGE)

    if any(pattern.search(processed) for pattern in _UNREALISTIC_PATTERNS):
        processed = f"{processed}{PERFECTIONISM_CAVEAT}"

    return GoalValidationResult(is_valid=True, processed_goal=processed.strip())


def validate_roadmap(roadmap: GeneratedRoadmap, *, require_type_balance: bool = True) -> RoadmapValidationResult:
    """Collect every structural defect rather than stopping at the first one."""
    errors: List[str] = []
    steps = roadmap.steps

    if len(steps) < MIN_STEPS or len(steps) > MAX_STEPS:
        errors.append(f"Roadmap should have 5-7 steps, but has {len(steps)}")

    seen = set()
    for step in steps:
        if step.concept_id in seen:
            errors.append(f"Duplicate concept found: {step.title}")
        seen.add(step.concept_id)

    if require_type_balance:
        type_counts = Counter(step.type for step in steps)
        if type_counts[MENTAL_MODEL] < MIN_MENTAL_MODELS:
            errors.append("Roadmap should include at least 2 mental models")
        if not any(type_counts[kind] for kind in BIAS_TYPES):
            errors.append("Roadmap should include at least 1 cognitive bias or logical fallacy")

    new_count = sum(1 for step in steps if step.learning_status == "new")
    reinforcement_count = len(steps) - new_count
    summary = roadmap.learning_mix_summary
    if new_count != summary.new_concepts or reinforcement_count != summary.reinforcement_concepts:
        errors.append("Learning mix summary doesn't match actual step counts")

    if roadmap.total_steps != len(steps):
        errors.append(f"Total steps is {roadmap.total_steps}, but roadmap has {len(steps)} steps")

    orders = sorted(step.order for step in steps)
    if orders != list(range(1, len(steps) + 1)):
        errors.append("Step order sequence is not continuous")

    return RoadmapValidationResult(is_valid=not errors, errors=errors)


def handle_edge_cases(goal: str, available_count: int, learned_count: int) -> EdgeCaseDecision:
    """Advise the calling service on goals that will not produce a normal roadmap."""
    if learned_count > ADVANCED_LEARNER_THRESHOLD and available_count < MIN_STEPS:
        return EdgeCaseDecision(
            should_proceed=False,
            message=(
                "You've mastered most of our mental models! Consider creating an 'advanced synthesis' "
                "goal that combines multiple concepts you've learned."
            ),
            fallback_strategy="advanced-synthesis",
        )

    if available_count < MIN_STEPS:
        return EdgeCaseDecision(
            should_proceed=False,
            message=(
                "Your goal might be too specific or technical. Try rephrasing it in more general terms "
                "or breaking it down into smaller goals."
            ),
            fallback_strategy="rephrase-goal",
        )

    if learned_count > 0:
        return EdgeCaseDecision(
            should_proceed=True,
            message="Welcome back! We'll include some familiar concepts to help you get back on track.",
            fallback_strategy="re-engagement",
        )

    return EdgeCaseDecision(should_proceed=True)


__all__ = [
    "EdgeCaseDecision",
    "GoalValidationResult",
    "RoadmapValidationResult",
    "handle_edge_cases",
    "validate_goal_description",
    "validate_roadmap",
]
