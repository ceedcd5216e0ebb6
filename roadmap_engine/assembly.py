"""Turning an ordered selection into a roadmap with human-readable guidance."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from .curation import CuratedConcept
from .models import (
    GeneratedRoadmap,
    LearningMixSummary,
    ReinforcementContext,
    RoadmapStep,
    ScoredCandidate,
)

# Checked in order; the first phrase found in the goal decides the context.
ACTION_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("procrastination", "when you feel the urge to delay"),
    ("decision", "before making choices"),
    ("productivity", "during work sessions"),
    ("relationship", "in conversations"),
    ("learning", "when studying"),
    ("confidence", "in challenging situations"),
)

DEFAULT_REINFORCEMENT_RATING = 3


def spaced_interval_name(days: int) -> str:
    if days <= 1:
        return "1-day review"
    if days <= 3:
        return "3-day review"
    if days <= 7:
        return "7-day review"
    if days <= 30:
        return "30-day review"
    return "90-day review"


def _summary_clause(candidate: ScoredCandidate) -> str:
    return candidate.concept.summary.lower()


def build_rationale(candidate: ScoredCandidate, goal: str) -> str:
    title = candidate.title
    if candidate.is_learned:
        interval = spaced_interval_name(candidate.days_since_last_use or 0)
        return (
            f"Reinforcing your understanding of {title} at the optimal {interval} interval. "
            f'This concept directly applies to "{goal}" and building on your previous experience '
            "will accelerate your progress."
        )
    if candidate.type == "cognitive-bias":
        return (
            f"Understanding {title} helps you recognize when {_summary_clause(candidate)} "
            f"This awareness is crucial for {goal} because it prevents self-sabotage and improves decision quality."
        )
    if candidate.type == "mental-model":
        return (
            f"{title} provides a framework for {_summary_clause(candidate)} "
            f"This mental model directly supports {goal} by giving you a systematic approach to tackle challenges."
        )
    return (
        f"Learning {title} equips you with {_summary_clause(candidate)} "
        f"This is essential for {goal} as it addresses the root causes of your challenge."
    )


def _action_context(goal: str) -> Optional[str]:
    goal_lower = goal.lower()
    for keyword, phrase in ACTION_PATTERNS:
        if keyword in goal_lower:
            return phrase
    return None


def build_suggested_focus(candidate: ScoredCandidate, goal: str) -> str:
    context = _action_context(goal)
    title = candidate.title
    if candidate.is_learned:
        return (
            f"Notice how {title} manifests {context or 'in your daily life'} "
            f"and document one new insight about its application to {goal}."
        )
    if candidate.type == "cognitive-bias":
        return (
            f"Spot instances of {title} {context or 'throughout your day'} "
            f"and practice the countermeasures in your specific context of {goal}."
        )
    return f"Create a specific if-then plan using {title} {context or 'in relevant situations'} to directly address {goal}."


def _reinforcement_context(candidate: ScoredCandidate) -> Optional[ReinforcementContext]:
    if not candidate.is_learned or candidate.days_since_last_use is None:
        return None
    return ReinforcementContext(
        last_applied_days_ago=candidate.days_since_last_use,
        effectiveness_rating=candidate.effectiveness_rating or DEFAULT_REINFORCEMENT_RATING,
        spaced_interval=spaced_interval_name(candidate.days_since_last_use),
    )


def summarize_mix(steps: Sequence[RoadmapStep]) -> LearningMixSummary:
    new_concepts = sum(1 for step in steps if step.learning_status == "new")
    reinforcement = len(steps) - new_concepts
    percentage = (new_concepts / len(steps)) * 100 if steps else 0.0
    return LearningMixSummary(
        new_concepts=new_concepts,
        reinforcement_concepts=reinforcement,
        expansion_percentage=percentage,
    )


def assemble_roadmap(
    goal_description: str,
    ordered: Sequence[CuratedConcept],
    *,
    generated_at: Optional[datetime] = None,
) -> GeneratedRoadmap:
    steps: List[RoadmapStep] = []
    for position, item in enumerate(ordered, start=1):
        candidate = item.candidate
        steps.append(
            RoadmapStep(
                order=position,
                concept_id=candidate.id,
                title=candidate.title,
                type=candidate.type,
                category=candidate.category,
                relevance_score=candidate.final_score,
                learning_status="reinforcement" if candidate.is_learned else "new",
                reinforcement_context=_reinforcement_context(candidate),
                rationale=build_rationale(candidate, goal_description),
                suggested_focus=build_suggested_focus(candidate, goal_description),
            )
        )

    return GeneratedRoadmap(
        goal_description=goal_description,
        total_steps=len(steps),
        estimated_duration=f"{len(steps)} weeks",
        learning_mix_summary=summarize_mix(steps),
        steps=steps,
        strategy="standard",
        generated_at=generated_at or datetime.now(timezone.utc),
    )


__all__ = [
    "ACTION_PATTERNS",
    "assemble_roadmap",
    "build_rationale",
    "build_suggested_focus",
    "spaced_interval_name",
    "summarize_mix",
]
