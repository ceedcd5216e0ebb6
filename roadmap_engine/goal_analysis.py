"""Keyword classification of free-text goals."""

from __future__ import annotations

import re
from typing import List, Tuple

from .models import GoalContext, GoalDomain

_BEHAVIORAL = re.compile(r"habit|stop|start|change|improve|overcome|reduce")
_COGNITIVE = re.compile(r"think|understand|learn|decide|analyze|solve")
_EMOTIONAL = re.compile(r"feel|emotion|stress|anxiety|confidence|happy")
_SKILL_BASED = re.compile(r"skill|ability|better at|master|develop")
_IMMEDIATE = re.compile(r"now|urgent|quickly|asap|immediately")
_LONG_TERM = re.compile(r"future|long.?term|years?|months?")

# First match wins.
_DOMAIN_PATTERNS: List[Tuple[GoalDomain, re.Pattern[str]]] = [
    ("professional", re.compile(r"work|job|career|professional|business")),
    ("relational", re.compile(r"relationship|family|friend|social|people")),
    ("health", re.compile(r"health|fitness|exercise|diet|sleep")),
    ("financial", re.compile(r"money|finance|invest|save|budget")),
]


def identify_domain(goal: str) -> GoalDomain:
    lowered = goal.lower()
    for domain, pattern in _DOMAIN_PATTERNS:
        if pattern.search(lowered):
            return domain
    return "personal"


def analyze_goal_context(goal_description: str) -> GoalContext:
    lowered = goal_description.lower()
    return GoalContext(
        is_behavioral=bool(_BEHAVIORAL.search(lowered)),
        is_cognitive=bool(_COGNITIVE.search(lowered)),
        is_emotional=bool(_EMOTIONAL.search(lowered)),
        is_skill_based=bool(_SKILL_BASED.search(lowered)),
        is_immediate=bool(_IMMEDIATE.search(lowered)),
        is_long_term=bool(_LONG_TERM.search(lowered)),
        domain=identify_domain(lowered),
    )


def active_classifications(context: GoalContext) -> List[str]:
    """Names of the boolean axes set on ``context``, in a fixed order."""
    flags = [
        ("behavioral", context.is_behavioral),
        ("cognitive", context.is_cognitive),
        ("emotional", context.is_emotional),
        ("skill_based", context.is_skill_based),
    ]
    return [name for name, enabled in flags if enabled]


__all__ = ["active_classifications", "analyze_goal_context", "identify_domain"]
