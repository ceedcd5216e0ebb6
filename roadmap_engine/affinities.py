"""Curated lookup tables driving scoring, synergy and ordering heuristics.

These tables match on concept titles and category labels. Titles are matched by
containment in either direction, so renaming a concept in the corpus silently
changes behaviour; bump ``AFFINITY_TABLE_VERSION`` whenever an entry changes.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

AFFINITY_TABLE_VERSION = "2024.1"

# ---------------------------------------------------------------------------
# Category alignment
# ---------------------------------------------------------------------------

DEFAULT_CATEGORY_SCORE = 0.3

CATEGORY_BASE_SCORES: Dict[str, float] = {
    "Decision Making": 0.5,
    "Psychology": 0.5,
    "Productivity": 0.5,
    "Philosophy": 0.4,
    "Systems Thinking": 0.5,
    "Problem Solving": 0.5,
    "Communication": 0.4,
    "Learning": 0.4,
}

CLASSIFICATION_BOOST = 0.2
CLASSIFICATION_CATEGORIES: Dict[str, FrozenSet[str]] = {
    "behavioral": frozenset({"Psychology", "Habits", "Productivity"}),
    "cognitive": frozenset({"Decision Making", "Problem Solving", "Systems Thinking", "Learning"}),
    "emotional": frozenset({"Psychology", "Philosophy", "Mindfulness"}),
    "skill_based": frozenset({"Learning", "Practice", "Problem Solving"}),
}

DOMAIN_CATEGORY_BOOSTS: Dict[str, Tuple[float, FrozenSet[str]]] = {
    "professional": (0.15, frozenset({"Productivity", "Communication", "Leadership"})),
    "relational": (0.15, frozenset({"Communication", "Psychology", "Empathy"})),
    "financial": (0.15, frozenset({"Economics", "Decision Making", "Risk Management"})),
    "personal": (0.1, frozenset({"Philosophy", "Psychology", "Self-Improvement"})),
}

URGENCY_BOOST = 0.1
URGENCY_CATEGORIES: FrozenSet[str] = frozenset({"Quick Wins", "Productivity", "Action"})

# ---------------------------------------------------------------------------
# Type diversity
# ---------------------------------------------------------------------------

DEFAULT_TYPE_SCORE = 0.5
TYPE_DIVERSITY_SCORES: Dict[str, float] = {
    "mental-model": 0.6,
    "cognitive-bias": 0.5,
    "fallacy": 0.4,
}

# ---------------------------------------------------------------------------
# Goal example matching
# ---------------------------------------------------------------------------

HIGH_VALUE_GOAL_KEYWORDS: Tuple[str, ...] = (
    "decision",
    "procrastin",
    "productiv",
    "relationship",
    "confidence",
    "habit",
    "career",
    "stress",
    "communication",
    "leadership",
    "creative",
    "focus",
    "motivation",
    "discipline",
)
KEYWORD_MATCH_BONUS = 0.02
SIMILAR_GOAL_THRESHOLD = 0.7
SIMILAR_GOAL_BONUS = 0.1
MAX_GOAL_EXAMPLE_BONUS = 0.15

# ---------------------------------------------------------------------------
# Synergy
# ---------------------------------------------------------------------------

SYNERGY_PAIRS: Dict[str, Tuple[str, ...]] = {
    "First Principles Thinking": ("Inversion", "Systems Thinking", "Root Cause Analysis"),
    "Confirmation Bias": ("Scientific Method", "Falsification", "Devil's Advocate"),
    "Systems Thinking": ("Feedback Loops", "Second-Order Thinking", "Emergence"),
    "Mental Models": ("First Principles", "Inversion", "Probabilistic Thinking"),
    "Present Bias": ("Long-term Thinking", "Delayed Gratification", "Future Self"),
    "Parkinson's Law": ("Time Boxing", "Pomodoro Technique", "Deadlines"),
    "Growth Mindset": ("Deliberate Practice", "Learning from Failure", "Feedback Loops"),
    "Stoicism": ("Negative Visualization", "Control Dichotomy", "Amor Fati"),
}

CATEGORY_SYNERGIES: Dict[str, FrozenSet[str]] = {
    "Psychology": frozenset({"Philosophy", "Neuroscience", "Behavioral Economics"}),
    "Decision Making": frozenset({"Psychology", "Logic", "Probability"}),
    "Productivity": frozenset({"Psychology", "Time Management", "Systems Thinking"}),
    "Philosophy": frozenset({"Psychology", "Ethics", "Logic"}),
}

RELATED_WORD_GROUPS: Tuple[Tuple[str, ...], ...] = (
    ("Bias", "Fallacy", "Error", "Mistake"),
    ("Thinking", "Mental", "Cognitive", "Mind"),
    ("Decision", "Choice", "Judge", "Evaluate"),
    ("System", "Process", "Method", "Framework"),
    ("Time", "Temporal", "Schedule", "Deadline"),
)

# ---------------------------------------------------------------------------
# Foundations, priorities and ordering
# ---------------------------------------------------------------------------

FOUNDATIONAL_TITLES: FrozenSet[str] = frozenset(
    {
        "First Principles",
        "Inversion",
        "Mental Models",
        "Systems Thinking",
        "Stoicism",
        "Growth Mindset",
        "Probabilistic Thinking",
    }
)

BASE_SEED_TITLES: Tuple[str, ...] = ("First Principles", "Mental Models")
CLASSIFICATION_SEED_TITLES: Dict[str, Tuple[str, ...]] = {
    "behavioral": ("Habit Formation", "Behavioral Change"),
    "cognitive": ("Systems Thinking", "Critical Thinking"),
    "emotional": ("Emotional Intelligence", "Mindfulness"),
}
DOMAIN_SEED_TITLES: Dict[str, Tuple[str, ...]] = {
    "professional": ("80/20 Principle", "Deep Work"),
}

CLASSIFICATION_PRIORITY_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "behavioral": ("Psychology", "Habits", "Behavioral Economics"),
    "cognitive": ("Decision Making", "Problem Solving", "Logic"),
    "emotional": ("Psychology", "Philosophy", "Emotional Intelligence"),
    "skill_based": ("Learning", "Practice", "Mastery"),
}
DOMAIN_PRIORITY_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "professional": ("Productivity", "Leadership", "Communication"),
    "relational": ("Communication", "Empathy", "Social Psychology"),
    "financial": ("Economics", "Decision Making", "Risk Management"),
}

QUICK_WIN_TITLES: FrozenSet[str] = frozenset({"Two-Minute Rule", "Parkinson's Law", "80/20 Principle"})

PREREQUISITES: Dict[str, Tuple[str, ...]] = {
    "First Principles": ("Second-Order Thinking", "Root Cause Analysis"),
    "Mental Models": ("Inversion", "Systems Thinking"),
    "Critical Thinking": ("Logical Fallacies", "Cognitive Biases"),
    "Systems Thinking": ("Feedback Loops", "Emergence"),
    "Scientific Method": ("Hypothesis Testing", "Falsification"),
}


def titles_overlap(title: str, reference: str) -> bool:
    return reference in title or title in reference


def is_foundational(title: str) -> bool:
    return title in FOUNDATIONAL_TITLES


def is_quick_win(title: str) -> bool:
    return title in QUICK_WIN_TITLES


def is_prerequisite(first: str, second: str) -> bool:
    """True when ``first`` should be taught before ``second``."""
    return any(dependent in second for dependent in PREREQUISITES.get(first, ()))


def are_titles_related(first: str, second: str) -> bool:
    for group in RELATED_WORD_GROUPS:
        if any(word in first for word in group) and any(word in second for word in group):
            return True
    return False


__all__ = [
    "AFFINITY_TABLE_VERSION",
    "BASE_SEED_TITLES",
    "CATEGORY_BASE_SCORES",
    "CATEGORY_SYNERGIES",
    "CLASSIFICATION_BOOST",
    "CLASSIFICATION_CATEGORIES",
    "CLASSIFICATION_PRIORITY_CATEGORIES",
    "CLASSIFICATION_SEED_TITLES",
    "DEFAULT_CATEGORY_SCORE",
    "DEFAULT_TYPE_SCORE",
    "DOMAIN_CATEGORY_BOOSTS",
    "DOMAIN_PRIORITY_CATEGORIES",
    "DOMAIN_SEED_TITLES",
    "FOUNDATIONAL_TITLES",
    "HIGH_VALUE_GOAL_KEYWORDS",
    "KEYWORD_MATCH_BONUS",
    "MAX_GOAL_EXAMPLE_BONUS",
    "PREREQUISITES",
    "QUICK_WIN_TITLES",
    "RELATED_WORD_GROUPS",
    "SIMILAR_GOAL_BONUS",
    "SIMILAR_GOAL_THRESHOLD",
    "SYNERGY_PAIRS",
    "TYPE_DIVERSITY_SCORES",
    "URGENCY_BOOST",
    "URGENCY_CATEGORIES",
    "are_titles_related",
    "is_foundational",
    "is_prerequisite",
    "is_quick_win",
    "titles_overlap",
]
