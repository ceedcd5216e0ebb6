from __future__ import annotations

import pytest

from roadmap_engine.models import GoalContext, SearchHit
from roadmap_engine.scoring import (
    NOVELTY_BONUS,
    category_alignment,
    goal_example_match,
    score_hit,
    spaced_repetition_score,
    type_diversity_bonus,
    word_overlap,
)

from conftest import learned, make_concept


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (7, 0.05 * 4 / 5),
        (8, 0.05 * 4 / 5),
        (6, 0.05 * 4 / 5),
        (10, 0.0),
        (30, 0.05 * 4 / 5),
        (50, 0.0),
        (1, 0.05 * 4 / 5),
    ],
)
def test_spaced_repetition_rewards_canonical_intervals(days: int, expected: float) -> None:
    assert spaced_repetition_score(days, 4) == pytest.approx(expected)


def test_category_alignment_base_and_default() -> None:
    neutral = GoalContext(domain="health")

    assert category_alignment("Decision Making", neutral) == pytest.approx(0.5)
    assert category_alignment("Philosophy", neutral) == pytest.approx(0.4)
    assert category_alignment("Astronomy", neutral) == pytest.approx(0.3)


def test_category_alignment_stacks_boosts_and_caps_at_one() -> None:
    context = GoalContext(is_behavioral=True, is_immediate=True, domain="professional")

    # 0.5 base + 0.2 behavioral + 0.15 professional + 0.1 urgency
    assert category_alignment("Productivity", context) == pytest.approx(0.95)

    context = GoalContext(is_behavioral=True, is_emotional=True, domain="relational")
    assert category_alignment("Psychology", context) == pytest.approx(1.0)


def test_financial_domain_boosts_economics() -> None:
    assert category_alignment("Economics", GoalContext(domain="financial")) == pytest.approx(0.45)


def test_type_diversity_constants() -> None:
    assert type_diversity_bonus("mental-model") == 0.6
    assert type_diversity_bonus("cognitive-bias") == 0.5
    assert type_diversity_bonus("fallacy") == 0.4
    assert type_diversity_bonus("unknown") == 0.5


def test_word_overlap_ignores_short_words() -> None:
    assert word_overlap("i am on it", "to be or not") == 0.0
    assert word_overlap("make better decisions", "make better decisions") == 1.0


def test_goal_example_match_counts_shared_keywords() -> None:
    concept = make_concept(
        "inversion",
        "Inversion",
        goal_examples=["Stop procrastination and build focus", "Unrelated example"],
    )

    bonus = goal_example_match(concept, "Beat procrastination to regain my focus at home")
    assert bonus == pytest.approx(0.04)


def test_goal_example_match_rewards_near_identical_phrases_and_caps() -> None:
    concept = make_concept("inversion", "Inversion", goal_examples=["make better career decisions"])

    assert goal_example_match(concept, "Make better career decisions") == pytest.approx(0.1)
    assert goal_example_match(make_concept("x", "X"), "anything") == 0.0


def test_score_hit_for_new_concept_adds_novelty() -> None:
    concept = make_concept("inversion", "Inversion", category="Problem Solving")
    hit = SearchHit(concept=concept, similarity=0.8)

    candidate = score_hit(hit, GoalContext(domain="health"), "run faster")

    expected = 0.8 * 0.35 + 0.5 * 0.15 + 0.6 * 0.15 + NOVELTY_BONUS
    assert candidate.final_score == pytest.approx(expected)
    assert candidate.novelty_score == NOVELTY_BONUS
    assert candidate.days_since_last_use is None
    assert candidate.effectiveness_rating is None


def test_score_hit_for_learned_concept_uses_spacing_and_rating() -> None:
    concept = make_concept("anchoring", "Anchoring", category="Psychology", type="cognitive-bias")
    record = learned("anchoring", days_ago=7, rating=5)
    hit = SearchHit(concept=concept, similarity=0.6, is_learned=True, learned_data=record)

    candidate = score_hit(hit, GoalContext(domain="health"), "run faster", days_since_last_use=7)

    assert candidate.novelty_score == 0.0
    assert candidate.spaced_repetition_score == pytest.approx(0.05)
    assert candidate.is_learned
    assert candidate.days_since_last_use == 7
    assert candidate.effectiveness_rating == 5
