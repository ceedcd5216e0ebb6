"""Synthesis roadmaps for learners who have worked through most of the corpus.

Instead of drawing fresh concepts from vector search, this strategy combines
the learner's most effective mental models with the biases they have learned
to spot, and adds two fixed meta-learning concepts.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .assembly import summarize_mix
from .collaborators import ConceptCorpus
from .errors import DatabaseSearchError, InsufficientContentError
from .models import (
    BIAS_TYPES,
    MENTAL_MODEL,
    Concept,
    GeneratedRoadmap,
    GoalInput,
    LearnedConcept,
    LearningHistory,
    RoadmapStep,
    ScoredCandidate,
)
from .retrieval import days_between
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

TOP_CONCEPT_LIMIT = 20
MIN_SYNTHESIS_RATING = 4
MAX_SYNTHESIS_MODELS = 3
MAX_SYNTHESIS_BIASES = 2
MAX_SYNTHESIS_STEPS = 7
MIN_SYNTHESIS_STEPS = 5
SYNTHESIS_CATEGORY = "Advanced Synthesis"
META_CATEGORY = "Meta-Learning"
GOAL_PREFIX = "Advanced Synthesis: "

_META_CONCEPTS = (
    Concept(
        id="meta-pattern-recognition",
        title="Cross-Domain Pattern Recognition",
        category=META_CATEGORY,
        type=MENTAL_MODEL,
        summary="Identifying how mental models from one domain apply to another",
        description=(
            "You've learned many mental models. This meta-skill helps you recognize when a model from "
            "one area (like physics) can solve problems in another (like business)."
        ),
        application=(
            "When facing a new problem, scan your mental model library and ask: "
            "'What does this remind me of from a completely different field?'"
        ),
        keywords=["meta-learning", "transfer", "patterns"],
    ),
    Concept(
        id="meta-model-stacking",
        title="Mental Model Stacking",
        category=META_CATEGORY,
        type=MENTAL_MODEL,
        summary="Using multiple mental models simultaneously for deeper insights",
        description=(
            "Advanced practitioners don't just use one mental model at a time. Learn to layer multiple "
            "models to get multi-dimensional perspectives on problems."
        ),
        application=(
            "Take any decision and run it through 3-5 different mental models. Look for where they agree, "
            "disagree, and what unique insights each provides."
        ),
        keywords=["meta-learning", "synthesis", "multi-model"],
    ),
)


def rank_top_concepts(history: LearningHistory, now: datetime) -> List[LearnedConcept]:
    """Most effective learned concepts first, recency breaking ties between equal ratings."""
    eligible = [entry for entry in history.learned_concepts if entry.effectiveness_rating >= MIN_SYNTHESIS_RATING]

    def _rank(entry: LearnedConcept) -> float:
        return entry.effectiveness_rating * 10 + 1 / (1 + days_between(entry.last_reflection_at, now))

    return sorted(eligible, key=_rank, reverse=True)[:TOP_CONCEPT_LIMIT]


def _synthesis_candidate(model: Concept, bias: Concept) -> ScoredCandidate:
    concept = Concept(
        id=f"synthesis-{model.id}-{bias.id}",
        title=f"{model.title} + {bias.title} Synthesis",
        category=SYNTHESIS_CATEGORY,
        type=MENTAL_MODEL,
        summary=f"Advanced application combining {model.title} with awareness of {bias.title}",
        description=(
            f"This synthesis challenges you to apply {model.title} while actively countering {bias.title}. "
            "This creates a more robust thinking framework."
        ),
        application=(
            f"Use {model.title} as your primary framework, but at each decision point, "
            f"check for {bias.title} influence."
        ),
        keywords=[*model.keywords, *bias.keywords, "synthesis", "advanced"],
        embedding=list(model.embedding),
    )
    return ScoredCandidate(
        concept=concept,
        semantic_similarity=0.8,
        category_alignment=0.8,
        type_diversity_bonus=0.8,
        goal_example_match=0.7,
        novelty_score=0.15,
        spaced_repetition_score=0.0,
        final_score=0.9,
    )


def _meta_candidate(concept: Concept) -> ScoredCandidate:
    return ScoredCandidate(
        concept=concept,
        semantic_similarity=0.7,
        category_alignment=0.7,
        type_diversity_bonus=0.7,
        goal_example_match=0.6,
        novelty_score=0.15,
        spaced_repetition_score=0.0,
        final_score=0.85,
    )


class AdvancedSynthesisStrategy:
    name = "advanced-synthesis"

    def __init__(self, corpus: ConceptCorpus, *, retry_policy: RetryPolicy) -> None:
        self._corpus = corpus
        self._retry = retry_policy

    def _load_corpus(self) -> List[Concept]:
        try:
            return self._retry.run(self._corpus.get_all_concepts, "corpus load")
        except DatabaseSearchError:
            raise
        except Exception as exc:
            raise DatabaseSearchError("Failed to load knowledge content", {"error": str(exc)}) from exc

    def build_candidates(self, history: LearningHistory, now: datetime) -> List[ScoredCandidate]:
        top = rank_top_concepts(history, now)
        corpus: Dict[str, Concept] = {concept.id: concept for concept in self._load_corpus()}
        ranked_concepts = [corpus[entry.concept_id] for entry in top if entry.concept_id in corpus]

        models = [concept for concept in ranked_concepts if concept.type == MENTAL_MODEL][:MAX_SYNTHESIS_MODELS]
        biases = [concept for concept in ranked_concepts if concept.type in BIAS_TYPES][:MAX_SYNTHESIS_BIASES]

        candidates = [_synthesis_candidate(model, bias) for model in models for bias in biases]
        candidates.extend(_meta_candidate(concept) for concept in _META_CONCEPTS)
        ranked = sorted(candidates, key=lambda candidate: candidate.final_score, reverse=True)
        return ranked[:MAX_SYNTHESIS_STEPS]

    def generate(
        self,
        goal_input: GoalInput,
        history: LearningHistory,
        *,
        now: Optional[datetime] = None,
    ) -> GeneratedRoadmap:
        current = now or datetime.now(timezone.utc)
        candidates = self.build_candidates(history, current)
        if len(candidates) < MIN_SYNTHESIS_STEPS:
            raise InsufficientContentError(
                "Not enough highly rated concepts to build a synthesis roadmap",
                {"candidate_count": len(candidates), "goal": goal_input.goal_description},
            )

        goal = goal_input.goal_description
        mastered = len(history.learned_concepts)
        steps = [
            RoadmapStep(
                order=position,
                concept_id=candidate.id,
                title=candidate.title,
                type=candidate.type,
                category=candidate.category,
                relevance_score=candidate.final_score,
                learning_status="new",
                rationale=(
                    f"As an advanced learner with {mastered} concepts mastered, this synthesis helps you "
                    f'combine and transcend individual models for "{goal}"'
                ),
                suggested_focus=(
                    f"Apply this advanced synthesis to {goal} by combining multiple perspectives "
                    "you've already mastered"
                ),
            )
            for position, candidate in enumerate(candidates, start=1)
        ]
        logger.info("Built synthesis roadmap with %s steps for %s mastered concepts", len(steps), mastered)
        return GeneratedRoadmap(
            goal_description=f"{GOAL_PREFIX}{goal}",
            total_steps=len(steps),
            estimated_duration=f"{len(steps) * 2} weeks",
            learning_mix_summary=summarize_mix(steps),
            steps=steps,
            strategy="advanced-synthesis",
            generated_at=current,
        )


__all__ = ["AdvancedSynthesisStrategy", "GOAL_PREFIX", "rank_top_concepts"]
