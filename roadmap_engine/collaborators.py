"""Contracts for the services the engine consumes, plus reference implementations."""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from openai import OpenAI, OpenAIError

from .config import Settings, get_settings
from .errors import EmbeddingServiceError
from .models import Concept, LearningHistory, SearchHit

logger = logging.getLogger(__name__)


class EmbeddingService(Protocol):
    def generate_embedding(self, text: str) -> List[float]:
        ...


class ConceptSearchService(Protocol):
    def search_by_embedding(
        self,
        embedding: Sequence[float],
        threshold: float,
        count: int,
        learning_history: Optional[LearningHistory] = None,
    ) -> List[SearchHit]:
        ...


class ConceptCorpus(Protocol):
    def get_all_concepts(self) -> List[Concept]:
        ...


class RoadmapStore(Protocol):
    """Persists a finalized roadmap; implemented by the calling service."""

    def persist_roadmap(self, user_id: str, goal_description: str, ordered_concept_ids: Sequence[str]) -> str:
        ...


def prepare_text_for_embedding(concept: Concept) -> str:
    """Lay out a concept's text fields the way corpus embeddings are generated."""
    parts = [
        f"Title: {concept.title}" if concept.title else "",
        f"Category: {concept.category}" if concept.category else "",
        f"Type: {concept.type}" if concept.type else "",
        f"Summary: {concept.summary}" if concept.summary else "",
        f"Description: {concept.description}" if concept.description else "",
        f"Application: {concept.application}" if concept.application else "",
        f"Keywords: {', '.join(concept.keywords)}" if concept.keywords else "",
    ]
    for example in concept.goal_examples:
        if example.goal:
            parts.append(f"Goal Example: {example.goal}")
        if example.if_then_example:
            parts.append(f"If-Then: {example.if_then_example}")
    return "\n\n".join(part for part in parts if part)


def cosine_similarity(left: Sequence[float], right: Sequence[float]) -> float:
    if len(left) != len(right) or not left:
        return 0.0
    dot = sum(a * b for a, b in zip(left, right))
    norm_left = math.sqrt(sum(a * a for a in left))
    norm_right = math.sqrt(sum(b * b for b in right))
    if norm_left == 0 or norm_right == 0:
        return 0.0
    return dot / (norm_left * norm_right)


class OpenAIEmbeddingService:
    """Embedding collaborator backed by the OpenAI embeddings endpoint."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[object] = None) -> None:
        self._settings = settings or get_settings()
        if client is None:
            client = OpenAI(api_key=self._settings.openai_api_key)
        self._client = client

    @property
    def model(self) -> str:
        return self._settings.embedding_model

    def generate_embedding(self, text: str) -> List[float]:
        try:
            response = self._client.embeddings.create(model=self.model, input=text)  # type: ignore[attr-defined]
        except OpenAIError as exc:
            raise EmbeddingServiceError(
                "Embedding provider request failed",
                {"model": self.model, "error": str(exc)},
            ) from exc
        if not response.data:
            raise EmbeddingServiceError("Embedding provider returned no vectors", {"model": self.model})
        return list(response.data[0].embedding)

    def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        """Batch variant used when (re)indexing the corpus."""
        if not texts:
            return []
        try:
            response = self._client.embeddings.create(model=self.model, input=list(texts))  # type: ignore[attr-defined]
        except OpenAIError as exc:
            raise EmbeddingServiceError(
                "Embedding provider batch request failed",
                {"model": self.model, "batch_size": len(texts), "error": str(exc)},
            ) from exc
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]


class InMemoryConceptStore:
    """Concept corpus held in process memory with brute-force cosine search."""

    def __init__(self, concepts: Iterable[Concept] = ()) -> None:
        self._concepts: Dict[str, Concept] = {}
        for concept in concepts:
            self.add(concept)

    def add(self, concept: Concept) -> None:
        if concept.id in self._concepts:
            logger.warning("Replacing concept %s in in-memory corpus", concept.id)
        self._concepts[concept.id] = concept

    def __len__(self) -> int:
        return len(self._concepts)

    def get_all_concepts(self) -> List[Concept]:
        return list(self._concepts.values())

    def get_concepts(self, ids: Sequence[str]) -> List[Concept]:
        return [self._concepts[concept_id] for concept_id in ids if concept_id in self._concepts]

    def search_by_embedding(
        self,
        embedding: Sequence[float],
        threshold: float,
        count: int,
        learning_history: Optional[LearningHistory] = None,
    ) -> List[SearchHit]:
        learned = {entry.concept_id: entry for entry in (learning_history.learned_concepts if learning_history else [])}
        hits: List[SearchHit] = []
        for concept in self._concepts.values():
            similarity = cosine_similarity(embedding, concept.embedding)
            if similarity < threshold:
                continue
            learned_data = learned.get(concept.id)
            hits.append(
                SearchHit(
                    concept=concept,
                    similarity=similarity,
                    is_learned=learned_data is not None,
                    learned_data=learned_data,
                )
            )
        hits.sort(key=lambda hit: hit.similarity, reverse=True)
        return hits[: max(count, 0)]


__all__ = [
    "ConceptCorpus",
    "ConceptSearchService",
    "EmbeddingService",
    "InMemoryConceptStore",
    "OpenAIEmbeddingService",
    "RoadmapStore",
    "cosine_similarity",
    "prepare_text_for_embedding",
]
