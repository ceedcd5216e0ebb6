from __future__ import annotations

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from roadmap_engine.collaborators import (
    InMemoryConceptStore,
    OpenAIEmbeddingService,
    cosine_similarity,
    prepare_text_for_embedding,
)
from roadmap_engine.errors import EmbeddingServiceError
from roadmap_engine.models import Concept, GoalExample

from conftest import GOAL_VECTOR, history, learned, make_concept, make_settings


class FakeEmbeddingsEndpoint:
    def __init__(self, vectors=None, error=None) -> None:
        self.vectors = vectors or [[0.1, 0.2]]
        self.error = error
        self.requests = []

    def create(self, *, model, input):
        self.requests.append({"model": model, "input": input})
        if self.error is not None:
            raise self.error
        data = [SimpleNamespace(index=index, embedding=vector) for index, vector in enumerate(self.vectors)]
        return SimpleNamespace(data=list(reversed(data)))


def _client(endpoint: FakeEmbeddingsEndpoint) -> SimpleNamespace:
    return SimpleNamespace(embeddings=endpoint)


def test_prepare_text_lays_out_every_populated_field() -> None:
    concept = Concept(
        id="inversion",
        title="Inversion",
        category="Problem Solving",
        type="mental-model",
        summary="Think backwards.",
        keywords=["invert", "avoid"],
        goal_examples=[GoalExample(goal="Stop procrastinating", if_then_example="If I delay, then I list failure modes")],
    )

    text = prepare_text_for_embedding(concept)

    assert text.split("\n\n") == [
        "Title: Inversion",
        "Category: Problem Solving",
        "Type: mental-model",
        "Summary: Think backwards.",
        "Keywords: invert, avoid",
        "Goal Example: Stop procrastinating",
        "If-Then: If I delay, then I list failure modes",
    ]


def test_cosine_similarity_handles_degenerate_vectors() -> None:
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0
    assert cosine_similarity([1.0], [1.0, 0.0]) == 0.0


def test_in_memory_search_honours_threshold_count_and_history() -> None:
    store = InMemoryConceptStore(
        [
            make_concept("a", "A", similarity=0.9),
            make_concept("b", "B", similarity=0.5),
            make_concept("c", "C", similarity=0.7),
            make_concept("d", "D", similarity=0.2),
        ]
    )

    hits = store.search_by_embedding(GOAL_VECTOR, 0.3, 2, history([learned("c", days_ago=1)]))

    assert [hit.concept.id for hit in hits] == ["a", "c"]
    assert hits[1].is_learned
    assert hits[1].learned_data.concept_id == "c"
    assert not hits[0].is_learned


def test_in_memory_store_lookup_helpers() -> None:
    store = InMemoryConceptStore([make_concept("a", "A"), make_concept("b", "B")])

    assert len(store) == 2
    assert [concept.id for concept in store.get_all_concepts()] == ["a", "b"]
    assert [concept.id for concept in store.get_concepts(["b", "missing"])] == ["b"]


def test_openai_service_requests_configured_model() -> None:
    endpoint = FakeEmbeddingsEndpoint(vectors=[[0.3, 0.4]])
    service = OpenAIEmbeddingService(make_settings(embedding_model="text-embedding-3-large"), client=_client(endpoint))

    assert service.generate_embedding("focus better") == [0.3, 0.4]
    assert endpoint.requests == [{"model": "text-embedding-3-large", "input": "focus better"}]


def test_openai_batch_preserves_input_order() -> None:
    endpoint = FakeEmbeddingsEndpoint(vectors=[[1.0], [2.0], [3.0]])
    service = OpenAIEmbeddingService(make_settings(), client=_client(endpoint))

    assert service.generate_embeddings(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]
    assert service.generate_embeddings([]) == []


def test_openai_failures_become_embedding_service_errors() -> None:
    endpoint = FakeEmbeddingsEndpoint(error=OpenAIError("connection reset"))
    service = OpenAIEmbeddingService(make_settings(), client=_client(endpoint))

    with pytest.raises(EmbeddingServiceError) as excinfo:
        service.generate_embedding("focus better")

    assert excinfo.value.is_retryable
    assert excinfo.value.details["model"] == "text-embedding-3-small"


def test_empty_provider_response_is_an_error() -> None:
    endpoint = FakeEmbeddingsEndpoint()
    endpoint.vectors = []
    service = OpenAIEmbeddingService(make_settings(), client=_client(endpoint))

    with pytest.raises(EmbeddingServiceError):
        service.generate_embedding("focus better")
