"""Property-based tests for chunking, similarity and search ranking."""

import asyncio

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from backend.clinic.models.documents import VectorSource
from backend.clinic.rag.chunker import chunk_text, normalize_whitespace, split_sentences
from backend.clinic.rag.embedder import Embedder
from backend.clinic.rag.retriever import Retriever
from backend.clinic.rag.similarity import cosine_similarity
from backend.clinic.rag.vector_index import VectorIndex
from tests.fakes import FakeEmbeddingProvider, FakeTokenCounter

texts = st.text(alphabet="abc .!?\n\t", max_size=300)
budgets = st.integers(min_value=1, max_value=20)
components = st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False)


@st.composite
def vector_pairs(draw):
    size = draw(st.integers(min_value=1, max_value=16))
    a = draw(st.lists(components, min_size=size, max_size=size))
    b = draw(st.lists(components, min_size=size, max_size=size))
    return a, b


def _squash(text: str) -> str:
    return "".join(text.split())


@given(text=texts, max_tokens=budgets)
def test_chunking_keeps_all_non_whitespace_content(text, max_tokens):
    """Joined chunks equal the input once whitespace is ignored."""
    chunks = chunk_text(text, max_tokens, FakeTokenCounter())

    assert _squash("".join(chunks)) == _squash(normalize_whitespace(text))


@given(text=texts, max_tokens=budgets)
def test_chunks_fit_budget_unless_single_sentence(text, max_tokens):
    counter = FakeTokenCounter()

    for chunk in chunk_text(text, max_tokens, counter):
        assert chunk
        assert counter.count(chunk) <= max_tokens or len(split_sentences(chunk)) == 1


@given(pair=vector_pairs())
def test_cosine_similarity_is_symmetric_and_bounded(pair):
    a, b = pair

    score = cosine_similarity(a, b)

    assert score == pytest.approx(cosine_similarity(b, a))
    assert -1.0 <= score <= 1.0


@given(pair=vector_pairs())
def test_cosine_self_similarity_is_one(pair):
    a, _ = pair
    assume(sum(x * x for x in a) > 1e-6)

    assert cosine_similarity(a, a) == pytest.approx(1.0)


@given(pair=vector_pairs())
def test_zero_vector_scores_zero(pair):
    _, b = pair

    assert cosine_similarity([0.0] * len(b), b) == 0.0
    assert cosine_similarity(b, [0.0] * len(b)) == 0.0


WORDS = ["laser", "peel", "filler", "scar", "acne", "botox", "downtime", "session"]


@settings(max_examples=30, deadline=None)
@given(
    documents=st.lists(
        st.lists(st.sampled_from(WORDS), min_size=1, max_size=12), min_size=1, max_size=4
    ),
    query=st.sampled_from(WORDS),
    top_k=st.integers(min_value=1, max_value=8),
)
def test_search_returns_at_most_k_hits_in_descending_order(documents, query, top_k):
    embedder = Embedder(
        FakeEmbeddingProvider(dimensions=64), timeout_s=1.0, max_retries=0, jitter_ms=(0, 0)
    )
    index = VectorIndex(embedder, FakeTokenCounter(), max_tokens=5)
    for i, words in enumerate(documents):
        text = ". ".join(words) + "."
        asyncio.run(index.add_document(f"doc-{i}", f"Doc {i}", text, VectorSource.manual))

    results = asyncio.run(Retriever(index, embedder).search(query, top_k))

    assert len(results) == min(top_k, len(index.snapshot().searchable))
    scores = [hit.score for hit in results]
    assert scores == sorted(scores, reverse=True)
