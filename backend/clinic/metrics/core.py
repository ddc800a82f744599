"""Metrics façade for embedding, search and ingestion tracking."""

import logging

logger = logging.getLogger(__name__)


def record_embedding_call(
    model: str,
    latency_ms: int,
    ok: bool,
    retries: int,
    fallback: bool,
    error: str | None = None,
) -> None:
    """Record metrics for an embedding request.

    Logs the event; a Prometheus or OpenTelemetry exporter can hook the
    logger without changing call sites.

    Args:
        model: Embedding model name.
        latency_ms: Total latency across attempts in milliseconds.
        ok: Whether a vector was produced by the provider.
        retries: Number of retries performed.
        fallback: Whether a zero vector was returned instead.
        error: Last error message if the call failed.
    """
    logger.info(
        "embedding_call_metric",
        extra={
            "model": model,
            "latency_ms": latency_ms,
            "ok": ok,
            "retries": retries,
            "fallback": fallback,
            "error": error,
        },
    )


def record_search(
    latency_ms: int,
    top_k: int,
    results: int,
    candidates: int,
) -> None:
    """Record metrics for a similarity search.

    Args:
        latency_ms: End-to-end latency including the query embedding.
        top_k: Requested result count.
        results: Returned result count.
        candidates: Chunks scored.
    """
    logger.info(
        "search_metric",
        extra={
            "latency_ms": latency_ms,
            "top_k": top_k,
            "results": results,
            "candidates": candidates,
        },
    )


def record_ingestion(
    document_id: str,
    source: str,
    chunks: int,
    failed_embeddings: int,
    latency_ms: int,
) -> None:
    """Record metrics for a document added to the vector index."""
    logger.info(
        "ingestion_metric",
        extra={
            "document_id": document_id,
            "source": source,
            "chunks": chunks,
            "failed_embeddings": failed_embeddings,
            "latency_ms": latency_ms,
        },
    )
