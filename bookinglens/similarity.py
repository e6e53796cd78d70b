"""Cosine-similarity retrieval over in-memory document vectors."""

from collections.abc import Sequence

import numpy as np


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors.

    Returns:
        dot(a, b) / (|a| * |b|), or NaN when either vector is all zeros.

    Raises:
        ValueError: If the vectors differ in length.
    """
    a = np.asarray(a, dtype=np.float64).reshape(-1)
    b = np.asarray(b, dtype=np.float64).reshape(-1)
    if a.shape != b.shape:
        msg = f"Vector dimensions differ: {a.shape[0]} != {b.shape[0]}"
        raise ValueError(msg)
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return float("nan")
    return float(np.dot(a, b) / denominator)


def cosine_similarities(
    query: np.ndarray, vectors: Sequence[np.ndarray] | np.ndarray
) -> np.ndarray:
    """Cosine similarity of the query against every row of ``vectors``.

    Returns:
        np.ndarray: One score per vector; NaN where a norm is zero.
    """
    if len(vectors) == 0:
        return np.empty(0, dtype=np.float64)
    matrix = np.asarray(vectors, dtype=np.float64)
    query = np.asarray(query, dtype=np.float64).reshape(-1)
    if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:  # noqa: PLR2004
        msg = (
            f"Query dimension {query.shape[0]} does not match document vectors "
            f"of shape {matrix.shape}"
        )
        raise ValueError(msg)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = matrix @ query / norms
    scores[norms == 0] = np.nan
    return scores


def get_top_k_indices(scores: Sequence[float] | np.ndarray, k: int) -> list[int]:
    """Indices of the k highest scores; ties keep index order, NaN ranks last.

    Returns:
        list[int]: At most k indices, best first.
    """
    if k <= 0:
        return []
    values = np.asarray(scores, dtype=np.float64)
    ranked = np.where(np.isnan(values), -np.inf, values)
    order = np.argsort(-ranked, kind="stable")
    return [int(index) for index in order[:k]]


def search_documents(
    query_embedding: np.ndarray,
    document_embeddings: Sequence[np.ndarray],
    documents: Sequence[str],
    top_k: int = 5,
) -> list[tuple[str, float]]:
    """Rank documents by similarity to the query embedding.

    Returns:
        list[tuple[str, float]]: (document, score) pairs, best first.
    """
    scores = cosine_similarities(query_embedding, document_embeddings)
    return [
        (documents[index], float(scores[index]))
        for index in get_top_k_indices(scores, top_k)
    ]


def find_similar_documents(
    query_embedding: np.ndarray,
    document_embeddings: Sequence[np.ndarray],
    documents: Sequence[str],
    top_k: int = 5,
) -> list[str]:
    """Return the text of the top_k documents most similar to the query."""  # noqa: DOC201
    return [
        document
        for document, _ in search_documents(
            query_embedding, document_embeddings, documents, top_k
        )
    ]
