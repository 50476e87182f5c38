from __future__ import annotations
from typing import Sequence, Tuple

import numpy as np


def exact_neighbors(base: np.ndarray, queries: np.ndarray, k: int, metric: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Brute-force ground truth. Returns (row indices, distances), each of shape
    (len(queries), min(k, len(base))), nearest first.
    Distances match the engines: 1 - dot for "dot_product", 1 - cos for "cosine".
    """
    base = np.asarray(base, dtype=np.float32)
    queries = np.asarray(queries, dtype=np.float32)
    if base.shape[0] == 0 or k <= 0:
        empty = np.zeros((queries.shape[0], 0))
        return empty.astype(np.int64), empty.astype(np.float32)

    sims = queries @ base.T
    if metric == "cosine":
        sims = sims / np.outer(np.linalg.norm(queries, axis=1), np.linalg.norm(base, axis=1))
    elif metric != "dot_product":
        raise ValueError(f"Unsupported metric: {metric}")

    dists = 1.0 - sims
    k = min(k, base.shape[0])
    order = np.argsort(dists, axis=1, kind="stable")[:, :k]
    return order, np.take_along_axis(dists, order, axis=1).astype(np.float32)


def recall_at_k(retrieved_ids: Sequence, relevant_ids: Sequence, k: int = 10) -> float:
    """Share of the top-k true neighbors found among the top-k retrieved."""
    rel = set(list(relevant_ids)[:k])
    if not rel:
        return 0.0
    found = rel.intersection(list(retrieved_ids)[:k])
    return len(found) / float(len(rel))


def hit_at_k_binary(retrieved_ids: Sequence, relevant_ids: Sequence, k: int = 10) -> float:
    rel = set(relevant_ids)
    return 1.0 if any(rid in rel for rid in list(retrieved_ids)[:k]) else 0.0
