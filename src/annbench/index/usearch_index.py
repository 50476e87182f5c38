# src/annbench/index/usearch_index.py
from typing import List, Optional, Tuple
import numpy as np

from .base import Index, KeyMapper
from .options import IndexOptions, InsertMethod, RemoveMethod


class USearchIndex(Index):
    """
    In-process HNSW index backed by USearch.
    The engine is created on the first insert, which fixes the dimensionality.
    """
    metric: str = "cos"

    def __init__(self, options: Optional[IndexOptions] = None):
        super().__init__(options)
        self.keys = KeyMapper()
        self.index = None
        if self.options.insert_method == InsertMethod.LINK_NEAREST:
            # USearch always selects neighbors with its diversity heuristic
            print("[Warn] usearch has no link_nearest insert method; using its native linking")

    def _engine_kwargs(self) -> dict:
        # only forward what was set, so USearch keeps its defaults for the rest
        kw = {}
        if self.options.max_links is not None:
            kw["connectivity"] = self.options.max_links
        if self.options.ef_construction is not None:
            kw["expansion_add"] = self.options.ef_construction
        return kw

    def _build(self, ndim: int):
        from usearch.index import Index as EngineIndex
        self.index = EngineIndex(ndim=ndim, metric=self.metric, dtype="f32", **self._engine_kwargs())

    def insert(self, key: str, target: np.ndarray):
        # USearch expects float32 & contiguous
        vec = np.ascontiguousarray(target, dtype=np.float32)
        if self.index is None:
            self._build(vec.shape[-1])
        # the previous vector of `key` is dropped only once the new one is in
        label = self.keys.reserve()
        self.index.add(label, vec)
        old = self.keys.bind(key, label)
        if old is not None:
            self._remove_label(old)

    def _remove_label(self, label: int):
        # compact=True makes USearch relink the neighbors of the removed node
        compact = self.options.remove_method == RemoveMethod.COMPENSATE_INCOMING_LINKS
        self.index.remove(label, compact=compact)

    def remove(self, key: str):
        label = self.keys.release(key)
        if label is None or self.index is None:
            return
        self._remove_label(label)

    def search(self, target: np.ndarray, neighbors: int) -> List[Tuple[str, float]]:
        if self.index is None or len(self.index) == 0 or neighbors <= 0:
            return []
        q = np.ascontiguousarray(target, dtype=np.float32)
        res = self.index.search(q, neighbors, exact=False)
        # Some versions return a tuple (keys, distances),
        # others an object with .keys / .distances
        if isinstance(res, tuple) and len(res) == 2:
            labels, dists = res
        else:
            labels, dists = res.keys, res.distances
        return [(self.keys.key(label), float(d)) for label, d in zip(labels, dists)]

    def check(self) -> bool:
        if not self.keys.consistent():
            return False
        if self.index is None:
            return len(self.keys) == 0
        if len(self.index) < len(self.keys):
            return False
        return all(label in self.index for label in self.keys.labels())

    def size(self) -> int:
        # raw engine node count, not len(self.keys)
        return len(self.index) if self.index is not None else 0


class DotProductUSearchIndex(USearchIndex):
    # inner product on unit vectors, so inputs are normalized up front
    metric = "ip"
    normalize_dataset = True


class CosineUSearchIndex(USearchIndex):
    metric = "cos"
    normalize_dataset = False
