from typing import List, Optional, Tuple
import numpy as np

from .base import Index, KeyMapper
from .options import IndexOptions

# Qdrant
from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    HnswConfigDiff,
    PointIdsList,
    PointStruct,
    VectorParams,
)


class QdrantIndex(Index):
    """
    Qdrant adapter running in local in-memory mode (no server).
    One collection per index, created on the first insert.
    Qdrant `score` is similarity (higher is better); distances are reported as 1 - score.
    """
    distance: Distance = Distance.COSINE

    def __init__(
        self,
        options: Optional[IndexOptions] = None,
        location: str = ":memory:",
        collection: str = "annbench",
    ):
        super().__init__(options)
        self.collection = collection
        self.client = QdrantClient(location=location)
        self.keys = KeyMapper()
        self.created = False

        if self.options.insert_method is not None or self.options.remove_method is not None:
            print("[Warn] qdrant has no configurable insert/remove linking; insert_method/remove_method are ignored")

    def _hnsw_config(self) -> Optional[HnswConfigDiff]:
        kw = {}
        if self.options.max_links is not None:
            kw["m"] = self.options.max_links
        if self.options.ef_construction is not None:
            kw["ef_construct"] = self.options.ef_construction
        return HnswConfigDiff(**kw) if kw else None

    def _create(self, dim: int):
        self.client.create_collection(
            collection_name=self.collection,
            vectors_config=VectorParams(size=dim, distance=self.distance),
            hnsw_config=self._hnsw_config(),
        )
        self.created = True

    # --- Index API -----------------------------------------------------------

    def insert(self, key: str, target: np.ndarray):
        vec = np.asarray(target, dtype=np.float32)
        if not self.created:
            self._create(vec.shape[-1])
        # the previous point of `key` is deleted only once the new one is stored
        label = self.keys.reserve()
        self.client.upsert(
            collection_name=self.collection,
            points=[PointStruct(id=label, vector=vec.tolist(), payload={"key": key})],
        )
        old = self.keys.bind(key, label)
        if old is not None:
            self._delete_label(old)

    def _delete_label(self, label: int):
        self.client.delete(
            collection_name=self.collection,
            points_selector=PointIdsList(points=[label]),
        )

    def remove(self, key: str):
        label = self.keys.release(key)
        if label is None or not self.created:
            return
        self._delete_label(label)

    def search(self, target: np.ndarray, neighbors: int) -> List[Tuple[str, float]]:
        if not self.created or neighbors <= 0:
            return []
        res = self.client.query_points(
            collection_name=self.collection,
            query=np.asarray(target, dtype=np.float32).tolist(),
            limit=neighbors,
            with_payload=False,
        )
        return [(self.keys.key(p.id), 1.0 - float(p.score)) for p in res.points]

    def check(self) -> bool:
        if not self.keys.consistent():
            return False
        return self.size() == len(self.keys)

    def size(self) -> int:
        if not self.created:
            return 0
        return self.client.count(collection_name=self.collection, exact=True).count


class DotProductQdrantIndex(QdrantIndex):
    distance = Distance.DOT
    normalize_dataset = True


class CosineQdrantIndex(QdrantIndex):
    distance = Distance.COSINE
    normalize_dataset = False
