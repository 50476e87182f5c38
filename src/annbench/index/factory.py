from __future__ import annotations
from typing import Dict, Optional, Type

from .base import Index
from .options import ConfigurationError, IndexOptions, parse_insert_method, parse_remove_method
from .usearch_index import CosineUSearchIndex, DotProductUSearchIndex

INDEX_TYPES = ("dot_product", "cosine")
BACKENDS = ("usearch", "qdrant")


def _variants(backend: str) -> Dict[str, Type[Index]]:
    if backend == "usearch":
        return {"dot_product": DotProductUSearchIndex, "cosine": CosineUSearchIndex}
    if backend == "qdrant":
        # Lazy import so the usearch path works without qdrant-client
        from .qdrant_index import CosineQdrantIndex, DotProductQdrantIndex
        return {"dot_product": DotProductQdrantIndex, "cosine": CosineQdrantIndex}
    raise ConfigurationError(f"make_index: unknown backend: {backend}")


def make_index(
    type: str,
    max_links: Optional[int] = None,
    ef_construction: Optional[int] = None,
    insert_method: Optional[str] = None,
    remove_method: Optional[str] = None,
    backend: str = "usearch",
) -> Index:
    """
    Build an index for the metric `type` ("dot_product" or "cosine").
    Unset options keep the engine's defaults. Raises ConfigurationError on
    unknown types, backends and insert/remove methods.
    """
    options = IndexOptions(
        max_links=max_links,
        ef_construction=ef_construction,
        insert_method=parse_insert_method(insert_method),
        remove_method=parse_remove_method(remove_method),
    )

    variants = _variants(backend)
    if type not in variants:
        raise ConfigurationError(f"make_index: unknown index type: {type}")
    return variants[type](options)
