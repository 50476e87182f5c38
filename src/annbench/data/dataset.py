# src/annbench/data/dataset.py
from __future__ import annotations
import json
import random
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

Vector = np.ndarray
Entry = Tuple[str, Vector]
Dataset = List[Entry]


def make_rng(seed: int = 42) -> random.Random:
    """Caller-owned random source; numpy generators are derived from it, never from global state."""
    return random.Random(seed)


def shuffle(dataset: Dataset, rng: random.Random) -> None:
    rng.shuffle(dataset)


def normalize(dataset: Dataset) -> None:
    """
    L2-normalize every vector in place.
    Writable float32 arrays are scaled where they are; any other vector
    (lists, float64, read-only views) is replaced by a normalized float32 copy.
    Zero-norm vectors come out as inf/nan; callers must filter them beforehand.
    """
    for i, (key, vec) in enumerate(dataset):
        if isinstance(vec, np.ndarray) and vec.dtype == np.float32 and vec.flags.writeable:
            vec *= np.float32(1.0) / np.sqrt(np.dot(vec, vec))
            continue
        v = np.asarray(vec, dtype=np.float32)
        coef = np.float32(1.0) / np.sqrt(np.dot(v, v))
        dataset[i] = (key, v * coef)


def get_control_size(dataset: Dataset, size: Optional[int] = None) -> int:
    if size is not None:
        return size
    return min(len(dataset), max(1, len(dataset) // 100))


def split_dataset(main: Dataset, control: Dataset, control_size: int) -> None:
    """Move the first `control_size` entries of `main` into `control` (replacing its contents)."""
    control[:] = main[:control_size]
    del main[:control_size]


def as_matrix(dataset: Dataset) -> Tuple[List[str], np.ndarray]:
    keys = [key for key, _ in dataset]
    if not dataset:
        return keys, np.zeros((0, 0), dtype=np.float32)
    mat = np.ascontiguousarray(np.stack([np.asarray(v, dtype=np.float32) for _, v in dataset]))
    return keys, mat


def generate_dataset(n: int, dim: int, rng: random.Random) -> Dataset:
    # numpy generator seeded from the caller's rng so the same seed gives the same vectors
    gen = np.random.default_rng(rng.getrandbits(64))
    mat = gen.standard_normal((n, dim)).astype(np.float32)
    return [(f"v{i}", mat[i]) for i in range(n)]


def _check_dim(vec: np.ndarray, dim: Optional[int], path: Path, lineno: int) -> int:
    if vec.ndim != 1 or vec.size == 0:
        raise ValueError(f"{path}:{lineno}: expected a non-empty flat vector")
    if dim is not None and vec.size != dim:
        raise ValueError(f"{path}:{lineno}: dimension {vec.size} does not match {dim}")
    return vec.size


def load_dataset(path: str) -> Dataset:
    """
    Read a dataset from disk. Supported layouts:
      - .npy   : 2-D float matrix, keys are row numbers
      - .jsonl : one {"key": str, "vector": [float, ...]} object per line
      - other  : whitespace separated text, `key x1 x2 ...` per line
    """
    p = Path(path)
    if p.suffix.lower() == ".npy":
        mat = np.load(p)
        if mat.ndim != 2:
            raise ValueError(f"{p}: expected a 2-D matrix, got shape {mat.shape}")
        mat = mat.astype(np.float32)
        return [(str(i), mat[i]) for i in range(mat.shape[0])]

    dataset: Dataset = []
    dim: Optional[int] = None
    with p.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            if p.suffix.lower() == ".jsonl":
                rec = json.loads(line)
                key, values = str(rec["key"]), rec["vector"]
            else:
                key, *values = line.split()
            try:
                vec = np.asarray([float(x) for x in values], dtype=np.float32)
            except ValueError as e:
                raise ValueError(f"{p}:{lineno}: {e}") from e
            dim = _check_dim(vec, dim, p, lineno)
            dataset.append((key, vec))
    return dataset
