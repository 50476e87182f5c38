"""Dataset preparation: shuffling, normalization, control sizing/splitting and loading."""

from __future__ import annotations

import json
import random

import numpy as np
import pytest

from annbench.data.dataset import (
    as_matrix,
    generate_dataset,
    get_control_size,
    load_dataset,
    make_rng,
    normalize,
    shuffle,
    split_dataset,
)


def _entries(n: int, dim: int = 3) -> list:
    return [(f"k{i}", np.arange(1, dim + 1, dtype=np.float32) * (i + 1)) for i in range(n)]


def test_normalize_produces_unit_vectors() -> None:
    dataset = [("a", np.array([3.0, 4.0], dtype=np.float32)), ("b", np.array([1.0, -2.0, 2.0], dtype=np.float32))]
    normalize(dataset)
    for _, vec in dataset:
        assert float(np.dot(vec, vec)) == pytest.approx(1.0, abs=1e-5)
    np.testing.assert_allclose(dataset[0][1], [0.6, 0.8], atol=1e-6)
    assert [key for key, _ in dataset] == ["a", "b"]


def test_normalize_zero_vector_is_not_finite() -> None:
    dataset = [("z", np.zeros(3, dtype=np.float32))]
    with np.errstate(divide="ignore", invalid="ignore"):
        normalize(dataset)
    assert not np.all(np.isfinite(dataset[0][1]))


@pytest.mark.parametrize("n, expected", [(250, 2), (50, 1), (1, 1), (0, 0), (1000, 10)])
def test_default_control_size(n: int, expected: int) -> None:
    assert get_control_size(_entries(n), None) == expected


def test_explicit_control_size_is_returned_unchanged() -> None:
    assert get_control_size(_entries(5), 1000) == 1000
    assert get_control_size(_entries(5), 0) == 0


def test_split_dataset_partitions_in_order() -> None:
    original = _entries(10)
    main = list(original)
    control = [("stale", np.zeros(3, dtype=np.float32))]

    split_dataset(main, control, 3)

    assert len(main) + len(control) == len(original)
    assert [k for k, _ in control] == [k for k, _ in original[:3]]
    assert [k for k, _ in main] == [k for k, _ in original[3:]]


def test_split_dataset_zero_control() -> None:
    main = _entries(4)
    control: list = []
    split_dataset(main, control, 0)
    assert control == []
    assert len(main) == 4


def test_shuffle_is_reproducible_and_keeps_entries() -> None:
    first = _entries(50)
    second = list(first)
    shuffle(first, random.Random(7))
    shuffle(second, random.Random(7))

    assert [k for k, _ in first] == [k for k, _ in second]
    assert sorted(k for k, _ in first) == sorted(k for k, _ in _entries(50))
    assert [k for k, _ in first] != [k for k, _ in _entries(50)]


def test_generate_dataset_is_seeded() -> None:
    a = generate_dataset(20, 4, make_rng(3))
    b = generate_dataset(20, 4, make_rng(3))
    assert [k for k, _ in a] == [f"v{i}" for i in range(20)]
    np.testing.assert_array_equal(as_matrix(a)[1], as_matrix(b)[1])
    assert as_matrix(a)[1].shape == (20, 4)
    assert as_matrix(a)[1].dtype == np.float32


def test_as_matrix_empty() -> None:
    keys, mat = as_matrix([])
    assert keys == []
    assert mat.shape == (0, 0)


def test_load_text_dataset(tmp_path) -> None:
    path = tmp_path / "vectors.txt"
    path.write_text("alpha 1 0 0\n\nbeta 0 1.5 0\n", encoding="utf-8")

    dataset = load_dataset(str(path))

    assert [k for k, _ in dataset] == ["alpha", "beta"]
    np.testing.assert_allclose(dataset[1][1], [0.0, 1.5, 0.0], atol=1e-6)
    assert dataset[0][1].dtype == np.float32


def test_load_jsonl_dataset(tmp_path) -> None:
    path = tmp_path / "vectors.jsonl"
    rows = [{"key": "a", "vector": [1, 2]}, {"key": 7, "vector": [3, 4]}]
    path.write_text("\n".join(json.dumps(r) for r in rows), encoding="utf-8")

    dataset = load_dataset(str(path))

    assert [k for k, _ in dataset] == ["a", "7"]
    np.testing.assert_allclose(dataset[1][1], [3.0, 4.0], atol=1e-6)


def test_load_npy_dataset(tmp_path) -> None:
    path = tmp_path / "vectors.npy"
    np.save(path, np.eye(3))

    dataset = load_dataset(str(path))

    assert [k for k, _ in dataset] == ["0", "1", "2"]
    np.testing.assert_allclose(dataset[2][1], [0.0, 0.0, 1.0], atol=1e-6)


def test_load_rejects_mixed_dimensions(tmp_path) -> None:
    path = tmp_path / "bad.txt"
    path.write_text("a 1 2 3\nb 1 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"bad.txt:2"):
        load_dataset(str(path))


def test_load_rejects_non_numeric(tmp_path) -> None:
    path = tmp_path / "bad.txt"
    path.write_text("a 1 x 3\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"bad.txt:1"):
        load_dataset(str(path))


def test_normalize_scales_float32_arrays_in_place() -> None:
    vec = np.array([3.0, 4.0], dtype=np.float32)
    dataset = [("a", vec)]

    normalize(dataset)

    assert dataset[0][1] is vec
    np.testing.assert_allclose(vec, [0.6, 0.8], atol=1e-6)


def test_normalize_replaces_other_vectors_with_float32_copies() -> None:
    original = np.array([0.0, 2.0], dtype=np.float64)
    dataset = [("a", original), ("b", [1.0, 0.0])]

    normalize(dataset)

    np.testing.assert_array_equal(original, [0.0, 2.0])
    assert dataset[0][1].dtype == np.float32
    np.testing.assert_allclose(dataset[0][1], [0.0, 1.0], atol=1e-6)
    np.testing.assert_allclose(dataset[1][1], [1.0, 0.0], atol=1e-6)


def test_make_rng_leaves_numpy_global_state_alone() -> None:
    before = np.random.get_state()[1].copy()
    make_rng(123)
    np.testing.assert_array_equal(np.random.get_state()[1], before)
