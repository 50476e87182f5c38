from __future__ import annotations
import time, argparse
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field

from ..data.dataset import (
    Dataset,
    as_matrix,
    generate_dataset,
    get_control_size,
    load_dataset,
    make_rng,
    shuffle,
    split_dataset,
)
from ..index.base import Index
from ..index.factory import BACKENDS, INDEX_TYPES, make_index
from ..metrics.ranking import exact_neighbors, hit_at_k_binary, recall_at_k


class BenchConfig(BaseModel):
    type: str = "cosine"
    backend: str = "usearch"
    max_links: Optional[int] = None
    ef_construction: Optional[int] = None
    insert_method: Optional[str] = None
    remove_method: Optional[str] = None
    # dataset file; a synthetic Gaussian set of `synthetic` x `dim` is used when unset
    dataset: Optional[str] = None
    synthetic: int = Field(10000, ge=0)
    dim: int = Field(64, gt=0)
    control_size: Optional[int] = Field(None, ge=0)
    seed: int = 42
    k: int = Field(10, gt=0)
    remove_fraction: float = Field(0.0, ge=0.0, le=1.0)


class BenchReport(BaseModel):
    type: str
    backend: str
    dataset_size: int
    main_size: int
    control_size: int
    k: int
    index_size: int
    insert_seconds: float
    search_seconds: float
    recall_at_k: float
    hit_at_1: float
    check: bool
    removed: int = 0
    remove_seconds: float = 0.0
    index_size_after_remove: Optional[int] = None
    check_after_remove: Optional[bool] = None
    recall_after_remove: Optional[float] = None


def evaluate(index: Index, main: Dataset, control: Dataset, k: int, metric: str) -> Tuple[float, float, float]:
    """Search every control vector; returns (search seconds, mean recall@k, mean hit@1)."""
    if not main or not control:
        return 0.0, 0.0, 0.0

    keys, base = as_matrix(main)
    _, queries = as_matrix(control)
    gt, _ = exact_neighbors(base, queries, k, metric)

    t0 = time.time()
    results = [index.search(q, k) for _, q in control]
    t1 = time.time()

    recalls, hits = [], []
    for qi, res in enumerate(results):
        retrieved = [key for key, _ in res]
        relevant = [keys[j] for j in gt[qi]]
        recalls.append(recall_at_k(retrieved, relevant, k))
        hits.append(hit_at_k_binary(retrieved, relevant[:1], 1))
    return t1 - t0, float(np.mean(recalls)), float(np.mean(hits))


def run_benchmark(config: BenchConfig, dataset: Optional[Dataset] = None) -> BenchReport:
    # Build the index first: configuration errors surface before any data work
    index = make_index(
        config.type,
        max_links=config.max_links,
        ef_construction=config.ef_construction,
        insert_method=config.insert_method,
        remove_method=config.remove_method,
        backend=config.backend,
    )

    rng = make_rng(config.seed)
    if dataset is not None:
        # private copies: prepare_dataset may scale vectors in place
        main = [(key, np.array(vec, dtype=np.float32)) for key, vec in dataset]
    elif config.dataset:
        main = load_dataset(config.dataset)
    else:
        main = generate_dataset(config.synthetic, config.dim, rng)
    dataset_size = len(main)
    print(f"[Data] {dataset_size} vectors")

    shuffle(main, rng)
    index.prepare_dataset(main)

    control: Dataset = []
    split_dataset(main, control, get_control_size(main, config.control_size))
    print(f"[Data] main: {len(main)}, control: {len(control)}")

    # 1) Insert
    t0 = time.time()
    for key, vec in main:
        index.insert(key, vec)
    insert_s = time.time() - t0
    ok = index.check()
    print(f"[Index] Inserted {len(main)} vectors in {insert_s:.2f}s (size={index.size()}, check={ok})")

    # 2) Search the control set against exact ground truth
    search_s, recall, hit1 = evaluate(index, main, control, config.k, config.type)
    print(f"[Timing] Searched {len(control)} control vectors in {search_s:.2f}s")

    report = BenchReport(
        type=config.type,
        backend=config.backend,
        dataset_size=dataset_size,
        main_size=len(main),
        control_size=len(control),
        k=config.k,
        index_size=index.size(),
        insert_seconds=insert_s,
        search_seconds=search_s,
        recall_at_k=recall,
        hit_at_1=hit1,
        check=ok,
    )

    # 3) Optional removal phase
    n_remove = int(len(main) * config.remove_fraction)
    if n_remove > 0:
        removed, kept = main[:n_remove], main[n_remove:]
        t0 = time.time()
        for key, _ in removed:
            index.remove(key)
        report.removed = n_remove
        report.remove_seconds = time.time() - t0
        report.check_after_remove = index.check()
        report.index_size_after_remove = index.size()
        _, report.recall_after_remove, _ = evaluate(index, kept, control, config.k, config.type)
        print(f"[Index] Removed {n_remove} vectors in {report.remove_seconds:.2f}s "
              f"(size={report.index_size_after_remove}, check={report.check_after_remove})")

    return report


def main():

    ap = argparse.ArgumentParser(description="Recall/latency benchmark for an ANN index over a control split.")
    ap.add_argument("--type", type=str, default="cosine", choices=INDEX_TYPES)
    ap.add_argument("--backend", type=str, default="usearch", choices=BACKENDS)
    ap.add_argument("--max-links", type=int, default=None)
    ap.add_argument("--ef-construction", type=int, default=None)
    ap.add_argument("--insert-method", type=str, default=None, help="link_nearest | link_diverse")
    ap.add_argument("--remove-method", type=str, default=None, help="no_link | compensate_incoming_links")

    ap.add_argument("--dataset", type=str, default=None, help=".npy, .jsonl or `key x1 x2 ...` text file")
    ap.add_argument("--synthetic", type=int, default=10000, help="size of the synthetic set when --dataset is not given")
    ap.add_argument("--dim", type=int, default=64)
    ap.add_argument("--control-size", type=int, default=None, help="defaults to 1%% of the dataset")
    ap.add_argument("--seed", type=int, default=42, help="seed for shuffling and synthetic data")
    ap.add_argument("-k", type=int, default=10, help="neighbors per query")
    ap.add_argument("--remove-fraction", type=float, default=0.0, help="share of indexed vectors to remove afterwards")
    ap.add_argument("--report", type=str, default=None, help="write the JSON report here")
    args = ap.parse_args()

    config = BenchConfig(
        type=args.type,
        backend=args.backend,
        max_links=args.max_links,
        ef_construction=args.ef_construction,
        insert_method=args.insert_method,
        remove_method=args.remove_method,
        dataset=args.dataset,
        synthetic=args.synthetic,
        dim=args.dim,
        control_size=args.control_size,
        seed=args.seed,
        k=args.k,
        remove_fraction=args.remove_fraction,
    )
    report = run_benchmark(config)

    print(f"\n=== {report.type} ({report.backend}) ===")
    print(f"Indexed: {report.main_size}  Control: {report.control_size}")
    print(f"Recall@{report.k}: {report.recall_at_k:.4f}")
    print(f"Hit@1:     {report.hit_at_1:.4f}")
    print(f"Check:     {report.check}")
    if report.recall_after_remove is not None:
        print(f"Recall@{report.k} after removing {report.removed}: {report.recall_after_remove:.4f}")

    if args.report:
        Path(args.report).parent.mkdir(parents=True, exist_ok=True)
        Path(args.report).write_text(report.model_dump_json(indent=2), encoding="utf-8")
        print(f"[Save] Report written to: {args.report}")


if __name__ == "__main__":
    main()
