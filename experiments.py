# Huffman code tables
# experiments.py
# 10/19/26

"""
Benchmark: decoding with a built tree vs a tree loaded from its saved code table

Runs each configuration several times and records timings and sizes

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts, unless --no_plots)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --sizes-kb 4,64,1024 --generators zipf128,english_like

Pipelines:
  built   build the tree from frequencies, encode, decode with that same tree
  loaded  build, save the code table as text, load it back, decode with the loaded tree
"""

from __future__ import annotations

import argparse
import csv
import io
import logging
import math
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

import bitio
import code_table
import huffman as huff
from huffcode import setup_logging

logger = logging.getLogger(__name__)

PIPELINES = ("built", "loaded")


def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0


# Synthetic dataset generators

def _sample(rng: random.Random, weights: Sequence[float], size: int) -> List[int]:
    # indices drawn with the given relative weights
    return rng.choices(range(len(weights)), weights=weights, k=size)

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return bytes(_sample(rng, weights, size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [(1.0 - dom_frac) / 255] * 256
    weights[dominant] = dom_frac
    return bytes(_sample(rng, weights, size))

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return bytes(ord(chars[i]) for i in _sample(rng, weights, size))

def gen_with_nul(size: int, seed: int = 0) -> bytes:
    # binary-ish data where the NUL byte dominates
    rng = random.Random(seed)
    weights = [1.0] * 256
    weights[0] = 64.0
    return bytes(_sample(rng, weights, size))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "nul_heavy": lambda size, seed: gen_with_nul(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}; choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size_bytes, seed)


def entropy_bits(ft: Sequence[int]) -> float:
    """Shannon entropy in bits per symbol of a frequency table"""
    total = sum(ft)
    if total == 0:
        return 0.0
    return -sum((f / total) * math.log2(f / total) for f in ft if f > 0)


# Experiment runner

@dataclass
class MetricRow:
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "built" or "loaded"
    unique_symbols: int

    build_ms: float
    save_ms: float
    load_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    table_bytes: int
    compressed_bytes: int
    compression_ratio: float
    avg_code_length: float
    entropy_bits: float

    correctness_ok: int  # 1 or 0


def run_one(data: bytes, pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {PIPELINES}")

    ft = huff.frequency_table(data)

    t0 = now_ns()
    root = huff.build_huffman_tree(ft)
    build_ms = ns_to_ms(now_ns() - t0)

    t0 = now_ns()
    buf = io.StringIO()
    code_table.save_code_table(root, buf)
    table_text = buf.getvalue()
    save_ms = ns_to_ms(now_ns() - t0)

    load_ms = 0.0
    decode_root = root
    if pipeline == "loaded":
        t0 = now_ns()
        decode_root = code_table.load_code_table(table_text.splitlines())
        load_ms = ns_to_ms(now_ns() - t0)

    code_map = huff.generate_huffman_codes(root)
    t0 = now_ns()
    writer = bitio.BitWriter()
    total_bits = huff.huffman_encode(data, code_map, writer)
    packed, pad_bits = writer.finish()
    encode_ms = ns_to_ms(now_ns() - t0)

    t0 = now_ns()
    out = io.BytesIO()
    huff.huffman_decode(decode_root, bitio.BitReader(packed, pad_bits), out)
    decode_ms = ns_to_ms(now_ns() - t0)

    return MetricRow(
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=sum(1 for f in ft if f > 0),
        build_ms=build_ms,
        save_ms=save_ms,
        load_ms=load_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + save_ms + load_ms + encode_ms + decode_ms,
        table_bytes=len(table_text.encode("ascii")),
        compressed_bytes=len(packed) + 1,  # + .short header byte
        compression_ratio=(len(packed) + 1) / max(1, len(data)),
        avg_code_length=total_bits / max(1, len(data)),
        entropy_bits=entropy_bits(ft),
        correctness_ok=1 if out.getvalue() == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = ("compression_ratio", "avg_code_length", "build_ms", "save_ms",
                   "load_ms", "encode_ms", "decode_ms", "total_ms")

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, int, str], List[MetricRow]] = {}
    for r in rows:
        key_to.setdefault((r.dataset_name, r.file_size_bytes, r.pipeline), []).append(r)

    summary_fields = ["dataset_name", "file_size_bytes", "pipeline", "n_runs", "entropy_bits", "table_bytes"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for (dataset_name, size_b, pipeline), items in sorted(key_to.items()):
            row = {
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
                "entropy_bits": statistics.mean(x.entropy_bits for x in items),
                "table_bytes": statistics.mean(x.table_bytes for x in items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def _mean(rows: List[MetricRow], field: str) -> float:
    vals = [getattr(r, field) for r in rows]
    return statistics.mean(vals) if vals else float("nan")

def plot_code_length(rows: List[MetricRow], outdir: Path) -> None:
    """Average code length against entropy, per dataset, at the largest size"""
    if not rows:
        return
    largest = max(r.file_size_bytes for r in rows)
    datasets = sorted(set(r.dataset_name for r in rows))
    x = list(range(len(datasets)))
    sel = [r for r in rows if r.file_size_bytes == largest and r.pipeline == "built"]

    plt.figure()
    plt.plot(x, [_mean([r for r in sel if r.dataset_name == d], "avg_code_length") for d in datasets],
             marker="o", label="average code length")
    plt.plot(x, [_mean([r for r in sel if r.dataset_name == d], "entropy_bits") for d in datasets],
             marker="x", linestyle="--", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title(f"Code Length vs Entropy ({largest // 1024} KB)")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "code_length_vs_entropy.png", dpi=200)
    plt.close()

def plot_size_scaling(rows: List[MetricRow], outdir: Path) -> None:
    for dist in sorted(set(r.dataset_name for r in rows)):
        dist_rows = [r for r in rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        for field, label in (("decode_ms", "Decode Time (ms)"), ("total_ms", "Total Time (ms)")):
            plt.figure()
            for p in PIPELINES:
                y = [_mean([r for r in dist_rows if r.file_size_bytes == s and r.pipeline == p], field) for s in sizes]
                plt.plot(sizes, y, marker="o", label=p)
            plt.xscale("log", base=2)
            plt.xlabel("File Size (bytes)")
            plt.ylabel(label)
            plt.title(f"{label} vs Size ({dist})")
            plt.legend()
            plt.tight_layout()
            plt.savefig(outdir / f"{field}_{dist}.png", dpi=200)
            plt.close()

def plot_table_overhead(rows: List[MetricRow], outdir: Path) -> None:
    loaded = [r for r in rows if r.pipeline == "loaded"]
    if not loaded:
        return
    datasets = sorted(set(r.dataset_name for r in loaded))
    x = list(range(len(datasets)))

    plt.figure()
    plt.bar(x, [_mean([r for r in loaded if r.dataset_name == d], "load_ms") for d in datasets])
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Code Table Load Time (ms)")
    plt.title("Code Table Load Cost by Dataset")
    plt.tight_layout()
    plt.savefig(outdir / "table_load_time.png", dpi=200)
    plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_experiments(generators: List[str], sizes: List[int], runs: int, seed: int) -> List[MetricRow]:
    rows: List[MetricRow] = []
    for gen_name in generators:
        for size_b in sizes:
            for run_id in range(1, runs + 1):
                data = generate_dataset(gen_name, size_b, seed + size_b + run_id)
                for pipeline in PIPELINES:
                    row = run_one(data, pipeline)
                    row.dataset_name = gen_name
                    row.run_id = run_id
                    rows.append(row)
                    if not row.correctness_ok:
                        logger.warning("%s %d bytes run %d (%s) did not round-trip",
                                       gen_name, size_b, run_id, pipeline)
            logger.info("finished %s at %d bytes", gen_name, size_b)
    return rows

def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Benchmark Huffman tree build, code table save/load and decode")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--sizes-kb", type=str, default="4,16,64,256,1024",
                    help="Comma-separated dataset sizes in KB")
    ap.add_argument("--generators", type=str, default="uniform256,zipf128,repetitive90,english_like,nul_heavy",
                    help=f"Comma-separated dataset generators ({', '.join(sorted(GENERATOR_REGISTRY))})")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        sizes = [max(1, int(s)) * 1024 for s in parse_csv_list(args.sizes_kb)]
    except ValueError:
        ap.error(f"--sizes-kb must be a list of integers, got {args.sizes_kb!r}")
    generators = parse_csv_list(args.generators)
    unknown = [g for g in generators if g not in GENERATOR_REGISTRY]
    if unknown:
        ap.error(f"unknown generators: {', '.join(unknown)}")

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    rows = run_experiments(generators, sizes, max(1, args.runs), args.seed)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_code_length(rows, outdir)
        plot_size_scaling(rows, outdir)
        plot_table_overhead(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
