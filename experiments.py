"""
Huffman coder experiments

Runs the coder over synthetic datasets (and optional text files) at several
sizes, with repeated runs, and records compression and timing numbers

Outputs (in --outdir):
  - metrics.csv     (raw row per run per dataset/size)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --sizes-kb 4,64,512 --generators zipf128,english_like
  python experiments.py --outdir results --inputs notes.txt,README.md --no-plots
"""

from __future__ import annotations

import argparse
import csv
import logging
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

import huffman as huff

logger = logging.getLogger("experiments")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def fixed_width_bits(num_symbols: int, alphabet_size: int) -> int:
    # bits a fixed-width code over the same alphabet would need
    if alphabet_size <= 1:
        return num_symbols
    return num_symbols * math.ceil(math.log2(alphabet_size))


def pack_bits(bits: str) -> Tuple[bytes, int]:
    """
    Packs a '0'/'1' string into bytes, most significant bit first
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for ch in bits:
        acc = (acc << 1) | (1 if ch == '1' else 0)
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc & 0xFF)
            acc = 0
            acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        acc = acc << pad_bits
        out.append(acc & 0xFF)

    return bytes(out), pad_bits


def unpack_bits(packed: bytes, pad_bits: int) -> str:
    total_bits = len(packed) * 8 - pad_bits
    bits = ''.join(format(byte, '08b') for byte in packed)
    return bits[:total_bits]


# Synthetic dataset generators

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    other_symbols = [i for i in range(256) if i != dominant]
    out = bytearray()
    for _ in range(size):
        if rng.random() < dom_frac:
            out.append(dominant)
        else:
            out.append(rng.choice(other_symbols))
    return bytes(out)

def _sample_cdf(rng: random.Random, cdf: List[float]) -> int:
    r = rng.random()
    lo, hi = 0, len(cdf) - 1
    while lo < hi:
        mid = (lo + hi) // 2
        if r <= cdf[mid]:
            hi = mid
        else:
            lo = mid + 1
    return lo

def _cdf(weights: List[float]) -> List[float]:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)
    return cdf

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    cdf = _cdf([1.0 / ((i + 1) ** s) for i in range(alphabet)])
    return bytes(_sample_cdf(rng, cdf) for _ in range(size))

def gen_english_like(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        "\n"
    )
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

    cdf = _cdf(weights)
    return ''.join(chars[_sample_cdf(rng, cdf)] for _ in range(size))

def gen_single_symbol(size: int, seed: int = 0) -> str:
    return 'a' * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], Sequence]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": gen_english_like,
    "single_symbol": gen_single_symbol,
}

def generate_dataset(name: str, size: int, seed: int) -> Sequence:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size, seed)


# Experiment runner

@dataclass
class MetricRow:
    dataset_name: str
    size_symbols: int
    run_id: int
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    encoded_bits: int
    fixed_width_bits: int
    packed_bytes: int
    pad_bits: int
    compression_rate: float

    correctness_ok: int  # 1 or 0


def run_one(data: Sequence) -> MetricRow:
    t0 = now_ns()
    coder = huff.HuffmanCoder(data)
    t1 = now_ns()

    encoded = coder.encode()
    packed, pad_bits = pack_bits(encoded)
    t2 = now_ns()

    decoded = coder.decode(unpack_bits(packed, pad_bits))
    t3 = now_ns()

    build_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    decode_ms = ns_to_ms(t3 - t2)

    return MetricRow(
        dataset_name="",
        size_symbols=len(data),
        run_id=0,
        unique_symbols=len(coder.frequencies),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        encoded_bits=len(encoded),
        fixed_width_bits=fixed_width_bits(len(data), len(coder.frequencies)),
        packed_bytes=len(packed),
        pad_bits=pad_bits,
        compression_rate=coder.compression_rate(),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by dataset_name, size_symbols and compute mean/stdev
    """
    key_to: Dict[Tuple[str, int], List[MetricRow]] = {}
    for r in rows:
        key_to.setdefault((r.dataset_name, r.size_symbols), []).append(r)

    summary_fields = [
        "dataset_name", "size_symbols", "n_runs",
        "compression_rate_mean", "compression_rate_stdev",
        "encode_ms_mean", "encode_ms_stdev",
        "decode_ms_mean", "decode_ms_stdev",
        "build_ms_mean", "build_ms_stdev",
        "total_ms_mean", "total_ms_stdev",
        "correctness_ok_rate",
    ]
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for (dataset_name, size), items in sorted(key_to.items()):
            cr_m, cr_s = mean_stdev([x.compression_rate for x in items])
            en_m, en_s = mean_stdev([x.encode_ms for x in items])
            de_m, de_s = mean_stdev([x.decode_ms for x in items])
            bu_m, bu_s = mean_stdev([x.build_ms for x in items])
            tt_m, tt_s = mean_stdev([x.total_ms for x in items])

            w.writerow({
                "dataset_name": dataset_name,
                "size_symbols": size,
                "n_runs": len(items),
                "compression_rate_mean": cr_m,
                "compression_rate_stdev": cr_s,
                "encode_ms_mean": en_m,
                "encode_ms_stdev": en_s,
                "decode_ms_mean": de_m,
                "decode_ms_stdev": de_s,
                "build_ms_mean": bu_m,
                "build_ms_stdev": bu_s,
                "total_ms_mean": tt_m,
                "total_ms_stdev": tt_s,
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            })


# Plotting

def plot_compression_rate(rows: List[MetricRow], outdir: Path) -> None:
    if not rows:
        return

    datasets = sorted(set(r.dataset_name for r in rows))
    x = list(range(len(datasets)))
    y = [statistics.mean(r.compression_rate for r in rows if r.dataset_name == d) for d in datasets]

    plt.figure()
    plt.bar(x, y)
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Encoded Bits / (8 * Symbols)")
    plt.title("Compression Rate by Dataset")
    plt.tight_layout()
    plt.savefig(outdir / "compression_rate.png", dpi=200)
    plt.close()


def plot_time_vs_size(rows: List[MetricRow], outdir: Path) -> None:
    for field, label in (("encode_ms", "Encode Time (ms)"), ("decode_ms", "Decode Time (ms)")):
        plt.figure()
        plotted = False
        for dataset in sorted(set(r.dataset_name for r in rows)):
            ds_rows = [r for r in rows if r.dataset_name == dataset]
            sizes = sorted(set(r.size_symbols for r in ds_rows))
            if len(sizes) < 2:
                continue
            y = [statistics.mean(getattr(r, field) for r in ds_rows if r.size_symbols == s) for s in sizes]
            plt.plot(sizes, y, marker="o", label=dataset)
            plotted = True
        if plotted:
            plt.xlabel("Input Size (symbols)")
            plt.ylabel(label)
            plt.title(f"{label} vs Size")
            plt.legend()
            plt.tight_layout()
            plt.savefig(outdir / f"{field}_vs_size.png", dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="huffman-experiments")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--sizes-kb", type=str, default="4,16,64,256",
                    help="Comma-separated input sizes in KiB (1024 symbols each)")
    ap.add_argument("--generators", type=str, default="uniform256,zipf128,repetitive90,english_like",
                    help="Comma-separated dataset generator names")
    ap.add_argument("--inputs", type=str, default="", help="Comma-separated text files to benchmark as-is")
    ap.add_argument("--no-plots", action="store_true", help="Skip writing charts")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    sizes = [max(1, int(s)) * 1024 for s in parse_csv_list(args.sizes_kb)]
    rows: List[MetricRow] = []

    for gen_name in parse_csv_list(args.generators):
        for size in sizes:
            for run_id in range(1, args.runs + 1):
                data = generate_dataset(gen_name, size, args.seed + size + run_id)
                row = run_one(data)
                row.dataset_name = gen_name
                row.run_id = run_id
                rows.append(row)
        logger.info("finished %s over %d sizes", gen_name, len(sizes))

    for name in parse_csv_list(args.inputs):
        path = Path(name)
        try:
            data = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("cannot read %s: %s", path, e)
            return 1
        for run_id in range(1, args.runs + 1):
            row = run_one(data)
            row.dataset_name = path.name
            row.run_id = run_id
            rows.append(row)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_compression_rate(rows, outdir)
        plot_time_vs_size(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Round-trip correctness rate: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0 if ok_rate == 1.0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
