#!/usr/bin/env python3
"""
Throughput benchmarks for streamcsv.

Measures:
- streamcsv.read_csv at several buffer sizes
- the standard library csv module, as a pure-Python baseline
- pandas, Polars and PyArrow, when installed

Generated files use quoted fields with embedded separators, escaped quotes
and newlines, so the tokenizer's quoted-field states are exercised.

Run with: python benchmark_csv.py [--sizes SIZES] [--buffers SIZES] [--output FILE]
"""

import argparse
import csv
import gc
import json
import random
import statistics
import string
import tempfile
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, Dict, List

import streamcsv

# Optional comparison readers
READERS: Dict[str, Callable[[str], int]] = {}

try:
    import pandas as pd

    READERS["pandas"] = lambda path: len(pd.read_csv(path, escapechar="\\"))
except ImportError:
    pass

try:
    import polars as pl

    READERS["polars"] = lambda path: len(pl.read_csv(path))
except ImportError:
    pass

try:
    import pyarrow.csv as pa_csv

    READERS["pyarrow"] = lambda path: pa_csv.read_csv(
        path, parse_options=pa_csv.ParseOptions(escape_char="\\", newlines_in_values=True)
    ).num_rows
except ImportError:
    pass


@dataclass
class BenchmarkResult:
    """Timing of one reader on one file."""

    reader: str
    file_size_mb: float
    num_rows: int
    mean_time_s: float
    std_time_s: float
    throughput_mb_s: float


def _quoted_text(rng: random.Random) -> str:
    words = ["".join(rng.choices(string.ascii_letters, k=rng.randint(3, 8))) for _ in range(3)]
    text = rng.choice([", ", ' \\"q\\" ', "\n"]).join(words)
    return f'"{text}"'


def generate_csv_file(path: Path, num_rows: int, num_cols: int = 8) -> int:
    """
    Write a CSV file alternating integer, plain text and quoted text columns.

    Returns
    -------
    int
        File size in bytes.
    """
    rng = random.Random(42)

    with open(path, "w", newline="") as f:
        f.write(",".join(f"col_{i}" for i in range(num_cols)) + "\n")
        for _ in range(num_rows):
            row = []
            for col_idx in range(num_cols):
                kind = col_idx % 3
                if kind == 0:
                    row.append(str(rng.randint(-1000000, 1000000)))
                elif kind == 1:
                    row.append("".join(rng.choices(string.ascii_lowercase, k=rng.randint(4, 12))))
                else:
                    row.append(_quoted_text(rng))
            f.write(",".join(row) + "\n")

    return path.stat().st_size


def read_stdlib(path: str) -> int:
    with open(path, newline="", encoding="utf-8") as f:
        return sum(1 for _ in csv.reader(f, escapechar="\\", doublequote=False)) - 1


def read_streamcsv(buffer_size: int) -> Callable[[str], int]:
    def read(path: str) -> int:
        return streamcsv.read_csv(path, buffer_size=buffer_size).num_rows

    return read


def time_reader(read: Callable[[str], int], path: str, num_runs: int) -> List[float]:
    times = []
    for _ in range(num_runs):
        gc.collect()
        start = time.perf_counter()
        read(path)
        times.append(time.perf_counter() - start)
    return times


def run_benchmark(
    file_size_mb: float,
    buffer_sizes: List[int],
    num_runs: int = 3,
) -> List[BenchmarkResult]:
    """
    Run every reader against a generated file of roughly the given size.

    Parameters
    ----------
    file_size_mb : float
        Target file size in megabytes.
    buffer_sizes : list of int
        Refill sizes to time streamcsv with.
    num_runs : int
        Timed runs per reader.
    """
    # Roughly 90 bytes per generated row with 8 columns
    num_rows = max(1000, int(file_size_mb * 1024 * 1024) // 90)

    readers: Dict[str, Callable[[str], int]] = {
        f"streamcsv/{size}": read_streamcsv(size) for size in buffer_sizes
    }
    readers["csv"] = read_stdlib
    readers.update(READERS)

    results = []
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "benchmark.csv"
        size_mb = generate_csv_file(csv_path, num_rows) / (1024 * 1024)

        print(f"\nBenchmarking {size_mb:.1f} MB file ({num_rows:,} rows)")
        print("-" * 60)

        for name, read in readers.items():
            times = time_reader(read, str(csv_path), num_runs)
            mean_time = statistics.mean(times)
            std_time = statistics.stdev(times) if len(times) > 1 else 0.0
            result = BenchmarkResult(
                reader=name,
                file_size_mb=size_mb,
                num_rows=num_rows,
                mean_time_s=mean_time,
                std_time_s=std_time,
                throughput_mb_s=size_mb / mean_time,
            )
            results.append(result)
            print(
                f"{name:18} {mean_time:8.3f}s (+/- {std_time:.3f}s) "
                f"| {result.throughput_mb_s:8.2f} MB/s"
            )

    return results


def save_results(results: List[BenchmarkResult], output_path: str) -> None:
    """Save results to JSON file."""
    data = {
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "streamcsv_version": streamcsv.__version__,
        "results": [asdict(r) for r in results],
    }
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)
    print(f"\nResults saved to {output_path}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark streamcsv")
    parser.add_argument(
        "--sizes",
        type=str,
        default="1,5",
        help="Comma-separated file sizes in MB (default: 1,5)",
    )
    parser.add_argument(
        "--buffers",
        type=str,
        default="4096,65536,1048576",
        help="Comma-separated streamcsv buffer sizes in bytes",
    )
    parser.add_argument(
        "--runs",
        type=int,
        default=3,
        help="Number of runs per reader (default: 3)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write results as JSON to this file",
    )
    args = parser.parse_args()

    sizes = [float(s) for s in args.sizes.split(",")]
    buffers = [int(s) for s in args.buffers.split(",")]

    all_results: List[BenchmarkResult] = []
    for size in sizes:
        all_results.extend(run_benchmark(size, buffers, args.runs))

    if args.output:
        save_results(all_results, args.output)


if __name__ == "__main__":
    main()
