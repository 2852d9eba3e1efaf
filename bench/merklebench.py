#!/usr/bin/env python3
"""
MerkleBench: Benchmarks for sszmerkle

Measures the two optimizations the engine depends on:
    virtual padding   cost vs chunk count and declared capacity
    hash cache        warm re-hash after a mutation vs a full rebuild

Usage:
    merklebench padding   [--output DIR] [--iterations N]
    merklebench cache     [--output DIR] [--iterations N] [--size N]
    merklebench all       [--output DIR]
"""

from __future__ import annotations
import argparse
import json
import os
import platform
import statistics
import sys
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, List

# Add paths
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from sszmerkle import (
    Context,
    LeafCount,
    List as SszList,
    Uint64,
    merkleize_chunks_with_virtual_padding,
    merkleize_chunks_reference,
)


PADDING_CHUNK_COUNTS = [1, 8, 64, 512]
PADDING_DEPTHS = [10, 16, 32, 63]

# Largest tree the reference implementation is asked to materialize
REFERENCE_MAX_DEPTH = 16


@dataclass
class TimingResult:
    """Latency for one benchmark case."""
    name: str
    params: Dict[str, Any]
    iterations: int
    median_us: float
    p95_us: float


def time_calls(func: Callable, iterations: int) -> List[float]:
    """Per-call latencies in microseconds."""
    samples = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        samples.append((time.perf_counter() - start) * 1e6)
    return samples


def summarize(name: str, params: Dict[str, Any], samples: List[float]) -> TimingResult:
    ordered = sorted(samples)
    p95 = ordered[min(len(ordered) - 1, int(len(ordered) * 0.95))]
    return TimingResult(
        name=name,
        params=params,
        iterations=len(samples),
        median_us=statistics.median(samples),
        p95_us=p95,
    )


class MerkleBench:
    """Benchmark orchestrator."""

    def __init__(self, output_dir: Path, iterations: int = 50):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.iterations = iterations
        self.context = Context()

    def run_padding(self) -> List[TimingResult]:
        """Virtual padding vs reference across chunk counts and capacities."""
        print("=" * 60)
        print("Virtual padding")
        print("=" * 60)

        results = []
        for chunk_count in PADDING_CHUNK_COUNTS:
            chunks = os.urandom(chunk_count * 32)
            for depth in PADDING_DEPTHS:
                leaf_count = LeafCount(1 << depth)
                if leaf_count.value < chunk_count:
                    continue
                params = {'chunks': chunk_count, 'depth': depth}

                samples = time_calls(
                    lambda: merkleize_chunks_with_virtual_padding(chunks, leaf_count, self.context),
                    self.iterations
                )
                result = summarize('virtual', params, samples)
                results.append(result)
                print(f"  virtual   chunks={chunk_count:<4} depth={depth:<3} "
                      f"median={result.median_us:10.2f} µs")

                if depth <= REFERENCE_MAX_DEPTH:
                    samples = time_calls(
                        lambda: merkleize_chunks_reference(chunks, leaf_count),
                        max(1, self.iterations // 10)
                    )
                    result = summarize('reference', params, samples)
                    results.append(result)
                    print(f"  reference chunks={chunk_count:<4} depth={depth:<3} "
                          f"median={result.median_us:10.2f} µs")

        return results

    def run_cache(self, size: int = 4096) -> List[TimingResult]:
        """Warm single-element update vs full rebuild of a list."""
        print("=" * 60)
        print(f"Hash cache (List[uint64] of {size})")
        print("=" * 60)

        values = SszList(Uint64, 1 << 20, range(size))
        values.hash_tree_root(self.context)
        counter = iter(range(10 ** 12))

        def warm():
            values[size // 2] = next(counter)
            values.hash_tree_root(self.context)

        def cold():
            SszList(Uint64, 1 << 20, range(size)).hash_tree_root(self.context)

        warm_result = summarize('warm_update', {'size': size}, time_calls(warm, self.iterations))
        cold_result = summarize(
            'full_rebuild', {'size': size}, time_calls(cold, max(1, self.iterations // 10))
        )

        print(f"  warm update:  median={warm_result.median_us:10.2f} µs")
        print(f"  full rebuild: median={cold_result.median_us:10.2f} µs")
        if warm_result.median_us > 0:
            print(f"  speedup:      {cold_result.median_us / warm_result.median_us:.1f}x")

        return [warm_result, cold_result]

    def write_report(self, name: str, results: List[TimingResult]) -> Path:
        report = {
            'timestamp': time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime()),
            'environment': {
                'python': platform.python_version(),
                'platform': platform.platform(),
            },
            'results': [asdict(r) for r in results],
        }
        path = self.output_dir / f"{name}.json"
        with open(path, 'w') as f:
            json.dump(report, f, indent=2)
        print(f"\nReport written to {path}")
        return path


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="sszmerkle benchmarks")
    parser.add_argument('command', choices=['padding', 'cache', 'all'])
    parser.add_argument('--output', default='bench_results', help="Report directory")
    parser.add_argument('--iterations', type=int, default=50)
    parser.add_argument('--size', type=int, default=4096, help="List size for the cache benchmark")
    args = parser.parse_args(argv)

    bench = MerkleBench(Path(args.output), iterations=args.iterations)

    if args.command in ('padding', 'all'):
        bench.write_report('padding', bench.run_padding())
    if args.command in ('cache', 'all'):
        bench.write_report('cache', bench.run_cache(args.size))

    return 0


if __name__ == '__main__':
    sys.exit(main())
