#!/usr/bin/env python3
"""Timing harness: repeatedly generate and render archetypes at large sizes.

Per iteration it records generation time, render time, the number of
primitives that reached the surface and the traced memory delta.
"""

import argparse
import csv
import gc
import json
import logging
import tracemalloc
from dataclasses import asdict, dataclass
from pathlib import Path
from time import perf_counter

import numpy as np

from .registry import archetype_registry
from .strategies import data_extent
from .surface import MatplotlibSurface, RecordingSurface

logger = logging.getLogger(__name__)

DEFAULT_DATASETS = {
    "line": {"points": 1000, "series": 3},
    "bar": {"categories": 50, "series": 3},
    "scatter": {"points": 2000, "clusters": 2},
}


@dataclass
class BenchResult:
    archetype: str
    backend: str
    iteration: int
    generate_ms: float
    render_ms: float
    primitives: int
    memory_kb: float


def _surface(backend, archetype, data, width, height):
    x_range, y_range = data_extent(archetype, data)
    if backend == "mpl":
        return MatplotlibSurface(width, height, x_range, y_range)
    return RecordingSurface.for_frame(width, height, x_range, y_range)


def run_once(archetype, config, rng, backend="record", width=800, height=600, iteration=0):
    gc.collect()
    tracemalloc.start()
    try:
        start_mem, _ = tracemalloc.get_traced_memory()
        t0 = perf_counter()
        data = archetype_registry.generate(archetype, config, rng)
        t1 = perf_counter()
        surface = _surface(backend, archetype, data, width, height)
        try:
            outcome = archetype_registry.render(archetype, data, surface)
            if backend == "mpl" and outcome.drawn:
                surface.fig.canvas.draw()
            t2 = perf_counter()
        finally:
            if backend == "mpl":
                surface.close()
        end_mem, _ = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    # a collection between samples can make the delta negative
    memory = abs(end_mem - start_mem) / 1024.0
    return BenchResult(
        archetype=archetype,
        backend=backend,
        iteration=iteration,
        generate_ms=(t1 - t0) * 1000.0,
        render_ms=(t2 - t1) * 1000.0,
        primitives=outcome.primitives,
        memory_kb=round(memory, 1),
    )


def run_benchmark(datasets=None, iterations=10, backend="record", seed=None, width=800, height=600):
    datasets = datasets or DEFAULT_DATASETS
    rng = np.random.default_rng(seed)
    results = []
    for archetype, config in datasets.items():
        if not archetype_registry.is_supported(archetype):
            logger.warning("Skipping %s: no rendering strategy", archetype)
            continue
        for i in range(iterations):
            results.append(run_once(archetype, config, rng, backend, width, height, iteration=i))
    return results


def summarize(results):
    summary = {}
    for archetype in dict.fromkeys(r.archetype for r in results):
        rows = [r for r in results if r.archetype == archetype]
        summary[archetype] = {
            "runs": len(rows),
            "generate_ms_mean": float(np.mean([r.generate_ms for r in rows])),
            "render_ms_mean": float(np.mean([r.render_ms for r in rows])),
            "render_ms_median": float(np.median([r.render_ms for r in rows])),
            "primitives_mean": float(np.mean([r.primitives for r in rows])),
            "memory_kb_mean": float(np.mean([r.memory_kb for r in rows])),
        }
    return summary


def write_csv(results, path):
    with Path(path).open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(BenchResult.__dataclass_fields__))
        writer.writeheader()
        for r in results:
            writer.writerow(asdict(r))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark dataset generation and rendering.")
    parser.add_argument("--iterations", type=int, default=10)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--backend", choices=["record", "mpl"], default="record")
    parser.add_argument("--datasets", type=str, default=None,
                        help='JSON mapping archetype -> config, e.g. {"bar": {"categories": 100}}')
    parser.add_argument("--width", type=int, default=800)
    parser.add_argument("--height", type=int, default=600)
    parser.add_argument("--csv", type=Path, default=None)
    parser.add_argument("--json", type=Path, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    datasets = json.loads(args.datasets) if args.datasets else None
    results = run_benchmark(datasets, max(1, args.iterations), args.backend, args.seed, args.width, args.height)
    summary = summarize(results)

    if args.csv:
        write_csv(results, args.csv)
    if args.json:
        args.json.write_text(json.dumps({"summary": summary, "runs": [asdict(r) for r in results]}, indent=2))

    for archetype, row in summary.items():
        print(f"{archetype:>12}  runs={row['runs']:<3} gen={row['generate_ms_mean']:.2f}ms "
              f"render={row['render_ms_mean']:.2f}ms prims={row['primitives_mean']:.0f} "
              f"mem={row['memory_kb_mean']:.1f}KB")
    return 0


if __name__ == "__main__":
    main()
