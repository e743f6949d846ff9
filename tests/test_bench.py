import csv
import json

import numpy as np

from synthetic_chart_pipeline.bench import BenchResult, main, run_benchmark, run_once, summarize, write_csv


def test_run_benchmark_skips_unsupported_archetypes(caplog):
    results = run_benchmark({"bar": {"categories": 5, "series": 2}, "sankey": {}}, iterations=2, seed=1)
    assert [(r.archetype, r.iteration) for r in results] == [("bar", 0), ("bar", 1)]
    assert all(r.primitives == 10 for r in results)
    assert all(r.generate_ms >= 0 and r.render_ms >= 0 and r.memory_kb >= 0 for r in results)
    assert "sankey" in caplog.text


def test_run_once_with_matplotlib_backend():
    result = run_once("scatter", {"points": 50, "clusters": 2}, np.random.default_rng(0),
                      backend="mpl", width=320, height=240)
    assert result.backend == "mpl"
    assert result.primitives == 50


def test_summarize_groups_by_archetype():
    rows = [
        BenchResult("bar", "record", 0, 1.0, 2.0, 10, 4.0),
        BenchResult("bar", "record", 1, 3.0, 6.0, 10, 8.0),
        BenchResult("line", "record", 0, 5.0, 1.0, 99, 1.0),
    ]
    summary = summarize(rows)
    assert list(summary) == ["bar", "line"]
    assert summary["bar"]["runs"] == 2
    assert summary["bar"]["generate_ms_mean"] == 2.0
    assert summary["bar"]["render_ms_median"] == 4.0
    assert summary["line"]["primitives_mean"] == 99


def test_write_csv(tmp_path):
    path = tmp_path / "bench.csv"
    write_csv([BenchResult("bar", "record", 0, 1.5, 2.5, 10, 4.0)], path)
    with path.open() as f:
        rows = list(csv.DictReader(f))
    assert rows == [{"archetype": "bar", "backend": "record", "iteration": "0", "generate_ms": "1.5",
                     "render_ms": "2.5", "primitives": "10", "memory_kb": "4.0"}]


def test_main_writes_reports(tmp_path, capsys):
    out_csv = tmp_path / "runs.csv"
    out_json = tmp_path / "runs.json"
    rc = main(["--iterations", "2", "--seed", "4", "--datasets", '{"line": {"points": 20, "series": 2}}',
               "--csv", str(out_csv), "--json", str(out_json)])
    assert rc == 0
    assert "line" in capsys.readouterr().out
    report = json.loads(out_json.read_text())
    assert report["summary"]["line"]["runs"] == 2
    assert len(report["runs"]) == 2
    assert out_csv.read_text().startswith("archetype,backend,iteration")
