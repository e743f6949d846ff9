"""Synthetic dataset generators, one per visualization archetype.

Each generator takes a partial config mapping (missing keys fall back to
``DEFAULT_PARAMS``) and an optional ``numpy.random.Generator``. Numbers are
clamped rather than rejected; counts at or below zero produce empty output.
"""

import logging
import math
import time
from datetime import date, datetime, timedelta, timezone

from .sampling import FLOAT_LIMIT, clamp, ensure_rng, rand, rand_int, round2, round_half_up
from .schemas import (
    BarData,
    BarSeries,
    BoxGroup,
    Candle,
    GaugeData,
    GraphData,
    GraphEdge,
    GraphNode,
    HeatmapData,
    Internal,
    Leaf,
    LineSeries,
    NamedValue,
    RadarData,
    RadarIndicator,
    RadarSeries,
    SankeyData,
    SankeyLink,
    SankeyNode,
)

logger = logging.getLogger(__name__)

MINUTE_MS = 60_000
DAY_MS = 86_400_000

DEFAULT_PARAMS = {
    "line": {"series": 2, "points": 200, "start": None, "interval": MINUTE_MS,
             "min": 0, "max": 100, "volatility": 10},
    "bar": {"categories": 8, "series": 2, "min": 10, "max": 120},
    "pie": {"slices": 6, "min": 10, "max": 200},
    "scatter": {"points": 500, "clusters": 3, "spread": 50, "centerRange": 200},
    "candlestick": {"points": 120, "start": None, "interval": DAY_MS, "base": 100, "volatility": 2},
    "radar": {"axes": 6, "series": 3, "min": 0, "max": 100},
    "boxplot": {"groups": 5, "samples": 30, "min": 0, "max": 100},
    "heatmap": {"x": 12, "y": 7, "min": 0, "max": 100},
    "matrix": {"x": 12, "y": 7, "min": 0, "max": 100},
    "graph": {"nodes": 30, "extraLinks": 20},
    "tree": {"depth": 3, "breadth": 3},
    "treemap": {"depth": 3, "breadth": 3},
    "sunburst": {"depth": 3, "breadth": 3},
    "sankey": {"nodes": 8, "links": 15, "min": 1, "max": 50},
    "funnel": {"stages": 5, "startValue": 1000, "drop": 0.25},
    "gauge": {"min": 0, "max": 100},
    "pictorialBar": {"categories": 6, "min": 10, "max": 150},
    "calendar": {"days": 90, "startDate": None, "min": 0, "max": 100},
}

# keys holding element counts; clamped to non-negative integers
COUNT_KEYS = {
    "series", "points", "categories", "slices", "clusters", "axes", "groups", "samples",
    "x", "y", "nodes", "extraLinks", "depth", "breadth", "links", "stages", "days",
}


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def merge_config(archetype, config=None):
    """Overlay ``config`` on the archetype defaults and clamp the result."""
    merged = dict(DEFAULT_PARAMS.get(archetype, {}))
    for key, value in (config or {}).items():
        default = merged.get(key)
        if key in ("start", "startDate"):
            merged[key] = value
        elif _is_number(value):
            merged[key] = value
        elif key in merged:
            logger.debug("%s: ignoring non-numeric %s=%r, keeping %r", archetype, key, value, default)
    for key in COUNT_KEYS & merged.keys():
        merged[key] = max(0, int(merged[key]))
    return merged


def _ordered(lo, hi):
    return (lo, hi) if lo <= hi else (hi, lo)


def _now_ms():
    return int(time.time() * 1000)


def generate_line(config=None, rng=None):
    cfg = merge_config("line", config)
    rng = ensure_rng(rng)
    points = cfg["points"]
    interval = max(1, int(cfg["interval"]))
    start = cfg["start"]
    if not _is_number(start):
        start = _now_ms() - points * interval
    start = int(start)
    lo, hi = _ordered(cfg["min"], cfg["max"])
    volatility = abs(cfg["volatility"])

    out = []
    for s in range(cfg["series"]):
        base = rand(rng, lo, hi)
        data = []
        for i in range(points):
            base += rand(rng, -volatility, volatility)
            base = min(max(base, lo), hi)
            data.append((start + i * interval, round2(base)))
        out.append(LineSeries(f"L{s + 1}", tuple(data)))
    return tuple(out)


def generate_bar(config=None, rng=None):
    cfg = merge_config("bar", config)
    rng = ensure_rng(rng)
    categories = tuple(f"C{i + 1}" for i in range(cfg["categories"]))
    series = tuple(
        BarSeries(f"S{s + 1}", tuple(round2(rand(rng, cfg["min"], cfg["max"])) for _ in categories))
        for s in range(cfg["series"])
    )
    return BarData(categories, series)


def generate_pie(config=None, rng=None):
    cfg = merge_config("pie", config)
    rng = ensure_rng(rng)
    lo, hi = _ordered(max(0, cfg["min"]), max(0, cfg["max"]))
    return tuple(NamedValue(f"Slice{i + 1}", round2(rand(rng, lo, hi))) for i in range(cfg["slices"]))


def generate_scatter(config=None, rng=None):
    cfg = merge_config("scatter", config)
    rng = ensure_rng(rng)
    points = cfg["points"]
    if points == 0:
        return ()
    clusters = max(1, cfg["clusters"])
    center_range = abs(cfg["centerRange"])
    spread = abs(cfg["spread"])
    centers = [(rand(rng, -center_range, center_range), rand(rng, -center_range, center_range))
               for _ in range(clusters)]
    data = []
    for i in range(points):
        cx, cy = centers[i % clusters]
        data.append((round2(cx + rand(rng, -spread, spread)), round2(cy + rand(rng, -spread, spread))))
    return tuple(data)


def generate_candlestick(config=None, rng=None):
    cfg = merge_config("candlestick", config)
    rng = ensure_rng(rng)
    points = cfg["points"]
    interval = max(1, int(cfg["interval"]))
    start = cfg["start"]
    if not _is_number(start):
        start = _now_ms() - 120 * DAY_MS
    start = int(start)
    volatility = abs(cfg["volatility"])

    data = []
    price = clamp(float(cfg["base"]), 1.0, FLOAT_LIMIT)
    for i in range(points):
        t = start + i * interval
        open_ = price
        price = clamp(price + rand(rng, -volatility, volatility), 1.0, FLOAT_LIMIT)
        close = price
        high = max(open_, close) + rand(rng, 0, volatility * 1.5)
        low = min(open_, close) - rand(rng, 0, volatility * 1.5)
        data.append(Candle(t, round2(open_), round2(high), round2(low), round2(close)))
    return tuple(data)


def generate_radar(config=None, rng=None):
    cfg = merge_config("radar", config)
    rng = ensure_rng(rng)
    indicators = tuple(RadarIndicator(f"Dim{i + 1}", cfg["max"]) for i in range(cfg["axes"]))
    series = tuple(
        RadarSeries(f"R{s + 1}", tuple(round2(rand(rng, cfg["min"], cfg["max"])) for _ in indicators))
        for s in range(cfg["series"])
    )
    return RadarData(indicators, series)


def generate_boxplot(config=None, rng=None):
    """Five-number summaries read from floor-indexed order statistics.

    No interpolation: q1 is ``sorted[floor(n * 0.25)]`` and so on, with min and
    max the first and last elements.
    """
    cfg = merge_config("boxplot", config)
    rng = ensure_rng(rng)
    samples = max(1, cfg["samples"])
    lo, hi = _ordered(cfg["min"], cfg["max"])
    out = []
    for g in range(cfg["groups"]):
        arr = sorted(rand(rng, lo, hi) for _ in range(samples))
        q1 = arr[math.floor(samples * 0.25)]
        q2 = arr[math.floor(samples * 0.5)]
        q3 = arr[math.floor(samples * 0.75)]
        out.append(BoxGroup(f"G{g + 1}", (round2(arr[0]), round2(q1), round2(q2), round2(q3), round2(arr[-1]))))
    return tuple(out)


def generate_heatmap(config=None, rng=None, archetype="heatmap"):
    cfg = merge_config(archetype, config)
    rng = ensure_rng(rng)
    x_labels = tuple(f"X{i + 1}" for i in range(cfg["x"]))
    y_labels = tuple(f"Y{i + 1}" for i in range(cfg["y"]))
    cells = tuple(
        (xi, yi, round2(rand(rng, cfg["min"], cfg["max"])))
        for yi in range(len(y_labels))
        for xi in range(len(x_labels))
    )
    return HeatmapData(x_labels, y_labels, cells)


def generate_matrix(config=None, rng=None):
    return generate_heatmap(config, rng, archetype="matrix")


def generate_graph(config=None, rng=None):
    cfg = merge_config("graph", config)
    rng = ensure_rng(rng)
    count = cfg["nodes"]
    nodes = tuple(GraphNode(f"N{i}", f"Node {i}", rand_int(rng, 1, 10)) for i in range(count))
    edges = []
    # spanning tree: every node after the first links back to an earlier one
    for i in range(1, count):
        edges.append(GraphEdge(f"N{rand_int(rng, 0, i - 1)}", f"N{i}", rand_int(rng, 1, 5)))
    if count > 0:
        for _ in range(cfg["extraLinks"]):
            a = rand_int(rng, 0, count - 1)
            b = rand_int(rng, 0, count - 1)
            if a != b:
                edges.append(GraphEdge(f"N{a}", f"N{b}", rand_int(rng, 1, 5)))
    return GraphData(nodes, tuple(edges))


def _build_tree(rng, name, levels, breadth, level, prefix):
    if levels <= 1 or breadth <= 0:
        return Leaf(name, rand_int(rng, 10, 100))
    children = tuple(
        _build_tree(rng, f"{prefix}{level}-{i}", levels - 1, breadth, level + 1, prefix)
        for i in range(breadth)
    )
    return Internal(name, children)


def generate_tree(config=None, rng=None, archetype="tree"):
    """Hierarchy with ``depth`` node levels counting the root.

    Internal nodes carry children only; leaves carry a value only.
    """
    cfg = merge_config(archetype, config)
    rng = ensure_rng(rng)
    return _build_tree(rng, "root", cfg["depth"], cfg["breadth"], 0, "T")


def generate_treemap(config=None, rng=None):
    return generate_tree(config, rng, archetype="treemap")


def generate_sunburst(config=None, rng=None):
    return generate_tree(config, rng, archetype="sunburst")


def generate_sankey(config=None, rng=None):
    cfg = merge_config("sankey", config)
    rng = ensure_rng(rng)
    count = cfg["nodes"]
    nodes = tuple(SankeyNode(f"N{i}") for i in range(count))
    if count < 2:
        return SankeyData(nodes, ())
    lo, hi = _ordered(max(1, cfg["min"]), max(1, cfg["max"]))
    links = []
    while len(links) < cfg["links"]:
        s = rand_int(rng, 0, count - 2)
        t = rand_int(rng, s + 1, count - 1)
        links.append(SankeyLink(f"N{s}", f"N{t}", rand_int(rng, lo, hi)))
    return SankeyData(nodes, tuple(links))


def generate_funnel(config=None, rng=None):
    cfg = merge_config("funnel", config)
    rng = ensure_rng(rng)
    drop = min(max(float(cfg["drop"]), 0.0), 1.0)
    current = max(0.0, float(cfg["startValue"]))
    data = []
    for i in range(cfg["stages"]):
        data.append(NamedValue(f"Stage{i + 1}", round_half_up(current)))
        current *= max(0.0, 1 - drop * rand(rng, 0.8, 1.2))
    return tuple(data)


def generate_gauge(config=None, rng=None):
    cfg = merge_config("gauge", config)
    rng = ensure_rng(rng)
    lo, hi = _ordered(cfg["min"], cfg["max"])
    value = min(max(round2(rand(rng, lo, hi)), lo), hi)
    return GaugeData(value, lo, hi)


def generate_pictorial_bar(config=None, rng=None):
    cfg = merge_config("pictorialBar", config)
    rng = ensure_rng(rng)
    return tuple(NamedValue(f"P{i + 1}", round2(rand(rng, cfg["min"], cfg["max"])))
                 for i in range(cfg["categories"]))


def _coerce_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    if _is_number(value):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
    return None


def generate_calendar(config=None, rng=None):
    cfg = merge_config("calendar", config)
    rng = ensure_rng(rng)
    try:
        start = _coerce_date(cfg["startDate"])
    except (ValueError, OverflowError, OSError):
        logger.debug("calendar: unparseable startDate %r, using default", cfg["startDate"])
        start = None
    if start is None:
        start = datetime.now(timezone.utc).date() - timedelta(days=90)
    days = min(cfg["days"], (date.max - date.min).days + 1)
    # the last day has to stay representable
    start = min(start, date.max - timedelta(days=max(days - 1, 0)))
    return tuple(
        ((start + timedelta(days=i)).isoformat(), round2(rand(rng, cfg["min"], cfg["max"])))
        for i in range(days)
    )


GENERATORS = {
    "line": generate_line,
    "bar": generate_bar,
    "pie": generate_pie,
    "scatter": generate_scatter,
    "candlestick": generate_candlestick,
    "radar": generate_radar,
    "boxplot": generate_boxplot,
    "heatmap": generate_heatmap,
    "graph": generate_graph,
    "tree": generate_tree,
    "treemap": generate_treemap,
    "sunburst": generate_sunburst,
    "sankey": generate_sankey,
    "funnel": generate_funnel,
    "gauge": generate_gauge,
    "pictorialBar": generate_pictorial_bar,
    "calendar": generate_calendar,
    "matrix": generate_matrix,
}
