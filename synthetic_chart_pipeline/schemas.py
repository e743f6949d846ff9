"""Canonical dataset shapes shared by the generators, the renderer and adapters.

Every archetype has an immutable dataclass form (what the generators return)
and a plain form built from lists, dicts, strings and numbers (what gets
written to JSON and what the declarative chart adapters consume).

``validate`` checks the invariants listed per archetype, ``as_plain`` and
``from_plain`` convert between the two forms. Both ``validate`` and
``from_plain`` raise ``MalformedCanonicalData`` on shape or invariant errors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Tuple, Union

from .errors import MalformedCanonicalData


@dataclass(frozen=True)
class LineSeries:
    name: str
    data: Tuple[Tuple[int, float], ...]


@dataclass(frozen=True)
class BarSeries:
    name: str
    data: Tuple[float, ...]


@dataclass(frozen=True)
class BarData:
    categories: Tuple[str, ...]
    series: Tuple[BarSeries, ...]


@dataclass(frozen=True)
class NamedValue:
    """A (label, value) pair: pie slices, funnel stages, pictorial bars."""

    name: str
    value: float


@dataclass(frozen=True)
class Candle:
    time: int
    open: float
    high: float
    low: float
    close: float

    @property
    def bullish(self):
        return self.close >= self.open


@dataclass(frozen=True)
class RadarIndicator:
    name: str
    max: float


@dataclass(frozen=True)
class RadarSeries:
    name: str
    value: Tuple[float, ...]


@dataclass(frozen=True)
class RadarData:
    indicators: Tuple[RadarIndicator, ...]
    series: Tuple[RadarSeries, ...]


@dataclass(frozen=True)
class BoxGroup:
    name: str
    value: Tuple[float, float, float, float, float]

    @property
    def min(self):
        return self.value[0]

    @property
    def q1(self):
        return self.value[1]

    @property
    def median(self):
        return self.value[2]

    @property
    def q3(self):
        return self.value[3]

    @property
    def max(self):
        return self.value[4]


@dataclass(frozen=True)
class HeatmapData:
    x_labels: Tuple[str, ...]
    y_labels: Tuple[str, ...]
    cells: Tuple[Tuple[int, int, float], ...]


@dataclass(frozen=True)
class GraphNode:
    id: str
    name: str
    value: int


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    weight: int


@dataclass(frozen=True)
class GraphData:
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[GraphEdge, ...]


@dataclass(frozen=True)
class Leaf:
    name: str
    value: float


@dataclass(frozen=True)
class Internal:
    name: str
    children: Tuple["TreeNode", ...]


TreeNode = Union[Leaf, Internal]


@dataclass(frozen=True)
class SankeyNode:
    name: str


@dataclass(frozen=True)
class SankeyLink:
    source: str
    target: str
    value: float


@dataclass(frozen=True)
class SankeyData:
    nodes: Tuple[SankeyNode, ...]
    links: Tuple[SankeyLink, ...]


@dataclass(frozen=True)
class GaugeData:
    value: float
    min: float
    max: float


# ---------------------------------------------------------------------------
# validation


def _fail(archetype, issue):
    raise MalformedCanonicalData(archetype, issue)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _validate_line(archetype, data):
    for series in data:
        times = [t for t, _ in series.data]
        if any(b <= a for a, b in zip(times, times[1:])):
            _fail(archetype, f"timestamps of {series.name} are not strictly increasing")


def _validate_bar(archetype, data):
    if len(set(data.categories)) != len(data.categories):
        _fail(archetype, "category labels are not unique")
    for series in data.series:
        if len(series.data) != len(data.categories):
            _fail(archetype, f"series {series.name} has {len(series.data)} values for "
                             f"{len(data.categories)} categories")


def _validate_named_values(archetype, data):
    for item in data:
        if not _is_number(item.value):
            _fail(archetype, f"{item.name} has a non-numeric value")
        if archetype == "pie" and item.value < 0:
            _fail(archetype, f"slice {item.name} is negative")


def _validate_funnel(archetype, data):
    _validate_named_values(archetype, data)
    for prev, cur in zip(data, data[1:]):
        if cur.value > prev.value:
            _fail(archetype, f"{cur.name} increases over {prev.name}")


def _validate_scatter(archetype, data):
    for point in data:
        if len(point) != 2:
            _fail(archetype, "points must be (x, y) pairs")


def _validate_candlestick(archetype, data):
    for prev, cur in zip(data, data[1:]):
        if cur.time <= prev.time:
            _fail(archetype, "candle times are not strictly increasing")
    for candle in data:
        if candle.high < max(candle.open, candle.close):
            _fail(archetype, f"high below body at t={candle.time}")
        if candle.low > min(candle.open, candle.close):
            _fail(archetype, f"low above body at t={candle.time}")


def _validate_radar(archetype, data):
    for series in data.series:
        if len(series.value) != len(data.indicators):
            _fail(archetype, f"series {series.name} does not match the indicator count")


def _validate_boxplot(archetype, data):
    for group in data:
        if len(group.value) != 5:
            _fail(archetype, f"group {group.name} needs five statistics")
        if list(group.value) != sorted(group.value):
            _fail(archetype, f"group {group.name} statistics are out of order")


def _validate_heatmap(archetype, data):
    expected = {(xi, yi) for yi in range(len(data.y_labels)) for xi in range(len(data.x_labels))}
    seen = [(xi, yi) for xi, yi, _ in data.cells]
    if len(seen) != len(set(seen)):
        _fail(archetype, "duplicate cells")
    if set(seen) != expected:
        _fail(archetype, "cells do not cover the label grid")


def _validate_graph(archetype, data):
    ids = {node.id for node in data.nodes}
    for edge in data.edges:
        if edge.source not in ids or edge.target not in ids:
            _fail(archetype, f"edge {edge.source}->{edge.target} references an unknown node")
    if not ids:
        return
    adjacency = {node_id: set() for node_id in ids}
    for edge in data.edges:
        adjacency[edge.source].add(edge.target)
        adjacency[edge.target].add(edge.source)
    start = data.nodes[0].id
    seen = {start}
    stack = [start]
    while stack:
        for nxt in adjacency[stack.pop()]:
            if nxt not in seen:
                seen.add(nxt)
                stack.append(nxt)
    if seen != ids:
        _fail(archetype, "graph is not connected")


def _validate_tree(archetype, node):
    if isinstance(node, Leaf):
        if not _is_number(node.value):
            _fail(archetype, f"leaf {node.name} has a non-numeric value")
        return
    if not isinstance(node, Internal):
        _fail(archetype, f"unexpected tree node {type(node).__name__}")
    for child in node.children:
        _validate_tree(archetype, child)


def _validate_sankey(archetype, data):
    index = {node.name: i for i, node in enumerate(data.nodes)}
    for link in data.links:
        if link.source not in index or link.target not in index:
            _fail(archetype, f"link {link.source}->{link.target} references an unknown node")
        if index[link.source] >= index[link.target]:
            _fail(archetype, f"link {link.source}->{link.target} points backwards")
        if link.value <= 0:
            _fail(archetype, f"link {link.source}->{link.target} is not positive")


def _validate_gauge(archetype, data):
    if not (data.min <= data.value <= data.max):
        _fail(archetype, f"value {data.value} outside [{data.min}, {data.max}]")


def _validate_calendar(archetype, data):
    days = [date.fromisoformat(day) for day, _ in data]
    for prev, cur in zip(days, days[1:]):
        if (cur - prev).days != 1:
            _fail(archetype, f"{cur.isoformat()} does not follow {prev.isoformat()}")


_VALIDATORS = {
    "line": _validate_line,
    "bar": _validate_bar,
    "pie": _validate_named_values,
    "scatter": _validate_scatter,
    "candlestick": _validate_candlestick,
    "radar": _validate_radar,
    "boxplot": _validate_boxplot,
    "heatmap": _validate_heatmap,
    "matrix": _validate_heatmap,
    "graph": _validate_graph,
    "tree": _validate_tree,
    "treemap": _validate_tree,
    "sunburst": _validate_tree,
    "sankey": _validate_sankey,
    "funnel": _validate_funnel,
    "gauge": _validate_gauge,
    "pictorialBar": _validate_named_values,
    "calendar": _validate_calendar,
}


def validate(archetype, data):
    validator = _VALIDATORS.get(archetype)
    if validator is None:
        _fail(archetype, "no schema registered")
    validator(archetype, data)
    return data


# ---------------------------------------------------------------------------
# plain <-> canonical


def _tree_to_plain(node):
    if isinstance(node, Leaf):
        return {"name": node.name, "value": node.value}
    return {"name": node.name, "children": [_tree_to_plain(c) for c in node.children]}


def as_plain(archetype, data):
    """Convert canonical data to the JSON-ready shape adapters consume."""
    if archetype == "line":
        return [{"name": s.name, "data": [[t, v] for t, v in s.data]} for s in data]
    if archetype == "bar":
        return {
            "categories": list(data.categories),
            "series": [{"name": s.name, "data": list(s.data)} for s in data.series],
        }
    if archetype in ("pie", "funnel", "pictorialBar"):
        return [{"name": item.name, "value": item.value} for item in data]
    if archetype == "scatter":
        return [[x, y] for x, y in data]
    if archetype == "candlestick":
        return [[c.time, c.open, c.high, c.low, c.close] for c in data]
    if archetype == "radar":
        return {
            "indicators": [{"name": i.name, "max": i.max} for i in data.indicators],
            "series": [{"name": s.name, "value": list(s.value)} for s in data.series],
        }
    if archetype == "boxplot":
        return [{"name": g.name, "value": list(g.value)} for g in data]
    if archetype in ("heatmap", "matrix"):
        return {
            "xLabels": list(data.x_labels),
            "yLabels": list(data.y_labels),
            "data": [[xi, yi, v] for xi, yi, v in data.cells],
        }
    if archetype == "graph":
        return {
            "nodes": [{"id": n.id, "name": n.name, "value": n.value} for n in data.nodes],
            "links": [{"source": e.source, "target": e.target, "value": e.weight} for e in data.edges],
        }
    if archetype in ("tree", "treemap", "sunburst"):
        return _tree_to_plain(data)
    if archetype == "sankey":
        return {
            "nodes": [{"name": n.name} for n in data.nodes],
            "links": [{"source": l.source, "target": l.target, "value": l.value} for l in data.links],
        }
    if archetype == "gauge":
        return {"value": data.value, "min": data.min, "max": data.max}
    if archetype == "calendar":
        return [[day, value] for day, value in data]
    _fail(archetype, "no schema registered")


def _num(archetype, value):
    if not _is_number(value):
        _fail(archetype, f"expected a number, got {value!r}")
    return value


def _seq(archetype, value, what):
    if not isinstance(value, (list, tuple)):
        _fail(archetype, f"{what} must be a list")
    return value


def _field(archetype, obj, key):
    if not isinstance(obj, dict) or key not in obj:
        _fail(archetype, f"missing field {key!r}")
    return obj[key]


def _tree_from_plain(archetype, obj):
    name = str(_field(archetype, obj, "name"))
    children = obj.get("children")
    if children:
        if "value" in obj and obj["value"] is not None:
            _fail(archetype, f"node {name} has both children and a value")
        return Internal(name, tuple(_tree_from_plain(archetype, c)
                                    for c in _seq(archetype, children, "children")))
    return Leaf(name, _num(archetype, _field(archetype, obj, "value")))


def _named_values(archetype, obj):
    return tuple(
        NamedValue(str(_field(archetype, item, "name")), _num(archetype, _field(archetype, item, "value")))
        for item in _seq(archetype, obj, "items")
    )


def _parse_plain(archetype, obj):
    if archetype == "line":
        out = []
        for series in _seq(archetype, obj, "series"):
            pairs = _seq(archetype, _field(archetype, series, "data"), "data")
            data = []
            for pair in pairs:
                if len(_seq(archetype, pair, "point")) != 2:
                    _fail(archetype, "points must be [timestamp, value]")
                data.append((_num(archetype, pair[0]), _num(archetype, pair[1])))
            out.append(LineSeries(str(series.get("name", "")), tuple(data)))
        return tuple(out)
    if archetype == "bar":
        categories = tuple(str(c) for c in _seq(archetype, _field(archetype, obj, "categories"), "categories"))
        series = []
        for s in _seq(archetype, _field(archetype, obj, "series"), "series"):
            values = _seq(archetype, _field(archetype, s, "data"), "data")
            series.append(BarSeries(str(s.get("name", "")), tuple(_num(archetype, v) for v in values)))
        return BarData(categories, tuple(series))
    if archetype in ("pie", "funnel", "pictorialBar"):
        return _named_values(archetype, obj)
    if archetype == "scatter":
        points = []
        for point in _seq(archetype, obj, "points"):
            if len(_seq(archetype, point, "point")) != 2:
                _fail(archetype, "points must be [x, y]")
            points.append((_num(archetype, point[0]), _num(archetype, point[1])))
        return tuple(points)
    if archetype == "candlestick":
        rows = []
        for row in _seq(archetype, obj, "rows"):
            if len(_seq(archetype, row, "row")) != 5:
                _fail(archetype, "rows must be [time, open, high, low, close]")
            rows.append(Candle(*(_num(archetype, v) for v in row)))
        return tuple(rows)
    if archetype == "radar":
        indicators = tuple(
            RadarIndicator(str(_field(archetype, i, "name")), _num(archetype, _field(archetype, i, "max")))
            for i in _seq(archetype, _field(archetype, obj, "indicators"), "indicators")
        )
        series = []
        for s in _seq(archetype, _field(archetype, obj, "series"), "series"):
            values = _seq(archetype, _field(archetype, s, "value"), "value")
            series.append(RadarSeries(str(s.get("name", "")), tuple(_num(archetype, v) for v in values)))
        return RadarData(indicators, tuple(series))
    if archetype == "boxplot":
        groups = []
        for group in _seq(archetype, obj, "groups"):
            stats = _seq(archetype, _field(archetype, group, "value"), "value")
            if len(stats) != 5:
                _fail(archetype, "boxplot groups need [min, q1, median, q3, max]")
            groups.append(BoxGroup(str(group.get("name", "")), tuple(_num(archetype, v) for v in stats)))
        return tuple(groups)
    if archetype in ("heatmap", "matrix"):
        cells = []
        for cell in _seq(archetype, _field(archetype, obj, "data"), "data"):
            if len(_seq(archetype, cell, "cell")) != 3:
                _fail(archetype, "cells must be [xIndex, yIndex, value]")
            cells.append((int(_num(archetype, cell[0])), int(_num(archetype, cell[1])), _num(archetype, cell[2])))
        return HeatmapData(
            tuple(str(l) for l in _seq(archetype, _field(archetype, obj, "xLabels"), "xLabels")),
            tuple(str(l) for l in _seq(archetype, _field(archetype, obj, "yLabels"), "yLabels")),
            tuple(cells),
        )
    if archetype == "graph":
        nodes = tuple(
            GraphNode(str(_field(archetype, n, "id")), str(n.get("name", n["id"])), n.get("value", 1))
            for n in _seq(archetype, _field(archetype, obj, "nodes"), "nodes")
        )
        edges = tuple(
            GraphEdge(str(_field(archetype, e, "source")), str(_field(archetype, e, "target")), e.get("value", 1))
            for e in _seq(archetype, _field(archetype, obj, "links"), "links")
        )
        return GraphData(nodes, edges)
    if archetype in ("tree", "treemap", "sunburst"):
        return _tree_from_plain(archetype, obj)
    if archetype == "sankey":
        nodes = tuple(SankeyNode(str(_field(archetype, n, "name")))
                      for n in _seq(archetype, _field(archetype, obj, "nodes"), "nodes"))
        links = tuple(
            SankeyLink(str(_field(archetype, l, "source")), str(_field(archetype, l, "target")),
                       _num(archetype, _field(archetype, l, "value")))
            for l in _seq(archetype, _field(archetype, obj, "links"), "links")
        )
        return SankeyData(nodes, links)
    if archetype == "gauge":
        return GaugeData(
            _num(archetype, _field(archetype, obj, "value")),
            _num(archetype, _field(archetype, obj, "min")),
            _num(archetype, _field(archetype, obj, "max")),
        )
    if archetype == "calendar":
        days = []
        for row in _seq(archetype, obj, "days"):
            if len(_seq(archetype, row, "day")) != 2:
                _fail(archetype, "days must be [YYYY-MM-DD, value]")
            try:
                date.fromisoformat(str(row[0]))
            except ValueError:
                _fail(archetype, f"bad ISO date {row[0]!r}")
            days.append((str(row[0]), _num(archetype, row[1])))
        return tuple(days)
    _fail(archetype, "no schema registered")


_CANONICAL = {
    "bar": BarData,
    "radar": RadarData,
    "heatmap": HeatmapData,
    "matrix": HeatmapData,
    "graph": GraphData,
    "tree": (Leaf, Internal),
    "treemap": (Leaf, Internal),
    "sunburst": (Leaf, Internal),
    "sankey": SankeyData,
    "gauge": GaugeData,
}

# archetypes whose canonical form is a sequence of these records
_CANONICAL_ITEMS = {
    "line": LineSeries,
    "pie": NamedValue,
    "funnel": NamedValue,
    "pictorialBar": NamedValue,
    "candlestick": Candle,
    "boxplot": BoxGroup,
}


def _is_canonical(archetype, obj):
    if archetype in _CANONICAL:
        return isinstance(obj, _CANONICAL[archetype])
    item_type = _CANONICAL_ITEMS.get(archetype)
    return item_type is not None and isinstance(obj, (list, tuple)) and any(
        isinstance(item, item_type) for item in obj)


def from_plain(archetype, obj):
    """Build canonical data from its plain form.

    Objects that are already canonical are re-checked through their plain form
    and then passed through unchanged, so callers can hand either form to the
    renderer. A sequence mixing records and plain items is rejected.
    """
    if not _is_canonical(archetype, obj):
        return _parse_plain(archetype, obj)
    try:
        plain = as_plain(archetype, obj)
    except (AttributeError, TypeError, ValueError) as exc:
        _fail(archetype, f"malformed {type(obj).__name__}: {exc}")
    _parse_plain(archetype, plain)
    return tuple(obj) if isinstance(obj, list) else obj
