"""Immediate-mode drawing strategies.

Every strategy reads the current data and the surface's current transforms
on each call and keeps nothing afterwards, so re-rendering after a resize is
just another call with a new surface. Strategies return the number of
primitives they issued; zero means nothing was drawn.
"""

import math
from datetime import date, datetime, timezone

from .sampling import round_half_up
from .schemas import BarData, BarSeries, from_plain

PALETTE = [
    "#2563eb", "#16a34a", "#dc2626", "#9333ea", "#f59e0b",
    "#0d9488", "#be123c", "#0891b2", "#f472b6", "#475569",
]
BULLISH = "#16a34a"
BEARISH = "#dc2626"

BAR_GROUP_FRACTION = 0.8
SINGLE_CATEGORY_GAP = 60.0
SCATTER_RADIUS = 4.0
PIE_RADIUS_FRACTION = 0.35
PIE_LABEL_FRACTION = 0.7
CANDLE_WIDTH = 8.0
BOX_WIDTH = 40.0
BOX_FILL = "#e3f2fd"
BOX_STROKE = "#666666"
GAUGE_BAR_HEIGHT = 30.0
GAUGE_TRACK = "#f0f0f0"
GAUGE_TEXT = "#333333"


def series_color(index):
    return PALETTE[index % len(PALETTE)]


def draw_bar(data, surface):
    """Grouped bars: one group per category, one bar per series.

    The group covers 80% of one category step; each series gets an equal
    slice of it, offset left-to-right by series index. Bars grow from the
    pixel position of value 0.
    """
    data = from_plain("bar", data)
    n = len(data.categories)
    s_count = len(data.series)
    if n == 0 or s_count == 0:
        return 0

    if n > 1:
        gap = surface.to_pixel_x(1) - surface.to_pixel_x(0)
    else:
        gap = SINGLE_CATEGORY_GAP
    group_width = abs(gap) * BAR_GROUP_FRACTION
    bar_width = group_width / s_count
    # keep neighbouring bars apart without ever going negative
    drawn_width = bar_width - min(2.0, bar_width / 4)
    y_zero = surface.to_pixel_y(0)

    count = 0
    for i in range(n):
        left_start = surface.to_pixel_x(i) - group_width / 2
        for s, series in enumerate(data.series):
            if i >= len(series.data) or series.data[i] is None:
                continue
            y_pos = surface.to_pixel_y(series.data[i])
            surface.fill_rect(
                left_start + s * bar_width,
                min(y_pos, y_zero),
                drawn_width,
                abs(y_zero - y_pos),
                series_color(s),
            )
            count += 1
    return count


def _single_series_bar(archetype, data):
    items = from_plain(archetype, data)
    return BarData(
        tuple(item.name for item in items),
        (BarSeries(archetype, tuple(item.value for item in items)),) if items else (),
    )


def draw_funnel(data, surface):
    return draw_bar(_single_series_bar("funnel", data), surface)


def draw_pictorial_bar(data, surface):
    return draw_bar(_single_series_bar("pictorialBar", data), surface)


def draw_scatter(data, surface):
    points = from_plain("scatter", data)
    for x, y in points:
        surface.fill_arc(surface.to_pixel_x(x), surface.to_pixel_y(y), SCATTER_RADIUS, 0, 2 * math.pi,
                         PALETTE[0])
    return len(points)


def draw_pie(data, surface):
    """Wedges clockwise from 12 o'clock, labelled at 70% radius."""
    slices = from_plain("pie", data)
    total = sum(item.value for item in slices if item.value > 0)
    if total <= 0:
        return 0
    bb = surface.bbox
    cx, cy = bb.center
    radius = min(bb.width, bb.height) * PIE_RADIUS_FRACTION

    count = 0
    angle = -math.pi / 2
    for index, item in enumerate(slices):
        if item.value <= 0:
            continue
        sweep = item.value / total * 2 * math.pi
        surface.fill_arc(cx, cy, radius, angle, angle + sweep, series_color(index), wedge=True)
        mid = angle + sweep / 2
        surface.text(cx + math.cos(mid) * radius * PIE_LABEL_FRACTION,
                     cy + math.sin(mid) * radius * PIE_LABEL_FRACTION,
                     item.name, "#ffffff", size=12)
        count += 2
        angle += sweep
    return count


def draw_candlestick(data, surface):
    candles = from_plain("candlestick", data)
    for candle in candles:
        x = surface.to_pixel_x(candle.time)
        open_y = surface.to_pixel_y(candle.open)
        close_y = surface.to_pixel_y(candle.close)
        color = BULLISH if candle.bullish else BEARISH
        surface.line(x, surface.to_pixel_y(candle.high), x, surface.to_pixel_y(candle.low), color)
        surface.fill_rect(
            x - CANDLE_WIDTH / 2,
            min(open_y, close_y),
            CANDLE_WIDTH,
            max(abs(open_y - close_y), 1.0),
            color,
        )
    return 2 * len(candles)


def draw_boxplot(data, surface):
    groups = from_plain("boxplot", data)
    half = BOX_WIDTH / 2
    cap = BOX_WIDTH / 4
    count = 0
    for i, group in enumerate(groups):
        x = surface.to_pixel_x(i)
        min_y, q1_y, med_y, q3_y, max_y = (surface.to_pixel_y(v) for v in group.value)
        top = min(q1_y, q3_y)
        height = abs(q1_y - q3_y)
        surface.fill_rect(x - half, top, BOX_WIDTH, height, BOX_FILL)
        surface.stroke_rect(x - half, top, BOX_WIDTH, height, BOX_STROKE)
        surface.line(x - half, med_y, x + half, med_y, BOX_STROKE)
        surface.line(x, q3_y, x, max_y, BOX_STROKE)
        surface.line(x, q1_y, x, min_y, BOX_STROKE)
        surface.line(x - cap, max_y, x + cap, max_y, BOX_STROKE)
        surface.line(x - cap, min_y, x + cap, min_y, BOX_STROKE)
        count += 7
    return count


def heat_color(value, lo, hi):
    t = (value - lo) / (hi - lo) if hi > lo else 0.0
    t = min(max(t, 0.0), 1.0)
    red = round_half_up(t * 255)
    blue = round_half_up((1 - t) * 255)
    return f"#{red:02x}64{blue:02x}"


def draw_heatmap(data, surface, archetype="heatmap"):
    """Even grid over the bounding box; colors span the observed value range."""
    data = from_plain(archetype, data)
    if not data.x_labels or not data.y_labels or not data.cells:
        return 0
    bb = surface.bbox
    cell_w = bb.width / len(data.x_labels)
    cell_h = bb.height / len(data.y_labels)
    values = [v for _, _, v in data.cells]
    lo, hi = min(values), max(values)
    for xi, yi, value in data.cells:
        surface.fill_rect(bb.left + xi * cell_w, bb.top + yi * cell_h, cell_w, cell_h, heat_color(value, lo, hi))
    return len(data.cells)


def draw_matrix(data, surface):
    return draw_heatmap(data, surface, archetype="matrix")


def draw_gauge(data, surface):
    gauge = from_plain("gauge", data)
    span = gauge.max - gauge.min
    percent = (gauge.value - gauge.min) / span if span > 0 else 0.0
    percent = min(max(percent, 0.0), 1.0)
    bb = surface.bbox
    y = bb.top + bb.height / 2 - GAUGE_BAR_HEIGHT / 2
    surface.fill_rect(bb.left, y, bb.width, GAUGE_BAR_HEIGHT, GAUGE_TRACK)
    surface.fill_rect(bb.left, y, bb.width * percent, GAUGE_BAR_HEIGHT, PALETTE[0])
    surface.text(bb.left + bb.width / 2, y + GAUGE_BAR_HEIGHT / 2,
                 f"{gauge.value:.1f} / {gauge.max:g}", GAUGE_TEXT, size=14)
    return 3


def _polyline(surface, xs, ys, color):
    count = 0
    pts = [(surface.to_pixel_x(x), surface.to_pixel_y(y)) for x, y in zip(xs, ys)]
    for (x0, y0), (x1, y1) in zip(pts, pts[1:]):
        surface.line(x0, y0, x1, y1, color, line_width=2.0)
        count += 1
    return count


def draw_line(data, surface):
    count = 0
    for index, series in enumerate(from_plain("line", data)):
        count += _polyline(surface, [t for t, _ in series.data], [v for _, v in series.data],
                           series_color(index))
    return count


def day_to_ms(day):
    d = date.fromisoformat(day)
    return int(datetime(d.year, d.month, d.day, tzinfo=timezone.utc).timestamp() * 1000)


def draw_calendar(data, surface):
    days = from_plain("calendar", data)
    return _polyline(surface, [day_to_ms(d) for d, _ in days], [v for _, v in days], PALETTE[0])


# ---------------------------------------------------------------------------
# axis domains for hosts building transforms


def _padded(lo, hi, fraction):
    pad = fraction * (hi - lo + 1)
    return lo - pad, hi + pad


def _category_domain(n):
    return -0.5, max(n, 1) - 0.5


def _value_domain(values, include_zero=False):
    values = [v for v in values if v is not None]
    if not values:
        return 0.0, 1.0
    lo, hi = float(min(values)), float(max(values))
    lo, hi = _padded(lo, hi, 0.1)
    if include_zero:
        lo, hi = min(lo, 0.0), max(hi, 0.0)
    return lo, hi


def data_extent(archetype, data):
    """Padded ``(x_range, y_range)`` value domains for ``data``.

    Archetypes laid out purely from the bounding box (pie, gauge, heat grids)
    get unit domains.
    """
    unit = ((0.0, 1.0), (0.0, 1.0))
    if archetype in ("bar", "funnel", "pictorialBar"):
        bars = from_plain("bar", data) if archetype == "bar" else _single_series_bar(archetype, data)
        values = [v for s in bars.series for v in s.data]
        return _category_domain(len(bars.categories)), _value_domain(values, include_zero=True)
    if archetype == "scatter":
        points = from_plain("scatter", data)
        if not points:
            return unit
        xs = [x for x, _ in points]
        return _padded(min(xs), max(xs), 0.05), _value_domain([y for _, y in points])
    if archetype == "candlestick":
        candles = from_plain("candlestick", data)
        if not candles:
            return unit
        step = candles[1].time - candles[0].time if len(candles) > 1 else 1
        x_range = (candles[0].time - step, candles[-1].time + step)
        return x_range, _value_domain([c.low for c in candles] + [c.high for c in candles])
    if archetype == "boxplot":
        groups = from_plain("boxplot", data)
        return _category_domain(len(groups)), _value_domain([v for g in groups for v in g.value])
    if archetype == "line":
        series = from_plain("line", data)
        times = [t for s in series for t, _ in s.data]
        if not times:
            return unit
        return (min(times), max(times)), _value_domain([v for s in series for _, v in s.data])
    if archetype == "calendar":
        days = from_plain("calendar", data)
        if not days:
            return unit
        return (day_to_ms(days[0][0]), day_to_ms(days[-1][0])), _value_domain([v for _, v in days])
    return unit


STRATEGIES = {
    "line": draw_line,
    "bar": draw_bar,
    "pie": draw_pie,
    "scatter": draw_scatter,
    "candlestick": draw_candlestick,
    "boxplot": draw_boxplot,
    "heatmap": draw_heatmap,
    "matrix": draw_matrix,
    "funnel": draw_funnel,
    "gauge": draw_gauge,
    "pictorialBar": draw_pictorial_bar,
    "calendar": draw_calendar,
}
