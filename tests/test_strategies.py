import math

import pytest

from synthetic_chart_pipeline import strategies
from synthetic_chart_pipeline.registry import render
from synthetic_chart_pipeline.schemas import (
    BarData,
    BarSeries,
    BoxGroup,
    Candle,
    GaugeData,
    HeatmapData,
    LineSeries,
    NamedValue,
)


def _bars():
    return BarData(("a", "b", "c"), (BarSeries("S1", (10.0, 20.0, 30.0)), BarSeries("S2", (5.0, -15.0, 25.0))))


def test_bar_draws_one_rect_per_series_and_category(make_surface):
    surface = make_surface(width=300, height=200, x_range=(-0.5, 2.5), y_range=(-20, 40))
    outcome = render("bar", _bars(), surface)
    rects = surface.of("fill_rect")
    assert outcome.drawn
    assert len(rects) == 6
    assert outcome.primitives == 6


def test_bar_groups_do_not_overlap(make_surface):
    surface = make_surface(width=300, height=200, x_range=(-0.5, 2.5), y_range=(-20, 40))
    strategies.draw_bar(_bars(), surface)
    rects = [c.args for c in surface.of("fill_rect")]
    # rects are emitted category by category, series by series
    for i in range(3):
        first, second = rects[2 * i], rects[2 * i + 1]
        assert first[0] + first[2] <= second[0]
        # group spans 80% of the 100px category step, 40px per series
        assert second[0] - first[0] == pytest.approx(40.0)
        center = surface.to_pixel_x(i)
        assert first[0] == pytest.approx(center - 40.0)


def test_bar_heights_anchor_at_zero(make_surface):
    surface = make_surface(width=300, height=200, x_range=(-0.5, 2.5), y_range=(-20, 40))
    strategies.draw_bar(_bars(), surface)
    zero = surface.to_pixel_y(0)
    rects = [c.args for c in surface.of("fill_rect")]
    positive = rects[0]
    assert positive[1] + positive[3] == pytest.approx(zero)
    assert positive[3] == pytest.approx(abs(surface.to_pixel_y(10) - zero))
    negative = rects[3]  # S2 at category b is -15
    assert negative[1] == pytest.approx(zero)
    assert negative[3] == pytest.approx(abs(surface.to_pixel_y(-15) - zero))


def test_single_category_bar_uses_fixed_gap(make_surface):
    surface = make_surface(x_range=(-0.5, 0.5), y_range=(0, 10))
    data = BarData(("only",), (BarSeries("S1", (3.0,)), BarSeries("S2", (4.0,))))
    strategies.draw_bar(data, surface)
    rects = [c.args for c in surface.of("fill_rect")]
    assert rects[1][0] - rects[0][0] == pytest.approx(60 * 0.8 / 2)


def test_funnel_and_pictorial_bar_render_as_single_series(make_surface):
    stages = (NamedValue("Stage1", 100), NamedValue("Stage2", 80), NamedValue("Stage3", 50))
    surface = make_surface(x_range=(-0.5, 2.5), y_range=(0, 120))
    assert render("funnel", stages, surface).primitives == 3
    surface = make_surface(x_range=(-0.5, 2.5), y_range=(0, 120))
    assert render("pictorialBar", [{"name": "P1", "value": 4}, {"name": "P2", "value": 9}], surface).drawn


def test_scatter_markers_follow_both_transforms(make_surface):
    surface = make_surface(width=100, height=100, x_range=(0, 10), y_range=(0, 10))
    strategies.draw_scatter(((0, 0), (10, 10), (5, 5)), surface)
    arcs = [c.args for c in surface.of("fill_arc")]
    assert [(a[0], a[1]) for a in arcs] == [(0.0, 100.0), (100.0, 0.0), (50.0, 50.0)]
    assert all(a[2] == strategies.SCATTER_RADIUS for a in arcs)
    assert all(a[4] - a[3] == pytest.approx(2 * math.pi) for a in arcs)


def test_pie_wedges_start_at_twelve_and_close_the_circle(make_surface):
    surface = make_surface(left=10, top=20, width=400, height=200)
    slices = [NamedValue("a", 1), NamedValue("b", 1), NamedValue("c", 2)]
    strategies.draw_pie(slices, surface)
    wedges = [c for c in surface.of("fill_arc")]
    assert all(w.style["wedge"] for w in wedges)
    cx, cy, radius, start, _ = wedges[0].args
    assert (cx, cy) == (210.0, 120.0)
    assert radius == pytest.approx(200 * 0.35)
    assert start == pytest.approx(-math.pi / 2)
    assert wedges[-1].args[4] == pytest.approx(-math.pi / 2 + 2 * math.pi)
    assert wedges[2].args[4] - wedges[2].args[3] == pytest.approx(math.pi)

    labels = surface.of("text")
    assert [t.args[2] for t in labels] == ["a", "b", "c"]
    # first slice spans a quarter turn from 12 o'clock, its label sits at 45 degrees
    mid = -math.pi / 2 + math.pi / 4
    assert labels[0].args[0] == pytest.approx(cx + math.cos(mid) * radius * 0.7)
    assert labels[0].args[1] == pytest.approx(cy + math.sin(mid) * radius * 0.7)


def test_pie_with_zero_total_draws_nothing(make_surface):
    surface = make_surface()
    outcome = render("pie", [{"name": "a", "value": 0}], surface)
    assert not outcome.drawn
    assert surface.commands == []


def test_candlestick_colors_and_minimum_body(make_surface):
    surface = make_surface(width=200, height=100, x_range=(0, 4), y_range=(0, 100))
    candles = (Candle(1, 10, 30, 5, 20), Candle(2, 20, 25, 10, 15), Candle(3, 50, 50, 50, 50))
    strategies.draw_candlestick(candles, surface)
    wicks = surface.of("line")
    bodies = surface.of("fill_rect")
    assert [w.style["color"] for w in wicks] == [strategies.BULLISH, strategies.BEARISH, strategies.BULLISH]
    x0, y0, x1, y1 = wicks[0].args
    assert x0 == x1 == surface.to_pixel_x(1)
    assert (y0, y1) == (surface.to_pixel_y(30), surface.to_pixel_y(5))
    body = bodies[0].args
    assert body[2] == strategies.CANDLE_WIDTH
    assert body[0] == pytest.approx(surface.to_pixel_x(1) - 4)
    assert body[1] == pytest.approx(surface.to_pixel_y(20))
    assert body[3] == pytest.approx(10.0)
    assert bodies[2].args[3] == 1.0


def test_boxplot_geometry(make_surface):
    surface = make_surface(width=200, height=100, x_range=(-0.5, 1.5), y_range=(0, 100))
    groups = (BoxGroup("G1", (10, 20, 30, 40, 50)), BoxGroup("G2", (0, 25, 50, 75, 100)))
    outcome = render("boxplot", groups, surface)
    assert outcome.primitives == 14
    fills = surface.of("fill_rect")
    strokes = surface.of("stroke_rect")
    assert len(fills) == len(strokes) == 2
    x = surface.to_pixel_x(0)
    box = fills[0].args
    assert box == pytest.approx((x - 20, surface.to_pixel_y(40), 40, 20))
    lines = [c.args for c in surface.of("line")][:5]
    median, upper, lower, cap_hi, cap_lo = lines
    assert median == pytest.approx((x - 20, 70, x + 20, 70))
    assert upper == pytest.approx((x, 60, x, 50))
    assert lower == pytest.approx((x, 80, x, 90))
    assert cap_hi == pytest.approx((x - 10, 50, x + 10, 50))
    assert cap_lo == pytest.approx((x - 10, 90, x + 10, 90))


def test_heatmap_cells_and_observed_range_colors(make_surface):
    surface = make_surface(left=10, top=10, width=120, height=60)
    heat = HeatmapData(("x1", "x2", "x3"), ("y1", "y2"),
                       ((0, 0, 40.0), (1, 0, 50.0), (2, 0, 60.0), (0, 1, 45.0), (1, 1, 55.0), (2, 1, 50.0)))
    strategies.draw_heatmap(heat, surface)
    cells = surface.of("fill_rect")
    assert len(cells) == 6
    assert cells[0].args == (10.0, 10.0, 40.0, 30.0)
    assert cells[4].args == (50.0, 40.0, 40.0, 30.0)
    # min and max come from the cells themselves, not a configured range
    assert cells[0].style["color"] == "#0064ff"
    assert cells[2].style["color"] == "#ff6400"
    assert cells[1].style["color"] == strategies.heat_color(50, 40, 60)


def test_heat_color_flat_range():
    assert strategies.heat_color(5, 5, 5) == "#0064ff"


def test_gauge_foreground_width(make_surface):
    surface = make_surface(width=200, height=100)
    outcome = render("gauge", GaugeData(50, 0, 100), surface)
    assert outcome.drawn
    track, bar = surface.of("fill_rect")
    assert track.args[2] == 200
    assert bar.args[2] == 100
    assert track.args[3] == bar.args[3] == strategies.GAUGE_BAR_HEIGHT
    assert track.args[1] == pytest.approx(50 - 15)
    label = surface.of("text")[0]
    assert label.args[2] == "50.0 / 100"
    assert label.args[:2] == (100.0, 50.0)


def test_gauge_accepts_plain_dict(make_surface):
    surface = make_surface(width=400, height=100)
    render("gauge", {"value": 30, "min": 20, "max": 40}, surface)
    assert surface.of("fill_rect")[1].args[2] == pytest.approx(200)


def test_line_and_calendar_draw_polylines(make_surface):
    surface = make_surface(x_range=(0, 2), y_range=(0, 10))
    line = [{"name": "L1", "data": [[0, 1], [1, 5], [2, 3]]}, {"name": "L2", "data": [[0, 2], [1, 2]]}]
    assert render("line", line, surface).primitives == 3
    surface = make_surface(x_range=(0, 10 ** 13), y_range=(0, 10))
    assert render("calendar", [["2024-01-01", 1], ["2024-01-02", 2]], surface).primitives == 1


@pytest.mark.parametrize("archetype,data", [
    ("bar", {"categories": ["a"]}),
    ("bar", {"categories": [], "series": []}),
    ("bar", None),
    ("scatter", [[1, 2, 3]]),
    ("scatter", []),
    ("pie", "not a list"),
    ("candlestick", [[1, 2, 3]]),
    ("boxplot", [{"name": "G1", "value": [1, 2]}]),
    ("heatmap", {"xLabels": [], "yLabels": [], "data": []}),
    ("matrix", {"xLabels": ["a"]}),
    ("gauge", {"value": "x", "min": 0, "max": 1}),
    ("line", [{"name": "L1", "data": [[1]]}]),
    ("calendar", [["not-a-date", 1]]),
    # already-built records get the same checks as plain input
    ("boxplot", (BoxGroup("G1", (1.0, 2.0)),)),
    ("gauge", GaugeData("x", 0, 1)),
    ("line", (LineSeries("L1", ((1,),)),)),
    ("bar", BarData(("a",), (BarSeries("S", ("x",)),))),
    ("candlestick", (Candle(1, "o", 2, 0, 1),)),
    ("heatmap", HeatmapData(("a",), ("b",), ((0, 0),))),
    ("pie", [NamedValue("a", 1), {"name": "b", "value": 2}]),
])
def test_malformed_or_empty_data_draws_nothing(archetype, data, make_surface):
    surface = make_surface()
    outcome = render(archetype, data, surface)
    assert outcome.supported
    assert not outcome.drawn
    assert surface.commands == []


def test_rerender_after_resize_rescales(make_surface):
    small = make_surface(width=100, height=50, x_range=(-0.5, 2.5), y_range=(-20, 40))
    large = make_surface(width=300, height=150, x_range=(-0.5, 2.5), y_range=(-20, 40))
    strategies.draw_bar(_bars(), small)
    strategies.draw_bar(_bars(), large)
    for a, b in zip(small.of("fill_rect"), large.of("fill_rect")):
        assert b.args[0] == pytest.approx(a.args[0] * 3)
        assert b.args[3] == pytest.approx(a.args[3] * 3)
