import logging

import pytest

from synthetic_chart_pipeline import (
    ArchetypeRegistry,
    UnknownArchetype,
    archetype_registry,
    generate,
    generate_bundle,
    list_archetypes,
    render,
    supported_archetypes,
)
from synthetic_chart_pipeline.schemas import BarData, HeatmapData

ALL = [
    "line", "bar", "pie", "scatter", "candlestick", "radar", "boxplot", "heatmap", "graph",
    "tree", "treemap", "sunburst", "sankey", "funnel", "gauge", "pictorialBar", "calendar", "matrix",
]


def test_all_eighteen_archetypes_registered():
    assert sorted(list_archetypes()) == sorted(ALL)


def test_supported_archetypes():
    supported = set(supported_archetypes())
    assert {"bar", "scatter", "pie", "candlestick", "boxplot", "heatmap", "matrix", "gauge"} <= supported
    assert supported.isdisjoint({"radar", "graph", "tree", "treemap", "sunburst", "sankey"})
    assert archetype_registry.is_supported("gauge")
    assert not archetype_registry.is_supported("sankey")
    assert not archetype_registry.is_supported("nope")


def test_generate_unknown_archetype_raises_with_name(rng):
    with pytest.raises(UnknownArchetype) as excinfo:
        generate("doughnut", {}, rng)
    assert excinfo.value.archetype == "doughnut"
    assert "doughnut" in str(excinfo.value)
    # still a KeyError for callers doing dict-style lookups
    assert isinstance(excinfo.value, KeyError)


@pytest.mark.parametrize("name", ALL)
def test_generate_every_archetype_with_defaults(name, rng):
    assert generate(name, None, rng) is not None


def test_generate_accepts_int_seed():
    assert generate("bar", {"categories": 3}, 42) == generate("bar", {"categories": 3}, 42)


def test_render_unsupported_reports_capability_gap(make_surface, rng, caplog):
    data = generate("sankey", {}, rng)
    surface = make_surface()
    with caplog.at_level(logging.INFO, logger="synthetic_chart_pipeline.registry"):
        outcome = render("sankey", data, surface)
    assert outcome.supported is False
    assert outcome.drawn is False
    assert outcome.reason == "no rendering strategy"
    assert surface.commands == []
    assert "sankey" in caplog.text


def test_render_unknown_archetype_does_not_raise(make_surface):
    surface = make_surface()
    outcome = render("doughnut", [], surface)
    assert not outcome.supported
    assert outcome.reason == "unknown archetype"


@pytest.mark.parametrize("name", ["line", "bar", "pie", "scatter", "candlestick", "boxplot",
                                  "heatmap", "matrix", "funnel", "gauge", "pictorialBar", "calendar"])
def test_generated_data_renders(name, rng, make_surface):
    from synthetic_chart_pipeline.strategies import data_extent

    data = generate(name, {}, rng)
    x_range, y_range = data_extent(name, data)
    surface = make_surface(width=640, height=480, x_range=x_range, y_range=y_range)
    outcome = render(name, data, surface)
    assert outcome.drawn
    assert outcome.primitives == len(surface.commands)


def test_duplicate_registration_rejected():
    reg = ArchetypeRegistry()
    reg.register("thing", lambda cfg, rng: ())
    with pytest.raises(ValueError):
        reg.register("thing", lambda cfg, rng: ())


def test_custom_archetype_registration(make_surface):
    reg = ArchetypeRegistry()
    calls = []

    def draw(data, surface):
        calls.append(data)
        surface.fill_rect(0, 0, 1, 1, "#000000")
        return 1

    reg.register("dot", lambda cfg, rng: ("x",), None)
    reg.register("square", lambda cfg, rng: ("x",), draw)
    assert reg.supported_archetypes() == ["square"]
    assert reg.render("square", "payload", make_surface()).drawn
    assert calls == ["payload"]
    assert not reg.render("dot", "payload", make_surface()).supported


def test_generate_bundle(rng):
    bundle = generate_bundle(["line", {"type": "bar", "config": {"categories": 12}}, 7, {"config": {}}], rng)
    assert set(bundle) == {"line", "bar"}
    assert isinstance(bundle["bar"], BarData)
    assert len(bundle["bar"].categories) == 12


def test_matrix_is_a_heatmap_alias(rng):
    assert isinstance(generate("matrix", {"x": 2, "y": 3}, rng), HeatmapData)
