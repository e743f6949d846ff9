#!/usr/bin/env python3
import argparse
import json
import logging
import uuid
from collections import Counter
from pathlib import Path

import numpy as np

from .errors import SynthChartError
from .registry import archetype_registry
from .sampling import rand_choice
from .schemas import as_plain
from .strategies import data_extent
from .surface import MatplotlibSurface, RecordingSurface

logger = logging.getLogger(__name__)

DEFAULT_SIZES = [
    (800, 600),
    (900, 700),
    (1000, 700),
    (1200, 800),
]

BACKGROUNDS = ["white", "#f7f7f7", "#fcfcfc"]


def weighted_choice(rng, choices):
    items = list(choices.items())
    labels = [item[0] for item in items]
    weights = np.array([item[1] for item in items], dtype=float)
    weights = weights / weights.sum()
    idx = rng.choice(len(labels), p=weights)
    return labels[int(idx)]


def parse_weights(text, known):
    """Parse ``name:value,name:value`` into a dict, dropping unknown names."""
    out = {}
    for part in (text or "").split(","):
        part = part.strip()
        if not part:
            continue
        if ":" not in part:
            logger.warning("Ignoring malformed weight %r", part)
            continue
        name, value = part.split(":", 1)
        name = name.strip()
        if name not in known:
            logger.warning("Ignoring weight for unknown archetype %r", name)
            continue
        try:
            out[name] = float(value)
        except ValueError:
            logger.warning("Ignoring non-numeric weight %r", part)
    return out


def load_params(value):
    """Per-archetype config overrides from a JSON string or a JSON file path."""
    if not value:
        return {}
    path = Path(value)
    text = path.read_text() if path.exists() else value
    params = json.loads(text)
    if not isinstance(params, dict):
        raise SynthChartError("--params must be a JSON object keyed by archetype")
    return params


def render_png(archetype, data, path, width, height, dpi=100, margins=None, background="white"):
    x_range, y_range = data_extent(archetype, data)
    show_axes = x_range != (0.0, 1.0) or y_range != (0.0, 1.0)
    with MatplotlibSurface(width, height, x_range, y_range, dpi=dpi, margins=margins,
                           background=background, show_axes=show_axes, title=archetype) as surface:
        outcome = archetype_registry.render(archetype, data, surface)
        if outcome.drawn:
            surface.save(path)
    return outcome


def record_commands(archetype, data, width, height, margins=None):
    x_range, y_range = data_extent(archetype, data)
    surface = RecordingSurface.for_frame(width, height, x_range, y_range, margins)
    outcome = archetype_registry.render(archetype, data, surface)
    return outcome, {
        "archetype": archetype,
        "bbox": {"left": surface.bbox.left, "top": surface.bbox.top,
                 "width": surface.bbox.width, "height": surface.bbox.height},
        "x_range": list(x_range),
        "y_range": list(y_range),
        "commands": [c.as_dict() for c in surface.commands],
    }


def build_parser():
    parser = argparse.ArgumentParser(description="Synthetic chart dataset generator and renderer.")
    parser.add_argument("--count", type=int, default=18)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--types", type=str, default=None,
                        help="Comma-separated archetypes to draw from (default: all).")
    parser.add_argument("--type-weights", type=str, default=None,
                        help="Override archetype weights, e.g. line:0.4,bar:0.2,gauge:0.1")
    parser.add_argument("--params", type=str, default=None,
                        help='JSON (or path to JSON) of per-archetype overrides, e.g. {"line": {"points": 50}}')
    parser.add_argument("--data", type=Path, default=Path("synthetic_data/data"))
    parser.add_argument("--images", type=Path, default=Path("synthetic_data/images"))
    parser.add_argument("--labels", type=Path, default=Path("synthetic_data/labels"),
                        help="Where to write pixel-space draw commands per rendered dataset.")
    parser.add_argument("--manifest", type=Path, default=Path("synthetic_data/manifest.jsonl"))
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--dpi", type=int, default=100)
    parser.add_argument("--no-render", action="store_true",
                        help="Only write canonical data, skip PNGs and labels.")
    parser.add_argument("--min", dest="minimums", type=str, default=None,
                        help="Minimum number of datasets per archetype, e.g. bar:3,boxplot:2")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    known = archetype_registry.list_archetypes()
    if args.types:
        types = [t.strip() for t in args.types.split(",") if t.strip()]
        unknown = [t for t in types if t not in known]
        if unknown:
            raise SystemExit(f"Unknown archetype(s): {', '.join(unknown)}. Known: {', '.join(known)}")
    else:
        types = known

    weights = {t: 1.0 for t in types}
    if args.type_weights:
        custom = parse_weights(args.type_weights, types)
        if custom:
            weights = custom
    weights = {k: v for k, v in weights.items() if v > 0} or {types[0]: 1.0}

    targets = parse_weights(args.minimums, types) if args.minimums else {}
    targets = {k: int(v) for k, v in targets.items() if v > 0}

    params = load_params(args.params)
    rng = np.random.default_rng(args.seed)

    args.data.mkdir(parents=True, exist_ok=True)
    if not args.no_render:
        args.images.mkdir(parents=True, exist_ok=True)
        args.labels.mkdir(parents=True, exist_ok=True)

    manifest_handle = None
    if args.manifest:
        args.manifest.parent.mkdir(parents=True, exist_ok=True)
        manifest_handle = args.manifest.open("w")

    generated = 0
    rendered = 0
    type_counts = Counter()
    try:
        while generated < args.count:
            forced = None
            if targets:
                remaining = args.count - generated
                needs = {t: targets[t] - type_counts.get(t, 0) for t in targets}
                needs = {t: n for t, n in needs.items() if n > 0}
                if needs:
                    need_total = sum(needs.values())
                    if remaining <= need_total:
                        forced = weighted_choice(rng, needs)
                    elif rng.random() < min(1.0, need_total / float(remaining)):
                        forced = weighted_choice(rng, needs)
            archetype = forced or weighted_choice(rng, weights)

            data = archetype_registry.generate(archetype, params.get(archetype) or {}, rng)
            stem = f"synth_{uuid.uuid4().hex}"
            with (args.data / f"{stem}.json").open("w") as f:
                json.dump({"archetype": archetype, "data": as_plain(archetype, data)}, f)

            record = {"id": stem, "archetype": archetype, "rendered": False}
            if not args.no_render and archetype_registry.is_supported(archetype):
                if args.width and args.height:
                    width, height = args.width, args.height
                else:
                    width, height = rand_choice(rng, DEFAULT_SIZES)
                margins = {
                    "l": int(rng.uniform(70, 110)),
                    "r": int(rng.uniform(20, 50)),
                    "t": int(rng.uniform(30, 60)),
                    "b": int(rng.uniform(60, 90)),
                }
                image = args.images / f"{stem}.png"
                outcome = render_png(archetype, data, image, width, height, dpi=args.dpi, margins=margins,
                                     background=rand_choice(rng, BACKGROUNDS))
                _, labels = record_commands(archetype, data, width, height, margins)
                with (args.labels / f"{stem}.json").open("w") as f:
                    json.dump(labels, f, indent=2)
                record.update({
                    "rendered": outcome.drawn,
                    "image": image.name if outcome.drawn else None,
                    "width": width,
                    "height": height,
                    "primitives": outcome.primitives,
                })
                rendered += int(outcome.drawn)
            elif not args.no_render:
                logger.info("%s has no rendering strategy; wrote canonical data only", archetype)

            generated += 1
            type_counts[archetype] += 1
            if manifest_handle:
                manifest_handle.write(json.dumps(record) + "\n")
    finally:
        if manifest_handle:
            manifest_handle.close()

    print(f"Generated {generated} datasets into {args.data}; rendered {rendered} images into {args.images}")
    return 0


if __name__ == "__main__":
    main()
