"""Plot surfaces: value-to-pixel transforms plus drawing primitives.

Strategies in ``strategies`` only talk to the ``PlotSurface`` protocol. Two
implementations ship here: ``RecordingSurface`` keeps every primitive as a
``DrawCommand`` (tests, benchmarks, JSON dumps) and ``MatplotlibSurface``
rasterizes them with matplotlib's Agg backend.

Pixel coordinates have their origin at the top-left corner, y grows downward
and angles are radians measured clockwise from 3 o'clock.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

# Keep matplotlib caches in a writable location.
os.environ.setdefault("MPLCONFIGDIR", "/tmp/matplotlib")
os.environ.setdefault("XDG_CACHE_HOME", "/tmp")

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle, Wedge

DEFAULT_MARGINS = {"l": 80, "r": 30, "t": 40, "b": 70}


@dataclass(frozen=True)
class BoundingBox:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self):
        return self.left + self.width

    @property
    def bottom(self):
        return self.top + self.height

    @property
    def center(self):
        return self.left + self.width / 2, self.top + self.height / 2


def plot_box(width, height, margins=None):
    """Plotting area left inside a ``width`` x ``height`` frame by ``margins``."""
    margins = {**DEFAULT_MARGINS, **(margins or {})}
    plot_w = max(width - margins["l"] - margins["r"], 1)
    plot_h = max(height - margins["t"] - margins["b"], 1)
    return BoundingBox(float(margins["l"]), float(margins["t"]), float(plot_w), float(plot_h))


@dataclass(frozen=True)
class LinearScale:
    """Maps ``domain`` linearly onto the pixel interval ``pixels``.

    For a y scale pass ``pixels=(bottom, top)`` so larger values land higher.
    """

    domain: Tuple[float, float]
    pixels: Tuple[float, float]

    def __call__(self, value):
        d0, d1 = self.domain
        p0, p1 = self.pixels
        span = d1 - d0
        if span == 0:
            return (p0 + p1) / 2
        return p0 + (value - d0) / span * (p1 - p0)


class PlotSurface(Protocol):  # pragma: no cover - structural only
    bbox: BoundingBox

    def to_pixel_x(self, value: float) -> float:
        ...

    def to_pixel_y(self, value: float) -> float:
        ...

    def fill_rect(self, x: float, y: float, width: float, height: float, color: str) -> None:
        ...

    def stroke_rect(self, x: float, y: float, width: float, height: float, color: str,
                    line_width: float = 1.0) -> None:
        ...

    def line(self, x0: float, y0: float, x1: float, y1: float, color: str,
             line_width: float = 1.0) -> None:
        ...

    def fill_arc(self, cx: float, cy: float, radius: float, start: float, end: float,
                 color: str, wedge: bool = False) -> None:
        ...

    def text(self, x: float, y: float, text: str, color: str, size: float = 12,
             align: str = "center") -> None:
        ...


@dataclass(frozen=True)
class DrawCommand:
    op: str
    args: Tuple[Any, ...]
    style: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self):
        return {"op": self.op, "args": list(self.args), "style": dict(self.style)}


class RecordingSurface:
    def __init__(self, bbox, x_scale=None, y_scale=None):
        self.bbox = bbox
        self.x_scale = x_scale or LinearScale((0.0, 1.0), (bbox.left, bbox.right))
        self.y_scale = y_scale or LinearScale((0.0, 1.0), (bbox.bottom, bbox.top))
        self.commands: List[DrawCommand] = []

    @classmethod
    def for_frame(cls, width, height, x_range, y_range, margins=None):
        bbox = plot_box(width, height, margins)
        return cls(
            bbox,
            LinearScale(tuple(x_range), (bbox.left, bbox.right)),
            LinearScale(tuple(y_range), (bbox.bottom, bbox.top)),
        )

    def to_pixel_x(self, value):
        return float(self.x_scale(value))

    def to_pixel_y(self, value):
        return float(self.y_scale(value))

    def fill_rect(self, x, y, width, height, color):
        self.commands.append(DrawCommand("fill_rect", (x, y, width, height), {"color": color}))

    def stroke_rect(self, x, y, width, height, color, line_width=1.0):
        self.commands.append(DrawCommand("stroke_rect", (x, y, width, height),
                                         {"color": color, "line_width": line_width}))

    def line(self, x0, y0, x1, y1, color, line_width=1.0):
        self.commands.append(DrawCommand("line", (x0, y0, x1, y1), {"color": color, "line_width": line_width}))

    def fill_arc(self, cx, cy, radius, start, end, color, wedge=False):
        self.commands.append(DrawCommand("fill_arc", (cx, cy, radius, start, end),
                                         {"color": color, "wedge": wedge}))

    def text(self, x, y, text, color, size=12, align="center"):
        self.commands.append(DrawCommand("text", (x, y, text), {"color": color, "size": size, "align": align}))

    def of(self, op):
        return [c for c in self.commands if c.op == op]

    def clear(self):
        self.commands.clear()


def compute_pixel_mpl(ax, fig_height, x, y):
    x_disp, y_disp = ax.transData.transform((x, y))
    return float(x_disp), float(fig_height - y_disp)


class MatplotlibSurface:
    """Raster surface backed by a matplotlib Agg figure.

    ``ax`` is an ordinary data axes (limits, ticks, labels, grid) whose
    ``transData`` provides the value-to-pixel transform. Primitives are drawn
    on a transparent overlay axes spanning the figure in pixel units with y
    pointing down, so strategy geometry lands exactly where it was computed.
    """

    def __init__(self, width, height, x_range=(0.0, 1.0), y_range=(0.0, 1.0), *, dpi=100,
                 margins=None, background="white", show_axes=True, title="",
                 xlabel="", ylabel="", font_family: Optional[str] = None):
        self.width = int(width)
        self.height = int(height)
        self.dpi = dpi
        self.bbox = plot_box(self.width, self.height, margins)
        self._font = {"fontfamily": font_family} if font_family else {}

        self.fig = plt.figure(figsize=(self.width / dpi, self.height / dpi), dpi=dpi)
        bb = self.bbox
        self.ax = self.fig.add_axes([
            bb.left / self.width,
            1 - bb.bottom / self.height,
            bb.width / self.width,
            bb.height / self.height,
        ])
        self.ax.set_facecolor(background)
        self.ax.set_xlim(*x_range)
        self.ax.set_ylim(*y_range)
        if title:
            self.ax.set_title(title, **self._font)
        if xlabel:
            self.ax.set_xlabel(xlabel, **self._font)
        if ylabel:
            self.ax.set_ylabel(ylabel, **self._font)
        if not show_axes:
            self.ax.set_axis_off()

        self.pixel_ax = self.fig.add_axes([0, 0, 1, 1], zorder=self.ax.get_zorder() + 1)
        self.pixel_ax.set_xlim(0, self.width)
        self.pixel_ax.set_ylim(self.height, 0)
        self.pixel_ax.set_axis_off()
        self.pixel_ax.patch.set_visible(False)
        self.primitive_count = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def to_pixel_x(self, value):
        return compute_pixel_mpl(self.ax, self.height, value, self.ax.get_ylim()[0])[0]

    def to_pixel_y(self, value):
        return compute_pixel_mpl(self.ax, self.height, self.ax.get_xlim()[0], value)[1]

    def _add(self, artist):
        self.pixel_ax.add_patch(artist)
        self.primitive_count += 1

    def fill_rect(self, x, y, width, height, color):
        self._add(Rectangle((x, y), width, height, facecolor=color, edgecolor="none", linewidth=0))

    def stroke_rect(self, x, y, width, height, color, line_width=1.0):
        self._add(Rectangle((x, y), width, height, facecolor="none", edgecolor=color, linewidth=line_width))

    def line(self, x0, y0, x1, y1, color, line_width=1.0):
        self.pixel_ax.plot([x0, x1], [y0, y1], color=color, linewidth=line_width, solid_capstyle="butt")
        self.primitive_count += 1

    def fill_arc(self, cx, cy, radius, start, end, color, wedge=False):
        # with y pointing down, matplotlib's counter-clockwise data angles
        # come out clockwise on screen, matching the surface convention
        theta1, theta2 = math.degrees(start), math.degrees(end)
        if not wedge and theta2 - theta1 >= 360:
            theta1, theta2 = 0.0, 360.0
        self._add(Wedge((cx, cy), radius, theta1, theta2, facecolor=color, edgecolor="none"))

    def text(self, x, y, text, color, size=12, align="center"):
        self.pixel_ax.text(x, y, text, color=color, fontsize=size * 72 / self.dpi,
                           ha=align, va="center", **self._font)
        self.primitive_count += 1

    def save(self, path, fmt=None):
        self.fig.savefig(path, dpi=self.dpi, format=fmt)
        return path

    def close(self):
        plt.close(self.fig)
