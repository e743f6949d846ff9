import numpy as np
import pytest

from synthetic_chart_pipeline.surface import BoundingBox, LinearScale, RecordingSurface


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def make_surface():
    """RecordingSurface over a plot box with explicit axis domains."""

    def _make(left=0, top=0, width=300, height=200, x_range=(0.0, 1.0), y_range=(0.0, 1.0)):
        bbox = BoundingBox(left, top, width, height)
        return RecordingSurface(
            bbox,
            LinearScale(tuple(x_range), (bbox.left, bbox.right)),
            LinearScale(tuple(y_range), (bbox.bottom, bbox.top)),
        )

    return _make
