"""Synthetic chart datasets and a coordinate-mapping renderer.

    >>> import numpy as np
    >>> from synthetic_chart_pipeline import generate, render, RecordingSurface, BoundingBox
    >>> data = generate("gauge", {"min": 0, "max": 100}, rng=np.random.default_rng(7))
    >>> outcome = render("gauge", data, RecordingSurface(BoundingBox(0, 0, 200, 100)))
"""

from .errors import MalformedCanonicalData, SynthChartError, UnknownArchetype  # noqa: F401
from .generators import DEFAULT_PARAMS, merge_config  # noqa: F401
from .registry import (  # noqa: F401
    ArchetypeRegistry,
    RenderOutcome,
    archetype_registry,
    generate,
    generate_bundle,
    list_archetypes,
    render,
    supported_archetypes,
)
from .schemas import Internal, Leaf, as_plain, from_plain, validate  # noqa: F401
from .strategies import data_extent  # noqa: F401
from .surface import BoundingBox, LinearScale, MatplotlibSurface, RecordingSurface  # noqa: F401

__version__ = "0.1.0"
