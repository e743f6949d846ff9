"""Archetype registry: one entry per archetype pairing its generator with an
optional rendering strategy.

Adding an archetype is a single ``register`` call. ``supported_archetypes``
and capability checks are dict lookups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import generators, strategies
from .errors import MalformedCanonicalData, UnknownArchetype
from .sampling import ensure_rng
from .schemas import validate

logger = logging.getLogger(__name__)


@dataclass
class Archetype:
    name: str
    generator: Callable[..., Any]
    renderer: Optional[Callable[[Any, Any], int]] = None
    description: str = ""
    defaults: Dict[str, Any] = field(default_factory=dict)

    @property
    def renderable(self):
        return self.renderer is not None


@dataclass(frozen=True)
class RenderOutcome:
    """What happened on a render call.

    ``supported`` is False for a capability gap (no strategy for the
    archetype); ``drawn`` is False whenever nothing reached the surface.
    """

    archetype: str
    supported: bool
    drawn: bool
    primitives: int = 0
    reason: Optional[str] = None


class ArchetypeRegistry:
    def __init__(self) -> None:
        self._types: Dict[str, Archetype] = {}

    def register(self, name, generator, renderer=None, *, description="", defaults=None) -> None:
        if name in self._types:
            raise ValueError(f"Archetype already registered: {name}")
        self._types[name] = Archetype(name, generator, renderer, description, dict(defaults or {}))

    def get(self, name) -> Archetype:
        entry = self._types.get(name)
        if entry is None:
            raise UnknownArchetype(name, self._types)
        return entry

    def __contains__(self, name):
        return name in self._types

    def list_archetypes(self) -> List[str]:
        return list(self._types)

    def supported_archetypes(self) -> List[str]:
        return [name for name, entry in self._types.items() if entry.renderable]

    def is_supported(self, name) -> bool:
        entry = self._types.get(name)
        return entry is not None and entry.renderable

    def generate(self, name, config=None, rng=None):
        entry = self.get(name)
        data = entry.generator(config or {}, ensure_rng(rng))
        return validate(name, data)

    def generate_bundle(self, requests, rng=None):
        """Generate several datasets in one call.

        ``requests`` items are archetype names or ``{"type": ..., "config": ...}``
        mappings. Later requests for the same archetype replace earlier ones.
        """
        rng = ensure_rng(rng)
        bundle = {}
        for req in requests:
            if isinstance(req, str):
                bundle[req] = self.generate(req, {}, rng)
            elif isinstance(req, dict) and req.get("type"):
                bundle[req["type"]] = self.generate(req["type"], req.get("config") or {}, rng)
            else:
                logger.debug("Skipping bundle request %r", req)
        return bundle

    def render(self, name, data, surface) -> RenderOutcome:
        entry = self._types.get(name)
        if entry is None or not entry.renderable:
            reason = "unknown archetype" if entry is None else "no rendering strategy"
            logger.info("Cannot render %s: %s; hand the data to an external adapter", name, reason)
            return RenderOutcome(name, supported=False, drawn=False, reason=reason)
        try:
            count = entry.renderer(data, surface)
        except MalformedCanonicalData as exc:
            logger.debug("Skipping %s render: %s", name, exc)
            return RenderOutcome(name, supported=True, drawn=False, reason=exc.issue)
        if not count:
            return RenderOutcome(name, supported=True, drawn=False, reason="nothing to draw")
        return RenderOutcome(name, supported=True, drawn=True, primitives=count)


def _build_default_registry():
    reg = ArchetypeRegistry()
    for name, generator in generators.GENERATORS.items():
        reg.register(
            name,
            generator,
            strategies.STRATEGIES.get(name),
            description=(generator.__doc__ or "").strip().split("\n")[0],
            defaults=generators.DEFAULT_PARAMS.get(name),
        )
    return reg


archetype_registry = _build_default_registry()


def generate(archetype, config=None, rng=None):
    return archetype_registry.generate(archetype, config, rng)


def generate_bundle(requests, rng=None):
    return archetype_registry.generate_bundle(requests, rng)


def render(archetype, data, surface) -> RenderOutcome:
    return archetype_registry.render(archetype, data, surface)


def supported_archetypes():
    return archetype_registry.supported_archetypes()


def list_archetypes():
    return archetype_registry.list_archetypes()
