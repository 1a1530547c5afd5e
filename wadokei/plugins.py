"""Named drawing capabilities resolved from configuration.

Two capabilities exist: ``"backplane"`` turns the oriented sector allocation into a
:class:`BackplaneLayout` and ``"hand"`` turns the hand angle into a :class:`HandPose`.
A plugin name is ``""``/``"default"`` for the built-in, a name registered with
:meth:`PluginRegistry.register`, or a ``"package.module:attribute"`` import path.
"""

from __future__ import annotations

import importlib
import json
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from ._types import BackplaneLayout, DialMark, HandPose, SectorAllocation
from .dial import KOKU_NUMERALS
from .errors import WadokeiError
from .sectors import TICK_ORDER, TWO_PI

LOGGER = logging.getLogger(__name__)

HAND = "hand"
BACKPLANE = "backplane"
CAPABILITIES = (HAND, BACKPLANE)
DEFAULT_NAME = "default"


class PluginLoadError(WadokeiError):
    """Raised when a plugin name cannot be turned into a callable."""


@dataclass(frozen=True)
class PluginLoadResult:
    capability: str
    name: str
    ok: bool
    plugin: Optional[Callable[..., object]] = None
    error: Optional[str] = None


def default_backplane(allocation: SectorAllocation) -> BackplaneLayout:
    """Label and tick positions of the standard dial."""

    angles = allocation.sector_angles
    marks = []
    for sign in TICK_ORDER:
        marks.append(DialMark(kind="zodiac", label=sign, angle=angles[sign]))
    for sign, numeral in zip(TICK_ORDER, KOKU_NUMERALS):
        marks.append(DialMark(kind="numeral", label=numeral, angle=angles[sign]))
    for sign, angle in zip(TICK_ORDER, allocation.tick_angles):
        marks.append(DialMark(kind="tick", label=sign, angle=angle))

    dawn, dusk = angles["卯"], angles["酉"]
    if dusk < dawn:
        dusk += TWO_PI
    return BackplaneLayout(
        marks=tuple(marks),
        day_arc=(dawn, dusk),
        night_arc=(dusk, dawn + TWO_PI),
    )


def default_hand(angle: float) -> HandPose:
    return HandPose(angle=angle, length_ratio=0.8)


def _import_plugin(path: str) -> Callable[..., object]:
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise PluginLoadError(f"Plugin path must look like 'module:attribute': {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginLoadError(f"Cannot import plugin module {module_name!r}: {exc}") from exc
    try:
        plugin = getattr(module, attribute)
    except AttributeError as exc:
        raise PluginLoadError(f"Module {module_name!r} has no attribute {attribute!r}") from exc
    if not callable(plugin):
        raise PluginLoadError(f"Plugin {path!r} is not callable")
    return plugin


class PluginRegistry:
    """Maps ``(capability, name)`` to a drawing callable."""

    def __init__(self) -> None:
        self._plugins: Dict[Tuple[str, str], Callable[..., object]] = {}
        self.register(BACKPLANE, DEFAULT_NAME, default_backplane)
        self.register(HAND, DEFAULT_NAME, default_hand)

    def register(self, capability: str, name: str, plugin: Callable[..., object]) -> None:
        if capability not in CAPABILITIES:
            raise ValueError(f"Unknown plugin capability: {capability}")
        self._plugins[(capability, name)] = plugin

    def resolve(self, capability: str, name: Optional[str]) -> PluginLoadResult:
        """Look up *name*; failures are reported in the result, never raised."""

        name = name or DEFAULT_NAME
        if capability not in CAPABILITIES:
            return PluginLoadResult(
                capability, name, ok=False, error=f"Unknown plugin capability: {capability}"
            )

        plugin = self._plugins.get((capability, name))
        if plugin is None:
            try:
                plugin = _import_plugin(name)
            except PluginLoadError as exc:
                LOGGER.error(
                    json.dumps(
                        {
                            "event": "plugin_load_failed",
                            "capability": capability,
                            "name": name,
                            "error": str(exc),
                        }
                    )
                )
                return PluginLoadResult(capability, name, ok=False, error=str(exc))
            self._plugins[(capability, name)] = plugin

        LOGGER.info(json.dumps({"event": "plugin_loaded", "capability": capability, "name": name}))
        return PluginLoadResult(capability, name, ok=True, plugin=plugin)

    def resolve_or_default(self, capability: str, name: Optional[str]) -> PluginLoadResult:
        """Resolve *name*, falling back to the built-in when it fails to load."""

        result = self.resolve(capability, name)
        if result.ok:
            return result
        fallback = self.resolve(capability, DEFAULT_NAME)
        return PluginLoadResult(
            capability,
            fallback.name,
            ok=False,
            plugin=fallback.plugin,
            error=result.error,
        )
