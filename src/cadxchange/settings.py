"""Conversion settings and their YAML persistence."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml

from cadxchange.errors import ConfigurationError
from cadxchange.numeric import ELLIPSE_EPS, EPS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionSettings:
    """Numeric knobs for classification and encoding.

    ``tolerance`` drives the line, arc and circle tests and the spline
    display approximation.  It never decides closedness, which is always
    the curve's own ``is_closed``.  ``ellipse_tolerance`` is looser because
    the perimeter estimate it is compared against is itself approximate.
    """

    tolerance: float = EPS
    ellipse_tolerance: float = ELLIPSE_EPS
    display_segments_per_span: int = 4
    mesh_color: Tuple[int, int, int, int] = (255, 100, 100, 100)

    def __post_init__(self) -> None:
        if not self.tolerance > 0.0:
            raise ConfigurationError("tolerance must be positive")
        if not self.ellipse_tolerance > 0.0:
            raise ConfigurationError("ellipse_tolerance must be positive")
        if int(self.display_segments_per_span) < 1:
            raise ConfigurationError("display_segments_per_span must be >= 1")
        color = tuple(self.mesh_color)
        if len(color) != 4 or any(not 0 <= int(c) <= 255 for c in color):
            raise ConfigurationError("mesh_color must be four channel values in 0..255 (ARGB)")

    @property
    def mesh_color_argb(self) -> int:
        """Packed signed 32-bit ARGB value of ``mesh_color``."""

        a, r, g, b = (int(c) for c in self.mesh_color)
        packed = (a << 24) | (r << 16) | (g << 8) | b
        if packed >= 1 << 31:
            packed -= 1 << 32
        return packed


DEFAULT_SETTINGS = ConversionSettings()

_FIELD_NAMES = {f.name for f in fields(ConversionSettings)}


def settings_from_dict(data: Dict[str, Any]) -> ConversionSettings:
    if not isinstance(data, dict):
        raise ConfigurationError("settings document must be a mapping")
    unknown = sorted(set(data) - _FIELD_NAMES)
    if unknown:
        raise ConfigurationError(f"unknown settings keys: {', '.join(unknown)}")
    values: Dict[str, Any] = {}
    try:
        if "tolerance" in data:
            values["tolerance"] = float(data["tolerance"])
        if "ellipse_tolerance" in data:
            values["ellipse_tolerance"] = float(data["ellipse_tolerance"])
        if "display_segments_per_span" in data:
            values["display_segments_per_span"] = int(data["display_segments_per_span"])
        if "mesh_color" in data:
            values["mesh_color"] = tuple(int(c) for c in data["mesh_color"])
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid settings value: {exc}") from exc
    return ConversionSettings(**values)


def settings_to_dict(settings: ConversionSettings) -> Dict[str, Any]:
    data = asdict(settings)
    data["mesh_color"] = list(settings.mesh_color)
    return data


def load_settings(path: Union[str, Path]) -> ConversionSettings:
    """Read settings from a YAML file; missing keys take their defaults."""

    path = Path(path)
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    settings = settings_from_dict(data)
    logger.debug("loaded conversion settings from %s: %s", path, settings)
    return settings


def save_settings(settings: ConversionSettings, path: Union[str, Path]) -> None:
    path = Path(path)
    with path.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(settings_to_dict(settings), fp, sort_keys=False)


__all__ = [
    "ConversionSettings",
    "DEFAULT_SETTINGS",
    "settings_from_dict",
    "settings_to_dict",
    "load_settings",
    "save_settings",
]
