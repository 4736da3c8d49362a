# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

from cadxchange.classify import CurveType, classify
from cadxchange.decoder import to_native
from cadxchange.encoder import to_record
from cadxchange.errors import (
    ConfigurationError,
    ConversionError,
    DecodeError,
    GeometryError,
    MalformedInputError,
    PreconditionError,
)
from cadxchange.logging_config import setup_logging
from cadxchange.settings import DEFAULT_SETTINGS, ConversionSettings, load_settings

try:
    __version__ = version("cadxchange")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

__all__ = [
    "__version__",
    "CurveType",
    "classify",
    "to_record",
    "to_native",
    "ConversionSettings",
    "DEFAULT_SETTINGS",
    "load_settings",
    "setup_logging",
    "ConversionError",
    "GeometryError",
    "MalformedInputError",
    "PreconditionError",
    "DecodeError",
    "ConfigurationError",
]
