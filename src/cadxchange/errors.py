"""Exception types raised by cadxchange.

Every error derives from :class:`ConversionError` so callers can trap the
whole family at once.  The ``ValueError`` mix-ins keep the errors catchable
by code that only knows about the builtin taxonomy.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for all cadxchange failures."""


class GeometryError(ConversionError, ValueError):
    """Native geometry is degenerate or cannot be constructed."""


class MalformedInputError(ConversionError, ValueError):
    """A flat stream, record or property bag violates its layout."""


class PreconditionError(ConversionError, ValueError):
    """An extraction step was given a curve of the wrong shape."""


class DecodeError(ConversionError):
    """A canonical record could not be turned back into native geometry."""


class ConfigurationError(ConversionError, ValueError):
    """Conversion settings are invalid."""


__all__ = [
    "ConversionError",
    "GeometryError",
    "MalformedInputError",
    "PreconditionError",
    "DecodeError",
    "ConfigurationError",
]
