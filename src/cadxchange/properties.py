"""Opaque property bags carried alongside geometry.

A bag maps string keys to scalars (``None``, bool, int, float, str),
lists, nested bags, or geometry.  On the native side geometry is a
:class:`~cadxchange.native.Curve` or :class:`~cadxchange.native.Mesh`
stored in ``obj.tags[PROPERTIES_TAG]``; on the record side it is a record.
The engine never interprets the contents, it only copies them and
converts nested geometry when crossing between the two sides.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from cadxchange.errors import MalformedInputError

PROPERTIES_TAG = "cadxchange"
GEOMETRY_KEY = "$geometry"

_SCALARS = (type(None), bool, int, float, str)


def _is_geometry(value: Any) -> bool:
    from cadxchange.native import Curve, Mesh
    from cadxchange.records import is_record

    return isinstance(value, (Curve, Mesh)) or is_record(value)


def _convert(value: Any, leaf: Callable[[Any], Any], path: str) -> Any:
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise MalformedInputError(f"property key {key!r} at {path or '<root>'} is not a string")
            out[key] = _convert(item, leaf, f"{path}.{key}" if path else key)
        return out
    if isinstance(value, (list, tuple)):
        return [_convert(item, leaf, f"{path}[{i}]") for i, item in enumerate(value)]
    if _is_geometry(value):
        return leaf(value)
    raise MalformedInputError(
        f"unsupported property value of type {type(value).__name__} at {path or '<root>'}"
    )


def copy_properties(bag: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Deep copy of ``bag``; geometry values are shared, containers are not."""

    if bag is None:
        return None
    return _convert(bag, lambda geom: geom, "")


def properties_to_record(bag: Optional[Dict[str, Any]],
                         encode: Callable[[Any], Any]) -> Optional[Dict[str, Any]]:
    """Copy a native bag, turning nested native geometry into records with ``encode``."""

    if bag is None:
        return None

    def leaf(geom):
        from cadxchange.records import is_record

        return geom if is_record(geom) else encode(geom)

    return _convert(bag, leaf, "")


def properties_to_native(bag: Optional[Dict[str, Any]],
                         decode: Callable[[Any], Any]) -> Optional[Dict[str, Any]]:
    """Copy a record bag, turning nested records into native geometry with ``decode``."""

    if bag is None:
        return None

    def leaf(geom):
        from cadxchange.records import is_record

        return decode(geom) if is_record(geom) else geom

    return _convert(bag, leaf, "")


def properties_to_dict(bag: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-ready form of a record bag; nested records become ``{"$geometry": ...}``."""

    def leaf(geom):
        from cadxchange.records import is_record

        if not is_record(geom):
            raise MalformedInputError(
                f"native {type(geom).__name__} in a record property bag; encode it first"
            )
        return {GEOMETRY_KEY: geom.to_dict()}

    return _convert(bag, leaf, "")


def _from_dict_value(value: Any, path: str) -> Any:
    from cadxchange.records import record_from_dict

    if isinstance(value, dict):
        if GEOMETRY_KEY in value:
            if len(value) != 1:
                raise MalformedInputError(f"geometry wrapper at {path} has extra keys")
            return record_from_dict(value[GEOMETRY_KEY])
        return {key: _from_dict_value(item, f"{path}.{key}") for key, item in value.items()}
    if isinstance(value, list):
        return [_from_dict_value(item, f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, _SCALARS):
        return value
    raise MalformedInputError(f"unsupported property value of type {type(value).__name__} at {path}")


def properties_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedInputError("properties must be a mapping")
    return {key: _from_dict_value(item, key) for key, item in data.items()}


def get_properties(obj: Any) -> Optional[Dict[str, Any]]:
    """The property bag stored on a native object, or ``None``."""

    tags = getattr(obj, "tags", None)
    if not tags:
        return None
    return tags.get(PROPERTIES_TAG)


def set_properties(obj: Any, bag: Optional[Dict[str, Any]]) -> None:
    if bag is None:
        obj.tags.pop(PROPERTIES_TAG, None)
    else:
        obj.tags[PROPERTIES_TAG] = bag


__all__ = [
    "PROPERTIES_TAG",
    "GEOMETRY_KEY",
    "copy_properties",
    "properties_to_record",
    "properties_to_native",
    "properties_to_dict",
    "properties_from_dict",
    "get_properties",
    "set_properties",
]
