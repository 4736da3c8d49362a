"""JSON documents of canonical records.

A document is a mapping with a ``schema`` id and a ``records`` list, plus
optional ``units`` and ``generator`` entries::

    {"schema": "cadxchange-records-v0.1", "records": [{"type": "Line", ...}]}
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from cadxchange.errors import DecodeError, MalformedInputError
from cadxchange.records import Record, is_record, record_from_dict

logger = logging.getLogger(__name__)

SCHEMA_ID = "cadxchange-records-v0.1"


def records_to_json(
    records: Iterable[Record],
    *,
    units: Optional[str] = None,
    generator: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Serialize records into a JSON-ready document."""
    serialized: List[Dict[str, Any]] = []
    for record in records:
        if not is_record(record):
            raise MalformedInputError(f"not a canonical record: {type(record).__name__}")
        serialized.append(record.to_dict())

    doc: Dict[str, Any] = {
        "schema": SCHEMA_ID,
        "records": serialized,
    }
    if units:
        doc["units"] = units
    if generator:
        doc["generator"] = generator
    return doc


def records_from_json(doc: Dict[str, Any]) -> List[Record]:
    """Rebuild the records of a document produced by :func:`records_to_json`."""
    if not isinstance(doc, dict):
        raise MalformedInputError("record document must be a mapping")
    if doc.get("schema") != SCHEMA_ID:
        raise DecodeError(f"unsupported record schema: {doc.get('schema')}")
    entries = doc.get("records", [])
    if not isinstance(entries, list):
        raise MalformedInputError("'records' must be a list")
    return [record_from_dict(entry) for entry in entries]


def dump_records(records: Iterable[Record], path_or_file, *, indent: Optional[int] = 2,
                 **kwargs: Any) -> None:
    """Write a record document to a path or an open text stream.

    Extra keyword arguments go to :func:`records_to_json`.
    """
    doc = records_to_json(records, **kwargs)
    if hasattr(path_or_file, 'write'):
        json.dump(doc, path_or_file, indent=indent)
    else:
        with open(path_or_file, 'w', encoding='utf-8') as stream:
            json.dump(doc, stream, indent=indent)
    logger.debug("wrote %d records", len(doc["records"]))


def load_records(path_or_file) -> List[Record]:
    if hasattr(path_or_file, 'read'):
        text = path_or_file.read()
    else:
        with open(path_or_file, 'r', encoding='utf-8') as stream:
            text = stream.read()
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"record document is not valid JSON: {exc}") from exc
    return records_from_json(doc)


__all__ = [
    "SCHEMA_ID",
    "records_to_json",
    "records_from_json",
    "dump_records",
    "load_records",
]
