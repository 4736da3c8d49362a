"""I/O utilities for cadxchange."""

from .record_json import dump_records, load_records, records_from_json, records_to_json

__all__ = ['records_to_json', 'records_from_json', 'dump_records', 'load_records']
