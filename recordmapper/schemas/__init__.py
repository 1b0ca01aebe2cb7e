# schemas/__init__.py

from .record_schema import RecordSchema, Timestamp

__all__ = [
    'RecordSchema',
    'Timestamp',
]
