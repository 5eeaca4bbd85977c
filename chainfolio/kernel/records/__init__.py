"""
Append-only record storage.
"""

from chainfolio.kernel.records.record_store import RecordStore

__all__ = ["RecordStore"]
