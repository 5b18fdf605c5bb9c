"""Data models for purgectl.

This module exports the persisted run history structures.
"""

from purgectl.models.history import RunRecord, create_run_record

__all__ = [
    "RunRecord",
    "create_run_record",
]
