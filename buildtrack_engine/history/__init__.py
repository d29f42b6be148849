"""Persisted run history."""

from .store import DEFAULT_CAPACITY, HistoryStore, record_to_summary, summary_to_record

__all__ = ["DEFAULT_CAPACITY", "HistoryStore", "record_to_summary", "summary_to_record"]
