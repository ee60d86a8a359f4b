"""
Analytics Module

Journal-level statistics computed from the live trade list.
"""

from .summary import JournalSummary, records_to_frame, sort_newest_first, summarize

__all__ = ["JournalSummary", "records_to_frame", "sort_newest_first", "summarize"]
