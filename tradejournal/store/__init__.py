"""
Store Module

Document store backends for the journal. The Firebase backend is
imported where it is configured, so the in-memory store never loads
the Admin SDK.
"""

from .base import DocumentNotFound, DocumentStore, StoreError
from .memory import InMemoryDocumentStore

__all__ = [
    "DocumentStore",
    "DocumentNotFound",
    "StoreError",
    "InMemoryDocumentStore",
]
