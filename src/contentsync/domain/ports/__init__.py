"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import RawRecord, SourceFetcher, Transformer
from .persistence import ImportationService, PersistenceContext
from .recording import JobRecorder
from .unit_of_work import ImportationUnitOfWork

__all__ = [
    "ImportationService",
    "ImportationUnitOfWork",
    "JobRecorder",
    "PersistenceContext",
    "RawRecord",
    "SourceFetcher",
    "Transformer",
]
