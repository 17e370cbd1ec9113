"""SQLAlchemy adapter package for contentsync."""

from __future__ import annotations

from .importation import SqlAlchemyImportationService
from .mappings import create_all_tables, mapper_registry, start_mappers
from .predicates import ConditionCompiler, resolve_content_field
from .recording import SqlAlchemyJobRecorder
from .unit_of_work import SqlAlchemyImportationUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "ConditionCompiler",
    "SqlAlchemyImportationService",
    "SqlAlchemyImportationUnitOfWork",
    "SqlAlchemyJobRecorder",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "resolve_content_field",
    "shutdown",
    "start_mappers",
    "startup",
]
