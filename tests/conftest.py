from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from contentsync.adapters.sqlalchemy import create_all_tables, start_mappers
from contentsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportationUnitOfWork,
    shutdown,
    startup,
)
from contentsync.domain.clock import fixed_clock
from tests.helpers.contents import REFERENCE_TIME

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from contentsync.domain.model import ContentKind


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[ContentKind], SqlAlchemyImportationUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory(kind: ContentKind) -> SqlAlchemyImportationUnitOfWork:
        return SqlAlchemyImportationUnitOfWork(
            kind, chunk_size=2, clock=fixed_clock(REFERENCE_TIME)
        )

    try:
        yield factory
    finally:
        shutdown()
