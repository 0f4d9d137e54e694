from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from contactipy.adapters.sqlalchemy.migrations import upgrade_head
from contactipy.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyQueueUnitOfWork,
    shutdown,
    startup,
)
from contactipy.domain.queue import QueueStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyQueueUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyQueueUnitOfWork:
        return SqlAlchemyQueueUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def queue_store(
    sqlite_unit_of_work: Callable[[], SqlAlchemyQueueUnitOfWork],
) -> QueueStore:
    return QueueStore(sqlite_unit_of_work, max_retries=3)
