from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect, text

from contactipy.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyQueueUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from contactipy.domain.model import QueueItem, QueueOperation, RecordOrigin
from contactipy.domain.ports.persistence import StoreUnavailableError
from tests.helpers.contacts import make_contact

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyQueueUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_startup_creates_schema() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine)

    tables = set(inspect(engine).get_table_names())
    assert {"contact", "sync_queue", "alembic_version"} <= tables


def test_unit_of_work_commits_and_rolls_back(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    record = make_contact("c1", emails=["john@acme.com"])

    with SqlAlchemyQueueUnitOfWork() as uow:
        uow.repositories.contacts.save(record, origin=RecordOrigin.REMOTE, synced=True)
        uow.commit()

    with pytest.raises(RuntimeError, match="abort"), SqlAlchemyQueueUnitOfWork() as uow:
        uow.repositories.contacts.save(
            make_contact("c2"),
            origin=RecordOrigin.LOCAL,
            synced=False,
        )
        raise RuntimeError("abort")

    with SqlAlchemyQueueUnitOfWork() as uow:
        assert uow.repositories.contacts.get("c1") == record
        assert uow.repositories.contacts.get("c2") is None


def test_database_errors_surface_as_store_unavailable(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    with sqlite_engine.begin() as connection:
        connection.execute(text("DROP TABLE sync_queue"))

    item = QueueItem(
        subject_record_id="c1",
        operation=QueueOperation.CREATE,
        data_after=make_contact("c1"),
    )
    with pytest.raises(StoreUnavailableError), SqlAlchemyQueueUnitOfWork() as uow:
        uow.repositories.queue.add(item)
