from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy import Float, String
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from saga_outbox_persistence_sqlalchemy import (
    Base,
    OutboxEntryModel,
    SQLAlchemyTransactionalStore,
    VersionedItemMixin,
    create_schema,
)


class GadgetModel(VersionedItemMixin, Base):
    __tablename__ = "test_gadgets"

    label: Mapped[str] = mapped_column(String(64))
    price: Mapped[float] = mapped_column(Float)


@pytest_asyncio.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(eng)
    yield eng
    await eng.dispose()


@pytest.fixture()
def sql_store(engine: AsyncEngine) -> SQLAlchemyTransactionalStore:
    return SQLAlchemyTransactionalStore(
        async_sessionmaker(engine, expire_on_commit=False),
        {"gadgets": GadgetModel, "outbox": OutboxEntryModel},
    )
