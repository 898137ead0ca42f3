"""Composition root: explicit service handles and the saga entry points."""

from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from saga_outbox_core.correlation import CorrelationIdFilter, correlation_scope
from saga_outbox_core.outbox.publisher import OutboxPublisher
from saga_outbox_core.outbox.writer import IntegrationEventOutbox
from saga_outbox_core.primitives.id_generator import IIDGenerator, UUID4Generator
from saga_outbox_core.repository import Repository
from saga_outbox_core.unit_of_work import UnitOfWork

from .commands import CreateOrder, HandleReservationOutcome, ReserveCredit
from .domain import Order, Transaction
from .events import OrderPlaced, ReservationOutcome
from .handlers import (
    CreateOrderHandler,
    HandleReservationOutcomeHandler,
    ReserveCreditHandler,
)
from .settings import OrderSagaSettings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Mapping

    from saga_outbox_core.adapters.memory.event_bus import InMemoryEventBus
    from saga_outbox_core.outbox.publisher import PublishReport
    from saga_outbox_core.ports.messaging import BusEvent, IEventBus
    from saga_outbox_core.ports.store import ITransactionalStore
    from saga_outbox_core.retry import RetryPolicy

    from .credit import ICreditDecisionService

R = TypeVar("R")

logger = logging.getLogger("saga_orders.app")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Attach a stream handler that prints the invocation's correlation id.

    Calling it again only changes the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for existing in root.handlers:
        if any(isinstance(f, CorrelationIdFilter) for f in existing.filters):
            return
    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


@dataclass(frozen=True)
class Services:
    """Process-wide handles, built once at start-up and passed in explicitly."""

    store: ITransactionalStore
    bus: IEventBus
    credit: ICreditDecisionService
    settings: OrderSagaSettings = field(default_factory=OrderSagaSettings)
    id_generator: IIDGenerator = field(default_factory=UUID4Generator)


@dataclass(frozen=True)
class InvocationResult(Generic[R]):
    """What one entry-point invocation did: its commit and its publish pass."""

    correlation_id: str
    result: R
    report: PublishReport


def _detail(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Unwrap an EventBridge-style ``{"detail": {...}}`` envelope."""
    detail = payload.get("detail")
    if isinstance(detail, str):
        return json.loads(detail)
    if isinstance(detail, dict):
        return detail
    return payload


class OrderSagaApp:
    """
    The three saga entry points.

    Every invocation gets a fresh unit of work, runs one handler, and, once
    the commit succeeded, runs a publish pass for that unit of work's
    correlation id.  A failed commit propagates to the caller, who owns
    re-delivery of the whole invocation.
    """

    def __init__(
        self,
        services: Services,
        *,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._services = services
        settings = services.settings
        self._publisher = OutboxPublisher(
            services.store,
            services.bus,
            table=settings.integration_events_table_name,
            source=settings.integration_events_source,
            retry_policy=retry_policy or settings.retry_policy(),
            max_concurrency=settings.publish_max_concurrency,
        )

    @property
    def publisher(self) -> OutboxPublisher:
        return self._publisher

    # ── Entry points ─────────────────────────────────────────────

    async def create_order(
        self, payload: Mapping[str, Any]
    ) -> InvocationResult[Order]:
        """``{amount, customerId}`` → PENDING order + ``OrderPlaced``."""
        command = CreateOrder.model_validate(_detail(payload))

        async def run(uow: UnitOfWork) -> Order:
            handler = CreateOrderHandler(
                uow,
                self._orders(uow),
                self._outbox(uow),
                id_generator=self._services.id_generator,
            )
            return await handler.handle(command)

        return await self._invoke("CreateOrder", run)

    async def reserve_credit(
        self, payload: Mapping[str, Any]
    ) -> InvocationResult[bool]:
        """``{amount, orderId, customerId}`` → optional debit + ``ReservationOutcome``."""
        command = ReserveCredit.model_validate(_detail(payload))

        async def run(uow: UnitOfWork) -> bool:
            handler = ReserveCreditHandler(
                uow,
                self._transactions(uow),
                self._outbox(uow),
                self._services.credit,
                id_generator=self._services.id_generator,
            )
            return await handler.handle(command)

        return await self._invoke("ReserveCredit", run)

    async def handle_reservation_outcome(
        self, payload: Mapping[str, Any]
    ) -> InvocationResult[Order | None]:
        """``{orderId, isCreditReserved}`` → order CREATED or REJECTED."""
        command = HandleReservationOutcome.model_validate(_detail(payload))

        async def run(uow: UnitOfWork) -> Order | None:
            handler = HandleReservationOutcomeHandler(uow, self._orders(uow))
            return await handler.handle(command)

        return await self._invoke("HandleReservationOutcome", run)

    def subscribe(self, bus: InMemoryEventBus) -> None:
        """Wire the choreography: each step reacts to the previous step's event."""

        async def on_order_placed(event: BusEvent) -> None:
            await self.reserve_credit(json.loads(event.detail))

        async def on_reservation_outcome(event: BusEvent) -> None:
            await self.handle_reservation_outcome(json.loads(event.detail))

        bus.subscribe(OrderPlaced.__name__, on_order_placed)
        bus.subscribe(ReservationOutcome.__name__, on_reservation_outcome)

    # ── Plumbing ─────────────────────────────────────────────────

    async def _invoke(
        self,
        name: str,
        run: Callable[[UnitOfWork], Awaitable[R]],
    ) -> InvocationResult[R]:
        uow = UnitOfWork(self._services.store)
        with correlation_scope(uow.correlation_id):
            logger.info("Invoking %s", name)
            try:
                async with uow:
                    result = await run(uow)
            except Exception:
                logger.exception("%s failed", name)
                raise
            report = await self._publisher.publish(uow.correlation_id)
        return InvocationResult(
            correlation_id=uow.correlation_id, result=result, report=report
        )

    def _orders(self, uow: UnitOfWork) -> Repository[Order]:
        return Repository(
            self._services.settings.orders_table_name,
            Order,
            uow,
            self._services.store,
        )

    def _transactions(self, uow: UnitOfWork) -> Repository[Transaction]:
        return Repository(
            self._services.settings.transactions_table_name,
            Transaction,
            uow,
            self._services.store,
        )

    def _outbox(self, uow: UnitOfWork) -> IntegrationEventOutbox:
        return IntegrationEventOutbox(
            self._services.settings.integration_events_table_name,
            uow,
            id_generator=self._services.id_generator,
        )


@contextlib.asynccontextmanager
async def open_services(
    settings: OrderSagaSettings | None = None,
    *,
    create_tables: bool = False,
) -> AsyncIterator[Services]:
    """Build the production services: SQLAlchemy store and EventBridge bus.

    Logging is configured at ``settings.log_level``.  The engine and the
    EventBridge client live as long as the block.
    """
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from saga_outbox_messaging.eventbridge import (
        EventBridgeConnectionManager,
        EventBridgeEventBus,
    )
    from saga_outbox_persistence_sqlalchemy import (
        SQLAlchemyTransactionalStore,
        create_schema,
    )

    from .credit import RandomCreditDecisionService
    from .persistence import table_models

    settings = settings or OrderSagaSettings()
    configure_logging(settings.log_level)
    engine = create_async_engine(settings.database_url)
    connection = EventBridgeConnectionManager(
        settings.aws_region,
        endpoint_url=settings.eventbridge_endpoint_url,
        connect_timeout=settings.eventbridge_connect_timeout,
        read_timeout=settings.eventbridge_read_timeout,
        max_attempts=settings.eventbridge_max_attempts,
    )
    try:
        if create_tables:
            await create_schema(engine)
        yield Services(
            store=SQLAlchemyTransactionalStore(
                async_sessionmaker(engine, expire_on_commit=False),
                table_models(settings),
            ),
            bus=EventBridgeEventBus(
                connection,
                event_bus_name=settings.integration_events_event_bus,
            ),
            credit=RandomCreditDecisionService(settings.credit_approval_rate),
            settings=settings,
        )
    finally:
        await connection.close()
        await engine.dispose()
