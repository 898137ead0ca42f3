"""Unit tests for the EventBridge adapter with mocked aiobotocore (no real AWS)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.config import Config
from botocore.exceptions import ClientError

from saga_outbox_core import BusEvent, DeliveryError
from saga_outbox_messaging import (
    EventBridgeConnectionManager,
    EventBridgeEventBus,
    EventRejectedError,
    MessagingConnectionError,
)

EVENT = BusEvent(
    source="order-saga",
    detail_type="OrderPlaced",
    detail='{"orderId": "o-1"}',
)


@pytest.fixture
def mock_session() -> MagicMock:
    session = MagicMock()
    mock_cm = MagicMock()
    mock_client = MagicMock()
    mock_client.put_events = AsyncMock(
        return_value={"FailedEntryCount": 0, "Entries": [{"EventId": "evt-1"}]}
    )
    mock_client.describe_event_bus = AsyncMock(return_value={"Name": "orders"})
    mock_cm.__aenter__ = AsyncMock(return_value=mock_client)
    mock_cm.__aexit__ = AsyncMock(return_value=None)
    session.create_client = MagicMock(return_value=mock_cm)
    return session


def _client(session: MagicMock) -> MagicMock:
    return session.create_client.return_value.__aenter__.return_value


@pytest.mark.asyncio
async def test_get_client_creates_and_caches(mock_session: MagicMock) -> None:
    conn = EventBridgeConnectionManager(region_name="eu-west-1", session=mock_session)
    client1 = await conn.get_client()
    client2 = await conn.get_client()
    assert client1 is client2
    mock_session.create_client.assert_called_once()
    assert mock_session.create_client.call_args.args[0] == "events"
    assert mock_session.create_client.call_args.kwargs["region_name"] == "eu-west-1"


@pytest.mark.asyncio
async def test_close_exits_client_context(mock_session: MagicMock) -> None:
    conn = EventBridgeConnectionManager(session=mock_session)
    await conn.get_client()
    await conn.close()
    mock_session.create_client.return_value.__aexit__.assert_awaited_once()
    await conn.get_client()
    assert mock_session.create_client.call_count == 2


@pytest.mark.asyncio
async def test_client_creation_failure_is_a_connection_error() -> None:
    session = MagicMock()
    session.create_client = MagicMock(side_effect=RuntimeError("no credentials"))
    conn = EventBridgeConnectionManager(session=session)
    with pytest.raises(MessagingConnectionError, match="no credentials"):
        await conn.get_client()


@pytest.mark.asyncio
async def test_publish_sends_one_entry(mock_session: MagicMock) -> None:
    conn = EventBridgeConnectionManager(session=mock_session)
    bus = EventBridgeEventBus(conn, event_bus_name="orders")

    await bus.publish(EVENT)

    _client(mock_session).put_events.assert_awaited_once_with(
        Entries=[
            {
                "EventBusName": "orders",
                "Source": "order-saga",
                "DetailType": "OrderPlaced",
                "Detail": '{"orderId": "o-1"}',
            }
        ]
    )


@pytest.mark.asyncio
async def test_rejected_entry_raises(mock_session: MagicMock) -> None:
    _client(mock_session).put_events = AsyncMock(
        return_value={
            "FailedEntryCount": 1,
            "Entries": [{"ErrorCode": "ThrottlingException", "ErrorMessage": "slow down"}],
        }
    )
    bus = EventBridgeEventBus(EventBridgeConnectionManager(session=mock_session))

    with pytest.raises(EventRejectedError, match="slow down") as excinfo:
        await bus.publish(EVENT)
    assert excinfo.value.error_code == "ThrottlingException"


@pytest.mark.asyncio
async def test_transport_errors_become_delivery_errors(mock_session: MagicMock) -> None:
    _client(mock_session).put_events = AsyncMock(side_effect=OSError("reset"))
    bus = EventBridgeEventBus(EventBridgeConnectionManager(session=mock_session))

    with pytest.raises(DeliveryError, match="reset"):
        await bus.publish(EVENT)


@pytest.mark.asyncio
async def test_health_check(mock_session: MagicMock) -> None:
    bus = EventBridgeEventBus(
        EventBridgeConnectionManager(session=mock_session), event_bus_name="orders"
    )
    assert await bus.health_check() is True
    _client(mock_session).describe_event_bus.assert_awaited_once_with(Name="orders")

    _client(mock_session).describe_event_bus = AsyncMock(side_effect=OSError("down"))
    assert await bus.health_check() is False


@pytest.mark.asyncio
async def test_client_is_created_with_timeouts_and_short_sdk_retries(
    mock_session: MagicMock,
) -> None:
    conn = EventBridgeConnectionManager(
        session=mock_session,
        endpoint_url="http://localhost:4566",
        connect_timeout=2,
        read_timeout=3,
        max_attempts=1,
    )
    await conn.get_client()

    kwargs = mock_session.create_client.call_args.kwargs
    assert kwargs["endpoint_url"] == "http://localhost:4566"
    config = kwargs["config"]
    assert config.connect_timeout == 2
    assert config.read_timeout == 3
    assert config.retries == {"max_attempts": 1, "mode": "standard"}


@pytest.mark.asyncio
async def test_caller_config_is_merged_over_defaults(mock_session: MagicMock) -> None:
    conn = EventBridgeConnectionManager(
        session=mock_session,
        read_timeout=7,
        config=Config(user_agent_extra="order-saga"),
    )
    await conn.get_client()

    config = mock_session.create_client.call_args.kwargs["config"]
    assert config.user_agent_extra == "order-saga"
    assert config.read_timeout == 7
    assert "endpoint_url" not in mock_session.create_client.call_args.kwargs


@pytest.mark.asyncio
async def test_health_check_is_false_for_missing_bus(mock_session: MagicMock) -> None:
    _client(mock_session).describe_event_bus = AsyncMock(
        side_effect=ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "no bus"}},
            "DescribeEventBus",
        )
    )
    conn = EventBridgeConnectionManager(session=mock_session)

    assert await conn.health_check("missing") is False
