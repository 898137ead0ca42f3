"""EventBridge client management."""

from __future__ import annotations

import logging
from typing import Any

from aiobotocore.session import AioSession
from botocore.config import Config
from botocore.exceptions import ClientError

from ..exceptions import MessagingConnectionError

logger = logging.getLogger("saga_outbox.messaging.eventbridge")


class EventBridgeConnectionManager:
    """Owns the aiobotocore ``events`` client used by the event bus.

    Constructed once at process start and shared by every publish pass;
    the client is created lazily on first use.

    The client is built with a botocore :class:`~botocore.config.Config`
    derived from the constructor arguments:

    - ``connect_timeout`` / ``read_timeout`` bound a single ``PutEvents``
      call so a stalled endpoint cannot hold an outbox entry IN_PROGRESS
      for the SDK's default of 60 seconds.
    - ``max_attempts`` caps botocore's own retries (``standard`` mode).
      The outbox publisher already retries each delivery with backoff,
      so the SDK layer is kept short to avoid multiplying the two.
    - ``endpoint_url`` points the client at a non-AWS endpoint such as
      LocalStack.

    A ``config`` entry in ``client_kwargs`` is merged over the derived
    one, so callers can still set any other botocore option.
    """

    def __init__(
        self,
        region_name: str = "us-east-1",
        *,
        session: AioSession | None = None,
        endpoint_url: str | None = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
        max_attempts: int = 2,
        **client_kwargs: Any,
    ) -> None:
        self._region = region_name
        self._session = session or AioSession()
        self._endpoint_url = endpoint_url
        config = Config(
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={"max_attempts": max_attempts, "mode": "standard"},
        )
        extra = client_kwargs.pop("config", None)
        self._config = config.merge(extra) if extra is not None else config
        self._client_kwargs = client_kwargs
        self._client: Any = None
        self._client_cm: Any = None

    async def get_client(self) -> Any:
        """Return shared EventBridge client; create if needed."""
        if self._client is None:
            kwargs = dict(self._client_kwargs)
            if self._endpoint_url is not None:
                kwargs["endpoint_url"] = self._endpoint_url
            try:
                self._client_cm = self._session.create_client(
                    "events",
                    region_name=self._region,
                    config=self._config,
                    **kwargs,
                )
                self._client = await self._client_cm.__aenter__()
            except Exception as e:
                self._client_cm = None
                raise MessagingConnectionError(str(e)) from e
            logger.debug(
                "EventBridge client created (region=%s, endpoint=%s)",
                self._region,
                self._endpoint_url or "aws",
            )
        return self._client

    async def close(self) -> None:
        """Close the client if open."""
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
            self._client_cm = None
            self._client = None

    async def health_check(self, event_bus_name: str = "default") -> bool:
        """Return True if the event bus exists and can be described."""
        try:
            client = await self.get_client()
            await client.describe_event_bus(Name=event_bus_name)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.warning("Event bus %s unavailable: %s", event_bus_name, code)
            return False
        except Exception as e:  # noqa: BLE001
            logger.warning("Event bus %s unreachable: %s", event_bus_name, e)
            return False
        return True
