"""
Server-sent event consumer for Bifrost's per-address event feed.

Reconnects like a browser EventSource: after any disconnect it waits for
the server-advertised retry delay and resumes from the last event id.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Dict, Optional

import httpx

from bifrost_client.config import settings
from bifrost_client.core.errors import StreamError

from .models import ProtocolEventKind, ServerSentEvent, SSEDecoder

logger = logging.getLogger(__name__)

EventHandler = Callable[[ProtocolEventKind, ServerSentEvent], Coroutine[Any, Any, None]]


class EventStreamConsumer:
    """
    Subscribe to `{base_url}/events?stream=<name>` and feed named events,
    one at a time and in order, to a single handler.

    Usage:
        consumer = EventStreamConsumer(bifrost_url, memo, handler)
        task = asyncio.create_task(consumer.run())
        ...
        consumer.close()
    """

    def __init__(
        self,
        base_url: str,
        stream_name: str,
        handler: EventHandler,
        *,
        reconnect_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.stream_name = stream_name
        self._handler = handler
        self._transport = transport
        self._retry_delay = (
            reconnect_delay if reconnect_delay is not None else settings.stream_reconnect_delay_seconds
        )
        self._closed = False
        self.close_count = 0
        self.connect_count = 0
        self.last_event_id: Optional[str] = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def retry_delay(self) -> float:
        return self._retry_delay

    def close(self) -> None:
        """Stop consuming. Safe to call from inside the handler."""
        if self._closed:
            return
        self._closed = True
        self.close_count += 1
        logger.info(f"Event stream {self.stream_name} closed")

    async def run(self) -> None:
        """Consume the feed until close() is called."""
        while not self._closed:
            try:
                await self._consume()
            except (httpx.RequestError, httpx.HTTPStatusError) as exc:
                error = StreamError(f"Event stream error: {exc}", details={"stream": self.stream_name})
                logger.warning(error.message)

            if self._closed:
                break

            logger.info(f"Reconnecting to event stream {self.stream_name} in {self._retry_delay}s")
            await asyncio.sleep(self._retry_delay)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "accept": "text/event-stream",
            "cache-control": "no-cache",
        }
        if self.last_event_id is not None:
            headers["last-event-id"] = self.last_event_id
        return headers

    async def _consume(self) -> None:
        timeout = httpx.Timeout(settings.request_timeout_seconds, read=None)
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=self._transport,
        ) as client:
            async with client.stream(
                "GET",
                "/events",
                params={"stream": self.stream_name},
                headers=self._headers(),
            ) as response:
                response.raise_for_status()
                self.connect_count += 1
                logger.debug(f"Subscribed to event stream {self.stream_name}")

                decoder = SSEDecoder()
                async for line in response.aiter_lines():
                    event = decoder.decode(line)
                    if event is None:
                        continue

                    if event.id is not None:
                        self.last_event_id = event.id
                    if event.retry is not None:
                        self._retry_delay = event.retry / 1000

                    await self._dispatch(event)
                    if self._closed:
                        return

        logger.info(f"Event stream {self.stream_name} ended by server")

    async def _dispatch(self, event: ServerSentEvent) -> None:
        kind = event.kind
        if kind is None:
            logger.debug(f"Ignoring unknown event {event.event!r} on stream {self.stream_name}")
            return
        await self._handler(kind, event)
