"""
Event Stream Models

Wire event names sent by Bifrost and the server-sent event frame.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ProtocolEventKind(str, Enum):
    """Notifications delivered to the session owner."""

    TRANSACTION_RECEIVED = "transaction_received"
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_CONFIGURED = "account_configured"
    EXCHANGED = "exchanged"
    EXCHANGED_TIMELOCKED = "exchanged_timelocked"
    ERROR = "error"


# Named events Bifrost publishes on /events
WIRE_EVENTS: Dict[str, ProtocolEventKind] = {kind.value: kind for kind in ProtocolEventKind}

TERMINAL_EVENTS = frozenset({ProtocolEventKind.EXCHANGED, ProtocolEventKind.EXCHANGED_TIMELOCKED})


@dataclass
class ServerSentEvent:
    """A single dispatched server-sent event."""

    event: str = "message"
    data: str = ""
    id: Optional[str] = None
    retry: Optional[int] = None

    @property
    def kind(self) -> Optional[ProtocolEventKind]:
        return WIRE_EVENTS.get(self.event)

    def json(self) -> Any:
        return json.loads(self.data)


class SSEDecoder:
    """
    Incremental text/event-stream decoder.

    Feed it one line at a time (without the trailing newline); it returns
    an event when a blank line completes one.
    """

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []
        self._id: Optional[str] = None
        self._retry: Optional[int] = None

    def decode(self, line: str) -> Optional[ServerSentEvent]:
        line = line.rstrip("\r\n")

        if not line:
            if not self._event and not self._data and self._id is None and self._retry is None:
                return None
            event = ServerSentEvent(
                event=self._event or "message",
                data="\n".join(self._data),
                id=self._id,
                retry=self._retry,
            )
            self._event = ""
            self._data = []
            self._id = None
            self._retry = None
            return event

        # Comment / keep-alive
        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id":
            if "\0" not in value:
                self._id = value
        elif field == "retry":
            if value.isdigit():
                self._retry = int(value)

        return None
