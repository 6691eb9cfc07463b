"""
Event Stream Service

Consumes Bifrost's server-sent event feed for a deposit address.
"""

from .models import (
    TERMINAL_EVENTS,
    WIRE_EVENTS,
    ProtocolEventKind,
    ServerSentEvent,
    SSEDecoder,
)
from .stream import EventStreamConsumer

__all__ = [
    # Models
    "ProtocolEventKind",
    "ServerSentEvent",
    "SSEDecoder",
    "WIRE_EVENTS",
    "TERMINAL_EVENTS",
    # Consumer
    "EventStreamConsumer",
]
