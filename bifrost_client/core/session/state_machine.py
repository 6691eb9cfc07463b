"""
Deposit Session State Machine

Drives one deposit: address registration, event streaming, account
configuration and the terminal exchange events.
"""

import asyncio
import inspect
import logging
import threading
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Union

import httpx
from pydantic import ValidationError
from stellar_sdk import Keypair

from bifrost_client.core.errors import (
    ConfigurationError,
    InvalidTransitionError,
    SessionAlreadyStartedError,
    StreamError,
)
from bifrost_client.core.execution.tx_builder import DepositTransactionBuilder
from bifrost_client.logging_config import bind_session_context
from bifrost_client.providers.base import LedgerGateway
from bifrost_client.providers.bifrost import BifrostProvider
from bifrost_client.providers.horizon import HorizonGateway
from bifrost_client.services.events.models import ProtocolEventKind, ServerSentEvent
from bifrost_client.services.events.stream import EventStreamConsumer

from .account_setup import AccountConfigurator
from .models import (
    TERMINAL_PHASES,
    Chain,
    DepositAddress,
    PhaseTransition,
    ProtocolEvent,
    SessionConfig,
    SessionPhase,
    StartResult,
    decode_deposit_address,
)

# Callback receiving (kind, payload); may be a plain function or a coroutine function
EventCallback = Callable[[ProtocolEventKind, Any], Union[None, Awaitable[None]]]


class Session:
    """
    One deposit session against a Bifrost server.

    Features:
    - Validates parameters on construction, without network I/O
    - Start methods may be called once per instance
    - Forwards stream events to a single caller callback, in order
    - Configures the deposit account when Bifrost reports it created
    """

    TRANSITIONS: Dict[SessionPhase, Set[SessionPhase]] = {
        SessionPhase.CREATED: {
            SessionPhase.STARTED,
        },
        SessionPhase.STARTED: {
            SessionPhase.AWAITING_ADDRESS,
            SessionPhase.FAILED,
        },
        SessionPhase.AWAITING_ADDRESS: {
            SessionPhase.STREAMING,
            SessionPhase.FAILED,
        },
        SessionPhase.STREAMING: {
            SessionPhase.FINALIZING,
            SessionPhase.SUCCEEDED,
            SessionPhase.FAILED,
        },
        SessionPhase.FINALIZING: {
            SessionPhase.STREAMING,  # Configured, wait for the exchange
            SessionPhase.SUCCEEDED,
            SessionPhase.FAILED,
        },
        SessionPhase.SUCCEEDED: set(),
        SessionPhase.FAILED: set(),
    }

    def __init__(
        self,
        params: Union[SessionConfig, Mapping[str, Any], None],
        *,
        ledger: Optional[LedgerGateway] = None,
        bifrost: Optional[BifrostProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the session.

        Args:
            params: SessionConfig, or a mapping with the same fields
            ledger: Ledger gateway override (defaults to Horizon at params.horizon_url)
            bifrost: Bifrost client override
            transport: httpx transport shared by the default clients
            logger: Optional logger

        Raises:
            ConfigurationError: If params are missing or invalid
        """
        self.config = self._check_params(params)
        self.logger = logger or logging.getLogger(__name__)
        self._transport = transport

        self.ledger = ledger or HorizonGateway(
            self.config.horizon_url,
            allow_http=bool(self.config.horizon_allow_http),
            transport=transport,
        )
        self.bifrost = bifrost or BifrostProvider(self.config.bifrost_url, transport=transport)
        self.builder = DepositTransactionBuilder(self.config.network)

        self.keypair: Optional[Keypair] = None
        self.signer: Optional[str] = None
        self.deposit: Optional[DepositAddress] = None
        self.history: List[PhaseTransition] = []
        self.events: List[ProtocolEvent] = []

        self._phase = SessionPhase.CREATED
        self._started = False
        self._start_lock = threading.Lock()
        self._on_event: Optional[EventCallback] = None
        self._stream: Optional[EventStreamConsumer] = None
        self._stream_task: Optional[asyncio.Task] = None

    @staticmethod
    def _check_params(params: Union[SessionConfig, Mapping[str, Any], None]) -> SessionConfig:
        if params is None:
            raise ConfigurationError("params not provided")
        if isinstance(params, SessionConfig):
            return params
        if not isinstance(params, Mapping):
            raise ConfigurationError(f"params must be a SessionConfig or a mapping, got {type(params).__name__}")
        try:
            return SessionConfig(**params)
        except ValidationError as exc:
            problems = "; ".join(
                f"params.{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid session params: {problems}") from exc

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def started(self) -> bool:
        return self._started

    @property
    def is_terminal(self) -> bool:
        return self._phase in TERMINAL_PHASES

    @property
    def stream(self) -> Optional[EventStreamConsumer]:
        return self._stream

    def _transition(self, to_phase: SessionPhase, reason: Optional[str] = None) -> PhaseTransition:
        from_phase = self._phase
        if to_phase not in self.TRANSITIONS.get(from_phase, set()):
            raise InvalidTransitionError(from_phase.value, to_phase.value)

        transition = PhaseTransition(from_phase=from_phase, to_phase=to_phase, reason=reason)
        self._phase = to_phase
        self.history.append(transition)
        self.logger.debug(
            f"Session {self.keypair.public_key if self.keypair else '-'}: "
            f"{from_phase.value} -> {to_phase.value}{f' ({reason})' if reason else ''}"
        )
        return transition

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def start_bitcoin(self, on_event: EventCallback) -> Awaitable[StartResult]:
        return self._start(Chain.BITCOIN, on_event)

    def start_ethereum(self, on_event: EventCallback) -> Awaitable[StartResult]:
        return self._start(Chain.ETHEREUM, on_event)

    def start_lumen(self, on_event: EventCallback) -> Awaitable[StartResult]:
        return self._start(Chain.LUMEN, on_event)

    def _start(self, chain: Chain, on_event: EventCallback) -> Awaitable[StartResult]:
        # Check-and-set happens before the coroutine is created, so a second
        # call fails here, synchronously, with nothing sent over the network.
        with self._start_lock:
            if self._started:
                raise SessionAlreadyStartedError()
            self._started = True

        self._on_event = on_event
        if self.config.secret:
            self.keypair = Keypair.from_secret(self.config.secret)
        else:
            self.keypair = Keypair.random()
        self._transition(SessionPhase.STARTED, reason=f"start_{chain.value}")

        return self._register_and_stream(chain)

    async def _register_and_stream(self, chain: Chain) -> StartResult:
        self._transition(SessionPhase.AWAITING_ADDRESS)
        try:
            registration = await self.bifrost.register_address(chain.value, self.keypair.public_key)
            deposit = decode_deposit_address(chain, registration.address)
        except Exception as e:
            self._transition(SessionPhase.FAILED, reason=str(e))
            raise

        self.signer = registration.signer
        self.deposit = deposit
        result = StartResult(
            address=deposit.address,
            keypair=self.keypair,
            chain=chain,
            memo=deposit.memo,
        )

        self._transition(SessionPhase.STREAMING, reason=f"stream {deposit.stream_name}")
        self._stream = EventStreamConsumer(
            self.config.bifrost_url,
            deposit.stream_name,
            self._handle_event,
            transport=self._transport,
        )
        # Scheduled, not run: the caller gets the address before any event is handled
        self._stream_task = asyncio.create_task(self._run_stream(chain))
        return result

    async def _run_stream(self, chain: Chain) -> None:
        bind_session_context(self.keypair.public_key, chain.value)
        await self._stream.run()

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    async def _handle_event(self, kind: ProtocolEventKind, event: ServerSentEvent) -> None:
        handler = self._dispatch_table[kind]
        await handler(self, event)

    async def _on_transaction_received(self, event: ServerSentEvent) -> None:
        await self._emit(ProtocolEventKind.TRANSACTION_RECEIVED)

    async def _on_account_created(self, event: ServerSentEvent) -> None:
        await self._emit(ProtocolEventKind.ACCOUNT_CREATED)
        if self.is_terminal:
            return

        self._transition(SessionPhase.FINALIZING, reason="account created")
        configurator = AccountConfigurator(
            ledger=self.ledger,
            bifrost=self.bifrost,
            builder=self.builder,
            keypair=self.keypair,
            emit=self._emit,
            bridge_signer=self.signer,
            recovery_public_key=self.config.recovery_public_key,
        )
        if await configurator.run():
            self._transition(SessionPhase.STREAMING, reason="account configured")
        else:
            self._transition(SessionPhase.FAILED, reason="signer installation failed")
            self._close_stream()

    async def _on_exchanged(self, event: ServerSentEvent) -> None:
        await self._emit(ProtocolEventKind.EXCHANGED)
        self._finish()

    async def _on_exchanged_timelocked(self, event: ServerSentEvent) -> None:
        try:
            payload = event.json()
        except ValueError as e:
            self.logger.error(f"Malformed exchanged_timelocked payload: {event.data!r}")
            await self._emit(ProtocolEventKind.ERROR, StreamError(f"Malformed exchanged_timelocked payload: {e}"))
            self._finish(SessionPhase.FAILED, reason="malformed exchanged_timelocked")
        else:
            await self._emit(ProtocolEventKind.EXCHANGED_TIMELOCKED, payload)
            self._finish()

    async def _on_stream_notice(self, event: ServerSentEvent) -> None:
        # account_configured is ours to emit; bridge-side errors are transport noise
        self.logger.warning(f"Bifrost sent {event.event!r} on stream: {event.data!r}")

    _dispatch_table = {
        ProtocolEventKind.TRANSACTION_RECEIVED: _on_transaction_received,
        ProtocolEventKind.ACCOUNT_CREATED: _on_account_created,
        ProtocolEventKind.ACCOUNT_CONFIGURED: _on_stream_notice,
        ProtocolEventKind.EXCHANGED: _on_exchanged,
        ProtocolEventKind.EXCHANGED_TIMELOCKED: _on_exchanged_timelocked,
        ProtocolEventKind.ERROR: _on_stream_notice,
    }

    def _finish(self, phase: SessionPhase = SessionPhase.SUCCEEDED, reason: str = "exchanged") -> None:
        if not self.is_terminal:
            self._transition(phase, reason=reason)
        self._close_stream()

    async def _emit(self, kind: ProtocolEventKind, payload: Any = None) -> None:
        self.events.append(ProtocolEvent(kind=kind, payload=payload))
        if self._on_event is None:
            return
        try:
            result = self._on_event(kind, payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.logger.error(f"Event callback error for {kind.value}: {e}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _close_stream(self) -> None:
        if self._stream is not None:
            self._stream.close()

    async def wait_closed(self) -> None:
        """Wait until the event stream has stopped."""
        if self._stream_task is not None:
            await self._stream_task

    async def close(self) -> None:
        """Close the event subscription before a terminal event arrives."""
        self._close_stream()
        task = self._stream_task
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
