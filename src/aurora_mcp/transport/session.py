"""Request/response session over a shared bus.

The Aurora bus is half-duplex: if two requests are outstanding at once,
the replies collide on the wire. A :class:`TransportSession` owns the one
channel to a bus and serializes every caller through a lock, so any number
of :class:`~aurora_mcp.client.InverterClient` objects can share it.

Each request runs as a bounded state machine::

    IDLE -> SENT -> AWAITING_RESPONSE -> SUCCESS
              |            |
              +------------+--> RETRY_PENDING -> SENT ...
              |            |
              +------------+--> FAILED

Timeouts, checksum errors, malformed frames and channel errors all count
against the same attempt budget. When it is spent the caller gets a single
:class:`~aurora_mcp.protocol.errors.CommunicationFailure`.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..protocol.errors import (
    ChannelError,
    ChecksumError,
    CommunicationFailure,
    MalformedFrameError,
)
from ..protocol.framing import REQUEST_SIZE, RESPONSE_SIZE, RequestFrame, decode_response
from .channel import ByteChannel

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF = 0.1

RETRYABLE_ERRORS = (TimeoutError, ChecksumError, MalformedFrameError, ChannelError)


class SessionState(Enum):
    IDLE = "idle"
    SENT = "sent"
    AWAITING_RESPONSE = "awaiting_response"
    RETRY_PENDING = "retry_pending"
    SUCCESS = "success"
    FAILED = "failed"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.SENT}),
    SessionState.SENT: frozenset({
        SessionState.AWAITING_RESPONSE,
        SessionState.RETRY_PENDING,
        SessionState.FAILED,
    }),
    SessionState.AWAITING_RESPONSE: frozenset({
        SessionState.SUCCESS,
        SessionState.RETRY_PENDING,
        SessionState.FAILED,
    }),
    SessionState.RETRY_PENDING: frozenset({SessionState.SENT}),
    SessionState.SUCCESS: frozenset({SessionState.IDLE}),
    SessionState.FAILED: frozenset({SessionState.IDLE}),
}


@dataclass(frozen=True)
class SessionConfig:
    """Retry policy for one bus.

    Attributes:
        timeout: Seconds to wait for a complete response, per attempt.
        max_attempts: Total attempts per request, first try included.
        backoff: Linear backoff step; the wait after the n-th failed
            attempt is ``backoff * n`` seconds.
        command_delay: Pause between writing a request and reading the
            reply. Some RS-485 adapters need a moment to turn the line around.
    """

    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff: float = DEFAULT_BACKOFF
    command_delay: float = 0.0

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.backoff < 0:
            raise ValueError(f"backoff must not be negative, got {self.backoff}")
        if self.command_delay < 0:
            raise ValueError(f"command_delay must not be negative, got {self.command_delay}")

    def backoff_delay(self, attempt: int) -> float:
        return self.backoff * attempt


class TransportSession:
    """Serialized, retrying request/response exchange over one channel."""

    def __init__(
        self,
        channel: ByteChannel,
        config: SessionConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._channel = channel
        self._config = config or SessionConfig()
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._state = SessionState.IDLE

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def channel(self) -> ByteChannel:
        return self._channel

    @property
    def state(self) -> SessionState:
        return self._state

    def _transition(self, new: SessionState) -> None:
        if new not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Illegal session transition {self._state.name} -> {new.name}")
        self._state = new

    def execute(self, request: bytes | RequestFrame) -> bytes:
        """Send one request and return its checksum-validated 8-byte response.

        Raises:
            MalformedFrameError: If ``request`` is not a 10-byte frame. No I/O
                happens in that case.
            CommunicationFailure: If no valid response arrived within
                ``max_attempts`` attempts.
        """
        raw = request.raw if isinstance(request, RequestFrame) else bytes(request)
        if len(raw) != REQUEST_SIZE:
            raise MalformedFrameError(
                f"Request must be {REQUEST_SIZE} bytes, got {len(raw)}"
            )

        with self._lock:
            if self._state in (SessionState.SUCCESS, SessionState.FAILED):
                self._transition(SessionState.IDLE)
            try:
                return self._exchange(raw)
            except BaseException:
                if self._state not in (SessionState.SUCCESS, SessionState.FAILED):
                    self._state = SessionState.FAILED
                raise

    def _exchange(self, raw: bytes) -> bytes:
        config = self._config
        last_error: Exception | None = None

        for attempt in range(1, config.max_attempts + 1):
            self._transition(SessionState.SENT)
            try:
                logger.debug("-> %s (attempt %d)", raw.hex(" "), attempt)
                self._channel.write(raw)
                self._transition(SessionState.AWAITING_RESPONSE)
                if config.command_delay:
                    self._sleep(config.command_delay)
                response = self._channel.read_exact(
                    RESPONSE_SIZE, self._clock() + config.timeout
                )
                logger.debug("<- %s", bytes(response).hex(" "))
                decode_response(response)
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt == config.max_attempts:
                    break
                delay = config.backoff_delay(attempt)
                logger.info(
                    "Attempt %d/%d for %s failed (%s: %s), retrying in %.2fs",
                    attempt,
                    config.max_attempts,
                    raw[:2].hex(" "),
                    type(e).__name__,
                    e,
                    delay,
                )
                self._transition(SessionState.RETRY_PENDING)
                self._sleep(delay)
                continue

            self._transition(SessionState.SUCCESS)
            return bytes(response)

        self._transition(SessionState.FAILED)
        logger.warning(
            "No valid response to %s after %d attempts: %s",
            raw[:2].hex(" "),
            config.max_attempts,
            last_error,
        )
        raise CommunicationFailure(
            f"No valid response from address {raw[0]} to opcode {raw[1]} "
            f"after {config.max_attempts} attempts",
            attempts=config.max_attempts,
            last_error=last_error,
        ) from last_error

    def close(self) -> None:
        with self._lock:
            self._channel.close()

    def __enter__(self) -> TransportSession:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
