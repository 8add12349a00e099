"""Exception hierarchy for the Aurora protocol engine.

Programmer errors (bad address, bad argument, unknown command) subclass
``ValueError`` and are raised before any I/O. Transient link errors
(``ChecksumError``, ``FrameTimeoutError``, ``MalformedFrameError``,
``ChannelError``) are retried by the transport session and only reach the
caller wrapped in a ``CommunicationFailure``.
"""

from __future__ import annotations


class AuroraError(Exception):
    """Base class for every error raised by this package."""


class InvalidAddressError(AuroraError, ValueError):
    """Bus address outside the assignable range 2-63."""

    def __init__(self, address: object) -> None:
        super().__init__(f"Inverter address must be 2-63, got {address!r}")
        self.address = address


class InvalidParameterError(AuroraError, ValueError):
    """Command argument outside its enumeration or range."""


class UnsupportedCommandError(AuroraError, ValueError):
    """Command or opcode not present in the command registry."""


class MalformedFrameError(AuroraError):
    """Frame has the wrong length."""


class ChecksumError(AuroraError):
    """Frame checksum does not match its contents."""


class FrameTimeoutError(AuroraError, TimeoutError):
    """No response, or only part of one, arrived before the deadline."""


class ChannelError(AuroraError, ConnectionError):
    """The underlying byte channel failed (port gone, socket reset)."""


class CommunicationFailure(AuroraError):
    """A request could not be completed within the retry budget."""

    def __init__(self, message: str, attempts: int, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class CommandRejectedError(AuroraError):
    """The inverter answered with a non-zero transmission state."""

    def __init__(self, command: object, transmission_state: object) -> None:
        super().__init__(
            f"Inverter rejected {command!s}: {transmission_state!s}"
        )
        self.command = command
        self.transmission_state = transmission_state
