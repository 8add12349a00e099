"""Byte channels to the RS-485 bus.

The transport session only needs three operations from a channel:
``write``, ``read_exact`` and ``close``. Two implementations are provided:
a local serial port (pyserial) and a raw TCP socket for TCP-to-serial
bridges. Both raise :class:`~aurora_mcp.protocol.errors.FrameTimeoutError`
when the deadline passes before ``n`` bytes have arrived and
:class:`~aurora_mcp.protocol.errors.ChannelError` for anything else.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Protocol

import serial

from ..protocol.errors import ChannelError, FrameTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 19200
DEFAULT_WRITE_TIMEOUT = 2.0
DEFAULT_CONNECT_TIMEOUT = 5.0


class ByteChannel(Protocol):
    """Minimal contract between the transport session and the wire."""

    def write(self, data: bytes) -> None: ...

    def read_exact(self, n: int, deadline: float) -> bytes:
        """Read exactly ``n`` bytes before ``deadline`` (a ``time.monotonic`` value)."""
        ...

    def close(self) -> None: ...


def _timeout(n: int, received: bytes) -> FrameTimeoutError:
    return FrameTimeoutError(
        f"Expected {n} bytes, got {len(received)} before deadline"
        + (f" ({received.hex(' ')})" if received else "")
    )


class SerialChannel:
    """A serial port, 8N1.

    ``port`` is a device path or any pyserial URL (``socket://host:port``,
    ``rfc2217://host:port``, ``loop://``).

    Usage::

        channel = SerialChannel("/dev/ttyUSB0")
        channel.open()
        channel.write(frame)
        response = channel.read_exact(8, time.monotonic() + 1.0)
        channel.close()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    ) -> None:
        self._port_name = port
        self._baudrate = baudrate
        self._write_timeout = write_timeout
        self._port: serial.Serial | None = None

    @property
    def connected(self) -> bool:
        return self._port is not None and self._port.is_open

    @property
    def description(self) -> str:
        return f"{self._port_name}@{self._baudrate}"

    def open(self) -> None:
        if self.connected:
            return
        try:
            self._port = serial.serial_for_url(
                self._port_name,
                baudrate=self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=0,
                write_timeout=self._write_timeout,
            )
        except (serial.SerialException, ValueError) as e:
            raise ChannelError(f"Could not open serial port {self._port_name}: {e}") from e
        logger.info("Opened serial port %s", self.description)

    def close(self) -> None:
        if self._port is None:
            return
        try:
            self._port.close()
        except serial.SerialException as e:
            logger.warning("Error closing serial port %s: %s", self._port_name, e)
        finally:
            self._port = None
            logger.info("Closed serial port %s", self._port_name)

    def _require_port(self) -> serial.Serial:
        if not self.connected:
            raise ChannelError(f"Serial port {self._port_name} is not open")
        return self._port

    def write(self, data: bytes) -> None:
        port = self._require_port()
        try:
            # Drop late bytes from an earlier, abandoned exchange
            port.reset_input_buffer()
            written = port.write(data)
            port.flush()
        except serial.SerialException as e:
            raise ChannelError(f"Write to {self._port_name} failed: {e}") from e
        if written is not None and written != len(data):
            raise ChannelError(f"Expected to write {len(data)} bytes, wrote {written}")

    def read_exact(self, n: int, deadline: float) -> bytes:
        port = self._require_port()
        buffer = b""
        while len(buffer) < n:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise _timeout(n, buffer)
            try:
                port.timeout = remaining
                buffer += port.read(n - len(buffer))
            except serial.SerialException as e:
                raise ChannelError(f"Read from {self._port_name} failed: {e}") from e
        return buffer

    def __enter__(self) -> SerialChannel:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class TcpChannel:
    """A TCP connection to a transparent TCP-to-serial bridge."""

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._write_timeout = write_timeout
        self._sock: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def description(self) -> str:
        return f"{self._host}:{self._port}"

    def open(self) -> None:
        if self.connected:
            return
        try:
            self._sock = socket.create_connection(
                (self._host, self._port), timeout=self._connect_timeout
            )
        except OSError as e:
            raise ChannelError(f"Could not connect to {self.description}: {e}") from e
        logger.info("Connected to bridge %s", self.description)

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing socket %s: %s", self.description, e)
        finally:
            self._sock = None
            logger.info("Disconnected from %s", self.description)

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise ChannelError(f"Not connected to {self.description}")
        return self._sock

    def _drain(self, sock: socket.socket) -> None:
        previous = sock.gettimeout()
        sock.setblocking(False)
        try:
            while sock.recv(4096):
                pass
        except BlockingIOError:
            pass
        finally:
            sock.settimeout(previous)

    def write(self, data: bytes) -> None:
        sock = self._require_socket()
        try:
            self._drain(sock)
            sock.settimeout(self._write_timeout)
            sock.sendall(data)
        except OSError as e:
            raise ChannelError(f"Send to {self.description} failed: {e}") from e

    def read_exact(self, n: int, deadline: float) -> bytes:
        sock = self._require_socket()
        buffer = b""
        while len(buffer) < n:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise _timeout(n, buffer)
            sock.settimeout(remaining)
            try:
                chunk = sock.recv(n - len(buffer))
            except socket.timeout:
                continue
            except OSError as e:
                raise ChannelError(f"Receive from {self.description} failed: {e}") from e
            if not chunk:
                raise ChannelError(f"Connection to {self.description} closed by peer")
            buffer += chunk
        return buffer

    def __enter__(self) -> TcpChannel:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
