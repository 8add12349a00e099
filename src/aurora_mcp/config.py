# aurora_mcp/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser

from .models.converters import DspFormat
from .protocol.framing import validate_address
from .transport.channel import (
    DEFAULT_BAUDRATE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
    SerialChannel,
    TcpChannel,
)
from .transport.session import SessionConfig


@dataclass
class BusConfig:
    port: str | None = None
    baudrate: int = DEFAULT_BAUDRATE
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    host: str | None = None
    tcp_port: int | None = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT


@dataclass
class InverterConfig:
    addresses: list[int] = field(default_factory=lambda: [2])
    dsp_format: DspFormat = DspFormat.FIXED_POINT


@dataclass
class LoggingConfig:
    level: str = "INFO"
    debug_modules: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    bus: BusConfig
    session: SessionConfig
    inverter: InverterConfig
    logging: LoggingConfig


def _split(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


def open_channel(bus: BusConfig) -> SerialChannel | TcpChannel:
    """Build and open the channel described by ``bus``."""
    if bus.port:
        channel = SerialChannel(bus.port, baudrate=bus.baudrate, write_timeout=bus.write_timeout)
    elif bus.host and bus.tcp_port:
        channel = TcpChannel(
            bus.host,
            bus.tcp_port,
            connect_timeout=bus.connect_timeout,
            write_timeout=bus.write_timeout,
        )
    else:
        raise ValueError("Bus needs either a serial port or a host and tcp_port")
    channel.open()
    return channel


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)
        p = cfg.parser

        # --- Bus ---
        if "bus" not in p:
            raise ValueError("[bus] section missing from config")
        bus_sec = p["bus"]
        bus_kwargs = {}
        if "port" in bus_sec:
            bus_kwargs["port"] = bus_sec["port"].strip()
        if "baudrate" in bus_sec:
            bus_kwargs["baudrate"] = int(bus_sec["baudrate"])
        if "write_timeout" in bus_sec:
            bus_kwargs["write_timeout"] = float(bus_sec["write_timeout"])
        if "host" in bus_sec:
            bus_kwargs["host"] = bus_sec["host"].strip()
        if "tcp_port" in bus_sec:
            bus_kwargs["tcp_port"] = int(bus_sec["tcp_port"])
        if "connect_timeout" in bus_sec:
            bus_kwargs["connect_timeout"] = float(bus_sec["connect_timeout"])
        bus = BusConfig(**bus_kwargs)
        if not bus.port and not (bus.host and bus.tcp_port):
            raise ValueError("[bus] needs 'port', or 'host' and 'tcp_port'")

        # --- Session ---
        session_kwargs = {}
        if "session" in p:
            session_sec = p["session"]
            if "timeout" in session_sec:
                session_kwargs["timeout"] = float(session_sec["timeout"])
            if "max_attempts" in session_sec:
                session_kwargs["max_attempts"] = int(session_sec["max_attempts"])
            if "backoff" in session_sec:
                session_kwargs["backoff"] = float(session_sec["backoff"])
            if "command_delay" in session_sec:
                session_kwargs["command_delay"] = float(session_sec["command_delay"])
        session = SessionConfig(**session_kwargs)

        # --- Inverter ---
        inverter_kwargs = {}
        if "inverter" in p:
            inv_sec = p["inverter"]
            if "addresses" in inv_sec:
                inverter_kwargs["addresses"] = [
                    validate_address(int(x)) for x in _split(inv_sec["addresses"])
                ]
            if "dsp_format" in inv_sec:
                inverter_kwargs["dsp_format"] = DspFormat(inv_sec["dsp_format"].strip().lower())
        inverter = InverterConfig(**inverter_kwargs)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            log_sec = p["logging"]
            if "level" in log_sec:
                logging_kwargs["level"] = log_sec["level"].strip().upper()
            if "debug_modules" in log_sec:
                logging_kwargs["debug_modules"] = _split(log_sec["debug_modules"])
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            bus=bus,
            session=session,
            inverter=inverter,
            logging=logging_cfg,
        )
