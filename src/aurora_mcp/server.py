"""MCP server entry point for Aurora inverters on an RS-485 bus.

Exposes the inverter queries as tools via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from mcp.server.fastmcp import FastMCP

from .client import InverterClient
from .config import BusConfig, Config, InverterConfig, open_channel
from .models.converters import CHANNEL_UNITS
from .protocol.commands import EnergyPeriod, MeasurementChannel
from .protocol.errors import AuroraError
from .transport.session import SessionConfig, TransportSession
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "aurora-inverter",
    instructions="Query Power-One/ABB Aurora photovoltaic inverters on an RS-485 bus",
)

# Global connection state
_session: TransportSession | None = None
_channel_description: str = ""
_inverter_cfg = InverterConfig()


def _get_session() -> TransportSession:
    """Get the active bus session, raising if not connected."""
    if _session is None:
        raise RuntimeError(
            "Not connected to the bus. Use the 'connect' tool first."
        )
    return _session


def _client(address: int | None) -> InverterClient:
    if address is None:
        address = _inverter_cfg.addresses[0]
    return InverterClient(_get_session(), address, _inverter_cfg.dsp_format)


def _run(query: Callable[[], dict[str, Any]]) -> dict[str, Any]:
    """Run a query, reporting protocol errors as an error dict."""
    try:
        return query()
    except AuroraError as e:
        logger.warning("%s: %s", type(e).__name__, e)
        return {"error": str(e), "kind": type(e).__name__}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    config_path: str | None = None,
    port: str | None = None,
    host: str | None = None,
    tcp_port: int | None = None,
    baudrate: int = 19200,
) -> dict[str, Any]:
    """Open the RS-485 bus, either from a config file or directly.

    Args:
        config_path: INI config file with [bus], [session] and [inverter] sections.
        port: Serial port such as /dev/ttyUSB0.
        host: Host of a TCP-to-serial bridge (used with tcp_port).
        tcp_port: TCP port of the bridge.
        baudrate: Serial baud rate (default 19200).
    """
    global _session, _channel_description, _inverter_cfg
    if _session is not None:
        return {"connected": True, "message": "Already connected", "bus": _channel_description}

    if config_path:
        app_cfg = Config.load(config_path)
        bus, session_cfg, inverter_cfg = app_cfg.bus, app_cfg.session, app_cfg.inverter
        setup_logging(app_cfg.logging.level, app_cfg.logging.debug_modules)
    elif port or (host and tcp_port):
        bus = BusConfig(port=port, baudrate=baudrate, host=host, tcp_port=tcp_port)
        session_cfg = SessionConfig()
        inverter_cfg = InverterConfig()
    else:
        return {"error": "Give config_path, port, or host and tcp_port"}

    try:
        channel = open_channel(bus)
    except AuroraError as e:
        return {"error": str(e)}

    _session = TransportSession(channel, session_cfg)
    _inverter_cfg = inverter_cfg
    _channel_description = channel.description
    return {
        "connected": True,
        "bus": _channel_description,
        "addresses": _inverter_cfg.addresses,
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the bus connection."""
    global _session
    if _session is None:
        return {"disconnected": True}
    _session.close()
    _session = None
    return {"disconnected": True}


# ─── QUERY TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def get_state(address: int | None = None) -> dict[str, Any]:
    """Read global, inverter, DC/DC and alarm state.

    Args:
        address: Inverter bus address (2-63). Defaults to the first configured address.
    """
    return _run(lambda: _client(address).get_state().to_dict())


@mcp.tool()
def get_measurement(channel: str, address: int | None = None) -> dict[str, Any]:
    """Read one DSP measurement such as grid_power or inverter_temperature.

    Args:
        channel: Measurement channel name (see aurora://catalog/channels).
        address: Inverter bus address (2-63).
    """
    def query() -> dict[str, Any]:
        quantity = _client(address).get_measurement(channel)
        return {"channel": channel, **quantity.as_dict()}

    return _run(query)


@mcp.tool()
def get_cumulative_energy(period: str = "daily", address: int | None = None) -> dict[str, Any]:
    """Read produced energy in kWh.

    Args:
        period: daily, weekly, monthly, yearly, total or partial.
        address: Inverter bus address (2-63).
    """
    def query() -> dict[str, Any]:
        quantity = _client(address).get_cumulative_energy(period)
        return {"period": period, **quantity.as_dict()}

    return _run(query)


@mcp.tool()
def get_alarms(address: int | None = None) -> dict[str, Any]:
    """Read the last four alarms, oldest first."""
    return _run(lambda: {
        "alarms": [alarm.name for alarm in _client(address).get_alarms()]
    })


@mcp.tool()
def get_identification(address: int | None = None) -> dict[str, Any]:
    """Read serial number, firmware release and part number."""
    return _run(lambda: _client(address).get_identification().to_dict())


@mcp.tool()
def get_time(address: int | None = None) -> dict[str, Any]:
    """Read the inverter clock."""
    return _run(lambda: {"time": _client(address).get_time().isoformat()})


@mcp.tool()
def poll(address: int | None = None) -> dict[str, Any]:
    """Read state, grid power and today's energy in one go."""
    def query() -> dict[str, Any]:
        client = _client(address)
        return {
            "address": client.address,
            "state": client.get_state().to_dict(),
            "grid_power": client.get_measurement(MeasurementChannel.GRID_POWER).as_dict(),
            "daily_energy": client.get_cumulative_energy(EnergyPeriod.DAILY).as_dict(),
        }

    return _run(query)


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("aurora://bus/status")
def resource_bus_status() -> str:
    """Connection state and configured addresses."""
    if _session is None:
        return json.dumps({"connected": False})
    return json.dumps({
        "connected": True,
        "bus": _channel_description,
        "state": _session.state.value,
        "addresses": _inverter_cfg.addresses,
    })


@mcp.resource("aurora://catalog/channels")
def resource_channel_catalog() -> str:
    """Measurement channels with selector bytes and units."""
    channels = [
        {"name": channel.name.lower(), "selector": channel.value, "unit": unit.value}
        for channel, (unit, _) in CHANNEL_UNITS.items()
    ]
    return json.dumps({"channels": channels, "count": len(channels)})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    setup_logging()
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
