"""Aurora inverter protocol engine with an MCP tool server."""

from .client import InverterClient
from .transport.session import SessionConfig, TransportSession

__version__ = "0.1.0"
