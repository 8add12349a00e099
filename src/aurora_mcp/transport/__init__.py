"""Bus access: byte channels and the serialized request/response session."""

from .channel import ByteChannel, SerialChannel, TcpChannel
from .session import SessionConfig, SessionState, TransportSession
