"""Protocol layer: checksummed frames, command registry, and payload decoders."""

from .commands import COMMANDS, Command, CommandSpec, EnergyPeriod, MeasurementChannel, get_spec
from .framing import build_request, decode_response, encode_request
