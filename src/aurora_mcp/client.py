"""Typed query interface for one inverter on a shared bus."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from .models.converters import (
    DspFormat,
    datetime_to_seconds,
    scale_energy,
    scale_measurement,
    seconds_to_datetime,
    to_alarm,
    to_dcdc_status,
    to_global_state,
    to_inverter_status,
    to_transmission_state,
)
from .models.quantity import Quantity
from .models.state import (
    AlarmCode,
    Identification,
    InverterState,
    ManufactureDate,
    TransmissionState,
    UnknownCode,
    VersionInfo,
)
from .protocol.commands import (
    COMMANDS,
    Command,
    EnergyPeriod,
    MeasurementChannel,
    parse_channel,
    parse_period,
)
from .protocol.errors import CommandRejectedError
from .protocol.framing import build_request, decode_response, validate_address
from .transport.session import TransportSession

logger = logging.getLogger(__name__)


class InverterClient:
    """Queries for the inverter at one bus address.

    Clients hold no state besides their address and DSP format, so any
    number of them may share a :class:`TransportSession`::

        session = TransportSession(channel)
        west = InverterClient(session, 2)
        east = InverterClient(session, 3)
        west.get_measurement(MeasurementChannel.GRID_POWER)
    """

    def __init__(
        self,
        session: TransportSession,
        address: int,
        dsp_format: DspFormat | str = DspFormat.FIXED_POINT,
    ) -> None:
        self._address = validate_address(address)
        self._session = session
        self._dsp_format = DspFormat(dsp_format)

    @property
    def address(self) -> int:
        return self._address

    @property
    def dsp_format(self) -> DspFormat:
        return self._dsp_format

    def __repr__(self) -> str:
        return f"InverterClient(address={self._address}, dsp_format={self._dsp_format.value})"

    def query(self, command: Command, *args: Any):
        """Run one command and return its decoded raw fields.

        Argument validation and encoding happen before any I/O.
        """
        request = build_request(self._address, command, *args)
        response = decode_response(self._session.execute(request))
        fields = COMMANDS[request.command].decode_payload(response.data)
        self._check_transmission(request.command, fields)
        return fields

    @staticmethod
    def _check_transmission(command: Command, fields: Any) -> None:
        raw = getattr(fields, "transmission_state", None)
        if raw is None or raw == TransmissionState.OK:
            return
        state = to_transmission_state(raw)
        logger.warning("Inverter rejected %s: %s", command.name, state.name)
        raise CommandRejectedError(command.name, state.name)

    # ─── STATE ────────────────────────────────────────────────────────

    def get_state(self) -> InverterState:
        fields = self.query(Command.GET_STATE)
        return InverterState(
            transmission_state=to_transmission_state(fields.transmission_state),
            global_state=to_global_state(fields.global_state),
            inverter_state=to_inverter_status(fields.inverter_state),
            dcdc1_state=to_dcdc_status(fields.dcdc1_state),
            dcdc2_state=to_dcdc_status(fields.dcdc2_state),
            alarm=to_alarm(fields.alarm_state),
        )

    def get_alarms(self) -> list[AlarmCode | UnknownCode]:
        """Return the last four alarms, oldest first."""
        fields = self.query(Command.GET_LAST_ALARMS)
        return [to_alarm(code) for code in fields.alarms]

    # ─── MEASUREMENTS ─────────────────────────────────────────────────

    def get_measurement(
        self,
        channel: MeasurementChannel | int | str,
        global_measure: bool = True,
    ) -> Quantity:
        """Read one DSP measurement.

        Args:
            channel: Measurement selector (enum member, selector byte, or name).
            global_measure: Ask for the whole-unit value on multi-module inverters.
        """
        selector = parse_channel(channel)
        fields = self.query(Command.GET_DSP_MEASUREMENT, selector, global_measure)
        return scale_measurement(selector, fields.raw, self._dsp_format)

    def get_cumulative_energy(self, period: EnergyPeriod | int | str) -> Quantity:
        """Read an energy counter in kWh."""
        selector = parse_period(period)
        fields = self.query(Command.GET_CUMULATIVE_ENERGY, selector)
        return scale_energy(fields.raw)

    # ─── IDENTIFICATION ───────────────────────────────────────────────

    def get_serial_number(self) -> str:
        return self.query(Command.GET_SERIAL_NUMBER).text

    def get_part_number(self) -> str:
        return self.query(Command.GET_PART_NUMBER).text

    def get_firmware_release(self) -> str:
        """Firmware release formatted the way the inverter displays it, e.g. ``C.0.1.6``."""
        return ".".join(self.query(Command.GET_FIRMWARE_RELEASE).text)

    def get_version(self) -> VersionInfo:
        return VersionInfo.from_text(self.query(Command.GET_VERSION).text)

    def get_manufacture_date(self) -> ManufactureDate:
        fields = self.query(Command.GET_MANUFACTURE_DATE)
        return ManufactureDate(week=fields.week, year=fields.year)

    def get_identification(self) -> Identification:
        return Identification(
            serial_number=self.get_serial_number(),
            firmware_version=self.get_firmware_release(),
            part_number=self.get_part_number(),
        )

    # ─── CLOCK ────────────────────────────────────────────────────────

    def get_time(self) -> datetime:
        """Read the inverter clock as a naive local datetime."""
        return seconds_to_datetime(self.query(Command.GET_TIME_DATE).raw)

    def set_time(self, when: datetime) -> None:
        """Set the inverter clock to ``when`` (wall time)."""
        self.query(Command.SET_TIME_DATE, datetime_to_seconds(when))
        logger.info("Set inverter %d clock to %s", self._address, when.isoformat())
