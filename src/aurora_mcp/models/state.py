"""Symbolic inverter states and alarm codes.

Code tables follow the Aurora communication protocol reference. Devices
may report firmware-specific codes that are not listed; those decode to
:class:`UnknownCode` instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Union


@dataclass(frozen=True)
class UnknownCode:
    """A raw code with no entry in the relevant table."""

    raw: int

    @property
    def name(self) -> str:
        return f"UNKNOWN_{self.raw}"

    @property
    def description(self) -> str:
        return f"Unknown code {self.raw}"


class _DescribedEnum(IntEnum):
    @property
    def description(self) -> str:
        return self.name.replace("_", " ").capitalize()


class TransmissionState(_DescribedEnum):
    OK = 0
    COMMAND_NOT_IMPLEMENTED = 51
    VARIABLE_DOES_NOT_EXIST = 52
    VALUE_OUT_OF_RANGE = 53
    EEPROM_NOT_ACCESSIBLE = 54
    SERVICE_MODE_NOT_TOGGLED = 55
    INTERNAL_MICRO_UNREACHABLE = 56
    COMMAND_NOT_EXECUTED = 57
    VARIABLE_NOT_AVAILABLE = 58


class GlobalState(_DescribedEnum):
    SENDING_PARAMETERS = 0
    WAIT_SUN_GRID = 1
    CHECKING_GRID = 2
    MEASURING_RISO = 3
    DCDC_START = 4
    INVERTER_START = 5
    RUN = 6
    RECOVERY = 7
    PAUSE = 8
    GROUND_FAULT = 9
    OTH_FAULT = 10
    ADDRESS_SETTING = 11
    SELF_TEST = 12
    SELF_TEST_FAIL = 13
    SENSOR_TEST_MEASURING_RISO = 14
    LEAK_FAULT = 15
    WAITING_FOR_MANUAL_RESET = 16
    INTERNAL_ERROR_E026 = 17
    INTERNAL_ERROR_E027 = 18
    INTERNAL_ERROR_E028 = 19
    INTERNAL_ERROR_E029 = 20
    INTERNAL_ERROR_E030 = 21
    SENDING_WIND_TABLE = 22
    FAILED_SENDING_TABLE = 23
    UTH_FAULT = 24
    REMOTE_OFF = 25
    INTERLOCK_FAIL = 26
    EXECUTING_AUTOTEST = 27
    WAITING_SUN = 30
    TEMPERATURE_FAULT = 31
    FAN_STACKED = 32
    INTERNAL_COMMUNICATION_FAULT = 33
    SLAVE_INSERTION = 34
    DC_SWITCH_OPEN = 35
    TRAS_SWITCH_OPEN = 36
    MASTER_EXCLUSION = 37
    AUTO_EXCLUSION = 38
    ERASING_INTERNAL_EEPROM = 98
    ERASING_EXTERNAL_EEPROM = 99
    COUNTING_EEPROM = 100
    FREEZE = 101


class InverterStatus(_DescribedEnum):
    STAND_BY = 0
    CHECKING_GRID = 1
    RUN = 2
    BULK_OV = 3
    OUT_OC = 4
    IGBT_SAT = 5
    BULK_UV = 6
    DEGAUSS_ERROR = 7
    NO_PARAMETERS = 8
    BULK_LOW = 9
    GRID_OV = 10
    COMMUNICATION_ERROR = 11
    DEGAUSSING = 12
    STARTING = 13
    BULK_CAP_FAIL = 14
    LEAK_FAIL = 15
    DCDC_FAIL = 16
    ILEAK_SENSOR_FAIL = 17
    SELF_TEST_RELAY_INVERTER = 18
    SELF_TEST_WAIT_FOR_SENSOR_TEST = 19
    SELF_TEST_RELAY_DCDC_AND_SENSOR = 20
    SELF_TEST_RELAY_INVERTER_FAIL = 21
    SELF_TEST_TIMEOUT_FAIL = 22
    SELF_TEST_RELAY_DCDC_FAIL = 23
    SELF_TEST_1 = 24
    WAITING_SELF_TEST_START = 25
    DC_INJECTION = 26
    SELF_TEST_2 = 27
    SELF_TEST_3 = 28
    SELF_TEST_4 = 29
    INTERNAL_ERROR = 30
    INTERNAL_ERROR_31 = 31
    FORBIDDEN_STATE = 40
    INPUT_UC = 41
    ZERO_POWER = 42
    GRID_NOT_PRESENT = 43
    WAITING_START = 44
    MPPT = 45
    GRID_FAIL = 46
    INPUT_OC = 47


class DcDcStatus(_DescribedEnum):
    DCDC_OFF = 0
    RAMP_START = 1
    MPPT = 2
    NOT_USED = 3
    INPUT_OC = 4
    INPUT_UV = 5
    INPUT_OV = 6
    INPUT_LOW = 7
    NO_PARAMETERS = 8
    BULK_OV = 9
    COMMUNICATION_ERROR = 10
    RAMP_FAIL = 11
    INTERNAL_ERROR = 12
    INPUT_MODE_ERROR = 13
    GROUND_FAULT = 14
    INVERTER_FAIL = 15
    DCDC_IGBT_SAT = 16
    DCDC_ILEAK_FAIL = 17
    DCDC_GRID_FAIL = 18
    DCDC_COMMUNICATION_ERROR = 19


class AlarmCode(_DescribedEnum):
    """Alarm states. Several share a display code, e.g. both sun-low entries are W001."""

    NO_ALARM = 0
    SUN_LOW = 1
    INPUT_OC = 2
    INPUT_UV = 3
    INPUT_OV = 4
    SUN_LOW_5 = 5
    NO_PARAMETERS = 6
    BULK_OV = 7
    COMMUNICATION_ERROR = 8
    OUTPUT_OC = 9
    IGBT_SAT = 10
    BULK_UV = 11
    INTERNAL_ERROR = 12
    GRID_FAIL = 13
    BULK_LOW = 14
    RAMP_FAIL = 15
    DCDC_FAIL = 16
    WRONG_MODE = 17
    GROUND_FAULT = 18
    OVER_TEMPERATURE = 19
    BULK_CAP_FAIL = 20
    INVERTER_FAIL = 21
    START_TIMEOUT = 22
    GROUND_FAULT_23 = 23
    DEGAUSS_ERROR = 24
    ILEAK_SENSOR_FAIL = 25
    DCDC_FAIL_26 = 26
    SELF_TEST_ERROR_1 = 27
    SELF_TEST_ERROR_2 = 28
    SELF_TEST_ERROR_3 = 29
    SELF_TEST_ERROR_4 = 30
    DC_INJECTION_ERROR = 31
    GRID_OV = 32
    GRID_UV = 33
    GRID_OF = 34
    GRID_UF = 35
    Z_GRID_HI = 36
    INTERNAL_ERROR_37 = 37
    RISO_LOW = 38
    VREF_ERROR = 39
    ERROR_MEAS_V = 40
    ERROR_MEAS_F = 41
    ERROR_MEAS_Z = 42
    ERROR_MEAS_ILEAK = 43
    ERROR_READ_V = 44
    ERROR_READ_I = 45
    TABLE_FAIL = 46
    FAN_FAIL = 47
    UTH = 48
    INTERLOCK_FAIL = 49
    REMOTE_OFF = 50
    VOUT_AVG_ERROR = 51
    BATTERY_LOW = 52
    CLOCK_FAIL = 53
    INPUT_UC = 54
    ZERO_POWER = 55
    FAN_STUCK = 56
    DC_SWITCH_OPEN = 57
    TRAS_SWITCH_OPEN = 58
    AC_SWITCH_OPEN = 59
    BULK_UV_60 = 60
    AUTOEXCLUSION = 61
    GRID_DF_DT = 62
    DEN_SWITCH_OPEN = 63
    JBOX_FAIL = 64

    @property
    def display_code(self) -> str:
        """Code shown on the inverter display, e.g. ``E001``."""
        return ALARM_DISPLAY_CODES.get(self.value, "---")


ALARM_DISPLAY_CODES: dict[int, str] = {
    1: "W001", 2: "E001", 3: "W002", 4: "E002", 5: "W001", 6: "E003",
    7: "E004", 8: "E005", 9: "E006", 10: "E007", 11: "W011", 12: "E009",
    13: "W003", 14: "E010", 15: "E011", 16: "E012", 17: "E013",
    19: "E014", 20: "E015", 21: "E016", 22: "E017", 23: "E018",
    25: "E019", 26: "E012", 27: "E020", 28: "E021", 29: "E019",
    30: "E022", 31: "E023", 32: "W004", 33: "W005", 34: "W006",
    35: "W007", 36: "W008", 37: "E024", 38: "E025", 39: "E026",
    40: "E027", 41: "E028", 42: "E029", 43: "E030", 44: "E031",
    45: "E032", 46: "W009", 47: "W010", 48: "E033", 49: "E034",
    50: "E035", 51: "E036", 52: "W012", 53: "W013", 54: "E037",
    55: "W014", 56: "E038", 57: "E039", 58: "E040", 59: "E041",
    60: "E042", 61: "E043", 62: "W015", 63: "W016", 64: "W017",
}

Transmission = Union[TransmissionState, UnknownCode]
Global = Union[GlobalState, UnknownCode]
Alarm = Union[AlarmCode, UnknownCode]


@dataclass(frozen=True)
class InverterState:
    """Decoded state request (50) response."""

    transmission_state: Transmission
    global_state: Global
    inverter_state: Union[InverterStatus, UnknownCode]
    dcdc1_state: Union[DcDcStatus, UnknownCode]
    dcdc2_state: Union[DcDcStatus, UnknownCode]
    alarm: Alarm

    @property
    def is_running(self) -> bool:
        return self.global_state == GlobalState.RUN

    def to_dict(self) -> dict:
        return {
            "transmission_state": self.transmission_state.name,
            "global_state": self.global_state.name,
            "inverter_state": self.inverter_state.name,
            "dcdc1_state": self.dcdc1_state.name,
            "dcdc2_state": self.dcdc2_state.name,
            "alarm": self.alarm.name,
            "running": self.is_running,
        }


@dataclass(frozen=True)
class VersionInfo:
    """Version request (58) response: four type characters."""

    model_code: str
    grid_standard_code: str
    transformer_code: str
    type_code: str

    @classmethod
    def from_text(cls, text: str) -> VersionInfo:
        chars = text.ljust(4)
        return cls(chars[0], chars[1], chars[2], chars[3])

    def __str__(self) -> str:
        return f"{self.model_code}{self.grid_standard_code}{self.transformer_code}{self.type_code}"


@dataclass(frozen=True)
class ManufactureDate:
    week: int
    year: int

    @property
    def full_year(self) -> int:
        return 2000 + self.year


@dataclass(frozen=True)
class Identification:
    serial_number: str
    firmware_version: str
    part_number: str

    def to_dict(self) -> dict:
        return {
            "serial_number": self.serial_number,
            "firmware_version": self.firmware_version,
            "part_number": self.part_number,
        }
