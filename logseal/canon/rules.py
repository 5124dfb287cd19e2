"""Field rule tables per entry kind.

Each kind pins its emitted fields to a fixed order and a fixed precision.
Fields outside the table are dropped at canonicalization time.
"""
from dataclasses import dataclass

from ..core.constants import (
    KIND_COMMAND,
    KIND_DRONE_SAMPLE,
    KIND_SENSOR_READING,
    PRECISION_ALTITUDE,
    PRECISION_ATTITUDE,
    PRECISION_GEODETIC,
    PRECISION_WATER_QUALITY,
)

# Field value types
DECIMAL = "decimal"      # rounded to `places`, half away from zero
INTEGER = "integer"      # truncated toward zero
TEXT = "text"
TIMESTAMP = "timestamp"  # ISO text or integer epoch
LIST = "list"
MAPPING = "mapping"      # nested rules if given, else sorted keys
ANY = "any"


@dataclass(frozen=True)
class FieldRule:
    """How one field is emitted."""
    name: str
    type: str
    places: int | None = None
    fields: tuple["FieldRule", ...] = ()


@dataclass(frozen=True)
class KindRules:
    """Ordered rule table for one entry kind.

    Attributes:
        kind: Entry kind discriminator
        fields: Emission order
        monotonic_field: Field that must strictly increase across a sequence
    """
    kind: str
    fields: tuple[FieldRule, ...]
    monotonic_field: str | None = None


def _dec(name: str, places: int) -> FieldRule:
    return FieldRule(name, DECIMAL, places)


DRONE_SAMPLE_RULES = KindRules(
    kind=KIND_DRONE_SAMPLE,
    monotonic_field="t_ms",
    fields=(
        FieldRule("t_ms", INTEGER),
        _dec("lat", PRECISION_GEODETIC),
        _dec("lon", PRECISION_GEODETIC),
        _dec("height_agl_m", PRECISION_ALTITUDE),
        _dec("alt_asl_m", PRECISION_ALTITUDE),
        _dec("pitch_deg", PRECISION_ATTITUDE),
        _dec("roll_deg", PRECISION_ATTITUDE),
        _dec("yaw_deg", PRECISION_ATTITUDE),
        _dec("vx_ms", PRECISION_ATTITUDE),
        _dec("vy_ms", PRECISION_ATTITUDE),
        _dec("vz_ms", PRECISION_ATTITUDE),
        _dec("h_speed_ms", PRECISION_ATTITUDE),
        FieldRule("gps_level", INTEGER),
        FieldRule("gps_sats", INTEGER),
        FieldRule("flight_mode", TEXT),
        _dec("rc_aileron_pct", PRECISION_ATTITUDE),
        _dec("rc_elevator_pct", PRECISION_ATTITUDE),
        _dec("rc_throttle_pct", PRECISION_ATTITUDE),
        _dec("rc_rudder_pct", PRECISION_ATTITUDE),
        FieldRule("battery_pct", INTEGER),
        _dec("battery_voltage_v", PRECISION_ALTITUDE),
        FieldRule("warnings", LIST),
        FieldRule("event_flags", MAPPING),
    ),
)

SENSOR_READING_RULES = KindRules(
    kind=KIND_SENSOR_READING,
    fields=(
        FieldRule("sensor_id", TEXT),
        FieldRule("ts", TIMESTAMP),
        FieldRule("parameters", MAPPING, fields=(
            _dec("ph", PRECISION_WATER_QUALITY),
            _dec("temperature_c", PRECISION_WATER_QUALITY),
            _dec("turbidity_ntu", PRECISION_WATER_QUALITY),
            _dec("tds_mg_l", PRECISION_WATER_QUALITY),
            _dec("dissolved_oxygen_mg_l", PRECISION_WATER_QUALITY),
        )),
        FieldRule("battery_pct", INTEGER),
        FieldRule("status", TEXT),
        FieldRule("location", MAPPING, fields=(
            _dec("lat", PRECISION_GEODETIC),
            _dec("lng", PRECISION_GEODETIC),
        )),
    ),
)

COMMAND_RULES = KindRules(
    kind=KIND_COMMAND,
    fields=(
        FieldRule("command_id", TEXT),
        FieldRule("device_id", TEXT),
        FieldRule("command_type", TEXT),
        FieldRule("timestamp", INTEGER),
        FieldRule("command_params", MAPPING),
        FieldRule("result", ANY),
        FieldRule("issued_by", TEXT),
    ),
)

RULES: dict[str, KindRules] = {
    DRONE_SAMPLE_RULES.kind: DRONE_SAMPLE_RULES,
    SENSOR_READING_RULES.kind: SENSOR_READING_RULES,
    COMMAND_RULES.kind: COMMAND_RULES,
}
