"""Test configuration and fixtures.

Stores live under tmp_path; the ledger is an in-process MemoryLedger.
Receipts print to stdout and are absorbed by pytest's capture.
"""
import pytest

from logseal.config import SealConfig
from logseal.ledger import MemoryLedger
from logseal.pipeline import AnchoringPipeline
from logseal.store import ContentStore, SqliteContentStore

SUBJECT = "0x" + "ab" * 32


@pytest.fixture
def config() -> SealConfig:
    """Config with no grace or backoff so sweeps retry immediately."""
    return SealConfig(backoff_base_seconds=0, backoff_max_seconds=0,
                      sweep_grace_seconds=0, sweep_max_workers=2)


@pytest.fixture
def store(tmp_path):
    """JSONL content store in a temp directory."""
    return ContentStore(str(tmp_path / "records.jsonl"))


@pytest.fixture(params=["jsonl", "sqlite"])
def any_store(request, tmp_path):
    """Each store backend in turn."""
    if request.param == "jsonl":
        s = ContentStore(str(tmp_path / "records.jsonl"))
    else:
        s = SqliteContentStore(str(tmp_path / "records.db"))
    yield s
    s.close()


@pytest.fixture
def ledger():
    """Connected MemoryLedger."""
    with MemoryLedger() as client:
        yield client


@pytest.fixture
def pipeline(store, ledger, config):
    with AnchoringPipeline(store, ledger, config) as p:
        yield p


@pytest.fixture
def flight() -> list[dict]:
    """Two-sample drone flight."""
    return [
        {
            "t_ms": 0,
            "lat": 13.7563311,
            "lon": 100.5017651,
            "height_agl_m": 0.0,
            "alt_asl_m": 12.5,
            "pitch_deg": 0.1,
            "roll_deg": -0.2,
            "yaw_deg": 90.0,
            "gps_level": 4,
            "gps_sats": 14,
            "flight_mode": "P-GPS",
            "battery_pct": 98,
            "battery_voltage_v": 16.8,
        },
        {
            "t_ms": 100,
            "lat": 13.7563412,
            "lon": 100.5017702,
            "height_agl_m": 1.25,
            "alt_asl_m": 13.75,
            "pitch_deg": 0.15,
            "roll_deg": -0.18,
            "yaw_deg": 90.5,
            "gps_level": 4,
            "gps_sats": 14,
            "flight_mode": "P-GPS",
            "battery_pct": 98,
            "battery_voltage_v": 16.79,
            "warnings": ["low_light"],
        },
    ]


@pytest.fixture
def sensor_reading() -> dict:
    return {
        "sensor_id": "wq-node-07",
        "ts": "2024-05-01T08:00:00Z",
        "parameters": {
            "ph": 7.214,
            "temperature_c": 28.456,
            "turbidity_ntu": 3.1,
            "tds_mg_l": 412.0,
            "dissolved_oxygen_mg_l": 6.875,
        },
        "battery_pct": 87,
        "status": "ok",
        "location": {"lat": 13.7563311, "lng": 100.5017651},
    }


@pytest.fixture
def command() -> dict:
    return {
        "command_id": "cmd-0001",
        "device_id": SUBJECT,
        "command_type": "SET_INTERVAL",
        "timestamp": 1714550400,
        "command_params": {"interval_s": 60},
        "result": {"ok": True},
        "issued_by": "operator-1",
    }
