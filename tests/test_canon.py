"""Tests for canonicalization."""
import pytest

from logseal.canon import LogEntry, canonical_form, canonicalize, round_half_away, truncate
from logseal.core.errors import (
    EmptyInput,
    MalformedEntry,
    MixedEntryKinds,
    NonMonotonicSequence,
    UnsupportedEntryKind,
)


class TestDeterminism:
    """Same content, same bytes."""

    def test_repeat_calls_identical(self, flight):
        assert canonicalize(flight, "drone_sample") == canonicalize(flight, "drone_sample")

    def test_key_order_irrelevant(self, flight):
        """Insertion order of fields does not change the form."""
        shuffled = [dict(reversed(list(sample.items()))) for sample in flight]
        assert canonicalize(shuffled, "drone_sample") == canonicalize(flight, "drone_sample")

    def test_equivalent_float_spellings(self):
        """13.7563311 and 13.75633109999 round to the same 7 places."""
        a = canonicalize({"t_ms": 1, "lat": 13.7563311}, "drone_sample")
        b = canonicalize({"t_ms": 1, "lat": 13.75633109999}, "drone_sample")
        assert a == b
        assert b == b'[{"t_ms":1,"lat":13.7563311}]'

    def test_int_and_float_equal(self):
        a = canonicalize({"t_ms": 1, "yaw_deg": 90}, "drone_sample")
        b = canonicalize({"t_ms": 1, "yaw_deg": 90.0}, "drone_sample")
        assert a == b

    def test_free_form_mapping_keys_sorted(self, command):
        reordered = dict(command, command_params={"b": 2, "a": 1})
        data = canonicalize(reordered, "command").decode()
        assert '"command_params":{"a":1,"b":2}' in data


class TestFieldRules:
    """Fixed order, precision, and omission."""

    def test_field_order_follows_rules(self, sensor_reading):
        text = canonicalize(sensor_reading, "sensor_reading").decode()
        assert text.index('"sensor_id"') < text.index('"ts"') < text.index('"parameters"')
        assert text.index('"battery_pct"') < text.index('"status"') < text.index('"location"')

    def test_nested_precision(self, sensor_reading):
        text = canonicalize(sensor_reading, "sensor_reading").decode()
        assert '"ph":7.21' in text
        assert '"temperature_c":28.46' in text
        assert '"dissolved_oxygen_mg_l":6.88' in text
        assert '"tds_mg_l":412' in text

    def test_unknown_fields_dropped(self, flight):
        noisy = [dict(sample, firmware="v1.2.3") for sample in flight]
        assert canonicalize(noisy, "drone_sample") == canonicalize(flight, "drone_sample")

    def test_none_same_as_absent(self):
        a = canonicalize({"t_ms": 5, "lat": None}, "drone_sample")
        b = canonicalize({"t_ms": 5}, "drone_sample")
        assert a == b == b'[{"t_ms":5}]'

    def test_integer_fields_truncate(self):
        assert canonicalize({"t_ms": 99.9}, "drone_sample") == b'[{"t_ms":99}]'

    def test_text_is_nfc_normalized(self, command):
        decomposed = dict(command, issued_by="Jose\u0301")
        composed = dict(command, issued_by="Jos\u00e9")
        assert canonicalize(decomposed, "command") == canonicalize(composed, "command")

    def test_negative_zero(self):
        assert canonicalize({"t_ms": 0, "roll_deg": -0.0}, "drone_sample") == \
            b'[{"t_ms":0,"roll_deg":0}]'


class TestRounding:

    @pytest.mark.parametrize("value,places,expected", [
        (0.125, 2, "0.13"),
        (-0.125, 2, "-0.13"),
        (2.5, 0, "3"),
        (-2.5, 0, "-3"),
        (1.0049, 2, "1.00"),
    ])
    def test_half_away_from_zero(self, value, places, expected):
        assert str(round_half_away(value, places)) == expected

    def test_truncate_toward_zero(self):
        assert truncate(7.9) == 7
        assert truncate(-7.9) == -7

    def test_rejects_non_numbers(self):
        with pytest.raises(MalformedEntry):
            round_half_away("1.5", 2)
        with pytest.raises(MalformedEntry):
            truncate(True)

    def test_rejects_non_finite(self):
        with pytest.raises(MalformedEntry):
            canonicalize({"t_ms": 1, "lat": float("nan")}, "drone_sample")


class TestValidation:

    def test_empty_sequence(self):
        with pytest.raises(EmptyInput):
            canonicalize([], "drone_sample")

    def test_unknown_kind(self, flight):
        with pytest.raises(UnsupportedEntryKind):
            canonicalize(flight, "telemetry")

    def test_raw_mapping_needs_kind(self, flight):
        with pytest.raises(UnsupportedEntryKind):
            canonicalize(flight)

    def test_mixed_kinds(self, flight, command):
        entries = [LogEntry("drone_sample", flight[0]), LogEntry("command", command)]
        with pytest.raises(MixedEntryKinds):
            canonicalize(entries)

    def test_kind_argument_must_agree(self, flight):
        with pytest.raises(MixedEntryKinds):
            canonicalize([LogEntry("drone_sample", flight[0])], "command")

    def test_non_increasing_t_ms(self, flight):
        reversed_flight = list(reversed(flight))
        with pytest.raises(NonMonotonicSequence) as exc:
            canonicalize(reversed_flight, "drone_sample")
        assert exc.value.index == 1

    def test_equal_t_ms_rejected(self, flight):
        with pytest.raises(NonMonotonicSequence):
            canonicalize([flight[0], dict(flight[1], t_ms=0)], "drone_sample")

    def test_missing_t_ms(self):
        with pytest.raises(MalformedEntry):
            canonicalize([{"lat": 1.0}], "drone_sample")

    def test_wrong_type_for_text(self, command):
        with pytest.raises(MalformedEntry):
            canonicalize(dict(command, command_type=5), "command")

    def test_string_is_not_a_sequence(self):
        with pytest.raises(MalformedEntry):
            canonicalize("t_ms=1", "drone_sample")


class TestLogEntry:

    def test_fields_are_copied(self, flight):
        source = dict(flight[0])
        entry = LogEntry("drone_sample", source)
        before = canonicalize(entry)
        source["lat"] = 0.0
        assert canonicalize(entry) == before

    def test_fields_read_only(self, flight):
        entry = LogEntry("drone_sample", flight[0])
        with pytest.raises(TypeError):
            entry.fields["lat"] = 1.0

    def test_canonical_form_metadata(self, flight):
        form = canonical_form(flight, "drone_sample")
        assert form.kind == "drone_sample"
        assert form.entry_count == 2
        assert len(form) == len(form.data)
        assert form.text().startswith('[{"t_ms":0,')
