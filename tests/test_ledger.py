"""Tests for ledger clients."""
import pytest

from logseal.core.errors import (
    LedgerPermanentFailure,
    LedgerTransientFailure,
    LedgerUnavailable,
)
from logseal.ledger import FileLedger, MemoryLedger

SUBJECT = "0x" + "ab" * 32
DIGEST = "0x" + "11" * 32


class TestMemoryLedger:

    def test_requires_connect(self):
        client = MemoryLedger()
        with pytest.raises(LedgerUnavailable):
            client.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1700000000)
        with pytest.raises(LedgerUnavailable):
            client.query(DIGEST)

    def test_submit_mints_sequential_tokens(self, ledger):
        a = ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1700000000)
        b = ledger.submit(SUBJECT, "0x" + "22" * 32, "COMMAND_LOG", 1700000001)
        assert (a.token_id, b.token_id) == (1, 2)
        assert b.block_number == a.block_number + 1
        assert a.tx_hash.startswith("0x") and len(a.tx_hash) == 66
        assert a.tx_hash != b.tx_hash

    def test_query_by_digest(self, ledger):
        ref = ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1700000000)
        assert ledger.query(DIGEST) == [ref]
        assert ledger.query("11" * 32) == [ref]
        assert ledger.query("0x" + "99" * 32) == []

    def test_no_dedup_on_ledger(self, ledger):
        ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1)
        ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1)
        assert len(ledger.submissions_for(DIGEST)) == 2

    @pytest.mark.parametrize("subject,digest,kind", [
        ("0x1234", DIGEST, "DEVICE_LOG"),
        ("ab" * 32, DIGEST, "DEVICE_LOG"),
        (SUBJECT, "11" * 32, "DEVICE_LOG"),
        (SUBJECT, DIGEST, "FLIGHT_LOG"),
    ])
    def test_rejects_malformed_submission(self, ledger, subject, digest, kind):
        with pytest.raises(LedgerPermanentFailure):
            ledger.submit(subject, digest, kind, 1)
        assert ledger.attempts == 0

    def test_fail_next(self, ledger):
        ledger.fail_next(1)
        ledger.fail_next(1, permanent=True)
        with pytest.raises(LedgerTransientFailure):
            ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1)
        with pytest.raises(LedgerPermanentFailure):
            ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1)
        ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1)
        assert ledger.attempts == 3
        assert len(ledger.submissions) == 1

    def test_outage(self, ledger):
        ledger.set_available(False)
        with pytest.raises(LedgerUnavailable):
            ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1)
        ledger.set_available(True)
        assert ledger.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1).token_id == 1

    def test_close_disconnects(self):
        client = MemoryLedger().connect()
        assert client.connected
        client.close()
        assert not client.connected


class TestFileLedger:

    def test_append_and_query(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        with FileLedger(str(path)) as client:
            ref = client.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1700000000, "s3://raw/1")
            assert client.query(DIGEST) == [ref]

        entries = FileLedger(str(path)).read_all()
        assert len(entries) == 1
        assert entries[0]["uri"] == "s3://raw/1"
        assert entries[0]["subject_id"] == SUBJECT

    def test_token_ids_continue_across_handles(self, tmp_path):
        path = str(tmp_path / "ledger.jsonl")
        with FileLedger(path) as client:
            client.submit(SUBJECT, DIGEST, "DEVICE_LOG", 1)
        with FileLedger(path) as client:
            ref = client.submit(SUBJECT, "0x" + "22" * 32, "DEVICE_LOG", 2)
        assert ref.token_id == 2

    def test_read_all_missing_file(self, tmp_path):
        assert FileLedger(str(tmp_path / "none.jsonl")).read_all() == []
