"""Tests for the reconciliation sweeper."""
import json
import threading
import time

from logseal.anchor.hash import content_digest
from logseal.canon import canonical_form
from logseal.config import SealConfig
from logseal.ledger import MemoryLedger
from logseal.pipeline import AnchoringPipeline, Sweeper
from logseal.store import AnchorStatus

SUBJECT = "0x" + "ab" * 32
OTHER_SUBJECT = "0x" + "cd" * 32


def reserve_many(store, count, subject=SUBJECT):
    digests = [f"{i:064x}" for i in range(1, count + 1)]
    for d in digests:
        store.reserve(d, subject, logged_at=1700000000)
    return digests


class TestSweep:

    def test_converges_after_outage(self, pipeline, store, ledger, config, flight):
        """PENDING after a transient failure, ANCHORED after a sweep, digest unchanged."""
        ledger.set_available(False)
        first = pipeline.anchor(flight, SUBJECT, kind="drone_sample")
        assert first.status == AnchorStatus.PENDING

        ledger.set_available(True)
        report = Sweeper(store, ledger, config).sweep()

        assert (report.processed, report.succeeded, report.failed) == (1, 1, 0)
        record = store.find_by_digest(first.digest)
        assert record.status == AnchorStatus.ANCHORED
        assert ledger.submissions[0]["digest"] == "0x" + first.digest

    def test_resubmits_stored_fields(self, store, ledger, config):
        store.reserve("11" * 32, SUBJECT, kind="COMMAND_LOG", logged_at=1714550400, uri="s3://c/1")
        Sweeper(store, ledger, config).sweep()
        submission = ledger.submissions[0]
        assert submission["kind"] == "COMMAND_LOG"
        assert submission["timestamp"] == 1714550400
        assert submission["uri"] == "s3://c/1"
        assert submission["subject_id"] == SUBJECT

    def test_batch_size(self, store, ledger, config):
        reserve_many(store, 5)
        report = Sweeper(store, ledger, config).sweep(batch_size=2)
        assert report.processed == 2
        assert store.stats()["pending"] == 3

    def test_zero_batch_size_retries_nothing(self, store, ledger, config):
        reserve_many(store, 2)
        report = Sweeper(store, ledger, config).sweep(batch_size=0)
        assert report.processed == 0
        assert ledger.attempts == 0
        assert store.stats()["pending"] == 2

    def test_empty(self, store, ledger, config):
        report = Sweeper(store, ledger, config).sweep()
        assert report.to_dict() == {
            "processed": 0, "succeeded": 0, "failed": 0, "skipped": 0, "errors": [],
        }

    def test_failure_isolation(self, store, ledger, config):
        """One failing record does not stop the rest of the batch."""
        reserve_many(store, 3)
        ledger.fail_next(1, permanent=True)
        report = Sweeper(store, ledger, config).sweep()

        assert report.processed == 3
        assert report.succeeded == 2
        assert report.failed == 1
        error = report.errors[0]
        assert error["permanent"] is True
        assert error["subject_id"] == SUBJECT
        assert store.find_by_digest(error["digest"]).attempts == 1

    def test_second_sweep_is_noop(self, store, ledger, config):
        reserve_many(store, 2)
        sweeper = Sweeper(store, ledger, config)
        sweeper.sweep()
        report = sweeper.sweep()
        assert report.processed == 0
        assert ledger.attempts == 2

    def test_concurrent_sweepers_each_record_once(self, tmp_path, config):
        """Overlapping sweeps may both submit a record; the store keeps one reference."""
        from logseal.store import ContentStore

        store = ContentStore(str(tmp_path / "records.jsonl"))
        digests = reserve_many(store, 4)
        with MemoryLedger() as client:
            sweepers = [Sweeper(store, client, config) for _ in range(2)]
            threads = [threading.Thread(target=s.sweep) for s in sweepers]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        for d in digests:
            assert store.find_by_digest(d).status == AnchorStatus.ANCHORED


class TestBackoff:

    def test_backoff_schedule(self, store, ledger):
        config = SealConfig(backoff_base_seconds=30, backoff_max_seconds=100)
        sweeper = Sweeper(store, ledger, config)
        assert sweeper.backoff_seconds(0) == 0
        assert sweeper.backoff_seconds(1) == 30
        assert sweeper.backoff_seconds(2) == 60
        assert sweeper.backoff_seconds(3) == 100

    def test_recent_failure_skipped(self, store, ledger):
        config = SealConfig(backoff_base_seconds=30, backoff_max_seconds=3600)
        store.reserve("11" * 32, SUBJECT)
        store.record_failure("11" * 32, "nonce too low")

        report = Sweeper(store, ledger, config).sweep()
        assert report.skipped == 1
        assert ledger.attempts == 0

        later = Sweeper(store, ledger, config, clock=lambda: time.time() + 31)
        report = later.sweep()
        assert report.succeeded == 1

    def test_never_failed_is_due(self, store, ledger):
        config = SealConfig(backoff_base_seconds=30, sweep_grace_seconds=0)
        store.reserve("11" * 32, SUBJECT)
        assert Sweeper(store, ledger, config).sweep().succeeded == 1

    def test_fresh_record_waits_out_grace(self, store, ledger):
        """A record another process may still be submitting is left alone at first."""
        config = SealConfig(sweep_grace_seconds=30)
        store.reserve("11" * 32, SUBJECT)

        report = Sweeper(store, ledger, config).sweep()
        assert report.skipped == 1
        assert ledger.attempts == 0

        later = Sweeper(store, ledger, config, clock=lambda: time.time() + 31)
        assert later.sweep().succeeded == 1

    def test_backed_off_records_do_not_block_newer_ones(self, any_store, ledger):
        """Old records deep in backoff fill a batch; the due record behind them still runs."""
        config = SealConfig(backoff_base_seconds=30, backoff_max_seconds=3600,
                            sweep_grace_seconds=0)
        stuck = reserve_many(any_store, 3)
        for d in stuck:
            for _ in range(3):
                any_store.record_failure(d, "execution reverted")
        newer = f"{100:064x}"
        any_store.reserve(newer, SUBJECT)
        any_store.record_failure(newer, "nonce too low")

        sweeper = Sweeper(any_store, ledger, config, clock=lambda: time.time() + 31)
        report = sweeper.sweep(batch_size=3)

        assert report.succeeded == 1
        assert report.skipped == 3
        assert any_store.find_by_digest(newer).status == AnchorStatus.ANCHORED
        assert all(any_store.find_by_digest(d).status == AnchorStatus.PENDING for d in stuck)


class TestCoordination:

    def test_skips_in_flight(self, store, config, flight):
        with MemoryLedger(latency=0.2) as slow:
            with AnchoringPipeline(store, slow, config) as p:
                result = p.anchor_async(flight, SUBJECT, kind="drone_sample")
                report = Sweeper(store, slow, config, pipeline=p).sweep()
                assert report.skipped == 1
                assert report.processed == 0
            assert slow.attempts == 1
        assert store.find_by_digest(result.digest).status == AnchorStatus.ANCHORED

    def test_skips_synchronous_anchor_in_flight(self, store, config, flight):
        """A sweep racing a blocking anchor() leaves that record to the caller."""
        digest = content_digest(canonical_form(flight, "drone_sample").data)
        with MemoryLedger(latency=0.5) as slow:
            with AnchoringPipeline(store, slow, config) as p:
                caller = threading.Thread(target=p.anchor, args=(flight, SUBJECT),
                                          kwargs={"kind": "drone_sample"})
                caller.start()
                deadline = time.time() + 5
                while not p.in_flight(digest) and time.time() < deadline:
                    time.sleep(0.01)
                report = Sweeper(store, slow, config, pipeline=p).sweep()
                caller.join()
                assert not p.in_flight(digest)
            assert report.skipped == 1
            assert report.processed == 0
            assert slow.attempts == 1
        assert store.find_by_digest(digest).status == AnchorStatus.ANCHORED

    def test_per_subject_order(self, store, config):
        """Records of one subject are submitted in reservation order."""
        digests = reserve_many(store, 4, SUBJECT)
        other = f"{99:064x}"
        store.reserve(other, OTHER_SUBJECT)
        with MemoryLedger() as client:
            Sweeper(store, client, config).sweep()
            mine = [s["digest"][2:] for s in client.submissions if s["subject_id"] == SUBJECT]
        assert mine == digests

    def test_receipt(self, store, ledger, config, capsys):
        reserve_many(store, 1)
        capsys.readouterr()
        Sweeper(store, ledger, config).sweep()
        out = capsys.readouterr().out
        lines = [json.loads(line) for line in out.splitlines() if line.startswith("{")]
        sweep_receipt = [r for r in lines if r["receipt_type"] == "sweep"][0]
        assert sweep_receipt["succeeded"] == 1


class TestBackgroundLoop:

    def test_start_stop(self, store, ledger, config):
        reserve_many(store, 2)
        done = threading.Event()
        sweeper = Sweeper(store, ledger, config)
        sweeper.start(interval_seconds=0.05, callback=lambda report: done.set())
        assert done.wait(5)
        sweeper.stop(timeout=5)
        assert not sweeper.running
        assert store.stats()["anchored"] == 2
        assert sweeper.last_report is not None
