"""Tests for the counters module."""

import threading

from log_genie.metrics import LogCounter, PipelineMetrics, make_report


class TestLogCounter:
    def test_increment_and_reset(self):
        counter = LogCounter()
        counter.increment()
        counter.increment(4)
        assert counter.value == 5
        assert counter.reset() == 5
        assert counter.value == 0

    def test_concurrent_increments(self):
        counter = LogCounter()

        def worker():
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter.value == 8000


class TestMakeReport:
    def test_rate(self):
        report = make_report(120, 60.0)
        assert report.count == 120
        assert report.rate == 2.0

    def test_zero_elapsed_gives_zero_rate(self):
        assert make_report(10, 0.0).rate == 0.0


class TestPipelineMetrics:
    def test_snapshot_counts(self):
        m = PipelineMetrics()
        m.record_enqueued()
        m.record_enqueued()
        m.record_dropped()
        m.record_batch(2, success=True, trigger="size")
        m.record_batch(3, success=False, trigger="timer")

        snap = m.snapshot()
        assert snap["enqueued"] == 2
        assert snap["dropped"] == 1
        assert snap["exported"] == 2
        assert snap["batches_sent"] == 1
        assert snap["batches_failed"] == 1
        assert snap["flush_triggers"] == {"size": 1, "timer": 1, "flush": 0, "shutdown": 0}
