from __future__ import annotations

import unittest

from noteq.observability.telemetry import (
    counter,
    get_counter,
    get_latency_stats,
    reset_telemetry,
    time_block,
)


class TelemetryTests(unittest.TestCase):
    def setUp(self):
        reset_telemetry()

    def test_time_block_appends_ms_suffix(self):
        metric_name = "capture.total"

        with time_block(metric_name):
            pass

        stats = get_latency_stats(metric_name)
        self.assertEqual(stats["count"], 1)
        self.assertGreaterEqual(stats["p95"], 0.0)

    def test_time_block_respects_existing_suffix(self):
        metric_name = "labels.apply_auto_ms"

        with time_block(metric_name):
            pass

        stats = get_latency_stats(metric_name)
        self.assertEqual(stats["count"], 1)

    def test_time_block_records_on_error(self):
        with self.assertRaises(RuntimeError), time_block("failing.block"):
            raise RuntimeError("boom")

        self.assertEqual(get_latency_stats("failing.block")["count"], 1)

    def test_counter_increments(self):
        before = get_counter("test.counter")
        counter("test.counter")
        counter("test.counter", 2)
        self.assertEqual(get_counter("test.counter"), before + 3)

    def test_reset_clears_everything(self):
        counter("test.counter")
        with time_block("test.block"):
            pass

        reset_telemetry()

        self.assertEqual(get_counter("test.counter"), 0)
        self.assertEqual(get_latency_stats("test.block")["count"], 0)


if __name__ == "__main__":
    unittest.main()
