"""
Tests for the fan-out helper, id batching and the JSON log formatter.
"""
import asyncio
import json
import logging
import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from logging_config import JSONFormatter, StructuredLogger
from utils import chunked, run_all


class TestRunAll(unittest.IsolatedAsyncioTestCase):
    """Test cases for run_all."""

    async def test_results_follow_input_order(self):
        async def job(value, delay):
            await asyncio.sleep(delay)
            return value

        results = await run_all([job("a", 0.03), job("b", 0.0), job("c", 0.01)])
        self.assertEqual(results, ["a", "b", "c"])

    async def test_empty_input(self):
        self.assertEqual(await run_all([]), [])

    async def test_first_failure_cancels_siblings(self):
        cancelled = []

        async def slow(name):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(name)
                raise

        async def failing():
            await asyncio.sleep(0)
            raise ValueError("boom")

        with self.assertRaises(ValueError):
            await run_all([slow("x"), failing(), slow("y")])
        self.assertEqual(sorted(cancelled), ["x", "y"])

    async def test_cancelling_caller_cancels_children(self):
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        outer = asyncio.ensure_future(run_all([slow(), slow()]))
        await asyncio.sleep(0.01)
        outer.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await outer
        self.assertEqual(len(cancelled), 2)


class TestChunked(unittest.TestCase):
    """Test cases for chunked."""

    def test_batches(self):
        ids = [str(i) for i in range(120)]
        self.assertEqual([len(batch) for batch in chunked(ids, 50)], [50, 50, 20])
        self.assertEqual(list(chunked([], 50)), [])

    def test_invalid_size(self):
        with self.assertRaises(ValueError):
            list(chunked([1, 2], 0))


class TestStructuredLogging(unittest.TestCase):
    """Test cases for StructuredLogger and JSONFormatter."""

    def test_context_fields_reach_json_output(self):
        records = []

        class _Capture(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = _Capture()
        base = logging.getLogger("playlistindex.test")
        base.addHandler(handler)
        base.setLevel(logging.DEBUG)
        try:
            StructuredLogger("playlistindex.test").bind(channel_id="UC1").info("refreshed", playlist_count=3)
        finally:
            base.removeHandler(handler)

        payload = json.loads(JSONFormatter().format(records[0]))
        self.assertEqual(payload["message"], "refreshed")
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["channel_id"], "UC1")
        self.assertEqual(payload["playlist_count"], 3)


if __name__ == '__main__':
    unittest.main()
