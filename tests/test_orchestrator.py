"""
Tests for the EnrichmentOrchestrator refresh pipeline.
"""
import asyncio
import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import config
from exceptions import UpstreamQuotaError, UpstreamTransportError
from services.orchestrator import EnrichmentOrchestrator
from fakes import FakeYouTubeClient, make_item, make_playlist_resource


def _channel():
    """Three playlists: authored metadata, private-only, and no metadata."""
    playlists = [
        make_playlist_resource(
            "PL_A", "Anime Klassiker",
            "Die besten Folgen\nErscheinungsjahr: 2021\nGenre: Action, Drama\nVideos: 12\nLänge: 5h 0m",
            published_at="2023-05-01T12:00:00Z"),
        make_playlist_resource(
            "PL_B", "Privat",
            "Erscheinungsjahr: 1999\nGenre: Horror",
            published_at="2022-05-01T12:00:00Z"),
        make_playlist_resource(
            "PL_C", "Ohne Angaben", "Nur Text",
            published_at="2021-05-01T12:00:00Z"),
    ]
    items = {
        "PL_A": [make_item("a1", "private"), make_item("a2")],
        "PL_B": [make_item(f"b{i}", "private") for i in range(5)] + [make_item("b5")],
        "PL_C": [make_item("c1"), make_item("c2", "private"), make_item("c3")],
    }
    durations = {"c1": "PT30M", "c2": "PT10M", "c3": "PT1H5M"}
    return FakeYouTubeClient(playlists, items, durations)


class TestRefresh(unittest.IsolatedAsyncioTestCase):
    """Test cases for a full refresh."""

    async def test_refresh_builds_collection(self):
        client = _channel()
        orchestrator = EnrichmentOrchestrator(client, channel_id="UC_TEST")

        state = await orchestrator.refresh()

        self.assertIs(orchestrator.state, state)
        self.assertEqual([p.id for p in state.playlists], ["PL_A", "PL_C"])

        authored, computed = state.playlists
        self.assertEqual(authored.year, "2021")
        self.assertEqual(authored.genres, ("Action", "Drama"))
        self.assertEqual((authored.total_duration, authored.duration_source), ("5h 0m", "description"))
        self.assertEqual((authored.item_count, authored.item_count_source), (12, "description"))

        self.assertIsNone(computed.year)
        self.assertEqual((computed.total_duration, computed.duration_source), ("1h 45m", "api"))
        self.assertEqual((computed.item_count, computed.item_count_source), (2, "api"))

        # The excluded playlist contributes nothing to the filter options
        self.assertEqual(state.years, ("2021",))
        self.assertEqual(state.genres, ("Action", "Drama"))
        self.assertIsNotNone(state.refreshed_at)
        self.assertFalse(orchestrator.loading)
        self.assertIsNone(orchestrator.error_message)

        self.assertEqual(client.calls_to("playlists")[0]["channelId"], "UC_TEST")
        # Authored playlists never page their items beyond the visibility probe
        self.assertEqual(len([p for p in client.calls_to("playlistItems") if p["playlistId"] == "PL_A"]), 1)

    async def test_mixed_sources_for_one_playlist(self):
        """Authored count with no Länge line: count from the description, duration from the API."""
        client = FakeYouTubeClient(
            playlists=[make_playlist_resource(
                "PL_M", "Gemischt", "Erscheinungsjahr: 2021\nGenre: Action, Drama\nVideos: 12")],
            items={"PL_M": [make_item("m1"), make_item("m2", "private"), make_item("m3")]},
            durations={"m1": "PT1H", "m2": "PT20M", "m3": "PT5M30S"},
        )

        state = await EnrichmentOrchestrator(client).refresh()

        playlist, = state.playlists
        self.assertEqual(playlist.year, "2021")
        self.assertEqual(playlist.genres, ("Action", "Drama"))
        self.assertEqual((playlist.item_count, playlist.item_count_source), (12, "description"))
        self.assertEqual((playlist.total_duration, playlist.duration_source), ("1h 25m", "api"))

        parts = [(params["part"], params.get("maxResults")) for params in client.calls_to("playlistItems")]
        self.assertEqual(parts, [("status", 5), ("contentDetails", 50)])
        self.assertEqual(len(client.calls_to("videos")), 1)

    async def test_malformed_item_sets_error_message(self):
        client = _channel()
        orchestrator = EnrichmentOrchestrator(client)
        previous = await orchestrator.refresh()

        client.items["PL_C"] = [{"contentDetails": {"videoId": "c1"}, "status": "public"}]
        state = await orchestrator.refresh()

        self.assertIs(state, previous)
        self.assertEqual(orchestrator.error_message, config.QUOTA_EXHAUSTED_MESSAGE)
        self.assertEqual(orchestrator.last_error, "MalformedDataError")

    async def test_upstream_error_keeps_previous_state(self):
        client = _channel()
        orchestrator = EnrichmentOrchestrator(client)
        previous = await orchestrator.refresh()

        client.fail_on = lambda endpoint, params: UpstreamQuotaError() if endpoint == "videos" else None
        state = await orchestrator.refresh()

        self.assertIs(state, previous)
        self.assertIs(orchestrator.state, previous)
        self.assertEqual(orchestrator.error_message, config.QUOTA_EXHAUSTED_MESSAGE)
        self.assertEqual(orchestrator.last_error, "UpstreamQuotaError")
        self.assertFalse(orchestrator.loading)

        client.fail_on = None
        await orchestrator.refresh()
        self.assertIsNone(orchestrator.error_message)

    async def test_first_refresh_failure_leaves_empty_collection(self):
        client = _channel()
        client.fail_on = lambda endpoint, params: UpstreamTransportError("offline")
        orchestrator = EnrichmentOrchestrator(client)

        state = await orchestrator.refresh()

        self.assertEqual(len(state), 0)
        self.assertEqual(state.years, ())
        self.assertEqual(orchestrator.error_message, config.QUOTA_EXHAUSTED_MESSAGE)

    async def test_malformed_playlist_fails_refresh(self):
        client = FakeYouTubeClient(playlists=[{"snippet": {"title": "no id"}}])
        orchestrator = EnrichmentOrchestrator(client)

        await orchestrator.refresh()

        self.assertEqual(orchestrator.error_message, config.QUOTA_EXHAUSTED_MESSAGE)
        self.assertEqual(orchestrator.last_error, "MalformedDataError")

    async def test_unexpected_errors_propagate(self):
        client = _channel()
        client.fail_on = lambda endpoint, params: RuntimeError("bug")
        orchestrator = EnrichmentOrchestrator(client)

        with self.assertRaises(RuntimeError):
            await orchestrator.refresh()
        self.assertFalse(orchestrator.loading)
        self.assertIsNone(orchestrator.error_message)

    async def test_upstream_order_survives_uneven_latency(self):
        ids = [f"PL{i}" for i in range(4)]
        client = FakeYouTubeClient(
            playlists=[make_playlist_resource(pid, f"Titel {pid}", "Videos: 1\nLänge: 1m") for pid in ids],
            items={pid: [make_item(f"{pid}-v")] for pid in ids},
        )
        client.delays = {"PL0": 0.05, "PL1": 0.03, "PL2": 0.01, "PL3": 0}

        state = await EnrichmentOrchestrator(client).refresh()

        self.assertEqual([p.id for p in state.playlists], ids)

    async def test_loading_flag_during_refresh(self):
        client = _channel()
        client.gate = asyncio.Event()
        orchestrator = EnrichmentOrchestrator(client)

        task = asyncio.ensure_future(orchestrator.refresh())
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        self.assertTrue(orchestrator.loading)

        client.gate.set()
        await task
        self.assertFalse(orchestrator.loading)
        self.assertEqual(len(orchestrator.state), 2)

    async def test_concurrent_refreshes_share_one_run(self):
        client = _channel()
        orchestrator = EnrichmentOrchestrator(client)

        first, second = await asyncio.gather(orchestrator.refresh(), orchestrator.refresh())

        self.assertIs(first, second)
        self.assertEqual(len(client.calls_to("playlists")), 1)
        self.assertEqual(orchestrator.get_stats()["refreshes_started"], 1)

    async def test_shutdown_cancels_refresh_in_flight(self):
        client = _channel()
        client.gate = asyncio.Event()
        orchestrator = EnrichmentOrchestrator(client)

        task = asyncio.ensure_future(orchestrator.refresh())
        await asyncio.sleep(0)
        await orchestrator.shutdown()

        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertFalse(orchestrator.loading)
        self.assertEqual(len(orchestrator.state), 0)

    async def test_stats(self):
        client = _channel()
        orchestrator = EnrichmentOrchestrator(client)
        await orchestrator.refresh()

        stats = orchestrator.get_stats()
        self.assertEqual(stats["refreshes_succeeded"], 1)
        self.assertEqual(stats["playlist_count"], 2)
        self.assertEqual(stats["api_client"]["api_calls_count"], len(client.calls))


if __name__ == '__main__':
    unittest.main()
