"""
Tests for the HTTP routes.
"""
import unittest
import sys
import os
from datetime import datetime, timezone

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import config
from main import app
from models import CollectionState
from api.dependencies import get_orchestrator
from services.orchestrator import EnrichmentOrchestrator
from fakes import FakeYouTubeClient, make_enriched


class TestRoutes(unittest.TestCase):
    """Test cases for the API routes with an injected orchestrator."""

    def setUp(self):
        self.youtube = FakeYouTubeClient()
        self.orchestrator = EnrichmentOrchestrator(self.youtube, channel_id="UC_TEST")
        self.orchestrator.state = CollectionState.build([
            make_enriched("p1", "Zelda", year="2017", genres=["Adventure"],
                          published_at=datetime(2020, 1, 1, tzinfo=timezone.utc)),
            make_enriched("p2", "Batman", year="2009", genres=["Action"],
                          published_at=datetime(2021, 1, 1, tzinfo=timezone.utc)),
            make_enriched("p3", "Ohne Jahr",
                          published_at=datetime(2022, 1, 1, tzinfo=timezone.utc)),
        ])
        app.dependency_overrides[get_orchestrator] = lambda: self.orchestrator
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_list_playlists_defaults(self):
        response = self.client.get("/playlists")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([p["id"] for p in body["playlists"]], ["p3", "p2", "p1"])
        self.assertEqual(body["total"], 3)
        self.assertEqual(body["filtered"], 3)
        self.assertEqual(body["years"], ["2017", "2009"])
        self.assertEqual(body["genres"], ["Action", "Adventure"])
        self.assertFalse(body["loading"])
        self.assertIsNone(body["error"])

        first = body["playlists"][0]
        self.assertEqual(first["url"], "https://www.youtube.com/playlist?list=p3")
        self.assertEqual(first["summary"], "Ohne Jahr")
        self.assertEqual(first["genres"], [])

    def test_list_playlists_with_criteria(self):
        response = self.client.get("/playlists", params={"sort": "year-asc", "genre": "alle", "search": "a"})

        body = response.json()
        self.assertEqual([p["id"] for p in body["playlists"]], ["p2", "p1"])
        self.assertEqual(body["filtered"], 2)
        self.assertEqual(body["total"], 3)

    def test_unknown_sort_is_bad_request(self):
        response = self.client.get("/playlists", params={"sort": "shuffle"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.headers["X-Error-Code"], "INVALID_INPUT")

    def test_error_message_is_exposed(self):
        self.orchestrator.error_message = config.QUOTA_EXHAUSTED_MESSAGE

        body = self.client.get("/playlists").json()
        self.assertEqual(body["error"], config.QUOTA_EXHAUSTED_MESSAGE)
        self.assertEqual(body["total"], 3)

        status = self.client.get("/status").json()
        self.assertEqual(status["error"], config.QUOTA_EXHAUSTED_MESSAGE)
        self.assertEqual(status["playlist_count"], 3)

    def test_refresh_is_accepted_and_runs(self):
        response = self.client.post("/refresh")

        self.assertEqual(response.status_code, 202)
        self.assertEqual(len(self.youtube.calls_to("playlists")), 1)
        self.assertEqual(len(self.orchestrator.state), 0)

    def test_health(self):
        body = self.client.get("/health").json()
        self.assertEqual(body["status"], "healthy")
        self.assertIn("service_version", body)
        self.assertEqual(body["statistics"]["playlist_count"], 3)


class TestRoutesWithoutServices(unittest.TestCase):
    """Routes answer 503 when the services failed to initialize."""

    def test_service_unavailable(self):
        client = TestClient(app)
        for path in ("/playlists", "/status", "/health"):
            with self.subTest(path=path):
                response = client.get(path)
                self.assertEqual(response.status_code, 503)


if __name__ == '__main__':
    unittest.main()
