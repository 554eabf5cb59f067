"""
API Tests
=========

HTTP and WebSocket surface of the service, driven through FastAPI's
TestClient with the full lifespan on test settings.
"""

import math
import time


METERS_PER_DEGREE_LAT = 6_371_000.0 * math.pi / 180.0


def wait_for_notices(client, timeout: float = 3.0) -> list:
    """Poll /notices until something arrives."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        notices = client.get("/notices").json()
        if notices:
            return notices
        time.sleep(0.02)
    return []


class TestServiceEndpoints:
    """Info, liveness and readiness."""

    def test_root(self, client):
        """Verify the service information endpoint."""
        body = client.get("/").json()
        assert body["service"] == "SilentMap"
        assert body["audio_backend"] == "mock"

    def test_health_and_ready(self, client):
        """Verify the liveness and readiness endpoints."""
        assert client.get("/health").json()["status"] == "healthy"

        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready", "areas": 2}

    def test_metrics(self, client):
        """Verify the metrics counters."""
        client.post("/panels/songs")
        body = client.get("/metrics").json()
        assert body["events_processed"] >= 1
        assert body["handler_errors"] == 0
        assert body["microphone_owner"] is None


class TestStateEndpoints:
    """Reading the rendered state."""

    def test_initial_state(self, client):
        """Verify the initial rendered state."""
        body = client.get("/state").json()
        assert body["gps_status"] == "Waiting for GPS..."
        assert body["session_state"] == "IDLE"
        assert body["map"]["center"] == {"latitude": 43.7696, "longitude": 11.2558}
        assert body["map"]["zoom"] == 13
        assert len(body["map"]["circles"]) == 2

    def test_areas_use_seed_format_keys(self, client):
        """Verify /areas returns entries in the seed file format."""
        areas = client.get("/areas").json()
        assert areas[0]["song"] == "Parco delle Cascine"
        assert areas[0]["averageDecibel"] == 8.5
        assert areas[0]["center"] == [43.783, 11.215]

    def test_notices_empty(self, client):
        """Verify no notices are pending at start."""
        assert client.get("/notices").json() == []


class TestPositionEndpoints:
    """Platform position callbacks."""

    def test_fix_updates_status_line(self, client):
        """Verify a position fix updates the GPS status line."""
        body = client.post("/position", json={"latitude": 43.7696, "longitude": 11.2558}).json()
        assert body["gps_status"] == "GPS active. Lat: 43.7696, Lon: 11.2558"
        assert body["map"]["marker"] is None

    def test_invalid_fix_rejected(self, client):
        """Verify out-of-range coordinates are rejected."""
        response = client.post("/position", json={"latitude": 123.0, "longitude": 11.0})
        assert response.status_code == 422

    def test_error_and_unavailable(self, client):
        """Verify GPS errors and unavailability update the status line."""
        body = client.post("/position/error", json={"message": "denied"}).json()
        assert body["gps_status"] == "GPS error: denied"
        body = client.post("/position/unavailable").json()
        assert body["gps_status"] == "GPS not available"

    def test_map_view(self, client):
        """Verify map moves update the view."""
        body = client.post("/map/view", json={"latitude": 43.8, "longitude": 11.3, "zoom": 15}).json()
        assert body["map"]["center"] == {"latitude": 43.8, "longitude": 11.3}
        assert body["map"]["zoom"] == 15


class TestListening:
    """Listening session over HTTP."""

    def test_walk(self, client):
        """Verify a listening walk over HTTP."""
        body = client.post("/listening/toggle").json()
        assert body["session_state"] == "LISTENING"
        assert body["listen_label"] == "Stop"

        for km in range(3):
            body = client.post(
                "/position",
                json={"latitude": 43.7696 + km * 1000 / METERS_PER_DEGREE_LAT, "longitude": 11.2558},
            ).json()

        stats = body["panels"]["stats"]
        assert stats["route_points"] == 3
        assert abs(stats["distance_traveled_km"] - 2.0) < 1e-3
        assert body["map"]["route"]["color"] == "red"
        assert body["map"]["marker"]["popup"] == "You are here"

        body = client.post("/listening/toggle").json()
        assert body["session_state"] == "IDLE"
        assert client.get("/metrics").json()["microphone_owner"] is None


class TestCommit:
    """Area commit over HTTP."""

    def test_commit_saves_area(self, client, test_settings):
        """Verify a commit over HTTP adds an area and persists it."""
        body = client.post("/areas/commit").json()
        assert body["commit_in_progress"] is True

        notices = wait_for_notices(client)
        assert [n["code"] for n in notices] == ["AREA_SAVED"]

        circles = client.get("/state").json()["map"]["circles"]
        assert len(circles) == 3
        assert circles[2]["color"] == "blue"
        assert circles[2]["radius"] == 500.0

        with open(test_settings.storage.path) as f:
            assert "lastSavedPosition" in f.read()

    def test_second_commit_overlaps(self, client):
        """Verify a second commit over HTTP reports an overlap."""
        client.post("/areas/commit")
        wait_for_notices(client)
        client.post("/areas/commit")

        notices = wait_for_notices(client)
        assert notices[0]["code"] == "AREA_OVERLAP"
        assert notices[0]["blocking"] is True
        assert len(client.get("/areas").json()) == 3


class TestPanels:
    """Panel toggles and detail actions."""

    def test_mutual_exclusion(self, client):
        """Verify only one side panel is open at a time."""
        body = client.post("/panels/songs").json()
        assert body["panels"]["songs"]["open"]
        body = client.post("/panels/stats").json()
        assert body["panels"]["stats"]["open"]
        assert not body["panels"]["songs"]["open"]
        body = client.post("/panels/close").json()
        assert not body["panels"]["stats"]["open"]

    def test_select_take_dismiss(self, client):
        """Verify select, take and dismiss over HTTP."""
        body = client.post("/areas/1/select").json()
        detail = body["panels"]["detail"]
        assert detail["open"]
        assert detail["song"] == "Piazzale Michelangelo"

        client.post("/detail/play")
        body = client.post("/detail/take").json()
        assert body["panels"]["songs"]["songs_obtained"] == 1
        assert not body["panels"]["detail"]["open"]

        client.post("/areas/0/select")
        body = client.post("/detail/dismiss").json()
        assert not body["panels"]["detail"]["open"]

    def test_unknown_area(self, client):
        """Verify selecting an unknown area returns 404."""
        assert client.post("/areas/7/select").status_code == 404

    def test_take_without_selection(self, client):
        """Verify take without a selection raises a notice."""
        client.post("/detail/take")
        assert [n["code"] for n in client.get("/notices").json()] == ["NO_AREA_SELECTED"]


class TestStateStream:
    """WebSocket push."""

    def test_receives_state(self, client):
        """Verify the state stream sends the rendered screen."""
        with client.websocket_connect("/ws/state") as ws:
            data = ws.receive_json()
        assert data["session_state"] == "IDLE"
        assert len(data["map"]["circles"]) == 2
