"""
Test Configuration
==================

Pytest fixtures and test configuration for SilentMap.
"""

import json

import pytest


@pytest.fixture
def florence():
    """The default map center."""
    from silentmap.models.geo import Coordinate

    return Coordinate(latitude=43.7696, longitude=11.2558)


@pytest.fixture
def sample_seed_entries():
    """Two non-overlapping seed entries in the seed file format."""
    return [
        {
            "center": [43.7830, 11.2150],
            "radius": 500,
            "color": "hsl(183, 70%, 67.25%)",
            "song": "Parco delle Cascine",
            "averageDecibel": 8.5,
        },
        {
            "center": [43.7600, 11.2700],
            "radius": 500,
            "color": "hsl(160, 70%, 50%)",
            "song": "Piazzale Michelangelo",
            "averageDecibel": 20,
        },
    ]


@pytest.fixture
def seed_file(tmp_path, sample_seed_entries):
    """Write the sample seed entries to a temporary file."""
    path = tmp_path / "seed_areas.json"
    path.write_text(json.dumps(sample_seed_entries))
    return path


@pytest.fixture
def storage(tmp_path):
    from silentmap.areas.storage import KeyValueStore

    return KeyValueStore(str(tmp_path / "storage.json"))


@pytest.fixture
def mock_capture():
    """Silent mock capture backend."""
    from silentmap.audio.capture import MockCapture

    return MockCapture(levels=[0], fft_size=64)


@pytest.fixture
def microphone(mock_capture):
    from silentmap.audio.microphone import Microphone

    return Microphone(mock_capture, acquire_timeout=0.2)


@pytest.fixture
def recorder(microphone, storage):
    """Commit routine with no delay and a short recording window (5 samples)."""
    from silentmap.areas.recorder import AreaRecorder

    return AreaRecorder(
        microphone=microphone,
        storage=storage,
        radius_m=500.0,
        sample_interval=0.001,
        sample_window=0.005,
        commit_delay=0.0,
    )


@pytest.fixture
def test_settings(tmp_path, seed_file):
    """Settings with the mock audio backend and fast timings."""
    from silentmap.config import Settings

    return Settings.model_validate({
        "audio": {"backend": "mock", "fft_size": 64},
        "microphone": {"acquire_timeout_seconds": 0.5},
        "area": {
            "commit_delay_seconds": 0.0,
            "sample_interval_seconds": 0.001,
            "sample_window_seconds": 0.005,
            "seed_path": str(seed_file),
        },
        "session": {"sample_interval_seconds": 0.01},
        "storage": {"path": str(tmp_path / "storage.json")},
        "logging": {"format": "text"},
    })


@pytest.fixture
def client(monkeypatch, test_settings):
    """FastAPI test client running the full lifespan on test settings."""
    from fastapi.testclient import TestClient

    from silentmap import main

    monkeypatch.setattr(main, "settings", test_settings)

    with TestClient(main.app) as test_client:
        yield test_client
