"""
SilentMap Configuration
=======================

This module handles configuration loading for the sound map service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    SILENTMAP_AUDIO_BACKEND     -> audio.backend
    SILENTMAP_AUDIO_DEVICE      -> audio.device
    SILENTMAP_SEED_PATH         -> area.seed_path
    SILENTMAP_COMMIT_DELAY      -> area.commit_delay_seconds
    SILENTMAP_STORAGE_PATH      -> storage.path
    SILENTMAP_PORT              -> server.port
    SILENTMAP_LOG_LEVEL         -> logging.level
    PORT                        -> server.port (container platforms)

Example:
    from silentmap.config import settings

    print(settings.area.radius_m)
    print(settings.map.default_center)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification configuration."""

    name: str = Field(default="silentmap", description="Application name")
    version: str = Field(default="v0.1.0", description="Application version")


class MapConfig(BaseModel):
    """Initial map view and tile source."""

    default_center: List[float] = Field(
        default=[43.7696, 11.2558],
        min_length=2,
        max_length=2,
        description="Initial map center as [latitude, longitude]",
    )
    default_zoom: int = Field(default=13, ge=1, le=20, description="Initial zoom level")
    tile_url: str = Field(
        default="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        description="Tile URL template",
    )
    attribution: str = Field(
        default=(
            '&copy; <a href="https://www.openstreetmap.org/copyright">'
            "OpenStreetMap</a> contributors"
        ),
        description="Tile attribution HTML",
    )


class MockAudioConfig(BaseModel):
    """Mock capture backend configuration."""

    levels: List[int] = Field(
        default_factory=lambda: [0],
        description="Byte magnitudes cycled through, one per buffer read",
    )
    fail_on_start: bool = Field(
        default=False,
        description="Simulate a denied microphone permission",
    )


class AudioConfig(BaseModel):
    """Microphone capture and tone playback configuration."""

    backend: str = Field(
        default="sounddevice",
        description="Capture backend: 'sounddevice' or 'mock'",
    )
    device: Optional[str] = Field(
        default=None,
        description="Audio device name or index for capture and playback (None = system default)",
    )
    sample_rate: int = Field(default=44100, ge=8000, description="Capture sample rate (Hz)")
    fft_size: int = Field(
        default=256,
        ge=32,
        description="Analyser FFT size; the frequency buffer holds fft_size/2 bins",
    )
    min_decibels: float = Field(default=-100.0, description="Analyser floor (dBFS)")
    max_decibels: float = Field(default=-30.0, description="Analyser ceiling (dBFS)")
    tone_enabled: bool = Field(default=True, description="Play the area tone on request")
    mock: MockAudioConfig = Field(default_factory=MockAudioConfig)


class MicrophoneConfig(BaseModel):
    """Single-owner microphone arbitration."""

    acquire_timeout_seconds: float = Field(
        default=10.0,
        ge=0,
        description="How long a second owner waits for the microphone",
    )


class AreaConfig(BaseModel):
    """Area commit routine configuration."""

    radius_m: float = Field(default=500.0, gt=0, description="Radius of new areas (meters)")
    sample_interval_seconds: float = Field(
        default=0.1,
        gt=0,
        description="Interval between loudness samples during commit",
    )
    sample_window_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Length of the loudness recording window",
    )
    commit_delay_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Delay between the commit request and the recording start",
    )
    quiet_color: str = Field(default="blue", description="Color of areas with no signal")
    default_song: str = Field(default="Sample Song", description="Song label of new areas")
    seed_path: str = Field(
        default="./data/seed_areas.json",
        description="Path to the seed areas JSON file",
    )


class SessionConfig(BaseModel):
    """Listening session configuration."""

    sample_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Interval between loudness samples while listening",
    )


class StorageConfig(BaseModel):
    """Key-value storage for the last saved position."""

    path: str = Field(default="./data/storage.json", description="Storage file path")
    last_position_key: str = Field(
        default="lastSavedPosition",
        description="Key holding the last committed position",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8001, ge=1, le=65535, description="Bind port")
    event_queue_size: int = Field(
        default=256,
        ge=1,
        description="Maximum number of pending platform events",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for SilentMap.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    map: MapConfig = Field(default_factory=MapConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    microphone: MicrophoneConfig = Field(default_factory=MicrophoneConfig)
    area: AreaConfig = Field(default_factory=AreaConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        if env_config := os.environ.get("SILENTMAP_CONFIG"):
            config_path = env_config
        else:
            search_paths = [
                Path("config.yaml"),
                Path("config.yml"),
                Path(__file__).parent.parent.parent / "config.yaml",
            ]
            for path in search_paths:
                if path.exists():
                    config_path = str(path)
                    break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Audio settings
    if env_backend := os.environ.get("SILENTMAP_AUDIO_BACKEND"):
        config_data.setdefault("audio", {})["backend"] = env_backend
    if env_device := os.environ.get("SILENTMAP_AUDIO_DEVICE"):
        config_data.setdefault("audio", {})["device"] = env_device

    # Area settings
    if env_seed := os.environ.get("SILENTMAP_SEED_PATH"):
        config_data.setdefault("area", {})["seed_path"] = env_seed
    if env_delay := os.environ.get("SILENTMAP_COMMIT_DELAY"):
        config_data.setdefault("area", {})["commit_delay_seconds"] = float(env_delay)

    # Storage settings
    if env_storage := os.environ.get("SILENTMAP_STORAGE_PATH"):
        config_data.setdefault("storage", {})["path"] = env_storage

    # Server settings
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("SILENTMAP_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("SILENTMAP_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
