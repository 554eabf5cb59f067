"""
Component Factory
=================

Builds the controller and its collaborators from Settings.

Backend selection fails fast: an unknown audio backend raises at startup
rather than at the first commit.
"""

import logging
from typing import Union

from silentmap.app.controller import ApplicationController
from silentmap.app.events import EventQueue
from silentmap.areas.recorder import AreaRecorder
from silentmap.areas.registry import load_seed_areas
from silentmap.areas.storage import KeyValueStore
from silentmap.audio.capture import MockCapture, SoundDeviceCapture
from silentmap.audio.microphone import Microphone
from silentmap.audio.tone import MockTonePlayer, SoundDeviceTonePlayer, TonePlayer
from silentmap.config import Settings
from silentmap.models.state import AppState
from silentmap.session.location import LocationTracker
from silentmap.session.tracker import ListeningSession


logger = logging.getLogger(__name__)


def _device(value):
    """Config stores the device as text; numeric strings are device indices."""
    if value is not None and str(value).isdigit():
        return int(value)
    return value


def create_capture_source(settings: Settings) -> Union[SoundDeviceCapture, MockCapture]:
    """Create the capture backend named in the config."""
    audio = settings.audio
    backend = audio.backend

    if backend == "mock":
        logger.info("Using MockCapture")
        return MockCapture(
            levels=audio.mock.levels,
            fail_on_start=audio.mock.fail_on_start,
            fft_size=audio.fft_size,
        )

    elif backend == "sounddevice":
        logger.info("Using SoundDeviceCapture")
        return SoundDeviceCapture(
            device=_device(audio.device),
            sample_rate=audio.sample_rate,
            fft_size=audio.fft_size,
            min_decibels=audio.min_decibels,
            max_decibels=audio.max_decibels,
        )

    else:
        raise ValueError(f"Unknown audio backend: {backend}")


def create_tone_player(settings: Settings) -> TonePlayer:
    if settings.audio.backend == "mock" or not settings.audio.tone_enabled:
        return MockTonePlayer()
    return SoundDeviceTonePlayer(
        device=_device(settings.audio.device),
        sample_rate=settings.audio.sample_rate,
    )


def build_controller(settings: Settings) -> ApplicationController:
    """Wire every component and load the seed areas."""
    microphone = Microphone(
        create_capture_source(settings),
        acquire_timeout=settings.microphone.acquire_timeout_seconds,
    )

    recorder = AreaRecorder(
        microphone=microphone,
        storage=KeyValueStore(settings.storage.path),
        radius_m=settings.area.radius_m,
        sample_interval=settings.area.sample_interval_seconds,
        sample_window=settings.area.sample_window_seconds,
        commit_delay=settings.area.commit_delay_seconds,
        quiet_color=settings.area.quiet_color,
        song=settings.area.default_song,
        storage_key=settings.storage.last_position_key,
    )

    session = ListeningSession(
        microphone=microphone,
        sample_interval=settings.session.sample_interval_seconds,
    )

    state = AppState.initial(
        center=settings.map.default_center,
        zoom=settings.map.default_zoom,
    )
    state.areas.extend(load_seed_areas(settings.area.seed_path))

    return ApplicationController(
        state=state,
        recorder=recorder,
        session=session,
        location=LocationTracker(),
        tone_player=create_tone_player(settings),
        queue=EventQueue(maxsize=settings.server.event_queue_size),
    )
