"""Shared fixtures for the test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import pytest

from helpers import FakeOpenAIClient, FakeProber, FakeRenderer, RecordingEvent
from videoscribe.config import Settings
from videoscribe.models.audio import MediaInfo
from videoscribe.segmenter import Segmenter
from videoscribe.transcribers.whisper_api_transcriber import WhisperAPITranscriber


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        openai_api_key="test-key",
        retry_delay=0.0,
        output_dir=tmp_path / "output",
        temp_dir=tmp_path / "temp",
        audio_output_dir=tmp_path / "audio_output",
    )


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "talk.mp3"
    path.write_bytes(b"ID3" + b"\x00" * 64)
    return path


@pytest.fixture
def make_segmenter(tmp_path: Path):
    def factory(byte_size: int, duration: float, fail_at: Optional[int] = None):
        prober = FakeProber(MediaInfo(duration_seconds=duration, byte_size=byte_size))
        renderer = FakeRenderer(fail_at=fail_at)
        return Segmenter(prober, renderer, tmp_path / "scratch"), prober, renderer

    return factory


@pytest.fixture
def make_whisper():
    def factory(outcomes: Sequence[object], max_retries: int = 3, cancel_event=None):
        client = FakeOpenAIClient(outcomes)
        event = cancel_event or RecordingEvent()
        transcriber = WhisperAPITranscriber(
            api_key="test-key",
            max_retries=max_retries,
            retry_delay=0.5,
            cancel_event=event,
            client=client,
        )
        return transcriber, client, event

    return factory
