"""Fakes shared across test modules."""

from __future__ import annotations

import subprocess
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Sequence

import httpx
import openai

from videoscribe.models.audio import AudioSegment, MediaInfo
from videoscribe.models.transcript import TranscriptionRequest, TranscriptionResult
from videoscribe.transcribers.base import Transcriber

MB = 1_000_000


TRANSCRIPTIONS_URL = "https://api.openai.com/v1/audio/transcriptions"


def connection_error() -> openai.APIConnectionError:
    """A network failure as raised by the OpenAI SDK."""
    return openai.APIConnectionError(request=httpx.Request("POST", TRANSCRIPTIONS_URL))


def timeout_error() -> openai.APITimeoutError:
    return openai.APITimeoutError(request=httpx.Request("POST", TRANSCRIPTIONS_URL))


def server_error(status_code: int = 503) -> openai.InternalServerError:
    """A non-2xx response as raised by the OpenAI SDK."""
    request = httpx.Request("POST", TRANSCRIPTIONS_URL)
    response = httpx.Response(status_code, request=request, json={"error": {"message": "unavailable"}})
    return openai.InternalServerError("Service Unavailable", response=response, body=None)


class FakeProber:
    """Returns a fixed MediaInfo, or raises the configured error."""

    def __init__(self, info: Optional[MediaInfo] = None, error: Optional[Exception] = None):
        self.info = info
        self.error = error
        self.calls: List[str] = []

    def probe(self, file_path: str) -> MediaInfo:
        self.calls.append(file_path)
        if self.error is not None:
            raise self.error
        return self.info


class FakeRenderer:
    """Writes a small placeholder file per render; fails on the call number in ``fail_at``."""

    def __init__(self, fail_at: Optional[int] = None):
        self.fail_at = fail_at
        self.calls: List[tuple] = []

    def render(self, source_path, start_seconds, duration_seconds, dest_path) -> Path:
        if self.fail_at is not None and len(self.calls) == self.fail_at:
            raise subprocess.CalledProcessError(1, ["ffmpeg"], stderr=b"invalid data")
        self.calls.append((source_path, start_seconds, duration_seconds, dest_path))
        Path(dest_path).write_bytes(b"chunk")
        return Path(dest_path)


class FakeTranscriber(Transcriber):
    """Returns canned texts in call order and records every request."""

    def __init__(
        self,
        texts: Sequence[str] = (),
        fail_at: Optional[int] = None,
        error: Optional[Exception] = None,
        on_call: Optional[Callable[[TranscriptionRequest], None]] = None,
    ):
        self.texts = list(texts)
        self.fail_at = fail_at
        self.error = error
        self.on_call = on_call
        self.requests: List[TranscriptionRequest] = []

    def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        index = len(self.requests)
        self.requests.append(request)
        if self.on_call is not None:
            self.on_call(request)
        if self.fail_at is not None and index == self.fail_at:
            raise self.error
        text = self.texts[index] if index < len(self.texts) else f"text {index}"
        return TranscriptionResult(text=text, raw={"text": text}, source_segment=request.segment)


class FakeOpenAIClient:
    """Mimics ``client.audio.transcriptions.create``; each call consumes one outcome."""

    def __init__(self, outcomes: Sequence[object]):
        self.outcomes = list(outcomes)
        self.calls: List[Dict] = []
        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        kwargs = dict(kwargs)
        kwargs["file"] = kwargs["file"].name
        self.calls.append(kwargs)
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingEvent:
    """Stands in for threading.Event: records waits without sleeping."""

    def __init__(self, cancel_on_wait: bool = False):
        self.waits: List[float] = []
        self.cancel_on_wait = cancel_on_wait
        self._set = False

    def wait(self, timeout=None) -> bool:
        self.waits.append(timeout)
        if self.cancel_on_wait:
            self._set = True
        return self._set

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True


def make_segments(durations: Sequence[float], directory: Path) -> List[AudioSegment]:
    """Contiguous segments with real placeholder files."""
    segments, start = [], 0.0
    for i, duration in enumerate(durations):
        path = directory / f"chunk_{i:03d}.mp3"
        path.write_bytes(b"chunk")
        segments.append(AudioSegment(i, str(path), start, duration))
        start += duration
    return segments


