"""Tests for the sequential, context-threaded assembler."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from helpers import FakeTranscriber, RecordingEvent, connection_error, make_segments
from videoscribe.assembler import TranscriptAssembler
from videoscribe.errors import RunCancelledError, TranscriptionError, TranscriptPipelineError
from videoscribe.models.transcript import (
    CombinedTranscript,
    ResponseFormat,
    TranscriptionOptions,
)

OPTIONS = TranscriptionOptions(language="de", temperature=0.3, response_format=ResponseFormat.VERBOSE_JSON)


def test_results_follow_order_index(tmp_path: Path) -> None:
    segments = make_segments([10.0, 10.0, 10.0], tmp_path)
    transcriber = FakeTranscriber(["one", "two", "three"])

    combined = TranscriptAssembler(transcriber).run(list(reversed(segments)), OPTIONS)

    assert [r.source_segment.order_index for r in combined.segment_results] == [0, 1, 2]
    assert [req.segment.order_index for req in transcriber.requests] == [0, 1, 2]
    assert combined.full_text == "one two three"


def test_context_is_threaded_from_previous_result(tmp_path: Path) -> None:
    segments = make_segments([40.0, 40.0, 40.0], tmp_path)
    transcriber = FakeTranscriber(["alpha beta", "gamma delta", "epsilon"])

    TranscriptAssembler(transcriber).run(segments, OPTIONS)

    prompts = [req.context_prompt for req in transcriber.requests]
    assert prompts == ["", "Previous context: alpha beta", "Previous context: gamma delta"]


def test_base_options_reach_every_request(tmp_path: Path) -> None:
    segments = make_segments([5.0, 5.0], tmp_path)
    transcriber = FakeTranscriber()

    TranscriptAssembler(transcriber).run(segments, OPTIONS)

    for req in transcriber.requests:
        assert req.language == "de"
        assert req.temperature == 0.3
        assert req.response_format is ResponseFormat.VERBOSE_JSON


def test_context_word_limit_is_configurable(tmp_path: Path) -> None:
    segments = make_segments([5.0, 5.0], tmp_path)
    transcriber = FakeTranscriber(["a b c d", "e"])

    TranscriptAssembler(transcriber, context_words=2).run(segments, OPTIONS)

    assert transcriber.requests[1].context_prompt == "Previous context: c d"


def test_single_segment_uses_the_same_path(tmp_path: Path) -> None:
    segments = make_segments([60.0], tmp_path)
    transcriber = FakeTranscriber(["only chunk"])

    combined = TranscriptAssembler(transcriber).run(segments, OPTIONS)

    assert len(transcriber.requests) == 1
    assert transcriber.requests[0].context_prompt == ""
    assert combined.full_text == "only chunk"
    assert len(combined.segment_results) == 1


def test_failure_carries_index_and_partial_results(tmp_path: Path) -> None:
    segments = make_segments([5.0, 5.0, 5.0, 5.0], tmp_path)
    cause = TranscriptionError(segments[2].file_path, 3, RuntimeError("503"))
    transcriber = FakeTranscriber(["a", "b"], fail_at=2, error=cause)

    with pytest.raises(TranscriptPipelineError) as excinfo:
        TranscriptAssembler(transcriber).run(segments, OPTIONS)

    assert excinfo.value.index == 2
    assert excinfo.value.cause is cause
    assert excinfo.value.__cause__ is cause
    assert [r.text for r in excinfo.value.partial_results] == ["a", "b"]
    assert len(transcriber.requests) == 3


def test_missing_segment_file_fails_the_run(tmp_path: Path) -> None:
    segments = make_segments([5.0, 5.0], tmp_path)
    transcriber = FakeTranscriber(fail_at=1, error=FileNotFoundError(segments[1].file_path))

    with pytest.raises(TranscriptPipelineError) as excinfo:
        TranscriptAssembler(transcriber).run(segments, OPTIONS)

    assert excinfo.value.index == 1
    assert isinstance(excinfo.value.cause, FileNotFoundError)


@pytest.mark.parametrize(
    "error",
    [PermissionError("chunk_001.mp3: permission denied"), KeyError("text"), RuntimeError("bad payload")],
)
def test_any_client_error_carries_index_and_partial_results(tmp_path: Path, error) -> None:
    segments = make_segments([5.0, 5.0, 5.0], tmp_path)
    transcriber = FakeTranscriber(["kept"], fail_at=1, error=error)

    with pytest.raises(TranscriptPipelineError) as excinfo:
        TranscriptAssembler(transcriber).run(segments, OPTIONS)

    assert excinfo.value.index == 1
    assert excinfo.value.cause is error
    assert [r.text for r in excinfo.value.partial_results] == ["kept"]
    assert len(transcriber.requests) == 2


def test_cancel_during_retry_wait_reports_segment(tmp_path: Path, make_whisper) -> None:
    segments = make_segments([5.0, 5.0], tmp_path)
    event = RecordingEvent(cancel_on_wait=True)
    transcriber, client, _ = make_whisper([{"text": "first"}, connection_error()], cancel_event=event)

    with pytest.raises(RunCancelledError) as excinfo:
        TranscriptAssembler(transcriber, cancel_event=event).run(segments, OPTIONS)

    assert excinfo.value.index == 1
    assert len(client.calls) == 2


def test_cancel_is_checked_before_each_segment(tmp_path: Path) -> None:
    segments = make_segments([5.0, 5.0, 5.0], tmp_path)
    cancel = threading.Event()
    transcriber = FakeTranscriber(on_call=lambda req: cancel.set() if req.segment.order_index == 0 else None)

    with pytest.raises(RunCancelledError) as excinfo:
        TranscriptAssembler(transcriber, cancel_event=cancel).run(segments, OPTIONS)

    assert excinfo.value.index == 1
    assert len(transcriber.requests) == 1


@pytest.mark.parametrize("indexes", [[], [1, 2], [0, 0], [0, 2]])
def test_rejects_bad_segment_sets(tmp_path: Path, indexes) -> None:
    base = make_segments([5.0] * 3, tmp_path)
    segments = [base[i] for i in indexes]

    with pytest.raises(ValueError):
        TranscriptAssembler(FakeTranscriber()).run(segments, OPTIONS)


def test_full_text_is_pure(tmp_path: Path) -> None:
    segments = make_segments([5.0, 5.0], tmp_path)
    combined = TranscriptAssembler(FakeTranscriber(["x y", "z"])).run(segments, OPTIONS)

    rebuilt = CombinedTranscript(segment_results=combined.segment_results)

    assert combined.full_text == combined.full_text == rebuilt.full_text == "x y z"
