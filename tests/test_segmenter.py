"""Tests for segment planning and rendering."""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from helpers import MB, FakeProber
from videoscribe.errors import MediaProbeError, SegmentRenderError
from videoscribe.models.audio import MediaInfo
from videoscribe.segmenter import Segmenter, plan_segments


def assert_contiguous(segments, total_duration: float) -> None:
    assert segments[0].start_offset_seconds == 0.0
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end_seconds == pytest.approx(nxt.start_offset_seconds, abs=1e-9)
    assert segments[-1].end_seconds == pytest.approx(total_duration, abs=1e-9)


class TestPlanSegments:
    @pytest.mark.parametrize("byte_size", [1, 10 * MB, 25 * MB])
    def test_single_segment_when_within_limit(self, byte_size: int) -> None:
        media = MediaInfo(duration_seconds=321.5, byte_size=byte_size)
        segments = plan_segments("/audio/in.mp3", media, 25 * MB, "/scratch")

        assert len(segments) == 1
        assert segments[0].file_path == "/audio/in.mp3"
        assert segments[0].start_offset_seconds == 0.0
        assert segments[0].duration_seconds == 321.5

    @pytest.mark.parametrize(
        ("byte_size", "limit", "duration"),
        [
            (60 * MB, 25 * MB, 120.0),
            (25 * MB + 1, 25 * MB, 100.0),
            (100 * MB, 7 * MB, 3601.7),
            (99, 10, 10.0 / 3),
        ],
    )
    def test_split_count_and_coverage(self, byte_size: int, limit: int, duration: float) -> None:
        media = MediaInfo(duration_seconds=duration, byte_size=byte_size)
        segments = plan_segments("/audio/in.mp3", media, limit, "/scratch")

        assert len(segments) == math.ceil(byte_size / limit)
        assert [s.order_index for s in segments] == list(range(len(segments)))
        assert_contiguous(segments, duration)

    def test_equal_durations(self) -> None:
        media = MediaInfo(duration_seconds=120.0, byte_size=60 * MB)
        segments = plan_segments("/audio/in.mp3", media, 25 * MB, "/scratch")

        assert [s.duration_seconds for s in segments] == pytest.approx([40.0, 40.0, 40.0])
        assert [s.start_offset_seconds for s in segments] == pytest.approx([0.0, 40.0, 80.0])

    def test_chunk_files_live_in_scratch_dir(self) -> None:
        media = MediaInfo(duration_seconds=60.0, byte_size=3 * MB)
        segments = plan_segments("/audio/in.mp3", media, MB, "/scratch/run")

        assert [Path(s.file_path) for s in segments] == [
            Path("/scratch/run/chunk_000.mp3"),
            Path("/scratch/run/chunk_001.mp3"),
            Path("/scratch/run/chunk_002.mp3"),
        ]

    def test_rejects_non_positive_limit(self) -> None:
        media = MediaInfo(duration_seconds=60.0, byte_size=MB)
        with pytest.raises(ValueError):
            plan_segments("/audio/in.mp3", media, 0, "/scratch")


class TestSegmenter:
    def test_small_file_is_not_rendered(self, make_segmenter, audio_file: Path) -> None:
        segmenter, prober, renderer = make_segmenter(byte_size=10 * MB, duration=300.0)

        segments = segmenter.decide_segments(str(audio_file), 25 * MB)

        assert len(segments) == 1
        assert segments[0].file_path == str(audio_file)
        assert prober.calls == [str(audio_file)]
        assert renderer.calls == []

    def test_large_file_renders_every_range(self, make_segmenter, audio_file: Path) -> None:
        segmenter, _, renderer = make_segmenter(byte_size=60 * MB, duration=120.0)

        segments = segmenter.decide_segments(str(audio_file), 25 * MB)

        assert len(segments) == 3
        assert [c[1] for c in renderer.calls] == pytest.approx([0.0, 40.0, 80.0])
        assert [c[2] for c in renderer.calls] == pytest.approx([40.0, 40.0, 40.0])
        assert all(c[0] == str(audio_file) for c in renderer.calls)
        assert all(Path(s.file_path).is_file() for s in segments)

    def test_each_run_gets_its_own_scratch_dir(self, make_segmenter, audio_file: Path) -> None:
        segmenter, _, _ = make_segmenter(byte_size=60 * MB, duration=120.0)

        first = segmenter.decide_segments(str(audio_file), 25 * MB)
        second = segmenter.decide_segments(str(audio_file), 25 * MB)

        assert Path(first[0].file_path).parent != Path(second[0].file_path).parent

    def test_render_failure_reports_index_and_stops(self, make_segmenter, audio_file: Path) -> None:
        segmenter, _, renderer = make_segmenter(byte_size=100 * MB, duration=200.0, fail_at=2)

        with pytest.raises(SegmentRenderError) as excinfo:
            segmenter.decide_segments(str(audio_file), 25 * MB)

        assert excinfo.value.index == 2
        assert "invalid data" in excinfo.value.reason
        assert len(renderer.calls) == 2
        # the full plan travels with the error; rendered chunks are left for the caller
        assert [s.order_index for s in excinfo.value.segments] == [0, 1, 2, 3]
        assert all(Path(s.file_path).exists() for s in excinfo.value.segments[:2])

    def test_probe_failure_propagates(self, tmp_path: Path, audio_file: Path) -> None:
        prober = FakeProber(error=MediaProbeError(str(audio_file), "moov atom not found"))
        segmenter = Segmenter(prober, renderer=None, scratch_root=tmp_path)

        with pytest.raises(MediaProbeError):
            segmenter.decide_segments(str(audio_file), 25 * MB)

    def test_rejects_non_positive_limit_before_probing(self, make_segmenter, audio_file: Path) -> None:
        segmenter, prober, _ = make_segmenter(byte_size=MB, duration=10.0)

        with pytest.raises(ValueError):
            segmenter.decide_segments(str(audio_file), -1)
        assert prober.calls == []
