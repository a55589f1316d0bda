"""
音频切片器
文件超过接口上传上限时，按等时长切成若干段并逐段渲染为独立文件

等时长切分假设码率基本恒定，渲染后不再复查每段的实际大小
"""
import logging
import math
import subprocess
import tempfile
from pathlib import Path
from typing import List, Protocol, Union

from videoscribe.errors import SegmentRenderError
from videoscribe.models.audio import AudioSegment, MediaInfo

logger = logging.getLogger(__name__)

SEGMENT_SUFFIX = ".mp3"


class MediaProber(Protocol):
    def probe(self, file_path: str) -> MediaInfo: ...


class SegmentRenderer(Protocol):
    def render(
        self,
        source_path: str,
        start_seconds: float,
        duration_seconds: float,
        dest_path: str,
    ) -> Path: ...


def plan_segments(
    file_path: str,
    media: MediaInfo,
    size_limit_bytes: int,
    scratch_dir: Union[str, Path],
) -> List[AudioSegment]:
    """
    计算切片方案（不做任何 IO）

    :param file_path: 源音频路径
    :param media: 源音频的时长与大小
    :param size_limit_bytes: 单段大小上限
    :param scratch_dir: 切片文件存放目录
    :return: 按 order_index 排列的切片列表
    """
    if size_limit_bytes <= 0:
        raise ValueError(f"size_limit_bytes 必须大于 0: {size_limit_bytes}")

    total = media.duration_seconds
    if media.byte_size <= size_limit_bytes:
        return [AudioSegment(0, str(file_path), 0.0, total)]

    count = math.ceil(media.byte_size / size_limit_bytes)
    segment_duration = total / count
    scratch = Path(scratch_dir)

    segments = []
    for i in range(count):
        start = i * segment_duration
        # 最后一段收尾到总时长，消除浮点累积误差
        duration = total - start if i == count - 1 else segment_duration
        segments.append(
            AudioSegment(
                order_index=i,
                file_path=str(scratch / f"chunk_{i:03d}{SEGMENT_SUFFIX}"),
                start_offset_seconds=start,
                duration_seconds=duration,
            )
        )
    return segments


class Segmenter:
    """
    切片器

    每次调用都在 scratch_root 下新建独立目录，多个任务并发时互不干扰；
    切片文件不在这里删除，由调用方决定是否清理
    """

    def __init__(
        self,
        prober: MediaProber,
        renderer: SegmentRenderer,
        scratch_root: Union[str, Path],
    ):
        self.prober = prober
        self.renderer = renderer
        self.scratch_root = Path(scratch_root)

    def decide_segments(self, audio_file_path: str, size_limit_bytes: int) -> List[AudioSegment]:
        """
        探测音频并按需切片

        :param audio_file_path: 源音频路径
        :param size_limit_bytes: 单段大小上限（字节）
        :return: 有序切片列表；无需切分时只有一段，指向源文件本身
        :raises MediaProbeError: 源文件无法探测
        :raises SegmentRenderError: 某一段渲染失败，后续切片不再渲染
        """
        if size_limit_bytes <= 0:
            raise ValueError(f"size_limit_bytes 必须大于 0: {size_limit_bytes}")

        media = self.prober.probe(audio_file_path)
        if media.byte_size <= size_limit_bytes:
            return plan_segments(audio_file_path, media, size_limit_bytes, self.scratch_root)

        self.scratch_root.mkdir(parents=True, exist_ok=True)
        scratch_dir = tempfile.mkdtemp(
            prefix=f"{Path(audio_file_path).stem}_chunks_", dir=self.scratch_root
        )
        segments = plan_segments(audio_file_path, media, size_limit_bytes, scratch_dir)
        logger.info(
            f"[切片] 文件大小 {media.byte_size} bytes 超过上限 {size_limit_bytes} bytes，"
            f"切分为 {len(segments)} 段，每段约 {segments[0].duration_seconds:.1f}s"
        )

        for seg in segments:
            try:
                self.renderer.render(
                    str(audio_file_path),
                    seg.start_offset_seconds,
                    seg.duration_seconds,
                    seg.file_path,
                )
            except (subprocess.SubprocessError, OSError) as e:
                stderr = getattr(e, "stderr", None)
                if isinstance(stderr, bytes):
                    stderr = stderr.decode("utf-8", errors="replace")
                reason = (stderr or "").strip() or str(e)
                raise SegmentRenderError(seg.order_index, seg.file_path, reason, segments) from e
            logger.info(f"[切片] {seg.order_index + 1}/{len(segments)} 完成 -> {seg.file_path}")

        return segments
