"""
ffmpeg / ffprobe 封装
负责探测音频时长，以及把指定时间区间渲染为独立的 mp3 文件
"""
import json
import logging
import subprocess
from pathlib import Path

from videoscribe.errors import MediaProbeError
from videoscribe.models.audio import MediaInfo

logger = logging.getLogger(__name__)


class FFmpegToolkit:
    """
    基于命令行 ffmpeg 的探测与转码工具

    渲染使用 libmp3lame 有损编码，码率足够语音识别即可
    """

    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        audio_bitrate: str = "128k",
        timeout: float = 600.0,
    ):
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.audio_bitrate = audio_bitrate
        self.timeout = timeout

    def probe(self, file_path: str) -> MediaInfo:
        """
        读取音频时长与文件大小

        :param file_path: 音频文件路径
        :return: MediaInfo
        :raises MediaProbeError: 文件不可读、损坏或 ffprobe 执行失败
        """
        path = Path(file_path)
        try:
            byte_size = path.stat().st_size
        except OSError as e:
            raise MediaProbeError(file_path, str(e)) from e

        cmd = [
            self.ffprobe_bin,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            str(path),
        ]
        try:
            proc = subprocess.run(
                cmd, check=True, capture_output=True, text=True, timeout=self.timeout
            )
        except subprocess.CalledProcessError as e:
            raise MediaProbeError(file_path, (e.stderr or "").strip() or str(e)) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise MediaProbeError(file_path, str(e)) from e

        try:
            duration = float(json.loads(proc.stdout)["format"]["duration"])
        except (ValueError, KeyError, TypeError) as e:
            raise MediaProbeError(file_path, f"无法解析时长: {e}") from e

        if duration <= 0:
            raise MediaProbeError(file_path, f"时长无效: {duration}")

        logger.info(f"[FFprobe] {path.name}: 时长={duration:.1f}s, 大小={byte_size} bytes")
        return MediaInfo(duration_seconds=duration, byte_size=byte_size)

    def render(
        self,
        source_path: str,
        start_seconds: float,
        duration_seconds: float,
        dest_path: str,
    ) -> Path:
        """
        截取 [start, start + duration) 区间并编码为 mp3

        :raises subprocess.CalledProcessError: ffmpeg 返回非 0
        :raises OSError: ffmpeg 不存在
        """
        cmd = [
            self.ffmpeg_bin,
            "-y",
            "-v", "error",
            "-ss", f"{start_seconds:.3f}",
            "-t", f"{duration_seconds:.3f}",
            "-i", str(source_path),
            "-vn",
            "-acodec", "libmp3lame",
            "-b:a", self.audio_bitrate,
            str(dest_path),
        ]
        subprocess.run(cmd, check=True, capture_output=True, timeout=self.timeout)
        return Path(dest_path)
