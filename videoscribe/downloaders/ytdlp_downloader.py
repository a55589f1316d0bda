"""
基于 yt-dlp 的通用下载器
支持 YouTube / Bilibili 以及 yt-dlp 支持的所有平台
"""
import logging
import os
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

import yt_dlp
from yt_dlp.utils import DownloadError as YtdlpDownloadError

from videoscribe.downloaders.base import Downloader
from videoscribe.errors import DownloadError
from videoscribe.models.audio import AudioDownloadResult

logger = logging.getLogger(__name__)

BILIBILI_HEADERS = {
    "Referer": "https://www.bilibili.com/",
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
}


class YtdlpDownloader(Downloader):
    """
    通用 yt-dlp 下载器
    只取音频流，由 ffmpeg 后处理为 mp3
    """

    def __init__(self, audio_quality: str = "128"):
        self.audio_quality = audio_quality

    def detect_video_id(self, video_url: str) -> Optional[str]:
        """从 URL 提取视频 ID"""
        parsed = urlparse(video_url)
        host = parsed.hostname or ""

        if host.endswith("youtube.com"):
            if parsed.path.startswith(("/shorts/", "/live/", "/embed/")):
                return parsed.path.strip("/").split("/")[1] or None
            return parse_qs(parsed.query).get("v", [None])[0]
        if host == "youtu.be":
            return parsed.path.strip("/") or None

        if host.endswith("bilibili.com"):
            match = re.search(r"/(BV[\w]+)", parsed.path)
            return match.group(1) if match else None

        return None

    def build_options(self, output_dir: str, platform: str) -> dict:
        """yt-dlp 参数"""
        ydl_opts = {
            "format": "bestaudio[ext=m4a]/bestaudio/best",
            "outtmpl": os.path.join(output_dir, "%(id)s.%(ext)s"),
            "postprocessors": [
                {
                    "key": "FFmpegExtractAudio",
                    "preferredcodec": "mp3",
                    "preferredquality": self.audio_quality,
                }
            ],
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
        }
        # Bilibili 需要特殊 header
        if platform == "bilibili":
            ydl_opts["http_headers"] = dict(BILIBILI_HEADERS)
        return ydl_opts

    def download(self, video_url: str, output_dir: str) -> AudioDownloadResult:
        """
        下载音频并返回元数据

        :raises DownloadError: 链接无效或下载 / 提取音频失败
        """
        os.makedirs(output_dir, exist_ok=True)
        platform = self.detect_platform(video_url)
        logger.info(f"[下载] 平台={platform}, URL={video_url}")

        try:
            with yt_dlp.YoutubeDL(self.build_options(output_dir, platform)) as ydl:
                info = ydl.extract_info(video_url, download=True)
        except YtdlpDownloadError as e:
            raise DownloadError(f"下载失败: {video_url}: {e}") from e

        if not info:
            raise DownloadError(f"未获取到视频信息: {video_url}")

        video_id = info.get("id") or self.output_stem(video_url)
        title = info.get("title", "Untitled")
        duration = float(info.get("duration") or 0)
        audio_path = os.path.join(output_dir, f"{video_id}.mp3")

        if not os.path.exists(audio_path):
            raise DownloadError(f"音频提取失败，未找到输出文件: {audio_path}")

        logger.info(f"[下载完成] {title} ({duration:.0f}s) -> {audio_path}")

        return AudioDownloadResult(
            file_path=audio_path,
            title=title,
            duration=duration,
            video_id=video_id,
            platform=platform,
            raw_info=info,
        )
