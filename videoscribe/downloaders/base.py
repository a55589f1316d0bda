"""
下载器抽象基类
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from urllib.parse import urlparse

from videoscribe.models.audio import AudioDownloadResult


class Downloader(ABC):
    """视频音频下载器基类"""

    PLATFORM_PATTERNS: Dict[str, List[str]] = {
        "youtube": ["youtube.com", "youtu.be"],
        "bilibili": ["bilibili.com", "b23.tv"],
        "vimeo": ["vimeo.com"],
        "tiktok": ["tiktok.com"],
    }

    @abstractmethod
    def download(self, video_url: str, output_dir: str) -> AudioDownloadResult:
        """
        下载视频并提取音频轨道

        :param video_url: 视频链接
        :param output_dir: 输出目录
        :return: 下载结果元数据
        """
        ...

    def detect_platform(self, video_url: str) -> str:
        """根据 URL 域名检测平台"""
        host = urlparse(video_url).hostname or ""
        for platform, domains in self.PLATFORM_PATTERNS.items():
            if any(host == d or host.endswith("." + d) for d in domains):
                return platform
        return "unknown"

    def detect_video_id(self, video_url: str) -> Optional[str]:
        """从 URL 中提取视频 ID（子类可覆盖）"""
        return None

    def output_stem(self, video_url: str) -> str:
        """转写结果默认文件名：能识别视频 ID 时用 ID，否则为 video"""
        return self.detect_video_id(video_url) or "video"
