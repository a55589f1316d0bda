"""
音频相关数据模型
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class AudioDownloadResult:
    """视频下载并提取音频后的元数据"""
    file_path: str                  # 本地音频文件路径
    title: str                      # 视频标题
    duration: float                 # 时长（秒）
    video_id: str                   # 视频唯一 ID
    platform: str                   # 来源平台 (youtube / bilibili / ...)
    raw_info: dict = field(default_factory=dict)  # yt-dlp 原始 info


@dataclass(frozen=True)
class AudioFileInfo:
    """通过校验的本地音频文件"""
    path: str
    name: str                       # 不含扩展名的文件名
    extension: str                  # 小写扩展名，含 "."
    size: int                       # 字节数

    @property
    def size_mb(self) -> float:
        return self.size / (1024 * 1024)


@dataclass(frozen=True)
class MediaInfo:
    """ffprobe 探测结果"""
    duration_seconds: float
    byte_size: int


@dataclass(frozen=True)
class AudioSegment:
    """
    音频切片

    切片之间首尾相接、互不重叠，顺序由 order_index 决定
    """
    order_index: int
    file_path: str
    start_offset_seconds: float
    duration_seconds: float

    def __post_init__(self):
        if self.order_index < 0:
            raise ValueError(f"order_index 不能为负数: {self.order_index}")
        if self.start_offset_seconds < 0:
            raise ValueError(f"start_offset_seconds 不能为负数: {self.start_offset_seconds}")
        if self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds 必须大于 0: {self.duration_seconds}")

    @property
    def end_seconds(self) -> float:
        return self.start_offset_seconds + self.duration_seconds

    def to_dict(self) -> dict:
        return {
            "index": self.order_index,
            "file_path": self.file_path,
            "start": self.start_offset_seconds,
            "duration": self.duration_seconds,
        }


def describe_size(size: Optional[int]) -> str:
    """字节数格式化为 MB 字符串"""
    if size is None:
        return "unknown"
    return f"{size / (1024 * 1024):.2f} MB"
