"""
异常定义
整条转写 Pipeline 的错误都从 VideoScribeError 派生，便于调用方统一捕获
"""
from typing import Optional, Sequence


class VideoScribeError(Exception):
    """VideoScribe 基础异常"""

    pass


class ConfigError(VideoScribeError):
    """配置缺失或取值非法"""

    pass


class DownloadError(VideoScribeError):
    """视频/音频下载失败"""

    pass


class UnsupportedAudioFormatError(VideoScribeError):
    """不支持的音频格式"""

    pass


class EmptyAudioFileError(VideoScribeError):
    """音频文件为空"""

    pass


class MediaProbeError(VideoScribeError):
    """无法读取音频元数据（文件损坏或 ffprobe 不可用）"""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"无法解析音频文件 {file_path}: {reason}")


class SegmentRenderError(VideoScribeError):
    """
    切片渲染失败，index 为失败切片的序号

    segments 为本次切片方案的全部切片（含已渲染和未完成的），由调用方决定是否清理
    """

    def __init__(self, index: int, file_path: str, reason: str, segments: Sequence = ()):
        self.index = index
        self.file_path = file_path
        self.reason = reason
        self.segments = tuple(segments)
        super().__init__(f"切片 {index} 渲染失败 ({file_path}): {reason}")


class TranscriptionError(VideoScribeError):
    """重试耗尽后仍然转写失败"""

    def __init__(self, file_path: str, attempts: int, last_error: Optional[BaseException]):
        self.file_path = file_path
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"转写失败 ({file_path})，已尝试 {attempts} 次: {last_error}"
        )


class TranscriptPipelineError(VideoScribeError):
    """
    Pipeline 顶层错误

    携带失败切片序号、底层原因，以及失败前已经拿到的分段结果
    """

    def __init__(
        self,
        index: int,
        cause: BaseException,
        partial_results: Sequence = (),
    ):
        self.index = index
        self.cause = cause
        self.partial_results = tuple(partial_results)
        super().__init__(f"切片 {index} 转写失败: {cause}")


class RunCancelledError(VideoScribeError):
    """转写任务被取消，index 为取消时正在处理（或即将开始）的切片序号"""

    def __init__(self, index: Optional[int] = None):
        self.index = index
        where = f"（切片 {index}）" if index is not None else ""
        super().__init__(f"转写任务已取消{where}")
