"""
转写器抽象基类
"""
from abc import ABC, abstractmethod

from videoscribe.models.transcript import TranscriptionRequest, TranscriptionResult


class Transcriber(ABC):
    """远程语音识别客户端基类"""

    @abstractmethod
    def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        """
        转写单个音频切片

        :param request: 切片 + 语言 / 上下文提示 / 温度 / 返回格式
        :return: 转写结果
        :raises FileNotFoundError: 切片文件不存在（不重试）
        :raises TranscriptionError: 重试耗尽
        """
        ...
