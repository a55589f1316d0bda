"""
基于 OpenAI 兼容接口的 Whisper 转写器
同一实现覆盖 OpenAI (whisper-1) 与 Groq (whisper-large-v3-turbo)，
区别只在 base_url 与默认模型
"""
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import openai
from openai import OpenAI

from videoscribe.config import GROQ_BASE_URL, OPENAI_BASE_URL, Settings
from videoscribe.errors import ConfigError
from videoscribe.models.transcript import (
    ResponseFormat,
    TranscriptionRequest,
    TranscriptionResult,
)
from videoscribe.transcribers.base import Transcriber
from videoscribe.transcribers.retry import call_with_retry

logger = logging.getLogger(__name__)

# 连接错误、超时、非 2xx 响应都属于 openai.APIError
RETRYABLE_ERRORS = (openai.APIError,)


class WhisperAPITranscriber(Transcriber):
    """
    Whisper API 转写器

    SDK 自带的重试被关闭（max_retries=0），重试只由 max_retries / retry_delay 控制；
    每次尝试都重新上传完整文件
    """

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        base_url: str = OPENAI_BASE_URL,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: Optional[float] = 600.0,
        cancel_event: Optional[threading.Event] = None,
        client: Optional[Any] = None,
    ):
        self.model = model
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.cancel_event = cancel_event
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        logger.info(
            f"[WhisperAPI] 初始化完成: model={model}, base_url={base_url}, "
            f"max_retries={max_retries}, retry_delay={retry_delay}s"
        )

    def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        """
        转写单个切片（带重试）

        :param request: TranscriptionRequest
        :return: TranscriptionResult
        """
        audio_path = Path(request.segment.file_path)
        if not audio_path.is_file():
            raise FileNotFoundError(f"音频文件不存在: {audio_path}")

        file_size = audio_path.stat().st_size / (1024 * 1024)
        logger.info(
            f"[WhisperAPI] 开始转写: {audio_path.name} ({file_size:.2f} MB), "
            f"language={request.language}, temperature={request.temperature}"
        )

        response = call_with_retry(
            lambda: self._create(audio_path, request),
            max_attempts=self.max_retries,
            delay=self.retry_delay,
            retry_on=RETRYABLE_ERRORS,
            label=str(audio_path),
            cancel_event=self.cancel_event,
        )

        raw = self._normalize(response)
        text = str(raw.get("text", "")).strip()
        logger.info(f"[WhisperAPI] 转写完成: {audio_path.name}, 总字数={len(text)}")
        return TranscriptionResult(text=text, raw=raw, source_segment=request.segment)

    def _create(self, audio_path: Path, request: TranscriptionRequest) -> Any:
        """单次接口调用"""
        with open(audio_path, "rb") as audio_file:
            kwargs = {
                "model": self.model,
                "file": audio_file,
                "temperature": request.temperature,
                "response_format": request.response_format.value,
            }
            if request.language:
                kwargs["language"] = request.language
            if request.context_prompt:
                kwargs["prompt"] = request.context_prompt
            if request.response_format is ResponseFormat.VERBOSE_JSON:
                kwargs["timestamp_granularities"] = ["segment"]

            return self.client.audio.transcriptions.create(**kwargs)

    @staticmethod
    def _normalize(response: Any) -> Dict[str, Any]:
        """把 SDK 返回值统一转成可 JSON 序列化的 dict"""
        if isinstance(response, str):
            return {"text": response}
        if isinstance(response, dict):
            return dict(response)
        if hasattr(response, "model_dump"):
            return response.model_dump(exclude_none=True)
        return {"text": getattr(response, "text", "")}


def create_transcriber(
    settings: Settings,
    cancel_event: Optional[threading.Event] = None,
) -> Transcriber:
    """根据配置创建转写器实例"""
    t_type = settings.transcriber_type.lower()

    if t_type == "openai":
        if not settings.openai_api_key:
            raise ConfigError("OPENAI_API_KEY 未配置，请在 .env 中设置")
        api_key = settings.openai_api_key
        base_url = settings.openai_base_url
        default_model = "whisper-1"
    elif t_type == "groq":
        if not settings.groq_api_key:
            raise ConfigError("GROQ_API_KEY 未配置，请在 .env 中设置")
        api_key = settings.groq_api_key
        base_url = GROQ_BASE_URL
        default_model = "whisper-large-v3-turbo"
    else:
        raise ConfigError(f"不支持的转写器类型: {t_type}，可选: openai / groq")

    return WhisperAPITranscriber(
        api_key=api_key,
        model=settings.whisper_model or default_model,
        base_url=base_url,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay,
        timeout=settings.request_timeout,
        cancel_event=cancel_event,
    )
