"""
API 请求 / 响应模型 (Pydantic)
"""
from typing import Optional

from pydantic import BaseModel, Field

from videoscribe.models.transcript import ResponseFormat, TranscriptionOptions


class TranscribeRequest(BaseModel):
    """转写请求体"""
    source: str                                            # 视频链接或服务器本地音频路径
    language: Optional[str] = None                         # 覆盖默认语言
    temperature: float = Field(0.0, ge=0.0, le=1.0)
    response_format: ResponseFormat = ResponseFormat.JSON
    output_format: str = Field("txt", pattern="^(txt|json)$")

    def to_options(self, default_language: str) -> TranscriptionOptions:
        return TranscriptionOptions(
            language=self.language or default_language,
            temperature=self.temperature,
            response_format=self.response_format,
        )


class TranscribeResponse(BaseModel):
    """同步返回的转写结果"""
    task_id: str
    text: str
    language: Optional[str] = None
    segment_count: int
    output_path: str


class TaskStatusResponse(BaseModel):
    """异步任务状态"""
    task_id: str
    status: str          # pending / downloading / transcribing / saving / success / failed
    message: str = ""
    result: Optional[TranscribeResponse] = None
