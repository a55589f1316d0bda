"""
转写请求与结果数据模型
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from videoscribe.models.audio import AudioSegment


class ResponseFormat(str, Enum):
    """转写接口返回格式"""
    TEXT = "text"                   # 纯文本
    JSON = "json"                   # {"text": ...}
    VERBOSE_JSON = "verbose_json"   # 含语言、时间轴分段


def _check_temperature(temperature: float) -> None:
    if not 0.0 <= temperature <= 1.0:
        raise ValueError(f"temperature 必须在 [0, 1] 之间: {temperature}")


@dataclass(frozen=True)
class TranscriptionOptions:
    """调用方给出的基础转写参数，每个切片共用"""
    language: str = "en"
    temperature: float = 0.0
    response_format: ResponseFormat = ResponseFormat.JSON

    def __post_init__(self):
        _check_temperature(self.temperature)


@dataclass(frozen=True)
class TranscriptionRequest:
    """单个切片的转写请求"""
    segment: AudioSegment
    language: str
    context_prompt: str = ""
    temperature: float = 0.0
    response_format: ResponseFormat = ResponseFormat.JSON

    def __post_init__(self):
        _check_temperature(self.temperature)

    @classmethod
    def for_segment(
        cls,
        segment: AudioSegment,
        options: TranscriptionOptions,
        context_prompt: str = "",
    ) -> "TranscriptionRequest":
        return cls(
            segment=segment,
            language=options.language,
            context_prompt=context_prompt,
            temperature=options.temperature,
            response_format=options.response_format,
        )


@dataclass
class TranscriptSegment:
    """单段转写片段"""
    start: float   # 开始时间（秒）
    end: float     # 结束时间（秒）
    text: str      # 转写文本


@dataclass(frozen=True)
class TranscriptionResult:
    """单个切片的转写结果"""
    text: str
    raw: Dict[str, Any]
    source_segment: AudioSegment

    def timed_segments(self) -> List[TranscriptSegment]:
        """
        提取 verbose_json 中的时间轴分段，并换算为原音频上的绝对时间

        :return: 无时间轴信息时返回空列表
        """
        offset = self.source_segment.start_offset_seconds
        segments = []
        for seg in self.raw.get("segments") or []:
            segments.append(
                TranscriptSegment(
                    start=round(offset + float(seg["start"]), 2),
                    end=round(offset + float(seg["end"]), 2),
                    text=str(seg.get("text", "")).strip(),
                )
            )
        return segments

    def to_dict(self) -> dict:
        return {
            **self.source_segment.to_dict(),
            "text": self.text,
            "raw": self.raw,
        }


def combine_texts(results: Tuple[TranscriptionResult, ...]) -> str:
    """按顺序用单个空格拼接各切片文本"""
    return " ".join(result.text for result in results)


@dataclass(frozen=True)
class CombinedTranscript:
    """完整转写结果：拼接文本 + 有序的分段结果"""
    segment_results: Tuple[TranscriptionResult, ...] = field(default_factory=tuple)

    @property
    def full_text(self) -> str:
        return combine_texts(self.segment_results)

    @property
    def language(self) -> Optional[str]:
        for result in self.segment_results:
            language = result.raw.get("language")
            if language:
                return language
        return None

    def timeline(self) -> List[TranscriptSegment]:
        """所有切片的时间轴分段（绝对时间）"""
        segments: List[TranscriptSegment] = []
        for result in self.segment_results:
            segments.extend(result.timed_segments())
        return segments

    def to_dict(self) -> dict:
        return {
            "text": self.full_text,
            "language": self.language,
            "segments": [asdict(seg) for seg in self.timeline()],
            "chunks": [result.to_dict() for result in self.segment_results],
        }
