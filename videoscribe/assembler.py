"""
转写结果组装
按 order_index 逐段串行转写，上一段的结果决定下一段的上下文提示，
最终折叠为一个 CombinedTranscript

各段之间存在数据依赖（上下文），因此不并发
"""
import logging
import threading
from functools import reduce
from typing import Optional, Sequence, Tuple

from videoscribe.context import DEFAULT_CONTEXT_WORDS, derive_context
from videoscribe.errors import RunCancelledError, TranscriptPipelineError
from videoscribe.models.audio import AudioSegment
from videoscribe.models.transcript import (
    CombinedTranscript,
    TranscriptionOptions,
    TranscriptionRequest,
    TranscriptionResult,
)
from videoscribe.transcribers.base import Transcriber

logger = logging.getLogger(__name__)


def _ordered(segments: Sequence[AudioSegment]) -> Tuple[AudioSegment, ...]:
    """按 order_index 排序，并要求序号恰好为 0..n-1"""
    ordered = tuple(sorted(segments, key=lambda s: s.order_index))
    if not ordered:
        raise ValueError("没有可转写的切片")
    indexes = [s.order_index for s in ordered]
    if indexes != list(range(len(ordered))):
        raise ValueError(f"切片序号必须为连续的 0..{len(ordered) - 1}，实际为 {indexes}")
    return ordered


class TranscriptAssembler:
    """串行驱动转写器并拼接结果"""

    def __init__(
        self,
        transcriber: Transcriber,
        context_words: int = DEFAULT_CONTEXT_WORDS,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.transcriber = transcriber
        self.context_words = context_words
        self.cancel_event = cancel_event

    def run(
        self,
        segments: Sequence[AudioSegment],
        options: TranscriptionOptions,
    ) -> CombinedTranscript:
        """
        转写全部切片

        :param segments: 切片列表（单段与多段走同一流程）
        :param options: 语言 / 温度 / 返回格式
        :return: CombinedTranscript
        :raises TranscriptPipelineError: 任一切片失败，附带序号与已完成的结果
        :raises RunCancelledError: 开始某段之前或重试等待期间收到取消信号
        """
        ordered = _ordered(segments)
        total = len(ordered)
        logger.info(f"[组装] 开始转写 {total} 个切片")

        def step(
            done: Tuple[TranscriptionResult, ...],
            segment: AudioSegment,
        ) -> Tuple[TranscriptionResult, ...]:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise RunCancelledError(segment.order_index)

            previous = done[-1] if done else None
            request = TranscriptionRequest.for_segment(
                segment,
                options,
                context_prompt=derive_context(previous, self.context_words),
            )
            logger.info(f"[组装] 处理切片 {segment.order_index + 1}/{total}")
            try:
                result = self.transcriber.transcribe(request)
            except RunCancelledError as e:
                if e.index is not None:
                    raise
                # 重试等待期间取消，补上当前切片序号
                raise RunCancelledError(segment.order_index) from e
            except Exception as e:
                logger.error(f"[组装] 切片 {segment.order_index} 失败: {e}")
                raise TranscriptPipelineError(segment.order_index, e, done) from e
            return done + (result,)

        results = reduce(step, ordered, ())
        logger.info(f"[组装] 全部完成: {total} 个切片")
        return CombinedTranscript(segment_results=results)
