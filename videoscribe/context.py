"""
跨切片上下文提示
取上一段转写文本的末尾若干词作为下一段请求的 prompt，
帮助识别服务延续专有名词和被切断的词
"""
from typing import Optional

from videoscribe.models.transcript import TranscriptionResult

CONTEXT_LABEL = "Previous context: "
DEFAULT_CONTEXT_WORDS = 100


def derive_context(
    previous: Optional[TranscriptionResult],
    max_words: int = DEFAULT_CONTEXT_WORDS,
    label: str = CONTEXT_LABEL,
) -> str:
    """
    由上一段结果生成上下文提示

    :param previous: 上一段的转写结果，首段为 None
    :param max_words: 最多保留的词数
    :param label: 提示前缀，让服务把它当作参考而非待转写内容
    :return: 上下文提示；首段或上一段文本为空时返回空串
    """
    if previous is None or max_words <= 0:
        return ""
    words = previous.text.split()
    if not words:
        return ""
    return label + " ".join(words[-max_words:])
