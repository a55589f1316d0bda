"""
固定间隔重试
每次尝试都是一次完整调用；两次尝试之间等待固定时长（不做指数退避），
等待可通过 threading.Event 取消
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from videoscribe.errors import RunCancelledError, TranscriptionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryState:
    """单次调用内的重试状态，不持久化"""
    attempt_number: int = 0
    last_error: Optional[BaseException] = None


def call_with_retry(
    fn: Callable[[], T],
    *,
    max_attempts: int,
    delay: float,
    retry_on: Tuple[Type[BaseException], ...],
    label: str,
    cancel_event: Optional[threading.Event] = None,
) -> T:
    """
    执行 fn，失败时按固定间隔重试

    :param fn: 无参调用，成功即返回
    :param max_attempts: 最大尝试次数（含首次）
    :param delay: 两次尝试之间的等待秒数，最后一次失败后不再等待
    :param retry_on: 触发重试的异常类型，其余异常直接抛出
    :param label: 日志与错误信息中的标识（通常为文件路径）
    :param cancel_event: 等待期间被 set 则抛出 RunCancelledError
    :raises TranscriptionError: 重试耗尽
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts 至少为 1: {max_attempts}")

    waiter = cancel_event or threading.Event()
    state = RetryState()

    while state.attempt_number < max_attempts:
        state.attempt_number += 1
        try:
            return fn()
        except retry_on as e:
            state.last_error = e

        remaining = max_attempts - state.attempt_number
        if remaining == 0:
            logger.error(
                f"[重试] 第 {state.attempt_number} 次尝试失败: {state.last_error}，已达最大重试次数"
            )
            break

        logger.warning(
            f"[重试] 第 {state.attempt_number} 次尝试失败: {state.last_error}，"
            f"{delay:g} 秒后重试 ({label})"
        )
        if waiter.wait(delay):
            raise RunCancelledError() from state.last_error

    raise TranscriptionError(label, state.attempt_number, state.last_error) from state.last_error
