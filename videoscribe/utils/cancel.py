"""
SIGINT / SIGTERM 触发的协作式取消
信号只设置 Event，转写在下一个切片开始前（或重试等待中）检查并退出；
已经发出的请求会等到完成或超时
"""
import logging
import signal
import threading
from typing import Callable

logger = logging.getLogger(__name__)


def install_signal_handlers(cancel_event: threading.Event) -> Callable[[], None]:
    """
    安装信号处理器

    :param cancel_event: 收到信号时 set 的事件
    :return: 恢复原处理器的函数
    """
    previous = {}

    def handler(signum, frame):
        logger.warning(f"[取消] 收到信号 {signal.Signals(signum).name}，当前切片完成后退出")
        cancel_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, handler)

    def restore() -> None:
        for sig, old in previous.items():
            signal.signal(sig, old)

    return restore
