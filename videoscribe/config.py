"""
VideoScribe 配置模块
入口（CLI / main.py）调用 Settings.from_env() 从 .env 与环境变量加载配置，
再把 Settings 显式传给各组件，组件内部不读取环境变量
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from videoscribe.errors import ConfigError

BASE_DIR = Path(__file__).resolve().parent.parent

LOG_FORMAT = "%(asctime)s │ %(levelname)-7s │ %(name)s │ %(message)s"

OPENAI_BASE_URL = "https://api.openai.com/v1"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def configure_logging(level: int = logging.INFO) -> None:
    """统一日志格式"""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"环境变量 {name} 必须是整数，当前值: {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"环境变量 {name} 必须是数字，当前值: {raw!r}") from None


def _env_path(name: str, default: str) -> Path:
    path = Path(os.getenv(name) or default)
    return path if path.is_absolute() else BASE_DIR / path


@dataclass
class Settings:
    """全局配置"""

    # 服务
    host: str = "0.0.0.0"
    port: int = 8900

    # 转写器类型: openai / groq
    transcriber_type: str = "openai"
    openai_api_key: str = ""
    openai_base_url: str = OPENAI_BASE_URL
    groq_api_key: str = ""
    whisper_model: Optional[str] = None     # None 表示使用转写器默认模型
    default_language: str = "en"

    # 重试与超时
    max_retries: int = 3
    retry_delay: float = 1.0                # 秒
    request_timeout: float = 600.0          # 单次请求超时（秒）
    ffmpeg_timeout: float = 600.0

    # 切片
    chunk_size: int = 25_000_000            # 25MB，接口上传上限
    context_words: int = 100

    # 存储路径
    output_dir: Path = field(default_factory=lambda: BASE_DIR / "output")
    temp_dir: Path = field(default_factory=lambda: BASE_DIR / "temp")
    audio_output_dir: Path = field(default_factory=lambda: BASE_DIR / "audio_output")

    def __post_init__(self):
        if self.max_retries < 1:
            raise ConfigError(f"MAX_RETRIES 至少为 1，当前值: {self.max_retries}")
        if self.retry_delay < 0:
            raise ConfigError(f"RETRY_DELAY 不能为负数，当前值: {self.retry_delay}")
        if self.chunk_size <= 0:
            raise ConfigError(f"CHUNK_SIZE 必须大于 0，当前值: {self.chunk_size}")
        if self.context_words < 0:
            raise ConfigError(f"CONTEXT_WORDS 不能为负数，当前值: {self.context_words}")

    @classmethod
    def from_env(cls) -> "Settings":
        """从 .env 文件与环境变量构建配置"""
        load_dotenv()
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8900),
            transcriber_type=os.getenv("TRANSCRIBER_TYPE", "openai"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_base_url=os.getenv("OPENAI_BASE_URL", OPENAI_BASE_URL),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            whisper_model=os.getenv("WHISPER_MODEL") or None,
            default_language=os.getenv("DEFAULT_LANGUAGE", "en"),
            max_retries=_env_int("MAX_RETRIES", 3),
            # RETRY_DELAY 沿用毫秒单位
            retry_delay=_env_int("RETRY_DELAY", 1000) / 1000,
            request_timeout=_env_float("REQUEST_TIMEOUT", 600.0),
            ffmpeg_timeout=_env_float("FFMPEG_TIMEOUT", 600.0),
            chunk_size=_env_int("CHUNK_SIZE", 25_000_000),
            context_words=_env_int("CONTEXT_WORDS", 100),
            output_dir=_env_path("OUTPUT_DIR", "output"),
            temp_dir=_env_path("TEMP_DIR", "temp"),
            audio_output_dir=_env_path("AUDIO_OUTPUT_DIR", "audio_output"),
        )

    def ensure_dirs(self) -> None:
        """创建输出与临时目录"""
        for path in (self.output_dir, self.temp_dir):
            path.mkdir(parents=True, exist_ok=True)
