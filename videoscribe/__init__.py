"""
VideoScribe - 长音频 / 视频转写工具
超过接口上传上限的音频自动切片，逐段调用 Whisper API 并拼接结果
"""
from fastapi import FastAPI

__version__ = "0.1.0"


def create_app(settings=None, service=None) -> FastAPI:
    """
    创建 FastAPI 应用

    :param settings: 配置，缺省时从环境变量加载
    :param service: 预先构建的 TranscriptionService（测试时注入）
    """
    from videoscribe.config import Settings
    from videoscribe.routers import transcript
    from videoscribe.services.transcription_service import TranscriptionService

    if service is None:
        settings = settings or Settings.from_env()
        settings.ensure_dirs()
        service = TranscriptionService(settings)

    app = FastAPI(
        title="VideoScribe",
        description="长音频转写 API — 输入视频链接或音频文件，输出完整文本",
        version=__version__,
    )
    app.state.service = service
    app.include_router(transcript.router, prefix="/api")
    return app
