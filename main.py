"""
VideoScribe — 长音频转写服务

启动命令:
    python main.py
    或
    videoscribe serve
"""
import logging

import uvicorn

from videoscribe import create_app
from videoscribe.config import Settings, configure_logging

configure_logging()

logger = logging.getLogger("videoscribe")

settings = Settings.from_env()
app = create_app(settings)

if __name__ == "__main__":
    logger.info(f"🚀 VideoScribe 启动中 http://{settings.host}:{settings.port}")
    logger.info(f"📖 API 文档: http://127.0.0.1:{settings.port}/docs")
    logger.info(f"🎙️ 转写器: {settings.transcriber_type} (model={settings.whisper_model or 'default'})")
    logger.info(f"✂️ 切片上限: {settings.chunk_size} bytes, 重试: {settings.max_retries} 次")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        reload=False,
    )
