"""
VideoScribe 命令行

    videoscribe url -u https://www.youtube.com/watch?v=xxxx
    videoscribe audio -i meeting.mp3
    videoscribe audio -i ./recordings --batch --keep-filename
    videoscribe serve
"""
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import openai
import typer

from videoscribe import __version__
from videoscribe.audio_files import validate_audio_file
from videoscribe.config import Settings, configure_logging
from videoscribe.errors import VideoScribeError
from videoscribe.models.audio import describe_size
from videoscribe.models.transcript import TranscriptionOptions
from videoscribe.services.transcription_service import TranscriptionService
from videoscribe.storage import generate_output_path
from videoscribe.utils.cancel import install_signal_handlers

logger = logging.getLogger("videoscribe")

# 这些异常记录一行错误日志并以退出码 1 结束
CLI_ERRORS = (VideoScribeError, OSError, ValueError, openai.OpenAIError)

app = typer.Typer(
    name="videoscribe",
    help="Transcribe videos and long audio files with a Whisper-compatible API.",
    add_completion=False,
)


class OutputFormat(str, Enum):
    txt = "txt"
    json = "json"


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"videoscribe {__version__}")
        raise typer.Exit()


def build_service(settings: Settings, cancel_event: threading.Event) -> TranscriptionService:
    """CLI 用的服务实例（测试中可替换）"""
    return TranscriptionService(settings, cancel_event=cancel_event)


def _prepare(language: Optional[str], temperature: float):
    settings = Settings.from_env()
    settings.ensure_dirs()
    options = TranscriptionOptions(
        language=language or settings.default_language,
        temperature=temperature,
    )
    cancel_event = threading.Event()
    return settings, options, cancel_event


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=version_callback, is_eager=True,
                     help="Show the version and exit."),
    ] = False,
) -> None:
    configure_logging(logging.DEBUG if verbose else logging.INFO)


@app.command()
def url(
    video_url: Annotated[str, typer.Option("--url", "-u", help="Video URL.")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Transcript output path.")] = None,
    language: Annotated[Optional[str], typer.Option("--language", "-l", help='Language code, e.g. "en".')] = None,
    temperature: Annotated[float, typer.Option("--temperature", "-t", min=0.0, max=1.0)] = 0.0,
    keep_audio: Annotated[bool, typer.Option("--keep-audio", help="Keep downloaded audio and chunks.")] = False,
    fmt: Annotated[OutputFormat, typer.Option("--format", help="Output file extension.")] = OutputFormat.txt,
) -> None:
    """Download a video's audio track and transcribe it."""
    try:
        settings, options, cancel_event = _prepare(language, temperature)
        restore = install_signal_handlers(cancel_event)
        try:
            logger.info(f"[CLI] 处理 URL: {video_url}")
            service = build_service(settings, cancel_event)
            saved = service.process_url(
                video_url,
                output_path=output,
                options=options,
                fmt=fmt.value,
                keep_audio=keep_audio,
            )
        finally:
            restore()
    except CLI_ERRORS as e:
        logger.error(f"[CLI] 失败: {e}")
        raise typer.Exit(code=1)

    logger.info(f"[CLI] 转写完成: {saved}")


@app.command()
def audio(
    input_path: Annotated[Path, typer.Option("--input", "-i", help="Audio file, or directory with --batch.")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Transcript output path.")] = None,
    output_dir: Annotated[Optional[Path], typer.Option("--output-dir", "-d", help="Output directory (default: AUDIO_OUTPUT_DIR).")] = None,
    language: Annotated[Optional[str], typer.Option("--language", "-l", help='Language code, e.g. "en".')] = None,
    temperature: Annotated[float, typer.Option("--temperature", "-t", min=0.0, max=1.0)] = 0.0,
    fmt: Annotated[OutputFormat, typer.Option("--format", help="Output file extension.")] = OutputFormat.txt,
    batch: Annotated[bool, typer.Option("--batch", help="Process every audio file in the directory.")] = False,
    keep_filename: Annotated[bool, typer.Option("--keep-filename", help="Do not add a timestamp to output names.")] = False,
) -> None:
    """Transcribe a local audio file or a directory of audio files."""
    input_path = input_path.resolve()

    if batch and not input_path.is_dir():
        logger.error("[CLI] 使用 --batch 时输入必须是目录")
        raise typer.Exit(code=1)
    if not batch and not input_path.is_file():
        logger.error("[CLI] 未使用 --batch 时输入必须是文件")
        raise typer.Exit(code=1)

    try:
        settings, options, cancel_event = _prepare(language, temperature)
        output_dir = (output_dir or settings.audio_output_dir).resolve()
        restore = install_signal_handlers(cancel_event)
        try:
            service = build_service(settings, cancel_event)
            if batch:
                report = service.process_batch(
                    input_path, output_dir, options, fmt=fmt.value, keep_filename=keep_filename
                )
                for item in report.failed:
                    logger.error(f"[CLI]   - {Path(item.input_path).name}: {item.error}")
                if report.failed:
                    raise typer.Exit(code=1)
                return

            info = validate_audio_file(input_path)
            logger.info(f"[CLI] 处理: {info.name}{info.extension} ({describe_size(info.size)})")
            if output is None:
                output = generate_output_path(input_path, output_dir, fmt.value, keep_filename)
            saved = service.process_audio_file(input_path, output.resolve(), options)
        finally:
            restore()
    except CLI_ERRORS as e:
        logger.error(f"[CLI] 失败: {e}")
        raise typer.Exit(code=1)

    logger.info(f"[CLI] 转写完成: {saved}")


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option(help="Bind host.")] = None,
    port: Annotated[Optional[int], typer.Option(help="Bind port.")] = None,
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from videoscribe import create_app

    settings = Settings.from_env()
    host = host or settings.host
    port = port or settings.port
    logger.info(f"[CLI] VideoScribe 启动中 http://{host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, reload=False)


if __name__ == "__main__":
    app()
