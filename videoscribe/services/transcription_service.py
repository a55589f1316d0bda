"""
转写核心 Pipeline
编排整个流程: (下载) → 切片 → 逐段转写 → 拼接 → 保存
"""
import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from videoscribe.assembler import TranscriptAssembler
from videoscribe.audio_files import list_audio_files, validate_audio_file
from videoscribe.config import Settings
from videoscribe.downloaders.base import Downloader
from videoscribe.downloaders.ytdlp_downloader import YtdlpDownloader
from videoscribe.errors import SegmentRenderError
from videoscribe.media.ffmpeg import FFmpegToolkit
from videoscribe.models.audio import describe_size
from videoscribe.models.transcript import CombinedTranscript, TranscriptionOptions
from videoscribe.segmenter import Segmenter
from videoscribe.storage import cleanup_segments, generate_output_path, save_transcript
from videoscribe.transcribers.base import Transcriber
from videoscribe.transcribers.whisper_api_transcriber import create_transcriber

logger = logging.getLogger(__name__)


@dataclass
class BatchItem:
    """批量处理中单个文件的结果"""
    input_path: str
    output_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    """批量处理汇总"""
    items: List[BatchItem] = field(default_factory=list)

    @property
    def succeeded(self) -> List[BatchItem]:
        return [item for item in self.items if item.success]

    @property
    def failed(self) -> List[BatchItem]:
        return [item for item in self.items if not item.success]


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class TranscriptionService:
    """
    长音频转写服务

    Pipeline 流程:
    1. 下载视频音频轨 (yt-dlp，仅 URL 输入)
    2. 超过上传上限则按时长切片 (ffmpeg)
    3. 逐段调用 Whisper API，上一段末尾文本作为下一段 prompt
    4. 拼接全文并保存，多切片时额外保存 JSON 明细
    """

    def __init__(
        self,
        settings: Settings,
        transcriber: Optional[Transcriber] = None,
        segmenter: Optional[Segmenter] = None,
        downloader: Optional[Downloader] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.settings = settings
        self.cancel_event = cancel_event
        self.transcriber = transcriber or create_transcriber(settings, cancel_event)
        if segmenter is None:
            toolkit = FFmpegToolkit(timeout=settings.ffmpeg_timeout)
            segmenter = Segmenter(toolkit, toolkit, settings.temp_dir / "chunks")
        self.segmenter = segmenter
        self.downloader: Downloader = downloader or YtdlpDownloader()
        self.assembler = TranscriptAssembler(
            self.transcriber,
            context_words=settings.context_words,
            cancel_event=cancel_event,
        )
        logger.info(
            f"[TranscriptionService] 初始化完成: "
            f"transcriber={settings.transcriber_type}, chunk_size={settings.chunk_size}"
        )

    def default_options(self) -> TranscriptionOptions:
        return TranscriptionOptions(language=self.settings.default_language)

    # ==================== 核心 Pipeline ====================

    def transcribe_audio_file(
        self,
        audio_path: Union[str, Path],
        options: Optional[TranscriptionOptions] = None,
        keep_segments: bool = False,
    ) -> CombinedTranscript:
        """
        转写单个音频文件

        :param audio_path: 音频文件路径
        :param options: 转写参数，默认使用配置中的语言
        :param keep_segments: 保留切片文件
        :return: CombinedTranscript
        :raises FileNotFoundError: 文件不存在（不会发起任何请求）
        """
        path = Path(audio_path)
        if not path.is_file():
            raise FileNotFoundError(f"音频文件不存在: {path}")

        options = options or self.default_options()
        logger.info(
            f"[转写] 文件: {path.name}, 大小: {describe_size(path.stat().st_size)}, "
            f"language={options.language}, temperature={options.temperature}"
        )

        try:
            segments = self.segmenter.decide_segments(str(path), self.settings.chunk_size)
        except SegmentRenderError as e:
            if not keep_segments:
                cleanup_segments(e.segments, path)
            raise

        try:
            return self.assembler.run(segments, options)
        finally:
            if not keep_segments:
                cleanup_segments(segments, path)

    def process_audio_file(
        self,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        options: Optional[TranscriptionOptions] = None,
    ) -> Path:
        """转写并保存，返回文本输出路径"""
        transcript = self.transcribe_audio_file(input_path, options)
        return save_transcript(transcript, output_path)

    def process_url(
        self,
        video_url: str,
        output_path: Optional[Union[str, Path]] = None,
        options: Optional[TranscriptionOptions] = None,
        fmt: str = "txt",
        keep_audio: bool = False,
    ) -> Path:
        """
        视频 URL → 转写文本

        :param output_path: 默认 <output_dir>/<video_id>.<fmt>
        :param keep_audio: 保留下载的音频与切片
        """
        if output_path is None:
            output_path = self.settings.output_dir / f"{self.downloader.output_stem(video_url)}.{fmt}"

        audio_meta = self.downloader.download(
            video_url=video_url,
            output_dir=str(self.settings.temp_dir),
        )
        try:
            transcript = self.transcribe_audio_file(
                audio_meta.file_path, options, keep_segments=keep_audio
            )
        finally:
            if not keep_audio:
                Path(audio_meta.file_path).unlink(missing_ok=True)
                logger.info(f"[清理] 已删除下载的音频: {audio_meta.file_path}")

        return save_transcript(transcript, output_path)

    def process_batch(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        options: Optional[TranscriptionOptions] = None,
        fmt: str = "txt",
        keep_filename: bool = False,
    ) -> BatchReport:
        """
        逐个转写目录中的音频文件

        单个文件失败只记录，不中断其余文件
        """
        report = BatchReport()
        audio_files = list_audio_files(input_dir)
        if not audio_files:
            logger.info(f"[批量] 目录中没有音频文件: {input_dir}")
            return report

        logger.info(f"[批量] 共 {len(audio_files)} 个文件")
        Path(output_dir).mkdir(parents=True, exist_ok=True)

        for i, audio_file in enumerate(audio_files, start=1):
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.warning("[批量] 已取消，跳过剩余文件")
                break

            logger.info(f"[批量] 处理 {i}/{len(audio_files)}: {audio_file.name}")
            item = BatchItem(input_path=str(audio_file))
            try:
                validate_audio_file(audio_file)
                output_path = generate_output_path(audio_file, output_dir, fmt, keep_filename)
                item.output_path = str(self.process_audio_file(audio_file, output_path, options))
                logger.info(f"[批量] 完成: {Path(item.output_path).name}")
            except Exception as e:
                logger.error(f"[批量] 失败: {audio_file.name}: {e}", exc_info=True)
                item.error = str(e)
            report.items.append(item)

        logger.info(f"[批量] 成功 {len(report.succeeded)}，失败 {len(report.failed)}")
        return report

    # ==================== 异步任务 ====================

    def run_task(
        self,
        task_id: str,
        source: str,
        options: Optional[TranscriptionOptions] = None,
        fmt: str = "txt",
    ) -> Path:
        """
        执行一次 API 任务，过程写入 <output_dir>/<task_id>/status.json

        :param source: 视频 URL 或服务器本地音频路径
        :return: 文本输出路径
        """
        task_dir = self.settings.output_dir / task_id
        task_dir.mkdir(parents=True, exist_ok=True)
        output_path = task_dir / f"transcript.{fmt}"

        try:
            if is_url(source):
                self._update_status(task_dir, "downloading", "正在下载视频音频...")
                audio_meta = self.downloader.download(source, str(task_dir))
                audio_path = Path(audio_meta.file_path)
            else:
                audio_path = Path(source)

            self._update_status(task_dir, "transcribing", "正在切片并转写音频...")
            try:
                transcript = self.transcribe_audio_file(audio_path, options)
            finally:
                if is_url(source):
                    audio_path.unlink(missing_ok=True)

            self._update_status(task_dir, "saving", "正在保存结果...")
            saved = save_transcript(transcript, output_path)
            self._save_result(task_dir, transcript, saved)
            self._update_status(task_dir, "success", "转写完成")

            logger.info(f"[Pipeline] 任务完成: task_id={task_id}")
            return saved

        except Exception as exc:
            logger.error(f"[Pipeline] 任务失败: task_id={task_id}, error={exc}", exc_info=True)
            self._update_status(task_dir, "failed", str(exc))
            raise

    # ==================== 状态管理 ====================

    @staticmethod
    def _update_status(task_dir: Path, status: str, message: str = ""):
        """原子更新任务状态文件"""
        status_file = task_dir / "status.json"
        data = {"status": status, "message": message}
        temp_file = status_file.with_suffix(".tmp")
        temp_file.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        temp_file.replace(status_file)

    def mark_pending(self, task_id: str) -> None:
        task_dir = self.settings.output_dir / task_id
        task_dir.mkdir(parents=True, exist_ok=True)
        self._update_status(task_dir, "pending", "任务已提交")

    def get_status(self, task_id: str) -> dict:
        """读取任务状态"""
        status_file = self.settings.output_dir / task_id / "status.json"
        if not status_file.exists():
            return {"status": "not_found", "message": "任务不存在"}
        return json.loads(status_file.read_text(encoding="utf-8"))

    def get_result(self, task_id: str) -> Optional[dict]:
        """读取任务结果"""
        result_file = self.settings.output_dir / task_id / "result.json"
        if not result_file.exists():
            return None
        return json.loads(result_file.read_text(encoding="utf-8"))

    @staticmethod
    def _save_result(task_dir: Path, transcript: CombinedTranscript, output_path: Path):
        """保存任务结果摘要"""
        data = {
            "text": transcript.full_text,
            "language": transcript.language,
            "segment_count": len(transcript.segment_results),
            "output_path": str(output_path),
        }
        result_file = task_dir / "result.json"
        result_file.write_text(
            json.dumps(data, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
