"""
转写结果落盘
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union

from videoscribe.models.audio import AudioSegment
from videoscribe.models.transcript import CombinedTranscript

logger = logging.getLogger(__name__)


def detail_path_for(destination: Union[str, Path]) -> Path:
    """多切片明细 JSON 的路径：替换目标文件扩展名为 .json"""
    dest = Path(destination)
    detail = dest.with_suffix(".json")
    if detail == dest:
        detail = dest.with_name(f"{dest.stem}.segments.json")
    return detail


def save_transcript(transcript: CombinedTranscript, destination: Union[str, Path]) -> Path:
    """
    保存转写结果

    目标文件写入完整文本；切片数大于 1 时，另存一份含各切片明细的 JSON

    :param transcript: CombinedTranscript
    :param destination: 文本输出路径
    :return: 文本输出路径
    """
    dest = Path(destination)
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(transcript.full_text, encoding="utf-8")

    if len(transcript.segment_results) > 1:
        detail = detail_path_for(dest)
        detail.write_text(
            json.dumps(transcript.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        logger.info(f"[保存] 切片明细 -> {detail}")

    logger.info(f"[保存] 转写结果 -> {dest}")
    return dest


def generate_output_path(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    fmt: str = "txt",
    keep_filename: bool = False,
    now: Optional[datetime] = None,
) -> Path:
    """
    生成输出文件路径

    默认 <文件名>_<时间戳>.<fmt>，keep_filename 时为 <文件名>.<fmt>
    """
    stem = Path(input_path).stem
    if keep_filename:
        return Path(output_dir) / f"{stem}.{fmt}"
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    timestamp = timestamp.replace(":", "-").replace(".", "-")
    return Path(output_dir) / f"{stem}_{timestamp}.{fmt}"


def cleanup_segments(segments: Iterable[AudioSegment], source_path: Union[str, Path]) -> None:
    """删除渲染出的切片文件（不删源文件），目录清空后一并删除"""
    source = Path(source_path).resolve()
    parents = set()
    for seg in segments:
        path = Path(seg.file_path)
        if path.resolve() == source:
            continue
        path.unlink(missing_ok=True)
        parents.add(path.parent)

    for parent in parents:
        try:
            parent.rmdir()
        except OSError as e:
            logger.warning(f"[清理] 目录未删除 {parent}: {e}")
    if parents:
        logger.info(f"[清理] 已删除临时切片")
