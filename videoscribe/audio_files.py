"""
本地音频文件校验与目录扫描
"""
from pathlib import Path
from typing import List, Union

from videoscribe.errors import EmptyAudioFileError, UnsupportedAudioFormatError
from videoscribe.models.audio import AudioFileInfo

SUPPORTED_FORMATS = (".mp3", ".wav", ".m4a", ".flac", ".aac", ".ogg", ".wma")


def is_supported_audio(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_FORMATS


def validate_audio_file(file_path: Union[str, Path]) -> AudioFileInfo:
    """
    校验音频文件

    :raises FileNotFoundError: 文件不存在
    :raises UnsupportedAudioFormatError: 扩展名不在 SUPPORTED_FORMATS 中
    :raises EmptyAudioFileError: 文件为空
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"文件不存在: {path}")

    ext = path.suffix.lower()
    if ext not in SUPPORTED_FORMATS:
        raise UnsupportedAudioFormatError(
            f"不支持的音频格式: {ext}，支持: {', '.join(SUPPORTED_FORMATS)}"
        )

    size = path.stat().st_size
    if size == 0:
        raise EmptyAudioFileError(f"音频文件为空: {path}")

    return AudioFileInfo(path=str(path), name=path.stem, extension=ext, size=size)


def list_audio_files(dir_path: Union[str, Path]) -> List[Path]:
    """列出目录下（不递归）所有支持的音频文件，按文件名排序"""
    directory = Path(dir_path)
    if not directory.is_dir():
        raise NotADirectoryError(f"目录不存在: {directory}")
    return sorted(
        p for p in directory.iterdir() if p.is_file() and is_supported_audio(p)
    )
