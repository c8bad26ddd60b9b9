"""
Trim Service

Lossless trimming of an audio file to a time window via an external tool.
Streams are copied, never re-encoded.
"""

import subprocess
from abc import ABC, abstractmethod
from typing import List

from ..core.exceptions import TrimError
from ..utils.logging_config import get_logger


class Trimmer(ABC):
    """Interface of the external trim step"""

    @abstractmethod
    def trim(self, source: str, destination: str, start: float, length: float):
        """
        Write the [start, start + length) part of source to destination

        Raises:
            TrimError: If the tool fails; destination may be left partially written
        """


class FFmpegTrimmer(Trimmer):
    """Trims with ffmpeg using stream copy"""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout: int = 600):
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        self.logger = get_logger('repair')

    def build_command(self, source: str, destination: str, start: float, length: float) -> List[str]:
        return [
            self.ffmpeg_path,
            '-y',
            '-hide_banner',
            '-loglevel', 'error',
            '-ss', f'{start:.3f}',
            '-t', f'{length:.3f}',
            '-i', source,
            '-map_metadata', '0',
            '-c', 'copy',
            destination,
        ]

    def trim(self, source: str, destination: str, start: float, length: float):
        cmd = self.build_command(source, destination, start, length)
        self.logger.debug(f"Running trim: {' '.join(cmd)}")

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise TrimError(f"Trim timed out after {self.timeout}s", filepath=source)
        except OSError as e:
            raise TrimError("Trim tool could not be started", details=str(e), filepath=source)

        if completed.returncode != 0:
            raise TrimError(
                f"ffmpeg exited with status {completed.returncode}",
                details=(completed.stderr or "").strip()[-500:] or None,
                filepath=source
            )


__all__ = ['Trimmer', 'FFmpegTrimmer']
