"""
Silence Detection Service

Wraps the external signal-detection step. Given a file and a sensitivity
profile it returns the significant silence intervals and the measured track
duration. Failures never raise: they degrade to an empty result with zero
duration, which the classifier reports as truncated.
"""

import re
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..core.exceptions import DetectionError
from ..core.models import DetectionProfile, DetectionResult, SilenceInterval, Tolerances
from ..utils.logging_config import get_logger


DURATION_RE = re.compile(
    r'Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)(?:,\s*start:\s*(-?\d+(?:\.\d+)?))?'
)
SILENCE_START_RE = re.compile(r'silence_start:\s*(-?\d+(?:\.\d+)?(?:e-?\d+)?)')
SILENCE_END_RE = re.compile(
    r'silence_end:\s*(-?\d+(?:\.\d+)?(?:e-?\d+)?)\s*\|\s*silence_duration:\s*(\d+(?:\.\d+)?)'
)


def parse_duration(output: str) -> float:
    """
    Total duration reported by ffmpeg, minus the stream start offset

    Returns:
        Duration in seconds, or 0.0 when no duration line can be parsed
    """
    match = DURATION_RE.search(output)
    if not match:
        return 0.0
    hours, minutes, seconds, start = match.groups()
    total = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    if start is not None:
        total -= float(start)
    return max(total, 0.0)


def parse_silence_intervals(output: str, duration: float) -> List[SilenceInterval]:
    """
    Pair silence_start/silence_end lines into intervals

    A trailing silence_start without its end runs to the end of the track.
    Timestamps are clamped to [0, duration].
    """
    def clamp(value: float) -> float:
        return min(max(value, 0.0), duration)

    intervals = []
    pending_start: Optional[float] = None

    for line in output.splitlines():
        start_match = SILENCE_START_RE.search(line)
        if start_match:
            pending_start = float(start_match.group(1))
            continue

        end_match = SILENCE_END_RE.search(line)
        if end_match and pending_start is not None:
            end = clamp(float(end_match.group(1)))
            start = min(clamp(pending_start), end)
            intervals.append(SilenceInterval(start, end))
            pending_start = None

    if pending_start is not None and clamp(pending_start) < duration:
        intervals.append(SilenceInterval(clamp(pending_start), duration))

    return intervals


def filter_significant(intervals: List[SilenceInterval], duration: float, minimum_duration: float,
                       tolerance: float) -> List[SilenceInterval]:
    """
    Keep intervals longer than minimum_duration, plus any interval touching
    the start or the end of the track within tolerance
    """
    return [
        interval for interval in intervals
        if interval.length > minimum_duration
        or interval.start <= tolerance
        or duration - interval.end <= tolerance
    ]


def parse_silencedetect_output(output: str, minimum_duration: float,
                               tolerance: float) -> DetectionResult:
    """
    Parse the diagnostic output of an ffmpeg silencedetect run

    Args:
        output: Text ffmpeg wrote to stderr
        minimum_duration: Interval length a silence must exceed to be kept
        tolerance: Distance from the track boundaries within which short
            silences are kept anyway

    Returns:
        DetectionResult; empty with zero duration when the duration is missing
    """
    duration = parse_duration(output)
    if duration <= 0:
        return DetectionResult.failed()

    intervals = parse_silence_intervals(output, duration)
    kept = filter_significant(intervals, duration, minimum_duration, tolerance)
    return DetectionResult(tuple(kept), duration)


class SilenceDetector(ABC):
    """Interface of the external signal-detection collaborator"""

    def __init__(self, tolerances: Optional[Tolerances] = None):
        self.tolerances = tolerances or Tolerances()

        # Thread safety
        self._lock = threading.Lock()

        # Performance tracking
        self.stats = {
            'detections': 0,
            'failures': 0,
            'total_detection_time': 0.0,
        }

    @abstractmethod
    def detect(self, path: str, profile: DetectionProfile) -> DetectionResult:
        """Detect the significant silences of path at the given sensitivity"""

    def _record(self, started: float, failed: bool):
        with self._lock:
            self.stats['detections'] += 1
            self.stats['total_detection_time'] += time.time() - started
            if failed:
                self.stats['failures'] += 1

    def get_performance_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = self.stats.copy()
        detections = stats['detections']
        stats['average_detection_time'] = (
            round(stats['total_detection_time'] / detections, 3) if detections else 0.0
        )
        return stats


class FFmpegSilenceDetector(SilenceDetector):
    """Runs ffmpeg's silencedetect filter in a subprocess"""

    def __init__(self, tolerances: Optional[Tolerances] = None, ffmpeg_path: str = "ffmpeg",
                 timeout: int = 600):
        super().__init__(tolerances)
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        self.logger = get_logger('detection')

    def build_command(self, path: str, profile: DetectionProfile) -> List[str]:
        minimum_duration = profile.minimum_duration(self.tolerances)
        return [
            self.ffmpeg_path,
            '-hide_banner',
            '-nostats',
            '-i', path,
            '-af', f'silencedetect=noise={profile.noise_threshold}dB:d={minimum_duration:.3f}',
            '-vn',
            '-f', 'null',
            '-',
        ]

    def run_tool(self, path: str, profile: DetectionProfile) -> str:
        """
        Run ffmpeg and return its diagnostic output

        Raises:
            DetectionError: If ffmpeg cannot be started, times out or fails
        """
        cmd = self.build_command(path, profile)
        self.logger.debug(f"Running silence detection: {' '.join(cmd)}")

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
            raise DetectionError(f"Timed out after {self.timeout}s", filepath=path)
        except OSError as e:
            raise DetectionError("ffmpeg could not be started", details=str(e), filepath=path)

        if completed.returncode != 0:
            self.logger.debug(completed.stderr[-2000:] if completed.stderr else "")
            raise DetectionError(f"ffmpeg exited with status {completed.returncode}", filepath=path)

        return completed.stderr or ""

    def detect(self, path: str, profile: DetectionProfile) -> DetectionResult:
        started = time.time()

        try:
            output = self.run_tool(path, profile)
        except DetectionError as e:
            self.logger.warning(str(e))
            self._record(started, failed=True)
            return DetectionResult.failed()

        result = parse_silencedetect_output(
            output,
            profile.minimum_duration(self.tolerances),
            self.tolerances.tolerance,
        )

        if result.duration <= 0:
            self.logger.warning(f"Could not parse duration from ffmpeg output: {path}")
        else:
            self.logger.debug(
                f"{profile.value} profile: {len(result.intervals)} silences, "
                f"duration {result.duration:.2f}s ({path})"
            )

        self._record(started, failed=result.duration <= 0)
        return result


CannedEntry = Union[DetectionResult, Mapping[DetectionProfile, DetectionResult]]


class CannedSilenceDetector(SilenceDetector):
    """
    Returns prepared results instead of running a tool

    Results are looked up by path, either one DetectionResult for both
    profiles or a mapping per profile. Unknown paths, and paths listed in
    fail_paths, behave like a failed tool run.
    """

    def __init__(self, results: Optional[Dict[str, CannedEntry]] = None,
                 tolerances: Optional[Tolerances] = None, fail_paths=(),
                 delay: float = 0.0, on_detect: Optional[Callable[[str, DetectionProfile], None]] = None):
        super().__init__(tolerances)
        self.results: Dict[str, CannedEntry] = dict(results or {})
        self.fail_paths = set(fail_paths)
        self.delay = delay
        self.on_detect = on_detect
        self.calls: List[Tuple[str, DetectionProfile]] = []

    def add(self, path: str, short: DetectionResult, long: Optional[DetectionResult] = None):
        self.results[path] = {
            DetectionProfile.SHORT: short,
            DetectionProfile.LONG: long if long is not None else DetectionResult((), short.duration),
        }

    def detect(self, path: str, profile: DetectionProfile) -> DetectionResult:
        started = time.time()
        with self._lock:
            self.calls.append((path, profile))
        if self.on_detect is not None:
            self.on_detect(path, profile)
        if self.delay:
            time.sleep(self.delay)

        entry = self.results.get(path)
        if path in self.fail_paths or entry is None:
            self._record(started, failed=True)
            return DetectionResult.failed()

        result = entry if isinstance(entry, DetectionResult) else entry.get(profile, DetectionResult.failed())
        self._record(started, failed=result.duration <= 0)
        return result


__all__ = [
    'SilenceDetector',
    'FFmpegSilenceDetector',
    'CannedSilenceDetector',
    'parse_silencedetect_output',
    'parse_duration',
    'parse_silence_intervals',
    'filter_significant',
]
