"""
Service Layer for ripcheck

Detection, scheduling, repair and library services. External tools are
reached only through SilenceDetector and Trimmer implementations.
"""

from .silence_detection import SilenceDetector, FFmpegSilenceDetector, CannedSilenceDetector
from .scheduler import WorkerPool, AnalysisScheduler
from .trimmer import Trimmer, FFmpegTrimmer
from .repair import RepairService
from .scanner import LibraryScanner
from .reporting import ProblemReporter
from .organizer import LibraryOrganizer

__all__ = [
    'SilenceDetector',
    'FFmpegSilenceDetector',
    'CannedSilenceDetector',
    'WorkerPool',
    'AnalysisScheduler',
    'Trimmer',
    'FFmpegTrimmer',
    'RepairService',
    'LibraryScanner',
    'ProblemReporter',
    'LibraryOrganizer'
]
