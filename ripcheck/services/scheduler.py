"""
Analysis Scheduler

A fixed pool of consumers running on a ThreadPoolExecutor drains one shared
work queue. The analysis scheduler feeds every pending track through the
detection service at both sensitivity profiles and attaches the resulting
silence profile. The same pool drives the repair pass.
"""

import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar, Union

from tqdm import tqdm

from ..core.models import AnalysisReport, DetectionProfile, Library, SilenceProfile, Tolerances, Track, TrackState
from ..utils.logging_config import get_logger
from .silence_detection import SilenceDetector


T = TypeVar('T')

ProgressCallback = Callable[[int, int, Any], None]

_STOP = object()


@dataclass
class PoolResult:
    """Outcome of draining one batch through the pool"""

    total: int = 0
    processed: int = 0
    cancelled: int = 0
    results: List[Any] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    total_time: float = 0.0


class WorkerPool(Generic[T]):
    """
    Fixed-size pool of worker threads consuming a single queue

    Features:
    - Synchronous producer; blocking enqueue when queue_size > 0
    - Per-item failures are recorded, never raised
    - One progress tick per processed item
    - Optional cancellation checked between items
    - An exception in the calling thread cancels the remaining items
    """

    def __init__(self, workers: int = 10, queue_size: int = 0,
                 cancel_event: Optional[threading.Event] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 show_progress: bool = False, description: str = "Processing",
                 name: str = "scheduler"):
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.workers = workers
        self.queue_size = queue_size
        self.cancel_event = cancel_event or threading.Event()
        self.progress_callback = progress_callback
        self.show_progress = show_progress
        self.description = description
        self.logger = get_logger(name)

        # Progress counter, shared by all workers
        self._lock = threading.Lock()
        self._completed = 0

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    def cancel(self):
        """Ask workers to skip the items they have not started yet"""
        self.cancel_event.set()

    def run(self, items: Iterable[T], handler: Callable[[T], Any],
            key: Callable[[T], str] = str) -> PoolResult:
        """
        Process every item with handler and wait for the queue to drain

        The consumers run on a ThreadPoolExecutor and leave once they take a
        stop marker, which is queued behind the last item. An exception in the
        calling thread (KeyboardInterrupt included) sets the cancel event, so
        queued items are skipped before it propagates.

        Args:
            items: Work items, enumerated up front by the calling thread
            handler: Called once per item on a worker thread
            key: Label of an item in the error map

        Returns:
            PoolResult with handler results in completion order
        """
        started = time.time()
        work = list(items)
        result = PoolResult(total=len(work))
        work_queue: "queue.Queue[Any]" = queue.Queue(maxsize=self.queue_size)

        with self._lock:
            self._completed = 0

        bar = tqdm(total=len(work), desc=self.description, unit="track",
                   disable=not self.show_progress, leave=False)

        def advance(item: T):
            with self._lock:
                self._completed += 1
                current = self._completed
                bar.update(1)
            if self.progress_callback is not None:
                try:
                    self.progress_callback(current, result.total, item)
                except Exception as e:
                    self.logger.warning(f"Progress callback failed: {e}")

        def consume():
            while True:
                item = work_queue.get()
                if item is _STOP:
                    return
                if self.cancel_event.is_set():
                    with self._lock:
                        result.cancelled += 1
                    continue
                try:
                    value = handler(item)
                    with self._lock:
                        result.results.append(value)
                        result.processed += 1
                except Exception as e:
                    self.logger.error(f"Failed processing {key(item)}: {type(e).__name__}: {e}")
                    self.logger.debug("Stack trace:", exc_info=True)
                    with self._lock:
                        result.errors[key(item)] = str(e)
                        result.processed += 1
                advance(item)

        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix=self.description)
        consumers = [executor.submit(consume) for _ in range(self.workers)]
        stops_sent = 0
        try:
            for item in work:
                work_queue.put(item)
            while stops_sent < len(consumers):
                work_queue.put(_STOP)
                stops_sent += 1
            for future in as_completed(consumers):
                future.result()
        except BaseException:
            self.cancel_event.set()
            raise
        finally:
            while stops_sent < len(consumers):
                work_queue.put(_STOP)
                stops_sent += 1
            executor.shutdown(wait=True)
            bar.close()

        result.total_time = time.time() - started
        return result


class AnalysisScheduler:
    """
    Drives per-track silence analysis through a worker pool

    Each worker runs the short and then the long detection for a track before
    taking the next one, so a track's profile is written by exactly one thread.
    """

    def __init__(self, detector: SilenceDetector, tolerances: Optional[Tolerances] = None,
                 queue_size: int = 0, cancel_event: Optional[threading.Event] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 show_progress: bool = False):
        self.detector = detector
        self.tolerances = tolerances or detector.tolerances
        self.queue_size = queue_size
        self.cancel_event = cancel_event or threading.Event()
        self.progress_callback = progress_callback
        self.show_progress = show_progress
        self.logger = get_logger('scheduler')

    def analyze_track(self, track: Track) -> SilenceProfile:
        """Run both detections for one track and attach the profile"""
        track.mark_in_flight()
        try:
            short = self.detector.detect(track.path, DetectionProfile.SHORT)
            long = self.detector.detect(track.path, DetectionProfile.LONG)
            profile = SilenceProfile.from_results(short, long)
        except Exception as e:
            self.logger.warning(f"Detection failed for {track.path}: {type(e).__name__}: {e}")
            profile = SilenceProfile.empty()
        track.attach_profile(profile)
        return profile

    def analyze(self, tracks: Union[Library, Iterable[Track]]) -> AnalysisReport:
        """
        Analyse every pending track; blocks until all of them are done

        Tracks that were already analysed are left alone. A failed detection
        leaves the track with an empty profile and the batch continues.
        """
        if isinstance(tracks, Library):
            tracks = tracks.iter_tracks()
        pending = [t for t in tracks if t.state is TrackState.PENDING]

        report = AnalysisReport(total_tracks=len(pending))
        self.logger.info(f"Analysing {len(pending)} tracks with {self.tolerances.workers} workers")

        pool = WorkerPool(
            workers=self.tolerances.workers,
            queue_size=self.queue_size,
            cancel_event=self.cancel_event,
            progress_callback=self.progress_callback,
            show_progress=self.show_progress,
            description="Analysing",
            name='scheduler',
        )
        result = pool.run(pending, self.analyze_track, key=lambda t: t.path)

        report.analyzed = sum(1 for t in pending if t.state is TrackState.ANALYZED)
        report.unanalyzable = sorted(
            t.path for t in pending
            if t.state is TrackState.ANALYZED and not t.profile.is_analyzable
        )
        report.errors = dict(result.errors)
        report.cancelled = result.cancelled
        report.finalize()

        if report.unanalyzable:
            self.logger.warning(f"{len(report.unanalyzable)} tracks could not be analysed")
        self.logger.info(f"Analysis finished in {report.total_time:.1f}s")
        return report


__all__ = ['WorkerPool', 'PoolResult', 'AnalysisScheduler']
