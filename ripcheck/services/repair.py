"""
Repair Service

Plans and applies trims for fixable tracks. A trimmed copy is written next to
the original and swapped in only after the trim tool succeeded; on failure the
original is left untouched and the temporary file is discarded.
"""

import os
import threading
from typing import Iterable, Optional, Union

from ..core.classifier import BoundaryClassifier, DefectCategory
from ..core.exceptions import FileOperationError, RipCheckError
from ..core.models import Library, RepairOutcome, RepairReport, Tolerances, Track
from ..core.planner import RepairPlanner
from ..utils.filesystem import discard_file, replace_file, temp_sibling_path
from ..utils.logging_config import get_app_logger, get_logger
from .scheduler import ProgressCallback, WorkerPool
from .trimmer import Trimmer


class RepairService:
    """
    Applies trim plans to analysed tracks

    Features:
    - Only tracks classified fixable are planned
    - Replace-in-place through a temporary sibling file
    - Per-file errors reported in the outcome, never raised from a batch
    - Dry-run mode that plans without touching files
    """

    def __init__(self, trimmer: Trimmer, tolerances: Optional[Tolerances] = None,
                 classifier: Optional[BoundaryClassifier] = None,
                 planner: Optional[RepairPlanner] = None, dry_run: bool = False,
                 queue_size: int = 0, cancel_event: Optional[threading.Event] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 show_progress: bool = False):
        self.trimmer = trimmer
        self.tolerances = tolerances or Tolerances()
        self.classifier = classifier or BoundaryClassifier(self.tolerances)
        self.planner = planner or RepairPlanner(self.tolerances, self.classifier)
        self.dry_run = dry_run
        self.queue_size = queue_size
        self.cancel_event = cancel_event or threading.Event()
        self.progress_callback = progress_callback
        self.show_progress = show_progress
        self.logger = get_logger('repair')

    def repair_track(self, track: Track) -> RepairOutcome:
        """
        Plan and, when needed, trim one track

        Returns:
            RepairOutcome; error is set when planning, trimming or replacing
            failed
        """
        outcome = RepairOutcome(filepath=track.path, original_filepath=track.path)

        try:
            classification = self.classifier.classify(track)
            if classification.category is not DefectCategory.FIXABLE:
                outcome.skipped_reason = classification.category.value
                return outcome

            plan = self.planner.plan(track, classification)
            outcome.plan = plan
            if plan is None:
                outcome.skipped_reason = "nothing to trim"
                return outcome

            if self.dry_run:
                outcome.skipped_reason = "dry run"
                self.logger.info(f"Would trim {track.path}: {plan.describe()}")
                return outcome

            self._apply(track, plan.start, plan.length)
            outcome.repaired = True
            outcome.filepath = track.path
            get_app_logger().log_file_operation("Trimmed", track.path)
            self.logger.debug(f"{track.path}: {plan.describe()}")

        except RipCheckError as e:
            outcome.error = str(e)
            self.logger.error(f"Repair failed for {track.path}: {e}")

        return outcome

    def _apply(self, track: Track, start: float, length: float):
        source = track.path
        temp_path = temp_sibling_path(source)
        if os.path.exists(temp_path):
            raise FileOperationError("Temporary file already exists", details=temp_path, filepath=source)
        try:
            self.trimmer.trim(source, temp_path, start, length)
            track.path = replace_file(source, temp_path)
        except Exception:
            discard_file(temp_path)
            raise

    def repair(self, tracks: Union[Library, Iterable[Track]]) -> RepairReport:
        """
        Run the repair pass over analysed tracks

        Every track is processed, including healthy and truncated ones, so
        the progress counter reaches the number of tracks; only fixable
        tracks are trimmed.
        """
        if isinstance(tracks, Library):
            tracks = tracks.iter_tracks()
        work = list(tracks)

        report = RepairReport()
        pool = WorkerPool(
            workers=self.tolerances.workers,
            queue_size=self.queue_size,
            cancel_event=self.cancel_event,
            progress_callback=self.progress_callback,
            show_progress=self.show_progress,
            description="Repairing",
            name='repair',
        )
        result = pool.run(work, self.repair_track, key=lambda t: t.path)

        for outcome in result.results:
            report.add_outcome(outcome)
        for path, error in result.errors.items():
            report.add_outcome(RepairOutcome(filepath=path, original_filepath=path, error=error))
        report.cancelled = result.cancelled
        report.finalize()

        self.logger.info(
            f"Repair finished: {report.repaired} trimmed, {report.failed} failed, "
            f"{report.processed} processed in {report.total_time:.1f}s"
        )
        return report


__all__ = ['RepairService']
