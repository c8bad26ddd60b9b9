"""
ripcheck - Application

Orchestrates one run: scan the folder into a collection tree, analyse every
track, report boundary problems, then optionally trim the fixable tracks and
sort the library into its canonical layout.
"""

import threading
import time
from typing import List, Optional

from .core.classifier import BoundaryClassifier
from .core.models import AnalysisReport, Library, RepairReport, RunOptions, Tolerances
from .services.catalog import AlbumCheck, CatalogChecker, render_checks
from .services.organizer import LibraryOrganizer, OrganizeResult
from .services.repair import RepairService
from .services.reporting import ProblemReport, ProblemReporter
from .services.scanner import LibraryScanner
from .services.scheduler import AnalysisScheduler
from .services.silence_detection import FFmpegSilenceDetector, SilenceDetector
from .services.trimmer import FFmpegTrimmer, Trimmer
from .utils.logging_config import get_app_logger, get_logger


class RipCheckApp:
    """
    ripcheck application

    Services are created from the run options unless passed in, which lets
    callers swap the external tools for canned implementations.
    """

    def __init__(self, options: Optional[RunOptions] = None, tolerances: Optional[Tolerances] = None,
                 detector: Optional[SilenceDetector] = None, trimmer: Optional[Trimmer] = None,
                 scanner: Optional[LibraryScanner] = None):
        self.options = options or RunOptions()
        self.tolerances = tolerances or Tolerances(workers=self.options.workers)
        self.logger = get_logger('main')
        self.cancel_event = threading.Event()

        self.detector = detector or FFmpegSilenceDetector(
            self.tolerances, self.options.ffmpeg_path, self.options.tool_timeout
        )
        self.trimmer = trimmer or FFmpegTrimmer(self.options.ffmpeg_path, self.options.tool_timeout)
        self.scanner = scanner or LibraryScanner(self.options.extensions)
        self.classifier = BoundaryClassifier(self.tolerances)
        self.reporter = ProblemReporter(self.classifier)

        self.logger.debug(f"Options: {self.options.to_dict()}")
        self.logger.debug(f"Tolerances: {self.tolerances.to_dict()}")

    def cancel(self):
        """Stop handing out tracks; tracks already in progress finish"""
        self.cancel_event.set()

    def scan(self, folder: Optional[str] = None) -> Library:
        return self.scanner.scan(folder or self.options.folder)

    def analyze(self, library: Library) -> AnalysisReport:
        app_logger = get_app_logger()
        track_count = len(library)
        app_logger.log_batch_start("analysis", track_count, self.tolerances.workers)

        scheduler = AnalysisScheduler(
            self.detector,
            self.tolerances,
            queue_size=self.options.queue_size,
            cancel_event=self.cancel_event,
            show_progress=self.options.progress_bars,
        )
        report = scheduler.analyze(library)

        app_logger.log_batch_complete("analysis", report.total_tracks,
                                      len(report.unanalyzable) + len(report.errors), report.total_time)
        self.logger.debug(f"Detection stats: {self.detector.get_performance_stats()}")
        return report

    def report_problems(self, library: Library) -> ProblemReport:
        return self.reporter.report(library)

    def fix(self, library: Library) -> RepairReport:
        app_logger = get_app_logger()
        app_logger.log_batch_start("repair", len(library), self.tolerances.workers)

        service = RepairService(
            self.trimmer,
            self.tolerances,
            classifier=self.classifier,
            dry_run=self.options.dry_run,
            queue_size=self.options.queue_size,
            cancel_event=self.cancel_event,
            show_progress=self.options.progress_bars,
        )
        report = service.repair(library)

        app_logger.log_batch_complete("repair", report.processed, report.failed, report.total_time)
        return report

    def sort(self, library: Library, root: Optional[str] = None) -> OrganizeResult:
        return LibraryOrganizer(dry_run=self.options.dry_run).organize(library, root)

    def check_catalog(self, library: Library) -> List[AlbumCheck]:
        checker = CatalogChecker(self.options.lastfm_api_key)
        return checker.check(library)

    def run(self) -> ProblemReport:
        """
        Scan, analyse and report; fix and sort when the options ask for it

        Per-track failures are printed and do not stop the run. Errors while
        enumerating the folder propagate. After cancel() the tracks analysed
        so far are reported and nothing is trimmed or moved.
        """
        started = time.time()
        library = self.scan()
        artists, albums, tracks = library.stats()
        print(f"{artists} artists, {albums} albums, {tracks} tracks")

        analysis = self.analyze(library)
        problems = self.report_problems(library)
        print(problems.render(color=self.options.color))

        if self.cancel_event.is_set():
            self.logger.warning(f"Run cancelled, {analysis.cancelled} tracks not analysed")
            print("cancelled, no files changed")
            return problems

        if self.options.fix and problems.fixable:
            repair_report = self.fix(library)
            for outcome in repair_report.errors:
                print(f"error: {outcome.filepath}: {outcome.error}")
            verb = "would trim" if self.options.dry_run else "trimmed"
            planned = sum(1 for o in repair_report.outcomes if o.plan is not None)
            count = planned if self.options.dry_run else repair_report.repaired
            print(f"{verb} {count} tracks, {repair_report.failed} errors")

        if self.options.sort:
            self._print_sort_result(self.sort(library))

        self.logger.info(f"Run completed in {time.time() - started:.1f}s")
        return problems

    def run_catalog_check(self) -> List[AlbumCheck]:
        library = self.scan()
        checks = self.check_catalog(library)
        output = render_checks(checks, color=self.options.color)
        if output:
            print(output)
        return checks

    def run_sort(self) -> OrganizeResult:
        result = self.sort(self.scan())
        self._print_sort_result(result)
        return result

    def _print_sort_result(self, result: OrganizeResult):
        for path, error in result.errors.items():
            print(f"error: {path}: {error}")
        if self.options.dry_run:
            for source, destination in result.planned:
                print(f"{source} -> {destination}")
        print(f"sorted {result.moved} tracks")


__all__ = ['RipCheckApp']
