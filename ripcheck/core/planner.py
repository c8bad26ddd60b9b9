"""
Repair planner

Turns the classification of a fixable track into the smallest trim window that
removes the defects while keeping a bounded amount of boundary silence.
"""

from dataclasses import dataclass
from typing import Optional

from .classifier import BoundaryClassifier, TrackClassification
from .exceptions import RepairPreconditionError
from .models import SilenceProfile, Tolerances, Track


@dataclass(frozen=True)
class TrimPlan:
    """Part of the track to keep, in seconds"""

    start: float
    end: float
    duration: float

    @property
    def length(self) -> float:
        return self.end - self.start

    @property
    def trims_start(self) -> bool:
        return self.start > 0

    @property
    def trims_end(self) -> bool:
        return self.end < self.duration

    def describe(self) -> str:
        return f"keep {self.start:.2f}s-{self.end:.2f}s of {self.duration:.2f}s"


class RepairPlanner:
    """Computes trim windows for tracks classified as fixable"""

    def __init__(self, tolerances: Optional[Tolerances] = None,
                 classifier: Optional[BoundaryClassifier] = None):
        self.tolerances = tolerances or Tolerances()
        self.classifier = classifier or BoundaryClassifier(self.tolerances)

    def plan(self, track: Track, classification: Optional[TrackClassification] = None) -> Optional[TrimPlan]:
        """
        Plan the trim of one track

        Args:
            track: An analysed track
            classification: Classification computed by the caller; recomputed
                from the track when omitted

        Returns:
            The window to keep, or None when it is the whole track

        Raises:
            RepairPreconditionError: If the track is not fixable or the
                window would be empty
        """
        profile = track.require_profile()
        if classification is None:
            classification = self.classifier.classify_profile(profile)
        return self.plan_profile(profile, classification, filepath=track.path)

    def plan_profile(self, profile: SilenceProfile, classification: TrackClassification,
                     filepath: str = None) -> Optional[TrimPlan]:
        if not classification.is_fixable:
            raise RepairPreconditionError(
                f"Track is not fixable ({classification.category.value})",
                filepath=filepath
            )

        tol = self.tolerances
        duration = profile.duration

        start = 0.0
        if classification.overlaps_at_start:
            start = profile.short[0].start + tol.silence_tolerance
        if classification.huge_silence_at_start:
            start = max(start, profile.long[0].end - tol.max_silence)

        end = duration
        if classification.overlaps_at_end:
            end = profile.short[-1].end - tol.silence_tolerance
        if classification.huge_silence_at_end:
            end = min(end, profile.long[-1].start + tol.max_silence)

        start = min(max(start, 0.0), duration)
        end = min(max(end, 0.0), duration)

        if start == 0.0 and end == duration:
            return None

        if start >= end:
            raise RepairPreconditionError(
                "Trim window is empty",
                details=f"start={start:.3f}, end={end:.3f}, duration={duration:.3f}",
                filepath=filepath
            )

        return TrimPlan(start=start, end=end, duration=duration)
