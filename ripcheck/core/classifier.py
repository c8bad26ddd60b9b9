"""
Boundary defect classifier

Pure predicates over a track's silence profile. Each boundary (start, end) can
be truncated (no silence within a plausible margin, content lost), overlapping
(a small silence found after some leading/trailing audio, fixable) or carry a
huge silence (dead air longer than the allowance, fixable).
"""

import enum
from dataclasses import dataclass
from typing import List, Optional

from .models import SilenceProfile, Tolerances, Track


class DefectCategory(enum.Enum):
    HEALTHY = "healthy"
    FIXABLE = "fixable"
    TRUNCATED = "truncated"


# Labels used by the per-boundary display
TRUNCATED = "truncated"
OVERLAP = "overlap"
HUGE_SILENCE = "huge silence"


@dataclass(frozen=True)
class TrackClassification:
    """All boundary predicates of one track, evaluated once"""

    truncated_at_start: bool
    truncated_at_end: bool
    overlaps_at_start: bool
    overlaps_at_end: bool
    huge_silence_at_start: bool
    huge_silence_at_end: bool

    @property
    def is_truncated(self) -> bool:
        return self.truncated_at_start or self.truncated_at_end

    @property
    def has_fixable_defect(self) -> bool:
        return (self.overlaps_at_start or self.overlaps_at_end or
                self.huge_silence_at_start or self.huge_silence_at_end)

    @property
    def category(self) -> DefectCategory:
        # Truncation on either boundary makes the whole track non-fixable
        if self.is_truncated:
            return DefectCategory.TRUNCATED
        if self.has_fixable_defect:
            return DefectCategory.FIXABLE
        return DefectCategory.HEALTHY

    @property
    def is_fixable(self) -> bool:
        return self.category is DefectCategory.FIXABLE

    def start_labels(self) -> List[str]:
        """Display labels for the start boundary; truncation hides the rest"""
        return self._labels(self.truncated_at_start, self.overlaps_at_start, self.huge_silence_at_start)

    def end_labels(self) -> List[str]:
        """Display labels for the end boundary; truncation hides the rest"""
        return self._labels(self.truncated_at_end, self.overlaps_at_end, self.huge_silence_at_end)

    @staticmethod
    def _labels(truncated: bool, overlaps: bool, huge: bool) -> List[str]:
        if truncated:
            return [TRUNCATED]
        labels = []
        if overlaps:
            labels.append(OVERLAP)
        if huge:
            labels.append(HUGE_SILENCE)
        return labels


class BoundaryClassifier:
    """
    Decides the defect category of analysed tracks

    An empty short-silence set (which is also what a failed detection yields)
    makes both boundaries truncated: unknown is treated as broken.
    """

    def __init__(self, tolerances: Optional[Tolerances] = None):
        self.tolerances = tolerances or Tolerances()

    def truncated_at_start(self, profile: SilenceProfile) -> bool:
        if not profile.short:
            return True
        return profile.short[0].start >= self.tolerances.max_overlapping

    def truncated_at_end(self, profile: SilenceProfile) -> bool:
        if not profile.short:
            return True
        return profile.duration - profile.short[-1].end >= self.tolerances.max_overlapping

    def overlaps_at_start(self, profile: SilenceProfile) -> bool:
        if not profile.short:
            return False
        return 0 < profile.short[0].start < self.tolerances.max_overlapping

    def overlaps_at_end(self, profile: SilenceProfile) -> bool:
        if not profile.short:
            return False
        return 0 < profile.duration - profile.short[-1].end < self.tolerances.max_overlapping

    def huge_silence_at_start(self, profile: SilenceProfile) -> bool:
        if not profile.long:
            return False
        return profile.long[0].start < self.tolerances.max_overlapping

    def huge_silence_at_end(self, profile: SilenceProfile) -> bool:
        if not profile.long:
            return False
        return profile.duration - profile.long[-1].end < self.tolerances.max_overlapping

    def classify_profile(self, profile: SilenceProfile) -> TrackClassification:
        return TrackClassification(
            truncated_at_start=self.truncated_at_start(profile),
            truncated_at_end=self.truncated_at_end(profile),
            overlaps_at_start=self.overlaps_at_start(profile),
            overlaps_at_end=self.overlaps_at_end(profile),
            huge_silence_at_start=self.huge_silence_at_start(profile),
            huge_silence_at_end=self.huge_silence_at_end(profile),
        )

    def classify(self, track: Track) -> TrackClassification:
        """
        Classify an analysed track

        Raises:
            AnalysisStateError: If the track has not been analysed
        """
        return self.classify_profile(track.require_profile())
