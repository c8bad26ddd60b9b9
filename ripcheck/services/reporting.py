"""
Problem Reporting

Classifies every analysed track once and renders the per-album problem list
together with the fixable / non-fixable totals. The display shows each
boundary on its own (truncation hides the other labels of that boundary only),
while the totals count a track as non-fixable whenever either boundary is
truncated. Both read the same classification.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.classifier import HUGE_SILENCE, OVERLAP, TRUNCATED, BoundaryClassifier, DefectCategory, TrackClassification
from ..core.models import Library, Track, TrackState


LABEL_COLORS = {
    TRUNCATED: '\033[31m',     # Red
    OVERLAP: '\033[33m',       # Yellow
    HUGE_SILENCE: '\033[36m',  # Cyan
}
RESET = '\033[0m'


@dataclass
class TrackProblem:
    artist: str
    album: str
    track: Track
    classification: TrackClassification

    @property
    def category(self) -> DefectCategory:
        return self.classification.category


@dataclass
class ProblemReport:
    """Problems of one library"""

    problems: List[TrackProblem] = field(default_factory=list)
    healthy: int = 0
    fixable: int = 0
    non_fixable: int = 0
    unanalyzed: int = 0

    @property
    def total_problems(self) -> int:
        return self.fixable + self.non_fixable

    def add(self, problem: TrackProblem):
        category = problem.category
        if category is DefectCategory.HEALTHY:
            self.healthy += 1
            return
        if category is DefectCategory.TRUNCATED:
            self.non_fixable += 1
        else:
            self.fixable += 1
        self.problems.append(problem)

    def fixable_tracks(self) -> List[Track]:
        return [p.track for p in self.problems if p.category is DefectCategory.FIXABLE]

    def render(self, color: bool = True) -> str:
        """Text block grouped by artist and album, followed by the totals"""
        def paint(label: str) -> str:
            if not color:
                return label
            return f"{LABEL_COLORS.get(label, '')}{label}{RESET}"

        def boundary(labels: List[str]) -> str:
            return ", ".join(paint(label) for label in labels) if labels else "ok"

        lines = []
        current_artist = None
        current_album = None
        for problem in self.problems:
            if problem.artist != current_artist:
                current_artist = problem.artist
                current_album = None
                lines.append("")
                lines.append(f"  {problem.artist}")
                lines.append("")
            if problem.album != current_album:
                current_album = problem.album
                lines.append(problem.album)

            c = problem.classification
            lines.append(
                f"  start: {boundary(c.start_labels())} | end: {boundary(c.end_labels())}  "
                f"{problem.track.name}"
            )

        lines.append("")
        lines.append(
            f"{self.total_problems} problems: {self.fixable} fixable, {self.non_fixable} not fixable"
        )
        if self.unanalyzed:
            lines.append(f"{self.unanalyzed} tracks not analysed")
        return "\n".join(lines)


class ProblemReporter:
    """
    Builds a ProblemReport from an analysed library

    Tracks left pending by a cancelled analysis are counted, not classified.
    """

    def __init__(self, classifier: Optional[BoundaryClassifier] = None):
        self.classifier = classifier or BoundaryClassifier()

    def report(self, library: Library) -> ProblemReport:
        report = ProblemReport()
        for album in library.iter_albums():
            artist = album.artist
            artist_name = artist.name if artist is not None else ""
            for track in album.iter_tracks():
                if track.state is not TrackState.ANALYZED:
                    report.unanalyzed += 1
                    continue
                classification = self.classifier.classify(track)
                report.add(TrackProblem(artist_name, album.name, track, classification))
        return report


__all__ = ['ProblemReporter', 'ProblemReport', 'TrackProblem']
