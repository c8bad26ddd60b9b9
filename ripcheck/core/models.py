"""
Data models for ripcheck

This module defines the silence model, the artist/album/track collection tree,
the tolerance set shared by classifier, planner and scheduler, and the result
records produced by the batch services.
"""

import enum
import time
import weakref
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .exceptions import AnalysisStateError
from ..utils.text import normalize


@dataclass(frozen=True)
class Tolerances:
    """Numeric thresholds shared by detection, classification and repair (seconds)"""

    tolerance: float = 0.01
    max_overlapping: float = 10.0
    max_silence: float = 2.0
    min_silence: float = 0.6
    silence_tolerance: float = 0.4
    workers: int = 10

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            field.name: getattr(self, field.name)
            for field in self.__dataclass_fields__.values()
        }


class DetectionProfile(enum.Enum):
    """Sensitivity profiles for the silence detection tool"""

    SHORT = "short"
    LONG = "long"

    @property
    def noise_threshold(self) -> int:
        """Noise floor in dB below which audio counts as silence"""
        return -60 if self is DetectionProfile.SHORT else -50

    def minimum_duration(self, tolerances: Tolerances) -> float:
        """Shortest interval the profile keeps away from the track boundaries"""
        if self is DetectionProfile.SHORT:
            return tolerances.min_silence - tolerances.tolerance
        return tolerances.max_silence + tolerances.tolerance


@dataclass(frozen=True)
class SilenceInterval:
    """A contiguous span of near-zero amplitude"""

    start: float
    end: float

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Silence interval ends before it starts: {self.start} > {self.end}")

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class DetectionResult:
    """Output of one detection run"""

    intervals: Tuple[SilenceInterval, ...] = ()
    duration: float = 0.0

    @classmethod
    def failed(cls) -> 'DetectionResult':
        return cls((), 0.0)


@dataclass(frozen=True)
class SilenceProfile:
    """
    Both interval sets of a track plus its measured duration

    The short run's duration is authoritative. Intervals keep the order the
    detector produced them in: ascending by start, non-overlapping.
    """

    short: Tuple[SilenceInterval, ...] = ()
    long: Tuple[SilenceInterval, ...] = ()
    duration: float = 0.0

    @classmethod
    def empty(cls) -> 'SilenceProfile':
        return cls((), (), 0.0)

    @classmethod
    def from_results(cls, short: DetectionResult, long: DetectionResult) -> 'SilenceProfile':
        return cls(tuple(short.intervals), tuple(long.intervals), short.duration)

    @property
    def is_analyzable(self) -> bool:
        return self.duration > 0


class TrackState(enum.Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    ANALYZED = "analyzed"


class Track:
    """A single audio file inside an album"""

    def __init__(self, name: str, path: str, disk_number: int = 0, track_number: int = 0,
                 album: Optional['Album'] = None):
        self.name = name
        self.path = path
        self.disk_number = disk_number
        self.track_number = track_number
        self._album = weakref.ref(album) if album is not None else None
        self._profile: Optional[SilenceProfile] = None
        self._state = TrackState.PENDING

    def __repr__(self):
        return f"Track({self.name!r}, disk={self.disk_number}, track={self.track_number}, path={self.path!r})"

    @property
    def album(self) -> Optional['Album']:
        return self._album() if self._album is not None else None

    @property
    def state(self) -> TrackState:
        return self._state

    @property
    def profile(self) -> Optional[SilenceProfile]:
        return self._profile

    @property
    def duration(self) -> float:
        return self._profile.duration if self._profile is not None else 0.0

    def mark_in_flight(self):
        """Claim the track for analysis"""
        if self._state is not TrackState.PENDING:
            raise AnalysisStateError(f"Track is already {self._state.value}", filepath=self.path)
        self._state = TrackState.IN_FLIGHT

    def attach_profile(self, profile: SilenceProfile):
        """Store the analysis result; a track is analysed exactly once"""
        if self._state is TrackState.ANALYZED:
            raise AnalysisStateError("Track has already been analyzed", filepath=self.path)
        self._profile = profile
        self._state = TrackState.ANALYZED

    def require_profile(self) -> SilenceProfile:
        if self._profile is None:
            raise AnalysisStateError("Track has not been analyzed", filepath=self.path)
        return self._profile

    @property
    def display_name(self) -> str:
        album = self.album
        artist = album.artist if album is not None else None
        parts = [p.name for p in (artist, album) if p is not None]
        parts.append(self.name)
        return " / ".join(parts)


class Album:
    """Owns its tracks, keyed by (disk, track) and by normalized name"""

    def __init__(self, name: str, artist: Optional['Artist'] = None):
        self.name = name
        self._artist = weakref.ref(artist) if artist is not None else None
        self.tracks: Dict[int, Dict[int, Track]] = {}
        self.tracks_by_name: Dict[str, Track] = {}

    def __repr__(self):
        return f"Album({self.name!r}, tracks={self.track_count})"

    @property
    def artist(self) -> Optional['Artist']:
        return self._artist() if self._artist is not None else None

    @property
    def disk_count(self) -> int:
        return len(self.tracks)

    @property
    def track_count(self) -> int:
        return sum(len(disk) for disk in self.tracks.values())

    def add_track(self, name: str, path: str, disk_number: int = 0, track_number: int = 0) -> Track:
        track = Track(name, path, disk_number, track_number, album=self)
        self.tracks.setdefault(disk_number, {})[track_number] = track
        self.tracks_by_name[normalize(name)] = track
        return track

    def iter_tracks(self) -> Iterator[Track]:
        """Tracks in disk then track-number order"""
        for disk_number in sorted(self.tracks):
            disk = self.tracks[disk_number]
            for track_number in sorted(disk):
                yield disk[track_number]

    def get_track(self, name: str) -> Optional[Track]:
        return self.tracks_by_name.get(normalize(name))


class Artist:
    """Owns its albums and indexes every track by normalized name"""

    def __init__(self, name: str):
        self.name = name
        self.albums: Dict[str, Album] = {}
        self.tracks_by_name: Dict[str, Track] = {}

    def __repr__(self):
        return f"Artist({self.name!r}, albums={len(self.albums)})"

    def get_or_create_album(self, name: str) -> Album:
        key = normalize(name)
        album = self.albums.get(key)
        if album is None:
            album = Album(name, artist=self)
            self.albums[key] = album
        return album

    def add_track(self, album_name: str, name: str, path: str,
                  disk_number: int = 0, track_number: int = 0) -> Track:
        track = self.get_or_create_album(album_name).add_track(name, path, disk_number, track_number)
        self.tracks_by_name[normalize(name)] = track
        return track


class Library:
    """Root of the artist -> album -> disk -> track tree"""

    def __init__(self, root: str = "."):
        self.root = root
        self.artists: Dict[str, Artist] = {}

    def __len__(self):
        return sum(1 for _ in self.iter_tracks())

    def get_or_create_artist(self, name: str) -> Artist:
        key = normalize(name)
        artist = self.artists.get(key)
        if artist is None:
            artist = Artist(name)
            self.artists[key] = artist
        return artist

    def add_track(self, artist_name: str, album_name: str, name: str, path: str,
                  disk_number: int = 0, track_number: int = 0) -> Track:
        artist = self.get_or_create_artist(artist_name)
        return artist.add_track(album_name, name, path, disk_number, track_number)

    def iter_albums(self) -> Iterator[Album]:
        for key in sorted(self.artists):
            artist = self.artists[key]
            for album_key in sorted(artist.albums):
                yield artist.albums[album_key]

    def iter_tracks(self) -> Iterator[Track]:
        for album in self.iter_albums():
            yield from album.iter_tracks()

    def stats(self) -> Tuple[int, int, int]:
        """Return (artists, albums, tracks)"""
        albums = list(self.iter_albums())
        return len(self.artists), len(albums), sum(a.track_count for a in albums)


@dataclass
class RunOptions:
    """Options for one ripcheck run"""

    folder: str = "."
    fix: bool = False
    sort: bool = False
    dry_run: bool = False
    workers: int = 10
    queue_size: int = 0
    color: bool = True
    progress_bars: bool = True
    ffmpeg_path: str = "ffmpeg"
    tool_timeout: int = 600
    extensions: List[str] = field(default_factory=lambda: [".mp3"])
    lastfm_api_key: Optional[str] = None
    lastfm_api_secret: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            field.name: getattr(self, field.name)
            for field in self.__dataclass_fields__.values()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RunOptions':
        """Create from dictionary"""
        valid_fields = {field.name for field in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered_data)


@dataclass
class AnalysisReport:
    """Result of one analysis batch"""

    total_tracks: int = 0
    analyzed: int = 0
    unanalyzable: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    cancelled: int = 0

    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    total_time: float = 0.0

    def finalize(self):
        self.end_time = time.time()
        self.total_time = self.end_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_tracks': self.total_tracks,
            'analyzed': self.analyzed,
            'unanalyzable': list(self.unanalyzable),
            'errors': dict(self.errors),
            'cancelled': self.cancelled,
            'total_time': self.total_time,
        }


@dataclass
class RepairOutcome:
    """What happened to one track during the repair pass"""

    filepath: str = ""
    original_filepath: str = ""
    plan: Optional[Any] = None
    repaired: bool = False
    skipped_reason: str = ""
    error: str = ""

    @property
    def success(self) -> bool:
        return not self.error


@dataclass
class RepairReport:
    """Result of one repair batch"""

    outcomes: List[RepairOutcome] = field(default_factory=list)
    processed: int = 0
    repaired: int = 0
    failed: int = 0
    cancelled: int = 0

    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    total_time: float = 0.0

    def add_outcome(self, outcome: RepairOutcome):
        self.outcomes.append(outcome)
        self.processed += 1
        if outcome.repaired:
            self.repaired += 1
        if outcome.error:
            self.failed += 1

    def finalize(self):
        self.end_time = time.time()
        self.total_time = self.end_time - self.start_time

    @property
    def errors(self) -> List[RepairOutcome]:
        return [o for o in self.outcomes if o.error]
