"""
Catalog Cross-Reference Service

Compares each album against the last.fm reference catalog: tracks the catalog
lists that are missing locally, local tracks the catalog does not know and
tracks whose duration differs from the reference.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests
from mutagen import File as MutagenFile
from mutagen import MutagenError

from ..core.exceptions import CatalogError
from ..core.models import Album, Library, Track
from ..utils.logging_config import get_logger
from ..utils.text import normalize


LASTFM_API_URL = "https://ws.audioscrobbler.com/2.0/"

# Accepted deviation from the reference duration (seconds)
SHORTER_THAN_EXPECTED = 0.5
LONGER_THAN_EXPECTED = 5.0

RED = '\033[31m'
YELLOW = '\033[33m'
CYAN = '\033[36m'
RESET = '\033[0m'


@dataclass
class WrongDuration:
    track: Track
    expected: float
    actual: float

    @property
    def difference(self) -> float:
        return self.actual - self.expected


@dataclass
class AlbumCheck:
    """Differences between one local album and its catalog entry"""

    artist: str
    album: str
    missing: List[str] = field(default_factory=list)
    wrong_duration: List[WrongDuration] = field(default_factory=list)
    unmatched: List[Track] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def has_problems(self) -> bool:
        return bool(self.missing or self.wrong_duration or self.unmatched)

    def render(self, color: bool = True) -> str:
        def paint(code: str, text: str) -> str:
            return f"{code}{text}{RESET}" if color else text

        lines = [self.album, ""]
        for wrong in self.wrong_duration:
            lines.append(f"{paint(RED, f'{round(wrong.difference):+4d}')} {wrong.track.name}")
        for name in self.missing:
            lines.append(f"{paint(YELLOW, 'miss')} {name}")
        for track in self.unmatched:
            lines.append(f"{paint(CYAN, ' 404')} {track.name}")
        lines.append("")
        return "\n".join(lines)


def local_duration(track: Track) -> float:
    """Analysed duration when available, else the length mutagen reports"""
    if track.duration > 0:
        return track.duration
    try:
        audio = MutagenFile(track.path)
    except (MutagenError, OSError):
        return 0.0
    if audio is None or getattr(audio, 'info', None) is None:
        return 0.0
    return float(getattr(audio.info, 'length', 0.0) or 0.0)


class CatalogChecker:
    """
    last.fm album lookup

    Features:
    - album.getInfo with autocorrect
    - One failed album does not stop the check; its tracks are reported
      as unmatched
    """

    def __init__(self, api_key: str, session: Optional[requests.Session] = None,
                 timeout: int = 10, api_url: str = LASTFM_API_URL):
        if not api_key:
            raise CatalogError("A last.fm API key is required", details="set LASTFM_API_KEY")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.api_url = api_url
        self.logger = get_logger('catalog')

    def lookup_album(self, artist: str, album: str) -> List[Tuple[str, float]]:
        """
        Reference track list of an album

        Returns:
            List of (track name, duration in seconds)

        Raises:
            CatalogError: On network, HTTP or API errors
        """
        params = {
            'method': 'album.getinfo',
            'artist': artist,
            'album': album,
            'autocorrect': '1',
            'api_key': self.api_key,
            'format': 'json',
        }
        try:
            response = self.session.get(self.api_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise CatalogError("Catalog request failed", details=str(e))
        except ValueError as e:
            raise CatalogError("Catalog returned invalid JSON", details=str(e))

        if 'error' in data:
            raise CatalogError(f"Catalog error {data['error']}", details=data.get('message'))

        tracks = data.get('album', {}).get('tracks', {}).get('track', [])
        if isinstance(tracks, dict):
            tracks = [tracks]
        return [(t.get('name', ''), self._parse_duration(t.get('duration'))) for t in tracks]

    @staticmethod
    def _parse_duration(value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    def check_album(self, album: Album) -> AlbumCheck:
        artist_name = album.artist.name if album.artist is not None else ""
        check = AlbumCheck(artist=artist_name, album=album.name)
        unmatched: Dict[int, Track] = {id(t): t for t in album.iter_tracks()}

        try:
            reference = self.lookup_album(artist_name, album.name)
        except CatalogError as e:
            self.logger.warning(f"{artist_name} - {album.name}: {e}")
            check.error = str(e)
            check.unmatched = list(unmatched.values())
            return check

        for name, expected in reference:
            track = album.tracks_by_name.get(normalize(name))
            if track is None:
                check.missing.append(name)
                continue

            unmatched.pop(id(track), None)
            actual = local_duration(track)
            if actual < expected - SHORTER_THAN_EXPECTED or actual > expected + LONGER_THAN_EXPECTED:
                check.wrong_duration.append(WrongDuration(track, expected, actual))

        check.unmatched = list(unmatched.values())
        return check

    def check(self, library: Library) -> List[AlbumCheck]:
        return [self.check_album(album) for album in library.iter_albums()]


def render_checks(checks: List[AlbumCheck], color: bool = True) -> str:
    """Problem albums grouped by artist"""
    lines = []
    current_artist = None
    for check in checks:
        if not check.has_problems:
            continue
        if check.artist != current_artist:
            current_artist = check.artist
            lines.extend(["", f"  {check.artist}", ""])
        lines.append(check.render(color))
    return "\n".join(lines)


__all__ = ['CatalogChecker', 'AlbumCheck', 'WrongDuration', 'render_checks', 'local_duration']
