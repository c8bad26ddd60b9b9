"""
Library Scanner

Builds the artist -> album -> disk -> track tree of a folder from the tags of
its audio files.
"""

import os
from typing import Dict, Iterable, Optional

from ..core.models import Library
from ..utils.filesystem import find_audio_files
from ..utils.logging_config import get_logger
from ..utils.text import parse_tag_number, primary_artist

import mutagen
from mutagen import File as MutagenFile


def _first(tags, key: str) -> str:
    values = tags.get(key) if tags is not None else None
    if not values:
        return ""
    value = values[0] if isinstance(values, (list, tuple)) else values
    return str(value).strip()


def read_tags(filepath: str) -> Optional[Dict[str, object]]:
    """
    Read the tags the collection tree needs

    Returns:
        Dict with artist, album, title, disk_number and track_number, or None
        when the file carries no readable tags

    Raises:
        mutagen.MutagenError: If the file cannot be parsed
    """
    audio = MutagenFile(filepath, easy=True)
    if audio is None or audio.tags is None:
        return None

    tags = audio.tags
    return {
        'artist': primary_artist(_first(tags, 'artist')),
        'album': _first(tags, 'album'),
        'title': _first(tags, 'title'),
        'disk_number': parse_tag_number(_first(tags, 'discnumber')),
        'track_number': parse_tag_number(_first(tags, 'tracknumber')),
    }


class LibraryScanner:
    """Walks a folder and reads tags with mutagen"""

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        self.extensions = list(extensions) if extensions else ['.mp3']
        self.logger = get_logger('scanner')

        self.stats = {
            'files_found': 0,
            'files_added': 0,
            'files_skipped': 0,
        }

    def scan(self, folder: str) -> Library:
        """
        Build the collection tree of folder

        Files whose tags cannot be read are skipped with a warning.

        Raises:
            FileOperationError: If folder cannot be listed
        """
        files = find_audio_files(folder, self.extensions)
        library = Library(root=folder)
        self.stats['files_found'] = len(files)

        for filepath in files:
            try:
                tags = read_tags(filepath)
            except (mutagen.MutagenError, OSError) as e:
                self.logger.warning(f"Skipping {filepath}: cannot read tags ({e})")
                self.stats['files_skipped'] += 1
                continue

            if tags is None:
                self.logger.warning(f"Skipping {filepath}: no tags")
                self.stats['files_skipped'] += 1
                continue

            title = tags['title'] or os.path.splitext(os.path.basename(filepath))[0]
            library.add_track(
                tags['artist'],
                tags['album'],
                title,
                filepath,
                disk_number=tags['disk_number'],
                track_number=tags['track_number'],
            )
            self.stats['files_added'] += 1

        artists, albums, tracks = library.stats()
        self.logger.info(f"Scanned {folder}: {artists} artists, {albums} albums, {tracks} tracks")
        return library


__all__ = ['LibraryScanner', 'read_tags']
