"""
Library Organizer

Moves tracks into the canonical layout

    <root>/<Artist>/<Album>/[DD - ]NN Title.ext

The disk prefix is only used for albums that span more than one disk.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List

from ..core.exceptions import FileOperationError
from ..core.models import Album, Library, Track
from ..utils.filesystem import safe_move_file
from ..utils.logging_config import get_app_logger, get_logger
from ..utils.text import escape_path_component


@dataclass
class OrganizeResult:
    moved: int = 0
    unchanged: int = 0
    errors: Dict[str, str] = field(default_factory=dict)
    planned: List[tuple] = field(default_factory=list)


def canonical_filename(track: Track, album: Album) -> str:
    """File name of a track inside its album folder"""
    extension = os.path.splitext(track.path)[1].lower()
    prefix = f"{track.disk_number:02d} - " if album.disk_count > 1 else ""
    return f"{prefix}{track.track_number:02d} {escape_path_component(track.name)}{extension}"


def canonical_path(root: str, track: Track) -> str:
    album = track.album
    artist = album.artist
    return os.path.join(
        root,
        escape_path_component(artist.name),
        escape_path_component(album.name),
        canonical_filename(track, album),
    )


class LibraryOrganizer:
    """Renames and moves tracks into artist/album folders"""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.logger = get_logger('file_ops')

    def organize(self, library: Library, root: str = None) -> OrganizeResult:
        """
        Move every track of library under root (default: the library root)

        Per-file failures are collected in the result; the track keeps its
        old path.
        """
        root = root or library.root
        result = OrganizeResult()
        app_logger = get_app_logger()

        for track in list(library.iter_tracks()):
            destination = canonical_path(root, track)
            if os.path.abspath(destination) == os.path.abspath(track.path):
                result.unchanged += 1
                continue

            if self.dry_run:
                result.planned.append((track.path, destination))
                continue

            try:
                moved, final_path = safe_move_file(track.path, destination)
            except FileOperationError as e:
                result.errors[track.path] = str(e)
                app_logger.log_file_operation("Move", track.path, destination, success=False, error=str(e))
                continue

            if moved:
                app_logger.log_file_operation("Move", track.path, final_path)
                track.path = final_path
                result.moved += 1
            else:
                result.unchanged += 1

        self.logger.info(
            f"Organized {root}: {result.moved} moved, {result.unchanged} unchanged, "
            f"{len(result.errors)} failed"
        )
        return result


__all__ = ['LibraryOrganizer', 'OrganizeResult', 'canonical_filename', 'canonical_path']
