"""
Filesystem utilities for ripcheck

This module provides audio file discovery, safe moves and the replace-in-place
step used after a successful trim.
"""

import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..core.exceptions import FileOperationError


DEFAULT_AUDIO_EXTENSIONS = ('.mp3',)


def ensure_directory(path: str):
    """
    Create path (and its parents) unless it already is a directory

    Raises:
        FileOperationError: If path is a file or cannot be created
    """
    directory = Path(path)
    if directory.is_dir():
        return
    if directory.exists():
        raise FileOperationError("Not a directory", filepath=path)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileOperationError("Cannot create directory", details=str(e), filepath=path)


def find_audio_files(directory: str, extensions: Optional[Iterable[str]] = None,
                     recursive: bool = True) -> List[str]:
    """
    Find all audio files in a directory

    Args:
        directory: Directory to search
        extensions: File extensions to accept (case-insensitive)
        recursive: Whether to search recursively

    Returns:
        Sorted list of audio file paths; temporary trim outputs
        (song.tmp.mp3) are left out

    Raises:
        FileOperationError: If the directory does not exist
    """
    accepted = {e.lower() for e in (extensions or DEFAULT_AUDIO_EXTENSIONS)}
    path = Path(directory)

    if not path.exists() or not path.is_dir():
        raise FileOperationError(
            f"Directory does not exist or is not a directory: {directory}",
            filepath=directory
        )

    pattern = "**/*" if recursive else "*"
    try:
        audio_files = [
            str(file_path)
            for file_path in path.glob(pattern)
            if file_path.is_file() and file_path.suffix.lower() in accepted
            and not is_temp_sibling(str(file_path))
        ]
    except OSError as e:
        raise FileOperationError(
            "Failed to list directory",
            details=str(e),
            filepath=directory
        )

    return sorted(audio_files)


def temp_sibling_path(filepath: str) -> str:
    """Temporary output path next to filepath: song.mp3 -> song.tmp.mp3"""
    path = Path(filepath)
    return str(path.with_name(f"{path.stem}.tmp{path.suffix}"))


def is_temp_sibling(filepath: str) -> bool:
    """True for names temp_sibling_path produces, such as song.tmp.mp3"""
    return Path(filepath).stem.lower().endswith(".tmp")


def replace_file(original: str, replacement: str) -> str:
    """
    Put replacement in place of original

    os.replace swaps the file in a single rename on the same filesystem, so
    the original name always refers to either the old or the new content.

    Returns:
        The path now holding the replacement (same as original)

    Raises:
        FileOperationError: If the replacement is missing or the rename fails
    """
    if not os.path.isfile(replacement):
        raise FileOperationError(
            "Replacement file is missing",
            details=replacement,
            filepath=original
        )

    try:
        os.replace(replacement, original)
    except OSError as e:
        raise FileOperationError(
            "Failed to rename trimmed file into place",
            details=f"{replacement}: {e}",
            filepath=original
        )

    return original


def discard_file(filepath: str) -> bool:
    """Remove a leftover artifact if it exists; returns True when removed"""
    try:
        os.remove(filepath)
        return True
    except FileNotFoundError:
        return False


def safe_move_file(src_path: str, dst_path: str, overwrite: bool = False) -> Tuple[bool, str]:
    """
    Move a file, creating the destination directory

    Args:
        src_path: Source file path
        dst_path: Destination file path
        overwrite: Allow replacing an existing destination

    Returns:
        Tuple of (moved, final_destination_path); moved is False when source
        and destination are already the same file

    Raises:
        FileOperationError: If the move fails or the destination is taken
    """
    src = Path(src_path)
    dst = Path(dst_path)

    if not src.is_file():
        raise FileOperationError(f"Source file does not exist: {src_path}", filepath=src_path)

    if src.resolve() == dst.resolve():
        return False, str(dst)

    if dst.exists() and not overwrite:
        raise FileOperationError(
            f"Destination already exists: {dst_path}",
            filepath=src_path
        )

    ensure_directory(str(dst.parent))

    try:
        shutil.move(str(src), str(dst))
    except OSError as e:
        raise FileOperationError(
            "Failed to move file",
            details=f"From: {src_path}, To: {dst_path}: {e}",
            filepath=src_path
        )

    return True, str(dst)
