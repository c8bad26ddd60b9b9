"""
ripcheck Utilities Package

This package contains utility functions used throughout the application.
"""

from .text import normalize, escape_path_component, parse_tag_number
from .filesystem import ensure_directory, find_audio_files, replace_file, safe_move_file

__all__ = [
    'normalize',
    'escape_path_component',
    'parse_tag_number',
    'ensure_directory',
    'find_audio_files',
    'replace_file',
    'safe_move_file'
]
