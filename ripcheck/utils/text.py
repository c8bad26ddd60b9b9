"""
Text processing utilities for ripcheck

Name normalization for collection keys, tag value parsing and escaping of
names used as path components.
"""

import re
from typing import Optional


# Characters that cannot appear in a file or folder name on common filesystems
WRONG_PATH_CHARS = re.compile(r'[/\\?%*:|"<>]+')


def normalize(name: Optional[str]) -> str:
    """
    Normalize a name for use as a lookup key

    Args:
        name: Artist, album or track name

    Returns:
        Lower-cased name without surrounding whitespace
    """
    if not name:
        return ""
    return name.lower().strip()


def escape_path_component(name: str) -> str:
    """Replace characters that are invalid in file names with '-'"""
    return WRONG_PATH_CHARS.sub("-", name or "")


def primary_artist(value: Optional[str]) -> str:
    """First artist of a comma separated artist tag"""
    if not value:
        return ""
    return value.split(",")[0].strip()


def parse_tag_number(value) -> int:
    """
    Parse a disc or track number tag

    Handles plain numbers and the "N/M" form. Anything unparseable is 0.

    Examples:
        >>> parse_tag_number("3/12")
        3
        >>> parse_tag_number(None)
        0
    """
    if value is None:
        return 0
    if isinstance(value, (list, tuple)):
        if not value:
            return 0
        value = value[0]
    match = re.match(r'\s*(\d+)', str(value))
    return int(match.group(1)) if match else 0

