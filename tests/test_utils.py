import logging
import os

import pytest

from ripcheck.core.exceptions import FileOperationError
from ripcheck.utils.filesystem import (
    discard_file, find_audio_files, replace_file, safe_move_file, temp_sibling_path
)
from ripcheck.utils.logging_config import ColoredFormatter, get_logger, setup_logging
from ripcheck.utils.text import (
    escape_path_component, normalize, parse_tag_number, primary_artist
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("  The Band ", "the band"),
        ("ALBUM", "album"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize(raw, expected):
    assert normalize(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("AC/DC", "AC-DC"),
        ('What? "Why" <Now>', "What- -Why- -Now-"),
        ("a\\b:c|d*e%f", "a-b-c-d-e-f"),
        ("a//b", "a-b"),
        ("Plain Name", "Plain Name"),
    ],
)
def test_escape_path_component(raw, expected):
    assert escape_path_component(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("3/12", 3),
        ("07", 7),
        (["2/2"], 2),
        ("", 0),
        ("side A", 0),
        (None, 0),
        (5, 5),
    ],
)
def test_parse_tag_number(raw, expected):
    assert parse_tag_number(raw) == expected


def test_primary_artist():
    assert primary_artist("Main, Featured") == "Main"
    assert primary_artist(" Solo ") == "Solo"
    assert primary_artist(None) == ""


def test_find_audio_files(tmp_path):
    (tmp_path / "b.mp3").write_bytes(b"")
    (tmp_path / "A.MP3").write_bytes(b"")
    (tmp_path / "notes.txt").write_bytes(b"")
    (tmp_path / "b.tmp.mp3").write_bytes(b"")
    (tmp_path / "disc2").mkdir()
    (tmp_path / "disc2" / "c.mp3").write_bytes(b"")

    found = find_audio_files(str(tmp_path))

    assert [os.path.relpath(p, tmp_path) for p in found] == [
        "A.MP3", "b.mp3", os.path.join("disc2", "c.mp3")
    ]
    assert len(find_audio_files(str(tmp_path), recursive=False)) == 2


def test_find_audio_files_missing_directory(tmp_path):
    with pytest.raises(FileOperationError):
        find_audio_files(str(tmp_path / "missing"))


def test_replace_file(tmp_path):
    original = tmp_path / "song.mp3"
    original.write_bytes(b"old")
    temp = temp_sibling_path(str(original))
    assert temp == str(tmp_path / "song.tmp.mp3")
    with open(temp, "wb") as f:
        f.write(b"new")

    assert replace_file(str(original), temp) == str(original)
    assert original.read_bytes() == b"new"
    assert not os.path.exists(temp)


def test_replace_file_requires_replacement(tmp_path):
    original = tmp_path / "song.mp3"
    original.write_bytes(b"old")

    with pytest.raises(FileOperationError):
        replace_file(str(original), str(tmp_path / "song.tmp.mp3"))
    assert original.read_bytes() == b"old"


def test_discard_file(tmp_path):
    leftover = tmp_path / "song.tmp.mp3"
    leftover.write_bytes(b"partial")

    assert discard_file(str(leftover))
    assert not discard_file(str(leftover))


def test_safe_move_file(tmp_path):
    source = tmp_path / "in.mp3"
    source.write_bytes(b"audio")
    destination = tmp_path / "Artist" / "Album" / "01 In.mp3"

    moved, path = safe_move_file(str(source), str(destination))

    assert moved
    assert path == str(destination)
    assert destination.read_bytes() == b"audio"
    assert safe_move_file(str(destination), str(destination)) == (False, str(destination))


def test_safe_move_file_refuses_to_overwrite(tmp_path):
    source = tmp_path / "in.mp3"
    source.write_bytes(b"new")
    destination = tmp_path / "out.mp3"
    destination.write_bytes(b"old")

    with pytest.raises(FileOperationError):
        safe_move_file(str(source), str(destination))
    assert destination.read_bytes() == b"old"


def test_log_files_are_written(tmp_path):
    setup_logging(log_dir=str(tmp_path), enable_console=False)

    get_logger("scheduler").info("analysis started")
    for handler in logging.getLogger("ripcheck").handlers:
        handler.flush()

    assert "analysis started" in (tmp_path / "ripcheck.log").read_text()


def test_colored_formatter_restores_level_name():
    record = logging.LogRecord("ripcheck.main", logging.WARNING, __file__, 1, "careful", None, None)

    text = ColoredFormatter("[%(levelname)s] %(message)s").format(record)

    assert text == "[\033[33mWARNING\033[0m] careful"
    assert record.levelname == "WARNING"
