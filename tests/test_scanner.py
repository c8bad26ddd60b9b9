from types import SimpleNamespace

import mutagen
import pytest

from ripcheck.core.exceptions import FileOperationError
from ripcheck.services import scanner
from ripcheck.services.scanner import LibraryScanner, read_tags


TAGS = {
    "one.mp3": {"artist": ["Artist, Guest"], "album": ["Album"], "title": ["One"],
                "discnumber": ["1/2"], "tracknumber": ["01/10"]},
    "two.mp3": {"artist": ["Artist"], "album": ["Album"], "title": ["Two"],
                "discnumber": ["2/2"], "tracknumber": ["3"]},
    "untitled.mp3": {"artist": ["Artist"], "album": ["Album"], "discnumber": ["1"], "tracknumber": ["2"]},
}


@pytest.fixture
def fake_mutagen(monkeypatch):
    def fake_file(path, easy=False):
        name = path.replace("\\", "/").rsplit("/", 1)[-1]
        if name == "broken.mp3":
            raise mutagen.MutagenError("can't sync to MPEG frame")
        if name == "bare.mp3":
            return SimpleNamespace(tags=None)
        return SimpleNamespace(tags=TAGS[name])

    monkeypatch.setattr(scanner, "MutagenFile", fake_file)


@pytest.fixture
def music_dir(tmp_path):
    for name in ("one.mp3", "two.mp3", "untitled.mp3", "broken.mp3", "bare.mp3", "cover.jpg"):
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "nested").mkdir()
    return tmp_path


def test_read_tags(fake_mutagen, music_dir):
    tags = read_tags(str(music_dir / "one.mp3"))

    assert tags == {
        "artist": "Artist",
        "album": "Album",
        "title": "One",
        "disk_number": 1,
        "track_number": 1,
    }


def test_scan_builds_the_tree(fake_mutagen, music_dir):
    library_scanner = LibraryScanner()

    library = library_scanner.scan(str(music_dir))

    assert library.stats() == (1, 1, 3)
    album = library.get_or_create_artist("Artist").get_or_create_album("Album")
    assert album.disk_count == 2
    assert album.tracks[2][3].name == "Two"
    assert album.get_track("untitled").path == str(music_dir / "untitled.mp3")
    assert library_scanner.stats == {"files_found": 5, "files_added": 3, "files_skipped": 2}


def test_scan_missing_folder(tmp_path):
    with pytest.raises(FileOperationError):
        LibraryScanner().scan(str(tmp_path / "nope"))
