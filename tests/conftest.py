import pytest

from ripcheck.core.classifier import BoundaryClassifier
from ripcheck.core.models import (
    DetectionResult, Library, SilenceInterval, SilenceProfile, Tolerances
)
from ripcheck.core.planner import RepairPlanner
from ripcheck.core.exceptions import TrimError
from ripcheck.services.silence_detection import CannedSilenceDetector
from ripcheck.services.trimmer import Trimmer
from ripcheck.utils.logging_config import setup_logging


def intervals(*pairs):
    return tuple(SilenceInterval(start, end) for start, end in pairs)


def make_profile(short=(), long=(), duration=200.0):
    return SilenceProfile(intervals(*short), intervals(*long), duration)


class RecordingTrimmer(Trimmer):
    """Writes a marker file instead of running ffmpeg"""

    def __init__(self, content=b"trimmed", fail_paths=(), write_before_failing=True,
                 write_output=True):
        self.content = content
        self.fail_paths = set(fail_paths)
        self.write_before_failing = write_before_failing
        self.write_output = write_output
        self.calls = []

    def trim(self, source, destination, start, length):
        self.calls.append((source, destination, start, length))
        if source in self.fail_paths:
            if self.write_before_failing:
                with open(destination, "wb") as f:
                    f.write(b"partial")
            raise TrimError("ffmpeg exited with status 1", filepath=source)
        if self.write_output:
            with open(destination, "wb") as f:
                f.write(self.content)


@pytest.fixture(autouse=True)
def quiet_logging():
    setup_logging(enable_console=False, enable_files=False)
    yield


@pytest.fixture
def tolerances():
    return Tolerances(workers=4)


@pytest.fixture
def classifier(tolerances):
    return BoundaryClassifier(tolerances)


@pytest.fixture
def planner(tolerances, classifier):
    return RepairPlanner(tolerances, classifier)


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
def canned_detector(tolerances):
    return CannedSilenceDetector(tolerances=tolerances)


@pytest.fixture
def trimmer():
    return RecordingTrimmer()


@pytest.fixture
def trimmer_factory():
    return RecordingTrimmer


@pytest.fixture
def audio_library(tmp_path, canned_detector):
    """
    Library of four real files with canned detection results

    - healthy.mp3: silence at both boundaries, nothing to do
    - overlap.mp3: audio of the previous track before the first silence
    - silence.mp3: five seconds of dead air at the start
    - truncated.mp3: no silence at the end
    """
    library = Library(root=str(tmp_path))
    specs = {
        "healthy": (((0.0, 0.8), (198.0, 200.0)), ()),
        "overlap": (((0.3, 1.0), (199.5, 200.0)), ()),
        "silence": (((0.0, 5.0), (199.5, 200.0)), ((0.0, 5.0),)),
        "truncated": (((0.0, 0.8), (150.0, 151.0)), ()),
    }
    for number, (name, (short, long)) in enumerate(specs.items(), start=1):
        path = tmp_path / f"{name}.mp3"
        path.write_bytes(b"original " + name.encode())
        library.add_track("Artist", "Album", name, str(path), disk_number=1, track_number=number)
        canned_detector.add(
            str(path),
            DetectionResult(intervals(*short), 200.0),
            DetectionResult(intervals(*long), 200.0),
        )
    return library
