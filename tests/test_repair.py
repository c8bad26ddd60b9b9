import os
import subprocess
import threading
from pathlib import Path
from types import SimpleNamespace

import pytest

from ripcheck.core.classifier import DefectCategory
from ripcheck.core.exceptions import TrimError
from ripcheck.core.models import DetectionResult, Library, SilenceInterval
from ripcheck.services import trimmer as trimmer_module
from ripcheck.services.repair import RepairService
from ripcheck.services.scheduler import AnalysisScheduler
from ripcheck.services.trimmer import FFmpegTrimmer


def analyse(library, detector, tolerances):
    AnalysisScheduler(detector, tolerances).analyze(library)
    return {t.name: t for t in library.iter_tracks()}


def outcomes_by_name(report):
    return {Path(o.original_filepath).stem: o for o in report.outcomes}


def test_fixable_tracks_are_trimmed_in_place(audio_library, canned_detector, tolerances, trimmer, tmp_path):
    tracks = analyse(audio_library, canned_detector, tolerances)

    report = RepairService(trimmer, tolerances).repair(audio_library)

    assert report.processed == 4
    assert report.repaired == 2
    assert report.failed == 0

    trimmed = {Path(source).stem: (start, length) for source, _, start, length in trimmer.calls}
    assert set(trimmed) == {"overlap", "silence"}
    assert trimmed["overlap"][0] == pytest.approx(0.7)
    assert trimmed["overlap"][1] == pytest.approx(199.3)
    assert trimmed["silence"][0] == pytest.approx(3.0)

    assert Path(tracks["overlap"].path).read_bytes() == b"trimmed"
    assert Path(tracks["silence"].path).read_bytes() == b"trimmed"
    assert tracks["overlap"].path == str(tmp_path / "overlap.mp3")
    assert Path(tracks["healthy"].path).read_bytes() == b"original healthy"
    assert Path(tracks["truncated"].path).read_bytes() == b"original truncated"
    assert not any(".tmp" in name for name in os.listdir(tmp_path))


def test_skipped_tracks_carry_their_reason(audio_library, canned_detector, tolerances, trimmer):
    analyse(audio_library, canned_detector, tolerances)

    outcomes = outcomes_by_name(RepairService(trimmer, tolerances).repair(audio_library))

    assert outcomes["healthy"].skipped_reason == DefectCategory.HEALTHY.value
    assert outcomes["truncated"].skipped_reason == DefectCategory.TRUNCATED.value
    assert outcomes["overlap"].repaired
    assert outcomes["overlap"].plan.start == pytest.approx(0.7)


def test_failed_trim_leaves_original_untouched(audio_library, canned_detector, tolerances, tmp_path,
                                             trimmer_factory):
    tracks = analyse(audio_library, canned_detector, tolerances)
    failing = trimmer_factory(fail_paths={tracks["overlap"].path})

    report = RepairService(failing, tolerances).repair(audio_library)

    assert report.failed == 1
    assert report.repaired == 1
    outcome = outcomes_by_name(report)["overlap"]
    assert not outcome.success
    assert "status 1" in outcome.error
    assert Path(tracks["overlap"].path).read_bytes() == b"original overlap"
    assert not (tmp_path / "overlap.tmp.mp3").exists()
    assert Path(tracks["silence"].path).read_bytes() == b"trimmed"


def test_missing_trim_output_leaves_original_untouched(audio_library, canned_detector, tolerances,
                                                       trimmer_factory):
    tracks = analyse(audio_library, canned_detector, tolerances)
    silent_trimmer = trimmer_factory(write_output=False)

    report = RepairService(silent_trimmer, tolerances).repair(audio_library)

    assert report.failed == 2
    assert report.repaired == 0
    assert Path(tracks["overlap"].path).read_bytes() == b"original overlap"
    assert all("missing" in o.error for o in report.errors)


def test_dry_run_plans_without_trimming(audio_library, canned_detector, tolerances, trimmer):
    tracks = analyse(audio_library, canned_detector, tolerances)

    report = RepairService(trimmer, tolerances, dry_run=True).repair(audio_library)

    assert trimmer.calls == []
    assert report.repaired == 0
    outcome = outcomes_by_name(report)["silence"]
    assert outcome.skipped_reason == "dry run"
    assert outcome.plan.start == pytest.approx(3.0)
    assert Path(tracks["silence"].path).read_bytes() == b"original silence"


def test_unanalysed_track_is_reported_not_raised(audio_library, tolerances, trimmer):
    report = RepairService(trimmer, tolerances).repair(audio_library)

    assert report.processed == 4
    assert report.failed == 4
    assert all("not been analyzed" in o.error for o in report.outcomes)


def test_progress_counts_every_track(audio_library, canned_detector, tolerances, trimmer):
    analyse(audio_library, canned_detector, tolerances)
    ticks = []
    lock = threading.Lock()

    def progress(current, total, track):
        with lock:
            ticks.append(current)

    RepairService(trimmer, tolerances, progress_callback=progress).repair(audio_library)

    assert sorted(ticks) == [1, 2, 3, 4]


def test_repaired_tracks_are_healthy_on_the_next_run(audio_library, canned_detector, tolerances,
                                                    trimmer, classifier):
    tracks = analyse(audio_library, canned_detector, tolerances)
    RepairService(trimmer, tolerances).repair(audio_library)

    # What detection finds in the trimmed files
    canned_detector.add(
        tracks["overlap"].path,
        DetectionResult((SilenceInterval(0.0, 0.3), SilenceInterval(198.8, 199.3)), 199.3),
    )
    canned_detector.add(
        tracks["silence"].path,
        DetectionResult((SilenceInterval(0.0, 2.0), SilenceInterval(196.5, 197.0)), 197.0),
    )
    rescanned = Library(root=audio_library.root)
    for number, name in enumerate(("overlap", "silence"), start=1):
        rescanned.add_track("Artist", "Album", name, tracks[name].path, track_number=number)

    analyse(rescanned, canned_detector, tolerances)

    for track in rescanned.iter_tracks():
        assert classifier.classify(track).category is DefectCategory.HEALTHY


def test_ffmpeg_trim_command():
    cmd = FFmpegTrimmer("ffmpeg").build_command("in.mp3", "in.tmp.mp3", 0.7, 199.3)

    assert cmd[cmd.index("-ss") + 1] == "0.700"
    assert cmd[cmd.index("-t") + 1] == "199.300"
    assert cmd[cmd.index("-i") + 1] == "in.mp3"
    assert cmd[cmd.index("-c") + 1] == "copy"
    assert cmd[-1] == "in.tmp.mp3"


def test_ffmpeg_trim_failure_raises(monkeypatch):
    monkeypatch.setattr(
        trimmer_module.subprocess, "run",
        lambda cmd, **kwargs: SimpleNamespace(returncode=1, stdout="", stderr="Invalid argument\n"),
    )

    with pytest.raises(TrimError) as excinfo:
        FFmpegTrimmer().trim("in.mp3", "in.tmp.mp3", 0.7, 10.0)
    assert excinfo.value.details == "Invalid argument"


def test_ffmpeg_trim_timeout_raises(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(trimmer_module.subprocess, "run", fake_run)

    with pytest.raises(TrimError):
        FFmpegTrimmer(timeout=1).trim("in.mp3", "in.tmp.mp3", 0.7, 10.0)


def test_existing_temp_file_blocks_the_trim(audio_library, canned_detector, tolerances, trimmer, tmp_path):
    tracks = analyse(audio_library, canned_detector, tolerances)
    leftover = tmp_path / "overlap.tmp.mp3"
    leftover.write_bytes(b"from an earlier run")

    report = RepairService(trimmer, tolerances).repair(audio_library)

    outcome = outcomes_by_name(report)["overlap"]
    assert not outcome.repaired
    assert "Temporary file already exists" in outcome.error
    assert leftover.read_bytes() == b"from an earlier run"
    assert Path(tracks["overlap"].path).read_bytes() == b"original overlap"
    assert [Path(source).stem for source, _, _, _ in trimmer.calls] == ["silence"]
