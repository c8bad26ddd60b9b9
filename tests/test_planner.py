import pytest

from ripcheck.core.exceptions import AnalysisStateError, RepairPreconditionError
from ripcheck.core.models import Track


def analysed_track(profile, path="/music/song.mp3"):
    track = Track("Song", path)
    track.mark_in_flight()
    track.attach_profile(profile)
    return track


def test_overlap_at_start_keeps_silence_tolerance(planner, profile_factory):
    track = analysed_track(profile_factory(short=((0.3, 1.0), (199.5, 200.0))))

    plan = planner.plan(track)

    assert plan.start == pytest.approx(0.7)
    assert plan.end == pytest.approx(200.0)
    assert plan.trims_start
    assert not plan.trims_end


def test_huge_silence_at_start_keeps_max_silence(planner, profile_factory):
    profile = profile_factory(short=((0.0, 5.0), (299.5, 300.0)), long=((0.0, 5.0),), duration=300.0)

    plan = planner.plan(analysed_track(profile))

    assert plan.start == pytest.approx(3.0)
    assert plan.end == pytest.approx(300.0)
    assert plan.length == pytest.approx(297.0)


def test_overlap_at_end(planner, profile_factory):
    plan = planner.plan(analysed_track(profile_factory(short=((0.0, 0.7), (195.0, 196.0)))))

    assert plan.start == 0.0
    assert plan.end == pytest.approx(195.6)


def test_huge_silence_at_end(planner, profile_factory):
    profile = profile_factory(short=((0.0, 0.7), (190.0, 200.0)), long=((190.0, 200.0),))

    plan = planner.plan(analysed_track(profile))

    assert plan.end == pytest.approx(192.0)


def test_huge_silence_bound_wins_over_overlap_bound(planner, profile_factory):
    profile = profile_factory(short=((0.0, 0.7), (185.0, 197.0)), long=((185.0, 197.0),))

    plan = planner.plan(analysed_track(profile))

    assert plan.end == pytest.approx(187.0)


def test_whole_track_window_returns_none(planner, classifier, profile_factory):
    profile = profile_factory(short=((0.0, 1.5), (199.6, 200.0)), long=((0.0, 1.5),))
    classification = classifier.classify_profile(profile)
    assert classification.is_fixable

    assert planner.plan_profile(profile, classification) is None


def test_truncated_track_is_rejected(planner, profile_factory):
    track = analysed_track(profile_factory(short=((0.3, 1.0),)))

    with pytest.raises(RepairPreconditionError):
        planner.plan(track)


def test_healthy_track_is_rejected(planner, profile_factory):
    track = analysed_track(profile_factory(short=((0.0, 0.8), (198.0, 200.0))))

    with pytest.raises(RepairPreconditionError):
        planner.plan(track)


def test_empty_window_is_rejected(planner, profile_factory):
    # Overlap on both sides of a single short silence in a short track
    track = analysed_track(profile_factory(short=((9.0, 9.7),), duration=12.0))

    with pytest.raises(RepairPreconditionError) as excinfo:
        planner.plan(track)
    assert excinfo.value.filepath == "/music/song.mp3"


def test_unanalysed_track_is_rejected(planner):
    with pytest.raises(AnalysisStateError):
        planner.plan(Track("Song", "/music/song.mp3"))


@pytest.mark.parametrize(
    "short,long,duration",
    [
        (((0.3, 1.0), (199.5, 200.0)), (), 200.0),
        (((0.0, 0.7), (195.0, 196.0)), (), 200.0),
        (((0.0, 5.0), (299.5, 300.0)), ((0.0, 5.0),), 300.0),
        (((0.0, 0.7), (190.0, 200.0)), ((190.0, 200.0),), 200.0),
        (((2.0, 30.0), (170.0, 199.0)), ((2.0, 30.0), (170.0, 199.0)), 200.0),
        (((0.1, 0.9), (199.0, 199.5)), (), 199.8),
    ],
)
def test_plan_stays_within_track(planner, profile_factory, short, long, duration):
    plan = planner.plan(analysed_track(profile_factory(short=short, long=long, duration=duration)))

    assert plan is not None
    assert 0.0 <= plan.start < plan.end <= duration
    assert plan.duration == duration
