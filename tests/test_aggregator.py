import pytest

from core.aggregator import (
    ResultAggregator,
    age_bracket,
    age_estimate,
    dominant_expression,
    median,
    round_half_up,
)
from core.config import Settings
from core.models import PLACEHOLDER, ResultsUpdate, StatsUpdate
from conftest import FakeClock

HAPPY = {"neutral": 0.2, "happy": 0.7, "sad": 0.1}


def _agg(clock=None, **overrides):
    s = Settings(**{"AGE_WINDOW": 5, "LATENCY_WINDOW": 10, "FPS_WINDOW_MS": 1000, **overrides})
    return ResultAggregator(s, clock=clock or FakeClock())


def _results(msgs):
    return [m for m in msgs if isinstance(m, ResultsUpdate)]


def _stats(msgs):
    return [m for m in msgs if isinstance(m, StatsUpdate)]


def test_median_odd_window():
    agg = _agg()
    for a in [30, 32, 31, 29, 33]:
        msgs = agg.record(a, HAPPY, 10, True)
    assert agg.smoothed_age == 31
    assert _results(msgs)[0].age == 31


def test_median_even_window_uses_mean_of_middle():
    assert median([30, 34, 31, 29]) == 30.5
    agg = _agg()
    for a in [30, 34, 31, 29]:
        msgs = agg.record(a, HAPPY, 10, True)
    assert agg.smoothed_age == 30.5
    # displayed age rounds half up
    assert _results(msgs)[0].age == 31


def test_median_empty():
    assert median([]) is None


@pytest.mark.parametrize("age,bracket", [
    (0, "Child"), (12, "Child"), (13, "Teen"), (19, "Teen"),
    (20, "Young Adult"), (39, "Young Adult"), (40, "Middle-Aged Adult"),
    (59, "Middle-Aged Adult"), (60, "Senior"), (95, "Senior"),
])
def test_age_bracket_boundaries(age, bracket):
    assert age_bracket(age) == bracket


def test_age_estimate_range_clamps_at_zero():
    assert age_estimate(31) == "29 to 33"
    assert age_estimate(1) == "0 to 3"
    assert age_estimate(40, spread=5) == "35 to 45"


def test_dominant_expression():
    dom = dominant_expression(HAPPY)
    assert dom.name == "happy"
    assert dom.confidence == 70
    assert dom.emoji == "😊"


def test_dominant_expression_tie_goes_to_first_entry():
    assert dominant_expression({"sad": 0.4, "angry": 0.4, "happy": 0.2}).name == "sad"
    assert dominant_expression({"angry": 0.4, "sad": 0.4}).name == "angry"


def test_dominant_expression_empty_is_placeholder():
    assert dominant_expression({}).name == PLACEHOLDER


def test_round_half_up():
    assert round_half_up(30.5) == 31
    assert round_half_up(31.5) == 32
    assert round_half_up(2.49) == 2


def test_buffers_are_bounded():
    agg = _agg()
    for i in range(50):
        agg.record(20 + i, HAPPY, float(i), True)
        assert len(agg.age_history) <= 5
        assert len(agg.processing_time_history) <= 10
    assert list(agg.age_history) == [65.0, 66.0, 67.0, 68.0, 69.0]
    assert list(agg.processing_time_history) == [float(i) for i in range(40, 50)]


def test_age_fields_stay_placeholder_without_age_model():
    agg = _agg()
    upd = _results(agg.record(None, HAPPY, 10, True))[0]
    assert upd.age == PLACEHOLDER
    assert upd.age_range == PLACEHOLDER
    assert upd.age_estimate == PLACEHOLDER
    assert upd.gender == PLACEHOLDER
    assert upd.dominant_expression.name == "happy"
    assert len(agg.age_history) == 0


def test_age_results_and_gender_label():
    agg = _agg()
    upd = _results(agg.record(42.4, HAPPY, 10, True, gender="female", gender_probability=0.876))[0]
    assert upd.age == 42
    assert upd.age_range == "Middle-Aged Adult"
    assert upd.age_estimate == "40 to 44"
    assert upd.gender == "female (88%)"


def test_no_face_updates_only_latency():
    agg = _agg()
    msgs = agg.record(None, None, 25, False)
    assert _results(msgs) == []
    assert agg.detection_count == 0
    assert list(agg.processing_time_history) == [25.0]


def test_fps_counts_faces_and_resets_once_per_window():
    clk = FakeClock(0)
    agg = _agg(clock=clk)

    clk.t = 200
    assert _stats(agg.record(30, HAPPY, 100, True)) == []
    clk.t = 400
    assert _stats(agg.record(None, None, 200, False)) == []
    clk.t = 600
    assert _stats(agg.record(30, HAPPY, 100, True)) == []
    assert agg.detection_count == 2

    clk.t = 1000
    stats = _stats(agg.record(30, HAPPY, 101, True))
    assert len(stats) == 1
    st = stats[0]
    assert st.detections_per_second == 3
    assert st.face_count == 1
    assert st.analysis_count == 1
    # mean of 100, 200, 100, 101 = 125.25
    assert st.mean_latency_ms == 125
    assert agg.detection_count == 0

    clk.t = 1500
    assert _stats(agg.record(30, HAPPY, 100, True)) == []
    clk.t = 1999
    assert _stats(agg.record(None, None, 100, False)) == []
    clk.t = 2000
    stats = _stats(agg.record(None, None, 100, False))
    assert len(stats) == 1
    assert stats[0].detections_per_second == 1
    assert stats[0].face_count == 0
    assert stats[0].analysis_count == 2


def test_fps_window_is_configurable():
    clk = FakeClock(0)
    agg = _agg(clock=clk, FPS_WINDOW_MS=500)
    clk.t = 499
    assert _stats(agg.record(None, HAPPY, 10, True)) == []
    clk.t = 500
    assert _stats(agg.record(None, HAPPY, 10, True))[0].detections_per_second == 2


def test_reset_clears_everything():
    clk = FakeClock(0)
    agg = _agg(clock=clk)
    agg.record(30, HAPPY, 10, True)
    clk.t = 1000
    agg.record(30, HAPPY, 10, True)
    agg.reset()
    assert len(agg.age_history) == 0
    assert len(agg.processing_time_history) == 0
    assert agg.detection_count == 0
    assert agg.analysis_count == 0
    assert agg.last_reset_ms == 1000
