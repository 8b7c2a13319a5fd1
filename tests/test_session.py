import pytest

from conftest import solid_image
from detectoo.models import AnalysisResult, Region, VerdictMetrics
from detectoo.session import (
    PAGES,
    TRANSITIONS,
    Event,
    InvalidTransitionError,
    Phase,
    SessionStore,
)
from detectoo.visualization import HeatmapCache


def make_result(name="a.png"):
    return AnalysisResult(
        is_ai=False,
        confidence=60,
        file_name=name,
        file_size_kb=1,
        processing_time_label="1200ms",
        verdict_label="✅ REAL IMAGE",
        metrics=VerdictMetrics("10.0", "20.0", "80.0", "5.0"),
    )


REGIONS = [Region(id=0, x=0, y=0, width=80, height=80, is_ai=True, confidence=90)]


@pytest.fixture
def store():
    return SessionStore()


def finish(store, name="a.png"):
    generation = store.accept_file(solid_image(80, 80), name)
    assert store.complete_analysis(generation, make_result(name), REGIONS)
    return generation


def test_initial_state(store):
    state = store.state
    assert state.phase is Phase.IDLE
    assert state.page == 'home'
    assert state.result is None
    assert state.history == []
    assert not state.loading


def test_accept_moves_to_loading(store):
    generation = store.accept_file(solid_image(10, 10), "a.png")

    assert store.state.phase is Phase.LOADING
    assert store.state.loading
    assert generation == store.state.generation == 1
    assert store.state.file_name == "a.png"


def test_complete_moves_to_result(store):
    finish(store)

    state = store.state
    assert state.phase is Phase.RESULT
    assert state.result.file_name == "a.png"
    assert state.regions == tuple(REGIONS)
    assert state.history == [state.result]


def test_accept_clears_previous_result(store):
    finish(store)
    store.state.error = "old"

    store.accept_file(solid_image(10, 10), "b.png")

    assert store.state.result is None
    assert store.state.error is None
    assert store.state.regions == ()
    assert store.state.heatmap is None
    assert store.state.show_heatmap is False


def test_reject_keeps_previous_image_and_result(store):
    finish(store)
    image = store.state.image
    result = store.state.result

    store.reject_file()

    assert store.state.phase is Phase.ERROR
    assert store.state.error == "Please upload an image file"
    assert store.state.image is image
    assert store.state.result is result


def test_reject_from_idle(store):
    store.reject_file()
    assert store.state.phase is Phase.ERROR
    assert store.state.image is None


def test_recovers_from_error(store):
    store.reject_file()
    store.accept_file(solid_image(10, 10), "ok.png")

    assert store.state.phase is Phase.LOADING
    assert store.state.error is None


def test_reset_clears_everything_but_history(store):
    finish(store)
    store.toggle_heatmap()

    store.reset()

    state = store.state
    assert state.phase is Phase.IDLE
    assert state.image is None
    assert state.result is None
    assert state.error is None
    assert state.regions == ()
    assert state.heatmap is None
    assert not state.show_heatmap
    assert len(state.history) == 1


def test_history_is_capped_and_most_recent_first(store):
    for i in range(13):
        finish(store, f"img{i}.png")

    names = [item.file_name for item in store.state.history]
    assert len(names) == 10
    assert names == [f"img{i}.png" for i in range(12, 2, -1)]


def test_stale_analysis_is_discarded_after_new_upload(store):
    first = store.accept_file(solid_image(10, 10), "first.png")
    second = store.accept_file(solid_image(10, 10), "second.png")

    assert not store.complete_analysis(first, make_result("first.png"), REGIONS)
    assert store.state.phase is Phase.LOADING
    assert store.state.result is None

    assert store.complete_analysis(second, make_result("second.png"), REGIONS)
    assert store.state.result.file_name == "second.png"
    assert len(store.state.history) == 1


def test_stale_analysis_is_discarded_after_reset(store):
    generation = store.accept_file(solid_image(10, 10), "a.png")
    store.reset()

    assert not store.complete_analysis(generation, make_result(), REGIONS)
    assert store.state.phase is Phase.IDLE
    assert store.state.history == []


def test_reject_while_loading_discards_pending_analysis(store):
    generation = store.accept_file(solid_image(10, 10), "a.png")
    store.reject_file()

    assert not store.complete_analysis(generation, make_result(), REGIONS)
    assert store.state.phase is Phase.ERROR


def test_toggle_heatmap_renders_lazily_and_memoises(store):
    calls = []

    class CountingCache(HeatmapCache):
        def get(self, pixels, regions):
            calls.append(1)
            return super().get(pixels, regions)

    store = SessionStore(heatmap_cache=CountingCache())
    finish(store)

    first = store.toggle_heatmap()
    assert store.state.show_heatmap
    assert first is not None
    assert first.image.shape == (80, 80, 3)

    assert store.toggle_heatmap() is None
    assert not store.state.show_heatmap

    second = store.toggle_heatmap()
    assert second is first
    assert len(calls) == 2


def test_toggle_heatmap_outside_result_is_rejected(store):
    with pytest.raises(InvalidTransitionError):
        store.toggle_heatmap()

    store.accept_file(solid_image(10, 10), "a.png")
    with pytest.raises(InvalidTransitionError):
        store.toggle_heatmap()


def test_every_phase_can_reset():
    resettable = {phase for (phase, event) in TRANSITIONS if event is Event.RESET}
    assert resettable == set(Phase)


def test_analysis_done_only_from_loading():
    sources = {phase for (phase, event) in TRANSITIONS if event is Event.ANALYSIS_DONE}
    assert sources == {Phase.LOADING}


def test_navigation(store):
    for page in PAGES:
        store.navigate(page)
        assert store.state.page == page

    with pytest.raises(ValueError):
        store.navigate("settings")


def test_history_limit_is_configurable():
    store = SessionStore(history_limit=2)
    for i in range(4):
        finish(store, f"{i}.png")

    assert [r.file_name for r in store.state.history] == ["3.png", "2.png"]


def test_file_size_is_kept_until_reset(store):
    store.accept_file(solid_image(10, 10), "a.png", 4096)
    assert store.state.file_size == 4096

    store.reset()
    assert store.state.file_size == 0
