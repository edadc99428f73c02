import threading

import pytest

from h3vector.regions import UnknownRegionError
from h3vector.session import ViewerSession


class GatedProvider:
    """Delegates to another provider; cell lookups wait until released."""

    def __init__(self, inner, release):
        self._inner = inner
        self._release = release

    def cell_at(self, lat, lng, resolution):
        assert self._release.wait(timeout=30)
        return self._inner.cell_at(lat, lng, resolution)

    def __getattr__(self, name):
        return getattr(self._inner, name)


@pytest.fixture
def session(cfg, fake_provider, catalog):
    s = ViewerSession(cfg, fake_provider, catalog)
    yield s
    s.close()


def test_initial_state_uses_viewer_defaults(session):
    state = session.state
    assert state.resolution == 1
    assert state.region == "global"
    assert state.cells == ()
    assert state.stats is None
    assert state.selected is None
    assert not state.loading


def test_regenerate_publishes_cells_and_stats(session):
    state = session.regenerate(2, "europe")
    assert state.resolution == 2
    assert state.region == "europe"
    assert len(state.cells) > 0
    assert state.stats.count == len(state.cells)
    assert state.stats.resolution == 2
    assert not state.loading
    assert state.sampled.region.name == "europe"


def test_begin_generation_marks_loading_and_clears_selection(session):
    session.regenerate(2, "europe")
    session.select(session.state.cells[0])
    token = session.begin_generation(3)
    assert session.state.loading
    assert session.state.selected is None
    assert token.resolution == 3
    assert token.region == "europe"


def test_select_toggles(session):
    cells = session.regenerate(1, "europe").cells
    a, b = cells[0], cells[1]
    assert session.select(a).selected == a
    assert session.select(b).selected == b
    assert session.select(b).selected is None
    assert session.detail() is None
    session.select(a)
    assert session.clear_selection().selected is None


def test_detail_for_selected_cell(session):
    cell = session.regenerate(2, "africa").cells[0]
    session.select(cell)
    detail = session.detail()
    assert detail.h3_index == cell
    assert detail.resolution == 2
    assert detail.vertex_count == 4
    assert detail.is_pentagon is False


def test_stale_generation_is_dropped(session):
    older = session.begin_generation(2, "europe")
    newer = session.begin_generation(3, "asia")
    published = session.complete_generation(newer)
    dropped = session.complete_generation(older)
    assert dropped == published
    assert session.state.region == "asia"
    assert session.state.resolution == 3
    assert all(cell.startswith("3|") for cell in session.state.cells)


def test_failed_generation_resets_cells(cfg, make_provider, catalog):
    session = ViewerSession(cfg, make_provider(fail_cell_at=True), catalog)
    state = session.regenerate(5, "europe")
    assert state.cells == ()
    assert state.stats is None
    assert not state.loading


def test_unexpected_provider_error_clears_loading(cfg, make_provider, catalog):
    class Boom(Exception):
        pass

    provider = make_provider()

    def explode(lat, lng, resolution):
        raise Boom("provider exploded")

    provider.cell_at = explode
    session = ViewerSession(cfg, provider, catalog)
    assert len(session.regenerate(1, "global").cells) > 0
    with pytest.raises(Boom):
        session.regenerate(5, "europe")
    state = session.state
    assert state.cells == ()
    assert state.stats is None
    assert not state.loading
    assert state.resolution == 5


def test_out_of_range_resolution_rejected(session):
    with pytest.raises(ValueError):
        session.begin_generation(9)
    assert not session.state.loading


def test_unknown_region_rejected(session):
    with pytest.raises(UnknownRegionError):
        session.begin_generation(1, "atlantis")


def test_submit_runs_generation_in_background(cfg, fake_provider, catalog):
    release = threading.Event()
    session = ViewerSession(cfg, GatedProvider(fake_provider, release), catalog)
    try:
        future = session.submit(1, "australia")
        assert session.state.loading
        assert not future.done()
        release.set()
        state = future.result(timeout=30)
    finally:
        release.set()
        session.close()
    assert state.region == "australia"
    assert len(state.cells) > 0
    assert not session.state.loading


def test_render_options_are_updated(session):
    assert session.set_color_mode("Random").options.color_mode == "random"
    assert session.set_show_outline(True).options.show_outline is True
    with pytest.raises(ValueError):
        session.set_color_mode("rainbow")


def test_drawing_uses_current_selection(session):
    cells = session.regenerate(1, "europe").cells
    session.select(cells[0])
    drawing = session.drawing()
    fills = {item.cell: item.fill for item in drawing.cells}
    assert fills[cells[0]] == session.cfg.style.selected_fill
    assert len(drawing.cells) == len(cells)
