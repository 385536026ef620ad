import dataclasses

import numpy as np
import pytest

from fractals.base import RenderRequest
from rendering.core import auto_iterations, ScanlineRenderer
from rendering.framebuffer import Framebuffer
from rendering.scheduler import IncrementalRenderScheduler, INDICATOR_COLOR
from rendering.surface import ArraySurface
from utils.coords import map_viewport
from utils.enums import RenderState, ColorStrategy

from tests.conftest import FakeClock


def _request(viewport, params, w, h, gen=1):
    return RenderRequest(map_viewport(viewport, w, h).viewport, params, gen, w, h)


def _scheduler(request, surface, current=None, **kw):
    current = current if current is not None else {"gen": request.generation_id}
    return IncrementalRenderScheduler(request, surface,
                                      is_current=lambda g: g == current["gen"], **kw)


# ---------- Row renderer ----------

def test_auto_iterations_formula(home_viewport):
    assert auto_iterations(home_viewport) == 85
    assert auto_iterations(dataclasses.replace(home_viewport, span_x=0.001, span_y=0.002)) == 4071


def test_auto_iterations_is_at_least_one(home_viewport):
    assert auto_iterations(dataclasses.replace(home_viewport, span_x=1e9, span_y=1e9)) == 1


def test_row_matches_per_pixel_evaluation(home_viewport, fixed_params):
    from coloring.smooth_escape import pick_color
    from fractals.mandelbrot import escape_time

    m = map_viewport(home_viewport, 16, 12)
    renderer = ScanlineRenderer(m, fixed_params)
    row = renderer.render_row(5)
    assert row.shape == (16, 4) and row.dtype == np.uint8
    for x in range(16):
        cr, ci = renderer.sample_point(x, 5)
        n, tr, ti = escape_time(cr, ci, 100, 100.0)
        assert tuple(row[x]) == pick_color(ColorStrategy.HSV_SCALED_VALUE, 100, n, tr, ti)


def test_supersampled_rows_are_seed_reproducible(home_viewport, fixed_params):
    params = dataclasses.replace(fixed_params, super_sample_count=4)
    m = map_viewport(home_viewport, 20, 10)
    a = ScanlineRenderer(m, params, rng=np.random.default_rng(3)).render_row(4)
    b = ScanlineRenderer(m, params, rng=np.random.default_rng(3)).render_row(4)
    np.testing.assert_array_equal(a, b)


def test_palette_strategy_uses_configured_table(home_viewport, fixed_params):
    params = dataclasses.replace(fixed_params, color_strategy=ColorStrategy.GRAYSCALE_PALETTE,
                                 palette="Fire", palette_size=512)
    renderer = ScanlineRenderer(map_viewport(home_viewport, 8, 8), params)
    assert renderer._palette.shape == (512, 3)


# ---------- Framebuffer ----------

def test_framebuffer_rows():
    fb = Framebuffer(3, 2, generation_id=9)
    fb.write_row(1, np.full((3, 4), 7, dtype=np.uint8))
    assert fb.shape == (2, 3, 4)
    assert fb.pixel(2, 1) == (7, 7, 7, 7)
    assert fb.row(0).sum() == 0
    assert len(fb.tobytes()) == 24
    with pytest.raises(IndexError):
        fb.write_row(2, np.zeros((3, 4), dtype=np.uint8))


# ---------- Scheduler ----------

def test_synchronous_render_completes(home_viewport, fixed_params):
    surface = ArraySurface(16, 10)
    frames, rows = [], []
    s = _scheduler(_request(home_viewport, fixed_params, 16, 10), surface,
                   clock=FakeClock(0.0), on_row=rows.append, on_complete=frames.append)
    s.start()

    assert s.state is RenderState.COMPLETED
    assert surface.published_rows == list(range(10))
    assert [r.y for r in rows] == list(range(10))
    assert s.pixels_completed == 160
    assert surface.frames_published == 1
    assert len(frames) == 1
    np.testing.assert_array_equal(frames[0].data, surface.pixels)
    assert frames[0].progress.pixels_completed == 160


def test_start_twice_is_an_error(home_viewport, fixed_params):
    s = _scheduler(_request(home_viewport, fixed_params, 4, 4), ArraySurface(4, 4))
    s.start()
    with pytest.raises(RuntimeError):
        s.start()


def test_yields_after_each_interval(home_viewport, fixed_params, loop):
    params = dataclasses.replace(fixed_params, update_interval_ms=25.0)
    surface = ArraySurface(8, 10)
    progress = []
    s = _scheduler(_request(home_viewport, params, 8, 10), surface,
                   clock=FakeClock(0.010), yield_hook=loop, on_progress=progress.append)
    s.start()

    # Rows 0..2 fit before the first 25 ms budget runs out
    assert s.state is RenderState.RENDERING
    assert s.row == 3
    assert loop.pending == 1
    assert surface.indicator_rows == [3]
    np.testing.assert_array_equal(surface.pixels[3], np.tile(INDICATOR_COLOR, (8, 1)))

    loop.run_until_idle()
    assert s.state is RenderState.COMPLETED
    assert s.yields == 3
    assert surface.indicator_rows == [3, 6, 9]
    assert surface.published_rows == list(range(10))
    # Indicator rows are overwritten by real data
    assert not np.array_equal(surface.pixels[3], np.tile(INDICATOR_COLOR, (8, 1)))
    # Three interval reports plus the final one
    assert [p.pixels_completed for p in progress] == [24, 48, 72, 80]


def test_zero_interval_yields_after_every_row(home_viewport, fixed_params, loop):
    params = dataclasses.replace(fixed_params, update_interval_ms=0.0)
    s = _scheduler(_request(home_viewport, params, 4, 5), ArraySurface(4, 5),
                   clock=FakeClock(0.0), yield_hook=loop)
    s.start()
    loop.run_until_idle()
    assert s.state is RenderState.COMPLETED
    assert s.yields == 4


def test_superseded_render_stops_at_row_boundary(home_viewport, fixed_params, loop):
    params = dataclasses.replace(fixed_params, update_interval_ms=0.0)
    surface = ArraySurface(6, 6)
    current = {"gen": 1}
    aborted, progress = [], []
    s = _scheduler(_request(home_viewport, params, 6, 6), surface, current=current,
                   clock=FakeClock(0.0), yield_hook=loop,
                   on_abort=aborted.append, on_progress=progress.append)
    s.start()
    loop.run_once()
    rows_before = list(surface.published_rows)
    reports_before = len(progress)

    current["gen"] = 2
    loop.run_until_idle()

    assert s.state is RenderState.ABORTED
    assert s.framebuffer is None
    assert surface.published_rows == rows_before
    assert len(progress) == reports_before
    assert surface.frames_published == 0
    assert aborted == [s.request]


def test_resized_surface_aborts(home_viewport, fixed_params, loop):
    params = dataclasses.replace(fixed_params, update_interval_ms=0.0)
    surface = ArraySurface(6, 6)
    s = _scheduler(_request(home_viewport, params, 6, 6), surface,
                   clock=FakeClock(0.0), yield_hook=loop)
    s.start()
    surface.resize(3, 3)
    loop.run_until_idle()
    assert s.state is RenderState.ABORTED
    assert surface.published_rows == []


def test_row_callback_superseding_prevents_completion(home_viewport, fixed_params):
    surface = ArraySurface(4, 3)
    current = {"gen": 1}
    done = []

    def on_row(evt):
        if evt.y == 2:
            current["gen"] = 2

    s = _scheduler(_request(home_viewport, fixed_params, 4, 3), surface, current=current,
                   on_row=on_row, on_complete=done.append)
    s.start()
    assert s.state is RenderState.ABORTED
    assert done == []
    assert surface.frames_published == 0


def test_failing_row_callback_aborts(home_viewport, fixed_params):
    surface = ArraySurface(4, 3)
    done = []

    def on_row(evt):
        if evt.y == 1:
            raise KeyError("host gone")

    s = _scheduler(_request(home_viewport, fixed_params, 4, 3), surface,
                   on_row=on_row, on_complete=done.append)
    with pytest.raises(KeyError):
        s.start()
    assert s.state is RenderState.ABORTED
    assert s.framebuffer is None
    assert s.row == 2
    assert done == []
    assert surface.frames_published == 0


def test_failing_progress_callback_aborts_after_yield(home_viewport, fixed_params, loop):
    params = dataclasses.replace(fixed_params, update_interval_ms=0.0)
    calls = []

    def on_progress(p):
        calls.append(p)
        if len(calls) == 2:
            raise RuntimeError("progress sink failed")

    s = _scheduler(_request(home_viewport, params, 4, 5), ArraySurface(4, 5),
                   clock=FakeClock(0.0), yield_hook=loop, on_progress=on_progress)
    s.start()
    assert s.state is RenderState.RENDERING
    with pytest.raises(RuntimeError):
        loop.run_once()
    assert s.state is RenderState.ABORTED
    assert loop.pending == 0
