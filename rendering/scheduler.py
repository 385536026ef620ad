from __future__ import annotations
import logging
import time
from typing import Callable, Optional

import numpy as np

from fractals.base import RenderProgress, RenderRequest
from rendering.core import ScanlineRenderer
from rendering.events import FrameEvent, RowEvent
from rendering.framebuffer import Framebuffer
from rendering.surface import RenderSurface
from utils.coords import map_viewport
from utils.enums import RenderState

logger = logging.getLogger(__name__)

INDICATOR_COLOR = (255, 59, 3, 255)

YieldHook = Callable[[Callable[[], None]], None]


class IncrementalRenderScheduler:
    """
    Renders one RenderRequest scanline by scanline into its own Framebuffer.

    State machine: IDLE -> RENDERING -> COMPLETED | ABORTED.

    Rows are published to the surface as they finish. Whenever more than
    update_interval_ms has passed since the last host update, the scheduler
    marks the next row, reports progress and hands its continuation to the
    yield hook. Without a yield hook the whole frame is rendered in one call.

    Before each row it checks that its generation is still current and the
    surface still has the size recorded at start; otherwise it aborts and
    drops the framebuffer without touching the surface again.
    """

    def __init__(
        self,
        request: RenderRequest,
        surface: RenderSurface,
        *,
        is_current: Callable[[int], bool],
        clock: Callable[[], float] = time.perf_counter,
        yield_hook: Optional[YieldHook] = None,
        rng: Optional[np.random.Generator] = None,
        on_row: Optional[Callable[[RowEvent], None]] = None,
        on_progress: Optional[Callable[[RenderProgress], None]] = None,
        on_complete: Optional[Callable[[FrameEvent], None]] = None,
        on_abort: Optional[Callable[[RenderRequest], None]] = None,
    ) -> None:
        self.request = request
        self.surface = surface
        self._is_current = is_current
        self._clock = clock
        self._yield_hook = yield_hook
        self._rng = rng

        self.on_row = on_row
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.on_abort = on_abort

        self.state = RenderState.IDLE
        self.framebuffer: Optional[Framebuffer] = None
        self.row = 0
        self.pixels_completed = 0
        self.yields = 0

        self._renderer: Optional[ScanlineRenderer] = None
        self._indicator: Optional[np.ndarray] = None
        self._start = 0.0
        self._last_update = 0.0
        self._width = int(request.canvas_width)
        self._height = int(request.canvas_height)

    @property
    def generation_id(self) -> int:
        return self.request.generation_id

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def start(self) -> None:
        if self.state is not RenderState.IDLE:
            raise RuntimeError(f"Render {self.generation_id} already started ({self.state.name})")

        mapping = map_viewport(self.request.viewport, self._width, self._height)
        self._renderer = ScanlineRenderer(mapping, self.request.parameters, rng=self._rng)
        self.framebuffer = Framebuffer(self._width, self._height, self.generation_id)
        self._indicator = np.tile(np.array(INDICATOR_COLOR, dtype=np.uint8), (self._width, 1))

        self.state = RenderState.RENDERING
        self._start = self._last_update = self._clock()
        self._run()

    def progress(self, now: Optional[float] = None) -> RenderProgress:
        now = self._clock() if now is None else now
        return RenderProgress(generation_id=self.generation_id,
                              elapsed_ms=(now - self._start) * 1000.0,
                              pixels_completed=self.pixels_completed)

    # ----------------------------
    # Row loop
    # ----------------------------

    def _superseded(self) -> bool:
        return (not self._is_current(self.generation_id)
                or self.surface.width != self._width
                or self.surface.height != self._height)

    def _resume(self) -> None:
        if self.state is RenderState.RENDERING:
            self._run()

    def _run(self) -> None:
        interval_s = self.request.parameters.update_interval_ms / 1000.0

        while self.row < self._height:
            if self._superseded():
                self._abort()
                return

            y = self.row
            data = self._renderer.render_row(y)
            self.framebuffer.write_row(y, data)
            self.surface.publish_row(y, data)
            self.row += 1
            self.pixels_completed += self._width
            now = self._clock()

            if self.on_row is not None:
                self._notify(self.on_row, RowEvent(y, data, self.generation_id,
                                                   self._width, self._height, self.pixels_completed))

            if self.row >= self._height:
                break

            if now - self._last_update >= interval_s:
                if self._superseded():
                    self._abort()
                    return
                self.surface.publish_indicator(self.row, self._indicator)
                if self.on_progress is not None:
                    self._notify(self.on_progress, self.progress(now))
                self._last_update = now
                if self._yield_hook is not None:
                    self.yields += 1
                    logger.debug("Render %d yielding at row %d/%d", self.generation_id, self.row, self._height)
                    self._yield_hook(self._resume)
                    return

        # A row callback may have started a newer render
        if self._superseded():
            self._abort()
            return
        self._complete()

    def _notify(self, callback, event) -> None:
        try:
            callback(event)
        except Exception:
            self.state = RenderState.ABORTED
            self.framebuffer = None
            logger.error("Render %d aborted: host callback failed at row %d/%d",
                         self.generation_id, self.row, self._height)
            raise

    def _complete(self) -> None:
        self.state = RenderState.COMPLETED
        self.surface.publish_all(self.framebuffer.data)
        progress = self.progress()
        logger.info("Render %d finished: %dx%d in %.3fs (%.0f pixels/s)",
                    self.generation_id, self._width, self._height,
                    progress.elapsed_ms / 1000.0, progress.pixels_per_second)
        if self.on_progress is not None:
            self.on_progress(progress)
        if self.on_complete is not None:
            self.on_complete(FrameEvent(self.framebuffer.data, self._width, self._height,
                                        self.generation_id, progress))

    def _abort(self) -> None:
        self.state = RenderState.ABORTED
        self.framebuffer = None
        logger.debug("Render %d stopped at row %d/%d", self.generation_id, self.row, self._height)
        if self.on_abort is not None:
            self.on_abort(self.request)
