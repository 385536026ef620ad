from __future__ import annotations
import dataclasses
import itertools
import logging
import time
from typing import Callable, Optional

import numpy as np

from fractals.base import Viewport, RenderParameters, RenderRequest, RenderProgress
from fractals.validator import validate_request
from rendering.core import auto_iterations
from rendering.events import FrameEvent, RowEvent, LogEvent
from rendering.scheduler import IncrementalRenderScheduler, YieldHook
from rendering.surface import RenderSurface
from utils.coords import map_viewport
from utils.enums import RenderState
from utils.units import metric_units

logger = logging.getLogger(__name__)

# Process-wide: generation ids never repeat, across services too.
_generations = itertools.count(1)


class RenderService:
    """
    Host-facing facade that owns:
      - the generation counter (newest request wins),
      - request construction (validation, aspect correction, auto-iterations),
      - the active scheduler and its collaborators (clock, yield hook, rng),
      - event dispatch (row/progress/frame/log).

    Nothing outlives one render generation except the generation counter,
    the last accepted request and the last completed frame.
    """

    def __init__(
        self,
        surface: RenderSurface,
        *,
        clock: Callable[[], float] = time.perf_counter,
        yield_hook: Optional[YieldHook] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.surface = surface
        self.clock = clock
        self.yield_hook = yield_hook
        self.rng = rng if rng is not None else np.random.default_rng()

        self._latest_generation = 0
        self._scheduler: Optional[IncrementalRenderScheduler] = None
        self.last_request: Optional[RenderRequest] = None
        self.last_frame: Optional[FrameEvent] = None

        # Callbacks
        self.on_row: Optional[Callable[[RowEvent], None]] = None
        self.on_progress: Optional[Callable[[RenderProgress], None]] = None
        self.on_frame: Optional[Callable[[FrameEvent], None]] = None
        self.on_log: Optional[Callable[[LogEvent], None]] = None

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    def build_request(self, viewport: Viewport, params: RenderParameters) -> RenderRequest:
        """
        Validates and freezes a request for the surface's current size.
        Raises ParameterError before a generation id is consumed.
        """
        width, height = int(self.surface.width), int(self.surface.height)
        validate_request(viewport, params, width, height)

        mapping = map_viewport(viewport, width, height)
        if params.auto_iterations:
            params = dataclasses.replace(params, max_iterations=auto_iterations(mapping.viewport))

        generation_id = next(_generations)
        self._latest_generation = generation_id
        return RenderRequest(viewport=mapping.viewport, parameters=params,
                             generation_id=generation_id,
                             canvas_width=width, canvas_height=height)

    def submit(self, viewport: Viewport, params: RenderParameters) -> RenderRequest:
        """
        Starts a new render generation, superseding any render in flight.
        Returns the accepted request (aspect-corrected, effective parameters).
        """
        request = self.build_request(viewport, params)
        self.last_request = request

        p = request.parameters
        logger.info("Render %d started: %dx%d center=(%.6g,%.6g) span=(%.6g,%.6g) "
                    "iterations=%d samples=%d colors=%s",
                    request.generation_id, request.canvas_width, request.canvas_height,
                    request.viewport.center_x, request.viewport.center_y,
                    request.viewport.span_x, request.viewport.span_y,
                    p.max_iterations, p.super_sample_count, p.color_strategy.value)

        self._scheduler = IncrementalRenderScheduler(
            request, self.surface,
            is_current=self.is_current,
            clock=self.clock,
            yield_hook=self.yield_hook,
            rng=self.rng,
            on_row=self.on_row,
            on_progress=self.on_progress,
            on_complete=self._on_complete,
        )
        self._scheduler.start()
        return request

    def stop(self) -> None:
        """Cancel the render in flight; it stops at its next row boundary."""
        self._latest_generation = next(_generations)

    def is_current(self, generation_id: int) -> bool:
        return generation_id == self._latest_generation

    @property
    def scheduler(self) -> Optional[IncrementalRenderScheduler]:
        return self._scheduler

    @property
    def state(self) -> RenderState:
        if self._scheduler is None:
            return RenderState.IDLE
        return self._scheduler.state

    @property
    def busy(self) -> bool:
        return self.state is RenderState.RENDERING and self.is_current(self._scheduler.generation_id)

    # ---------------------------------------------------------------------
    # Callbacks
    # ---------------------------------------------------------------------

    def _on_complete(self, evt: FrameEvent) -> None:
        self.last_frame = evt
        if self.on_log is not None:
            seconds = evt.progress.elapsed_ms / 1000.0
            speed = metric_units(evt.progress.pixels_per_second)
            self.on_log(LogEvent(f"Render time: {seconds:.1f}s ({speed} pixels/second)", level=logging.INFO))
        if self.on_frame is not None:
            self.on_frame(evt)
