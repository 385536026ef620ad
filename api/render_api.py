import dataclasses
from typing import Optional, Tuple

from fractals.base import Viewport, RenderParameters, RenderRequest
from rendering.service import RenderService
from utils.enums import ColorStrategy
from utils.view_state import DEFAULT_VIEWPORT, DEFAULT_PARAMETERS


class RenderConfigBuilder:
    """
    Builder for configuring render settings.
    """
    def __init__(self, api: 'RenderAPI'):
        self.api = api
        self._max_iter: Optional[int] = None
        self._auto_iterations: Optional[bool] = None
        self._samples: Optional[int] = None
        self._strategy: Optional[ColorStrategy] = None
        self._palette: Optional[str] = None
        self._palette_size: Optional[int] = None
        self._escape_radius: Optional[float] = None
        self._update_interval: Optional[float] = None

    def max_iter(self, value: int) -> 'RenderConfigBuilder':
        """Fixed iteration cap; turns auto-iterations off."""
        self._max_iter = value
        self._auto_iterations = False
        return self

    def auto_iterations(self, enabled: bool = True) -> 'RenderConfigBuilder':
        self._auto_iterations = enabled
        return self

    def samples(self, value: int) -> 'RenderConfigBuilder':
        self._samples = value
        return self

    def strategy(self, strategy: ColorStrategy) -> 'RenderConfigBuilder':
        self._strategy = strategy
        return self

    def palette(self, name: str, size: Optional[int] = None) -> 'RenderConfigBuilder':
        self._palette = name
        self._palette_size = size
        return self

    def escape_radius(self, radius: float) -> 'RenderConfigBuilder':
        self._escape_radius = radius
        return self

    def update_interval(self, ms: float) -> 'RenderConfigBuilder':
        self._update_interval = ms
        return self

    def apply(self) -> RenderParameters:
        updates = {}
        if self._max_iter is not None:
            updates["max_iterations"] = int(self._max_iter)
        if self._auto_iterations is not None:
            updates["auto_iterations"] = bool(self._auto_iterations)
        if self._samples is not None:
            updates["super_sample_count"] = int(self._samples)
        if self._strategy is not None:
            updates["color_strategy"] = self._strategy
        if self._palette is not None:
            updates["palette"] = self._palette
        if self._palette_size is not None:
            updates["palette_size"] = int(self._palette_size)
        if self._escape_radius is not None:
            updates["escape_radius_squared"] = float(self._escape_radius) ** 2
        if self._update_interval is not None:
            updates["update_interval_ms"] = float(self._update_interval)
        self.api.params = dataclasses.replace(self.api.params, **updates)
        return self.api.params


class RenderAPI:
    """
    Facade for controlling rendering operations and managing callbacks.

    Holds the host's current view (viewport + parameters); every render
    request is built from it. The requested viewport is kept as given;
    rendered_viewport is the aspect-corrected view of the last render.
    """
    def __init__(self, service: RenderService,
                 viewport: Viewport = DEFAULT_VIEWPORT,
                 params: RenderParameters = DEFAULT_PARAMETERS):
        self.service: RenderService = service
        self.viewport: Viewport = viewport
        self.params: RenderParameters = params
        self.rendered_viewport: Optional[Viewport] = None

    # ---------- Callbacks --------------------------------
    def on_row(self, cb): self.service.on_row = cb
    def on_progress(self, cb): self.service.on_progress = cb
    def on_frame(self, cb): self.service.on_frame = cb
    def on_log(self, cb): self.service.on_log = cb

    # ----------- Facade methods --------------------------
    def set_view(self, center_x: float, center_y: float,
                 span_x: float, span_y: Optional[float] = None) -> None:
        """
        Sets the region of the complex plane to render.

        Args:
            center_x (float): Real part of the view center.
            center_y (float): Imaginary part of the view center.
            span_x (float): Width of the view.
            span_y (float): Height of the view; defaults to span_x.
        """
        self.viewport = Viewport(center_x, center_y, span_x, span_x if span_y is None else span_y)

    def set_viewport(self, viewport: Viewport) -> None:
        self.viewport = viewport

    def configure(self) -> RenderConfigBuilder:
        """
        Configures the renderer with a fluent builder pattern.

        Returns:
            RenderConfigBuilder: A builder object for configuring renderer settings.
        """
        return RenderConfigBuilder(self)

    def start_render(self) -> RenderRequest:
        """
        Starts rendering the current view, superseding any render in flight.
        """
        request = self.service.submit(self.viewport, self.params)
        self.rendered_viewport = request.viewport
        return request

    def stop_render(self) -> None:
        """
        Stops the ongoing rendering process.
        """
        self.service.stop()

    def effective_iterations(self) -> Tuple[int, bool]:
        """(iterations used by the last render, whether they were automatic)."""
        last = self.service.last_request
        if last is None:
            return self.params.max_iterations, self.params.auto_iterations
        return last.parameters.max_iterations, last.parameters.auto_iterations
