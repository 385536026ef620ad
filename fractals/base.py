from dataclasses import dataclass
from typing import Tuple

from utils.enums import ColorStrategy


INTERIOR_COLOR: Tuple[int, int, int, int] = (0, 0, 0, 255)


@dataclass(frozen=True)
class Viewport:
    """
    Holds the region of the complex plane to render.
    Center is the point mapped to the middle of the canvas, span the
    horizontal and vertical extent before aspect-ratio correction.
    """
    center_x: float
    center_y: float
    span_x: float
    span_y: float

    @property
    def center(self) -> Tuple[float, float]:
        return self.center_x, self.center_y

    @property
    def span(self) -> Tuple[float, float]:
        return self.span_x, self.span_y


@dataclass(frozen=True)
class RenderParameters:
    """
    Holds the settings for one render.
    Max_iterations is the iteration budget of the escape-time loop.
    Escape_radius_squared is the bailout threshold on |Z|^2.
    Super_sample_count controls jittered samples per pixel for antialiasing.
    Update_interval_ms is the time budget between two host updates.
    Palette and palette_size select the table used by the palette strategy.
    """
    max_iterations: int = 100
    escape_radius_squared: float = 100.0
    super_sample_count: int = 1
    color_strategy: ColorStrategy = ColorStrategy.HSV_SCALED_VALUE
    auto_iterations: bool = True
    update_interval_ms: float = 100.0
    interior_color: Tuple[int, int, int, int] = INTERIOR_COLOR
    palette: str = "Grayscale"
    palette_size: int = 256


@dataclass(frozen=True)
class RenderRequest:
    """
    A single render generation. The viewport is already aspect-corrected for
    the canvas and the parameters already carry the effective iteration budget.
    """
    viewport: Viewport
    parameters: RenderParameters
    generation_id: int
    canvas_width: int
    canvas_height: int


@dataclass(frozen=True)
class RenderProgress:
    generation_id: int
    elapsed_ms: float
    pixels_completed: int

    @property
    def pixels_per_second(self) -> float:
        if self.elapsed_ms <= 0:
            return 0.0
        return self.pixels_completed * 1000.0 / self.elapsed_ms
