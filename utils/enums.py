from enum import Enum, auto


class ColorStrategy(Enum):
    HSV_CONSTANT_VALUE = "hsv-constant-value"
    HSV_SCALED_VALUE = "hsv-scaled-value"
    HSV_SCALED_VALUE_BGR = "hsv-scaled-value-bgr"
    GRAYSCALE_LINEAR = "grayscale-linear"
    GRAYSCALE_PALETTE = "grayscale-palette"
    GRAYSCALE_SHADED_INTERIOR = "grayscale-shaded-interior"


class RenderState(Enum):
    IDLE = auto()
    RENDERING = auto()
    COMPLETED = auto()
    ABORTED = auto()


class Tools(Enum):
    Box_zoom = auto()
    Click_zoom = auto()
    Drag = auto()
