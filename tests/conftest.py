import numpy as np
import pytest

from fractals.base import Viewport, RenderParameters
from rendering.host import CooperativeLoop
from rendering.surface import ArraySurface
from utils.enums import ColorStrategy


class FakeClock:
    """Advances by `step` seconds on every call."""

    def __init__(self, step: float = 0.0):
        self.step = step
        self.calls = 0

    def __call__(self) -> float:
        t = self.calls * self.step
        self.calls += 1
        return t


@pytest.fixture
def home_viewport():
    return Viewport(-0.6, 0.0, 3.4, 3.4)


@pytest.fixture
def fixed_params():
    return RenderParameters(max_iterations=100, escape_radius_squared=100.0,
                            super_sample_count=1, color_strategy=ColorStrategy.HSV_SCALED_VALUE,
                            auto_iterations=False)


@pytest.fixture
def loop():
    return CooperativeLoop()


@pytest.fixture
def surface():
    return ArraySurface(32, 24)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
