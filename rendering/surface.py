from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List

import numpy as np


class RenderSurface(ABC):
    """
    Drawing surface the scheduler publishes into.

    width/height are read live: a change while a render is in flight aborts
    that render at its next row boundary.
    """

    @property
    @abstractmethod
    def width(self) -> int:
        ...

    @property
    @abstractmethod
    def height(self) -> int:
        ...

    @abstractmethod
    def publish_row(self, row_index: int, data: np.ndarray) -> None:
        """data: (width, 4) uint8 RGBA."""
        ...

    @abstractmethod
    def publish_all(self, data: np.ndarray) -> None:
        """data: (height, width, 4) uint8 RGBA."""
        ...

    def publish_indicator(self, row_index: int, data: np.ndarray) -> None:
        """Progress marker on the row about to be computed; overwritten by it."""
        self.publish_row(row_index, data)


class ArraySurface(RenderSurface):
    """
    In-memory surface backed by a numpy array. Records what was published,
    which makes it the headless host for exports and tests.
    """

    def __init__(self, width: int, height: int):
        self._width = int(width)
        self._height = int(height)
        self.pixels = np.zeros((self._height, self._width, 4), dtype=np.uint8)
        self.published_rows: List[int] = []
        self.indicator_rows: List[int] = []
        self.frames_published = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def resize(self, width: int, height: int) -> None:
        self._width = int(width)
        self._height = int(height)
        self.pixels = np.zeros((self._height, self._width, 4), dtype=np.uint8)
        self.published_rows.clear()
        self.indicator_rows.clear()

    def publish_row(self, row_index: int, data: np.ndarray) -> None:
        self.pixels[row_index] = data
        self.published_rows.append(int(row_index))

    def publish_indicator(self, row_index: int, data: np.ndarray) -> None:
        self.pixels[row_index] = data
        self.indicator_rows.append(int(row_index))

    def publish_all(self, data: np.ndarray) -> None:
        self.pixels[...] = data
        self.frames_published += 1
