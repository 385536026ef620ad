import numpy as np


class Framebuffer:
    """
    Row-major RGBA byte buffer (height x width x 4), top row first.
    Owned by exactly one render generation.
    """

    def __init__(self, width: int, height: int, generation_id: int = 0):
        self.width = int(width)
        self.height = int(height)
        self.generation_id = int(generation_id)
        self.data = np.zeros((self.height, self.width, 4), dtype=np.uint8)

    def write_row(self, y: int, row: np.ndarray) -> None:
        if not 0 <= y < self.height:
            raise IndexError(f"Row {y} outside framebuffer of height {self.height}")
        self.data[y] = row

    def row(self, y: int) -> np.ndarray:
        return self.data[y]

    def pixel(self, x: int, y: int):
        return tuple(int(c) for c in self.data[y, x])

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    @property
    def shape(self):
        return self.data.shape
