from dataclasses import dataclass
import numpy as np
from typing import Optional

from fractals.base import RenderProgress


@dataclass(frozen=True)
class FrameEvent:
    data: np.ndarray
    width: int
    height: int
    seq: int        # generation / render sequence number
    progress: RenderProgress

@dataclass(frozen=True)
class RowEvent:
    y: int
    data: np.ndarray
    seq: int            # generation / render sequence number
    frame_w: int
    frame_h: int
    pixels_completed: int

@dataclass(frozen=True)
class LogEvent:
    message: str
    level: Optional[int]
