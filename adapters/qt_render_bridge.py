import numpy as np
from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtGui import QImage

from api.render_api import RenderAPI
from fractals.base import RenderProgress
from rendering.events import FrameEvent, RowEvent, LogEvent
from rendering.surface import RenderSurface
from utils.image_helpers import ndarray_to_qimage


def qt_yield(resume) -> None:
    """Yield hook: continue the render on the next event loop turn."""
    QTimer.singleShot(0, resume)


class SurfaceSignals(QObject):
    changed = Signal(int, int)      # first row, row count
    resized = Signal(int, int)


class QtRenderSurface(RenderSurface):
    """
    RGBA canvas backing the display widget. Rows land in a numpy buffer;
    signals.changed tells the widget which rows to repaint.
    """

    def __init__(self, width: int, height: int, parent=None):
        self.signals = SurfaceSignals(parent)
        self._pixels = np.zeros((int(height), int(width), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def resize(self, width: int, height: int) -> None:
        width, height = max(1, int(width)), max(1, int(height))
        if (width, height) == (self.width, self.height):
            return
        self._pixels = np.zeros((height, width, 4), dtype=np.uint8)
        self.signals.resized.emit(width, height)

    def publish_row(self, y: int, data: np.ndarray) -> None:
        self._pixels[y] = data
        self.signals.changed.emit(y, 1)

    def publish_all(self, data: np.ndarray) -> None:
        self._pixels[...] = data
        self.signals.changed.emit(0, self.height)

    def to_qimage(self) -> QImage:
        return ndarray_to_qimage(self._pixels)


class QtRenderBridge(QObject):
    """
    Thin adapter that converts service events to Qt signals for the UI.
    """
    image_updated = Signal(QImage, int, int)
    row_ready = Signal(int, int, int)           # seq, y, pixels completed
    progress = Signal(int, float, int)          # seq, elapsed ms, pixels completed
    log_text = Signal(str)

    def __init__(self, api: RenderAPI, parent=None):
        super().__init__(parent)
        self.api = api

        # Subscribe to API events with conversions
        self.api.on_frame(self._on_frame)
        self.api.on_row(self._on_row)
        self.api.on_progress(self._on_progress)
        self.api.on_log(self._on_log)

    # --------- Conversions ---------------------
    def _on_frame(self, evt: FrameEvent) -> None:
        qimg = ndarray_to_qimage(evt.data)
        self.image_updated.emit(qimg, evt.width, evt.height)

    def _on_row(self, evt: RowEvent) -> None:
        self.row_ready.emit(int(evt.seq), int(evt.y), int(evt.pixels_completed))

    def _on_progress(self, p: RenderProgress) -> None:
        self.progress.emit(int(p.generation_id), float(p.elapsed_ms), int(p.pixels_completed))

    def _on_log(self, evt: LogEvent) -> None:
        self.log_text.emit(evt.message)
