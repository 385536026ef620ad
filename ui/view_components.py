from typing import Optional

from PySide6.QtCore import Qt, QPoint, QRect, QTimer, Signal
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QWidget, QSizePolicy

from adapters.qt_render_bridge import QtRenderSurface
from utils.enums import Tools


# ---------- Canvas ----------
class CanvasWidget(QWidget):
    """
    Displays a QtRenderSurface one-to-one and turns mouse input into view
    requests. The surface always has the widget's size; a resize is
    debounced before it reaches the surface so a drag-resize restarts the
    render once.

    Box zoom draws a dashed rectangle while dragging. Drag mode shows the
    current image offset until the button is released.
    """
    box_selected = Signal(float, float, float, float)
    clicked = Signal(float, float, bool)      # x, y, zoom out
    dragged = Signal(float, float)
    surface_resized = Signal(int, int)

    def __init__(self, surface: QtRenderSurface, parent=None):
        super().__init__(parent)
        self.surface = surface
        self.tool = Tools.Box_zoom
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(64, 64)
        self.setMouseTracking(False)

        self._press: Optional[QPoint] = None
        self._current: Optional[QPoint] = None

        self.surface.signals.changed.connect(self._on_rows_changed)

        self._resize_timer = QTimer(self)
        self._resize_timer.setSingleShot(True)
        self._resize_timer.timeout.connect(self._apply_resize)

    # ---------- Painting ----------
    def _on_rows_changed(self, y: int, count: int) -> None:
        self.update(QRect(0, y, self.surface.width, count))

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.GlobalColor.black)
        offset = QPoint(0, 0)
        if self.tool == Tools.Drag and self._press is not None and self._current is not None:
            offset = self._current - self._press
        painter.drawImage(offset, self.surface.to_qimage())

        if self.tool == Tools.Box_zoom and self._press is not None and self._current is not None:
            pen = QPen(QColor(255, 255, 255))
            pen.setStyle(Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.drawRect(QRect(self._press, self._current).normalized())
        painter.end()

    # ---------- Mouse ----------
    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self._press = event.position().toPoint()
            self._current = self._press

    def mouseMoveEvent(self, event):
        if self._press is not None:
            self._current = event.position().toPoint()
            self.update()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton or self._press is None:
            return
        p0, p1 = self._press, event.position().toPoint()
        self._press = self._current = None
        shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)

        if self.tool == Tools.Drag:
            d = p1 - p0
            if d.x() or d.y():
                self.dragged.emit(float(d.x()), float(d.y()))
            self.update()
        elif self.tool == Tools.Box_zoom and not shift:
            self.box_selected.emit(float(p0.x()), float(p0.y()), float(p1.x()), float(p1.y()))
        else:
            self.clicked.emit(float(p1.x()), float(p1.y()), shift)

    # ---------- Resize ----------
    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._resize_timer.start(250)

    def _apply_resize(self):
        w, h = self.width(), self.height()
        if (w, h) != (self.surface.width, self.surface.height):
            self.surface.resize(w, h)
            self.surface_resized.emit(w, h)
