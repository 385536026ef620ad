import logging
from datetime import datetime

from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QTextCursor
from PySide6.QtWidgets import (
    QMainWindow, QLabel, QVBoxLayout, QWidget, QPushButton, QComboBox,
    QFileDialog, QHBoxLayout, QDockWidget, QTabWidget, QFormLayout, QLineEdit,
    QRadioButton, QButtonGroup, QCheckBox, QPlainTextEdit
)

from adapters.qt_render_bridge import QtRenderBridge, QtRenderSurface, qt_yield
from api.render_api import RenderAPI
from coloring.palettes import list_palettes, PALETTE_SIZES
from fractals.base import Viewport, RenderParameters
from fractals.validator import ParameterError, ConfigError
from rendering.service import RenderService
from ui.view_components import CanvasWidget
from utils.enums import ColorStrategy, Tools
from utils.image_helpers import save_png
from utils.navigation import zoom_to_box, zoom_at, pan_by_pixels, reset_view
from utils.units import metric_units
from utils.view_state import (DEFAULT_VIEWPORT, DEFAULT_PARAMETERS, escape_radius,
                              format_view_hash, parse_view_hash, format_view_info)

logger = logging.getLogger(__name__)


# =============================================================================
# Main Window
# =============================================================================
class FractalViewer(QMainWindow):
    # ---------- Construction & UI wiring ----------
    def __init__(self, viewport: Viewport = DEFAULT_VIEWPORT,
                 params: RenderParameters = DEFAULT_PARAMETERS):
        super().__init__()
        self.setWindowTitle("Mandelbrot Viewer")
        self.setGeometry(100, 100, 1280, 800)

        # Render pipeline: surface -> service -> api -> Qt bridge
        self.surface = QtRenderSurface(800, 600, parent=self)
        self.service = RenderService(self.surface, yield_hook=qt_yield)
        self.api = RenderAPI(self.service, viewport, params)
        self.bridge = QtRenderBridge(self.api, parent=self)
        self.bridge.image_updated.connect(self.update_image)
        self.bridge.progress.connect(self._on_progress)
        self.bridge.log_text.connect(self.log)

        self.canvas = CanvasWidget(self.surface, parent=self)
        self.canvas.box_selected.connect(self._on_box)
        self.canvas.clicked.connect(self._on_click)
        self.canvas.dragged.connect(self._on_drag)
        self.canvas.surface_resized.connect(lambda w, h: self.render_fractal())

        self.stats_label = QLabel("Idle")
        self.stats_label.setStyleSheet("color: #AAB; padding: 2px;")
        self.info_label = QLabel("")
        self.info_label.setStyleSheet("color: #AAB; padding: 2px; font-size: 10px;")
        self.info_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)

        self._build_ui()
        self._update_fields()

    def _build_ui(self):
        # ----- Central layout -----
        layout = QVBoxLayout()
        layout.setContentsMargins(16, 8, 12, 8)
        layout.addWidget(self.canvas, 1)
        layout.addWidget(self.info_label)

        tools = QHBoxLayout()
        self.tool_group = QButtonGroup(self)
        for tool, label in ((Tools.Box_zoom, "Box zoom"), (Tools.Click_zoom, "Click zoom"), (Tools.Drag, "Drag")):
            btn = QRadioButton(label)
            btn.setChecked(tool == self.canvas.tool)
            btn.toggled.connect(lambda checked, t=tool: checked and self.set_tools(t))
            self.tool_group.addButton(btn)
            tools.addWidget(btn)
        tools.addStretch(1)
        layout.addLayout(tools)

        controls = QHBoxLayout()
        reset_button = QPushButton("Reset View")
        reset_button.clicked.connect(self.reset_view)
        stop_button = QPushButton("Stop")
        stop_button.clicked.connect(self.stop_render)
        save_button = QPushButton("Save Image")
        save_button.clicked.connect(self.save_image)
        for b in (reset_button, stop_button, save_button):
            controls.addWidget(b)
        layout.addLayout(controls)

        container = QWidget()
        container.setLayout(layout)
        self.setCentralWidget(container)

        # ----- Side dock: Controls -----
        self.side_menu = QDockWidget("Controls", self)
        self.side_menu.setAllowedAreas(Qt.DockWidgetArea.RightDockWidgetArea)
        self.side_menu.setFeatures(QDockWidget.DockWidgetFeature.NoDockWidgetFeatures)
        tabs = QTabWidget()
        self.side_menu.setWidget(tabs)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.side_menu)

        # Render tab
        render_tab = QWidget()
        render_layout = QFormLayout()

        self.auto_iter_check = QCheckBox("Automatic iterations")
        render_layout.addRow(self.auto_iter_check)
        self.iter_input = QComboBox()
        self.iter_input.setEditable(True)
        self.iter_input.addItems(["100", "200", "500", "1000", "2000", "5000"])
        render_layout.addRow("Max Iterations: ", self.iter_input)

        self.samples_input = QComboBox()
        self.samples_input.addItems(["1", "2", "4", "8", "16"])
        render_layout.addRow("Samples: ", self.samples_input)

        self.radius_input = QLineEdit()
        render_layout.addRow("Escape radius: ", self.radius_input)

        self.interval_input = QLineEdit()
        render_layout.addRow("Update interval (ms): ", self.interval_input)

        apply_render_btn = QPushButton("Apply")
        apply_render_btn.clicked.connect(self.apply_render_settings)
        render_layout.addRow(apply_render_btn)
        render_tab.setLayout(render_layout)

        # Color tab
        color_tab = QWidget()
        color_layout = QFormLayout()
        self.strategy_input = QComboBox()
        self.strategy_input.addItems([s.value for s in ColorStrategy])
        self.strategy_input.currentTextChanged.connect(self.change_strategy)
        color_layout.addRow("Color scheme: ", self.strategy_input)

        self.palette_input = QComboBox()
        self.palette_input.addItems(list_palettes())
        self.palette_input.currentTextChanged.connect(self.change_palette)
        color_layout.addRow("Palette: ", self.palette_input)

        self.palette_size_input = QComboBox()
        self.palette_size_input.addItems([str(s) for s in PALETTE_SIZES])
        self.palette_size_input.currentTextChanged.connect(self.change_palette)
        color_layout.addRow("Palette size: ", self.palette_size_input)
        color_tab.setLayout(color_layout)

        # View tab
        view_tab = QWidget()
        view_layout = QFormLayout()
        self.center_x_input = QLineEdit()
        self.center_y_input = QLineEdit()
        self.span_x_input = QLineEdit()
        self.span_y_input = QLineEdit()
        view_layout.addRow("Center X: ", self.center_x_input)
        view_layout.addRow("Center Y: ", self.center_y_input)
        view_layout.addRow("Span X: ", self.span_x_input)
        view_layout.addRow("Span Y: ", self.span_y_input)
        apply_view_btn = QPushButton("Apply")
        apply_view_btn.clicked.connect(self.apply_view_settings)
        view_layout.addRow(apply_view_btn)

        self.hash_input = QLineEdit()
        view_layout.addRow("Link: ", self.hash_input)
        load_hash_btn = QPushButton("Load link")
        load_hash_btn.clicked.connect(self.apply_view_hash)
        view_layout.addRow(load_hash_btn)
        view_tab.setLayout(view_layout)

        tabs.addTab(render_tab, "Render")
        tabs.addTab(color_tab, "Color")
        tabs.addTab(view_tab, "View")

        # Log dock
        self.log_dock = QDockWidget("Log", self)
        self.log_dock.setAllowedAreas(Qt.DockWidgetArea.RightDockWidgetArea)
        self.log_dock.setFeatures(QDockWidget.DockWidgetFeature.NoDockWidgetFeatures)
        self.log_view = QPlainTextEdit(self)
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumBlockCount(5000)
        self.log_view.setStyleSheet(
            "background: #0f0f10; color: #cfd2d6; font-family: Consolas, monospace; font-size: 11px;"
        )
        log_container = QWidget(self)
        log_v = QVBoxLayout(log_container)
        log_v.setContentsMargins(6, 6, 6, 6)
        log_controls = QHBoxLayout()
        btn_clear = QPushButton("Clear")
        btn_clear.clicked.connect(lambda: self.log_view.clear())
        self.log_autoscroll_chk = QCheckBox("Auto-scroll")
        self.log_autoscroll_chk.setChecked(True)
        log_controls.addWidget(btn_clear)
        log_controls.addStretch(1)
        log_controls.addWidget(self.log_autoscroll_chk)
        log_v.addLayout(log_controls)
        log_v.addWidget(self.log_view)
        log_v.addWidget(self.stats_label)
        self.log_dock.setWidget(log_container)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.log_dock)
        self.splitDockWidget(self.side_menu, self.log_dock, Qt.Orientation.Vertical)

    # ---------- Setting handlers ----------
    def change_strategy(self, name):
        self.api.configure().strategy(ColorStrategy(name)).apply()
        self.log(f"Set color scheme to {name}.")
        self.render_fractal()

    def change_palette(self, _=None):
        name = self.palette_input.currentText()
        size = int(self.palette_size_input.currentText())
        self.api.configure().palette(name, size).apply()
        if self.api.params.color_strategy == ColorStrategy.GRAYSCALE_PALETTE:
            self.log(f"Set palette to {name} ({size}).")
            self.render_fractal()

    def apply_render_settings(self):
        try:
            builder = self.api.configure()
            if self.auto_iter_check.isChecked():
                builder.auto_iterations(True)
            else:
                builder.max_iter(int(self.iter_input.currentText()))
            builder.samples(int(self.samples_input.currentText()))
            builder.escape_radius(float(self.radius_input.text()))
            builder.update_interval(float(self.interval_input.text()))
        except ValueError as e:
            self.log(f"Invalid render settings: {e}")
            return
        builder.apply()
        self.render_fractal()

    def apply_view_settings(self):
        try:
            self.api.set_view(float(self.center_x_input.text()), float(self.center_y_input.text()),
                              float(self.span_x_input.text()), float(self.span_y_input.text()))
        except ValueError as e:
            self.log(f"Error in view inputs: {e}")
            return
        self.render_fractal()

    def apply_view_hash(self):
        try:
            viewport, params, changed = parse_view_hash(self.hash_input.text(),
                                                        self.api.viewport, self.api.params)
        except ConfigError as e:
            self.log(f"Invalid link: {e}")
            return
        if changed:
            self.api.viewport, self.api.params = viewport, params
            self.render_fractal()

    # ---------- Rendering ----------
    def render_fractal(self):
        try:
            request = self.api.start_render()
        except ParameterError as e:
            self.log(str(e))
            return
        self.info_label.setText(format_view_info(request.viewport, request.canvas_width,
                                                 request.canvas_height))
        self._update_fields()
        iters, auto = self.api.effective_iterations()
        self.log(f"Rendering {request.canvas_width}x{request.canvas_height}, "
                 f"{iters} iterations{' (auto)' if auto else ''}, "
                 f"{request.parameters.super_sample_count} samples.")

    def stop_render(self):
        self.api.stop_render()
        self.stats_label.setText("Stopped")

    def update_image(self, image: QImage, render_w: int, render_h: int):
        self.stats_label.setText(f"Done ({render_w}x{render_h})")

    def _on_progress(self, gen: int, elapsed_ms: float, pixels: int):
        total = self.surface.width * self.surface.height
        rate = pixels / (elapsed_ms / 1000.0) if elapsed_ms > 0 else 0.0
        self.stats_label.setText(f"{pixels * 100 // max(1, total)}%  {metric_units(rate)} pixels/s")

    # ---------- Navigation ----------
    def _on_box(self, x0, y0, x1, y1):
        self.api.viewport = zoom_to_box(self.api.viewport, self.surface.width, self.surface.height,
                                        x0, y0, x1, y1)
        self.render_fractal()

    def _on_click(self, x, y, zoom_out):
        self.api.viewport = zoom_at(self.api.viewport, self.surface.width, self.surface.height,
                                    x, y, zoom_out=zoom_out)
        self.render_fractal()

    def _on_drag(self, dx, dy):
        self.api.viewport = pan_by_pixels(self.api.viewport, self.surface.width, self.surface.height,
                                          dx, dy)
        self.render_fractal()

    def reset_view(self):
        self.api.viewport = reset_view()
        self.render_fractal()

    # ---------- Utilities ----------
    def save_image(self):
        frame = self.service.last_frame
        if frame is None:
            self.log("Nothing to save yet.")
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Image",
            f"mandelbrot_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png",
            "PNG Files (*.png)"
        )
        if path:
            try:
                save_png(frame.data, path)
            except OSError as e:
                self.log(str(e))
                return
            self.log(f"Saved {frame.width}x{frame.height} image to {path}.")

    def _update_fields(self):
        v, p = self.api.viewport, self.api.params
        self.center_x_input.setText(repr(v.center_x))
        self.center_y_input.setText(repr(v.center_y))
        self.span_x_input.setText(repr(v.span_x))
        self.span_y_input.setText(repr(v.span_y))
        self.auto_iter_check.setChecked(p.auto_iterations)
        self.iter_input.setCurrentText(str(self.api.effective_iterations()[0]))
        self.samples_input.setCurrentText(str(p.super_sample_count))
        self.radius_input.setText(f"{escape_radius(p):g}")
        self.interval_input.setText(f"{p.update_interval_ms:g}")
        for combo, text in ((self.strategy_input, p.color_strategy.value),
                            (self.palette_input, p.palette),
                            (self.palette_size_input, str(p.palette_size))):
            combo.blockSignals(True)
            combo.setCurrentText(text)
            combo.blockSignals(False)
        last = self.service.last_request
        if last is None:
            self.hash_input.setText(format_view_hash(v, p))
        else:
            self.hash_input.setText(format_view_hash(last.viewport, last.parameters))

    def set_tools(self, tool):
        self.canvas.tool = tool
        self.log(f"Selected tool {tool.name}.")

    def log(self, msg: str):
        logger.info(msg)
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        self.log_view.appendPlainText(f"[{timestamp}] {msg}")
        if self.log_autoscroll_chk.isChecked():
            self.log_view.moveCursor(QTextCursor.MoveOperation.End)

    # ---------- Qt events ----------
    def closeEvent(self, event):
        self.api.stop_render()
        event.accept()
