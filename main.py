import argparse
import logging
import sys

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from fractals.validator import ConfigError
from ui.view import FractalViewer
from utils.view_state import load_config, config_from_mapping, parse_view_hash


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Interactive Mandelbrot viewer")
    ap.add_argument("--config", type=str, default=None, help="JSON file with view and render settings")
    ap.add_argument("--view", type=str, default=None,
                    help="Shared link fragment, e.g. 'zoom=3.4,3.4&lookAt=-0.6,0'")
    ap.add_argument("--log-level", type=str, default="INFO")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        viewport, params = config_from_mapping(load_config(args.config))
        if args.view:
            viewport, params, _ = parse_view_hash(args.view, viewport, params)
    except (ConfigError, OSError) as e:
        logging.getLogger(__name__).error("%s", e)
        return 2

    app = QApplication(sys.argv[:1])
    viewer = FractalViewer(viewport, params)
    viewer.show()
    QTimer.singleShot(0, viewer.render_fractal)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
