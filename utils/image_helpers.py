import numpy as np
from PySide6.QtGui import QImage


def ndarray_to_qimage(arr: np.ndarray) -> QImage:
    """
    Convert an (h,w,4) RGBA or (h,w,3) RGB uint8 array into a QImage that
    owns its memory (deep copy).
    """
    arr = np.ascontiguousarray(arr, dtype=np.uint8)
    if arr.ndim == 3 and arr.shape[2] in (3, 4):
        h, w, c = arr.shape
        fmt = QImage.Format.Format_RGBA8888 if c == 4 else QImage.Format.Format_RGB888
        qimg = QImage(arr.data.tobytes(), w, h, c * w, fmt)
        return qimg.copy()

    raise ValueError(f"Unsupported ndarray shape {arr.shape}")


def save_png(arr: np.ndarray, path: str) -> None:
    """Writes an RGBA frame as PNG. Raises OSError when Qt cannot write it."""
    if not ndarray_to_qimage(arr).save(path, "PNG"):
        raise OSError(f"Could not write PNG to {path}")
