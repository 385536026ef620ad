"""
Benchmark the scanline Mandelbrot renderer headlessly.

Renders the requested view at each resolution and color scheme with the
synchronous (non-yielding) scheduler and reports time and pixel rate.

Usage examples:
  python -m benchmarking.benchmark --res 800x600,1280x720 --samples 1,4 --runs 3

  python -m benchmarking.benchmark --view "zoom=0.01,0.01&lookAt=-0.745,0.11" \
      --schemes hsv-scaled-value,grayscale-palette --png last.png
"""

import csv
import dataclasses
import time
import argparse
import logging
import platform
from typing import List, Tuple, Optional

import numpy as np

from fractals.base import Viewport, RenderParameters
from fractals.validator import ConfigError, ParameterError
from rendering.service import RenderService
from rendering.surface import ArraySurface
from utils.enums import ColorStrategy
from utils.image_helpers import save_png
from utils.units import metric_units
from utils.view_state import (DEFAULT_VIEWPORT, DEFAULT_PARAMETERS, parse_view_hash,
                              parse_color_strategy, load_config, config_from_mapping)

logger = logging.getLogger(__name__)

# --- Helpers -----------------------------------------------------------------

def parse_resolution_list(res_str: str) -> List[Tuple[int, int]]:
    """
    Parse resolutions like "800x600,1280x720".
    """
    if not res_str:
        return [(800, 600), (1280, 720), (1920, 1080)]
    out: List[Tuple[int, int]] = []
    for token in res_str.split(','):
        token = token.strip().lower()
        if not token:
            continue
        try:
            w, h = token.split('x')
            out.append((int(w), int(h)))
        except ValueError as e:
            raise ConfigError(f"Bad resolution {token!r}, expected WxH") from e
    return out

def parse_int_list(text: str) -> List[int]:
    try:
        return [int(t) for t in text.split(',') if t.strip()]
    except ValueError as e:
        raise ConfigError(f"Expected comma separated integers, got {text!r}") from e

def parse_scheme_list(text: str) -> List[ColorStrategy]:
    return [parse_color_strategy(t) for t in text.split(',') if t.strip()]

def hardware_summary() -> str:
    return platform.processor() or platform.machine() or "Unknown CPU"

# --- Benchmark core ----------------------------------------------------------

def run_once(viewport: Viewport, params: RenderParameters,
             width: int, height: int, seed: int = 0) -> Tuple[float, int, np.ndarray]:
    """
    One full synchronous render. Returns (seconds, pixels, frame).
    """
    surface = ArraySurface(width, height)
    service = RenderService(surface, rng=np.random.default_rng(seed))
    t0 = time.perf_counter()
    service.submit(viewport, params)
    t1 = time.perf_counter()
    return t1 - t0, width * height, surface.pixels

def benchmark_combo(viewport: Viewport,
                    params: RenderParameters,
                    width: int,
                    height: int,
                    runs: int,
                    warmup: int = 1) -> Tuple[float, float, np.ndarray]:
    """
    Runs warmups (not timed; the first one also compiles the kernel), then
    'runs' timed renders.
    Returns (avg_time_seconds, pixels_per_second, last_frame).
    """
    for _ in range(max(0, warmup)):
        run_once(viewport, params, min(width, 64), min(height, 64))

    times = []
    frame = None
    pixels = width * height
    for i in range(max(1, runs)):
        elapsed, pixels, frame = run_once(viewport, params, width, height, seed=i)
        times.append(elapsed)

    avg = sum(times) / len(times)
    rate = pixels / avg if avg > 0 else 0.0
    return avg, rate, frame

# --- CLI ---------------------------------------------------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Benchmark the scanline Mandelbrot renderer.")
    p.add_argument("--res", type=str, default="800x600,1280x720",
                   help="Comma separated WxH list")
    p.add_argument("--view", type=str, default=None, help="Shared link fragment for the view")
    p.add_argument("--config", type=str, default=None, help="JSON settings file")
    p.add_argument("--max-iter", type=int, default=None, help="Fixed iteration cap (default: automatic)")
    p.add_argument("--samples", type=str, default="1", help="Comma separated sample counts")
    p.add_argument("--schemes", type=str, default=DEFAULT_PARAMETERS.color_strategy.value,
                   help="Comma separated color schemes")
    p.add_argument("--runs", type=int, default=3)
    p.add_argument("--warmup", type=int, default=1)
    p.add_argument("--csv", type=str, default="benchmark_results.csv")
    p.add_argument("--png", type=str, default=None, help="Save the last rendered frame as PNG")
    p.add_argument("--log-level", type=str, default="WARNING")
    return p

def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        viewport, params = config_from_mapping(load_config(args.config),
                                               DEFAULT_VIEWPORT, DEFAULT_PARAMETERS)
        if args.view:
            viewport, params, _ = parse_view_hash(args.view, viewport, params)
        if args.max_iter is not None:
            params = dataclasses.replace(params, max_iterations=args.max_iter, auto_iterations=False)
        resolutions = parse_resolution_list(args.res)
        sample_counts = parse_int_list(args.samples)
        schemes = parse_scheme_list(args.schemes)
    except (ConfigError, OSError) as e:
        logger.error("%s", e)
        return 2

    cpu_info = hardware_summary()
    print("=== Hardware Summary ===")
    print("CPU:", cpu_info)
    print()

    last_frame: Optional[np.ndarray] = None
    with open(args.csv, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Hardware Summary"])
        writer.writerow(["CPU", cpu_info])
        writer.writerow([])
        writer.writerow(["Resolution", "Scheme", "Samples", "Time (s)", "Pixels/s"])

        for (w, h) in resolutions:
            print(f"=== {w}x{h} ===")
            for scheme in schemes:
                for samples in sample_counts:
                    combo = dataclasses.replace(params, color_strategy=scheme, super_sample_count=samples)
                    label = f"{scheme.value:>22} x{samples}"
                    try:
                        avg, rate, last_frame = benchmark_combo(viewport, combo, w, h,
                                                                args.runs, args.warmup)
                    except ParameterError as e:
                        print(f"{label}  FAIL: {e}")
                        writer.writerow([f"{w}x{h}", scheme.value, samples, "n/a", "n/a"])
                        continue
                    print(f"{label}  avg={avg:.4f}s  {metric_units(rate)} pixels/s")
                    writer.writerow([f"{w}x{h}", scheme.value, samples, f"{avg:.4f}", f"{rate:.0f}"])
            print()

    print(f"Benchmark results saved to {args.csv}")

    if args.png and last_frame is not None:
        try:
            save_png(last_frame, args.png)
        except OSError as e:
            logger.error("%s", e)
            return 1
        print(f"Last frame saved to {args.png}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
