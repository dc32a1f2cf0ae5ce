"""Interactive entry point for the glyph mesh/image viewer."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import math
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .animation import AutoRotator, FramePlayer, Ticker
from .engine import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    MAX_ZOOM,
    MIN_ZOOM,
    RenderEngine,
    Vec3,
    ViewState,
)
from .image import ImageView, RasterImage, load_frames, sample_image
from .loader import MeshSlot
from .objects import BUILTIN_MESHES, builtin_mesh
from .ramps import DEFAULT_RAMP, GlyphRamp
from .terminal import RGB, TerminalController, parse_hex_color

logger = logging.getLogger("asciiview")

ORBIT_STEP = math.radians(3.0)
ZOOM_IN = 1.1
ZOOM_OUT = 0.9
# Image mode only: drag the image by one grid cell.
PAN_KEYS = {"a": (-1.0, 0.0), "d": (1.0, 0.0), "w": (0.0, -1.0), "s": (0.0, 1.0)}


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render meshes and images as text in your terminal")
    parser.add_argument("model", nargs="?", help="OBJ or GLB file to display")
    parser.add_argument(
        "--object",
        type=str,
        default="pyramid",
        choices=sorted(BUILTIN_MESHES),
        help="Built-in mesh shown when no model is given, or while it loads (default: pyramid)",
    )
    parser.add_argument("--image", type=str, help="Still image or animated GIF to display instead of a mesh")
    parser.add_argument("--width", type=int, help="Grid width in characters (default: terminal width)")
    parser.add_argument("--height", type=int, help="Grid height in characters (default: terminal height)")
    parser.add_argument("--scale", type=float, default=25.0, help="Uniform scale (default: 25)")
    parser.add_argument(
        "--zoom",
        type=float,
        default=1.0,
        help=f"Zoom factor in [{MIN_ZOOM}, {MAX_ZOOM}] (default: 1)",
    )
    parser.add_argument(
        "--resolution",
        type=float,
        default=1.0,
        help="Fraction of faces to draw, in (0, 1] (default: 1)",
    )
    parser.add_argument(
        "--rotation",
        type=float,
        nargs=2,
        metavar=("RX", "RY"),
        default=(0.3, 0.0),
        help="Initial pitch and yaw in radians",
    )
    parser.add_argument(
        "--light",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=(0.3, 0.5, 1.0),
        help="Directional light vector components",
    )
    parser.add_argument("--intensity", type=float, default=1.0, help="Light intensity (default: 1)")
    parser.add_argument(
        "--ramp",
        type=str,
        default=DEFAULT_RAMP.value,
        choices=[ramp.value for ramp in GlyphRamp],
        help=f"Glyph ramp (default: {DEFAULT_RAMP.value})",
    )
    parser.add_argument("--fg", type=str, default="#ffffff", help="Foreground colour (default: #ffffff)")
    parser.add_argument("--bg", type=str, default="#ff6600", help="Background colour (default: #ff6600)")
    parser.add_argument("--fps", type=float, default=20.0, help="Target frames per second (default: 20)")
    parser.add_argument(
        "--frames",
        type=int,
        default=0,
        help="Run for a fixed number of frames (0 = infinite)",
    )
    parser.add_argument("--no-auto-rotate", action="store_true", help="Start with auto-rotation disabled")
    parser.add_argument("--once", action="store_true", help="Print a single plain-text frame and exit")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity on stderr (default: WARNING)",
    )
    return parser.parse_args(argv)


@dataclass
class RuntimeConfig:
    width: int
    height: int
    view: ViewState
    slot: MeshSlot
    model_path: Optional[Path]
    frames: List[RasterImage]
    image_view: ImageView
    foreground: RGB
    background: RGB
    frame_duration: float
    frame_limit: int
    auto_rotate: bool
    warnings: List[str] = field(default_factory=list)

    @property
    def image_mode(self) -> bool:
        return bool(self.frames)


def _grid_size(args: argparse.Namespace) -> tuple[int, int]:
    if args.once:
        fallback = (DEFAULT_WIDTH, DEFAULT_HEIGHT)
    else:
        columns, lines = TerminalController().size_tuple()
        fallback = (columns, max(2, lines - 1))
    width = args.width if args.width is not None else fallback[0]
    height = args.height if args.height is not None else fallback[1]
    if width < 2 or height < 2:
        raise ValueError("Grid width and height must be at least 2")
    return width, height


def _setup_runtime(args: argparse.Namespace) -> RuntimeConfig:
    if not 0.0 < args.resolution <= 1.0:
        raise ValueError(f"--resolution must be in (0, 1], got {args.resolution}")
    width, height = _grid_size(args)

    view = ViewState(
        rotation_x=args.rotation[0],
        rotation_y=args.rotation[1],
        zoom=max(MIN_ZOOM, min(MAX_ZOOM, args.zoom)),
        scale=args.scale,
        light=Vec3(*args.light),
        light_intensity=args.intensity,
        resolution=args.resolution,
        ramp=GlyphRamp.from_name(args.ramp),
    )

    warnings: List[str] = []
    frames: List[RasterImage] = []
    if args.image:
        try:
            frames = load_frames(args.image)
        except OSError as exc:
            warnings.append(f"Could not read image '{args.image}': {exc}")

    return RuntimeConfig(
        width=width,
        height=height,
        view=view,
        slot=MeshSlot(builtin_mesh(args.object)),
        model_path=Path(args.model) if args.model else None,
        frames=frames,
        image_view=ImageView(zoom=view.zoom),
        foreground=parse_hex_color(args.fg),
        background=parse_hex_color(args.bg),
        frame_duration=1.0 / max(1.0, args.fps),
        frame_limit=max(0, args.frames),
        auto_rotate=not args.no_auto_rotate,
        warnings=warnings,
    )


def render_frame(engine: RenderEngine, config: RuntimeConfig, frame_index: int = 0) -> str:
    if config.image_mode:
        return sample_image(
            config.frames[frame_index % len(config.frames)],
            engine.width,
            engine.height,
            config.image_view,
            config.view.ramp,
            config.background,
        )
    return engine.render(config.slot.mesh, config.view)


def _handle_key(key: str, config: RuntimeConfig, rotator: Ticker) -> bool:
    """Apply one key press; returns False when the viewer should quit."""

    view = config.view
    image_view = config.image_view
    if key in ("q", "Q"):
        return False
    if key == "r":
        view.ramp = view.ramp.next()
    elif key in ("+", "="):
        view.zoom_by(ZOOM_IN)
        image_view.zoom = view.zoom
    elif key == "-":
        view.zoom_by(ZOOM_OUT)
        image_view.zoom = view.zoom
    elif key == " " and not config.image_mode:
        if rotator.running:
            rotator.cancel()
        else:
            rotator.start()
    elif config.image_mode:
        if key == "LEFT":
            image_view.rotation -= ORBIT_STEP
        elif key == "RIGHT":
            image_view.rotation += ORBIT_STEP
        elif key == "UP":
            image_view.offset_z += 1.0
        elif key == "DOWN":
            image_view.offset_z -= 1.0
        elif key in PAN_KEYS:
            dx, dy = PAN_KEYS[key]
            image_view.offset_x += dx
            image_view.offset_y += dy
    elif key == "LEFT":
        view.orbit(ORBIT_STEP, 0.0)
    elif key == "RIGHT":
        view.orbit(-ORBIT_STEP, 0.0)
    elif key == "UP":
        view.orbit(0.0, ORBIT_STEP)
    elif key == "DOWN":
        view.orbit(0.0, -ORBIT_STEP)
    return True


async def _run_loop(config: RuntimeConfig) -> None:
    engine = RenderEngine(config.width, config.height)
    rotator = AutoRotator(config.view)
    player = FramePlayer(len(config.frames)) if config.image_mode else None
    load_task: Optional[asyncio.Task] = None

    with ThreadPoolExecutor(max_workers=1) as executor, TerminalController(
        foreground=config.foreground, background=config.background
    ) as terminal:
        if config.model_path is not None and not config.image_mode:
            load_task = asyncio.create_task(config.slot.load_async(config.model_path, executor=executor))
        if player is not None:
            player.start()
        elif config.auto_rotate:
            rotator.start()

        frame_counter = 0
        try:
            while True:
                frame_start = time.perf_counter()
                if not all(_handle_key(key, config, rotator) for key in terminal.poll_keys()):
                    break

                terminal.draw(render_frame(engine, config, player.index if player else 0))

                frame_counter += 1
                if config.frame_limit and frame_counter >= config.frame_limit:
                    break

                sleep_time = config.frame_duration - (time.perf_counter() - frame_start)
                await asyncio.sleep(max(0.0, sleep_time))
        finally:
            await rotator.stop()
            if player is not None:
                await player.stop()
            if load_task is not None and not load_task.done():
                load_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await load_task


def _emit_warnings(warnings: Sequence[str]) -> None:
    for warning in warnings:
        logger.warning(warning)


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        config = _setup_runtime(args)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2
    _emit_warnings(config.warnings)
    if args.image and not config.image_mode:
        return 1

    if args.once:
        if config.model_path is not None and not config.image_mode:
            if config.slot.load(config.model_path) is not None:
                return 1
        engine = RenderEngine(config.width, config.height)
        sys.stdout.write(render_frame(engine, config) + "\n")
        sys.stdout.flush()
        return 0

    try:
        asyncio.run(_run_loop(config))
    except KeyboardInterrupt:  # pragma: no cover - interactive loop
        sys.stdout.write("\nInterrupted. Bye!\n")
        sys.stdout.flush()
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
