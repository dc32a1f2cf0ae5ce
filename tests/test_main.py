import contextlib
import io
import math
import tempfile
import unittest
from pathlib import Path
from typing import List, Tuple

from PIL import Image

from asciiview.animation import AutoRotator
from asciiview.engine import RenderEngine, ViewState
from asciiview.main import _handle_key, _setup_runtime, parse_arguments, run
from asciiview.objects import cube_mesh
from asciiview.ramps import GlyphRamp


def _run(argv: List[str]) -> Tuple[int, str]:
    buffer = io.StringIO()
    with contextlib.redirect_stdout(buffer):
        code = run(argv)
    return code, buffer.getvalue()


class OnceModeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)

    def test_builtin_frame(self) -> None:
        code, output = _run(["--once", "--object", "cube", "--width", "40", "--height", "20", "--rotation", "0", "0"])
        self.assertEqual(code, 0)
        lines = output.rstrip("\n").split("\n")
        self.assertEqual(len(lines), 20)
        self.assertTrue(all(len(line) == 40 for line in lines))
        expected = RenderEngine(40, 20).render(cube_mesh(), ViewState(rotation_x=0.0, rotation_y=0.0))
        self.assertEqual(output, expected + "\n")

    def test_default_grid_size(self) -> None:
        code, output = _run(["--once"])
        self.assertEqual(code, 0)
        lines = output.rstrip("\n").split("\n")
        self.assertEqual(len(lines), 80)
        self.assertEqual(len(lines[0]), 200)

    def test_model_file(self) -> None:
        path = self.root / "tri.obj"
        path.write_text("v -1 -1 0\nv 1 -1 0\nv -1 1 0\nf 1 2 3\n")
        code, output = _run([str(path), "--once", "--width", "30", "--height", "12", "--rotation", "0", "0"])
        self.assertEqual(code, 0)
        self.assertTrue(output.strip())

    def test_bad_model_file(self) -> None:
        path = self.root / "broken.glb"
        path.write_bytes(b"nope")
        with self.assertLogs("asciiview", level="WARNING"):
            code, output = _run([str(path), "--once"])
        self.assertEqual(code, 1)
        self.assertEqual(output, "")

    def test_image_frame(self) -> None:
        path = self.root / "white.png"
        Image.new("RGB", (8, 4), (255, 255, 255)).save(path)
        code, output = _run(["--once", "--image", str(path), "--width", "20", "--height", "10", "--ramp", "classic"])
        self.assertEqual(code, 0)
        self.assertEqual(output, "\n".join(["@" * 20] * 10) + "\n")

    def test_missing_image(self) -> None:
        with self.assertLogs("asciiview", level="WARNING"):
            code, _ = _run(["--once", "--image", str(self.root / "missing.png")])
        self.assertEqual(code, 1)

    def test_invalid_configuration(self) -> None:
        for argv in (["--once", "--fg", "#zzzzzz"], ["--once", "--resolution", "0"], ["--once", "--width", "1"]):
            with self.subTest(argv=argv):
                with self.assertLogs("asciiview", level="ERROR"):
                    code, _ = _run(argv)
                self.assertEqual(code, 2)

    def test_unknown_ramp_is_rejected_by_parser(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                parse_arguments(["--ramp", "sparkles"])


class KeyHandlingTests(unittest.TestCase):
    def _config(self, *extra: str):
        return _setup_runtime(parse_arguments(["--once", "--rotation", "0.5", "0", *extra]))

    def test_quit(self) -> None:
        config = self._config()
        self.assertFalse(_handle_key("q", config, None))
        self.assertTrue(_handle_key("x", config, None))

    def test_ramp_cycles(self) -> None:
        config = self._config("--ramp", "classic")
        _handle_key("r", config, None)
        self.assertIs(config.view.ramp, GlyphRamp.CLASSIC.next())

    def test_zoom_keys(self) -> None:
        config = self._config()
        _handle_key("+", config, None)
        self.assertAlmostEqual(config.view.zoom, 1.1)
        _handle_key("-", config, None)
        self.assertAlmostEqual(config.view.zoom, 0.99)
        self.assertEqual(config.image_view.zoom, config.view.zoom)

    def test_arrows_orbit_mesh(self) -> None:
        config = self._config()
        _handle_key("LEFT", config, None)
        self.assertGreater(config.view.rotation_y, 0.0)
        _handle_key("UP", config, None)
        self.assertAlmostEqual(config.view.rotation_x, 0.5 + math.radians(3.0))

    def test_image_mode_keys(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "img.png"
            Image.new("RGB", (4, 4)).save(path)
            config = self._config("--image", str(path))
        self.assertTrue(config.image_mode)
        _handle_key("RIGHT", config, None)
        _handle_key("UP", config, None)
        _handle_key("d", config, None)
        _handle_key("w", config, None)
        self.assertAlmostEqual(config.image_view.rotation, math.radians(3.0))
        self.assertEqual(config.image_view.offset_z, 1.0)
        self.assertEqual((config.image_view.offset_x, config.image_view.offset_y), (1.0, -1.0))
        self.assertEqual(config.view.rotation_y, 0.0)


class RotationToggleTests(unittest.IsolatedAsyncioTestCase):
    async def test_double_space_in_one_batch_restores_rotation(self) -> None:
        config = _setup_runtime(parse_arguments(["--once"]))
        rotator = AutoRotator(config.view)
        rotator.start()
        for key in (" ", " "):
            _handle_key(key, config, rotator)
        self.assertTrue(rotator.running)
        _handle_key(" ", config, rotator)
        self.assertFalse(rotator.running)
        await rotator.stop()


if __name__ == "__main__":
    unittest.main()
