import math
import unittest

from asciiview.engine import (
    FrameBuffer,
    Mesh,
    RenderEngine,
    Vec3,
    ViewState,
    face_indices,
    fill_polygon,
    shade_brightness,
)
from asciiview.objects import cube_mesh, diamond_mesh, donut_mesh, pyramid_mesh, star_mesh
from asciiview.ramps import GlyphRamp


def _stacked_triangles(count: int) -> Mesh:
    """``count`` front-facing triangles, each one slightly nearer than the last."""

    vertices = []
    faces = []
    for i in range(count):
        z = i * 0.01
        base = len(vertices)
        vertices.extend([Vec3(-1.0, -1.0, z), Vec3(1.0, -1.0, z), Vec3(-1.0, 1.0, z)])
        faces.append((base, base + 1, base + 2))
    return Mesh("stack", vertices, faces)


class RasterizerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = RenderEngine(200, 80)
        self.front = ViewState(rotation_x=0.0, rotation_y=0.0)

    def test_cube_front_view_is_symmetric(self) -> None:
        frame = self.engine.render_buffer(cube_mesh(), self.front)
        rows = frame.rows()
        self.assertTrue(any(row.strip() for row in rows))
        centre = frame.width // 2
        for row in rows:
            for offset in range(1, centre):
                self.assertEqual(row[centre - offset], row[centre + offset])

    def test_cube_front_view_shows_only_front_face(self) -> None:
        faces = self.engine.shade_faces(cube_mesh(), self.front)
        self.assertEqual([face.index for face in faces], [0])

    def test_render_is_deterministic(self) -> None:
        view = ViewState(rotation_x=0.7, rotation_y=-1.3, zoom=1.4)
        mesh = donut_mesh()
        self.assertEqual(self.engine.render(mesh, view), self.engine.render(mesh, view))

    def test_output_dimensions(self) -> None:
        text = RenderEngine(30, 12).render(pyramid_mesh(), ViewState())
        lines = text.split("\n")
        self.assertEqual(len(lines), 12)
        self.assertTrue(all(len(line) == 30 for line in lines))

    def test_back_faces_never_drawn(self) -> None:
        meshes = [cube_mesh(), pyramid_mesh(), diamond_mesh(), star_mesh(), donut_mesh(major_segments=12, minor_segments=8)]
        for mesh in meshes:
            for step in range(12):
                view = ViewState(rotation_x=step * 0.55, rotation_y=step * 0.9)
                for face in self.engine.shade_faces(mesh, view):
                    self.assertGreater(face.normal.z, 0.0)

    def test_faces_sorted_back_to_front(self) -> None:
        faces = self.engine.shade_faces(_stacked_triangles(6), self.front)
        depths = [face.depth for face in faces]
        self.assertEqual(depths, sorted(depths))

    def test_decimation_indices(self) -> None:
        self.assertEqual(list(face_indices(10, 0.5)), [0, 2, 4, 6, 8])
        self.assertEqual(list(face_indices(10, 1.0)), list(range(10)))
        self.assertEqual(list(face_indices(10, 0.3)), [0, 3, 6, 9])
        with self.assertRaises(ValueError):
            face_indices(10, 0.0)
        with self.assertRaises(ValueError):
            face_indices(10, math.nan)

    def test_decimation_applies_to_render(self) -> None:
        mesh = _stacked_triangles(10)
        view = ViewState(rotation_x=0.0, rotation_y=0.0, resolution=0.5)
        indices = sorted(face.index for face in self.engine.shade_faces(mesh, view))
        self.assertEqual(indices, [0, 2, 4, 6, 8])

        view.resolution = 1.0
        indices = sorted(face.index for face in self.engine.shade_faces(mesh, view))
        self.assertEqual(indices, list(range(10)))

    def test_ambient_floor_at_zero_intensity(self) -> None:
        expected = 0.1 ** (1 / 1.5)
        view = ViewState(rotation_x=0.4, rotation_y=0.8, light_intensity=0.0, ramp=GlyphRamp.CLASSIC)
        faces = self.engine.shade_faces(diamond_mesh(), view)
        self.assertTrue(faces)
        for face in faces:
            self.assertEqual(face.brightness, expected)
        glyph = GlyphRamp.CLASSIC.chars[math.floor(expected * 9)]
        drawn = set(self.engine.render(diamond_mesh(), view)) - {" ", "\n"}
        self.assertEqual(drawn, {glyph})

    def test_brightness_is_clamped_and_gamma_corrected(self) -> None:
        normal = Vec3(0.0, 0.0, 1.0)
        self.assertEqual(shade_brightness(normal, Vec3(0.0, 0.0, 1.0), 5.0), 1.0)
        self.assertAlmostEqual(shade_brightness(normal, Vec3(0.0, 0.0, 1.0), 0.4), 0.5 ** (1 / 1.5))
        self.assertEqual(shade_brightness(normal, Vec3(0.0, 0.0, -1.0), 1.0), 0.1 ** (1 / 1.5))

    def test_zero_light_vector_falls_back_to_ambient(self) -> None:
        view = ViewState(rotation_x=0.0, rotation_y=0.0, light=Vec3(0.0, 0.0, 0.0))
        faces = self.engine.shade_faces(cube_mesh(), view)
        self.assertEqual(faces[0].brightness, 0.1 ** (1 / 1.5))

    def test_nan_vertices_are_skipped(self) -> None:
        vertices = [
            Vec3(math.nan, 0.0, 0.0),
            Vec3(1.0, 0.0, 0.0),
            Vec3(0.0, 1.0, 0.0),
            Vec3(-1.0, -1.0, 0.0),
            Vec3(1.0, -1.0, 0.0),
            Vec3(-1.0, 1.0, 0.0),
        ]
        mesh = Mesh("nan", vertices, [(0, 1, 2), (3, 4, 5)])
        faces = self.engine.shade_faces(mesh, self.front)
        self.assertEqual([face.index for face in faces], [1])
        self.assertTrue(self.engine.render(mesh, self.front).strip())

    def test_degenerate_and_invalid_faces_are_skipped(self) -> None:
        vertices = [Vec3(0.0, 0.0, 0.0), Vec3(1.0, 0.0, 0.0), Vec3(2.0, 0.0, 0.0)]
        mesh = Mesh("flat", vertices, [(0, 1), (0, 1, 2), (0, 1, 7)])
        self.assertEqual(self.engine.shade_faces(mesh, self.front), [])
        self.assertEqual(self.engine.render(mesh, self.front).strip(), "")

    def test_empty_mesh_is_not_renderable(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.render(Mesh("empty", [], []), self.front)

    def test_offscreen_geometry_is_clipped(self) -> None:
        view = ViewState(rotation_x=0.0, rotation_y=0.0, zoom=50.0)
        text = RenderEngine(20, 10).render(cube_mesh(), view)
        lines = text.split("\n")
        self.assertEqual(len(lines), 10)
        self.assertTrue(all(len(line) == 20 for line in lines))


class FillTests(unittest.TestCase):
    def test_square_fill_cells(self) -> None:
        frame = FrameBuffer(10, 10)
        written = fill_polygon(frame, [(2.0, 2.0), (5.0, 2.0), (5.0, 5.0), (2.0, 5.0)], 0.0, "#")
        self.assertEqual(written, 12)
        for y in range(10):
            for x in range(10):
                expected = "#" if 2 <= x <= 5 and 2 <= y <= 4 else " "
                self.assertEqual(frame.glyphs[y][x], expected)

    def test_nearer_depth_wins_regardless_of_order(self) -> None:
        square = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0)]
        first = FrameBuffer(5, 5)
        fill_polygon(first, square, 0.2, "a")
        fill_polygon(first, square, 0.8, "b")

        second = FrameBuffer(5, 5)
        fill_polygon(second, square, 0.8, "b")
        fill_polygon(second, square, 0.2, "a")

        self.assertEqual(first.to_text(), second.to_text())
        self.assertIn("b", first.to_text())
        self.assertNotIn("a", first.to_text())

    def test_depth_tie_keeps_first_writer(self) -> None:
        square = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0)]
        frame = FrameBuffer(5, 5)
        fill_polygon(frame, square, 0.5, "a")
        self.assertEqual(fill_polygon(frame, square, 0.5, "b"), 0)
        self.assertNotIn("b", frame.to_text())

    def test_concave_polygon_uses_even_odd_pairs(self) -> None:
        # A "U" shape: the notch between x=2 and x=4 stays empty above y=2.
        points = [(0.0, 0.0), (2.0, 0.0), (2.0, 3.0), (4.0, 3.0), (4.0, 0.0), (6.0, 0.0), (6.0, 5.0), (0.0, 5.0)]
        frame = FrameBuffer(8, 8)
        fill_polygon(frame, points, 0.0, "#")
        self.assertEqual(frame.glyphs[1][3], " ")
        self.assertEqual(frame.glyphs[1][1], "#")
        self.assertEqual(frame.glyphs[1][5], "#")
        self.assertEqual(frame.glyphs[4][3], "#")

    def test_nan_depth_never_written(self) -> None:
        frame = FrameBuffer(3, 3)
        self.assertFalse(frame.plot(1, 1, math.nan, "#"))
        self.assertFalse(frame.plot(5, 1, 1.0, "#"))
        self.assertEqual(frame.to_text(), "   \n   \n   ")

    def test_fewer_than_three_points_fill_nothing(self) -> None:
        frame = FrameBuffer(3, 3)
        self.assertEqual(fill_polygon(frame, [(0.0, 0.0), (2.0, 2.0)], 0.0, "#"), 0)


if __name__ == "__main__":
    unittest.main()
