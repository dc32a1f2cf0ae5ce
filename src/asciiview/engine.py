"""Core math utilities and the glyph rasterizer."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .ramps import DEFAULT_RAMP, GlyphRamp, glyph_index

CAMERA_DISTANCE = 5.0
AMBIENT_FLOOR = 0.1
GAMMA = 1.5
# Monospaced cells are roughly twice as tall as they are wide.
GLYPH_ASPECT = 0.5
MIN_ZOOM = 0.01
MAX_ZOOM = 50.0
DEFAULT_WIDTH = 200
DEFAULT_HEIGHT = 80


@dataclass(frozen=True, slots=True)
class Vec3:
    """Lightweight immutable 3D vector."""

    x: float
    y: float
    z: float

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __truediv__(self, scalar: float) -> "Vec3":
        if scalar == 0:
            raise ZeroDivisionError("Division by zero in Vec3")
        return Vec3(self.x / scalar, self.y / scalar, self.z / scalar)

    def dot(self, other: "Vec3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vec3") -> "Vec3":
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> "Vec3":
        length = self.length()
        if length <= 1e-8:
            return Vec3(0.0, 0.0, 0.0)
        return self / length


Face = Tuple[int, ...]


class Mesh:
    """Named vertex list plus polygonal faces indexing into it.

    A mesh with no vertices can be constructed but is never renderable;
    decoders report that case as a failure instead of returning it.
    """

    def __init__(self, name: str, vertices: Sequence[Vec3], faces: Sequence[Sequence[int]]):
        self._name = name
        self._vertices: Tuple[Vec3, ...] = tuple(vertices)
        self._faces: Tuple[Face, ...] = tuple(tuple(face) for face in faces)

    @property
    def name(self) -> str:
        return self._name

    @property
    def vertices(self) -> Tuple[Vec3, ...]:
        return self._vertices

    @property
    def faces(self) -> Tuple[Face, ...]:
        return self._faces

    @property
    def is_empty(self) -> bool:
        return not self._vertices

    def __repr__(self) -> str:
        return f"Mesh({self._name!r}, vertices={len(self._vertices)}, faces={len(self._faces)})"


@dataclass(slots=True)
class ViewState:
    """Viewing parameters mutated by input and animation between frames."""

    rotation_x: float = 0.3
    rotation_y: float = 0.0
    zoom: float = 1.0
    scale: float = 25.0
    light: Vec3 = Vec3(0.3, 0.5, 1.0)
    light_intensity: float = 1.0
    resolution: float = 1.0
    ramp: GlyphRamp = DEFAULT_RAMP

    @property
    def effective_scale(self) -> float:
        return self.scale * self.zoom

    def orbit(self, d_yaw: float, d_pitch: float) -> None:
        self.rotation_y += d_yaw
        self.rotation_x = max(0.0, min(math.pi, self.rotation_x + d_pitch))

    def zoom_by(self, factor: float) -> None:
        self.zoom = max(MIN_ZOOM, min(MAX_ZOOM, self.zoom * factor))


class FrameBuffer:
    """Glyph grid with a parallel depth grid, rebuilt for every frame."""

    __slots__ = ("width", "height", "glyphs", "depth")

    def __init__(self, width: int, height: int, fill: str = " ") -> None:
        self.width = width
        self.height = height
        self.glyphs: List[List[str]] = [[fill] * width for _ in range(height)]
        self.depth: List[List[float]] = [[-math.inf] * width for _ in range(height)]

    def plot(self, x: int, y: int, depth: float, glyph: str) -> bool:
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return False
        # NaN never compares greater, so it never wins a cell.
        if depth > self.depth[y][x]:
            self.depth[y][x] = depth
            self.glyphs[y][x] = glyph
            return True
        return False

    def rows(self) -> List[str]:
        return ["".join(row) for row in self.glyphs]

    def to_text(self) -> str:
        return "\n".join(self.rows())


@dataclass(frozen=True, slots=True)
class ShadedFace:
    """A visible face ready for scanline fill."""

    index: int
    points: Tuple[Tuple[float, float], ...]
    depth: float
    normal: Vec3
    brightness: float
    glyph: str


# Transform ----------------------------------------------------------------


def rotate_vertex(vertex: Vec3, rx: float, ry: float) -> Vec3:
    """Rotate about X by ``rx`` then about Y by ``ry`` into camera space."""

    cos_rx, sin_rx = math.cos(rx), math.sin(rx)
    y = vertex.y * cos_rx - vertex.z * sin_rx
    z = vertex.y * sin_rx + vertex.z * cos_rx

    cos_ry, sin_ry = math.cos(ry), math.sin(ry)
    x = vertex.x * cos_ry + z * sin_ry
    z = -vertex.x * sin_ry + z * cos_ry
    return Vec3(x, y, z)


def project_vertex(
    vertex: Vec3, width: int, height: int, effective_scale: float
) -> Tuple[float, float, float]:
    """Perspective-project a camera-space vertex to (screen_x, screen_y, z)."""

    denom = CAMERA_DISTANCE + vertex.z
    if denom == 0:
        return (math.nan, math.nan, vertex.z)
    perspective = CAMERA_DISTANCE / denom
    factor = effective_scale * perspective
    screen_x = width / 2 + vertex.x * factor
    screen_y = height / 2 - vertex.y * factor * GLYPH_ASPECT
    return (screen_x, screen_y, vertex.z)


# Rasterization ------------------------------------------------------------


def face_indices(face_count: int, resolution: float) -> range:
    """Indices of the faces processed at ``resolution`` (every floor(1/r)-th face)."""

    if not resolution > 0:
        raise ValueError(f"Resolution must be in (0, 1], got {resolution!r}")
    step = max(1, math.floor(1.0 / resolution))
    return range(0, face_count, step)


def face_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Optional[Vec3]:
    normal = (v1 - v0).cross(v2 - v0)
    length = normal.length()
    if not math.isfinite(length) or length <= 1e-12:
        return None
    return normal / length


def shade_brightness(normal: Vec3, light: Vec3, intensity: float) -> float:
    """Lambert term with a fixed ambient floor, gamma corrected."""

    brightness = max(AMBIENT_FLOOR, min(1.0, normal.dot(light) * intensity + AMBIENT_FLOOR))
    return brightness ** (1.0 / GAMMA)


def fill_polygon(
    frame: FrameBuffer,
    points: Sequence[Tuple[float, float]],
    depth: float,
    glyph: str,
) -> int:
    """Even-odd scanline fill of a projected polygon; returns cells written."""

    if len(points) < 3:
        return 0
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    min_y = max(0, math.floor(min(ys)))
    max_y = min(frame.height - 1, math.ceil(max(ys)))
    min_x = max(0, math.floor(min(xs)))
    max_x = min(frame.width - 1, math.ceil(max(xs)))

    written = 0
    count = len(points)
    for y in range(min_y, max_y + 1):
        intersections: List[float] = []
        for i in range(count):
            x1, y1 = points[i]
            x2, y2 = points[(i + 1) % count]
            if (y1 <= y < y2) or (y2 <= y < y1):
                t = (y - y1) / (y2 - y1)
                intersections.append(x1 + t * (x2 - x1))
        intersections.sort()
        for i in range(0, len(intersections) - 1, 2):
            start = max(min_x, math.ceil(intersections[i]))
            end = min(max_x, math.floor(intersections[i + 1]))
            for x in range(start, end + 1):
                if frame.plot(x, y, depth, glyph):
                    written += 1
    return written


class RenderEngine:
    """Flat-shaded polygon rasterizer producing fixed-size glyph grids."""

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> None:
        if width < 2 or height < 2:
            raise ValueError("RenderEngine requires width and height >= 2")
        self.width = width
        self.height = height

    def project_point(self, vertex: Vec3, view: ViewState) -> Tuple[float, float, float]:
        rotated = rotate_vertex(vertex, view.rotation_x, view.rotation_y)
        return project_vertex(rotated, self.width, self.height, view.effective_scale)

    def transform(
        self, mesh: Mesh, view: ViewState
    ) -> Tuple[List[Vec3], List[Tuple[float, float, float]]]:
        rx, ry = view.rotation_x, view.rotation_y
        scale = view.effective_scale
        rotated = [rotate_vertex(v, rx, ry) for v in mesh.vertices]
        projected = [project_vertex(v, self.width, self.height, scale) for v in rotated]
        return rotated, projected

    def shade_faces(self, mesh: Mesh, view: ViewState) -> List[ShadedFace]:
        """Visible faces of ``mesh`` in back-to-front order."""

        if mesh.is_empty:
            raise ValueError(f"Mesh '{mesh.name}' has no vertices")

        rotated, projected = self.transform(mesh, view)
        vertex_count = len(rotated)
        faces = mesh.faces

        candidates: List[Tuple[float, int]] = []
        for index in face_indices(len(faces), view.resolution):
            face = faces[index]
            if len(face) < 3 or any(vi < 0 or vi >= vertex_count for vi in face):
                continue
            avg_z = sum(rotated[vi].z for vi in face) / len(face)
            if not math.isfinite(avg_z):
                continue
            candidates.append((avg_z, index))
        candidates.sort(key=lambda item: item[0])

        light = view.light.normalized()
        chars = view.ramp.chars
        shaded: List[ShadedFace] = []
        for avg_z, index in candidates:
            face = faces[index]
            normal = face_normal(rotated[face[0]], rotated[face[1]], rotated[face[2]])
            if normal is None or not normal.z > 0:
                continue
            points = tuple((projected[vi][0], projected[vi][1]) for vi in face)
            if not all(math.isfinite(x) and math.isfinite(y) for x, y in points):
                continue
            brightness = shade_brightness(normal, light, view.light_intensity)
            glyph = chars[glyph_index(brightness, len(chars))]
            shaded.append(ShadedFace(index, points, avg_z, normal, brightness, glyph))
        return shaded

    def render_buffer(self, mesh: Mesh, view: ViewState) -> FrameBuffer:
        frame = FrameBuffer(self.width, self.height)
        for face in self.shade_faces(mesh, view):
            fill_polygon(frame, face.points, face.depth, face.glyph)
        return frame

    def render(self, mesh: Mesh, view: ViewState) -> str:
        return self.render_buffer(mesh, view).to_text()
