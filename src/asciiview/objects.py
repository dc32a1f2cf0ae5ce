"""Predefined mesh helpers."""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Tuple

from .engine import Mesh, Vec3


def cube_mesh(size: float = 2.0) -> Mesh:
    """Return a cube of quads centred at the origin."""

    half = size / 2.0
    vertices = [
        Vec3(-half, -half, -half),
        Vec3(half, -half, -half),
        Vec3(half, half, -half),
        Vec3(-half, half, -half),
        Vec3(-half, -half, half),
        Vec3(half, -half, half),
        Vec3(half, half, half),
        Vec3(-half, half, half),
    ]
    faces = [
        (0, 1, 2, 3),  # front
        (4, 7, 6, 5),  # back
        (0, 4, 5, 1),  # bottom
        (2, 6, 7, 3),  # top
        (0, 3, 7, 4),  # left
        (1, 5, 6, 2),  # right
    ]
    return Mesh("Cube", vertices, faces)


def pyramid_mesh() -> Mesh:
    """Square-based pyramid with its apex on +Y."""

    vertices = [
        Vec3(0.0, 1.0, 0.0),
        Vec3(-1.0, -1.0, -1.0),
        Vec3(1.0, -1.0, -1.0),
        Vec3(1.0, -1.0, 1.0),
        Vec3(-1.0, -1.0, 1.0),
    ]
    faces = [(0, 1, 2), (0, 2, 3), (0, 3, 4), (0, 4, 1), (1, 2, 3, 4)]
    return Mesh("Pyramid", vertices, faces)


def diamond_mesh() -> Mesh:
    vertices = [
        Vec3(0.0, 1.5, 0.0),
        Vec3(1.0, 0.0, 0.0),
        Vec3(0.0, 0.0, 1.0),
        Vec3(-1.0, 0.0, 0.0),
        Vec3(0.0, 0.0, -1.0),
        Vec3(0.0, -1.5, 0.0),
    ]
    faces = [
        (0, 1, 2), (0, 2, 3), (0, 3, 4), (0, 4, 1),
        (5, 2, 1), (5, 3, 2), (5, 4, 3), (5, 1, 4),
    ]
    return Mesh("Diamond", vertices, faces)


def donut_mesh(
    *,
    major_radius: float = 1.0,
    minor_radius: float = 0.4,
    major_segments: int = 32,
    minor_segments: int = 20,
) -> Mesh:
    """Return a torus lying in the XY plane, built from quads.

    The seam rows are duplicated rather than welded, so the vertex count is
    ``(major_segments + 1) * (minor_segments + 1)``.
    """

    major_segments = max(3, major_segments)
    minor_segments = max(3, minor_segments)

    vertices: List[Vec3] = []
    for i in range(major_segments + 1):
        u = (i / major_segments) * math.tau
        for j in range(minor_segments + 1):
            v = (j / minor_segments) * math.tau
            ring = major_radius + minor_radius * math.cos(v)
            vertices.append(Vec3(ring * math.cos(u), ring * math.sin(u), minor_radius * math.sin(v)))

    faces: List[Tuple[int, ...]] = []
    for i in range(major_segments):
        for j in range(minor_segments):
            a = i * (minor_segments + 1) + j
            b = a + minor_segments + 1
            faces.append((a, b, b + 1, a + 1))
    return Mesh("Donut", vertices, faces)


def star_mesh(points: int = 5, outer_radius: float = 1.0, inner_radius: float = 0.5) -> Mesh:
    """Return a double-sided star bipyramid with ``points`` tips."""

    vertices: List[Vec3] = [Vec3(0.0, 1.2, 0.0), Vec3(0.0, -1.2, 0.0)]
    rim = points * 2
    for i in range(rim):
        angle = (i / rim) * math.tau
        radius = outer_radius if i % 2 == 0 else inner_radius
        vertices.append(Vec3(radius * math.cos(angle), 0.0, radius * math.sin(angle)))

    faces: List[Tuple[int, ...]] = []
    for i in range(points):
        outer1 = 2 + i * 2
        inner = 2 + (i * 2 + 1) % rim
        outer2 = 2 + ((i + 1) * 2) % rim
        faces.append((0, outer1, inner))
        faces.append((1, inner, outer1))
        faces.append((0, inner, outer2))
        faces.append((1, outer2, inner))
    return Mesh("Star", vertices, faces)


BUILTIN_MESHES: Dict[str, Callable[[], Mesh]] = {
    "cube": cube_mesh,
    "pyramid": pyramid_mesh,
    "diamond": diamond_mesh,
    "donut": donut_mesh,
    "star": star_mesh,
}


def builtin_mesh(name: str) -> Mesh:
    try:
        factory = BUILTIN_MESHES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown mesh '{name}'") from exc
    return factory()
