"""Wavefront OBJ text decoding and encoding (geometry only)."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

from .engine import Mesh, Vec3
from .errors import EmptyResult

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Uploaded Model"


def _parse_float(token: str) -> float:
    try:
        return float(token)
    except ValueError:
        return math.nan


def _parse_index(token: str, seen_vertices: int) -> Optional[int]:
    head = token.split("/", 1)[0]
    try:
        value = int(head)
    except ValueError:
        return None
    if value < 0:
        # Negative indices count back from the most recent vertex.
        return seen_vertices + value
    return value - 1


def parse_obj(text: str, name: str = DEFAULT_NAME) -> Mesh:
    """Decode OBJ ``v``/``f`` records into a :class:`Mesh`.

    Unparseable coordinates become NaN instead of aborting the parse.
    Faces with fewer than three usable indices, or referencing vertices
    that do not exist, are dropped.

    Raises:
        EmptyResult: when no vertex records were found.
    """

    vertices: List[Vec3] = []
    faces: List[Tuple[int, ...]] = []
    rejected = 0

    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        keyword = parts[0]
        if keyword == "v":
            coords = [_parse_float(token) for token in parts[1:4]]
            coords += [math.nan] * (3 - len(coords))
            vertices.append(Vec3(*coords))
        elif keyword == "f":
            indices = [_parse_index(token, len(vertices)) for token in parts[1:]]
            if len(indices) < 3 or any(idx is None for idx in indices):
                rejected += 1
                continue
            faces.append(tuple(indices))  # type: ignore[arg-type]

    if not vertices:
        raise EmptyResult("OBJ data contains no vertices")

    vertex_count = len(vertices)
    valid_faces = [face for face in faces if all(0 <= idx < vertex_count for idx in face)]
    rejected += len(faces) - len(valid_faces)
    if rejected:
        logger.debug("Dropped %d malformed OBJ face(s) from '%s'", rejected, name)

    return Mesh(name, vertices, valid_faces)


def dump_obj(mesh: Mesh) -> str:
    """Serialise ``mesh`` to OBJ text with 1-based face indices."""

    lines = [f"# {mesh.name}"]
    for vertex in mesh.vertices:
        lines.append(f"v {vertex.x!r} {vertex.y!r} {vertex.z!r}")
    for face in mesh.faces:
        lines.append("f " + " ".join(str(idx + 1) for idx in face))
    return "\n".join(lines) + "\n"
