"""Binary glTF (GLB) container decoding.

Only the geometry of the first primitive of the first mesh is extracted:
POSITION floats and, when present, the triangle index list. Everything
else in the JSON document (materials, nodes, animations) is ignored.

Layout reference::

    header  : magic u32 | version u32 | total length u32
    chunk*  : length u32 | type u32 | payload[length]

All integers are little-endian.
"""

from __future__ import annotations

import json
import struct
from typing import Any, Dict, List, Optional, Tuple

from .engine import Mesh, Vec3
from .errors import EmptyResult, FormatError

GLB_MAGIC = 0x46546C67  # "glTF"
CHUNK_JSON = 0x4E4F534A  # "JSON"
CHUNK_BIN = 0x004E4942  # "BIN\0"
HEADER_SIZE = 12
DEFAULT_POSITION_STRIDE = 12

# componentType -> (struct format, byte width)
_INDEX_FORMATS: Dict[int, Tuple[str, int]] = {
    5121: ("<B", 1),  # UNSIGNED_BYTE
    5123: ("<H", 2),  # UNSIGNED_SHORT
    5125: ("<I", 4),  # UNSIGNED_INT
}

DEFAULT_NAME = "Uploaded Model"


class ByteReader:
    """Bounds-checked little-endian reads over an immutable byte buffer."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def __len__(self) -> int:
        return len(self._data)

    def _check(self, offset: int, size: int) -> None:
        if offset < 0 or size < 0 or offset + size > len(self._data):
            raise FormatError(
                f"Read of {size} byte(s) at offset {offset} exceeds buffer of {len(self._data)}"
            )

    def unpack(self, fmt: str, offset: int) -> Tuple[Any, ...]:
        self._check(offset, struct.calcsize(fmt))
        return struct.unpack_from(fmt, self._data, offset)

    def u32(self, offset: int) -> int:
        return self.unpack("<I", offset)[0]

    def f32x3(self, offset: int) -> Tuple[float, float, float]:
        return self.unpack("<fff", offset)  # type: ignore[return-value]

    def slice(self, offset: int, size: int) -> bytes:
        self._check(offset, size)
        return self._data[offset:offset + size]


def read_chunks(reader: ByteReader) -> Tuple[Dict[str, Any], Optional[ByteReader]]:
    """Validate the header and return the parsed JSON document and BIN chunk."""

    if len(reader) < HEADER_SIZE:
        raise FormatError("GLB data is shorter than its 12-byte header")
    magic, _version, total_length = reader.unpack("<III", 0)
    if magic != GLB_MAGIC:
        raise FormatError(f"Bad GLB magic 0x{magic:08x}")

    if total_length > len(reader):
        raise FormatError(f"GLB header declares {total_length} bytes but only {len(reader)} are present")
    end = total_length
    offset = HEADER_SIZE
    document: Optional[Dict[str, Any]] = None
    binary: Optional[ByteReader] = None

    while offset < end:
        chunk_length, chunk_type = reader.unpack("<II", offset)
        offset += 8
        payload = reader.slice(offset, chunk_length)
        offset += chunk_length

        if chunk_type == CHUNK_JSON:
            try:
                document = json.loads(payload.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise FormatError(f"Invalid GLB JSON chunk: {exc}") from exc
            if not isinstance(document, dict):
                raise FormatError("GLB JSON chunk is not an object")
        elif chunk_type == CHUNK_BIN:
            binary = ByteReader(payload)

    if document is None:
        raise FormatError("GLB has no JSON chunk")
    return document, binary


def _lookup(items: Any, index: Any, kind: str) -> Dict[str, Any]:
    if not isinstance(items, list) or not isinstance(index, int) or not 0 <= index < len(items):
        raise FormatError(f"Missing {kind} {index!r}")
    item = items[index]
    if not isinstance(item, dict):
        raise FormatError(f"Malformed {kind} {index!r}")
    return item


def _accessor_offset(document: Dict[str, Any], accessor: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    view = _lookup(document.get("bufferViews"), accessor.get("bufferView"), "bufferView")
    offset = int(view.get("byteOffset", 0)) + int(accessor.get("byteOffset", 0))
    return offset, view


def _read_positions(
    document: Dict[str, Any], accessor: Dict[str, Any], binary: ByteReader
) -> List[Vec3]:
    base, view = _accessor_offset(document, accessor)
    stride = int(view.get("byteStride") or DEFAULT_POSITION_STRIDE)
    count = int(accessor.get("count", 0))
    return [Vec3(*binary.f32x3(base + i * stride)) for i in range(count)]


def _read_indices(
    document: Dict[str, Any], accessor: Dict[str, Any], binary: ByteReader
) -> List[int]:
    component = accessor.get("componentType")
    try:
        fmt, width = _INDEX_FORMATS[component]  # type: ignore[index]
    except KeyError as exc:
        raise FormatError(f"Unsupported index componentType {component!r}") from exc
    base, _view = _accessor_offset(document, accessor)
    count = int(accessor.get("count", 0))
    return [binary.unpack(fmt, base + i * width)[0] for i in range(count)]


def parse_glb(data: bytes, name: Optional[str] = None) -> Mesh:
    """Decode the first mesh primitive of a GLB buffer.

    Raises:
        FormatError: bad magic, missing chunk/mesh/accessor, truncated data
            or indices that reference missing vertices.
        EmptyResult: the POSITION accessor holds no vertices.
    """

    document, binary = read_chunks(ByteReader(data))

    meshes = document.get("meshes")
    if not isinstance(meshes, list) or not meshes:
        raise FormatError("GLB contains no meshes")
    mesh_info = meshes[0] if isinstance(meshes[0], dict) else {}
    primitives = mesh_info.get("primitives")
    if not isinstance(primitives, list) or not primitives or not isinstance(primitives[0], dict):
        raise FormatError("First GLB mesh has no primitives")
    primitive = primitives[0]

    attributes = primitive.get("attributes")
    if not isinstance(attributes, dict) or "POSITION" not in attributes:
        raise FormatError("First GLB primitive has no POSITION accessor")
    accessors = document.get("accessors")
    position_accessor = _lookup(accessors, attributes["POSITION"], "accessor")
    if binary is None:
        raise FormatError("GLB has no BIN chunk")

    try:
        vertices = _read_positions(document, position_accessor, binary)
        if "indices" in primitive and primitive["indices"] is not None:
            index_accessor = _lookup(accessors, primitive["indices"], "accessor")
            indices = _read_indices(document, index_accessor, binary)
        else:
            indices = list(range(len(vertices)))
    except FormatError:
        raise
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Malformed GLB accessor metadata: {exc}") from exc

    if not vertices:
        raise EmptyResult("GLB POSITION accessor holds no vertices")

    vertex_count = len(vertices)
    faces = [
        (indices[i], indices[i + 1], indices[i + 2])
        for i in range(0, len(indices) - 2, 3)
    ]
    for face in faces:
        if max(face) >= vertex_count:
            raise FormatError(f"GLB face {face} references a missing vertex")

    if name is None:
        name = mesh_info.get("name") or DEFAULT_NAME
    return Mesh(str(name), vertices, faces)
