"""Mesh file dispatch and the active-mesh holder."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from pathlib import Path
from typing import Optional, Union

from .engine import Mesh
from .errors import DecodeError, EmptyResult, FormatError
from .glb import parse_glb
from .objfile import DEFAULT_NAME, parse_obj

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def decode_mesh(data: bytes, suffix: str, name: Optional[str] = None) -> Mesh:
    """Decode ``data`` using the decoder registered for ``suffix``."""

    suffix = suffix.lower()
    if suffix == ".obj":
        text = data.decode("utf-8", errors="replace")
        return parse_obj(text, name=name or DEFAULT_NAME)
    if suffix == ".glb":
        return parse_glb(data, name=name)
    raise FormatError(f"Unsupported mesh format '{suffix}'")


def load_mesh(path: PathLike) -> Mesh:
    path = Path(path)
    data = path.read_bytes()
    name = path.stem if path.suffix.lower() == ".obj" else None
    return decode_mesh(data, path.suffix, name=name)


class MeshSlot:
    """Owns the mesh currently being rendered.

    A decode only replaces the mesh once it has fully succeeded; failures
    leave the previous mesh active and are returned to the caller. When
    several asynchronous loads overlap, only the most recently started one
    may install its result.
    """

    def __init__(self, mesh: Mesh) -> None:
        if mesh.is_empty:
            raise EmptyResult(f"Mesh '{mesh.name}' has no vertices")
        self._mesh = mesh
        self._generation = 0
        self.last_error: Optional[Exception] = None

    @property
    def mesh(self) -> Mesh:
        return self._mesh

    def replace(self, mesh: Mesh) -> None:
        if mesh.is_empty:
            raise EmptyResult(f"Mesh '{mesh.name}' has no vertices")
        self._generation += 1
        self._mesh = mesh

    def _failed(self, path: PathLike, exc: Exception) -> Exception:
        logger.warning("Could not load mesh '%s': %s (keeping '%s')", path, exc, self._mesh.name)
        self.last_error = exc
        return exc

    def load(self, path: PathLike) -> Optional[Exception]:
        """Synchronously decode ``path``; returns the failure or ``None``."""

        try:
            mesh = load_mesh(path)
        except (DecodeError, OSError) as exc:
            return self._failed(path, exc)
        self.replace(mesh)
        self.last_error = None
        logger.info("Loaded mesh '%s' (%d vertices, %d faces)", mesh.name, len(mesh.vertices), len(mesh.faces))
        return None

    async def load_async(
        self, path: PathLike, *, executor: Optional[Executor] = None
    ) -> Optional[Exception]:
        """Decode ``path`` off the event loop, then swap it in.

        Cancelling the awaiting task leaves the current mesh untouched.
        """

        self._generation += 1
        generation = self._generation
        loop = asyncio.get_running_loop()
        try:
            mesh = await loop.run_in_executor(executor, load_mesh, path)
        except (DecodeError, OSError) as exc:
            if generation != self._generation:
                logger.debug("Ignoring failed superseded decode of '%s': %s", path, exc)
                return None
            return self._failed(path, exc)

        if generation != self._generation:
            logger.debug("Discarding superseded decode of '%s'", path)
            return None
        self._mesh = mesh
        self.last_error = None
        logger.info("Loaded mesh '%s' (%d vertices, %d faces)", mesh.name, len(mesh.vertices), len(mesh.faces))
        return None
