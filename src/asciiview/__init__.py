"""Text-art rendering of 3D meshes and raster images."""

from .engine import FrameBuffer, Mesh, RenderEngine, Vec3, ViewState
from .errors import DecodeError, EmptyResult, FormatError
from .glb import parse_glb
from .image import ImageView, RasterImage, sample_image
from .loader import MeshSlot, load_mesh
from .objects import builtin_mesh, cube_mesh, diamond_mesh, donut_mesh, pyramid_mesh, star_mesh
from .objfile import dump_obj, parse_obj
from .ramps import GlyphRamp, char_for_brightness

__all__ = [
    "DecodeError",
    "EmptyResult",
    "FormatError",
    "FrameBuffer",
    "GlyphRamp",
    "ImageView",
    "Mesh",
    "MeshSlot",
    "RasterImage",
    "RenderEngine",
    "Vec3",
    "ViewState",
    "builtin_mesh",
    "char_for_brightness",
    "cube_mesh",
    "diamond_mesh",
    "donut_mesh",
    "dump_obj",
    "load_mesh",
    "parse_glb",
    "parse_obj",
    "pyramid_mesh",
    "sample_image",
    "star_mesh",
]
