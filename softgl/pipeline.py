"""
Render passes.

Shadow mapping runs in two strictly sequential passes:

  1. shadow pass - the light direction is used as an eye with an orthographic
     projection; DepthShader fills a dedicated depth buffer.
  2. camera pass - the real camera; ShadowShader reads that depth buffer
     through shadow_matrix @ inverse(camera_matrix).

Buffers are created per pass and index as [y, x] with row 0 at the bottom.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from softgl.config import RenderConfig
from softgl.mesh import Mesh
from softgl.raster import line, triangle
from softgl.shaders import (
    DepthShader,
    GouraudShader,
    NormalMapShader,
    ShadowShader,
    Shader,
    SpecularShader,
    TextureShader,
    ToonShader,
)
from softgl.textures import TextureSet
from softgl.transform import embed, invert, look_at, projection, viewport

logger = logging.getLogger(__name__)


@dataclass
class ShadowMap:
    """Output of the shadow pass, read only for the camera pass."""
    depth: np.ndarray   # (H,W) uint8 depth seen from the light
    matrix: np.ndarray  # viewport @ projection @ view of the light
    image: np.ndarray   # (H,W,3) grey rendering of the depth, for diagnostics


@dataclass
class Frame:
    color: np.ndarray
    depth: np.ndarray
    shadow: Optional[ShadowMap] = None


# ============================================================
#  Helpers
# ============================================================

def new_buffers(config: RenderConfig) -> Tuple[np.ndarray, np.ndarray]:
    """Zeroed color (H,W,3) and depth (H,W) buffers."""
    color = np.zeros((config.height, config.width, 3), dtype=np.uint8)
    zbuffer = np.zeros((config.height, config.width), dtype=np.uint8)
    return color, zbuffer


def pass_matrices(config: RenderConfig, eye, coeff: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return (pipeline, uniform_m):
      pipeline  = viewport @ projection @ view
      uniform_m = projection @ view
    """
    model_view = look_at(eye, config.center, config.up)
    proj = projection(coeff)
    vp = viewport(*config.viewport_rect())
    uniform_m = proj @ model_view
    return vp @ uniform_m, uniform_m


def specular_options(config: RenderConfig) -> dict:
    """Shader keyword overrides; an unset weight keeps each shader's own default."""
    if config.specular_weight is None:
        return {}
    return {"specular_weight": config.specular_weight}


def draw_mesh(mesh: Mesh, shader: Shader, matrix: np.ndarray,
              color: np.ndarray, zbuffer: np.ndarray) -> int:
    """
    Run shader.vertex for the three slots of every face, then rasterize it.

    Returns the number of pixels written.
    """
    clip = np.empty((3, 4), dtype=np.float64)
    written = 0
    for iface in range(len(mesh)):
        for nthvert in range(3):
            clip[nthvert] = shader.vertex(mesh, iface, nthvert, matrix)
        written += triangle(clip, shader, color, zbuffer)
    return written


# ============================================================
#  Two-pass shadow mapping
# ============================================================

def shadow_pass(mesh: Mesh, config: RenderConfig) -> ShadowMap:
    """Render depth as seen from the light (orthographic)."""
    matrix, _ = pass_matrices(config, config.light_dir, 0.0)
    image, depth = new_buffers(config)

    written = draw_mesh(mesh, DepthShader(), matrix, image, depth)
    logger.info("Shadow pass: %d faces, %d pixels", len(mesh), written)
    return ShadowMap(depth=depth, matrix=matrix, image=image)


def camera_pass(mesh: Mesh, textures: TextureSet, config: RenderConfig,
                shadow: ShadowMap) -> Frame:
    """Render from the camera, dimming fragments the shadow map says are occluded."""
    matrix, uniform_m = pass_matrices(config, config.eye, config.camera_coeff())
    color, zbuffer = new_buffers(config)

    shader = ShadowShader(
        config.light_dir,
        textures.diffuse,
        textures.normal,
        textures.specular,
        uniform_m,
        shadow.matrix @ invert(matrix),
        shadow.depth,
        bias=config.shadow_bias,
        dim=config.shadow_dim,
        **specular_options(config),
    )
    written = draw_mesh(mesh, shader, matrix, color, zbuffer)
    logger.info("Camera pass: %d faces, %d pixels", len(mesh), written)
    return Frame(color=color, depth=zbuffer, shadow=shadow)


def render(mesh: Mesh, textures: TextureSet, config: RenderConfig) -> Frame:
    """Shadow pass followed by camera pass."""
    shadow = shadow_pass(mesh, config)
    return camera_pass(mesh, textures, config, shadow)


# ============================================================
#  Single-pass variants
# ============================================================

SINGLE_PASS_SHADERS = ("gouraud", "toon", "texture", "normal", "specular", "depth")


def make_shader(name: str, textures: Optional[TextureSet], config: RenderConfig,
                uniform_m: np.ndarray) -> Shader:
    """Build a shader variant by name for a single camera pass."""
    if name not in SINGLE_PASS_SHADERS:
        raise ValueError(f"unknown shader '{name}', expected one of {SINGLE_PASS_SHADERS}")
    if name == "gouraud":
        return GouraudShader(config.light_dir)
    if name == "toon":
        return ToonShader(config.light_dir)
    if name == "depth":
        return DepthShader()
    if textures is None:
        raise ValueError(f"shader '{name}' needs textures")
    if name == "texture":
        return TextureShader(config.light_dir, textures.diffuse)
    if name == "normal":
        return NormalMapShader(config.light_dir, textures.diffuse, textures.normal, uniform_m)
    return SpecularShader(config.light_dir, textures.diffuse, textures.normal,
                          textures.specular, uniform_m, **specular_options(config))


def render_single_pass(mesh: Mesh, name: str, textures: Optional[TextureSet],
                       config: RenderConfig) -> Frame:
    """Camera pass with one of SINGLE_PASS_SHADERS, no shadow map."""
    matrix, uniform_m = pass_matrices(config, config.eye, config.camera_coeff())
    shader = make_shader(name, textures, config, uniform_m)
    color, zbuffer = new_buffers(config)

    written = draw_mesh(mesh, shader, matrix, color, zbuffer)
    logger.info("%s pass: %d faces, %d pixels", name, len(mesh), written)
    return Frame(color=color, depth=zbuffer)


def render_wireframe(mesh: Mesh, config: RenderConfig, rgb=(255, 255, 255)) -> Frame:
    """Triangle edges only, projected with the camera matrix (no depth test)."""
    matrix, _ = pass_matrices(config, config.eye, config.camera_coeff())
    color, zbuffer = new_buffers(config)

    for iface in range(len(mesh)):
        pts = []
        for nthvert in range(3):
            p = matrix @ embed(mesh.vert(iface, nthvert))
            pts.append((int(p[0] / p[3]), int(p[1] / p[3])))
        for a, b in ((0, 1), (1, 2), (2, 0)):
            line(pts[a][0], pts[a][1], pts[b][0], pts[b][1], color, rgb)
    logger.info("Wireframe pass: %d faces", len(mesh))
    return Frame(color=color, depth=zbuffer)
