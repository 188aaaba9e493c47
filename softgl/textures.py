import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps

logger = logging.getLogger(__name__)


class TextureSampleError(IndexError):
    """UV coordinate maps outside the texture; no wrap or clamp is applied."""


@dataclass
class TextureSet:
    """
    Maps used by the textured shaders, all with row 0 at the visual bottom.

      diffuse  - (H,W,3) uint8 color
      normal   - (H,W,3) uint8 tangent-space normal, decoded [0..255] -> [-1..1]
      specular - (H,W)   uint8 specular exponent
    """
    diffuse: np.ndarray
    normal: np.ndarray
    specular: np.ndarray


def load_texture(path, mode: str = "RGB") -> np.ndarray:
    """Decode an image file with Pillow and flip it so row 0 is the bottom."""
    with Image.open(path) as img:
        img = ImageOps.flip(img.convert(mode))
        return np.array(img, dtype=np.uint8)


def load_texture_set(base) -> TextureSet:
    """
    Load <base>_diffuse.tga, <base>_nm_tangent.tga and <base>_spec.tga.
    """
    base = str(base)
    textures = TextureSet(
        diffuse=load_texture(f"{base}_diffuse.tga", "RGB"),
        normal=load_texture(f"{base}_nm_tangent.tga", "RGB"),
        specular=load_texture(f"{base}_spec.tga", "L"),
    )
    logger.info(
        "Loaded textures for %s: diffuse %s, normal %s, specular %s",
        base, textures.diffuse.shape, textures.normal.shape, textures.specular.shape,
    )
    return textures


def texel(texture: np.ndarray, x, y):
    """Read pixel (x, y); raises TextureSampleError instead of wrapping."""
    h, w = texture.shape[:2]
    ix, iy = int(x), int(y)
    if not (0 <= ix < w and 0 <= iy < h):
        raise TextureSampleError(f"texel ({ix}, {iy}) outside {w}x{h} map")
    return texture[iy, ix]


def sample(texture: np.ndarray, uv) -> np.ndarray:
    """
    Nearest sample: truncate uv * (width, height) to integer indices.
    """
    h, w = texture.shape[:2]
    return texel(texture, uv[0] * w, uv[1] * h)


def save_image(buffer: np.ndarray, path):
    """
    Write a color (H,W,3) or grey (H,W) buffer with Pillow (RGB / L).

    The buffer has row 0 at the canvas bottom, so it is flipped first.
    """
    path = Path(path)
    Image.fromarray(np.ascontiguousarray(np.flipud(buffer), dtype=np.uint8)).save(path)
    logger.info("Wrote %s (%dx%d)", path, buffer.shape[1], buffer.shape[0])
