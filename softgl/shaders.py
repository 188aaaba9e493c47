from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from softgl.mesh import Mesh
from softgl.textures import sample, texel
from softgl.transform import DEPTH, embed, invert, normalize


def to_rgb(values) -> np.ndarray:
    """Saturate to [0..255] and truncate to bytes."""
    return np.clip(np.asarray(values, dtype=np.float64), 0.0, 255.0).astype(np.uint8)


def grey(value: float) -> np.ndarray:
    return to_rgb((value, value, value))


def decode_normal(rgb) -> np.ndarray:
    """Unsigned byte components [0..255] -> signed [-1..1]."""
    return np.asarray(rgb, dtype=np.float64) / 255.0 * 2.0 - 1.0


class Shader(ABC):
    """
    Programmable stage pair driven by the rasterizer.

    vertex() runs for slots 0, 1, 2 of one face and fills the varyings;
    fragment() then runs for every covered pixel of that face with its
    barycentric weights. Varyings live only for one triangle.
    """

    @abstractmethod
    def vertex(self, mesh: Mesh, iface: int, nthvert: int, matrix: np.ndarray) -> np.ndarray:
        """Return the homogeneous screen position (divide by w not applied)."""

    @abstractmethod
    def fragment(self, bar: np.ndarray) -> Tuple[np.ndarray, bool]:
        """Return (rgb uint8[3], keep). keep=False discards the pixel."""


# ============================================================
#  Per-vertex lighting
# ============================================================

class GouraudShader(Shader):
    """Diffuse intensity per vertex, interpolated, drawn in grey."""

    def __init__(self, light_dir):
        self.light_dir = normalize(np.asarray(light_dir, dtype=np.float64))
        self.varying_intensity = np.zeros(3)

    def vertex(self, mesh, iface, nthvert, matrix):
        n = mesh.normal(iface, nthvert)
        self.varying_intensity[nthvert] = max(0.0, float(n @ self.light_dir))
        return matrix @ embed(mesh.vert(iface, nthvert))

    def fragment(self, bar):
        intensity = float(self.varying_intensity @ bar)
        return grey(255.0 * intensity), True


class ToonShader(GouraudShader):
    """Gouraud intensity quantized into fixed bands (toon look), orange."""

    BANDS = ((0.85, 1.00), (0.60, 0.80), (0.45, 0.60), (0.30, 0.45), (0.15, 0.30))
    TINT = (255.0, 155.0, 0.0)

    def fragment(self, bar):
        intensity = float(self.varying_intensity @ bar)
        band = 0.0
        for threshold, value in self.BANDS:
            if intensity > threshold:
                band = value
                break
        return to_rgb(np.array(self.TINT) * band), True


class TextureShader(Shader):
    """Diffuse texture modulated by interpolated per-vertex intensity."""

    def __init__(self, light_dir, diffuse: np.ndarray):
        self.light_dir = normalize(np.asarray(light_dir, dtype=np.float64))
        self.diffuse = diffuse
        self.varying_intensity = np.zeros(3)
        self.varying_uv = np.zeros((3, 2))

    def vertex(self, mesh, iface, nthvert, matrix):
        n = mesh.normal(iface, nthvert)
        self.varying_intensity[nthvert] = max(0.0, float(n @ self.light_dir))
        self.varying_uv[nthvert] = mesh.uv(iface, nthvert)
        return matrix @ embed(mesh.vert(iface, nthvert))

    def fragment(self, bar):
        uv = bar @ self.varying_uv
        color = sample(self.diffuse, uv).astype(np.float64)
        intensity = float(self.varying_intensity @ bar)
        return to_rgb(color * intensity), True


# ============================================================
#  Per-pixel lighting with a tangent-space normal map
# ============================================================

class NormalMapShader(Shader):
    """
    Diffuse lighting with normals read from a tangent-space normal map.

    uniform_m is projection @ view. Normals go through its inverse
    transpose, the light direction through uniform_m itself, so both live in
    the same space as ndc_tri.

    Per pixel, the tangent basis (i, j, n) solves
        [e1; e2; n] i = (du1, du2, 0)
        [e1; e2; n] j = (dv1, dv2, 0)
    where e1, e2 are the triangle edges and du, dv the UV deltas.
    """

    def __init__(self, light_dir, diffuse: np.ndarray, normal_map: np.ndarray,
                 uniform_m: np.ndarray):
        self.uniform_m = np.asarray(uniform_m, dtype=np.float64)
        self.uniform_mit = invert(self.uniform_m).T
        self.light_dir = normalize((self.uniform_m @ embed(light_dir, 0.0))[:3])
        self.diffuse = diffuse
        self.normal_map = normal_map

        self.varying_uv = np.zeros((3, 2))
        self.varying_norm = np.zeros((3, 3))
        self.ndc_tri = np.zeros((3, 3))

    def vertex(self, mesh, iface, nthvert, matrix):
        self.varying_uv[nthvert] = mesh.uv(iface, nthvert)
        self.varying_norm[nthvert] = (self.uniform_mit @ embed(mesh.normal(iface, nthvert), 0.0))[:3]

        gl_vertex = embed(mesh.vert(iface, nthvert))
        p = self.uniform_m @ gl_vertex
        self.ndc_tri[nthvert] = p[:3] / p[3]
        return matrix @ gl_vertex

    def tangent_basis(self, bn: np.ndarray) -> np.ndarray:
        """3x3 matrix with columns i, j, bn for the current triangle."""
        a = np.array([
            self.ndc_tri[1] - self.ndc_tri[0],
            self.ndc_tri[2] - self.ndc_tri[0],
            bn,
        ])
        ai = invert(a)
        duv1 = self.varying_uv[1] - self.varying_uv[0]
        duv2 = self.varying_uv[2] - self.varying_uv[0]
        i = ai @ np.array([duv1[0], duv2[0], 0.0])
        j = ai @ np.array([duv1[1], duv2[1], 0.0])
        return np.column_stack((normalize(i), normalize(j), bn))

    def surface(self, bar):
        """Interpolated uv, diffuse texel and mapped normal at this pixel."""
        bn = normalize(bar @ self.varying_norm)
        uv = bar @ self.varying_uv
        color = sample(self.diffuse, uv).astype(np.float64)
        tangent = normalize(decode_normal(sample(self.normal_map, uv)))
        n = normalize(self.tangent_basis(bn) @ tangent)
        return uv, color, n

    def fragment(self, bar):
        _, color, n = self.surface(bar)
        diff = max(0.0, float(n @ self.light_dir))
        return to_rgb(color * diff), True


class SpecularShader(NormalMapShader):
    """
    Normal-mapped diffuse plus a Phong specular term.

    The specular exponent comes from a grey map; the reflected light's z
    component (towards the viewer) is raised to it.
    """

    def __init__(self, light_dir, diffuse, normal_map, specular_map: np.ndarray,
                 uniform_m, ambient: float = 5.0, specular_weight: float = 0.3):
        super().__init__(light_dir, diffuse, normal_map, uniform_m)
        self.specular_map = specular_map
        self.ambient = ambient
        self.specular_weight = specular_weight

    def lighting(self, bar):
        """Return (texel color, diffuse term, specular term)."""
        uv, color, n = self.surface(bar)
        l = self.light_dir
        r = normalize(n * (2.0 * float(n @ l)) - l)
        # exponents are >= 0 and r.z <= 1, so a high exponent kills the highlight
        spec = max(float(r[2]), 0.0) ** float(sample(self.specular_map, uv))
        diff = max(0.0, float(n @ l))
        return color, diff, spec

    def fragment(self, bar):
        color, diff, spec = self.lighting(bar)
        return to_rgb(self.ambient + color * (diff + self.specular_weight * spec)), True


# ============================================================
#  Shadow mapping
# ============================================================

class DepthShader(Shader):
    """Shadow pass: grey encoding of screen depth."""

    def __init__(self):
        self.varying_tri = np.zeros((3, 3))

    def vertex(self, mesh, iface, nthvert, matrix):
        gl_vertex = matrix @ embed(mesh.vert(iface, nthvert))
        self.varying_tri[nthvert] = gl_vertex[:3] / gl_vertex[3]
        return gl_vertex

    def fragment(self, bar):
        p = bar @ self.varying_tri
        return grey(255.0 * p[2] / DEPTH), True


class ShadowShader(SpecularShader):
    """
    Camera pass: specular shading attenuated where the light is occluded.

    uniform_m_shadow maps camera screen space into the shadow pass screen
    space (shadow_matrix @ inverse(camera_matrix)). A fragment is lit when
    the shadow buffer at its reprojected position is not closer to the light
    than the fragment itself plus `bias`.
    """

    def __init__(self, light_dir, diffuse, normal_map, specular_map, uniform_m,
                 uniform_m_shadow: np.ndarray, shadow_buffer: np.ndarray,
                 bias: float = 5.0, dim: float = 0.3, ambient: float = 20.0,
                 diffuse_weight: float = 1.2, specular_weight: float = 0.6):
        super().__init__(light_dir, diffuse, normal_map, specular_map, uniform_m,
                         ambient=ambient, specular_weight=specular_weight)
        self.uniform_m_shadow = np.asarray(uniform_m_shadow, dtype=np.float64)
        self.shadow_buffer = shadow_buffer
        self.bias = bias
        self.dim = dim
        self.diffuse_weight = diffuse_weight
        self.varying_tri = np.zeros((3, 3))

    def vertex(self, mesh, iface, nthvert, matrix):
        gl_vertex = super().vertex(mesh, iface, nthvert, matrix)
        self.varying_tri[nthvert] = gl_vertex[:3] / gl_vertex[3]
        return gl_vertex

    def shadow_factor(self, p: np.ndarray) -> float:
        """1.0 if screen point p is lit, `dim` if something sits between it and the light."""
        sb = self.uniform_m_shadow @ embed(p)
        sb = sb[:3] / sb[3]
        stored = float(texel(self.shadow_buffer, sb[0], sb[1]))
        return 1.0 if stored < sb[2] + self.bias else self.dim

    def fragment(self, bar):
        shadow = self.shadow_factor(bar @ self.varying_tri)
        color, diff, spec = self.lighting(bar)
        light = shadow * (self.diffuse_weight * diff + self.specular_weight * spec)
        return to_rgb(self.ambient + color * light), True
