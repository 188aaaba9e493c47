import numpy as np
import pytest

from softgl.mesh import Face, Mesh
from softgl.shaders import Shader
from softgl.textures import TextureSet
from softgl.transform import embed


class SolidShader(Shader):
    """Constant color; positions pass straight through the matrix."""

    def __init__(self, rgb, keep=True):
        self.rgb = np.array(rgb, dtype=np.uint8)
        self.keep = keep

    def vertex(self, mesh, iface, nthvert, matrix):
        return matrix @ embed(mesh.vert(iface, nthvert))

    def fragment(self, bar):
        return self.rgb, self.keep


def screen_tri(pts):
    """(x, y, z) screen points -> (3,4) homogeneous with w = 1."""
    return np.array([[x, y, z, 1.0] for x, y, z in pts], dtype=np.float64)


def horizontal_quad(y, half, first_index=0):
    """
    Square in the plane y = const, normal +y, centred on the origin.

    Returns (positions, normals, uvs, faces) with uvs strictly inside (0, 1).
    """
    corners = [(-half, -half), (half, -half), (half, half), (-half, half)]
    positions = [(x, y, z) for x, z in corners]
    normals = [(0.0, 1.0, 0.0)] * 4
    uvs = [((x + half) / (2 * half) * 0.9 + 0.05, (z + half) / (2 * half) * 0.9 + 0.05)
           for x, z in corners]
    i = first_index
    faces = [
        Face((i, i + 1, i + 2), (i, i + 1, i + 2), (i, i + 1, i + 2)),
        Face((i, i + 2, i + 3), (i, i + 2, i + 3), (i, i + 2, i + 3)),
    ]
    return positions, normals, uvs, faces


def build_mesh(*parts) -> Mesh:
    positions, normals, uvs, faces = [], [], [], []
    for p, n, t, f in parts:
        positions += p
        normals += n
        uvs += t
        faces += f
    return Mesh(positions=positions, normals=normals, uvs=uvs, faces=faces)


@pytest.fixture
def solid():
    return SolidShader


@pytest.fixture
def plane_mesh():
    """Ground plane y = 0, |x|, |z| <= 0.8."""
    return build_mesh(horizontal_quad(0.0, 0.8))


@pytest.fixture
def occluded_mesh():
    """Ground plane plus a smaller square hovering at y = 0.3 over its centre."""
    return build_mesh(horizontal_quad(0.0, 0.8), horizontal_quad(0.3, 0.3, first_index=4))


@pytest.fixture
def triangle_mesh():
    """One triangle in z = 0 facing +z."""
    return Mesh(
        positions=[(-0.5, -0.5, 0.0), (0.5, -0.5, 0.0), (-0.5, 0.5, 0.0)],
        normals=[(0.0, 0.0, 1.0)] * 3,
        uvs=[(0.1, 0.1), (0.9, 0.1), (0.1, 0.9)],
        faces=[Face((0, 1, 2), (0, 1, 2), (0, 1, 2))],
    )


@pytest.fixture
def flat_textures():
    """Grey diffuse, straight-up tangent normals, zero specular exponent."""
    diffuse = np.full((4, 4, 3), 100, dtype=np.uint8)
    normal = np.empty((4, 4, 3), dtype=np.uint8)
    normal[...] = (128, 128, 255)
    specular = np.zeros((4, 4), dtype=np.uint8)
    return TextureSet(diffuse=diffuse, normal=normal, specular=specular)


@pytest.fixture
def screen():
    return screen_tri
