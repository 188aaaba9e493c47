import logging
from typing import List, Tuple

import numpy as np

from softgl.mesh import Face, Mesh

logger = logging.getLogger(__name__)


def _parse_face_vertex(token: str) -> Tuple[int, int, int]:
    """
    Parse one 'v/vt[/vn]' face token into 0-based (v, vt, vn).

    vn is -1 when the token omits it.
    """
    comps = token.split("/")
    if len(comps) < 2 or not comps[0] or not comps[1]:
        raise ValueError(f"face vertex '{token}' needs position and uv indices")
    vi = int(comps[0]) - 1
    vti = int(comps[1]) - 1
    vni = int(comps[2]) - 1 if len(comps) > 2 and comps[2] else -1
    return vi, vti, vni


def load_obj(path) -> Mesh:
    """
    Minimal OBJ parser for triangular meshes.

    Supported:
      v  x y z
      vt u v [w]
      vn x y z          (normalized on load)
      f  v/vt[/vn] v/vt[/vn] v/vt[/vn]  (triangles only)

    A face vertex without a normal index uses its position index for the
    normal, as in models whose normals are listed parallel to positions.

    Raises:
        ValueError: on malformed records, non-triangular faces or
        out-of-range indices.
    """
    verts: List[Tuple[float, float, float]] = []
    uvs: List[Tuple[float, float]] = []
    normals: List[np.ndarray] = []
    faces: List[Face] = []

    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            tag = parts[0]
            try:
                if tag == "v":
                    x, y, z = map(float, parts[1:4])
                    verts.append((x, y, z))
                elif tag == "vt":
                    u, v = map(float, parts[1:3])
                    uvs.append((u, v))
                elif tag == "vn":
                    n = np.array([float(c) for c in parts[1:4]], dtype=np.float64)
                    if n.shape != (3,):
                        raise ValueError("expected 3 components")
                    length = np.linalg.norm(n)
                    normals.append(n / length if length > 0.0 else n)
                elif tag == "f":
                    if len(parts) != 4:
                        raise ValueError("only triangular faces are supported")
                    v_idx, vt_idx, vn_idx = [], [], []
                    for token in parts[1:4]:
                        vi, vti, vni = _parse_face_vertex(token)
                        v_idx.append(vi)
                        vt_idx.append(vti)
                        vn_idx.append(vni if vni >= 0 else vi)
                    faces.append(Face(tuple(v_idx), tuple(vt_idx), tuple(vn_idx)))
            except ValueError as exc:
                raise ValueError(f"{path}:{lineno}: malformed '{tag}' record: {exc}") from exc

    mesh = Mesh(
        positions=np.array(verts, dtype=np.float64),
        normals=np.array(normals, dtype=np.float64),
        uvs=np.array(uvs, dtype=np.float64),
        faces=faces,
    )
    mesh.validate()
    logger.info(
        "Loaded %s: %d verts, %d uvs, %d normals, %d faces",
        path, len(verts), len(uvs), len(normals), len(faces),
    )
    return mesh
