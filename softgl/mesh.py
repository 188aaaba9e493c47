from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class Face:
    """
    Single triangle face, indices into:
      - v:  vertex positions
      - vt: texture coords
      - vn: vertex normals

    Indices are 0-based, one entry per vertex slot (0, 1, 2).
    """
    v: Tuple[int, int, int]
    vt: Tuple[int, int, int]
    vn: Tuple[int, int, int]


@dataclass
class Mesh:
    """
    Triangulated mesh with independent attribute arrays.

    positions (N,3), normals (M,3) unit length, uvs (K,2) in [0..1].
    Each attribute kind has its own indexing, so a face may reuse a UV
    across vertices that do not share a position.
    """
    positions: np.ndarray
    normals: np.ndarray
    uvs: np.ndarray
    faces: List[Face] = field(default_factory=list)

    def __post_init__(self):
        self.positions = np.asarray(self.positions, dtype=np.float64).reshape(-1, 3)
        self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)
        self.uvs = np.asarray(self.uvs, dtype=np.float64).reshape(-1, 2)

    def __len__(self) -> int:
        return len(self.faces)

    def vert(self, iface: int, nthvert: int) -> np.ndarray:
        return self.positions[self.faces[iface].v[nthvert]]

    def normal(self, iface: int, nthvert: int) -> np.ndarray:
        return self.normals[self.faces[iface].vn[nthvert]]

    def uv(self, iface: int, nthvert: int) -> np.ndarray:
        return self.uvs[self.faces[iface].vt[nthvert]]

    def validate(self):
        """Raise ValueError if any face index falls outside its attribute array."""
        sizes = (
            ("v", len(self.positions)),
            ("vt", len(self.uvs)),
            ("vn", len(self.normals)),
        )
        for i, face in enumerate(self.faces):
            for kind, size in sizes:
                for idx in getattr(face, kind):
                    if not 0 <= idx < size:
                        raise ValueError(
                            f"face {i}: {kind} index {idx} out of range (have {size})"
                        )
