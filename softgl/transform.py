import numpy as np


# Depth range written by the viewport transform; larger is closer.
DEPTH = 255.0


class SingularMatrixError(ValueError):
    """Raised when a transform has no inverse (degenerate camera basis)."""


# ============================================================
#  Vector helpers
# ============================================================

def vec(*xs) -> np.ndarray:
    """Build a float64 vector from components."""
    return np.array(xs, dtype=np.float64)


def normalize(v: np.ndarray) -> np.ndarray:
    """Return normalized vector (length=1), or zeros for a null vector."""
    n = float(np.linalg.norm(v))
    if n <= 1e-12:
        return np.zeros_like(v, dtype=np.float64)
    return v / n


def embed(v: np.ndarray, w: float = 1.0) -> np.ndarray:
    """Convert a 3-vector to homogeneous coordinates."""
    return np.array([v[0], v[1], v[2], w], dtype=np.float64)


def invert(m: np.ndarray) -> np.ndarray:
    """
    Inverse of a square transform.

    Raises SingularMatrixError when the matrix is not invertible; the render
    cannot continue without it.
    """
    try:
        return np.linalg.inv(m)
    except np.linalg.LinAlgError as exc:
        raise SingularMatrixError(f"matrix has no inverse:\n{m}") from exc


# ============================================================
#  Camera, projection, viewport
# ============================================================

def translate(tx, ty, tz) -> np.ndarray:
    """
    Translation matrix.

    Applies: (x, y, z) -> (x + tx, y + ty, z + tz)
    """
    m = np.eye(4)
    m[0, 3] = tx
    m[1, 3] = ty
    m[2, 3] = tz
    return m


def look_at(eye, center, up) -> np.ndarray:
    """
    View matrix: world space -> camera space.

    Basis:
      z = normalize(eye - center)
      x = normalize(up x z)
      y = normalize(z x x)   (up is not necessarily orthogonal to z)

    Result is rotation(rows x, y, z) @ translate(-center).

    `up` must not be parallel to eye - center; the cross product degenerates
    and the matrix is meaningless.
    """
    eye = np.asarray(eye, dtype=np.float64)
    center = np.asarray(center, dtype=np.float64)
    up = np.asarray(up, dtype=np.float64)

    z = normalize(eye - center)
    x = normalize(np.cross(up, z))
    y = normalize(np.cross(z, x))

    minv = np.eye(4)
    minv[0, :3] = x
    minv[1, :3] = y
    minv[2, :3] = z
    return minv @ translate(-center[0], -center[1], -center[2])


def projection(coeff: float) -> np.ndarray:
    """
    Minimal perspective projection.

    Identity with m[3][2] = coeff, so w = 1 + coeff * z. The camera uses
    coeff = -1 / |eye - center|; coeff = 0 gives an orthographic projection
    (shadow pass).
    """
    m = np.eye(4)
    m[3, 2] = coeff
    return m


def viewport(x: float, y: float, width: float, height: float) -> np.ndarray:
    """
    Map NDC [-1..1] to the pixel rectangle at (x, y) of size (width, height).

    z is mapped from [-1..1] to [0..DEPTH].
    """
    m = np.eye(4)
    m[0, 0] = width / 2.0
    m[1, 1] = height / 2.0
    m[2, 2] = DEPTH / 2.0
    m[0, 3] = x + width / 2.0
    m[1, 3] = y + height / 2.0
    m[2, 3] = DEPTH / 2.0
    return m
