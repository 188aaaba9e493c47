import logging

import numpy as np
from numba import njit

from softgl.transform import DEPTH

logger = logging.getLogger(__name__)

# Minimum |cross z| for a triangle to count as non-degenerate in screen space.
EPSILON = 1e-2

# Barycentric round-off allowance before the fragment depth is truncated.
DEPTH_ROUNDOFF = 1e-6


# ============================================================
#  Numba kernels
# ============================================================

@njit(cache=True)
def _barycentric(ax, ay, bx, by, cx, cy, px, py):
    """
    Barycentric coordinates of (px,py) in triangle (A,B,C), screen space.

    Cross product of
      (C.x - A.x, B.x - A.x, A.x - P.x)
      (C.y - A.y, B.y - A.y, A.y - P.y)
    gives u; weights are (1 - (u.x+u.y)/u.z, u.y/u.z, u.x/u.z).

    Degenerate triangle => (-1, 1, 1), which rejects every pixel.
    """
    ux = (bx - ax) * (ay - py) - (ax - px) * (by - ay)
    uy = (ax - px) * (cy - ay) - (cx - ax) * (ay - py)
    uz = (cx - ax) * (by - ay) - (bx - ax) * (cy - ay)
    if abs(uz) <= EPSILON:
        return -1.0, 1.0, 1.0
    return 1.0 - (ux + uy) / uz, uy / uz, ux / uz


@njit(cache=True)
def _scan(pts, zbuf):
    """
    Coverage + depth test for one triangle.

    pts:  (3,4) homogeneous screen-space vertices (viewport applied, not divided)
    zbuf: (H,W) uint8 depth buffer, read only here

    Returns the pixels that are inside the triangle and closer than what is
    stored: xs, ys, barycentric weights (n,3), integer depths.
    Each pixel appears at most once, so testing against zbuf before any write
    of this triangle is equivalent to testing pixel by pixel.
    """
    H, W = zbuf.shape

    x0, y0 = pts[0, 0] / pts[0, 3], pts[0, 1] / pts[0, 3]
    x1, y1 = pts[1, 0] / pts[1, 3], pts[1, 1] / pts[1, 3]
    x2, y2 = pts[2, 0] / pts[2, 3], pts[2, 1] / pts[2, 3]

    minx = max(0, min(int(x0), int(x1), int(x2)))
    maxx = min(W - 1, max(int(x0), int(x1), int(x2)))
    miny = max(0, min(int(y0), int(y1), int(y2)))
    maxy = min(H - 1, max(int(y0), int(y1), int(y2)))

    n = max(0, maxx - minx + 1) * max(0, maxy - miny + 1)
    xs = np.empty(n, dtype=np.int64)
    ys = np.empty(n, dtype=np.int64)
    bars = np.empty((n, 3), dtype=np.float64)
    depths = np.empty(n, dtype=np.int64)
    count = 0

    for x in range(minx, maxx + 1):
        for y in range(miny, maxy + 1):
            b0, b1, b2 = _barycentric(x0, y0, x1, y1, x2, y2, float(x), float(y))
            if b0 < 0.0 or b1 < 0.0 or b2 < 0.0:
                continue

            # unflattened z and w => depth of the fragment
            z = pts[0, 2] * b0 + pts[1, 2] * b1 + pts[2, 2] * b2
            w = pts[0, 3] * b0 + pts[1, 3] * b1 + pts[2, 3] * b2
            d = z / w
            if d < 0.0:
                d = 0.0
            if d > DEPTH:
                d = DEPTH
            frag_depth = int(d + DEPTH_ROUNDOFF)
            if zbuf[y, x] >= frag_depth:
                continue

            xs[count] = x
            ys[count] = y
            bars[count, 0] = b0
            bars[count, 1] = b1
            bars[count, 2] = b2
            depths[count] = frag_depth
            count += 1

    return xs[:count], ys[:count], bars[:count], depths[:count]


# ============================================================
#  Triangle
# ============================================================

def barycentric(pts, p) -> np.ndarray:
    """Barycentric weights of point p in the 2-D triangle pts (3x2)."""
    (ax, ay), (bx, by), (cx, cy) = np.asarray(pts, dtype=np.float64)
    px, py = float(p[0]), float(p[1])
    return np.array(_barycentric(ax, ay, bx, by, cx, cy, px, py))


def triangle(clip, shader, color: np.ndarray, zbuffer: np.ndarray) -> int:
    """
    Rasterize one triangle.

    Parameters:
      clip    - (3,4) vertices as returned by shader.vertex (divide by w deferred)
      shader  - Shader whose varyings were filled for this triangle
      color   - (H,W,3) uint8 buffer, [y, x], row 0 at the canvas bottom
      zbuffer - (H,W) uint8 depth buffer; larger value is closer

    A triangle with a negative screen coordinate is skipped whole.
    Returns the number of pixels written.
    """
    clip = np.asarray(clip, dtype=np.float64)
    screen = clip[:, :2] / clip[:, 3:4]
    if (screen < 0.0).any():
        logger.warning("Triangle outside bounds of canvas, skipped: %s", screen.tolist())
        return 0

    xs, ys, bars, depths = _scan(clip, zbuffer)

    written = 0
    for x, y, bar, frag_depth in zip(xs, ys, bars, depths):
        rgb, keep = shader.fragment(bar)
        if not keep:
            continue
        zbuffer[y, x] = frag_depth
        color[y, x] = rgb
        written += 1
    return written


# ============================================================
#  Bresenham line
# ============================================================

def line(x0, y0, x1, y1, color: np.ndarray, rgb):
    """
    Bresenham integer line drawing.

    Pixels outside the buffer are dropped. Used for wireframe output.
    """
    H, W = color.shape[:2]

    steep = abs(x0 - x1) < abs(y0 - y1)
    if steep:
        x0, y0 = y0, x0
        x1, y1 = y1, x1
    if x0 > x1:
        x0, x1 = x1, x0
        y0, y1 = y1, y0

    dx = x1 - x0
    dy = abs(y1 - y0)
    error2 = 0
    y = y0
    ystep = 1 if y1 > y0 else -1

    for x in range(x0, x1 + 1):
        px, py = (y, x) if steep else (x, y)
        if 0 <= px < W and 0 <= py < H:
            color[py, px] = rgb
        error2 += 2 * dy
        if error2 > dx:
            y += ystep
            error2 -= 2 * dx
