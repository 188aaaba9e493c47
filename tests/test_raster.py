import logging

import numpy as np
import pytest

from softgl.raster import barycentric, line, triangle

RED = (255, 0, 0)
BLUE = (0, 0, 255)
TRI = np.array([(10.0, 10.0), (200.0, 30.0), (50.0, 180.0)])


def buffers(w=100, h=100):
    return np.zeros((h, w, 3), dtype=np.uint8), np.zeros((h, w), dtype=np.uint8)


def test_barycentric_inside_points_are_positive_and_sum_to_one():
    rng = np.random.default_rng(7)
    for _ in range(200):
        weights = rng.uniform(0.05, 1.0, size=3)
        weights /= weights.sum()
        p = weights @ TRI
        bar = barycentric(TRI, p)
        assert (bar > 0).all()
        assert bar.sum() == pytest.approx(1.0)
        assert bar == pytest.approx(weights, abs=1e-9)


@pytest.mark.parametrize("p", [(0.0, 0.0), (250.0, 30.0), (5.0, 190.0), (150.0, 150.0)])
def test_barycentric_outside_points_have_a_negative_weight(p):
    assert (barycentric(TRI, p) < 0).any()


def test_barycentric_degenerate_triangle_returns_sentinel():
    flat = [(0.0, 0.0), (10.0, 10.0), (20.0, 20.0)]
    assert barycentric(flat, (5.0, 5.0)).tolist() == [-1.0, 1.0, 1.0]


def test_right_triangle_fills_exactly_covered_pixels(solid, screen):
    color, zbuf = buffers(800, 800)
    pts = screen([(400, 400, 100), (450, 400, 100), (400, 450, 100)])

    written = triangle(pts, solid(RED), color, zbuf)

    ys, xs = np.nonzero(zbuf)
    covered = set(zip(xs.tolist(), ys.tolist()))
    expected = {(400 + a, 400 + b) for a in range(51) for b in range(51) if a + b <= 50}
    assert covered == expected
    assert written == len(expected) == 1326
    assert (zbuf[ys, xs] == 100).all()
    assert (color[ys, xs] == RED).all()
    # nothing outside the triangle, let alone the bounding box
    assert np.count_nonzero(color.any(axis=2)) == len(expected)


@pytest.mark.parametrize("depth", [1, 37, 100, 254, 255])
def test_flat_triangle_stores_uniform_depth(solid, screen, depth):
    color, zbuf = buffers(200, 200)
    pts = screen([(13, 7, depth), (187, 41, depth), (59, 193, depth)])
    triangle(pts, solid(RED), color, zbuf)

    stored = zbuf[zbuf > 0]
    assert stored.size > 1000
    assert (stored == depth).all()


def test_zero_depth_never_beats_cleared_buffer(solid, screen):
    color, zbuf = buffers(800, 800)
    pts = screen([(400, 400, 0), (450, 400, 0), (400, 450, 0)])
    assert triangle(pts, solid(RED), color, zbuf) == 0
    assert not color.any()


def test_depth_is_interpolated_and_clamped(solid, screen):
    color, zbuf = buffers()
    pts = screen([(10, 10, -50), (90, 10, 400), (10, 90, 400)])
    triangle(pts, solid(RED), color, zbuf)
    assert zbuf.max() == 255
    # near vertex 0 the depth is clamped to 0 and never written
    assert zbuf[10, 10] == 0


def test_nearer_triangle_wins_regardless_of_order(solid, screen):
    near = screen([(10, 10, 200), (60, 10, 200), (10, 60, 200)])
    far = screen([(20, 20, 100), (70, 20, 100), (20, 70, 100)])

    c1, z1 = buffers(80, 80)
    triangle(near, solid(RED), c1, z1)
    triangle(far, solid(BLUE), c1, z1)

    c2, z2 = buffers(80, 80)
    triangle(far, solid(BLUE), c2, z2)
    triangle(near, solid(RED), c2, z2)

    assert np.array_equal(c1, c2)
    assert np.array_equal(z1, z2)
    assert tuple(c1[25, 25]) == RED
    assert tuple(c1[60, 20]) == BLUE  # far only


def test_discarded_fragments_write_nothing(solid, screen):
    color, zbuf = buffers()
    pts = screen([(10, 10, 100), (60, 10, 100), (10, 60, 100)])
    assert triangle(pts, solid(RED, keep=False), color, zbuf) == 0
    assert not zbuf.any()
    assert not color.any()


def test_negative_screen_coordinate_skips_whole_triangle(solid, screen, caplog):
    color, zbuf = buffers()
    pts = screen([(-1, 10, 100), (60, 10, 100), (10, 60, 100)])
    with caplog.at_level(logging.WARNING, logger="softgl.raster"):
        assert triangle(pts, solid(RED), color, zbuf) == 0
    assert "outside bounds of canvas" in caplog.text
    assert not color.any()


def test_perspective_divide_is_applied_before_coverage(solid):
    color, zbuf = buffers()
    # same triangle as (10,10),(60,10),(10,60) with w = 2
    pts = np.array([
        [20.0, 20.0, 200.0, 2.0],
        [120.0, 20.0, 200.0, 2.0],
        [20.0, 120.0, 200.0, 2.0],
    ])
    triangle(pts, solid(RED), color, zbuf)
    assert zbuf[10, 10] == 100
    assert zbuf[60, 60] == 0
    assert not zbuf[:, 61:].any()


def test_bounding_box_is_clamped_to_canvas(solid, screen):
    color, zbuf = buffers(50, 50)
    pts = screen([(10, 10, 100), (400, 10, 100), (10, 400, 100)])
    written = triangle(pts, solid(RED), color, zbuf)
    assert written == 50 * 50 - 10 * 50 - 10 * 40
    assert tuple(color[49, 49]) == RED


def test_line_horizontal_and_steep():
    color = np.zeros((20, 20, 3), dtype=np.uint8)
    line(2, 3, 12, 3, color, RED)
    assert (color[3, 2:13, 0] == 255).all()
    assert np.count_nonzero(color[:, :, 0]) == 11

    color[:] = 0
    line(5, 1, 7, 15, color, RED)
    rows = np.nonzero(color[:, :, 0])[0]
    assert sorted(set(rows.tolist())) == list(range(1, 16))


def test_line_is_clipped_to_buffer():
    color = np.zeros((10, 10, 3), dtype=np.uint8)
    line(-5, 5, 20, 5, color, RED)
    assert (color[5, :, 0] == 255).all()
    assert np.count_nonzero(color[:, :, 0]) == 10
