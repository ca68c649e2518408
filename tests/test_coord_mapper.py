from __future__ import annotations

import numpy as np
import pytest

from conftest import make_tensors, put_peak
from posenet2d.pose2d.coord_mapper import FrameGeometry, compute_stride, map_all_to_source, map_to_source
from posenet2d.pose2d.errors import PoseConfigError
from posenet2d.pose2d.heatmap_decode import locate_keypoint, locate_keypoints


@pytest.mark.parametrize(
    "input_height,grid_height,expected",
    [
        (360, 23, 16.0),   # 359/22 = 16.32
        (257, 17, 16.0),   # exact 16
        (513, 33, 16.0),
        (360, 12, 32.0),   # 359/11 = 32.6
        (360, 20, 16.0),   # 359/19 = 18.9 -> 16
        (100, 20, 0.0),    # 99/19 = 5.2 -> 0
    ],
)
def test_stride_is_floored_to_multiple_of_8(input_height, grid_height, expected):
    assert compute_stride(input_height, grid_height) == expected


def test_stride_rejects_degenerate_grid():
    with pytest.raises(PoseConfigError):
        compute_stride(360, 1)


def test_geometry_rejects_bad_source_size():
    with pytest.raises(PoseConfigError):
        FrameGeometry.build(360, 23, 0, 720)


def test_single_peak_matches_closed_form():
    H_in, grid_h, src_h, src_w = 360, 23, 720, 1280
    heat, off = make_tensors(grid_h=grid_h, grid_w=grid_h)
    put_peak(heat, off, joint=7, x=3, y=4, conf=0.9, offset_x=2.5, offset_y=-1.25)

    cell, offset, _ = locate_keypoint(heat, off, 7)
    geom = FrameGeometry.build(H_in, grid_h, src_w, src_h)
    x, y = map_to_source(cell, offset, geom)

    stride = (H_in - 1) // (grid_h - 1)
    stride -= stride % 8
    assert stride == 16
    scale = src_h / H_in
    aspect = src_w / src_h
    assert x == pytest.approx((3 * stride + 2.5) * scale * aspect)
    assert y == pytest.approx((H_in - (4 * stride + -1.25)) * scale)
    assert x == pytest.approx(179.5555556)
    assert y == pytest.approx(594.5)


def test_vectorized_mapping_agrees_with_scalar():
    rng = np.random.default_rng(3)
    heat = rng.random((1, 23, 23, 17), dtype=np.float32)
    off = (rng.normal(size=(1, 23, 23, 34)) * 4).astype(np.float32)
    geom = FrameGeometry.build(360, 23, 1280, 720)

    peaks = locate_keypoints(heat, off)
    out = np.zeros((17, 2), dtype=np.float32)
    res = map_all_to_source(peaks.cells, peaks.offsets, geom, out=out)
    assert res is out

    for k in range(17):
        cell, offset, _ = locate_keypoint(heat, off, k)
        x, y = map_to_source(cell, offset, geom)
        assert out[k, 0] == pytest.approx(x, rel=1e-5, abs=1e-3)
        assert out[k, 1] == pytest.approx(y, rel=1e-5, abs=1e-3)


def test_no_clamping_of_overshoot():
    geom = FrameGeometry.build(360, 23, 360, 360)
    # last cell plus a positive offset lands past the right edge
    x, y = map_to_source((22, 0), (20.0, 5.0), geom)
    assert x == pytest.approx(22 * 16 + 20.0)
    assert x > 360
    assert y == pytest.approx(355.0)
    # negative y-offset at row 0 overshoots past the bottom edge
    _, y = map_to_source((0, 0), (0.0, -4.0), geom)
    assert y == pytest.approx(364.0)
