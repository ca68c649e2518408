from __future__ import annotations

"""
Peak finding on PoseNet heatmaps.

Heatmaps are NHWC (1, gridH, gridW, J). Offsets are (1, gridH, gridW, 2J)
where joint k keeps its y-offset in channel k and its x-offset in
channel k + J.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class HeatmapPeaks:
    """
    Per-joint decode result. Arrays are reused frame to frame.
    """
    cells: np.ndarray    # (J,2) grid (x, y)
    offsets: np.ndarray  # (J,2) sub-cell (x, y) offset in input pixels
    conf: np.ndarray     # (J,)
    flat_idx: np.ndarray  # (J,) argmax scratch

    @classmethod
    def allocate(cls, num_joints: int) -> "HeatmapPeaks":
        return cls(
            cells=np.zeros((num_joints, 2), dtype=np.float32),
            offsets=np.zeros((num_joints, 2), dtype=np.float32),
            conf=np.zeros((num_joints,), dtype=np.float64),
            flat_idx=np.zeros((num_joints,), dtype=np.intp),
        )

    @property
    def num_joints(self) -> int:
        return int(self.conf.shape[0])


def _nan_safe_argmax(values: np.ndarray) -> int:
    """argmax that skips NaN (np.argmax stops at the first NaN)."""
    if np.all(np.isnan(values)):
        return 0
    return int(np.nanargmax(values))


def locate_keypoint(
    heatmaps: np.ndarray,
    offsets: np.ndarray,
    joint_index: int,
) -> Tuple[Tuple[int, int], Tuple[float, float], float]:
    """
    Find the strongest cell of one joint's heatmap.

    Returns ((x, y), (offset_x, offset_y), confidence). Only values strictly
    above the running maximum (starting at 0) win, so the first maximum in
    row-major order is kept and a heatmap with no positive cell decodes to
    ((0, 0), (0.0, 0.0), 0.0).
    """
    num_joints = heatmaps.shape[3]
    heat = heatmaps[0, :, :, joint_index]
    grid_w = heat.shape[1]

    flat = int(np.argmax(heat))
    if np.isnan(heat.flat[flat]):
        flat = _nan_safe_argmax(heat.ravel())
    y, x = divmod(flat, grid_w)
    confidence = float(heat[y, x])
    if not confidence > 0.0:
        return (0, 0), (0.0, 0.0), 0.0

    offset_x = float(offsets[0, y, x, joint_index + num_joints])
    offset_y = float(offsets[0, y, x, joint_index])
    return (x, y), (offset_x, offset_y), confidence


def locate_keypoints(
    heatmaps: np.ndarray,
    offsets: np.ndarray,
    out: Optional[HeatmapPeaks] = None,
) -> HeatmapPeaks:
    """
    Decode every joint in one pass. Same tie-break and zero-heatmap rules as
    locate_keypoint; results are written into `out` when given.
    """
    _, grid_h, grid_w, num_joints = heatmaps.shape
    if out is None:
        out = HeatmapPeaks.allocate(num_joints)

    heat2d = heatmaps[0].reshape(grid_h * grid_w, num_joints)
    off2d = offsets[0].reshape(grid_h * grid_w, 2 * num_joints)
    joints = np.arange(num_joints)

    np.argmax(heat2d, axis=0, out=out.flat_idx)
    out.conf[:] = heat2d[out.flat_idx, joints]
    for j in np.flatnonzero(np.isnan(out.conf)):
        out.flat_idx[j] = _nan_safe_argmax(heat2d[:, j])
        out.conf[j] = heat2d[out.flat_idx[j], j]

    # NaN compares False here as well
    empty = ~(out.conf > 0.0)
    out.flat_idx[empty] = 0
    out.conf[empty] = 0.0

    out.cells[:, 1], out.cells[:, 0] = np.divmod(out.flat_idx, grid_w)
    out.offsets[:, 0] = off2d[out.flat_idx, joints + num_joints]
    out.offsets[:, 1] = off2d[out.flat_idx, joints]
    out.offsets[empty] = 0.0
    return out
