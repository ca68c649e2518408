from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from posenet2d.pose2d.errors import PoseConfigError


# PoseNet ResNet50 downsamples by a multiple of 8. A model with a different
# output stride needs this re-derived.
STRIDE_QUANTUM = 8


def compute_stride(input_height: int, grid_height: int) -> float:
    """
    Input pixels per heatmap cell, floored to a multiple of STRIDE_QUANTUM.
    (359 / 22 = 16.3 -> 16)
    """
    if grid_height < 2:
        raise PoseConfigError(f"Heatmap grid height must be >= 2, got {grid_height}")
    if input_height < 2:
        raise PoseConfigError(f"Network input height must be >= 2, got {input_height}")
    stride = (input_height - 1) / (grid_height - 1)
    stride -= stride % STRIDE_QUANTUM
    return float(stride)


@dataclass(frozen=True)
class FrameGeometry:
    """
    Everything needed to map grid cells back to one source resolution.
    """
    stride: float
    input_height: int
    scale: float   # source_height / input_height
    aspect: float  # source_width / source_height (un-squeeze)

    @classmethod
    def build(
        cls,
        input_height: int,
        grid_height: int,
        source_width: int,
        source_height: int,
    ) -> "FrameGeometry":
        if source_width <= 0 or source_height <= 0:
            raise PoseConfigError(f"Invalid source size {source_width}x{source_height}")
        return cls(
            stride=compute_stride(input_height, grid_height),
            input_height=int(input_height),
            scale=float(source_height) / float(input_height),
            aspect=float(source_width) / float(source_height),
        )


def map_to_source(
    cell: Tuple[float, float],
    offset: Tuple[float, float],
    geom: FrameGeometry,
) -> Tuple[float, float]:
    cx, cy = cell
    ox, oy = offset
    x = (cx * geom.stride + ox) * geom.scale * geom.aspect
    # vertical axis is flipped against the grid before scaling
    y = (geom.input_height - (cy * geom.stride + oy)) * geom.scale
    return float(x), float(y)


def map_all_to_source(
    cells: np.ndarray,
    offsets: np.ndarray,
    geom: FrameGeometry,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Vectorized map_to_source for (J,2) cells/offsets. No clamping: offset
    overshoot can land slightly outside the frame.
    """
    if out is None:
        out = np.empty_like(cells, dtype=np.float32)
    np.multiply(cells, geom.stride, out=out)
    out += offsets
    out[:, 0] *= geom.scale * geom.aspect
    np.subtract(geom.input_height, out[:, 1], out=out[:, 1])
    out[:, 1] *= geom.scale
    return out
