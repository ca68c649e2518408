from __future__ import annotations

import numpy as np
import pytest


class FakeEngine:
    """Returns canned tensors; counts calls; can be told to fail."""

    def __init__(self, heatmaps, offsets, shapes=None, fail=False):
        self.heatmaps = heatmaps
        self.offsets = offsets
        self.shapes = shapes if shapes is not None else {
            "heatmaps": list(heatmaps.shape),
            "offsets": list(offsets.shape),
        }
        self.fail = fail
        self.calls = 0
        self.closed = False
        self.last_input = None

    def output_shapes(self):
        return self.shapes

    def run(self, input_tensor):
        self.calls += 1
        self.last_input = input_tensor
        if self.fail:
            raise RuntimeError("malformed input")
        return self.heatmaps, self.offsets

    def close(self):
        self.closed = True


def make_tensors(grid_h=23, grid_w=23, num_joints=17):
    heat = np.zeros((1, grid_h, grid_w, num_joints), dtype=np.float32)
    off = np.zeros((1, grid_h, grid_w, 2 * num_joints), dtype=np.float32)
    return heat, off


def put_peak(heat, off, joint, x, y, conf, offset_x=0.0, offset_y=0.0):
    J = heat.shape[3]
    heat[0, y, x, joint] = conf
    off[0, y, x, joint] = offset_y
    off[0, y, x, joint + J] = offset_x


@pytest.fixture
def tensors():
    return make_tensors()


@pytest.fixture
def frame():
    return np.zeros((720, 1280, 3), dtype=np.uint8)
