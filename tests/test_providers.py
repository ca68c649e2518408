from __future__ import annotations

import numpy as np
import pytest

from posenet2d.pose2d.preprocess import RESNET_MEAN_RGB, preprocess_resnet
from posenet2d.pose2d.providers.onnx_posenet import OnnxPoseNetEngine


def test_preprocess_shape_and_normalization():
    frame = np.zeros((720, 1280, 3), dtype=np.uint8)
    frame[..., 2] = 200  # red in BGR
    x = preprocess_resnet(frame, 360, 360)
    assert x.shape == (1, 360, 360, 3)
    assert x.dtype == np.float32
    assert x[0, 0, 0].tolist() == pytest.approx((np.array([200, 0, 0]) - RESNET_MEAN_RGB).tolist())


def test_preprocess_rejects_grayscale():
    with pytest.raises(ValueError):
        preprocess_resnet(np.zeros((10, 10), dtype=np.uint8), 8, 8)


def test_missing_model_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        OnnxPoseNetEngine(str(tmp_path / "posenet.onnx"))
