from __future__ import annotations

from typing import Optional

import numpy as np

from posenet2d.pose2d.datatypes import Keypoint
from posenet2d.pose2d.errors import PoseConfigError


DEFAULT_CONF_THRESH = 0.01


def threshold_from_percent(percent: float) -> float:
    """UI sliders give 0..100."""
    return validate_threshold(float(percent) / 100.0)


def validate_threshold(threshold: float) -> float:
    t = float(threshold)
    if not 0.0 <= t <= 1.0:
        raise PoseConfigError(f"Confidence threshold must be in [0, 1], got {threshold}")
    return t


def is_renderable(kp: Keypoint, threshold: float) -> bool:
    return kp.confidence >= threshold


def renderable_mask(conf: np.ndarray, threshold: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    if out is None:
        out = np.empty(conf.shape, dtype=bool)
    return np.greater_equal(conf, threshold, out=out)
