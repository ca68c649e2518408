"""
Moving-average filter for temporal smoothing of 2D keypoints.

Each joint keeps its last N raw detections and reports their mean. Larger
windows remove more jitter but the reported position trails the true one by
roughly N/2 frames. Call reset() whenever playback restarts or seeks,
otherwise the first frames after the jump are averaged with stale positions.
"""

import logging
from collections import deque

import numpy as np

from posenet2d.pose2d.datatypes import Keypoint
from posenet2d.pose2d.errors import PoseConfigError

logger = logging.getLogger(__name__)


class MovingAverageFilter:
    """Moving average over the last `window` keypoints of one joint."""

    def __init__(self, window=0):
        self.window = _check_window(window)
        self.history = deque(maxlen=max(1, self.window))

    def __call__(self, kp):
        """
        Push a raw keypoint and return the smoothed one.

        Args:
            kp: Raw Keypoint for this frame

        Returns:
            Mean of x, y and confidence over the stored history, or kp
            itself when the window is 0.
        """
        if self.window == 0:
            return kp

        # deque(maxlen) evicts the oldest entry on overflow
        self.history.append(kp)
        n = len(self.history)
        return Keypoint(
            joint_index=kp.joint_index,
            x=sum(h.x for h in self.history) / n,
            y=sum(h.y for h in self.history) / n,
            confidence=sum(h.confidence for h in self.history) / n,
        )

    def set_window(self, window):
        """Shrinking keeps the newest entries; 0 drops everything."""
        window = _check_window(window)
        if window == 0:
            self.history = deque(maxlen=1)
        else:
            self.history = deque(self.history, maxlen=window)
        self.window = window

    def reset(self):
        self.history.clear()

    def __len__(self):
        return len(self.history)


class MovingAverageFilter2D:
    """Moving-average filter for a fixed set of joints."""

    def __init__(self, num_keypoints, window=0):
        self.num_keypoints = int(num_keypoints)
        self.window = _check_window(window)
        self.filters = [MovingAverageFilter(self.window) for _ in range(self.num_keypoints)]

    def __call__(self, keypoints):
        """
        Filter one frame of keypoints.

        Args:
            keypoints: sequence of num_keypoints Keypoints ordered by joint index

        Returns:
            list of smoothed Keypoints, same order
        """
        if len(keypoints) != self.num_keypoints:
            raise ValueError(
                f"Expected {self.num_keypoints} keypoints, got {len(keypoints)}"
            )
        return [f(kp) for f, kp in zip(self.filters, keypoints)]

    def smooth_arrays(self, kpts, conf, out_kpts, out_conf):
        """
        Array form used by the pipeline: (J,2) and (J,) in, results written
        into the caller's buffers.
        """
        for j, f in enumerate(self.filters):
            kp = f(Keypoint(j, float(kpts[j, 0]), float(kpts[j, 1]), float(conf[j])))
            out_kpts[j, 0] = kp.x
            out_kpts[j, 1] = kp.y
            out_conf[j] = kp.confidence
        return out_kpts, out_conf

    def set_window(self, window):
        window = _check_window(window)
        if window != self.window:
            logger.info(f"Filter window {self.window} -> {window}")
        for f in self.filters:
            f.set_window(window)
        self.window = window

    def reset(self):
        """Reset all filters."""
        for f in self.filters:
            f.reset()

    def history_lengths(self):
        return np.array([len(f) for f in self.filters], dtype=np.int32)


def _check_window(window):
    window = int(window)
    if window < 0:
        raise PoseConfigError(f"Filter window must be >= 0, got {window}")
    return window
