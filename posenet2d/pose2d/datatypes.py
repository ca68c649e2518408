from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np


RGBColor = Tuple[int, int, int]


@dataclass(frozen=True)
class Keypoint:
    """
    One 2D joint in source-frame pixel coordinates (origin top-left).
    """
    joint_index: int
    x: float
    y: float
    confidence: float  # [0..1]


@dataclass(frozen=True)
class JointPair:
    start_joint: int
    end_joint: int
    color: RGBColor


@dataclass(frozen=True)
class DrawRequest:
    """
    A line segment handed to the render sink.
    """
    start: Keypoint
    end: Keypoint
    width: float
    color: RGBColor


@dataclass
class FramePose:
    """
    Pipeline output for a single frame.

    keypoints / renderable are ordered by joint index. kpts / conf carry
    the same values as arrays for stacking into a Pose2DSequence.
    """
    keypoints: List[Keypoint]
    renderable: List[bool]
    segments: List[DrawRequest] = field(default_factory=list)
    kpts: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=np.float32))  # (J,2)
    conf: np.ndarray = field(default_factory=lambda: np.zeros((0,), dtype=np.float32))    # (J,)

    def __iter__(self):
        return iter(zip(self.keypoints, self.renderable))


@dataclass
class Pose2DSequence:
    """
    17-keypoint COCO output for a whole video.
    """
    t: np.ndarray          # (T,)
    frame_idx: np.ndarray  # (T,)
    kpts: np.ndarray       # (T, 17, 2) in pixel coords
    conf: np.ndarray       # (T, 17) confidence [0..1]
    image_size: tuple[int, int]  # (W,H)
    joint_names: list[str]
    # (T, 17) bool, gate decision of the live run (raw per-frame confidence)
    renderable: Optional[np.ndarray] = None
