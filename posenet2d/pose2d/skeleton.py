from __future__ import annotations

from typing import List, Sequence, Tuple

from posenet2d.pose2d.datatypes import DrawRequest, JointPair, Keypoint, RGBColor


COCO17_NAMES = [
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
]

MAGENTA: RGBColor = (255, 0, 255)
RED: RGBColor = (255, 0, 0)
GREEN: RGBColor = (0, 255, 0)
BLUE: RGBColor = (0, 0, 255)

DEFAULT_LINE_WIDTH = 5.0


def _pairs(color: RGBColor, edges: Sequence[Tuple[int, int]]) -> List[JointPair]:
    return [JointPair(a, b, color) for a, b in edges]


# Order matters to the renderer: face, torso, arms, legs.
JOINT_PAIRS: Tuple[JointPair, ...] = tuple(
    _pairs(MAGENTA, [(0, 1), (0, 2), (1, 3), (2, 4)])
    + _pairs(RED, [(5, 6), (5, 11), (6, 12), (5, 12), (6, 11), (11, 12)])
    + _pairs(GREEN, [(5, 7), (7, 9), (6, 8), (8, 10)])
    + _pairs(BLUE, [(11, 13), (13, 15), (12, 14), (14, 16)])
)


def build_draw_requests(
    keypoints: Sequence[Keypoint],
    renderable: Sequence[bool],
    pairs: Sequence[JointPair] = JOINT_PAIRS,
    line_width: float = DEFAULT_LINE_WIDTH,
) -> List[DrawRequest]:
    """
    One segment per pair whose two endpoints both passed the confidence gate.
    A pair with any failing endpoint is skipped for the frame.
    """
    out: List[DrawRequest] = []
    for pair in pairs:
        if renderable[pair.start_joint] and renderable[pair.end_joint]:
            out.append(DrawRequest(
                start=keypoints[pair.start_joint],
                end=keypoints[pair.end_joint],
                width=float(line_width),
                color=pair.color,
            ))
    return out
