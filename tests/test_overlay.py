from __future__ import annotations

import numpy as np

from posenet2d.pose2d.datatypes import DrawRequest, Keypoint
from posenet2d.pose2d.skeleton import MAGENTA
from posenet2d.viz.pose2d_overlay import OverlayStyle, draw_pose, draw_segments, pose_from_arrays


def test_segment_drawn_in_bgr():
    img = np.zeros((50, 50, 3), dtype=np.uint8)
    seg = DrawRequest(Keypoint(0, 5, 25, 1.0), Keypoint(1, 45, 25, 1.0), 3.0, (255, 0, 0))
    draw_segments(img, [seg])
    # red in RGB lands in the last (R) channel of a BGR frame
    b, g, r = img[25, 25].tolist()
    assert (b, g) == (0, 0)
    assert r > 200


def test_out_of_frame_segment_does_not_raise():
    img = np.zeros((20, 20, 3), dtype=np.uint8)
    seg = DrawRequest(Keypoint(0, -30, -30, 1.0), Keypoint(1, 400, 400, 1.0), 5.0, MAGENTA)
    draw_segments(img, [seg])
    assert img.any()


def test_pose_from_arrays_and_draw():
    kpts = np.zeros((17, 2), dtype=np.float32)
    conf = np.zeros((17,), dtype=np.float32)
    kpts[0] = (10, 10)
    kpts[1] = (40, 10)
    conf[0] = conf[1] = 0.9
    conf[2] = 0.2
    kpts[2] = (10, 40)

    pose = pose_from_arrays(kpts, conf, conf_thresh=0.5, line_width=2.0)
    assert pose.renderable[:3] == [True, True, False]
    assert [(s.start.joint_index, s.end.joint_index) for s in pose.segments] == [(0, 1)]

    img = np.zeros((60, 60, 3), dtype=np.uint8)
    draw_pose(img, pose, OverlayStyle(conf_thresh=0.5, joint_color=(0, 255, 0)))
    b, g, r = img[10, 25].tolist()  # magenta face edge
    assert g == 0 and b > 100 and r > 100
    assert img[10, 10].tolist() == [0, 255, 0]    # joint dot drawn over the line
    assert not img[40, 10].any()                  # gated-out joint


def test_labels_use_joint_names():
    kpts = np.full((17, 2), 30, dtype=np.float32)
    conf = np.ones((17,), dtype=np.float32)
    pose = pose_from_arrays(kpts, conf, conf_thresh=0.5)
    img = np.zeros((80, 120, 3), dtype=np.uint8)
    draw_pose(img, pose, OverlayStyle(draw_labels=True), joint_names=["j"] * 17)
    assert img.any()
