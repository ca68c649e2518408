from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

from posenet2d.io.npz_io import load_pose2d_sequence
from posenet2d.io.video import get_video_info, iter_video_frames
from posenet2d.pose2d.confidence import DEFAULT_CONF_THRESH, renderable_mask
from posenet2d.pose2d.datatypes import DrawRequest, FramePose, JointPair, Keypoint, RGBColor
from posenet2d.pose2d.skeleton import DEFAULT_LINE_WIDTH, JOINT_PAIRS, build_draw_requests


@dataclass
class OverlayStyle:
    radius: int = 4
    conf_thresh: float = DEFAULT_CONF_THRESH
    line_width: float = DEFAULT_LINE_WIDTH
    joint_color: RGBColor = (255, 255, 255)
    draw_joints: bool = True
    draw_labels: bool = False
    label_scale: float = 0.5


def _pt(kp: Keypoint) -> Tuple[int, int]:
    return int(round(kp.x)), int(round(kp.y))


def _bgr(color: RGBColor) -> Tuple[int, int, int]:
    r, g, b = color
    return int(b), int(g), int(r)


def draw_segments(frame: np.ndarray, segments: Sequence[DrawRequest]) -> np.ndarray:
    """
    Render sink: one anti-aliased line per draw request, in place.
    Points outside the frame are left to cv2 to clip.
    """
    for seg in segments:
        thickness = max(1, int(round(seg.width)))
        cv2.line(frame, _pt(seg.start), _pt(seg.end), _bgr(seg.color), thickness, cv2.LINE_AA)
    return frame


def draw_pose(
    frame: np.ndarray,
    pose: FramePose,
    style: Optional[OverlayStyle] = None,
    joint_names: Optional[Sequence[str]] = None,
) -> np.ndarray:
    style = style or OverlayStyle()
    draw_segments(frame, pose.segments)

    if style.draw_joints:
        for kp, ok in pose:
            if not ok:
                continue
            cv2.circle(frame, _pt(kp), style.radius, _bgr(style.joint_color), -1)
            if style.draw_labels:
                name = joint_names[kp.joint_index] if joint_names else str(kp.joint_index)
                x, y = _pt(kp)
                cv2.putText(frame, name, (x + 4, y - 4),
                            cv2.FONT_HERSHEY_SIMPLEX, style.label_scale,
                            (255, 255, 255), 1, cv2.LINE_AA)
    return frame


def pose_from_arrays(
    kpts: np.ndarray,
    conf: np.ndarray,
    conf_thresh: float,
    pairs: Sequence[JointPair] = JOINT_PAIRS,
    line_width: float = DEFAULT_LINE_WIDTH,
    renderable: Optional[np.ndarray] = None,
) -> FramePose:
    """
    Rebuild a FramePose from one saved (J,2)/(J,) row.

    A saved (J,) renderable mask is reused as is; without one the joints
    are gated again on `conf`.
    """
    keypoints = [
        Keypoint(j, float(kpts[j, 0]), float(kpts[j, 1]), float(conf[j]))
        for j in range(kpts.shape[0])
    ]
    if renderable is None:
        renderable = renderable_mask(conf, conf_thresh)
    renderable = [bool(v) for v in renderable]
    return FramePose(
        keypoints=keypoints,
        renderable=renderable,
        segments=build_draw_requests(keypoints, renderable, pairs, line_width),
        kpts=kpts,
        conf=conf,
    )


def render_pose2d_overlay(
    video_path: str,
    pose2d_npz_path: str,
    out_video_path: str,
    style: Optional[OverlayStyle] = None,
    max_frames: Optional[int] = None,
    stride: int = 1,
    show_preview: bool = False,
) -> int:
    """
    Draw a saved Pose2DSequence onto its source video. Returns frames written.

    Joints are drawn by the gate decisions saved with the sequence; style.conf_thresh
    only applies to older files that have none.
    """
    style = style or OverlayStyle()
    seq = load_pose2d_sequence(pose2d_npz_path)
    info = get_video_info(video_path)

    out_path = Path(out_video_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fourcc = cv2.VideoWriter_fourcc(*"mp4v")
    writer = cv2.VideoWriter(str(out_path), fourcc, info.fps / stride, (info.width, info.height))

    if not writer.isOpened():
        raise RuntimeError(f"Could not open VideoWriter for {out_video_path}")

    # saved frame_idx maps video frame -> pose row
    idx_to_row: Dict[int, int] = {int(fi): row for row, fi in enumerate(seq.frame_idx.tolist())}

    n_written = 0
    try:
        for frame_idx, t_sec, frame in iter_video_frames(video_path, stride=stride, max_frames=max_frames):
            row = idx_to_row.get(frame_idx)
            if row is not None:
                mask = seq.renderable[row] if seq.renderable is not None else None
                pose = pose_from_arrays(seq.kpts[row], seq.conf[row], style.conf_thresh,
                                        line_width=style.line_width, renderable=mask)
                draw_pose(frame, pose, style, seq.joint_names)
                cv2.putText(frame, f"frame={frame_idx} t={t_sec:.3f}s",
                            (10, 25), cv2.FONT_HERSHEY_SIMPLEX, 0.7,
                            (255, 255, 255), 2, cv2.LINE_AA)

            writer.write(frame)
            n_written += 1

            if show_preview:
                cv2.imshow("Pose2D Overlay", frame)
                key = cv2.waitKey(1)
                if key == 27:  # ESC
                    break
    finally:
        writer.release()
        if show_preview:
            cv2.destroyAllWindows()

    return n_written
