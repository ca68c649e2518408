from __future__ import annotations

from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from posenet2d.io.npz_io import save_pose2d_sequence
from posenet2d.io.pipeline_config import PipelineConfig
from posenet2d.io.video import get_video_info, iter_video_frames
from posenet2d.pose2d.datatypes import Pose2DSequence
from posenet2d.pose2d.errors import InferenceError
from posenet2d.pose2d.pipeline import PoseNetPipeline
from posenet2d.pose2d.providers.base import PoseEngine
from posenet2d.viz.pose2d_overlay import OverlayStyle, draw_pose


def run_pose2d_on_video(
    video_path: str,
    out_npz_path: str,
    model_path: Optional[str] = None,
    cfg: Optional[PipelineConfig] = None,
    stride: int = 1,
    max_frames: Optional[int] = None,
    start_frame: int = 0,
    overlay_path: Optional[str] = None,
    engine: Optional[PoseEngine] = None,
) -> Pose2DSequence:
    """
    Run the PoseNet pipeline over a video and save the smoothed keypoints.

    Either model_path (ONNX) or a ready engine must be given. Frames the
    engine fails on are skipped and reported; they do not enter the
    smoothing history.
    """
    cfg = cfg or PipelineConfig()
    info = get_video_info(video_path)

    if engine is None:
        if model_path is None:
            raise ValueError("Either model_path or engine is required")
        from posenet2d.pose2d.providers.onnx_posenet import OnnxPoseNetEngine
        engine = OnnxPoseNetEngine(model_path, cfg)

    writer = None
    if overlay_path is not None:
        Path(overlay_path).parent.mkdir(parents=True, exist_ok=True)
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        writer = cv2.VideoWriter(str(overlay_path), fourcc, info.fps / stride, (info.width, info.height))
        if not writer.isOpened():
            raise RuntimeError(f"Could not open VideoWriter for {overlay_path}")
    style = OverlayStyle(conf_thresh=cfg.conf_thresh, line_width=cfg.line_width)

    t_list = []
    idx_list = []
    kpts_list = []
    conf_list = []
    mask_list = []
    n_failed = 0

    with PoseNetPipeline(engine, cfg) as pipeline:
        try:
            for frame_idx, t_sec, frame_bgr in iter_video_frames(
                video_path, stride=stride, max_frames=max_frames, start_frame=start_frame,
            ):
                try:
                    pose = pipeline.process_frame(frame_bgr)
                except InferenceError as e:
                    n_failed += 1
                    print(f"[Pose2D] frame {frame_idx}: {e}")
                    if writer is not None:
                        writer.write(frame_bgr)
                    continue

                t_list.append(t_sec)
                idx_list.append(frame_idx)
                kpts_list.append(pose.kpts)
                conf_list.append(pose.conf)
                mask_list.append(pose.renderable)

                if writer is not None:
                    writer.write(draw_pose(frame_bgr, pose, style, pipeline.joint_names))

                # progress every 20 decoded frames
                if len(idx_list) % 20 == 0:
                    total = info.frame_count if info.frame_count > 0 else "?"
                    print(
                        f"[Pose2D] {Path(video_path).name}: "
                        f"processed {len(idx_list)} frames "
                        f"(last source frame_idx={frame_idx}, total={total})"
                    )
        finally:
            if writer is not None:
                writer.release()
        joint_names = list(pipeline.joint_names)

    if n_failed:
        print(f"[Pose2D] {n_failed} frame(s) skipped after inference errors")

    J = cfg.num_joints
    seq = Pose2DSequence(
        t=np.array(t_list, dtype=np.float32),
        frame_idx=np.array(idx_list, dtype=np.int32),
        kpts=np.stack(kpts_list, axis=0).astype(np.float32) if kpts_list else np.zeros((0, J, 2), np.float32),
        conf=np.stack(conf_list, axis=0).astype(np.float32) if conf_list else np.zeros((0, J), np.float32),
        renderable=np.array(mask_list, dtype=bool).reshape(-1, J),
        image_size=(info.width, info.height),
        joint_names=joint_names,
    )

    save_pose2d_sequence(out_npz_path, seq, video_path=video_path, fps=info.fps)
    return seq
