from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from posenet2d.pose2d.datatypes import Pose2DSequence


def save_npz_compressed(path: str | Path, **arrays: Any) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(str(path), **arrays)


def load_npz(path: str | Path) -> Dict[str, Any]:
    data = np.load(str(path), allow_pickle=True)
    return {k: data[k] for k in data.files}


def save_pose2d_sequence(
    path: str | Path,
    seq: Pose2DSequence,
    video_path: Optional[str] = None,
    fps: Optional[float] = None,
) -> None:
    extra: Dict[str, Any] = {}
    if video_path is not None:
        extra["video_path"] = np.array([video_path], dtype=object)
    if seq.renderable is not None:
        extra["renderable"] = np.asarray(seq.renderable, dtype=bool)
    if fps is not None:
        extra["fps"] = np.array([fps], dtype=np.float32)
    save_npz_compressed(
        path,
        t=seq.t,
        frame_idx=seq.frame_idx,
        kpts=seq.kpts,
        conf=seq.conf,
        image_size=np.array(seq.image_size, dtype=np.int32),
        joint_names=np.array(seq.joint_names, dtype=object),
        **extra,
    )


def load_pose2d_sequence(path: str | Path) -> Pose2DSequence:
    data = load_npz(path)
    w, h = (int(v) for v in data["image_size"].tolist())
    return Pose2DSequence(
        t=data["t"].astype(np.float32),
        frame_idx=data["frame_idx"].astype(np.int32),
        kpts=data["kpts"].astype(np.float32),
        conf=data["conf"].astype(np.float32),
        image_size=(w, h),
        joint_names=[str(x) for x in data["joint_names"].tolist()],
        renderable=data["renderable"].astype(bool) if "renderable" in data else None,
    )
