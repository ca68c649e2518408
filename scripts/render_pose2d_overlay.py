from __future__ import annotations

import argparse

from posenet2d.pose2d.confidence import threshold_from_percent
from posenet2d.viz.pose2d_overlay import OverlayStyle, render_pose2d_overlay


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--video", required=True)
    ap.add_argument("--pose_npz", required=True)
    ap.add_argument("--out", required=True)
    ap.add_argument("--conf", type=float, default=1.0, help="Confidence threshold in percent (0-100); only used for files "
                         "saved without per-frame gate decisions")
    ap.add_argument("--line_width", type=float, default=5.0)
    ap.add_argument("--stride", type=int, default=1)
    ap.add_argument("--max_frames", type=int, default=None)
    ap.add_argument("--preview", action="store_true")
    ap.add_argument("--labels", action="store_true")
    args = ap.parse_args()

    style = OverlayStyle(
        conf_thresh=threshold_from_percent(args.conf),
        line_width=args.line_width,
        draw_labels=args.labels,
    )

    n = render_pose2d_overlay(
        video_path=args.video,
        pose2d_npz_path=args.pose_npz,
        out_video_path=args.out,
        style=style,
        stride=args.stride,
        max_frames=args.max_frames,
        show_preview=args.preview,
    )

    print(f"Wrote {n} frames of overlay video to: {args.out}")


if __name__ == "__main__":
    main()
