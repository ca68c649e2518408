from __future__ import annotations

import argparse
import logging
from pathlib import Path

from posenet2d.io.pipeline_config import PipelineConfig, load_pipeline_config
from posenet2d.pose2d.confidence import threshold_from_percent
from posenet2d.pose2d.stage_a_pose2d import run_pose2d_on_video


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--video", required=True, help="Input video path")
    ap.add_argument("--model", required=True, help="PoseNet ONNX model (.onnx)")
    ap.add_argument("--config", default=None, help="Pipeline config JSON (optional)")
    ap.add_argument("--out_dir", required=True, help="Output run folder (e.g. runs/test1)")

    # Overrides for the config file
    ap.add_argument("--input_size", type=int, default=None, help="Square network input size (default 360)")
    ap.add_argument("--conf", type=float, default=None, help="Confidence threshold in percent (0-100)")
    ap.add_argument("--filter_window", type=int, default=None, help="Moving-average window; 0 disables")
    ap.add_argument("--cuda", action="store_true", help="Prefer CUDAExecutionProvider when available")

    ap.add_argument("--stride", type=int, default=1)
    ap.add_argument("--max_frames", type=int, default=None)
    ap.add_argument("--start_frame", type=int, default=0)
    ap.add_argument("--overlay", action="store_true", help="Also write an overlay video")
    ap.add_argument("-v", "--verbose", action="store_true")

    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_pipeline_config(args.config) if args.config else PipelineConfig()
    cfg = cfg.with_overrides(
        input_width=args.input_size,
        input_height=args.input_size,
        conf_thresh=threshold_from_percent(args.conf) if args.conf is not None else None,
        filter_window=args.filter_window,
        providers=("CUDAExecutionProvider", "CPUExecutionProvider") if args.cuda else None,
    )

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    npz_out = out_dir / "pose2d.npz"
    overlay_out = out_dir / "pose2d_overlay.mp4" if args.overlay else None

    seq = run_pose2d_on_video(
        video_path=args.video,
        out_npz_path=str(npz_out),
        model_path=args.model,
        cfg=cfg,
        stride=args.stride,
        max_frames=args.max_frames,
        start_frame=args.start_frame,
        overlay_path=str(overlay_out) if overlay_out else None,
    )

    print(f"Wrote {len(seq.frame_idx)} frames:\n  {npz_out}")
    if overlay_out:
        print(f"  {overlay_out}")


if __name__ == "__main__":
    main()
