from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from posenet2d.io.pipeline_config import PipelineConfig
from posenet2d.pose2d.confidence import renderable_mask, threshold_from_percent, validate_threshold
from posenet2d.pose2d.coord_mapper import FrameGeometry, map_all_to_source
from posenet2d.pose2d.datatypes import FramePose, JointPair, Keypoint
from posenet2d.pose2d.errors import InferenceError, PoseConfigError
from posenet2d.pose2d.heatmap_decode import HeatmapPeaks, locate_keypoints
from posenet2d.pose2d.preprocess import preprocess_resnet
from posenet2d.pose2d.providers.base import PoseEngine
from posenet2d.pose2d.skeleton import COCO17_NAMES, JOINT_PAIRS, build_draw_requests
from posenet2d.pose2d.smoothing import MovingAverageFilter2D

logger = logging.getLogger(__name__)

Preprocess = Callable[[np.ndarray, int, int], np.ndarray]


class PoseNetPipeline:
    """
    Single-person PoseNet decode loop: one frame in, one FramePose out.

    Owns the engine handle, the per-joint working buffers (allocated once)
    and the temporal smoother. Not thread-safe; frames must be fed in order
    from one thread. Call reset() after a seek or restart.
    """

    def __init__(
        self,
        engine: PoseEngine,
        cfg: Optional[PipelineConfig] = None,
        joint_names: Sequence[str] = COCO17_NAMES,
        pairs: Sequence[JointPair] = JOINT_PAIRS,
        preprocess: Preprocess = preprocess_resnet,
    ) -> None:
        self.cfg = cfg or PipelineConfig()
        self.engine = engine
        self.joint_names = list(joint_names)
        self.pairs = tuple(pairs)
        self.preprocess = preprocess

        J = self.cfg.num_joints
        if len(self.joint_names) != J:
            raise PoseConfigError(
                f"Joint name table has {len(self.joint_names)} entries, config expects {J}"
            )
        for pair in self.pairs:
            if not (0 <= pair.start_joint < J and 0 <= pair.end_joint < J):
                raise PoseConfigError(f"Joint pair {pair} out of range for {J} joints")
        self._check_static_shapes(engine.output_shapes())

        self.conf_thresh = validate_threshold(self.cfg.conf_thresh)
        self.smoother = MovingAverageFilter2D(J, window=self.cfg.filter_window)

        # working buffers, reused every frame
        self._peaks = HeatmapPeaks.allocate(J)
        self._raw_kpts = np.zeros((J, 2), dtype=np.float32)
        self._out_kpts = np.zeros((J, 2), dtype=np.float32)
        self._out_conf = np.zeros((J,), dtype=np.float64)
        self._mask = np.zeros((J,), dtype=bool)
        self._geom: Optional[FrameGeometry] = None
        self._geom_key: Optional[Tuple[int, int, int]] = None

        logger.info(
            f"PoseNetPipeline: {J} joints, input {self.cfg.input_width}x{self.cfg.input_height}, "
            f"conf_thresh={self.conf_thresh:.3f}, filter_window={self.cfg.filter_window}"
        )

    # ------------------------------------------------------------------
    # shape checks

    def _check_static_shapes(self, shapes: Dict[str, Optional[Sequence[Optional[int]]]]) -> None:
        J = self.cfg.num_joints
        expected = {"heatmaps": J, "offsets": 2 * J}
        for key, channels in expected.items():
            shape = shapes.get(key)
            if shape is None:
                continue  # dynamic; checked per frame
            if len(shape) != 4:
                raise PoseConfigError(f"{key} output must be 4-D, engine reports {list(shape)}")
            if shape[-1] is not None and int(shape[-1]) != channels:
                raise PoseConfigError(
                    f"{key} output has {shape[-1]} channels, expected {channels} for {J} joints"
                )

    def _check_frame_shapes(self, heatmaps: np.ndarray, offsets: np.ndarray) -> None:
        J = self.cfg.num_joints
        if heatmaps.ndim != 4 or offsets.ndim != 4:
            raise PoseConfigError(
                f"Expected 4-D outputs, got heatmaps {heatmaps.shape} offsets {offsets.shape}"
            )
        if heatmaps.shape[0] != 1:
            raise PoseConfigError(f"Expected batch size 1, got {heatmaps.shape[0]}")
        if heatmaps.shape[3] != J:
            raise PoseConfigError(f"heatmaps has {heatmaps.shape[3]} channels, expected {J}")
        if offsets.shape[3] != 2 * J:
            raise PoseConfigError(f"offsets has {offsets.shape[3]} channels, expected {2 * J}")
        if offsets.shape[1:3] != heatmaps.shape[1:3]:
            raise PoseConfigError(
                f"Grid mismatch: heatmaps {heatmaps.shape[1:3]} vs offsets {offsets.shape[1:3]}"
            )

    def _geometry(self, grid_h: int, source_w: int, source_h: int) -> FrameGeometry:
        key = (grid_h, source_w, source_h)
        if self._geom is None or self._geom_key != key:
            self._geom = FrameGeometry.build(self.cfg.input_height, grid_h, source_w, source_h)
            self._geom_key = key
        return self._geom

    # ------------------------------------------------------------------
    # per frame

    def process_frame(self, frame_bgr: np.ndarray) -> FramePose:
        """
        Preprocess, run inference and decode one BGR frame.

        Engine failures raise InferenceError and leave the smoother as it was.
        """
        if self.engine is None:
            raise RuntimeError("Pipeline is closed")
        H, W = frame_bgr.shape[:2]
        try:
            tensor = self.preprocess(frame_bgr, self.cfg.input_width, self.cfg.input_height)
            heatmaps, offsets = self.engine.run(tensor)
        except Exception as e:
            logger.warning(f"Inference failed: {type(e).__name__}: {e}")
            raise InferenceError(f"Inference failed: {e}") from e
        return self.process_outputs(heatmaps, offsets, (W, H))

    def process_outputs(
        self,
        heatmaps: np.ndarray,
        offsets: np.ndarray,
        source_size: Tuple[int, int],
    ) -> FramePose:
        """
        Decode engine outputs for a source frame of size (W, H).
        """
        heatmaps = np.asarray(heatmaps)
        offsets = np.asarray(offsets)
        self._check_frame_shapes(heatmaps, offsets)
        W, H = int(source_size[0]), int(source_size[1])
        geom = self._geometry(heatmaps.shape[1], W, H)

        peaks = locate_keypoints(heatmaps, offsets, out=self._peaks)
        map_all_to_source(peaks.cells, peaks.offsets, geom, out=self._raw_kpts)
        renderable_mask(peaks.conf, self.conf_thresh, out=self._mask)

        if self.smoother.window == 0:
            self._out_kpts[:] = self._raw_kpts
            self._out_conf[:] = peaks.conf
        else:
            self.smoother.smooth_arrays(self._raw_kpts, peaks.conf, self._out_kpts, self._out_conf)

        keypoints: List[Keypoint] = [
            Keypoint(j, float(self._out_kpts[j, 0]), float(self._out_kpts[j, 1]), float(self._out_conf[j]))
            for j in range(self.cfg.num_joints)
        ]
        renderable = [bool(v) for v in self._mask]
        segments = build_draw_requests(keypoints, renderable, self.pairs, self.cfg.line_width)
        return FramePose(
            keypoints=keypoints,
            renderable=renderable,
            segments=segments,
            kpts=self._out_kpts.copy(),
            conf=self._out_conf.copy(),
        )

    # ------------------------------------------------------------------
    # runtime settings / lifecycle

    def set_conf_thresh(self, threshold: float) -> None:
        self.conf_thresh = validate_threshold(threshold)

    def set_conf_thresh_percent(self, percent: float) -> None:
        self.conf_thresh = threshold_from_percent(percent)

    def set_filter_window(self, window: int) -> None:
        self.smoother.set_window(window)

    @property
    def filter_window(self) -> int:
        return self.smoother.window

    def reset(self) -> None:
        """Clear smoothing history (video restart / seek)."""
        self.smoother.reset()
        logger.debug("Smoothing history cleared")

    def close(self) -> None:
        if self.engine is not None:
            self.engine.close()
            self.engine = None

    def __enter__(self) -> "PoseNetPipeline":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
