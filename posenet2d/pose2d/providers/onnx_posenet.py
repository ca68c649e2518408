from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import onnxruntime as ort

from posenet2d.io.pipeline_config import PipelineConfig
from posenet2d.pose2d.errors import PoseConfigError
from posenet2d.pose2d.providers.base import PoseEngine

logger = logging.getLogger(__name__)


def _sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def _nchw_to_nhwc_shape(shape: Sequence) -> List:
    return [shape[0], shape[2], shape[3], shape[1]]


class OnnxPoseNetEngine(PoseEngine):
    """
    Runs an ONNX PoseNet export and looks its outputs up by name.
    """

    def __init__(self, model_path: str, cfg: Optional[PipelineConfig] = None) -> None:
        self.cfg = cfg or PipelineConfig()
        if not Path(model_path).exists():
            raise FileNotFoundError(f"ONNX model not found: {model_path}")

        options = ort.SessionOptions()
        options.log_severity_level = 2  # warnings and errors only
        available = set(ort.get_available_providers())
        providers = [p for p in self.cfg.providers if p in available] or ["CPUExecutionProvider"]

        self.session: Optional[ort.InferenceSession] = ort.InferenceSession(
            str(model_path), sess_options=options, providers=providers,
        )
        self.input_name = self.session.get_inputs()[0].name

        outputs = {o.name: o for o in self.session.get_outputs()}
        for layer in (self.cfg.heatmap_layer, self.cfg.offsets_layer):
            if layer not in outputs:
                raise PoseConfigError(
                    f"Model {model_path} has no output '{layer}' (outputs: {sorted(outputs)})"
                )
        self._raw_shapes = {
            "heatmaps": outputs[self.cfg.heatmap_layer].shape,
            "offsets": outputs[self.cfg.offsets_layer].shape,
        }
        logger.info(
            f"Loaded {Path(model_path).name} on {self.session.get_providers()} "
            f"(input '{self.input_name}')"
        )

    def output_shapes(self) -> Dict[str, Optional[Sequence[Optional[int]]]]:
        out: Dict[str, Optional[Sequence[Optional[int]]]] = {}
        for key, shape in self._raw_shapes.items():
            if shape is None or len(shape) != 4:
                out[key] = None
                continue
            # symbolic dims come back as strings
            dims = [d if isinstance(d, int) else None for d in shape]
            out[key] = dims if self.cfg.channels_last else _nchw_to_nhwc_shape(dims)
        return out

    def run(self, input_tensor: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        if self.session is None:
            raise RuntimeError("Engine is closed")
        heatmaps, offsets = self.session.run(
            [self.cfg.heatmap_layer, self.cfg.offsets_layer],
            {self.input_name: input_tensor},
        )
        heatmaps = np.asarray(heatmaps, dtype=np.float32)
        offsets = np.asarray(offsets, dtype=np.float32)
        if not self.cfg.channels_last:
            heatmaps = np.ascontiguousarray(heatmaps.transpose(0, 2, 3, 1))
            offsets = np.ascontiguousarray(offsets.transpose(0, 2, 3, 1))
        if self.cfg.apply_sigmoid:
            heatmaps = _sigmoid(heatmaps)
        return heatmaps, offsets

    def close(self) -> None:
        # onnxruntime frees the session when the last reference goes away
        self.session = None
