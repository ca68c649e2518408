from __future__ import annotations

"""
Pipeline settings and their JSON loader.
"""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple
import json

from posenet2d.pose2d.confidence import DEFAULT_CONF_THRESH, validate_threshold
from posenet2d.pose2d.errors import PoseConfigError
from posenet2d.pose2d.skeleton import DEFAULT_LINE_WIDTH


@dataclass(frozen=True)
class PipelineConfig:
    input_width: int = 360
    input_height: int = 360
    num_joints: int = 17
    heatmap_layer: str = "float_heatmaps"
    offsets_layer: str = "float_short_offsets"
    apply_sigmoid: bool = True      # exported graphs emit heatmap logits
    channels_last: bool = True      # False: outputs are NCHW and get transposed
    conf_thresh: float = DEFAULT_CONF_THRESH
    filter_window: int = 0          # 0 = smoothing off
    line_width: float = DEFAULT_LINE_WIDTH
    providers: Tuple[str, ...] = ("CPUExecutionProvider",)

    def __post_init__(self) -> None:
        if self.input_width <= 0 or self.input_height <= 0:
            raise PoseConfigError(f"Invalid input size {self.input_width}x{self.input_height}")
        if self.num_joints <= 0:
            raise PoseConfigError(f"num_joints must be positive, got {self.num_joints}")
        if self.filter_window < 0:
            raise PoseConfigError(f"filter_window must be >= 0, got {self.filter_window}")
        validate_threshold(self.conf_thresh)

    def with_overrides(self, **kwargs: Any) -> "PipelineConfig":
        """Return a copy with the non-None kwargs applied (CLI flags)."""
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})


def load_pipeline_config(path: str) -> PipelineConfig:
    """
    Reads a JSON object whose keys are PipelineConfig field names, e.g.

        {
          "input_width": 360,
          "input_height": 360,
          "conf_thresh": 0.35,
          "filter_window": 4
        }

    Missing keys keep their defaults. A threshold may also be given as
    "conf_thresh_percent" (0..100). Unknown keys are rejected.

    Parameters
    ----------
    path : str
        Path to the JSON file.

    Returns
    -------
    PipelineConfig
    """
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise PoseConfigError(f"Expected a JSON object in {path}, got {type(raw).__name__}")
    return config_from_dict(raw)


def config_from_dict(raw: Dict[str, Any]) -> PipelineConfig:
    raw = dict(raw)
    if "conf_thresh_percent" in raw:
        if "conf_thresh" in raw:
            raise PoseConfigError("Give either conf_thresh or conf_thresh_percent, not both")
        raw["conf_thresh"] = float(raw.pop("conf_thresh_percent")) / 100.0

    known = {f.name for f in fields(PipelineConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise PoseConfigError(f"Unknown pipeline config keys: {unknown}")

    if "providers" in raw:
        raw["providers"] = tuple(str(x) for x in raw["providers"])
    return PipelineConfig(**raw)
