from __future__ import annotations

import json

import pytest

from posenet2d.io.pipeline_config import PipelineConfig, config_from_dict, load_pipeline_config
from posenet2d.pose2d.errors import PoseConfigError


def test_defaults():
    cfg = PipelineConfig()
    assert (cfg.input_width, cfg.input_height) == (360, 360)
    assert cfg.num_joints == 17
    assert cfg.heatmap_layer == "float_heatmaps"
    assert cfg.offsets_layer == "float_short_offsets"
    assert cfg.filter_window == 0
    assert cfg.line_width == 5.0


def test_load_from_json(tmp_path):
    p = tmp_path / "pipeline.json"
    p.write_text(json.dumps({
        "input_width": 257,
        "input_height": 257,
        "conf_thresh_percent": 35,
        "filter_window": 4,
        "providers": ["CUDAExecutionProvider", "CPUExecutionProvider"],
    }), encoding="utf-8")

    cfg = load_pipeline_config(str(p))
    assert cfg.input_height == 257
    assert cfg.conf_thresh == pytest.approx(0.35)
    assert cfg.filter_window == 4
    assert cfg.providers == ("CUDAExecutionProvider", "CPUExecutionProvider")


@pytest.mark.parametrize("raw", [
    {"bogus": 1},
    {"conf_thresh": 1.5},
    {"conf_thresh": 0.2, "conf_thresh_percent": 20},
    {"filter_window": -1},
    {"input_height": 0},
])
def test_bad_values_rejected(raw):
    with pytest.raises(PoseConfigError):
        config_from_dict(raw)


def test_non_object_json_rejected(tmp_path):
    p = tmp_path / "pipeline.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(PoseConfigError):
        load_pipeline_config(str(p))


def test_overrides_skip_none():
    cfg = PipelineConfig(filter_window=3).with_overrides(filter_window=None, conf_thresh=0.4)
    assert cfg.filter_window == 3
    assert cfg.conf_thresh == 0.4
    with pytest.raises(PoseConfigError):
        cfg.with_overrides(filter_window=-5)
