from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Tuple

import numpy as np


class PoseEngine(ABC):
    """
    Inference engine seam.

    run() takes a preprocessed (1,H,W,3) float32 tensor and returns
    (heatmaps, offsets) as NHWC float32 arrays:
        heatmaps (1, gridH, gridW, J)   confidences in [0..1]
        offsets  (1, gridH, gridW, 2J)  y-offsets in [0, J), x-offsets in [J, 2J)
    """

    @abstractmethod
    def output_shapes(self) -> Dict[str, Optional[Sequence[Optional[int]]]]:
        """
        Static NHWC shapes keyed "heatmaps" / "offsets". Unknown dimensions
        are None; a whole shape may be None when the model does not declare it.
        """

    @abstractmethod
    def run(self, input_tensor: np.ndarray) -> Tuple[np.ndarray, np.ndarray]: ...

    @abstractmethod
    def close(self) -> None: ...
