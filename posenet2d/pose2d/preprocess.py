from __future__ import annotations

import cv2
import numpy as np


# ImageNet channel means (RGB, 0..255) used by the PoseNet ResNet50 export
RESNET_MEAN_RGB = np.array([123.15, 115.90, 103.06], dtype=np.float32)


def preprocess_resnet(frame_bgr: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    BGR uint8 frame -> (1, height, width, 3) float32 network input.

    The frame is squashed to the network size without keeping aspect ratio;
    the coordinate mapper undoes that with source_width / source_height.
    """
    if frame_bgr is None or frame_bgr.ndim != 3 or frame_bgr.shape[2] != 3:
        raise ValueError(f"Expected an HxWx3 BGR frame, got {getattr(frame_bgr, 'shape', None)}")
    rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    rgb = cv2.resize(rgb, (int(width), int(height)), interpolation=cv2.INTER_LINEAR)
    x = rgb.astype(np.float32)
    x -= RESNET_MEAN_RGB
    return x[np.newaxis, ...]
