from __future__ import annotations


class PoseConfigError(ValueError):
    """
    The pipeline was built with settings that cannot work together
    (tensor shapes vs joint count, bad sizes, out-of-range threshold).
    Not recoverable at runtime.
    """


class InferenceError(RuntimeError):
    """
    The inference engine failed on one frame. The frame is dropped and
    the temporal smoother is left untouched.
    """
