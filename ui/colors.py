"""
Display-only views of the quantized frame. The engine always produces full RGB; a view can
isolate one channel as grayscale or show perceived brightness. Never touches simulation state.
"""

import numpy as np

VIEW_MODES = ("rgb", "red", "green", "blue", "luma")

# Rec. 601 weights
_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def frame_to_view(frame: np.ndarray, view_mode: str = "rgb") -> np.ndarray:
    """frame (h, w, 3) uint8 -> (h, w, 3) uint8 for the chosen view mode. Unknown modes show rgb."""
    if view_mode in ("red", "green", "blue"):
        c = frame[:, :, ("red", "green", "blue").index(view_mode)]
        return np.repeat(c[:, :, np.newaxis], 3, axis=2)
    if view_mode == "luma":
        y = np.clip(frame.astype(np.float64) @ _LUMA, 0, 255).astype(np.uint8)
        return np.repeat(y[:, :, np.newaxis], 3, axis=2)
    return frame
