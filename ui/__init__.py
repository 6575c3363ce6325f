"""UI: frame view and parameter panel."""

from ui.grid_view import draw_frame
from ui.panel import ParamPanel
from ui.colors import frame_to_view

__all__ = ["draw_frame", "ParamPanel", "frame_to_view"]
