"""Left panel: the current frame with thin grey border; pixels come straight from the quantized engine output."""

import pygame
import numpy as np

from ui.colors import frame_to_view

BORDER_COLOR = (80, 80, 80)
BORDER_PX = 1
BACKGROUND = (0, 0, 0)


def frame_to_surface(frame: np.ndarray) -> pygame.Surface:
    """(h, w, 3) uint8 row-major -> pygame Surface of size (w, h)."""
    h, w = frame.shape[0], frame.shape[1]
    data = np.ascontiguousarray(frame).tobytes()
    # fromstring is the only name before pygame 2.1.3
    from_bytes = getattr(pygame.image, "frombytes", None) or pygame.image.fromstring
    return from_bytes(data, (w, h), "RGB")


def fit_rect(grid_rect: pygame.Rect, w: int, h: int, render_scale: int) -> pygame.Rect:
    """Largest rect of aspect w:h, at most render_scale px per cell, centered in grid_rect."""
    scale = min(grid_rect.width / w, grid_rect.height / h)
    if render_scale > 0:
        scale = min(scale, float(render_scale))
    out_w, out_h = max(1, int(w * scale)), max(1, int(h * scale))
    r = pygame.Rect(0, 0, out_w, out_h)
    r.center = grid_rect.center
    return r


def draw_frame(
    surface: pygame.Surface,
    grid_rect: pygame.Rect,
    frame: np.ndarray,
    view_mode: str = "rgb",
    render_scale: int = 4,
    smooth: bool = False,
) -> None:
    """Draw frame into grid_rect, scaled to fit (nearest-neighbor unless smooth). render_scale caps px per cell."""
    h, w = frame.shape[0], frame.shape[1]
    if h == 0 or w == 0:
        return
    surface.fill(BACKGROUND, grid_rect)
    img = frame_to_surface(frame_to_view(frame, view_mode))
    target = fit_rect(grid_rect, w, h, render_scale)
    if target.size == (w, h):
        scaled = img
    elif smooth:
        scaled = pygame.transform.smoothscale(img, target.size)
    else:
        scaled = pygame.transform.scale(img, target.size)
    surface.blit(scaled, target.topleft)
    pygame.draw.rect(surface, BORDER_COLOR, grid_rect, BORDER_PX)
