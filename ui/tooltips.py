"""Tooltip constants, text, and drawing for parameter panel."""

import pygame
from typing import Optional

TOOLTIP_BG = (28, 28, 32)
TOOLTIP_BORDER = (60, 60, 68)
TOOLTIP_TEXT = (240, 240, 235)
TOOLTIP_MINMAX = (150, 150, 148)
TOOLTIP_MAX_WIDTH = 220
TOOLTIP_PADDING = 6
TOOLTIP_OFFSET_Y = 8
TOOLTIP_DESC_MINMAX_GAP = 4

_COUPLING_TEXT = (
    "How strongly a difference in the {src} channel between a pixel and its neighbor pushes {dst} "
    "intensity along that edge. Only the sign of the difference counts, not its size: with a positive "
    "value {dst} flows toward the neighbor that has more {src}.",
    "Negative = {dst} flees brighter {src} (spreads out); 0 = no effect; positive = {dst} gathers where {src} is bright.",
)
_CHANNEL_NAMES = {"r": "red", "g": "green", "b": "blue"}

# (description, min_max_meaning). Key = param name matching panel _slider_rects / _tooltip_rects.
PARAM_TOOLTIPS = {
    "steps_per_tick": (
        "Simulation steps per displayed frame. Below 1 the simulation runs once every few frames "
        "(0.25 = one step every 4 frames); at 1 or more it runs that many whole steps per frame.",
        "Min = slow motion; max = several steps between frames, fast and choppy.",
    ),
    "flux_inertia": (
        "Fraction of each edge's flux from the previous step that is kept before this step's push is added. "
        "Gives the flow momentum so motion carries on after the cause is gone.",
        "Min = memoryless, jittery; max = long-lived currents that overshoot and swirl.",
    ),
    "temperature": (
        "Global gain on every push: both the channel couplings and the random noise are multiplied by it.",
        "Min = frozen image; max = violent flow and quick saturation to black/white.",
    ),
    "random_factor": (
        "Strength of the random push added to every edge and channel each step (uniform in -1..1, times temperature). "
        "Noise moves intensity around but never creates or destroys it.",
        "Min = fully deterministic flow; max = grainy, boiling texture.",
    ),
    "fps": (
        "Display frames per second. Steps per frame is counted against this rate.",
        None,
    ),
}
for _src, _src_name in _CHANNEL_NAMES.items():
    for _dst, _dst_name in _CHANNEL_NAMES.items():
        PARAM_TOOLTIPS[f"c_{_src}{_dst}"] = (
            _COUPLING_TEXT[0].format(src=_src_name, dst=_dst_name),
            _COUPLING_TEXT[1].format(src=_src_name, dst=_dst_name),
        )


def wrap_tooltip_text(text: str, font: pygame.font.Font, max_width: int) -> list[str]:
    lines = []
    current: list[str] = []
    for word in text.split():
        w, _ = font.size(" ".join(current + [word]))
        if current and w > max_width:
            lines.append(" ".join(current))
            current = [word]
        else:
            current.append(word)
    if current:
        lines.append(" ".join(current))
    return lines


def _text_box_width(lines: list[str], font: pygame.font.Font) -> int:
    return min(
        TOOLTIP_MAX_WIDTH + 2 * TOOLTIP_PADDING,
        max((font.size(l)[0] for l in lines), default=0) + 2 * TOOLTIP_PADDING,
    )


def draw_tooltip(
    surface: pygame.Surface,
    font: pygame.font.Font,
    small_font: pygame.font.Font,
    tooltip_raw: Optional[tuple[str, Optional[str]] | str],
    mouse_pos: tuple[int, int],
) -> None:
    if not tooltip_raw:
        return
    if isinstance(tooltip_raw, tuple):
        desc, min_max = tooltip_raw[0], (tooltip_raw[1] if len(tooltip_raw) > 1 else None)
    else:
        desc, min_max = tooltip_raw, None
    if not desc:
        return
    lines_desc = wrap_tooltip_text(desc, font, TOOLTIP_MAX_WIDTH)
    lines_mm = wrap_tooltip_text(min_max, small_font, TOOLTIP_MAX_WIDTH) if min_max else []
    box_w = max(_text_box_width(lines_desc, font), _text_box_width(lines_mm, small_font))
    box_h = len(lines_desc) * font.get_height() + 2 * TOOLTIP_PADDING
    if lines_mm:
        box_h += TOOLTIP_DESC_MINMAX_GAP + len(lines_mm) * small_font.get_height()

    # Prefer below-right of the cursor; flip when it would leave the surface
    mx, my = mouse_pos
    sw, sh = surface.get_size()
    tx = mx + 12 if mx + 12 + box_w <= sw else mx - box_w - 12
    ty = my + TOOLTIP_OFFSET_Y if my + TOOLTIP_OFFSET_Y + box_h <= sh else my - box_h - TOOLTIP_OFFSET_Y
    tx = max(0, min(tx, sw - box_w))
    ty = max(0, min(ty, sh - box_h))

    tooltip_rect = pygame.Rect(tx, ty, box_w, box_h)
    pygame.draw.rect(surface, TOOLTIP_BG, tooltip_rect)
    pygame.draw.rect(surface, TOOLTIP_BORDER, tooltip_rect, 1)
    y_off = ty + TOOLTIP_PADDING
    for line in lines_desc:
        surface.blit(font.render(line, True, TOOLTIP_TEXT), (tx + TOOLTIP_PADDING, y_off))
        y_off += font.get_height()
    if lines_mm:
        y_off += TOOLTIP_DESC_MINMAX_GAP
        for line in lines_mm:
            surface.blit(small_font.render(line, True, TOOLTIP_MINMAX), (tx + TOOLTIP_PADDING, y_off))
            y_off += small_font.get_height()
