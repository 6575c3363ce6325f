"""Right panel: live-updatable sliders (rate, inertia, temperature, noise, 3x3 coupling), play/pause,
randomize/reload, seed, save/update settings, config dropdown."""

import pygame
from typing import Callable

import config
from sim.constants import (
    CHANNELS,
    DEFAULT_FLUX_INERTIA,
    DEFAULT_RANDOM_FACTOR,
    DEFAULT_STEPS_PER_TICK,
    DEFAULT_TEMPERATURE,
)
from ui import tooltips
from ui.colors import VIEW_MODES

FONT_SIZE = 16
TOOLTIP_FONT_SIZE = 19
TOOLTIP_SMALL_FONT_SIZE = 16
LABEL_COLOR = (200, 200, 200)
SLIDER_COLOR = (100, 100, 100)
KNOB_COLOR = (180, 180, 180)
BUTTON_COLOR = (60, 60, 60)
BUTTON_HOVER = (80, 80, 80)

PAD = 8
GAP = 4
ROW_H = 18
TRACK_H = 12
BUTTON_H = 26
VALUE_W = 44
LABEL_CHARS = 28

VIEW_MODE_LABELS = {"rgb": "RGB", "red": "Red (b/w)", "green": "Green (b/w)", "blue": "Blue (b/w)", "luma": "Luma (b/w)"}

# key -> (label, slider min, slider max, divisor). Slider works in ints; param = int / divisor.
SLIDERS = {
    "fps": ("Frame rate (1–60)", 1, 60, 1),
    "render_scale": ("Max px per cell", 1, 16, 1),
    "steps_per_tick": ("Steps per frame", 5, 800, 100),
    "flux_inertia": ("Flux inertia", 0, 100, 100),
    "temperature": ("Temperature", 0, 500, 100),
    "random_factor": ("Random factor", 0, 200, 100),
}
COUPLING_RANGE = (-100, 100, 100)
COUPLING_KEYS = [f"c_{s}{d}" for s in CHANNELS for d in CHANNELS]
_INT_KEYS = ("fps", "render_scale")

_PANEL_DEFAULTS = {
    "fps": 60,
    "render_scale": 4,
    "steps_per_tick": DEFAULT_STEPS_PER_TICK,
    "flux_inertia": DEFAULT_FLUX_INERTIA,
    "temperature": DEFAULT_TEMPERATURE,
    "random_factor": DEFAULT_RANDOM_FACTOR,
    "seed": -1,
    "lock_seed": False,
    "view_mode": "rgb",
    "smooth_scaling": False,
    "config_name": "",
}
_SAVED_KEYS = ("fps", "seed", "lock_seed", "render_scale", "view_mode", "smooth_scaling")
# button key -> boolean param it flips
_TOGGLES = {"pause": "paused", "lock_seed": "lock_seed", "smooth_scaling": "smooth_scaling"}


def coupling_key(src: str, dst: str) -> str:
    return f"c_{src}{dst}"


class TextField:
    """One-line input. Typing edits a buffer; Enter or losing focus passes the stripped buffer to on_commit."""

    def __init__(self, on_commit: Callable[[str], None], accept: Callable[[str, str], bool], max_len: int) -> None:
        self.on_commit = on_commit
        self.accept = accept
        self.max_len = max_len
        self.rect: pygame.Rect | None = None
        self.focused = False
        self.buffer = ""

    def hit(self, pos) -> bool:
        return self.rect is not None and self.rect.collidepoint(pos)

    def focus(self, text: str) -> None:
        self.focused = True
        self.buffer = text

    def blur(self) -> None:
        if self.focused:
            self.focused = False
            self.on_commit(self.buffer.strip())
        self.buffer = ""

    def key(self, event: pygame.event.Event) -> None:
        if event.key == pygame.K_RETURN:
            self.blur()
        elif event.key == pygame.K_BACKSPACE:
            self.buffer = self.buffer[:-1]
        elif event.unicode and len(self.buffer) < self.max_len and self.accept(self.buffer, event.unicode):
            self.buffer += event.unicode

    def draw(self, surface, font, rect: pygame.Rect, shown: str) -> None:
        self.rect = rect
        pygame.draw.rect(surface, SLIDER_COLOR, rect)
        text = self.buffer if self.focused else shown
        surface.blit(font.render(text[:20], True, LABEL_COLOR), (rect.x + 4, rect.y + 1))


class Dropdown:
    """Header box that expands into a list of (value, text) choices; picking one calls on_pick(value)."""

    def __init__(self, on_pick: Callable) -> None:
        self.on_pick = on_pick
        self.rect: pygame.Rect | None = None
        self.expanded = False
        self._options: list[tuple[object, pygame.Rect]] = []

    def draw(self, surface, font, x: int, y: int, w: int, label: str, choices, mouse) -> int:
        """Returns the y just below the header and any open list."""
        self.rect = pygame.Rect(x, y, w, ROW_H)
        pygame.draw.rect(surface, SLIDER_COLOR, self.rect)
        _draw_arrow(surface, self.rect.right, y)
        surface.blit(font.render(label[:LABEL_CHARS], True, LABEL_COLOR), (x + 4, y + 2))
        y += ROW_H + GAP
        self._options = []
        if self.expanded:
            for value, text in choices:
                opt = pygame.Rect(x, y, w, ROW_H)
                pygame.draw.rect(surface, BUTTON_HOVER if opt.collidepoint(mouse) else BUTTON_COLOR, opt)
                surface.blit(font.render(text[:LABEL_CHARS], True, LABEL_COLOR), (opt.x + 4, opt.y + 2))
                self._options.append((value, opt))
                y += ROW_H + 1
        return y

    def click(self, pos) -> bool:
        """Header toggles, an option picks, anything else collapses. True when the click was used."""
        if self.rect is not None and self.rect.collidepoint(pos):
            self.expanded = not self.expanded
            return True
        picked = next((value for value, opt in self._options if opt.collidepoint(pos)), None)
        self.expanded = False
        if picked is None:
            return False
        self.on_pick(picked)
        return True


class ParamPanel:
    """State: params dict; draw and handle events. Save, Randomize and Reload callbacks."""

    def __init__(
        self,
        rect: pygame.Rect,
        initial: dict,
        on_save: Callable[[], None],
        on_randomize: Callable[[], None],
        on_reload: Callable[[], None] | None = None,
    ) -> None:
        self.rect = rect
        self.params = {key: initial.get(key, default) for key, default in _PANEL_DEFAULTS.items()}
        self.params["paused"] = True
        self._set_coupling(initial.get("channel_to_channel"))
        self.on_save = on_save
        self.on_randomize = on_randomize
        self.on_reload = on_reload
        self.on_load_config = initial.get("on_load_config")
        self._selected_config: tuple[int, str] | None = initial.get("selected_config")

        self._seed_field = TextField(self._commit_seed, lambda buf, ch: ch.isdigit() or (ch == "-" and not buf), 20)
        self._name_field = TextField(self._commit_name, lambda buf, ch: True, 48)
        self._view_menu = Dropdown(self._pick_view)
        self._config_menu = Dropdown(self._pick_config)

        self._fonts: dict[int, pygame.font.Font] = {}
        self._slider_rects: dict[str, tuple[pygame.Rect, int, int]] = {}
        self._button_rects: dict[str, pygame.Rect] = {}
        self._tooltip_rects: dict[str, pygame.Rect] = {}
        self._dragging: str | None = None
        self._hover_tooltip_text = None
        self._last_actual_seed: int | None = None

    def _font(self, size: int = FONT_SIZE) -> pygame.font.Font:
        if size not in self._fonts:
            self._fonts[size] = pygame.font.Font(None, size)
        return self._fonts[size]

    def _set_coupling(self, matrix) -> None:
        for i, src in enumerate(CHANNELS):
            for j, dst in enumerate(CHANNELS):
                self.params[coupling_key(src, dst)] = float(matrix[i][j]) if matrix is not None else 0.0

    def get_params(self) -> dict:
        return dict(self.params)

    def coupling_matrix(self) -> list[list[float]]:
        """[src][dst] nested list from the nine coupling sliders."""
        return [[self.params[coupling_key(s, d)] for d in CHANNELS] for s in CHANNELS]

    def sim_params(self) -> dict:
        """Keyword arguments for Engine.set_params."""
        out = {key: self.params[key] for key in ("flux_inertia", "temperature", "random_factor", "steps_per_tick")}
        out["channel_to_channel"] = self.coupling_matrix()
        return out

    # Drawing. Each section draws at y and returns the y where the next one starts.

    def draw(self, surface: pygame.Surface, stats: dict | None = None, actual_used_seed: int | None = None) -> None:
        font = self._font()
        mouse = pygame.mouse.get_pos()
        stats = stats or {}
        self._slider_rects.clear()
        self._button_rects.clear()
        self._tooltip_rects.clear()
        self._last_actual_seed = actual_used_seed

        x, y = self.rect.x + PAD, self.rect.y + 6
        y = self._draw_stats(surface, font, x, y, stats)
        y = self._draw_seed(surface, font, x, y, actual_used_seed)
        y = self._draw_view(surface, font, x, y, mouse)
        y = self._draw_sliders(surface, font, x, y)
        y = self._draw_coupling(surface, font, x, y)
        y = self._draw_actions(surface, font, x, y, stats, mouse)
        self._draw_configs(surface, font, x, y, actual_used_seed, mouse)

    def _label(self, surface, font, text: str, x: int, y: int) -> int:
        surface.blit(font.render(text, True, LABEL_COLOR), (x, y))
        return y + ROW_H

    def _draw_stats(self, surface, font, x, y, stats) -> int:
        self._label(surface, font, f"Step: {stats.get('steps', 0)}", x, y)
        if "mean_r" in stats:
            means = f"mean R {stats['mean_r']:.1f}  G {stats['mean_g']:.1f}  B {stats['mean_b']:.1f}"
            self._label(surface, font, means, x + 100, y)
        return y + ROW_H + GAP

    def _draw_seed(self, surface, font, x, y, actual_used_seed) -> int:
        y = self._label(surface, font, "Seed", x, y)
        seed = self.params["seed"]
        shown = f"-1 ({actual_used_seed})" if seed == -1 and actual_used_seed is not None else str(seed)
        self._seed_field.draw(surface, font, pygame.Rect(x, y, 140, ROW_H), shown)
        self._checkbox(surface, font, "lock_seed", "Lock Seed", x + 150, y)
        return y + ROW_H + GAP

    def _draw_view(self, surface, font, x, y, mouse) -> int:
        y = self._label(surface, font, "View", x, y)
        w = 160
        self._checkbox(surface, font, "smooth_scaling", "Smooth", x + w + 10, y)
        label = VIEW_MODE_LABELS.get(self.params["view_mode"], "RGB")
        choices = [(mode, VIEW_MODE_LABELS[mode]) for mode in VIEW_MODES]
        return self._view_menu.draw(surface, font, x, y, w, label, choices, mouse) + GAP

    def _draw_sliders(self, surface, font, x, y) -> int:
        track_w = self.rect.width - 2 * PAD - VALUE_W
        for key, (text, lo, hi, div) in SLIDERS.items():
            value = self.params[key]
            self._tooltip_rects[key] = pygame.Rect(x, y, self.rect.width - 2 * PAD, ROW_H + TRACK_H + GAP)
            y = self._label(surface, font, text, x, y)
            track = _draw_track(surface, pygame.Rect(x, y, track_w, TRACK_H), round(value * div), lo, hi)
            self._slider_rects[key] = (track, lo, hi)
            shown = str(int(value)) if key in _INT_KEYS else f"{value:.2f}"
            self._label(surface, font, shown, x + track_w + 4, y)
            y += TRACK_H + GAP
        return y

    def _draw_coupling(self, surface, font, x, y) -> int:
        """Rows are the source channel, columns the destination."""
        y = self._label(surface, font, "Coupling (row drives column)", x, y + GAP)
        row_label_w = 20
        col_w = (self.rect.width - 2 * PAD - row_label_w) // 3
        for j, dst in enumerate(CHANNELS):
            self._label(surface, font, f"→{dst.upper()}", x + row_label_w + j * col_w, y)
        y += ROW_H
        lo, hi, div = COUPLING_RANGE
        for src in CHANNELS:
            self._label(surface, font, src.upper(), x, y + ROW_H // 2)
            for j, dst in enumerate(CHANNELS):
                key = coupling_key(src, dst)
                cx = x + row_label_w + j * col_w
                value = self.params[key]
                self._label(surface, font, f"{value:+.2f}", cx, y)
                track = pygame.Rect(cx, y + ROW_H - 4, col_w - 8, TRACK_H)
                self._slider_rects[key] = (_draw_track(surface, track, round(value * div), lo, hi), lo, hi)
                self._tooltip_rects[key] = pygame.Rect(cx, y, col_w - 8, ROW_H + TRACK_H)
            y += ROW_H + TRACK_H + GAP
        return y + GAP

    def _draw_actions(self, surface, font, x, y, stats, mouse) -> int:
        if not self.params["paused"]:
            pause_text = "Pause"
        else:
            pause_text = "Resume" if stats.get("steps", 0) else "Start"
        buttons = [("pause", pause_text, 80), ("randomize", "Randomize", 100)]
        if self.on_reload is not None:
            buttons.append(("reload", "Reload image", 120))
        for key, text, w in buttons:
            self._button(surface, font, key, text, pygame.Rect(x, y, w, BUTTON_H), mouse)
            x += w + 4
        return y + BUTTON_H + GAP

    def _draw_configs(self, surface, font, x, y, actual_used_seed, mouse) -> None:
        y = self._label(surface, font, "Config", x, y)
        sel = self._selected_config
        label = f"{sel[1]} ({sel[0]})" if sel is not None else "—"
        choices = [((seed, name), f"{name} ({seed})") for seed, name in config.list_configs()]
        y = self._config_menu.draw(surface, font, x, y, 200, label, choices, mouse) + GAP

        y = self._label(surface, font, "Name", x, y)
        name_w = 120
        self._name_field.draw(surface, font, pygame.Rect(x, y, name_w, ROW_H), self.params.get("config_name") or "")
        exists = actual_used_seed is not None and config.config_exists(actual_used_seed, self._effective_name())
        save = pygame.Rect(x + name_w + 6, y, 110, BUTTON_H)
        self._button(surface, font, "save", "Update config" if exists else "Save config", save, mouse)
        if exists:
            self._button(surface, font, "delete_config", "Delete config", pygame.Rect(save.right + 4, y, 100, BUTTON_H), mouse)

    def _button(self, surface, font, key: str, text: str, rect: pygame.Rect, mouse) -> None:
        pygame.draw.rect(surface, BUTTON_HOVER if rect.collidepoint(mouse) else BUTTON_COLOR, rect)
        surface.blit(font.render(text, True, LABEL_COLOR), (rect.x + 6, rect.y + 4))
        self._button_rects[key] = rect

    def _checkbox(self, surface, font, key: str, text: str, x: int, y: int) -> None:
        box = pygame.Rect(x, y + 2, 14, 14)
        pygame.draw.rect(surface, KNOB_COLOR if self.params[key] else SLIDER_COLOR, box)
        pygame.draw.rect(surface, LABEL_COLOR, box, 1)
        surface.blit(font.render(text, True, LABEL_COLOR), (x + 18, y + 2))
        self._button_rects[key] = box.union(pygame.Rect(x, y, 18 + font.size(text)[0], ROW_H))

    # Tooltips

    def update_hover_tooltip(self, pos: tuple[int, int]) -> None:
        key = next((k for k, r in self._tooltip_rects.items() if r.collidepoint(pos)), None)
        self._hover_tooltip_text = tooltips.PARAM_TOOLTIPS.get(key) if key else None

    def draw_tooltip(self, surface: pygame.Surface) -> None:
        tooltips.draw_tooltip(
            surface,
            self._font(TOOLTIP_FONT_SIZE),
            self._font(TOOLTIP_SMALL_FONT_SIZE),
            self._hover_tooltip_text,
            pygame.mouse.get_pos(),
        )

    # Events

    def handle_event(self, event: pygame.event.Event) -> bool:
        """Returns True if event was consumed."""
        if event.type == pygame.MOUSEBUTTONDOWN:
            return self._handle_click(event.pos)
        if event.type == pygame.KEYDOWN:
            return self._handle_key(event)
        if event.type == pygame.MOUSEBUTTONUP:
            self._dragging = None
        elif event.type == pygame.MOUSEMOTION:
            self.update_hover_tooltip(event.pos)
            if self._dragging in self._slider_rects:
                self._drag_to(self._dragging, event.pos)
                return True
        return False

    def _handle_click(self, pos: tuple[int, int]) -> bool:
        for field, current in ((self._seed_field, str(self.params["seed"])), (self._name_field, self.params["config_name"])):
            if field.hit(pos):
                self._blur_fields()
                field.focus(current or "")
                return True
        self._blur_fields()
        if self._view_menu.click(pos):
            self._config_menu.expanded = False
            return True
        if self._config_menu.click(pos):
            return True
        for key, (track, _, _) in self._slider_rects.items():
            if track.collidepoint(pos):
                self._dragging = key
                self._drag_to(key, pos)
                return True
        key = next((k for k, r in self._button_rects.items() if r.collidepoint(pos)), None)
        if key is None:
            return False
        self._press(key)
        return True

    def _press(self, key: str) -> None:
        toggled = _TOGGLES.get(key)
        if toggled is not None:
            self.params[toggled] = not self.params[toggled]
            return
        action = {
            "randomize": self.on_randomize,
            "reload": self.on_reload,
            "save": self.on_save,
            "delete_config": self._delete_current,
        }.get(key)
        if action is not None:
            action()

    def _handle_key(self, event: pygame.event.Event) -> bool:
        field = next((f for f in (self._seed_field, self._name_field) if f.focused), None)
        if field is not None:
            field.key(event)
            return True
        if event.key == pygame.K_SPACE:
            self._press("pause")
            return True
        return False

    def _blur_fields(self) -> None:
        self._seed_field.blur()
        self._name_field.blur()

    def _commit_seed(self, text: str) -> None:
        try:
            self.params["seed"] = int(text)
        except ValueError:
            pass  # empty or lone "-": keep the previous seed

    def _commit_name(self, text: str) -> None:
        self.params["config_name"] = text[:64]

    def _pick_view(self, mode: str) -> None:
        self.params["view_mode"] = mode

    def _pick_config(self, slot: tuple[int, str]) -> None:
        self._selected_config = slot
        if self.on_load_config:
            self.on_load_config(*slot)

    def _effective_name(self) -> str:
        raw = self._name_field.buffer if self._name_field.focused else self.params.get("config_name") or ""
        return raw.strip() or "unnamed"

    def _delete_current(self) -> None:
        seed = self._last_actual_seed
        if seed is None:
            return
        name = self._effective_name()
        config.delete_config(seed, name)
        if self._selected_config == (seed, config._sanitize_name(name)):
            self._selected_config = None

    def _drag_to(self, key: str, pos: tuple[int, int]) -> None:
        track, lo, hi = self._slider_rects[key]
        t = min(1.0, max(0.0, (pos[0] - track.x) / max(1, track.width - 8)))
        raw = round(lo + t * (hi - lo))
        if key in _INT_KEYS:
            self.params[key] = int(raw)
        else:
            div = COUPLING_RANGE[2] if key in COUPLING_KEYS else SLIDERS[key][3]
            self.params[key] = raw / div

    # Config dict in and out

    def apply_config(self, cfg: dict) -> None:
        """Load a config dict into panel params (e.g. after loading a saved config)."""
        for key in (*SLIDERS, "seed", "lock_seed", "view_mode", "smooth_scaling", "config_name"):
            if key in cfg:
                self.params[key] = cfg[key]
        self.params["seed"] = cfg.get("actual_seed_used", self.params["seed"])
        if "channel_to_channel" in cfg:
            self._set_coupling(cfg["channel_to_channel"])

    def set_selected_config(self, seed: int, name: str) -> None:
        """Called after save so dropdown shows the current config."""
        self._selected_config = (seed, name)

    def _config_dict(self, image: str | None = None, initial_state: str = "random", random_size: dict | None = None) -> dict:
        out = {"image": image, "initial_state": initial_state, **self.sim_params()}
        out.update({key: self.params[key] for key in _SAVED_KEYS})
        if random_size is not None:
            out["random_size"] = dict(random_size)
        return out


def _draw_arrow(surface: pygame.Surface, right: int, y: int) -> None:
    pygame.draw.polygon(surface, LABEL_COLOR, [(right - 12, y + 4), (right - 6, y + 4), (right - 9, y + 11)])


def _draw_track(surface: pygame.Surface, rect: pygame.Rect, value: int, lo: int, hi: int) -> pygame.Rect:
    """Slider track with its knob at value in [lo, hi]; returns the track rect for hit testing."""
    pygame.draw.rect(surface, SLIDER_COLOR, rect)
    t = (min(max(value, lo), hi) - lo) / max(1, hi - lo)
    pygame.draw.rect(surface, KNOB_COLOR, (rect.x + 4 + int(t * (rect.width - 8)), rect.y, 8, rect.height))
    return rect
