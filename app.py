"""
App shell: display and main loop. One engine tick per display frame; the tick scheduler decides how
many simulation steps that is. Engine, UI, and config are wired here.
"""

import argparse
import logging
import sys

import numpy as np
import pygame

from sim import Engine, InvalidGridError
from sim.seed_util import make_rng
from ui.grid_view import draw_frame
from ui.panel import ParamPanel
import config

logger = logging.getLogger(__name__)

TITLE = "Chromaflux"
WIDTH, HEIGHT = 1100, 760
BACKGROUND = (0, 0, 0)
GRID_PANEL_WIDTH = 720  # left panel for the image; parameter panel takes the rest


def load_bitmap(path: str) -> np.ndarray:
    """Image file -> (height, width, 3) uint8, row-major."""
    surf = pygame.image.load(path)
    return np.ascontiguousarray(pygame.surfarray.array3d(surf).transpose(1, 0, 2), dtype=np.uint8)


def run(cfg: dict, resume: dict | None = None) -> int:
    """Open the window and run until closed. resume is a saved state to continue from. Returns a process exit code."""
    pygame.init()
    screen = pygame.display.set_mode((WIDTH, HEIGHT))
    pygame.display.set_caption(TITLE)
    clock = pygame.time.Clock()
    config.refresh_index()

    image_path = cfg.get("image")
    initial_state = cfg.get("initial_state", "random")
    seed = cfg.get("seed", -1)
    if cfg.get("lock_seed") and seed == -1 and "actual_seed_used" in cfg:
        seed = cfg["actual_seed_used"]
    rng, actual_seed_used = make_rng(seed)

    bitmap = None
    if image_path:
        try:
            bitmap = load_bitmap(image_path)
        except (pygame.error, FileNotFoundError) as exc:
            logger.error("Could not load image %s: %s", image_path, exc)
            pygame.quit()
            return 1

    engine = Engine(config.params_from_config(cfg), rng=rng)
    try:
        if bitmap is not None:
            engine.configure(bitmap, initial_state=initial_state)
        else:
            size = cfg.get("random_size", {})
            engine.configure_blank(size.get("width", 0), size.get("height", 0))
    except InvalidGridError as exc:
        logger.error("%s", exc)
        pygame.quit()
        return 1

    last = config.get_last_config()
    if resume is not None and engine.load_snapshot(resume["values"], resume["flux"], resume["step_count"]):
        logger.info("Resumed at step %d", resume["step_count"])

    grid_rect = pygame.Rect(0, 0, GRID_PANEL_WIDTH, HEIGHT)
    panel_rect = pygame.Rect(GRID_PANEL_WIDTH, 0, WIDTH - GRID_PANEL_WIDTH, HEIGHT)

    def reseed() -> None:
        nonlocal actual_seed_used
        s = panel.params.get("seed", -1)
        if s == -1 and panel.params.get("lock_seed"):
            s = actual_seed_used
        engine.rng, actual_seed_used = make_rng(s)

    def do_randomize() -> None:
        reseed()
        engine.reset_random()

    def do_reload() -> None:
        reseed()
        engine.configure(bitmap, initial_state="bitmap")

    def save_current_config() -> None:
        params = panel.get_params()
        name = (params.get("config_name") or "").strip() or "unnamed"
        cfg_out = panel._config_dict(image=image_path, initial_state=initial_state, random_size=cfg.get("random_size"))
        cfg_out["actual_seed_used"] = actual_seed_used
        config.save_config(cfg_out, actual_seed_used, name, step_count=engine.step_count, state=engine.snapshot())
        panel.set_selected_config(actual_seed_used, config._sanitize_name(name))

    def load_config_callback(seed_id: int, name: str) -> None:
        nonlocal actual_seed_used
        path = config.get_config_path(seed_id, name)
        if not path.exists():
            return
        loaded = config.load_config(path)
        panel.apply_config(loaded)
        panel.params["config_name"] = name
        engine.params = config.params_from_config(loaded)
        state = config.load_state(seed_id, name)
        if state is not None and engine.load_snapshot(state["values"], state["flux"], state["step_count"]):
            actual_seed_used = loaded.get("actual_seed_used", seed_id)
            engine.rng, _ = make_rng(actual_seed_used)
        else:
            do_randomize()

    panel = ParamPanel(
        panel_rect,
        {
            **cfg,
            "seed": cfg.get("actual_seed_used", cfg.get("seed", -1)),
            "config_name": last[1] if last else "",
            "selected_config": last,
            "on_load_config": load_config_callback,
        },
        on_save=save_current_config,
        on_randomize=do_randomize,
        on_reload=do_reload if bitmap is not None else None,
    )

    running = True
    while running:
        params = panel.get_params()
        clock.tick(max(1, min(60, int(params["fps"]))))

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                break
            panel.handle_event(event)

        params = panel.get_params()
        engine.set_params(**panel.sim_params())
        frame = engine.frame() if params["paused"] else engine.tick()

        screen.fill(BACKGROUND)
        draw_frame(
            screen,
            grid_rect,
            frame,
            view_mode=params.get("view_mode", "rgb"),
            render_scale=params.get("render_scale", 4),
            smooth=params.get("smooth_scaling", False),
        )
        panel.draw(screen, stats=engine.stats, actual_used_seed=actual_seed_used)
        panel.draw_tooltip(screen)
        pygame.display.flip()

    pygame.quit()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Animate an image by flowing color between neighboring pixels.")
    parser.add_argument("--config", help="Config JSON to load (default: last saved config)")
    parser.add_argument("--image", help="Source image; overrides the config")
    parser.add_argument("--random", action="store_true", help="Start from random pixels even when an image is given")
    parser.add_argument("--width", type=int, help="Grid width when no image is given")
    parser.add_argument("--height", type=int, help="Grid height when no image is given")
    parser.add_argument("--seed", type=int, help="Random seed; -1 = new seed each run")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def config_from_args(args: argparse.Namespace) -> dict:
    cfg = config.load_config(args.config)
    if args.image:
        cfg["image"] = args.image
        cfg["initial_state"] = "bitmap"
    if args.random:
        cfg["initial_state"] = "random"
    if args.width is not None:
        cfg["random_size"]["width"] = args.width
    if args.height is not None:
        cfg["random_size"]["height"] = args.height
    if args.seed is not None:
        cfg["seed"] = args.seed
        cfg.pop("actual_seed_used", None)
    return cfg


def resume_state(args: argparse.Namespace) -> dict | None:
    """Saved state of the last slot, when this run starts from that slot's config and not from a fresh image."""
    last = config.get_last_config()
    if last is None or args.image:
        return None
    if config.resolve_config_path(args.config) != config.get_config_path(*last).resolve():
        return None
    return config.load_state(*last)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return run(config_from_args(args), resume=resume_state(args))


if __name__ == "__main__":
    sys.exit(main())
