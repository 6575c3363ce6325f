"""
Saved run configurations. Each slot is a (seed, name) pair stored as configs/{seed}_{name}.json,
with the grid state alongside it as {seed}_{name}.npz when one was saved.
"""

import json
import logging
import re
from pathlib import Path

import numpy as np

from sim.constants import DEFAULT_HEIGHT, DEFAULT_WIDTH
from sim.params import SimulationParameters

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
LAST_FILE = CONFIG_DIR / "last.txt"

# (seed, sanitized name) of every slot on disk; the panel dropdown reads this, not the directory.
_CONFIG_INDEX: set[tuple[int, str]] = set()

_PARAM_KEYS = ("flux_inertia", "temperature", "random_factor", "channel_to_channel", "steps_per_tick")
_HOST_KEYS = (
    "image", "initial_state", "fps", "seed", "lock_seed", "actual_seed_used",
    "render_scale", "view_mode", "smooth_scaling", "step_count",
)
_STATE_ARRAYS = ("values", "flux")

_NAME_UNSAFE = re.compile(r"[^\w\s-]")
_NAME_SEPARATORS = re.compile(r"[\s-]+")
_NAME_MAX = 64


def _sanitize_name(name: str) -> str:
    cleaned = _NAME_UNSAFE.sub("", (name or "").strip())
    cleaned = _NAME_SEPARATORS.sub("_", cleaned).strip("_")
    return cleaned[:_NAME_MAX] or "unnamed"


def config_id(seed: int, name: str) -> str:
    return f"{seed}_{_sanitize_name(name)}"


def _parse_slot(stem: str) -> tuple[int, str] | None:
    """'{seed}_{name}' -> (seed, name); None when the seed part is not an integer."""
    seed, sep, name = stem.partition("_")
    if not sep:
        return None
    try:
        return int(seed), name
    except ValueError:
        return None


def _slot_file(seed: int, name: str, suffix: str) -> Path:
    return CONFIG_DIR / f"{config_id(seed, name)}{suffix}"


def get_config_path(seed: int, name: str) -> Path:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return _slot_file(seed, name, ".json")


def get_state_path(seed: int, name: str) -> Path:
    return _slot_file(seed, name, ".npz")


def refresh_index() -> None:
    global _CONFIG_INDEX
    found = (_parse_slot(f.stem) for f in CONFIG_DIR.glob("*.json")) if CONFIG_DIR.exists() else ()
    _CONFIG_INDEX = {slot for slot in found if slot is not None}


def list_configs() -> list[tuple[int, str]]:
    """Slots sorted by name (case-insensitive), then seed."""
    return sorted(_CONFIG_INDEX, key=lambda slot: (slot[1].lower(), slot[0]))


def config_exists(seed: int, name: str) -> bool:
    return (seed, _sanitize_name(name)) in _CONFIG_INDEX


def get_last_config() -> tuple[int, str] | None:
    try:
        return _parse_slot(LAST_FILE.read_text().strip())
    except OSError:
        return None


def set_last_config(seed: int, name: str) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LAST_FILE.write_text(config_id(seed, name))


def resolve_config_path(path: Path | str | None = None) -> Path | None:
    """The file load_config would read: the given path, else the last saved slot, else None."""
    if path is not None:
        return Path(path).resolve()
    last = get_last_config()
    return get_config_path(*last).resolve() if last else None


def load_config(path: Path | str | None = None) -> dict:
    """Read a config over the defaults. A missing file, or no last slot, gives plain defaults."""
    source = resolve_config_path(path)
    if source is None or not source.exists():
        return _default_config()
    return _merge_defaults(json.loads(source.read_text()))


def save_config(
    cfg: dict,
    actual_seed: int,
    name: str,
    step_count: int = 0,
    state: dict | None = None,
) -> None:
    """Write the slot for (actual_seed, name), plus its grid state when given, and mark it last."""
    record = {**cfg, "actual_seed_used": actual_seed, "step_count": step_count}
    get_config_path(actual_seed, name).write_text(json.dumps(record, indent=2))
    if state is not None:
        arrays = {key: state[key] for key in _STATE_ARRAYS}
        np.savez_compressed(get_state_path(actual_seed, name), step_count=np.int64(state["step_count"]), **arrays)
    set_last_config(actual_seed, name)
    _CONFIG_INDEX.add((actual_seed, _sanitize_name(name)))
    logger.info("Saved config %s", config_id(actual_seed, name))


def load_state(seed: int, name: str) -> dict | None:
    """{'values': (3, N), 'flux': (3, N, 4), 'step_count': int}, or None when absent or unreadable."""
    path = get_state_path(seed, name)
    if not path.exists():
        return None
    try:
        with np.load(path, allow_pickle=False) as data:
            state = {key: data[key].copy() for key in _STATE_ARRAYS}
            state["step_count"] = int(data["step_count"])
    except (KeyError, OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable state %s: %s", path.name, exc)
        return None
    return state


def delete_config(seed: int, name: str) -> None:
    slot = (seed, _sanitize_name(name))
    _CONFIG_INDEX.discard(slot)
    for path in (get_config_path(seed, name), get_state_path(seed, name)):
        path.unlink(missing_ok=True)
    if get_last_config() == slot:
        LAST_FILE.unlink(missing_ok=True)
    logger.info("Deleted config %s", config_id(seed, name))


def _default_config() -> dict:
    cfg = dict.fromkeys(_HOST_KEYS)
    del cfg["actual_seed_used"], cfg["step_count"]
    cfg.update(
        initial_state="random",
        random_size={"width": DEFAULT_WIDTH, "height": DEFAULT_HEIGHT},
        fps=60,
        seed=-1,
        lock_seed=False,
        render_scale=4,
        view_mode="rgb",
        smooth_scaling=False,
    )
    cfg.update(SimulationParameters().to_dict())
    return cfg


def _merge_defaults(data: dict) -> dict:
    """Known keys from data over the defaults; random_size is merged key by key."""
    cfg = _default_config()
    cfg.update({key: data[key] for key in _HOST_KEYS + _PARAM_KEYS if key in data})
    cfg["random_size"].update(data.get("random_size", {}))
    return cfg


def params_from_config(cfg: dict) -> SimulationParameters:
    return SimulationParameters.from_dict({key: cfg[key] for key in _PARAM_KEYS if key in cfg})
