"""Reproducible randomness from a seed. Seed -1 = new random seed each call.
The same seed gives the same random initial image and the same noise sequence in the flux."""

import random
from typing import Tuple

import numpy as np


def pick_seed(seed: int) -> int:
    if seed == -1:
        return random.randint(0, 2**31 - 1)
    return int(seed)


def make_rng(seed: int) -> Tuple[np.random.Generator, int]:
    """Return (generator, seed_used). If seed == -1, choose a new random seed."""
    seed_used = pick_seed(seed)
    return np.random.default_rng(seed_used), seed_used
