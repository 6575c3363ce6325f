"""Simulation constants. Channels are R, G, B; directions are the 4 cardinals on a torus."""

CHANNELS = ("r", "g", "b")
NUM_CHANNELS = 3
# Neighbor slots in the table, in this order.
LEFT, RIGHT, TOP, BOTTOM = 0, 1, 2, 3
NUM_DIRECTIONS = 4
# Opposite direction per slot: left<->right, top<->bottom.
OPPOSITE = (RIGHT, LEFT, BOTTOM, TOP)

CHANNEL_MAX = 255.0
DEFAULT_WIDTH, DEFAULT_HEIGHT = 128, 128

DEFAULT_FLUX_INERTIA = 0.5
DEFAULT_TEMPERATURE = 1.0
DEFAULT_RANDOM_FACTOR = 0.0
DEFAULT_STEPS_PER_TICK = 0.1
