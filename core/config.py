"""
Tunable settings shared by the grid engine and the map generator.

Edit these to change the generated map matrix, the clue floors per
difficulty or the solver safety caps.
"""

from __future__ import annotations

from typing import Dict, Tuple

# ==== Map matrix ============================================================

# Map size name -> grid radius
SIZE_RADII: Dict[str, int] = {
    "small": 4,
    "medium": 6,
    "large": 8,
    "huge": 11,
}

DIFFICULTIES: Tuple[str, ...] = ("easy", "medium", "hard")

# Number of numbered maps written per (size, difficulty) bucket
PUZZLES_PER_BUCKET: int = 20

DEFAULT_OUTPUT_DIR: str = "maps"

# ==== Region growth =========================================================

# Share of all hexes the INSIDE region grows to before the spine pass
REGION_FILL_RATIO: float = 0.45

# Regrow attempts before a single map is given up
MAX_GENERATION_ATTEMPTS: int = 50

# ==== Clue reduction ========================================================

# Minimum fraction of hexes that keep a visible clue
DIFFICULTY_FLOORS: Dict[str, float] = {
    "hard": 0.0,
    "medium": 0.5,
    "easy": 0.7,
    "large": 0.7,
}

# ==== Batch solver ==========================================================

# Queue pops allowed per (hex + vertex) before a solve is declared stuck.
# Each edge settles once and wakes at most four items, so a healthy
# solve stays far below this.
SOLVER_ITERATION_FACTOR: int = 16

# ==== Edge colouring ========================================================

# Decorative colour ids run 1..EDGE_COLOR_COUNT
EDGE_COLOR_COUNT: int = 6
