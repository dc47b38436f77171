"""Configuration paths and default tuning constants for UIGen."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("UIGEN_HOME", str(Path.home() / ".uigen"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Fusion: semantic hits capture intent, keyword hits literal overlap.
SEMANTIC_BOOST = 1.3
KEYWORD_BOOST = 1.1
MAX_FUSED_RESULTS = 20
PROVIDER_LIMIT = 20

# Context synthesis
MAX_POPULAR_PATTERNS = 10
PITFALL_SCORE_THRESHOLD = 0.5
ACCESSIBILITY_RATING_THRESHOLD = 4.5

# Review scoring
PASS_SCORE = 80
ERROR_PENALTY = 10
WARNING_PENALTY = 5
INFO_PENALTY = 2
HIGH_PENALTY = 3
MEDIUM_PENALTY = 2
LOW_PENALTY = 1

# Optimisation
POINTS_PER_LABEL = 2

SUPPORTED_FRAMEWORKS = {"react", "vue", "angular", "svelte"}
MARKUP_FRAMEWORKS = SUPPORTED_FRAMEWORKS | {"html"}


def ensure_base_dirs() -> None:
    """Create the base directory for local configuration if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
