"""
Configuration Manager for Elite65.

Central home for tunable constants of the assistant.
Every heuristic threshold is declared here and can be overridden.

Usage:
    from core.config_manager import config
    limit = config.FUZZY_MAX_DISTANCE
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from core.exceptions import ConfigError


CONFIG_DIR = Path(__file__).parent.parent / "config"
RUNTIME_CONFIG_PATH = CONFIG_DIR / "runtime.yaml"


@dataclass
class SystemConfig:
    """
    Runtime constants.

    Values are heuristics; the comments say what moving them does.
    """

    # === Fuzzy matching ===

    # Max edit distance for the last-resort name tier
    # Higher tolerates more typos but risks resolving to the wrong task
    FUZZY_MAX_DISTANCE: int = 3

    # Both names must be longer than this before containment counts as
    # similarity when merging skills ("Code" ~ "Coding")
    SIMILARITY_MIN_LENGTH: int = 3

    # === Workload analysis ===

    # Load score = 3*epic + 2*hard + other pending + HABIT_LOAD_WEIGHT*habits
    LOAD_CRITICAL_THRESHOLD: float = 15
    LOAD_MODERATE_THRESHOLD: float = 8
    HABIT_LOAD_WEIGHT: float = 0.5

    # === Responses ===

    # How many pending titles the status list previews
    PENDING_PREVIEW_COUNT: int = 3

    # === Sessions ===

    # Open conversations kept in memory; the least recently used one is
    # dropped when a new conversation would exceed this; 0 keeps all
    SESSION_MAX_CONVERSATIONS: int = 500

    # Difficulty of chat-created tasks when none is given
    DEFAULT_TASK_DIFFICULTY: str = "MEDIUM"

    # === Progression (quoted by the XP rules) ===
    XP_REWARDS: dict = None
    HABIT_LOG_XP: int = 10

    def __post_init__(self):
        if self.XP_REWARDS is None:
            self.XP_REWARDS = {
                "EASY": 10,
                "MEDIUM": 25,
                "HARD": 50,
                "EPIC": 100,
            }


def _resolve_config_path() -> Path:
    raw = os.getenv("ELITE65_CONFIG_PATH", "").strip()
    if raw:
        return Path(raw).expanduser()
    return RUNTIME_CONFIG_PATH


def _load_runtime_config(path: Optional[Path] = None) -> dict:
    """Load runtime overrides, if any."""
    config_path = path or _resolve_config_path()
    if not config_path.exists():
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Unreadable runtime config: {e}", str(config_path)) from e

    if not isinstance(data, dict):
        raise ConfigError("Runtime config must be a mapping", str(config_path))
    return data


def get_config(path: Optional[Path] = None) -> SystemConfig:
    """
    Build the config instance.

    Priority: runtime.yaml > defaults. Unknown keys are ignored.
    """
    base = SystemConfig()
    overrides = _load_runtime_config(path)

    for key, value in overrides.items():
        if hasattr(base, key):
            setattr(base, key, value)

    return base


# module-wide instance
config = get_config()
