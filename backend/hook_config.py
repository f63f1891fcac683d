"""
Configuration for the continual-learning stop hook.

Every setting is read from a primary environment variable with a legacy
alias accepted for older installs (``CONTINUOUS_LEARNING_*``). A ``.env``
file found from the working directory is loaded first; variables already
present in the environment win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from dotenv import find_dotenv, load_dotenv

# Load environment variables
_dotenv_path = find_dotenv(usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path)

TRIAL_FLAG = "--trial"
_TRUTHY_ENV_VALUES = {"1", "true", "yes", "on", "enabled"}

DEFAULT_MIN_TURNS = 10
DEFAULT_MIN_MINUTES = 120
TRIAL_DEFAULT_MIN_TURNS = 3
TRIAL_DEFAULT_MIN_MINUTES = 15
TRIAL_DEFAULT_DURATION_MINUTES = 24 * 60

# (primary, legacy)
ENV_TRIAL_MODE = ("CONTINUAL_LEARNING_TRIAL_MODE", "CONTINUOUS_LEARNING_TRIAL_MODE")
ENV_TRIAL_DURATION_MINUTES = (
    "CONTINUAL_LEARNING_TRIAL_DURATION_MINUTES",
    "CONTINUOUS_LEARNING_TRIAL_DURATION_MINUTES",
)
ENV_TRIAL_MIN_TURNS = (
    "CONTINUAL_LEARNING_TRIAL_MIN_TURNS",
    "CONTINUOUS_LEARNING_TRIAL_MIN_TURNS",
)
ENV_TRIAL_MIN_MINUTES = (
    "CONTINUAL_LEARNING_TRIAL_MIN_MINUTES",
    "CONTINUOUS_LEARNING_TRIAL_MIN_MINUTES",
)
ENV_MIN_TURNS = ("CONTINUAL_LEARNING_MIN_TURNS", "CONTINUOUS_LEARNING_MIN_TURNS")
ENV_MIN_MINUTES = ("CONTINUAL_LEARNING_MIN_MINUTES", "CONTINUOUS_LEARNING_MIN_MINUTES")


def _first_env(names: Tuple[str, str]) -> Optional[str]:
    """Return the primary variable when set (even empty), else the legacy one."""
    primary, legacy = names
    value = os.getenv(primary)
    if value is not None:
        return value
    return os.getenv(legacy)


def _env_positive_int(names: Tuple[str, str], default: int) -> int:
    raw = _first_env(names)
    if raw is None:
        return default
    try:
        parsed = int(raw.strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _env_bool(names: Tuple[str, str]) -> bool:
    raw = _first_env(names)
    if raw is None:
        return False
    return raw.strip().lower() in _TRUTHY_ENV_VALUES


@dataclass(frozen=True)
class TriggerConfig:
    """Thresholds and trial settings for one hook invocation."""

    trial_enabled: bool = False
    trial_duration_minutes: int = TRIAL_DEFAULT_DURATION_MINUTES
    trial_min_turns: int = TRIAL_DEFAULT_MIN_TURNS
    trial_min_minutes: int = TRIAL_DEFAULT_MIN_MINUTES
    normal_min_turns: int = DEFAULT_MIN_TURNS
    normal_min_minutes: int = DEFAULT_MIN_MINUTES


def load_trigger_config(argv: Optional[Sequence[str]] = None) -> TriggerConfig:
    args = list(argv or [])
    return TriggerConfig(
        trial_enabled=TRIAL_FLAG in args or _env_bool(ENV_TRIAL_MODE),
        trial_duration_minutes=_env_positive_int(
            ENV_TRIAL_DURATION_MINUTES, TRIAL_DEFAULT_DURATION_MINUTES
        ),
        trial_min_turns=_env_positive_int(ENV_TRIAL_MIN_TURNS, TRIAL_DEFAULT_MIN_TURNS),
        trial_min_minutes=_env_positive_int(
            ENV_TRIAL_MIN_MINUTES, TRIAL_DEFAULT_MIN_MINUTES
        ),
        normal_min_turns=_env_positive_int(ENV_MIN_TURNS, DEFAULT_MIN_TURNS),
        normal_min_minutes=_env_positive_int(ENV_MIN_MINUTES, DEFAULT_MIN_MINUTES),
    )
