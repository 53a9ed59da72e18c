"""Configuration for the TrainerGPT coach, harness and background jobs.

Everything is resolved once from the environment into a CoachConfig and passed
down explicitly. Module-level constants below are the fallbacks.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

# LLM models
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_JUDGE_MODEL = "gemini-2.5-flash"

# GCP
DEFAULT_LOCATION = "us-central1"

# Agent loop step caps
PRODUCTION_MAX_STEPS = 5
EVAL_MAX_STEPS = 7

# Harness
DEFAULT_SCENARIO_TIMEOUT_SECS = 120.0
DEFAULT_RESULTS_DIR = "eval_results"

STORE_BACKENDS = ("memory", "firestore")

# Cache shared by chat sessions and the scheduler
DEFAULT_REDIS_URL = "redis://localhost:6379/0"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class CoachConfig:
    """Process-wide settings, resolved once at startup."""
    model: str = DEFAULT_MODEL
    judge_model: str = DEFAULT_JUDGE_MODEL
    advanced_coaching: bool = False
    show_progress_charts: bool = True
    workout_timer: bool = True
    max_steps: int = PRODUCTION_MAX_STEPS
    project: Optional[str] = None
    location: str = DEFAULT_LOCATION
    store: str = "memory"
    redis_url: str = DEFAULT_REDIS_URL
    scenario_timeout_secs: float = DEFAULT_SCENARIO_TIMEOUT_SECS
    results_dir: str = DEFAULT_RESULTS_DIR

    def __post_init__(self):
        if self.max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        if self.store not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown store backend {self.store!r}; expected one of {STORE_BACKENDS}"
            )
        if self.scenario_timeout_secs <= 0:
            raise ValueError("scenario_timeout_secs must be positive")

    @classmethod
    def from_env(cls) -> "CoachConfig":
        return cls(
            model=os.getenv("TRAINERGPT_MODEL", DEFAULT_MODEL),
            judge_model=os.getenv("TRAINERGPT_JUDGE_MODEL", DEFAULT_JUDGE_MODEL),
            advanced_coaching=_env_flag("TRAINERGPT_ADVANCED_COACHING", False),
            show_progress_charts=_env_flag("TRAINERGPT_SHOW_PROGRESS_CHARTS", True),
            workout_timer=_env_flag("TRAINERGPT_WORKOUT_TIMER", True),
            max_steps=_env_int("TRAINERGPT_MAX_STEPS", PRODUCTION_MAX_STEPS),
            project=os.getenv("GOOGLE_CLOUD_PROJECT") or None,
            location=os.getenv("GOOGLE_CLOUD_LOCATION", DEFAULT_LOCATION),
            store=os.getenv("TRAINERGPT_STORE", "memory").strip().lower(),
            redis_url=os.getenv("TRAINERGPT_REDIS_URL", DEFAULT_REDIS_URL),
            scenario_timeout_secs=_env_float(
                "TRAINERGPT_SCENARIO_TIMEOUT", DEFAULT_SCENARIO_TIMEOUT_SECS
            ),
            results_dir=os.getenv("TRAINERGPT_RESULTS_DIR", DEFAULT_RESULTS_DIR),
        )

    def for_eval(self) -> "CoachConfig":
        """Harness settings: higher step cap, advanced coaching guidance on."""
        return replace(
            self,
            max_steps=_env_int("TRAINERGPT_EVAL_MAX_STEPS", EVAL_MAX_STEPS),
            advanced_coaching=True,
        )
