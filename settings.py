from __future__ import annotations

import os
from dataclasses import dataclass

from allocator import ROUNDING_CHOICES, AllocationInput


@dataclass(frozen=True)
class RuntimeSettings:
    budget: float
    odds_a: float
    odds_b: float
    bonus_percent_a: float
    bonus_percent_b: float
    min_odds_for_bonus: float
    rounding_step: int
    random_mode: bool

    currency: str
    journey_dir: str

    def summary(self) -> str:
        return (
            f"budget={self.budget} odds=[{self.odds_a},{self.odds_b}] "
            f"bonus_pct=[{self.bonus_percent_a},{self.bonus_percent_b}] "
            f"min_odds_for_bonus={self.min_odds_for_bonus} rounding_step={self.rounding_step} "
            f"random_mode={self.random_mode} currency={self.currency} journey_dir={self.journey_dir}"
        )

    def default_input(self) -> AllocationInput:
        return AllocationInput(
            budget=self.budget,
            odds_a=self.odds_a,
            odds_b=self.odds_b,
            bonus_percent_a=self.bonus_percent_a,
            bonus_percent_b=self.bonus_percent_b,
            min_odds_for_bonus=self.min_odds_for_bonus,
            rounding_step=self.rounding_step,
            random_mode=self.random_mode,
        )


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_rounding(name: str, default: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        step = int(float(raw))
    except ValueError:
        return default
    return step if step in ROUNDING_CHOICES else default


def load_runtime_settings() -> RuntimeSettings:
    return RuntimeSettings(
        budget=float(os.getenv("BUDGET", "15000")),
        odds_a=float(os.getenv("ODDS_A", "1.60")),
        odds_b=float(os.getenv("ODDS_B", "2.35")),
        bonus_percent_a=float(os.getenv("BONUS_PERCENT_A", "0")),
        bonus_percent_b=float(os.getenv("BONUS_PERCENT_B", "20")),
        min_odds_for_bonus=float(os.getenv("MIN_ODDS_FOR_BONUS", "2.1")),
        rounding_step=_env_rounding("ROUNDING_STEP", 0),
        random_mode=_env_bool("RANDOM_MODE", False),
        currency=os.getenv("CURRENCY", "INR").strip().upper(),
        journey_dir=os.getenv("JOURNEY_DIR", "state/journeys"),
    )
