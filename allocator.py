# allocator.py
# Two-book stake allocator with deposit bonuses:
# - equal-return split of the cash budget between book A and book B
# - floor rounding ("safe mode"), per-book and total deposit caps
# - bonus credits with an odds threshold (A's bonus can move to B)
# - rebalance of deposits + bonus so both outcomes pay the same
# - optional random mode (rounding / leftover / jitter) for human-like sizing
#
# Usage:
#   from allocator import AllocationInput, allocate
#   plan = allocate(AllocationInput(budget=15000, odds_a=1.60, odds_b=2.35, bonus_percent_b=20))

from __future__ import annotations

import math
import random
from dataclasses import asdict, dataclass
from typing import Optional, Sequence, Tuple

from config_shared import journey_key


# =========================================================
# LIMITS
# =========================================================
MAX_DEPOSIT_PER_BOOK = 15000.0
MAX_BONUS = 3000.0
MAX_TOTAL_DEPOSIT = 30000.0

ROUNDING_CHOICES = (0, 10, 50, 100)
REDISTRIBUTE_PROBABILITY = 0.7

_DEFAULT_RNG = random.Random()


class ConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class AllocationInput:
    budget: float
    odds_a: float
    odds_b: float
    bonus_percent_a: float = 0.0
    bonus_percent_b: float = 0.0
    min_odds_for_bonus: float = 0.0
    rounding_step: int = 0
    random_mode: bool = False


@dataclass(frozen=True)
class StakePlan:
    random_mode: bool
    chosen_rounding: int
    distributed_leftover: bool
    jitter_enabled: bool

    deposit_a: float
    deposit_b: float
    bonus_amount_a: float
    bonus_amount_b: float
    bonus_stake_a: float
    bonus_stake_b: float
    bonus_percent_a: float
    bonus_percent_b: float
    total_bonus: float
    leftover: float

    stake_a: float
    stake_b: float
    bonus_a_diverted_to_b: float
    can_use_bonus_on_a: bool
    can_use_bonus_on_b: bool
    min_odds_for_bonus: float

    guaranteed: float
    profit: float
    profit_on_used: float
    used_capital: float

    budget: float
    odds_a: float
    odds_b: float

    @property
    def payout_a(self) -> float:
        return self.stake_a * self.odds_a

    @property
    def payout_b(self) -> float:
        return self.stake_b * self.odds_b

    @property
    def fingerprint(self) -> str:
        return journey_key(self.odds_a, self.odds_b, self.budget)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BonusRouting:
    bonus_amount_a: float
    bonus_amount_b: float
    bonus_stake_a: float
    bonus_stake_b: float
    bonus_a_diverted_to_b: float
    can_use_bonus_on_a: bool
    can_use_bonus_on_b: bool


# =========================================================
# HELPERS
# =========================================================
def equal_return_split(total: float, odds_a: float, odds_b: float) -> Tuple[float, float]:
    """
    Split `total` so that part_a * odds_a == part_b * odds_b:
      part_a = total / (1 + odds_a / odds_b)

    With odds_b == 0 the ratio is unbounded and everything goes to book B.
    """
    if (odds_a <= 0 and odds_b <= 0) or odds_a + odds_b == 0:
        raise ConfigurationError(
            f"Equal-return split is undefined for odds_a={odds_a}, odds_b={odds_b}"
        )
    if odds_b == 0:
        return 0.0, total
    part_a = total / (1.0 + odds_a / odds_b)
    return part_a, total - part_a


def floor_to_step(value: float, step: int) -> float:
    """Round down to a multiple of `step`; step <= 0 leaves the value as is."""
    if step <= 0:
        return value
    return float(math.floor(value / step) * step)


def cap_deposit(value: float) -> float:
    return min(value, MAX_DEPOSIT_PER_BOOK)


def apply_total_cap(deposit_a: float, deposit_b: float) -> Tuple[float, float]:
    used = deposit_a + deposit_b
    if used <= MAX_TOTAL_DEPOSIT:
        return deposit_a, deposit_b
    scale = MAX_TOTAL_DEPOSIT / used
    return float(math.floor(deposit_a * scale)), float(math.floor(deposit_b * scale))


def redistribute_leftover(
    deposit_a: float,
    deposit_b: float,
    raw_a: float,
    raw_b: float,
    budget: float,
    step: int,
) -> Tuple[float, float]:
    """
    Spread unused budget back over both books in the proportion of the original
    (pre-cap) split, rounded down to the step and re-capped per book.
    """
    leftover = max(0.0, budget - (deposit_a + deposit_b))
    if leftover <= 0:
        return deposit_a, deposit_b

    add_a = floor_to_step(leftover * (raw_a / budget), step)
    add_b = floor_to_step(leftover * (raw_b / budget), step)
    return cap_deposit(deposit_a + add_a), cap_deposit(deposit_b + add_b)


def route_bonus(
    deposit_a: float,
    deposit_b: float,
    odds_a: float,
    odds_b: float,
    bonus_percent_a: float,
    bonus_percent_b: float,
    min_odds_for_bonus: float,
) -> BonusRouting:
    """
    Bonus = deposit * percent, capped at MAX_BONUS.

    Both books compare their own odds to the same threshold. A bonus from an
    ineligible book A moves to book B when B is eligible, otherwise it is not
    staked. Book B's own bonus is always staked on B.
    """
    bonus_amount_a = min(deposit_a * bonus_percent_a / 100.0, MAX_BONUS)
    bonus_amount_b = min(deposit_b * bonus_percent_b / 100.0, MAX_BONUS)

    can_use_bonus_on_a = odds_a >= min_odds_for_bonus
    can_use_bonus_on_b = odds_b >= min_odds_for_bonus

    bonus_stake_a = 0.0
    bonus_stake_b = 0.0
    diverted = 0.0

    if bonus_amount_a > 0:
        if not can_use_bonus_on_a and can_use_bonus_on_b:
            diverted = bonus_amount_a
            bonus_stake_b += bonus_amount_a
        elif can_use_bonus_on_a:
            bonus_stake_a = bonus_amount_a

    if bonus_amount_b > 0:
        bonus_stake_b += bonus_amount_b

    return BonusRouting(
        bonus_amount_a=bonus_amount_a,
        bonus_amount_b=bonus_amount_b,
        bonus_stake_a=bonus_stake_a,
        bonus_stake_b=bonus_stake_b,
        bonus_a_diverted_to_b=diverted,
        can_use_bonus_on_a=can_use_bonus_on_a,
        can_use_bonus_on_b=can_use_bonus_on_b,
    )


def _draw_jitter(rng, step: int, stake: float) -> int:
    upper = min(step, max(0.0, stake))
    return int(math.floor(rng.random() * upper))


def _build_plan(
    inp: AllocationInput,
    deposit_a: float,
    deposit_b: float,
    routing: BonusRouting,
    stake_a: float,
    stake_b: float,
    leftover: float,
    random_mode: bool,
    chosen_rounding: int,
    distributed_leftover: bool,
    jitter_enabled: bool,
) -> StakePlan:
    guaranteed = min(stake_a * inp.odds_a, stake_b * inp.odds_b)
    used_capital = deposit_a + deposit_b

    return StakePlan(
        random_mode=random_mode,
        chosen_rounding=chosen_rounding,
        distributed_leftover=distributed_leftover,
        jitter_enabled=jitter_enabled,
        deposit_a=deposit_a,
        deposit_b=deposit_b,
        bonus_amount_a=routing.bonus_amount_a,
        bonus_amount_b=routing.bonus_amount_b,
        bonus_stake_a=routing.bonus_stake_a,
        bonus_stake_b=routing.bonus_stake_b,
        bonus_percent_a=inp.bonus_percent_a,
        bonus_percent_b=inp.bonus_percent_b,
        total_bonus=routing.bonus_amount_a + routing.bonus_amount_b,
        leftover=leftover,
        stake_a=stake_a,
        stake_b=stake_b,
        bonus_a_diverted_to_b=routing.bonus_a_diverted_to_b,
        can_use_bonus_on_a=routing.can_use_bonus_on_a,
        can_use_bonus_on_b=routing.can_use_bonus_on_b,
        min_odds_for_bonus=inp.min_odds_for_bonus,
        guaranteed=guaranteed,
        profit=guaranteed - inp.budget,
        profit_on_used=guaranteed - used_capital,
        used_capital=used_capital,
        budget=inp.budget,
        odds_a=inp.odds_a,
        odds_b=inp.odds_b,
    )


# =========================================================
# ALLOCATION
# =========================================================
def allocate(inp: AllocationInput, rng: Optional[object] = None) -> StakePlan:
    """
    Build a stake plan for `inp`.

    In random mode three things are drawn from `rng` (anything with
    `choice(seq)` and `random()`, e.g. `random.Random`): the rounding step,
    whether leftover is redistributed, and a sub-step jitter per book.
    """
    rng = rng if rng is not None else _DEFAULT_RNG

    budget = inp.budget
    chosen_rounding = int(inp.rounding_step)
    distributed_leftover = True
    jitter_enabled = False

    if inp.random_mode:
        chosen_rounding = int(rng.choice(ROUNDING_CHOICES))
        distributed_leftover = rng.random() < REDISTRIBUTE_PROBABILITY
        jitter_enabled = True

    raw_a, raw_b = equal_return_split(budget, inp.odds_a, inp.odds_b)

    deposit_a = cap_deposit(floor_to_step(raw_a, chosen_rounding))
    deposit_b = cap_deposit(floor_to_step(raw_b, chosen_rounding))

    used = deposit_a + deposit_b
    leftover = max(0.0, budget - used)

    if leftover > 0 and distributed_leftover:
        deposit_a, deposit_b = redistribute_leftover(
            deposit_a, deposit_b, raw_a, raw_b, budget, chosen_rounding
        )
        used = deposit_a + deposit_b
        leftover = max(0.0, budget - used)

    if used > MAX_TOTAL_DEPOSIT:
        deposit_a, deposit_b = apply_total_cap(deposit_a, deposit_b)
        used = deposit_a + deposit_b
        leftover = budget - used

    routing = route_bonus(
        deposit_a,
        deposit_b,
        inp.odds_a,
        inp.odds_b,
        inp.bonus_percent_a,
        inp.bonus_percent_b,
        inp.min_odds_for_bonus,
    )

    total_capital = deposit_a + deposit_b + routing.bonus_stake_a + routing.bonus_stake_b
    stake_a, stake_b = equal_return_split(total_capital, inp.odds_a, inp.odds_b)
    stake_a = floor_to_step(stake_a, chosen_rounding)
    stake_b = floor_to_step(stake_b, chosen_rounding)

    if jitter_enabled and chosen_rounding > 0:
        jitter_a = _draw_jitter(rng, chosen_rounding, stake_a)
        jitter_b = _draw_jitter(rng, chosen_rounding, stake_b)

        stake_a = max(0.0, stake_a - jitter_a)
        stake_b = max(0.0, stake_b - jitter_b)

        # only the cash part of the jittered stake goes back to leftover
        divisor_a = (1.0 + inp.bonus_percent_a / 100.0) if routing.can_use_bonus_on_a else 1.0
        bonus_ratio_b = routing.bonus_stake_b / deposit_b if deposit_b > 0 else 0.0
        divisor_b = 1.0 + inp.bonus_percent_b / 100.0 + bonus_ratio_b

        leftover += jitter_a / divisor_a + jitter_b / divisor_b
        leftover = max(0.0, min(leftover, budget - used))

    return _build_plan(
        inp,
        deposit_a,
        deposit_b,
        routing,
        stake_a,
        stake_b,
        leftover,
        random_mode=inp.random_mode,
        chosen_rounding=chosen_rounding,
        distributed_leftover=distributed_leftover,
        jitter_enabled=jitter_enabled,
    )


def reallocate_from_deposits(deposit_a: float, deposit_b: float, inp: AllocationInput) -> StakePlan:
    """
    Rebuild the plan around deposits the user actually placed.

    Deposits are re-checked against the caps, bonuses are routed as in
    `allocate`, and stakes are rebalanced with no rounding or jitter.
    """
    deposit_a = cap_deposit(float(deposit_a))
    deposit_b = cap_deposit(float(deposit_b))
    deposit_a, deposit_b = apply_total_cap(deposit_a, deposit_b)

    routing = route_bonus(
        deposit_a,
        deposit_b,
        inp.odds_a,
        inp.odds_b,
        inp.bonus_percent_a,
        inp.bonus_percent_b,
        inp.min_odds_for_bonus,
    )

    total_capital = deposit_a + deposit_b + routing.bonus_stake_a + routing.bonus_stake_b
    stake_a, stake_b = equal_return_split(total_capital, inp.odds_a, inp.odds_b)

    leftover = max(0.0, inp.budget - (deposit_a + deposit_b))

    return _build_plan(
        inp,
        deposit_a,
        deposit_b,
        routing,
        stake_a,
        stake_b,
        leftover,
        random_mode=False,
        chosen_rounding=0,
        distributed_leftover=False,
        jitter_enabled=False,
    )


def plan_rows(plan: StakePlan) -> Sequence[dict]:
    """Per-book rows (deposit / bonus / stake / payout) for tables and CLI output."""
    return [
        {
            "book": "A",
            "odds": plan.odds_a,
            "deposit": plan.deposit_a,
            "bonus": plan.bonus_amount_a,
            "bonus_stake": plan.bonus_stake_a,
            "stake": plan.stake_a,
            "payout": plan.payout_a,
            "bonus_eligible": plan.can_use_bonus_on_a,
        },
        {
            "book": "B",
            "odds": plan.odds_b,
            "deposit": plan.deposit_b,
            "bonus": plan.bonus_amount_b,
            "bonus_stake": plan.bonus_stake_b,
            "stake": plan.stake_b,
            "payout": plan.payout_b,
            "bonus_eligible": plan.can_use_bonus_on_b,
        },
    ]
