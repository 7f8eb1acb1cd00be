# app.py
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from allocator import (
    MAX_BONUS,
    MAX_DEPOSIT_PER_BOOK,
    MAX_TOTAL_DEPOSIT,
    ROUNDING_CHOICES,
    AllocationInput,
    ConfigurationError,
    StakePlan,
    allocate,
    plan_rows,
    reallocate_from_deposits,
)
from config_shared import format_money
from journey import InvalidEntryError, ProgressTracker
from journey_persistence import JourneyStore, JsonFileStore
from settings import load_runtime_settings

SETTINGS = load_runtime_settings()


def build_input(args: argparse.Namespace) -> AllocationInput:
    inp = SETTINGS.default_input()
    overrides = {
        "budget": args.budget,
        "odds_a": args.odds_a,
        "odds_b": args.odds_b,
        "bonus_percent_a": args.bonus_a,
        "bonus_percent_b": args.bonus_b,
        "min_odds_for_bonus": args.min_odds,
        "rounding_step": args.rounding,
    }
    inp = replace(inp, **{k: v for k, v in overrides.items() if v is not None})
    if args.random:
        inp = replace(inp, random_mode=True)
    return inp


def build_plan(args: argparse.Namespace, inp: AllocationInput) -> StakePlan:
    if args.deposit_a is not None or args.deposit_b is not None:
        base = allocate(replace(inp, random_mode=False))
        dep_a = args.deposit_a if args.deposit_a is not None else base.deposit_a
        dep_b = args.deposit_b if args.deposit_b is not None else base.deposit_b
        return reallocate_from_deposits(dep_a, dep_b, inp)
    return allocate(inp)


def print_plan(plan: StakePlan, currency: str) -> None:
    def money(v: float) -> str:
        return format_money(v, currency, digits=2)

    print(f"Limits: per book {money(MAX_DEPOSIT_PER_BOOK)} | total {money(MAX_TOTAL_DEPOSIT)} | bonus {money(MAX_BONUS)}")
    if plan.random_mode:
        print(
            f"Random mode: rounding={plan.chosen_rounding} "
            f"leftover_distributed={plan.distributed_leftover} jitter={plan.jitter_enabled}"
        )
    elif plan.chosen_rounding:
        print(f"Safe mode: rounding down to {plan.chosen_rounding}")

    for row in plan_rows(plan):
        line = (
            f"Book {row['book']} @ {row['odds']} | deposit={money(row['deposit'])} "
            f"bonus={money(row['bonus'])} bonus_stake={money(row['bonus_stake'])} | "
            f"stake={money(row['stake'])} -> payout={money(row['payout'])}"
        )
        if not row["bonus_eligible"] and row["bonus"] > 0 and row["book"] == "A":
            line += f" | bonus not usable here (odds {plan.odds_a} < {plan.min_odds_for_bonus})"
        print(line)

    if plan.bonus_a_diverted_to_b > 0:
        print(f"[WARN] Book A bonus diverted to Book B: {money(plan.bonus_a_diverted_to_b)}")

    print(f"Total bonus: {money(plan.total_bonus)} | Leftover: {money(max(0.0, plan.leftover))}")
    print(f"Guaranteed return: {money(plan.guaranteed)}")
    print(f"Profit on budget: {money(plan.profit)}")
    print(f"Profit on used capital: {money(plan.guaranteed)} - {money(plan.used_capital)} = {money(plan.profit_on_used)}")


def print_journey(tracker: ProgressTracker, currency: str) -> None:
    for book in ("A", "B"):
        p = tracker.progress(book)
        state = tracker.log.book(book)
        print(
            f"Book {book}: deposit {format_money(state.total_deposit, currency)}/{format_money(p.target_deposit, currency)} "
            f"bonus {format_money(state.total_bonus, currency)}/{format_money(p.target_bonus, currency)} "
            f"total {format_money(p.total_placed, currency)}/{format_money(p.target_stake, currency)} "
            f"{'DONE' if p.is_complete else 'remaining ' + format_money(p.total_remaining, currency)}"
        )
        for e in state.entries:
            kind = "Bonus" if e.is_bonus else "Deposit"
            src = f" from Book {e.fund_source}" if e.fund_source and e.fund_source != book and not e.is_bonus else ""
            print(f"  {e.id} {format_money(e.amount, currency)} ({kind}){src} {e.timestamp}")

    s = tracker.summary()
    print(f"Placed {format_money(s.total_placed, currency)} of {format_money(s.total_target, currency)}")
    if s.all_complete:
        print("All bets placed.")
        return
    rec = tracker.recommendation(currency)
    if rec is not None:
        print(f"Next: {rec.message}")


def cmd_plan(args: argparse.Namespace) -> int:
    plan = build_plan(args, build_input(args))
    if args.json:
        print(json.dumps(plan.to_dict(), indent=2))
    else:
        print_plan(plan, SETTINGS.currency)
    return 0


def cmd_journey(args: argparse.Namespace) -> int:
    inp = replace(build_input(args), random_mode=False)
    plan = build_plan(args, inp)

    store = JourneyStore(JsonFileStore(SETTINGS.journey_dir))
    tracker = ProgressTracker(plan, store.load(plan.fingerprint))

    if args.action == "add":
        entry = tracker.add_entry(args.book, args.amount, is_bonus=args.bonus, fund_source=args.fund_source)
        print(f"Added {entry.id} to Book {args.book.upper()}")
    elif args.action == "remove":
        if tracker.remove_entry(args.book, args.id) is None:
            print(f"[WARN] Entry not found: {args.id}")
    elif args.action == "clear":
        tracker.clear()
        store.discard(plan.fingerprint)
        print("Journey cleared.")
        return 0

    if args.action in {"add", "remove"}:
        if not store.save(tracker.log, is_complete=tracker.summary().all_complete):
            print("[WARN] Journey changes were not persisted")

    print_journey(tracker, SETTINGS.currency)
    return 0


def make_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--budget", type=float)
    common.add_argument("--odds-a", type=float)
    common.add_argument("--odds-b", type=float)
    common.add_argument("--bonus-a", type=float, help="Bonus percent for Book A")
    common.add_argument("--bonus-b", type=float, help="Bonus percent for Book B")
    common.add_argument("--min-odds", type=float, help="Minimum odds for a book to use a bonus")
    common.add_argument("--rounding", type=int, choices=ROUNDING_CHOICES)
    common.add_argument("--random", action="store_true", help="Random safe mode")
    common.add_argument("--deposit-a", type=float, help="Actual deposit placed on Book A")
    common.add_argument("--deposit-b", type=float, help="Actual deposit placed on Book B")

    parser = argparse.ArgumentParser(description="Two-book arbitrage calculator with deposit bonuses")
    sub = parser.add_subparsers(dest="command", required=True)

    p_plan = sub.add_parser("plan", parents=[common], help="Compute a stake plan")
    p_plan.add_argument("--json", action="store_true")
    p_plan.set_defaults(func=cmd_plan)

    p_journey = sub.add_parser("journey", parents=[common], help="Track bets placed against a plan")
    p_journey.add_argument("action", choices=["status", "add", "remove", "clear"])
    p_journey.add_argument("--book", default="A")
    p_journey.add_argument("--amount")
    p_journey.add_argument("--bonus", action="store_true")
    p_journey.add_argument("--from", dest="fund_source", help="Book the funds come from")
    p_journey.add_argument("--id", help="Entry id to remove")
    p_journey.set_defaults(func=cmd_journey)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = make_parser().parse_args(argv)
    try:
        return args.func(args)
    except ConfigurationError as e:
        print(f"[ERROR] {e}")
        return 2
    except InvalidEntryError as e:
        print(f"[ERROR] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
