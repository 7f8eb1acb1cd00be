from __future__ import annotations

from typing import Optional

import pandas as pd
import streamlit as st
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

st.set_page_config(page_title="Arbitrage Calculator", layout="wide")

SETTINGS = load_runtime_settings()
STORE = JourneyStore(JsonFileStore(SETTINGS.journey_dir))


def money(amount: float, digits: int = 0) -> str:
    return format_money(amount, SETTINGS.currency, digits=digits)


def persist(tracker: ProgressTracker) -> None:
    if not STORE.save(tracker.log, is_complete=tracker.summary().all_complete):
        st.warning("Journey changes could not be saved.")


def render_plan(plan: StakePlan) -> None:
    if plan.random_mode:
        st.caption(
            f"Random mode: rounding {plan.chosen_rounding or 'none'}, "
            f"leftover {'redistributed' if plan.distributed_leftover else 'kept'}, jitter on"
        )

    df = pd.DataFrame(plan_rows(plan))
    st.dataframe(df, use_container_width=True, hide_index=True)

    if plan.bonus_a_diverted_to_b > 0:
        st.warning(f"Bonus diverted to Book B (odds restriction): {money(plan.bonus_a_diverted_to_b)}")
    elif not plan.can_use_bonus_on_a and plan.bonus_amount_a > 0:
        st.warning(f"Book A bonus not used (odds {plan.odds_a} < {plan.min_odds_for_bonus})")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Guaranteed return", money(plan.guaranteed, 2))
    c2.metric("Profit", money(plan.profit, 2))
    c3.metric("Profit on used capital", money(plan.profit_on_used, 2))
    c4.metric("Leftover", money(max(0.0, plan.leftover), 2))


def render_journey(plan: StakePlan) -> None:
    tracker = ProgressTracker(plan, STORE.load(plan.fingerprint))
    summary = tracker.summary()

    st.progress(min(1.0, summary.total_placed / summary.total_target) if summary.total_target > 0 else 0.0)
    st.write(f"Placed **{money(summary.total_placed)}** of {money(summary.total_target)}")

    if summary.all_complete:
        st.success("All bets placed.")
    else:
        rec = tracker.recommendation(SETTINGS.currency)
        if rec is not None:
            st.info(rec.message)

    cols = st.columns(2)
    for col, book in zip(cols, ("A", "B")):
        with col:
            odds = plan.odds_a if book == "A" else plan.odds_b
            p = tracker.progress(book)
            state = tracker.log.book(book)
            st.subheader(f"Book {book} @ {odds}")
            st.write(f"Deposit: {money(state.total_deposit)} / {money(p.target_deposit)} (remaining {money(p.deposit_remaining)})")
            if p.target_bonus > 0:
                st.write(f"Bonus: {money(state.total_bonus)} / {money(p.target_bonus)} (remaining {money(p.bonus_remaining)})")
            st.write(f"Total: {money(p.total_placed)} / {money(p.target_stake)} (remaining {money(p.total_remaining)})")

            for e in state.entries:
                label = f"{money(e.amount)} ({'Bonus' if e.is_bonus else 'Deposit'})"
                if e.fund_source and e.fund_source != book and not e.is_bonus:
                    label += f" from Book {e.fund_source}"
                c_left, c_right = st.columns([4, 1])
                c_left.write(label)
                if c_right.button("Remove", key=f"rm-{e.id}"):
                    tracker.remove_entry(book, e.id)
                    persist(tracker)
                    st.rerun()

    st.divider()
    with st.form("add_bet", clear_on_submit=True):
        book = st.radio("Book", options=["A", "B"], horizontal=True)
        amount = st.text_input("Amount")
        kind = st.selectbox("Bet type", options=["deposit", "bonus"])
        fund_source = st.selectbox("Funds from", options=["same book", "A", "B"])
        submitted = st.form_submit_button("Add bet")

    if submitted:
        try:
            tracker.add_entry(
                book,
                amount,
                is_bonus=(kind == "bonus"),
                fund_source=None if fund_source == "same book" else fund_source,
            )
        except InvalidEntryError as exc:
            st.error(str(exc))
        else:
            persist(tracker)
            st.rerun()

    for book in ("A", "B"):
        spare = tracker.transferable_from_other(book)
        if spare > 0 and not tracker.progress(book).is_complete:
            other = "B" if book == "A" else "A"
            st.caption(
                f"{money(spare)} still remaining in Book {other} can be used at Book {book} odds "
                f"(add a deposit bet on Book {book} with 'Funds from' = {other})."
            )

    if st.button("Clear all entries"):
        tracker.clear()
        STORE.discard(plan.fingerprint)
        st.rerun()


st.title("Arbitrage Calculator")
st.caption("Calculate guaranteed profits with deposit bonuses")

with st.sidebar:
    st.header("Input parameters")
    budget = st.number_input("Cash budget", value=float(SETTINGS.budget), step=500.0)
    st.caption(
        f"Limits: {money(MAX_DEPOSIT_PER_BOOK)} per book, {money(MAX_TOTAL_DEPOSIT)} total deposit, "
        f"{money(MAX_BONUS)} bonus"
    )
    odds_a = st.number_input("Odds Book A", value=float(SETTINGS.odds_a), step=0.01, format="%.2f")
    odds_b = st.number_input("Odds Book B", value=float(SETTINGS.odds_b), step=0.01, format="%.2f")
    bonus_a = st.number_input("Bonus Book A (%)", value=float(SETTINGS.bonus_percent_a), step=1.0)
    bonus_b = st.number_input("Bonus Book B (%)", value=float(SETTINGS.bonus_percent_b), step=1.0)
    min_odds = st.number_input("Minimum odds for bonus", value=float(SETTINGS.min_odds_for_bonus), step=0.01, format="%.2f")
    rounding = st.selectbox(
        "Safe mode (round down)",
        options=list(ROUNDING_CHOICES),
        index=list(ROUNDING_CHOICES).index(SETTINGS.rounding_step),
        format_func=lambda s: "None" if s == 0 else f"Nearest {s}",
    )
    random_mode = st.toggle("Random safe mode", value=bool(SETTINGS.random_mode))
    run = st.button("Calculate", type="primary")

inp = AllocationInput(
    budget=float(budget),
    odds_a=float(odds_a),
    odds_b=float(odds_b),
    bonus_percent_a=float(bonus_a),
    bonus_percent_b=float(bonus_b),
    min_odds_for_bonus=float(min_odds),
    rounding_step=int(rounding),
    random_mode=bool(random_mode),
)

if run:
    try:
        st.session_state["plan"] = allocate(inp)
        st.session_state["plan_input"] = inp
    except ConfigurationError as exc:
        st.error(str(exc))

plan: Optional[StakePlan] = st.session_state.get("plan")

tab_plan, tab_journey = st.tabs(["Results", "Betting journey"])

with tab_plan:
    if plan is None:
        st.info("Enter parameters and press 'Calculate'.")
    else:
        with st.expander("Edit actual deposits"):
            dep_a = st.number_input("Deposit Book A", value=float(plan.deposit_a), step=100.0)
            dep_b = st.number_input("Deposit Book B", value=float(plan.deposit_b), step=100.0)
            if st.button("Recalculate from deposits"):
                plan = reallocate_from_deposits(dep_a, dep_b, st.session_state.get("plan_input", inp))
                st.session_state["plan"] = plan
        render_plan(plan)

with tab_journey:
    if plan is None:
        st.info("Calculate a plan first.")
    else:
        render_journey(plan)
