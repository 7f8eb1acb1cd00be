# journey.py
# Betting journey: bets actually placed against a StakePlan.
# - one BookState per book with running deposit / bonus totals
# - cross-book funding (cash from book B wagered at book A odds)
# - per-book progress and a single "what to do next" recommendation

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from allocator import StakePlan
from config_shared import format_money, normalize_book, other_book

COMPLETION_TOLERANCE = 1.0


class InvalidEntryError(ValueError):
    pass


@dataclass(frozen=True)
class BetEntry:
    id: str
    amount: float
    is_bonus: bool
    timestamp: str
    fund_source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "is_bonus": self.is_bonus,
            "timestamp": self.timestamp,
            "fund_source": self.fund_source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BetEntry":
        return cls(
            id=str(data["id"]),
            amount=float(data["amount"]),
            is_bonus=bool(data.get("is_bonus", False)),
            timestamp=str(data.get("timestamp") or ""),
            fund_source=normalize_book(data.get("fund_source")),
        )


@dataclass
class BookState:
    entries: List[BetEntry] = field(default_factory=list)
    total_deposit: float = 0.0
    total_bonus: float = 0.0

    @property
    def total_placed(self) -> float:
        return self.total_deposit + self.total_bonus

    def find(self, entry_id: str) -> Optional[BetEntry]:
        for e in self.entries:
            if e.id == entry_id:
                return e
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "total_deposit": self.total_deposit,
            "total_bonus": self.total_bonus,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookState":
        return cls(
            entries=[BetEntry.from_dict(e) for e in data.get("entries", [])],
            total_deposit=float(data.get("total_deposit", 0.0)),
            total_bonus=float(data.get("total_bonus", 0.0)),
        )


@dataclass
class JourneyLog:
    fingerprint: str
    book_a: BookState = field(default_factory=BookState)
    book_b: BookState = field(default_factory=BookState)

    def book(self, book: str) -> BookState:
        b = normalize_book(book)
        if b is None:
            raise InvalidEntryError(f"Unknown book: {book!r}")
        return self.book_a if b == "A" else self.book_b

    def recompute_totals(self) -> None:
        """Re-derive both running totals from the entries themselves."""
        for key in ("A", "B"):
            self.book(key).total_deposit = 0.0
            self.book(key).total_bonus = 0.0
        for key in ("A", "B"):
            for e in self.book(key).entries:
                _apply(self, key, e, sign=1.0)

    def to_dict(self, is_complete: bool = False) -> Dict[str, Any]:
        return {
            "book_a": self.book_a.to_dict(),
            "book_b": self.book_b.to_dict(),
            "is_complete": bool(is_complete),
        }

    @classmethod
    def from_dict(cls, fingerprint: str, data: Dict[str, Any]) -> "JourneyLog":
        log = cls(
            fingerprint=fingerprint,
            book_a=BookState.from_dict(data.get("book_a") or {}),
            book_b=BookState.from_dict(data.get("book_b") or {}),
        )
        log.recompute_totals()
        return log


def _apply(log: JourneyLog, book: str, entry: BetEntry, sign: float) -> None:
    target = log.book(book)
    delta = sign * entry.amount
    if entry.is_bonus:
        target.total_bonus += delta
        return
    target.total_deposit += delta
    if entry.fund_source and entry.fund_source != book:
        log.book(entry.fund_source).total_deposit += delta


def parse_amount(amount: Any) -> float:
    if isinstance(amount, bool):
        raise InvalidEntryError(f"Bet amount must be a number, got {amount!r}")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidEntryError(f"Bet amount must be a number, got {amount!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidEntryError(f"Bet amount must be positive, got {amount!r}")
    return value


@dataclass(frozen=True)
class BookProgress:
    book: str
    target_deposit: float
    target_bonus: float
    target_stake: float
    total_placed: float
    deposit_remaining: float
    bonus_remaining: float
    total_remaining: float
    is_deposit_complete: bool
    is_bonus_complete: bool
    is_complete: bool


@dataclass(frozen=True)
class Recommendation:
    book: str
    kind: str
    amount: float
    message: str


@dataclass(frozen=True)
class JourneySummary:
    total_target: float
    total_placed: float
    total_remaining: float
    all_complete: bool


class ProgressTracker:
    """
    Tracks bets placed on both books against a StakePlan.

    Amounts within COMPLETION_TOLERANCE of a target count as done; this
    absorbs the sub-unit residue the allocator leaves after rounding.
    """

    def __init__(self, plan: StakePlan, log: Optional[JourneyLog] = None):
        self.plan = plan
        self.log = log if log is not None else JourneyLog(fingerprint=plan.fingerprint)

    # ---------------- mutations ----------------
    def add_entry(
        self,
        book: str,
        amount: Any,
        is_bonus: bool = False,
        fund_source: Optional[str] = None,
    ) -> BetEntry:
        target = normalize_book(book)
        if target is None:
            raise InvalidEntryError(f"Unknown book: {book!r}")
        value = parse_amount(amount)

        source = target
        if fund_source is not None:
            source = normalize_book(fund_source)
            if source is None:
                raise InvalidEntryError(f"Unknown fund source: {fund_source!r}")

        entry = BetEntry(
            id=uuid.uuid4().hex,
            amount=value,
            is_bonus=bool(is_bonus),
            timestamp=datetime.now(timezone.utc).isoformat(),
            fund_source=source,
        )
        self.log.book(target).entries.append(entry)
        _apply(self.log, target, entry, sign=1.0)
        return entry

    def add_cross_funded(self, book: str, amount: Any) -> BetEntry:
        """Deposit bet at `book` odds paid with cash sitting in the other book."""
        return self.add_entry(book, amount, is_bonus=False, fund_source=other_book(book))

    def remove_entry(self, book: str, entry_id: str) -> Optional[BetEntry]:
        target = normalize_book(book)
        if target is None:
            return None
        state = self.log.book(target)
        entry = state.find(entry_id)
        if entry is None:
            return None

        state.entries = [e for e in state.entries if e.id != entry_id]
        _apply(self.log, target, entry, sign=-1.0)
        return entry

    def clear(self) -> None:
        self.log.book_a = BookState()
        self.log.book_b = BookState()

    # ---------------- progress ----------------
    def _targets(self, book: str) -> tuple[float, float, float]:
        if book == "A":
            return self.plan.deposit_a, self.plan.bonus_stake_a, self.plan.stake_a
        return self.plan.deposit_b, self.plan.bonus_stake_b, self.plan.stake_b

    def progress(self, book: str) -> BookProgress:
        key = normalize_book(book)
        if key is None:
            raise InvalidEntryError(f"Unknown book: {book!r}")
        state = self.log.book(key)
        target_deposit, target_bonus, target_stake = self._targets(key)

        total_placed = state.total_placed
        return BookProgress(
            book=key,
            target_deposit=target_deposit,
            target_bonus=target_bonus,
            target_stake=target_stake,
            total_placed=total_placed,
            deposit_remaining=max(0.0, target_deposit - state.total_deposit),
            bonus_remaining=max(0.0, target_bonus - state.total_bonus),
            total_remaining=max(0.0, target_stake - total_placed),
            is_deposit_complete=state.total_deposit >= target_deposit - COMPLETION_TOLERANCE,
            is_bonus_complete=target_bonus == 0 or state.total_bonus >= target_bonus - COMPLETION_TOLERANCE,
            is_complete=total_placed >= target_stake - COMPLETION_TOLERANCE,
        )

    def transferable_from_other(self, book: str) -> float:
        """Deposit still owed on the other book, which may be wagered at `book` odds instead."""
        return self.progress(other_book(book)).deposit_remaining

    def recommendation(self, currency: str = "INR") -> Optional[Recommendation]:
        for key in ("A", "B"):
            p = self.progress(key)
            if p.is_complete:
                continue
            total = format_money(p.target_stake, currency)

            if not p.is_deposit_complete:
                amt = format_money(p.deposit_remaining, currency)
                return Recommendation(
                    book=key,
                    kind="deposit",
                    amount=p.deposit_remaining,
                    message=f"Place {amt} deposit on Book {key} to reach {total} total",
                )
            if not p.is_bonus_complete and p.target_bonus > 0:
                amt = format_money(p.bonus_remaining, currency)
                return Recommendation(
                    book=key,
                    kind="bonus",
                    amount=p.bonus_remaining,
                    message=f"Use {amt} bonus on Book {key} to reach {total} total",
                )
            if p.total_remaining > 0:
                amt = format_money(p.total_remaining, currency)
                return Recommendation(
                    book=key,
                    kind="deposit",
                    amount=p.total_remaining,
                    message=f"Add {amt} more to Book {key} to reach {total} total",
                )
        return None

    def summary(self) -> JourneySummary:
        total_target = self.plan.stake_a + self.plan.stake_b
        total_placed = self.log.book_a.total_placed + self.log.book_b.total_placed
        return JourneySummary(
            total_target=total_target,
            total_placed=total_placed,
            total_remaining=max(0.0, total_target - total_placed),
            all_complete=self.progress("A").is_complete and self.progress("B").is_complete,
        )

    def snapshot(self) -> Dict[str, Any]:
        return self.log.to_dict(is_complete=self.summary().all_complete)
