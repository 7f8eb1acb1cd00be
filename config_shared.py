from __future__ import annotations

from typing import Optional

BOOKS = ("A", "B")

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "UAH": "₴",
    "USD": "$",
    "EUR": "€",
}

JOURNEY_KEY_PREFIX = "betting-journey"


def normalize_book(book: Optional[str]) -> Optional[str]:
    """'a' / ' B ' -> 'A' / 'B'. Returns None for anything else."""
    b = "" if book is None else str(book).strip().upper()
    return b if b in BOOKS else None


def other_book(book: str) -> str:
    return "B" if normalize_book(book) == "A" else "A"


def format_number(value: float) -> str:
    """Print integral floats without a trailing '.0' (15000.0 -> '15000', 1.6 -> '1.6')."""
    v = float(value)
    if v.is_integer():
        return str(int(v))
    return repr(v)


def journey_key(odds_a: float, odds_b: float, budget: float) -> str:
    """Storage key for the journey of one (odds_a, odds_b, budget) combination."""
    return f"{JOURNEY_KEY_PREFIX}-{format_number(odds_a)}-{format_number(odds_b)}-{format_number(budget)}"


def format_money(amount: float, currency: str, digits: int = 0) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    return f"{symbol}{amount:.{digits}f}"
