from config_shared import format_money, format_number, journey_key, normalize_book, other_book
from settings import load_runtime_settings


def test_defaults(monkeypatch):
    for name in ("BUDGET", "ODDS_A", "ODDS_B", "BONUS_PERCENT_B", "ROUNDING_STEP", "RANDOM_MODE", "CURRENCY"):
        monkeypatch.delenv(name, raising=False)
    s = load_runtime_settings()
    assert s.budget == 15000
    assert (s.odds_a, s.odds_b) == (1.60, 2.35)
    assert s.bonus_percent_b == 20
    assert s.rounding_step == 0
    assert s.random_mode is False
    assert s.currency == "INR"

    inp = s.default_input()
    assert inp.min_odds_for_bonus == s.min_odds_for_bonus
    assert "budget=15000.0" in s.summary()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("BUDGET", "20000")
    monkeypatch.setenv("ROUNDING_STEP", "50")
    monkeypatch.setenv("RANDOM_MODE", "yes")
    monkeypatch.setenv("CURRENCY", " usd ")
    s = load_runtime_settings()
    assert s.budget == 20000
    assert s.rounding_step == 50
    assert s.random_mode is True
    assert s.currency == "USD"


def test_unsupported_rounding_falls_back(monkeypatch):
    monkeypatch.setenv("ROUNDING_STEP", "25")
    assert load_runtime_settings().rounding_step == 0
    monkeypatch.setenv("ROUNDING_STEP", "ten")
    assert load_runtime_settings().rounding_step == 0


def test_shared_helpers():
    assert normalize_book(" a ") == "A"
    assert normalize_book("C") is None
    assert other_book("A") == "B" and other_book("b") == "A"
    assert format_number(15000.0) == "15000"
    assert format_number(2.35) == "2.35"
    assert journey_key(1.6, 2.35, 15000) == "betting-journey-1.6-2.35-15000"
    assert format_money(1234.567, "INR") == "₹1235"
    assert format_money(5, "GBP", digits=2) == "GBP 5.00"
