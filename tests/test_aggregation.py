"""
Tests for allocation, dividend bucketing and the trailing equity series.
"""

from datetime import date

from services.aggregation import (
    allocation_by_broker,
    allocation_by_type,
    dividends_history,
    dividends_until,
    portfolio_history,
    recent_dividends,
)
from services.records import AssetState, Buy, Dividend

TODAY = "2024-03-15"


def _portfolio():
    return [
        AssetState(id="a1", ticker="PETR4", asset_type="Stock", broker="XP",
                   quantity=6, average_price=100.0, current_price=120.0),
        AssetState(id="a2", ticker="HGLG11", asset_type="FII", broker="NuInvest",
                   quantity=10, average_price=10.0, current_price=12.5),
        AssetState(id="a3", ticker="WEGE3", asset_type="Stock", broker="NuInvest",
                   quantity=2, average_price=50.0, current_price=40.0),
    ]


# --- allocation ---


def test_allocation_by_type_groups_in_first_seen_order():
    slices = allocation_by_type(_portfolio())
    assert [(s.name, s.value) for s in slices] == [("Stock", 800.0), ("FII", 125.0)]


def test_allocation_by_broker_groups_in_first_seen_order():
    slices = allocation_by_broker(_portfolio())
    assert [(s.name, s.value) for s in slices] == [("XP", 720.0), ("NuInvest", 205.0)]


def test_allocation_sums_to_total_equity():
    assets = _portfolio()
    total_equity = sum(asset.quantity * asset.current_price for asset in assets)
    assert sum(s.value for s in allocation_by_type(assets)) == total_equity
    assert sum(s.value for s in allocation_by_broker(assets)) == total_equity


# --- dividends ---


def test_dividend_buckets_order_across_year_boundary(ledger_entries):
    buckets = dividends_history(ledger_entries)
    assert [b.sort_index for b in buckets] == [202312, 202401]
    assert [b.amount for b in buckets] == [30.0, 20.0]
    assert buckets[0].sort_index < buckets[1].sort_index


def test_dividend_buckets_sum_same_month_and_use_utc():
    entries = [
        Dividend(id="d1", asset_id="a1", amount=5.0, date="2024-01-31T23:00:00-03:00"),
        Dividend(id="d2", asset_id="a1", amount=7.0, date="2024-02-10"),
        Dividend(id="d3", asset_id="a1", amount=1.5, date="2024-01-02"),
    ]
    buckets = dividends_history(entries)
    assert [(b.sort_index, b.amount) for b in buckets] == [(202401, 1.5), (202402, 12.0)]


def test_recent_dividends_newest_first_with_unknown_sentinel():
    entries = [
        Dividend(id="d1", asset_id="a1", amount=5.0, date="2024-01-10"),
        Dividend(id="d2", asset_id="deleted", amount=7.0, date="2024-02-10"),
        Buy(id="b1", asset_id="a1", quantity=1, price=10.0, date="2024-03-01"),
    ]
    recent = recent_dividends(entries, _portfolio())
    assert [(e.id, e.ticker) for e in recent] == [("d2", "Unknown"), ("d1", "PETR4")]
    assert recent[0].date == date(2024, 2, 10)
    assert recent[0].amount == 7.0


def test_recent_dividends_orders_same_day_by_time():
    entries = [
        Dividend(id="a", asset_id="a1", amount=1.0, date="2024-01-10T15:00:00Z"),
        Dividend(id="z", asset_id="a1", amount=2.0, date="2024-01-10T09:00:00Z"),
        Dividend(id="m", asset_id="a1", amount=3.0, date="2024-01-10T14:00:00-03:00"),
    ]
    recent = recent_dividends(entries, _portfolio())
    assert [e.id for e in recent] == ["m", "a", "z"]
    assert {e.date for e in recent} == {date(2024, 1, 10)}


def test_recent_dividends_truncates_to_limit():
    entries = [
        Dividend(id=f"d{day:02d}", asset_id="a1", amount=1.0, date=f"2024-01-{day:02d}")
        for day in range(1, 16)
    ]
    recent = recent_dividends(entries, _portfolio())
    assert len(recent) == 10
    assert recent[0].date == date(2024, 1, 15)
    assert recent[-1].date == date(2024, 1, 6)


def test_dividends_until(ledger_entries):
    assert dividends_until(ledger_entries, "2023-12-27") == 0
    assert dividends_until(ledger_entries, "2023-12-28") == 30.0
    assert dividends_until(ledger_entries, "2024-03-01") == 50.0


# --- portfolio history ---


def test_portfolio_history_replays_each_month_end(stock, ledger_entries):
    history = portfolio_history([stock], ledger_entries, months=6, today=TODAY)

    assert [point.date for point in history] == [
        date(2023, 10, 31), date(2023, 11, 30), date(2023, 12, 31),
        date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31),
    ]
    assert [point.value for point in history] == [
        0.0,            # nothing bought yet
        1000.0,         # 10 @ average cost (no sample yet)
        1050.0 + 30.0,  # 10 @ 105 + dividend
        630.0 + 50.0,   # 6 @ 105 + both dividends
        660.0 + 50.0,   # 6 @ 110
        720.0 + 50.0,   # current month-end is in the future: current price
    ]


def test_portfolio_history_is_empty_valued_without_ledger(stock):
    history = portfolio_history([stock], [], months=6, today=TODAY)
    assert len(history) == 6
    assert all(point.value == 0.0 for point in history)
