"""
Tests for transaction replay and live average-cost maintenance.
"""

from datetime import date

import pytest

from services.records import AssetState, Buy, Dividend, PricePoint, Sell, make_transaction
from services.replay import apply_transaction, record_price, replay_holdings


def _asset(**overrides) -> AssetState:
    fields = dict(id="a1", ticker="PETR4", asset_type="Stock", broker="XP")
    fields.update(overrides)
    return AssetState(**fields)


# --- replay_holdings ---


def test_replay_respects_cutoff_inclusively(ledger_entries):
    assert replay_holdings(ledger_entries, "2023-11-14") == {}
    assert replay_holdings(ledger_entries, "2023-11-15") == {"a1": 10}
    assert replay_holdings(ledger_entries, "2024-01-19") == {"a1": 10}
    assert replay_holdings(ledger_entries, "2024-01-20") == {"a1": 6}


def test_replay_ignores_time_of_day():
    entries = [Buy(id="b", asset_id="a1", quantity=3, price=1.0, date="2024-01-20T23:59:00")]
    assert replay_holdings(entries, "2024-01-20T00:00:00") == {"a1": 3}


def test_replay_is_input_order_independent(ledger_entries):
    forward = replay_holdings(ledger_entries, "2024-03-01")
    backward = replay_holdings(list(reversed(ledger_entries)), "2024-03-01")
    assert forward == backward == {"a1": 6}


def test_oversell_clamps_to_zero():
    entries = [
        Buy(id="b1", asset_id="a1", quantity=5, price=10.0, date="2024-01-01"),
        Sell(id="s1", asset_id="a1", quantity=8, price=12.0, date="2024-01-02"),
        Buy(id="b2", asset_id="a1", quantity=2, price=11.0, date="2024-01-03"),
    ]
    assert replay_holdings(entries, "2024-01-02") == {"a1": 0}
    assert replay_holdings(entries, "2024-01-03") == {"a1": 2}


def test_sell_without_position_never_goes_negative():
    entries = [Sell(id="s1", asset_id="ghost", quantity=3, price=1.0, date="2024-01-01")]
    holdings = replay_holdings(entries, "2024-12-31")
    assert all(quantity >= 0 for quantity in holdings.values())


def test_same_day_buy_and_sell_do_not_clamp():
    entries = [
        Sell(id="s", asset_id="a1", quantity=4, price=10.0, date="2024-01-05"),
        Buy(id="b", asset_id="a1", quantity=4, price=10.0, date="2024-01-05"),
    ]
    assert replay_holdings(entries, "2024-01-05") == {"a1": 0}
    entries.append(Buy(id="b2", asset_id="a1", quantity=1, price=10.0, date="2024-01-05"))
    assert replay_holdings(entries, "2024-01-05") == {"a1": 1}


def test_dividends_do_not_change_quantity():
    entries = [
        Buy(id="b", asset_id="a1", quantity=2, price=10.0, date="2024-01-01"),
        Dividend(id="d", asset_id="a1", amount=99.0, date="2024-01-02"),
    ]
    assert replay_holdings(entries, "2024-01-31") == {"a1": 2}


def test_replay_does_not_mutate_input(ledger_entries):
    before = list(ledger_entries)
    replay_holdings(ledger_entries, "2024-03-01")
    assert ledger_entries == before


# --- apply_transaction ---


def test_buy_updates_weighted_average_cost():
    asset = _asset(quantity=10, average_price=100.0)
    updated = apply_transaction(asset, Buy(id="b", asset_id="a1", quantity=5, price=130.0, date="2024-01-01"))
    assert updated.quantity == 15
    assert updated.average_price == 110.0
    assert asset.quantity == 10
    assert asset.average_price == 100.0


def test_sell_keeps_average_and_clamps_quantity():
    asset = _asset(quantity=10, average_price=100.0)
    sold = apply_transaction(asset, Sell(id="s", asset_id="a1", quantity=4, price=200.0, date="2024-01-01"))
    assert sold.quantity == 6
    assert sold.average_price == 100.0

    oversold = apply_transaction(sold, Sell(id="s2", asset_id="a1", quantity=50, price=200.0, date="2024-01-02"))
    assert oversold.quantity == 0
    assert oversold.average_price == 100.0


def test_zero_quantity_buy_keeps_average():
    asset = _asset(quantity=0, average_price=0.0)
    updated = apply_transaction(asset, Buy(id="b", asset_id="a1", quantity=0, price=50.0, date="2024-01-01"))
    assert updated.quantity == 0
    assert updated.average_price == 0.0


def test_dividend_leaves_asset_untouched():
    asset = _asset(quantity=3, average_price=20.0, current_price=25.0)
    assert apply_transaction(asset, Dividend(id="d", asset_id="a1", amount=7.0, date="2024-01-01")) == asset


# --- record_price ---


def test_record_price_replaces_same_day_and_keeps_order():
    asset = _asset(
        current_price=10.0,
        price_history=[PricePoint("2024-01-10", 10.0), PricePoint("2024-03-01", 12.0)],
    )
    updated = record_price(asset, 11.0, "2024-02-01")
    updated = record_price(updated, 11.5, "2024-02-01T18:00:00")

    assert updated.current_price == 11.5
    assert [point.day for point in updated.price_history] == [
        date(2024, 1, 10), date(2024, 2, 1), date(2024, 3, 1)
    ]
    assert updated.price_history[1].price == 11.5
    assert len(asset.price_history) == 2


# --- records ---


def test_make_transaction_builds_tagged_variants():
    dividend = make_transaction("dividend", id="d", asset_id="a1", quantity=0, price=42.0, date="2024-01-01")
    assert isinstance(dividend, Dividend)
    assert dividend.amount == 42.0
    assert isinstance(make_transaction("BUY", "b", "a1", 1, 2.0, "2024-01-01"), Buy)
    assert isinstance(make_transaction("SELL", "s", "a1", 1, 2.0, "2024-01-01"), Sell)


def test_negative_values_are_rejected():
    with pytest.raises(ValueError):
        Buy(id="b", asset_id="a1", quantity=-1, price=10.0, date="2024-01-01")
    with pytest.raises(ValueError):
        Dividend(id="d", asset_id="a1", amount=-5.0, date="2024-01-01")
    with pytest.raises(ValueError):
        _asset(quantity=-0.5)


def test_records_are_immutable():
    buy = Buy(id="b", asset_id="a1", quantity=1, price=10.0, date="2024-01-01")
    with pytest.raises(AttributeError):
        buy.quantity = 2
