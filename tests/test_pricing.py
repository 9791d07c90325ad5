from types import SimpleNamespace

import pytest

from app.services.pricing import (
    calculate_monthly_equivalent, calculate_savings, calculate_total, duration_from_price_id, price_table,
)


def _package(price=160):
    return SimpleNamespace(price_monthly=price, price_1m="p1", price_3m="p3", price_6m="p6")


def test_totals_apply_commitment_discounts():
    assert calculate_total(160, 1) == 160
    assert calculate_total(160, 3) == 432
    assert calculate_total(160, 6) == 768


def test_savings_and_monthly_equivalent():
    assert calculate_savings(160, 1) == 0
    assert calculate_savings(160, 3) == 48
    assert calculate_savings(160, 6) == 192
    assert calculate_monthly_equivalent(160, 3) == 144
    assert calculate_monthly_equivalent(160, 6) == 128


def test_totals_are_rounded_to_whole_units():
    # 99 * 3 * 0.9 = 267.3
    assert calculate_total(99, 3) == 267
    # 45.5 * 1 = 45.5
    assert calculate_total("45.50", 1) == 46


def test_unsupported_duration_is_rejected():
    with pytest.raises(ValueError):
        calculate_total(160, 2)


def test_duration_from_price_id():
    package = _package()
    assert duration_from_price_id(package, "p1") == 1
    assert duration_from_price_id(package, "p6") == 6
    assert duration_from_price_id(package, "unknown") is None
    assert duration_from_price_id(package, "") is None


def test_price_table_lists_every_duration():
    rows = price_table(_package())
    assert [row["months"] for row in rows] == [1, 3, 6]
    assert rows[1] == {"months": 3, "price_id": "p3", "total": 432, "savings": 48, "monthly_equivalent": 144}
