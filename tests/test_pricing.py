from decimal import Decimal

import pytest

from posadmin.services.pricing import (
    allocate_extra_costs,
    fifo_cost,
    margin_percent,
    markup_percent,
    selling_price,
    to_money)


def test_selling_price_from_margin():
    assert selling_price(Decimal("10"), Decimal("25")) == Decimal("12.50")
    assert selling_price("3.33", 0) == Decimal("3.33")


def test_margin_and_markup():
    assert margin_percent(8, 10) == Decimal("20.00")
    assert markup_percent(8, 10) == Decimal("25.00")


def test_percentages_with_zero_base():
    assert margin_percent(5, 0) == Decimal("0.00")
    assert markup_percent(0, 5) == Decimal("0.00")


def test_to_money_rounds_half_up():
    assert to_money("2.005") == Decimal("2.01")
    assert to_money(None) == Decimal("0.00")


def test_extra_costs_follow_line_value():
    assert allocate_extra_costs([Decimal("100"), Decimal("300")], Decimal("40")) == [
        Decimal("10.00"), Decimal("30.00")
    ]


def test_extra_costs_shares_add_up():
    shares = allocate_extra_costs([1, 1, 1], Decimal("10"))
    assert shares == [Decimal("3.33"), Decimal("3.33"), Decimal("3.34")]
    assert sum(shares) == Decimal("10.00")


def test_extra_costs_on_zero_value_lines():
    assert allocate_extra_costs([0, 0], 5) == [Decimal("2.50"), Decimal("2.50")]
    assert allocate_extra_costs([], 5) == []


def test_fifo_cost_takes_oldest_first():
    batches = [(5, Decimal("2.00")), (10, Decimal("3.00"))]
    assert fifo_cost(batches, 8) == Decimal("19.00")
    assert fifo_cost(batches, 5) == Decimal("10.00")


def test_fifo_cost_shortage():
    with pytest.raises(ValueError):
        fifo_cost([(2, Decimal("1.00"))], 3)


def test_extra_costs_never_go_negative():
    shares = allocate_extra_costs([1, 1, 1, 1], Decimal("0.02"))
    assert shares == [Decimal("0.00"), Decimal("0.00"), Decimal("0.01"), Decimal("0.01")]
    assert all(share >= 0 for share in shares)
    assert sum(shares) == Decimal("0.02")

    shares = allocate_extra_costs([1, 2], Decimal("0.01"))
    assert shares == [Decimal("0.00"), Decimal("0.01")]
