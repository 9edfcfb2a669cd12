"""
Pricing arithmetic
All money values are Decimal quantized to cents; percentages to 2 places
"""
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Iterable, List, Sequence, Tuple

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def to_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def selling_price(cost, margin) -> Decimal:
    """cost x (1 + margin / 100)"""
    cost = to_decimal(cost)
    return to_money(cost * (1 + to_decimal(margin) / HUNDRED))


def margin_percent(cost, price) -> Decimal:
    """Profit as a share of the selling price; 0 when the price is 0"""
    cost, price = to_decimal(cost), to_decimal(price)
    if price == 0:
        return Decimal("0.00")
    return to_money((price - cost) / price * HUNDRED)


def markup_percent(cost, price) -> Decimal:
    """Profit as a share of the cost; 0 when the cost is 0"""
    cost, price = to_decimal(cost), to_decimal(price)
    if cost == 0:
        return Decimal("0.00")
    return to_money((price - cost) / cost * HUNDRED)


def allocate_extra_costs(line_values: Sequence, extra) -> List[Decimal]:
    """
    Spread `extra` over lines proportionally to their value

    Every share is floored to the cent and the leftover cents go to the
    lines with the largest remainders (later lines win ties), so shares are
    never negative and always add up to `extra`. Lines with no value share
    evenly when every line is 0.
    """
    extra = to_money(extra)
    if not line_values:
        return []
    values = [to_decimal(v) for v in line_values]
    total = sum(values, Decimal("0"))

    if total > 0:
        exact = [extra * value / total for value in values]
    else:
        exact = [extra / len(values)] * len(values)
    shares = [amount.quantize(CENT, rounding=ROUND_DOWN) for amount in exact]

    leftover = int((extra - sum(shares, Decimal("0"))) / CENT)
    by_remainder = sorted(range(len(shares)), key=lambda i: (exact[i] - shares[i], i), reverse=True)
    for i in by_remainder[:leftover]:
        shares[i] += CENT
    return shares


def fifo_cost(batches: Iterable[Tuple[int, object]], quantity: int) -> Decimal:
    """
    Cost of `quantity` units taken from (remaining, unit_cost) pairs in FIFO order

    Raises ValueError when the batches hold less than `quantity`.
    """
    needed = quantity
    cost = Decimal("0")
    for remaining, unit_cost in batches:
        if needed <= 0:
            break
        take = min(remaining, needed)
        if take <= 0:
            continue
        cost += to_decimal(unit_cost) * take
        needed -= take
    if needed > 0:
        raise ValueError(f"Insufficient stock: short by {needed}")
    return to_money(cost)
