from decimal import Decimal, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")


def to_money(value) -> Decimal:
    d = Decimal(str(value))
    return d.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_minor_units(value) -> int:
    """Convert a money amount into the gateway's minor currency unit (paise, cents)."""
    return int((to_money(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def line_total(unit_price, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * quantity)
