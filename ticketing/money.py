"""
Money rounding policy.

All amounts are Decimal. Every monetary output of the engine passes through
round_money() so one configured precision and rounding rule applies
everywhere.
"""

from decimal import ROUND_DOWN, Decimal

from ticketing.config import get_config

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """
    Coerce a numeric input to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    approximation.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _quantum(decimals: int) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def round_money(value: Decimal | int | str | float, decimals: int | None = None) -> Decimal:
    """
    Round an amount to the configured precision.

    Args:
        value: Amount to round
        decimals: Override for the configured number of decimal places

    Returns:
        Quantized Decimal
    """
    config = get_config()
    places = config.decimals if decimals is None else decimals
    return to_decimal(value).quantize(_quantum(places), rounding=config.rounding.value)


def round_to_multiple(value: Decimal, multiple: Decimal) -> Decimal:
    """
    Round value to a multiple of `multiple`.

    A positive multiple rounds to the nearest multiple using the configured
    multiple_rounding rule (half away from zero by default). A negative
    multiple always rounds toward zero. A zero multiple has nothing to
    round to and returns value unchanged.
    """
    if multiple == 0:
        return value
    quotient = value / multiple
    if multiple > 0:
        steps = quotient.quantize(Decimal(1), rounding=get_config().multiple_rounding.value)
    else:
        steps = quotient.quantize(Decimal(1), rounding=ROUND_DOWN)
    return steps * multiple


def prorate(amount: Decimal, part: Decimal, base: Decimal) -> Decimal:
    """
    Share of `amount` proportional to part / base.

    A zero base (e.g. an all-free ticket) yields zero instead of dividing.
    """
    if base == 0:
        return ZERO
    return amount * part / base
