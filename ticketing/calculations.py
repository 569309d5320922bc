"""
Calculation engine.

Turns a calculation and the sums it applies to into a currency effect.
Each CalculationMethod has exactly one handler; the dispatch table is
checked against the enum at import time so a new method cannot be added
without a handler.

Handlers return the raw effect; apply_calculation() rounds it and forces
discounts negative. Iteration, removal of tombstoned calculations and
ledger mirroring are the ticket's job.
"""

from decimal import Decimal
from typing import Callable, Iterable

from ticketing.models.calculation import Calculation, CalculationMethod
from ticketing.money import HUNDRED, ZERO, prorate, round_money, round_to_multiple

Handler = Callable[[Calculation, Decimal, Decimal], Decimal]


def _percent_of_ticket(calculation: Calculation, original_sum: Decimal, current_sum: Decimal) -> Decimal:
    if calculation.amount <= 0:
        return ZERO
    return original_sum * calculation.amount / HUNDRED


def _percent_of_running_total(calculation: Calculation, original_sum: Decimal, current_sum: Decimal) -> Decimal:
    if calculation.amount <= 0:
        return ZERO
    return current_sum * calculation.amount / HUNDRED


def _fixed_amount(calculation: Calculation, original_sum: Decimal, current_sum: Decimal) -> Decimal:
    return calculation.amount


def _fixed_target(calculation: Calculation, original_sum: Decimal, current_sum: Decimal) -> Decimal:
    target = calculation.amount
    if target == current_sum:
        calculation.amount = ZERO
    elif calculation.decrease_amount and target > current_sum:
        calculation.amount = ZERO
    elif not calculation.decrease_amount and target < current_sum:
        calculation.amount = ZERO
    else:
        return target - current_sum
    return ZERO


def _round_to_multiple(calculation: Calculation, original_sum: Decimal, current_sum: Decimal) -> Decimal:
    if calculation.amount == 0:
        return ZERO
    effect = round_to_multiple(current_sum, calculation.amount) - current_sum
    # A discount may only round down, a surcharge only up
    if calculation.decrease_amount and effect > 0:
        return ZERO
    if not calculation.decrease_amount and effect < 0:
        return ZERO
    return effect


HANDLERS: dict[CalculationMethod, Handler] = {
    CalculationMethod.PERCENT_OF_TICKET: _percent_of_ticket,
    CalculationMethod.PERCENT_OF_RUNNING_TOTAL: _percent_of_running_total,
    CalculationMethod.FIXED_AMOUNT: _fixed_amount,
    CalculationMethod.FIXED_TARGET: _fixed_target,
    CalculationMethod.ROUND_TO_MULTIPLE: _round_to_multiple,
}

_missing = set(CalculationMethod) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"No calculation handler for {sorted(m.name for m in _missing)}")


def apply_calculation(calculation: Calculation, original_sum: Decimal, current_sum: Decimal) -> Decimal:
    """
    Compute and store a calculation's effect.

    Args:
        calculation: Calculation to apply; its calculation_amount is updated
            and, for tombstoned targets, its amount is zeroed
        original_sum: Sum the pass started from
        current_sum: Sum after the calculations applied before this one

    Returns:
        The rounded, signed effect
    """
    effect = round_money(HANDLERS[calculation.method](calculation, original_sum, current_sum))
    if calculation.decrease_amount and effect > 0:
        effect = -effect
    calculation.calculation_amount = effect
    return effect


def ordered(calculations: Iterable[Calculation]) -> list[Calculation]:
    """Snapshot sorted by ordering key; ties keep insertion order."""
    return sorted(calculations, key=lambda c: c.order)


def calculate_tax(line_tax: Decimal, plain_sum: Decimal, pre_tax_services: Decimal) -> Decimal:
    """
    Ticket tax after pre-tax calculations moved the taxable base.

    Tax follows the base proportionally: a 10% pre-tax discount removes 10%
    of the tax. A zero plain sum leaves the tax unscaled.
    """
    if pre_tax_services == 0:
        return line_tax
    return line_tax + prorate(line_tax, pre_tax_services, plain_sum)
