"""Calculation (discount / service charge) domain models."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from ticketing.models.accounts import AccountTransactionTemplate
from ticketing.models.identity import UNASSIGNED, EntityId
from ticketing.money import ZERO


class CalculationMethod(int, Enum):
    """How a calculation turns its configured amount into an effect."""

    PERCENT_OF_TICKET = 0         # % of the sum the pass started from
    PERCENT_OF_RUNNING_TOTAL = 1  # % of the sum after earlier calculations
    FIXED_AMOUNT = 2              # Configured amount as-is
    FIXED_TARGET = 3              # Bring the running sum to the configured amount
    ROUND_TO_MULTIPLE = 4         # Round the running sum to a multiple of the amount


class CalculationTemplate(BaseModel):
    """Configured discount or service charge."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    method: CalculationMethod = CalculationMethod.FIXED_AMOUNT
    amount: Decimal = ZERO
    include_tax: bool = False      # Applied after tax when True
    decrease_amount: bool = False  # Discount when True, surcharge otherwise
    order: int = 0
    account_transaction_template: AccountTransactionTemplate


@dataclass(eq=False)
class Calculation:
    """
    A calculation applied to one ticket.

    `amount` is what was configured; `calculation_amount` is the effect on
    the ticket from the latest pass. An amount of zero marks the
    calculation for removal.
    """

    name: str
    method: CalculationMethod
    amount: Decimal
    template_id: int
    account_transaction_template_id: int
    include_tax: bool = False
    decrease_amount: bool = False
    order: int = 0
    calculation_amount: Decimal = ZERO
    id: EntityId = UNASSIGNED

    @classmethod
    def from_template(cls, template: CalculationTemplate, amount: Decimal) -> "Calculation":
        return cls(
            name=template.name,
            method=template.method,
            amount=amount,
            template_id=template.id,
            account_transaction_template_id=template.account_transaction_template.id,
            include_tax=template.include_tax,
            decrease_amount=template.decrease_amount,
            order=template.order,
        )

    @property
    def is_tombstoned(self) -> bool:
        return self.amount == 0
