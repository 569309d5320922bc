"""Payment domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from ticketing.models.accounts import AccountTransactionTemplate
from ticketing.models.identity import UNASSIGNED, EntityId
from utils.timezone import now_utc


class PaymentTemplate(BaseModel):
    """A payment method (cash, card, voucher) and its ledger template."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    account_transaction_template: AccountTransactionTemplate


@dataclass(eq=False)
class Payment:
    """Money received against a ticket. Each one owns its own ledger transaction."""

    account_transaction_id: UUID
    amount: Decimal
    name: str
    payment_template_id: int
    created_at: datetime = field(default_factory=now_utc)
    id: EntityId = UNASSIGNED


@dataclass(eq=False)
class PaidItem:
    """Snapshot of an item already settled in a partial payment."""

    menu_item_id: int
    price: Decimal
    quantity: Decimal
