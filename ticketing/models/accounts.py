"""Account and ledger template models.

These are configuration inputs owned by the account layer. The ticket only
reads them.
"""

from pydantic import BaseModel, Field


class Account(BaseModel):
    """An account a ticket can be billed to or paid from."""

    id: int = Field(..., ge=0)
    account_template_id: int = Field(..., ge=0)
    name: str = ""


class AccountTransactionTemplate(BaseModel):
    """
    Template for a ledger transaction.

    Source and target sides each name an account template; the default
    account ids are used until a ticket points them at a concrete account.
    """

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    source_account_template_id: int = Field(0, ge=0)
    target_account_template_id: int = Field(0, ge=0)
    default_source_account_id: int = Field(0, ge=0)
    default_target_account_id: int = Field(0, ge=0)


class TicketTemplate(BaseModel):
    """Per-department ticket settings."""

    name: str = ""
    sale_transaction_template: AccountTransactionTemplate


class Department(BaseModel):
    """A selling department; new tickets are bound to its sale template."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    ticket_template: TicketTemplate
