"""
Domain events for tickets.

Immutable event objects describing what happened to a ticket. Services
publish them and handlers react without the publisher knowing who is
listening.

Events carry the ticket itself so handlers don't need to look it up again.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class TicketEvent:
    """Base class for all ticket events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)
    ticket: Any = None  # Ticket; Any keeps events free of the aggregate import


@dataclass(frozen=True, kw_only=True)
class TicketOpened(TicketEvent):
    """A new ticket was opened for a department."""

    @classmethod
    def create(cls, ticket: Any) -> "TicketOpened":
        return cls(ticket=ticket)


@dataclass(frozen=True, kw_only=True)
class OrdersSubmitted(TicketEvent):
    """New lines were merged, numbered and locked."""
    order_number: int = 0

    @classmethod
    def create(cls, ticket: Any, order_number: int) -> "OrdersSubmitted":
        return cls(ticket=ticket, order_number=order_number)


@dataclass(frozen=True, kw_only=True)
class PaymentReceived(TicketEvent):
    """A payment was added to a ticket."""
    payment: Any = None

    @classmethod
    def create(cls, ticket: Any, payment: Any) -> "PaymentReceived":
        return cls(ticket=ticket, payment=payment)


@dataclass(frozen=True, kw_only=True)
class TicketPaid(TicketEvent):
    """Nothing remains to be paid on a ticket."""

    @classmethod
    def create(cls, ticket: Any) -> "TicketPaid":
        return cls(ticket=ticket)


@dataclass(frozen=True, kw_only=True)
class TicketClosed(TicketEvent):
    """A ticket was closed, settled or forced."""
    forced: bool = False

    @classmethod
    def create(cls, ticket: Any, forced: bool = False) -> "TicketClosed":
        return cls(ticket=ticket, forced=forced)
