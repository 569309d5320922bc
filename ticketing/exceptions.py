"""Typed exceptions for ticket failures."""


class TicketError(Exception):
    """Base class for ticket errors."""


class ContractViolationError(TicketError):
    """
    A caller broke a precondition of the ticket aggregate.

    This is a programming error (e.g. extracting a zero quantity, or
    operating on an order that belongs to another ticket). It is never
    recovered internally; fix the caller.
    """


class TicketClosedError(TicketError):
    """Ticket is closed and no longer accepts changes from the order flow."""

    def __init__(self, ticket_number: str | None):
        self.ticket_number = ticket_number
        label = ticket_number or "(unnumbered)"
        super().__init__(f"Ticket {label} is closed")


class TicketNotClosableError(TicketError):
    """Ticket still has an open balance and nothing else justifies closing it."""

    def __init__(self, remaining_amount):
        self.remaining_amount = remaining_amount
        super().__init__(f"Ticket cannot be closed with {remaining_amount} remaining")
