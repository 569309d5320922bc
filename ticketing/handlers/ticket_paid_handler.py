"""
Handler for TicketPaid events.

Once a ticket is paid in full, settle it so it drops off the open list.
"""

import logging
from typing import Callable

from ticketing.events import TicketPaid

logger = logging.getLogger(__name__)


def handle_ticket_paid(ticket_service) -> Callable:
    """
    Factory that returns a TicketPaid handler.

    Args:
        ticket_service: TicketService instance

    Returns:
        Handler callable that closes the paid ticket
    """

    def handler(event: TicketPaid):
        ticket = event.ticket
        if ticket.is_closed:
            return
        ticket_service.close_ticket(ticket)
        if not ticket.is_closed:
            logger.info("Ticket %s is paid but still has a running timer", ticket.ticket_number)

    return handler
