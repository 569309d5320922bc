"""
Ticket service for the order-taking and settlement flow.

Wraps the Ticket aggregate with the checks a till applies (closed tickets
take no more orders or payments, payments must be positive) and publishes
lifecycle events. The aggregate itself never refuses a mutation.
"""

import logging
from decimal import Decimal
from typing import Iterable

from ticketing.event_bus import EventBus
from ticketing.events import OrdersSubmitted, PaymentReceived, TicketClosed, TicketOpened, TicketPaid
from ticketing.exceptions import TicketClosedError, TicketNotClosableError
from ticketing.ledger import LedgerDocument
from ticketing.models import (
    Account, AccountTransactionTemplate, Calculation, CalculationTemplate, Department,
    MenuItem, MenuItemPortion, MenuItemTimer, Order, Payment, PaymentTemplate,
)
from ticketing.money import to_decimal
from ticketing.ticket import Ticket

logger = logging.getLogger(__name__)


class TicketService:
    """Service for ticket flows."""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus

    @staticmethod
    def _require_open(ticket: Ticket) -> None:
        if not ticket.can_submit:
            raise TicketClosedError(ticket.ticket_number)

    def open_ticket(
        self,
        department: Department,
        account: Account | None,
        calculation_templates: Iterable[CalculationTemplate] = (),
        ticket_number: str | None = None,
        ledger: LedgerDocument | None = None,
    ) -> Ticket:
        """
        Open a ticket with the department's default calculations.

        Args:
            department: Department the ticket is sold in
            account: Account billed, if known yet
            calculation_templates: Default discounts / service charges
            ticket_number: Number to print and name the ledger document by
            ledger: Ledger document to use instead of a fresh in-memory one

        Returns:
            The new, open ticket
        """
        ticket = Ticket.create(department, account, calculation_templates, ledger=ledger)
        if ticket_number is not None:
            ticket.ticket_number = ticket_number

        logger.info("Opened ticket %s in department %s", ticket_number, department.name)
        self.event_bus.publish(TicketOpened.create(ticket=ticket))
        return ticket

    def add_order(
        self,
        ticket: Ticket,
        template: AccountTransactionTemplate,
        user_name: str,
        menu_item: MenuItem,
        portion: MenuItemPortion,
        price_tag: str = "",
        quantity: Decimal | int = 1,
        timer: MenuItemTimer | None = None,
    ) -> Order:
        """
        Add an order line.

        Raises:
            TicketClosedError: If the ticket is closed
            ValueError: If quantity is not positive
        """
        self._require_open(ticket)
        if to_decimal(quantity) <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")
        return ticket.add_order(template, user_name, menu_item, portion, price_tag, timer, quantity)

    def apply_calculation(
        self,
        ticket: Ticket,
        template: CalculationTemplate,
        amount: Decimal | int | str,
    ) -> Calculation | None:
        """
        Apply, change or toggle off a calculation and refresh the totals.

        Raises:
            TicketClosedError: If the ticket is closed
        """
        self._require_open(ticket)
        calculation = ticket.add_calculation(template, amount)
        ticket.recalculate()
        if calculation is None:
            logger.info("Calculation %s removed from ticket %s", template.name, ticket.ticket_number)
        return calculation

    def submit_orders(self, ticket: Ticket, order_number: int) -> list[Order]:
        """
        Send new lines out: merge duplicates, number them, lock them.

        Returns:
            The lines that were submitted in this batch
        """
        self._require_open(ticket)
        ticket.merge_orders_and_update_order_numbers(order_number)
        submitted = [o for o in ticket.get_unlocked_orders() if o.order_number == order_number]
        ticket.recalculate()
        ticket.lock_ticket()

        logger.info(
            "Submitted %d line(s) as order %s on ticket %s",
            len(submitted), order_number, ticket.ticket_number,
        )
        self.event_bus.publish(OrdersSubmitted.create(ticket=ticket, order_number=order_number))
        return submitted

    def add_payment(
        self,
        ticket: Ticket,
        payment_template: PaymentTemplate,
        account: Account,
        amount: Decimal | int | str,
    ) -> Payment:
        """
        Take a payment.

        Raises:
            TicketClosedError: If the ticket is closed
            ValueError: If amount is not positive
        """
        self._require_open(ticket)
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValueError(f"Payment amount must be positive, got {amount}")

        payment = ticket.add_payment(payment_template, account, amount)
        logger.info(
            "Payment of %s by %s on ticket %s, %s remaining",
            amount, payment_template.name, ticket.ticket_number, ticket.remaining_amount,
        )
        self.event_bus.publish(PaymentReceived.create(ticket=ticket, payment=payment))

        if ticket.remaining_amount <= 0:
            self.event_bus.publish(TicketPaid.create(ticket=ticket))
        return payment

    def close_ticket(self, ticket: Ticket, force: bool = False) -> Ticket:
        """
        Put a ticket away, settling it if nothing remains to pay.

        A ticket with a balance may still be put away when it is bound to a
        resource or tagged (e.g. a table tab); it then stays open. It becomes
        closed when nothing remains and no timer is running. `force` closes
        it regardless, e.g. for a walk-out.

        Returns:
            The ticket; check is_closed to see whether it settled

        Raises:
            TicketNotClosableError: If the ticket has a balance and nothing
                allows putting it away, and force is False
        """
        if ticket.is_closed:
            return ticket

        if not force and not ticket.can_close_ticket():
            raise TicketNotClosableError(ticket.get_remaining_amount())

        ticket.recalculate()
        ticket.update_is_closed()
        if force and not ticket.is_closed:
            logger.warning(
                "Force closing ticket %s with %s remaining",
                ticket.ticket_number, ticket.remaining_amount,
            )
            ticket.stop_active_timers()
            ticket.force_close()

        ticket.lock_ticket()
        if ticket.is_closed:
            logger.info("Closed ticket %s", ticket.ticket_number)
            self.event_bus.publish(TicketClosed.create(ticket=ticket, forced=force))
        return ticket
