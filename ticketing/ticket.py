"""
Ticket aggregate.

A ticket is the bill of one customer visit. It owns its order lines,
calculations, payments, paid-item snapshot, tags and resource links, and
mirrors every monetary change into its ledger document as it happens.

Totals are read-side: get_sum() and get_remaining_amount() recompute from
current state whenever they are called. Each call also refreshes every
calculation's effect and its ledger entry, and drops calculations whose
configured amount has become zero.

Single writer: one caller mutates a ticket at a time.
"""

import logging
from collections import Counter, defaultdict
from decimal import Decimal
from enum import Enum
from typing import Iterable

from ticketing.calculations import apply_calculation, calculate_tax, ordered
from ticketing.config import get_config
from ticketing.exceptions import ContractViolationError
from ticketing.ledger import LedgerDocument, TransactionDocument
from ticketing.models.accounts import Account, AccountTransactionTemplate, Department
from ticketing.models.calculation import Calculation, CalculationTemplate
from ticketing.models.identity import UNASSIGNED, EntityId, is_assigned
from ticketing.models.menu import MenuItem, MenuItemPortion, MenuItemTimer, TaxTemplate
from ticketing.models.order import Order
from ticketing.models.payment import PaidItem, Payment, PaymentTemplate
from ticketing.models.resource import TicketResource
from ticketing.models.tag import TicketTags, TicketTagValue
from ticketing.money import ZERO, round_money, to_decimal
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    """Ticket lock lifecycle."""

    UNLOCKED = "unlocked"
    PENDING_LOCK = "pending_lock"
    LOCKED = "locked"


class Ticket:
    """Order/bill aggregate for one customer visit."""

    def __init__(
        self,
        id: EntityId = UNASSIGNED,
        transaction_document: LedgerDocument | None = None,
        ticket_tags: str | None = None,
    ):
        now = now_utc()
        self.id = id
        self.date = now
        self.last_order_date = now
        self.last_payment_date = now
        self.last_update_time = now

        self.is_closed = False
        self.locked = False
        self._should_lock = False

        self.total_amount = ZERO
        self.remaining_amount = ZERO
        self.department_id = 0
        self.account_id = 0
        self.account_template_id = 0
        self.account_name = ""
        self.note = ""

        self.transaction_document = transaction_document or TransactionDocument()
        self._ticket_number: str | None = None
        self._tags = TicketTags(ticket_tags)

        self.orders: list[Order] = []
        self.calculations: list[Calculation] = []
        self.payments: list[Payment] = []
        self.paid_items: list[PaidItem] = []
        self.resources: list[TicketResource] = []

        # Lines and calculations referencing each ledger template
        self._template_refs: Counter[int] = Counter()

    def __repr__(self) -> str:
        return f"Ticket(id={self.id!r}, number={self._ticket_number!r}, orders={len(self.orders)})"

    @classmethod
    def create(
        cls,
        department: Department,
        account: Account | None,
        calculation_templates: Iterable[CalculationTemplate],
        ledger: LedgerDocument | None = None,
    ) -> "Ticket":
        """
        Open a ticket for a department.

        The ticket bills to the department's sale account template and starts
        with the department's default calculations applied in ascending order.
        """
        ticket = cls(transaction_document=ledger)
        ticket.department_id = department.id
        ticket.account_template_id = department.ticket_template.sale_transaction_template.target_account_template_id
        ticket.update_account(account)
        for template in sorted(calculation_templates, key=lambda t: t.order):
            ticket.add_calculation(template, template.amount)
        return ticket

    # =========================================================================
    # IDENTITY / DESCRIPTIVE STATE
    # =========================================================================

    @property
    def ticket_number(self) -> str | None:
        return self._ticket_number

    @ticket_number.setter
    def ticket_number(self, value: str | None) -> None:
        self._ticket_number = value
        self.transaction_document.name = get_config().ticket_transaction_name.format(ticket_number=value)

    @property
    def can_submit(self) -> bool:
        return not self.is_closed

    @property
    def lock_state(self) -> LockState:
        if self.locked:
            return LockState.LOCKED
        if self._should_lock:
            return LockState.PENDING_LOCK
        return LockState.UNLOCKED

    def get_item_count(self) -> int:
        return len(self.orders)

    # =========================================================================
    # LEDGER TEMPLATE REFERENCES
    # =========================================================================

    def _reference_template(self, template_id: int) -> None:
        self._template_refs[template_id] += 1

    def _release_template(self, template_id: int) -> None:
        """Drop one reference; the last one removes the template's ledger entry."""
        self._template_refs[template_id] -= 1
        if self._template_refs[template_id] <= 0:
            del self._template_refs[template_id]
            self.transaction_document.remove_template_transactions(template_id)

    def _reference_order(self, order: Order) -> None:
        self._reference_template(order.account_transaction_template_id)
        if order.tax_transaction_template_id:
            self._reference_template(order.tax_transaction_template_id)

    def get_template_reference_count(self, template_id: int) -> int:
        return self._template_refs[template_id]

    def _refresh_remaining(self) -> None:
        self.remaining_amount = self.get_remaining_amount()

    # =========================================================================
    # ORDERS
    # =========================================================================

    def add_order(
        self,
        template: AccountTransactionTemplate,
        user_name: str,
        menu_item: MenuItem,
        portion: MenuItemPortion,
        price_tag: str = "",
        timer: MenuItemTimer | None = None,
        quantity: Decimal | int = 1,
    ) -> Order:
        """
        Add an order line and register its ledger entries.

        The sale template gets a shared ledger entry, and so does the item's
        tax template when it has one.
        """
        self.locked = False
        order = Order()
        order.update_menu_item(user_name, menu_item, portion, price_tag, quantity)
        order.account_transaction_template_id = template.id

        self.transaction_document.add_singleton_transaction(
            template.id, template, self.account_template_id, self.account_id
        )
        if menu_item.tax_template is not None:
            self.transaction_document.add_singleton_transaction(
                order.tax_transaction_template_id,
                menu_item.tax_template.account_transaction_template,
                self.account_template_id,
                self.account_id,
            )

        order.update_product_timer(timer)
        self.orders.append(order)
        self._reference_order(order)
        self.last_update_time = now_utc()
        self._refresh_remaining()
        return order

    def _require_order(self, order: Order) -> None:
        if order not in self.orders:
            raise ContractViolationError(f"Order {order.menu_item_name!r} does not belong to this ticket")

    def remove_order(self, order: Order) -> None:
        """
        Remove a line.

        Ledger entries are shared per template, so the sale (and tax) entry
        is removed only when no remaining line references it.
        """
        self._require_order(order)
        self.orders.remove(order)

        self._release_template(order.account_transaction_template_id)
        if order.tax_transaction_template_id:
            self._release_template(order.tax_transaction_template_id)
        self._refresh_remaining()

    def remove_orders(self, orders: Iterable[Order]) -> None:
        for order in list(orders):
            self.remove_order(order)

    def cancel_orders(self, orders: Iterable[Order]) -> None:
        """Drop lines that were never persisted. Persisted lines are left alone."""
        self.locked = False
        for order in list(orders):
            if not is_assigned(order.id):
                self.remove_order(order)

    def can_cancel_selected_orders(self, orders: Iterable[Order]) -> bool:
        selected = list(orders)
        return len(selected) != 0 and not any(is_assigned(o.id) or o not in self.orders for o in selected)

    def can_remove_selected_orders(self, orders: Iterable[Order]) -> bool:
        selected_value = sum((o.get_selected_value() for o in orders if o.calculate_price), ZERO)
        return selected_value <= self.get_remaining_amount()

    def get_unlocked_orders(self) -> list[Order]:
        unlocked = [o for o in self.orders if not o.locked]
        return sorted(unlocked, key=lambda o: o.id.value if is_assigned(o.id) else 0)

    def clone_order(self, order: Order) -> Order:
        """Add a parked, zero-quantity duplicate of one of this ticket's lines."""
        self._require_order(order)
        result = order.clone()
        self.orders.append(result)
        self._reference_order(result)
        return result

    def extract_selected_orders(self, selected_orders: Iterable[Order]) -> list[Order]:
        """
        Split each line's selected quantity off into a new line.

        Lines whose whole quantity is selected are left as they are.

        Raises:
            ContractViolationError: If a selected quantity is not positive or a
                line is not on this ticket. Nothing is split in that case.
        """
        selected = list(selected_orders)
        for order in selected:
            if order.selected_quantity <= 0:
                raise ContractViolationError(
                    f"Selected quantity of {order.menu_item_name!r} must be positive"
                )
            self._require_order(order)

        new_items = []
        for order in selected:
            if order.selected_quantity >= order.quantity:
                continue
            new_item = self.clone_order(order)
            new_item.quantity = order.selected_quantity
            order.quantity -= order.selected_quantity
            new_items.append(new_item)
        return new_items

    def merge_orders_and_update_order_numbers(self, order_number: int) -> None:
        """
        Collapse new single-quantity lines before they are sent out.

        Only unlocked, unpersisted lines take part. Lines carrying tag values
        never merge. Lines that were folded into another are removed, and
        every unlocked line without an order number gets `order_number`.
        """
        self.last_order_date = now_utc()
        new_orders = [o for o in self.orders if not o.locked and not is_assigned(o.id)]

        merged = [o for o in new_orders if o.quantity != 1]
        seeded_items = {o.menu_item_id for o in merged}
        merged.extend(o for o in new_orders if o.quantity == 1 and o.menu_item_id in seeded_items)

        for order in [o for o in new_orders if o.quantity == 1 and o.menu_item_id not in seeded_items]:
            if order.tag_values:
                merged.append(order)
                continue

            target = next(
                (
                    m for m in merged
                    if not m.tag_values
                    and m.menu_item_id == order.menu_item_id
                    and m.portion_name == order.portion_name
                    and m.calculate_price == order.calculate_price
                ),
                None,
            )
            if target is None:
                merged.append(order)
            else:
                target.quantity += order.quantity

        for order in new_orders:
            if order not in merged:
                logger.debug("Merged away duplicate line for %s", order.menu_item_name)
                self.remove_order(order)

        for order in self.orders:
            if not order.locked and order.order_number == 0:
                order.order_number = order_number

    def update_tax(self, tax_template: TaxTemplate | None) -> None:
        """
        Re-tax every line under one tax template.

        Ledger entries of tax templates no line uses any more are removed.
        """
        if tax_template is not None:
            self.transaction_document.add_singleton_transaction(
                tax_template.account_transaction_template.id,
                tax_template.account_transaction_template,
                self.account_template_id,
                self.account_id,
            )
        for order in self.orders:
            previous = order.tax_transaction_template_id
            order.update_tax_template(tax_template)
            if order.tax_transaction_template_id:
                self._reference_template(order.tax_transaction_template_id)
            if previous:
                self._release_template(previous)
        self._refresh_remaining()

    def get_order_state_total(self, state: str) -> Decimal:
        return sum((o.get_value() for o in self.orders if o.order_state == state), ZERO)

    def get_active_timer_amount(self) -> Decimal:
        return sum((o.get_value() for o in self.orders if o.has_active_timer), ZERO)

    def stop_active_timers(self) -> None:
        for order in self.orders:
            if order.has_active_timer:
                order.stop_timer()

    # =========================================================================
    # CALCULATIONS
    # =========================================================================

    def add_calculation(self, template: CalculationTemplate, amount: Decimal | int | str) -> Calculation | None:
        """
        Apply, change or toggle off a calculation.

        A ticket holds one calculation per template (or per ledger template).
        Re-applying the same amount, or applying zero, removes it.

        Returns:
            The calculation, or None if it was removed
        """
        amount = to_decimal(amount)
        calculation = next((c for c in self.calculations if c.template_id == template.id), None)
        if calculation is None:
            ledger_template_id = template.account_transaction_template.id
            calculation = next(
                (c for c in self.calculations if c.account_transaction_template_id == ledger_template_id),
                None,
            )

        if calculation is None:
            calculation = Calculation.from_template(template, amount)
            self.calculations.append(calculation)
            self._reference_template(calculation.account_transaction_template_id)
            self.transaction_document.add_singleton_transaction(
                calculation.account_transaction_template_id,
                template.account_transaction_template,
                self.account_template_id,
                self.account_id,
            )
        elif calculation.amount == amount:
            amount = ZERO
        else:
            calculation.amount = amount

        calculation.name = template.name
        if amount == 0:
            self.calculations.remove(calculation)
            self.update_calculation_transaction(calculation, ZERO)
            self._release_template(calculation.account_transaction_template_id)
            self._refresh_remaining()
            return None
        return calculation

    def remove_calculation(self, calculation: Calculation) -> None:
        if calculation not in self.calculations:
            raise ContractViolationError(f"Calculation {calculation.name!r} does not belong to this ticket")
        self.calculations.remove(calculation)
        self._release_template(calculation.account_transaction_template_id)
        self._refresh_remaining()

    def update_calculation_transaction(self, calculation: Calculation, amount: Decimal) -> None:
        """Mirror a calculation's effect; a zero effect deletes the ledger entry."""
        template_id = calculation.account_transaction_template_id
        self.transaction_document.update_singleton_transaction_amount(template_id, calculation.name, amount)
        if amount == 0:
            self.transaction_document.remove_template_transactions(template_id)

    def _calculate_services(self, calculations: Iterable[Calculation], original_sum: Decimal) -> Decimal:
        total = ZERO
        current_sum = original_sum

        for calculation in ordered(calculations):
            effect = apply_calculation(calculation, original_sum, current_sum)
            total += effect
            current_sum += effect

            if calculation.is_tombstoned and calculation in self.calculations:
                self.calculations.remove(calculation)
                self._release_template(calculation.account_transaction_template_id)

            self.update_calculation_transaction(calculation, abs(effect))

        return round_money(total)

    def get_calculation_total(self, name: str | None = None) -> Decimal:
        return sum(
            (c.calculation_amount for c in self.calculations if not name or c.name == name),
            ZERO,
        )

    # =========================================================================
    # TOTALS
    # =========================================================================

    def get_plain_sum(self) -> Decimal:
        return sum((o.get_total() for o in self.orders), ZERO)

    def calculate_tax(self, plain_sum: Decimal, pre_tax_services: Decimal) -> Decimal:
        line_tax = sum((o.get_tax_total() for o in self.orders), ZERO)
        return calculate_tax(line_tax, plain_sum, pre_tax_services)

    def _pre_tax_calculations(self) -> list[Calculation]:
        return [c for c in self.calculations if not c.include_tax]

    def _post_tax_calculations(self) -> list[Calculation]:
        return [c for c in self.calculations if c.include_tax]

    def get_sum(self) -> Decimal:
        """
        Ticket total.

        plain sum -> pre-tax calculations -> tax (scaled by the pre-tax
        shift) -> post-tax calculations on the taxed running total.
        """
        plain_sum = self.get_plain_sum()
        services = self._calculate_services(self._pre_tax_calculations(), plain_sum)
        tax = self.calculate_tax(plain_sum, services)
        running = plain_sum + services + tax
        services = self._calculate_services(self._post_tax_calculations(), running)
        return running + services

    def get_pre_tax_services_total(self) -> Decimal:
        return self._calculate_services(self._pre_tax_calculations(), self.get_plain_sum())

    def get_post_tax_services_total(self) -> Decimal:
        plain_sum = self.get_plain_sum()
        services = self._calculate_services(self._pre_tax_calculations(), plain_sum)
        tax = self.calculate_tax(plain_sum, services)
        return self._calculate_services(self._post_tax_calculations(), plain_sum + services + tax)

    def get_payment_amount(self) -> Decimal:
        return sum((p.amount for p in self.payments), ZERO)

    def get_remaining_amount(self) -> Decimal:
        return round_money(self.get_sum() - self.get_payment_amount())

    def recalculate(self) -> None:
        """
        Bring every ledger entry and the stored totals up to date.

        Each sale entry gets the total of its lines; each tax entry gets the
        tax of its lines after the pre-tax shift.
        """
        if self.orders:
            sales: dict[int, Decimal] = defaultdict(lambda: ZERO)
            for order in self.orders:
                sales[order.account_transaction_template_id] += order.get_total()
            for template_id, amount in sales.items():
                self._set_ledger_amount(template_id, amount)

            plain_sum = self.get_plain_sum()
            pre_tax_services = self.get_pre_tax_services_total()
            taxes: dict[int, Decimal] = defaultdict(lambda: ZERO)
            for order in self.orders:
                if order.tax_transaction_template_id > 0:
                    taxes[order.tax_transaction_template_id] += order.get_total_tax_amount(
                        plain_sum, pre_tax_services
                    )
            for template_id, amount in taxes.items():
                self._set_ledger_amount(template_id, amount)

        self.remaining_amount = self.get_remaining_amount()
        self.total_amount = self.get_sum()
        self.last_update_time = now_utc()

    def _set_ledger_amount(self, template_id: int, amount: Decimal) -> None:
        transaction = self.transaction_document.find_singleton(template_id)
        if transaction is None:
            logger.warning("No ledger entry registered for template %s; skipping", template_id)
            return
        transaction.update_accounts(self.account_template_id, self.account_id)
        transaction.update_amount(round_money(amount))

    # =========================================================================
    # PAYMENTS
    # =========================================================================

    def add_payment(self, payment_template: PaymentTemplate, account: Account, amount: Decimal | int | str) -> Payment:
        """
        Record a payment with its own ledger transaction.

        Once nothing remains, the paid-item snapshot is cleared.
        """
        amount = to_decimal(amount)
        transaction = self.transaction_document.add_new_transaction(
            payment_template.account_transaction_template,
            self.account_template_id,
            self.account_id,
            account,
            amount,
        )
        payment = Payment(
            account_transaction_id=transaction.id,
            amount=amount,
            name=account.name,
            payment_template_id=payment_template.id,
        )
        self.payments.append(payment)
        self.last_payment_date = now_utc()
        self.remaining_amount = self.get_remaining_amount()
        if self.remaining_amount == 0:
            self.paid_items.clear()
        return payment

    def remove_payment(self, payment: Payment) -> None:
        if payment not in self.payments:
            raise ContractViolationError("Payment does not belong to this ticket")
        self.payments.remove(payment)
        self.transaction_document.remove_transaction(payment.account_transaction_id)
        self._refresh_remaining()

    def add_paid_item(self, menu_item_id: int, price: Decimal | int | str, quantity: Decimal | int | str) -> PaidItem:
        """Record settled quantity of an item, merging with an existing entry at the same price."""
        price = to_decimal(price)
        quantity = to_decimal(quantity)
        existing = next(
            (p for p in self.paid_items if p.menu_item_id == menu_item_id and p.price == price),
            None,
        )
        if existing is not None:
            existing.quantity += quantity
            return existing
        item = PaidItem(menu_item_id=menu_item_id, price=price, quantity=quantity)
        self.paid_items.append(item)
        return item

    # =========================================================================
    # LOCKING / CLOSING
    # =========================================================================

    def request_lock(self) -> None:
        self._should_lock = True

    def lock_ticket(self) -> None:
        """
        Lock every unlocked line, and the ticket itself if a lock was
        requested or it is already closed. The pending request is cleared
        either way.
        """
        for order in self.orders:
            if not order.locked:
                order.locked = True
        if self._should_lock or self.is_closed:
            self.locked = True
        self._should_lock = False

    def can_close_ticket(self) -> bool:
        return (
            self.get_remaining_amount() == 0
            or len(self.resources) > 0
            or self.is_tagged
            or len(self.orders) == 0
        )

    def update_is_closed(self) -> None:
        self.is_closed = self.remaining_amount == 0 and self.get_active_timer_amount() == 0

    def force_close(self) -> None:
        self.is_closed = True

    # =========================================================================
    # TAGS
    # =========================================================================

    @property
    def ticket_tags(self) -> str:
        """Serialized tag blob for persistence."""
        return self._tags.serialized

    @property
    def tag_values(self) -> list[TicketTagValue]:
        return self._tags.values

    @property
    def is_tagged(self) -> bool:
        return self._tags.is_tagged

    def get_tag_value(self, tag_name: str) -> str:
        return self._tags.get(tag_name)

    def set_tag_value(self, tag_name: str, tag_value: str) -> None:
        self._tags.set(tag_name, tag_value)

    def is_tagged_with(self, tag_name: str) -> bool:
        return bool(self.get_tag_value(tag_name))

    def get_tag_data(self) -> str:
        return self._tags.format_lines()

    # =========================================================================
    # RESOURCES / ACCOUNT
    # =========================================================================

    def update_resource(
        self,
        resource_template_id: int,
        resource_id: int,
        resource_name: str = "",
        account_id: int = 0,
        custom_data: str = "",
    ) -> None:
        """Link, re-link or (with resource_id 0) unlink the resource of a template."""
        current = next((r for r in self.resources if r.resource_template_id == resource_template_id), None)
        if current is None and resource_id > 0:
            self.resources.append(TicketResource(
                resource_template_id=resource_template_id,
                resource_id=resource_id,
                resource_name=resource_name,
                account_id=account_id,
                custom_data=custom_data,
            ))
        elif current is not None and resource_id > 0:
            current.resource_id = resource_id
            current.resource_name = resource_name
            current.account_id = account_id
        elif current is not None and resource_id == 0:
            self.resources.remove(current)

    def get_resource_name(self, resource_template_id: int) -> str:
        resource = next((r for r in self.resources if r.resource_template_id == resource_template_id), None)
        return resource.resource_name if resource is not None else ""

    def update_account(self, account: Account | None) -> None:
        """Bill the ticket to another account, re-pointing existing ledger entries."""
        if account is None:
            return
        self.transaction_document.update_accounts(self.account_template_id, account.id)
        self.account_id = account.id
        self.account_template_id = account.account_template_id
        self.account_name = account.name
