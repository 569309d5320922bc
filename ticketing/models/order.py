"""Order line domain models.

An order line is one purchased item on a ticket. Prices and taxes are
per unit; totals multiply by quantity. Tag values (modifiers such as
"extra cheese") carry their own price and tax per unit of the line.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from ticketing.models.identity import UNASSIGNED, EntityId
from ticketing.models.menu import MenuItem, MenuItemPortion, MenuItemTimer, TaxTemplate
from ticketing.money import HUNDRED, ZERO, prorate, to_decimal
from utils.timezone import now_utc


@dataclass(eq=False)
class OrderTagValue:
    """A modifier attached to an order line."""

    tag_name: str
    name: str
    price: Decimal = ZERO
    tax_amount: Decimal = ZERO
    quantity: Decimal = Decimal(1)
    id: EntityId = UNASSIGNED
    order_id: EntityId = UNASSIGNED
    ticket_id: EntityId = UNASSIGNED

    @property
    def total_price(self) -> Decimal:
        return self.price * self.quantity

    @property
    def total_tax(self) -> Decimal:
        return self.tax_amount * self.quantity

    def detach(self) -> None:
        """Drop persisted identities so the value can be saved under a new line."""
        self.id = UNASSIGNED
        self.order_id = UNASSIGNED
        self.ticket_id = UNASSIGNED


@dataclass(eq=False)
class TimerValue:
    """Running timer of a time-billed order line."""

    timer_id: int
    started_at: datetime = field(default_factory=now_utc)
    ended_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def stop(self) -> None:
        if self.ended_at is None:
            self.ended_at = now_utc()


@dataclass(eq=False)
class Order:
    """
    One line on a ticket.

    Lines compare by identity: two unsaved lines for the same item are
    still different lines.
    """

    menu_item_id: int = 0
    menu_item_name: str = ""
    portion_name: str = ""
    price_tag: str = ""
    quantity: Decimal = Decimal(1)
    price: Decimal = ZERO
    calculate_price: bool = True
    tax_rate: Decimal = ZERO
    tax_amount: Decimal = ZERO
    tax_template_id: int = 0
    tax_transaction_template_id: int = 0
    account_transaction_template_id: int = 0
    tag_values: list[OrderTagValue] = field(default_factory=list)
    locked: bool = False
    order_number: int = 0
    selected_quantity: Decimal = ZERO
    order_state: str = ""
    created_by: str = ""
    created_at: datetime = field(default_factory=now_utc)
    timer: TimerValue | None = None
    id: EntityId = UNASSIGNED

    def update_menu_item(
        self,
        user_name: str,
        menu_item: MenuItem,
        portion: MenuItemPortion,
        price_tag: str = "",
        quantity: Decimal | int = 1,
    ) -> None:
        """Point the line at a menu item portion and take its price and tax."""
        self.created_by = user_name
        self.menu_item_id = menu_item.id
        self.menu_item_name = menu_item.name
        self.portion_name = portion.name
        self.price_tag = price_tag
        self.price = portion.get_price(price_tag)
        self.quantity = to_decimal(quantity)
        self.update_tax_template(menu_item.tax_template)

    def update_tax_template(self, tax_template: TaxTemplate | None) -> None:
        """Re-tax the line and its tag values under a (possibly absent) tax template."""
        if tax_template is None:
            self.tax_rate = ZERO
            self.tax_template_id = 0
            self.tax_transaction_template_id = 0
        else:
            self.tax_rate = tax_template.rate
            self.tax_template_id = tax_template.id
            self.tax_transaction_template_id = tax_template.account_transaction_template.id
        self.tax_amount = self.price * self.tax_rate / HUNDRED
        for tag_value in self.tag_values:
            tag_value.tax_amount = tag_value.price * self.tax_rate / HUNDRED

    def update_product_timer(self, timer: MenuItemTimer | None) -> None:
        if timer is not None:
            self.timer = TimerValue(timer_id=timer.id)

    def stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.stop()

    @property
    def has_active_timer(self) -> bool:
        return self.timer is not None and self.timer.is_active

    def add_tag_value(
        self,
        tag_name: str,
        name: str,
        price: Decimal | int | str = 0,
        quantity: Decimal | int = 1,
    ) -> OrderTagValue:
        """Attach a modifier; its tax follows the line's tax rate."""
        price = to_decimal(price)
        tag_value = OrderTagValue(
            tag_name=tag_name,
            name=name,
            price=price,
            tax_amount=price * self.tax_rate / HUNDRED,
            quantity=to_decimal(quantity),
            order_id=self.id,
        )
        self.tag_values.append(tag_value)
        return tag_value

    def get_price(self) -> Decimal:
        """Unit price including modifier prices."""
        return self.price + sum((t.total_price for t in self.tag_values), ZERO)

    def get_value(self) -> Decimal:
        """Line value regardless of calculate_price."""
        return self.get_price() * self.quantity

    def get_total(self) -> Decimal:
        """Amount the line contributes to the ticket's plain sum."""
        if not self.calculate_price:
            return ZERO
        return self.get_value()

    def get_selected_value(self) -> Decimal:
        quantity = self.selected_quantity if self.selected_quantity > 0 else self.quantity
        return self.get_price() * quantity

    def get_tax_total(self) -> Decimal:
        """Line tax before any proportional adjustment by pre-tax calculations."""
        if not self.calculate_price:
            return ZERO
        unit_tax = self.tax_amount + sum((t.total_tax for t in self.tag_values), ZERO)
        return unit_tax * self.quantity

    def get_total_tax_amount(self, plain_sum: Decimal, pre_tax_services: Decimal) -> Decimal:
        """Line tax shifted by its share of the ticket's pre-tax calculations."""
        tax = self.get_tax_total()
        return tax + prorate(tax, pre_tax_services, plain_sum)

    def clone(self) -> "Order":
        """
        Parked duplicate: unassigned identity, zero quantity, fresh timestamp.

        Tag values are copied as independent objects with their identities
        dropped.
        """
        result = copy.deepcopy(self)
        result.id = UNASSIGNED
        result.quantity = ZERO
        result.selected_quantity = ZERO
        result.created_at = now_utc()
        for tag_value in result.tag_values:
            tag_value.detach()
        return result
