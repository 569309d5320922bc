"""Ticket domain models."""

from ticketing.models.identity import UNASSIGNED, Assigned, EntityId, Unassigned, entity_id, is_assigned
from ticketing.models.accounts import Account, AccountTransactionTemplate, Department, TicketTemplate
from ticketing.models.menu import MenuItem, MenuItemPortion, MenuItemTimer, TaxTemplate
from ticketing.models.order import Order, OrderTagValue, TimerValue
from ticketing.models.calculation import Calculation, CalculationMethod, CalculationTemplate
from ticketing.models.payment import PaidItem, Payment, PaymentTemplate
from ticketing.models.resource import TicketResource
from ticketing.models.tag import TicketTags, TicketTagValue, deserialize_tags, serialize_tags

__all__ = [
    # Identity
    "UNASSIGNED", "Assigned", "EntityId", "Unassigned", "entity_id", "is_assigned",
    # Accounts
    "Account", "AccountTransactionTemplate", "Department", "TicketTemplate",
    # Menu
    "MenuItem", "MenuItemPortion", "MenuItemTimer", "TaxTemplate",
    # Order
    "Order", "OrderTagValue", "TimerValue",
    # Calculation
    "Calculation", "CalculationMethod", "CalculationTemplate",
    # Payment
    "PaidItem", "Payment", "PaymentTemplate",
    # Resource
    "TicketResource",
    # Tags
    "TicketTags", "TicketTagValue", "deserialize_tags", "serialize_tags",
]
