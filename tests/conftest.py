"""Shared test fixtures for the ticketing test suite."""

from decimal import Decimal

import pytest

from ticketing.config import reset_config
from ticketing.models import (
    Account, AccountTransactionTemplate, CalculationMethod, CalculationTemplate,
    Department, MenuItem, MenuItemPortion, MenuItemTimer, PaymentTemplate,
    TaxTemplate, TicketTemplate,
)

# =============================================================================
# ACCOUNT TEMPLATE CONSTANTS
# =============================================================================

SALES_ACCOUNT_TEMPLATE = 1
CUSTOMER_ACCOUNT_TEMPLATE = 2
PAYMENT_ACCOUNT_TEMPLATE = 3
TAX_ACCOUNT_TEMPLATE = 4
DISCOUNT_ACCOUNT_TEMPLATE = 5

SALE_TEMPLATE_ID = 1
TAX_TEMPLATE_ID = 2
DISCOUNT_TEMPLATE_ID = 3
SERVICE_TEMPLATE_ID = 4
PAYMENT_TEMPLATE_ID = 5
ROUNDING_TEMPLATE_ID = 6


@pytest.fixture(autouse=True)
def reset_ticketing_config():
    """Ensure every test starts from the default config."""
    reset_config()
    yield
    reset_config()


# =============================================================================
# LEDGER TEMPLATES
# =============================================================================


def _transaction_template(id: int, name: str, source: int, target: int) -> AccountTransactionTemplate:
    return AccountTransactionTemplate(
        id=id,
        name=name,
        source_account_template_id=source,
        target_account_template_id=target,
        default_source_account_id=source * 10,
    )


@pytest.fixture
def sale_template() -> AccountTransactionTemplate:
    return _transaction_template(SALE_TEMPLATE_ID, "Sale", SALES_ACCOUNT_TEMPLATE, CUSTOMER_ACCOUNT_TEMPLATE)


@pytest.fixture
def tax_transaction_template() -> AccountTransactionTemplate:
    return _transaction_template(TAX_TEMPLATE_ID, "VAT", TAX_ACCOUNT_TEMPLATE, CUSTOMER_ACCOUNT_TEMPLATE)


@pytest.fixture
def discount_transaction_template() -> AccountTransactionTemplate:
    return _transaction_template(
        DISCOUNT_TEMPLATE_ID, "Discount", CUSTOMER_ACCOUNT_TEMPLATE, DISCOUNT_ACCOUNT_TEMPLATE
    )


@pytest.fixture
def service_transaction_template() -> AccountTransactionTemplate:
    return _transaction_template(
        SERVICE_TEMPLATE_ID, "Service", SALES_ACCOUNT_TEMPLATE, CUSTOMER_ACCOUNT_TEMPLATE
    )


@pytest.fixture
def rounding_transaction_template() -> AccountTransactionTemplate:
    return _transaction_template(
        ROUNDING_TEMPLATE_ID, "Rounding", CUSTOMER_ACCOUNT_TEMPLATE, DISCOUNT_ACCOUNT_TEMPLATE
    )


# =============================================================================
# DEPARTMENT / ACCOUNTS
# =============================================================================


@pytest.fixture
def department(sale_template) -> Department:
    return Department(
        id=1,
        name="Restaurant",
        ticket_template=TicketTemplate(name="Dine in", sale_transaction_template=sale_template),
    )


@pytest.fixture
def customer_account() -> Account:
    return Account(id=100, account_template_id=CUSTOMER_ACCOUNT_TEMPLATE, name="Walk-in")


@pytest.fixture
def cash_account() -> Account:
    return Account(id=300, account_template_id=PAYMENT_ACCOUNT_TEMPLATE, name="Cash")


@pytest.fixture
def cash_payment() -> PaymentTemplate:
    return PaymentTemplate(
        id=1,
        name="Cash",
        account_transaction_template=_transaction_template(
            PAYMENT_TEMPLATE_ID, "Payment", CUSTOMER_ACCOUNT_TEMPLATE, PAYMENT_ACCOUNT_TEMPLATE
        ),
    )


# =============================================================================
# MENU
# =============================================================================


@pytest.fixture
def vat(tax_transaction_template) -> TaxTemplate:
    return TaxTemplate(id=1, name="VAT 10%", rate=Decimal("10"), account_transaction_template=tax_transaction_template)


@pytest.fixture
def burger(vat) -> MenuItem:
    """10.00 burger taxed at 10%."""
    return MenuItem(
        id=1,
        name="Burger",
        portions=[
            MenuItemPortion(name="Normal", price=Decimal("10.00"), prices={"Happy Hour": Decimal("8.00")}),
            MenuItemPortion(name="Large", price=Decimal("14.00")),
        ],
        tax_template=vat,
    )


@pytest.fixture
def coffee() -> MenuItem:
    """Untaxed 3.00 coffee."""
    return MenuItem(id=2, name="Coffee", portions=[MenuItemPortion(name="Cup", price=Decimal("3.00"))])


@pytest.fixture
def pool_table() -> MenuItem:
    return MenuItem(id=3, name="Pool Table", portions=[MenuItemPortion(name="Hour", price=Decimal("12.00"))])


@pytest.fixture
def pool_timer() -> MenuItemTimer:
    return MenuItemTimer(id=1, name="Pool")


# =============================================================================
# CALCULATIONS
# =============================================================================


@pytest.fixture
def discount_10(discount_transaction_template) -> CalculationTemplate:
    """10% pre-tax discount."""
    return CalculationTemplate(
        id=1,
        name="Discount",
        method=CalculationMethod.PERCENT_OF_TICKET,
        amount=Decimal("10"),
        decrease_amount=True,
        order=1,
        account_transaction_template=discount_transaction_template,
    )


@pytest.fixture
def service_5(service_transaction_template) -> CalculationTemplate:
    """5% post-tax service charge."""
    return CalculationTemplate(
        id=2,
        name="Service",
        method=CalculationMethod.PERCENT_OF_TICKET,
        amount=Decimal("5"),
        include_tax=True,
        order=2,
        account_transaction_template=service_transaction_template,
    )


@pytest.fixture
def rounding_down(rounding_transaction_template) -> CalculationTemplate:
    """Post-tax rounding down to 0.05."""
    return CalculationTemplate(
        id=3,
        name="Rounding",
        method=CalculationMethod.ROUND_TO_MULTIPLE,
        amount=Decimal("0.05"),
        include_tax=True,
        decrease_amount=True,
        order=9,
        account_transaction_template=rounding_transaction_template,
    )


# =============================================================================
# TICKETS
# =============================================================================


@pytest.fixture
def ticket(department, customer_account):
    from ticketing.ticket import Ticket
    return Ticket.create(department, customer_account, [])


@pytest.fixture
def add_burgers(ticket, sale_template, burger):
    """Add a burger line of the given quantity to the ticket."""

    def _add(quantity=1, portion="Normal"):
        return ticket.add_order(sale_template, "alice", burger, burger.get_portion(portion), quantity=quantity)

    return _add
