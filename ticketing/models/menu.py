"""Menu catalog models: items, portions, tax and timer templates.

All prices are Decimal in the ticket's currency. Tax rates are percentages
(10 = 10%) applied on top of the unit price.
"""

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from ticketing.models.accounts import AccountTransactionTemplate


class TaxTemplate(BaseModel):
    """Tax rate and the ledger template that collects it."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    rate: Decimal = Field(..., ge=0)
    account_transaction_template: AccountTransactionTemplate


class MenuItemPortion(BaseModel):
    """A sellable size of a menu item."""

    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0)
    prices: dict[str, Decimal] = Field(default_factory=dict)  # price tag -> price

    def get_price(self, price_tag: str = "") -> Decimal:
        """Price under a price tag (e.g. "happy hour"), falling back to the base price."""
        if price_tag and price_tag in self.prices:
            return self.prices[price_tag]
        return self.price


class MenuItem(BaseModel):
    """A product on the menu."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    portions: list[MenuItemPortion] = Field(default_factory=list)
    tax_template: TaxTemplate | None = None

    @model_validator(mode="after")
    def validate_portions(self) -> "MenuItem":
        """Portion names must be unique within an item."""
        names = [p.name for p in self.portions]
        if len(names) != len(set(names)):
            raise ValueError("Portion names must be unique")
        return self

    def get_portion(self, name: str) -> MenuItemPortion | None:
        return next((p for p in self.portions if p.name == name), None)


class MenuItemTimer(BaseModel):
    """Timer template for time-billed items (pool tables, rooms)."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
