"""Tests for the Order line model."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from ticketing.models import Assigned, Order, UNASSIGNED
from utils.timezone import frozen_clock


def _burger_line(burger, quantity=1, price_tag=""):
    order = Order()
    order.update_menu_item("alice", burger, burger.get_portion("Normal"), price_tag, quantity)
    return order


# =============================================================================
# MENU ITEM / TAX
# =============================================================================


class TestUpdateMenuItem:

    def test_takes_price_and_tax(self, burger, vat):
        order = _burger_line(burger, quantity=2)

        assert order.menu_item_name == "Burger"
        assert order.portion_name == "Normal"
        assert order.price == Decimal("10.00")
        assert order.quantity == Decimal("2")
        assert order.tax_rate == Decimal("10")
        assert order.tax_amount == Decimal("1")
        assert order.tax_template_id == vat.id
        assert order.tax_transaction_template_id == vat.account_transaction_template.id
        assert order.created_by == "alice"

    def test_price_tag_selects_tagged_price(self, burger):
        assert _burger_line(burger, price_tag="Happy Hour").price == Decimal("8.00")

    def test_unknown_price_tag_falls_back(self, burger):
        assert _burger_line(burger, price_tag="Brunch").price == Decimal("10.00")

    def test_untaxed_item(self, coffee):
        order = Order()
        order.update_menu_item("bob", coffee, coffee.portions[0])
        assert order.tax_amount == 0
        assert order.tax_transaction_template_id == 0

    def test_removing_tax_template_retaxes_tag_values(self, burger):
        order = _burger_line(burger)
        tag = order.add_tag_value("Extra", "Cheese", Decimal("2"))
        assert tag.tax_amount == Decimal("0.2")

        order.update_tax_template(None)

        assert order.tax_amount == 0
        assert tag.tax_amount == 0


# =============================================================================
# TOTALS
# =============================================================================


class TestTotals:

    def test_price_includes_tag_values(self, burger):
        order = _burger_line(burger, quantity=3)
        order.add_tag_value("Extra", "Bacon", Decimal("1.50"), quantity=2)

        assert order.get_price() == Decimal("13.00")
        assert order.get_total() == Decimal("39.00")

    def test_tax_total_includes_tag_tax(self, burger):
        order = _burger_line(burger, quantity=2)
        order.add_tag_value("Extra", "Cheese", Decimal("2"))

        assert order.get_tax_total() == Decimal("2.4")

    def test_gift_line_contributes_nothing(self, burger):
        order = _burger_line(burger)
        order.calculate_price = False

        assert order.get_total() == 0
        assert order.get_tax_total() == 0
        assert order.get_value() == Decimal("10.00")

    def test_selected_value_uses_selected_quantity(self, burger):
        order = _burger_line(burger, quantity=5)
        assert order.get_selected_value() == Decimal("50.00")
        order.selected_quantity = Decimal("2")
        assert order.get_selected_value() == Decimal("20.00")

    def test_total_tax_amount_follows_pre_tax_shift(self, burger):
        order = _burger_line(burger, quantity=10)
        assert order.get_total_tax_amount(Decimal("100"), Decimal("-10")) == Decimal("9")

    def test_total_tax_amount_zero_plain_sum(self, burger):
        order = _burger_line(burger)
        assert order.get_total_tax_amount(Decimal("0"), Decimal("-10")) == Decimal("1")


# =============================================================================
# TIMER
# =============================================================================


class TestTimer:

    def test_timer_runs_until_stopped(self, pool_table, pool_timer):
        start = datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc)
        order = Order()
        order.update_menu_item("alice", pool_table, pool_table.portions[0])

        with frozen_clock(start):
            order.update_product_timer(pool_timer)
        assert order.has_active_timer
        assert order.timer.started_at == start

        with frozen_clock(start + timedelta(hours=1)):
            order.stop_timer()
        assert not order.has_active_timer
        assert order.timer.ended_at == start + timedelta(hours=1)

    def test_no_timer(self, burger):
        order = _burger_line(burger)
        order.update_product_timer(None)
        order.stop_timer()
        assert not order.has_active_timer


# =============================================================================
# CLONE
# =============================================================================


class TestClone:

    def test_clone_is_parked_and_unassigned(self, burger):
        order = _burger_line(burger, quantity=4)
        order.id = Assigned(9)
        order.selected_quantity = Decimal("1")

        clone = order.clone()

        assert clone is not order
        assert clone.id is UNASSIGNED
        assert clone.quantity == 0
        assert clone.selected_quantity == 0
        assert clone.menu_item_id == order.menu_item_id
        assert clone.tax_transaction_template_id == order.tax_transaction_template_id

    def test_clone_tag_values_are_independent(self, burger):
        order = _burger_line(burger)
        order.id = Assigned(9)
        original_tag = order.add_tag_value("Extra", "Cheese", Decimal("2"))
        original_tag.id = Assigned(3)

        clone = order.clone()
        cloned_tag = clone.tag_values[0]
        cloned_tag.price = Decimal("5")

        assert cloned_tag is not original_tag
        assert cloned_tag.id is UNASSIGNED
        assert cloned_tag.order_id is UNASSIGNED
        assert original_tag.price == Decimal("2")
        assert original_tag.id == Assigned(3)

    def test_lines_compare_by_identity(self, burger):
        assert _burger_line(burger) != _burger_line(burger)
