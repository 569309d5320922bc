"""Tests for the in-memory transaction document."""

import logging
from decimal import Decimal
from uuid import uuid4

from ticketing.ledger import AccountTransaction, LedgerDocument, TransactionDocument

CUSTOMER_ACCOUNT_TEMPLATE = 2
SALE_TEMPLATE_ID = 1
TAX_TEMPLATE_ID = 2


class TestAccountTransaction:

    def test_from_template_uses_default_accounts(self, sale_template):
        transaction = AccountTransaction.from_template(sale_template)

        assert transaction.template_id == sale_template.id
        assert transaction.name == "Sale"
        assert transaction.source.account_id == 10
        assert transaction.target.account_id == 0
        assert transaction.amount == 0

    def test_update_accounts_targets_matching_side(self, sale_template):
        transaction = AccountTransaction.from_template(sale_template)
        transaction.update_accounts(CUSTOMER_ACCOUNT_TEMPLATE, 100)

        assert transaction.target.account_id == 100
        assert transaction.source.account_id == 10


# =============================================================================
# SINGLETON TRANSACTIONS
# =============================================================================


class TestSingletonTransactions:

    def test_is_a_ledger_document(self):
        assert isinstance(TransactionDocument(), LedgerDocument)

    def test_singleton_is_created_once(self, sale_template):
        doc = TransactionDocument()

        first = doc.add_singleton_transaction(SALE_TEMPLATE_ID, sale_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)
        second = doc.add_singleton_transaction(SALE_TEMPLATE_ID, sale_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)

        assert first is second
        assert len(doc.transactions) == 1
        assert first.target.account_id == 100

    def test_update_amount(self, sale_template):
        doc = TransactionDocument()
        doc.add_singleton_transaction(SALE_TEMPLATE_ID, sale_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)

        doc.update_singleton_transaction_amount(SALE_TEMPLATE_ID, "Sale (2)", Decimal("20.00"))

        transaction = doc.find_singleton(SALE_TEMPLATE_ID)
        assert transaction.amount == Decimal("20.00")
        assert transaction.name == "Sale (2)"

    def test_unregistered_template_update_is_ignored(self):
        doc = TransactionDocument()
        doc.update_singleton_transaction_amount(99, "Nothing", Decimal("5"))
        assert doc.transactions == ()

    def test_removed_singleton_comes_back_for_nonzero_amount(self, sale_template):
        doc = TransactionDocument()
        original = doc.add_singleton_transaction(SALE_TEMPLATE_ID, sale_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)
        doc.remove_template_transactions(SALE_TEMPLATE_ID)

        doc.update_singleton_transaction_amount(SALE_TEMPLATE_ID, "Sale", Decimal("0"))
        assert doc.find_singleton(SALE_TEMPLATE_ID) is None

        doc.update_singleton_transaction_amount(SALE_TEMPLATE_ID, "Sale", Decimal("4.00"))
        revived = doc.find_singleton(SALE_TEMPLATE_ID)
        assert revived is not None
        assert revived is not original
        assert revived.amount == Decimal("4.00")
        assert revived.target.account_id == 100


# =============================================================================
# PLAIN TRANSACTIONS / REMOVAL
# =============================================================================


class TestNewTransactions:

    def test_payment_transaction_points_at_both_accounts(self, cash_payment, cash_account):
        doc = TransactionDocument()

        transaction = doc.add_new_transaction(
            cash_payment.account_transaction_template, CUSTOMER_ACCOUNT_TEMPLATE, 100, cash_account, Decimal("25")
        )

        assert transaction.source.account_id == 100
        assert transaction.target.account_id == cash_account.id
        assert transaction.amount == Decimal("25")

    def test_each_payment_gets_its_own_transaction(self, cash_payment, cash_account):
        doc = TransactionDocument()
        template = cash_payment.account_transaction_template
        a = doc.add_new_transaction(template, CUSTOMER_ACCOUNT_TEMPLATE, 100, cash_account, Decimal("5"))
        b = doc.add_new_transaction(template, CUSTOMER_ACCOUNT_TEMPLATE, 100, cash_account, Decimal("5"))

        assert a.id != b.id
        assert len(doc.transactions) == 2


class TestRemoval:

    def test_remove_transaction_by_id(self, cash_payment, cash_account):
        doc = TransactionDocument()
        transaction = doc.add_new_transaction(
            cash_payment.account_transaction_template, CUSTOMER_ACCOUNT_TEMPLATE, 100, cash_account, Decimal("5")
        )

        assert doc.remove_transaction(transaction.id) is True
        assert doc.transactions == ()
        assert doc.remove_transaction(uuid4()) is False

    def test_remove_template_transactions_counts(self, sale_template, tax_transaction_template):
        doc = TransactionDocument()
        doc.add_singleton_transaction(SALE_TEMPLATE_ID, sale_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)
        doc.add_singleton_transaction(TAX_TEMPLATE_ID, tax_transaction_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)

        assert doc.remove_template_transactions(SALE_TEMPLATE_ID) == 1
        assert doc.remove_template_transactions(SALE_TEMPLATE_ID) == 0
        assert [t.template_id for t in doc.transactions] == [TAX_TEMPLATE_ID]

    def test_removal_is_logged(self, sale_template, caplog):
        doc = TransactionDocument()
        doc.add_singleton_transaction(SALE_TEMPLATE_ID, sale_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)

        with caplog.at_level(logging.DEBUG, logger="ticketing.ledger"):
            doc.remove_template_transactions(SALE_TEMPLATE_ID)

        assert f"template {SALE_TEMPLATE_ID}" in caplog.text


class TestUpdateAccounts:

    def test_repoints_existing_and_future_singletons(self, sale_template, tax_transaction_template):
        doc = TransactionDocument()
        sale = doc.add_singleton_transaction(SALE_TEMPLATE_ID, sale_template, CUSTOMER_ACCOUNT_TEMPLATE, 100)

        doc.update_accounts(CUSTOMER_ACCOUNT_TEMPLATE, 200)
        doc.remove_template_transactions(SALE_TEMPLATE_ID)
        doc.update_singleton_transaction_amount(SALE_TEMPLATE_ID, "Sale", Decimal("1"))

        assert sale.target.account_id == 200
        assert doc.find_singleton(SALE_TEMPLATE_ID).target.account_id == 200
