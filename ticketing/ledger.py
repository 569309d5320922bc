"""
Ledger adapter: the transaction document a ticket mirrors its money into.

LedgerDocument is the contract the ticket depends on (swappable, like a
store interface). TransactionDocument is the in-memory implementation used
by default and in tests.

Two kinds of transactions live in a document:
- Singleton transactions, one per ledger template, shared by every order
  line or calculation that references the template. They are indexed by
  template id.
- Plain transactions, one per payment, addressed by their own id.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID, uuid4

from ticketing.models.accounts import Account, AccountTransactionTemplate
from ticketing.money import ZERO
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


@dataclass
class AccountSide:
    """One side (source or target) of a transaction."""

    account_template_id: int
    account_id: int


@dataclass(eq=False)
class AccountTransaction:
    """A monetary movement between two accounts."""

    template_id: int
    name: str
    source: AccountSide
    target: AccountSide
    amount: Decimal = ZERO
    id: UUID = field(default_factory=uuid4)

    @classmethod
    def from_template(cls, template: AccountTransactionTemplate) -> "AccountTransaction":
        return cls(
            template_id=template.id,
            name=template.name,
            source=AccountSide(template.source_account_template_id, template.default_source_account_id),
            target=AccountSide(template.target_account_template_id, template.default_target_account_id),
        )

    def update_accounts(self, account_template_id: int, account_id: int) -> None:
        """Point whichever side uses this account template at the given account."""
        if self.source.account_template_id == account_template_id:
            self.source.account_id = account_id
        if self.target.account_template_id == account_template_id:
            self.target.account_id = account_id

    def update_amount(self, amount: Decimal) -> None:
        self.amount = amount


class LedgerDocument(ABC):
    """Interface for the transaction document behind a ticket."""

    name: str

    @abstractmethod
    def add_singleton_transaction(
        self,
        template_id: int,
        template: AccountTransactionTemplate,
        account_template_id: int,
        account_id: int,
    ) -> AccountTransaction:
        """Return the template's shared transaction, creating it on first use."""
        ...

    @abstractmethod
    def add_new_transaction(
        self,
        template: AccountTransactionTemplate,
        account_template_id: int,
        account_id: int,
        to_account: Account,
        amount: Decimal,
    ) -> AccountTransaction:
        """Create an independent transaction (e.g. for a payment)."""
        ...

    @abstractmethod
    def update_singleton_transaction_amount(self, template_id: int, name: str, amount: Decimal) -> None:
        """Set the amount of a template's shared transaction."""
        ...

    @abstractmethod
    def remove_transaction(self, transaction_id: UUID) -> bool:
        """Remove one transaction by id. Returns False if it was not there."""
        ...

    @abstractmethod
    def remove_template_transactions(self, template_id: int) -> int:
        """Remove every transaction of a template. Returns how many were removed."""
        ...

    @property
    @abstractmethod
    def transactions(self) -> tuple[AccountTransaction, ...]:
        """All transactions in insertion order."""
        ...

    def transactions_for(self, template_id: int) -> list[AccountTransaction]:
        return [t for t in self.transactions if t.template_id == template_id]

    def find_singleton(self, template_id: int) -> AccountTransaction | None:
        found = self.transactions_for(template_id)
        return found[0] if found else None

    def update_accounts(self, account_template_id: int, account_id: int) -> None:
        """Re-point every transaction side using the account template at an account."""
        for transaction in self.transactions:
            transaction.update_accounts(account_template_id, account_id)


class TransactionDocument(LedgerDocument):
    """
    In-memory transaction document.

    Singleton transactions are kept in a template-indexed map next to the
    ordered transaction list. The document also remembers which template
    and accounts each singleton was registered with, so a singleton that
    was removed for a zero amount comes back when a nonzero amount is set.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.created_at = now_utc()
        self._transactions: list[AccountTransaction] = []
        self._singletons: dict[int, AccountTransaction] = {}
        self._registrations: dict[int, tuple[AccountTransactionTemplate, int, int]] = {}

    @property
    def transactions(self) -> tuple[AccountTransaction, ...]:
        return tuple(self._transactions)

    def find_singleton(self, template_id: int) -> AccountTransaction | None:
        return self._singletons.get(template_id)

    def add_singleton_transaction(
        self,
        template_id: int,
        template: AccountTransactionTemplate,
        account_template_id: int,
        account_id: int,
    ) -> AccountTransaction:
        self._registrations[template_id] = (template, account_template_id, account_id)
        existing = self._singletons.get(template_id)
        if existing is not None:
            return existing
        return self._materialize(template_id)

    def _materialize(self, template_id: int) -> AccountTransaction:
        template, account_template_id, account_id = self._registrations[template_id]
        transaction = AccountTransaction.from_template(template)
        transaction.template_id = template_id
        transaction.update_accounts(account_template_id, account_id)
        self._singletons[template_id] = transaction
        self._transactions.append(transaction)
        logger.debug("Added singleton transaction for template %s", template_id)
        return transaction

    def add_new_transaction(
        self,
        template: AccountTransactionTemplate,
        account_template_id: int,
        account_id: int,
        to_account: Account,
        amount: Decimal,
    ) -> AccountTransaction:
        transaction = AccountTransaction.from_template(template)
        transaction.update_accounts(account_template_id, account_id)
        transaction.update_accounts(to_account.account_template_id, to_account.id)
        transaction.update_amount(amount)
        self._transactions.append(transaction)
        logger.debug("Added transaction %s (%s) for %s", transaction.id, template.name, amount)
        return transaction

    def update_singleton_transaction_amount(self, template_id: int, name: str, amount: Decimal) -> None:
        transaction = self._singletons.get(template_id)
        if transaction is None:
            if amount == 0 or template_id not in self._registrations:
                return
            transaction = self._materialize(template_id)
        transaction.name = name
        transaction.update_amount(amount)

    def remove_transaction(self, transaction_id: UUID) -> bool:
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                self._detach(transaction)
                return True
        return False

    def remove_template_transactions(self, template_id: int) -> int:
        doomed = [t for t in self._transactions if t.template_id == template_id]
        for transaction in doomed:
            self._detach(transaction)
        if doomed:
            logger.debug("Removed %d transaction(s) for template %s", len(doomed), template_id)
        return len(doomed)

    def _detach(self, transaction: AccountTransaction) -> None:
        self._transactions = [t for t in self._transactions if t is not transaction]
        if self._singletons.get(transaction.template_id) is transaction:
            del self._singletons[transaction.template_id]

    def update_accounts(self, account_template_id: int, account_id: int) -> None:
        """Re-point every transaction (and future singletons) at an account."""
        super().update_accounts(account_template_id, account_id)
        for template_id, (template, _, _) in list(self._registrations.items()):
            self._registrations[template_id] = (template, account_template_id, account_id)
