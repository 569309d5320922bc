"""Ticket calculation and ledger reconciliation engine."""

from ticketing.config import TicketingConfig, config_context, get_config, load_config
from ticketing.exceptions import ContractViolationError, TicketClosedError, TicketError, TicketNotClosableError
from ticketing.ledger import AccountTransaction, LedgerDocument, TransactionDocument
from ticketing.ticket import LockState, Ticket
