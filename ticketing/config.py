"""Ticketing configuration."""

import os
from contextlib import contextmanager
from contextvars import ContextVar
from decimal import ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP
from enum import Enum
from pathlib import Path

from dotenv import dotenv_values
from pydantic import BaseModel, Field

ENV_PREFIX = "TICKETING_"


class RoundingRule(str, Enum):
    """Decimal rounding modes a deployment may choose from."""

    HALF_EVEN = ROUND_HALF_EVEN  # Banker's rounding
    HALF_UP = ROUND_HALF_UP      # Midpoints away from zero
    DOWN = ROUND_DOWN
    UP = ROUND_UP


class TicketingConfig(BaseModel):
    """
    Money and ledger settings shared by every ticket.

    Precision and rounding apply to every monetary output: calculation
    effects, pass totals and remaining amounts.
    """

    decimals: int = Field(
        default=2,
        description="Decimal places kept on monetary amounts",
        ge=0,
        le=6,
    )
    rounding: RoundingRule = Field(
        default=RoundingRule.HALF_EVEN,
        description="Rounding applied when quantizing money",
    )
    multiple_rounding: RoundingRule = Field(
        default=RoundingRule.HALF_UP,
        description="Rounding used by round-to-multiple calculations",
    )
    ticket_transaction_name: str = Field(
        default="Ticket Transaction [{ticket_number}]",
        description="Ledger document name; {ticket_number} is substituted",
    )

    model_config = {"frozen": True}


def load_config(env_file: str | Path | None = None) -> TicketingConfig:
    """
    Build a config from TICKETING_* variables.

    Values in env_file (dotenv format) are read first; the process
    environment overrides them.

    Raises:
        pydantic.ValidationError: If a value is out of bounds.
    """
    values: dict[str, str | None] = {}
    if env_file is not None:
        values.update(dotenv_values(env_file))
    values.update(os.environ)

    fields = {}
    for name in TicketingConfig.model_fields:
        raw = values.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            fields[name] = raw

    return TicketingConfig.model_validate(fields)


_DEFAULT_CONFIG = TicketingConfig()
_active_config: ContextVar[TicketingConfig | None] = ContextVar("ticketing_config", default=None)


def get_config() -> TicketingConfig:
    """
    Get the active config.

    Falls back to the defaults when nothing was set, so tickets work
    out of the box in scripts and tests.
    """
    config = _active_config.get()
    if config is None:
        return _DEFAULT_CONFIG
    return config


def set_config(config: TicketingConfig) -> None:
    """Set the active config for the current context."""
    _active_config.set(config)


def reset_config() -> None:
    """Drop back to the default config."""
    _active_config.set(None)


@contextmanager
def config_context(config: TicketingConfig):
    """
    Context manager for temporarily switching config.

    Example:
        with config_context(TicketingConfig(decimals=0)):
            assert ticket.get_remaining_amount() == Decimal("104")
    """
    token = _active_config.set(config)
    try:
        yield config
    finally:
        _active_config.reset(token)
