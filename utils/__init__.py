"""Utility modules for cross-cutting concerns."""

from utils.timezone import frozen_clock, now_utc, to_utc
