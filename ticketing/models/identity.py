"""
Entity identity.

An entity is either Unassigned (not yet persisted) or Assigned a positive
integer id by the persistence layer. Using a sum type keeps "no identity"
apart from any literal id value.
"""

from dataclasses import dataclass
from typing import Self


@dataclass(frozen=True)
class Assigned:
    """Identity handed out by persistence."""

    value: int

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise ValueError("Assigned identity must be a positive integer")

    def __str__(self) -> str:
        return str(self.value)


class Unassigned:
    """Identity of an entity that has not been persisted yet. Singleton."""

    _instance: "Unassigned | None" = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNASSIGNED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        # copy / pickle resolve back to the module-level singleton
        return "UNASSIGNED"


UNASSIGNED = Unassigned()

EntityId = Assigned | Unassigned


def entity_id(value: int | None) -> EntityId:
    """Map a raw stored id (0 / None meaning "not persisted") to EntityId."""
    if not value:
        return UNASSIGNED
    return Assigned(value)


def is_assigned(identity: EntityId) -> bool:
    return isinstance(identity, Assigned)
