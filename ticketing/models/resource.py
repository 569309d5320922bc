"""Links from a ticket to external resources (tables, rooms, customers)."""

from dataclasses import dataclass


@dataclass(eq=False)
class TicketResource:
    """At most one per resource template on a ticket."""

    resource_template_id: int
    resource_id: int
    resource_name: str = ""
    account_id: int = 0
    custom_data: str = ""
