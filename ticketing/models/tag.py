"""Ticket tag values and their serialized storage.

Tags are persisted as one JSON blob:

    [{"tagName": "Table", "tagValue": "12"}, {"tagName": "Waiter", "tagValue": "Ann"}]

TicketTags owns the blob and a lazily materialized list. Every mutation
rewrites the blob and calls invalidate(), so the next read deserializes
from the blob again.
"""

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic.alias_generators import to_camel


class TicketTagValue(BaseModel):
    """A (tag name, tag value) pair."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tag_name: str
    tag_value: str = ""


_TAG_LIST = TypeAdapter(list[TicketTagValue])


def serialize_tags(values: list[TicketTagValue]) -> str:
    """Serialize tags, dropping empty values."""
    kept = [v for v in values if v.tag_value]
    return _TAG_LIST.dump_json(kept, by_alias=True).decode()


def deserialize_tags(blob: str | None) -> list[TicketTagValue]:
    if not blob:
        return []
    return _TAG_LIST.validate_json(blob)


class TicketTags:
    """Serialized tag blob plus an explicitly invalidated materialization."""

    def __init__(self, serialized: str | None = None):
        self._serialized = serialized or ""
        self._values: list[TicketTagValue] | None = None

    @property
    def serialized(self) -> str:
        return self._serialized

    @property
    def values(self) -> list[TicketTagValue]:
        """Materialized tags; deserialized on first read after invalidation."""
        if self._values is None:
            self._values = deserialize_tags(self._serialized)
        return list(self._values)

    def invalidate(self) -> None:
        self._values = None

    def get(self, tag_name: str) -> str:
        tag = next((t for t in self.values if t.tag_name == tag_name), None)
        return tag.tag_value if tag is not None else ""

    def set(self, tag_name: str, tag_value: str) -> None:
        """Set, replace or (with an empty value) remove a tag."""
        values = self.values
        tag = next((t for t in values if t.tag_name == tag_name), None)
        if tag is None:
            values.append(TicketTagValue(tag_name=tag_name, tag_value=tag_value))
        else:
            tag.tag_value = tag_value

        self._serialized = serialize_tags(values)
        self.invalidate()

    @property
    def is_tagged(self) -> bool:
        return any(t.tag_value for t in self.values)

    def format_lines(self, separator: str = "\r") -> str:
        """Human-readable "Name: Value" lines for printing."""
        return separator.join(f"{t.tag_name}: {t.tag_value}" for t in self.values if t.tag_value)
