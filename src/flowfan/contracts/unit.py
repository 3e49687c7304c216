"""Flow unit identity and data.

These types answer: "What is flowing through the pipeline?"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from uuid import uuid4


def _new_unit_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class FlowUnit:
    """One discrete record: immutable content plus string attributes.

    Units are values. Every mutation returns a new FlowUnit, so a unit that
    has been handed to a processor can never be changed underneath it.

    - content: Raw payload bytes, shared by reference with every copy
    - attributes: Read-only view over a private dict
    - unit_id: Routable identity, distinct from content
    - parent_id: unit_id of the unit this one was cloned from

    Attribute edits (with_attribute / without_attribute) keep unit_id, since
    they describe the same unit in a later state. clone() mints a new identity.
    """

    content: bytes
    attributes: Mapping[str, str]
    unit_id: str = field(default_factory=_new_unit_id)
    parent_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.content, bytes):
            raise TypeError(f"FlowUnit content must be bytes, got {type(self.content).__name__}")
        # Snapshot the caller's mapping so later edits to it cannot leak in
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @classmethod
    def create(cls, content: bytes = b"", attributes: Mapping[str, str] | None = None) -> FlowUnit:
        """Create a new root unit (no parent)."""
        return cls(content=content, attributes=attributes if attributes is not None else {})

    @property
    def size(self) -> int:
        """Content length in bytes."""
        return len(self.content)

    def get_attribute(self, name: str) -> str | None:
        """Return the attribute value, or None if the unit does not carry it."""
        return self.attributes.get(name)

    def clone(self) -> FlowUnit:
        """Create a derived unit with the same content and an independent attribute copy."""
        return FlowUnit(
            content=self.content,
            attributes=self.attributes,
            parent_id=self.unit_id,
        )

    def with_attribute(self, name: str, value: str) -> FlowUnit:
        """Return this unit with one attribute set (added or overwritten)."""
        updated = dict(self.attributes)
        updated[name] = value
        return replace(self, attributes=updated)

    def without_attribute(self, name: str) -> FlowUnit:
        """Return this unit without the named attribute.

        Removing an attribute the unit does not carry returns an equal unit.
        """
        if name not in self.attributes:
            return self
        return replace(self, attributes={k: v for k, v in self.attributes.items() if k != name})
