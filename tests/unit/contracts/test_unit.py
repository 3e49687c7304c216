"""Tests for FlowUnit."""

import pytest

from flowfan.contracts import FlowUnit


class TestFlowUnitCreation:
    def test_create_defaults(self) -> None:
        unit = FlowUnit.create()

        assert unit.content == b""
        assert dict(unit.attributes) == {}
        assert unit.parent_id is None
        assert unit.unit_id

    def test_unit_ids_are_unique(self) -> None:
        assert FlowUnit.create().unit_id != FlowUnit.create().unit_id

    def test_content_must_be_bytes(self) -> None:
        with pytest.raises(TypeError, match="must be bytes"):
            FlowUnit.create("text")  # type: ignore[arg-type]

    def test_size_is_content_length(self) -> None:
        assert FlowUnit.create(b"12345").size == 5

    def test_caller_mapping_is_snapshotted(self) -> None:
        attrs = {"a": "1"}
        unit = FlowUnit.create(b"", attrs)

        attrs["a"] = "changed"
        attrs["b"] = "2"

        assert dict(unit.attributes) == {"a": "1"}

    def test_attributes_are_read_only(self) -> None:
        unit = FlowUnit.create(b"", {"a": "1"})

        with pytest.raises(TypeError):
            unit.attributes["a"] = "2"  # type: ignore[index]

    def test_unit_is_frozen(self) -> None:
        unit = FlowUnit.create(b"x")

        with pytest.raises(AttributeError):
            unit.content = b"y"  # type: ignore[misc]


class TestFlowUnitDerivation:
    def test_get_attribute_absent_is_none(self) -> None:
        unit = FlowUnit.create(b"", {"a": "1"})

        assert unit.get_attribute("a") == "1"
        assert unit.get_attribute("missing") is None

    def test_get_attribute_distinguishes_empty_from_absent(self) -> None:
        unit = FlowUnit.create(b"", {"empty": ""})

        assert unit.get_attribute("empty") == ""
        assert unit.get_attribute("other") is None

    def test_clone_has_new_identity_and_lineage(self) -> None:
        original = FlowUnit.create(b"data", {"a": "1"})

        copy = original.clone()

        assert copy.unit_id != original.unit_id
        assert copy.parent_id == original.unit_id
        assert dict(copy.attributes) == {"a": "1"}

    def test_clone_shares_content(self) -> None:
        original = FlowUnit.create(b"shared payload")

        assert original.clone().content is original.content

    def test_with_attribute_does_not_touch_source(self) -> None:
        original = FlowUnit.create(b"", {"a": "1"})

        updated = original.with_attribute("b", "2")

        assert dict(updated.attributes) == {"a": "1", "b": "2"}
        assert dict(original.attributes) == {"a": "1"}
        assert updated.unit_id == original.unit_id

    def test_with_attribute_overwrites(self) -> None:
        unit = FlowUnit.create(b"", {"a": "1"}).with_attribute("a", "2")

        assert unit.get_attribute("a") == "2"

    def test_without_attribute_removes(self) -> None:
        original = FlowUnit.create(b"", {"a": "1", "b": "2"})

        trimmed = original.without_attribute("a")

        assert dict(trimmed.attributes) == {"b": "2"}
        assert dict(original.attributes) == {"a": "1", "b": "2"}

    def test_without_absent_attribute_returns_same_unit(self) -> None:
        unit = FlowUnit.create(b"", {"a": "1"})

        assert unit.without_attribute("missing") is unit
