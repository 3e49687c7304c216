"""Tests for the duplicate-by-attribute fan-out processor."""

import pytest

from flowfan.contracts import FlowUnit, ProcessErrorCategory, Relationship
from flowfan.plugins.config_base import PluginConfigError
from flowfan.plugins.context import ProcessContext
from flowfan.plugins.processors.duplicate_by_attribute import DuplicateByAttribute

BASIC = {"attribute_to_duplicate_by": "list_of_things", "output_attribute": "thing"}


@pytest.fixture
def processor() -> DuplicateByAttribute:
    return DuplicateByAttribute(BASIC)


class TestConfiguration:
    @pytest.mark.parametrize("missing", ["attribute_to_duplicate_by", "output_attribute"])
    def test_required_options(self, missing: str) -> None:
        options = {k: v for k, v in BASIC.items() if k != missing}

        with pytest.raises(PluginConfigError, match=missing):
            DuplicateByAttribute(options)

    def test_empty_option_rejected(self) -> None:
        with pytest.raises(PluginConfigError, match="cannot be empty"):
            DuplicateByAttribute({**BASIC, "output_attribute": ""})

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(PluginConfigError):
            DuplicateByAttribute({**BASIC, "delimiter": ";"})


class TestFanOut:
    def test_scenario_well_formed_list(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"content", {"list_of_things": "lions,tigers,bears"})

        result = processor.process(unit, ctx)

        copies = result.units_for(Relationship.SUCCESS)
        assert [c.get_attribute("thing") for c in copies] == ["lions", "tigers", "bears"]
        assert all(c.get_attribute("list_of_things") is None for c in copies)
        assert result.units_for(Relationship.ORIGINAL) == [unit]
        assert result.units_for(Relationship.FAILURE) == []
        assert dict(unit.attributes) == {"list_of_things": "lions,tigers,bears"}
        assert unit.get_attribute("thing") is None

    def test_scenario_malformed_quoting(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"content", {"list_of_things": '"lions,"tigers","bears"'})

        result = processor.process(unit, ctx)

        assert result.counts() == {Relationship.FAILURE: 1}
        failed = result.terminal.unit
        assert failed is unit
        assert failed.get_attribute("list_of_things") == '"lions,"tigers","bears"'
        assert failed.get_attribute("thing") is None
        assert result.reason is not None
        assert result.reason["reason"] == ProcessErrorCategory.MALFORMED_QUOTING
        assert result.reason["attribute"] == "list_of_things"
        assert ctx.errors_reported == 1

    def test_scenario_empty_value(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"content", {"list_of_things": ""})

        first = processor.process(unit, ctx)
        second = processor.process(unit, ctx)

        for result in (first, second):
            assert result.counts() == {Relationship.ORIGINAL: 1}
            assert result.terminal.unit is unit

    def test_absent_attribute_routes_to_failure(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"content", {"other": "x"})

        result = processor.process(unit, ctx)

        assert result.outcome == Relationship.FAILURE
        assert result.reason is not None
        assert result.reason["reason"] == ProcessErrorCategory.MISSING_ATTRIBUTE
        assert result.reason["value"] is None

    def test_copies_share_content_and_lineage(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"shared", {"list_of_things": "a,b", "keep": "me"})

        copies = processor.process(unit, ctx).units_for(Relationship.SUCCESS)

        for copy in copies:
            assert copy.content is unit.content
            assert copy.parent_id == unit.unit_id
            assert copy.unit_id != unit.unit_id
            assert copy.get_attribute("keep") == "me"
        assert copies[0].unit_id != copies[1].unit_id

    def test_copies_precede_original(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"", {"list_of_things": "a,b,c"})

        result = processor.process(unit, ctx)

        assert [e.relationship for e in result.emissions] == [
            Relationship.SUCCESS,
            Relationship.SUCCESS,
            Relationship.SUCCESS,
            Relationship.ORIGINAL,
        ]

    def test_duplicates_and_empty_elements_are_kept(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"", {"list_of_things": "a,,a"})

        copies = processor.process(unit, ctx).units_for(Relationship.SUCCESS)

        assert [c.get_attribute("thing") for c in copies] == ["a", "", "a"]

    def test_output_attribute_overwrites_existing(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"", {"list_of_things": "new", "thing": "old"})

        copies = processor.process(unit, ctx).units_for(Relationship.SUCCESS)

        assert copies[0].get_attribute("thing") == "new"

    def test_same_source_and_output_attribute(self, ctx: ProcessContext) -> None:
        processor = DuplicateByAttribute({"attribute_to_duplicate_by": "items", "output_attribute": "items"})
        unit = FlowUnit.create(b"", {"items": "x,y"})

        copies = processor.process(unit, ctx).units_for(Relationship.SUCCESS)

        assert [c.get_attribute("items") for c in copies] == ["x", "y"]

    def test_is_idempotent(self, processor: DuplicateByAttribute, ctx: ProcessContext) -> None:
        unit = FlowUnit.create(b"", {"list_of_things": 'x,"y, z"'})

        def shape(u: FlowUnit) -> list[tuple[str, dict[str, str]]]:
            result = processor.process(u, ctx)
            return [(str(e.relationship), dict(e.unit.attributes)) for e in result.emissions]

        assert shape(unit) == shape(unit)


class TestExpressionNames:
    def test_names_evaluated_per_unit(self, ctx: ProcessContext) -> None:
        processor = DuplicateByAttribute(
            {
                "attribute_to_duplicate_by": "{{ attributes.list_name }}",
                "output_attribute": "{{ attributes.kind }}_name",
            }
        )
        unit = FlowUnit.create(b"", {"list_name": "animals", "kind": "animal", "animals": "cat,dog"})

        copies = processor.process(unit, ctx).units_for(Relationship.SUCCESS)

        assert [c.get_attribute("animal_name") for c in copies] == ["cat", "dog"]
        assert all(c.get_attribute("animals") is None for c in copies)

    def test_undefined_reference_routes_to_failure(self, ctx: ProcessContext) -> None:
        processor = DuplicateByAttribute({"attribute_to_duplicate_by": "{{ attributes.list_name }}", "output_attribute": "thing"})
        unit = FlowUnit.create(b"", {"list_of_things": "a"})

        result = processor.process(unit, ctx)

        assert result.outcome == Relationship.FAILURE
        assert result.reason is not None
        assert result.reason["reason"] == ProcessErrorCategory.INVALID_ATTRIBUTE_NAME
        assert result.terminal.unit is unit

    def test_empty_evaluated_name_routes_to_failure(self, ctx: ProcessContext) -> None:
        processor = DuplicateByAttribute({"attribute_to_duplicate_by": "list_of_things", "output_attribute": "{{ attributes.out }}"})
        unit = FlowUnit.create(b"", {"list_of_things": "a", "out": ""})

        result = processor.process(unit, ctx)

        assert result.outcome == Relationship.FAILURE
        assert result.reason is not None
        assert "empty attribute name" in result.reason["detail"]
