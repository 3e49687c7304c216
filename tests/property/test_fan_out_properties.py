# tests/property/test_fan_out_properties.py
"""Property-based tests for list parsing and fan-out invariants.

Lists are generated as element sequences and rendered with csv.writer, so
every generated value is well-formed and its expected elements are known.
"""

import csv
import io

from hypothesis import given
from hypothesis import strategies as st

from flowfan.contracts import FlowUnit, Relationship
from flowfan.core.delimited import parse_list
from flowfan.plugins.context import ProcessContext
from flowfan.plugins.processors.duplicate_by_attribute import DuplicateByAttribute

SOURCE = "list_of_things"
OUTPUT = "thing"

# NUL is excluded: older csv readers reject it outright
element_text = st.text(alphabet=st.characters(exclude_categories=("Cs",), exclude_characters="\x00"), max_size=20)

# Zero elements render as "" and a lone empty element as '""', so every
# list shape round-trips
elements_strategy = st.lists(element_text, max_size=10)

attribute_names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=8)
other_attributes = st.dictionaries(
    attribute_names.filter(lambda n: n not in (SOURCE, OUTPUT)),
    st.text(max_size=10),
    max_size=5,
)


def render(elements: list[str]) -> str:
    """Render elements as one delimited record, quoting when needed."""
    buffer = io.StringIO(newline="")
    csv.writer(buffer, lineterminator="\r\n").writerow(elements)
    return buffer.getvalue().removesuffix("\r\n")


def _processor() -> DuplicateByAttribute:
    return DuplicateByAttribute({"attribute_to_duplicate_by": SOURCE, "output_attribute": OUTPUT})


def _ctx() -> ProcessContext:
    return ProcessContext(run_id="property-run")


class TestParseListProperties:
    @given(elements=elements_strategy)
    def test_rendered_list_parses_back(self, elements: list[str]) -> None:
        result = parse_list(render(elements))

        assert result.is_ok
        assert list(result.elements) == elements

    @given(raw=st.text(max_size=50))
    def test_outcome_is_all_or_nothing(self, raw: str) -> None:
        result = parse_list(raw)

        if result.is_ok:
            assert result.error is None
        else:
            assert result.elements == ()

    @given(raw=st.text(max_size=50))
    def test_parse_is_deterministic(self, raw: str) -> None:
        assert parse_list(raw) == parse_list(raw)


class TestFanOutProperties:
    @given(elements=elements_strategy, others=other_attributes)
    def test_one_copy_per_element_in_order(self, elements: list[str], others: dict[str, str]) -> None:
        unit = FlowUnit.create(b"content", {**others, SOURCE: render(elements)})

        result = _processor().process(unit, _ctx())

        copies = result.units_for(Relationship.SUCCESS)
        assert [c.get_attribute(OUTPUT) for c in copies] == elements
        assert result.units_for(Relationship.ORIGINAL) == [unit]
        assert result.units_for(Relationship.FAILURE) == []

    @given(elements=elements_strategy, others=other_attributes)
    def test_copy_attributes_are_original_minus_source_plus_output(self, elements: list[str], others: dict[str, str]) -> None:
        unit = FlowUnit.create(b"content", {**others, SOURCE: render(elements)})

        copies = _processor().process(unit, _ctx()).units_for(Relationship.SUCCESS)

        for copy, element in zip(copies, elements, strict=True):
            assert dict(copy.attributes) == {**others, OUTPUT: element}
            assert copy.content is unit.content

    @given(elements=elements_strategy, others=other_attributes)
    def test_original_is_never_modified(self, elements: list[str], others: dict[str, str]) -> None:
        attributes = {**others, SOURCE: render(elements)}
        unit = FlowUnit.create(b"content", attributes)

        _processor().process(unit, _ctx())

        assert dict(unit.attributes) == attributes

    @given(raw=st.text(max_size=40), others=other_attributes)
    def test_routing_is_exclusive(self, raw: str, others: dict[str, str]) -> None:
        """The input is emitted exactly once, on original or failure, and failures have no copies."""
        unit = FlowUnit.create(b"", {**others, SOURCE: raw})

        result = _processor().process(unit, _ctx())

        terminal = [e for e in result.emissions if e.unit is unit]
        assert len(terminal) == 1
        assert terminal[0].relationship in (Relationship.ORIGINAL, Relationship.FAILURE)
        if result.outcome == Relationship.FAILURE:
            assert result.units_for(Relationship.SUCCESS) == []

    @given(raw=st.text(max_size=40))
    def test_processing_is_idempotent(self, raw: str) -> None:
        unit = FlowUnit.create(b"", {SOURCE: raw})
        processor = _processor()

        def shape() -> list[tuple[Relationship, dict[str, str]]]:
            return [(e.relationship, dict(e.unit.attributes)) for e in processor.process(unit, _ctx()).emissions]

        assert shape() == shape()


# Anything but a delimiter, a quote (which would read as an escaped quote)
# or whitespace (skipped after a closing quote)
stray_char = st.characters(exclude_categories=("Cs",), exclude_characters='\x00,"').filter(lambda c: not c.isspace())


@st.composite
def text_after_closing_quote(draw: st.DrawFn) -> str:
    """A value with a quoted field followed by stray text before the delimiter."""
    leading = draw(st.lists(element_text, max_size=3))
    quoted = draw(element_text).replace('"', '""')
    rest = draw(st.text(max_size=10))
    prefix = render(leading) + "," if leading else ""
    return f'{prefix}"{quoted}"{draw(stray_char)}{rest}'


class TestMalformedProperties:
    @given(raw=text_after_closing_quote())
    def test_malformed_value_fails_parse(self, raw: str) -> None:
        result = parse_list(raw)

        assert not result.is_ok
        assert result.elements == ()

    @given(raw=text_after_closing_quote(), others=other_attributes)
    def test_malformed_value_routes_input_to_failure_only(self, raw: str, others: dict[str, str]) -> None:
        attributes = {**others, SOURCE: raw}
        unit = FlowUnit.create(b"content", attributes)

        result = _processor().process(unit, _ctx())

        assert result.counts() == {Relationship.FAILURE: 1}
        failed = result.units_for(Relationship.FAILURE)[0]
        assert dict(failed.attributes) == attributes
