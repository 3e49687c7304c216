"""DuplicateByAttribute fan-out processor.

Duplicates one unit into many according to a comma-separated list held in
one of its attributes. Combined with attribute expressions this sends a unit
to every destination named in a dynamic attribute, a query result, etc.

Routing:
- success: one derived copy per list element, in element order. Each copy
  shares the original content, lacks the list attribute and carries the
  element in the output attribute.
- original: the untouched input, after all copies.
- failure: the untouched input when the list cannot be read. No copies.

An empty list value yields no copies and routes the input to original.
An absent list attribute routes the input to failure.
"""

from typing import Any

from pydantic import Field, field_validator

from flowfan.contracts import FlowUnit, ProcessErrorCategory, ProcessErrorReason, ProcessResult, Relationship
from flowfan.core.delimited import parse_list
from flowfan.core.expressions import AttributeExpression, ExpressionError
from flowfan.plugins.base import BaseProcessor
from flowfan.plugins.config_base import PluginConfig, expression_field
from flowfan.plugins.context import ProcessContext


class DuplicateByAttributeConfig(PluginConfig):
    """Configuration for the duplicate-by-attribute processor.

    Attributes:
        attribute_to_duplicate_by: Name of the attribute holding the list.
            Each element becomes a copy carrying output_attribute.
        output_attribute: Name of the attribute written on each copy.
    """

    attribute_to_duplicate_by: str = Field(
        ...,
        description="Attribute holding a comma-separated list (attribute expression)",
    )
    output_attribute: str = Field(
        ...,
        description="Attribute written on each copy from the list element (attribute expression)",
    )

    @field_validator("attribute_to_duplicate_by", "output_attribute")
    @classmethod
    def validate_expressions(cls, v: str) -> str:
        return expression_field(v)


class DuplicateByAttribute(BaseProcessor):
    """Fan a unit out into one copy per element of a list attribute.

    Config options:
        attribute_to_duplicate_by: Required. Attribute holding the list
        output_attribute: Required. Attribute to write on each copy

    Example:
        Input:    {"list_of_things": "lions,tigers,bears"}
        success:  {"thing": "lions"}, {"thing": "tigers"}, {"thing": "bears"}
        original: {"list_of_things": "lions,tigers,bears"}
    """

    name = "duplicate_by_attribute"
    plugin_version = "1.0.0"
    relationships = frozenset({Relationship.SUCCESS, Relationship.ORIGINAL, Relationship.FAILURE})
    config_model = DuplicateByAttributeConfig

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize the processor.

        Raises:
            PluginConfigError: If required config is missing or invalid
        """
        super().__init__(config)
        cfg = DuplicateByAttributeConfig.from_dict(config)
        self._source_expr = AttributeExpression(cfg.attribute_to_duplicate_by)
        self._output_expr = AttributeExpression(cfg.output_attribute)

    def process(self, unit: FlowUnit, ctx: ProcessContext) -> ProcessResult:
        """Fan the unit out by its list attribute.

        The input unit is never modified; copies are derived from it.
        """
        try:
            source_name = self._evaluate_name(self._source_expr, unit)
            output_name = self._evaluate_name(self._output_expr, unit)
        except ExpressionError as e:
            ctx.report_error(
                "attribute name could not be evaluated",
                unit_id=unit.unit_id,
                expression_error=str(e),
            )
            return ProcessResult.failed(
                unit,
                ProcessErrorReason(reason=ProcessErrorCategory.INVALID_ATTRIBUTE_NAME, detail=str(e)),
            )

        raw = unit.get_attribute(source_name)
        parsed = parse_list(raw)

        if parsed.error is not None:
            ctx.report_error(
                "attribute_to_duplicate_by value could not be parsed",
                unit_id=unit.unit_id,
                attribute=source_name,
                value=raw,
                error=str(parsed.error),
                detail=parsed.detail,
            )
            reason = ProcessErrorReason(
                reason=ProcessErrorCategory(parsed.error.value),
                attribute=source_name,
                value=raw,
            )
            if parsed.detail is not None:
                reason["detail"] = parsed.detail
            return ProcessResult.failed(unit, reason)

        copies = [unit.clone().without_attribute(source_name).with_attribute(output_name, element) for element in parsed.elements]
        return ProcessResult.fanned_out(copies, unit)

    @staticmethod
    def _evaluate_name(expression: AttributeExpression, unit: FlowUnit) -> str:
        name = expression.evaluate(unit.attributes)
        if not name:
            raise ExpressionError(f"Expression {expression.source!r} evaluated to an empty attribute name")
        return name
