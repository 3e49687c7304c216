# src/flowfan/core/expressions.py
"""Attribute expressions evaluated against the unit being processed.

Processor settings such as "which attribute holds the list" may depend on
the unit itself. A setting is a Jinja2 template rendered in a sandbox with
the unit's attributes in the ``attributes`` namespace:

    list_of_things                      -> "list_of_things"
    {{ attributes.kind }}_list          -> "animal_list" for kind=animal
    {{ attributes["target.name"] }}     -> dotted attribute names

A plain string with no template syntax evaluates to itself.
"""

from __future__ import annotations

from collections.abc import Mapping

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.exceptions import SecurityError
from jinja2.sandbox import SandboxedEnvironment

__all__ = ["AttributeExpression", "ExpressionError", "validate_expression"]

NAMESPACE = "attributes"


class ExpressionError(Exception):
    """Expression could not be compiled or evaluated (including sandbox violations)."""


_ENV = SandboxedEnvironment(
    undefined=StrictUndefined,  # Missing attributes raise instead of rendering ""
    autoescape=False,
    keep_trailing_newline=True,
)


class AttributeExpression:
    """Compiled attribute expression.

    Compilation happens once at configuration time; evaluation happens per
    unit. Instances are immutable and safe to share across worker threads.
    """

    def __init__(self, source: str) -> None:
        """Compile an expression.

        Args:
            source: Literal string or Jinja2 template

        Raises:
            ExpressionError: If template syntax is invalid
        """
        self._source = source
        try:
            self._template = _ENV.from_string(source)
        except TemplateSyntaxError as e:
            raise ExpressionError(f"Invalid expression syntax in {source!r}: {e}") from e

    @property
    def source(self) -> str:
        return self._source

    def evaluate(self, attributes: Mapping[str, str]) -> str:
        """Render the expression against one unit's attributes.

        Raises:
            ExpressionError: If rendering fails (undefined attribute, sandbox violation, etc.)
        """
        try:
            return self._template.render({NAMESPACE: dict(attributes)})
        except UndefinedError as e:
            raise ExpressionError(f"Undefined attribute in {self._source!r}: {e}") from e
        except SecurityError as e:
            raise ExpressionError(f"Sandbox violation in {self._source!r}: {e}") from e
        except Exception as e:
            raise ExpressionError(f"Expression {self._source!r} failed to evaluate: {e}") from e

    def __repr__(self) -> str:
        return f"AttributeExpression({self._source!r})"


def validate_expression(source: str) -> str:
    """Validate an expression for use in a config field validator.

    Returns the source unchanged so it can be used directly as a validator body.

    Raises:
        ValueError: If the expression is empty or does not compile
    """
    if not source or not source.strip():
        raise ValueError("expression cannot be empty")
    try:
        AttributeExpression(source)
    except ExpressionError as e:
        raise ValueError(str(e)) from e
    return source
