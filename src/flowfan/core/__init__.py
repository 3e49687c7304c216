"""Core infrastructure: configuration, logging, parsing, expressions.

Import patterns:
    from flowfan.core.config import FlowfanSettings, load_settings
    from flowfan.core.delimited import parse_list
    from flowfan.core.expressions import AttributeExpression
"""

from flowfan.core.delimited import parse_list
from flowfan.core.expressions import AttributeExpression, ExpressionError
from flowfan.core.logging import configure_logging, get_logger

__all__ = [
    "AttributeExpression",
    "ExpressionError",
    "configure_logging",
    "get_logger",
    "parse_list",
]
