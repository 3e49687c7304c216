"""Shared contracts for cross-boundary data types.

All dataclasses, enums and TypedDicts that cross subsystem boundaries
are defined here. This package is a LEAF MODULE with no outbound
dependencies to core/engine/plugins.

Import patterns:
    from flowfan.contracts import FlowUnit, ProcessResult, Relationship
"""

from flowfan.contracts.enums import ParseErrorKind, ProcessErrorCategory, Relationship
from flowfan.contracts.errors import ProcessErrorReason, SessionStateError
from flowfan.contracts.results import Emission, ListParseResult, ProcessResult
from flowfan.contracts.unit import FlowUnit

__all__ = [
    # Units
    "FlowUnit",
    # Enums
    "ParseErrorKind",
    "ProcessErrorCategory",
    "Relationship",
    # Results
    "Emission",
    "ListParseResult",
    "ProcessResult",
    # Errors
    "ProcessErrorReason",
    "SessionStateError",
]
