"""Routing labels and error kinds used across subsystem boundaries.

Relationship values are the names downstream connections are wired by,
so they are part of the external contract and must not be renamed.
"""

from enum import StrEnum


class Relationship(StrEnum):
    """Routing label a processed unit is emitted on.

    Values:
        SUCCESS: Derived copies produced by a fan-out, or a unit that was
            delivered successfully by a terminal processor.
        ORIGINAL: The untouched input unit after a successful fan-out.
        FAILURE: The untouched input unit when processing could not complete.
    """

    SUCCESS = "success"
    ORIGINAL = "original"
    FAILURE = "failure"


class ParseErrorKind(StrEnum):
    """Why a delimited-list value could not be parsed."""

    MISSING_ATTRIBUTE = "missing_attribute"
    MALFORMED_QUOTING = "malformed_quoting"
    FIELD_TOO_LARGE = "field_too_large"


class ProcessErrorCategory(StrEnum):
    """Category recorded on a failed ProcessResult.

    Parse kinds are reused verbatim so a failure reason can be traced back
    to the parser diagnostic without a lookup table.
    """

    MISSING_ATTRIBUTE = "missing_attribute"
    MALFORMED_QUOTING = "malformed_quoting"
    FIELD_TOO_LARGE = "field_too_large"
    INVALID_ATTRIBUTE_NAME = "invalid_attribute_name"
    TRANSFER_FAILED = "transfer_failed"
