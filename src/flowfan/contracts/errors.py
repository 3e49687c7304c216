"""Error and reason schema contracts.

TypedDict schemas for structured failure payloads carried on results
and written to the error log.
"""

from typing import NotRequired, TypedDict

from flowfan.contracts.enums import ProcessErrorCategory


class ProcessErrorReason(TypedDict):
    """Schema for failed ProcessResult payloads."""

    reason: ProcessErrorCategory
    attribute: NotRequired[str]  # Attribute name the processor was reading
    value: NotRequired[str | None]  # Raw attribute value, None if absent
    detail: NotRequired[str]  # Parser or client message


class SessionStateError(Exception):
    """Raised when a host session is driven out of order.

    Examples: committing while a fetched unit was never transferred, or
    transferring to a relationship the processor does not declare. These
    are processor bugs, not data problems, and must crash the run.
    """
