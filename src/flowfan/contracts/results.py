"""Operation outcomes and results.

These types answer: "What did an operation produce?"

IMPORTANT:
- ListParseResult.status uses Literal["ok", "error"], NOT an enum
- Parse failures are values, never exceptions
- ProcessResult always ends with exactly one terminal emission of the input unit
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from flowfan.contracts.enums import ParseErrorKind, Relationship
from flowfan.contracts.errors import ProcessErrorReason
from flowfan.contracts.unit import FlowUnit


@dataclass(frozen=True)
class ListParseResult:
    """Result of parsing a delimited-list attribute value.

    Use the factory methods to create instances.
    """

    status: Literal["ok", "error"]
    elements: tuple[str, ...] = ()
    error: ParseErrorKind | None = None
    detail: str | None = None

    def __post_init__(self) -> None:
        if self.status == "ok" and self.error is not None:
            raise ValueError("ListParseResult with status='ok' cannot carry an error kind")
        if self.status == "error" and self.error is None:
            raise ValueError("ListParseResult with status='error' MUST provide an error kind")
        if self.status == "error" and self.elements:
            raise ValueError("ListParseResult with status='error' cannot carry elements")

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def ok(cls, elements: Sequence[str]) -> ListParseResult:
        """Successful parse with elements in source order."""
        return cls(status="ok", elements=tuple(elements))

    @classmethod
    def failure(cls, kind: ParseErrorKind, detail: str | None = None) -> ListParseResult:
        """Failed parse. No elements are ever returned alongside an error."""
        return cls(status="error", error=kind, detail=detail)


@dataclass(frozen=True)
class Emission:
    """A unit paired with the relationship it is routed to."""

    unit: FlowUnit
    relationship: Relationship


@dataclass(frozen=True)
class ProcessResult:
    """Result of one processor invocation over one input unit.

    Emissions are ordered; the host transfers them in this order. The final
    emission is always the input unit itself on the outcome relationship,
    preceded by zero or more derived units.

    Invariants (enforced by __post_init__):
    - At least one emission exists
    - The last emission's relationship equals outcome
    - FAILURE outcomes carry a reason and emit nothing on SUCCESS
    """

    emissions: tuple[Emission, ...]
    outcome: Relationship
    reason: ProcessErrorReason | None = None
    penalty_seconds: float | None = None  # Delay before the unit may be fetched again

    def __post_init__(self) -> None:
        if not self.emissions:
            raise ValueError("ProcessResult requires at least one emission (the input unit)")
        if self.emissions[-1].relationship != self.outcome:
            raise ValueError(
                f"Terminal emission routed to '{self.emissions[-1].relationship}' but outcome is '{self.outcome}'"
            )
        if self.outcome == Relationship.FAILURE:
            if self.reason is None:
                raise ValueError("ProcessResult with FAILURE outcome MUST provide a reason")
            if any(e.relationship == Relationship.SUCCESS for e in self.emissions):
                raise ValueError("ProcessResult with FAILURE outcome cannot emit derived units")

    @property
    def terminal(self) -> Emission:
        """The emission carrying the input unit."""
        return self.emissions[-1]

    def units_for(self, relationship: Relationship) -> list[FlowUnit]:
        """Units emitted on one relationship, in emission order."""
        return [e.unit for e in self.emissions if e.relationship == relationship]

    def counts(self) -> dict[Relationship, int]:
        """Emission count per relationship (relationships with no emissions omitted)."""
        return dict(Counter(e.relationship for e in self.emissions))

    @classmethod
    def fanned_out(cls, copies: Sequence[FlowUnit], original: FlowUnit) -> ProcessResult:
        """Derived copies on SUCCESS followed by the original on ORIGINAL."""
        emissions = [Emission(copy, Relationship.SUCCESS) for copy in copies]
        emissions.append(Emission(original, Relationship.ORIGINAL))
        return cls(emissions=tuple(emissions), outcome=Relationship.ORIGINAL)

    @classmethod
    def failed(
        cls,
        original: FlowUnit,
        reason: ProcessErrorReason,
        *,
        penalty_seconds: float | None = None,
    ) -> ProcessResult:
        """The untouched original on FAILURE with a structured reason."""
        return cls(
            emissions=(Emission(original, Relationship.FAILURE),),
            outcome=Relationship.FAILURE,
            reason=reason,
            penalty_seconds=penalty_seconds,
        )

    @classmethod
    def routed(cls, unit: FlowUnit, relationship: Relationship) -> ProcessResult:
        """Single non-failure emission of the input unit."""
        return cls(emissions=(Emission(unit, relationship),), outcome=relationship)
