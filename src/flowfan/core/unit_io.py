# src/flowfan/core/unit_io.py
"""JSONL interchange format for flow units.

One unit per line:

    {"content": "<base64>", "attributes": {"list_of_things": "lions,tigers"}}

Written units additionally carry ``unit_id`` and ``parent_id`` so lineage
from a derived copy back to its original survives the round trip. On read,
``unit_id``/``parent_id`` are honoured when present.
"""

import base64
import binascii
import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from flowfan.contracts.unit import FlowUnit


class UnitFormatError(ValueError):
    """A line in a unit file is not a valid unit record."""


def unit_from_record(record: dict[str, Any]) -> FlowUnit:
    """Build a FlowUnit from one decoded JSON record.

    Raises:
        UnitFormatError: If the record shape or types are wrong
    """
    attributes = record.get("attributes", {})
    if not isinstance(attributes, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in attributes.items()):
        raise UnitFormatError("'attributes' must be an object of string values")

    encoded = record.get("content", "")
    if not isinstance(encoded, str):
        raise UnitFormatError("'content' must be a base64 string")
    try:
        content = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise UnitFormatError(f"'content' is not valid base64: {e}") from e

    kwargs: dict[str, Any] = {"content": content, "attributes": attributes}
    if "unit_id" in record:
        kwargs["unit_id"] = str(record["unit_id"])
    if "parent_id" in record:
        kwargs["parent_id"] = record["parent_id"]
    return FlowUnit(**kwargs)


def unit_to_record(unit: FlowUnit) -> dict[str, Any]:
    return {
        "unit_id": unit.unit_id,
        "parent_id": unit.parent_id,
        "content": base64.b64encode(unit.content).decode("ascii"),
        "attributes": dict(unit.attributes),
    }


def read_units(path: Path, encoding: str = "utf-8") -> Iterator[FlowUnit]:
    """Yield units from a JSONL file. Blank lines are skipped.

    Raises:
        UnitFormatError: With the offending line number
    """
    with path.open(encoding=encoding) as f:
        for line_num, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise UnitFormatError(f"{path}:{line_num}: invalid JSON: {e}") from e
            if not isinstance(record, dict):
                raise UnitFormatError(f"{path}:{line_num}: expected an object, got {type(record).__name__}")
            try:
                yield unit_from_record(record)
            except UnitFormatError as e:
                raise UnitFormatError(f"{path}:{line_num}: {e}") from e


def write_units(path: Path, units: Iterable[FlowUnit], encoding: str = "utf-8") -> int:
    """Write units to a JSONL file, replacing it. Returns the number written."""
    count = 0
    with path.open("w", encoding=encoding) as f:
        for unit in units:
            f.write(json.dumps(unit_to_record(unit), sort_keys=True))
            f.write("\n")
            count += 1
    return count
