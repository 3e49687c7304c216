# src/flowfan/core/delimited.py
"""Delimited-list parsing for attribute values.

An attribute value such as ``lions,tigers,bears`` is read as a CSV record
set: comma-separated fields, optional double-quote quoting, doubled quotes
escaping a quote inside a quoted field. Values spanning several lines yield
several rows; the element sequence is every field of every row, row-major.

Uses csv.reader in strict mode so that malformed quoting fails instead of
being silently repaired. Whitespace between a closing quote and the next
delimiter or line end is skipped; any other character there is an error:

    >>> parse_list('lions,"tigers, striped",bears').elements
    ('lions', 'tigers, striped', 'bears')
    >>> parse_list('"lions" ,bears').elements
    ('lions', 'bears')
    >>> parse_list('"lions,"tigers","bears"').error
    <ParseErrorKind.MALFORMED_QUOTING: 'malformed_quoting'>

Empty input parses to zero elements. An absent attribute (None) is an error,
because there is no value to read at all.
"""

import csv
import io

from flowfan.contracts.enums import ParseErrorKind
from flowfan.contracts.results import ListParseResult

# csv.Error carries no structured code; the field-limit message is the only
# way to tell an oversized field apart from bad quoting.
_FIELD_LIMIT_MARKER = "field larger than field limit"

_DELIMITER = ","
_QUOTE = '"'
_LINE_ENDS = "\r\n"


def _is_padding(ch: str) -> bool:
    return ch.isspace() and ch not in _LINE_ENDS


def _drop_padding_after_quotes(raw: str) -> str:
    """Remove whitespace that sits between a closing quote and the field end.

    Only quotes that open a field count. A quote in the middle of an unquoted
    field is literal text and leaves what follows it alone. Padding followed
    by anything other than a field end is put back so csv still rejects it.
    """
    if _QUOTE not in raw:
        return raw

    out: list[str] = []
    padding: list[str] = []
    field_start = True
    in_quotes = False
    after_close = False
    for ch in raw:
        if in_quotes:
            if ch == _QUOTE:
                in_quotes = False
                after_close = True
            out.append(ch)
            continue
        if after_close:
            if ch == _QUOTE and not padding:
                # Doubled quote, still inside the quoted field
                in_quotes = True
                after_close = False
                out.append(ch)
                continue
            if _is_padding(ch):
                padding.append(ch)
                continue
            if ch != _DELIMITER and ch not in _LINE_ENDS:
                out.extend(padding)
            padding.clear()
            after_close = False
        if ch == _DELIMITER or ch in _LINE_ENDS:
            field_start = True
        elif field_start and ch == _QUOTE:
            in_quotes = True
            field_start = False
        else:
            field_start = False
        out.append(ch)
    return "".join(out)


def parse_list(raw: str | None) -> ListParseResult:
    """Parse a delimited-list value into its ordered elements.

    Args:
        raw: Attribute value, or None if the attribute is absent

    Returns:
        ListParseResult.ok with every field in order, or ListParseResult.failure
        with the reason parsing stopped. Never a partial element list.
    """
    if raw is None:
        return ListParseResult.failure(ParseErrorKind.MISSING_ATTRIBUTE, "attribute is not present")

    # newline="" hands line endings to csv untranslated, which is what
    # lets quoted fields carry embedded newlines
    reader = csv.reader(io.StringIO(_drop_padding_after_quotes(raw), newline=""), strict=True)
    elements: list[str] = []
    try:
        for record in reader:
            # Blank lines come back as [] and contribute nothing
            elements.extend(record)
    except csv.Error as e:
        detail = f"line {reader.line_num}: {e}"
        if _FIELD_LIMIT_MARKER in str(e):
            return ListParseResult.failure(ParseErrorKind.FIELD_TOO_LARGE, detail)
        return ListParseResult.failure(ParseErrorKind.MALFORMED_QUOTING, detail)

    return ListParseResult.ok(elements)
