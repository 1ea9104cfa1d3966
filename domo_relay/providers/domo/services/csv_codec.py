"""
Conversion between Domo's headerless CSV exports and JSON records.

Domo returns dataset content as CSV with no header row; cells are purely
positional and must be matched against the dataset schema. Uploads go the
other way, using Domo's own quoting conventions rather than ``csv.writer``
so that leading apostrophes (Domo's text-prefix marker) are stripped.
"""

import csv
import io
from typing import Any, Dict, Iterable, List, Sequence

Record = Dict[str, str]

RESERVED_COLUMNS = frozenset({"_BATCH_ID_", "_BATCH_LAST_RUN_"})

_QUOTE_TRIGGERS = (",", '"', "\n")


def visible_columns(columns: Iterable[str]) -> List[str]:
    """Drop the batch bookkeeping columns Domo appends to every dataset."""
    return [name for name in columns if name not in RESERVED_COLUMNS]


def parse_rows(csv_text: str) -> List[List[str]]:
    """Parse CSV text into rows, skipping blank lines."""
    reader = csv.reader(io.StringIO(csv_text))
    return [row for row in reader if row]


def rows_to_records(rows: Iterable[Sequence[str]], columns: Sequence[str]) -> List[Record]:
    """Zip each row positionally against ``columns``; short rows pad with ''."""
    records = []
    for row in rows:
        records.append(
            {column: (row[i] if i < len(row) else "") for i, column in enumerate(columns)}
        )
    return records


def csv_to_records(csv_text: str, columns: Sequence[str]) -> List[Record]:
    return rows_to_records(parse_rows(csv_text), columns)


def _stringify(value: Any) -> str:
    # JSON booleans and integral floats render the way the front end sent them
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_cell(value: Any) -> str:
    """
    Render one value as a CSV cell for upload.

    ``None`` becomes an empty cell. Otherwise the value is stringified and
    trimmed, a single leading apostrophe is removed, embedded double quotes
    are doubled, and the cell is quoted when it contains a comma, a double
    quote or a newline.
    """
    if value is None:
        return ""
    text = _stringify(value).strip()
    if text.startswith("'"):
        text = text[1:]
    text = text.replace('"', '""')
    if any(trigger in text for trigger in _QUOTE_TRIGGERS):
        text = f'"{text}"'
    return text


def records_to_csv(records: Iterable[Dict[str, Any]], columns: Sequence[str]) -> str:
    """Serialize records in schema column order, one line per record, no header."""
    lines = []
    for record in records:
        lines.append(",".join(escape_cell(record.get(column)) for column in columns))
    return "\n".join(lines)
