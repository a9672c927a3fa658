# =============================================================================
# Schema Remapper
# =============================================================================
# Rewrites an uploaded CSV into the column layout of its warehouse table:
# source columns are renamed to target names and emitted in schema order.
# =============================================================================

import csv
import io
from typing import Dict, Iterator, List, Sequence

from mkt_ingest.csv_utils.header_validator import decode_csv
from mkt_ingest.errors import RowsUnreadable
from mkt_ingest.models.dataset import SchemaField

__all__ = [
    "iter_records",
    "map_record",
    "format_cell",
    "format_row",
    "remap",
]

OUTPUT_ENCODING = "utf-8"
DELIMITER = ","
QUOTE_CHAR = '"'
LINE_TERMINATOR = "\n"

_QUOTE_TRIGGERS = (DELIMITER, QUOTE_CHAR, "\r", "\n")


def iter_records(text: str, header: Sequence[str]) -> Iterator[Dict[str, str]]:
    """
    Yield the data records of a CSV keyed by ``header``.

    The first record is the header row and is skipped, as are blank lines.
    Cells beyond the header width are dropped; short rows simply lack the
    trailing keys.
    """
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    next(reader, None)
    for row in reader:
        if not row:
            continue
        yield dict(zip(header, row))


def map_record(record: Dict[str, str], fields: Sequence[SchemaField]) -> List[str]:
    """
    Project one record onto the schema.

    Missing values become "" so that row-level gaps never fail the upload;
    only a wholly missing column is rejected, by header validation.
    """
    return [record.get(field.source_name) or "" for field in fields]


def format_cell(value: str) -> str:
    """
    Render one output cell.

    Cells holding the delimiter, a quote or a line break are quoted, as are
    empty cells, so an empty value always loads as an empty string rather
    than NULL regardless of how many columns the schema has.
    """
    if value == "" or any(char in value for char in _QUOTE_TRIGGERS):
        return QUOTE_CHAR + value.replace(QUOTE_CHAR, QUOTE_CHAR * 2) + QUOTE_CHAR
    return value


def format_row(cells: Sequence[str]) -> str:
    return DELIMITER.join(format_cell(cell) for cell in cells) + LINE_TERMINATOR


def remap(raw: bytes, header: Sequence[str], fields: Sequence[SchemaField]) -> bytes:
    """
    Remap an uploaded CSV to the target schema.

    Args:
        raw: Uploaded file contents (a UTF-8 BOM is tolerated)
        header: Header returned by validate_header
        fields: Schema fields in output order

    Returns:
        UTF-8 CSV with a header of target names in schema order. The same
        input always yields byte-identical output.

    Raises:
        RowsUnreadable: If a data row cannot be parsed

    Examples:
        >>> fields = [SchemaField(source_name="a", data_type="STRING", target_name="x")]
        >>> remap(b"b,a\\n1,2\\n", ["b", "a"], fields)
        b'x\\n2\\n'
    """
    text = decode_csv(raw)

    out = io.StringIO(newline="")
    out.write(format_row([field.target_name for field in fields]))

    try:
        for record in iter_records(text, header):
            out.write(format_row(map_record(record, fields)))
    except csv.Error as exc:
        raise RowsUnreadable(f"CSV rows could not be parsed: {exc}") from exc

    return out.getvalue().encode(OUTPUT_ENCODING)
