# =============================================================================
# CSV Header Validation
# =============================================================================
# Reads the header row of an uploaded CSV and checks it against the source
# columns a dataset schema requires.
# =============================================================================

import csv
import io
from typing import Iterable, List

from mkt_ingest.errors import HeaderUnreadable, MissingColumns

__all__ = [
    "decode_csv",
    "read_header",
    "find_missing_columns",
    "validate_header",
]

# utf-8-sig strips a leading byte-order mark and is a no-op otherwise
CSV_ENCODING = "utf-8-sig"


def decode_csv(raw: bytes) -> str:
    """
    Decode uploaded CSV bytes.

    Raises:
        HeaderUnreadable: If the bytes are not valid UTF-8
    """
    try:
        return raw.decode(CSV_ENCODING)
    except UnicodeDecodeError as exc:
        raise HeaderUnreadable(
            f"CSV file could not be decoded as UTF-8: {exc.reason}"
        ) from exc


def read_header(raw: bytes) -> List[str]:
    """
    Parse only the first record of a CSV payload.

    Args:
        raw: Uploaded file contents

    Returns:
        Header cells with surrounding whitespace removed

    Raises:
        HeaderUnreadable: If the payload cannot be parsed or has no header row
    """
    text = decode_csv(raw)
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        first = next(reader, None)
    except csv.Error as exc:
        raise HeaderUnreadable(f"CSV header could not be parsed: {exc}") from exc

    if not first:
        raise HeaderUnreadable("CSV file has no header row")

    return [cell.strip() for cell in first]


def find_missing_columns(header: Iterable[str], required: Iterable[str]) -> List[str]:
    """Required columns absent from ``header``, in required order."""
    present = set(header)
    return [column for column in required if column not in present]


def validate_header(raw: bytes, required: Iterable[str]) -> List[str]:
    """
    Read and validate the header row of an upload.

    Args:
        raw: Uploaded file contents
        required: Source column names the dataset schema needs

    Returns:
        The parsed header, ready to key the remaining records

    Raises:
        HeaderUnreadable: If the header cannot be read
        MissingColumns: If any required column is absent. Carries every
            missing name, not only the first.
    """
    header = read_header(raw)
    missing = find_missing_columns(header, required)
    if missing:
        raise MissingColumns(missing)
    return header
