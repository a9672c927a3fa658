# =============================================================================
# CSV Utils Library
# =============================================================================
# Header validation and schema remapping for uploaded CSV files.
# =============================================================================

"""
CSV utilities for the upload pipeline.

This library provides:
- validate_header: Read the header row and check required source columns
- remap: Rename and reorder columns to the target schema
"""

from .header_validator import find_missing_columns, read_header, validate_header
from .remapper import remap

__all__ = [
    "find_missing_columns",
    "read_header",
    "validate_header",
    "remap",
]
