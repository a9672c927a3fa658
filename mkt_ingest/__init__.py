# =============================================================================
# Marketing Data Ingestion Libraries
# =============================================================================
# Shared libraries for the marketing data upload console.
# See individual sub-packages for detailed documentation.
# =============================================================================

"""
Marketing data ingestion libraries.

Sub-packages:
- models: Pydantic data models and schemas
- csv_utils: Header validation and schema remapping
"""

__version__ = "0.1.0"
