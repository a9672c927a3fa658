# =============================================================================
# Ingestion Errors
# =============================================================================
# Typed failures for the upload pipeline. Each error knows the stage it
# belongs to and the HTTP status it is reported with:
# - AuthenticationError  -> 401
# - ClientInputError     -> 400 (malformed request, unknown dataset, bad CSV)
# - ConfigurationError   -> 500 (operator misconfiguration)
# - ExternalServiceError -> 500 (warehouse rejected the load)
# =============================================================================

from typing import Optional, Sequence

from mkt_ingest.models.ingestion import IngestionStage

__all__ = [
    "IngestionError",
    "AuthenticationError",
    "ClientInputError",
    "BodyUnparseable",
    "DatasetUnspecified",
    "FileMissing",
    "DatasetUnknown",
    "HeaderUnreadable",
    "MissingColumns",
    "RowsUnreadable",
    "ConfigurationError",
    "InvalidTableIdentifier",
    "CredentialsUnresolved",
    "SchemaDefinitionError",
    "ExternalServiceError",
    "LoadRejected",
]


class IngestionError(Exception):
    """
    Base class for upload pipeline failures.

    Attributes:
        message: Error text returned to the caller in the ``error`` field
        stage: Pipeline stage at which the attempt stopped
        status_code: HTTP status the failure is reported with
        log_line: Transcript line describing the failure, when it needs more
            than the stage default
    """

    status_code: int = 500
    stage: IngestionStage = IngestionStage.LOAD_FAILED
    log_line: Optional[str] = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# -----------------------------------------------------------------------------
# 401
# -----------------------------------------------------------------------------
class AuthenticationError(IngestionError):
    """No session cookie, a stale one, or no shared secret configured."""

    status_code = 401
    stage = IngestionStage.UNAUTHENTICATED


# -----------------------------------------------------------------------------
# 400
# -----------------------------------------------------------------------------
class ClientInputError(IngestionError):
    """Problems the uploader can fix by resubmitting."""

    status_code = 400


class BodyUnparseable(ClientInputError):
    stage = IngestionStage.BODY_UNPARSEABLE


class DatasetUnspecified(ClientInputError):
    stage = IngestionStage.DATASET_UNSPECIFIED


class FileMissing(ClientInputError):
    stage = IngestionStage.FILE_MISSING


class DatasetUnknown(ClientInputError):
    stage = IngestionStage.DATASET_UNKNOWN

    def __init__(self, dataset_id: str) -> None:
        super().__init__(f"Unsupported dataset: {dataset_id}")
        self.dataset_id = dataset_id
        self.log_line = f"Unknown dataset ({dataset_id})."


class HeaderUnreadable(ClientInputError):
    """The upload could not be decoded, or its first record is empty."""

    stage = IngestionStage.HEADER_INVALID


class MissingColumns(ClientInputError):
    """One or more required source columns are absent from the header."""

    stage = IngestionStage.MISSING_REQUIRED_COLUMNS

    def __init__(self, names: Sequence[str]) -> None:
        self.names = list(names)
        super().__init__(f"Missing required columns: {', '.join(self.names)}")


class RowsUnreadable(ClientInputError):
    """A data row could not be parsed as delimited text."""

    stage = IngestionStage.REMAP_COMPLETE


# -----------------------------------------------------------------------------
# 500 - configuration
# -----------------------------------------------------------------------------
class ConfigurationError(IngestionError):
    """Operator misconfiguration; not fixable by the uploader."""

    status_code = 500


class InvalidTableIdentifier(ConfigurationError):
    stage = IngestionStage.TABLE_ID_INVALID


class CredentialsUnresolved(ConfigurationError):
    stage = IngestionStage.CREDENTIALS_UNRESOLVED


class SchemaDefinitionError(ConfigurationError):
    """A schema definition file is missing or malformed."""

    stage = IngestionStage.DATASET_UNKNOWN
    log_line = "Could not load the dataset schema definition."


# -----------------------------------------------------------------------------
# 500 - external service
# -----------------------------------------------------------------------------
class ExternalServiceError(IngestionError):
    status_code = 500


class LoadRejected(ExternalServiceError):
    """The warehouse rejected the load job; ``detail`` is its message."""

    stage = IngestionStage.LOAD_FAILED

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail
