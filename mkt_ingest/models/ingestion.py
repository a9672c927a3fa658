# =============================================================================
# Ingestion Models Module
# =============================================================================
# Defines models for one upload attempt:
# - IngestionStage: The ordered stages an upload passes through
# - IngestionLog: Progress transcript accumulated during one attempt
# - UploadResult: JSON body returned by POST /upload
# =============================================================================

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

__all__ = [
    "IngestionStage",
    "IngestionLog",
    "UploadResult",
]

logger = logging.getLogger(__name__)


class IngestionStage(str, Enum):
    """
    Stages of an upload, in execution order.

    A failed attempt reports the stage it stopped at; a successful one ends
    at SUCCESS.
    """

    UNAUTHENTICATED = "unauthenticated"
    BODY_UNPARSEABLE = "body_unparseable"
    DATASET_UNSPECIFIED = "dataset_unspecified"
    FILE_MISSING = "file_missing"
    DATASET_UNKNOWN = "dataset_unknown"
    HEADER_INVALID = "header_invalid"
    MISSING_REQUIRED_COLUMNS = "missing_required_columns"
    REMAP_COMPLETE = "remap_complete"
    TABLE_ID_INVALID = "table_id_invalid"
    CREDENTIALS_UNRESOLVED = "credentials_unresolved"
    LOAD_FAILED = "load_failed"
    SUCCESS = "success"


class UploadResult(BaseModel):
    """Response body for an upload attempt, success or failure."""

    success: bool
    logs: list[str] = Field(default_factory=list)
    error: Optional[str] = None


@dataclass
class IngestionLog:
    """
    Ordered, human-readable transcript of one upload attempt.

    This is the only audit trail of an attempt. Lines are returned verbatim
    to the caller and mirrored to the process log.
    """

    lines: list[str] = field(default_factory=list)
    stage: IngestionStage = IngestionStage.UNAUTHENTICATED
    success: bool = False
    error: Optional[str] = None
    status_code: int = 200

    def append(self, message: str) -> None:
        self.lines.append(message)
        logger.info(message)

    def succeed(self) -> None:
        self.stage = IngestionStage.SUCCESS
        self.success = True
        self.error = None
        self.status_code = 200

    def fail(self, stage: IngestionStage, error: str, status_code: int) -> None:
        self.stage = stage
        self.success = False
        self.error = error
        self.status_code = status_code

    def to_result(self) -> UploadResult:
        return UploadResult(success=self.success, logs=list(self.lines), error=self.error)
