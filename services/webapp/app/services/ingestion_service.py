# =============================================================================
# Ingestion Service - CSV Upload Pipeline
# =============================================================================
# Runs one upload end to end:
#   authenticate -> parse body -> resolve dataset -> validate header ->
#   remap -> parse table id -> resolve credentials -> stage + load -> cleanup
# Each stage raises a typed IngestionError; the first failure ends the run
# and the transcript accumulated so far is returned with it.
# =============================================================================

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from app.auth.providers import AuthContext
from app.services.bigquery_service import BigQueryService, get_bigquery_service
from app.services.dataset_service import get_schema_registry
from mkt_ingest.csv_utils import remap, validate_header
from mkt_ingest.errors import (
    AuthenticationError,
    BodyUnparseable,
    CredentialsUnresolved,
    DatasetUnknown,
    DatasetUnspecified,
    FileMissing,
    IngestionError,
    LoadRejected,
)
from mkt_ingest.models import DatasetWithSchema, IngestionLog, IngestionStage
from mkt_ingest.registry import SchemaRegistry
from mkt_ingest.table_ids import TableIdentifier, parse_table_id

logger = logging.getLogger(__name__)

DATASET_FIELD = "datasetId"
FILE_FIELD = "file"

# Transcript line appended when an attempt stops at a stage
FAILURE_LINES = {
    IngestionStage.UNAUTHENTICATED: "Authentication required. Please log in again.",
    IngestionStage.BODY_UNPARSEABLE: "Could not read the request body.",
    IngestionStage.DATASET_UNSPECIFIED: "Dataset information is missing.",
    IngestionStage.FILE_MISSING: "No CSV file was provided.",
    IngestionStage.DATASET_UNKNOWN: "Unknown dataset.",
    IngestionStage.HEADER_INVALID: "Could not analyze the CSV header.",
    IngestionStage.MISSING_REQUIRED_COLUMNS: "Required columns are missing.",
    IngestionStage.REMAP_COMPLETE: "Could not convert the CSV rows.",
    IngestionStage.TABLE_ID_INVALID: "The BigQuery table id is invalid.",
    IngestionStage.CREDENTIALS_UNRESOLVED: "Could not resolve BigQuery credentials.",
    IngestionStage.LOAD_FAILED: "An error occurred during the BigQuery upload.",
}

UNEXPECTED_FAILURE_LINE = "An unexpected server error occurred."


@contextmanager
def scrubbed_buffer() -> Iterator[bytearray]:
    """Byte buffer that is zeroed and emptied when the block exits."""
    buffer = bytearray()
    try:
        yield buffer
    finally:
        buffer[:] = bytes(len(buffer))
        buffer.clear()


class IngestionOrchestrator:
    """Sequences the stages of one CSV upload."""

    def __init__(self, registry: SchemaRegistry, bigquery: BigQueryService) -> None:
        self._registry = registry
        self._bigquery = bigquery

    async def run(self, request: Request, auth: AuthContext) -> IngestionLog:
        """
        Handle one upload request.

        Args:
            request: Multipart request with ``datasetId`` and ``file`` fields
            auth: Authentication facts for this request

        Returns:
            The attempt's IngestionLog; ``status_code`` is 200 on success,
            401/400/500 on failure
        """
        log = IngestionLog()
        form: Optional[FormData] = None

        with scrubbed_buffer() as buffer:
            try:
                self._authenticate(auth)
                form = await self._parse_body(request)
                log.append("Upload request received.")
                await self._ingest(form, buffer, log)
            except IngestionError as exc:
                log.append(exc.log_line or FAILURE_LINES[exc.stage])
                log.fail(exc.stage, exc.message, exc.status_code)
                logger.warning(
                    f"Upload stopped at stage '{exc.stage.value}' "
                    f"({exc.status_code}): {exc.message}"
                )
            except Exception as exc:
                logger.exception("Upload failed with an unexpected error")
                log.append(UNEXPECTED_FAILURE_LINE)
                log.fail(
                    IngestionStage.LOAD_FAILED,
                    str(exc) or "Unexpected server error.",
                    500,
                )
            finally:
                if form is not None:
                    await form.close()

        return log

    async def _ingest(self, form: FormData, buffer: bytearray, log: IngestionLog) -> None:
        dataset_id = self._require_dataset_id(form)
        upload = self._require_file(form)
        dataset = await run_in_threadpool(self._resolve_dataset, dataset_id)

        log.append("Starting file upload...")
        log.append(f"Checking the structure of the {dataset.label} file...")
        buffer.extend(await upload.read())

        log.append("Loading schema definition...")
        header = await run_in_threadpool(validate_header, buffer, dataset.source_columns)
        log.append(f"CSV header verified: {len(dataset.columns)} required columns present.")

        log.append("Converting the upload to the BigQuery schema...")
        payload = await run_in_threadpool(remap, buffer, header, dataset.columns)
        log.append("File conversion complete.")

        log.append(f"Target BigQuery table: {dataset.table_id}")
        table = parse_table_id(dataset.table_id)

        qualified = await self._load(dataset, table, payload, log)

        log.append(f"Upload to BigQuery table {qualified} complete.")
        log.append("Deleting the uploaded CSV file from the server...")
        log.append("All steps completed.")
        log.succeed()

    async def _load(
        self,
        dataset: DatasetWithSchema,
        table: TableIdentifier,
        payload: bytes,
        log: IngestionLog,
    ) -> str:
        try:
            connection = await run_in_threadpool(self._bigquery.connect, table.project)
        except IngestionError:
            raise
        except Exception as exc:
            raise CredentialsUnresolved(
                f"Could not create the BigQuery client: {exc}"
            ) from exc

        log.append(f"Starting BigQuery load job in project {connection.project}...")
        try:
            return await run_in_threadpool(
                self._bigquery.load,
                connection,
                table,
                payload,
                dataset.columns,
                dataset.id,
                log,
            )
        except IngestionError:
            raise
        except Exception as exc:
            raise LoadRejected(str(exc) or "Unknown error during BigQuery load") from exc

    @staticmethod
    def _authenticate(auth: AuthContext) -> None:
        if not auth.ensure_authenticated():
            raise AuthenticationError(auth.failure_reason or "Authentication required.")

    @staticmethod
    async def _parse_body(request: Request) -> FormData:
        try:
            return await request.form()
        except Exception as exc:
            logger.warning(f"Failed to parse upload body: {exc}")
            raise BodyUnparseable("Invalid request.") from exc

    @staticmethod
    def _require_dataset_id(form: FormData) -> str:
        value = form.get(DATASET_FIELD)
        if not isinstance(value, str):
            raise DatasetUnspecified(f"The {DATASET_FIELD} field is required.")
        return value

    @staticmethod
    def _require_file(form: FormData) -> UploadFile:
        value = form.get(FILE_FIELD)
        if not isinstance(value, UploadFile):
            raise FileMissing(f"Attach a CSV file in the {FILE_FIELD} field.")
        return value

    def _resolve_dataset(self, dataset_id: str) -> DatasetWithSchema:
        dataset = self._registry.get(dataset_id)
        if dataset is None:
            raise DatasetUnknown(dataset_id)
        return dataset


def get_ingestion_orchestrator(
    registry: SchemaRegistry = Depends(get_schema_registry),
    bigquery: BigQueryService = Depends(get_bigquery_service),
) -> IngestionOrchestrator:
    """FastAPI dependency: orchestrator wired to the registry and BigQuery."""
    return IngestionOrchestrator(registry=registry, bigquery=bigquery)
