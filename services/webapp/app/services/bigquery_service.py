# =============================================================================
# BigQuery Service - Append-Only Bulk Loads
# =============================================================================
# Resolves credentials and project from settings, stages remapped CSV bytes
# to a temp file and appends them to a warehouse table with a load job.
# =============================================================================

import base64
import binascii
import json
import logging
import secrets
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Sequence

from fastapi import Depends
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import bigquery
from google.oauth2 import service_account

from app.config import Settings, get_settings
from mkt_ingest.errors import CredentialsUnresolved, LoadRejected
from mkt_ingest.models import IngestionLog, SchemaField
from mkt_ingest.table_ids import TableIdentifier

logger = logging.getLogger(__name__)

STAGED_FILE_PREFIX = "mkt-data"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


def parse_service_account_json(value: Optional[str]) -> Optional[dict[str, Any]]:
    """
    Parse service-account JSON given either raw or base64-encoded.

    Returns:
        The decoded mapping, or None if ``value`` is empty or neither form
        parses to a JSON object
    """
    if not value:
        return None

    parsed = _load_json_object(value)
    if parsed is not None:
        return parsed

    try:
        decoded = base64.b64decode(value).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    if not decoded or decoded == value:
        return None
    return _load_json_object(decoded)


def _load_json_object(text: str) -> Optional[dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def staged_file_name(dataset_id: str) -> str:
    """Collision-resistant file name: dataset id + epoch millis + random hex."""
    millis = int(time.time() * 1000)
    return f"{STAGED_FILE_PREFIX}-{dataset_id}-{millis}-{secrets.token_hex(6)}.csv"


@contextmanager
def staged_file(
    payload: bytes, dataset_id: str, staging_dir: Path, log: IngestionLog
) -> Iterator[Path]:
    """
    Write ``payload`` to a uniquely named temp file for the life of the block.

    The file is removed on every exit path. A failed removal is recorded in
    the transcript and the process log, and never replaces the block's own
    outcome.
    """
    path = Path(staging_dir) / staged_file_name(dataset_id)
    try:
        with open(path, "xb") as out:
            out.write(payload)
        logger.info(f"Staged {len(payload)} bytes at {path}")
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
            logger.info(f"Cleaned up staged file: {path}")
        except OSError as cleanup_error:
            log.append("Could not delete the staged file; ignoring.")
            logger.warning(f"Failed to clean up staged file {path}: {cleanup_error}")


@dataclass
class BigQueryConnection:
    """A BigQuery client bound to the project it will load into."""

    client: Any
    project: str


class BigQueryService:
    """Service for BigQuery load operations."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Callable[..., Any] = bigquery.Client,
    ) -> None:
        settings = settings or get_settings()
        self._credentials_json = settings.google_application_credentials_json
        self._project_id = settings.bigquery_project_id
        self._staging_dir = Path(settings.staging_dir)
        self._client_factory = client_factory

    def resolve_project(self, preferred: Optional[str] = None) -> str:
        """
        Pick the project a load runs in.

        Order: the table's own project, the service account's project_id,
        then the configured project id.

        Raises:
            CredentialsUnresolved: If no project can be determined
        """
        service_account_info = parse_service_account_json(self._credentials_json)
        project = (
            preferred
            or (service_account_info or {}).get("project_id")
            or self._project_id
        )
        if not project:
            raise CredentialsUnresolved(
                "Could not determine the BigQuery project. Set "
                "GOOGLE_APPLICATION_CREDENTIALS_JSON or BIGQUERY_PROJECT_ID."
            )
        return project

    def _service_account_credentials(self) -> Optional[service_account.Credentials]:
        """
        Credentials from GOOGLE_APPLICATION_CREDENTIALS_JSON.

        Returns:
            Service-account credentials, or None to fall back to the ambient
            application-default credentials

        Raises:
            CredentialsUnresolved: If the JSON is set but unusable
        """
        if not self._credentials_json:
            return None

        info = parse_service_account_json(self._credentials_json)
        if info is None:
            raise CredentialsUnresolved(
                "GOOGLE_APPLICATION_CREDENTIALS_JSON could not be parsed. "
                "Provide raw JSON or base64-encoded JSON."
            )
        if not info.get("client_email") or not info.get("private_key"):
            raise CredentialsUnresolved(
                "GOOGLE_APPLICATION_CREDENTIALS_JSON has no client_email or private_key."
            )

        info = {**info}
        info.setdefault("token_uri", DEFAULT_TOKEN_URI)
        try:
            return service_account.Credentials.from_service_account_info(info)
        except ValueError as exc:
            raise CredentialsUnresolved(
                f"Invalid service account credentials: {exc}"
            ) from exc

    def connect(self, preferred_project: Optional[str] = None) -> BigQueryConnection:
        """
        Create a client for the resolved project.

        Args:
            preferred_project: Project named by the table identifier, if any

        Raises:
            CredentialsUnresolved: If project or credentials cannot be resolved
        """
        project = self.resolve_project(preferred_project)
        credentials = self._service_account_credentials()

        try:
            client = self._client_factory(project=project, credentials=credentials)
        except DefaultCredentialsError as exc:
            raise CredentialsUnresolved(
                f"No BigQuery credentials available: {exc}"
            ) from exc

        return BigQueryConnection(client=client, project=project)

    @staticmethod
    def build_job_config(fields: Sequence[SchemaField]) -> bigquery.LoadJobConfig:
        """Append-only CSV load whose column types come from the schema as declared."""
        return bigquery.LoadJobConfig(
            source_format=bigquery.SourceFormat.CSV,
            schema=[
                bigquery.SchemaField(
                    field.target_name,
                    field.data_type,
                    mode="NULLABLE",
                    description="",
                )
                for field in fields
            ],
            write_disposition=bigquery.WriteDisposition.WRITE_APPEND,
            skip_leading_rows=1,
            autodetect=False,
        )

    def load(
        self,
        connection: BigQueryConnection,
        table: TableIdentifier,
        payload: bytes,
        fields: Sequence[SchemaField],
        dataset_id: str,
        log: IngestionLog,
    ) -> str:
        """
        Append CSV bytes to a table and wait for the job to finish.

        Args:
            connection: Client and resolved project from connect()
            table: Target table
            payload: Remapped CSV including its header row
            fields: Schema fields, for the load job's column types
            dataset_id: Upload dataset id, used in the staged file name
            log: Transcript of the current attempt

        Returns:
            The fully-qualified table id that was loaded

        Raises:
            LoadRejected: If staging the file or the load job fails
        """
        table_ref = bigquery.TableReference(
            bigquery.DatasetReference(connection.project, table.dataset),
            table.table,
        )
        job_config = self.build_job_config(fields)

        try:
            with staged_file(payload, dataset_id, self._staging_dir, log) as path:
                with open(path, "rb") as source:
                    job = connection.client.load_table_from_file(
                        source, table_ref, job_config=job_config
                    )
                job.result()
        except Exception as exc:
            logger.error(f"BigQuery load into {table_ref} failed: {exc}")
            raise LoadRejected(str(exc) or "Unknown error during BigQuery load") from exc

        return f"{connection.project}.{table.dataset}.{table.table}"


def get_bigquery_service(settings: Settings = Depends(get_settings)) -> BigQueryService:
    """FastAPI dependency: BigQuery service for the current settings."""
    return BigQueryService(settings)
