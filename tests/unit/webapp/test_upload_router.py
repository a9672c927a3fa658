# =============================================================================
# Upload Router Unit Tests
# =============================================================================
# Drives POST /upload end to end with a mocked BigQuery client. Every stage
# of the pipeline is exercised for its status code, error and transcript.
# =============================================================================

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.bigquery_service import BigQueryService, get_bigquery_service
from app.services.dataset_service import get_schema_registry
from app.services.ingestion_service import scrubbed_buffer
from mkt_ingest.models import DatasetDescriptor
from mkt_ingest.registry import SchemaRegistry

PEOPLE_CSV = "이름\n철수\n영희\n".encode("utf-8")


def _use_people_dataset(write_schema, table_id, rows=("이름,STRING,name",)):
    """Serve a registry whose 'people' dataset has the given table id and schema."""
    path = write_schema("people.csv", list(rows))
    descriptor = DatasetDescriptor(
        id="people",
        label="People Raw",
        table_label="People",
        schema_file="people.csv",
        table_id=table_id,
    )
    app.dependency_overrides[get_schema_registry] = lambda: SchemaRegistry(
        schema_dir=path.parent, datasets={"people": descriptor}
    )


def _upload(client, content=PEOPLE_CSV, dataset_id="people", filename="people.csv"):
    data = {} if dataset_id is None else {"datasetId": dataset_id}
    files = None if content is None else {"file": (filename, content, "text/csv")}
    return client.post("/upload", data=data, files=files)


class TestUploadSuccess:
    """Happy path."""

    def test_loads_remapped_csv(self, auth_client, bigquery_client):
        response = _upload(auth_client)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "error" not in body
        assert bigquery_client.loaded_payloads == ["name\n철수\n영희\n".encode("utf-8")]

    def test_transcript(self, auth_client):
        logs = _upload(auth_client).json()["logs"]

        assert logs[0] == "Upload request received."
        assert "Checking the structure of the People Raw file..." in logs
        assert "CSV header verified: 1 required columns present." in logs
        assert "Target BigQuery table: test-project.marketing.people_raw" in logs
        assert "Starting BigQuery load job in project test-project..." in logs
        assert "Upload to BigQuery table test-project.marketing.people_raw complete." in logs
        assert logs[-1] == "All steps completed."

    def test_transcript_order(self, auth_client):
        logs = _upload(auth_client).json()["logs"]

        header = logs.index("CSV header verified: 1 required columns present.")
        converted = logs.index("File conversion complete.")
        loaded = logs.index(
            "Upload to BigQuery table test-project.marketing.people_raw complete."
        )
        assert header < converted < loaded

    def test_staging_dir_empty_afterwards(self, auth_client, settings):
        _upload(auth_client)

        assert list(Path(settings.staging_dir).iterdir()) == []

    def test_extra_columns_and_bom(self, auth_client, bigquery_client):
        content = "\ufeff메모,이름\nx,철수\n".encode("utf-8")

        response = _upload(auth_client, content=content)

        assert response.status_code == 200
        assert bigquery_client.loaded_payloads == ["name\n철수\n".encode("utf-8")]

    def test_two_part_table_id_uses_configured_project(
        self, auth_client, write_schema, client_factory
    ):
        _use_people_dataset(write_schema, "marketing.people_raw")

        response = _upload(auth_client)

        assert response.status_code == 200
        client_factory.assert_called_once_with(project="fallback-project", credentials=None)
        assert (
            "Upload to BigQuery table fallback-project.marketing.people_raw complete."
            in response.json()["logs"]
        )


class TestUploadAuthentication:
    """401 responses."""

    def test_no_cookie(self, client, bigquery_client):
        response = _upload(client)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Your session has expired. Please log in again."
        assert body["logs"] == ["Authentication required. Please log in again."]
        bigquery_client.load_table_from_file.assert_not_called()

    def test_wrong_cookie(self, overrides):
        client = TestClient(app, cookies={"mkt-session": "forged"})

        assert _upload(client).status_code == 401


class TestUploadClientErrors:
    """400 responses."""

    def test_missing_dataset_id(self, auth_client):
        response = _upload(auth_client, dataset_id=None)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "datasetId" in body["error"]
        assert body["logs"][-1] == "Dataset information is missing."

    def test_missing_file(self, auth_client):
        response = _upload(auth_client, content=None)

        assert response.status_code == 400
        assert response.json()["logs"][-1] == "No CSV file was provided."

    def test_unknown_dataset(self, auth_client):
        response = _upload(auth_client, dataset_id="nope")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Unsupported dataset: nope"
        assert body["logs"] == ["Upload request received.", "Unknown dataset (nope)."]

    def test_unparseable_body(self, auth_client):
        response = auth_client.post(
            "/upload",
            content=b"garbage",
            headers={"content-type": "multipart/form-data"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request."
        assert body["logs"] == ["Could not read the request body."]

    def test_empty_file(self, auth_client, bigquery_client):
        response = _upload(auth_client, content=b"")

        assert response.status_code == 400
        assert response.json()["logs"][-1] == "Could not analyze the CSV header."
        bigquery_client.load_table_from_file.assert_not_called()

    def test_missing_required_column(self, auth_client, bigquery_client):
        response = _upload(auth_client, content="성명\n철수\n".encode("utf-8"))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Missing required columns: 이름"
        assert body["logs"][-1] == "Required columns are missing."
        assert "File conversion complete." not in body["logs"]
        bigquery_client.load_table_from_file.assert_not_called()

    def test_unreadable_rows(self, auth_client):
        response = _upload(auth_client, content='이름\n"unterminated\n'.encode("utf-8"))

        assert response.status_code == 400
        assert response.json()["logs"][-1] == "Could not convert the CSV rows."


class TestUploadServerErrors:
    """500 responses."""

    def test_invalid_table_id(self, auth_client, write_schema, bigquery_client):
        _use_people_dataset(write_schema, "people_raw")

        response = _upload(auth_client)

        assert response.status_code == 500
        body = response.json()
        assert "people_raw" in body["error"]
        assert body["logs"][-2:] == [
            "Target BigQuery table: people_raw",
            "The BigQuery table id is invalid.",
        ]
        bigquery_client.load_table_from_file.assert_not_called()

    def test_unresolved_credentials(self, auth_client, settings):
        app.dependency_overrides[get_bigquery_service] = lambda: BigQueryService(
            settings.model_copy(update={"google_application_credentials_json": "{bad"})
        )

        response = _upload(auth_client)

        assert response.status_code == 500
        assert response.json()["logs"][-1] == "Could not resolve BigQuery credentials."

    def test_load_rejected(self, auth_client, settings):
        client = MagicMock()
        client.load_table_from_file.return_value.result.side_effect = Exception(
            "Table not found: people_raw"
        )
        app.dependency_overrides[get_bigquery_service] = lambda: BigQueryService(
            settings, client_factory=MagicMock(return_value=client)
        )

        response = _upload(auth_client)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Table not found: people_raw"
        assert body["logs"][-1] == "An error occurred during the BigQuery upload."
        assert "Starting BigQuery load job in project test-project..." in body["logs"]
        assert list(Path(settings.staging_dir).iterdir()) == []

    def test_broken_schema_file(self, auth_client, write_schema):
        _use_people_dataset(write_schema, "p.d.t", rows=["이름,,name"])

        response = _upload(auth_client)

        assert response.status_code == 500
        assert response.json()["logs"][-1] == "Could not load the dataset schema definition."

    def test_client_construction_failure(self, auth_client, settings):
        """Any error while creating the client is reported as a credentials failure."""
        app.dependency_overrides[get_bigquery_service] = lambda: BigQueryService(
            settings, client_factory=MagicMock(side_effect=RuntimeError("transport down"))
        )

        response = _upload(auth_client)

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        body = response.json()
        assert body["success"] is False
        assert "transport down" in body["error"]
        assert body["logs"][0] == "Upload request received."
        assert body["logs"][-1] == "Could not resolve BigQuery credentials."

    def test_unexpected_load_error(self, auth_client):
        """Errors raised outside the load job's own handling still become LoadRejected."""
        service = MagicMock()
        service.connect.return_value = MagicMock(project="test-project")
        service.load.side_effect = RuntimeError("socket closed")
        app.dependency_overrides[get_bigquery_service] = lambda: service

        response = _upload(auth_client)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "socket closed"
        assert body["logs"][-1] == "An error occurred during the BigQuery upload."

    def test_unexpected_error_keeps_transcript(self, auth_client):
        """An error no stage anticipates still returns the JSON transcript."""
        registry = MagicMock()
        registry.get.side_effect = RuntimeError("disk gone")
        app.dependency_overrides[get_schema_registry] = lambda: registry

        response = _upload(auth_client)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "disk gone"
        assert body["logs"] == [
            "Upload request received.",
            "An unexpected server error occurred.",
        ]


class TestUploadThreading:
    """Blocking stages run in the threadpool, not on the event loop."""

    def test_parsing_stages_use_threadpool(self, auth_client):
        calls = []

        async def _recording_threadpool(func, *args, **kwargs):
            calls.append(getattr(func, "__name__", repr(func)))
            return func(*args, **kwargs)

        with patch(
            "app.services.ingestion_service.run_in_threadpool",
            side_effect=_recording_threadpool,
        ):
            response = _upload(auth_client)

        assert response.status_code == 200
        assert calls[:3] == ["_resolve_dataset", "validate_header", "remap"]
        assert calls[3:] == ["connect", "load"]


class TestScrubbedBuffer:
    """Tests for scrubbed_buffer."""

    def test_buffer_cleared_on_exit(self):
        with scrubbed_buffer() as buffer:
            buffer.extend(b"secret rows")

        assert buffer == bytearray()

    def test_buffer_cleared_on_error(self):
        with pytest.raises(ValueError):
            with scrubbed_buffer() as buffer:
                buffer.extend(b"secret rows")
                raise ValueError("boom")

        assert len(buffer) == 0
