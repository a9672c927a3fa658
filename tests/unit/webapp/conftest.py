# =============================================================================
# Webapp test fixtures
# =============================================================================

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.auth.providers import compute_session_value
from app.config import Settings, get_settings
from app.main import app
from app.services.bigquery_service import BigQueryService, get_bigquery_service
from app.services.dataset_service import get_schema_registry

TEST_PASSWORD = "s3cret"
SESSION_COOKIE = "mkt-session"


@pytest.fixture
def settings(tmp_path, schema_dir):
    """Settings with a password, a fallback project and a private staging dir."""
    staging_dir = tmp_path / "staging"
    staging_dir.mkdir()
    return Settings(
        APP_ENV="development",
        APP_LOGIN_PASSWORD=TEST_PASSWORD,
        GOOGLE_APPLICATION_CREDENTIALS_JSON=None,
        BIGQUERY_PROJECT_ID="fallback-project",
        SCHEMA_DIR=schema_dir,
        STAGING_DIR=staging_dir,
    )


@pytest.fixture
def bigquery_client():
    """
    Mock BigQuery client.

    Every load job records the bytes it was handed in ``loaded_payloads``.
    """
    client = MagicMock()
    client.loaded_payloads = []

    def _load_table_from_file(source, table_ref, job_config=None):
        client.loaded_payloads.append(source.read())
        return MagicMock()

    client.load_table_from_file.side_effect = _load_table_from_file
    return client


@pytest.fixture
def client_factory(bigquery_client):
    return MagicMock(return_value=bigquery_client)


@pytest.fixture
def overrides(settings, registry, client_factory):
    """Route settings, schemas and BigQuery through test doubles."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_schema_registry] = lambda: registry
    app.dependency_overrides[get_bigquery_service] = lambda: BigQueryService(
        settings, client_factory=client_factory
    )
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(overrides):
    """Client without a session cookie."""
    return TestClient(app)


@pytest.fixture
def auth_client(overrides):
    """Client carrying a valid session cookie."""
    return TestClient(app, cookies={SESSION_COOKIE: compute_session_value(TEST_PASSWORD)})
