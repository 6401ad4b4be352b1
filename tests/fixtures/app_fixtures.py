"""Settings, backend, and API client fixtures."""
import pytest
from fastapi.testclient import TestClient

from quickshare_api.adapters.storage import ObjectStore
from quickshare_api.adapters.table import SQLitePostsTable
from quickshare_api.backend import create_backend
from quickshare_api.config.settings import Settings
from quickshare_api.main import create_app
from tests.consts import (
    TEST_BUCKET_NAME,
    TEST_PAGE_SIZE,
    TEST_PUBLIC_BASE_URL,
    TEST_UPLOAD_PREFIX,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        deployment_mode="local-dev",
        s3_bucket_name=TEST_BUCKET_NAME,
        upload_prefix=TEST_UPLOAD_PREFIX,
        public_base_url=TEST_PUBLIC_BASE_URL,
        sqlite_db_path=str(tmp_path / "posts.db"),
        files_page_size=TEST_PAGE_SIZE,
        upload_concurrency=2,
    )


@pytest.fixture
def store(mocked_aws) -> ObjectStore:
    return ObjectStore(
        bucket_name=TEST_BUCKET_NAME,
        s3_client=mocked_aws,
        public_base_url=TEST_PUBLIC_BASE_URL,
    )


@pytest.fixture
def posts_table(tmp_path) -> SQLitePostsTable:
    return SQLitePostsTable(str(tmp_path / "posts.db"))


@pytest.fixture
def backend(settings, mocked_aws):
    return create_backend(settings, s3_client=mocked_aws)


@pytest.fixture
def client(backend):
    with TestClient(create_app(backend.settings, backend=backend)) as test_client:
        yield test_client
