"""
The configured handle to the hosted backend.

Built once at startup by ``create_backend`` and passed explicitly: the app
keeps it on ``app.state.backend``, routers receive it through
``get_backend``, the CLI builds one per command.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from fastapi import Request

from quickshare_api.adapters.storage import ObjectStore
from quickshare_api.adapters.table import BasePostsTable, TableFactory
from quickshare_api.config.settings import Settings
from quickshare_api.services.files import FileCatalog, TotalCountCache
from quickshare_api.services.posts import PostService
from quickshare_api.services.uploads import UploadOrchestrator

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    settings: Settings
    store: ObjectStore
    posts_table: BasePostsTable
    file_count: TotalCountCache
    files: FileCatalog = field(init=False)
    posts: PostService = field(init=False)

    def __post_init__(self):
        self.files = FileCatalog(
            self.store,
            self.settings.upload_prefix,
            self.settings.files_page_size,
            self.file_count,
        )
        self.posts = PostService(self.posts_table)

    def orchestrator(self, on_progress=None) -> UploadOrchestrator:
        """A fresh orchestrator for one upload session."""
        return UploadOrchestrator(
            self.store,
            self.settings.upload_prefix,
            max_concurrency=self.settings.upload_concurrency,
            on_progress=on_progress,
        )


def create_backend(
    settings: Settings,
    s3_client: Optional["S3Client"] = None,
    posts_table: Optional[BasePostsTable] = None,
) -> Backend:
    """Build the backend handle from settings; clients may be injected."""
    store = ObjectStore.from_settings(settings, s3_client=s3_client)
    table = posts_table or TableFactory.get_table(settings)
    file_count = TotalCountCache(
        store,
        settings.upload_prefix,
        ttl_seconds=settings.count_cache_ttl_seconds,
    )
    logger.info(f"Backend ready in {settings.deployment_mode} mode")
    return Backend(settings=settings, store=store, posts_table=table, file_count=file_count)


def get_backend(request: Request) -> Backend:
    """FastAPI dependency returning the app's backend handle."""
    return request.app.state.backend
