"""
Paginated file listing and delete-with-confirmation.

``FileCatalog`` is the shared, request-safe part (page fetches, deletes,
the cached total count). ``FileListView`` is one viewer's screen state on
top of it: current page, the entries shown, the pending confirmation.
"""

import logging
import math
import threading
import time
from typing import Callable, List, Optional, Set

from quickshare_api.adapters.storage import ObjectStore
from quickshare_api.exceptions import (
    BackendError,
    DeletionInProgressError,
    NotFoundError,
)
from quickshare_api.schemas import FilePage, StoredFile
from quickshare_api.services.confirm import ConfirmDialog
from quickshare_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)


class TotalCountCache:
    """
    Number of files under a prefix, refreshed lazily.

    The object store has no count primitive, so counting walks the whole
    prefix. The value is reused until it is older than ``ttl_seconds`` or
    someone calls ``invalidate()`` after a mutation.
    """

    def __init__(
        self,
        store: ObjectStore,
        prefix: str,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: Optional[int] = None
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def get(self) -> int:
        with self._lock:
            if self._value is None or self._clock() - self._fetched_at >= self.ttl_seconds:
                self._value = self.store.count(self.prefix)
                self._fetched_at = self._clock()
                logger.debug(f"Refreshed file count for {self.prefix!r}: {self._value}")
            return self._value

    def invalidate(self) -> None:
        with self._lock:
            self._value = None


class FileCatalog:
    """Pages of stored files, newest first, and deletion by name."""

    def __init__(self, store: ObjectStore, prefix: str, page_size: int, file_count: TotalCountCache):
        self.store = store
        self.prefix = prefix.strip("/")
        self.page_size = page_size
        self.file_count = file_count
        self._deleting: Set[str] = set()
        self._lock = threading.Lock()

    def path_for(self, name: str) -> str:
        return f"{self.prefix}/{name}" if self.prefix else name

    def total_pages(self, total_count: int) -> int:
        return max(1, math.ceil(total_count / self.page_size))

    @log_execution_time
    def list_page(self, page: int = 1) -> FilePage:
        """
        Fetch one page of files.

        A page past the end comes back empty rather than failing.
        """
        if page < 1:
            raise ValueError("page must be at least 1")

        objects = self.store.list(
            self.prefix,
            limit=self.page_size,
            offset=(page - 1) * self.page_size,
            sort_by="created_at",
            order="desc",
            with_metadata=True,
        )
        total_count = self.file_count.get()

        files = [
            StoredFile(
                name=obj.name,
                path=obj.path,
                public_url=self.store.get_public_url(obj.path),
                size=obj.size,
                mime_type=obj.mime_type,
                created_at=obj.created_at,
            )
            for obj in objects
        ]
        return FilePage(
            files=files,
            page=page,
            page_size=self.page_size,
            total_count=total_count,
            total_pages=self.total_pages(total_count),
        )

    def is_deleting(self, name: str) -> bool:
        with self._lock:
            return name in self._deleting

    def delete(self, name: str) -> None:
        """
        Remove one file by name.

        Raises:
            DeletionInProgressError: a delete of the same name is still running.
            NotFoundError: no such file.
            BackendError: the store refused.
        """
        with self._lock:
            if name in self._deleting:
                raise DeletionInProgressError(f"'{name}' is already being deleted")
            self._deleting.add(name)

        try:
            path = self.path_for(name)
            if not self.store.exists(path):
                raise NotFoundError(f"File '{name}' not found")
            self.store.remove([path])
            self.file_count.invalidate()
            logger.info(f"Deleted file {name}")
        finally:
            with self._lock:
                self._deleting.discard(name)


class FileListView:
    """One viewer's file list screen."""

    def __init__(self, catalog: FileCatalog):
        self.catalog = catalog
        self.page = 1
        self.files: List[StoredFile] = []
        self.total_count = 0
        self.total_pages = 1
        self.loading = False
        self.error: Optional[str] = None
        self.deleting: Set[str] = set()
        self.file_to_delete: Optional[str] = None
        self.dialog: Optional[ConfirmDialog] = None

    def load(self, page: Optional[int] = None) -> Optional[FilePage]:
        """Fetch ``page`` (or the current page again). Failures land in ``error``."""
        if page is not None:
            self.page = page
        self.loading = True
        self.error = None
        try:
            result = self.catalog.list_page(self.page)
        except BackendError as e:
            logger.error(f"Error fetching files: {e}")
            self.error = str(e)
            return None
        finally:
            self.loading = False

        self.files = result.files
        self.total_count = result.total_count
        self.total_pages = result.total_pages
        return result

    def request_delete(self, name: str) -> Optional[ConfirmDialog]:
        """Open the confirmation for ``name``; ``None`` while that entry is already being deleted."""
        if name in self.deleting:
            return None
        self.file_to_delete = name
        self.dialog = ConfirmDialog(
            on_confirm=self.confirm_delete,
            on_cancel=self.cancel_delete,
            message=f"Are you sure you want to delete {name}?",
        )
        return self.dialog

    def cancel_delete(self) -> None:
        self.file_to_delete = None
        self.dialog = None

    def confirm_delete(self) -> bool:
        """
        Delete the pending entry, then re-fetch.

        If the current page no longer exists afterwards the view moves to the
        last page that does.
        """
        name = self.file_to_delete
        if name is None:
            return False

        self.deleting.add(name)
        if self.dialog is not None:
            self.dialog.is_loading = True
        try:
            self.catalog.delete(name)
        except (BackendError, NotFoundError, DeletionInProgressError) as e:
            logger.error(f"Error deleting file: {e}")
            self.error = str(e)
            return False
        finally:
            self.deleting.discard(name)
            self.file_to_delete = None
            self.dialog = None

        if self.load() is not None and self.page > self.total_pages:
            self.load(self.total_pages)
        return True
