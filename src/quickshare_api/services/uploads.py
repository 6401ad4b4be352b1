"""
Multi-file upload orchestration.

One upload per selected file, all dispatched together but never more than
``max_concurrency`` in flight. Each file gets a fresh object name so two
uploads can never land on the same key. Every upload is allowed to settle;
a failure does not cancel its siblings and nothing that already succeeded is
rolled back.
"""

import asyncio
import logging
import mimetypes
import re
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from quickshare_api.adapters.storage import ObjectStore
from quickshare_api.exceptions import UploadFailedError, UploadValidationError
from quickshare_api.schemas import StoredFile
from quickshare_api.utils.decorators import async_log_execution_time

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


class MonotonicMillis:
    """Millisecond wall clock that never hands out the same value twice."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last = 0

    def next(self) -> int:
        with self._lock:
            self._last = max(int(time.time() * 1000), self._last + 1)
            return self._last


_clock = MonotonicMillis()


def sanitize_file_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("-", name) or "file"


def make_object_name(original_name: str, stamp: Optional[int] = None) -> str:
    """``<millis>-<sanitized name>``, e.g. ``1718000000000-my-report.pdf``."""
    if stamp is None:
        stamp = _clock.next()
    return f"{stamp}-{sanitize_file_name(original_name)}"


@dataclass
class LocalFile:
    """A file picked for upload."""
    name: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "LocalFile":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, content=path.read_bytes(), content_type=content_type)


@dataclass
class UploadTask:
    file: LocalFile
    progress_percent: int = 0
    result: Optional[StoredFile] = None
    error: Optional[str] = None
    _sent: int = field(default=0, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def settled(self) -> bool:
        return self.result is not None or self.error is not None

    def advance(self, nbytes: int) -> None:
        """Record ``nbytes`` more sent; boto3 may call this from several transfer threads."""
        with self._lock:
            self._sent += nbytes
            if self.file.size:
                self.progress_percent = min(100, round(self._sent * 100 / self.file.size))


class UploadOrchestrator:
    """Uploads a batch of local files to the object store."""

    def __init__(
        self,
        store: ObjectStore,
        prefix: str,
        max_concurrency: int = 4,
        on_progress: Optional[Callable[[UploadTask], None]] = None,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.store = store
        self.prefix = prefix.strip("/")
        self.max_concurrency = max_concurrency
        self.on_progress = on_progress
        self.tasks: List[UploadTask] = []

    @property
    def completed(self) -> int:
        return sum(1 for task in self.tasks if task.result is not None)

    @property
    def summary(self) -> str:
        return f"{self.completed} of {len(self.tasks)} complete"

    def _notify(self, task: UploadTask) -> None:
        if self.on_progress is not None:
            self.on_progress(task)

    def upload_one(
        self,
        file: LocalFile,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> StoredFile:
        """Store a single file under a fresh name and describe the result."""
        name = make_object_name(file.name)
        path = f"{self.prefix}/{name}" if self.prefix else name
        stored_path = self.store.upload(
            path,
            file.content,
            content_type=file.content_type,
            upsert=False,
            progress_callback=progress_callback,
        )
        return StoredFile(
            name=name,
            path=stored_path,
            public_url=self.store.get_public_url(stored_path),
            size=file.size,
            mime_type=file.content_type,
            created_at=datetime.now(timezone.utc),
        )

    def _upload(self, task: UploadTask) -> None:
        def on_chunk(nbytes: int) -> None:
            task.advance(nbytes)
            self._notify(task)

        task.result = self.upload_one(task.file, progress_callback=on_chunk)
        task.progress_percent = 100
        self._notify(task)

    async def _run(self, task: UploadTask, semaphore: asyncio.Semaphore) -> None:
        async with semaphore:
            try:
                await asyncio.to_thread(self._upload, task)
            except Exception as e:
                task.error = str(e)
                logger.error(f"Upload of {task.file.name} failed: {task.error}")
                self._notify(task)
                raise

    @async_log_execution_time
    async def upload_all(self, files: Sequence[LocalFile]) -> List[UploadTask]:
        """
        Upload every file and wait for all of them to settle.

        Raises:
            UploadValidationError: ``files`` is empty; nothing is sent.
            UploadFailedError: at least one upload failed. Carries the first
                failing file's error and every task, including the ones that
                succeeded and stay stored.
        """
        if not files:
            raise UploadValidationError("Please select a file first")

        self.tasks = [UploadTask(file=file) for file in files]
        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(self._run(task, semaphore) for task in self.tasks),
            return_exceptions=True,
        )

        logger.info(f"Upload batch finished: {self.summary}")
        for task, outcome in zip(self.tasks, outcomes):
            if isinstance(outcome, BaseException):
                raise UploadFailedError(task.error, file_name=task.file.name, tasks=self.tasks) from outcome
        return self.tasks
