import threading
import time

import pytest

from quickshare_api.exceptions import BackendError, UploadFailedError, UploadValidationError
from quickshare_api.services.uploads import (
    LocalFile,
    MonotonicMillis,
    UploadOrchestrator,
    UploadTask,
    make_object_name,
    sanitize_file_name,
)


class FakeStore:
    """Records uploads, reports progress in two chunks and tracks peak concurrency."""

    def __init__(self, fail_on=(), delay=0.02):
        self.fail_on = set(fail_on)
        self.delay = delay
        self.uploaded = {}
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def upload(self, path, data, content_type=None, upsert=False, progress_callback=None):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.delay)
            if any(path.endswith(name) for name in self.fail_on):
                raise BackendError("The resource already exists")
            if progress_callback:
                half = len(data) // 2
                progress_callback(half)
                progress_callback(len(data) - half)
            self.uploaded[path] = (data, content_type)
            return path
        finally:
            with self._lock:
                self.active -= 1

    def get_public_url(self, path):
        return f"https://files.example.test/{path}"


def files(count):
    return [LocalFile(name=f"file{i}.txt", content=b"x" * (i + 1) * 10, content_type="text/plain") for i in range(count)]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("report.pdf", "report.pdf"),
        ("my file (1).pdf", "my-file--1-.pdf"),
        ("résumé.docx", "r-sum-.docx"),
        ("a_b-c.tar.gz", "a_b-c.tar.gz"),
    ],
)
def test_sanitize_file_name(name, expected):
    assert sanitize_file_name(name) == expected


def test_make_object_name():
    assert make_object_name("my file (1).pdf", stamp=123) == "123-my-file--1-.pdf"


def test_object_names_never_repeat():
    names = {make_object_name("same.txt") for _ in range(500)}
    assert len(names) == 500


def test_monotonic_millis_is_strictly_increasing():
    clock = MonotonicMillis()
    stamps = [clock.next() for _ in range(100)]
    assert stamps == sorted(set(stamps))


def test_local_file_from_path(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello")

    local_file = LocalFile.from_path(path)

    assert local_file.name == "notes.txt"
    assert local_file.size == 5
    assert local_file.content_type == "text/plain"


async def test_upload_all_requires_files():
    store = FakeStore()
    orchestrator = UploadOrchestrator(store, "user-uploads")

    with pytest.raises(UploadValidationError, match="Please select a file first"):
        await orchestrator.upload_all([])
    assert store.uploaded == {}


async def test_upload_all_uploads_every_file():
    store = FakeStore()
    orchestrator = UploadOrchestrator(store, "user-uploads", max_concurrency=4)

    tasks = await orchestrator.upload_all(files(3))

    assert orchestrator.summary == "3 of 3 complete"
    assert len(store.uploaded) == 3
    for task in tasks:
        assert task.progress_percent == 100
        assert task.error is None
        assert task.result.path.startswith("user-uploads/")
        assert task.result.path.endswith(f"-{task.file.name}")
        assert task.result.public_url == f"https://files.example.test/{task.result.path}"


async def test_upload_all_respects_concurrency_limit():
    store = FakeStore(delay=0.05)
    orchestrator = UploadOrchestrator(store, "user-uploads", max_concurrency=2)

    await orchestrator.upload_all(files(6))

    assert store.peak <= 2
    assert orchestrator.completed == 6


async def test_progress_is_reported():
    seen = []
    store = FakeStore()
    orchestrator = UploadOrchestrator(
        store,
        "user-uploads",
        on_progress=lambda task: seen.append((task.file.name, task.progress_percent)),
    )

    await orchestrator.upload_all(files(1))

    assert seen == [("file0.txt", 50), ("file0.txt", 100), ("file0.txt", 100)]


async def test_partial_failure_lets_siblings_finish():
    store = FakeStore(fail_on=["file1.txt"])
    orchestrator = UploadOrchestrator(store, "user-uploads")

    with pytest.raises(UploadFailedError) as exc_info:
        await orchestrator.upload_all(files(3))

    error = exc_info.value
    assert str(error) == "The resource already exists"
    assert error.file_name == "file1.txt"
    assert [task.file.name for task in error.succeeded] == ["file0.txt", "file2.txt"]
    assert len(store.uploaded) == 2
    assert orchestrator.summary == "2 of 3 complete"
    assert orchestrator.tasks[1].error == "The resource already exists"
    assert orchestrator.tasks[1].settled


def test_max_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        UploadOrchestrator(FakeStore(), "user-uploads", max_concurrency=0)


def test_progress_from_concurrent_transfer_threads():
    task = UploadTask(file=LocalFile(name="big.bin", content=b"x" * 8000))

    def send():
        for _ in range(100):
            task.advance(1)

    threads = [threading.Thread(target=send) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert task._sent == 800
    assert task.progress_percent == 10
