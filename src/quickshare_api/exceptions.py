"""Exceptions raised by the Quickshare adapters and services."""
from typing import List, Optional


class QuickshareError(Exception):
    """Base class."""


class BackendError(QuickshareError):
    """A call to the object store or table failed; the message is the service's own."""


class NotFoundError(QuickshareError):
    pass


class DeletionInProgressError(QuickshareError):
    pass


class UploadValidationError(QuickshareError):
    pass


class PostValidationError(QuickshareError):
    pass


class UploadFailedError(QuickshareError):
    """At least one file of a batch failed after every upload settled."""

    def __init__(self, message: str, file_name: Optional[str] = None, tasks: Optional[List] = None):
        super().__init__(message)
        self.file_name = file_name
        self.tasks = tasks or []

    @property
    def succeeded(self) -> List:
        return [task for task in self.tasks if task.result is not None]
