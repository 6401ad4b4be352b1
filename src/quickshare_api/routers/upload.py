import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from quickshare_api.backend import Backend, get_backend
from quickshare_api.errors import error_response
from quickshare_api.exceptions import BackendError, UploadFailedError
from quickshare_api.schemas import (
    BatchUploadResponse,
    ErrorResponse,
    UploadedFile,
    UploadResponse,
)
from quickshare_api.services.uploads import LocalFile, UploadTask

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _uploaded(task: UploadTask) -> UploadedFile:
    return UploadedFile(
        file_name=task.file.name,
        file_path=task.result.path,
        public_url=task.result.public_url,
        size=task.result.size,
        mimetype=task.result.mime_type,
    )


async def _read_upload(upload: UploadFile, max_size: int) -> Optional[LocalFile]:
    content = await upload.read()
    if len(content) > max_size:
        return None
    return LocalFile(name=upload.filename or "file", content=content, content_type=upload.content_type)


@router.post("/upload", response_model=UploadResponse, responses=ERROR_RESPONSES)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    backend: Backend = Depends(get_backend),
):
    """
    Store one file under a fresh, collision-free name.

    The multipart field is ``file``. Responds with where the file landed and
    its public link; ``size`` and ``mimetype`` echo the upload itself.
    """
    if file is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "No file uploaded")

    local_file = await _read_upload(file, backend.settings.max_upload_size_bytes)
    if local_file is None:
        return error_response(413, "File too large")

    try:
        stored = await run_in_threadpool(backend.orchestrator().upload_one, local_file)
    except BackendError as e:
        logger.error(f"Upload error: {e}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to upload file",
            details=str(e),
        )

    backend.file_count.invalidate()
    return UploadResponse(
        file_name=local_file.name,
        file_path=stored.path,
        public_url=stored.public_url,
        size=stored.size,
        mimetype=stored.mime_type,
    )


@router.get("/upload", status_code=status.HTTP_405_METHOD_NOT_ALLOWED, response_model=ErrorResponse)
async def upload_method_not_allowed():
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": "Method not allowed"},
    )


@router.post("/uploads", response_model=BatchUploadResponse, responses=ERROR_RESPONSES)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None),
    backend: Backend = Depends(get_backend),
):
    """
    Store several files at once (repeated multipart field ``files``).

    Uploads run concurrently up to the configured limit and all of them
    settle before the response. If any failed the response is a 500 naming
    the first failure; the files that did upload are listed under
    ``uploaded`` and stay stored.
    """
    local_files = []
    for upload in files or []:
        local_file = await _read_upload(upload, backend.settings.max_upload_size_bytes)
        if local_file is None:
            return error_response(413, "File too large", details=upload.filename)
        local_files.append(local_file)

    orchestrator = backend.orchestrator()
    try:
        tasks = await orchestrator.upload_all(local_files)
    except UploadFailedError as e:
        backend.file_count.invalidate()
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to upload file",
            details=str(e),
            uploaded=[_uploaded(task).model_dump(by_alias=True) for task in e.succeeded],
        )

    backend.file_count.invalidate()
    return BatchUploadResponse(
        summary=orchestrator.summary,
        files=[_uploaded(task) for task in tasks],
    )
