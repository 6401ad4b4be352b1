from fastapi import APIRouter, Depends, Path, Query
from fastapi.concurrency import run_in_threadpool

from quickshare_api.backend import Backend, get_backend
from quickshare_api.schemas import DeleteFileResponse, ErrorResponse, FilePage

router = APIRouter()


@router.get("/files", response_model=FilePage, responses={500: {"model": ErrorResponse}})
async def list_files(
    page: int = Query(1, ge=1, description="1-based page number"),
    backend: Backend = Depends(get_backend),
):
    """
    One page of uploaded files, newest first, each with its public URL.

    Pages past the end come back empty; ``total_pages`` says where the end is.
    """
    return await run_in_threadpool(backend.files.list_page, page)


@router.delete(
    "/files/{name}",
    response_model=DeleteFileResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_file(
    name: str = Path(..., description="Name of the file as shown in the listing"),
    backend: Backend = Depends(get_backend),
):
    """
    Delete a file.

    A second request for the same name while the first is still running is
    rejected with 409; other files can be deleted meanwhile.
    """
    await run_in_threadpool(backend.files.delete, name)
    return DeleteFileResponse(name=name)
