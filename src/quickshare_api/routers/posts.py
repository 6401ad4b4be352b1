from typing import List

from fastapi import APIRouter, Depends, Path, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from quickshare_api.backend import Backend, get_backend
from quickshare_api.schemas import DeletePostResponse, ErrorResponse, PostIn, TextPost

router = APIRouter()

POST_ID = Path(..., description="Identifier of the post")


@router.get("/posts", response_model=List[TextPost])
async def list_posts(backend: Backend = Depends(get_backend)):
    """All posts, newest first."""
    return await run_in_threadpool(backend.posts.list_posts)


@router.post(
    "/posts",
    response_model=TextPost,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_post(body: PostIn, backend: Backend = Depends(get_backend)):
    return await run_in_threadpool(backend.posts.save, body.title, body.content)


@router.put(
    "/posts/{post_id}",
    response_model=TextPost,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_post(body: PostIn, post_id: str = POST_ID, backend: Backend = Depends(get_backend)):
    """Replace a post's title and content; stamps ``updated_at``."""
    return await run_in_threadpool(backend.posts.save, body.title, body.content, post_id)


@router.get("/posts/{post_id}", response_model=TextPost, responses={404: {"model": ErrorResponse}})
async def get_post(post_id: str = POST_ID, backend: Backend = Depends(get_backend)):
    return await run_in_threadpool(backend.posts.get, post_id)


@router.delete("/posts/{post_id}", response_model=DeletePostResponse, responses={404: {"model": ErrorResponse}})
async def delete_post(post_id: str = POST_ID, backend: Backend = Depends(get_backend)):
    await run_in_threadpool(backend.posts.delete, post_id)
    return DeletePostResponse(id=post_id)


@router.get(
    "/posts/{post_id}/plain-text",
    response_class=PlainTextResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_post_plain_text(post_id: str = POST_ID, backend: Backend = Depends(get_backend)):
    """The post's content with markup removed, as copied to the clipboard."""
    return await run_in_threadpool(backend.posts.plain_text, post_id)
