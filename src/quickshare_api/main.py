import logging
from textwrap import dedent
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from quickshare_api.backend import Backend, create_backend
from quickshare_api.config.settings import Settings, get_settings
from quickshare_api.errors import (
    handle_broad_exceptions,
    handle_http_exceptions,
    handle_pydantic_validation_errors,
    handle_quickshare_errors,
    handle_request_validation_errors,
)
from quickshare_api.exceptions import QuickshareError
from quickshare_api.routers.files import router as files_router
from quickshare_api.routers.health import router as health_router
from quickshare_api.routers.posts import router as posts_router
from quickshare_api.routers.upload import router as upload_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, backend: Optional[Backend] = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or (backend.settings if backend else get_settings())
    backend = backend or create_backend(settings)

    app = FastAPI(
        title="Quickshare API",
        summary="Share files and text posts",
        version="v1",
        description=dedent(
            """\
        Upload files to the shared bucket, browse and delete them page by page,
        and keep rich-text posts alongside.

        | Route | Notes |
        | --- | --- |
        | `POST /api/upload` | one file, multipart field `file` |
        | `POST /api/uploads` | several files, repeated field `files` |
        | `GET /api/files?page=N` | newest first |
        | `/api/posts` | text post CRUD |
        """
        ),
        docs_url="/",
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.backend = backend

    app.include_router(upload_router, prefix="/api", tags=["upload"])
    app.include_router(files_router, prefix="/api", tags=["files"])
    app.include_router(posts_router, prefix="/api", tags=["posts"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(QuickshareError, handle_quickshare_errors)
    app.add_exception_handler(StarletteHTTPException, handle_http_exceptions)
    app.add_exception_handler(RequestValidationError, handle_request_validation_errors)
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    logger.info(f"{settings.app_name} created in {settings.deployment_mode} mode")
    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)
