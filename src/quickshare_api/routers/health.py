from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from quickshare_api.backend import Backend, get_backend
from quickshare_api.exceptions import BackendError

router = APIRouter()


@router.get("/health")
async def health_check(backend: Backend = Depends(get_backend)):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of the API, object store and posts table along with deployment mode.
    """
    health_status = {
        "status": "ok",
        "deployment_mode": backend.settings.deployment_mode,
        "components": {
            "api": "ready",
            "storage": "ready",
            "database": "ready"
        },
        "ready": False
    }

    # Check object store
    try:
        await run_in_threadpool(backend.store.check)
    except BackendError as e:
        health_status["components"]["storage"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    # Check posts table
    try:
        await run_in_threadpool(backend.posts_table.check)
    except BackendError as e:
        health_status["components"]["database"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )
    return health_status
