"""Timing decorators for the slow paths (backend round trips)."""
import time
import logging
import functools
from typing import Any, Callable, Optional, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def _report(name: str, started: float, error: Optional[BaseException] = None) -> None:
    duration = time.perf_counter() - started
    if error is None:
        logger.info(f"{name} completed in {duration:.2f}s")
    else:
        logger.error(f"{name} failed after {duration:.2f}s: {str(error)}")


def log_execution_time(func: F) -> F:
    """Log how long ``func`` took, or how long it ran before raising."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _report(func.__qualname__, started, e)
            raise
        _report(func.__qualname__, started)
        return result
    return cast(F, wrapper)


def async_log_execution_time(func: F) -> F:
    """Coroutine flavour of :func:`log_execution_time`."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            _report(func.__qualname__, started, e)
            raise
        _report(func.__qualname__, started)
        return result
    return cast(F, wrapper)
