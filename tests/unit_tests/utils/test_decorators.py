import logging

import pytest

from quickshare_api.utils.decorators import async_log_execution_time, log_execution_time


@log_execution_time
def add(a, b):
    return a + b


@log_execution_time
def explode():
    raise RuntimeError("boom")


@async_log_execution_time
async def add_later(a, b):
    return a + b


def test_log_execution_time_reports_duration(caplog):
    with caplog.at_level(logging.INFO, logger="quickshare_api.utils.decorators"):
        assert add(1, 2) == 3

    assert caplog.records[-1].getMessage().startswith("add completed in ")
    assert caplog.records[-1].getMessage().endswith("s")


def test_log_execution_time_reports_failure(caplog):
    with caplog.at_level(logging.INFO, logger="quickshare_api.utils.decorators"):
        with pytest.raises(RuntimeError):
            explode()

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.getMessage().startswith("explode failed after ")
    assert record.getMessage().endswith(": boom")


async def test_async_log_execution_time(caplog):
    with caplog.at_level(logging.INFO, logger="quickshare_api.utils.decorators"):
        assert await add_later(2, 3) == 5

    assert caplog.records[-1].getMessage().startswith("add_later completed in ")
