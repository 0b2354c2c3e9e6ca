from typing import Any

import pytest
import structlog
from structlog.testing import capture_logs

from warplanner.core.observability import (
    clear_correlation_id,
    set_correlation_id,
    trace_adapter,
    trace_service,
    traced,
)


@pytest.mark.asyncio
async def test_traced_async_logs_start_and_finish_with_execution_id() -> None:
    """Correlation id can be bound and cleared around a traced coroutine.

    Note: capture_logs() bypasses merge_contextvars, so the correlation id
    itself is not in the captured events; execution_id is passed explicitly.
    """
    set_correlation_id("test-cid-1234")

    @traced(capture_result=True, capture_args=True)
    async def _recompute(group_id: str) -> int:
        return 3

    try:
        with capture_logs() as cap:
            result = await _recompute("#CLAN")
    finally:
        clear_correlation_id()

    assert result == 3
    events = [e["event"] for e in cap]
    assert any(e.startswith("call_started:") for e in events)
    assert any(e.startswith("call_finished:") for e in events)
    assert all("execution_id" in e for e in cap)
    finished = next(e for e in cap if e["event"].startswith("call_finished:"))
    assert finished["result"] == 3
    assert finished["duration_ms"] >= 0


def test_traced_sync_failure_is_logged_and_reraised() -> None:
    @traced()
    def _explode() -> None:
        raise ValueError("bad row")

    with capture_logs() as cap, pytest.raises(ValueError, match="bad row"):
        _explode()

    failed = [e for e in cap if e["event"].startswith("call_failed:")]
    assert len(failed) == 1
    assert failed[0]["error_type"] == "ValueError"
    assert failed[0]["error_message"] == "bad row"
    assert failed[0]["log_level"] == "error"


def test_sensitive_kwargs_are_masked() -> None:
    @traced()
    def _connect(dsn: str, pool_size: int) -> bool:
        return True

    with capture_logs() as cap:
        _connect(dsn="postgresql://user:secret@db/warplanner", pool_size=5)

    started = next(e for e in cap if e["event"].startswith("call_started:"))
    assert started["kwargs"]["dsn"] == "post...ner"
    assert started["kwargs"]["pool_size"] == 5


@pytest.mark.asyncio
async def test_layer_decorators_add_metadata_and_skip_adapter_results() -> None:
    class _Thing:
        @trace_service
        async def plan(self) -> dict[str, Any]:
            return {"ok": True}

        @trace_adapter
        async def fetch(self) -> list[int]:
            return [1, 2, 3]

    thing = _Thing()
    with capture_logs() as cap:
        await thing.plan()
        await thing.fetch()

    started = [e for e in cap if e["event"].startswith("call_started:")]
    assert [e["layer"] for e in started] == ["service", "adapter"]
    finished = [e for e in cap if e["event"].startswith("call_finished:")]
    assert finished[0]["result"] == {"ok": True}
    assert finished[1]["result"] is None


def test_stdlib_loggers_still_work_inside_capture() -> None:
    with capture_logs() as cap:
        structlog.get_logger().info("manual_log", group_id="#CLAN")

    assert cap == [{"event": "manual_log", "group_id": "#CLAN", "log_level": "info"}]
