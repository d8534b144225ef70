"""Tests for the sequential background stage runner"""
import asyncio
import threading

import pytest

from cover_search import AsyncPipeline, BatchState, RunStatus


def test_stages_run_in_order_off_caller_thread():
    order = []
    caller = threading.get_ident()
    threads = []

    def first():
        threads.append(threading.get_ident())
        order.append("first")

    async def second():
        await asyncio.sleep(0.01)
        order.append("second")

    def third():
        order.append("third")

    pipeline = AsyncPipeline.run(first).and_then(second).and_then(third).begin()

    assert pipeline.join(5) is RunStatus.COMPLETED
    assert order == ["first", "second", "third"]
    assert threads[0] != caller


def test_error_aborts_remaining_stages():
    ran = []
    errors = []
    statuses = []

    def failing():
        raise ValueError("broken stage")

    pipeline = (
        AsyncPipeline.run(lambda: ran.append(1))
        .and_then(failing)
        .and_then(lambda: ran.append(3))
        .begin(on_error=errors.append, on_complete=statuses.append)
    )

    assert pipeline.join(5) is RunStatus.FAILED
    assert ran == [1]
    assert len(errors) == 1 and isinstance(errors[0], ValueError)
    assert pipeline.error is errors[0]
    assert statuses == [RunStatus.FAILED]


def test_cancel_token_skips_remaining_stages():
    token = BatchState()
    ran = []

    def first():
        ran.append(1)
        token.cancel()

    pipeline = AsyncPipeline.run(first).and_then(lambda: ran.append(2)).begin(cancel_token=token)

    assert pipeline.join(5) is RunStatus.CANCELLED
    assert ran == [1]


def test_cancel_during_last_stage_reports_cancelled():
    token = BatchState()

    async def only():
        token.cancel()

    pipeline = AsyncPipeline.run(only).begin(cancel_token=token)
    assert pipeline.join(5) is RunStatus.CANCELLED


def test_cannot_extend_after_begin():
    gate = threading.Event()
    pipeline = AsyncPipeline.run(lambda: gate.wait(5)).begin()
    try:
        with pytest.raises(RuntimeError):
            pipeline.and_then(lambda: None)
        with pytest.raises(RuntimeError):
            pipeline.begin()
    finally:
        gate.set()
        pipeline.join(5)


def test_status_before_begin():
    pipeline = AsyncPipeline.run(lambda: None)
    assert pipeline.status is RunStatus.PENDING
    assert not pipeline.is_running
