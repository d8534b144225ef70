"""
Sequential stage runner.

AsyncPipeline runs a chain of zero-argument stages, one after another, on a
dedicated worker thread so the caller is never blocked:

    pipeline = AsyncPipeline.run(search).and_then(select).and_then(finish)
    pipeline.begin(on_error=show_error)

Coroutine-function stages are awaited on the worker's event loop; plain
callables run on their own thread. The first uncaught exception aborts the
remaining stages and is handed to on_error exactly once.
"""
from __future__ import annotations

import asyncio
import inspect
import threading
from typing import Any, Callable, List, Optional

from logging_config import get_logger

from .models import BatchState, RunStatus

logger = get_logger(__name__)

Stage = Callable[[], Any]
ErrorHandler = Callable[[BaseException], None]


def _log_error(error: BaseException) -> None:
    logger.error(f"Pipeline stage failed: {type(error).__name__}: {error}", exc_info=error)


class AsyncPipeline:
    """Ordered chain of stages executed off the caller's thread."""

    def __init__(self, first_stage: Stage):
        self._stages: List[Stage] = [first_stage]
        self._thread: Optional[threading.Thread] = None
        self.status = RunStatus.PENDING
        self.error: Optional[BaseException] = None

    @classmethod
    def run(cls, stage: Stage) -> "AsyncPipeline":
        return cls(stage)

    def and_then(self, stage: Stage) -> "AsyncPipeline":
        if self._thread is not None:
            raise RuntimeError("Cannot add stages to a pipeline that has already begun")
        self._stages.append(stage)
        return self

    def begin(
        self,
        on_error: Optional[ErrorHandler] = None,
        on_complete: Optional[Callable[[RunStatus], None]] = None,
        cancel_token: Optional[BatchState] = None,
        name: str = "CoverSync_Pipeline"
    ) -> "AsyncPipeline":
        """
        Start the stages on a worker thread and return immediately.

        Args:
            on_error: Receives the exception that aborted the run (default: log it)
            on_complete: Always called last with the final status
            cancel_token: Checked before every stage; once cancelled the
                remaining stages are skipped and the status is CANCELLED
            name: Worker thread name
        """
        if self._thread is not None:
            raise RuntimeError("Pipeline already started")

        self.status = RunStatus.RUNNING
        self._thread = threading.Thread(
            target=self._worker,
            args=(on_error or _log_error, on_complete, cancel_token),
            name=name,
            daemon=True
        )
        self._thread.start()
        return self

    def join(self, timeout: Optional[float] = None) -> RunStatus:
        """Wait for the run to end (or the timeout to pass) and return the status."""
        if self._thread is not None:
            self._thread.join(timeout)
        return self.status

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _worker(
        self,
        on_error: ErrorHandler,
        on_complete: Optional[Callable[[RunStatus], None]],
        cancel_token: Optional[BatchState]
    ) -> None:
        try:
            self.status = asyncio.run(self._run_stages(cancel_token))
        except Exception as e:
            self.status = RunStatus.FAILED
            self.error = e
            try:
                on_error(e)
            except Exception as handler_err:
                logger.error(f"Pipeline error handler failed: {handler_err}", exc_info=True)
        finally:
            if on_complete is not None:
                try:
                    on_complete(self.status)
                except Exception as complete_err:
                    logger.error(f"Pipeline completion callback failed: {complete_err}", exc_info=True)

    async def _run_stages(self, cancel_token: Optional[BatchState]) -> RunStatus:
        for index, stage in enumerate(self._stages, start=1):
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(f"Pipeline cancelled before stage {index}/{len(self._stages)}")
                return RunStatus.CANCELLED

            stage_name = getattr(stage, '__name__', repr(stage))
            logger.debug(f"Pipeline stage {index}/{len(self._stages)}: {stage_name}")
            if inspect.iscoroutinefunction(stage):
                await stage()
            else:
                await asyncio.to_thread(stage)

        if cancel_token is not None and cancel_token.cancelled:
            return RunStatus.CANCELLED
        return RunStatus.COMPLETED
