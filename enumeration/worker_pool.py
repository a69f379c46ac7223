"""
Bounded asyncio worker pool.

Runs one handler per task with at most ``workers`` handlers in flight. The
producer is pulled lazily: a new task is only taken once a slot is free, so
an unbounded producer (the bisection scheduler) never builds up a backlog in
memory. Failures are isolated per task and collected in the PoolResult.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, List, Set, Union
from core.exceptions import ConfigurationError
import logging

logger = logging.getLogger(__name__)


@dataclass
class TaskFailure:
    """A task whose handler raised, kept for optional retry by the caller"""
    task: Any
    error: BaseException

    def describe(self) -> dict:
        task = self.task.describe() if hasattr(self.task, "describe") else repr(self.task)
        return {
            "task": task,
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
        }


@dataclass
class PoolResult:
    completed: int = 0
    failures: List[TaskFailure] = field(default_factory=list)
    peak_concurrency: int = 0

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


async def _as_async_iterator(tasks: Union[AsyncIterable[Any], Iterable[Any]]) -> AsyncIterator[Any]:
    if hasattr(tasks, "__aiter__"):
        async for task in tasks:
            yield task
    else:
        for task in tasks:
            yield task


class WorkerPool:
    """
    Execute tasks concurrently with a hard concurrency limit.

    Usage:
        pool = WorkerPool(workers=10)
        result = await pool.run(scheduler.plan(), fetch_range)
        for failure in result.failures:
            ...
    """

    def __init__(self, workers: int, name: str = "workers"):
        if workers < 1:
            raise ConfigurationError(
                "Worker pool needs at least one worker",
                context={"workers": workers, "pool": name}
            )
        self.workers = workers
        self.name = name
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    async def run(
        self,
        tasks: Union[AsyncIterable[Any], Iterable[Any]],
        handler: Callable[[Any], Awaitable[None]],
    ) -> PoolResult:
        """
        Run ``handler`` for every task produced by ``tasks``.

        Returns once the producer is exhausted and every handler finished.
        Cancelling this coroutine cancels the in-flight handlers and
        re-raises; whatever they already committed stays committed.
        """
        result = PoolResult()
        slots = asyncio.Semaphore(self.workers)
        in_flight: Set[asyncio.Task] = set()

        async def execute(task: Any) -> None:
            self._active += 1
            result.peak_concurrency = max(result.peak_concurrency, self._active)
            try:
                await handler(task)
                result.completed += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                result.failures.append(TaskFailure(task=task, error=e))
                logger.error(
                    f"[{self.name}] task failed: {e}",
                    extra={"error_context": e.to_dict() if hasattr(e, "to_dict") else {"error": str(e)}}
                )
            finally:
                self._active -= 1
                slots.release()

        producer = _as_async_iterator(tasks)
        try:
            while True:
                await slots.acquire()
                try:
                    task = await producer.__anext__()
                except StopAsyncIteration:
                    slots.release()
                    break
                except BaseException:
                    slots.release()
                    raise

                worker = asyncio.create_task(execute(task))
                in_flight.add(worker)
                worker.add_done_callback(in_flight.discard)

            if in_flight:
                await asyncio.gather(*list(in_flight))

        except BaseException:
            pending = list(in_flight)
            for worker in pending:
                worker.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"[{self.name}] run aborted, cancelled {len(pending)} in-flight tasks")
            raise
        finally:
            await producer.aclose()

        logger.info(
            f"[{self.name}] finished: {result.completed} completed, {result.failed} failed "
            f"(peak concurrency {result.peak_concurrency}/{self.workers})"
        )
        return result
