"""Fire-and-forget execution of best-effort side effects."""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
from typing import Any, Callable

import anyio

logger = logging.getLogger(__name__)


class BestEffortRunner:
    """Launch side effects whose failure must never reach the caller.

    Work is scheduled on the event loop the runner is bound to. Callers on
    that loop get a task; callers on worker threads hand the coroutine over
    thread-safely and return immediately. Without a running loop (scripts,
    plain unit tests) the work runs inline. In every case exceptions are
    logged and swallowed.

    The inline path blocks the caller until the side effect finishes, so a
    slow mirror or push endpoint adds its latency to the request that
    launched it. The application lifespan binds the runner to the serving
    loop, which keeps request handlers off that path.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._pending: set[asyncio.Future[Any] | concurrent.futures.Future[Any]] = set()

    def bind(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Attach the runner to ``loop`` (the running loop by default)."""

        self._loop = loop or asyncio.get_running_loop()

    def unbind(self) -> None:
        self._loop = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def launch(
        self,
        func: Callable[..., Any],
        *args: Any,
        description: str,
        **context: Any,
    ) -> None:
        """Run ``func(*args)`` as a best-effort task described by ``description``."""

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None:
            task = running.create_task(self._guarded(func, args, description, context))
            self._track(task)
            return

        loop = self._loop
        if loop is not None and loop.is_running() and not loop.is_closed():
            future = asyncio.run_coroutine_threadsafe(
                self._guarded(func, args, description, context), loop
            )
            self._track(future)
            return

        anyio.run(self._guarded, func, args, description, context)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for the launched tasks to finish, including ones they launch."""

        with anyio.move_on_after(timeout):
            while self._pending:
                waiters = [
                    future if isinstance(future, asyncio.Future) else asyncio.wrap_future(future)
                    for future in list(self._pending)
                ]
                await asyncio.gather(*waiters, return_exceptions=True)
                await asyncio.sleep(0)

    def _track(self, future: asyncio.Future[Any] | concurrent.futures.Future[Any]) -> None:
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    @staticmethod
    async def _guarded(
        func: Callable[..., Any],
        args: tuple[Any, ...],
        description: str,
        context: dict[str, Any],
    ) -> None:
        try:
            result = func(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.warning(
                "Best-effort %s failed (%s): %s",
                description,
                ", ".join(f"{key}={value}" for key, value in sorted(context.items())),
                exc,
                exc_info=True,
            )


__all__ = ["BestEffortRunner"]
