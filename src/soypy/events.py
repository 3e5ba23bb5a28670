"""Per-pass compile notifications.

Every compile pass (the first one and each dynamic recompile) ends with one
``emit()``. Listeners receive ``(error, success)``; ``error`` is None on
success. A listener that raises is logged and does not affect other
listeners or the pipeline.

Example:
    ```python
    events = await compiler.compile_templates("templates/")

    def on_compile(error, success):
        if not success:
            alert(error)

    events.on(on_compile)
    ```

"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

CompileListener = Callable[[BaseException | None, bool], Any]


class CompileEvents:
    """Listener registry for compile pass outcomes."""

    __slots__ = ("_listeners", "_waiters")

    def __init__(self) -> None:
        self._listeners: list[tuple[CompileListener, bool]] = []
        self._waiters: list[asyncio.Future[None]] = []

    def on(self, listener: CompileListener) -> CompileListener:
        """Call ``listener`` after every pass."""
        self._listeners.append((listener, False))
        return listener

    def once(self, listener: CompileListener) -> CompileListener:
        """Call ``listener`` after the next pass only."""
        self._listeners.append((listener, True))
        return listener

    def off(self, listener: CompileListener) -> None:
        self._listeners = [(fn, once) for fn, once in self._listeners if fn is not listener]

    def emit(self, error: BaseException | None = None) -> None:
        """Report the outcome of one pass to listeners and waiters."""
        success = error is None
        listeners = self._listeners
        self._listeners = [(fn, once) for fn, once in listeners if not once]
        for listener, _ in listeners:
            try:
                listener(error, success)
            except Exception:
                logger.exception("Error in compile listener")

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(error)

    async def wait(self) -> None:
        """Wait for the next pass.

        Raises:
            The pass's error, if it failed.
        """
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter
