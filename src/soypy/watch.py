"""Dynamic recompilation: file watching and the recompile scheduler.

Filesystem notifications arrive in bursts (an editor save often produces
several events). ``WatchScheduler`` turns them into a serialized sequence of
minimal recompile passes:

    ```
    notification ──► debounced away (< DEBOUNCE_SECONDS since last accepted)
          │
          ▼
    dirty set += file ──► wait for in-flight pass ──► swap dirty set ──► one pass
                                                       (empty? no-op)
    ```

Guarantees:
- At most one pass runs at a time.
- Every accepted change is included in some pass, possibly batched.
- A failed pass is logged; watching continues.

``FileWatcher`` adapts a watchdog observer (which calls back on its own
thread) to this contract: "call me, on the event loop, when file X changes".

"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Notifications for one file closer together than this are duplicates.
DEBOUNCE_SECONDS = 1.0

WatchCallback = Callable[[], Awaitable[Any]]


class _DispatchHandler(FileSystemEventHandler):
    """Forward watchdog events for registered files to the FileWatcher."""

    def __init__(self, watcher: FileWatcher):
        super().__init__()
        self._watcher = watcher

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.dispatch(event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.dispatch(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save via rename show up as a move onto the file.
        if not event.is_directory:
            self._watcher.dispatch(event.dest_path)


class FileWatcher:
    """Per-file change callbacks on top of a watchdog ``Observer``.

    One non-recursive watch is scheduled per directory. Callbacks run as
    tasks on the event loop that registered them.

    Example:
            >>> watcher = FileWatcher()
            >>> watcher.watch("/srv/templates/page.soy", on_change)
            >>> ...
            >>> watcher.stop()

    """

    def __init__(self) -> None:
        self._observer: Any = None
        self._handler = _DispatchHandler(self)
        self._callbacks: dict[str, WatchCallback] = {}
        self._directories: set[str] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Future[Any]] = set()

    def watch(self, path: str, callback: WatchCallback) -> None:
        """Invoke ``callback()`` whenever ``path`` changes.

        Must be called from a running event loop.

        Raises:
            OSError: If the file's directory cannot be watched.
        """
        path = os.path.abspath(path)
        self._loop = asyncio.get_running_loop()
        if self._observer is None:
            self._observer = Observer()
            self._observer.daemon = True
            self._observer.start()

        directory = os.path.dirname(path)
        if directory not in self._directories:
            self._observer.schedule(self._handler, directory, recursive=False)
            self._directories.add(directory)
        self._callbacks[path] = callback

    def dispatch(self, path: str | bytes) -> None:
        """Called on the observer thread for every event."""
        path = os.path.abspath(os.fsdecode(path))
        loop = self._loop
        if path not in self._callbacks or loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._run, path)
        except RuntimeError:
            logger.debug("Event loop closed; dropping change to %s", path)

    def _run(self, path: str) -> None:
        task = asyncio.ensure_future(self._callbacks[path]())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def stop(self) -> None:
        """Stop the observer thread. Registered callbacks are dropped."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self._callbacks.clear()
        self._directories.clear()


class WatchScheduler:
    """Debounce change notifications and serialize recompile passes.

    Args:
        input_dir: Directory the watched relative paths are resolved against.
        recompile: Coroutine function run for one pass over the changed
            files (relative paths, in notification order).
        watcher: Object with ``watch(path, callback)``; a ``FileWatcher``
            in production.
        watches: Last accepted notification time per absolute path. Shared
            by all schedulers of one compiler so a file is only ever
            registered once.
        clock: Time source in seconds.
        debounce: Minimum seconds between accepted notifications of a file.

    """

    def __init__(
        self,
        input_dir: str,
        recompile: Callable[[list[str]], Awaitable[Any]],
        *,
        watcher: Any,
        watches: dict[str, float],
        clock: Callable[[], float] = time.monotonic,
        debounce: float = DEBOUNCE_SECONDS,
    ):
        self._input_dir = input_dir
        self._recompile = recompile
        self._watcher = watcher
        self._watches = watches
        self._clock = clock
        self._debounce = debounce
        # Insertion-ordered set of relative paths waiting for a pass.
        self._dirty: dict[str, None] = {}
        self._current: asyncio.Future[Any] | None = None

    def watch_all(self, relative_files: Iterable[str]) -> None:
        for relative_file in relative_files:
            self.watch(relative_file)

    def watch(self, relative_file: str) -> bool:
        """Register ``relative_file``. Returns False if not (newly) watched."""
        file = os.path.abspath(os.path.join(self._input_dir, relative_file))
        if file in self._watches:
            return False

        self._watches[file] = self._clock()
        try:
            self._watcher.watch(file, functools.partial(self.notify, file, relative_file))
        except OSError as e:
            logger.warning("Error watching %s: %s", file, e)
            del self._watches[file]
            return False
        return True

    async def notify(self, file: str, relative_file: str) -> Any:
        """Handle one raw change notification for ``file``.

        Returns the result of the pass this notification launched, or None
        when it was debounced or joined another pass.

        Only notifications that reach the loop in the same iteration share a
        pass. A burst the observer delivers across several iterations can
        take two passes: the first change starts one, and the rest queue
        behind it and share the next.
        """
        now = self._clock()
        logger.info("Caught change to %s", file)
        if now - self._watches.get(file, float("-inf")) < self._debounce:
            return None

        self._dirty[relative_file] = None
        self._watches[file] = now

        # Notifications delivered in the same loop iteration share one pass.
        await asyncio.sleep(0)
        while self._current is not None and not self._current.done():
            await asyncio.wait([self._current])

        if not self._dirty:
            # Already claimed by a pass started from another notification.
            return None

        dirty = list(self._dirty)
        self._dirty = {}
        logger.info("Recompiling templates due to change in %s", dirty)
        self._current = asyncio.ensure_future(self._run_pass(dirty))
        return await self._current

    @property
    def busy(self) -> bool:
        """Whether a pass is in flight."""
        return self._current is not None and not self._current.done()

    async def _run_pass(self, files: list[str]) -> Any:
        try:
            return await self._recompile(files)
        except Exception:
            logger.exception("Error recompiling %s", files)
            return None
