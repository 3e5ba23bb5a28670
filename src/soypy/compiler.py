"""SoyCompiler — the public entry point.

Pipeline:
    ```
    files ──► filter_dirty (precompiled cache) ──► run_compiler (dirty only)
          ──► per locale, in order: concat? ──► SandboxContext.load_modules
          ──► CompileEvents.emit
    ```
With ``allow_dynamic_recompile`` a ``WatchScheduler`` re-enters the pipeline
for the files that changed since the last pass, reloading all files of the
original set.

"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from soypy.cache import filter_dirty
from soypy.events import CompileEvents, CompileListener
from soypy.exceptions import SoyError
from soypy.options import DEFAULT_LOCALE, CompileOptions
from soypy.paths import (
    GENERATED_SUFFIX,
    concat_file,
    create_output_dir,
    find_files,
    output_file,
)
from soypy.process import build_compiler_args, run_compiler
from soypy.sandbox import SandboxContext
from soypy.watch import FileWatcher, WatchScheduler

logger = logging.getLogger(__name__)

SOURCE_EXTENSION = "soy"
COMPILED_EXTENSION = SOURCE_EXTENSION + GENERATED_SUFFIX


def _log_error_or_done(error: BaseException | None, success: bool) -> None:
    if error is not None:
        logger.error("%s", error)
    else:
        logger.info("Done")


class SoyCompiler:
    """Compile Soy templates and render them from Python.

    Example:
            >>> compiler = SoyCompiler()
            >>> compiler.set_options(
            ...     compiler_command=["soy-to-soypy"],
            ...     locales=["pt-BR"],
            ...     message_file_path_format="msgs_{LOCALE}.xlf",
            ... )
            >>> await compiler.compile_templates("templates/")
            >>> compiler.render("template1.formletter", {"title": "Mr.", "surname": "Pupius"}, locale="pt-BR")
            'Querido Mr. Pupius: ...'

    Args:
        file_watcher: Object with ``watch(path, callback)`` used for dynamic
            recompilation. Defaults to a watchdog-backed ``FileWatcher``,
            created on first use.
        clock: Time source for debouncing change notifications.

    """

    def __init__(
        self,
        *,
        file_watcher: Any = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._options = CompileOptions()
        self._sandboxes: dict[str, SandboxContext] = {}
        # Absolute source path → last accepted change notification time.
        self._watches: dict[str, float] = {}
        self._file_watcher = file_watcher
        self._clock = clock

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def options(self) -> CompileOptions:
        return self._options

    def set_options(self, **options: Any) -> None:
        """Merge ``options`` into this compiler's ``CompileOptions``.

        Raises:
            ConfigurationError: For an unknown option name.
        """
        self._options.merge(**options)

    # ------------------------------------------------------------------
    # Sandboxes and rendering
    # ------------------------------------------------------------------

    def get_sandbox(self, locale: str | None = None) -> SandboxContext:
        """The sandbox for ``locale`` (or the default), created on first use."""
        locale = locale or DEFAULT_LOCALE
        sandbox = self._sandboxes.get(locale)
        if sandbox is None:
            sandbox = self._sandboxes[locale] = SandboxContext(locale, self._options)
        return sandbox

    def get_context(self, locale: str | None = None) -> dict[str, Any]:
        """Raw globals of the sandbox for ``locale``."""
        return self.get_sandbox(locale).get_context()

    def set_context(self, context: dict[str, Any], locale: str | None = None) -> None:
        self.get_sandbox(locale).set_context(context)

    def get(self, template_name: str, locale: str | None = None) -> Callable[..., Any]:
        """Reference to a template function.

        Note: with dynamic recompilation the reference is not updated.
        """
        return self.get_sandbox(locale).get(template_name)

    def render(
        self,
        template_name: str,
        data: dict[str, Any] | None = None,
        injected_data: dict[str, Any] | None = None,
        locale: str | None = None,
    ) -> str:
        """Render a template to a string."""
        return self.get_sandbox(locale).render(template_name, data, injected_data)

    # ------------------------------------------------------------------
    # Compiling
    # ------------------------------------------------------------------

    async def compile_templates(
        self,
        input_dir: str,
        listener: CompileListener | None = None,
    ) -> CompileEvents:
        """Compile every ``.soy`` file under ``input_dir`` and load the result.

        Args:
            input_dir: Source root; the compiler runs inside it.
            listener: Called with ``(error, success)`` after every pass,
                including dynamic recompiles.

        Returns:
            The channel later dynamic-recompile passes report on.

        Raises:
            SoyError | OSError: The first pass's error (also emitted).
        """
        events = self._new_events(listener)
        try:
            files = await asyncio.to_thread(find_files, input_dir, SOURCE_EXTENSION)
        except OSError as e:
            events.emit(e)
            raise

        if not files:
            events.emit(None)
            return events
        await self._compile_from(input_dir, files, events)
        return events

    async def compile_template_files(
        self,
        files: Sequence[str],
        listener: CompileListener | None = None,
    ) -> CompileEvents:
        """Compile an explicit list of files and load the result.

        Relative paths are resolved against ``options.input_dir``, where the
        compiler runs.
        """
        events = self._new_events(listener)
        await self._compile_from(self._options.input_dir, list(files), events)
        return events

    def _new_events(self, listener: CompileListener | None) -> CompileEvents:
        events = CompileEvents()
        if self._options.allow_dynamic_recompile:
            events.on(_log_error_or_done)
        if listener is not None:
            events.on(listener)
        return events

    async def _compile_from(self, input_dir: str, files: list[str], events: CompileEvents) -> None:
        output_dir = create_output_dir(self._options)
        dirty_files = await filter_dirty(self._options, output_dir, files)
        self._maybe_setup_dynamic_recompile(input_dir, output_dir, files, events)
        error = await self._compile_and_emit(input_dir, output_dir, files, dirty_files, events)
        if error is not None:
            raise error

    async def _compile_and_emit(
        self,
        input_dir: str,
        output_dir: str,
        all_files: list[str],
        dirty_files: list[str],
        events: CompileEvents,
    ) -> SoyError | OSError | None:
        """One pass. Returns (and emits) its error instead of raising."""
        try:
            await self._compile_files(input_dir, output_dir, all_files, dirty_files)
        except (SoyError, OSError) as e:
            events.emit(e)
            return e

        events.emit(None)
        await self._maybe_erase(output_dir)
        return None

    async def _compile_files(
        self,
        input_dir: str,
        output_dir: str,
        all_files: list[str],
        dirty_files: list[str],
    ) -> None:
        if dirty_files:
            args = build_compiler_args(self._options, output_dir, dirty_files)
            await run_compiler(args, cwd=input_dir)

        # Sequential: loads into a context must not interleave.
        for locale in self._options.vm_types:
            await self._post_compile(output_dir, all_files, locale)

    async def _post_compile(self, output_dir: str, files: list[str], locale: str) -> None:
        paths = [output_file(self._options, output_dir, f, locale) for f in files]

        if self._options.concat_output:
            target = concat_file(self._options, output_dir, locale)
            try:
                await asyncio.to_thread(_concat, paths, target)
            except OSError as e:
                logger.warning("Error concatenating files: %s", e)

        if self._options.load_compiled_templates:
            await self.get_sandbox(locale).load_modules(paths)

    async def _maybe_erase(self, output_dir: str) -> None:
        options = self._options
        if not options.erase_temporary_files or options.allow_dynamic_recompile:
            return
        try:
            await asyncio.to_thread(shutil.rmtree, output_dir)
        except OSError as e:
            logger.warning("Error deleting temporary files %s: %s", output_dir, e)

    # ------------------------------------------------------------------
    # Dynamic recompilation
    # ------------------------------------------------------------------

    def _maybe_setup_dynamic_recompile(
        self,
        input_dir: str,
        output_dir: str,
        files: list[str],
        events: CompileEvents,
    ) -> None:
        if not self._options.allow_dynamic_recompile:
            return

        if self._file_watcher is None:
            self._file_watcher = FileWatcher()

        async def recompile(dirty_files: list[str]) -> Any:
            return await self._compile_and_emit(input_dir, output_dir, files, dirty_files, events)

        scheduler = WatchScheduler(
            input_dir,
            recompile,
            watcher=self._file_watcher,
            watches=self._watches,
            clock=self._clock,
        )
        scheduler.watch_all(files)

    def close(self) -> None:
        """Stop watching files.

        A later compile with ``allow_dynamic_recompile`` registers its files
        again.
        """
        stop = getattr(self._file_watcher, "stop", None)
        if stop is not None:
            stop()
        self._watches.clear()

    # ------------------------------------------------------------------
    # Loading precompiled output
    # ------------------------------------------------------------------

    async def load_compiled_templates(self, input_dir: str, locale: str | None = None) -> None:
        """Load every ``.soy.py`` file under ``input_dir`` into one sandbox."""
        files = await asyncio.to_thread(find_files, input_dir, COMPILED_EXTENSION)
        paths = [os.path.join(input_dir, f) for f in files]
        await self.load_compiled_template_files(paths, locale)

    async def load_compiled_template_files(
        self,
        files: Sequence[str],
        locale: str | None = None,
    ) -> None:
        """Load generated modules, in order, into the sandbox for ``locale``."""
        await self.get_sandbox(locale).load_modules(list(files))


def _concat(paths: list[str], target: str) -> None:
    contents = "".join(Path(p).read_text("utf-8") for p in paths)
    Path(target).write_text(contents, "utf-8")
