"""Sandbox contexts — isolated namespaces that hold loaded templates.

Generated template modules are Python source. Each ``SandboxContext`` owns a
private globals dict and ``exec()``s modules into it, so templates of one
locale (or one compiler) never see those of another.

Architecture:
    ```
    SandboxContext
    ├── _globals: dict                  # the isolated namespace
    ├── _initialized: bool              # support modules executed yet?
    └── _template_cache: dict[str, fn]  # dotted name → resolved function
    ```

Loading:
    1. First load only: the support modules (``runtime/*.py`` and the
       configured ``soy_utils_path``) execute, in order.
    2. Later loads: ``reset_override_registry()`` clears the delegate
       registries instead, so re-executed modules can register again.
    3. ``context_paths`` then the given modules execute in caller order.
       Sources are read concurrently; execution never reorders.
    4. The function cache is cleared, even after a failed batch, so lookups
       bind to whatever code ran.

"""

from __future__ import annotations

import asyncio
import builtins
import logging
from collections.abc import Callable, Sequence
from difflib import get_close_matches
from pathlib import Path
from typing import TYPE_CHECKING, Any

from soypy.exceptions import ConfigurationError, ErrorCode, LoadError, UnknownTemplateError
from soypy.options import RUNTIME_DIR

if TYPE_CHECKING:
    from soypy.options import CompileOptions

logger = logging.getLogger(__name__)

# Foundational runtime, executed before ``options.soy_utils_path``.
SUPPORT_MODULES: tuple[str, ...] = tuple(
    str(RUNTIME_DIR / name)
    for name in ("base.py", "strings.py", "html.py", "arrays.py", "bidi.py")
)

# Globals that delegate templates register into (see runtime/soyutils.py).
DELEGATE_REGISTRIES: tuple[str, ...] = (
    "_DELEGATE_REGISTRY_PRIORITIES",
    "_DELEGATE_REGISTRY_FUNCTIONS",
)

# Support sources never change while the process runs; read them once.
_support_sources: dict[str, str] = {}


def _read_source(path: str) -> str:
    return Path(path).read_text("utf-8")


async def _fetch(path: str, *, support: bool = False) -> str:
    if support and path in _support_sources:
        return _support_sources[path]
    source = await asyncio.to_thread(_read_source, path)
    if support:
        _support_sources[path] = source
    return source


class SandboxContext:
    """One isolated execution environment for generated template code.

    Thread-Safety:
        Not thread-safe. Loads into one context must not overlap; the
        compiler guarantees this by post-processing locales sequentially.

    Example:
            >>> sandbox = SandboxContext("default", CompileOptions())
            >>> await sandbox.load_modules(["/tmp/out/template1.soy.py"])
            >>> sandbox.render("template1.formletter", {"title": "Mr.", "surname": "Pupius"})
            "Dear Mr. Pupius: With a name like Mr. Pupius, shouldn't you ..."

    """

    __slots__ = ("_globals", "_initialized", "_name", "_options", "_template_cache")

    def __init__(self, name: str, options: CompileOptions):
        self._name = name
        self._options = options
        self._globals: dict[str, Any] = self._new_globals()
        self._initialized = False
        # Caching the resolved function avoids a dotted lookup per render.
        self._template_cache: dict[str, Callable[..., Any]] = {}

    def _new_globals(self) -> dict[str, Any]:
        return {"__name__": f"soypy.sandbox.{self._name}", "__builtins__": builtins}

    @property
    def name(self) -> str:
        """Unique name of this context (its locale, or ``"default"``)."""
        return self._name

    @property
    def initialized(self) -> bool:
        """Whether the support modules have been executed."""
        return self._initialized

    def get_context(self) -> dict[str, Any]:
        """The raw globals dict. Useful for injecting globals manually."""
        return self._globals

    def set_context(self, context: dict[str, Any]) -> None:
        """Replace the raw globals dict.

        Beware of dropping the support code: the context still counts as
        initialized.
        """
        self._globals = context
        self._template_cache = {}

    def reset_override_registry(self) -> None:
        """Empty the delegate registries so reloaded modules can re-register."""
        for registry in DELEGATE_REGISTRIES:
            self._globals[registry] = {}

    async def load_modules(self, paths: Sequence[str]) -> None:
        """Execute ``options.context_paths`` and then ``paths`` into this context.

        Raises:
            LoadError: If a file cannot be read or raises while executing.
                Modules after the failing one are not executed.
        """
        if self._initialized:
            self.reset_override_registry()
        else:
            support = [*SUPPORT_MODULES, self._options.soy_utils_path]
            await self._execute_all(support, support=True)
            self._initialized = True

        try:
            await self._execute_all([*self._options.context_paths, *paths])
        finally:
            # Modules before a failing one have already rebound their names.
            self._template_cache = {}

    # The compiler-facing name for the same operation.
    load_compiled_template_files = load_modules

    async def _execute_all(self, paths: Sequence[str], *, support: bool = False) -> None:
        sources = await asyncio.gather(
            *(_fetch(path, support=support) for path in paths),
            return_exceptions=True,
        )
        for path, source in zip(paths, sources, strict=True):
            if isinstance(source, BaseException):
                raise LoadError(
                    path, str(source), code=ErrorCode.MODULE_UNREADABLE
                ) from source
            self._execute(path, source)

    def _execute(self, path: str, source: str) -> None:
        try:
            code = compile(source, path, "exec")
            exec(code, self._globals)
        except Exception as e:
            raise LoadError(path, f"{type(e).__name__}: {e}") from e

    def get(self, template_name: str) -> Callable[..., Any]:
        """Resolve a template function by dotted name, e.g. ``ns.template``.

        Note: with dynamic recompilation the returned reference is not
        updated; call ``get()`` again after a reload.

        Raises:
            ConfigurationError: If ``load_compiled_templates`` is off.
            UnknownTemplateError: If the name does not resolve to a callable.
        """
        if not self._options.load_compiled_templates:
            raise ConfigurationError(
                "Cannot load template, try with `load_compiled_templates=True`",
                code=ErrorCode.LOADING_DISABLED,
            )

        template = self._template_cache.get(template_name)
        if template is None:
            try:
                template = self._resolve(template_name)
            except Exception as e:
                raise UnknownTemplateError(template_name) from e
            if not callable(template):
                raise UnknownTemplateError(template_name, self._suggest(template_name))
            self._template_cache[template_name] = template
        return template

    def render(
        self,
        template_name: str,
        data: dict[str, Any] | None = None,
        injected_data: dict[str, Any] | None = None,
    ) -> str:
        """Render ``template_name`` with ``data`` and injected (``$ij``) data."""
        # Strict autoescape templates return SanitizedContent, not str.
        return str(self.get(template_name)(data, None, injected_data))

    def _resolve(self, dotted: str) -> Any:
        head, _, rest = dotted.partition(".")
        obj = self._globals.get(head)
        for part in rest.split(".") if rest else ():
            if obj is None:
                return None
            obj = getattr(obj, part, None)
        return obj

    def _suggest(self, template_name: str) -> str | None:
        namespace_type = self._globals.get("Namespace")
        if not isinstance(namespace_type, type):
            return None

        names: list[str] = []
        stack = [
            (key, value)
            for key, value in self._globals.items()
            if isinstance(value, namespace_type) and key != "soy"
        ]
        while stack:
            prefix, obj = stack.pop()
            for attr, value in vars(obj).items():
                dotted = f"{prefix}.{attr}"
                if isinstance(value, namespace_type):
                    stack.append((dotted, value))
                elif callable(value):
                    names.append(dotted)

        matches = get_close_matches(template_name, names, n=1, cutoff=0.6)
        return matches[0] if matches else None
