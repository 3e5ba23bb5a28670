"""Compile options for a SoyCompiler.

One ``CompileOptions`` belongs to each compiler. It is changed only through
``merge()``, which accepts exactly the dataclass field names:

    >>> options = CompileOptions()
    >>> options.merge(locales=["pt-BR", "es"], unique_dir=False)
    >>> options.locales
    ('pt-BR', 'es')
    >>> options.merge(outputDir="/tmp/x")
    Traceback (most recent call last):
    ...
    soypy.exceptions.ConfigurationError: Invalid option key [outputDir]

"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from soypy.exceptions import ConfigurationError, ErrorCode

RUNTIME_DIR = Path(__file__).parent / "runtime"

DEFAULT_SOY_UTILS_PATH = str(RUNTIME_DIR / "soyutils.py")

# Key for the context used when no locales are configured.
DEFAULT_LOCALE = "default"

# Options holding absolute paths; relative values are resolved on merge.
_RESOLVED_PATHS = frozenset({"tmp_dir", "output_dir"})


def _default_jar_path() -> str:
    return os.environ.get("SOYPY_JAR", "SoyToPySrcCompiler.jar")


@dataclass(slots=True)
class CompileOptions:
    """Everything that affects how templates are compiled and loaded.

    Attributes:
        tmp_dir: Output root used when ``output_dir`` is unset (deprecated).
        input_dir: Working directory of the compiler process when compiling
            an explicit file list.
        output_dir: Root under which generated ``.soy.py`` files are written.
        precompiled_dir: Root of previously generated files to reuse. May be
            the same as ``output_dir`` to reuse results of earlier runs.
        unique_dir: Write each run into a timestamped subdirectory.
        allow_dynamic_recompile: Watch sources and recompile them on change.
        load_compiled_templates: Execute generated code into sandbox contexts.
        erase_temporary_files: Delete the output after a one-shot compile.
        use_closure_style: Alias for ``should_provide_require_soy_namespaces``.
        should_generate_jsdoc: Ask the compiler for type annotations.
        should_provide_require_soy_namespaces: One provide per Soy namespace.
        should_provide_require_js_functions: One provide per template function.
        css_handling_scheme: ``literal``, ``reference`` or ``goog``.
        classpath: Extra classpath entries (compiler plugins).
        plugin_modules: Plugin module class names for the compiler.
        context_paths: Python files executed before every batch of templates.
        concat_output: Also join each locale's output into one file.
        concat_file_name: Base name of the joined file.
        locales: Locales to translate into. Empty means unlocalized.
        message_file_path_format: Message catalog path; may contain ``{LOCALE}``.
        should_declare_top_level_namespaces: When false, generated code assumes
            the top-level name of each namespace already exists.
        proto_file_descriptors: Path to proto descriptors.
        java_path: JVM launcher.
        soy_jar_path: Compiler jar (``$SOYPY_JAR`` by default).
        compiler_class: Main class of a JVM compiler that emits soypy modules.
        compiler_command: Full argv prefix used instead of the java launcher.
            One of ``compiler_command`` and ``compiler_class`` must be set.
        soy_utils_path: Last support module executed into every context.
    """

    tmp_dir: str = field(default_factory=lambda: os.path.join(tempfile.gettempdir(), "soypy"))
    input_dir: str = field(default_factory=os.getcwd)
    output_dir: str | None = None
    precompiled_dir: str | None = None
    unique_dir: bool = True
    allow_dynamic_recompile: bool = False
    load_compiled_templates: bool = True
    erase_temporary_files: bool = False
    use_closure_style: bool = False
    should_generate_jsdoc: bool = False
    should_provide_require_soy_namespaces: bool = False
    should_provide_require_js_functions: bool = False
    css_handling_scheme: str | None = None
    classpath: tuple[str, ...] = ()
    plugin_modules: tuple[str, ...] = ()
    context_paths: tuple[str, ...] = ()
    concat_output: bool = False
    concat_file_name: str = "compiled"
    locales: tuple[str, ...] = ()
    message_file_path_format: str | None = None
    should_declare_top_level_namespaces: bool = True
    proto_file_descriptors: str = ""
    java_path: str = "java"
    soy_jar_path: str = field(default_factory=_default_jar_path)
    compiler_class: str | None = None
    compiler_command: tuple[str, ...] | None = None
    soy_utils_path: str = DEFAULT_SOY_UTILS_PATH

    def merge(self, **overrides: Any) -> None:
        """Apply ``overrides`` in place.

        Raises:
            ConfigurationError: If any key is not an option name. Nothing is
                applied in that case.
        """
        known = {f.name: f for f in fields(self)}
        for key in overrides:
            if key not in known:
                raise ConfigurationError(
                    f"Invalid option key [{key}]", code=ErrorCode.INVALID_OPTION
                )

        for key, value in overrides.items():
            if key in _RESOLVED_PATHS:
                # Resolve now so later chdir() calls cannot move the output.
                if not value:
                    continue
                value = os.path.abspath(value)
            elif isinstance(value, list):
                value = tuple(value)
            setattr(self, key, value)

    @property
    def vm_types(self) -> tuple[str, ...]:
        """Context keys to compile and load for: the locales, or the default."""
        return self.locales or (DEFAULT_LOCALE,)

    @property
    def multiple_locales(self) -> bool:
        """Whether output is split into one subdirectory per locale."""
        return len(self.locales) > 1
