"""Exceptions for the soypy compile/load pipeline.

Exception Hierarchy:
SoyError (base)
├── ConfigurationError      # Invalid option key, no compiler configured, or loading disabled
├── CompileProcessError     # External compiler exited nonzero or failed to spawn
├── LoadError               # Generated module unreadable or raised while executing
└── UnknownTemplateError    # Template name does not resolve to a function

Recovery:
Only the errors above reach callers. Cache-lookup I/O errors, concatenation
errors and watch-registration errors are logged where they happen and the
pipeline continues.

Example:
    ```
    S-CMP-001: Error compiling templates (exit code 1)
    template1.soy:4: error: Undefined variable $titl.
      Docs: https://soypy.readthedocs.io/en/latest/errors.html#s-cmp-001
    ```

"""

from __future__ import annotations

from enum import Enum

_SOYPY_DOCS_BASE = "https://soypy.readthedocs.io/en/latest/errors.html"


class ErrorCode(Enum):
    """Searchable error codes for soypy errors.

    Format: S-{CATEGORY}-{NUMBER}
    Categories: CFG (configuration), CMP (compiler process), LOD (loading)
    """

    # Configuration errors (S-CFG-xxx)
    INVALID_OPTION = "S-CFG-001"
    LOADING_DISABLED = "S-CFG-002"
    COMPILER_UNSET = "S-CFG-003"

    # Compiler process errors (S-CMP-xxx)
    COMPILER_FAILED = "S-CMP-001"
    COMPILER_SPAWN = "S-CMP-002"

    # Loading errors (S-LOD-xxx)
    MODULE_UNREADABLE = "S-LOD-001"
    MODULE_EXECUTION = "S-LOD-002"
    UNKNOWN_TEMPLATE = "S-LOD-003"

    @property
    def docs_url(self) -> str:
        """Documentation URL for this error code."""
        return f"{_SOYPY_DOCS_BASE}#{self.value.lower()}"

    @property
    def category(self) -> str:
        """Error category (e.g., 'configuration', 'compiler', 'loading')."""
        prefix = self.value.split("-")[1]
        return {
            "CFG": "configuration",
            "CMP": "compiler",
            "LOD": "loading",
        }.get(prefix, "unknown")


class SoyError(Exception):
    """Base exception for all soypy errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a short diagnostic with its code and docs URL."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        parts = [header]
        if self.code:
            parts.append(f"  Docs: {self.code.docs_url}")
        return "\n".join(parts)


class ConfigurationError(SoyError):
    """Invalid configuration, or an operation the configuration does not allow.

    Raised by ``CompileOptions.merge()`` for unknown keys, by
    ``compiler_launcher()`` when no compiler is configured, and by
    ``SandboxContext.get()`` when ``load_compiled_templates`` is off.
    These are programmer errors and are never retried.
    """

    code: ErrorCode | None = ErrorCode.INVALID_OPTION

    def __init__(self, message: str, code: ErrorCode | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class CompileProcessError(SoyError):
    """The external template compiler failed.

    Attributes:
        stderr: Everything the compiler wrote to standard error.
        returncode: Process exit status, or None when the process never started.
    """

    code: ErrorCode | None = ErrorCode.COMPILER_FAILED

    def __init__(self, stderr: str = "", returncode: int | None = None):
        self.stderr = stderr
        self.returncode = returncode
        if returncode is None:
            self.code = ErrorCode.COMPILER_SPAWN
            message = "Error compiling templates (compiler did not start)"
        else:
            message = f"Error compiling templates (exit code {returncode})"
        if stderr.strip():
            message += f"\n{stderr.rstrip()}"
        super().__init__(message)


class LoadError(SoyError):
    """A generated module could not be read or raised while executing.

    Attributes:
        path: File that failed to load.
    """

    code: ErrorCode | None = ErrorCode.MODULE_EXECUTION

    def __init__(self, path: str, reason: str, code: ErrorCode | None = None):
        self.path = path
        self.reason = reason
        if code is not None:
            self.code = code
        super().__init__(f"Error loading {path}: {reason}")


class UnknownTemplateError(SoyError):
    """Template name does not resolve to a function in the sandbox context.

    Example:
            >>> compiler.get("template1.formleter")
        UnknownTemplateError: Unknown template [template1.formleter]. Did you mean 'template1.formletter'?

    """

    code: ErrorCode | None = ErrorCode.UNKNOWN_TEMPLATE

    def __init__(self, template_name: str, suggestion: str | None = None):
        self.template_name = template_name
        self.suggestion = suggestion
        message = f"Unknown template [{template_name}]"
        if suggestion:
            message += f". Did you mean '{suggestion}'?"
        super().__init__(message)
