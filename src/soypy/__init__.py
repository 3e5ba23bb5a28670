"""soypy — compile Closure Templates (Soy) and render them from Python.

soypy drives an external Soy compiler over a directory (or list) of
``.soy`` files, loads the generated Python into isolated sandbox contexts
(one per locale), and hands back render functions. The compiler is not
bundled; it must emit modules in the shape described in ``soypy.process``.

Quickstart:
    >>> from soypy import SoyCompiler
    >>> compiler = SoyCompiler()
    >>> compiler.set_options(compiler_command=["soy-to-soypy"])
    >>> await compiler.compile_templates("templates/")
    >>> compiler.render("template1.formletter", {"title": "Mr.", "surname": "Pupius"})
    "Dear Mr. Pupius: With a name like Mr. Pupius, shouldn't you have your own theme song? We can help!"

Architecture:
Sources → Artifact cache → External compiler → Sandbox contexts → render()

Pipeline stages:
1. **Artifact cache**: reuse output from ``precompiled_dir`` when every
   locale of a file is present; only the rest is compiled
2. **Compiler process**: one invocation for all dirty files and locales
3. **Post-compile**: per locale, in order, optionally concatenate output and
   load it into that locale's sandbox
4. **Dynamic recompile** (optional): watched sources trigger debounced,
   serialized passes over just the changed files

Sandboxes:
Each locale gets its own globals dict. The runtime support code runs once per
sandbox; later loads only reset the delegate registries, so reloaded
``{deltemplate}`` registrations never collide.

Errors:
``ConfigurationError``, ``CompileProcessError``, ``LoadError`` and
``UnknownTemplateError`` all derive from ``SoyError``.

"""

from soypy.compiler import SoyCompiler
from soypy.events import CompileEvents
from soypy.exceptions import (
    CompileProcessError,
    ConfigurationError,
    ErrorCode,
    LoadError,
    SoyError,
    UnknownTemplateError,
)
from soypy.options import CompileOptions
from soypy.sandbox import SandboxContext

__version__ = "0.1.0"

__all__ = [
    "CompileEvents",
    "CompileOptions",
    "CompileProcessError",
    "ConfigurationError",
    "ErrorCode",
    "LoadError",
    "SandboxContext",
    "SoyCompiler",
    "SoyError",
    "UnknownTemplateError",
    "__version__",
]
