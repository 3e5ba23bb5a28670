"""External compiler invocation.

The template compiler is a separate program. soypy ships none: set
``options.compiler_command`` to a full argv prefix, or ``compiler_class``
(plus ``soy_jar_path`` and ``classpath``) to launch one on a JVM. This module
builds its command line from ``CompileOptions`` and runs it as a child
process rooted at the input directory. Only the exit status, standard error,
and the files it writes are observed.

Command line:
    ```
    java -classpath <jar>:<classpath...> <compiler_class>
        [--shouldGenerateJsdoc]
        [--shouldProvideRequireSoyNamespaces | --shouldProvideRequireJsFunctions]
        [--cssHandlingScheme <scheme>] [--pluginModules a,b]
        [--locales a,b] [--messageFilePathFormat <fmt>]
        [--shouldDeclareTopLevelNamespaces false] [--protoFileDescriptors <dir>]
        --outputPathFormat <output_dir>/[{LOCALE}/]{INPUT_DIRECTORY}/{INPUT_FILE_NAME}.py
        <dirty files...>
    ```
``options.compiler_command`` replaces everything before the first flag.

Output contract:
Each generated module is plain Python executed into a sandbox that already
holds the ``runtime`` support code. It must

- declare its namespace with ``provide("ns.sub")`` and assign templates onto
  it (``ns.sub.name = fn``);
- define templates as ``fn(opt_data=None, opt_ignored=None, opt_ij_data=None)``
  returning ``str`` or ``SanitizedContent``;
- register delegate templates with ``soy.register_delegate_fn(id, variant,
  priority, fn)``.

The stock Closure Templates Python backend (``SoyToPySrcCompiler``) emits
importable modules instead, so it needs a plugin or wrapper that produces
this shape.

"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from typing import TYPE_CHECKING

from soypy.exceptions import CompileProcessError, ConfigurationError, ErrorCode
from soypy.paths import output_path_format

if TYPE_CHECKING:
    from soypy.options import CompileOptions

logger = logging.getLogger(__name__)


def compiler_launcher(options: CompileOptions) -> list[str]:
    """The argv prefix that starts the compiler.

    Raises:
        ConfigurationError: If neither ``compiler_command`` nor
            ``compiler_class`` is set.
    """
    if options.compiler_command:
        return list(options.compiler_command)
    if not options.compiler_class:
        raise ConfigurationError(
            "No template compiler configured, set `compiler_command` or `compiler_class`",
            code=ErrorCode.COMPILER_UNSET,
        )
    classpath = os.pathsep.join([options.soy_jar_path, *options.classpath])
    return [options.java_path, "-classpath", classpath, options.compiler_class]


def build_compiler_args(
    options: CompileOptions,
    output_dir: str,
    dirty_files: Sequence[str],
) -> list[str]:
    """Full argv for compiling ``dirty_files`` into ``output_dir``."""
    args = compiler_launcher(options)

    if options.should_generate_jsdoc:
        args.append("--shouldGenerateJsdoc")

    if options.use_closure_style or options.should_provide_require_soy_namespaces:
        args.append("--shouldProvideRequireSoyNamespaces")
    elif options.should_provide_require_js_functions:
        args.append("--shouldProvideRequireJsFunctions")

    if options.css_handling_scheme is not None:
        args += ["--cssHandlingScheme", options.css_handling_scheme]

    if options.plugin_modules:
        args += ["--pluginModules", ",".join(options.plugin_modules)]

    if options.locales:
        args += ["--locales", ",".join(options.locales)]

    if options.message_file_path_format:
        args += ["--messageFilePathFormat", options.message_file_path_format]

    if not options.should_declare_top_level_namespaces:
        args += ["--shouldDeclareTopLevelNamespaces", "false"]

    if options.proto_file_descriptors:
        args += ["--protoFileDescriptors", options.proto_file_descriptors]

    args += ["--outputPathFormat", output_path_format(options, output_dir)]
    args.extend(dirty_files)
    return args


async def run_compiler(args: Sequence[str], cwd: str) -> None:
    """Run the compiler to completion.

    Raises:
        CompileProcessError: On a nonzero exit, carrying everything written
            to stderr, or when the process cannot be started.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error("Compile error\n%s", e)
        raise CompileProcessError(str(e)) from e

    _, stderr = await process.communicate()
    if process.returncode != 0:
        text = stderr.decode("utf-8", errors="replace")
        logger.error("Compile error\n%s", text)
        raise CompileProcessError(text, process.returncode)
