"""Filesystem layout helpers: source discovery and output paths.

Layout produced by the compiler:
    ```
    output_dir/[locale/]input_directory/input_file_name.soy.py
    output_dir/<concat_file_name>[_<locale>].soy.concat.py
    ```
The locale segment is present only when more than one locale is configured.
A precompiled root uses the same relative structure.

"""

from __future__ import annotations

import os
from datetime import UTC, datetime

from soypy.options import DEFAULT_LOCALE, CompileOptions

GENERATED_SUFFIX = ".py"
CONCAT_SUFFIX = ".soy.concat.py"


def join(*parts: str) -> str:
    """Join path segments, keeping absolute segments *under* earlier ones.

    ``os.path.join`` discards everything before an absolute segment; output
    paths instead nest absolute input directories below the output root.

        >>> join("/tmp/out", "/srv/app/templates", "a.soy")
        '/tmp/out/srv/app/templates/a.soy'
    """
    return os.path.normpath(os.sep.join(p for p in parts if p))


def find_files(directory: str, extension: str) -> list[str]:
    """Collect files ending in ``.<extension>`` below ``directory``.

    Entries without a dot in their name are treated as potential
    subdirectories and descended into. Returned paths are relative to
    ``directory``.

    Raises:
        OSError: If ``directory`` cannot be read.
    """
    files: list[str] = []
    stack = [directory]
    suffix = f".{extension}"

    while stack:
        current = stack.pop()
        if not os.path.isdir(current):
            if current == directory:
                os.stat(current)  # raise for a missing root
            continue
        for name in sorted(os.listdir(current)):
            fullpath = os.path.join(current, name)
            if name.endswith(suffix):
                files.append(os.path.relpath(fullpath, directory))
            elif "." not in name:
                stack.append(fullpath)
    return files


def output_file(
    options: CompileOptions,
    output_dir: str,
    file: str,
    locale: str | None = None,
) -> str:
    """Path of the generated module for ``file`` in ``locale``."""
    if options.multiple_locales:
        return join(output_dir, locale or DEFAULT_LOCALE, file) + GENERATED_SUFFIX
    return join(output_dir, file) + GENERATED_SUFFIX


def output_path_format(options: CompileOptions, output_dir: str) -> str:
    """The ``--outputPathFormat`` value handed to the compiler."""
    name = "{INPUT_FILE_NAME}" + GENERATED_SUFFIX
    if options.multiple_locales:
        return os.path.join(output_dir, "{LOCALE}", "{INPUT_DIRECTORY}", name)
    return os.path.join(output_dir, "{INPUT_DIRECTORY}", name)


def concat_file(options: CompileOptions, output_dir: str, locale: str | None = None) -> str:
    """Path of the concatenated output for ``locale``."""
    name = options.concat_file_name
    if options.multiple_locales:
        name += f"_{locale or DEFAULT_LOCALE}"
    return os.path.join(output_dir, name + CONCAT_SUFFIX)


def create_output_dir(options: CompileOptions) -> str:
    """Resolve this run's output root, timestamped when ``unique_dir`` is set."""
    directory = options.output_dir or options.tmp_dir
    if options.unique_dir:
        stamp = datetime.now(UTC).isoformat(timespec="milliseconds").replace(":", "_")
        directory = os.path.join(directory, stamp)
    return directory
