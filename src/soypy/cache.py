"""Precompiled-artifact cache.

Decides which source files still need compiling when a ``precompiled_dir``
holds output from an earlier run (or from another compiler), and copies the
reusable output into this run's output directory.

Reuse is all-or-nothing per file: a file counts as cached only when its
artifact exists for *every* configured locale. The compiler is invoked once
for all locales, so a file missing one translation is recompiled for all of
them, keeping the output directory consistent across locales.

"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Sequence
from typing import TYPE_CHECKING

from soypy.paths import output_file

if TYPE_CHECKING:
    from soypy.options import CompileOptions

logger = logging.getLogger(__name__)


def _prepare_artifact(precompiled: str, target: str) -> bool:
    """Make ``precompiled`` available at ``target``. False when unusable."""
    if not os.path.isfile(precompiled):
        return False
    if target != precompiled:
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            shutil.copyfile(precompiled, target)
        except OSError as e:
            logger.warning("Error copying precompiled file %s: %s", precompiled, e)
            return False
    return True


async def _prepare_file(
    options: CompileOptions,
    output_dir: str,
    precompiled_dir: str,
    file: str,
) -> bool:
    results = await asyncio.gather(
        *(
            asyncio.to_thread(
                _prepare_artifact,
                output_file(options, precompiled_dir, file, locale),
                output_file(options, output_dir, file, locale),
            )
            for locale in options.vm_types
        )
    )
    return all(results)


async def filter_dirty(
    options: CompileOptions,
    output_dir: str,
    files: Sequence[str],
    precompiled_dir: str | None = None,
) -> list[str]:
    """Return the files of ``files`` that have no reusable precompiled output.

    Args:
        options: Compiler options; ``options.locales`` selects the artifacts
            every file needs.
        output_dir: This run's output root. Reusable artifacts are copied here.
        files: Source paths relative to the compiler's input directory.
        precompiled_dir: Root to reuse output from. Defaults to
            ``options.precompiled_dir``; when unset every file is dirty.

    Never raises for I/O problems: a failed lookup makes every file dirty.
    """
    precompiled_dir = precompiled_dir or options.precompiled_dir
    if not precompiled_dir:
        return list(files)

    try:
        satisfied = await asyncio.gather(
            *(_prepare_file(options, output_dir, precompiled_dir, f) for f in files)
        )
    except OSError as e:
        logger.error("Failed loading precompiled files: %s", e)
        return list(files)

    dirty = [f for f, ok in zip(files, satisfied, strict=True) if not ok]
    if len(dirty) != len(files):
        logger.info("Loaded %d precompiled files", len(files) - len(dirty))
    return dirty
