"""Precompiled templates -- render without running the compiler.

Loads generated ``.soy.py`` modules shipped with the app (the output of an
earlier ``compile_templates`` run) into sandbox contexts: the default one
from ``build/`` and a Portuguese one from ``build/pt-BR/``.

Run:
    python app.py
"""

import asyncio
from pathlib import Path

from soypy import SoyCompiler

BUILD_DIR = Path(__file__).parent / "build"

compiler = SoyCompiler()


async def load() -> None:
    await compiler.load_compiled_template_files([str(BUILD_DIR / "welcome.soy.py")])
    await compiler.load_compiled_templates(str(BUILD_DIR / "pt-BR"), locale="pt-BR")


asyncio.run(load())

output = compiler.render("welcome.page", {"name": "Ana <3"})
pro_output = compiler.render("welcome.page", {"name": "Ana", "plan": "pro"})
localized_output = compiler.render("welcome.page", {"name": "Ana"}, locale="pt-BR")


if __name__ == "__main__":
    print(output)
    print(pro_output)
    print(localized_output)
