"""Pytest configuration and fixtures for soypy tests."""

from __future__ import annotations

import asyncio
import shutil
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from soypy import SoyCompiler

TESTS_DIR = Path(__file__).parent
ASSETS_DIR = TESTS_DIR / "assets"
CONTEXT_DIR = TESTS_DIR / "context"
FAKE_SOYC = TESTS_DIR / "fake_soyc.py"

GOLDEN = {
    None: (
        "Dear {title} {surname}: With a name like {title} {surname}, "
        "shouldn't you have your own theme song? We can help!"
    ),
    "pt-BR": (
        "Querido {title} {surname}: Com um nome como {title} {surname}, "
        "você não deveria ter o seu própro tema musical? Nós podemos ajudar!"
    ),
    "es": (
        "Estimado {title} {surname}: Con un nombre como {title} {surname}, "
        "¿no debería tener su propia canción? Nosotros podemos ayudarle!"
    ),
}


class RecordingWatcher:
    """Stands in for FileWatcher; change notifications are fired by hand."""

    def __init__(self) -> None:
        self.files: list[str] = []
        self.callbacks: list = []

    def watch(self, path, callback) -> None:
        self.files.append(path)
        self.callbacks.append(callback)

    def stop(self) -> None:
        self.files.clear()
        self.callbacks.clear()


class FakeClock:
    """Manually advanced time source, in seconds."""

    def __init__(self, now: float = 1.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def watcher() -> RecordingWatcher:
    return RecordingWatcher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    return tmp_path / "soypy"


@pytest.fixture
def compiler(watcher: RecordingWatcher, clock: FakeClock, tmp_dir: Path) -> SoyCompiler:
    """SoyCompiler wired to the stand-in compiler and a recording watcher."""
    compiler = SoyCompiler(file_watcher=watcher, clock=clock)
    compiler.set_options(
        compiler_command=[sys.executable, str(FAKE_SOYC)],
        tmp_dir=str(tmp_dir),
    )
    return compiler


@pytest.fixture
def spawns(monkeypatch: pytest.MonkeyPatch) -> list[SimpleNamespace]:
    """Record every compiler process started (argv and cwd)."""
    calls: list[SimpleNamespace] = []
    original = asyncio.create_subprocess_exec

    async def recording(*args, **kwargs):
        calls.append(SimpleNamespace(args=list(args), cwd=kwargs.get("cwd")))
        return await original(*args, **kwargs)

    monkeypatch.setattr(asyncio, "create_subprocess_exec", recording)
    return calls


@pytest.fixture
def assets_copy(tmp_path: Path) -> Path:
    """A writable copy of the template assets."""
    target = tmp_path / "assets"
    shutil.copytree(ASSETS_DIR, target)
    return target


def assert_templates_contents(compiler: SoyCompiler, locale: str | None = None) -> None:
    """Both form letters render the golden greeting for ``locale``."""
    template1 = compiler.render(
        "template1.formletter", {"title": "Mr.", "surname": "Pupius"}, None, locale
    )
    template2 = compiler.render(
        "template2.formletter", {"title": "Mr.", "surname": "Santos"}, None, locale
    )
    assert isinstance(template1, str)
    assert isinstance(template2, str)
    assert template1 == GOLDEN[locale].format(title="Mr.", surname="Pupius")
    assert template2 == GOLDEN[locale].format(title="Mr.", surname="Santos")
