"""Tests for soypy.sandbox — isolated contexts that generated modules execute into."""

from __future__ import annotations

from pathlib import Path

import pytest

from soypy import sandbox as sandbox_module
from soypy.exceptions import (
    ConfigurationError,
    ErrorCode,
    LoadError,
    UnknownTemplateError,
)
from soypy.options import CompileOptions
from soypy.sandbox import SandboxContext

from tests.conftest import CONTEXT_DIR

GREET = """\
provide('greet')


def _greet_hello(opt_data=None, opt_ignored=None, opt_ij_data=None):
    opt_data = opt_data or {}
    return soy.ordain_content('Hello ' + soy.escape_html(opt_data.get('name')))


greet.hello = _greet_hello
"""

GREET_V2 = GREET.replace("'Hello '", "'Howdy '")

PAGE = """\
provide('page')


def _page_main(opt_data=None, opt_ignored=None, opt_ij_data=None):
    return '[' + str(greet.hello(opt_data, None, opt_ij_data)) + ']'


page.main = _page_main
"""

BANNER = """\
provide('banner')


def _banner_show(opt_data=None, opt_ignored=None, opt_ij_data=None):
    return str(soy.get_delegate_fn(soy.get_del_template_id('banner.item'), opt_data['kind'])())


banner.show = _banner_show


def _item_default(opt_data=None, opt_ignored=None, opt_ij_data=None):
    return 'default'


def _item_sale(opt_data=None, opt_ignored=None, opt_ij_data=None):
    return 'sale'


soy.register_delegate_fn(soy.get_del_template_id('banner.item'), '', 0, _item_default)
soy.register_delegate_fn(soy.get_del_template_id('banner.item'), 'sale', 0, _item_sale)
"""

INJECTED = """\
provide('site')


def _site_footer(opt_data=None, opt_ignored=None, opt_ij_data=None):
    return 'v' + str(opt_ij_data['version'])


site.footer = _site_footer
"""


@pytest.fixture
def write(tmp_path: Path):
    def write(name: str, source: str) -> str:
        path = tmp_path / name
        path.write_text(source, "utf-8")
        return str(path)

    return write


@pytest.fixture
def options() -> CompileOptions:
    return CompileOptions()


@pytest.fixture
def sandbox(options: CompileOptions) -> SandboxContext:
    return SandboxContext("default", options)


class TestLoading:
    @pytest.mark.asyncio
    async def test_load_and_render(self, sandbox, write) -> None:
        await sandbox.load_modules([write("greet.soy.py", GREET)])
        assert sandbox.initialized
        assert sandbox.render("greet.hello", {"name": "<Ana>"}) == "Hello &lt;Ana&gt;"

    @pytest.mark.asyncio
    async def test_render_coerces_sanitized_content(self, sandbox, write) -> None:
        await sandbox.load_modules([write("greet.soy.py", GREET)])
        raw = sandbox.get("greet.hello")({"name": "Ana"}, None, None)
        assert not isinstance(raw, str)
        assert isinstance(sandbox.render("greet.hello", {"name": "Ana"}), str)

    @pytest.mark.asyncio
    async def test_modules_execute_in_given_order(self, sandbox, write) -> None:
        greet = write("greet.soy.py", GREET)
        page = write("page.soy.py", PAGE)
        await sandbox.load_modules([greet, page])
        assert sandbox.render("page.main", {"name": "Ana"}) == "[Hello Ana]"

    @pytest.mark.asyncio
    async def test_injected_data(self, sandbox, write) -> None:
        await sandbox.load_modules([write("site.soy.py", INJECTED)])
        assert sandbox.render("site.footer", {}, {"version": 3}) == "v3"

    @pytest.mark.asyncio
    async def test_load_compiled_template_files_alias(self, sandbox, write) -> None:
        await sandbox.load_compiled_template_files([write("greet.soy.py", GREET)])
        assert sandbox.render("greet.hello", {"name": "Ana"}) == "Hello Ana"

    @pytest.mark.asyncio
    async def test_support_runs_once(self, monkeypatch, sandbox, write) -> None:
        marker = write("marker.py", "SUPPORT_RUNS = globals().get('SUPPORT_RUNS', 0) + 1\n")
        monkeypatch.setattr(
            sandbox_module, "SUPPORT_MODULES", (*sandbox_module.SUPPORT_MODULES, marker)
        )
        greet = write("greet.soy.py", GREET)

        await sandbox.load_modules([greet])
        soy = sandbox.get_context()["soy"]
        await sandbox.load_modules([greet])
        await sandbox.load_modules([greet])

        assert sandbox.get_context()["SUPPORT_RUNS"] == 1
        assert sandbox.get_context()["soy"] is soy

    @pytest.mark.asyncio
    async def test_context_paths_run_before_modules(self, options, sandbox, write) -> None:
        options.merge(context_paths=[write("ctx.py", "greet = Namespace(prefix='ctx')\n")])
        await sandbox.load_modules([write("greet.soy.py", GREET)])
        greet = sandbox.get_context()["greet"]
        assert greet.prefix == "ctx"
        assert callable(greet.hello)

    @pytest.mark.asyncio
    async def test_undeclared_top_level_namespace(self, options, sandbox, write) -> None:
        module = write(
            "template1.soy.py",
            "provide('template1', declare_top_level=False)\n"
            "template1.formletter = lambda d=None, i=None, ij=None: 'ok'\n",
        )
        with pytest.raises(LoadError, match="Top-level namespace 'template1'"):
            await sandbox.load_modules([module])

        options.merge(context_paths=[str(CONTEXT_DIR / "template1_namespace.py")])
        await sandbox.load_modules([module])
        assert sandbox.render("template1.formletter") == "ok"


class TestReload:
    @pytest.mark.asyncio
    async def test_delegates_reregister_after_reset(self, sandbox, write) -> None:
        banner = write("banner.soy.py", BANNER)
        await sandbox.load_modules([banner])
        await sandbox.load_modules([banner])
        assert sandbox.render("banner.show", {"kind": "sale"}) == "sale"
        assert sandbox.render("banner.show", {"kind": "unknown"}) == "default"

    @pytest.mark.asyncio
    async def test_reset_override_registry(self, sandbox, write) -> None:
        await sandbox.load_modules([write("banner.soy.py", BANNER)])
        sandbox.reset_override_registry()
        context = sandbox.get_context()
        assert context["_DELEGATE_REGISTRY_PRIORITIES"] == {}
        assert context["_DELEGATE_REGISTRY_FUNCTIONS"] == {}
        with pytest.raises(LookupError):
            sandbox.render("banner.show", {"kind": "sale"})

    @pytest.mark.asyncio
    async def test_reload_replaces_cached_function(self, sandbox, write) -> None:
        path = write("greet.soy.py", GREET)
        await sandbox.load_modules([path])
        assert sandbox.render("greet.hello", {"name": "Ana"}) == "Hello Ana"

        Path(path).write_text(GREET_V2, "utf-8")
        await sandbox.load_modules([path])
        assert sandbox.render("greet.hello", {"name": "Ana"}) == "Howdy Ana"

    @pytest.mark.asyncio
    async def test_failed_reload_drops_cached_function(self, sandbox, write) -> None:
        path = write("greet.soy.py", GREET)
        await sandbox.load_modules([path])
        assert sandbox.render("greet.hello", {"name": "Ana"}) == "Hello Ana"

        Path(path).write_text(GREET_V2, "utf-8")
        broken = write("broken.soy.py", "raise RuntimeError('boom')\n")
        with pytest.raises(LoadError):
            await sandbox.load_modules([path, broken])
        assert sandbox.render("greet.hello", {"name": "Ana"}) == "Howdy Ana"


class TestIsolation:
    @pytest.mark.asyncio
    async def test_contexts_do_not_share_templates(self, options, write) -> None:
        english = SandboxContext("en", options)
        spanish = SandboxContext("es", options)
        await english.load_modules([write("greet.soy.py", GREET)])
        await spanish.load_modules([])

        assert english.render("greet.hello", {"name": "Ana"}) == "Hello Ana"
        assert "greet" not in spanish.get_context()
        with pytest.raises(UnknownTemplateError):
            spanish.get("greet.hello")

    def test_set_context(self, sandbox) -> None:
        sandbox.set_context({"site": type("Site", (), {"footer": staticmethod(lambda *a: "x")})})
        assert sandbox.render("site.footer") == "x"


class TestErrors:
    @pytest.mark.asyncio
    async def test_unreadable_module(self, sandbox, tmp_path) -> None:
        missing = str(tmp_path / "missing.soy.py")
        with pytest.raises(LoadError) as exc:
            await sandbox.load_modules([missing])
        assert exc.value.path == missing
        assert exc.value.code is ErrorCode.MODULE_UNREADABLE

    @pytest.mark.asyncio
    async def test_raising_module_aborts_batch(self, sandbox, write) -> None:
        broken = write("broken.soy.py", "raise RuntimeError('boom')\n")
        after = write("after.soy.py", "AFTER = True\n")
        with pytest.raises(LoadError, match="RuntimeError: boom") as exc:
            await sandbox.load_modules([broken, after])
        assert exc.value.path == broken
        assert exc.value.code is ErrorCode.MODULE_EXECUTION
        assert "AFTER" not in sandbox.get_context()

    @pytest.mark.asyncio
    async def test_missing_module_stops_later_ones(self, sandbox, write, tmp_path) -> None:
        after = write("after.soy.py", "AFTER = True\n")
        with pytest.raises(LoadError):
            await sandbox.load_modules([str(tmp_path / "missing.soy.py"), after])
        assert "AFTER" not in sandbox.get_context()

    @pytest.mark.asyncio
    async def test_syntax_error(self, sandbox, write) -> None:
        with pytest.raises(LoadError, match="SyntaxError"):
            await sandbox.load_modules([write("bad.soy.py", "def (:\n")])

    @pytest.mark.asyncio
    async def test_unknown_template_suggestion(self, sandbox, write) -> None:
        await sandbox.load_modules([write("greet.soy.py", GREET)])
        with pytest.raises(UnknownTemplateError) as exc:
            sandbox.get("greet.helo")
        assert exc.value.suggestion == "greet.hello"
        assert "Did you mean 'greet.hello'?" in str(exc.value)
        assert exc.value.code is ErrorCode.UNKNOWN_TEMPLATE

    @pytest.mark.asyncio
    async def test_non_callable_is_unknown(self, sandbox, write) -> None:
        await sandbox.load_modules([write("greet.soy.py", GREET)])
        with pytest.raises(UnknownTemplateError):
            sandbox.get("greet")

    def test_get_without_loading(self) -> None:
        options = CompileOptions()
        options.merge(load_compiled_templates=False)
        sandbox = SandboxContext("default", options)
        with pytest.raises(ConfigurationError, match="load_compiled_templates") as exc:
            sandbox.get("greet.hello")
        assert exc.value.code is ErrorCode.LOADING_DISABLED
