"""Tests for the precompiled-templates example."""

import pytest

from soypy import UnknownTemplateError


class TestPrecompiledApp:
    """Verify shipped output renders without a compiler."""

    def test_banner_escapes_data(self, example_app) -> None:
        assert "<h1>Welcome back, Ana &lt;3!</h1>" in example_app.output

    def test_default_delegate(self, example_app) -> None:
        assert "Upgrade to Pro today." in example_app.output

    def test_variant_delegate(self, example_app) -> None:
        assert "Thanks for being a Pro member." in example_app.pro_output

    def test_localized_context(self, example_app) -> None:
        assert example_app.localized_output.startswith("<h1>Bem-vindo de volta, Ana!</h1>")

    def test_contexts_are_separate(self, example_app) -> None:
        with pytest.raises(UnknownTemplateError):
            example_app.compiler.render("welcome.page", locale="es")
