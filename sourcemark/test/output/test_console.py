"""Tests for sourcemark.output.console."""

from __future__ import annotations

import pytest

from sourcemark.output.console import MockConsole, PrefixedConsole, RichConsole, Style


class TestPrefixedConsole:
    def test_prefixes_messages(self) -> None:
        inner = MockConsole()
        console = PrefixedConsole(inner, prefix="[p]")
        console.info("hello")
        console.print("plain", Style.DIM)
        assert inner.messages == ["info: [p] hello", "[p] plain"]
        assert inner.outputs[1].style == Style.DIM

    def test_debug_is_off_by_default(self) -> None:
        inner = MockConsole()
        PrefixedConsole(inner, prefix="[p]").debug("details")
        assert inner.outputs == []

    def test_debug_enabled(self) -> None:
        inner = MockConsole()
        PrefixedConsole(inner, prefix="[p]", debug=True).debug("details")
        assert inner.messages == ["debug: [p] details"]
        assert inner.count(Style.DEBUG) == 1

    def test_silent_keeps_errors(self) -> None:
        inner = MockConsole()
        console = PrefixedConsole(inner, prefix="[p]", silent=True, debug=True)
        console.success("done")
        console.warning("careful")
        console.debug("details")
        console.header("section")
        console.error("broken")
        assert inner.messages == ["error: [p] broken"]


class TestMockConsole:
    def test_helpers(self) -> None:
        console = MockConsole()
        console.warning("a")
        console.error("b")
        assert console.has_warning()
        assert console.has_error()
        assert console.text == "warning: a\nerror: b"
        assert len(console.find("b")) == 1


class TestRichConsole:
    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.error("cannot read [dist]/app.js")
        console.print("[bold]plain[/bold]")
        out = capsys.readouterr().out
        assert "error: cannot read [dist]/app.js" in out
        assert "[bold]plain[/bold]" in out
