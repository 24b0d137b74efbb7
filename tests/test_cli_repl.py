"""Tests for REPL command handling and the CLI entry point (in-process)."""

import json

import pytest

from presisi_pkg.cli import (
    SELF_TEST_CASES,
    ReplState,
    handle_line,
    main_entry,
    print_result_pretty,
    run_self_test,
)
from presisi_pkg.config import HISTORY_SIZE
from presisi_pkg.precision import PrecisionContext


@pytest.fixture
def state():
    return ReplState(context=PrecisionContext(256))


class TestReplCommands:
    """Test individual REPL commands."""

    def test_expression(self, state, capsys):
        assert handle_line(state, "2(3+4)") is True
        assert capsys.readouterr().out.strip() == "14"
        assert state.history == ["2(3+4)"]

    def test_failed_expression_not_in_history(self, state, capsys):
        handle_line(state, "2+")
        assert "Error:" in capsys.readouterr().out
        assert state.history == []

    def test_quit(self, state):
        assert handle_line(state, "quit") is False
        assert handle_line(state, "EXIT") is False

    def test_precision(self, state, capsys):
        handle_line(state, "precision 1024")
        assert state.context.precision == 1024
        assert "Precision set to 1024 bits" in capsys.readouterr().out
        handle_line(state, "precision")
        assert "1024 bits" in capsys.readouterr().out

    def test_precision_is_clamped(self, state, capsys):
        handle_line(state, "precision 1")
        assert state.context.precision == 2

    def test_precision_rejects_text(self, state, capsys):
        handle_line(state, "precision lots")
        assert "Error:" in capsys.readouterr().out
        assert state.context.precision == 256

    def test_rounding(self, state, capsys):
        handle_line(state, "rounding down")
        assert state.context.rounding == "f"
        handle_line(state, "rounding bogus")
        assert "Error:" in capsys.readouterr().out
        assert state.context.rounding == "f"

    def test_strict(self, state, capsys):
        handle_line(state, "strict on")
        assert state.context.strict is True
        handle_line(state, "sqrt(-1)")
        assert "nan" in capsys.readouterr().out
        handle_line(state, "strict off")
        assert state.context.strict is False
        handle_line(state, "strict")
        assert state.context.strict is True

    def test_modes(self, state, capsys):
        handle_line(state, "mode scientific")
        assert state.mode == "scientific"
        handle_line(state, "normal")
        assert state.mode == "smart"
        handle_line(state, "scientific")
        assert state.mode == "scientific"
        handle_line(state, "mode normal")
        assert state.mode == "smart"
        handle_line(state, "mode roman")
        assert "Error:" in capsys.readouterr().out
        assert state.mode == "smart"

    def test_scientific_output(self, state, capsys):
        handle_line(state, "scientific")
        capsys.readouterr()
        handle_line(state, "1234.5")
        assert capsys.readouterr().out.strip() == "1.2345e+3"

    def test_simplify(self, state, capsys):
        handle_line(state, "simplify sqrt(8)")
        assert capsys.readouterr().out.strip() == "2 * sqrt(2)"

    def test_ast(self, state, capsys):
        handle_line(state, "ast 2+3")
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "BinOp(+)"
        assert lines[-1] == "(3 nodes, depth 2)"

    def test_constants(self, state, capsys):
        handle_line(state, "constants")
        out = capsys.readouterr().out
        assert out.startswith("pi ")
        assert "3.14159265358979323846" in out
        assert "Euler-Mascheroni" in out

    def test_history_and_clear(self, state, capsys):
        handle_line(state, "history")
        assert "History is empty." in capsys.readouterr().out
        handle_line(state, "1+1")
        handle_line(state, "history")
        assert "1  1+1" in capsys.readouterr().out
        handle_line(state, "clear")
        assert state.history == []

    def test_history_size(self, state):
        for i in range(HISTORY_SIZE + 5):
            state.remember(str(i))
        assert len(state.history) == HISTORY_SIZE
        assert state.history[0] == "5"

    def test_help(self, state, capsys):
        handle_line(state, "help")
        out = capsys.readouterr().out
        assert "atan2(y, x)" in out
        assert "precision [bits]" in out

    def test_json_output(self, state, capsys):
        state.output_format = "json"
        handle_line(state, "1/4")
        data = json.loads(capsys.readouterr().out)
        assert data["result"] == "0.25"


class TestSelfTest:
    def test_all_cases_pass(self):
        assert run_self_test(PrecisionContext(256), verbose=False) == 0

    def test_verbose_report(self, capsys):
        run_self_test(PrecisionContext(256))
        out = capsys.readouterr().out
        assert f"{len(SELF_TEST_CASES)}/{len(SELF_TEST_CASES)} passed" in out


class TestPrintResult:
    def test_error(self, capsys):
        print_result_pretty({"ok": False, "error": "boom"})
        assert capsys.readouterr().out.strip() == "Error: boom"

    def test_warning(self, capsys):
        print_result_pretty({"ok": True, "result": "0", "warning": "careful"})
        assert capsys.readouterr().out.splitlines() == ["0", "Warning: careful"]


class TestMainEntry:
    """Test main_entry without a subprocess."""

    def test_eval(self, capsys):
        assert main_entry(["-e", "2^3^2"]) == 0
        assert capsys.readouterr().out.strip() == "512"

    def test_eval_error(self, capsys):
        assert main_entry(["-e", "sin("]) == 1
        assert "Error:" in capsys.readouterr().out

    def test_simplify(self, capsys):
        assert main_entry(["-s", "sin(pi/2) + 0"]) == 0
        assert capsys.readouterr().out.strip() == "1"

    def test_version(self, capsys):
        assert main_entry(["--version"]) == 0
        assert capsys.readouterr().out.strip() != ""
