"""Tests for argform/app.py and the argform command."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List

import pytest

import argform
import argform.__main__ as cli
from argform.app import CHILD_APP_ENV_VAR, build_session, run_app
from argform.lib.errors import ArgformError
from argform.lib.form import TextValue
from argform.lib.runner import OutputStream
from argform.lib.session import Session
from argform.lib.settings import Settings

TIMEOUT = 30

REPO_ROOT = str(Path(argform.__file__).resolve().parents[1])

HELLO_SCRIPT = """
import argparse

from argform.app import run_app


def main(args):
    print(f"Hello {args.name}")


parser = argparse.ArgumentParser(prog="hello")
parser.add_argument("--name", required=True)

if __name__ == "__main__":
    run_app(parser, main)
"""

PARSER_MODULE = """
import argparse


def build_parser():
    parser = argparse.ArgumentParser(prog="packer")
    parser.add_argument("--level", type=int, default=5)
    return parser


not_a_parser = 42
"""


class TestBuildSession:
    """Tests for wrapping an argparse parser."""

    def test_session_from_parser(self, greet_parser: argparse.ArgumentParser) -> None:
        session = build_session(greet_parser, settings=Settings(), program=["greet"], env_vars=["LANG"])
        assert session.schema.name == "greet"
        assert session.program == ["greet"]
        assert session.fixed_env == {CHILD_APP_ENV_VAR: "1"}
        assert session.env == [["LANG", ""]]

    def test_default_program_is_this_script(self, greet_parser: argparse.ArgumentParser) -> None:
        session = build_session(greet_parser, settings=Settings())
        assert session.program[0] == sys.executable
        assert os.path.isabs(session.program[1])

    def test_prefill_from_argv(self, greet_parser: argparse.ArgumentParser) -> None:
        session = build_session(
            greet_parser, settings=Settings(), program=["greet"], argv=["--name", "bob"]
        )
        assert session.form.get_value("name") == TextValue("bob")
        assert session.command_preview() == "greet --name bob"

    def test_bad_argv_ignored(
        self, greet_parser: argparse.ArgumentParser, caplog: pytest.LogCaptureFixture
    ) -> None:
        session = build_session(
            greet_parser, settings=Settings(), program=["greet"], argv=["--bogus"]
        )
        assert not session.form.is_set("name")
        assert "Ignoring command line arguments" in caplog.text

    def test_child_runs_main(self, tmp_path: Path) -> None:
        """Running from the form starts the script again, which calls main()."""
        script = tmp_path / "hello.py"
        script.write_text(HELLO_SCRIPT, encoding="utf-8")
        parser = argparse.ArgumentParser(prog="hello")
        parser.add_argument("--name", required=True)

        session = build_session(parser, settings=Settings(), program=[sys.executable, str(script)])
        session.form.set_value("name", TextValue("alice"))
        session.env = [["PYTHONPATH", REPO_ROOT]]

        handle = session.start_run()
        status = handle.wait(TIMEOUT)
        assert status.success, handle.output.text(OutputStream.ERR)
        assert handle.output.text(OutputStream.OUT).strip() == "Hello alice"


class TestRunApp:
    def test_child_mode_calls_main(
        self, monkeypatch: pytest.MonkeyPatch, greet_parser: argparse.ArgumentParser
    ) -> None:
        monkeypatch.setenv(CHILD_APP_ENV_VAR, "1")
        monkeypatch.setattr(sys, "argv", ["greet", "--name", "bob"])

        result = run_app(greet_parser, lambda args: f"hi {args.name}")

        assert result == "hi bob"
        # Grandchildren started by main() must not inherit child mode
        assert CHILD_APP_ENV_VAR not in os.environ

    def test_form_mode_opens_window(
        self, monkeypatch: pytest.MonkeyPatch, greet_parser: argparse.ArgumentParser
    ) -> None:
        monkeypatch.delenv(CHILD_APP_ENV_VAR, raising=False)
        monkeypatch.setattr(sys, "argv", ["greet", "--name", "eve"])
        shown: List[Session] = []
        monkeypatch.setattr("argform.tui.app.run_tui", shown.append)

        assert run_app(greet_parser, lambda args: pytest.fail("main called"), Settings()) is None
        assert len(shown) == 1
        assert shown[0].form.get_value("name") == TextValue("eve")


class TestLoadParser:
    """Tests for module:attribute parser references."""

    @pytest.fixture
    def parser_module(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
        (tmp_path / "argform_sample_cli.py").write_text(PARSER_MODULE, encoding="utf-8")
        monkeypatch.syspath_prepend(str(tmp_path))
        yield "argform_sample_cli"
        sys.modules.pop("argform_sample_cli", None)

    def test_factory_called(self, parser_module: str) -> None:
        parser = cli.load_parser(f"{parser_module}:build_parser")
        assert parser.prog == "packer"

    def test_not_a_parser(self, parser_module: str) -> None:
        with pytest.raises(ArgformError, match="not an argparse.ArgumentParser"):
            cli.load_parser(f"{parser_module}:not_a_parser")

    def test_missing_attribute(self, parser_module: str) -> None:
        with pytest.raises(ArgformError, match="has no attribute"):
            cli.load_parser(f"{parser_module}:missing")

    @pytest.mark.parametrize("reference", ["no_colon", ":attr", "module:"])
    def test_malformed_reference(self, reference: str) -> None:
        with pytest.raises(ArgformError, match="Invalid parser reference"):
            cli.load_parser(reference)

    def test_missing_module(self) -> None:
        with pytest.raises(ArgformError, match="Cannot import"):
            cli.load_parser("argform_no_such_module_xyz:parser")

    def test_default_program(self) -> None:
        args = argparse.Namespace(program=[], parser="tools.pack:build_parser", schema=None)
        assert cli.default_program(args) == [sys.executable, "-m", "tools.pack"]
        args = argparse.Namespace(program=[], parser=None, schema="s.yaml")
        with pytest.raises(ArgformError, match="No program given"):
            cli.default_program(args)


class TestMain:
    """Tests for the argform command."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "configure_from_settings", lambda: None)

    def test_schema_and_program(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        schema_file = tmp_path / "tool.yaml"
        schema_file.write_text("name: tool\narguments:\n  - name: src\n", encoding="utf-8")
        shown: List[Session] = []
        monkeypatch.setattr("argform.tui.app.run_tui", shown.append)

        code = cli.main(
            ["--schema", str(schema_file), "--project-root", str(tmp_path), "--", "./tool", "-x"]
        )

        assert code == 0
        assert shown[0].schema.name == "tool"
        assert shown[0].program == ["./tool", "-x"]

    def test_missing_schema_file(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        code = cli.main(["--schema", str(tmp_path / "none.yaml"), "--", "tool"])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_source_required(self) -> None:
        with pytest.raises(SystemExit):
            cli.main(["--", "tool"])
