"""Tests for CLI argument parsing and command output."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from cortexops import __version__
from cortexops.cli import _build_parser, main

NGINX_PROMPT = "Installer nginx avec SSL sur Ubuntu"


class TestArgParser:
    def test_version_flag(self) -> None:
        args = _build_parser().parse_args(["--version"])
        assert args.version is True

    def test_generate_defaults(self) -> None:
        args = _build_parser().parse_args(["generate", "install nginx"])
        assert args.command == "generate"
        assert args.environment is None
        assert args.output is None
        assert args.json is False

    def test_generate_options(self) -> None:
        args = _build_parser().parse_args(
            ["-v", "generate", "x", "-e", "staging", "-o", "out.yml"]
        )
        assert args.verbose is True
        assert args.environment == "staging"
        assert args.output == "out.yml"

    def test_bad_environment_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["generate", "x", "-e", "moon"])

    def test_serve_defaults(self) -> None:
        args = _build_parser().parse_args(["serve"])
        assert args.host == "127.0.0.1"
        assert args.port == 8000

    def test_no_command(self) -> None:
        assert _build_parser().parse_args([]).command is None


class TestVersionAndHelp:
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--version"])
        assert capsys.readouterr().out.strip() == f"cortexops {__version__}"

    def test_help_without_command(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main([])
        assert "usage: cortexops" in capsys.readouterr().out


class TestCheck:
    def test_valid_prompt(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["check", NGINX_PROMPT])
        assert capsys.readouterr().out.strip() == (
            "OK (technical, confidence 100)"
        )

    def test_invalid_prompt_exits_1(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["check", "I love pizza"])
        assert exc.value.code == 1
        assert "Suggestions:" in capsys.readouterr().out

    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--json", "check", NGINX_PROMPT])
        payload = json.loads(capsys.readouterr().out)
        assert payload["is_valid"] is True
        assert payload["category"] == "technical"


class TestClassify:
    def test_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["classify", NGINX_PROMPT])
        out = capsys.readouterr().out
        assert "Context:    classic-linux" in out
        assert "service:nginx" in out

    def test_json_with_service_override(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["--json", "classify", NGINX_PROMPT, "--services", "6"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["complexity"]["indicators"]["service_count"] == 6
        assert payload["context"]["context"] == "classic-linux"
        assert payload["intent"]["primary"]


class TestGenerate:
    def test_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["generate", NGINX_PROMPT])
        out = capsys.readouterr().out
        assert out.startswith("---\n")
        assert "openssl" in out

    def test_output_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        target = tmp_path / "site.yml"
        main(["generate", NGINX_PROMPT, "-o", str(target)])
        assert target.read_text(encoding="utf-8").startswith("---\n")
        assert "classic-linux-basic" in capsys.readouterr().err

    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--json", "generate", NGINX_PROMPT, "-e", "staging"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["valid"] is True
        assert payload["template"] == "classic-linux-basic"
        assert "# Environment: staging" in payload["content"]

    def test_rejected_prompt(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["generate", "I love pizza"])
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("Error: ")


class TestLint:
    def test_valid_file(
        self,
        tmp_path: Path,
        valid_playbook: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "ok.yml"
        path.write_text(valid_playbook, encoding="utf-8")
        main(["lint", str(path)])
        assert capsys.readouterr().out.strip() == f"{path}: OK"

    def test_invalid_file(
        self,
        tmp_path: Path,
        missing_hosts_playbook: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "bad.yml"
        path.write_text(missing_hosts_playbook, encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["lint", str(path)])
        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert f"{path}:2: [missing_hosts]" in out
        assert "(fixable)" in out

    def test_fix_prints_fixed_text(
        self,
        tmp_path: Path,
        missing_hosts_playbook: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "bad.yml"
        path.write_text(missing_hosts_playbook, encoding="utf-8")
        main(["lint", str(path), "--fix"])
        captured = capsys.readouterr()
        assert "  hosts: all\n" in captured.out
        assert captured.err.strip() == f"{path}: OK"
        assert path.read_text(encoding="utf-8") == missing_hosts_playbook

    def test_fix_write(
        self,
        tmp_path: Path,
        tab_playbook: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "tabs.yml"
        path.write_text(tab_playbook, encoding="utf-8")
        main(["lint", str(path), "--fix", "--write"])
        assert "\t" not in path.read_text(encoding="utf-8")
        assert "replace_tabs" in capsys.readouterr().err

    def test_write_requires_fix(
        self, tmp_path: Path, valid_playbook: str
    ) -> None:
        path = tmp_path / "ok.yml"
        path.write_text(valid_playbook, encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["lint", str(path), "--write"])
        assert exc.value.code == 1

    def test_missing_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit):
            main(["lint", str(tmp_path / "nope.yml")])
        assert "does not exist" in capsys.readouterr().err

    def test_json(
        self,
        tmp_path: Path,
        missing_hosts_playbook: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "bad.yml"
        path.write_text(missing_hosts_playbook, encoding="utf-8")
        with pytest.raises(SystemExit):
            main(["--json", "lint", str(path)])
        payload = json.loads(capsys.readouterr().out)
        assert payload["valid"] is False
        assert payload["diagnostics"][0]["code"] == "missing_hosts"


class TestServe:
    def test_runs_uvicorn(self) -> None:
        with patch("uvicorn.run") as run:
            main(["serve", "--port", "9000"])
        run.assert_called_once()
        assert run.call_args.args == ("cortexops.main:app",)
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9000
