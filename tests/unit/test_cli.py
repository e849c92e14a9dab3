"""Tests for the granted CLI."""
from __future__ import annotations

import pathlib

import pytest
from click.testing import CliRunner

from granted.cli.main import CliSubject, cli

_RULES = """\
version: "1.0"
rules:
  - action: read
    effect: allow
    check: true
  - action: delete
    effect: allow
    check: true
    capability: admin
  - action: delete
    effect: deny
    check: true
    capability: suspended
  - action: list
    effect: allow
    check: false
"""


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def rules_file(tmp_path: pathlib.Path) -> str:
    path = tmp_path / "rules.yaml"
    path.write_text(_RULES, encoding="utf-8")
    return str(path)


class TestCliSubject:
    def test_carries_capabilities_and_attributes(self) -> None:
        subject = CliSubject(("admin",), {"id": 3})
        assert subject.capabilities == frozenset({"admin"})
        assert subject.id == 3


class TestVersion:
    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "granted" in result.output


class TestShow:
    def test_lists_rules(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(cli, ["show", "--rules", rules_file])
        assert result.exit_code == 0
        assert "delete" in result.output
        assert "capability:admin" in result.output
        assert "Total rules: 4" in result.output

    def test_no_rule_files(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["show"])
        assert result.exit_code != 0

    def test_rule_files_from_config(
        self, runner: CliRunner, rules_file: str, tmp_path: pathlib.Path
    ) -> None:
        config = tmp_path / "granted.yaml"
        config.write_text(f"rule_files:\n  - {rules_file}\n", encoding="utf-8")
        result = runner.invoke(cli, ["show", "--config", str(config)])
        assert result.exit_code == 0
        assert "Total rules: 4" in result.output

    def test_bad_rule_file_exits_two(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("rules: nope\n", encoding="utf-8")
        result = runner.invoke(cli, ["show", "--rules", str(path)])
        assert result.exit_code == 2


class TestCheck:
    def test_allowed(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(cli, ["check", "read", "--rules", rules_file])
        assert result.exit_code == 0
        assert "PASSED" in result.output

    def test_capability_grants(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(
            cli, ["check", "delete", "--rules", rules_file, "--capability", "admin"]
        )
        assert result.exit_code == 0

    def test_denied(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(
            cli,
            ["check", "delete", "-r", rules_file, "-t", "admin", "-t", "suspended"],
        )
        assert result.exit_code == 1
        assert "DENIED" in result.output

    def test_not_defined(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(cli, ["check", "delete", "--rules", rules_file])
        assert result.exit_code == 1
        assert "NOT DEFINED" in result.output

    def test_not_granted(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(cli, ["check", "list", "--rules", rules_file])
        assert result.exit_code == 1
        assert "NOT GRANTED" in result.output

    def test_sequential_config(
        self, runner: CliRunner, rules_file: str, tmp_path: pathlib.Path
    ) -> None:
        config = tmp_path / "granted.yaml"
        config.write_text("evaluation:\n  strategy: sequential\n", encoding="utf-8")
        result = runner.invoke(
            cli, ["check", "read", "--rules", rules_file, "--config", str(config)]
        )
        assert result.exit_code == 0

    def test_bad_attr(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(cli, ["check", "read", "--rules", rules_file, "--attr", "oops"])
        assert result.exit_code == 2

    def test_attr_cannot_set_capabilities(self, runner: CliRunner, rules_file: str) -> None:
        result = runner.invoke(
            cli, ["check", "delete", "--rules", rules_file, "--attr", "capabilities=admin"]
        )
        assert result.exit_code == 2
        assert "--capability" in result.output
