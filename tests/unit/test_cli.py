"""Unit tests for modex.cli.main: the click application."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from modex.cli.main import cli


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def config_file(example_file: Path, tmp_path: Path) -> Path:
    path = tmp_path / "modex.yml"
    path.write_text(
        "tasks:\n"
        "  - name: exportExample\n"
        f"    source: {example_file.name}\n"
        "    metamodel_output: build/pkg.out\n"
        "    genconfig_output: build/cfg.out\n",
        encoding="utf-8",
    )
    return path


class TestExportCommand:
    def test_success(self, runner: CliRunner, example_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["export", str(example_file), str(tmp_path / "pkg.out"), str(tmp_path / "cfg.out")]
        )
        assert result.exit_code == 0, result.output
        assert "Written:" in result.output
        assert (tmp_path / "pkg.out").is_file()
        assert (tmp_path / "cfg.out").is_file()

    def test_missing_source_exits_1(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["export", str(tmp_path / "nope.mdl"), str(tmp_path / "a"), str(tmp_path / "b")]
        )
        assert result.exit_code == 1
        assert "(load)" in result.output
        assert "does not exist" in result.output

    def test_relocated_root_leaves_nothing_for_second_lookup(
        self, runner: CliRunner, example_file: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["export", str(example_file), str(tmp_path / "a.out"), str(tmp_path / "b.out"), "--metamodel-type", "ModelUnit"],
        )
        assert result.exit_code == 1
        assert "(lookup)" in result.output
        assert "GenConfig" in result.output
        assert (tmp_path / "a.out").is_file()
        assert not (tmp_path / "b.out").exists()

    def test_unknown_type_tag(self, runner: CliRunner, example_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            ["export", str(example_file), str(tmp_path / "a"), str(tmp_path / "b"), "--metamodel-type", "Widget"],
        )
        assert result.exit_code == 1
        assert "(config)" in result.output

    def test_not_found(self, runner: CliRunner, source_without_package: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["export", str(source_without_package), str(tmp_path / "a"), str(tmp_path / "b")]
        )
        assert result.exit_code == 1
        assert "(lookup)" in result.output
        assert "PackageDef" in result.output
        assert not (tmp_path / "a").exists()

    def test_repeated_output_path_writes_nothing(self, runner: CliRunner, example_file: Path, tmp_path: Path) -> None:
        out = str(tmp_path / "out")
        result = runner.invoke(cli, ["export", str(example_file), out, out])
        assert result.exit_code == 1
        assert "(bind)" in result.output
        assert not (tmp_path / "out").exists()

    def test_custom_metamodel_type(self, runner: CliRunner, example_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            cli,
            ["export", str(example_file), str(tmp_path / "cls.out"), str(tmp_path / "cfg.out"), "--metamodel-type", "ClassDef"],
        )
        assert result.exit_code == 0, result.output
        shown = runner.invoke(cli, ["show", str(tmp_path / "cfg.out")])
        assert shown.exit_code == 0, shown.output

    def test_missing_arguments(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["export", "only-one"])
        assert result.exit_code == 2


class TestRunCommand:
    def test_runs_declared_tasks(self, runner: CliRunner, config_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["run", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "exportExample" in result.output
        assert "1 task(s) completed" in result.output
        assert (tmp_path / "build" / "pkg.out").is_file()
        assert (tmp_path / "build" / "cfg.out").is_file()

    def test_select_task(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(cli, ["run", "--config", str(config_file), "--task", "exportExample"])
        assert result.exit_code == 0, result.output

    def test_unknown_task(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(cli, ["run", "--config", str(config_file), "--task", "nope"])
        assert result.exit_code == 1
        assert "Unknown task" in result.output

    def test_missing_config(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["run", "--config", str(tmp_path / "absent.yml")])
        assert result.exit_code == 1
        assert "(config)" in result.output

    def test_failing_task_names_the_task(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "modex.yml"
        config.write_text(
            "tasks:\n  - {name: broken, source: missing.mdl, metamodel_output: a.out, genconfig_output: b.out}\n",
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["run", "--config", str(config)])
        assert result.exit_code == 1
        assert "task broken" in result.output
        assert "(load)" in result.output


class TestDescribeCommand:
    def test_prints_json(self, runner: CliRunner, config_file: Path, example_file: Path) -> None:
        result = runner.invoke(cli, ["describe", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        described = json.loads(result.output)
        assert len(described) == 1
        assert described[0]["name"] == "exportExample"
        assert described[0]["group"] == "Modeling"
        assert Path(described[0]["inputs"][0]).name == example_file.name
        assert [Path(p).name for p in described[0]["outputs"]] == ["pkg.out", "cfg.out"]


class TestShowCommand:
    def test_show_source(self, runner: CliRunner, example_file: Path) -> None:
        result = runner.invoke(cli, ["show", str(example_file)])
        assert result.exit_code == 0, result.output
        assert "ModelUnit" in result.output
        assert "PackageDef" in result.output
        assert "Greeting" in result.output

    def test_show_artifact(self, runner: CliRunner, example_file: Path, tmp_path: Path) -> None:
        runner.invoke(cli, ["export", str(example_file), str(tmp_path / "pkg.out"), str(tmp_path / "cfg.out")])
        result = runner.invoke(cli, ["show", str(tmp_path / "cfg.out")])
        assert result.exit_code == 0, result.output
        assert "GenConfig" in result.output
        assert "GenClass" in result.output

    def test_show_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["show", str(tmp_path / "nope.mdl")])
        assert result.exit_code == 1
        assert "(load)" in result.output


class TestVersionCommand:
    def test_version(self, runner: CliRunner, expected_version: str) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert expected_version in result.output

    def test_verbose_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--verbose", "version"])
        assert result.exit_code == 0
