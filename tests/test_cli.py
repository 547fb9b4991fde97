from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from hybrid_testgen.main import DURATION, cli


def test_help_prints_usage() -> None:
    result = CliRunner().invoke(cli, ["run", "--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "--global-time-budget" in result.output
    assert "--exploration-throttle" in result.output


def test_info_lists_tools(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("z3_path: /nonexistent/z3\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["info", "--config", str(config)])
    assert result.exit_code == 0
    assert "Required Tools" in result.output
    assert "Configured Paths" in result.output


def test_run_without_target_is_a_configuration_error(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["run", "--tmp-base", str(tmp_path)])
    assert result.exit_code == 2
    assert "target" in result.output


def test_run_with_missing_tools_does_not_start(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "target_method: avl_tree/AvlTree:(I)V:insert\n"
        "exploration_throttle: 0.5\n",
        encoding="utf-8",
    )
    result = CliRunner().invoke(cli, [
        "run",
        "--config", str(config),
        "--exploration-throttle", "4",
        "--z3", str(tmp_path / "missing" / "z3"),
        "--jbse", str(tmp_path / "missing" / "jbse.jar"),
        "--evosuite", str(tmp_path / "missing" / "evosuite.jar"),
        "--sushi-lib", str(tmp_path / "missing" / "sushi-lib.jar"),
        "--tmp-base", str(tmp_path / "tmp"),
        "--out", str(tmp_path / "out"),
        "--global-time-budget", "30s",
    ])

    assert result.exit_code == 1
    assert "Missing resources" in result.output
    assert "exploration_throttle" in result.output
    assert not (tmp_path / "out").exists()


def test_duration_parameter() -> None:
    assert DURATION.convert("500ms", None, None) == (500.0, "MILLISECONDS")
    assert DURATION.convert("3m", None, None) == (3.0, "MINUTES")
    assert DURATION.convert("30", None, None) == (30.0, "SECONDS")
    with pytest.raises(click.BadParameter):
        DURATION.convert("soon", None, None)


def test_run_with_both_targets_is_a_configuration_error(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, [
        "run",
        "--target-class", "avl_tree/AvlTree",
        "--target-method", "avl_tree/AvlTree:(I)V:insert",
        "--tmp-base", str(tmp_path / "tmp"),
        "--out", str(tmp_path / "out"),
    ])

    assert result.exit_code == 2
    assert "exclusive" in result.output
    assert not (tmp_path / "out").exists()
