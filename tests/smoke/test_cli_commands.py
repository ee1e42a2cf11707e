"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Every test points the CLI at a temporary state file and question bank
through QUIZDECK_* environment variables.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def cli_env(tmp_path, sample_bank_data):
    bank_path = tmp_path / "questions.json"
    bank_path.write_text(json.dumps(sample_bank_data), encoding="utf-8")

    env = dict(os.environ)
    env["QUIZDECK_STATE_PATH"] = str(tmp_path / "state.json")
    env["QUIZDECK_QUESTION_BANK_PATH"] = str(bank_path)
    env["QUIZDECK_STRATEGY"] = "sm2"
    env["PYTHONPATH"] = str(PROJECT_ROOT)
    return env


def run_cli_command(
    args: list[str],
    env: dict,
    stdin: str = "",
    timeout: int = 30,
) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m quizdeck'
        env: Environment for the subprocess
        stdin: Text fed to interactive prompts
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "quizdeck", *args],
        cwd=PROJECT_ROOT,
        env=env,
        input=stdin,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, cli_env):
        code, stdout, stderr = run_cli_command(["--help"], cli_env)

        assert code == 0, f"Help failed: {stderr}"
        assert "quizdeck" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize("command", ["study", "preview", "stats", "export", "import", "reset"])
    def test_command_help(self, cli_env, command):
        code, stdout, stderr = run_cli_command([command, "--help"], cli_env)

        assert code == 0, f"{command} help failed: {stderr}"


class TestCLIStats:
    def test_stats_on_fresh_state(self, cli_env):
        code, stdout, stderr = run_cli_command(["stats"], cli_env)

        assert code == 0, f"Stats failed: {stderr}"
        assert "Learning Statistics" in stdout
        assert "Daily goal" in stdout

    def test_stats_for_a_section(self, cli_env):
        run_cli_command(["study", "--mode", "sequential", "--limit", "1"], cli_env, stdin="2\n")

        code, stdout, stderr = run_cli_command(["stats", "--section", "Networking"], cli_env)

        assert code == 0, f"Stats failed: {stderr}"
        assert "Questions in pool" in stdout
        assert "Unstudied" in stdout

    def test_rating_filter_needs_rating_strategy(self, cli_env):
        code, stdout, stderr = run_cli_command(["stats", "--min-rating", "3"], cli_env)

        assert code == 1
        assert "rating strategy" in stdout


class TestCLIStudy:
    def test_answer_one_question(self, cli_env, tmp_path):
        code, stdout, stderr = run_cli_command(
            ["study", "--mode", "sequential", "--limit", "1"],
            cli_env,
            stdin="2\n",
        )

        assert code == 0, f"Study failed: {stderr}"
        assert "Session Summary" in stdout

        saved = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
        assert saved["states"]["q1"]["repetitions"] == 1

    def test_quit_early(self, cli_env):
        code, stdout, stderr = run_cli_command(["study"], cli_env, stdin="q\n")

        assert code == 0, f"Study failed: {stderr}"

    def test_filter_without_matches(self, cli_env):
        code, stdout, stderr = run_cli_command(["study", "--section", "Nope"], cli_env)

        assert code == 0, f"Study failed: {stderr}"
        assert "No questions match" in stdout

    def test_review_only_on_fresh_state(self, cli_env):
        code, stdout, stderr = run_cli_command(["study", "--mode", "review-only"], cli_env)

        assert code == 0, f"Study failed: {stderr}"
        assert "No questions match" in stdout

    def test_rating_range_excludes_unseen(self, cli_env):
        cli_env["QUIZDECK_STRATEGY"] = "rating"
        code, stdout, stderr = run_cli_command(["study", "--min-rating", "1"], cli_env)

        assert code == 0, f"Study failed: {stderr}"
        assert "No questions match" in stdout

    def test_missing_bank(self, cli_env, tmp_path):
        code, stdout, stderr = run_cli_command(
            ["study", "--bank", str(tmp_path / "missing.json")], cli_env
        )
        assert code == 1


class TestCLIPreview:
    def test_preview_lists_questions(self, cli_env):
        code, stdout, stderr = run_cli_command(["preview", "--limit", "3"], cli_env)

        assert code == 0, f"Preview failed: {stderr}"
        assert "q1" in stdout


class TestCLIExportImport:
    def test_export_then_import(self, cli_env, tmp_path):
        run_cli_command(["study", "--mode", "sequential", "--limit", "1"], cli_env, stdin="2\n")
        export_path = tmp_path / "export.json"

        code, stdout, stderr = run_cli_command(["export", str(export_path)], cli_env)
        assert code == 0, f"Export failed: {stderr}"
        assert "q1" in json.loads(export_path.read_text(encoding="utf-8"))["states"]

        code, stdout, stderr = run_cli_command(["import", str(export_path)], cli_env)
        assert code == 0, f"Import failed: {stderr}"
        assert "Imported 1 states" in stdout

    def test_malformed_import_rejected(self, cli_env, tmp_path):
        bad_path = tmp_path / "bad.json"
        bad_path.write_text(json.dumps({"strategy": "sm2", "states": {"q1": {}}}), encoding="utf-8")

        code, stdout, stderr = run_cli_command(["import", str(bad_path)], cli_env)
        assert code == 1
        assert "rejected" in stdout

    def test_binary_import_rejected(self, cli_env, tmp_path):
        bad_path = tmp_path / "bad.json"
        bad_path.write_bytes(b"\xff\xfe\x00\x01")

        code, stdout, stderr = run_cli_command(["import", str(bad_path)], cli_env)
        assert code == 1
        assert "rejected" in stdout


class TestCLIReset:
    def test_reset_with_yes(self, cli_env, tmp_path):
        run_cli_command(["study", "--mode", "sequential", "--limit", "1"], cli_env, stdin="2\n")

        code, stdout, stderr = run_cli_command(["reset", "--yes"], cli_env)
        assert code == 0, f"Reset failed: {stderr}"

        saved = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
        assert saved["states"] == {}
