"""Tests for CLI commands using click.testing.CliRunner."""

import json
import os
from unittest.mock import patch

from click.testing import CliRunner

from jpegsweep.cli import deps, main, run, trial
from jpegsweep.config import SweepConfig
from jpegsweep.formats import ChromaSubsampling, OutputFormat
from jpegsweep.system_tools import LibraryInfo
from jpegsweep.trial import TrialConfig, TrialOutcome


def outcome_for(config, succeeded=True):
    return TrialOutcome(
        config=config,
        succeeded=succeeded,
        diagnostic="success" if succeeded else "terminated by signal SIGSEGV",
        exitcode=0 if succeeded else -11,
    )


class TestMainCLI:
    """Tests for main CLI group."""

    def test_main_help(self):
        """Test main CLI help command."""
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "jpegsweep: exhaustive nvJPEG encode conformance sweep." in result.output
        assert "Commands:" in result.output

    def test_main_version(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "jpegsweep, version 0.1.0" in result.output

    def test_main_invalid_command(self):
        runner = CliRunner()
        result = runner.invoke(main, ["invalid-command"])

        assert result.exit_code == 2
        assert "No such command" in result.output

    @patch("jpegsweep.sweep.run_sweep")
    def test_bare_invocation_runs_full_sweep(self, mock_run_sweep):
        """Test that running with no command starts the default sweep."""
        runner = CliRunner()
        result = runner.invoke(main, [])

        assert result.exit_code == 0
        mock_run_sweep.assert_called_once_with(SweepConfig(), start_method="fork")


class TestRunCommand:
    """Tests for run CLI command."""

    def test_run_help(self):
        runner = CliRunner()
        result = runner.invoke(run, ["--help"])

        assert result.exit_code == 0
        assert "--min-size" in result.output
        assert "--start-method" in result.output
        assert "--dry-run" in result.output

    def test_dry_run_default(self):
        runner = CliRunner()
        result = runner.invoke(run, ["--dry-run"])

        assert result.exit_code == 0
        assert result.output == "Trials: 20480\n"

    def test_dry_run_custom_bounds(self):
        runner = CliRunner()
        result = runner.invoke(run, ["--dry-run", "--min-size", "4", "--max-size", "5"])

        assert result.exit_code == 0
        assert "Trials: 80" in result.output

    def test_invalid_bounds(self):
        """Test max below min is rejected as a usage error."""
        runner = CliRunner()
        result = runner.invoke(run, ["--min-size", "9", "--max-size", "3"])

        assert result.exit_code == 2
        assert "MAX_SIZE must be >= MIN_SIZE" in result.output

    def test_zero_size_rejected(self):
        runner = CliRunner()
        result = runner.invoke(run, ["--min-size", "0"])

        assert result.exit_code == 2

    @patch("jpegsweep.sweep.run_sweep")
    def test_run_forwards_options(self, mock_run_sweep):
        runner = CliRunner()
        result = runner.invoke(
            run, ["--min-size", "2", "--max-size", "3", "--start-method", "spawn"]
        )

        assert result.exit_code == 0
        mock_run_sweep.assert_called_once_with(
            SweepConfig(MIN_SIZE=2, MAX_SIZE=3), start_method="spawn"
        )

    @patch("jpegsweep.sweep.run_sweep")
    def test_run_exit_status_ignores_trial_failures(self, mock_run_sweep):
        """Test the sweep exits 0 even when trials failed."""
        from jpegsweep.sweep import SweepSummary

        mock_run_sweep.return_value = SweepSummary(total=10, succeeded=3, failed=7)

        runner = CliRunner()
        result = runner.invoke(run, [])

        assert result.exit_code == 0

    @patch("jpegsweep.sweep.run_sweep")
    def test_run_keyboard_interrupt(self, mock_run_sweep):
        mock_run_sweep.side_effect = KeyboardInterrupt()

        runner = CliRunner()
        result = runner.invoke(run, [])

        assert result.exit_code == 1
        assert "Sweep interrupted by user" in result.output

    @patch("jpegsweep.sweep.run_sweep")
    def test_run_error(self, mock_run_sweep):
        mock_run_sweep.side_effect = RuntimeError("fork bomb")

        runner = CliRunner()
        result = runner.invoke(run, [])

        assert result.exit_code == 1
        assert "Sweep failed: fork bomb" in result.output

    @patch("jpegsweep.sweep.run_sweep")
    def test_bad_start_method_env_is_usage_error(self, mock_run_sweep):
        """Test an invalid JPEGSWEEP_START_METHOD is reported, not raised."""
        runner = CliRunner()
        with patch.dict(os.environ, {"JPEGSWEEP_START_METHOD": "bogus"}):
            result = runner.invoke(run, [])

        assert result.exit_code == 2
        assert "Invalid start method: bogus" in result.output
        mock_run_sweep.assert_not_called()

    def test_bad_start_method_env_allows_dry_run(self):
        runner = CliRunner()
        with patch.dict(os.environ, {"JPEGSWEEP_START_METHOD": "bogus"}):
            result = runner.invoke(main, ["run", "--dry-run"])

        assert result.exit_code == 0
        assert result.output == "Trials: 20480\n"

    @patch("jpegsweep.sweep.run_sweep")
    def test_start_method_option_wins_over_env(self, mock_run_sweep):
        runner = CliRunner()
        with patch.dict(os.environ, {"JPEGSWEEP_START_METHOD": "bogus"}):
            result = runner.invoke(run, ["--start-method", "spawn"])

        assert result.exit_code == 0
        assert mock_run_sweep.call_args.kwargs == {"start_method": "spawn"}


class TestTrialCommand:
    """Tests for trial CLI command."""

    @patch("jpegsweep.isolation.run_isolated")
    def test_yuv_trial(self, mock_run_isolated):
        mock_run_isolated.side_effect = lambda config, **kwargs: outcome_for(config)

        runner = CliRunner()
        result = runner.invoke(trial, ["1", "1", "--css", "4:2:0"])

        assert result.exit_code == 0
        config = mock_run_isolated.call_args.args[0]
        assert config == TrialConfig(1, 1, False, ChromaSubsampling.CSS_420, OutputFormat.YUV)
        assert mock_run_isolated.call_args.kwargs == {"start_method": "fork"}

    @patch("jpegsweep.isolation.run_isolated")
    def test_packed_trial_forces_444(self, mock_run_isolated):
        """Test non-YUV formats ignore --css."""
        mock_run_isolated.side_effect = lambda config, **kwargs: outcome_for(config)

        runner = CliRunner()
        result = runner.invoke(
            trial, ["7", "3", "--fmt", "bgri", "--css", "4:1:0", "--opt-huffman"]
        )

        assert result.exit_code == 0
        config = mock_run_isolated.call_args.args[0]
        assert config == TrialConfig(7, 3, True, ChromaSubsampling.CSS_444, OutputFormat.BGRI)

    @patch("jpegsweep.isolation.run_isolated")
    def test_failed_trial_exit_status(self, mock_run_isolated):
        mock_run_isolated.side_effect = lambda config, **kwargs: outcome_for(config, False)

        runner = CliRunner()
        result = runner.invoke(trial, ["32", "32"])

        assert result.exit_code == 1

    def test_unsupported_format_rejected(self):
        runner = CliRunner()
        result = runner.invoke(trial, ["4", "4", "--fmt", "Y"])

        assert result.exit_code == 2

    @patch("jpegsweep.isolation.run_isolated")
    def test_isolation_error(self, mock_run_isolated):
        mock_run_isolated.side_effect = OSError("cannot fork")

        runner = CliRunner()
        result = runner.invoke(trial, ["4", "4"])

        assert result.exit_code == 1
        assert "Trial failed: cannot fork" in result.output

    @patch("jpegsweep.isolation.run_isolated")
    def test_bad_start_method_env_is_usage_error(self, mock_run_isolated):
        runner = CliRunner()
        with patch.dict(os.environ, {"JPEGSWEEP_START_METHOD": "bogus"}):
            result = runner.invoke(trial, ["4", "4"])

        assert result.exit_code == 2
        assert "Invalid start method: bogus" in result.output
        mock_run_isolated.assert_not_called()


class TestDepsCommand:
    """Tests for deps check command."""

    AVAILABLE = {
        "nvjpeg": LibraryInfo(name="libnvjpeg.so", available=True, version="12.3.1"),
        "cudart": LibraryInfo(name="libcudart.so", available=True, version="12.4"),
    }
    MISSING = {
        "nvjpeg": LibraryInfo(
            name="libnvjpeg.so",
            available=False,
            error="cannot load nvjpeg (libnvjpeg.so: cannot open shared object file)",
        ),
        "cudart": LibraryInfo(name="libcudart.so", available=True, version="12.4"),
    }

    @patch("jpegsweep.cli.deps_cmd.get_available_libraries")
    def test_check_all_available(self, mock_get_libraries):
        mock_get_libraries.return_value = self.AVAILABLE

        runner = CliRunner()
        result = runner.invoke(deps, ["check"])

        assert result.exit_code == 0
        assert "nvJPEG" in result.output
        assert "12.3.1" in result.output
        assert "All codec libraries are available" in result.output

    @patch("jpegsweep.cli.deps_cmd.get_available_libraries")
    def test_check_missing(self, mock_get_libraries):
        mock_get_libraries.return_value = self.MISSING

        runner = CliRunner()
        result = runner.invoke(deps, ["check"])

        assert result.exit_code == 1
        assert "Missing" in result.output

    @patch("jpegsweep.cli.deps_cmd.get_available_libraries")
    def test_check_json(self, mock_get_libraries):
        """Test JSON output lists every library."""
        mock_get_libraries.return_value = self.AVAILABLE

        runner = CliRunner()
        result = runner.invoke(deps, ["check", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["nvjpeg"] == {
            "library": "libnvjpeg.so",
            "available": True,
            "version": "12.3.1",
            "error": None,
        }
        assert data["cudart"]["version"] == "12.4"

    @patch("jpegsweep.cli.deps_cmd.get_available_libraries")
    def test_check_json_missing(self, mock_get_libraries):
        mock_get_libraries.return_value = self.MISSING

        runner = CliRunner()
        result = runner.invoke(deps, ["check", "--json"])

        assert result.exit_code == 1
        assert json.loads(result.output)["nvjpeg"]["available"] is False
