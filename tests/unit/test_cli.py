"""Tests for CLI functionality."""

from unittest.mock import patch

from typer.testing import CliRunner

from apps.cli.main import app
from weirddeps.config import Settings
from weirddeps.errors import IndexReadError, IndexSyncError
from weirddeps.models import DependencyReport, ReportEntry


def sample_report():
    return DependencyReport(
        entries=[ReportEntry(name="demo", deps=["my-weird-dep", "serde"])],
        stats={"my-weird-dep": 1, "serde": 1},
    )


class TestCLI:
    """Test CLI command interface."""

    def setup_method(self):
        """Setup test fixtures."""
        self.runner = CliRunner()

    def test_cli_help_command(self):
        """Should display help when called with --help."""
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "weirddeps" in result.output.lower()
        assert "scan" in result.output
        assert "sync" in result.output

    def test_scan_writes_report(self, tmp_path):
        """Should run the pipeline and write both artifacts."""
        index = tmp_path / "index"
        index.mkdir()
        data = tmp_path / "data"
        stats = tmp_path / "stats"

        with patch("apps.cli.main.run_pipeline", return_value=sample_report()) as mock_run:
            result = self.runner.invoke(app, [
                "scan", "--index", str(index), "--cache", str(tmp_path / "cache"),
                "--data-out", str(data), "--stats-out", str(stats),
            ])

        assert result.exit_code == 0
        mock_run.assert_called_once()
        assert data.exists()
        assert stats.exists()
        assert '"my-weird-dep"' in data.read_text()

    def test_scan_passes_settings(self, tmp_path):
        """Should build settings from options."""
        index = tmp_path / "index"
        index.mkdir()

        with patch("apps.cli.main.run_pipeline", return_value=sample_report()) as mock_run:
            self.runner.invoke(app, [
                "scan", "--index", str(index), "--cache", str(tmp_path / "cache"),
                "--data-out", str(tmp_path / "data"), "--stats-out", str(tmp_path / "stats"),
                "--jobs", "3", "--threshold", "2", "--lenient-index",
            ])

        settings = mock_run.call_args[0][0]
        assert settings.max_concurrency == 3
        assert settings.threshold == 2
        assert settings.strict_index is False
        assert mock_run.call_args[1]["fetch"] is True

    def test_scan_no_fetch_skips_index_check(self, tmp_path):
        """Should run against the cache alone with --no-fetch."""
        with patch("apps.cli.main.run_pipeline", return_value=sample_report()) as mock_run:
            result = self.runner.invoke(app, [
                "scan", "--no-fetch", "--index", str(tmp_path / "missing"),
                "--data-out", str(tmp_path / "data"), "--stats-out", str(tmp_path / "stats"),
            ])

        assert result.exit_code == 0
        assert mock_run.call_args[1]["fetch"] is False

    def test_scan_defaults_match_settings(self, tmp_path, monkeypatch):
        """Should fall back to the Settings defaults for unset options."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "crates.io-index").mkdir()

        with patch("apps.cli.main.run_pipeline", return_value=sample_report()) as mock_run:
            result = self.runner.invoke(app, ["scan"])

        assert result.exit_code == 0
        assert mock_run.call_args[0][0] == Settings()

    def test_scan_missing_index(self, tmp_path):
        """Should fail when the index checkout is absent."""
        with patch("apps.cli.main.run_pipeline") as mock_run:
            result = self.runner.invoke(app, ["scan", "--index", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "Error" in result.output
        mock_run.assert_not_called()

    def test_scan_pipeline_error(self, tmp_path):
        """Should report pipeline errors and exit non-zero."""
        index = tmp_path / "index"
        index.mkdir()

        with patch("apps.cli.main.run_pipeline", side_effect=IndexReadError("bad index line")):
            result = self.runner.invoke(app, ["scan", "--index", str(index)])

        assert result.exit_code == 1
        assert "bad index line" in result.output

    def test_sync_command(self, tmp_path):
        """Should call the index sync with the given paths."""
        with patch("apps.cli.main.sync_index") as mock_sync:
            result = self.runner.invoke(app, [
                "sync", "--index", str(tmp_path / "idx"), "--cache", str(tmp_path / "cache"),
                "--repo", "https://example.test/index",
            ])

        assert result.exit_code == 0
        mock_sync.assert_called_once_with(tmp_path / "idx", tmp_path / "cache", "https://example.test/index")

    def test_sync_default_repo(self):
        """Should clone from the configured index URL by default."""
        with patch("apps.cli.main.sync_index") as mock_sync:
            result = self.runner.invoke(app, ["sync"])

        assert result.exit_code == 0
        mock_sync.assert_called_once_with(Settings().index_dir, Settings().cache_dir, Settings().index_repo_url)

    def test_sync_failure(self):
        """Should exit non-zero when git fails."""
        with patch("apps.cli.main.sync_index", side_effect=IndexSyncError("git clone failed")):
            result = self.runner.invoke(app, ["sync"])

        assert result.exit_code == 1
        assert "git clone failed" in result.output
