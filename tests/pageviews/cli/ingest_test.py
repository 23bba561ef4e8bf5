"""Tests for the pageviews.cli.ingest module."""

from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from pageviews.cli import cli
from pageviews.errors import StoreError


class TestIngestCommand:
    """pageviews ingest merges a directory of files."""

    @patch("pageviews.cli.options.ElasticsearchStore")
    def test_ingests_directory(self, mock_store_cls, tmp_path: Path):
        (tmp_path / "2016-07-21-10.csv").write_text("en Main_Page 1 0\nde Seite 2 0\n")
        (tmp_path / "2016-07-21-11.csv").write_text("en Main_Page 3 0\n")
        mock_store_cls.return_value.bulk_merge.side_effect = len

        runner = CliRunner()
        result = runner.invoke(
            cli, ["ingest", str(tmp_path), "--batch", "1", "--concurrent-insertions", "all"]
        )

        assert result.exit_code == 0, result.output
        assert "Ingested 2/2 file(s)." in result.output
        assert mock_store_cls.return_value.bulk_merge.call_count == 3
        assert mock_store_cls.call_args.kwargs["pool_size"] == 64

    @patch("pageviews.cli.options.ElasticsearchStore")
    def test_failures_exit_with_one(self, mock_store_cls, tmp_path: Path):
        (tmp_path / "2016-07-21-10.csv").write_text("en Main_Page 1 0\n")
        mock_store_cls.return_value.bulk_merge.side_effect = StoreError("rejected")

        runner = CliRunner()
        result = runner.invoke(cli, ["ingest", str(tmp_path)])

        assert result.exit_code == 1
        assert "1 file(s) failed:" in result.output
        assert "rejected" in result.output

    def test_invalid_concurrency(self, tmp_path: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["ingest", str(tmp_path), "--concurrent-insertions", "some"])
        assert result.exit_code == 2
        assert "expected a number or 'all'" in result.output

    def test_missing_directory(self, tmp_path: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["ingest", str(tmp_path / "missing")])
        assert result.exit_code == 2
