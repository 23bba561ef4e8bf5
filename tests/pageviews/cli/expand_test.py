"""Tests for the pageviews.cli.expand module."""

from click.testing import CliRunner

from pageviews.cli import cli


class TestExpandCommand:
    """pageviews expand prints one name per line."""

    def test_prints_names(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["expand", "pageviews-bbbbff.gz", "b:2016-2016", "f:6-7"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["pageviews-201606.gz", "pageviews-201607.gz"]

    def test_custom_pad_char(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["expand", "hhh", "h:7-7", "--pad-char", "_"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["__7"]

    def test_invalid_range(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["expand", "bbbb", "b:2017-2016"])
        assert result.exit_code == 1
        assert "LOW must be <= HIGH" in result.output

    def test_rule_not_in_template(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["expand", "bbbb", "z:1-2"])
        assert result.exit_code == 1
        assert "does not occur" in result.output
