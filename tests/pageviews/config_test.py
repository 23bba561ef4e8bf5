"""Tests for the pageviews.config module."""

from pathlib import Path

import pytest

from pageviews.config import DEFAULT_OUTPUT, DEFAULT_SOURCE, load_config_file, resolve_settings
from pageviews.errors import ConfigError, RuleParseError
from pageviews.pattern import Rule


class TestResolveSettings:
    """Tests for the resolve_settings function."""

    def test_defaults(self):
        settings = resolve_settings()

        assert settings.tasks.download and settings.tasks.ingest
        assert settings.download.source == DEFAULT_SOURCE
        assert settings.download.output == DEFAULT_OUTPUT
        assert settings.download.destination == "./data"
        assert settings.download.concurrent == 3
        assert settings.download.compression == "gz"
        assert settings.download.overwrite is False
        assert settings.download.days == Rule.from_range("j", 1, 31)
        assert settings.download.hours == Rule.from_range("l", 0, 23)
        assert settings.store.address == "localhost"
        assert settings.store.port == 9200
        assert settings.store.index == "wikiviews"
        assert settings.store.doc_type is None
        assert settings.store.concurrent == 2
        assert settings.store.batch == 10000

    def test_rules_in_expansion_order(self):
        rules = resolve_settings().download.rules()
        assert [rule.variable for rule in rules] == ["b", "f", "j", "l"]

    def test_later_layers_override_earlier_ones(self):
        settings = resolve_settings(
            {"store": {"index": "from-file", "batch": 10}},
            {"store": {"index": "from-cli"}},
        )
        assert settings.store.index == "from-cli"
        assert settings.store.batch == 10

    def test_none_values_are_ignored(self):
        settings = resolve_settings(
            {"download": {"concurrent": 5}},
            {"download": {"concurrent": None, "years": None}},
        )
        assert settings.download.concurrent == 5
        assert settings.download.years == Rule.from_range("b", 2016, 2016)

    def test_none_values_in_a_new_section_are_ignored(self):
        settings = resolve_settings({"store": {"address": None, "index": "views"}})
        assert settings.store.address == "localhost"
        assert settings.store.index == "views"

    def test_unset_command_line_options(self):
        settings = resolve_settings(
            {},
            {"tasks": {"download": None, "ingest": None}},
            {"download": {"source": None, "hours": None, "compression": None}},
        )
        assert settings == resolve_settings()

    @pytest.mark.parametrize("token", ["none", ""])
    def test_no_compression(self, token):
        settings = resolve_settings({"download": {"compression": token}})
        assert settings.download.compression is None

    @pytest.mark.parametrize("token", ["gz", "zip"])
    def test_compression(self, token):
        assert resolve_settings({"download": {"compression": token}}).download.compression == token

    def test_unknown_compression(self):
        with pytest.raises(ConfigError, match="must be one of gz, zip or none"):
            resolve_settings({"download": {"compression": "bz2"}})

    def test_rules_from_strings(self):
        settings = resolve_settings({"download": {"months": "f:3-5"}})
        assert settings.download.months == Rule("f", (3, 4, 5))

    def test_all_insertions(self):
        settings = resolve_settings({"store": {"concurrent": "all"}})
        assert settings.store.concurrent is None

    def test_invalid_rule(self):
        with pytest.raises(RuleParseError):
            resolve_settings({"download": {"hours": "l:23-0"}})

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="invalid settings"):
            resolve_settings({"store": {"shards": 3}})

    def test_wrong_type(self):
        with pytest.raises(ConfigError, match="invalid settings"):
            resolve_settings({"download": {"concurrent": "many"}})

    @pytest.mark.parametrize(
        "layer,message",
        [
            ({"download": {"concurrent": 0}}, "download.concurrent must be positive"),
            ({"store": {"concurrent": -1}}, "store.concurrent must be positive"),
            ({"store": {"batch": 0}}, "store.batch must be positive"),
        ],
    )
    def test_validation(self, layer, message):
        with pytest.raises(ConfigError, match=message):
            resolve_settings(layer)


class TestLoadConfigFile:
    """Tests for the load_config_file function."""

    def test_yaml(self, tmp_path: Path):
        path = tmp_path / "pageviews.yaml"
        path.write_text("download:\n  hours: 'l:0-5'\nstore:\n  concurrent: all\n")

        settings = resolve_settings(load_config_file(path))

        assert settings.download.hours == Rule.from_range("l", 0, 5)
        assert settings.store.concurrent is None

    def test_json(self, tmp_path: Path):
        path = tmp_path / "pageviews.json"
        path.write_text('{"tasks": {"download": false}, "store": {"index": "views"}}')

        assert load_config_file(path) == {"tasks": {"download": False}, "store": {"index": "views"}}

    def test_yaml_without_compression(self, tmp_path: Path):
        path = tmp_path / "pageviews.yaml"
        path.write_text("download:\n  compression: none\n")

        settings = resolve_settings(load_config_file(path), {"store": {"index": None}})

        assert settings.download.compression is None
        assert settings.store.index == "wikiviews"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="cannot read config file"):
            load_config_file(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "broken.yaml"
        path.write_text("store: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config_file(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config_file(path)
