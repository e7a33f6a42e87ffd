"""Unit tests for the config_click CLI commands."""

import json

import click
from click.testing import CliRunner

from pdcli.config import get_config_file_path, get_page_size, load_config
from pdcli.config_click import register_config_commands


def make_cli() -> click.Group:
    """Create a test CLI with config commands registered."""

    @click.group()
    def test_cli() -> None:
        pass

    register_config_commands(test_cli)
    return test_cli


class TestConfigSet:
    """Tests for config set/unset."""

    def test_set_api_url(self) -> None:
        result = CliRunner().invoke(
            make_cli(), ["config", "set", "api_url", "https://api.eu.pagerduty.com"]
        )

        assert result.exit_code == 0
        assert load_config() == {"api_url": "https://api.eu.pagerduty.com"}

    def test_set_page_size(self) -> None:
        result = CliRunner().invoke(make_cli(), ["config", "set", "page_size", "25"])

        assert result.exit_code == 0
        assert get_page_size() == 25

    def test_page_size_out_of_range(self) -> None:
        result = CliRunner().invoke(make_cli(), ["config", "set", "page_size", "500"])

        assert result.exit_code == 2
        assert "page_size must be between 1 and 100" in result.output
        assert load_config() == {}

    def test_page_size_not_a_number(self) -> None:
        result = CliRunner().invoke(make_cli(), ["config", "set", "page_size", "many"])
        assert result.exit_code == 2

    def test_unknown_key(self) -> None:
        result = CliRunner().invoke(make_cli(), ["config", "set", "color", "blue"])
        assert result.exit_code == 2

    def test_unset(self) -> None:
        runner = CliRunner()
        runner.invoke(make_cli(), ["config", "set", "page_size", "25"])

        result = runner.invoke(make_cli(), ["config", "unset", "page_size"])
        assert result.exit_code == 0
        assert get_page_size() == 100

        result = runner.invoke(make_cli(), ["config", "unset", "page_size"])
        assert "page_size was not set." in result.output


class TestConfigShow:
    """Tests for config show."""

    def test_show_empty(self) -> None:
        result = CliRunner().invoke(make_cli(), ["config", "show"])

        assert result.exit_code == 0
        assert str(get_config_file_path()) in result.output
        assert "No configuration values set." in result.output

    def test_show_json(self) -> None:
        runner = CliRunner()
        runner.invoke(make_cli(), ["config", "set", "page_size", "10"])

        result = runner.invoke(make_cli(), ["config", "show", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"page_size": 10}

    def test_corrupt_config_is_ignored(self) -> None:
        get_config_file_path().write_text("{not json", encoding="utf-8")

        result = CliRunner().invoke(make_cli(), ["config", "show", "-f", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {}
