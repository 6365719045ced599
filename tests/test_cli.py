"""Tests for the yamltools command line interface."""

import json

import yaml
from click.testing import CliRunner

from yamltools.__main__ import cli

SPINNAKER_FILES = ["spinnaker.yml", "spinnaker-armory.yml", "spinnaker-local.yml"]


class TestResolveCommand:
    """Test `yamltools resolve`."""

    def test_resolve_yaml_output(self, fixtures_dir):
        runner = CliRunner()
        files = [str(fixtures_dir / name) for name in SPINNAKER_FILES]

        result = runner.invoke(
            cli,
            ["resolve", *files, "--env", "DEFAULT_DNS_NAME=mockdns.com", "--env", "REDIS_HOST=redis"],
        )

        assert result.exit_code == 0, result.output
        resolved = yaml.safe_load(result.output)
        assert resolved["services"]["fiat"]["baseUrl"] == "http://mockdns.com:7003"
        assert resolved["services"]["echo"]["slackApiKey"] == "mynotsosecretstring"
        assert list(resolved) == ["global", "providers", "services", "features"]

    def test_resolve_json_output(self, fixtures_dir):
        runner = CliRunner()

        result = runner.invoke(cli, ["resolve", str(fixtures_dir / "collections.yml"), "--json-output"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["status"] == "ok"
        assert payload["result"]["col"] == ["one", "two", "three"]

    def test_resolve_error(self, tmp_path):
        config = tmp_path / "app.yml"
        config.write_text("host: ${YAMLTOOLS_CLI_UNSET_VARIABLE}\n")
        runner = CliRunner()

        result = runner.invoke(cli, ["resolve", str(config)])

        assert result.exit_code != 0
        assert "YAMLTOOLS_CLI_UNSET_VARIABLE" in result.output

    def test_bad_env_pair(self, fixtures_dir):
        runner = CliRunner()

        result = runner.invoke(cli, ["resolve", str(fixtures_dir / "collections.yml"), "--env", "NOVALUE"])

        assert result.exit_code == 2
        assert "KEY=VALUE" in result.output


class TestReferencesCommand:
    """Test `yamltools references`."""

    def test_lists_references(self, fixtures_dir):
        runner = CliRunner()

        result = runner.invoke(cli, ["references", str(fixtures_dir / "spinnaker-armory.yml")])

        assert result.exit_code == 0, result.output
        assert "Found 3 references:" in result.output
        assert "services.echo.slackApiKey [secret:noop]" in result.output
        assert "providers.aws.defaultRegion [placeholder]" in result.output

    def test_json_output(self, fixtures_dir):
        runner = CliRunner()

        result = runner.invoke(cli, ["references", str(fixtures_dir / "collections.yml"), "--json-output"])

        payload = json.loads(result.output)
        assert [ref["path"] for ref in payload["result"]] == [["baseUrl"], ["multiValColAgain"]]
