"""
Command-line interface tests.

Run with: pytest tests/test_cli.py -v

Copyright (c) 2026 Momentum. All rights reserved.
"""

import json

import pytest
import yaml

from vcdisclose import __version__
from vcdisclose.cli import (
    DEFAULT_ATTRIBUTES,
    CLIError,
    OutputFormat,
    format_output,
    main,
    parse_substitution,
)
from vcdisclose.field import encode_attribute
from vcdisclose.protocol import CredentialStatement


def _run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestHelpers:
    """Tests for CLI helper functions."""

    def test_parse_substitution(self):
        assert parse_substitution("3=2024") == (3, "2024")
        assert parse_substitution("0=a=b") == (0, "a=b")

    @pytest.mark.parametrize("text", ["3", "x=2024"])
    def test_parse_substitution_rejects(self, text):
        with pytest.raises(CLIError) as exc:
            parse_substitution(text)
        assert exc.value.exit_code == 2

    def test_format_output(self):
        data = {"a": 1}
        assert json.loads(format_output(data)) == data
        assert yaml.safe_load(format_output(data, OutputFormat.YAML)) == data
        assert format_output(data, OutputFormat.TEXT) == "a: 1"


class TestGlobalOptions:
    """Tests for top-level behaviour."""

    def test_no_command_prints_help(self, capsys):
        code, out, _ = _run(capsys)
        assert code == 0
        assert "usage: vcdisclose" in out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_missing_config_file(self, capsys, tmp_path):
        code, _, err = _run(capsys, "--config", str(tmp_path / "absent.yaml"), "config", "show")
        assert code == 1
        assert "not found" in err

    def test_quiet_suppresses_errors(self, capsys):
        code, _, err = _run(capsys, "--quiet", "config", "get", "sponge.width")
        assert code == 1
        assert err == ""


class TestCommitCommand:
    """Tests for the commit command."""

    def test_reference_commitment(self, capsys):
        code, out, _ = _run(capsys, "commit", *DEFAULT_ATTRIBUTES)
        assert code == 0
        result = json.loads(out)
        statement = CredentialStatement.from_attributes(list(DEFAULT_ATTRIBUTES))
        assert result["commitment"] == statement.commitment.to_hex()
        assert result["disclosed"] == {"1": encode_attribute("Financial Technologies").to_hex()}
        assert result["attributes"] == [a.to_hex() for a in statement.attributes]

    def test_wrong_attribute_count(self, capsys):
        code, out, err = _run(capsys, "commit", "Lukas", "Vilnius")
        assert code == 1
        assert out == ""
        assert "Expected 4 attributes" in err

    def test_config_file_selects_schema(self, capsys, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("schema:\n  witness_count: 2\n  disclosed_positions: [0]\n")
        code, out, _ = _run(capsys, "--config", str(path), "commit", "Lukas", "Vilnius")
        assert code == 0
        result = json.loads(out)
        assert result["schema"] == {"witness_count": 2, "disclosed_positions": [0]}
        assert result["disclosed"] == {"0": encode_attribute("Lukas").to_hex()}

    def test_yaml_output(self, capsys):
        code, out, _ = _run(capsys, "--format", "yaml", "commit", *DEFAULT_ATTRIBUTES)
        assert code == 0
        assert set(yaml.safe_load(out)) >= {"commitment", "disclosed", "attributes"}


class TestConfigCommands:
    """Tests for configuration subcommands."""

    def test_get(self, capsys):
        code, out, _ = _run(capsys, "config", "get", "sponge.profile")
        assert code == 0
        assert json.loads(out) == {"path": "sponge.profile", "value": "reference"}

    def test_get_invalid_path(self, capsys):
        code, _, err = _run(capsys, "config", "get", "sponge.width")
        assert code == 1
        assert "Invalid config path" in err

    def test_unparseable_environment_value(self, capsys, monkeypatch):
        monkeypatch.setenv("VCDISCLOSE_SPONGE_RATE", "two")
        code, out, err = _run(capsys, "config", "get", "sponge.rate")
        assert code == 1
        assert out == ""
        assert "Invalid value for VCDISCLOSE_SPONGE_RATE: 'two'" in err

    def test_show(self, capsys):
        code, out, _ = _run(capsys, "--format", "yaml", "config", "show")
        assert code == 0
        shown = yaml.safe_load(out)
        assert shown["prover"] == {"strict": False, "check_shape": True}

    def test_validate(self, capsys):
        code, out, _ = _run(capsys, "config", "validate")
        assert code == 0
        assert json.loads(out) == {"valid": True, "errors": []}

    def test_validate_reports_errors(self, capsys, monkeypatch):
        monkeypatch.setenv("VCDISCLOSE_SCHEMA_DISCLOSED", "9")
        code, out, _ = _run(capsys, "config", "validate")
        assert code == 0
        result = json.loads(out)
        assert result["valid"] is False
        assert result["errors"][0].startswith("schema:")

    def test_schema(self, capsys):
        code, out, _ = _run(capsys, "config", "schema")
        assert code == 0
        assert "sponge" in json.loads(out)["properties"]

    def test_missing_subcommand(self, capsys):
        code, _, err = _run(capsys, "config")
        assert code == 1
        assert "Unknown command" in err


class TestDemoCommand:
    """Tests for the end-to-end demo."""

    def test_bad_tamper_argument(self, capsys):
        code, _, err = _run(capsys, "demo", "--tamper", "three=2024")
        assert code == 2
        assert "Position must be an integer" in err

    @pytest.mark.slow
    def test_reference_run_with_tamper(self, capsys):
        code, out, _ = _run(capsys, "demo", "--tamper", "3=2024")
        assert code == 0
        result = json.loads(out)
        assert result["verified"] is True
        assert result["tampered"]["position"] == 3
        assert result["tampered"]["verified"] is False
        assert result["keys"]["constraint_count"] == 485
        assert set(result["timings"]) == {"setup_ms", "prepare_ms", "prove_ms", "verify_ms"}
        assert result["correlation_id"].startswith("corr-")
        assert len(bytes.fromhex(result["proof"]["proof_data"])) == 256
