#!/usr/bin/env python3
"""
vcdisclose CLI

Command-line access to commitment computation, the end-to-end proving flow,
and configuration.

Usage:
    vcdisclose [--config FILE] [--format json|yaml|text] <command> [options]

Commands:
    commit      Encode attributes and compute their commitment
    demo        Run setup, prove and verify for one credential
    config      Configuration management

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from vcdisclose import __version__

DEFAULT_ATTRIBUTES = ("Lukas", "Financial Technologies", "Vilnius", "2025")


class OutputFormat(Enum):
    """Output format options."""
    JSON = "json"
    YAML = "yaml"
    TEXT = "text"


class CLIError(Exception):
    """CLI error with exit code."""
    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def format_output(data: Any, fmt: OutputFormat = OutputFormat.JSON) -> str:
    """Format data for output."""
    if fmt == OutputFormat.JSON:
        return json.dumps(data, indent=2, default=str)
    elif fmt == OutputFormat.YAML:
        import yaml
        return yaml.dump(data, default_flow_style=False)
    elif isinstance(data, dict):
        return "\n".join(f"{k}: {v}" for k, v in data.items())
    return str(data)


def parse_substitution(text: str) -> Tuple[int, str]:
    """Parse POS=VALUE into (position, value)."""
    pos, sep, value = text.partition("=")
    if not sep:
        raise CLIError(f"Expected POS=VALUE, got {text!r}", exit_code=2)
    try:
        return int(pos), value
    except ValueError:
        raise CLIError(f"Position must be an integer, got {pos!r}", exit_code=2)


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


class VcDiscloseCLI:
    """Main CLI application."""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="vcdisclose",
            description="Selective disclosure proofs for committed credential attributes",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.parser.add_argument(
            "--version", "-V",
            action="version",
            version=f"vcdisclose {__version__}",
        )
        self.parser.add_argument(
            "--format", "-f",
            choices=["json", "yaml", "text"],
            default="json",
            help="Output format (default: json)",
        )
        self.parser.add_argument(
            "--config", "-c",
            help="YAML configuration file",
        )
        self.parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress error messages",
        )

        self.subparsers = self.parser.add_subparsers(dest="command", help="Commands")
        self._register_commands()

    def _register_commands(self) -> None:
        self._register_commit_command()
        self._register_demo_command()
        self._register_config_commands()

    def _register_commit_command(self) -> None:
        commit = self.subparsers.add_parser("commit", help="Compute an attribute commitment")
        commit.add_argument("attributes", nargs="+", help="Attribute values in schema order")

    def _register_demo_command(self) -> None:
        demo = self.subparsers.add_parser("demo", help="Run setup, prove and verify")
        demo.add_argument(
            "--attribute", "-a",
            action="append",
            dest="attributes",
            help="Attribute value (repeat in schema order; default: reference credential)",
        )
        demo.add_argument(
            "--tamper", "-t",
            metavar="POS=VALUE",
            help="Also prove with attribute POS replaced by VALUE under the original commitment",
        )

    def _register_config_commands(self) -> None:
        config = self.subparsers.add_parser("config", help="Configuration management")
        config_sub = config.add_subparsers(dest="subcommand")

        get = config_sub.add_parser("get", help="Get configuration value")
        get.add_argument("path", help="Config path (e.g., sponge.profile)")

        config_sub.add_parser("show", help="Show all configuration")
        config_sub.add_parser("validate", help="Validate configuration")
        config_sub.add_parser("schema", help="Export configuration schema")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            self._configure(parsed)
            fmt = OutputFormat(parsed.format)
            result = self._dispatch(parsed)

            if result is not None:
                print(format_output(result, fmt))

            return 0

        except CLIError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return e.exit_code

        except Exception as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 1

    def _configure(self, args: argparse.Namespace) -> None:
        from vcdisclose.config import get_config_manager
        from vcdisclose.observability import configure_logging

        mgr = get_config_manager()
        if args.config:
            mgr.load_from_file(args.config)
        configure_logging(
            level=mgr.get("observability.log_level"),
            log_format=mgr.get("observability.log_format"),
        )

    def _dispatch(self, args: argparse.Namespace) -> Any:
        """Dispatch command to handler."""
        cmd = args.command
        subcmd = getattr(args, "subcommand", None)

        handler_name = f"_handle_{cmd}_{subcmd}" if subcmd else f"_handle_{cmd}"
        handler = getattr(self, handler_name, None)

        if handler is None:
            raise CLIError(f"Unknown command: {cmd} {subcmd or ''}")

        return handler(args)

    def _statement(self, attributes: List[str]) -> Any:
        from vcdisclose.config import get_config, schema_from, sponge_config_from
        from vcdisclose.protocol import CredentialStatement

        cfg = get_config()
        return CredentialStatement.from_attributes(
            attributes,
            config=sponge_config_from(cfg),
            schema=schema_from(cfg),
        )

    # Commit handler
    def _handle_commit(self, args: argparse.Namespace) -> Any:
        statement = self._statement(args.attributes)
        result = statement.to_dict()
        result["attributes"] = [a.to_hex() for a in statement.attributes]
        return result

    # Demo handler
    def _handle_demo(self, args: argparse.Namespace) -> Any:
        from vcdisclose.observability import get_correlation_id
        from vcdisclose.protocol import prepare, prove, setup, verify

        attributes = args.attributes or list(DEFAULT_ATTRIBUTES)
        tamper = parse_substitution(args.tamper) if args.tamper else None
        timings: Dict[str, float] = {}

        statement = self._statement(attributes)

        start = time.monotonic()
        keys = setup(statement.shape())
        timings["setup_ms"] = _elapsed_ms(start)

        start = time.monotonic()
        pvk = prepare(keys.verifying_key)
        timings["prepare_ms"] = _elapsed_ms(start)

        start = time.monotonic()
        proof = prove(statement.circuit(), keys.proving_key, strict=False)
        timings["prove_ms"] = _elapsed_ms(start)

        start = time.monotonic()
        verified = verify(proof, statement.public_inputs(), pvk)
        timings["verify_ms"] = _elapsed_ms(start)

        result: Dict[str, Any] = {
            "correlation_id": get_correlation_id(),
            "statement": statement.to_dict(),
            "keys": keys.proving_key.to_dict(),
            "proof": proof.to_dict(),
            "verified": verified,
            "timings": timings,
        }

        if tamper is not None:
            position, value = tamper
            try:
                tampered = statement.substitute_attribute(position, value)
            except IndexError as e:
                raise CLIError(str(e), exit_code=2)
            tampered_proof = prove(tampered.circuit(), keys.proving_key, strict=False)
            result["tampered"] = {
                "position": position,
                "proof": tampered_proof.to_dict(),
                "verified": verify(tampered_proof, statement.public_inputs(), pvk),
            }

        return result

    # Config handlers
    def _handle_config_get(self, args: argparse.Namespace) -> Any:
        from vcdisclose.config import get_config_manager
        mgr = get_config_manager()
        return {"path": args.path, "value": mgr.get(args.path)}

    def _handle_config_show(self, args: argparse.Namespace) -> Any:
        from vcdisclose.config import get_config_manager
        mgr = get_config_manager()
        return mgr.config.to_dict()

    def _handle_config_validate(self, args: argparse.Namespace) -> Any:
        from vcdisclose.config import get_config_manager
        mgr = get_config_manager()
        errors = mgr.validate()
        return {"valid": len(errors) == 0, "errors": errors}

    def _handle_config_schema(self, args: argparse.Namespace) -> Any:
        from vcdisclose.config import get_config_manager
        mgr = get_config_manager()
        return mgr.export_schema()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    cli = VcDiscloseCLI()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
