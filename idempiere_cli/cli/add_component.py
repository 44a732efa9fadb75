#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli-add — add a component to an iDempiere plugin.

Tries AI generation when a provider is configured and falls back to the
built-in templates otherwise. The command succeeds whenever either path
wrote the component; AI failures alone never make it exit non-zero.

Examples:
    idempiere-cli-add callout --name MyCallout --to ./org.example.plugin
    idempiere-cli-add process --name ImportOrders --to . \\
        --prompt "import orders from a CSV file" --param table=C_Order --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from idempiere_cli.builder.component_templates import COMPONENT_TYPES
from idempiere_cli.builder.smart_scaffold import ScaffoldResult, ScaffoldState, add_component
from idempiere_cli.cli.output_formatter import (
    add_human_flag,
    format_banner,
    format_kv,
    format_list,
    format_section,
    should_use_human,
)
from idempiere_cli.config import load_config
from idempiere_cli.resilience.errors import ConfigurationError

logger = logging.getLogger("idempiere_cli.cli.add_component")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def parse_params(values: Optional[List[str]]) -> Dict[str, str]:
    """Turn repeated ``--param key=value`` options into a dict.

    Raises:
        ValueError: If an entry has no ``=`` or an empty key.
    """
    params: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid --param '{item}', expected key=value")
        params[key.strip()] = value
    return params


def _format_human(result: ScaffoldResult) -> str:
    if result.error_code:
        return format_banner("error", f"{result.error_code}: {result.error_message}")

    if result.used_ai:
        banner = format_banner("ai", f"Generated {result.component_type} {result.name} "
                                     f"with AI ({result.provider})")
    else:
        banner = format_banner("fallback", f"Generated {result.component_type} {result.name} "
                                           "from template")
    sections = [banner, ""]
    sections.append(format_kv([
        ("State", result.state.value),
        ("Path", " -> ".join(s.value for s in result.history)),
        ("Provider", result.provider or "-"),
        ("Session log", result.session_log or "-"),
    ]))
    if result.rejection_reason:
        sections.extend(["", format_kv([("AI rejected", result.rejection_reason)])])
        if result.session_log:
            sections.append(f"  Rejected AI output is preserved in {result.session_log}")
    if result.issues:
        sections.extend(["", format_section("Guardrail issues"), format_list(result.issues)])
    if result.files:
        sections.extend(["", format_section("Files"), format_list(result.files)])
    return "\n".join(sections)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idempiere-cli-add",
        description="Add a component to an iDempiere plugin (AI-assisted with template fallback)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  idempiere-cli-add callout --name MyCallout --to ./org.example.plugin\n"
            "  idempiere-cli-add process --name ImportOrders --to . --prompt \"...\" --json\n"
        ),
    )
    parser.add_argument("component_type", metavar="TYPE",
                        help="Component type: " + ", ".join(COMPONENT_TYPES))
    parser.add_argument("--name", required=True, help="Component class name")
    parser.add_argument("--to", dest="plugin_dir", default=".",
                        help="Plugin directory (default: current directory)")
    parser.add_argument("--prompt", help="Free-text instruction for AI generation")
    parser.add_argument("--param", action="append", metavar="KEY=VALUE",
                        help="Extra parameter passed to the generator (repeatable)")
    parser.add_argument("--config", help="Explicit .idempiere-cli.yaml to load")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    add_human_flag(parser)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        params = parse_params(args.param)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if args.prompt:
        params["prompt"] = args.prompt

    plugin_dir = Path(args.plugin_dir)
    try:
        config = load_config(args.config, cwd=plugin_dir if plugin_dir.is_dir() else None)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    result = add_component(args.component_type, args.name, plugin_dir, params, config=config)

    if should_use_human(args):
        print(_format_human(result))
    else:
        print(json.dumps(result.to_dict(), indent=2))

    if not result.success:
        return 1
    if result.state == ScaffoldState.FALLBACK_APPLIED and result.rejection_reason:
        logger.info("AI not used: %s", result.rejection_reason)
    return 0


if __name__ == "__main__":
    sys.exit(main())
