#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli-ai-check — verify the configured AI provider responds.

Exit codes: 0 provider answered, 1 AI disabled/unconfigured or the probe
failed, 2 invalid configuration.
"""

import argparse
import json
import sys
from typing import List, Optional

from idempiere_cli.cli.add_component import configure_logging
from idempiere_cli.cli.output_formatter import add_human_flag, format_banner, should_use_human
from idempiere_cli.config import load_config
from idempiere_cli.llm.router import get_client
from idempiere_cli.resilience.errors import ConfigurationError


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="idempiere-cli-ai-check",
        description="Send a minimal probe to the configured AI provider",
    )
    parser.add_argument("--config", help="Explicit .idempiere-cli.yaml to load")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    add_human_flag(parser)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    client = get_client(config)
    if client is None:
        report = {
            "ok": False,
            "provider": config.ai.provider,
            "error": "AI is disabled or the provider is not configured",
        }
    else:
        response = client.validate()
        report = {
            "ok": response.success,
            "provider": client.provider_name,
            "error": response.error,
        }

    if should_use_human(args):
        if report["ok"]:
            print(format_banner("ai", f"AI provider '{report['provider']}' is reachable"))
        else:
            print(format_banner("error", f"AI check failed: {report['error']}"))
    else:
        print(json.dumps(report, indent=2))
    return 0 if report["ok"] else 1


if __name__ == "__main__":
    sys.exit(main())
