# CUI // SP-CTI
"""
idempiere-cli Output Formatter
==============================

Terminal rendering for idempiere-cli commands. Human output is the default;
``--json`` switches a command to plain JSON for scripting.

Color is emitted only when stdout is a terminal and ``NO_COLOR`` is unset,
or when ``FORCE_COLOR=1``.

Usage::

    from idempiere_cli.cli.output_formatter import (
        format_banner, format_kv, format_section, format_list,
        add_human_flag, should_use_human,
    )
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Iterable, List, Sequence, Tuple

# ---------------------------------------------------------------------------
# Color
# ---------------------------------------------------------------------------

_SGR = {
    "bold": 1,
    "dim": 2,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
}


def _color_enabled() -> bool:
    if os.environ.get("FORCE_COLOR") == "1":
        return True
    if "NO_COLOR" in os.environ:
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _paint(text: str, *styles: str) -> str:
    codes = ";".join(str(_SGR[s]) for s in styles if s in _SGR)
    if not codes or not _color_enabled():
        return text
    return f"\033[{codes}m{text}\033[0m"


# Orchestrator states and guardrail severities, matched on the leading word.
_STATE_STYLES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("BLOCKER", ("red", "bold")),
    ("BLOCKED", ("red",)),
    ("PARSE_FAILED", ("red",)),
    ("WARN", ("yellow",)),
    ("FALLBACK_APPLIED", ("yellow",)),
    ("AI_DISABLED", ("yellow",)),
    ("AI_APPLIED", ("green",)),
    ("True", ("green",)),
    ("False", ("dim",)),
)


def _highlight(value: Any) -> str:
    text = str(value)
    head = text.split(":", 1)[0].split(" ", 1)[0].strip()
    for token, styles in _STATE_STYLES:
        if head == token:
            return _paint(text, *styles)
    return text


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

_BANNERS = {
    "ai": ("[AI]", ("green",)),
    "fallback": ("[TT]", ("yellow",)),
    "error": ("[XX]", ("red", "bold")),
}


def format_banner(status: str, message: str) -> str:
    """Three-line banner framed by ``=`` rules.

    ``status`` selects the tag and color: ``ai``, ``fallback`` or ``error``;
    anything else renders as ``[ii]`` in blue.
    """
    tag, styles = _BANNERS.get(status.lower(), ("[ii]", ("blue",)))
    body = f"  {tag}  {message}"
    rule = "=" * max(60, len(body) + 4)
    return "\n".join(_paint(line, *styles) for line in (rule, body, rule))


def format_kv(pairs: Iterable[Tuple[str, Any]]) -> str:
    rows = [(str(k), v) for k, v in pairs]
    if not rows:
        return ""
    width = max(len(k) for k, _ in rows)
    return "\n".join(
        f"  {_paint(k.ljust(width), 'cyan')} : {_highlight(v)}" for k, v in rows
    )


def format_section(title: str, width: int = 60) -> str:
    rule = _paint("-" * width, "dim")
    return f"{rule}\n{_paint('  ' + title, 'bold', 'magenta')}\n{rule}"


def format_list(items: Sequence[Any]) -> str:
    lines: List[str] = [f"  - {_highlight(item)}" for item in items]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# argparse
# ---------------------------------------------------------------------------

def add_human_flag(parser: argparse.ArgumentParser) -> None:
    """Register the mutually exclusive ``--json`` / ``--human`` switches."""
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--json", action="store_true",
                      help="Print the result as JSON")
    mode.add_argument("--human", action="store_true",
                      help="Print a readable summary (default)")


def should_use_human(args: argparse.Namespace) -> bool:
    return not getattr(args, "json", False)
