#!/usr/bin/env python3
# CUI // SP-CTI
"""Extract a GeneratedCode change-set from raw AI text.

AI replies often wrap the JSON in a markdown fence or surround it with
prose. Candidates are tried in order:

1. the interior of a ```json (or bare ```) fence
2. the first complete top-level JSON object anywhere in the text
3. the whole text

Object boundaries are found with ``json.JSONDecoder.raw_decode`` so braces
and escaped quotes inside string values do not confuse the scan. Parsing
never raises; failures come back as an error message.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple

from idempiere_cli.builder.generated_code import GeneratedCode

logger = logging.getLogger("idempiere_cli.builder.response_parser")

FENCE_PATTERN = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n(.*?)```", re.DOTALL)

_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class ParseResult:
    code: Optional[GeneratedCode] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.code is not None


def _fenced_block(text: str) -> Optional[str]:
    match = FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return None


def _first_object(text: str) -> Optional[Tuple[Any, str]]:
    """Return (value, source_text) of the first decodable object starting at a '{'."""
    index = text.find("{")
    while index != -1:
        try:
            value, end = _decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            index = text.find("{", index + 1)
            continue
        if isinstance(value, dict):
            return value, text[index:end]
        index = text.find("{", end)
    return None


def _candidates(raw: str) -> Iterator[Tuple[str, str]]:
    fenced = _fenced_block(raw)
    if fenced:
        yield "fenced block", fenced
    yield "embedded object", raw
    yield "raw response", raw.strip()


def parse_detailed(raw: Optional[str]) -> ParseResult:
    """Parse ``raw`` AI text into a GeneratedCode or an error message."""
    if raw is None or not raw.strip():
        return ParseResult(error_message="Invalid JSON in raw response: AI response is empty")

    errors = []
    for source, text in _candidates(raw):
        if source == "embedded object":
            found = _first_object(text)
            if found is None:
                errors.append(f"Invalid JSON in {source}: no complete JSON object found")
                continue
            data = found[0]
        else:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as exc:
                errors.append(f"Invalid JSON in {source}: {exc.msg} at line {exc.lineno} "
                              f"column {exc.colno}")
                continue

        try:
            code = GeneratedCode.from_dict(data)
        except ValueError as exc:
            errors.append(f"Invalid JSON structure in {source}: {exc}")
            continue

        if not code.files:
            return ParseResult(error_message=f"Parsed {source} but files array is empty")
        logger.debug("Parsed %d file(s) from %s", len(code.files), source)
        return ParseResult(code=code)

    # Report the most specific candidate's failure first.
    message = errors[0] if errors else "Invalid JSON in raw response"
    logger.debug("AI response not parseable: %s", "; ".join(errors))
    return ParseResult(error_message=message)


def parse(raw: Optional[str]) -> Optional[GeneratedCode]:
    """Parse ``raw`` AI text; None on any failure."""
    return parse_detailed(raw).code
