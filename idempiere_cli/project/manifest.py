#!/usr/bin/env python3
# CUI // SP-CTI
"""Idempotent patching of META-INF/MANIFEST.MF and build.properties.

Both patchers are append-only: an entry already present is left alone, so
applying the same additions any number of times gives the same bytes as
applying them once.

Manifest additions are header fragments such as::

    Require-Bundle: org.adempiere.ui.zk
    Import-Package: org.osgi.framework;version="1.3.0", org.compiere.minigrid
    org.osgi.service.event;version="1.4.0"        (no header: Import-Package)

Commas inside version ranges (``[5.9.0,6.0.0)``) and quoted attribute
values do not split entries.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger("idempiere_cli.project.manifest")

MANIFEST_PATH = Path("META-INF") / "MANIFEST.MF"
BUILD_PROPERTIES = "build.properties"

DEFAULT_HEADER = "Import-Package"
HEADER_PREFIX = re.compile(r"^([A-Za-z][A-Za-z0-9_-]*)\s*:(?!=)\s*(.*)$", re.DOTALL)
BUILD_PROPERTIES_HINT = re.compile(r"^build\.properties\s*:\s*", re.IGNORECASE)

# A new header is inserted before the first of these, else at the end.
INSERT_BEFORE = {
    "Require-Bundle": ("Bundle-RequiredExecutionEnvironment",),
    "Import-Package": ("Service-Component", "Bundle-ActivationPolicy"),
}

KNOWN_HEADERS = {
    name.lower(): name
    for name in (
        "Require-Bundle", "Import-Package", "Export-Package", "Bundle-ClassPath",
        "Service-Component", "Bundle-ActivationPolicy", "Bundle-Activator",
        "Bundle-RequiredExecutionEnvironment", "DynamicImport-Package",
    )
}

# Bundles and packages each component type needs at runtime.
BUNDLE_ZK = "org.adempiere.ui.zk"
BUNDLE_ZK_CORE = "zk"
BUNDLE_ZUL = "zul"
BUNDLE_PLUGIN_UTILS = "org.adempiere.plugin.utils"
BUNDLE_TEST = "org.idempiere.test"

IMPORT_OSGI_EVENT = 'org.osgi.service.event;version="1.4.0"'
IMPORT_OSGI_FRAMEWORK = 'org.osgi.framework;version="1.3.0"'
IMPORT_IDEMPIERE_TEST = "org.idempiere.test"
IMPORT_JUNIT = 'org.junit.jupiter.api;version="[5.9.0,6.0.0]"'
IMPORT_MINIGRID = "org.compiere.minigrid"

_ZK_BUNDLES = (BUNDLE_ZK, BUNDLE_ZK_CORE, BUNDLE_ZUL)

COMPONENT_BUNDLES = {
    "zk-form": _ZK_BUNDLES,
    "zk-form-zul": _ZK_BUNDLES,
    "listbox-group": _ZK_BUNDLES,
    "wlistbox-editor": _ZK_BUNDLES,
    "window-validator": _ZK_BUNDLES,
    "process-mapped": (BUNDLE_PLUGIN_UTILS,),
    "jasper-report": (BUNDLE_PLUGIN_UTILS,),
    "base-test": (BUNDLE_TEST,),
}

COMPONENT_IMPORTS = {
    "event-handler": (IMPORT_OSGI_EVENT,),
    "facts-validator": (IMPORT_OSGI_EVENT,),
    "process-mapped": (IMPORT_OSGI_FRAMEWORK,),
    "jasper-report": (IMPORT_OSGI_FRAMEWORK,),
    "base-test": (IMPORT_IDEMPIERE_TEST, IMPORT_JUNIT),
    "wlistbox-editor": (IMPORT_MINIGRID,),
}


# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------

def split_manifest_entries(value: str) -> List[str]:
    """Split a header value on commas outside brackets, parentheses and quotes."""
    entries = []
    current = []
    depth = 0
    in_quotes = False
    for ch in value:
        if ch == '"':
            in_quotes = not in_quotes
        elif not in_quotes:
            if ch in "[(":
                depth += 1
            elif ch in "])":
                depth = max(0, depth - 1)
            elif ch == "," and depth == 0:
                entries.append("".join(current))
                current = []
                continue
        current.append(ch)
    entries.append("".join(current))
    return [e.strip() for e in entries if e.strip()]


def _normalize(text: str) -> str:
    return re.sub(r"\s+", "", text)


def _symbolic_name(entry: str) -> str:
    return entry.split(";", 1)[0].strip()


def split_addition(addition: str) -> Tuple[str, str]:
    """Return (header, value) for an addition; bare values target Import-Package."""
    text = addition.strip()
    match = HEADER_PREFIX.match(text)
    if match:
        header = match.group(1)
        return KNOWN_HEADERS.get(header.lower(), header), match.group(2).strip()
    return DEFAULT_HEADER, text


# ---------------------------------------------------------------------------
# MANIFEST.MF
# ---------------------------------------------------------------------------

def _find_header(lines: List[str], header: str) -> Optional[Tuple[int, int]]:
    """Return [start, end) line indexes of ``header`` and its continuation lines.

    Header names compare case-insensitively, as in any JAR manifest.
    """
    prefix = header.lower() + ":"
    for index, line in enumerate(lines):
        if line[:len(prefix)].lower() == prefix:
            end = index + 1
            while end < len(lines) and lines[end].startswith(" "):
                end += 1
            return index, end
    return None


def _header_entries(lines: List[str], header: str, span: Tuple[int, int]) -> List[str]:
    start, end = span
    first = lines[start][len(header) + 1:]
    value = first + "".join(line[1:] for line in lines[start + 1:end])
    return split_manifest_entries(value)


def _already_present(token: str, entries: List[str]) -> bool:
    wanted = _normalize(token)
    name = _symbolic_name(token)
    for entry in entries:
        existing = _normalize(entry)
        if existing == wanted or existing.startswith(wanted + ";"):
            return True
        if _symbolic_name(entry) == name:
            return True
    return False


def _insertion_index(lines: List[str], header: str) -> int:
    for anchor in INSERT_BEFORE.get(header, ()):
        span = _find_header(lines, anchor)
        if span is not None:
            return span[0]
    index = len(lines)
    while index > 0 and not lines[index - 1].strip():
        index -= 1
    return index


def _add_token(lines: List[str], header: str, token: str) -> bool:
    span = _find_header(lines, header)
    if span is None:
        lines.insert(_insertion_index(lines, header), f"{header}: {token}")
        return True

    if _already_present(token, _header_entries(lines, header, span)):
        return False

    last = span[1] - 1
    lines[last] = lines[last].rstrip().rstrip(",") + ","
    lines.insert(span[1], " " + token)
    return True


def patch_manifest(content: str, additions: List[str]) -> str:
    """Return ``content`` with every missing addition appended to its header."""
    if not additions:
        return content
    newline = "\r\n" if "\r\n" in content else "\n"
    lines = content.replace("\r\n", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    changed = False
    for addition in additions:
        if not addition or not addition.strip():
            continue
        header, value = split_addition(addition)
        for token in split_manifest_entries(value):
            if _add_token(lines, header, token):
                logger.debug("MANIFEST.MF: %s += %s", header, token)
                changed = True

    if not changed:
        return content
    # A manifest must end with a line break or the last header is ignored.
    return newline.join(lines) + newline


# ---------------------------------------------------------------------------
# build.properties
# ---------------------------------------------------------------------------

def patch_build_properties(content: str, additions: List[str]) -> str:
    """Append each addition as its own line unless that exact line exists."""
    existing = {line.strip() for line in content.splitlines()}
    result = content
    for addition in additions:
        if not addition:
            continue
        line = BUILD_PROPERTIES_HINT.sub("", addition.strip()).strip()
        if not line or line in existing:
            continue
        if result and not result.endswith("\n"):
            result += "\n"
        result += line + "\n"
        existing.add(line)
        logger.debug("build.properties += %s", line)
    return result


# ---------------------------------------------------------------------------
# File-level wrappers
# ---------------------------------------------------------------------------

def _patch_file(path: Path, patcher, additions: List[str], journal=None) -> bool:
    if not additions:
        return False
    if not path.is_file():
        logger.warning("%s not found; skipping %d addition(s)", path, len(additions))
        return False
    content = path.read_text(encoding="utf-8")
    patched = patcher(content, additions)
    if patched == content:
        return False
    if journal is None:
        path.write_text(patched, encoding="utf-8")
    else:
        journal.write_text(path, patched)
    logger.info("Updated %s", path)
    return True


def apply_manifest_additions(plugin_dir, additions: List[str], journal=None) -> bool:
    """Patch the plugin's MANIFEST.MF in place. Returns True if it changed."""
    return _patch_file(Path(plugin_dir) / MANIFEST_PATH, patch_manifest, additions,
                       journal)


def apply_build_properties_additions(plugin_dir, additions: List[str], journal=None) -> bool:
    """Patch the plugin's build.properties in place. Returns True if it changed."""
    return _patch_file(Path(plugin_dir) / BUILD_PROPERTIES, patch_build_properties,
                       additions, journal)


def required_manifest_additions(component_type: str) -> List[str]:
    """Header fragments a component type needs (empty for plain base types)."""
    additions = [f"Require-Bundle: {b}" for b in COMPONENT_BUNDLES.get(component_type, ())]
    additions.extend(f"Import-Package: {i}" for i in COMPONENT_IMPORTS.get(component_type, ()))
    return additions
