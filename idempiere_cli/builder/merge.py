#!/usr/bin/env python3
# CUI // SP-CTI
"""Apply a validated change-set to a plugin directory."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from idempiere_cli.builder.generated_code import GeneratedCode, WriteJournal
from idempiere_cli.project.manifest import (
    apply_build_properties_additions,
    apply_manifest_additions,
)

logger = logging.getLogger("idempiere_cli.builder.merge")


@dataclass
class ApplyResult:
    files_written: List[Path] = field(default_factory=list)
    manifest_changed: bool = False
    build_properties_changed: bool = False


def apply_generated_code(code: GeneratedCode, plugin_dir) -> ApplyResult:
    """Write files, then patch MANIFEST.MF and build.properties.

    All-or-nothing: if any write fails, every file written so far is
    restored or removed before the error propagates.

    Raises:
        ValueError: If a file path escapes the plugin directory.
        OSError: On any write failure.
    """
    plugin_dir = Path(plugin_dir)
    result = ApplyResult()
    journal = WriteJournal()
    try:
        result.files_written = code.write_to(plugin_dir, journal)
        result.manifest_changed = apply_manifest_additions(
            plugin_dir, list(code.manifest_additions), journal)
        result.build_properties_changed = apply_build_properties_additions(
            plugin_dir, list(code.build_properties_additions), journal)
    except OSError:
        journal.rollback()
        raise
    logger.info("Applied %d file(s) to %s (manifest %s, build.properties %s)",
                len(result.files_written), plugin_dir,
                "updated" if result.manifest_changed else "unchanged",
                "updated" if result.build_properties_changed else "unchanged")
    return result
