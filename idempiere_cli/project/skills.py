#!/usr/bin/env python3
# CUI // SP-CTI
"""Resolve SKILL.md generation guidance for a component type.

Skill sources come from ``skills.sources`` in .idempiere-cli.yaml and are
searched by ascending ``priority`` (0 = highest). A local source is its
``path``; a remote (``url``) source is read from its clone under
``skills.cache_dir/<name>``. Cloning and pulling remote sources is done by
the ``skills sync`` command and is not part of this module.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from idempiere_cli.config import CliConfig, SkillSource, _expand_path

logger = logging.getLogger("idempiere_cli.project.skills")

SKILL_FILE = "SKILL.md"

TYPE_TO_SKILL: Dict[str, str] = {
    "callout": "idempiere-callout-generator",
    "process": "idempiere-annotation-process",
    "process-mapped": "idempiere-mapped-process",
    "event-handler": "idempiere-event-annotation",
    "zk-form": "idempiere-zul-form",
    "zk-form-zul": "idempiere-zul-form",
    "rest-extension": "idempiere-rest-resource",
    "window-validator": "idempiere-window-validator",
    "listbox-group": "idempiere-grouped-listbox",
    "wlistbox-editor": "idempiere-wlistbox-custom-editor",
    "report": "idempiere-osgi-event-handler",
}


@dataclass(frozen=True)
class SkillResolution:
    source_name: str
    skill_dir: str
    skill_md_path: Path


def source_directory(source: SkillSource, config: CliConfig) -> Optional[Path]:
    """Directory holding the skill folders of ``source``."""
    if source.path:
        return _expand_path(source.path)
    if source.url:
        return config.skills.get_cache_dir() / source.name
    return None


def resolve_skill(component_type: str, config: CliConfig) -> Optional[SkillResolution]:
    """Find the highest-priority SKILL.md for ``component_type``."""
    skill_dir = TYPE_TO_SKILL.get(component_type)
    if skill_dir is None:
        return None

    for source in sorted(config.skills.sources, key=lambda s: s.priority):
        directory = source_directory(source, config)
        if directory is None:
            continue
        candidate = directory / skill_dir / SKILL_FILE
        if candidate.is_file():
            logger.debug("Skill %s resolved from source '%s'", skill_dir, source.name)
            return SkillResolution(source.name, skill_dir, candidate)

    logger.debug("No %s found for %s in %d source(s)",
                 SKILL_FILE, component_type, len(config.skills.sources))
    return None


def load_skill(component_type: str, config: CliConfig) -> Optional[str]:
    """Return the SKILL.md text for ``component_type``, or None."""
    resolution = resolve_skill(component_type, config)
    if resolution is None:
        return None
    try:
        return resolution.skill_md_path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot read %s: %s", resolution.skill_md_path, exc)
        return None
