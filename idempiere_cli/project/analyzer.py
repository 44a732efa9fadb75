#!/usr/bin/env python3
# CUI // SP-CTI
"""Static analysis of an existing iDempiere plugin directory.

Produces the immutable ProjectContext used by the prompt builder and the
guardrail. Reads META-INF/MANIFEST.MF, build.properties, pom.xml and the
Java sources under src/. Nothing is written and nothing raises for
missing or unreadable files: absent data simply stays None/empty, and
callers handle a partial context.

Usage:
    from idempiere_cli.project.analyzer import analyze

    context = analyze(Path("org.example.myplugin"))
    print(context.plugin_id, context.platform_version)
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

from idempiere_cli.project.platform import PlatformVersion

logger = logging.getLogger("idempiere_cli.project.analyzer")

BUNDLE_SYMBOLIC_NAME = re.compile(r"Bundle-SymbolicName:\s*([^;\s]+)")
BUNDLE_VERSION = re.compile(r"Bundle-Version:\s*(\S+)")
TYCHO_VERSION = re.compile(r"<tycho\.version>([^<]+)</tycho\.version>")
JAVA_SE_VERSION = re.compile(r"JavaSE-(\d+)")
POM_MODULE = re.compile(r"<module>([^<]+)</module>")
POM_ARTIFACT_ID = re.compile(r"<artifactId>([^<]+)</artifactId>")
POM_PACKAGING = re.compile(r"<packaging>([^<]+)</packaging>")
POM_PARENT_BLOCK = re.compile(r"<parent>.*?</parent>", re.DOTALL)
TOP_LEVEL_TYPE = re.compile(
    r"^(?:public\s+|abstract\s+|final\s+|sealed\s+)*"
    r"(?:class|interface|enum|record|@interface)\s+(\w+)",
    re.MULTILINE,
)

ACTIVATOR_PATTERN = re.compile(r"\b(?:extends|implements)\s+\w*Activator\b")

# Tycho 4.0.5 and later ship with iDempiere 13.
TYCHO_V13_MIN = (4, 0, 5)


@dataclass(frozen=True)
class ProjectContext:
    """Everything the generation pipeline knows about the target plugin."""
    plugin_id: Optional[str] = None
    base_package: Optional[str] = None
    version: Optional[str] = None
    manifest_content: Optional[str] = None
    build_properties_content: Optional[str] = None
    pom_xml_content: Optional[str] = None
    platform_version: Optional[PlatformVersion] = None
    multi_module: bool = False
    existing_classes: Tuple[str, ...] = ()
    has_activator: bool = False
    has_callout_factory: bool = False
    has_event_manager: bool = False
    has_process_factory: bool = False
    uses_annotation_pattern: bool = False


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def _read_quietly(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None


def _iter_java_sources(src_dir: Path) -> Iterator[Tuple[Path, str]]:
    for path in sorted(src_dir.rglob("*.java")):
        content = _read_quietly(path)
        if content is not None:
            yield path, content


def _parse_version(text: str) -> Tuple[int, ...]:
    parts = []
    for piece in text.strip().split("."):
        match = re.match(r"\d+", piece)
        if not match:
            break
        parts.append(int(match.group(0)))
    return tuple(parts)


# ---------------------------------------------------------------------------
# Multi-module detection
# ---------------------------------------------------------------------------

def is_multi_module_root(directory: Path) -> bool:
    """A root pom has ``<packaging>pom</packaging>`` and ``<module>`` entries."""
    content = _read_quietly(directory / "pom.xml")
    if content is None:
        return False
    packaging = POM_PACKAGING.search(content)
    return bool(packaging and packaging.group(1).strip() == "pom"
                and POM_MODULE.search(content))


def find_multi_module_root(plugin_dir: Path) -> Optional[Path]:
    current = plugin_dir.resolve()
    for directory in (current, *current.parents):
        if is_multi_module_root(directory):
            return directory
    return None


def _find_parent_module_pom(root: Path) -> Optional[Path]:
    content = _read_quietly(root / "pom.xml") or ""
    for module in POM_MODULE.findall(content):
        module = module.strip()
        if module.endswith(".parent"):
            pom = root / module / "pom.xml"
            if pom.is_file():
                return pom
    return None


def detect_version_from_parent_pom(root: Path) -> Optional[PlatformVersion]:
    """Map the JavaSE level in the ``*.parent`` module pom to a platform version."""
    pom = _find_parent_module_pom(root)
    if pom is None:
        return None
    match = JAVA_SE_VERSION.search(_read_quietly(pom) or "")
    if not match:
        return None
    java = int(match.group(1))
    if java >= 21:
        return PlatformVersion.of(13)
    if java >= 17:
        return PlatformVersion.of(12)
    return None


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

def detect_platform_version(plugin_dir: Path,
                            pom_content: Optional[str],
                            manifest_content: Optional[str],
                            multi_module_root: Optional[Path] = None) -> PlatformVersion:
    """Infer the target platform: tycho version, parent pom, manifest, latest."""
    if pom_content:
        match = TYCHO_VERSION.search(pom_content)
        if match:
            if _parse_version(match.group(1)) >= TYCHO_V13_MIN:
                return PlatformVersion.of(13)
            return PlatformVersion.of(12)

    if multi_module_root is not None:
        version = detect_version_from_parent_pom(multi_module_root)
        if version is not None:
            return version

    if manifest_content:
        match = JAVA_SE_VERSION.search(manifest_content)
        if match:
            return PlatformVersion.from_java_release(int(match.group(1)))

    return PlatformVersion.latest()


def _plugin_id_from_pom(pom_content: Optional[str]) -> Optional[str]:
    if not pom_content:
        return None
    # Skip the <parent> block so its artifactId is not mistaken for ours.
    match = POM_ARTIFACT_ID.search(POM_PARENT_BLOCK.sub("", pom_content, count=1))
    return match.group(1).strip() if match else None


def list_java_types(src_dir: Path) -> Tuple[str, ...]:
    """Simple names of top-level types declared under ``src_dir``."""
    names = set()
    for path, content in _iter_java_sources(src_dir):
        declared = TOP_LEVEL_TYPE.findall(content)
        names.update(declared or [path.stem])
    return tuple(sorted(names))


def analyze(plugin_dir) -> ProjectContext:
    """Build the ProjectContext for ``plugin_dir``.

    A missing manifest yields ``plugin_id`` from pom.xml, or None.
    """
    plugin_dir = Path(plugin_dir)
    manifest = _read_quietly(plugin_dir / "META-INF" / "MANIFEST.MF")
    build_properties = _read_quietly(plugin_dir / "build.properties")
    pom = _read_quietly(plugin_dir / "pom.xml")

    plugin_id = None
    version = None
    if manifest is not None:
        match = BUNDLE_SYMBOLIC_NAME.search(manifest)
        if match:
            plugin_id = match.group(1).strip()
        match = BUNDLE_VERSION.search(manifest)
        if match:
            version = match.group(1).strip()
    else:
        plugin_id = _plugin_id_from_pom(pom)
        logger.debug("No MANIFEST.MF in %s; plugin id from pom: %s", plugin_dir, plugin_id)

    multi_module_root = find_multi_module_root(plugin_dir)
    platform_version = detect_platform_version(plugin_dir, pom, manifest, multi_module_root)

    markers = {
        "has_activator": False,
        "has_callout_factory": False,
        "has_event_manager": False,
        "has_process_factory": False,
        "uses_annotation_pattern": False,
    }
    existing: Tuple[str, ...] = ()
    src_dir = plugin_dir / "src"
    if src_dir.is_dir():
        existing = list_java_types(src_dir)
        for _path, content in _iter_java_sources(src_dir):
            if ACTIVATOR_PATTERN.search(content):
                markers["has_activator"] = True
            if "IColumnCalloutFactory" in content:
                markers["has_callout_factory"] = True
            if "extends AbstractEventHandler" in content or "@EventTopics" in content:
                markers["has_event_manager"] = True
            if "MappedProcessFactory" in content:
                markers["has_process_factory"] = True
            if any(a in content for a in ("@Callout", "@Process", "@EventTopics")):
                markers["uses_annotation_pattern"] = True

    context = ProjectContext(
        plugin_id=plugin_id,
        base_package=plugin_id,
        version=version,
        manifest_content=manifest,
        build_properties_content=build_properties,
        pom_xml_content=pom,
        platform_version=platform_version,
        multi_module=multi_module_root is not None,
        existing_classes=existing,
        **markers,
    )
    logger.debug("Analyzed %s: plugin_id=%s, platform=%s, %d types",
                 plugin_dir, plugin_id, platform_version.major, len(existing))
    return context
