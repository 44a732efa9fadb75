#!/usr/bin/env python3
# CUI // SP-CTI
"""Static guardrail for AI-generated change-sets.

Runs before anything touches disk. Issues are plain strings:

- ``BLOCKER: ...`` -- the change-set must not be applied
- ``WARN: ...``    -- advisory, reported but not blocking

Checks per file, in order:

1. path traversal (``..`` segment, absolute path, or escaping the plugin root)
2. Java package equals or nests under the expected base package
3. non-empty content
4. imports and inline references under the critical platform prefixes
   (``org.idempiere.``, ``org.compiere.``, ``org.adempiere.`` by default)
   must resolve against the classes packaged in the local target-platform
   repository, the change-set itself, or the plugin's own ``src/``

Only critical-prefix symbols are checked, so JDK and third-party imports
never block. The repository is scanned on every call; there is no cache.

Usage:
    from idempiere_cli.builder.guardrail import validate_generated_code, has_blocking_issue

    issues = validate_generated_code(code, "org.example.myplugin", plugin_dir)
    if has_blocking_issue(issues):
        ...
"""

import logging
import os
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Set, Tuple

from idempiere_cli.builder.generated_code import GeneratedCode, is_safe_relative_path
from idempiere_cli.config import DEFAULT_CRITICAL_PREFIXES

logger = logging.getLogger("idempiere_cli.builder.guardrail")

BLOCKER = "BLOCKER: "
WARN = "WARN: "

P2_REPOSITORY = Path("org.idempiere.p2") / "target" / "repository"

IMPORT_PATTERN = re.compile(r"^\s*import\s+(static\s+)?([\w.]+?)(\.\*)?\s*;", re.MULTILINE)
PACKAGE_PATTERN = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)
TYPE_PATTERN = re.compile(
    r"^\s*(?:public\s+)?(?:abstract\s+|final\s+|sealed\s+|non-sealed\s+)?"
    r"(?:class|interface|enum|record|@interface)\s+([A-Za-z_][A-Za-z0-9_]*)\b",
    re.MULTILINE,
)
FQCN_PATTERN = re.compile(r"\b(?:[a-z_][a-z0-9_]*\.)+[A-Z][A-Za-z0-9_$]*\b")
IMPORT_OR_PACKAGE_LINE = re.compile(r"^\s*(?:import|package)\s+[^;]*;", re.MULTILINE)


@dataclass(frozen=True)
class ClassIndex:
    """Dotted class names and their packages found in platform jars."""
    classes: frozenset
    packages: frozenset


# ---------------------------------------------------------------------------
# Repository discovery and indexing
# ---------------------------------------------------------------------------

def _p2_repository_under(base: Path) -> Optional[Path]:
    candidate = base / P2_REPOSITORY
    return candidate if candidate.is_dir() else None


def find_platform_repository(plugin_dir: Optional[Path],
                             configured: Optional[Path] = None) -> Optional[Path]:
    """Locate the target-platform p2 repository.

    Order: configured path, ``$IDEMPIERE_HOME``, then each ancestor of the
    plugin directory as ``<dir>/idempiere/`` and ``<dir>/``.
    """
    if configured is not None:
        if configured.is_dir():
            return configured
        logger.warning("Configured platform repository does not exist: %s", configured)

    home = os.environ.get("IDEMPIERE_HOME", "").strip()
    if home:
        found = _p2_repository_under(Path(home).expanduser())
        if found is not None:
            return found

    if plugin_dir is None:
        return None
    current = Path(plugin_dir).resolve()
    for directory in (current, *current.parents):
        found = _p2_repository_under(directory / "idempiere") or _p2_repository_under(directory)
        if found is not None:
            return found
    return None


def _class_name_from_entry(entry: str) -> Optional[str]:
    if not entry.endswith(".class"):
        return None
    name = entry[:-len(".class")].replace("/", ".")
    if name == "module-info" or name.endswith(".package-info") or name.endswith("module-info"):
        return None
    if "$" in name:
        name = name[:name.index("$")]
    return name or None


def build_class_index(repository: Path) -> ClassIndex:
    """Scan every ``.jar`` under the repository (``plugins/`` when present)."""
    plugins = repository / "plugins"
    scan_root = plugins if plugins.is_dir() else repository
    classes: Set[str] = set()
    packages: Set[str] = set()
    jar_count = 0

    for jar in sorted(scan_root.rglob("*.jar")):
        try:
            with zipfile.ZipFile(jar) as archive:
                names = archive.namelist()
        except (zipfile.BadZipFile, OSError) as exc:
            logger.warning("Skipping unreadable archive %s: %s", jar, exc)
            continue
        jar_count += 1
        for entry in names:
            class_name = _class_name_from_entry(entry)
            if class_name is None:
                continue
            classes.add(class_name)
            if "." in class_name:
                packages.add(class_name.rsplit(".", 1)[0])

    logger.debug("Indexed %d classes from %d jar(s) in %s", len(classes), jar_count, scan_root)
    return ClassIndex(classes=frozenset(classes), packages=frozenset(packages))


# ---------------------------------------------------------------------------
# Symbol resolution
# ---------------------------------------------------------------------------

def outer_class_name(symbol: str) -> str:
    """Trim a dotted symbol to its top-level class (first capitalized segment)."""
    segments = symbol.split(".")
    for index, segment in enumerate(segments):
        if segment[:1].isupper():
            return ".".join(segments[:index + 1])
    return symbol


def _generated_types(code: GeneratedCode) -> Tuple[Set[str], Set[str]]:
    classes: Set[str] = set()
    packages: Set[str] = set()
    for generated in code.files:
        if not generated.path.endswith(".java"):
            continue
        package_match = PACKAGE_PATTERN.search(generated.content)
        if package_match is None:
            continue
        package = package_match.group(1)
        packages.add(package)
        for type_name in TYPE_PATTERN.findall(generated.content):
            classes.add(f"{package}.{type_name}")
    return classes, packages


class _Resolver:
    def __init__(self, index: ClassIndex, plugin_dir: Optional[Path],
                 generated_classes: Set[str], generated_packages: Set[str]):
        self.index = index
        self.src_dir = Path(plugin_dir) / "src" if plugin_dir is not None else None
        self.generated_classes = generated_classes
        self.generated_packages = generated_packages

    def has_class(self, fqcn: str) -> bool:
        name = outer_class_name(fqcn)
        if name in self.generated_classes or name in self.index.classes:
            return True
        if self.src_dir is None:
            return False
        return (self.src_dir / (name.replace(".", "/") + ".java")).is_file()

    def has_package(self, package: str) -> bool:
        if package in self.generated_packages or package in self.index.packages:
            return True
        # A wildcard on a class imports its nested types.
        if package in self.index.classes or package in self.generated_classes:
            return True
        if self.src_dir is None:
            return False
        return (self.src_dir / package.replace(".", "/")).is_dir()


def _is_critical(symbol: str, prefixes: Tuple[str, ...]) -> bool:
    return any(symbol.startswith(prefix) for prefix in prefixes)


def _check_symbols(content: str, resolver: _Resolver, prefixes: Tuple[str, ...],
                   issues: List[str]) -> None:
    for match in IMPORT_PATTERN.finditer(content):
        is_static, imported, wildcard = match.group(1), match.group(2), match.group(3)
        if not _is_critical(imported, prefixes):
            continue
        if wildcard and not is_static:
            if not resolver.has_package(imported):
                _add_once(issues, f"{BLOCKER}Unresolved wildcard import: {imported}")
        elif not resolver.has_class(imported):
            _add_once(issues, f"{BLOCKER}Unresolved import: {outer_class_name(imported)}")

    body = IMPORT_OR_PACKAGE_LINE.sub("", content)
    for match in FQCN_PATTERN.finditer(body):
        fqcn = outer_class_name(match.group(0))
        if _is_critical(fqcn, prefixes) and not resolver.has_class(fqcn):
            _add_once(issues, f"{BLOCKER}Unresolved class reference: {fqcn}")


def _add_once(issues: List[str], issue: str) -> None:
    if issue not in issues:
        issues.append(issue)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _has_traversal(path: str, plugin_dir: Optional[Path]) -> bool:
    normalized = path.replace("\\", "/")
    parts = PurePosixPath(normalized).parts
    if not parts or ".." in parts or "\x00" in path:
        return True
    if plugin_dir is None:
        return PurePosixPath(normalized).is_absolute()
    return not is_safe_relative_path(path, Path(plugin_dir))


def _package_ok(package: str, expected: str) -> bool:
    return package == expected or package.startswith(expected + ".")


def validate_generated_code(code: GeneratedCode,
                            expected_base_package: Optional[str],
                            plugin_dir,
                            repository: Optional[Path] = None,
                            critical_prefixes: Optional[Iterable[str]] = None) -> List[str]:
    """Validate a change-set and return its issues in file order.

    Args:
        code: Parsed change-set.
        expected_base_package: Plugin base package; None skips the package check.
        plugin_dir: Plugin root the paths are relative to.
        repository: Configured target-platform repository (optional).
        critical_prefixes: Package prefixes whose symbols must resolve.
    """
    plugin_dir = Path(plugin_dir) if plugin_dir is not None else None
    prefixes = tuple(critical_prefixes) if critical_prefixes else DEFAULT_CRITICAL_PREFIXES
    issues: List[str] = []

    resolver = None
    has_java = any(f.path.endswith(".java") for f in code.files)
    if has_java:
        repo = find_platform_repository(plugin_dir, repository)
        if repo is None:
            issues.append(
                f"{WARN}Could not resolve iDempiere target platform "
                f"({P2_REPOSITORY.as_posix()}); critical import check skipped"
            )
        else:
            generated_classes, generated_packages = _generated_types(code)
            resolver = _Resolver(build_class_index(repo), plugin_dir,
                                 generated_classes, generated_packages)

    for generated in code.files:
        if _has_traversal(generated.path, plugin_dir):
            issues.append(f"{BLOCKER}Path traversal detected: {generated.path}")

        if generated.path.endswith(".java") and expected_base_package:
            match = PACKAGE_PATTERN.search(generated.content)
            if match is None:
                issues.append(f"{WARN}Missing package declaration in {generated.path}")
            elif not _package_ok(match.group(1), expected_base_package):
                issues.append(f"{WARN}Unexpected package in {generated.path}: {match.group(1)}")

        if not generated.content.strip():
            issues.append(f"{WARN}Empty content for {generated.path}")

        if resolver is not None and generated.path.endswith(".java"):
            _check_symbols(generated.content, resolver, prefixes, issues)

    if issues:
        logger.info("Guardrail reported %d issue(s), blocking=%s",
                    len(issues), has_blocking_issue(issues))
    return issues


def has_blocking_issue(issues: Iterable[str]) -> bool:
    """True iff any issue starts with ``BLOCKER:``."""
    return any(issue.startswith("BLOCKER:") for issue in issues)
