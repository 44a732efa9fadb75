#!/usr/bin/env python3
# CUI // SP-CTI
"""Change-set produced by AI generation: files plus header additions."""

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger("idempiere_cli.builder.generated_code")


def is_safe_relative_path(path: str, root: Path) -> bool:
    """True when ``path`` names a file below ``root``.

    Rejects blank paths, ``.``, absolute or drive-qualified paths, NUL bytes,
    any ``..`` segment and anything that resolves outside ``root``.
    """
    if not path or not path.strip() or "\x00" in path:
        return False
    normalized = path.replace("\\", "/")
    pure = PurePosixPath(normalized)
    if not pure.parts:
        return False
    if pure.is_absolute() or normalized.startswith("/") or ":" in pure.parts[0]:
        return False
    if ".." in pure.parts:
        return False
    try:
        root = root.resolve()
        target = (root / normalized).resolve()
    except (OSError, ValueError):
        return False
    return root in target.parents


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str


@dataclass(frozen=True)
class GeneratedCode:
    """Immutable change-set. File order is preserved as received."""
    files: Tuple[GeneratedFile, ...] = ()
    manifest_additions: Tuple[str, ...] = ()
    build_properties_additions: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedCode":
        """Build from the decoded AI JSON payload.

        Raises:
            ValueError: If the payload does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ValueError("top-level value is not an object")
        raw_files = data.get("files", [])
        if not isinstance(raw_files, list):
            raise ValueError("'files' is not an array")

        files: List[GeneratedFile] = []
        for index, entry in enumerate(raw_files):
            if not isinstance(entry, dict):
                raise ValueError(f"files[{index}] is not an object")
            path = entry.get("path")
            if not isinstance(path, str) or not path.strip():
                raise ValueError(f"files[{index}] has no string 'path'")
            content = entry.get("content", "")
            if content is None:
                content = ""
            if not isinstance(content, str):
                raise ValueError(f"files[{index}].content is not a string")
            files.append(GeneratedFile(path=path, content=content))

        return cls(
            files=tuple(files),
            manifest_additions=_string_list(data, "manifest_additions"),
            build_properties_additions=_string_list(data, "build_properties_additions"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [{"path": f.path, "content": f.content} for f in self.files],
            "manifest_additions": list(self.manifest_additions),
            "build_properties_additions": list(self.build_properties_additions),
        }

    def write_to(self, plugin_dir, journal: Optional["WriteJournal"] = None) -> List[Path]:
        """Write every file under ``plugin_dir``, overwriting existing ones.

        Writes go through ``journal``. Without one, a private journal is used
        and rolled back if any write fails, so either all files land or none.

        Raises:
            ValueError: If a path escapes ``plugin_dir``. Nothing is written.
            OSError: On write failure.
        """
        root = Path(plugin_dir)
        for generated in self.files:
            if not is_safe_relative_path(generated.path, root):
                raise ValueError(f"Refusing to write outside plugin directory: {generated.path}")

        owned = journal is None
        if journal is None:
            journal = WriteJournal()
        written = []
        try:
            for generated in self.files:
                target = root / generated.path.replace("\\", "/")
                journal.write_text(target, generated.content)
                written.append(target)
                logger.debug("Wrote %s", target)
        except OSError:
            if owned:
                journal.rollback()
            raise
        return written


class WriteJournal:
    """Records files and directories it creates or overwrites so they can be undone."""

    def __init__(self):
        self._originals: List[Tuple[Path, Optional[bytes]]] = []
        self._created_dirs: List[Path] = []

    def write_text(self, path: Path, text: str) -> None:
        path = Path(path)
        self._make_parents(path.parent)
        if not any(seen == path for seen, _ in self._originals):
            if path.is_file():
                self._originals.append((path, path.read_bytes()))
            elif not path.exists():
                self._originals.append((path, None))
        path.write_text(text, encoding="utf-8")

    def _make_parents(self, directory: Path) -> None:
        missing = []
        current = directory
        while not current.exists() and current != current.parent:
            missing.append(current)
            current = current.parent
        self._created_dirs.extend(reversed(missing))
        directory.mkdir(parents=True, exist_ok=True)

    def rollback(self) -> None:
        """Restore overwritten files, delete new ones, remove emptied directories."""
        for path, original in reversed(self._originals):
            try:
                if original is None:
                    if path.is_file():
                        path.unlink()
                else:
                    path.write_bytes(original)
            except OSError as exc:
                logger.error("Could not restore %s: %s", path, exc)
        for directory in reversed(self._created_dirs):
            try:
                directory.rmdir()
            except OSError as exc:
                logger.debug("Left directory %s in place: %s", directory, exc)
        logger.info("Rolled back %d file(s)", len(self._originals))
        self._originals = []
        self._created_dirs = []


def _string_list(data: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise ValueError(f"'{key}' is not an array")
    return tuple(str(item) for item in value if item is not None and str(item).strip())
