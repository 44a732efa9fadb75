#!/usr/bin/env python3
# CUI // SP-CTI
"""iDempiere platform versions and their derived toolchain values."""

import re
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PlatformVersion:
    """Values derived from an iDempiere major version."""
    major: int
    java_release: int
    java_se: str
    tycho_version: str
    bundle_version: str
    branch: str

    @classmethod
    def of(cls, major: int) -> "PlatformVersion":
        """Return the supported version for ``major``.

        Raises:
            ValueError: If the major version is not supported.
        """
        for version in SUPPORTED:
            if version.major == major:
                return version
        supported = ", ".join(str(v.major) for v in SUPPORTED)
        raise ValueError(
            f"Unsupported iDempiere version: {major}. Supported versions: {supported}"
        )

    @classmethod
    def latest(cls) -> "PlatformVersion":
        """Development branch (master)."""
        return V13

    @classmethod
    def stable(cls) -> "PlatformVersion":
        """Latest stable release."""
        return V12

    @classmethod
    def from_branch(cls, branch: str) -> "PlatformVersion":
        """``master``/``main`` map to latest, ``release-NN`` to NN, else stable."""
        if branch in ("master", "main"):
            return cls.latest()
        match = re.search(r"release-(\d+)", branch or "")
        if match:
            return cls.of(int(match.group(1)))
        return cls.stable()

    @classmethod
    def from_java_release(cls, java_release: int) -> "PlatformVersion":
        return V13 if java_release >= 21 else V12


V12 = PlatformVersion(12, 17, "JavaSE-17", "4.0.4", "12.0.0", "release-12")
V13 = PlatformVersion(13, 21, "JavaSE-21", "4.0.8", "13.0.0", "master")

SUPPORTED: Tuple[PlatformVersion, ...] = (V12, V13)
