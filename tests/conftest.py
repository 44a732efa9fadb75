#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the idempiere-cli test suite.

Every test runs with HOME and the working directory pointed at a temp dir
and with the AI/platform environment variables cleared, so no developer
configuration or API key leaks into a test.
"""

import sys
import zipfile
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from idempiere_cli.config import AiConfig, CliConfig, GuardrailConfig  # noqa: E402
from idempiere_cli.project.session_log import SessionLogger  # noqa: E402


PLUGIN_ID = "org.example.myplugin"

SAMPLE_MANIFEST = """Manifest-Version: 1.0
Bundle-ManifestVersion: 2
Bundle-Name: My Plugin
Bundle-SymbolicName: org.example.myplugin;singleton:=true
Bundle-Version: 1.0.0.qualifier
Require-Bundle: org.adempiere.base;bundle-version="13.0.0"
Bundle-RequiredExecutionEnvironment: JavaSE-21
Bundle-ActivationPolicy: lazy
"""

SAMPLE_BUILD_PROPERTIES = """source.. = src/
output.. = bin/
bin.includes = META-INF/,\\
               .
"""

ACTIVATOR_SOURCE = """package org.example.myplugin;

import org.adempiere.plugin.utils.Incremental2PackActivator;

public class Activator extends Incremental2PackActivator {
}
"""

# Classes packaged in the fake target-platform repository.
PLATFORM_CLASSES = (
    "org/compiere/model/MOrder.class",
    "org/compiere/model/MOrder$MOrderLineCache.class",
    "org/compiere/model/GridField.class",
    "org/compiere/model/GridTab.class",
    "org/compiere/process/SvrProcess.class",
    "org/adempiere/base/IColumnCallout.class",
    "org/adempiere/base/annotation/Callout.class",
    "org/adempiere/base/annotation/Process.class",
    "org/idempiere/test/AbstractTestCase.class",
    "module-info.class",
)

_ENV_VARS = (
    "IDEMPIERE_CLI_CONFIG",
    "IDEMPIERE_HOME",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GOOGLE_API_KEY",
    "MY_AI_KEY",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Isolate HOME, cwd and AI-related environment variables."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr("idempiere_cli.project.session_log.LOGS_DIR", home / "logs")
    return home


def write_plugin(root: Path, manifest: str = SAMPLE_MANIFEST) -> Path:
    """Create a minimal plugin directory under ``root``."""
    plugin = root / PLUGIN_ID
    (plugin / "META-INF").mkdir(parents=True)
    if manifest is not None:
        (plugin / "META-INF" / "MANIFEST.MF").write_text(manifest, encoding="utf-8")
    (plugin / "build.properties").write_text(SAMPLE_BUILD_PROPERTIES, encoding="utf-8")
    src = plugin / "src" / "org" / "example" / "myplugin"
    src.mkdir(parents=True)
    (src / "Activator.java").write_text(ACTIVATOR_SOURCE, encoding="utf-8")
    return plugin


def make_jar(path: Path, entries) -> Path:
    """Write a jar (zip) containing empty entries with the given names."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        for entry in entries:
            jar.writestr(entry, b"")
    return path


@pytest.fixture
def plugin_dir(tmp_path):
    """A plugin with MANIFEST.MF, build.properties and an Activator."""
    return write_plugin(tmp_path / "workspace")


@pytest.fixture
def platform_repo(tmp_path):
    """A p2 repository whose plugins/ jar contains PLATFORM_CLASSES."""
    repo = tmp_path / "repository"
    make_jar(repo / "plugins" / "org.adempiere.base_13.0.0.jar", PLATFORM_CLASSES)
    return repo


@pytest.fixture
def session(tmp_path):
    """A started session log under tmp_path."""
    logger = SessionLogger(tmp_path / "logs")
    logger.start_session("pytest")
    return logger


@pytest.fixture
def ai_config(platform_repo):
    """Config with AI enabled (anthropic) and the fake platform repository."""
    return CliConfig(
        ai=AiConfig(enabled=True, provider="anthropic"),
        guardrail=GuardrailConfig(platform_repository=str(platform_repo)),
    )
