#!/usr/bin/env python3
# CUI // SP-CTI
"""Load .idempiere-cli.yaml configuration.

Configuration is merged from several YAML files, lowest priority first:

1. ``~/.idempiere-cli.yaml`` (global)
2. the first ``.idempiere-cli.yaml`` / ``.idempiere-cli.yml`` found walking
   up from the current directory
3. the file named by ``$IDEMPIERE_CLI_CONFIG``
4. an explicit path (``--config``)

Only keys that are present in a higher-priority file override. String
values support ``${VAR:-default}`` expansion. Nothing is cached: callers
that need the current state call ``load_config()`` again.

Example::

    defaults:
      vendor: "My Company Inc."
      idempiere_version: 13
    ai:
      enabled: true
      provider: anthropic
      api_key_env: ANTHROPIC_API_KEY
      model: claude-sonnet-4-20250514
    skills:
      sources:
        - name: local
          path: ~/idempiere-skills
          priority: 0
    guardrail:
      platform_repository: ~/idempiere/org.idempiere.p2/target/repository
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from idempiere_cli.resilience.errors import ConfigurationError

logger = logging.getLogger("idempiere_cli.config")

CONFIG_FILENAME = ".idempiere-cli.yaml"
CONFIG_FILENAME_ALT = ".idempiere-cli.yml"
ENV_VAR_NAME = "IDEMPIERE_CLI_CONFIG"
CLI_HOME = Path.home() / ".idempiere-cli"

DEFAULT_CRITICAL_PREFIXES = ("org.idempiere.", "org.compiere.", "org.adempiere.")
DISABLED_PROVIDERS = ("", "none", "off", "disabled")


def _expand_env(value):
    """Expand ${VAR:-default} patterns in string values."""
    if not isinstance(value, str):
        return value
    pattern = r'\$\{([^}]+)\}'

    def replacer(match):
        expr = match.group(1)
        if ":-" in expr:
            var, default = expr.split(":-", 1)
            return os.environ.get(var, default)
        return os.environ.get(expr, match.group(0))
    return re.sub(pattern, replacer, value)


def _expand_path(value: Optional[str]) -> Optional[Path]:
    if not value:
        return None
    return Path(os.path.expanduser(_expand_env(value)))


def _section(raw: dict, key: str) -> dict:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be a mapping", config_key=key)
    return value


def _opt_str(section: dict, key: str, prefix: str) -> Optional[str]:
    if key not in section or section[key] is None:
        return None
    value = section[key]
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ConfigurationError(
            f"'{prefix}.{key}' must be a string", config_key=f"{prefix}.{key}"
        )
    return _expand_env(str(value))


# ---------------------------------------------------------------------------
# Config model
# ---------------------------------------------------------------------------

@dataclass
class Defaults:
    """Default values for scaffolding commands."""
    vendor: Optional[str] = None
    idempiere_version: Optional[int] = None

    def get_vendor(self) -> str:
        return self.vendor or ""

    def get_idempiere_version(self) -> int:
        return self.idempiere_version if self.idempiere_version is not None else 13

    def merge_from(self, other: "Defaults") -> None:
        if other.vendor:
            self.vendor = other.vendor
        if other.idempiere_version is not None:
            self.idempiere_version = other.idempiere_version


@dataclass
class AiConfig:
    """AI provider selection. ``provider: none`` disables the pipeline."""
    enabled: Optional[bool] = None
    provider: Optional[str] = None
    api_key_env: Optional[str] = None
    model: Optional[str] = None

    def is_enabled(self) -> bool:
        if self.enabled is False:
            return False
        return (self.provider or "").strip().lower() not in DISABLED_PROVIDERS

    def resolve_api_key(self, default_env: str) -> Optional[str]:
        """Read the API key from the configured env var, else *default_env*."""
        env_var = self.api_key_env or default_env
        value = os.environ.get(env_var, "")
        return value.strip() or None

    def resolve_model(self, default_model: str) -> str:
        return self.model if self.model else default_model

    def merge_from(self, other: "AiConfig") -> None:
        for name in ("enabled", "provider", "api_key_env", "model"):
            value = getattr(other, name)
            if value is not None:
                setattr(self, name, value)


@dataclass
class SkillSource:
    """A directory (local ``path``) or git repository (``url``) of SKILL.md files."""
    name: str
    path: Optional[str] = None
    url: Optional[str] = None
    priority: int = 100

    @property
    def is_remote(self) -> bool:
        return bool(self.url) and not self.path


@dataclass
class SkillsConfig:
    cache_dir: Optional[str] = None
    sources: List[SkillSource] = field(default_factory=list)

    def get_cache_dir(self) -> Path:
        return _expand_path(self.cache_dir) or CLI_HOME / "skills"

    def merge_from(self, other: "SkillsConfig") -> None:
        if other.cache_dir:
            self.cache_dir = other.cache_dir
        if other.sources:
            self.sources = list(other.sources)


@dataclass
class GuardrailConfig:
    """Static validation settings for AI-generated code."""
    platform_repository: Optional[str] = None
    critical_prefixes: Optional[List[str]] = None

    def get_platform_repository(self) -> Optional[Path]:
        return _expand_path(self.platform_repository)

    def get_critical_prefixes(self) -> tuple:
        if self.critical_prefixes:
            return tuple(self.critical_prefixes)
        return DEFAULT_CRITICAL_PREFIXES

    def merge_from(self, other: "GuardrailConfig") -> None:
        if other.platform_repository:
            self.platform_repository = other.platform_repository
        if other.critical_prefixes:
            self.critical_prefixes = list(other.critical_prefixes)


@dataclass
class CliConfig:
    """Merged view of all configuration files."""
    defaults: Defaults = field(default_factory=Defaults)
    ai: AiConfig = field(default_factory=AiConfig)
    skills: SkillsConfig = field(default_factory=SkillsConfig)
    guardrail: GuardrailConfig = field(default_factory=GuardrailConfig)
    sources: List[str] = field(default_factory=list)

    def merge_from(self, other: "CliConfig") -> None:
        self.defaults.merge_from(other.defaults)
        self.ai.merge_from(other.ai)
        self.skills.merge_from(other.skills)
        self.guardrail.merge_from(other.guardrail)
        self.sources.extend(other.sources)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CliConfig":
        """Build a config from parsed YAML.

        Raises:
            ConfigurationError: If a known key has the wrong type.
        """
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        defaults_raw = _section(raw, "defaults")
        version = defaults_raw.get("idempiere_version", defaults_raw.get("idempiereVersion"))
        if version is not None:
            try:
                version = int(version)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    "'defaults.idempiere_version' must be an integer",
                    config_key="defaults.idempiere_version",
                )
        defaults = Defaults(
            vendor=_opt_str(defaults_raw, "vendor", "defaults"),
            idempiere_version=version,
        )

        ai_raw = _section(raw, "ai")
        enabled = ai_raw.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            raise ConfigurationError("'ai.enabled' must be a boolean", config_key="ai.enabled")
        api_key_env = ai_raw.get("api_key_env", ai_raw.get("apiKeyEnv"))
        ai = AiConfig(
            enabled=enabled,
            provider=_opt_str(ai_raw, "provider", "ai"),
            api_key_env=_expand_env(api_key_env) if api_key_env else None,
            model=_opt_str(ai_raw, "model", "ai"),
        )

        skills_raw = _section(raw, "skills")
        sources = []
        for index, entry in enumerate(skills_raw.get("sources") or []):
            if not isinstance(entry, dict) or not entry.get("name"):
                raise ConfigurationError(
                    f"'skills.sources[{index}]' needs a name",
                    config_key="skills.sources",
                )
            sources.append(SkillSource(
                name=str(entry["name"]),
                path=_expand_env(entry.get("path")),
                url=entry.get("url"),
                priority=int(entry.get("priority", 100)),
            ))
        skills = SkillsConfig(
            cache_dir=_opt_str(skills_raw, "cache_dir", "skills"),
            sources=sources,
        )

        guard_raw = _section(raw, "guardrail")
        prefixes = guard_raw.get("critical_prefixes")
        if prefixes is not None and (
            not isinstance(prefixes, list) or not all(isinstance(p, str) for p in prefixes)
        ):
            raise ConfigurationError(
                "'guardrail.critical_prefixes' must be a list of strings",
                config_key="guardrail.critical_prefixes",
            )
        guardrail = GuardrailConfig(
            platform_repository=_opt_str(guard_raw, "platform_repository", "guardrail"),
            critical_prefixes=prefixes,
        )

        return cls(defaults=defaults, ai=ai, skills=skills, guardrail=guardrail)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def get_global_config_path() -> Path:
    return Path.home() / CONFIG_FILENAME


def find_config_in_hierarchy(start: Optional[Path] = None) -> Optional[Path]:
    """Walk up from *start* (default: cwd) and return the first config file."""
    current = Path(start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for name in (CONFIG_FILENAME, CONFIG_FILENAME_ALT):
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def load_from_path(path: Path) -> CliConfig:
    """Parse one config file.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config {path}: {exc}")
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}")
    config = CliConfig.from_dict(raw)
    config.sources.append(str(path))
    return config


def _merge_optional(config: CliConfig, path: Optional[Path]) -> None:
    """Merge a discovered (not explicitly requested) config file."""
    if path is None or not path.is_file():
        return
    try:
        config.merge_from(load_from_path(path))
    except ConfigurationError as exc:
        logger.warning("Ignoring config %s: %s", path, exc)


def load_config(explicit_path=None, cwd=None) -> CliConfig:
    """Load the merged configuration.

    Args:
        explicit_path: Optional config file given on the command line.
        cwd: Directory to start the hierarchical search from.

    Returns:
        Merged CliConfig (never None).

    Raises:
        ConfigurationError: If *explicit_path* is missing or invalid.
    """
    config = CliConfig()

    _merge_optional(config, get_global_config_path())

    hierarchical = find_config_in_hierarchy(cwd)
    if hierarchical is not None and hierarchical != get_global_config_path():
        _merge_optional(config, hierarchical)

    env_path = os.environ.get(ENV_VAR_NAME, "")
    if env_path:
        _merge_optional(config, _expand_path(env_path))

    if explicit_path:
        path = Path(explicit_path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        config.merge_from(load_from_path(path))

    logger.debug("Config loaded from: %s", ", ".join(config.sources) or "<defaults>")
    return config
