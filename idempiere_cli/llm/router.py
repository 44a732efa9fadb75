# CUI // SP-CTI
"""Config-driven AI client resolution.

Reads ``ai.enabled`` / ``ai.provider`` from .idempiere-cli.yaml and returns
the single registered client for that provider name, or None when AI is
switched off, the provider is unknown, or its credentials are missing.
None is the pipeline's kill switch: the caller goes straight to the
template fallback without any network call.
"""

import importlib
import logging
from typing import Callable, Dict, Optional, Type

from idempiere_cli.config import CliConfig, load_config
from idempiere_cli.llm.provider import AiClient

logger = logging.getLogger("idempiere_cli.llm.router")

# Modules that register the built-in providers on import.
BUILTIN_PROVIDER_MODULES = (
    "idempiere_cli.llm.anthropic_provider",
    "idempiere_cli.llm.openai_provider",
    "idempiere_cli.llm.gemini_provider",
)

PROVIDER_ALIASES = {
    "claude": "anthropic",
    "gemini": "google",
}

# One slot per provider name; re-registering a name replaces it.
_registry: Dict[str, Type[AiClient]] = {}


def register_provider(name: str) -> Callable[[Type[AiClient]], Type[AiClient]]:
    """Class decorator registering an AiClient under ``name``."""
    key = name.strip().lower()

    def decorator(cls: Type[AiClient]) -> Type[AiClient]:
        previous = _registry.get(key)
        if previous is not None and previous is not cls:
            logger.debug("Provider '%s' re-registered: %s -> %s",
                         key, previous.__name__, cls.__name__)
        _registry[key] = cls
        return cls
    return decorator


def _load_builtin_providers() -> None:
    for module_name in BUILTIN_PROVIDER_MODULES:
        importlib.import_module(module_name)


def available_providers() -> Dict[str, Type[AiClient]]:
    """Return a copy of the provider registry (built-ins included)."""
    _load_builtin_providers()
    return dict(_registry)


def normalize_provider_name(name: Optional[str]) -> str:
    key = (name or "").strip().lower()
    return PROVIDER_ALIASES.get(key, key)


def get_client(config: Optional[CliConfig] = None) -> Optional[AiClient]:
    """Resolve the active AI client.

    Args:
        config: Explicit configuration. When omitted, the client re-reads
            the configuration files on each call.

    Returns:
        A configured AiClient, or None when AI is disabled or unavailable.
    """
    if config is None:
        loader: Callable[[], CliConfig] = load_config
        config = loader()
    else:
        snapshot = config
        loader = lambda: snapshot  # noqa: E731

    if not config.ai.is_enabled():
        logger.info("AI generation disabled (ai.enabled=%s, ai.provider=%s)",
                    config.ai.enabled, config.ai.provider)
        return None

    _load_builtin_providers()
    name = normalize_provider_name(config.ai.provider)
    client_cls = _registry.get(name)
    if client_cls is None:
        logger.warning("Unknown AI provider '%s' (known: %s)",
                       config.ai.provider, ", ".join(sorted(_registry)))
        return None

    client = client_cls(config_loader=loader)
    if not client.is_configured():
        logger.warning("AI provider '%s' is not configured (missing API key)", name)
        return None
    return client
