#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli — Structured exception hierarchy.

Expected failures inside the generation pipeline (AI disabled, provider
errors, unparseable or unsafe output) never raise; they are reported as
values and resolved by the template fallback. These exceptions cover the
remaining cases the command layer has to surface: bad configuration and
requests the template generator cannot satisfy.

Usage:
    from idempiere_cli.resilience.errors import ConfigurationError

    raise ConfigurationError("ai.provider must be a string", config_key="ai.provider")
"""


class IdempiereCliError(Exception):
    """Base exception for all idempiere-cli errors.

    Attributes:
        service: Name of the component that caused the error (e.g. "config").
        retryable: Whether the caller should retry the operation.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = False):
        super().__init__(message)
        self.service = service
        self.retryable = retryable


class CliPermanentError(IdempiereCliError):
    """Permanent error — retrying will not help."""

    def __init__(self, message: str, service: str = "", retryable: bool = False):
        super().__init__(message, service=service, retryable=retryable)


class ConfigurationError(CliPermanentError):
    """Configuration error — unreadable or invalid .idempiere-cli.yaml."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, service="config", retryable=False)
        self.config_key = config_key


class UnknownComponentTypeError(CliPermanentError):
    """No template generator exists for the requested component type."""

    def __init__(self, component_type: str):
        super().__init__(
            f"Unknown component type: {component_type}",
            service="templates",
            retryable=False,
        )
        self.component_type = component_type
