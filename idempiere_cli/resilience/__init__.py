#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli Resilience Package — HTTP retry and error hierarchy."""

from idempiere_cli.resilience.errors import (  # noqa: F401
    CliPermanentError,
    ConfigurationError,
    IdempiereCliError,
    UnknownComponentTypeError,
)
from idempiere_cli.resilience.retry import (  # noqa: F401
    backoff_delay,
    is_retryable,
    send_with_retry,
)
