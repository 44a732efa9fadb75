#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli — scaffold and extend iDempiere OSGi plugins."""

__version__ = "0.1.0"
