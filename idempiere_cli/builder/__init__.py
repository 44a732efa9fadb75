#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli builder: AI change-set parsing, guardrail, apply and template fallback."""
