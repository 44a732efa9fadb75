#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli project tools: plugin analysis, manifest patching, skills, session log."""
