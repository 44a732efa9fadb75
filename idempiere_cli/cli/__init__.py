# CUI // SP-CTI
"""idempiere-cli command-line entry points."""
