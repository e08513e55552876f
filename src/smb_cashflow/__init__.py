# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB CashFlow
------------

A Python application that builds the daily cash-flow ledger of a small
e-commerce store and forecasts its month-end result.

Main capabilities:
- consumption-tax (VAT) extraction from tax-inclusive amounts,
- uniform distribution of monthly lump sums (expenses, payroll) across days,
- a daily ledger merging revenue, distributed expenses, supplier costs and
  user-entered marketing spend,
- concurrent gathering of data sources with graceful degradation,
- an end-of-month forecast based on month-to-date activity,
- a monthly VAT summary,
- a command-line interface with table and CSV output.

SMB CashFlow separates computation (records, tax, distribution, merger,
forecast), data access (io, sources, gather), configuration (TOML) and
presentation (views, CLI).


Version: 0.1.0

Usage:
    python -m smb_cashflow.cli --help
"""

__all__ = ["forecast", "merger", "service", "tax", "views"]

__version__ = "0.1.0"
