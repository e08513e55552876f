# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Exception types for SMB CashFlow.

- ValidationError :
    Invalid store id, month, year or date range at the boundary (CLI,
    service entry point). Subclasses ValueError so callers catching
    ValueError keep working.

- UpstreamFetchError :
    A data provider failed or returned malformed data. Providers raise it;
    the gathering step (gather.py) recovers by substituting zero-filled data
    and recording a warning. It never escapes the merge or forecast steps.

Division by zero and NaN propagation are prevented by guards in the
computation modules and have no exception type.
"""


class CashFlowError(Exception):
    """Base class for SMB CashFlow errors."""


class ValidationError(CashFlowError, ValueError):
    """Invalid input at the boundary of the engine."""


class UpstreamFetchError(CashFlowError):
    """A data source could not provide its data."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message
