"""
Calculation error taxonomy.

Every failure that aborts a calculation is a CalculationError. Advisory
conditions (ventilation capacity, density) are never raised: they are
returned as Alert objects alongside a valid result.
"""


class CalculationError(Exception):
    """Base class for errors that abort a calculation."""


class InvalidInput(CalculationError):
    """Non-positive measurement, missing required parameter, unknown selection."""


class NoMapping(CalculationError):
    """The catalog has no eligible compositions / consumption rows for the request."""


class DataSourceFailure(CalculationError):
    """The catalog store is unreachable or returned malformed rows."""
