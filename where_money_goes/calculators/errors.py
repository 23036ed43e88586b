"""Exceptions raised while loading reference data."""


class BudgetDataError(ValueError):
    """Raised when a tax schedule or budget file violates its schema."""
