from __future__ import annotations


class ScreeningError(Exception):
    """Base class for inputs the screening engine cannot evaluate."""


class InsufficientHistory(ScreeningError):
    def __init__(self, required: int, available: int, unit: str = "daily bars"):
        self.required = required
        self.available = available
        self.unit = unit
        super().__init__(f"need at least {required} {unit}, got {available}")


class InvalidHistory(ScreeningError):
    """Daily bars are out of order, non-finite or otherwise unusable."""


class InvalidFundamentals(ScreeningError):
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")
