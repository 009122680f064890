"""
Error taxonomy for the curve pricing engine.

Each class extends the builtin a caller would otherwise catch, so code that
handles ``ValueError`` or ``PermissionError`` keeps working.
"""


class CurveValidationError(ValueError):
    """Bad coefficient count, unsupported curve type or out-of-range bounds."""


class UnauthorizedStrategistError(PermissionError):
    """Mutation attempted by someone other than the venue's strategist."""


class ComputationBudgetExceeded(RuntimeError):
    """Invocation cost went over its budget; the whole trade is aborted."""

    def __init__(self, cost_units: int, budget: int):
        super().__init__(f"Computation cost {cost_units} exceeds budget {budget}")
        self.cost_units = cost_units
        self.budget = budget


class ReentrancyError(RuntimeError):
    """A venue was re-entered while one of its invocations was in flight."""


class VenueNotFoundError(KeyError):
    """No curve has been initialized for the venue."""
