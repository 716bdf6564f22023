"""Exception hierarchy for linescan-adjust.

All errors raised by the package derive from ``LinescanAdjustError`` and
from the closest built-in exception, so callers can catch either the
package-specific type or the familiar built-in one.

Every error is local to the call that raised it. Cameras and equations
remain usable afterwards.
"""

from __future__ import annotations

from typing import Any, Optional


class LinescanAdjustError(Exception):
    """Base exception for all linescan-adjust errors."""


class ValidationError(LinescanAdjustError, ValueError):
    """Invalid input data, shapes, or configuration."""


class ExpressionParseError(LinescanAdjustError, ValueError):
    """Malformed RPN expression at construction time.

    Raised for unknown symbols, non-numeric literals, empty expressions,
    and token streams that underflow the stack or leave more than one
    value on it.
    """


class EvaluationError(LinescanAdjustError, ArithmeticError):
    """Runtime failure while evaluating an expression.

    Raised for division by zero, math domain errors, overflow, and
    non-finite results.
    """


class IndexOutOfRange(LinescanAdjustError, IndexError):
    """Coefficient index outside the parameter space of a polynomial."""


class UnsupportedOperation(LinescanAdjustError, NotImplementedError):
    """Indexed coefficient access on an equation that has no coefficients."""


class ConvergenceError(LinescanAdjustError, RuntimeError):
    """Inverse projection did not reach a valid pixel.

    Attributes:
        result: The failed ``InversionResult``, when available, so callers
            can inspect the iterate history or reseed.
    """

    def __init__(self, message: str, result: Optional[Any] = None) -> None:
        super().__init__(message)
        self.result = result
