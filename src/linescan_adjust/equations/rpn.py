"""Reverse-Polish expression equations.

Each axis is an independent whitespace-separated token string evaluated
with a stack machine. Tokens are:

- the symbol ``t`` (time relative to the equation's time offset),
- numeric literals in Python float syntax (``2``, ``.8``, ``-.013``),
- binary operators ``+ - * / ^``,
- unary functions ``sin cos tan asin acos atan sqrt abs exp log neg``.

Example:
    ``"t 2 * 100 / 99 +"`` evaluates to ``t * 2 / 100 + 99``.

Expressions are validated when parsed: every token must be known and the
stack must hold exactly one value at the end, so evaluation only fails on
arithmetic problems (division by zero, domain errors, overflow).
"""

from __future__ import annotations

import math
import operator
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from linescan_adjust.equations.base import Equation, EquationType
from linescan_adjust.exceptions import (
    EvaluationError,
    ExpressionParseError,
    UnsupportedOperation,
)


TIME_SYMBOL = "t"

BINARY_OPERATORS: Dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "^": math.pow,
}

UNARY_OPERATORS: Dict[str, Callable[[float], float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "sqrt": math.sqrt,
    "abs": math.fabs,
    "exp": math.exp,
    "log": math.log,
    "neg": operator.neg,
}

# Instruction kinds
_PUSH = 0
_TIME = 1
_UNARY = 2
_BINARY = 3


@dataclass(frozen=True)
class CompiledExpression:
    """A validated token program for one axis.
    
    Attributes:
        source: Original expression text.
        program: Sequence of (kind, argument) instructions.
    """
    
    source: str
    program: Tuple[Tuple[int, object], ...]
    
    def evaluate(self, t: float) -> float:
        """Run the stack machine with ``t`` bound to the given time.
        
        Raises:
            EvaluationError: On arithmetic failure or a non-finite result.
        """
        stack: List[float] = []
        try:
            for kind, arg in self.program:
                if kind == _PUSH:
                    stack.append(arg)
                elif kind == _TIME:
                    stack.append(t)
                elif kind == _UNARY:
                    stack.append(arg(stack.pop()))
                else:
                    rhs = stack.pop()
                    lhs = stack.pop()
                    stack.append(arg(lhs, rhs))
        except IndexError as e:
            raise EvaluationError(f"Stack underflow in '{self.source}'") from e
        except (ZeroDivisionError, ValueError, OverflowError) as e:
            raise EvaluationError(
                f"Cannot evaluate '{self.source}' at t={t}: {e}"
            ) from e
        
        if len(stack) != 1:
            raise EvaluationError(
                f"Expression '{self.source}' left {len(stack)} values on the stack"
            )
        
        value = float(stack[0])
        if not math.isfinite(value):
            raise EvaluationError(
                f"Expression '{self.source}' is not finite at t={t}"
            )
        return value


def tokenize(expression: str) -> List[str]:
    """Split an expression into tokens."""
    return expression.split()


def _parse_literal(token: str) -> Optional[float]:
    try:
        value = float(token)
    except ValueError:
        return None
    # Reject "nan", "inf" and friends
    if not math.isfinite(value):
        return None
    return value


def compile_expression(expression: str) -> CompiledExpression:
    """Parse and validate one axis expression.
    
    Args:
        expression: RPN token string.
        
    Returns:
        CompiledExpression ready for evaluation.
        
    Raises:
        ExpressionParseError: If the expression is empty, contains an
            unknown token, or does not reduce to exactly one value.
    """
    if not isinstance(expression, str):
        raise ExpressionParseError(
            f"Expression must be a string, got {type(expression).__name__}"
        )
    
    tokens = tokenize(expression)
    if not tokens:
        raise ExpressionParseError("Empty expression")
    
    program: List[Tuple[int, object]] = []
    depth = 0
    
    for position, token in enumerate(tokens):
        if token in BINARY_OPERATORS:
            if depth < 2:
                raise ExpressionParseError(
                    f"Operator '{token}' at token {position} needs two operands "
                    f"in '{expression}'"
                )
            program.append((_BINARY, BINARY_OPERATORS[token]))
            depth -= 1
        elif token in UNARY_OPERATORS:
            if depth < 1:
                raise ExpressionParseError(
                    f"Function '{token}' at token {position} needs an operand "
                    f"in '{expression}'"
                )
            program.append((_UNARY, UNARY_OPERATORS[token]))
        elif token == TIME_SYMBOL:
            program.append((_TIME, None))
            depth += 1
        else:
            value = _parse_literal(token)
            if value is None:
                raise ExpressionParseError(
                    f"Unknown symbol or non-numeric literal '{token}' in '{expression}'"
                )
            program.append((_PUSH, value))
            depth += 1
    
    if depth != 1:
        raise ExpressionParseError(
            f"Expression '{expression}' leaves {depth} values on the stack"
        )
    
    return CompiledExpression(source=expression, program=tuple(program))


class RPNEquation(Equation):
    """Three independent RPN expressions, one per axis.
    
    The expressions are not index-mutable; use ``set_expressions`` to
    replace them.
    """
    
    equation_type = EquationType.RPN
    
    def __init__(
        self,
        x_expression: str,
        y_expression: str,
        z_expression: str,
        time_offset: float = 0.0,
    ) -> None:
        super().__init__(time_offset)
        self._compiled = self._compile_all((x_expression, y_expression, z_expression))
    
    @staticmethod
    def _compile_all(expressions: Sequence[str]) -> Tuple[CompiledExpression, ...]:
        compiled = []
        for axis, expression in enumerate(expressions):
            try:
                compiled.append(compile_expression(expression))
            except ExpressionParseError as e:
                raise ExpressionParseError(f"Axis {axis}: {e}") from e
        return tuple(compiled)
    
    @property
    def expressions(self) -> Tuple[str, str, str]:
        """Source strings for the X, Y and Z axes."""
        return tuple(c.source for c in self._compiled)
    
    def set_expressions(
        self,
        x_expression: str,
        y_expression: str,
        z_expression: str,
    ) -> None:
        """Replace all three expressions.
        
        The equation is unchanged if any expression fails to parse.
        """
        self._compiled = self._compile_all((x_expression, y_expression, z_expression))
    
    def _evaluate(
        self,
        dt: float,
        parameters: Optional[ArrayLike],
    ) -> NDArray[np.float64]:
        if parameters is not None and np.size(parameters) > 0:
            raise UnsupportedOperation("RPNEquation does not take a parameter vector")
        
        values = np.empty(3, dtype=np.float64)
        for axis, compiled in enumerate(self._compiled):
            try:
                values[axis] = compiled.evaluate(dt)
            except EvaluationError as e:
                raise EvaluationError(f"Axis {axis}: {e}") from e
        return values
    
    def copy(self) -> "RPNEquation":
        return RPNEquation(*self.expressions, time_offset=self.time_offset)
    
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RPNEquation):
            return NotImplemented
        return (
            self.expressions == other.expressions
            and self.time_offset == other.time_offset
        )
    
    def __repr__(self) -> str:
        x, y, z = self.expressions
        return f"RPNEquation({x!r}, {y!r}, {z!r}, time_offset={self.time_offset})"
