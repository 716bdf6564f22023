"""Adjustment equations: polynomial and RPN expression variants."""

from linescan_adjust.equations.base import Equation, EquationType
from linescan_adjust.equations.polynomial import PolynomialEquation
from linescan_adjust.equations.rpn import (
    RPNEquation,
    CompiledExpression,
    compile_expression,
)

__all__ = [
    "Equation",
    "EquationType",
    "PolynomialEquation",
    "RPNEquation",
    "CompiledExpression",
    "compile_expression",
]
