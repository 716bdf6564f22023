"""Polynomial-in-time adjustment equation.

A degree ``n`` polynomial holds ``3 * (n + 1)`` coefficients grouped by
axis: axis 0 uses indices ``[0, n]``, axis 1 uses ``[n + 1, 2n + 1]`` and
axis 2 uses ``[2n + 2, 3n + 2]``. Within an axis, coefficients are in
ascending powers of time, so index ``axis * (n + 1) + power`` multiplies
``t ** power``.
"""

from __future__ import annotations

import operator
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from linescan_adjust.equations.base import Equation, EquationType
from linescan_adjust.exceptions import IndexOutOfRange, ValidationError


class PolynomialEquation(Equation):
    """Per-axis polynomial in time.
    
    A degree-0 polynomial with all-zero coefficients is the identity
    (no correction) equation.
    
    Example:
        >>> eq = PolynomialEquation(1, [99.0, 0.02, 0, 0, 0, 0])
        >>> float(eq.evaluate(50.0)[0])
        100.0
    """
    
    equation_type = EquationType.POLYNOMIAL
    
    def __init__(
        self,
        degree: int,
        coefficients: Optional[ArrayLike] = None,
        time_offset: float = 0.0,
    ) -> None:
        super().__init__(time_offset)
        
        degree = operator.index(degree)
        if degree < 0:
            raise ValidationError(f"Polynomial degree must be >= 0, got {degree}")
        self._degree = degree
        
        if coefficients is None:
            self._coefficients = np.zeros(3 * (degree + 1), dtype=np.float64)
        else:
            self._coefficients = self._check_parameters(coefficients).copy()
    
    @property
    def degree(self) -> int:
        return self._degree
    
    @property
    def size(self) -> int:
        return 3 * (self._degree + 1)
    
    @property
    def parameters(self) -> NDArray[np.float64]:
        """Flat coefficient vector, returned by reference.
        
        Writing into this array changes the equation.
        """
        return self._coefficients
    
    def axis_coefficients(self, axis: int) -> NDArray[np.float64]:
        """Coefficients of one axis in ascending powers."""
        if axis not in (0, 1, 2):
            raise IndexOutOfRange(f"Axis must be 0, 1 or 2, got {axis}")
        n = self._degree + 1
        return self._coefficients[axis * n:(axis + 1) * n].copy()
    
    def get(self, index: int) -> float:
        return float(self._coefficients[self._check_index(index)])
    
    def set(self, index: int, value: float) -> None:
        self._coefficients[self._check_index(index)] = float(value)
    
    def _check_index(self, index: int) -> int:
        index = operator.index(index)
        if index < 0 or index >= self.size:
            raise IndexOutOfRange(
                f"Coefficient index {index} out of range for degree "
                f"{self._degree} polynomial ({self.size} coefficients)"
            )
        return index
    
    def _check_parameters(self, parameters: ArrayLike) -> NDArray[np.float64]:
        params = np.asarray(parameters, dtype=np.float64).reshape(-1)
        if params.shape != (self.size,):
            raise ValidationError(
                f"Expected {self.size} coefficients for degree {self._degree} "
                f"polynomial, got {params.size}"
            )
        return params
    
    def _evaluate(
        self,
        dt: float,
        parameters: Optional[ArrayLike],
    ) -> NDArray[np.float64]:
        if parameters is None:
            params = self._coefficients
        else:
            params = self._check_parameters(parameters)
        
        # Horner's scheme over all three axes at once
        coeffs = params.reshape(3, self._degree + 1)
        result = np.zeros(3, dtype=np.float64)
        for power in range(self._degree, -1, -1):
            result = result * dt + coeffs[:, power]
        return result
    
    def copy(self) -> "PolynomialEquation":
        return PolynomialEquation(self._degree, self._coefficients, self.time_offset)
    
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PolynomialEquation):
            return NotImplemented
        return (
            self._degree == other._degree
            and self.time_offset == other.time_offset
            and np.array_equal(self._coefficients, other._coefficients)
        )
    
    def __repr__(self) -> str:
        return (
            f"PolynomialEquation(degree={self._degree}, "
            f"coefficients={self._coefficients.tolist()}, "
            f"time_offset={self.time_offset})"
        )
