"""Equation interface.

An adjustment equation maps acquisition time to a 3-component correction
(position offset or orientation angles). Two variants exist: polynomials
in time with an indexable coefficient vector, and per-axis RPN expressions
that are only changed by supplying new expression strings.

``evaluate`` is a pure function of the current parameters, the time
offset and ``t``. Coefficients may be changed between evaluations (by an
optimizer, for instance), but not while an evaluation on the same
equation is in flight; no locking is done here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from linescan_adjust.exceptions import UnsupportedOperation


class EquationType(Enum):
    """Closed set of equation variants, also used as persistence tags."""
    
    POLYNOMIAL = "polynomial"
    RPN = "rpn"


class Equation(ABC):
    """Time-parameterized 3-axis correction function.
    
    Attributes:
        time_offset: Time subtracted from ``t`` before evaluation.
    """
    
    equation_type: EquationType
    
    def __init__(self, time_offset: float = 0.0) -> None:
        self.time_offset = float(time_offset)
    
    def evaluate(
        self,
        t: float,
        parameters: Optional[ArrayLike] = None,
    ) -> NDArray[np.float64]:
        """Evaluate the correction at time ``t``.
        
        Args:
            t: Acquisition time.
            parameters: Optional explicit parameter vector used instead of
                the stored one. Only meaningful for indexable equations.
                
        Returns:
            Array of shape (3,).
        """
        return self._evaluate(float(t) - self.time_offset, parameters)
    
    @abstractmethod
    def _evaluate(
        self,
        dt: float,
        parameters: Optional[ArrayLike],
    ) -> NDArray[np.float64]:
        """Evaluate at time relative to ``time_offset``."""
    
    @property
    def size(self) -> int:
        """Number of indexable parameters."""
        return 0
    
    def __len__(self) -> int:
        return self.size
    
    def get(self, index: int) -> float:
        raise UnsupportedOperation(
            f"{type(self).__name__} has no indexable coefficients"
        )
    
    def set(self, index: int, value: float) -> None:
        raise UnsupportedOperation(
            f"{type(self).__name__} has no indexable coefficients"
        )
    
    def __getitem__(self, index: int) -> float:
        return self.get(index)
    
    def __setitem__(self, index: int, value: float) -> None:
        self.set(index, value)
    
    @abstractmethod
    def copy(self) -> "Equation":
        """Return an independent copy of this equation."""
