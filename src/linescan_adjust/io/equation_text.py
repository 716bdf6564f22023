"""Flat text persistence for adjustment equations.

Polynomial::

    POLYEQ
    1
    1000.0 10.0 2000.0 -10.0 -11000.0 5.0
    TIME_OFFSET 0.0

Expression::

    RPNEQ
    t 2 * 100 / 99 +
    t .8 * 1000 -
    t .5 * 2000 +
    TIME_OFFSET 0.0

Coefficients are written in the flat axis order of ``PolynomialEquation``.
The ``TIME_OFFSET`` line is optional when reading and defaults to zero.
Several equations can share one file; ``read_equations`` splits them on
their type tags.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from linescan_adjust.common.logging import get_logger
from linescan_adjust.equations.base import Equation
from linescan_adjust.equations.polynomial import PolynomialEquation
from linescan_adjust.equations.rpn import RPNEquation
from linescan_adjust.exceptions import ValidationError

logger = get_logger(__name__)


POLYNOMIAL_TAG = "POLYEQ"
RPN_TAG = "RPNEQ"
TIME_OFFSET_KEY = "TIME_OFFSET"


def equation_to_text(equation: Equation) -> str:
    """Serialize an equation to its flat text form."""
    if isinstance(equation, PolynomialEquation):
        lines = [
            POLYNOMIAL_TAG,
            str(equation.degree),
            " ".join(repr(float(c)) for c in equation.parameters),
        ]
    elif isinstance(equation, RPNEquation):
        lines = [RPN_TAG, *equation.expressions]
    else:
        raise ValidationError(f"Cannot serialize {type(equation).__name__}")
    
    lines.append(f"{TIME_OFFSET_KEY} {equation.time_offset!r}")
    return "\n".join(lines) + "\n"


def _parse_time_offset(line: str) -> float:
    parts = line.split()
    if len(parts) != 2 or parts[0] != TIME_OFFSET_KEY:
        raise ValidationError(f"Expected '{TIME_OFFSET_KEY} <value>', got '{line}'")
    try:
        return float(parts[1])
    except ValueError as e:
        raise ValidationError(f"Invalid time offset '{parts[1]}'") from e


def _parse_block(lines: Sequence[str]) -> Equation:
    tag = lines[0]
    
    if tag == POLYNOMIAL_TAG:
        if len(lines) not in (3, 4):
            raise ValidationError(
                f"Polynomial block needs degree and coefficient lines, got {len(lines)} lines"
            )
        try:
            degree = int(lines[1])
            coefficients = [float(c) for c in lines[2].split()]
        except ValueError as e:
            raise ValidationError(f"Malformed polynomial block: {e}") from e
        time_offset = _parse_time_offset(lines[3]) if len(lines) == 4 else 0.0
        return PolynomialEquation(degree, coefficients, time_offset)
    
    if tag == RPN_TAG:
        if len(lines) not in (4, 5):
            raise ValidationError(
                f"Expression block needs three expression lines, got {len(lines) - 1}"
            )
        time_offset = _parse_time_offset(lines[4]) if len(lines) == 5 else 0.0
        return RPNEquation(lines[1], lines[2], lines[3], time_offset)
    
    raise ValidationError(f"Unknown equation type tag '{tag}'")


def _split_blocks(text: str) -> List[List[str]]:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    blocks: List[List[str]] = []
    for line in lines:
        if line in (POLYNOMIAL_TAG, RPN_TAG):
            blocks.append([line])
        elif not blocks:
            raise ValidationError(f"Expected an equation type tag, got '{line}'")
        else:
            blocks[-1].append(line)
    return blocks


def equations_from_text(text: str) -> List[Equation]:
    """Parse every equation in a text blob."""
    return [_parse_block(block) for block in _split_blocks(text)]


def equation_from_text(text: str) -> Equation:
    """Parse exactly one equation from its flat text form.
    
    Raises:
        ValidationError: If the text is malformed.
        ExpressionParseError: If an expression does not parse.
    """
    equations = equations_from_text(text)
    if len(equations) != 1:
        raise ValidationError(f"Expected one equation, found {len(equations)}")
    return equations[0]


def write_equations(equations: Sequence[Equation], output_path: Path | str) -> Path:
    """Write equations to a text file, in order."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(output_path, "w") as f:
        for equation in equations:
            f.write(equation_to_text(equation))
    
    logger.info(f"Wrote {len(equations)} equation(s) to {output_path}")
    return output_path


def read_equations(input_path: Path | str) -> List[Equation]:
    """Read all equations from a text file."""
    input_path = Path(input_path)
    
    if not input_path.exists():
        raise FileNotFoundError(f"Equation file not found: {input_path}")
    
    with open(input_path, "r") as f:
        return equations_from_text(f.read())
