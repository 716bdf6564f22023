"""Per-image adjustment files.

An adjustment file stores the position and pose equations fitted for one
image, so a later run can rebuild the adjusted camera without refitting.
Files are YAML with the following layout (version 1.0)::

    adjustment_version: '1.0'
    created_at: '2024-01-15T10:30:00.123456'
    image_id: E1701676
    position:
      type: polynomial
      degree: 1
      coefficients: [1000.0, 10.0, 2000.0, -10.0, -11000.0, 5.0]
      time_offset: 0.0
    pose:
      type: rpn
      expressions: ['.005', '-.013 t *', '0']
      time_offset: 0.0
    notes: ''
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from linescan_adjust.common.logging import get_logger
from linescan_adjust.equations.base import Equation, EquationType
from linescan_adjust.equations.polynomial import PolynomialEquation
from linescan_adjust.equations.rpn import RPNEquation
from linescan_adjust.exceptions import ValidationError

logger = get_logger(__name__)


ADJUSTMENT_VERSION = "1.0"


def equation_to_dict(equation: Equation) -> Dict[str, Any]:
    """Convert an equation to a plain dictionary."""
    if isinstance(equation, PolynomialEquation):
        return {
            "type": EquationType.POLYNOMIAL.value,
            "degree": equation.degree,
            "coefficients": [float(c) for c in equation.parameters],
            "time_offset": equation.time_offset,
        }
    if isinstance(equation, RPNEquation):
        return {
            "type": EquationType.RPN.value,
            "expressions": list(equation.expressions),
            "time_offset": equation.time_offset,
        }
    raise ValidationError(f"Cannot serialize {type(equation).__name__}")


def equation_from_dict(data: Dict[str, Any]) -> Equation:
    """Build an equation from its dictionary form."""
    try:
        equation_type = EquationType(data["type"])
    except (KeyError, ValueError) as e:
        raise ValidationError(f"Invalid equation type: {data.get('type')!r}") from e
    
    time_offset = data.get("time_offset", 0.0)
    
    if equation_type is EquationType.POLYNOMIAL:
        return PolynomialEquation(data["degree"], data["coefficients"], time_offset)
    
    return RPNEquation(*data["expressions"], time_offset=time_offset)


@dataclass
class AdjustmentRecord:
    """Fitted adjustment for one image.
    
    Attributes:
        image_id: Identifier of the image (cube).
        position: Position adjustment equation.
        pose: Pose adjustment equation.
        created_at: ISO timestamp of creation.
        notes: Free-form notes.
    """
    
    image_id: str
    position: Equation
    pose: Equation
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    notes: str = ""
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "adjustment_version": ADJUSTMENT_VERSION,
            "created_at": self.created_at,
            "image_id": self.image_id,
            "position": equation_to_dict(self.position),
            "pose": equation_to_dict(self.pose),
            "notes": self.notes,
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdjustmentRecord":
        """Create from a validated dictionary."""
        return cls(
            image_id=data["image_id"],
            position=equation_from_dict(data["position"]),
            pose=equation_from_dict(data["pose"]),
            created_at=str(data["created_at"]),
            notes=data.get("notes", ""),
        )


def _validate_equation_dict(name: str, data: Any) -> List[str]:
    if not isinstance(data, dict):
        return [f"'{name}' must be a mapping"]
    
    errors: List[str] = []
    kind = data.get("type")
    
    if kind == EquationType.POLYNOMIAL.value:
        degree = data.get("degree")
        coefficients = data.get("coefficients")
        if not isinstance(degree, int) or isinstance(degree, bool) or degree < 0:
            errors.append(f"'{name}.degree' must be a non-negative integer")
        elif not isinstance(coefficients, list):
            errors.append(f"'{name}.coefficients' must be a list")
        elif len(coefficients) != 3 * (degree + 1):
            errors.append(
                f"'{name}.coefficients' needs {3 * (degree + 1)} values for degree "
                f"{degree}, got {len(coefficients)}"
            )
        elif not all(isinstance(c, (int, float)) for c in coefficients):
            errors.append(f"'{name}.coefficients' must be numeric")
    elif kind == EquationType.RPN.value:
        expressions = data.get("expressions")
        if not isinstance(expressions, list) or len(expressions) != 3:
            errors.append(f"'{name}.expressions' must be a list of three strings")
        elif not all(isinstance(e, str) for e in expressions):
            errors.append(f"'{name}.expressions' must be a list of three strings")
    else:
        errors.append(f"'{name}.type' must be one of: polynomial, rpn")
    
    time_offset = data.get("time_offset", 0.0)
    if not isinstance(time_offset, (int, float)) or isinstance(time_offset, bool):
        errors.append(f"'{name}.time_offset' must be a number")
    
    return errors


def validate_adjustment_dict(data: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Validate an adjustment dictionary.
    
    Expressions are not parsed here; ``load_adjustments_yaml`` reports
    malformed expressions as ``ExpressionParseError``.
    
    Args:
        data: Dictionary loaded from an adjustment file.
        
    Returns:
        Tuple of (is_valid, list_of_errors).
    """
    if not isinstance(data, dict):
        return False, ["Adjustment file must contain a mapping"]
    
    errors: List[str] = []
    
    for key in ("adjustment_version", "created_at", "image_id", "position", "pose"):
        if key not in data:
            errors.append(f"Missing required field: {key}")
    
    version = data.get("adjustment_version")
    if version is not None and str(version) != ADJUSTMENT_VERSION:
        errors.append(f"Unsupported adjustment_version: {version}")
    
    created_at = data.get("created_at")
    if created_at is not None:
        try:
            datetime.fromisoformat(str(created_at))
        except ValueError:
            errors.append(f"Invalid created_at timestamp: {created_at}")
    
    for name in ("position", "pose"):
        if name in data:
            errors.extend(_validate_equation_dict(name, data[name]))
    
    return len(errors) == 0, errors


def export_adjustments_yaml(
    record: AdjustmentRecord,
    output_path: Path | str,
) -> Path:
    """Write an adjustment record to a YAML file.
    
    Returns:
        Path to the written file.
    """
    output_path = Path(output_path)
    data = record.to_dict()
    
    is_valid, errors = validate_adjustment_dict(data)
    if not is_valid:
        raise ValidationError(f"Invalid adjustment record: {errors}")
    
    output_path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(output_path, "w") as f:
        yaml.dump(
            data,
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    
    logger.info(f"Exported adjustments for '{record.image_id}' to {output_path}")
    return output_path


def load_adjustments_yaml(input_path: Path | str) -> AdjustmentRecord:
    """Load an adjustment record from a YAML file.
    
    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValidationError: If the file content is invalid.
        ExpressionParseError: If a stored expression does not parse.
    """
    input_path = Path(input_path)
    
    if not input_path.exists():
        raise FileNotFoundError(f"Adjustment file not found: {input_path}")
    
    with open(input_path, "r") as f:
        data = yaml.safe_load(f)
    
    is_valid, errors = validate_adjustment_dict(data)
    if not is_valid:
        raise ValidationError(f"Invalid adjustment file {input_path}: {errors}")
    
    return AdjustmentRecord.from_dict(data)
