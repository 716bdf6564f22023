"""Persistence for adjustment equations."""

from linescan_adjust.io.equation_text import (
    equation_to_text,
    equation_from_text,
    equations_from_text,
    write_equations,
    read_equations,
)
from linescan_adjust.io.adjustment_file import (
    AdjustmentRecord,
    equation_to_dict,
    equation_from_dict,
    validate_adjustment_dict,
    export_adjustments_yaml,
    load_adjustments_yaml,
)

__all__ = [
    # Flat text
    "equation_to_text",
    "equation_from_text",
    "equations_from_text",
    "write_equations",
    "read_equations",
    # YAML adjustment files
    "AdjustmentRecord",
    "equation_to_dict",
    "equation_from_dict",
    "validate_adjustment_dict",
    "export_adjustments_yaml",
    "load_adjustments_yaml",
]
