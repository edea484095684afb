"""
JSON formatting utilities for decomposition summaries.

Summaries are full of short numeric arrays (colors, bounding boxes,
triangle id lists). Standard indented json.dumps puts every number on
its own line, which makes a summary of a few dozen pieces thousands of
lines long. These helpers keep the structure indented but put numeric
arrays on one line.
"""

import json
import re
from typing import Any

import numpy as np

# A numeric array that json.dumps spread across several lines
_NUMERIC_ARRAY = r'\[\s*\n\s*([\d\.\-\+eE,\s]+?)\n\s*\]'


def to_builtin(value: Any, precision: int | None = None) -> Any:
    """
    Recursively convert numpy scalars/arrays and tuples to JSON-ready builtins.

    Args:
        value: Data structure to convert
        precision: If given, floats are rounded to this many decimals

    Returns:
        The same structure using only dict, list, str, int, float, bool, None
    """
    if isinstance(value, dict):
        return {str(k): to_builtin(v, precision) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_builtin(v, precision) for v in value]
    if isinstance(value, np.ndarray):
        return [to_builtin(v, precision) for v in value.tolist()]
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        value = float(value)
        return round(value, precision) if precision is not None else value
    return value


def dumps_compact_arrays(
    data: Any,
    indent: int = 2,
    array_fields: list[str] | None = None
) -> str:
    """
    Format JSON with numeric arrays on single lines.

    Standard json.dumps() with indent gives:
        "color": [
          0.9,
          0.31,
          0.31
        ]

    This function compacts them to:
        "color": [0.9, 0.31, 0.31]

    Args:
        data: Data structure to serialize (numpy values are converted)
        indent: Number of spaces for indentation (default: 2)
        array_fields: Field names whose arrays should be compacted.
                     If None, compacts all arrays of numbers.

    Returns:
        JSON string with compact arrays and indented structure

    Example:
        >>> print(dumps_compact_arrays({"bounds": {"min": [0, 0, 0]}}))
        {
          "bounds": {
            "min": [0, 0, 0]
          }
        }
    """
    json_str = json.dumps(to_builtin(data), indent=indent, ensure_ascii=False)

    def _collapse(body: str) -> str:
        return re.sub(r'\s+', ' ', body.strip())

    if array_fields is None:
        return re.sub(_NUMERIC_ARRAY, lambda m: '[' + _collapse(m.group(1)) + ']', json_str)

    for field in array_fields:
        pattern = rf'"{re.escape(field)}":\s*' + _NUMERIC_ARRAY
        json_str = re.sub(
            pattern,
            lambda m, field=field: f'"{field}": [' + _collapse(m.group(1)) + ']',
            json_str
        )
    return json_str
