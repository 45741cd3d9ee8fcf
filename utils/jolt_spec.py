"""
Analyzes a Jolt transformation spec to tell whether it expects a single JSON
object or an array of objects at the root.

A "shift" spec whose root level has a "*" key (or numeric index keys) iterates
over array elements, so its input is expected to be an array.
"""

import json
from enum import Enum
from typing import Optional


class JoltInputShape(Enum):
    OBJECT = "object"
    ARRAY = "array"
    UNKNOWN = "unknown"


class JoltSpecUtil:

    @staticmethod
    def get_expected_input_shape(jolt_spec_json: Optional[str]) -> JoltInputShape:
        """
        Determine whether the given Jolt spec expects root input to be an object or an array.

        Args:
            jolt_spec_json: Jolt specification (array of operations or a single operation object)

        Returns:
            OBJECT, ARRAY, or UNKNOWN for empty, invalid or shift-less specs
        """
        if jolt_spec_json is None or not jolt_spec_json.strip():
            return JoltInputShape.UNKNOWN
        try:
            root = json.loads(jolt_spec_json.strip())
        except ValueError:
            return JoltInputShape.UNKNOWN

        shift_spec = _find_first_shift_spec(root)
        if shift_spec is None:
            return JoltInputShape.UNKNOWN
        if any(key == "*" or _is_numeric(key) for key in shift_spec):
            return JoltInputShape.ARRAY
        return JoltInputShape.OBJECT


def _find_first_shift_spec(root) -> Optional[dict]:
    if isinstance(root, list):
        for op in root:
            spec = _shift_spec_from_operation(op)
            if spec is not None:
                return spec
        return None
    if isinstance(root, dict):
        return _shift_spec_from_operation(root)
    return None


def _shift_spec_from_operation(op) -> Optional[dict]:
    if not isinstance(op, dict) or op.get("operation") != "shift":
        return None
    spec = op.get("spec")
    return spec if isinstance(spec, dict) else None


def _is_numeric(key: str) -> bool:
    digits = key[1:] if key.startswith("-") else key
    return bool(digits) and digits.isdigit()
