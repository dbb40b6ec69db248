# stepweave/inference.py
# Static type inference for assigned values: number | boolean | string | tensor.

from __future__ import annotations

from .conditions import Compare, And, Or, RegexContains
from .expr import Literal, VariableRef, BinaryOp, Classify

NUMBER = "number"
BOOLEAN = "boolean"
STRING = "string"
TENSOR = "tensor"


def infer_type(value) -> str:
    """Literal bool → boolean, literal number → number, arithmetic → number,
    any condition → boolean, classify → tensor, everything else → string."""
    if isinstance(value, Literal):
        # bool first: bool is an int subclass
        if isinstance(value.value, bool):
            return BOOLEAN
        if isinstance(value.value, (int, float)):
            return NUMBER
        return STRING
    if isinstance(value, BinaryOp):
        return NUMBER
    if isinstance(value, (Compare, And, Or, RegexContains)):
        return BOOLEAN
    if isinstance(value, Classify):
        return TENSOR
    if isinstance(value, VariableRef):
        return STRING
    return STRING
