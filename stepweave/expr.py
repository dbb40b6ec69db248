# stepweave/expr.py
# Expression tree + two-level precedence-climbing parser.
# Precedence (highest → lowest):
#   primary: number, true/false, identifier, ( expr )
#   *, /
#   +, -
# Both binary levels are left-associative.

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .tokenizer import MAX_NESTING, tokenize, is_number_token

# op name -> symbol
MATH_OPS = {"add": "+", "subtract": "-", "multiply": "*", "divide": "/"}
SYMBOL_TO_OP = {sym: name for name, sym in MATH_OPS.items()}

_PRECEDENCE = {"add": 1, "subtract": 1, "multiply": 2, "divide": 2}


@dataclass
class Literal:
    value: Union[int, float, bool, str]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "Literal", "value": self.value}


@dataclass
class VariableRef:
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "VariableRef", "name": self.name}


@dataclass
class BinaryOp:
    op: str
    left: "Expression"
    right: "Expression"

    def __post_init__(self):
        if self.op not in MATH_OPS:
            raise ValueError(f"unknown arithmetic operator: {self.op!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "BinaryOp",
            "op": self.op,
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
        }


@dataclass
class Classify:
    model: str
    input: "Expression"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "Classify", "model": self.model, "input": self.input.to_dict()}


Expression = Union[Literal, VariableRef, BinaryOp, Classify]


class _Parser:
    def __init__(self, text: str):
        self.tokens: List[str] = tokenize(text)
        self.i = 0
        self.depth = 0
        self.ops = 0

    def peek(self) -> Optional[str]:
        return self.tokens[self.i] if self.i < len(self.tokens) else None

    def pop(self) -> Optional[str]:
        tok = self.peek()
        if tok is not None:
            self.i += 1
        return tok

    def parse(self) -> Optional[Expression]:
        expr = self.add_sub()
        if expr is None or self.i != len(self.tokens) or self.depth != 0:
            return None
        return expr

    def operator(self) -> Optional[str]:
        """Consume a binary operator; None once the operator budget is spent."""
        self.ops += 1
        if self.ops > MAX_NESTING:
            return None
        return SYMBOL_TO_OP[self.pop()]

    def primary(self) -> Optional[Expression]:
        tok = self.pop()
        if tok is None:
            return None
        if tok == "(":
            if self.depth >= MAX_NESTING:
                return None
            self.depth += 1
            inner = self.add_sub()
            if inner is None or self.peek() != ")":
                return None
            self.pop()
            self.depth -= 1
            return inner
        if tok in ("+", "-", "*", "/", ")"):
            return None
        if is_number_token(tok):
            return Literal(float(tok) if "." in tok else int(tok))
        low = tok.lower()
        if low in ("true", "false"):
            return Literal(low == "true")
        return VariableRef(tok)

    def mul_div(self) -> Optional[Expression]:
        left = self.primary()
        if left is None:
            return None
        while self.peek() in ("*", "/"):
            op = self.operator()
            if op is None:
                return None
            right = self.primary()
            if right is None:
                return None
            left = BinaryOp(op, left, right)
        return left

    def add_sub(self) -> Optional[Expression]:
        left = self.mul_div()
        if left is None:
            return None
        while self.peek() in ("+", "-"):
            op = self.operator()
            if op is None:
                return None
            right = self.mul_div()
            if right is None:
                return None
            left = BinaryOp(op, left, right)
        return left


def parse_expression(text: str) -> Optional[Expression]:
    """Parse arithmetic text; None unless the whole input parses with balanced parens.

    Input nested deeper than MAX_NESTING parentheses, or holding more than
    MAX_NESTING operators, also yields None.
    """
    return _Parser(text or "").parse()


def format_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return repr(value)


def format_expression(e: Expression) -> str:
    """Infix printer with minimal parentheses."""
    if isinstance(e, Literal):
        return format_literal(e.value)
    if isinstance(e, VariableRef):
        return e.name
    if isinstance(e, Classify):
        return f"classify {e.model} ({format_expression(e.input)})"
    if isinstance(e, BinaryOp):
        prec = _PRECEDENCE[e.op]
        left = format_expression(e.left)
        if isinstance(e.left, BinaryOp) and _PRECEDENCE[e.left.op] < prec:
            left = f"({left})"
        right = format_expression(e.right)
        # equal precedence on the right must keep its grouping
        if isinstance(e.right, BinaryOp) and _PRECEDENCE[e.right.op] <= prec:
            right = f"({right})"
        return f"{left} {MATH_OPS[e.op]} {right}"
    raise TypeError(f"not an expression: {e!r}")
