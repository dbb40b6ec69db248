# stepweave/conditions.py
# Condition tree + condition parser.
# Recognition order (first match wins):
#   1. "LEFT contains RIGHT"         -> RegexContains
#   2. first top-level && / ||       -> And / Or, both sides reparsed
#   3. "IDENT OP TOKEN"              -> Compare (longest operators first)
#   4. English comparatives          -> Compare ("score is at least 90")
#   5. anything else                 -> Compare(VariableRef(text), ===, true)

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .expr import Expression, Literal, VariableRef, format_expression
from .tokenizer import MAX_NESTING, QUOTED_RE, sanitize_condition, coerce_number

# Closed operator set; "===" / "!==" are identity comparisons.
COMPARE_OPS = (">=", "<=", "===", "!==", "==", "!=", ">", "<")


@dataclass
class Compare:
    left: Expression
    op: str
    right: Expression

    def __post_init__(self):
        if self.op not in COMPARE_OPS:
            raise ValueError(f"unknown comparison operator: {self.op!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "Compare",
            "left": self.left.to_dict(),
            "op": self.op,
            "right": self.right.to_dict(),
        }


@dataclass
class And:
    left: "Condition"
    right: "Condition"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "And", "left": self.left.to_dict(), "right": self.right.to_dict()}


@dataclass
class Or:
    left: "Condition"
    right: "Condition"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "Or", "left": self.left.to_dict(), "right": self.right.to_dict()}


@dataclass
class RegexContains:
    input: str
    literal: str

    @property
    def pattern(self) -> str:
        return f".*{re.escape(self.literal)}.*"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "RegexContains", "input": self.input, "pattern": self.pattern}


Condition = Union[Compare, And, Or, RegexContains]


def constant_false() -> Compare:
    return Compare(Literal(False), "===", Literal(True))


# ------------------------------ Patterns -------------------------------------

_CONTAINS_RE = re.compile(r"^(.*?)\s*\bcontains\b\s*(.*)$", re.IGNORECASE)
_LOGICAL_RE = re.compile(r"^(.+?)\s*(\|\||&&)\s*(.+)$")
_OPS_ALT = "|".join(re.escape(op) for op in COMPARE_OPS)
_COMPARE_RE = re.compile(rf"^(\w+)\s*({_OPS_ALT})\s*(\S+)$")

_ID = r"[A-Za-z_][A-Za-z0-9_]*"
_VAL = r"(?:\d+(?:\.\d+)?|'[^']*'|\"[^\"]*\"|[A-Za-z_][A-Za-z0-9_]*)"

_COMPARATIVES = [
    (re.compile(rf"^({_ID})\s+(?:is\s+|are\s+)?(?:at\s+least|no\s+less\s+than)\s+({_VAL})$", re.IGNORECASE), ">="),
    (re.compile(rf"^({_ID})\s+(?:is\s+|are\s+)?(?:at\s+most|no\s+more\s+than)\s+({_VAL})$", re.IGNORECASE), "<="),
    (re.compile(rf"^({_ID})\s+(?:is\s+|are\s+)?(?:greater\s+than|more\s+than)\s+({_VAL})$", re.IGNORECASE), ">"),
    (re.compile(rf"^({_ID})\s+(?:is\s+|are\s+)?(?:less\s+than|fewer\s+than)\s+({_VAL})$", re.IGNORECASE), "<"),
    (re.compile(rf"^({_ID})\s+(?:is\s+|are\s+)?(?:not\s+equal\s+to|is\s+not|are\s+not)\s+({_VAL})$", re.IGNORECASE), "!="),
    (re.compile(rf"^({_ID})\s+(?:is\s+|are\s+)?(?:equals?|equal\s+to)\s+({_VAL})$", re.IGNORECASE), "=="),
    (re.compile(rf"^({_ID})\s+(?:is|are)\s+({_VAL})$", re.IGNORECASE), "=="),
]


def operand(token: str) -> Expression:
    """Right-hand operand: number, true/false, quoted text, else a variable."""
    tok = token.strip()
    num = coerce_number(tok)
    if num is not None:
        return Literal(num)
    if tok.lower() in ("true", "false"):
        return Literal(tok.lower() == "true")
    m = QUOTED_RE.match(tok)
    if m:
        return Literal(m.group(2))
    return VariableRef(tok)


def parse_comparative(text: str) -> Optional[Compare]:
    s = (text or "").strip()
    for pat, op in _COMPARATIVES:
        m = pat.match(s)
        if m:
            return Compare(VariableRef(m.group(1)), op, operand(m.group(2)))
    return None


def parse_condition(text: str) -> Condition:
    """Always returns a Condition; unparseable text never raises.

    Connectives are peeled off left to right and folded back from the right,
    so `a && b || c` is And(a, Or(b, c)). More than MAX_NESTING connectives
    degrade to constant false.
    """
    s = sanitize_condition(text)
    chain = []
    while s and not _CONTAINS_RE.match(s):
        m = _LOGICAL_RE.match(s)
        if not m:
            break
        if len(chain) >= MAX_NESTING:
            return constant_false()
        chain.append((And if m.group(2) == "&&" else Or, m.group(1).strip()))
        s = m.group(3).strip()

    node = _parse_clause(s)
    for kind, left in reversed(chain):
        node = kind(_parse_clause(sanitize_condition(left)), node)
    return node


def _parse_clause(s: str) -> Condition:
    """One clause without top-level connectives (contains may still hold them)."""
    if not s:
        return constant_false()

    m = _CONTAINS_RE.match(s)
    if m:
        left = m.group(1).strip()
        right = m.group(2).strip().replace("'", "").replace('"', "")
        if not left or not right:
            return constant_false()
        return RegexContains(left, right)

    m = _COMPARE_RE.match(s)
    if m:
        return Compare(VariableRef(m.group(1)), m.group(2), operand(m.group(3)))

    cmp = parse_comparative(s)
    if cmp is not None:
        return cmp

    return Compare(VariableRef(s), "===", Literal(True))


def format_condition(c: Condition) -> str:
    if isinstance(c, Compare):
        return f"{format_expression(c.left)} {c.op} {format_expression(c.right)}"
    if isinstance(c, And):
        return f"({format_condition(c.left)} && {format_condition(c.right)})"
    if isinstance(c, Or):
        return f"({format_condition(c.left)} || {format_condition(c.right)})"
    if isinstance(c, RegexContains):
        return f"{c.input} contains {c.literal}"
    raise TypeError(f"not a condition: {c!r}")
