# stepweave/tokenizer.py
# Lexical layer for command values.
# Tokens: numbers, identifiers ([A-Za-z0-9_]+) and the single-char operators + - * / ( ).
# Anything else is dropped by the pattern (no tokenizer errors).

from __future__ import annotations
import re
from typing import List

# ------------------------------ Patterns -------------------------------------

# Characters stripped from expression text before tokenizing.
_EXPR_STRIP_RE = re.compile(r"[<>{}]")

# Conditions keep < and > (they are comparison operators there).
_COND_STRIP_RE = re.compile(r"[{}]")

TOKEN_RE = re.compile(
    r"""
    (?P<number>\d+(?:\.\d+)?)(?![A-Za-z0-9_])
    |(?P<ident>[A-Za-z0-9_]+)
    |(?P<op>[+\-*/()])
    """,
    re.VERBOSE,
)

NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")

# Looser numeric literal check for whole values ("-3", "1e5", "2.5e3", ".5").
NUMERIC_LITERAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

# 'text' or "text"; the inner part holds no copy of the delimiting quote.
QUOTED_RE = re.compile(r"""^(['"])((?:(?!\1).)*)\1$""")

# Upper bound on parenthesis depth, operators per expression, connectives per
# condition and nested command clauses. Deeper input degrades instead of parsing.
MAX_NESTING = 32

# --------------------------- Helpers ------------------------------------------

def sanitize_input(text: str) -> str:
    """Strip `< > { }` and surrounding whitespace."""
    if not isinstance(text, str):
        return ""
    return _EXPR_STRIP_RE.sub("", text).strip()


def sanitize_condition(text: str) -> str:
    if not isinstance(text, str):
        return ""
    return _COND_STRIP_RE.sub("", text).strip()


def tokenize(text: str) -> List[str]:
    """Sanitize and split into tokens. Unknown characters are skipped."""
    return [m.group(0) for m in TOKEN_RE.finditer(sanitize_input(text))]


def is_number_token(tok: str) -> bool:
    return bool(NUMBER_RE.match(tok or ""))


def coerce_number(text: str):
    """Return int/float for numeric literal text, else None."""
    s = (text or "").strip()
    if not NUMERIC_LITERAL_RE.match(s):
        return None
    if re.match(r"^[+-]?\d+$", s):
        return int(s)
    return float(s)
