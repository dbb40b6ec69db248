# stepweave/names.py
# Naming helpers for variables, step ids, loop counters and workflow ids.
from __future__ import annotations
import re
import uuid
from typing import Optional

_IDENT = re.compile(r'^\w+$')
_STEP_ID = re.compile(r'^step([0-9]+)$')

STEP_ID_PREFIX = "step"
LOOP_COUNTER_PREFIX = "_loop_counter_"


def is_identifier(name: Optional[str]) -> bool:
    return isinstance(name, str) and bool(_IDENT.match(name))


def step_id(n: int) -> str:
    return f"{STEP_ID_PREFIX}{n}"


def step_number(sid: str) -> int:
    """Numeric part of a step id; -1 when the id is not of the form step<N>."""
    m = _STEP_ID.match(sid or "")
    return int(m.group(1)) if m else -1


def loop_counter_name(loop_id: str) -> str:
    """Counter variable for a count loop, derived from the loop's own step id."""
    return f"{LOOP_COUNTER_PREFIX}{loop_id}"


def workflow_function_name(seed: Optional[uuid.UUID] = None) -> str:
    """workflow_<32 hex chars>."""
    return f"workflow_{(seed or uuid.uuid4()).hex}"
