# stepweave/context.py
# Mutable state for exactly one compilation call.

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .names import step_id
from .steps import Step, clone_with_fresh_ids

logger = logging.getLogger(__name__)


@dataclass
class CompilationContext:
    """Id counter, inferred variable types, macro templates and diagnostics.

    One instance per compile call. Nested rule invocations (loop bodies, branch
    clauses, macro bodies) share it so ids and diagnostics stay globally ordered.
    """
    step_counter: int = 1
    type_map: Dict[str, str] = field(default_factory=dict)
    macros: Dict[str, List[Step]] = field(default_factory=dict)
    diagnostics: List[str] = field(default_factory=list)
    nesting: int = 0        # clause depth of the rule currently building

    def next_id(self) -> str:
        sid = step_id(self.step_counter)
        self.step_counter += 1
        return sid

    def add_error(self, message: str) -> None:
        logger.info("diagnostic: %s", message)
        self.diagnostics.append(message)

    def record_type(self, name: str, typ: str) -> None:
        # last write wins, also across branches
        self.type_map[name] = typ

    def define_macro(self, name: str, steps: List[Step]) -> None:
        self.macros[name] = steps

    def get_macro(self, name: str) -> Optional[List[Step]]:
        return self.macros.get(name)

    def expand_macro(self, name: str) -> List[Step]:
        """Clone a macro template, issuing fresh ids. Caller checks existence."""
        return clone_with_fresh_ids(self.macros[name], self.next_id)
