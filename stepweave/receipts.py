# stepweave/receipts.py
# Step recorder boundary. After a successful compile every step (nested ones
# included, depth-first) is reported once to the recorder. Return values ignored.

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from .steps import walk

logger = logging.getLogger(__name__)


class StepRecorder(Protocol):
    def __call__(self, operation: str, input_payload: bytes, output_payload: bytes,
                 metadata: Dict[str, Any]) -> Any: ...


def canonical_json(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass
class ListRecorder:
    """In-memory recorder; entries keep call order."""
    entries: List[Dict[str, Any]] = field(default_factory=list)

    def __call__(self, operation: str, input_payload: bytes, output_payload: bytes,
                 metadata: Dict[str, Any]) -> None:
        self.entries.append({
            "operation": operation,
            "input": input_payload,
            "output": output_payload,
            "metadata": dict(metadata),
        })

    def operations(self) -> List[str]:
        return [e["operation"] for e in self.entries]


def record_steps(workflow, recorder: StepRecorder) -> int:
    """Report each step of `workflow` to `recorder`; returns the number reported."""
    count = 0
    for st, depth in walk(workflow.steps):
        recorder(
            st.type,
            st.nl_phrase.encode("utf-8"),
            canonical_json(st.to_dict()),
            {"step_id": st.id, "depth": depth, "workflow": workflow.function},
        )
        count += 1
    logger.debug("recorded %d steps for %s", count, workflow.function)
    return count
