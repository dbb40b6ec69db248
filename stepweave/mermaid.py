# stepweave/mermaid.py
# Mermaid "graph TD" rendering of a compiled workflow.
# Top-level steps form one chain START -> ... -> END. Branches and loop bodies
# hang off labelled edges (Then / Else / Body) to an anchor node and chain from
# there; they are not joined back into the main chain.

from __future__ import annotations
from typing import List

from .conditions import format_condition
from .steps import (
    AiClassifyStep, BreakStep, CallStep, CssStyleStep, IfStep, ReturnStep, SetStep, Step,
    UiEventStep, UiRenderStep, UiStateStep, WaitStep, WhileStep, format_value,
)


def _escape(label: str) -> str:
    return label.replace('"', "#quot;")


def step_label(st: Step) -> str:
    if isinstance(st, SetStep):
        return f"Set {st.target} = {format_value(st.value)}"
    if isinstance(st, IfStep):
        return f"If {format_condition(st.condition)}"
    if isinstance(st, WhileStep):
        return f"While {format_condition(st.condition)}"
    if isinstance(st, WaitStep):
        return f"Wait {st.seconds}s"
    if isinstance(st, ReturnStep):
        return f"Return {format_value(st.value)}"
    if isinstance(st, BreakStep):
        return "Break"
    if isinstance(st, CallStep):
        return f"Call {st.endpoint} -> {st.target}"
    if isinstance(st, AiClassifyStep):
        return f"Analyze with {st.model} -> {st.target}"
    if isinstance(st, UiRenderStep):
        return f"Render {st.component} -> {st.target}"
    if isinstance(st, UiStateStep):
        return f"State {st.name}"
    if isinstance(st, CssStyleStep):
        return f"Style {st.selector}"
    if isinstance(st, UiEventStep):
        return f"On {st.event} -> {st.handler}"
    return f"Step {st.id}"


def _branches(st: Step):
    if isinstance(st, IfStep):
        yield "Then", st.then
        if st.else_:
            yield "Else", st.else_
    elif isinstance(st, WhileStep):
        yield "Body", st.body


def _chain(steps: List[Step], prev: str, prefix: str, lines: List[str]) -> str:
    for st in steps:
        node = f"{prefix}{st.id}"
        lines.append(f'    {node}["{_escape(step_label(st))}"]')
        lines.append(f"    {prev} --> {node}")
        for label, children in _branches(st):
            anchor = f"{node}_{label.upper()}"
            lines.append(f"    {node} -->|{label}| {anchor}[{label}]")
            _chain(children, anchor, f"{anchor}_", lines)
        prev = node
    return prev


def render_mermaid(workflow) -> str:
    """Deterministic diagram text; a missing workflow renders as the empty graph."""
    steps = list(getattr(workflow, "steps", None) or [])
    lines = ["graph TD", "    START([Start])"]
    if not steps:
        lines.append("    START --> EMPTY[No steps] --> END([End])")
        return "\n".join(lines)
    last = _chain(steps, "START", "", lines)
    lines.append(f"    {last} --> END([End])")
    return "\n".join(lines)
