# stepweave/compiler.py
# Command text -> validated workflow.
#
#   text -> lines -> parse_sentence (shared context) -> steps
#        -> inputs / outputs (tree visitor) -> workflow document
#        -> schema gate -> (workflow + diagram) | diagnostics

from __future__ import annotations
import datetime as _dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .commands import parse_sentence
from .conditions import And, Compare, Or, RegexContains
from .config import SCHEMA_VERSION, CompileOptions
from .context import CompilationContext
from .errors import SchemaLoadError
from .expr import BinaryOp, Classify, VariableRef
from .inference import STRING
from .mermaid import render_mermaid
from .names import workflow_function_name
from .receipts import StepRecorder, record_steps
from .steps import (
    AiClassifyStep, IfStep, ReturnStep, SetStep, Step, UiStateStep, WhileStep,
    EXECUTE, walk,
)
from .verifier import load_schema, validate_document

logger = logging.getLogger(__name__)

EMPTY_INPUT = "Input must be a non-empty string"


def _now_utc_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


# ---- Visitors ----

def _value_reads(node: Any) -> Iterator[str]:
    """Variable names read by an expression or condition, in document order."""
    if isinstance(node, VariableRef):
        yield node.name
    elif isinstance(node, BinaryOp):
        yield from _value_reads(node.left)
        yield from _value_reads(node.right)
    elif isinstance(node, Classify):
        yield from _value_reads(node.input)
    elif isinstance(node, Compare):
        yield from _value_reads(node.left)
        yield from _value_reads(node.right)
    elif isinstance(node, (And, Or)):
        yield from _value_reads(node.left)
        yield from _value_reads(node.right)
    elif isinstance(node, RegexContains):
        yield node.input


def _step_reads(st: Step) -> Iterator[str]:
    if isinstance(st, (SetStep, ReturnStep)):
        yield from _value_reads(st.value)
    elif isinstance(st, (IfStep, WhileStep)):
        yield from _value_reads(st.condition)
    elif isinstance(st, AiClassifyStep):
        yield from _value_reads(st.input)
    elif isinstance(st, UiStateStep):
        yield from _value_reads(st.initial)


def collect_reads(steps: List[Step]) -> List[str]:
    """Every variable name read anywhere in the tree (first occurrence order, no repeats)."""
    seen: Dict[str, None] = {}
    for st, _ in walk(steps):
        for name in _step_reads(st):
            seen.setdefault(name, None)
    return list(seen)


def collect_writes(steps: List[Step]) -> List[str]:
    """Every name that is the target of an assignment step."""
    seen: Dict[str, None] = {}
    for st, _ in walk(steps):
        if isinstance(st, SetStep):
            seen.setdefault(st.target, None)
    return list(seen)


def collect_models(steps: List[Step]) -> List[str]:
    seen: Dict[str, None] = {}

    def from_value(node: Any) -> None:
        if isinstance(node, Classify):
            seen.setdefault(node.model, None)
            from_value(node.input)
        elif isinstance(node, (BinaryOp, Compare, And, Or)):
            from_value(node.left)
            from_value(node.right)

    for st, _ in walk(steps):
        if isinstance(st, AiClassifyStep):
            seen.setdefault(st.model, None)
        if isinstance(st, (SetStep, ReturnStep)):
            from_value(st.value)
    return list(seen)


# ---- Workflow ----

@dataclass
class Workflow:
    function: str
    steps: List[Step]
    inputs: Dict[str, str] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)
    type_map: Dict[str, str] = field(default_factory=dict)
    models: List[str] = field(default_factory=list)
    prompt: str = ""

    def to_document(self, options: Optional[CompileOptions] = None, now: Optional[str] = None) -> Dict[str, Any]:
        opts = options or CompileOptions()
        stamp = now or _now_utc_iso()
        return {
            "function": self.function,
            "metadata": {
                "schema_version": SCHEMA_VERSION,
                "version": opts.version,
                "author": opts.author,
                "description": opts.description,
                "created": stamp,
                "updated": stamp,
                "tags": list(opts.tags),
                "language": opts.language,
            },
            "schema": {
                "inputs": {
                    name: {"type": typ, "required": True, "description": f"Input {name}"}
                    for name, typ in self.inputs.items()
                },
                "context": {},
                "outputs": {
                    name: {"type": typ, "description": f"Output {name}"}
                    for name, typ in self.outputs.items()
                },
                "nl_context": {
                    "prompts": [{"language": opts.language, "text": self.prompt}],
                    "entities": dict(self.type_map),
                    "intent": opts.intent,
                    "sentiment": opts.sentiment,
                },
            },
            "steps": [st.to_dict() for st in self.steps],
            "access_policy": EXECUTE.to_dict(),
            "execution_policy": {
                "max_runs_per_minute": opts.max_runs_per_minute,
                "max_concurrent_runs": opts.max_concurrent_runs,
                "priority": opts.priority,
                "timeout": opts.timeout,
            },
            "model_registry": {
                name: {"name": name, "version": "1.0.0", "type": "classifier",
                       "source": "local", "capabilities": ["classification"]}
                for name in self.models
            },
            "tests": [{
                "name": "SmokeTest",
                "type": "unit",
                "inputs": {name: None for name in self.inputs},
                "expected": {name: None for name in self.outputs},
            }],
        }


@dataclass
class CompileResult:
    workflow: Optional[Workflow] = None
    document: Optional[Dict[str, Any]] = None
    diagnostics: List[str] = field(default_factory=list)
    diagram: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.workflow is not None


def assemble(text: str, ctx: CompilationContext) -> Workflow:
    """Dispatch each non-blank line with the shared context and derive the signature."""
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    steps: List[Step] = []
    for line in lines:
        steps.extend(parse_sentence(line, ctx))

    inputs = {name: ctx.type_map.get(name, STRING) for name in collect_reads(steps)}
    outputs = {name: ctx.type_map.get(name, STRING) for name in collect_writes(steps)}
    return Workflow(
        function=workflow_function_name(),
        steps=steps,
        inputs=inputs,
        outputs=outputs,
        type_map=dict(ctx.type_map),
        models=collect_models(steps),
        prompt=lines[0] if lines else "",
    )


def compile_workflow(text: Any, options: Optional[CompileOptions] = None, *,
                     recorder: Optional[StepRecorder] = None) -> CompileResult:
    """Compile command text into a validated workflow.

    Never raises for bad input: line problems, schema violations and schema
    load failures all come back as diagnostics with `workflow=None`.
    """
    if not isinstance(text, str) or not text.strip():
        return CompileResult(diagnostics=[EMPTY_INPUT])

    opts = options or CompileOptions()
    ctx = CompilationContext()
    workflow = assemble(text, ctx)
    document = workflow.to_document(opts)

    try:
        schema = load_schema(opts.schema_path)
    except SchemaLoadError as e:
        logger.warning("schema unavailable: %s", e)
        return CompileResult(document=document, diagnostics=[*ctx.diagnostics, str(e)])

    errors = validate_document(document, schema)
    if errors:
        logger.warning("workflow %s failed validation with %d error(s)", workflow.function, len(errors))
        return CompileResult(document=document, diagnostics=[*ctx.diagnostics, *errors])

    diagram = render_mermaid(workflow)
    if recorder is not None:
        record_steps(workflow, recorder)

    logger.debug("compiled %s: %d top-level steps, %d inputs, %d outputs, %d diagnostics",
                 workflow.function, len(workflow.steps), len(workflow.inputs),
                 len(workflow.outputs), len(ctx.diagnostics))
    return CompileResult(workflow=workflow, document=document,
                         diagnostics=list(ctx.diagnostics), diagram=diagram)
