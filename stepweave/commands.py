# stepweave/commands.py
# Ordered command registry: (verb, pattern, builder). The first pattern that matches
# the trimmed line wins, so order encodes precedence among overlapping verbs.
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Callable, List

from .conditions import Compare, parse_condition
from .context import CompilationContext
from .expr import Classify, Literal, VariableRef, BinaryOp, parse_expression
from .inference import NUMBER, STRING, TENSOR, infer_type
from .names import is_identifier, loop_counter_name
from .steps import (
    AiClassifyStep, BreakStep, CallStep, CssStyleStep, IfStep, ReturnStep, SetStep,
    Step, UiEventStep, UiRenderStep, UiStateStep, Value, WaitStep, WhileStep,
)
from .tokenizer import MAX_NESTING, QUOTED_RE, coerce_number

logger = logging.getLogger(__name__)

Builder = Callable[[re.Match, CompilationContext], List[Step]]


@dataclass(frozen=True)
class CommandRule:
    verb: str
    pattern: re.Pattern
    build: Builder


# ----------------------------- value building ---------------------------------

_CLASSIFY_RE = re.compile(r'^(?:predict|classify)\s+(\w+)\s+(.+)$', re.IGNORECASE)
_BARE_IDENT_RE = re.compile(r'^\w+$')


def build_value(raw: str) -> Value:
    """Value text → Classify | Condition | Expression. Quoted text is always
    a string literal, even when it holds && or ||."""
    text = (raw or "").strip()

    m = _CLASSIFY_RE.match(text)
    if m:
        return Classify(m.group(1), build_expression(m.group(2)))

    if not QUOTED_RE.match(text) and ("&&" in text or "||" in text):
        return parse_condition(text)

    return build_expression(text)


def build_expression(raw: str):
    """Quoted text, then a lone number, then arithmetic, then a variable, then raw text."""
    text = (raw or "").strip()
    m = QUOTED_RE.match(text)
    if m:
        return Literal(m.group(2))
    num = coerce_number(text)
    if num is not None:
        return Literal(num)
    expr = parse_expression(text)
    if expr is not None:
        return expr
    if _BARE_IDENT_RE.match(text):
        return VariableRef(text)
    return Literal(text)


# ----------------------------- verb builders ----------------------------------

def _macro(m: re.Match, ctx: CompilationContext) -> List[Step]:
    name, body = m.group(1), m.group(2)
    ctx.define_macro(name, parse_sentence(body, ctx))
    return []


def _call_endpoint(m: re.Match, ctx: CompilationContext) -> List[Step]:
    endpoint, target = m.group(1), m.group(2)
    ctx.record_type(target, STRING)
    return [CallStep(ctx.next_id(), target=target, endpoint=endpoint,
                     nl_phrase=f"call {endpoint} store in {target}")]


def _call_macro(m: re.Match, ctx: CompilationContext) -> List[Step]:
    name = m.group(1)
    template = ctx.get_macro(name)
    if template is None:
        ctx.add_error(f"Unknown macro: {name}")
        return []
    if not template:
        ctx.add_error(f"Macro {name} has no steps")
        return []
    return ctx.expand_macro(name)


def _count_loop(body_text: str, times_text: str, phrase: str, ctx: CompilationContext) -> List[Step]:
    times = coerce_number(times_text)
    if not body_text.strip() or not isinstance(times, int):
        ctx.add_error(f"Invalid repeat command: {phrase}")
        return []
    loop_id = ctx.next_id()
    counter = loop_counter_name(loop_id)
    ctx.record_type(counter, NUMBER)
    init = SetStep(ctx.next_id(), target=counter, value=Literal(0))
    body = parse_sentence(body_text, ctx)
    inc = SetStep(ctx.next_id(), target=counter,
                  value=BinaryOp("add", VariableRef(counter), Literal(1)))
    loop = WhileStep(loop_id,
                     condition=Compare(VariableRef(counter), "<", Literal(times)),
                     body=[*body, inc],
                     nl_phrase=phrase)
    return [init, loop]


def _repeat(m: re.Match, ctx: CompilationContext) -> List[Step]:
    return _count_loop(m.group(1), m.group(2), m.group(0), ctx)


def _for_times(m: re.Match, ctx: CompilationContext) -> List[Step]:
    return _count_loop(m.group(2), m.group(1), m.group(0), ctx)


def _if(m: re.Match, ctx: CompilationContext) -> List[Step]:
    cond_text, then_text, else_text = m.group(1), m.group(2), m.group(3)
    condition = parse_condition(cond_text)
    then_steps = parse_sentence(then_text, ctx)
    else_steps = parse_sentence(else_text, ctx) if else_text else []
    return [IfStep(ctx.next_id(), condition=condition, then=then_steps, else_=else_steps,
                   nl_phrase=m.group(0))]


def _wait(m: re.Match, ctx: CompilationContext) -> List[Step]:
    seconds = coerce_number(m.group(1))
    if not isinstance(seconds, int) or seconds < 0:
        ctx.add_error(f"Invalid wait duration: {m.group(1)}")
        return []
    return [WaitStep(ctx.next_id(), seconds=seconds)]


def _set(m: re.Match, ctx: CompilationContext) -> List[Step]:
    target, raw = m.group(1), m.group(2)
    if not is_identifier(target):
        ctx.add_error(f"Invalid variable name: {target}")
        return []
    value = build_value(raw)
    ctx.record_type(target, infer_type(value))
    return [SetStep(ctx.next_id(), target=target, value=value,
                    nl_phrase=f"set {target} to {raw.strip()}")]


def _break(m: re.Match, ctx: CompilationContext) -> List[Step]:
    return [BreakStep(ctx.next_id())]


def _return(m: re.Match, ctx: CompilationContext) -> List[Step]:
    raw = (m.group(1) or "").strip()
    if not raw:
        ctx.add_error("Return statement requires a value")
        return []
    return [ReturnStep(ctx.next_id(), value=build_value(raw), nl_phrase=f"return {raw}")]


def _analyze(m: re.Match, ctx: CompilationContext) -> List[Step]:
    raw, model = m.group(1), m.group(2)
    target = f"result_{model}"
    ctx.record_type(target, TENSOR)
    return [AiClassifyStep(ctx.next_id(), model=model, input=build_expression(raw), target=target,
                           nl_phrase=f"analyze {raw} with {model}")]


def _render(m: re.Match, ctx: CompilationContext) -> List[Step]:
    return [UiRenderStep(ctx.next_id(), component=m.group(1), target=m.group(2))]


def _state(m: re.Match, ctx: CompilationContext) -> List[Step]:
    name, raw = m.group(1), m.group(2)
    return [UiStateStep(ctx.next_id(), name=name, initial=build_expression(raw),
                        nl_phrase=f"state {name} as {raw.strip()}")]


def _style(m: re.Match, ctx: CompilationContext) -> List[Step]:
    selector, props = m.group(1), m.group(2)
    properties = [p.strip() for p in props.split(",") if p.strip()]
    return [CssStyleStep(ctx.next_id(), selector=selector, properties=properties,
                         nl_phrase=f"style {selector} with {props.strip()}")]


def _on(m: re.Match, ctx: CompilationContext) -> List[Step]:
    return [UiEventStep(ctx.next_id(), event=m.group(1), handler=m.group(2))]


# ----------------------------- registry ---------------------------------------

def _rule(verb: str, pattern: str, build: Builder) -> CommandRule:
    return CommandRule(verb, re.compile(pattern, re.IGNORECASE), build)


COMMANDS: List[CommandRule] = [
    _rule("macro", r'^macro\s+(\w+)\s+(.+)$', _macro),
    _rule("call", r'^call\s+(\S+)\s+store\s+in\s+(\w+)$', _call_endpoint),
    _rule("call", r'^call\s+(\w+)$', _call_macro),
    _rule("repeat", r'^(?:repeat|loop)\s+(.+?)\s+(\d+)\s+times$', _repeat),
    _rule("for", r'^for\s+(\d+)\s+times\s+(.+)$', _for_times),
    _rule("if", r'^if\s+(.+?)\s+then\s+(.+?)(?:\s+else\s+(.+))?$', _if),
    _rule("wait", r'^wait\s+(\S+)\s+seconds?$', _wait),
    _rule("set", r'^(?:set|assign)\s+(\S+)\s+to\s+(.+)$', _set),
    _rule("break", r'^break$', _break),
    _rule("return", r'^return(?:\s+(.*))?$', _return),
    _rule("analyze", r'^analyze\s+(.+?)\s+with\s+(\w+)$', _analyze),
    _rule("render", r'^render\s+(\w+)\s+as\s+(\w+)$', _render),
    _rule("state", r'^state\s+(\w+)\s+as\s+(.+)$', _state),
    _rule("style", r'^style\s+(\S+)\s+with\s+(.+)$', _style),
    _rule("on", r'^on\s+(\w+)\s+execute\s+(\w+)$', _on),
]


def parse_sentence(text: str, ctx: CompilationContext) -> List[Step]:
    """Dispatch one command line. Unmatched lines add a diagnostic and yield no steps.

    Clauses nested more than MAX_NESTING deep (if-in-if, loop-in-loop, macro
    bodies) are rejected with a diagnostic.
    """
    line = (text or "").strip()
    if ctx.nesting >= MAX_NESTING:
        ctx.add_error(f"Command nested too deeply: {line}")
        return []
    for rule in COMMANDS:
        m = rule.pattern.match(line)
        if m:
            logger.debug("dispatch %r -> %s", line, rule.verb)
            ctx.nesting += 1
            try:
                return rule.build(m, ctx)
            finally:
                ctx.nesting -= 1
    ctx.add_error(f"Unrecognized command: {line}")
    return []
