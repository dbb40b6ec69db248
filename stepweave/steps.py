# stepweave/steps.py
# Workflow step tree. Every step carries a unique id ("step<N>"), a natural-language
# phrase, example phrases and an access-control descriptor. to_dict() produces the
# document shape checked by schemas/workflow.schema.json.

from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, FrozenSet, Iterator, List, Union

from .conditions import Condition, Compare, And, Or, RegexContains, format_condition
from .expr import Expression, format_expression

Value = Union[Expression, Condition]

# Step type tags (closed set, mirrored in the schema enum)
SET = "set"
IF = "if"
WHILE = "while"
WAIT = "wait"
RETURN = "return"
BREAK = "break"
CALL = "call"
AI_CLASSIFY = "ai_classify"
UI_RENDER = "ui_render"
UI_STATE = "ui_state"
CSS_STYLE = "css_style"
UI_EVENT = "ui_event"

STEP_TYPES = (SET, IF, WHILE, WAIT, RETURN, BREAK, CALL,
              AI_CLASSIFY, UI_RENDER, UI_STATE, CSS_STYLE, UI_EVENT)

DEFAULT_ROLES = frozenset({"admin", "user"})


@dataclass(frozen=True)
class AccessControl:
    roles: FrozenSet[str] = DEFAULT_ROLES
    permissions: FrozenSet[str] = frozenset({"execute_workflow"})

    def to_dict(self) -> Dict[str, List[str]]:
        return {"roles": sorted(self.roles), "permissions": sorted(self.permissions)}


EXECUTE = AccessControl()
VIEW_UI = AccessControl(permissions=frozenset({"view_ui"}))


def is_condition(value: Any) -> bool:
    return isinstance(value, (Compare, And, Or, RegexContains))


def format_value(value: Value) -> str:
    if is_condition(value):
        return format_condition(value)
    return format_expression(value)


@dataclass
class Step:
    id: str
    nl_phrase: str = field(default="", kw_only=True)
    nl_examples: List[str] = field(default_factory=list, kw_only=True)
    access_control: AccessControl = field(default=EXECUTE, kw_only=True)

    type: ClassVar[str] = ""

    def __post_init__(self):
        if not self.nl_phrase:
            self.nl_phrase = self.describe()
        if not self.nl_examples:
            self.nl_examples = [self.nl_phrase]

    def describe(self) -> str:
        return self.type

    def payload(self) -> Dict[str, Any]:
        return {}

    def children(self) -> List[List["Step"]]:
        """Nested step lists (branches / loop bodies)."""
        return []

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "type": self.type}
        out.update(self.payload())
        out["nl_phrase"] = self.nl_phrase
        out["nl_examples"] = list(self.nl_examples)
        out["access_control"] = self.access_control.to_dict()
        return out


@dataclass
class SetStep(Step):
    target: str
    value: Value
    type: ClassVar[str] = SET

    def describe(self) -> str:
        return f"set {self.target} to {format_value(self.value)}"

    def payload(self) -> Dict[str, Any]:
        return {"target": self.target, "value": self.value.to_dict()}


@dataclass
class IfStep(Step):
    condition: Condition
    then: List[Step]
    else_: List[Step] = field(default_factory=list)
    type: ClassVar[str] = IF

    def describe(self) -> str:
        return f"if {format_condition(self.condition)}"

    def payload(self) -> Dict[str, Any]:
        return {
            "condition": self.condition.to_dict(),
            "then": [s.to_dict() for s in self.then],
            "else": [s.to_dict() for s in self.else_],
        }

    def children(self) -> List[List[Step]]:
        return [self.then, self.else_]


@dataclass
class WhileStep(Step):
    condition: Condition
    body: List[Step]
    type: ClassVar[str] = WHILE

    def describe(self) -> str:
        return f"while {format_condition(self.condition)}"

    def payload(self) -> Dict[str, Any]:
        return {"condition": self.condition.to_dict(), "body": [s.to_dict() for s in self.body]}

    def children(self) -> List[List[Step]]:
        return [self.body]


@dataclass
class WaitStep(Step):
    seconds: int
    type: ClassVar[str] = WAIT

    def describe(self) -> str:
        return f"wait {self.seconds} seconds"

    def payload(self) -> Dict[str, Any]:
        return {"duration": {"unit": "seconds", "value": self.seconds}}


@dataclass
class ReturnStep(Step):
    value: Value
    type: ClassVar[str] = RETURN

    def describe(self) -> str:
        return f"return {format_value(self.value)}"

    def payload(self) -> Dict[str, Any]:
        return {"value": self.value.to_dict()}


@dataclass
class BreakStep(Step):
    type: ClassVar[str] = BREAK


@dataclass
class CallStep(Step):
    target: str
    endpoint: str
    type: ClassVar[str] = CALL

    def describe(self) -> str:
        return f"call {self.endpoint} store in {self.target}"

    def payload(self) -> Dict[str, Any]:
        return {"target": self.target, "endpoint": self.endpoint}


@dataclass
class AiClassifyStep(Step):
    model: str
    input: Expression
    target: str
    type: ClassVar[str] = AI_CLASSIFY

    def describe(self) -> str:
        return f"analyze {format_expression(self.input)} with {self.model}"

    def payload(self) -> Dict[str, Any]:
        return {"model": self.model, "input": self.input.to_dict(), "target": self.target}


@dataclass
class UiRenderStep(Step):
    component: str
    target: str
    props: Dict[str, Any] = field(default_factory=lambda: {"className": "bg-gray-100 p-4"})
    access_control: AccessControl = field(default=VIEW_UI, kw_only=True)
    type: ClassVar[str] = UI_RENDER

    def describe(self) -> str:
        return f"render {self.component} as {self.target}"

    def payload(self) -> Dict[str, Any]:
        return {
            "component": {"type": self.component, "props": dict(self.props), "children": [], "hooks": []},
            "target": self.target,
        }


@dataclass
class UiStateStep(Step):
    name: str
    initial: Expression
    access_control: AccessControl = field(default=VIEW_UI, kw_only=True)
    type: ClassVar[str] = UI_STATE

    def describe(self) -> str:
        return f"state {self.name} as {format_expression(self.initial)}"

    def payload(self) -> Dict[str, Any]:
        return {"state": {"name": self.name, "initial": self.initial.to_dict()}}


@dataclass
class CssStyleStep(Step):
    selector: str
    properties: List[str]
    framework: str = "tailwind"
    access_control: AccessControl = field(default=VIEW_UI, kw_only=True)
    type: ClassVar[str] = CSS_STYLE

    def describe(self) -> str:
        return f"style {self.selector} with {', '.join(self.properties)}"

    def payload(self) -> Dict[str, Any]:
        return {"styles": {"selector": self.selector,
                           "properties": list(self.properties),
                           "framework": self.framework}}


@dataclass
class UiEventStep(Step):
    event: str
    handler: str
    access_control: AccessControl = field(default=VIEW_UI, kw_only=True)
    type: ClassVar[str] = UI_EVENT

    def describe(self) -> str:
        return f"on {self.event} execute {self.handler}"

    def payload(self) -> Dict[str, Any]:
        return {"event": {"type": self.event, "handler": self.handler}}


# ----------------------------- tree helpers -----------------------------------

def walk(steps: List[Step], depth: int = 0) -> Iterator[tuple]:
    """Depth-first (step, depth) pairs in document order."""
    for st in steps:
        yield st, depth
        for branch in st.children():
            yield from walk(branch, depth + 1)


def clone_with_fresh_ids(steps: List[Step], next_id: Callable[[], str]) -> List[Step]:
    """Deep copy a step list, issuing a new id to every step (parents before children)."""
    out = copy.deepcopy(steps)
    for st, _ in walk(out):
        st.id = next_id()
    return out
