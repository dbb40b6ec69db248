import re

import pytest

from stepweave import CompileOptions, ListRecorder, compile_workflow, validate_document
from stepweave.compiler import collect_reads, collect_writes
from stepweave.commands import parse_sentence
from stepweave.context import CompilationContext
from stepweave.conditions import constant_false
from stepweave.expr import Literal
from stepweave.steps import IfStep, SetStep


REPEAT_PROGRAM = "set x to 0\nrepeat set x to x+1 3 times"

def test_repeat_program_types_output_as_number():
    res = compile_workflow(REPEAT_PROGRAM)
    assert res.ok
    assert res.diagnostics == []
    assert res.workflow.outputs["x"] == "number"
    assert res.workflow.outputs["_loop_counter_step2"] == "number"
    assert res.diagram.startswith("graph TD")

def test_unrecognized_only_program_fails():
    res = compile_workflow("frobnicate the whatsit")
    assert res.workflow is None
    assert not res.ok
    assert res.diagnostics[0] == "Unrecognized command: frobnicate the whatsit"
    assert any(d.startswith("Validation error: $.steps") for d in res.diagnostics[1:])
    assert res.diagram is None

def test_if_else_program():
    res = compile_workflow("if x > 2 then set y to 1 else set y to 0")
    assert res.ok, res.diagnostics
    (st,) = res.workflow.steps
    assert isinstance(st, IfStep)
    assert len(st.then) == 1 and isinstance(st.then[0], SetStep)
    assert len(st.else_) == 1 and isinstance(st.else_[0], SetStep)
    assert res.workflow.outputs == {"y": "number"}
    assert res.workflow.inputs == {"x": "string"}

@pytest.mark.parametrize("text", [None, 42, "", "   \n\t  "])
def test_empty_or_non_string_input(text):
    res = compile_workflow(text)
    assert res.workflow is None
    assert res.diagnostics == ["Input must be a non-empty string"]
    assert res.diagram is None

def test_blank_lines_ignored_and_order_kept():
    res = compile_workflow("\n  set a to 1\n\n   set b to 2  \n")
    assert [st.target for st in res.workflow.steps] == ["a", "b"]

def test_recoverable_errors_do_not_stop_compilation():
    res = compile_workflow("set x to 1\nfrobnicate\nset y to 2")
    assert res.ok
    assert res.diagnostics == ["Unrecognized command: frobnicate"]
    assert len(res.workflow.steps) == 2

def test_inputs_cover_every_variable_read():
    res = compile_workflow(
        "set total to price * qty\n"
        "if message contains error then set flag to true\n"
        "analyze signal with detector"
    )
    assert res.ok, res.diagnostics
    assert set(res.workflow.inputs) == {"price", "qty", "message", "signal"}
    assert set(res.workflow.outputs) == {"total", "flag"}

def test_input_types_come_from_type_map():
    res = compile_workflow("set n to 1\nset m to n + 1")
    assert res.workflow.inputs == {"n": "number"}

def test_document_shape():
    res = compile_workflow(REPEAT_PROGRAM, CompileOptions(author="ops-team", tags=["billing"]))
    doc = res.document
    assert re.match(r"^workflow_[0-9a-f]{32}$", doc["function"])
    assert doc["function"] == res.workflow.function
    assert doc["metadata"]["schema_version"] == "2.0.0"
    assert doc["metadata"]["author"] == "ops-team"
    assert doc["metadata"]["tags"] == ["billing"]
    assert doc["schema"]["outputs"]["x"]["type"] == "number"
    assert doc["schema"]["nl_context"]["prompts"] == [{"language": "en", "text": "set x to 0"}]
    assert doc["tests"][0]["expected"] == {"x": None, "_loop_counter_step2": None}
    assert validate_document(doc) == []

def test_model_registry_from_steps_and_values():
    res = compile_workflow("analyze x with detector\nset y to classify sentiment x")
    assert res.ok, res.diagnostics
    assert sorted(res.document["model_registry"]) == ["detector", "sentiment"]
    assert res.document["model_registry"]["detector"]["capabilities"] == ["classification"]

def test_bad_options_fail_validation():
    res = compile_workflow("set x to 1", CompileOptions(priority="urgent"))
    assert res.workflow is None
    assert any(d.startswith("Validation error: $.execution_policy.priority") for d in res.diagnostics)

def test_missing_schema_becomes_diagnostic(tmp_path):
    res = compile_workflow("set x to 1", CompileOptions(schema_path=tmp_path / "missing.json"))
    assert res.workflow is None
    assert len(res.diagnostics) == 1
    assert res.diagnostics[0].startswith("Cannot read workflow schema")

def test_broken_schema_becomes_diagnostic(tmp_path):
    p = tmp_path / "broken.json"
    p.write_text("{not json", encoding="utf-8")
    res = compile_workflow("set x to 1\nfrobnicate", CompileOptions(schema_path=p))
    assert res.workflow is None
    assert res.diagnostics[0] == "Unrecognized command: frobnicate"
    assert "not valid JSON" in res.diagnostics[1]

def test_recorder_called_only_on_success():
    rec = ListRecorder()
    compile_workflow("frobnicate", recorder=rec)
    assert rec.entries == []
    compile_workflow(REPEAT_PROGRAM, recorder=rec)
    assert len(rec.entries) == 5

def test_calls_do_not_share_state():
    a = compile_workflow("set x to 1\nfrobnicate")
    b = compile_workflow("set y to true")
    assert b.diagnostics == []
    assert a.workflow.steps[0].id == b.workflow.steps[0].id == "step1"
    assert "x" not in b.workflow.type_map
    assert a.workflow.function != b.workflow.function

def test_visitors_walk_nested_steps():
    ctx = CompilationContext()
    steps = parse_sentence("if a > b then set c to d + 1 else set e to f", ctx)
    assert collect_reads(steps) == ["a", "b", "d", "f"]
    assert collect_writes(steps) == ["c", "e"]

def test_repeat_then_return_program():
    res = compile_workflow("set x to 0\nrepeat set x to x + 1 3 times\nreturn x")
    assert res.ok
    assert res.diagnostics == []
    assert res.workflow.outputs["x"] == "number"
    assert res.workflow.steps[-1].type == "return"

def test_document_timestamps_can_be_pinned():
    res = compile_workflow("set x to 1")
    doc = res.workflow.to_document(now="2026-01-01T00:00:00Z")
    assert doc["metadata"]["created"] == doc["metadata"]["updated"] == "2026-01-01T00:00:00Z"
    assert validate_document(doc) == []

def test_deeply_parenthesized_value_compiles_as_text():
    raw = "(" * 400 + "1" + ")" * 400
    res = compile_workflow("set x to " + raw)
    assert res.ok, res.diagnostics
    assert res.workflow.steps[0].value == Literal(raw)
    assert res.workflow.outputs["x"] == "string"

def test_very_long_condition_compiles_as_constant_false():
    res = compile_workflow("if " + " && ".join(["a > 1"] * 1200) + " then break")
    assert res.ok, res.diagnostics
    st = res.workflow.steps[0]
    assert isinstance(st, IfStep)
    assert st.condition == constant_false()
