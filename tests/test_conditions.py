import re

import pytest

from stepweave.conditions import (
    And, Compare, Or, RegexContains, constant_false, format_condition,
    parse_comparative, parse_condition,
)
from stepweave.expr import Literal, VariableRef


def cmp(name, op, value):
    return Compare(VariableRef(name), op, Literal(value))

def test_simple_comparison():
    assert parse_condition("x > 2") == cmp("x", ">", 2)

@pytest.mark.parametrize("text,op", [
    ("x >= 10", ">="), ("x <= 10", "<="), ("x === 10", "==="), ("x !== 10", "!=="),
    ("x == 10", "=="), ("x != 10", "!="), ("x < 10", "<"),
])
def test_longest_operator_wins(text, op):
    assert parse_condition(text) == cmp("x", op, 10)

def test_right_operand_kinds():
    assert parse_condition("done == true") == cmp("done", "==", True)
    assert parse_condition("env === 'prod'") == cmp("env", "===", "prod")
    assert parse_condition("a < b") == Compare(VariableRef("a"), "<", VariableRef("b"))

def test_contains_builds_escaped_pattern():
    c = parse_condition("path contains 'a.b'")
    assert c == RegexContains("path", "a.b")
    assert c.pattern == ".*" + re.escape("a.b") + ".*"
    assert c.to_dict() == {"type": "RegexContains", "input": "path", "pattern": c.pattern}

def test_contains_keyword_is_case_insensitive():
    assert parse_condition("msg CONTAINS error") == RegexContains("msg", "error")

def test_contains_with_empty_side_is_constant_false():
    assert parse_condition("msg contains") == constant_false()

def test_connectives_group_to_the_right():
    c = parse_condition("a > 1 && b < 2 || c == 3")
    assert c == And(cmp("a", ">", 1), Or(cmp("b", "<", 2), cmp("c", "==", 3)))

def test_or_then_and():
    c = parse_condition("a > 1 || b > 2 && c > 3")
    assert isinstance(c, Or) and isinstance(c.right, And)

def test_long_chain_stays_right_nested():
    c = parse_condition(" && ".join(["a > 1"] * 10))
    for _ in range(9):
        assert isinstance(c, And)
        assert c.left == cmp("a", ">", 1)
        c = c.right
    assert c == cmp("a", ">", 1)

def test_overlong_chain_is_constant_false():
    assert parse_condition(" && ".join(["a > 1"] * 1200)) == constant_false()

def test_empty_and_brace_only_are_constant_false():
    assert parse_condition("") == constant_false()
    assert parse_condition("{}") == constant_false()
    assert constant_false() == Compare(Literal(False), "===", Literal(True))

def test_fallback_is_truthiness_check():
    assert parse_condition("is_ready") == Compare(VariableRef("is_ready"), "===", Literal(True))

def test_unknown_operator_rejected():
    with pytest.raises(ValueError):
        Compare(VariableRef("x"), "=~", Literal(1))

def test_format_condition():
    assert format_condition(parse_condition("x > 2")) == "x > 2"
    assert format_condition(parse_condition("a > 1 && b < 2")) == "(a > 1 && b < 2)"

# ---- English comparatives ----

def test_at_least_ge():
    assert parse_comparative("score is at least 90") == cmp("score", ">=", 90)

def test_at_most_le():
    assert parse_comparative("tries are at most 3") == cmp("tries", "<=", 3)

def test_greater_than_gt():
    assert parse_comparative("age is greater than 18") == cmp("age", ">", 18)

def test_fewer_than_lt():
    assert parse_comparative("count fewer than 5") == cmp("count", "<", 5)

def test_equals_200():
    assert parse_comparative("status equals 200") == cmp("status", "==", 200)

def test_is_not_ne():
    assert parse_comparative("status is not 200") == cmp("status", "!=", 200)

def test_string_rhs():
    assert parse_comparative("env equal to 'prod'") == cmp("env", "==", "prod")

def test_comparatives_reach_parse_condition():
    assert parse_condition("score is at least 90") == cmp("score", ">=", 90)

def test_non_comparative_gives_none():
    assert parse_comparative("the weather is nice today") is None
