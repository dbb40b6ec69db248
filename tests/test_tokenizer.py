from stepweave.tokenizer import (
    tokenize, sanitize_input, sanitize_condition, coerce_number, is_number_token,
)

def test_arithmetic_tokens():
    assert tokenize("2 + 3 * 4") == ["2", "+", "3", "*", "4"]

def test_parens_and_identifiers():
    assert tokenize("(count_1 - x)/2") == ["(", "count_1", "-", "x", ")", "/", "2"]

def test_unknown_characters_dropped():
    assert tokenize("a $ b") == ["a", "b"]
    assert tokenize("x<>{}+1") == ["x", "+", "1"]

def test_digits_followed_by_letters_are_one_identifier():
    assert tokenize("12abc") == ["12abc"]
    assert not is_number_token("12abc")
    assert is_number_token("3.25")

def test_sanitize_strips_angle_and_curly_brackets():
    assert sanitize_input("  {x} < y >  ") == "x  y"

def test_condition_sanitize_keeps_comparisons():
    assert sanitize_condition(" {x} > 2 ") == "x > 2"

def test_non_string_sanitizes_to_empty():
    assert sanitize_input(None) == ""
    assert tokenize(None) == []

def test_coerce_number():
    assert coerce_number("42") == 42 and isinstance(coerce_number("42"), int)
    assert coerce_number("-3") == -3
    assert coerce_number("2.5") == 2.5
    assert coerce_number("abc") is None
    assert coerce_number("") is None
