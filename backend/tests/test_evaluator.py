"""Expression evaluator tests: operator semantics, scopes and rendering."""

import pytest

from backend.indiscript.errors import IndiscriptRuntimeError
from backend.indiscript.evaluator import (
    UNDEFINED,
    Evaluator,
    Scope,
    binary_op,
    global_scope,
    render,
    truthy,
)
from backend.indiscript.lexer import tokenize
from backend.indiscript.parser import parse


def _no_calls(fn, args, line):
    raise AssertionError("user function called unexpectedly")


def evaluate(src, scope=None):
    (stmt,) = parse(tokenize(src)).body
    return Evaluator(_no_calls).evaluate(stmt.expr, scope or global_scope())


def test_arithmetic_and_precedence():
    assert evaluate("1 + 2 * 3") == 7
    assert evaluate("(1 + 2) * 3") == 9
    assert evaluate("-3 + 5") == 2
    assert evaluate("10 - 4 - 3") == 3


def test_division_truncates_toward_zero():
    assert binary_op("/", 7, 2) == 3
    assert binary_op("/", -7, 2) == -3
    assert binary_op("%", -7, 2) == -1
    assert binary_op("%", 7, -2) == 1


def test_division_by_zero():
    with pytest.raises(IndiscriptRuntimeError, match="division by zero"):
        binary_op("/", 1, 0)
    with pytest.raises(IndiscriptRuntimeError, match="division by zero"):
        binary_op("%", 1, 0)


def test_plus_concatenates_text():
    assert binary_op("+", "a", 1) == "a1"
    assert binary_op("+", 1, "a") == "1a"
    assert binary_op("+", "x", True) == "xtrue"
    assert binary_op("+", "v", [1, 2]) == "v[1, 2]"


def test_arithmetic_rejects_non_integers():
    with pytest.raises(IndiscriptRuntimeError, match="type mismatch"):
        binary_op("-", True, 1)
    with pytest.raises(IndiscriptRuntimeError, match="type mismatch"):
        binary_op("*", "ab", 2)


def test_comparisons():
    assert binary_op("<", 1, 2) is True
    assert binary_op(">=", 2, 2) is True
    assert binary_op("<", "a", "b") is True
    with pytest.raises(IndiscriptRuntimeError, match="type mismatch"):
        binary_op("<", 1, "a")


def test_equality_across_types_is_false():
    assert binary_op("==", 1, "1") is False
    assert binary_op("!=", 1, "1") is True
    assert binary_op("==", True, 1) is False
    assert binary_op("==", [1, "a"], [1, "a"]) is True
    assert binary_op("==", [1], [True]) is False


def test_unary_operators():
    assert evaluate("!0") is True
    assert evaluate('!"x"') is False
    with pytest.raises(IndiscriptRuntimeError, match="type mismatch"):
        evaluate('-"x"')


def test_true_and_false_names():
    assert evaluate("true") is True
    assert evaluate("false") is False
    scope = global_scope()
    scope.declare("true", 0)
    assert evaluate("true", scope) == 0


def test_array_literal_and_indexing():
    assert evaluate("[1, 2 + 3, [4]]") == [1, 5, [4]]
    scope = global_scope()
    scope.declare("a", [10, 20])
    assert evaluate("a[1]", scope) == 20
    assert evaluate('"abc"[2]') == "c"
    with pytest.raises(IndiscriptRuntimeError, match="index out of range"):
        evaluate("a[5]", scope)


def test_length_builtin():
    assert evaluate('length("abc")') == 3
    assert evaluate("length([1, 2])") == 2
    with pytest.raises(IndiscriptRuntimeError, match="length expects"):
        evaluate("length(1, 2)")


def test_calling_a_non_function():
    scope = global_scope()
    scope.declare("x", 3)
    with pytest.raises(IndiscriptRuntimeError, match="x is not a function"):
        evaluate("x()", scope)


def test_scope_chain_lookup_and_assignment():
    outer = Scope()
    outer.declare("x", 1)
    inner = outer.child()
    assert inner.lookup("x") == 1
    inner.assign("x", 2)
    assert outer.vars["x"] == 2
    inner.declare("x", 3)
    assert inner.lookup("x") == 3
    assert outer.lookup("x") == 2
    with pytest.raises(IndiscriptRuntimeError, match="undefined variable y"):
        inner.lookup("y")
    with pytest.raises(IndiscriptRuntimeError, match="undefined variable y"):
        inner.assign("y", 1)


def test_assignment_expression_updates_scope():
    scope = global_scope()
    scope.declare("x", 1)
    assert evaluate("x = x + 4", scope) == 5
    assert scope.lookup("x") == 5


def test_render_and_truthy():
    assert render([1, "a", True, [False]]) == "[1, a, true, [false]]"
    assert render(UNDEFINED) == "undefined"
    assert [truthy(v) for v in (0, 5, "", "x", True, False, [], [0], UNDEFINED)] == [
        False,
        True,
        False,
        True,
        True,
        False,
        False,
        True,
        False,
    ]


def test_integer_results_are_capped():
    assert binary_op("*", 10**1999, 10**1999) == 10**3998
    with pytest.raises(IndiscriptRuntimeError, match="value too large"):
        binary_op("*", 10**3999, 10**3999)
    with pytest.raises(IndiscriptRuntimeError, match="value too large"):
        binary_op("+", 2**13286, 2**13286)


def test_concatenation_is_capped():
    assert binary_op("+", "ab", "cd", max_chars=4) == "abcd"
    with pytest.raises(IndiscriptRuntimeError, match="value too large"):
        binary_op("+", "abc", "de", max_chars=4)
