"""Runtime values, scopes and expression evaluation for Indiscript.

Values map onto plain Python objects:

- Integer -> `int`
- Text -> `str`
- Boolean -> `bool`
- Array -> `list`
- Function -> `Function` (user closure) or `Builtin`
- Undefined -> the `UNDEFINED` singleton

`bool` is a subclass of `int` in Python, so every type check below tests for
`bool` before `int`. Operator semantics are explicit here instead of being
borrowed from Python: booleans are not numbers, `/` truncates toward zero and
ordering comparisons need two integers or two texts.

Values cannot grow without bound: integers are capped at `MAX_INT_DIGITS`
decimal digits and text at a configurable number of characters
(`DEFAULT_MAX_VALUE_CHARS`). Going over either raises "value too large".
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import nodes
from .errors import IndiscriptRuntimeError, InternalInvariantError


# stays below the interpreter's default int to str conversion limit (4300 digits)
MAX_INT_DIGITS = 4000
_MAX_INT_BITS = int(MAX_INT_DIGITS * 3.3219)
DEFAULT_MAX_VALUE_CHARS = 100_000


class _Undefined:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class Scope:
    """One frame of the scope chain.

    Each scope owns its `vars` mapping; `parent` is only followed for lookup
    and assignment, never used to mutate the parent's bindings wholesale.
    """

    def __init__(self, parent: Optional["Scope"] = None):
        self.vars: Dict[str, Any] = {}
        self.parent = parent

    def child(self) -> "Scope":
        return Scope(self)

    def declare(self, name: str, value: Any) -> None:
        # shadows any binding of the same name further out
        self.vars[name] = value

    def find(self, name: str) -> Optional["Scope"]:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.vars:
                return scope
            scope = scope.parent
        return None

    def lookup(self, name: str, line: int = 0) -> Any:
        scope = self.find(name)
        if scope is None:
            raise IndiscriptRuntimeError(f"undefined variable {name}", line=line or None)
        return scope.vars[name]

    def assign(self, name: str, value: Any, line: int = 0) -> None:
        scope = self.find(name)
        if scope is None:
            raise IndiscriptRuntimeError(f"undefined variable {name}", line=line or None)
        scope.vars[name] = value


@dataclass(eq=False)
class Function:
    name: str
    params: List[str]
    body: List[nodes.Stmt]
    # the scope the function was declared in
    closure: Scope = field(repr=False)


@dataclass(eq=False)
class Builtin:
    name: str
    arity: int
    impl: Callable[..., Any] = field(repr=False)


def type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, str):
        return "text"
    if isinstance(value, list):
        return "array"
    if isinstance(value, (Function, Builtin)):
        return "function"
    return "undefined"


def render(value: Any) -> str:
    """Text printed for `value`; also used by `+` concatenation."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, str)):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(render(v) for v in value) + "]"
    if isinstance(value, Function):
        return f"<function {value.name}>"
    if isinstance(value, Builtin):
        return f"<builtin {value.name}>"
    return "undefined"


def truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, str, list)):
        return bool(value)
    if isinstance(value, (Function, Builtin)):
        return True
    return False


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def values_equal(a: Any, b: Any) -> bool:
    """Equality for `==`/`!=`; values of different kinds are never equal."""
    if type_name(a) != type_name(b):
        return False
    if isinstance(a, list):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (Function, Builtin)):
        return a is b
    return a == b


def _divide(a: int, b: int, line: int) -> int:
    if b == 0:
        raise IndiscriptRuntimeError("division by zero", line=line)
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _modulo(a: int, b: int, line: int) -> int:
    # remainder takes the sign of the dividend
    return a - b * _divide(a, b, line)


_ARITHMETIC = {
    "+": lambda a, b, line: a + b,
    "-": lambda a, b, line: a - b,
    "*": lambda a, b, line: a * b,
    "/": _divide,
    "%": _modulo,
}

_ORDERING = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
}


def _too_large(line: Optional[int]) -> IndiscriptRuntimeError:
    return IndiscriptRuntimeError("value too large", line=line)


def binary_op(
    op: str,
    left: Any,
    right: Any,
    line: int = 0,
    max_chars: int = DEFAULT_MAX_VALUE_CHARS,
) -> Any:
    """Apply a binary operator to two evaluated operands.

    `max_chars` bounds the length of text produced by `+`; integer results
    are bounded by `MAX_INT_DIGITS`.
    """
    line_no = line or None
    if op == "+" and (isinstance(left, str) or isinstance(right, str)):
        left_text, right_text = render(left), render(right)
        if len(left_text) + len(right_text) > max_chars:
            raise _too_large(line_no)
        return left_text + right_text
    if op in _ARITHMETIC:
        if not (_is_int(left) and _is_int(right)):
            raise IndiscriptRuntimeError(
                f"type mismatch: cannot apply '{op}' to {type_name(left)} and {type_name(right)}",
                line=line_no,
            )
        # reject before multiplying; the product has at least this many bits minus one
        if op == "*" and left.bit_length() + right.bit_length() > _MAX_INT_BITS + 1:
            raise _too_large(line_no)
        result = _ARITHMETIC[op](left, right, line_no)
        if result.bit_length() > _MAX_INT_BITS:
            raise _too_large(line_no)
        return result
    if op == "==":
        return values_equal(left, right)
    if op == "!=":
        return not values_equal(left, right)
    if op in _ORDERING:
        comparable = (_is_int(left) and _is_int(right)) or (
            isinstance(left, str) and isinstance(right, str)
        )
        if not comparable:
            raise IndiscriptRuntimeError(
                f"type mismatch: cannot compare {type_name(left)} and {type_name(right)} with '{op}'",
                line=line_no,
            )
        return _ORDERING[op](left, right)
    raise InternalInvariantError(f"unknown binary operator '{op}'", line=line_no)


def _length(value: Any) -> int:
    if isinstance(value, (str, list)):
        return len(value)
    raise IndiscriptRuntimeError(f"type mismatch: length expects text or array, got {type_name(value)}")


BUILTINS = {
    "length": Builtin("length", 1, _length),
}


def global_scope() -> Scope:
    """Fresh outermost scope holding the builtins; programs run in a child."""
    scope = Scope()
    for name, fn in BUILTINS.items():
        scope.declare(name, fn)
    return scope


# A callable the interpreter supplies to run a user function:
# (function, evaluated args, line) -> return value
CallHook = Callable[[Function, List[Any], int], Any]


class Evaluator:
    """Evaluate expression nodes against a scope chain.

    Calls to user functions are delegated to `call_hook`, which belongs to the
    interpreter because running a body means executing statements.
    """

    def __init__(self, call_hook: CallHook, max_value_chars: int = DEFAULT_MAX_VALUE_CHARS):
        self.call_hook = call_hook
        self.max_value_chars = max_value_chars
        self._dispatch: Dict[type, Callable[[Any, Scope], Any]] = {
            nodes.NumberLit: self._literal,
            nodes.StringLit: self._literal,
            nodes.Identifier: self._identifier,
            nodes.ArrayLit: self._array,
            nodes.Unary: self._unary,
            nodes.Binary: self._binary,
            nodes.Assign: self._assign,
            nodes.Call: self._call,
            nodes.Index: self._index,
        }

    def evaluate(self, expr: nodes.Expr, scope: Scope) -> Any:
        handler = self._dispatch.get(type(expr))
        if handler is None:
            raise InternalInvariantError(
                f"unknown expression node {type(expr).__name__}", line=getattr(expr, "line", None)
            )
        return handler(expr, scope)

    def _literal(self, expr, scope: Scope) -> Any:
        return expr.value

    def _identifier(self, expr: nodes.Identifier, scope: Scope) -> Any:
        if scope.find(expr.name) is None:
            if expr.name == "true":
                return True
            if expr.name == "false":
                return False
        return scope.lookup(expr.name, expr.line)

    def _array(self, expr: nodes.ArrayLit, scope: Scope) -> List[Any]:
        return [self.evaluate(e, scope) for e in expr.elements]

    def _unary(self, expr: nodes.Unary, scope: Scope) -> Any:
        value = self.evaluate(expr.operand, scope)
        if expr.op == "!":
            return not truthy(value)
        if expr.op == "-":
            if not _is_int(value):
                raise IndiscriptRuntimeError(
                    f"type mismatch: cannot negate {type_name(value)}", line=expr.line or None
                )
            return -value
        raise InternalInvariantError(f"unknown unary operator '{expr.op}'", line=expr.line or None)

    def _binary(self, expr: nodes.Binary, scope: Scope) -> Any:
        left = self.evaluate(expr.left, scope)
        right = self.evaluate(expr.right, scope)
        return binary_op(expr.op, left, right, expr.line, self.max_value_chars)

    def _assign(self, expr: nodes.Assign, scope: Scope) -> Any:
        value = self.evaluate(expr.value, scope)
        target = expr.target
        if isinstance(target, nodes.Identifier):
            scope.assign(target.name, value, target.line)
            return value
        if isinstance(target, nodes.Index):
            container = self.evaluate(target.target, scope)
            if not isinstance(container, list):
                raise IndiscriptRuntimeError(
                    f"type mismatch: cannot assign into {type_name(container)}", line=target.line or None
                )
            idx = self._position(container, self.evaluate(target.index, scope), target.line)
            container[idx] = value
            return value
        raise InternalInvariantError("invalid assignment target", line=expr.line or None)

    def _call(self, expr: nodes.Call, scope: Scope) -> Any:
        callee = self.evaluate(expr.callee, scope)
        name = expr.callee.name if isinstance(expr.callee, nodes.Identifier) else render(callee)
        args = [self.evaluate(a, scope) for a in expr.args]
        line = expr.line or None
        if isinstance(callee, Builtin):
            if len(args) != callee.arity:
                raise IndiscriptRuntimeError(f"{name} expects {callee.arity} arguments", line=line)
            try:
                return callee.impl(*args)
            except IndiscriptRuntimeError as e:
                if e.line is None:
                    e.line = line
                raise
        if not isinstance(callee, Function):
            raise IndiscriptRuntimeError(f"{name} is not a function", line=line)
        if len(args) != len(callee.params):
            raise IndiscriptRuntimeError(f"{name} expects {len(callee.params)} arguments", line=line)
        return self.call_hook(callee, args, expr.line)

    def _index(self, expr: nodes.Index, scope: Scope) -> Any:
        container = self.evaluate(expr.target, scope)
        index = self.evaluate(expr.index, scope)
        if not isinstance(container, (list, str)):
            raise IndiscriptRuntimeError(
                f"type mismatch: cannot index {type_name(container)}", line=expr.line or None
            )
        return container[self._position(container, index, expr.line)]

    def _position(self, container, index: Any, line: int) -> int:
        if not _is_int(index):
            raise IndiscriptRuntimeError(
                f"type mismatch: index must be an integer, got {type_name(index)}", line=line or None
            )
        if index < 0 or index >= len(container):
            raise IndiscriptRuntimeError("index out of range", line=line or None)
        return index
