"""Indiscript interpreter module.

This module turns Indiscript source text into the console output the program
produces. `Interpreter.run` drives the whole pipeline for one program:

- tokenize the source for the selected dialect (`lexer.py`)
- parse the tokens into an AST (`parser.py`)
- walk the statements, evaluating expressions with `evaluator.Evaluator`

The interpreter is a genuine tree walker: nothing is translated into host
code. Every statement handler returns an `Outcome`; a `Return` inside a
function produces a "returning" outcome that the enclosing blocks pass up
unchanged until the call that started the body consumes it.

Runtime limits (loop iterations, call depth, output size, value size and
wall-clock time) keep a single run finite. Errors never escape `run`: they
are reported in the result dict and as a final `Error: <message>` output
line.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from . import nodes
from .dialects import Dialect, get_dialect
from .errors import IndiscriptError, IndiscriptRuntimeError, InternalInvariantError
from .evaluator import (
    DEFAULT_MAX_VALUE_CHARS,
    UNDEFINED,
    Evaluator,
    Function,
    Scope,
    global_scope,
    render,
    truthy,
)
from .lexer import Lexer
from .parser import Parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of executing a statement: normal completion or returning(value)."""

    returning: bool = False
    value: Any = UNDEFINED


NORMAL = Outcome()


class OutputSink:
    """Collects printed lines for one run and enforces the output cap."""

    def __init__(self, max_chars: int):
        self.lines: List[str] = []
        self.max_chars = max_chars
        self._chars = 0

    def write(self, text: str, line: Optional[int] = None) -> None:
        if self._chars + len(text) > self.max_chars:
            raise IndiscriptRuntimeError("output limit exceeded", line=line)
        self.lines.append(text)
        self._chars += len(text)


class Interpreter:
    """Top-level Indiscript interpreter.

    Tunable attributes (defaults are set in __init__, overridable per run via
    the `settings` argument of `run`):
    - max_loop: iterations allowed for a single for/while loop
    - max_call_depth: nested function calls allowed at once
    - max_output_chars: total characters a run may print
    - max_time_s: wall-clock budget for a run, checked before every statement,
      loop iteration and call
    - max_value_chars: longest text a single value may hold

    An instance keeps per-run state while `run` executes, so concurrent runs
    need separate instances.
    """

    SETTINGS = (
        "max_loop",
        "max_call_depth",
        "max_output_chars",
        "max_time_s",
        "max_value_chars",
    )

    def __init__(self):
        self.max_loop = 100_000
        self.max_call_depth = 50
        self.max_output_chars = 100_000
        self.max_time_s = 2.0
        self.max_value_chars = DEFAULT_MAX_VALUE_CHARS
        # per-run state
        self._call_depth = 0
        self._start_wall = 0.0
        self._evaluator: Optional[Evaluator] = None
        self._handlers: Dict[type, Callable[[Any, Scope, OutputSink], Outcome]] = {
            nodes.VarDecl: self._exec_var_decl,
            nodes.Print: self._exec_print,
            nodes.If: self._exec_if,
            nodes.For: self._exec_for,
            nodes.While: self._exec_while,
            nodes.FuncDecl: self._exec_func_decl,
            nodes.ArrayDecl: self._exec_array_decl,
            nodes.Return: self._exec_return,
            nodes.ExprStmt: self._exec_expr,
        }

    # --- entry point -------------------------------------------------------

    def run(
        self,
        code: str,
        dialect=Dialect.KANNADA,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run `code` written in `dialect` and return the result dict.

        Returns a dict with keys:
            output: printed lines joined by newlines; when the run failed the
                last line is `Error: <message>`
            errors: None, or {"code", "message", "line"?}
            warnings: lexer diagnostics as strings
            dialect: the dialect name used

        Raises:
            ValueError: if `dialect` is not a known dialect.
        """
        dialect = get_dialect(dialect)
        self._apply_settings(settings or {})
        sink = OutputSink(self.max_output_chars)
        lexer = Lexer(code, dialect)
        error: Optional[IndiscriptError] = None
        logger.debug("run: %d chars of %s source", len(code), dialect.value)
        try:
            tokens = lexer.tokenize()
            program = Parser(tokens, dialect).parse()
            self.execute(program, sink)
        except IndiscriptError as e:
            error = e
        except RecursionError:
            error = IndiscriptRuntimeError("program nested too deeply")
        warnings = [str(d) for d in lexer.diagnostics]
        return self._finalize_run(sink, warnings, error, dialect)

    def _apply_settings(self, settings: Dict[str, Any]) -> None:
        for key in self.SETTINGS:
            if key in settings and settings[key] is not None:
                setattr(self, key, settings[key])

    def _finalize_run(
        self,
        sink: OutputSink,
        warnings: List[str],
        error: Optional[IndiscriptError],
        dialect: Dialect,
    ) -> Dict[str, Any]:
        lines = list(sink.lines)
        errors = None
        if error is not None:
            lines.append(f"Error: {error.message}")
            errors = error.to_dict()
            logger.info("run failed: %s %s", error.code, error.message)
        else:
            logger.debug("run finished: %d lines printed", len(lines))
        return {
            "output": "\n".join(lines).rstrip(),
            "errors": errors,
            "warnings": warnings,
            "dialect": dialect.value,
        }

    # --- statements --------------------------------------------------------

    def execute(self, program: nodes.Program, sink: OutputSink) -> None:
        """Execute a parsed program, writing printed lines into `sink`."""
        self._call_depth = 0
        self._start_wall = time.monotonic()

        def call_hook(fn: Function, args: List[Any], line: int) -> Any:
            return self._call_function(fn, args, line, sink)

        self._evaluator = Evaluator(call_hook, self.max_value_chars)
        self.execute_block(program.body, global_scope().child(), sink)

    def execute_block(self, body: List[nodes.Stmt], scope: Scope, sink: OutputSink) -> Outcome:
        for stmt in body:
            outcome = self.execute_statement(stmt, scope, sink)
            if outcome.returning:
                return outcome
        return NORMAL

    def execute_statement(self, stmt: nodes.Stmt, scope: Scope, sink: OutputSink) -> Outcome:
        handler = self._handlers.get(type(stmt))
        if handler is None:
            raise InternalInvariantError(
                f"unknown statement node {type(stmt).__name__}", line=getattr(stmt, "line", None)
            )
        self._check_time(stmt.line)
        return handler(stmt, scope, sink)

    def _eval(self, expr: nodes.Expr, scope: Scope) -> Any:
        return self._evaluator.evaluate(expr, scope)

    def _exec_var_decl(self, stmt: nodes.VarDecl, scope: Scope, sink: OutputSink) -> Outcome:
        value = self._eval(stmt.init, scope) if stmt.init is not None else UNDEFINED
        scope.declare(stmt.name, value)
        return NORMAL

    def _exec_print(self, stmt: nodes.Print, scope: Scope, sink: OutputSink) -> Outcome:
        sink.write(render(self._eval(stmt.expr, scope)), line=stmt.line)
        return NORMAL

    def _exec_if(self, stmt: nodes.If, scope: Scope, sink: OutputSink) -> Outcome:
        if truthy(self._eval(stmt.cond, scope)):
            return self.execute_block(stmt.then_body, scope.child(), sink)
        if stmt.else_body is not None:
            return self.execute_block(stmt.else_body, scope.child(), sink)
        return NORMAL

    def _exec_for(self, stmt: nodes.For, scope: Scope, sink: OutputSink) -> Outcome:
        # the loop scope hosts the init binding for every iteration
        loop_scope = scope.child()
        if stmt.init is not None:
            self.execute_statement(stmt.init, loop_scope, sink)
        iterations = 0
        while stmt.cond is None or truthy(self._eval(stmt.cond, loop_scope)):
            self._check_loop(iterations, stmt.line)
            iterations += 1
            outcome = self.execute_block(stmt.body, loop_scope.child(), sink)
            if outcome.returning:
                return outcome
            if stmt.step is not None:
                self._eval(stmt.step, loop_scope)
        return NORMAL

    def _exec_while(self, stmt: nodes.While, scope: Scope, sink: OutputSink) -> Outcome:
        iterations = 0
        while truthy(self._eval(stmt.cond, scope)):
            self._check_loop(iterations, stmt.line)
            iterations += 1
            outcome = self.execute_block(stmt.body, scope.child(), sink)
            if outcome.returning:
                return outcome
        return NORMAL

    def _exec_func_decl(self, stmt: nodes.FuncDecl, scope: Scope, sink: OutputSink) -> Outcome:
        scope.declare(stmt.name, Function(stmt.name, list(stmt.params), stmt.body, scope))
        return NORMAL

    def _exec_array_decl(self, stmt: nodes.ArrayDecl, scope: Scope, sink: OutputSink) -> Outcome:
        scope.declare(stmt.name, [self._eval(e, scope) for e in stmt.elements])
        return NORMAL

    def _exec_return(self, stmt: nodes.Return, scope: Scope, sink: OutputSink) -> Outcome:
        if self._call_depth == 0:
            # return outside a function does nothing
            return NORMAL
        value = self._eval(stmt.expr, scope) if stmt.expr is not None else UNDEFINED
        return Outcome(returning=True, value=value)

    def _exec_expr(self, stmt: nodes.ExprStmt, scope: Scope, sink: OutputSink) -> Outcome:
        self._eval(stmt.expr, scope)
        return NORMAL

    # --- calls and limits --------------------------------------------------

    def _call_function(self, fn: Function, args: List[Any], line: int, sink: OutputSink) -> Any:
        if self._call_depth >= self.max_call_depth:
            raise IndiscriptRuntimeError("call depth limit exceeded", line=line or None)
        self._check_time(line)
        # lexical scoping: the frame hangs off the declaring scope, not the caller's
        frame = fn.closure.child()
        for name, value in zip(fn.params, args):
            frame.declare(name, value)
        self._call_depth += 1
        try:
            outcome = self.execute_block(fn.body, frame, sink)
        finally:
            self._call_depth -= 1
        return outcome.value if outcome.returning else UNDEFINED

    def _check_loop(self, iterations: int, line: int) -> None:
        if iterations >= self.max_loop:
            raise IndiscriptRuntimeError("loop exceeded iteration limit", line=line or None)
        self._check_time(line)

    def _check_time(self, line: int) -> None:
        if time.monotonic() - self._start_wall > self.max_time_s:
            raise IndiscriptRuntimeError("time limit exceeded", line=line or None)


def run(code: str, dialect=Dialect.KANNADA, settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run `code` with a fresh `Interpreter`."""
    return Interpreter().run(code, dialect, settings)
