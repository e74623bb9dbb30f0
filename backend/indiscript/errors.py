"""Exception types raised by the Indiscript pipeline.

Every fatal condition is an `IndiscriptError`. The run façade in
`interpreter.py` turns these into the structured error dict the API returns
(`{"code", "message", "line"}`), so each class carries the error `code` it
is reported under. Lexer problems are not exceptions at all; see
`lexer.LexDiagnostic`.
"""

from typing import Any, Dict, Optional


class IndiscriptError(Exception):
    """Base class for errors that abort a run.

    Attributes:
        line: optional 1-based source line the error refers to
    """

    code = "ERROR"

    def __init__(self, message: str, *, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def to_dict(self) -> Dict[str, Any]:
        err: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.line is not None:
            err["line"] = self.line
        return err


class IndiscriptSyntaxError(IndiscriptError):
    """The parser met a token it did not expect; nothing is executed."""

    code = "SYNTAX_ERROR"


class IndiscriptRuntimeError(IndiscriptError):
    """Evaluation failed; output printed before the failure is kept."""

    code = "RUNTIME_ERROR"


class InternalInvariantError(IndiscriptError):
    """A node the interpreter does not know reached it (a parser bug)."""

    code = "INTERNAL"
