"""Recursive-descent parser for Indiscript.

The parser consumes the token list front to back (a deque, popped from the
left) and builds a `Program`. Statements are dispatched on the *slot* of
their leading keyword, looked up in the selected dialect, so both dialects
share one grammar.

Block bodies are handled the same way everywhere: the tokens between a `{`
and its matching `}` are extracted with brace-depth tracking and parsed as an
independent sub-program. A missing token raises `IndiscriptSyntaxError`
naming what was expected and where; there is no error recovery and no
partial program is returned.

Expression grammar, lowest precedence first:

    assignment     := (identifier | index) "=" assignment | equality
    equality       := comparison (("==" | "!=") comparison)*
    comparison     := additive (("<" | ">" | "<=" | ">=") additive)*
    additive       := multiplicative (("+" | "-") multiplicative)*
    multiplicative := unary (("*" | "/" | "%") unary)*
    unary          := ("-" | "!") unary | postfix
    postfix        := primary ("(" args ")" | "[" expression "]")*
    primary        := number | string | identifier | "(" expression ")"
                    | "[" elements "]"
"""

from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence

from . import nodes
from .dialects import Dialect, Slot, get_dialect, keyword_slot
from .errors import IndiscriptSyntaxError
from .evaluator import MAX_INT_DIGITS
from .lexer import (
    BRACE,
    IDENTIFIER,
    KEYWORD,
    NUMBER,
    OPERATOR,
    STRING,
    Token,
)

EQUALITY_OPS = ("==", "!=")
COMPARISON_OPS = ("<", ">", "<=", ">=")
ADDITIVE_OPS = ("+", "-")
MULTIPLICATIVE_OPS = ("*", "/", "%")
UNARY_OPS = ("-", "!")


class Parser:
    """Parse a token sequence for one dialect into a `Program`.

    Args:
        tokens: tokens from `lexer.tokenize`; the parser keeps its own deque.
        dialect: dialect used to map keywords onto grammar slots.
    """

    def __init__(self, tokens: Sequence[Token], dialect=Dialect.KANNADA):
        self.tokens: Deque[Token] = deque(tokens)
        self.dialect = get_dialect(dialect)
        self._line = tokens[0].line if tokens else 1
        self._statements: Dict[Slot, Callable[[Token], nodes.Stmt]] = {
            Slot.DECLARE: self._declaration,
            Slot.PRINT: self._print,
            Slot.IF: self._if,
            Slot.ELSE: self._dangling_else,
            Slot.FOR: self._for,
            Slot.WHILE: self._while,
            Slot.FUNCTION: self._function,
            Slot.ARRAY: self._array,
            Slot.RETURN: self._return,
        }

    # --- token helpers -------------------------------------------------------

    def _peek(self) -> Optional[Token]:
        return self.tokens[0] if self.tokens else None

    def _pop(self) -> Token:
        tok = self.tokens.popleft()
        self._line = tok.line
        return tok

    def _error(self, message: str, tok: Optional[Token] = None) -> IndiscriptSyntaxError:
        line = tok.line if tok is not None else self._line
        return IndiscriptSyntaxError(message, line=line)

    def _slot(self, tok: Optional[Token]) -> Optional[Slot]:
        if tok is None or tok.kind != KEYWORD:
            return None
        return keyword_slot(self.dialect, tok.text)

    def _at_punct(self, text: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.is_punct(text)

    def _at_op(self, *ops: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.kind == OPERATOR and tok.text in ops

    def _expect_punct(self, text: str, context: str) -> Token:
        if not self._at_punct(text):
            raise self._error(f"expected '{text}' {context}", self._peek())
        return self._pop()

    def _expect_name(self, message: str) -> Token:
        tok = self._peek()
        if tok is None or tok.kind != IDENTIFIER:
            raise self._error(message, tok)
        return self._pop()

    # --- program and blocks --------------------------------------------------

    def parse(self) -> nodes.Program:
        body: List[nodes.Stmt] = []
        while self.tokens:
            # stray semicolons between statements are allowed
            if self._at_punct(";"):
                self._pop()
                continue
            body.append(self._statement())
        return nodes.Program(body, line=1)

    def _block(self, open_context: str, close_context: str) -> List[nodes.Stmt]:
        """Extract a `{ ... }` body and parse it as a sub-program."""
        self._expect_punct("{", open_context)
        inner: List[Token] = []
        depth = 0
        while self.tokens:
            tok = self._pop()
            if tok.kind == BRACE and tok.text == "{":
                depth += 1
            elif tok.kind == BRACE and tok.text == "}":
                if depth == 0:
                    return Parser(inner, self.dialect).parse().body
                depth -= 1
            inner.append(tok)
        raise self._error(f"expected '}}' {close_context}")

    # --- statements ----------------------------------------------------------

    def _statement(self) -> nodes.Stmt:
        tok = self._peek()
        slot = self._slot(tok)
        if slot is not None:
            return self._statements[slot](self._pop())
        if _starts_expression(tok):
            expr = self._expression("")
            return nodes.ExprStmt(expr, line=expr.line)
        raise self._error(f"unexpected '{tok.text}'", tok)

    def _declaration(self, kw: Token) -> nodes.VarDecl:
        name = self._expect_name(f"expected variable name after '{kw.text}'")
        init = None
        if self._at_op("="):
            eq = self._pop()
            init = self._expression(f"after '{eq.text}'")
        return nodes.VarDecl(name.text, init, line=kw.line)

    def _print(self, kw: Token) -> nodes.Print:
        return nodes.Print(self._expression(f"after '{kw.text}'"), line=kw.line)

    def _if(self, kw: Token) -> nodes.If:
        self._expect_punct("(", f"after '{kw.text}'")
        cond = self._expression("in if condition")
        self._expect_punct(")", "after if condition")
        then_body = self._block("after if condition", "after if body")
        else_body = None
        if self._slot(self._peek()) is Slot.ELSE:
            else_kw = self._pop()
            else_body = self._block(f"after '{else_kw.text}'", "after else body")
        return nodes.If(cond, then_body, else_body, line=kw.line)

    def _dangling_else(self, kw: Token) -> nodes.Stmt:
        raise self._error(f"'{kw.text}' without matching if", kw)

    def _for(self, kw: Token) -> nodes.For:
        self._expect_punct("(", f"after '{kw.text}'")
        init: Optional[nodes.Stmt] = None
        if self._slot(self._peek()) is Slot.DECLARE:
            init = self._declaration(self._pop())
        elif not self._at_punct(";"):
            expr = self._expression("in for loop initialization")
            init = nodes.ExprStmt(expr, line=expr.line)
        self._expect_punct(";", "after for loop initialization")
        cond = None
        if not self._at_punct(";"):
            cond = self._expression("in for loop condition")
        self._expect_punct(";", "after for loop condition")
        step = None
        if not self._at_punct(")"):
            step = self._expression("in for loop increment")
        self._expect_punct(")", "after for loop increment")
        body = self._block("after for loop header", "after for loop body")
        return nodes.For(init, cond, step, body, line=kw.line)

    def _while(self, kw: Token) -> nodes.While:
        self._expect_punct("(", f"after '{kw.text}'")
        cond = self._expression("in while loop condition")
        self._expect_punct(")", "after while loop condition")
        body = self._block("after while loop condition", "after while loop body")
        return nodes.While(cond, body, line=kw.line)

    def _function(self, kw: Token) -> nodes.FuncDecl:
        name = self._expect_name(f"expected function name after '{kw.text}'")
        self._expect_punct("(", "after function name")
        params: List[str] = []
        if not self._at_punct(")"):
            while True:
                param = self._expect_name(f"expected parameter name in function '{name.text}'")
                params.append(param.text)
                if not self._at_punct(","):
                    break
                self._pop()
        self._expect_punct(")", "after function parameters")
        body = self._block("after function parameters", "after function body")
        return nodes.FuncDecl(name.text, params, body, line=kw.line)

    def _array(self, kw: Token) -> nodes.ArrayDecl:
        name = self._expect_name(f"expected array name after '{kw.text}'")
        if not self._at_op("="):
            raise self._error("expected '=' after array name", self._peek())
        self._pop()
        self._expect_punct("[", "after '=' in array declaration")
        elements = self._elements("array elements")
        return nodes.ArrayDecl(name.text, elements, line=kw.line)

    def _return(self, kw: Token) -> nodes.Return:
        expr = None
        if _starts_expression(self._peek()):
            expr = self._expression(f"after '{kw.text}'")
        return nodes.Return(expr, line=kw.line)

    # --- expressions ---------------------------------------------------------

    def _expression(self, context: str) -> nodes.Expr:
        if not _starts_expression(self._peek()):
            tok = self._peek()
            where = f" {context}" if context else ""
            if tok is None:
                raise self._error(f"expected expression{where}")
            raise self._error(f"expected expression{where}, found '{tok.text}'", tok)
        return self._assignment()

    def _assignment(self) -> nodes.Expr:
        expr = self._equality()
        if self._at_op("="):
            eq = self._pop()
            if not isinstance(expr, (nodes.Identifier, nodes.Index)):
                raise self._error("invalid assignment target", eq)
            value = self._expression("after '='")
            return nodes.Assign(expr, value, line=expr.line)
        return expr

    def _binary(self, ops: Sequence[str], operand: Callable[[], nodes.Expr]) -> nodes.Expr:
        left = operand()
        while self._at_op(*ops):
            op = self._pop()
            if not _starts_expression(self._peek()):
                raise self._error(f"expected expression after '{op.text}'", self._peek())
            right = operand()
            left = nodes.Binary(op.text, left, right, line=left.line)
        return left

    def _equality(self) -> nodes.Expr:
        return self._binary(EQUALITY_OPS, self._comparison)

    def _comparison(self) -> nodes.Expr:
        return self._binary(COMPARISON_OPS, self._additive)

    def _additive(self) -> nodes.Expr:
        return self._binary(ADDITIVE_OPS, self._multiplicative)

    def _multiplicative(self) -> nodes.Expr:
        return self._binary(MULTIPLICATIVE_OPS, self._unary)

    def _unary(self) -> nodes.Expr:
        if self._at_op(*UNARY_OPS):
            op = self._pop()
            if not _starts_expression(self._peek()):
                raise self._error(f"expected expression after '{op.text}'", self._peek())
            return nodes.Unary(op.text, self._unary(), line=op.line)
        return self._postfix()

    def _postfix(self) -> nodes.Expr:
        expr = self._primary()
        while True:
            if self._at_punct("("):
                self._pop()
                args: List[nodes.Expr] = []
                if not self._at_punct(")"):
                    while True:
                        args.append(self._expression("in call arguments"))
                        if not self._at_punct(","):
                            break
                        self._pop()
                self._expect_punct(")", "after call arguments")
                expr = nodes.Call(expr, args, line=expr.line)
            elif self._at_punct("["):
                self._pop()
                index = self._expression("in index")
                self._expect_punct("]", "after index")
                expr = nodes.Index(expr, index, line=expr.line)
            else:
                return expr

    def _primary(self) -> nodes.Expr:
        tok = self._pop()
        if tok.kind == NUMBER:
            if len(tok.text) > MAX_INT_DIGITS:
                raise self._error("number literal too large", tok)
            return nodes.NumberLit(int(tok.text), line=tok.line)
        if tok.kind == STRING:
            if not tok.terminated:
                raise self._error("unterminated string literal", tok)
            return nodes.StringLit(tok.text, line=tok.line)
        if tok.kind == IDENTIFIER:
            return nodes.Identifier(tok.text, line=tok.line)
        if tok.is_punct("("):
            expr = self._expression("after '('")
            self._expect_punct(")", "after expression")
            return expr
        if tok.is_punct("["):
            return nodes.ArrayLit(self._elements("array literal"), line=tok.line)
        # guarded by _starts_expression
        raise self._error(f"unexpected '{tok.text}'", tok)

    def _elements(self, what: str) -> List[nodes.Expr]:
        """Parse comma separated expressions after an opening `[`."""
        elements: List[nodes.Expr] = []
        if not self._at_punct("]"):
            while True:
                elements.append(self._expression(f"in {what}"))
                if not self._at_punct(","):
                    break
                self._pop()
        self._expect_punct("]", f"after {what}")
        return elements


def _starts_expression(tok: Optional[Token]) -> bool:
    if tok is None:
        return False
    if tok.kind in (NUMBER, STRING, IDENTIFIER):
        return True
    if tok.kind == OPERATOR:
        return tok.text in UNARY_OPS
    return tok.is_punct("(") or tok.is_punct("[")


def parse(tokens: Sequence[Token], dialect=Dialect.KANNADA) -> nodes.Program:
    """Parse `tokens` into a `Program` for `dialect`."""
    return Parser(list(tokens), dialect).parse()
