"""Tokenizer for Indiscript source text.

The lexer is deliberately lenient: it never raises. Characters it does not
understand and string literals missing their closing quote are recorded as
`LexDiagnostic` entries (and logged) while scanning carries on. Later stages
decide whether the resulting tokens are acceptable; for example the parser
refuses to use an unterminated string literal.
"""

import logging
from dataclasses import dataclass
from typing import List

from .dialects import Dialect, KEYWORDS, get_dialect

logger = logging.getLogger(__name__)

KEYWORD = "keyword"
IDENTIFIER = "identifier"
NUMBER = "number"
STRING = "string"
OPERATOR = "operator"
PAREN = "paren"
BRACE = "brace"
BRACKET = "bracket"
COMMA = "comma"
SEMICOLON = "semicolon"

OPERATOR_CHARS = "+-*/%=<>!"
# single-char operators that widen to a two-char form when followed by '='
WIDENING = ("=", "!", "<", ">")

PUNCTUATION = {
    "(": PAREN,
    ")": PAREN,
    "{": BRACE,
    "}": BRACE,
    "[": BRACKET,
    "]": BRACKET,
    ",": COMMA,
    ";": SEMICOLON,
}

ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t"}


# identifiers and numbers are ASCII only
def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_ident_start(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return _is_ident_start(ch) or _is_digit(ch)


@dataclass
class Token:
    kind: str
    text: str
    line: int = 1
    column: int = 1
    # False only for a string literal that ran into end of input
    terminated: bool = True

    def is_punct(self, text: str) -> bool:
        return self.kind in (PAREN, BRACE, BRACKET, COMMA, SEMICOLON) and self.text == text

    def is_op(self, text: str) -> bool:
        return self.kind == OPERATOR and self.text == text


@dataclass
class LexDiagnostic:
    message: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.message} (line {self.line}, column {self.column})"


class Lexer:
    """Scan one source text into tokens for a given dialect.

    Args:
        source: program text.
        dialect: dialect (or dialect name) whose nine words are keywords.

    After `tokenize()` the `diagnostics` attribute holds every non-fatal
    problem seen while scanning.
    """

    def __init__(self, source: str, dialect=Dialect.KANNADA):
        self.source = source
        self.dialect = get_dialect(dialect)
        self.keywords = KEYWORDS[self.dialect]
        self.diagnostics: List[LexDiagnostic] = []
        self.pos = 0
        self.line = 1
        self.col = 1

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        return self.source[idx] if idx < len(self.source) else ""

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _diagnose(self, message: str, line: int, column: int) -> None:
        diag = LexDiagnostic(message, line, column)
        self.diagnostics.append(diag)
        logger.warning("lexer: %s", diag)

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while self.pos < len(self.source):
            ch = self._peek()
            line, col = self.line, self.col

            if ch.isspace():
                self._advance()
                continue

            if ch == "/" and self._peek(1) == "/":
                while self.pos < len(self.source) and self._peek() != "\n":
                    self._advance()
                continue

            if ch == "/" and self._peek(1) == "*":
                self._advance()
                self._advance()
                # an unterminated block comment swallows the rest silently
                while self.pos < len(self.source):
                    if self._peek() == "*" and self._peek(1) == "/":
                        self._advance()
                        self._advance()
                        break
                    self._advance()
                continue

            if _is_ident_start(ch):
                word = self._scan_while(_is_ident_char)
                kind = KEYWORD if word in self.keywords else IDENTIFIER
                tokens.append(Token(kind, word, line, col))
                continue

            if _is_digit(ch):
                tokens.append(Token(NUMBER, self._scan_while(_is_digit), line, col))
                continue

            if ch == '"':
                tokens.append(self._scan_string(line, col))
                continue

            if ch in OPERATOR_CHARS:
                op = self._advance()
                if op in WIDENING and self._peek() == "=":
                    op += self._advance()
                tokens.append(Token(OPERATOR, op, line, col))
                continue

            if ch in PUNCTUATION:
                tokens.append(Token(PUNCTUATION[ch], self._advance(), line, col))
                continue

            self._diagnose(f"Unexpected character: {ch}", line, col)
            self._advance()
        return tokens

    def _scan_while(self, pred) -> str:
        start = self.pos
        while self.pos < len(self.source) and pred(self._peek()):
            self._advance()
        return self.source[start:self.pos]

    def _scan_string(self, line: int, col: int) -> Token:
        self._advance()  # opening quote
        chars: List[str] = []
        while self.pos < len(self.source):
            ch = self._advance()
            if ch == '"':
                return Token(STRING, "".join(chars), line, col)
            if ch == "\\" and self.pos < len(self.source):
                nxt = self._advance()
                chars.append(ESCAPES.get(nxt, "\\" + nxt))
                continue
            chars.append(ch)
        self._diagnose("Unterminated string literal", line, col)
        return Token(STRING, "".join(chars), line, col, terminated=False)


def tokenize(source: str, dialect=Dialect.KANNADA) -> List[Token]:
    """Tokenize `source` for `dialect`; diagnostics are logged, not raised."""
    return Lexer(source, dialect).tokenize()
