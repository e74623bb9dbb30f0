"""AST node classes produced by the parser.

Statements and expressions are plain dataclasses. Every node remembers the
source line it started on so runtime errors can point back at the program.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Node:
    line: int = field(default=0, kw_only=True)


# --- expressions -------------------------------------------------------------


@dataclass
class Expr(Node):
    pass


@dataclass
class NumberLit(Expr):
    value: int


@dataclass
class StringLit(Expr):
    value: str


@dataclass
class Identifier(Expr):
    name: str


@dataclass
class ArrayLit(Expr):
    elements: List[Expr]


@dataclass
class Unary(Expr):
    op: str
    operand: Expr


@dataclass
class Binary(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass
class Assign(Expr):
    # target is an Identifier or an Index
    target: Expr
    value: Expr


@dataclass
class Call(Expr):
    callee: Expr
    args: List[Expr]


@dataclass
class Index(Expr):
    target: Expr
    index: Expr


# --- statements --------------------------------------------------------------


@dataclass
class Stmt(Node):
    pass


@dataclass
class VarDecl(Stmt):
    name: str
    init: Optional[Expr] = None


@dataclass
class Print(Stmt):
    expr: Expr


@dataclass
class If(Stmt):
    cond: Expr
    then_body: List[Stmt]
    else_body: Optional[List[Stmt]] = None


@dataclass
class For(Stmt):
    init: Optional[Stmt]
    cond: Optional[Expr]
    step: Optional[Expr]
    body: List[Stmt]


@dataclass
class While(Stmt):
    cond: Expr
    body: List[Stmt]


@dataclass
class FuncDecl(Stmt):
    name: str
    params: List[str]
    body: List[Stmt]


@dataclass
class ArrayDecl(Stmt):
    name: str
    elements: List[Expr]


@dataclass
class Return(Stmt):
    expr: Optional[Expr] = None


@dataclass
class ExprStmt(Stmt):
    expr: Expr


@dataclass
class Program(Node):
    body: List[Stmt] = field(default_factory=list)
