"""
Janus syntax tree
Expression nodes shared by the parser, the analyzer and the evaluator
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple, Union

from utilities import format_number
from values import ValueType


@dataclass(frozen=True)
class SourceSpan:
    """Source location information for diagnostics"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


class Operator(str, Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    AND = "&&"
    OR = "||"


class UnaryOperator(str, Enum):
    NEG = "-"
    NOT = "!"


class StringFlag(str, Enum):
    FORMAT = "f"


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    value: float


@dataclass(frozen=True)
class StringLiteral:
    value: str
    flag: Optional[StringFlag] = None


@dataclass(frozen=True)
class BoolLiteral:
    value: bool


@dataclass(frozen=True)
class ArrayLiteral:
    items: Tuple["Expr", ...] = ()


@dataclass(frozen=True)
class TupleLiteral:
    items: Tuple["Expr", ...] = ()


@dataclass(frozen=True)
class Ident:
    name: str


@dataclass(frozen=True)
class PolyIdent:
    """Identifier that captures every value it matches, consumed first-in first-out"""
    name: str


@dataclass(frozen=True)
class BinaryOperation:
    op: Operator
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class UnaryOperation:
    op: UnaryOperator
    operand: "Expr"


@dataclass(frozen=True)
class Cast:
    operand: "Expr"
    to: ValueType
    from_: ValueType


@dataclass(frozen=True)
class Wildcard:
    """The `_` pattern: matches anything, binds nothing"""


@dataclass(frozen=True)
class Call:
    function: str
    argument: "Expr"


Expr = Union[
    NumberLiteral, StringLiteral, BoolLiteral, ArrayLiteral, TupleLiteral,
    Ident, PolyIdent, BinaryOperation, UnaryOperation, Cast, Wildcard, Call,
]


# ============================================================================
# RULES AND FUNCTIONS
# ============================================================================

@dataclass(frozen=True)
class Transformation:
    """One rule: `destruct -> construct;`"""
    destruct: Expr
    construct: Expr
    span: Optional[SourceSpan] = None


@dataclass(frozen=True)
class FunctionDefinition:
    """A named block of rules as written in source.

    The parser emits one per `name { ... }` block and one with name None for
    every rule written at top level.
    """
    name: Optional[str]
    rules: Tuple[Transformation, ...]
    span: Optional[SourceSpan] = None


Functions = Mapping[str, Tuple[Transformation, ...]]


# ============================================================================
# PRETTY PRINTING
# ============================================================================

_PRECEDENCE = {
    Operator.OR: 1,
    Operator.AND: 2,
    Operator.ADD: 3,
    Operator.SUB: 3,
    Operator.MUL: 4,
    Operator.DIV: 4,
}


def _quote(text: str) -> str:
    escaped = text.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n').replace('\t', '\\t')
    return f'"{escaped}"'


def format_expr(expr: Expr, parent_precedence: int = 0) -> str:
    """Render an expression back to Janus surface syntax"""
    if isinstance(expr, NumberLiteral):
        return format_number(expr.value)
    if isinstance(expr, StringLiteral):
        prefix = expr.flag.value if expr.flag else ""
        return prefix + _quote(expr.value)
    if isinstance(expr, BoolLiteral):
        return "true" if expr.value else "false"
    if isinstance(expr, ArrayLiteral):
        return "[" + ", ".join(format_expr(item) for item in expr.items) + "]"
    if isinstance(expr, TupleLiteral):
        if len(expr.items) == 1:
            return f"({format_expr(expr.items[0])},)"
        return "(" + ", ".join(format_expr(item) for item in expr.items) + ")"
    if isinstance(expr, Ident):
        return expr.name
    if isinstance(expr, PolyIdent):
        return f"${expr.name}"
    if isinstance(expr, Wildcard):
        return "_"
    if isinstance(expr, Call):
        if isinstance(expr.argument, TupleLiteral) and len(expr.argument.items) != 1:
            return expr.function + format_expr(expr.argument)
        return f"{expr.function}({format_expr(expr.argument)})"
    if isinstance(expr, UnaryOperation):
        return f"{expr.op.value}{format_expr(expr.operand, 6)}"
    if isinstance(expr, Cast):
        text = f"{format_expr(expr.operand, 5)}::#{expr.from_.value} ~> #{expr.to.value}"
        return f"({text})" if parent_precedence > 5 else text
    if isinstance(expr, BinaryOperation):
        precedence = _PRECEDENCE[expr.op]
        # left-associative: a right operand at the same level needs parentheses
        text = (f"{format_expr(expr.left, precedence)} {expr.op.value} "
                f"{format_expr(expr.right, precedence + 1)}")
        if precedence < parent_precedence:
            return f"({text})"
        return text
    raise TypeError(f"Not a Janus expression: {expr!r}")


def format_rule(rule: Transformation) -> str:
    return f"{format_expr(rule.destruct)} -> {format_expr(rule.construct)};"
