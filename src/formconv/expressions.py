"""
Formula AST

Formulas found in xlsform cells ("relevant", "constraint", "calculation",
"choice_filter", "readonly", "default") are parsed into the tree defined
here before being rendered by a backend.

The tree is deliberately close to the source text: literals keep their
original spelling and parentheses are kept as explicit nodes, so a
backend can render a faithful translation without re-deriving precedence.

ARCHITECTURAL RULE:
    These nodes hold structure only.
    Rendering belongs in formconv.backends.
    Evaluation is done by the form-rendering engine, never here.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Expression(ABC):
    """
    Base class for all formula AST nodes.

    This class is structure only.
    """
    pass


class BinaryOperator(Enum):
    """
    Binary operators of the xlsform formula language.

    Values are the source spellings.
    """

    # Logical operators
    AND = "and"
    OR = "or"

    # Comparison operators
    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="
    LESS_THAN = "<"
    LESS_EQUAL = "<="

    # Arithmetic operators
    PLUS = "+"
    MINUS = "-"
    TIMES = "*"
    DIVIDE = "div"
    MODULO = "mod"


class LiteralKind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Literal(Expression):
    """
    A literal constant.

    Properties:
        kind: number, string or boolean
        text: Source spelling, quotes included for strings
            (e.g. "345.78", "'hello'", "True")
    """

    kind: LiteralKind
    text: str


@dataclass(frozen=True)
class FieldReference(Expression):
    """
    A reference to another field of the form: ${name}.
    """

    name: str


@dataclass(frozen=True)
class SelfReference(Expression):
    """
    The "." token: the value of the field the formula belongs to.
    """
    pass


@dataclass(frozen=True)
class ChoiceAttribute(Expression):
    """
    A bare identifier inside a choice filter.

    It names a column of the choices sheet and is resolved against the
    choice currently being filtered.
    """

    name: str


@dataclass(frozen=True)
class SignExpression(Expression):
    """
    A leading sign: +x or -x.

    Properties:
        sign: "+" or "-"
        operand: The signed term
    """

    sign: str
    operand: Expression


@dataclass(frozen=True)
class Parenthesized(Expression):
    """An expression written between parentheses in the source."""

    inner: Expression


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    A binary operation.

    The formula language has no precedence levels of its own: operands are
    kept in source order and the target language applies its precedence.
    For this reason the tree is left-leaning:

        1 + 2 * 3  ->  BinaryExpression(*, BinaryExpression(+, 1, 2), 3)

    and renders back to the same operator sequence.
    """

    operator: BinaryOperator
    left: Expression
    right: Expression


@dataclass(frozen=True)
class FunctionCall(Expression):
    """
    A call of one of the supported functions.

    Properties:
        name: Source function name (e.g. "starts-with")
        arguments: Argument expressions, in order
    """

    name: str
    arguments: Tuple[Expression, ...] = ()
