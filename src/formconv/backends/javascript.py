"""
JavaScript backend for formula ASTs.

Renders the expressions of formconv.expressions as JavaScript, the
expression language evaluated by the form-rendering engine.

Operators and spacing follow the source formula:

    . = ${ident} and 1 != 2   ->   fieldName === ident && 1 !== 2
    3 * 4 div 5 mod 6         ->   3*4/5%6
"""

from typing import Callable, Dict, List

from formconv.expressions import (
    BinaryExpression,
    BinaryOperator,
    ChoiceAttribute,
    Expression,
    FieldReference,
    FunctionCall,
    Literal,
    LiteralKind,
    Parenthesized,
    SelfReference,
    SignExpression,
)
from formconv.functions import FUNCTIONS, FunctionShape

# Name of the variable holding the choice being filtered in choice filters.
CHOICE_VARIABLE = "$choice"

_OPERATORS: Dict[BinaryOperator, str] = {
    BinaryOperator.AND: " && ",
    BinaryOperator.OR: " || ",
    BinaryOperator.EQUALS: " === ",
    BinaryOperator.NOT_EQUALS: " !== ",
    BinaryOperator.GREATER_THAN: " > ",
    BinaryOperator.GREATER_EQUAL: " >= ",
    BinaryOperator.LESS_THAN: " < ",
    BinaryOperator.LESS_EQUAL: " <= ",
    BinaryOperator.PLUS: " + ",
    BinaryOperator.MINUS: " - ",
    BinaryOperator.TIMES: "*",
    BinaryOperator.DIVIDE: "/",
    BinaryOperator.MODULO: "%",
}


def _if(args: List[str]) -> str:
    cond, then, otherwise = args
    return f"({cond} ? {then} : {otherwise})"


def _regex(args: List[str]) -> str:
    s, regex = args
    return f"(({s}).match({regex}) !== null)"


def _length(args: List[str]) -> str:
    return f"({args[0]}).length"


def _exp10(args: List[str]) -> str:
    return f"Math.pow(10, {args[0]})"


_SPECIAL_FUNCTIONS: Dict[str, Callable[[List[str]], str]] = {
    "if": _if,
    "regex": _regex,
    "string-length": _length,
    "count-selected": _length,
    "exp10": _exp10,
    "pi": lambda args: "Math.PI",
    "true": lambda args: "true",
    "false": lambda args: "false",
}


def _call_to_javascript(call: FunctionCall, field_name: str) -> str:
    spec = FUNCTIONS.get(call.name)
    if spec is None:
        raise ValueError(f"Unsupported function: {call.name}")
    args = [to_javascript(arg, field_name) for arg in call.arguments]

    if spec.shape == FunctionShape.RENAME:
        return f"{spec.target}({', '.join(args)})"
    if spec.shape == FunctionShape.METHOD:
        return f"({args[0]}).{spec.target}({', '.join(args[1:])})"
    return _SPECIAL_FUNCTIONS[call.name](args)


def to_javascript(expr: Expression, field_name: str) -> str:
    """
    Render a formula AST as a JavaScript expression.

    Args:
        expr: Formula AST
        field_name: Name of the field the formula belongs to,
            substituted for the self reference

    Returns:
        JavaScript expression text
    """
    if isinstance(expr, Literal):
        if expr.kind == LiteralKind.BOOLEAN:
            return expr.text.lower()
        return expr.text

    if isinstance(expr, FieldReference):
        return expr.name

    if isinstance(expr, SelfReference):
        return field_name

    if isinstance(expr, ChoiceAttribute):
        return f"{CHOICE_VARIABLE}.{expr.name}"

    if isinstance(expr, SignExpression):
        return expr.sign + to_javascript(expr.operand, field_name)

    if isinstance(expr, Parenthesized):
        return f"({to_javascript(expr.inner, field_name)})"

    if isinstance(expr, BinaryExpression):
        left = to_javascript(expr.left, field_name)
        right = to_javascript(expr.right, field_name)
        return left + _OPERATORS[expr.operator] + right

    if isinstance(expr, FunctionCall):
        return _call_to_javascript(expr, field_name)

    raise TypeError(f"Unsupported Expression type: {type(expr)}")
