"""
Formula compiler (xlsform formula -> JavaScript expression).

Grammar:

    expr     := term (binop term)*
    term     := [sign] ( literal | '${' ident '}' | '.' | '(' expr ')'
                       | funcCall | ident )
    funcCall := name '(' [expr (',' expr)*] ')'
    binop    := '=' | '!=' | '<' | '<=' | '>' | '>=' | '+' | '-' | '*'
              | 'and' | 'or' | 'div' | 'mod'

Bare identifiers are only accepted inside choice filters, where they name
a column of the choice being filtered.

Compilation happens in two steps: parse_formula() builds the AST of
formconv.expressions, then formconv.backends.javascript renders it.
Both steps are driven by FormulaCompiler.parse().

The first error found stops compilation and is reported as a CompileError
with its position inside the formula.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from formconv.backends.javascript import to_javascript
from formconv.exceptions import CompileError
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
from formconv.functions import lookup_function

# Prefix of formulas that are already JavaScript and are copied verbatim.
JS_PREFIX = "js:"

# Formula context in which bare identifiers refer to choice columns.
CHOICE_FILTER = "choice_filter"

# Token kinds. Punctuation tokens use their own text as kind.
IDENT = "identifier"
NUMBER = "number"
STRING = "string"
EOF = "EOF"

_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_IDENT_RE = re.compile(r"[^\W\d]\w*")
# Function names may contain hyphens (starts-with, string-length...).
_FUNC_NAME_RE = re.compile(r"[^\W\d]\w*(?:-[^\W\d]\w*)+(?=\s*\()")
_TWO_CHAR_OPERATORS = ("==", "!=", "<=", ">=")

_NAMED_ESCAPES = set("abfnrtv\\'\"")
_OCTAL_DIGITS = set("01234567")
_HEX_DIGITS = set("0123456789abcdefABCDEF")
_HEX_ESCAPE_LENGTHS = {"x": 2, "u": 4, "U": 8}

_OPERATOR_KEYWORDS = {
    "and": BinaryOperator.AND,
    "or": BinaryOperator.OR,
    "div": BinaryOperator.DIVIDE,
    "mod": BinaryOperator.MODULO,
}

_OPERATOR_SYMBOLS = {
    "+": BinaryOperator.PLUS,
    "-": BinaryOperator.MINUS,
    "*": BinaryOperator.TIMES,
    "=": BinaryOperator.EQUALS,
    "!=": BinaryOperator.NOT_EQUALS,
    "<": BinaryOperator.LESS_THAN,
    "<=": BinaryOperator.LESS_EQUAL,
    ">": BinaryOperator.GREATER_THAN,
    ">=": BinaryOperator.GREATER_EQUAL,
}

_SIGNS = ("+", "-")
_EXPRESSION_ENDS = (EOF, ")", ",")


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    offset: int


class _FormulaSyntaxError(Exception):
    def __init__(self, offset: int, message: str) -> None:
        self.offset = offset
        self.message = message
        super().__init__(message)


def _describe(tok: Token) -> str:
    if tok.kind == EOF:
        return "end of formula"
    return f'"{tok.text}"'


class _Scanner:
    """Splits a formula into tokens on demand."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def scan(self) -> Token:
        tok, self.pos = self._lex(self.pos)
        return tok

    def peek(self) -> Token:
        tok, _ = self._lex(self.pos)
        return tok

    def char_at(self, offset: int) -> str:
        return self.text[offset] if offset < len(self.text) else ""

    def _lex(self, pos: int) -> tuple[Token, int]:
        text = self.text
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return Token(EOF, "", pos), pos

        ch = text[pos]
        if ch.isdigit() or (ch == "." and self.char_at(pos + 1).isdigit()):
            m = _NUMBER_RE.match(text, pos)
            return Token(NUMBER, m.group(), pos), m.end()
        if ch in ("'", '"'):
            end = self._string_end(pos)
            return Token(STRING, text[pos:end], pos), end
        m = _FUNC_NAME_RE.match(text, pos) or _IDENT_RE.match(text, pos)
        if m:
            return Token(IDENT, m.group(), pos), m.end()
        if text.startswith(_TWO_CHAR_OPERATORS, pos):
            return Token(text[pos:pos + 2], text[pos:pos + 2], pos), pos + 2
        return Token(ch, ch, pos), pos + 1

    def _string_end(self, start: int) -> int:
        """Validate the string literal starting at `start`, return its end."""
        text = self.text
        quote = text[start]
        pos = start + 1
        while True:
            ch = self.char_at(pos)
            if ch == "" or ch == "\n":
                raise _FormulaSyntaxError(start, "String literal not terminated.")
            if ch == quote:
                return pos + 1
            if ch == "\\":
                pos = self._escape_end(pos)
            else:
                pos += 1

    def _escape_end(self, pos: int) -> int:
        esc = self.char_at(pos + 1)
        if esc in _NAMED_ESCAPES:
            return pos + 2
        if esc in _OCTAL_DIGITS:
            digits = self.text[pos + 1:pos + 4]
            if len(digits) != 3 or not set(digits) <= _OCTAL_DIGITS:
                raise _FormulaSyntaxError(pos, "Invalid octal escape sequence.")
            return pos + 4
        if esc in _HEX_ESCAPE_LENGTHS:
            n = _HEX_ESCAPE_LENGTHS[esc]
            digits = self.text[pos + 2:pos + 2 + n]
            if len(digits) != n or not set(digits) <= _HEX_DIGITS:
                raise _FormulaSyntaxError(pos, f'Invalid "\\{esc}" escape sequence.')
            return pos + 2 + n
        raise _FormulaSyntaxError(pos, "Unknown escape sequence.")


class _ParseContext:
    """
    Per-call parser state.

    A new context is created for every formula, so a FormulaCompiler keeps
    nothing between calls.
    """

    def __init__(self, formula: str, context: str) -> None:
        self.scanner = _Scanner(formula)
        self.context = context
        # True right after a "+"/"-" sign or operator.
        self.after_sign = False

    def error(self, tok: Token, message: str) -> None:
        raise _FormulaSyntaxError(tok.offset, message)

    def unexpected(self, tok: Token) -> None:
        self.error(tok, f"Unexpected token {_describe(tok)}.")

    def expect(self, kind: str) -> Token:
        tok = self.scanner.scan()
        if tok.kind != kind:
            self.error(tok, f'Expected "{kind}", found {_describe(tok)}.')
        return tok

    def parse(self) -> Expression:
        expr = self.expression()
        tok = self.scanner.scan()
        if tok.kind != EOF:
            self.unexpected(tok)
        return expr

    def expression(self) -> Expression:
        left = self.term()
        while self.scanner.peek().kind not in _EXPRESSION_ENDS:
            op = self.operator()
            right = self.term()
            left = BinaryExpression(op, left, right)
        return left

    def operator(self) -> BinaryOperator:
        tok = self.scanner.scan()
        if tok.kind == IDENT:
            if tok.text not in _OPERATOR_KEYWORDS:
                self.error(tok, f'Unknown operator "{tok.text}".')
            self.after_sign = False
            return _OPERATOR_KEYWORDS[tok.text]
        if tok.kind == "==":
            self.error(tok, 'Unexpected token "==". (did you mean "="?)')
        if tok.kind == "!":
            self.error(tok, 'Unary operator "!" not supported.')
        if tok.kind not in _OPERATOR_SYMBOLS:
            self.unexpected(tok)
        self.after_sign = tok.kind in _SIGNS
        return _OPERATOR_SYMBOLS[tok.kind]

    def term(self) -> Expression:
        tok = self.scanner.scan()
        if tok.kind in _SIGNS:
            if self.after_sign:
                self.error(tok, 'Consecutive "+" and "-" signs are not supported.')
            self.after_sign = True
            return SignExpression(tok.text, self.term())
        self.after_sign = False

        if tok.kind == IDENT:
            return self.ident_term(tok)
        if tok.kind == NUMBER:
            return Literal(LiteralKind.NUMBER, tok.text)
        if tok.kind == STRING:
            return Literal(LiteralKind.STRING, tok.text)
        if tok.kind == "$":
            self.expect("{")
            name = self.expect(IDENT)
            self.expect("}")
            return FieldReference(name.text)
        if tok.kind == ".":
            if self.scanner.char_at(tok.offset + 1) == ".":
                self.error(tok, '".." is not supported in formulas.')
            return SelfReference()
        if tok.kind == "(":
            inner = self.expression()
            self.expect(")")
            return Parenthesized(inner)
        if tok.kind == "!":
            self.error(tok, 'Unary operator "!" not supported, use not().')
        self.unexpected(tok)

    def ident_term(self, tok: Token) -> Expression:
        name = tok.text
        if name in ("True", "False"):
            return Literal(LiteralKind.BOOLEAN, name)
        if self.scanner.peek().kind == "(":
            return self.call(tok)
        if name in _OPERATOR_KEYWORDS:
            self.unexpected(tok)
        if self.context == CHOICE_FILTER:
            return ChoiceAttribute(name)
        self.error(
            tok,
            f'Unexpected identifier "{name}"; '
            f"fields must be referenced as ${{{name}}}.",
        )

    def call(self, name_tok: Token) -> FunctionCall:
        spec = lookup_function(name_tok.text)
        if spec is None:
            self.error(name_tok, f'Unknown function "{name_tok.text}".')
        self.expect("(")
        arguments: List[Expression] = []
        if self.scanner.peek().kind != ")":
            while True:
                arguments.append(self.expression())
                if self.scanner.peek().kind == ")":
                    break
                self.expect(",")
        self.expect(")")
        if not spec.accepts(len(arguments)):
            self.error(
                name_tok,
                f'Wrong number of arguments ({len(arguments)}) '
                f'for function "{name_tok.text}".',
            )
        return FunctionCall(name_tok.text, tuple(arguments))


def _position(text: str, offset: int) -> tuple[int, int]:
    """1-based line and column of `offset` inside `text`."""
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def parse_formula(formula: str, context: str = "formula") -> Expression:
    """
    Parse a formula into its AST.

    Args:
        formula: Formula text, as written in the spreadsheet cell
        context: Kind of cell (relevant, constraint, calculation,
            choice_filter, readonly, default); choice_filter enables
            bare identifiers. Also used in error messages.

    Returns:
        Expression AST

    Raises:
        CompileError: On the first syntax error found
    """
    try:
        return _ParseContext(formula, context).parse()
    except _FormulaSyntaxError as e:
        line, column = _position(formula, e.offset)
        raise CompileError(context, line, column, e.message) from None


class FormulaCompiler:
    """
    Translates xlsform formulas to JavaScript expressions.

    All parsing state lives in a _ParseContext created per call, so one
    compiler can be reused for any number of formulas.
    """

    def parse(self, formula: str, context: str, field_name: str) -> str:
        """
        Compile one formula.

        Args:
            formula: Formula text. A "js:" prefix marks the remainder as
                JavaScript, which is returned unchanged.
            context: Kind of cell being compiled (see parse_formula)
            field_name: Name substituted for the "." self reference

        Returns:
            The JavaScript expression

        Raises:
            CompileError: If the formula is invalid
        """
        if formula.startswith(JS_PREFIX):
            return formula[len(JS_PREFIX):].strip()
        return to_javascript(parse_formula(formula, context), field_name)
