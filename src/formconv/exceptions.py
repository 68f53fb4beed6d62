"""Error taxonomy for formconv.

Every user-facing error is a subclass of FormconvError and carries, where
it applies, the 1-based line of the spreadsheet row that caused it.
Conversion is fail-fast: the first error aborts the whole conversion.
"""

from __future__ import annotations


class FormconvError(Exception):
    """Base exception for all formconv errors."""

    def __init__(self, message: str, line_num: int | None = None) -> None:
        self.message = message
        self.line_num = line_num
        super().__init__(message)

    def __str__(self) -> str:
        if self.line_num is None:
            return self.message
        return f"line {self.line_num}: {self.message}"


class DecodeError(FormconvError):
    """Raised when a workbook can't be read as an xlsform (sheets, columns)."""

    pass


class StructuralError(FormconvError):
    """Raised for unbalanced, mismatched or nested groups and repeats."""

    pass


class ValidationError(FormconvError):
    """Raised for invalid names, types, choice references and cell values."""

    pass


class ResourceError(FormconvError):
    """Raised when an auxiliary sheet (e.g. a table grid) is missing or malformed."""

    pass


class CompileError(FormconvError):
    """Raised when a formula can't be compiled.

    Attributes:
        context: Kind of cell being compiled (relevant, constraint, ...)
        line: Line inside the formula text (1-based)
        column: Column inside the formula text (1-based)
    """

    def __init__(
        self,
        context: str,
        line: int,
        column: int,
        message: str,
        line_num: int | None = None,
    ) -> None:
        self.context = context
        self.line = line
        self.column = column
        self.reason = message
        super().__init__(f"formula {context}:{line}:{column}: {message}", line_num=line_num)

    def at_row(self, line_num: int) -> "CompileError":
        """Return a copy of this error attributed to a spreadsheet row."""
        return CompileError(self.context, self.line, self.column, self.reason, line_num=line_num)


class InternalError(AssertionError):
    """Raised when an internal invariant is violated.

    This signals a bug in formconv, never a problem with the input.
    """

    pass
