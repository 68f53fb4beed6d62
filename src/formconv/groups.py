"""
Group/Repeat Preprocessor

The survey sheet is a flat list of rows where groups and repeats are
delimited by begin/end marker rows. Before building the tree this module:

    1. Checks that markers are balanced and that repeats are not nested
       (a repeat can't appear inside any other group or repeat).
    2. Wraps runs of top-level questions into numbered slide groups.
    3. Wraps the whole survey into a synthetic "global" group.

After preprocessing every direct child of "global" is a group or a repeat,
so the tree builder can treat the whole survey as a single group.

RowCursor walks a preprocessed sequence and hands out nested blocks.
"""

from __future__ import annotations

from typing import List, Sequence

from formconv.exceptions import InternalError, StructuralError
from formconv.rows import (
    BEGIN_GROUP,
    BEGIN_REPEAT,
    END_GROUP,
    END_REPEAT,
    SurveyRow,
    make_survey_row,
)

GLOBAL_GROUP = "global"

_BEGINS = (BEGIN_GROUP, BEGIN_REPEAT)
_ENDS = (END_GROUP, END_REPEAT)


def is_begin(row_type: str) -> bool:
    return row_type in _BEGINS


def is_end(row_type: str) -> bool:
    return row_type in _ENDS


def _matches(begin: SurveyRow, end: SurveyRow) -> bool:
    # "begin group" closes with "end group", "begin repeat" with "end repeat"
    return begin.type[len("begin"):] == end.type[len("end"):]


def check_balance(survey: Sequence[SurveyRow]) -> None:
    """
    Verify the nesting of groups and repeats.

    Raises:
        StructuralError: On a nested repeat, an end marker that doesn't
            close the innermost open block, or a block left open
    """
    stack: List[SurveyRow] = []
    for row in survey:
        if row.type == BEGIN_REPEAT and stack:
            raise StructuralError("Repeats can't be nested.", line_num=row.line_num)
        if is_begin(row.type):
            stack.append(row)
        elif is_end(row.type):
            if not stack or not _matches(stack[-1], row):
                raise StructuralError("Unexpected end of group/repeat.", line_num=row.line_num)
            stack.pop()
    if stack:
        raise StructuralError("Unclosed group/repeat.", line_num=stack[-1].line_num)


def preprocess_groups(survey: Sequence[SurveyRow]) -> List[SurveyRow]:
    """
    Check and normalize the group structure of a survey.

    Example:
        [text, begin group, decimal, end group, date]
    becomes
        [begin global,
            begin slide0, text, end,
            begin group, decimal, end,
            begin slide1, date, end,
         end]

    Wrappers are always numbered slides (slide<N>, labelled "Slide <N>",
    from 0), even when the survey has a single run of questions and no
    groups; no "form"/"Form" wrapper is produced.

    Args:
        survey: Rows of the survey sheet, in order

    Returns:
        A new list of rows; the input is left untouched

    Raises:
        StructuralError: If groups/repeats are unbalanced or repeats nested
    """
    check_balance(survey)

    result = [make_survey_row("type", BEGIN_GROUP, "name", GLOBAL_GROUP)]
    depth = 0
    grouping = False
    slide_num = 0
    for row in survey:
        if is_begin(row.type):
            if grouping:
                result.append(make_survey_row("type", END_GROUP))
                grouping = False
            depth += 1
        elif is_end(row.type):
            depth -= 1
        elif depth == 0 and not grouping:
            grouping = True
            result.append(make_survey_row(
                "type", BEGIN_GROUP,
                "name", f"slide{slide_num}",
                "label", f"Slide {slide_num}",
            ))
            slide_num += 1
        result.append(row)
    if grouping:
        result.append(make_survey_row("type", END_GROUP))
    result.append(make_survey_row("type", END_GROUP))  # global
    return result


class RowCursor:
    """
    A position over a preprocessed row sequence.

    The sequence must be balanced (see check_balance); violations found
    while walking it are internal errors.
    """

    def __init__(self, rows: Sequence[SurveyRow], start: int = 0) -> None:
        self.rows = rows
        self.pos = start

    def at_end(self) -> bool:
        return self.pos >= len(self.rows)

    def peek(self) -> SurveyRow:
        return self.rows[self.pos]

    def next(self) -> SurveyRow:
        row = self.rows[self.pos]
        self.pos += 1
        return row

    def consume_block(self) -> Sequence[SurveyRow]:
        """
        Consume the block starting at the current row.

        Returns:
            The rows from the current begin marker up to and including its
            matching end marker
        """
        start = self.pos
        if not is_begin(self.rows[start].type):
            raise InternalError("not a group")
        depth = 0
        for i in range(start, len(self.rows)):
            row_type = self.rows[i].type
            if is_begin(row_type):
                depth += 1
            elif is_end(row_type):
                depth -= 1
                if depth == 0:
                    self.pos = i + 1
                    return self.rows[start:i + 1]
        raise InternalError("group end not found")
