"""
Tests for the group/repeat preprocessor.
"""

import pytest

from formconv.exceptions import InternalError, StructuralError
from formconv.groups import (
    GLOBAL_GROUP,
    RowCursor,
    check_balance,
    preprocess_groups,
)
from formconv.rows import make_survey_row


def rows_of(*types):
    return [make_survey_row("type", t, line_num=i + 2) for i, t in enumerate(types)]


class TestCheckBalance:

    @pytest.mark.parametrize("types", [
        ["begin group", "begin repeat", "end repeat", "end group"],
        ["end repeat"],
        ["begin repeat", "end group", "end repeat"],
        ["begin repeat", "begin group"],
    ])
    def test_invalid_structures(self, types):
        with pytest.raises(StructuralError):
            check_balance(rows_of(*types))

    def test_nested_repeat_line(self):
        with pytest.raises(StructuralError, match="nested") as info:
            check_balance(rows_of("begin repeat", "begin repeat"))
        assert info.value.line_num == 3

    def test_groups_inside_repeat(self):
        check_balance(rows_of("begin repeat", "begin group", "end group", "end repeat"))


class TestPreprocessGroups:

    def test_wraps_top_level_questions(self):
        survey = [
            make_survey_row("type", "decimal"),
            make_survey_row("type", "integer"),
            make_survey_row("type", "begin group", "name", "group"),
            make_survey_row("type", "text"),
            make_survey_row("type", "end group"),
            make_survey_row("type", "date"),
            make_survey_row("type", "time"),
        ]
        result = preprocess_groups(survey)

        assert [(r.type, r.name) for r in result] == [
            ("begin group", GLOBAL_GROUP),
            ("begin group", "slide0"),
            ("decimal", ""),
            ("integer", ""),
            ("end group", ""),
            ("begin group", "group"),
            ("text", ""),
            ("end group", ""),
            ("begin group", "slide1"),
            ("date", ""),
            ("time", ""),
            ("end group", ""),
            ("end group", ""),
        ]
        assert result[1].label() == "Slide 0"

    def test_single_run_is_still_a_numbered_slide(self):
        """A survey without groups gets slide0, not a "form" wrapper."""
        result = preprocess_groups(rows_of("text"))
        assert [(r.type, r.name) for r in result] == [
            ("begin group", GLOBAL_GROUP),
            ("begin group", "slide0"),
            ("text", ""),
            ("end group", ""),
            ("end group", ""),
        ]
        assert result[1].label() == "Slide 0"

    def test_input_is_not_modified(self):
        survey = rows_of("text")
        preprocess_groups(survey)
        assert len(survey) == 1

    def test_only_groups_needs_no_slides(self):
        result = preprocess_groups(rows_of("begin repeat", "text", "end repeat"))
        assert [r.type for r in result] == [
            "begin group", "begin repeat", "text", "end repeat", "end group",
        ]


class TestRowCursor:

    def test_consume_block(self):
        rows = rows_of("begin group", "begin group", "text", "end group", "end group", "date")
        cursor = RowCursor(rows)
        block = cursor.consume_block()
        assert len(block) == 5
        assert cursor.peek().type == "date"
        cursor.next()
        assert cursor.at_end()

    def test_consume_block_requires_begin(self):
        with pytest.raises(InternalError):
            RowCursor(rows_of("text")).consume_block()

    def test_unclosed_block(self):
        with pytest.raises(InternalError):
            RowCursor(rows_of("begin group", "text")).consume_block()
