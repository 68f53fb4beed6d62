"""
Tests for the row model.
"""

import pytest

from formconv.rows import (
    ChoicesRow,
    SurveyRow,
    make_choices_row,
    make_settings_row,
    make_survey_row,
)


class TestSurveyRow:

    def test_accessors(self):
        row = make_survey_row(
            "type", "integer", "name", "age", "label", "Age",
            "relevant", "${adult} = 'yes'", "required", "yes",
            line_num=5,
        )
        assert row.type == "integer"
        assert row.name == "age"
        assert row.label() == "Age"
        assert row.relevant == "${adult} = 'yes'"
        assert row.required == "yes"
        assert row.line_num == 5

    def test_missing_column_is_empty(self):
        row = make_survey_row("type", "text")
        assert row.hint() == ""
        assert row.constraint == ""

    def test_translated_label(self):
        row = make_survey_row("label", "Cheese", "label::Italian (it)", "Formaggio")
        assert row.label() == "Cheese"
        assert row.label("Italian") == "Formaggio"
        assert row.label("French") == ""

    def test_default_falls_back_to_english(self):
        """Without an untranslated column, the English one is the default."""
        row = SurveyRow({"label::English (en)": "Cheese", "label::Italian": "Formaggio"})
        assert row.label() == "Cheese"

    def test_rows_are_read_only(self):
        row = make_survey_row("type", "text")
        with pytest.raises(TypeError):
            row.cells["type"] = "note"

    def test_odd_pairs(self):
        with pytest.raises(ValueError):
            make_survey_row("type")


class TestChoicesRow:

    def test_accessors(self):
        row = make_choices_row("list name", "yn", "name", "y", "label", "Yes")
        assert (row.list_name, row.name, row.label()) == ("yn", "y", "Yes")

    def test_user_defined_cells(self):
        row = ChoicesRow({
            "list name": "cities", "name": "rome", "label": "Rome",
            "label::Italian": "Roma", "country": "italy", "": "stray",
        })
        assert row.user_defined_cells() == {"country": "italy"}


class TestSettingsRow:

    def test_accessors(self):
        row = make_settings_row("tag label", "Form", "tag value", "form_id")
        assert row.tag_label == "Form"
        assert row.tag_value == "form_id"
