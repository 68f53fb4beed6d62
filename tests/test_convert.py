"""
Tests for the top-level converter.

End-to-end conversions of in-memory xlsforms, plus the survey-wide checks
(types, names, settings, translations).
"""

import pytest

from formconv.convert import (
    build_translations,
    check_names,
    check_types,
    convert,
    is_identifier,
    process_settings,
)
from formconv.exceptions import FormconvError, StructuralError, ValidationError
from formconv.model import FieldType, NodeType, Tag
from formconv.rows import make_choices_row, make_settings_row, make_survey_row
from formconv.xlsform import XlsForm


def survey(*rows):
    """Survey rows from (type, name, ...extra pairs) tuples, numbered from line 2."""
    return [
        make_survey_row("type", r[0], "name", r[1], *r[2:], line_num=i + 2)
        for i, r in enumerate(rows)
    ]


class TestIsIdentifier:

    @pytest.mark.parametrize("name", ["a", "_a", "a1", "città", "snake_case_2"])
    def test_valid(self, name):
        assert is_identifier(name)

    @pytest.mark.parametrize("name", ["", "1a", "a-b", "a b", "a.b"])
    def test_invalid(self, name):
        assert not is_identifier(name)


class TestCheckTypes:

    def test_known_types(self):
        check_types(survey(
            ("text", "a"), ("select_one l", "b"), ("start", "c"),
            ("begin group", "g"), ("end group", ""),
        ))

    def test_unsupported(self):
        with pytest.raises(ValidationError, match="not supported") as info:
            check_types(survey(("text", "a"), ("geotrace", "b")))
        assert info.value.line_num == 3

    def test_rank_unsupported(self):
        with pytest.raises(ValidationError, match="not supported"):
            check_types(survey(("rank items", "a")))

    def test_empty_type(self):
        with pytest.raises(ValidationError, match="Empty type"):
            check_types(survey(("", "a")))

    def test_invalid_type(self):
        with pytest.raises(ValidationError, match="Invalid type"):
            check_types(survey(("txt", "a")))


class TestCheckNames:

    def test_end_with_name(self):
        with pytest.raises(ValidationError, match="can't have a name"):
            check_names(survey(("begin group", "g"), ("end group", "g")))

    def test_note_without_name(self):
        check_names(survey(("note", "")))

    def test_invalid_name(self):
        with pytest.raises(ValidationError, match="not a valid identifier"):
            check_names(survey(("text", "1st")))

    def test_duplicate(self):
        with pytest.raises(ValidationError, match="already used") as info:
            check_names(survey(("text", "a"), ("integer", "a")))
        assert info.value.line_num == 3

    def test_duplicate_with_relevant(self):
        """A name can be reused when every occurrence has a relevant."""
        check_names(survey(
            ("text", "a", "relevant", "${x} = 1"),
            ("integer", "a", "relevant", "${x} = 2"),
        ))

    def test_duplicate_second_without_relevant(self):
        with pytest.raises(ValidationError, match="already used"):
            check_names(survey(("text", "a", "relevant", "${x} = 1"), ("integer", "a")))


class TestProcessSettings:

    def test_tags(self):
        rows = [
            make_settings_row("tag label", "Form", "tag value", "form_id"),
            make_settings_row("tag label", "", "tag value", ""),
        ]
        assert process_settings(rows) == [Tag("Form", "form_id")]

    def test_invalid_value(self):
        rows = [make_settings_row("tag label", "Form", "tag value", "form id", line_num=2)]
        with pytest.raises(ValidationError, match="Tag value"):
            process_settings(rows)


class TestBuildTranslations:

    def test_survey_and_choices(self):
        xls = XlsForm(
            survey=[make_survey_row(
                "type", "text", "name", "a",
                "label", "Cheese", "label::Italian (it)", "Formaggio",
                "hint", "Any", "hint::Italian (it)", "Qualsiasi",
            )],
            choices=[make_choices_row(
                "list name", "l", "name", "y", "label", "Yes", "label::Italian (it)", "Sì",
            )],
            languages={"", "Italian"},
        )
        assert build_translations(xls) == {
            "Italian": {"Cheese": "Formaggio", "Any": "Qualsiasi", "Yes": "Sì"},
        }

    def test_square_brackets(self):
        xls = XlsForm(
            survey=[make_survey_row("label", "[x]", "label::Italian", "[y]", line_num=4)],
            languages={"Italian"},
        )
        with pytest.raises(ValidationError, match="square brackets") as info:
            build_translations(xls)
        assert info.value.line_num == 4


class TestConvert:

    def test_full_form(self):
        xls = XlsForm(
            survey=survey(
                ("text", "name", "label", "Your name", "required", "yes"),
                ("select_one yn", "adult", "label", "Adult?"),
                ("begin repeat", "kids", "label", "Kids", "repeat_count", "3"),
                ("integer", "age", "label", "Age", "relevant", "${adult} = 'y'"),
                ("end repeat", ""),
                ("note", "", "label", "Thanks"),
            ),
            choices=[
                make_choices_row("list name", "yn", "name", "y", "label", "Yes"),
                make_choices_row("list name", "yn", "name", "n", "label", "No"),
            ],
            settings=[make_settings_row("tag label", "Form", "tag value", "kids_form")],
        )
        form = convert(xls)

        assert [o.name for o in form.choices_origins] == ["yn"]
        assert [(s.name, s.node_type) for s in form.slides] == [
            ("slide0", NodeType.SLIDE),
            ("kids", NodeType.REPEATING_SLIDE),
            ("slide1", NodeType.SLIDE),
        ]
        slide0, kids, slide1 = form.slides
        assert [n.name for n in slide0.nodes] == ["name", "adult"]
        assert kids.max_reps == 3
        age = kids.nodes[0]
        assert age.visibility.condition == "adult === 'y'"
        assert slide1.nodes[0].field_type == FieldType.NOTE

        assert (slide0.id, kids.id, slide1.id) == (1, 2, 3)
        assert (age.id, age.previous) == (2001, 2)
        assert form.string_identifier == [Tag("Form", "kids_form")]
        assert form.translations == {}

    def test_every_choice_reference_resolves(self):
        xls = XlsForm(
            survey=survey(("select_one a", "x"), ("select_multiple b", "y")),
            choices=[
                make_choices_row("list name", "a", "name", "1", "label", "One"),
                make_choices_row("list name", "b", "name", "2", "label", "Two"),
            ],
        )
        form = convert(xls)
        refs = {n.choices_origin_ref for s in form.slides for n in s.walk() if n.choices_origin_ref}
        assert refs == {"a", "b"}
        assert all(form.get_choices_origin(ref) for ref in refs)

    def test_removing_a_list_breaks_its_references(self):
        """Dropping a referenced list turns a valid form into an error naming it."""
        rows = survey(("select_one yn", "adult"), ("text", "note_text"))
        yn = [
            make_choices_row("list name", "yn", "name", "y", "label", "Yes"),
            make_choices_row("list name", "yn", "name", "n", "label", "No"),
        ]
        other = [make_choices_row("list name", "colors", "name", "r", "label", "Red")]
        convert(XlsForm(survey=rows, choices=yn + other))

        with pytest.raises(ValidationError, match="'yn'") as info:
            convert(XlsForm(survey=rows, choices=other))
        assert info.value.line_num == 2

    def test_unbalanced_groups(self):
        xls = XlsForm(survey=survey(("begin group", "g"), ("text", "a")))
        with pytest.raises(StructuralError):
            convert(xls)

    def test_errors_share_base_class(self):
        xls = XlsForm(survey=survey(("text", "a", "constraint", "1 ==")))
        with pytest.raises(FormconvError):
            convert(xls)

    def test_ignored_fields_are_dropped(self):
        xls = XlsForm(survey=survey(("start", "started"), ("text", "a"), ("deviceid", "dev")))
        form = convert(xls)
        assert [n.name for n in form.slides[0].nodes] == ["a"]
