"""
Top-Level Converter

Runs the conversion pipeline on a decoded xlsform:

    1. check_types / check_names     survey-wide validation
    2. build_choices_origins         choice lists + reference check
    3. preprocess_groups             balanced groups, slide wrapping
    4. NodeBuilder.build_group       node tree, formulas compiled
    5. assign_ids                    node numbering
    6. process_settings              string identifier tags
    7. build_translations            per-language text maps

The pipeline is fail-fast: the first error aborts the conversion and no
partial document is returned.
"""

import logging
from typing import Dict, Iterable, List

from formconv.builder import (
    NodeBuilder,
    is_ignored_field,
    is_supported_field,
    is_unsupported_field,
)
from formconv.choices import build_choices_origins, check_choices
from formconv.exceptions import ValidationError
from formconv.groups import is_begin, is_end, preprocess_groups
from formconv.identifiers import assign_ids
from formconv.model import AjfForm, NodeType, Tag
from formconv.rows import END_GROUP, END_REPEAT, SettingsRow, SurveyRow
from formconv.xlsform import XlsForm

logger = logging.getLogger(__name__)

Translation = Dict[str, str]


def convert(xls: XlsForm) -> AjfForm:
    """
    Convert a decoded xlsform into a form document.

    Args:
        xls: Rows of the survey, choices and settings sheets, plus the
            table sheets and the languages found in the headers

    Returns:
        The form document

    Raises:
        FormconvError: On the first invalid row, formula or table
    """
    check_types(xls.survey)
    check_names(xls.survey)

    form = AjfForm()
    form.choices_origins, lookup = build_choices_origins(xls.choices)
    check_choices(xls.survey, xls.choices, lookup)
    logger.debug("Built %d choices origins", len(form.choices_origins))

    survey = preprocess_groups(xls.survey)
    global_group = NodeBuilder(tables=xls.tables).build_group(survey)
    form.slides = global_group.nodes
    for slide in form.slides:
        if slide.node_type == NodeType.GROUP:
            slide.node_type = NodeType.SLIDE
    assign_ids(form.slides)
    logger.debug("Built %d slides", len(form.slides))

    form.string_identifier = process_settings(xls.settings)
    form.translations = build_translations(xls)
    logger.debug("Built translations for %d languages", len(form.translations))
    return form


def check_types(survey: Iterable[SurveyRow]) -> None:
    """
    Verify that every survey row has a type the converter knows.

    Raises:
        ValidationError: For empty, unsupported or unknown types
    """
    for row in survey:
        row_type = row.type
        if is_supported_field(row_type) or is_ignored_field(row_type):
            continue
        if is_begin(row_type) or is_end(row_type):
            continue
        if is_unsupported_field(row_type):
            raise ValidationError(
                f"Questions of type {row_type!r} are not supported.", line_num=row.line_num
            )
        if row_type == "":
            raise ValidationError("Empty type in non-empty survey row.", line_num=row.line_num)
        raise ValidationError(f"Invalid type {row_type!r} in survey.", line_num=row.line_num)


def is_identifier(name: str) -> bool:
    """Letters, digits and underscores, not starting with a digit."""
    if name == "":
        return False
    for i, ch in enumerate(name):
        if ch == "_" or ch.isalpha() or (ch.isdigit() and i > 0):
            continue
        return False
    return True


def check_names(survey: Iterable[SurveyRow]) -> None:
    """
    Verify the names of the survey rows.

    End markers must have no name, notes may omit it, every other row needs
    a valid identifier. A name can be reused only if every row using it has
    a non-empty relevant, so that at most one of them is visible at a time.

    Raises:
        ValidationError: On the first invalid or duplicate name
    """
    has_relevant: Dict[str, bool] = {}
    for row in survey:
        name = row.name
        if row.type in (END_GROUP, END_REPEAT):
            if name != "":
                raise ValidationError(
                    "End of group/repeat can't have a name.", line_num=row.line_num
                )
            continue
        if row.type == "note" and name == "":
            continue
        if not is_identifier(name):
            raise ValidationError(
                f"Name {name!r} is not a valid identifier.", line_num=row.line_num
            )
        if name in has_relevant and (not has_relevant[name] or row.relevant == ""):
            raise ValidationError(
                f"Field name {name!r} is already used.", line_num=row.line_num
            )
        has_relevant[name] = row.relevant != ""


def process_settings(settings: Iterable[SettingsRow]) -> List[Tag]:
    """
    Read the string identifier tags of the settings sheet.

    Raises:
        ValidationError: If a tag value is not a valid identifier
    """
    tags = []
    for row in settings:
        label, value = row.tag_label, row.tag_value
        if label == "" and value == "":
            continue
        if not is_identifier(value):
            raise ValidationError(
                f"Tag value {value!r} is not a valid identifier.", line_num=row.line_num
            )
        tags.append(Tag(label=label, value=value))
    return tags


def _check_key(key: str, line_num: int, sheet_hint: str = "") -> None:
    if "[" in key or "]" in key:
        raise ValidationError(
            "Translation key cannot contain square brackets" + sheet_hint, line_num=line_num
        )


def build_translation(xls: XlsForm, lang: str) -> Translation:
    """
    Map the default-language texts of the form to their `lang` version.

    Labels, hints, constraint and required messages of the survey are
    considered, as well as the labels of the choices.
    """
    result: Translation = {}
    for row in xls.survey:
        for column in (row.label, row.hint, row.constraint_message, row.required_message):
            key, value = column(), column(lang)
            if key != "" and value != "":
                _check_key(key, row.line_num)
                result[key] = value
    for choice in xls.choices:
        key, value = choice.label(), choice.label(lang)
        if key != "" and value != "":
            _check_key(key, choice.line_num, " (choices sheet)")
            result[key] = value
    return result


def build_translations(xls: XlsForm) -> Dict[str, Translation]:
    """Translation maps for every language of the form, by language."""
    return {lang: build_translation(xls, lang) for lang in sorted(xls.languages) if lang != ""}
