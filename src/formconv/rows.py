"""
Row Model

Typed, read-only accessors over the rows of an xlsform's sheets.

A row is a mapping from column header to cell text, plus the 1-based line
of the row in its sheet (for error messages). Headers can carry a language
suffix ("label::French (fr)"); the accessors of translatable columns take
the wanted language, "" meaning the untranslated column.

ARCHITECTURAL RULE:
    Rows hold no logic beyond lookup. They are produced once by the sheet
    decoder (or by make_*_row) and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping

from formconv.languages import split_lang

# Survey structural markers
BEGIN_GROUP = "begin group"
END_GROUP = "end group"
BEGIN_REPEAT = "begin repeat"
END_REPEAT = "end repeat"

# Fallback language used when a sheet has no untranslated column.
DEFAULT_LANGUAGE = "English"


def _frozen(cells: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(cells))


@dataclass(frozen=True)
class Row:
    """
    A sheet record.

    Properties:
        cells: column header -> cell text
        line_num: 1-based line number in the source sheet (0 for synthetic rows)
    """

    cells: Mapping[str, str] = field(default_factory=dict)
    line_num: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", _frozen(self.cells))

    def cell(self, name: str, lang: str = "") -> str:
        """
        Value of column `name` in language `lang`.

        For the default language (""), the untranslated column wins; when it
        is missing the "::English" column is used instead.
        """
        if lang == "":
            if name in self.cells:
                return self.cells[name]
            prefix = f"{name}::{DEFAULT_LANGUAGE}"
            for header, value in self.cells.items():
                if header.startswith(prefix):
                    return value
            return ""
        for header, value in self.cells.items():
            if split_lang(header) == (name, lang):
                return value
        return ""


class SurveyRow(Row):
    """A row of the "survey" sheet: a question, a group marker or metadata."""

    @property
    def type(self) -> str:
        return self.cell("type")

    @property
    def name(self) -> str:
        return self.cell("name")

    def label(self, lang: str = "") -> str:
        return self.cell("label", lang)

    def hint(self, lang: str = "") -> str:
        return self.cell("hint", lang)

    def constraint_message(self, lang: str = "") -> str:
        return self.cell("constraint_message", lang)

    def required_message(self, lang: str = "") -> str:
        return self.cell("required_message", lang)

    @property
    def relevant(self) -> str:
        return self.cell("relevant")

    @property
    def permissions_relevant(self) -> str:
        return self.cell("permissions_relevant")

    @property
    def constraint(self) -> str:
        return self.cell("constraint")

    @property
    def calculation(self) -> str:
        return self.cell("calculation")

    @property
    def required(self) -> str:
        return self.cell("required")

    @property
    def repeat_count(self) -> str:
        return self.cell("repeat_count")

    @property
    def readonly(self) -> str:
        return self.cell("readonly")

    @property
    def default(self) -> str:
        return self.cell("default")

    @property
    def appearance(self) -> str:
        return self.cell("appearance")

    @property
    def choice_filter(self) -> str:
        return self.cell("choice_filter")

    @property
    def parameters(self) -> str:
        return self.cell("parameters")


# Columns of the choices sheet with a fixed meaning; every other
# untranslated column is copied into the choice as user-defined data.
CHOICES_COLUMNS = ("list name", "name", "label")


class ChoicesRow(Row):
    """A row of the "choices" sheet: one option of a named list."""

    @property
    def list_name(self) -> str:
        return self.cell("list name")

    @property
    def name(self) -> str:
        return self.cell("name")

    def label(self, lang: str = "") -> str:
        return self.cell("label", lang)

    def user_defined_cells(self) -> Dict[str, str]:
        """Cells of columns other than list name/name/label, translations excluded."""
        cells = {}
        for header, value in self.cells.items():
            if header == "" or "::" in header:
                continue
            if header in CHOICES_COLUMNS:
                continue
            cells[header] = value
        return cells


class SettingsRow(Row):
    """A row of the "settings" sheet, holding a tag label/value pair."""

    @property
    def tag_label(self) -> str:
        return self.cell("tag label")

    @property
    def tag_value(self) -> str:
        return self.cell("tag value")


def _pairs_to_cells(pairs: tuple) -> Dict[str, str]:
    if len(pairs) % 2 != 0:
        raise ValueError("cells must be given as column/value pairs")
    return {pairs[i]: pairs[i + 1] for i in range(0, len(pairs), 2)}


def make_survey_row(*pairs: str, line_num: int = 0) -> SurveyRow:
    """Build a survey row from alternating column/value arguments.

    Example:
        make_survey_row("type", "text", "name", "age", line_num=3)
    """
    return SurveyRow(_pairs_to_cells(pairs), line_num)


def make_choices_row(*pairs: str, line_num: int = 0) -> ChoicesRow:
    return ChoicesRow(_pairs_to_cells(pairs), line_num)


def make_settings_row(*pairs: str, line_num: int = 0) -> SettingsRow:
    return SettingsRow(_pairs_to_cells(pairs), line_num)
