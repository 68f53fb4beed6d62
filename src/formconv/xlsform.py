"""
Sheet Decoder

Reads the sheets of a workbook into typed rows.

A workbook is anything with a rows(sheet_name) method returning the sheet
as a grid of strings, or None when the sheet doesn't exist (see
formconv.workbook for the .xlsx implementation).

    survey    mandatory    questions and group markers
    choices   optional     option lists of select fields
    settings  optional     string identifier tags

Each table field of the survey also reads the sheet named after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Set, Tuple, TypeVar

from formconv.exceptions import DecodeError
from formconv.languages import Grid, first_nonempty, is_empty, list_languages
from formconv.rows import (
    DEFAULT_LANGUAGE,
    ChoicesRow,
    Row,
    SettingsRow,
    SurveyRow,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Row)


class WorkBook(Protocol):
    def rows(self, sheet_name: str) -> Optional[Grid]:
        ...


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    mandatory: bool = False


@dataclass(frozen=True)
class SheetInfo:
    name: str
    mandatory: bool
    columns: Tuple[ColumnInfo, ...]


SURVEY_SHEET = SheetInfo("survey", True, (
    ColumnInfo("type", mandatory=True),
    ColumnInfo("name", mandatory=True),
    ColumnInfo("label", mandatory=True),
    ColumnInfo("hint"),
    ColumnInfo("relevant"),
    ColumnInfo("permissions_relevant"),
    ColumnInfo("constraint"),
    ColumnInfo("constraint_message"),
    ColumnInfo("calculation"),
    ColumnInfo("required"),
    ColumnInfo("required_message"),
    ColumnInfo("repeat_count"),
    ColumnInfo("readonly"),
    ColumnInfo("default"),
    ColumnInfo("appearance"),
    ColumnInfo("choice_filter"),
    ColumnInfo("parameters"),
))

CHOICES_SHEET = SheetInfo("choices", False, (
    ColumnInfo("list name", mandatory=True),
    ColumnInfo("name", mandatory=True),
    ColumnInfo("label", mandatory=True),
))

SETTINGS_SHEET = SheetInfo("settings", False, (
    ColumnInfo("tag label"),
    ColumnInfo("tag value"),
))

# Legacy spellings accepted in any cell.
_CANONICAL_CELLS = {
    "list_name": "list name",
    "begin_group": "begin group",
    "end_group": "end group",
    "begin_repeat": "begin repeat",
    "end_repeat": "end repeat",
}
_CANONICAL_PREFIXES = (
    ("select one", "select_one"),
    ("select multiple", "select_multiple"),
)


@dataclass
class XlsForm:
    """
    A decoded xlsform.

    Properties:
        survey: Non-empty rows of the survey sheet
        choices: Non-empty rows of the choices sheet
        settings: Non-empty rows of the settings sheet
        tables: Raw grid of each table field's sheet, by field name
        languages: Languages of the translated survey/choices columns
    """

    survey: List[SurveyRow] = field(default_factory=list)
    choices: List[ChoicesRow] = field(default_factory=list)
    settings: List[SettingsRow] = field(default_factory=list)
    tables: Dict[str, Grid] = field(default_factory=dict)
    languages: Set[str] = field(default_factory=set)


def canonicalize_cell(cell: str) -> str:
    if cell in _CANONICAL_CELLS:
        return _CANONICAL_CELLS[cell]
    for legacy, canonical in _CANONICAL_PREFIXES:
        if cell.startswith(legacy):
            return canonical + cell[len(legacy):]
    return cell


def canonicalize(rows: Grid) -> Grid:
    return [[canonicalize_cell(cell) for cell in row] for row in rows]


def column_index(head: List[str], name: str) -> int:
    """Index of column `name`, falling back to its English translation."""
    for i, cell in enumerate(head):
        if cell == name:
            return i
    prefix = f"{name}::{DEFAULT_LANGUAGE}"
    for i, cell in enumerate(head):
        if cell.startswith(prefix):
            return i
    return -1


def _read_sheet(
    workbook: WorkBook,
    info: SheetInfo,
    make_row: Callable[[Dict[str, str], int], R],
) -> Tuple[List[R], Optional[Grid]]:
    raw = workbook.rows(info.name)
    if raw is None:
        if info.mandatory:
            raise DecodeError(f"Missing mandatory sheet {info.name!r}.")
        return [], None

    grid = canonicalize(raw)
    head_index = first_nonempty(grid)
    if head_index == -1:
        raise DecodeError(f"Empty sheet {info.name!r}.")
    head = grid[head_index]
    for column in info.columns:
        if column.mandatory and column_index(head, column.name) == -1:
            raise DecodeError(
                f"Column {column.name!r} in sheet {info.name!r} is mandatory."
            )

    rows = []
    for i in range(head_index + 1, len(grid)):
        line = grid[i]
        if is_empty(line):
            continue
        cells: Dict[str, str] = {}
        for j, header in enumerate(head):
            if header == "" or header in cells:
                continue
            cells[header] = line[j] if j < len(line) else ""
        rows.append(make_row(cells, i + 1))
    return rows, grid


def dec_xlsform(workbook: WorkBook) -> XlsForm:
    """
    Decode the sheets of a workbook.

    Raises:
        DecodeError: If the survey sheet is missing, a present sheet is
            empty or lacks a mandatory column
    """
    xls = XlsForm()
    xls.survey, survey_grid = _read_sheet(workbook, SURVEY_SHEET, SurveyRow)
    xls.choices, choices_grid = _read_sheet(workbook, CHOICES_SHEET, ChoicesRow)
    xls.settings, _ = _read_sheet(workbook, SETTINGS_SHEET, SettingsRow)

    for row in xls.survey:
        if row.type == "table" and row.name not in xls.tables:
            grid = workbook.rows(row.name)
            if grid is not None:
                xls.tables[row.name] = grid

    xls.languages = list_languages(survey_grid) | list_languages(choices_grid)
    logger.debug(
        "Decoded %d survey rows, %d choices, %d settings, %d tables",
        len(xls.survey), len(xls.choices), len(xls.settings), len(xls.tables),
    )
    return xls
