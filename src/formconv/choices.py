"""
Choice-List Builder

Groups the rows of the choices sheet into named choice origins and checks
that every choice field of the survey references a declared list.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from formconv.exceptions import ValidationError
from formconv.model import Choice, ChoicesOrigin
from formconv.rows import ChoicesRow, SurveyRow

SELECT_ONE = "select_one "
SELECT_MULTIPLE = "select_multiple "

ChoicesLookup = Dict[str, List[Choice]]


def is_select_one(row_type: str) -> bool:
    return row_type.startswith(SELECT_ONE)


def is_select_multiple(row_type: str) -> bool:
    return row_type.startswith(SELECT_MULTIPLE)


def is_choice_type(row_type: str) -> bool:
    return is_select_one(row_type) or is_select_multiple(row_type)


def choice_list_name(row_type: str) -> str:
    """
    Name of the list referenced by a choice type.

    "select_one yes_no" -> "yes_no"
    """
    if not is_choice_type(row_type):
        raise ValueError(f"not a choice type: {row_type!r}")
    return row_type[row_type.index(" ") + 1:].strip()


def _is_placeholder(choices: List[Choice]) -> bool:
    """A list declared with a single blank row, meant to be empty."""
    return len(choices) == 1 and choices[0]["value"] == "" and choices[0]["label"] == ""


def build_choices_origins(rows: Iterable[ChoicesRow]) -> Tuple[List[ChoicesOrigin], ChoicesLookup]:
    """
    Group choice rows by list name.

    Args:
        rows: Rows of the choices sheet

    Returns:
        (origins, lookup) where origins are sorted by list name with choices
        in sheet order, and lookup maps every declared list name to its
        choices. Placeholder lists (a single choice with empty value and
        label) are left out of origins but kept in lookup.
    """
    lookup: ChoicesLookup = {}
    for row in rows:
        choice = row.user_defined_cells()
        choice["value"] = row.name
        choice["label"] = row.label()
        lookup.setdefault(row.list_name, []).append(choice)

    origins = [
        ChoicesOrigin(name=name, choices=choices)
        for name, choices in sorted(lookup.items())
        if not _is_placeholder(choices)
    ]
    return origins, lookup


def check_choices(
    survey: Iterable[SurveyRow],
    rows: Iterable[ChoicesRow],
    lookup: ChoicesLookup,
) -> None:
    """
    Validate choice lists against the survey.

    Args:
        survey: Rows of the survey sheet
        rows: Rows of the choices sheet
        lookup: Choices by list name, as built by build_choices_origins

    Raises:
        ValidationError: If a choice has no label, or if a select_one /
            select_multiple field references an undeclared list
    """
    for row in rows:
        if row.label() == "" and not _is_placeholder(lookup.get(row.list_name, [])):
            raise ValidationError(
                f"Choice list {row.list_name!r} contains a choice with no label.",
                line_num=row.line_num,
            )

    for row in survey:
        if is_choice_type(row.type):
            name = choice_list_name(row.type)
            if name not in lookup:
                raise ValidationError(
                    f"Undefined single or multiple choice {name!r}.", line_num=row.line_num
                )
