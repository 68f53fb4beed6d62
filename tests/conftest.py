"""Shared fixtures: in-memory and on-disk workbooks."""

import pytest
from openpyxl import Workbook


class FakeWorkBook:
    """A workbook made of grids, keyed by sheet name."""

    def __init__(self, **sheets):
        self.sheets = sheets

    def rows(self, sheet_name):
        return self.sheets.get(sheet_name)


SURVEY = [
    ["type", "name", "label", "label::Italian (it)", "relevant", "required"],
    ["text", "first_name", "First name", "Nome", "", "yes"],
    ["select one yn", "adult", "Adult?", "Adulto?", "", ""],
    ["", "", "", "", "", ""],
    ["begin_group", "details", "Details", "Dettagli", "${adult} = 'y'", ""],
    ["integer", "age", "Age", "Età", "", ""],
    ["end_group", "", "", "", "", ""],
]

CHOICES = [
    ["list_name", "name", "label", "label::Italian (it)"],
    ["yn", "y", "Yes", "Sì"],
    ["yn", "n", "No", "No"],
]

SETTINGS = [
    ["tag label", "tag value"],
    ["Form", "demo_form"],
]


@pytest.fixture
def fake_workbook():
    return FakeWorkBook(survey=SURVEY, choices=CHOICES, settings=SETTINGS)


def write_xlsx(path, **sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for name, grid in sheets.items():
        ws = wb.create_sheet(name)
        for row in grid:
            ws.append([cell if cell != "" else None for cell in row])
    wb.save(path)
    return path


@pytest.fixture
def xlsx_file(tmp_path):
    return write_xlsx(tmp_path / "demo.xlsx", survey=SURVEY, choices=CHOICES, settings=SETTINGS)
