"""
Tests for the .xlsx reader.
"""

import datetime

import pytest

from conftest import write_xlsx
from formconv.exceptions import DecodeError
from formconv.workbook import cell_text, open_workbook
from formconv.xlsform import dec_xlsform


class TestCellText:

    @pytest.mark.parametrize("value, expected", [
        (None, ""),
        ("abc", "abc"),
        (3, "3"),
        (3.0, "3"),
        (2.5, "2.5"),
        (True, "true"),
        (datetime.date(2020, 1, 31), "2020-01-31"),
    ])
    def test_cell_text(self, value, expected):
        assert cell_text(value) == expected


class TestOpenWorkbook:

    def test_reads_sheets(self, tmp_path):
        path = write_xlsx(tmp_path / "f.xlsx", survey=[["type", "name"], ["integer", "n", 5]])
        wb = open_workbook(path)
        assert wb.rows("survey") == [["type", "name", ""], ["integer", "n", "5"]]
        assert wb.rows("choices") is None

    def test_file_object(self, xlsx_file):
        with open(xlsx_file, "rb") as f:
            wb = open_workbook(f)
        assert wb.rows("survey")[0][0] == "type"

    def test_decodes_as_xlsform(self, xlsx_file):
        xls = dec_xlsform(open_workbook(xlsx_file))
        assert [r.name for r in xls.survey] == ["first_name", "adult", "details", "age", ""]

    @pytest.mark.parametrize("name", ["form.xls", "form.csv", "form"])
    def test_unsupported_extension(self, tmp_path, name):
        with pytest.raises(DecodeError, match="Unsupported excel file type"):
            open_workbook(tmp_path / name)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip")
        with pytest.raises(DecodeError, match="Couldn't read excel file"):
            open_workbook(path)
