"""
Workbook reader for .xlsx files, based on openpyxl.

The whole workbook is read into memory as grids of strings, one per sheet,
and the file is closed right away.
"""

from __future__ import annotations

import datetime
import logging
import os
from typing import IO, Dict, List, Optional, Union

from openpyxl import load_workbook

from formconv.exceptions import DecodeError
from formconv.languages import Grid

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx",)


def cell_text(value) -> str:
    """Render a cell value the way it reads in the spreadsheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


class OpenpyxlWorkBook:
    """
    Sheets of an .xlsx workbook.

    Every row of a sheet has the same number of cells; missing cells
    are empty strings.
    """

    def __init__(self, sheets: Dict[str, Grid]) -> None:
        self.sheets = sheets

    @classmethod
    def load(cls, source: Union[str, os.PathLike, IO[bytes]]) -> "OpenpyxlWorkBook":
        try:
            wb = load_workbook(source, read_only=True, data_only=True)
        except Exception as e:
            raise DecodeError(f"Couldn't read excel file: {e}") from e
        try:
            sheets = {ws.title: cls._read_grid(ws) for ws in wb.worksheets}
        finally:
            wb.close()
        logger.debug("Loaded workbook with sheets %s", list(sheets))
        return cls(sheets)

    @staticmethod
    def _read_grid(ws) -> Grid:
        rows: List[List[str]] = [
            [cell_text(value) for value in row]
            for row in ws.iter_rows(values_only=True)
        ]
        width = max((len(row) for row in rows), default=0)
        for row in rows:
            row.extend([""] * (width - len(row)))
        return rows

    def rows(self, sheet_name: str) -> Optional[Grid]:
        if sheet_name not in self.sheets:
            return None
        return self.sheets[sheet_name]


def open_workbook(
    source: Union[str, os.PathLike, IO[bytes]],
    ext: Optional[str] = None,
) -> OpenpyxlWorkBook:
    """
    Open a workbook from a path or a binary file object.

    Args:
        source: Path of the file, or an open binary file
        ext: File extension including the dot; taken from the path
            when omitted

    Raises:
        DecodeError: If the extension is not supported or the file
            can't be read
    """
    if ext is None:
        path = source if isinstance(source, (str, os.PathLike)) else getattr(source, "name", "")
        ext = os.path.splitext(os.fspath(path))[1]
    ext = ext.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise DecodeError(f"Unsupported excel file type {ext!r}.")
    return OpenpyxlWorkBook.load(source)
