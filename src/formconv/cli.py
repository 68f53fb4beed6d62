"""
Command line converter.

    formconv form1.xlsx form2.xlsx

writes form1.json and form2.json next to the input files. A file that
fails to convert is reported and skipped; the others are still converted.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from formconv import __version__
from formconv.config import configure_logging
from formconv.convert import convert
from formconv.exceptions import FormconvError
from formconv.serialization import write_form
from formconv.workbook import open_workbook
from formconv.xlsform import dec_xlsform

logger = logging.getLogger(__name__)


def output_path(xls_path: str, fmt: str) -> str:
    """form.xlsx -> form.json"""
    return os.path.splitext(xls_path)[0] + "." + fmt


def convert_file(xls_path: str, fmt: str = "json") -> str:
    """
    Convert one xlsform file, writing the result beside it.

    Returns:
        Path of the written file

    Raises:
        FormconvError: If the file can't be decoded or converted
        OSError: If the output can't be written
    """
    short = os.path.basename(xls_path)
    try:
        xls = dec_xlsform(open_workbook(xls_path))
    except FormconvError as e:
        raise FormconvError(f"Error decoding file {short}: {e}") from e
    try:
        form = convert(xls)
    except FormconvError as e:
        raise FormconvError(f"Error converting file {short}: {e}") from e
    out = output_path(xls_path, fmt)
    write_form(form, out, fmt)
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formconv",
        description="Convert xlsform files to ajf forms.",
    )
    parser.add_argument("files", nargs="+", help="xlsform files (.xlsx)")
    parser.add_argument(
        "--format", dest="fmt", choices=("json", "yaml"), default="json",
        help="output format (default: json)",
    )
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    failed = 0
    for path in args.files:
        try:
            out = convert_file(path, args.fmt)
        except (FormconvError, OSError) as e:
            logger.error("%s", e)
            failed += 1
            continue
        logger.info("Wrote %s", out)
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
