"""
Tree Builder

Turns a preprocessed survey (see formconv.groups) into a tree of Nodes.
Every formula cell met on the way is compiled to JavaScript, and the
type-specific payload of each field is filled in.

Field types fall in three families:

    supported    built into fields (text, integer, select_one x, ...)
    ignored      metadata collected by other tools (start, deviceid, ...)
    unsupported  valid xlsform types this converter can't express
"""

from __future__ import annotations

import math
import re
from typing import Dict, List, Optional, Sequence, Tuple

from formconv.choices import choice_list_name, is_choice_type, is_select_one
from formconv.exceptions import (
    CompileError,
    InternalError,
    ResourceError,
    ValidationError,
)
from formconv.formulas import FormulaCompiler
from formconv.groups import RowCursor, is_begin, is_end
from formconv.model import (
    Condition,
    FieldType,
    FieldValidation,
    Formula,
    Node,
    NodeType,
    TableCell,
    ValidationCondition,
)
from formconv.rows import BEGIN_REPEAT, SurveyRow

Grid = List[List[str]]

SUPPORTED_FIELDS = {
    "text", "decimal", "integer", "boolean", "date", "time", "note",
    "calculate", "table", "barcode", "geopoint", "file", "image", "video",
    "range",
}

IGNORED_FIELDS = {
    "start", "end", "today", "deviceid", "subscriberid",
    "simserial", "phonenumber", "username", "email",
}

UNSUPPORTED_FIELDS = {
    "geotrace", "geoshape", "datetime", "audio",
    "acknowledge", "hidden", "xml-external",
}

# Field types with no payload beyond the type itself.
_SIMPLE_FIELD_TYPES = {
    "decimal": FieldType.NUMBER,
    "integer": FieldType.NUMBER,
    "boolean": FieldType.BOOLEAN,
    "date": FieldType.DATE,
    "time": FieldType.TIME,
    "geopoint": FieldType.GEOLOCATION,
    "barcode": FieldType.BARCODE,
    "file": FieldType.FILE,
    "video": FieldType.VIDEO_URL,
}

TABLE_COLUMN_TYPES = ("number", "text", "date")

_REQUIRED_VALUES = {"", "yes", "no", "true", "false"}
_TRUE_VALUES = ("yes", "true")
_FALSE_VALUES = ("", "no", "false")

_INTEGER_RE = re.compile(r"[+-]?\d+")
_MAX_REPS = 2**31 - 1

INTEGER_ERROR_MESSAGE = "The field value must be an integer."


def is_supported_field(row_type: str) -> bool:
    return row_type in SUPPORTED_FIELDS or is_choice_type(row_type)


def is_ignored_field(row_type: str) -> bool:
    return row_type in IGNORED_FIELDS


def is_unsupported_field(row_type: str) -> bool:
    return row_type in UNSUPPORTED_FIELDS or row_type.startswith("rank ")


def parse_excel_uint(text: str) -> Optional[int]:
    """
    Parse a non-negative integer from a spreadsheet cell.

    Spreadsheet exports may write integers as floats ("12.0", "1.23e2").

    Returns:
        The integer, or None if the text is not a whole number
        between 0 and 2**31 - 1
    """
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0 or value > _MAX_REPS or value != math.floor(value):
        return None
    return int(value)


def parse_range_params(params: str) -> Tuple[int, int, int]:
    """
    Parse the "parameters" cell of a range field.

    Args:
        params: Text like "start=0 end=10 step=1"; missing keys take
            those default values and tokens without "=" are ignored

    Returns:
        (start, end, step)

    Raises:
        ValueError: If a value is not an integer
    """
    values = {"start": 0, "end": 10, "step": 1}
    for assignment in params.split():
        key_val = assignment.split("=")
        if len(key_val) != 2:
            continue
        key, val = key_val
        if not _INTEGER_RE.fullmatch(val):
            raise ValueError('Invalid integer value in "parameters" column.')
        if key in values:
            values[key] = int(val)
    return values["start"], values["end"], values["step"]


class NodeBuilder:
    """
    Builds nodes out of survey rows.

    Properties:
        tables: Grids of the table sheets, by table field name
        compiler: Formula compiler used for every formula cell
    """

    def __init__(
        self,
        tables: Optional[Dict[str, Grid]] = None,
        compiler: Optional[FormulaCompiler] = None,
    ) -> None:
        self.tables = tables or {}
        self.compiler = compiler or FormulaCompiler()

    def _compile(self, formula: str, context: str, row: SurveyRow, field_name: Optional[str] = None) -> str:
        if field_name is None:
            field_name = row.name
        try:
            return self.compiler.parse(formula, context, field_name)
        except CompileError as e:
            raise e.at_row(row.line_num) from None

    # =========================================================================
    # GROUPS
    # =========================================================================

    def build_group(self, rows: Sequence[SurveyRow]) -> Node:
        """
        Build a group or repeat node.

        Args:
            rows: A balanced block: begin marker, body, matching end marker

        Returns:
            Group node (NodeType.GROUP or NodeType.REPEATING_SLIDE)
        """
        header = rows[0]
        if not is_begin(header.type):
            raise InternalError("not a group")

        group = Node(name=header.name, label=header.label(), node_type=NodeType.GROUP)
        group.visibility = self._visibility(header)
        group.readonly = self._group_readonly(header)
        if header.type == BEGIN_REPEAT:
            group.node_type = NodeType.REPEATING_SLIDE
            if header.repeat_count != "":
                reps = parse_excel_uint(header.repeat_count)
                if reps is None:
                    raise ValidationError(
                        "repeat_count is not an unsigned integer.", line_num=header.line_num
                    )
                group.max_reps = reps

        cursor = RowCursor(rows, start=1)
        while not cursor.at_end():
            row = cursor.peek()
            if is_ignored_field(row.type):
                cursor.next()
            elif is_supported_field(row.type):
                group.nodes.append(self.build_field(cursor.next()))
            elif is_begin(row.type):
                group.nodes.append(self.build_group(cursor.consume_block()))
            elif is_end(row.type):
                cursor.next()
                if not cursor.at_end():
                    raise InternalError("unexpected end of group")
            else:
                raise InternalError(f"unexpected row type {row.type!r}")
        return group

    def _group_readonly(self, row: SurveyRow) -> Optional[Condition]:
        readonly = row.readonly
        if readonly in _FALSE_VALUES:
            return None
        if readonly in _TRUE_VALUES:
            return Condition("true")
        return Condition(self._compile(readonly, "readonly", row))

    def _visibility(self, row: SurveyRow) -> Optional[Condition]:
        relevant = row.relevant
        permissions = row.permissions_relevant
        if relevant == "" and permissions == "":
            return None
        rel_js = perm_js = ""
        if relevant != "":
            rel_js = self._compile(relevant, "relevant", row)
        if permissions != "":
            perm_js = self._compile(permissions, "permissions_relevant", row)
            perm_js = f"dino_permissions_begin||({perm_js})||dino_permissions_end"
        if permissions == "":
            return Condition(rel_js)
        if relevant == "":
            return Condition(perm_js)
        return Condition(f"({rel_js}) && ({perm_js})")

    # =========================================================================
    # FIELDS
    # =========================================================================

    def build_field(self, row: SurveyRow) -> Node:
        """
        Build a field node from a survey row of a supported type.

        Raises:
            ValidationError: For invalid readonly/required/parameters cells
            CompileError: For invalid formulas
            ResourceError: For missing or malformed table sheets
        """
        field = Node(name=row.name, label=row.label(), hint=row.hint(), node_type=NodeType.FIELD)
        if row.default != "":
            field.default_value = Formula(self._compile(row.default, "default", row))

        readonly = row.readonly
        if readonly in _TRUE_VALUES:
            field.editable = False
        elif readonly not in _FALSE_VALUES:
            raise ValidationError("readonly of field can't be a formula.", line_num=row.line_num)

        field.visibility = self._visibility(row)
        field.validation = self._validation(row)

        row_type = row.type
        if row_type in _SIMPLE_FIELD_TYPES:
            field.field_type = _SIMPLE_FIELD_TYPES[row_type]
        elif row_type == "range":
            field.field_type = FieldType.RANGE
            try:
                field.range_start, field.range_end, field.range_step = parse_range_params(row.parameters)
            except ValueError as e:
                raise ValidationError(str(e), line_num=row.line_num) from None
        elif row_type == "text":
            if row.appearance == "multiline":
                field.field_type = FieldType.TEXT
            else:
                field.field_type = FieldType.STRING
        elif is_choice_type(row_type):
            if is_select_one(row_type):
                field.field_type = FieldType.SINGLE_CHOICE
            else:
                field.field_type = FieldType.MULTIPLE_CHOICE
            field.choices_origin_ref = choice_list_name(row_type)
            if row.choice_filter != "":
                field.choices_filter = Formula(self._compile(row.choice_filter, "choice_filter", row))
            field.force_narrow = row.appearance == "minimal"
        elif row_type == "note":
            field.field_type = FieldType.NOTE
            field.html = field.label
            field.label = ""
        elif row_type == "calculate":
            field.field_type = FieldType.FORMULA
            field.formula = Formula(self._compile(row.calculation, "calculation", row))
        elif row_type == "table":
            field.field_type = FieldType.TABLE
            field.editable = True
            self._fill_table(field, row)
        elif row_type == "image":
            if row.appearance == "signature":
                field.field_type = FieldType.SIGNATURE
            else:
                field.field_type = FieldType.IMAGE
        else:
            raise InternalError(f"unexpected row type {row_type!r}")
        return field

    def _validation(self, row: SurveyRow) -> Optional[FieldValidation]:
        required = row.required
        constraint = row.constraint
        if required == "" and constraint == "" and row.type != "integer":
            return None
        if required not in _REQUIRED_VALUES:
            raise ValidationError(
                f'Invalid value {required!r} in "required" column.', line_num=row.line_num
            )

        validation = FieldValidation()
        if required in _TRUE_VALUES:
            validation.not_empty = True
            validation.not_empty_message = row.required_message()
        if row.type == "integer":
            validation.conditions.append(ValidationCondition(
                condition=f"!notEmpty({row.name}) || isInt({row.name})",
                error_message=INTEGER_ERROR_MESSAGE,
            ))
        if constraint != "":
            validation.conditions.append(ValidationCondition(
                condition=self._compile(constraint, "constraint", row),
                error_message=row.constraint_message(),
            ))
        return validation

    # =========================================================================
    # TABLES
    # =========================================================================

    def _fill_table(self, field: Node, row: SurveyRow) -> None:
        """
        Read the table sheet of a table field.

        The sheet named after the field holds "<type> <label>" column
        headers in its first row and row labels in its first column.
        Non-empty cells are fixed formulas, empty cells are inputs.
        """
        name = row.name

        def fail(reason: str) -> None:
            raise ResourceError(f"Table {name}: {reason}", line_num=row.line_num)

        if name not in self.tables:
            fail("missing sheet.")
        tab = self.tables[name]
        if len(tab) < 2:
            fail("no rows.")
        if len(tab[0]) < 2:
            fail("no columns.")

        for header in tab[0][1:]:
            if header == "":
                break
            typ, sep, label = header.partition(" ")
            if not sep:
                fail(f'column header {header!r} must be in the format "type label".')
            if typ not in TABLE_COLUMN_TYPES:
                fail(f"invalid column type {typ!r}.")
            field.column_types.append(typ)
            field.column_labels.append(label)
        if not field.column_types:
            fail("no columns.")

        for tab_row in tab[1:]:
            if not tab_row or tab_row[0] == "":
                break
            field.row_labels.append(tab_row[0])
        if not field.row_labels:
            fail("no rows.")

        for i in range(len(field.row_labels)):
            tab_row = tab[i + 1]
            cells: List[TableCell] = []
            for j in range(len(field.column_labels)):
                cell = tab_row[j + 1] if j + 1 < len(tab_row) else ""
                cell_name = f"{name}__{i}__{j}"
                if cell == "":
                    cells.append(cell_name)
                else:
                    js = self._compile(cell, cell_name, row, field_name=cell_name)
                    cells.append(Formula(js, editable=False))
            field.rows.append(cells)
