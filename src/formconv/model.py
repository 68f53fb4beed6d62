"""
Form Document Model

Defines the output of a conversion: the hierarchical form definition
consumed by the form-rendering engine.

    - ChoicesOrigin: a named list of options
    - Node: a slide, group, repeating slide or field
    - AjfForm: the root document

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about spreadsheets
        - Hold formulas already compiled to JavaScript
        - Are fully serializable (see formconv.serialization)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Union


class NodeType(IntEnum):
    FIELD = 0
    GROUP = 2
    SLIDE = 3
    REPEATING_SLIDE = 4


class FieldType(IntEnum):
    STRING = 0
    TEXT = 1
    NUMBER = 2
    BOOLEAN = 3
    SINGLE_CHOICE = 4
    MULTIPLE_CHOICE = 5
    FORMULA = 6
    NOTE = 7
    DATE = 9
    TIME = 10
    TABLE = 11
    GEOLOCATION = 12
    BARCODE = 13
    FILE = 14
    IMAGE = 15
    VIDEO_URL = 16
    RANGE = 17
    SIGNATURE = 18


# A choice: "value", "label" and any user-defined column of the choices sheet.
Choice = Dict[str, str]


@dataclass
class ChoicesOrigin:
    """
    A named, ordered list of choices backing single/multiple choice fields.

    Properties:
        name: List name, as referenced by "select_one <name>"
        choices: Choices in sheet order
        type: Origin kind; lists read from the choices sheet are "fixed"
        choices_type: Type of the choice values
    """

    name: str
    choices: List[Choice] = field(default_factory=list)
    type: str = "fixed"
    choices_type: str = "string"


@dataclass
class Condition:
    """A compiled boolean expression (visibility, readonly)."""

    condition: str


@dataclass
class Formula:
    """
    A compiled expression producing a value.

    editable is only set on fixed table cells, which are never editable.
    """

    formula: str
    editable: Optional[bool] = None


@dataclass
class ValidationCondition:
    condition: str
    error_message: str = ""
    client_validation: bool = True


@dataclass
class FieldValidation:
    """
    Validation rules of a field.

    Properties:
        not_empty: The field is required
        not_empty_message: Message shown when a required field is empty
        conditions: Compiled constraints, all of which must hold
    """

    not_empty: bool = False
    not_empty_message: str = ""
    conditions: List[ValidationCondition] = field(default_factory=list)


# A table cell: the name of an input cell, or a fixed formula.
TableCell = Union[str, Formula]


@dataclass
class Node:
    """
    A node of the form tree.

    Groups (slides, groups, repeating slides) have children in `nodes`;
    fields carry a field_type and a type-specific payload.

    Properties:
        id:
            Unique identifier, assigned after the tree is built
            (see formconv.identifiers)

        previous:
            Identifier of the preceding node in tree order: the parent for
            a first child, the previous sibling otherwise

        name: Identifier of the node, unique in the form
        label: Text shown to the user
        node_type: Kind of node
        visibility: Condition deciding whether the node is shown
        readonly: Condition making a group read only
        nodes: Children (groups only)
        max_reps: Maximum number of repetitions (repeating slides only)

    Field payload:
        field_type, hint, default_value, editable, validation,
        choices_origin_ref, choices_filter, force_narrow (choice fields),
        html (notes), formula (calculated fields),
        range_start, range_end, range_step (range fields),
        column_types, column_labels, row_labels, rows (tables)
    """

    name: str
    label: str = ""
    node_type: NodeType = NodeType.FIELD
    id: int = 0
    previous: int = 0
    visibility: Optional[Condition] = None
    readonly: Optional[Condition] = None
    nodes: List["Node"] = field(default_factory=list)
    max_reps: Optional[int] = None

    field_type: Optional[FieldType] = None
    hint: str = ""
    default_value: Optional[Formula] = None
    editable: Optional[bool] = None
    validation: Optional[FieldValidation] = None
    choices_origin_ref: str = ""
    choices_filter: Optional[Formula] = None
    force_narrow: bool = False
    html: str = ""
    formula: Optional[Formula] = None
    range_start: Optional[int] = None
    range_end: Optional[int] = None
    range_step: Optional[int] = None
    column_types: List[str] = field(default_factory=list)
    column_labels: List[str] = field(default_factory=list)
    row_labels: List[str] = field(default_factory=list)
    rows: List[List[TableCell]] = field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return self.node_type != NodeType.FIELD

    def walk(self):
        """Yield this node and all its descendants, depth first."""
        yield self
        for child in self.nodes:
            yield from child.walk()


@dataclass
class Tag:
    """A string identifier tag from the settings sheet."""

    label: str
    value: str


@dataclass
class AjfForm:
    """
    Root of a converted form.

    Properties:
        choices_origins: Choice lists, sorted by name
        slides: Top-level nodes (slides and repeating slides)
        string_identifier: Tags from the settings sheet
        translations: language -> {default text: translated text}
    """

    choices_origins: List[ChoicesOrigin] = field(default_factory=list)
    slides: List[Node] = field(default_factory=list)
    string_identifier: List[Tag] = field(default_factory=list)
    translations: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def get_node(self, name: str) -> Optional[Node]:
        """
        Retrieve the first node with the given name.

        Args:
            name: Node name

        Returns:
            Node or None if not found
        """
        for slide in self.slides:
            for node in slide.walk():
                if node.name == name:
                    return node
        return None

    def get_choices_origin(self, name: str) -> Optional[ChoicesOrigin]:
        for origin in self.choices_origins:
            if origin.name == name:
                return origin
        return None
