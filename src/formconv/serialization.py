"""
Serialization of form documents.

form_to_dict produces the nested record read by the form-rendering engine
(camelCase keys, numeric node and field types); JSON and YAML encoders
work on that record. Empty optional attributes are left out.
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict

import yaml

from formconv.model import (
    AjfForm,
    ChoicesOrigin,
    Condition,
    FieldValidation,
    Formula,
    Node,
    TableCell,
    Tag,
    ValidationCondition,
)


def condition_to_dict(c: Condition | None) -> Dict[str, Any] | None:
    if c is None:
        return None
    return {"condition": c.condition}


def formula_to_dict(f: Formula | None) -> Dict[str, Any] | None:
    if f is None:
        return None
    d: Dict[str, Any] = {"formula": f.formula}
    if f.editable is not None:
        d["editable"] = f.editable
    return d


def validation_condition_to_dict(vc: ValidationCondition) -> Dict[str, Any]:
    return {
        "condition": vc.condition,
        "errorMessage": vc.error_message,
        "clientValidation": vc.client_validation,
    }


def validation_to_dict(v: FieldValidation | None) -> Dict[str, Any] | None:
    if v is None:
        return None
    d: Dict[str, Any] = {}
    if v.not_empty:
        d["notEmpty"] = True
    if v.not_empty_message:
        d["notEmptyMessage"] = v.not_empty_message
    if v.conditions:
        d["conditions"] = [validation_condition_to_dict(vc) for vc in v.conditions]
    return d


def table_cell_to_dict(cell: TableCell) -> Any:
    if isinstance(cell, Formula):
        return formula_to_dict(cell)
    return cell


def node_to_dict(n: Node) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "parent": n.previous,
        "id": n.id,
        "name": n.name,
        "label": n.label,
        "nodeType": int(n.node_type),
    }
    optional = {
        "hint": n.hint,
        "fieldType": None if n.field_type is None else int(n.field_type),
        "choicesOriginRef": n.choices_origin_ref,
        "choicesFilter": formula_to_dict(n.choices_filter),
        "forceNarrow": n.force_narrow,
        "HTML": n.html,
        "visibility": condition_to_dict(n.visibility),
        "readonly": condition_to_dict(n.readonly),
        "maxReps": n.max_reps,
        "validation": validation_to_dict(n.validation),
        "defaultValue": formula_to_dict(n.default_value),
        "editable": n.editable,
        "formula": formula_to_dict(n.formula),
        "rangeStart": n.range_start,
        "rangeEnd": n.range_end,
        "step": n.range_step,
        "columnTypes": n.column_types,
        "columnLabels": n.column_labels,
        "rowLabels": n.row_labels,
        "rows": [[table_cell_to_dict(c) for c in row] for row in n.rows],
    }
    for key, value in optional.items():
        # False is meaningful for editable only
        if value is None or value == "" or value == [] or (value is False and key != "editable"):
            continue
        d[key] = value
    if n.is_group:
        d["nodes"] = [node_to_dict(child) for child in n.nodes]
    return d


def choices_origin_to_dict(co: ChoicesOrigin) -> Dict[str, Any]:
    return {
        "type": co.type,
        "name": co.name,
        "choicesType": co.choices_type,
        "choices": [dict(choice) for choice in co.choices],
    }


def tag_to_dict(t: Tag) -> Dict[str, Any]:
    return {"label": t.label, "value": [t.value]}


def form_to_dict(form: AjfForm) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if form.choices_origins:
        d["choicesOrigins"] = [choices_origin_to_dict(co) for co in form.choices_origins]
    d["nodes"] = [node_to_dict(slide) for slide in form.slides]
    if form.string_identifier:
        d["stringIdentifier"] = [tag_to_dict(t) for t in form.string_identifier]
    if form.translations:
        d["translations"] = {lang: dict(tr) for lang, tr in form.translations.items()}
    return d


def form_to_json(form: AjfForm) -> str:
    return json.dumps(form_to_dict(form), indent="\t", ensure_ascii=False) + "\n"


def form_to_yaml(form: AjfForm) -> str:
    return yaml.safe_dump(form_to_dict(form), allow_unicode=True, sort_keys=False)


def write_form(form: AjfForm, path: str | os.PathLike, fmt: str = "json") -> None:
    """
    Write a form document to a file.

    The file is removed if writing fails, so that no partial
    document is left behind.

    Args:
        form: Document to write
        path: Destination file
        fmt: "json" or "yaml"
    """
    encoders = {"json": form_to_json, "yaml": form_to_yaml}
    if fmt not in encoders:
        raise ValueError(f"Unsupported output format {fmt!r}")
    data = encoders[fmt](form)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(data)
    except OSError:
        if os.path.exists(path):
            os.remove(path)
        raise

