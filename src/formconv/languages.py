"""
Language handling for translated xlsform columns.

Translated columns carry a language suffix in their header:

    "label"                -> ("label", "")
    "label::English"       -> ("label", "English")
    "label::English (en)"  -> ("label", "English")

The functions working on raw grids (list_languages, translation) are used by
the HTTP translation endpoint, which works directly on sheet rows.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

Grid = List[List[str]]


def split_lang(cell: str) -> tuple[str, str]:
    """Split a column header into its name and language."""
    i = cell.find("::")
    if i == -1:
        return cell, ""
    end = cell.rfind("(")
    if end == -1 or end < i:
        end = len(cell)
    return cell[:i], cell[i + 2:end].strip()


def is_empty(row: List[str]) -> bool:
    return all(cell == "" for cell in row)


def first_nonempty(rows: Optional[Grid]) -> int:
    """Index of the first non-empty row (the header), -1 if there is none."""
    for i, row in enumerate(rows or []):
        if not is_empty(row):
            return i
    return -1


def has_default_lang(rows: Optional[Grid]) -> bool:
    """Whether the sheet has an untranslated "label" column."""
    head_index = first_nonempty(rows)
    if head_index == -1:
        return False
    # "label" is the only mandatory column that can have languages.
    return "label" in rows[head_index]


def list_languages(rows: Optional[Grid]) -> Set[str]:
    """
    List the languages appearing in the header of a sheet.

    The default language is reported as "" when the sheet has a plain
    "label" column.
    """
    head_index = first_nonempty(rows)
    if head_index == -1:
        return set()
    langs = set()
    for cell in rows[head_index]:
        _, lang = split_lang(cell)
        if lang:
            langs.add(lang)
    if has_default_lang(rows):
        langs.add("")
    return langs


def translation_index(head: Optional[List[str]], name: str, lang: str) -> int:
    """Index of the column `name` translated to `lang`, -1 if missing."""
    if not head:
        return -1
    if lang == "":
        for i, cell in enumerate(head):
            if cell == name:
                return i
        return -1
    prefix = f"{name}::{lang}"
    for i, cell in enumerate(head):
        if cell.startswith(prefix):
            return i
    return -1


def translation(rows: Optional[Grid], source_lang: str, target_lang: str) -> Dict[str, str]:
    """
    Map every text of `source_lang` to its `target_lang` counterpart.

    All translatable columns of the sheet are considered; identical or
    empty source texts are skipped.
    """
    head_index = first_nonempty(rows)
    if head_index == -1:
        return {}
    head = rows[head_index]
    result: Dict[str, str] = {}
    for src, cell in enumerate(head):
        name, lang = split_lang(cell)
        if name == "" or lang != source_lang:
            continue
        tr = translation_index(head, name, target_lang)
        if tr == -1:
            continue
        for row in rows[head_index + 1:]:
            source = row[src] if src < len(row) else ""
            target = row[tr] if tr < len(row) else ""
            if source != "" and source != target:
                result[source] = target
    return result


def merge_maps(a: Dict[str, str], b: Dict[str, str]) -> Dict[str, str]:
    """Merge two translation maps, `b` wins on conflicts."""
    merged = dict(a)
    merged.update(b)
    return merged
