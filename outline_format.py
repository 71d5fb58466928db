from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Sequence

from app_contract import (
    CONNECTION_LABELS,
    DEFAULT_LOCALE,
    INDENT_UNIT,
    MAX_HEADING_DEPTH,
    MAX_INDENT_DEPTH,
)

if TYPE_CHECKING:
    from notes_analyzer import ClassifiedLine


def group_by_category(notes: Sequence["ClassifiedLine"]) -> Dict[str, List["ClassifiedLine"]]:
    """
    Category -> lines, keys in first-seen order, lines in input order.
    """
    grouped: Dict[str, List["ClassifiedLine"]] = {}
    for note in notes:
        grouped.setdefault(note.category, []).append(note)
    return grouped


def connection_label(locale: str = DEFAULT_LOCALE) -> str:
    return CONNECTION_LABELS.get(locale, CONNECTION_LABELS[DEFAULT_LOCALE])


def render(notes: Sequence["ClassifiedLine"], locale: str = DEFAULT_LOCALE) -> str:
    """
    Pure function: classified lines -> markdown-ish outline, one block per category.

    Level 0 lines become headings (## .. ######), deeper lines become bullets
    indented by two spaces per level (capped at 3 levels).
    """
    label = connection_label(locale)
    parts: List[str] = []

    for category, category_notes in group_by_category(notes).items():
        parts.append(f"# {category}\n\n")

        for note in category_notes:
            indent = INDENT_UNIT * min(note.level, MAX_INDENT_DEPTH)
            header = "#" * min(note.level + 2, MAX_HEADING_DEPTH)

            if note.level == 0:
                parts.append(f"{header} {note.content}\n\n")
            else:
                parts.append(f"{indent}- {note.content}\n")

            if note.connections:
                parts.append(f"{indent}  *{label}: {', '.join(note.connections)}*\n")
            parts.append("\n")

        parts.append("---\n\n")

    return "".join(parts)
