from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from app_contract import (
    DEFAULT_LOCALE,
    LOOKBACK_WINDOW,
    MIN_KEYWORD_LENGTH,
    PREVIEW_CHARS,
    PREVIEW_ELLIPSIS,
)
from category_rules import classify, rules_for
from outline_format import render

logger = logging.getLogger(__name__)


class EmptyInputError(ValueError):
    """Raised when there is nothing but whitespace to analyze."""


@dataclass(frozen=True)
class ClassifiedLine:
    level: int
    content: str
    category: str
    connections: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AnalysisResult:
    structured_notes: List[ClassifiedLine]
    rendered_output: str
    categories: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def leading_level(line: str) -> int:
    """
    Count leading tabs/spaces. A tab is one unit, same as a space;
    this is an outline depth, not a column.
    """
    return len(line) - len(line.lstrip(" \t"))


def _keywords(text: str) -> set:
    return {w for w in text.lower().split() if len(w) >= MIN_KEYWORD_LENGTH}


def share_keywords(text1: str, text2: str) -> bool:
    """True if both texts contain a common word longer than 3 characters."""
    words2 = _keywords(text2)
    return any(w in words2 for w in _keywords(text1))


def preview(content: str) -> str:
    return content[:PREVIEW_CHARS] + PREVIEW_ELLIPSIS


def find_connections(contents: List[str], index: int) -> List[str]:
    """
    Previews of the (at most LOOKBACK_WINDOW) lines right before `index`
    that share a keyword with it, earliest first.
    """
    current = contents[index]
    out: List[str] = []
    for i in range(max(0, index - LOOKBACK_WINDOW), index):
        if share_keywords(current, contents[i]):
            out.append(preview(contents[i]))
    return out


def analyze(raw_text: Optional[str], locale: str = DEFAULT_LOCALE) -> AnalysisResult:
    """
    Pure function: raw indented notes -> classified lines + grouped outline.

    Raises EmptyInputError if raw_text is empty or whitespace only.
    """
    text = raw_text or ""
    if not text.strip():
        raise EmptyInputError("Paste your notes to start the analysis.")

    table = rules_for(locale)

    lines = [line for line in text.split("\n") if line.strip()]
    contents = [line.strip() for line in lines]

    notes: List[ClassifiedLine] = []
    for index, line in enumerate(lines):
        notes.append(ClassifiedLine(
            level=leading_level(line),
            content=contents[index],
            category=classify(contents[index], table),
            connections=find_connections(contents, index),
        ))

    # dict keeps first-seen order
    categories = list(dict.fromkeys(n.category for n in notes))

    logger.debug("analyzed %d lines into %d categories", len(notes), len(categories))

    return AnalysisResult(
        structured_notes=notes,
        rendered_output=render(notes, locale=locale),
        categories=categories,
    )
