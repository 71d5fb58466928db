# category_rules.py
"""
Ordered keyword rules used to put every note line into exactly one category.

Rules are evaluated top-down against the lowercased line; the first rule with a
matching trigger wins. Triggers are plain substrings, so "keyboard" counts as
"board". Lines that match nothing land in the locale's default category.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from app_contract import DEFAULT_LOCALE


@dataclass(frozen=True)
class CategoryRule:
    category: str
    triggers: Tuple[str, ...]

    def matches(self, content: str) -> bool:
        text = (content or "").lower()
        return any(t in text for t in self.triggers)


@dataclass(frozen=True)
class RuleTable:
    rules: Tuple[CategoryRule, ...]
    default_category: str


RULE_TABLES: Dict[str, RuleTable] = {
    "en": RuleTable(
        rules=(
            CategoryRule("DIY Projects", ("shelf", "board")),
            CategoryRule("Furniture", ("books", "cabinet")),
            CategoryRule("Tech", ("laptop", "computer")),
            CategoryRule("Tasks", ("buy", "check")),
            CategoryRule("Repairs", ("fix", "finish")),
        ),
        default_category="General",
    ),
    # Triggers are substrings as typed, including unaccented forms ("sprawdz").
    "pl": RuleTable(
        rules=(
            CategoryRule("Projekty DIY", ("polka", "deska")),
            CategoryRule("Meble", ("ksiązki", "szafka")),
            CategoryRule("Tech", ("laptop", "komputer")),
            CategoryRule("Zadania", ("kupić", "sprawdz")),
            CategoryRule("Naprawy", ("naprawić", "dokończyć")),
        ),
        default_category="Ogólne",
    ),
}


def supported_locales() -> Sequence[str]:
    return sorted(RULE_TABLES)


def rules_for(locale: str = DEFAULT_LOCALE) -> RuleTable:
    try:
        return RULE_TABLES[locale]
    except KeyError:
        raise ValueError(
            f"Unsupported locale {locale!r} (expected one of: {', '.join(supported_locales())})"
        ) from None


def classify(content: str, table: RuleTable) -> str:
    """Return the category of the first rule matching content, else the default."""
    for rule in table.rules:
        if rule.matches(content):
            return rule.category
    return table.default_category
