from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from app_contract import DEFAULT_LOCALE
from notes_analyzer import AnalysisResult
from outline_format import connection_label, group_by_category


def date_mention_rich_text(dt: datetime):
    iso = dt.astimezone().isoformat(timespec="minutes")
    return [{
        "type": "mention",
        "mention": {"type": "date", "date": {"start": iso}}
    }]


def rt_text(s: str, bold: bool = False, italic: bool = False):
    part: Dict[str, Any] = {"type": "text", "text": {"content": s}}
    if bold or italic:
        part["annotations"] = {"bold": bold, "italic": italic}
    return [part]


def build_notion_blocks(
    result: AnalysisResult,
    source_name: str,
    now: datetime,
    locale: str = DEFAULT_LOCALE,
) -> List[Dict[str, Any]]:
    """
    Pure function: analysis result -> Notion blocks.
    No network, no Notion. Unit-test friendly.

    Mirrors the text outline: one heading_3 per category, level-0 lines as bold
    paragraphs, nested lines as bullets, connections as an italic line and a
    divider closing each category.
    """
    blocks: List[Dict[str, Any]] = []
    label = connection_label(locale)

    blocks.append({
        "object": "block",
        "type": "heading_2",
        "heading_2": {"rich_text": date_mention_rich_text(now) + rt_text(f" — {source_name}")}
    })

    for category, notes in group_by_category(result.structured_notes).items():
        blocks.append({
            "object": "block",
            "type": "heading_3",
            "heading_3": {"rich_text": rt_text(category)}
        })

        for note in notes:
            if note.level == 0:
                blocks.append({
                    "object": "block",
                    "type": "paragraph",
                    "paragraph": {"rich_text": rt_text(note.content, bold=True)}
                })
            else:
                blocks.append({
                    "object": "block",
                    "type": "bulleted_list_item",
                    "bulleted_list_item": {"rich_text": rt_text(note.content)}
                })

            if note.connections:
                blocks.append({
                    "object": "block",
                    "type": "paragraph",
                    "paragraph": {"rich_text": rt_text(f"{label}: {', '.join(note.connections)}", italic=True)}
                })

        blocks.append({"object": "block", "type": "divider", "divider": {}})

    return blocks


def extract_first_heading_block_id(resp: Dict[str, Any]) -> str:
    """
    Id of the entry header in an append-children response,
    falling back to the first result.
    """
    results = (resp or {}).get("results") or []
    for r in results:
        if r.get("type") == "heading_2" and r.get("id"):
            return r["id"]
    if results and results[0].get("id"):
        return results[0]["id"]
    return ""
