"""Render card summaries and full records as Markdown for the evaluator."""

from __future__ import annotations

from collector_ai.models import Mode

_TITLE_FIELD = {Mode.JOBS: "job_title", Mode.PROFILES: "full_name"}
_TITLE_FALLBACK = {Mode.JOBS: "Unknown Title", Mode.PROFILES: "Unknown Name"}

# Fields worth a labelled line, in display order.
_CARD_FIELDS = {
    Mode.JOBS: [
        ("company", "Company"),
        ("location", "Location"),
        ("card_insight", "Insight"),
    ],
    Mode.PROFILES: [
        ("headline", "Headline"),
        ("location", "Location"),
        ("connection_degree", "Connection degree"),
        ("profile_url", "Profile"),
    ],
}

# Bookkeeping fields never shown to the evaluator.
_HIDDEN = {"job_id", "item_id", "ai_decision", "ai_reason"}


def _label(key: str) -> str:
    return key.replace("_", " ").capitalize()


def _role_line(role: dict | str) -> str:
    if isinstance(role, str):
        return role
    parts = [role.get("title", ""), role.get("company", "")]
    line = " at ".join(p for p in parts if p)
    if role.get("duration"):
        line += f" ({role['duration']})"
    return line or "Unknown role"


def render_card(card: dict, mode: Mode) -> str:
    lines = [f"## {card.get(_TITLE_FIELD[mode]) or _TITLE_FALLBACK[mode]}"]
    for key, label in _CARD_FIELDS[mode]:
        if card.get(key):
            lines.append(f"**{label}:** {card[key]}")
        elif mode is Mode.JOBS and key != "card_insight":
            lines.append(f"**{label}:** Not specified")
    return "\n".join(lines)


def render_full(record: dict, mode: Mode) -> str:
    """Card header followed by every remaining field of the full record.

    Short scalars become labelled lines, long text and lists become their
    own sections.
    """
    lines = [render_card(record, mode)]
    shown = {_TITLE_FIELD[mode]} | {key for key, _ in _CARD_FIELDS[mode]} | _HIDDEN
    for key, value in record.items():
        if key in shown or value in (None, "", [], {}):
            continue
        label = _label(key)
        if key == "current_role":
            lines += ["", f"**Current Role:** {_role_line(value)}"]
        elif isinstance(value, list):
            lines += ["", f"**{label}:**"]
            lines += [f"- {_role_line(item) if isinstance(item, dict) else item}" for item in value]
        elif isinstance(value, str) and (len(value) > 120 or "\n" in value):
            lines += ["", f"**{label}:**", value]
        else:
            lines.append(f"**{label}:** {value}")
    return "\n".join(lines)
