"""
Plain-text rendering of the four panels for a snapshot
"""

from typing import Dict

from scriber.models import EncounterView

PLACEHOLDER = "—"
MAX_DISPLAYED_DIFFS = 5
NO_FOLLOWUPS = "No follow-ups yet. Keep talking."


def _or_placeholder(text: str) -> str:
    return text if text.strip() else PLACEHOLDER


def render_transcript(view: EncounterView) -> str:
    return "\n".join(f"• {line.speaker}: {line.text}" for line in view.transcript)


def render_followups(view: EncounterView) -> str:
    if not view.followups:
        return NO_FOLLOWUPS
    return "\n".join(f"• {f.text}" for f in view.followups)


def render_diffs(view: EncounterView) -> str:
    """Top diagnoses with truncated percentages, as the live panel always showed them"""
    return "\n".join(
        f"{d.label} — {int(d.score * 100)}%" for d in view.diffs[:MAX_DISPLAYED_DIFFS]
    )


def render_orders(view: EncounterView) -> str:
    return "\n".join(f"• {o.name}" for o in view.orders)


def render_soap(view: EncounterView) -> str:
    soap = view.soap
    sections = [
        ("Subjective", soap.S),
        ("Objective", soap.O),
        ("Assessment", soap.A),
        ("Plan", soap.P),
    ]
    return "\n\n".join(f"{title}\n{_or_placeholder(body)}" for title, body in sections)


def render_panels(view: EncounterView) -> Dict[str, str]:
    """
    Render every panel as text

    Args:
        view: Snapshot from the session

    Returns:
        Panel name to rendered text; empty panels show a placeholder
    """
    return {
        "transcript": _or_placeholder(render_transcript(view)),
        "followups": render_followups(view),
        "diffs": _or_placeholder(render_diffs(view)),
        "orders": _or_placeholder(render_orders(view)),
        "soap": render_soap(view),
    }
