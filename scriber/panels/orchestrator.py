"""
Orchestrator for the clinical panels
Derives follow-up questions, suggested orders and the SOAP note from the
ranked differential, and bundles them into one snapshot
"""

import logging
from typing import List, Sequence

from scriber.models import Diff, EncounterView, Finding, FollowUp, Order, OrderKind, Soap, TranscriptLine
from scriber.nlp.knowledge import KnowledgeBase
from scriber.nlp.rules import DiagnosisScorer

logger = logging.getLogger(__name__)

LEADING_DIAGNOSES = 2
ASSESSMENT_DIAGNOSES = 3


def percent(score: float) -> int:
    """Score as a whole percentage, halves rounded up"""
    return int(score * 100 + 0.5)


def classify_order(name: str) -> OrderKind:
    return "imaging" if "cxr" in name.lower() else "lab"


def plan_followups(diffs: Sequence[Diff], findings: Sequence[Finding], kb: KnowledgeBase) -> List[FollowUp]:
    """
    Questions for the findings the leading diagnoses still lack

    The top diagnosis's findings come first, then those of the runner-up
    not already collected.
    """
    known = {f.name for f in findings}
    candidates = [
        name
        for diff in diffs[:LEADING_DIAGNOSES]
        for name in kb.diagnosis(diff.key).finding_weights
        if name not in known
    ]
    needed = list(dict.fromkeys(candidates))  # Preserves order

    return [
        FollowUp(id=name, text=kb.question_for(name), targets=[name])
        for name in needed
    ]


def plan_orders(diffs: Sequence[Diff], kb: KnowledgeBase) -> List[Order]:
    """Union of the leading diagnoses' recommended orders, first seen first"""
    names = []
    for diff in diffs[:LEADING_DIAGNOSES]:
        names.extend(kb.diagnosis(diff.key).orders)
    names = dict.fromkeys(names)

    return [Order(name=name, kind=classify_order(name)) for name in names]


def compose_soap(
    transcript: Sequence[TranscriptLine],
    findings: Sequence[Finding],
    diffs: Sequence[Diff],
    kb: KnowledgeBase,
) -> Soap:
    """
    Assemble the SOAP note

    Args:
        transcript: Full transcript, in order
        findings: Findings, in insertion order
        diffs: Ranked differential
        kb: Knowledge base, used for the plan

    Returns:
        Soap with possibly empty sections; placeholders are up to the display
    """
    subjective = " ".join(line.text for line in transcript if line.speaker == "patient")
    objective = "\n".join(f"- {f.name} (c={f.certainty:.2f})" for f in findings)
    assessment = "\n".join(
        f"{d.label} ({percent(d.score)}%)" for d in diffs[:ASSESSMENT_DIAGNOSES]
    )
    plan = "\n".join(f"- {order.name}" for order in plan_orders(diffs, kb))

    return Soap(S=subjective, O=objective, A=assessment, P=plan)


def build_view(
    transcript: Sequence[TranscriptLine],
    findings: Sequence[Finding],
    kb: KnowledgeBase,
) -> EncounterView:
    """
    Recompute every panel from the transcript and findings

    Nothing is cached: the same inputs always give the same snapshot.
    """
    diffs = DiagnosisScorer(kb).score(findings)
    followups = plan_followups(diffs, findings, kb)
    orders = plan_orders(diffs, kb)
    soap = compose_soap(transcript, findings, diffs, kb)

    logger.debug(f"View built: {len(diffs)} diffs, {len(followups)} follow-ups, {len(orders)} orders")
    return EncounterView(
        transcript=list(transcript),
        followups=followups,
        diffs=diffs,
        orders=orders,
        soap=soap,
    )
