"""
Evidence extraction from the running transcript
Speaker attribution and keyword detection of knowledge base findings
"""

import logging
from typing import Iterable, List, Sequence

from scriber.models import DEFAULT_CERTAINTY, Finding, Speaker, TranscriptLine
from scriber.nlp.knowledge import KnowledgeBase

logger = logging.getLogger(__name__)

QUESTION_LEADS = (
    "do ", "did ", "are ", "is ", "have ", "has ",
    "what ", "when ", "where ", "how ",
)


def normalize_text(text: str) -> str:
    """Lowercase and trim, nothing else"""
    if not text:
        return ""
    return text.strip().lower()


def classify_speaker(text: str) -> Speaker:
    """
    Guess who spoke a line: questions belong to the provider

    Args:
        text: Raw utterance

    Returns:
        "provider" for a question or interrogative lead word, "patient" otherwise
    """
    normalized = normalize_text(text)
    if normalized.endswith("?") or normalized.startswith(QUESTION_LEADS):
        return "provider"
    return "patient"


def accumulated_text(lines: Iterable[TranscriptLine]) -> str:
    return " ".join(line.text for line in lines).lower()


def extract_findings(
    lines: Sequence[TranscriptLine],
    existing: Iterable[Finding],
    kb: KnowledgeBase,
) -> List[Finding]:
    """
    Scan the whole transcript for knowledge base findings

    Plain substring containment: no tokenization and no negation handling,
    so "no fever" still registers fever.

    Args:
        lines: Full transcript, in order
        existing: Findings already established
        kb: Knowledge base providing the vocabulary

    Returns:
        Findings detected for the first time, in vocabulary order
    """
    text = accumulated_text(lines)
    known = {f.name for f in existing}
    new_findings = []

    for name in kb.vocabulary:
        if name in known:
            continue
        if any(term in text for term in kb.match_terms(name)):
            new_findings.append(Finding(name=name, certainty=DEFAULT_CERTAINTY))
            known.add(name)

    if new_findings:
        logger.info(f"New findings: {', '.join(f.name for f in new_findings)}")
    return new_findings
