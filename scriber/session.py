"""
Encounter session: transcript log and findings, plus the snapshot pulled by
the panels
"""

import logging
import threading
from typing import List, Optional, Tuple

from scriber.models import EncounterView, Finding, TranscriptLine
from scriber.nlp.knowledge import KnowledgeBase, build_default_knowledge_base
from scriber.nlp.pipeline import classify_speaker, extract_findings
from scriber.panels.orchestrator import build_view

logger = logging.getLogger(__name__)

DEMO_SCRIPT = (
    "I've had fever and body aches since yesterday.",
    "Any cough or sore throat?",
    "Yeah I have a cough and some sore throat.",
    "Any chest pain or shortness of breath?",
    "No chest pain, just tired.",
)


class Session:
    """
    Single in-memory encounter.

    Appends and snapshots are mutually exclusive, so a line is never seen
    without the findings it produced.
    """

    def __init__(self, kb: Optional[KnowledgeBase] = None):
        self.kb = kb if kb is not None else build_default_knowledge_base()
        self._transcript: List[TranscriptLine] = []
        self._findings: List[Finding] = []
        self._lock = threading.RLock()

    @property
    def transcript(self) -> Tuple[TranscriptLine, ...]:
        with self._lock:
            return tuple(self._transcript)

    @property
    def findings(self) -> Tuple[Finding, ...]:
        with self._lock:
            return tuple(self._findings)

    def add_line(self, text: str) -> None:
        """
        Append an utterance and extract any new findings

        Blank text is ignored: speech recognition often emits empty results.
        """
        if not text or not text.strip():
            logger.debug("Ignoring blank utterance")
            return

        line = TranscriptLine(speaker=classify_speaker(text), text=text.strip())
        with self._lock:
            self._transcript.append(line)
            self._findings.extend(extract_findings(self._transcript, self._findings, self.kb))
        logger.info(f"Line added ({line.speaker}): '{line.text}'")

    def current_view(self) -> EncounterView:
        with self._lock:
            return build_view(self._transcript, self._findings, self.kb)

    # Interface used by the speech and display collaborators
    submit_utterance = add_line
    get_view = current_view

    def seed_demo(self) -> None:
        """Replay the canned demo conversation"""
        logger.info("Seeding demo conversation")
        for utterance in DEMO_SCRIPT:
            self.submit_utterance(utterance)
