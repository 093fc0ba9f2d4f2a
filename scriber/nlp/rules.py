"""
Diagnosis scoring: independent logistic model per knowledge base diagnosis
"""

import logging
import math
from typing import Iterable, List

from scriber.models import Diff, Finding
from scriber.nlp.knowledge import KnowledgeBase

logger = logging.getLogger(__name__)

PRESENT_THRESHOLD = 0.5
DOUBTFUL_FACTOR = 0.5

# Largest and smallest doubles strictly inside (0, 1)
_SCORE_MAX = math.nextafter(1.0, 0.0)
_SCORE_MIN = math.nextafter(0.0, 1.0)


def sigmoid(x: float) -> float:
    if x >= 0:
        value = 1.0 / (1.0 + math.exp(-x))
    else:
        z = math.exp(x)
        value = z / (1.0 + z)
    return min(max(value, _SCORE_MIN), _SCORE_MAX)


class DiagnosisScorer:
    """
    Scores every diagnosis of the knowledge base against the current findings.

    Scores are independent sigmoids and need not sum to 1.
    """

    def __init__(self, kb: KnowledgeBase):
        self.kb = kb

    def score(self, findings: Iterable[Finding]) -> List[Diff]:
        """
        Score and rank the diagnoses

        Args:
            findings: Current findings, in insertion order

        Returns:
            One Diff per diagnosis, by score descending then label ascending
        """
        findings = list(findings)
        diffs = []

        for dx in self.kb.diagnoses.values():
            logit = dx.prior
            rationale = []
            for finding in findings:
                weights = dx.finding_weights.get(finding.name)
                if weights is None:
                    continue
                if finding.certainty > PRESENT_THRESHOLD:
                    logit += weights.pos
                else:
                    logit += weights.neg * DOUBTFUL_FACTOR
                rationale.append(finding.name)

            diffs.append(Diff(key=dx.key, label=dx.label, score=sigmoid(logit), rationale=rationale))

        diffs.sort(key=lambda d: (-d.score, d.label))
        logger.debug(f"Scored {len(diffs)} diagnoses from {len(findings)} findings")
        return diffs
