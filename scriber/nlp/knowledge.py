"""
Clinical knowledge base: diagnosis definitions, follow-up questions and the
lay synonyms that register a finding

Illustrative content only, not medically validated.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from scriber.models import DiagnosisDefinition, FindingWeights

logger = logging.getLogger(__name__)


class KnowledgeBaseError(ValueError):
    """Raised when diagnosis definitions or lookups are inconsistent"""


class KnowledgeBase:
    """
    Immutable registry shared by the scorer and the planners.

    Built once at startup and passed by reference, so tests can inject
    alternate knowledge bases.
    """

    def __init__(
        self,
        diagnoses: Iterable[DiagnosisDefinition],
        questions: Mapping[str, str],
        synonyms: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        diagnoses_by_key: Dict[str, DiagnosisDefinition] = {}
        for dx in diagnoses:
            if dx.key in diagnoses_by_key:
                raise KnowledgeBaseError(f"Duplicate diagnosis key: {dx.key}")
            diagnoses_by_key[dx.key] = dx

        self._diagnoses = MappingProxyType(diagnoses_by_key)
        self._questions = MappingProxyType(dict(questions))
        self._synonyms = MappingProxyType(
            {name: tuple(terms) for name, terms in (synonyms or {}).items()}
        )

        self._validate()
        logger.info(
            f"Knowledge base loaded: {len(self._diagnoses)} diagnoses, "
            f"{len(self._questions)} findings"
        )

    @property
    def diagnoses(self) -> Mapping[str, DiagnosisDefinition]:
        return self._diagnoses

    @property
    def questions(self) -> Mapping[str, str]:
        return self._questions

    @property
    def vocabulary(self) -> Tuple[str, ...]:
        """Finding names that extraction can detect, in lookup order"""
        return tuple(self._questions)

    def diagnosis(self, key: str) -> DiagnosisDefinition:
        return self._diagnoses[key]

    def question_for(self, finding: str) -> str:
        return self._questions.get(finding, f"Tell me more about {finding}?")

    def match_terms(self, finding: str) -> Tuple[str, ...]:
        """Lowercased phrases whose presence in the transcript registers the finding"""
        return (finding.lower(),) + tuple(t.lower() for t in self._synonyms.get(finding, ()))

    def _validate(self):
        for dx in self._diagnoses.values():
            if not dx.label.strip():
                raise KnowledgeBaseError(f"Diagnosis {dx.key} has an empty label")
            if not dx.finding_weights:
                raise KnowledgeBaseError(f"Diagnosis {dx.key} has no findings")

        for name, terms in self._synonyms.items():
            if name not in self._questions:
                raise KnowledgeBaseError(f"Synonyms given for unknown finding: {name}")
            if any(not t.strip() for t in terms):
                raise KnowledgeBaseError(f"Blank synonym for finding: {name}")


def _dx(key: str, label: str, prior: float, findings: Dict[str, Tuple[float, float]], orders: Tuple[str, ...]) -> DiagnosisDefinition:
    return DiagnosisDefinition(
        key=key,
        label=label,
        prior=prior,
        finding_weights={name: FindingWeights(pos=pos, neg=neg) for name, (pos, neg) in findings.items()},
        orders=orders,
    )


def default_diagnoses() -> List[DiagnosisDefinition]:
    """Fresh definitions on every call, never shared between knowledge bases"""
    return [
        _dx(
            "influenza", "Influenza", -1.2,
            {
                "fever": (1.0, -0.3),
                "cough": (0.7, -0.2),
                "myalgias": (0.8, -0.2),
                "sore throat": (0.4, -0.1),
            },
            ("Influenza NAAT (LOINC 94500-6)",),
        ),
        _dx(
            "pneumonia", "Community-acquired pneumonia", -1.6,
            {
                "fever": (0.6, -0.2),
                "productive cough": (1.0, -0.3),
                "pleuritic chest pain": (0.8, -0.2),
                "tachypnea": (0.7, -0.2),
                "focal crackles": (1.1, -0.3),
            },
            ("CXR PA/LAT", "CBC with diff", "Pulse oximetry"),
        ),
        _dx(
            "mononucleosis", "Infectious mononucleosis", -2.0,
            {
                "sore throat": (0.9, -0.2),
                "fatigue": (0.7, -0.2),
                "posterior LAD": (1.1, -0.3),
                "splenomegaly": (0.9, -0.3),
            },
            ("Monospot/EBV serology", "Avoid contact sports if splenomegaly"),
        ),
    ]


DEFAULT_QUESTIONS = {
    "fever": "Have you had a measured fever? How high and how many days?",
    "cough": "Is the cough dry or productive? Any blood or sputum color?",
    "myalgias": "Do you have body aches or chills?",
    "sore throat": "Any trouble swallowing or swollen glands?",
    "pleuritic chest pain": "Does it hurt more with a deep breath?",
    "tachypnea": "Any shortness of breath or breathing fast?",
    "focal crackles": "Has anyone mentioned abnormal lung sounds?",
}

# Patients rarely say "myalgias"
DEFAULT_SYNONYMS = {
    "myalgias": ("body aches", "muscle aches"),
}


def build_default_knowledge_base() -> KnowledgeBase:
    return KnowledgeBase(default_diagnoses(), DEFAULT_QUESTIONS, DEFAULT_SYNONYMS)
