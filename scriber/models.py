"""
Data models for the hands-free scribe: knowledge base entries, session evidence
and the snapshot pulled by the panels
"""

from types import MappingProxyType
from typing import List, Literal, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


Speaker = Literal["patient", "provider"]
OrderKind = Literal["lab", "imaging"]

DEFAULT_CERTAINTY = 0.7


class Finding(BaseModel):
    """Finding detected in the transcript, with its certainty weight"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Finding name from the knowledge base vocabulary")
    certainty: float = Field(default=DEFAULT_CERTAINTY, ge=0.0, le=1.0, description="Certainty (0-1)")


class TranscriptLine(BaseModel):
    """One recognized utterance"""
    model_config = ConfigDict(frozen=True)

    speaker: Speaker = Field(description="Who spoke the line")
    text: str = Field(description="Trimmed utterance text")


class FindingWeights(BaseModel):
    """Log-odds contribution of a finding to a diagnosis"""
    model_config = ConfigDict(frozen=True)

    pos: float = Field(description="Added when the finding is present")
    neg: float = Field(description="Half of it is added when the finding is doubtful")


class DiagnosisDefinition(BaseModel):
    """Knowledge base entry for one diagnosis, read-only all the way down"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Stable identifier")
    label: str = Field(description="Display name")
    prior: float = Field(description="Log-prior")
    finding_weights: Mapping[str, FindingWeights] = Field(description="Weights per finding, in definition order")
    orders: Tuple[str, ...] = Field(default=(), description="Recommended orders")

    @field_validator("finding_weights", mode="after")
    @classmethod
    def _read_only_weights(cls, value: Mapping[str, FindingWeights]) -> Mapping[str, FindingWeights]:
        return MappingProxyType(dict(value))


class Diff(BaseModel):
    """Scored diagnosis candidate"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Key of the diagnosis definition")
    label: str = Field(description="Display name")
    score: float = Field(gt=0.0, lt=1.0, description="Sigmoid of the logit")
    rationale: List[str] = Field(default_factory=list, description="Findings that contributed")


class FollowUp(BaseModel):
    """Question targeting a finding not yet established"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Finding name")
    text: str = Field(description="Question to ask")
    targets: List[str] = Field(default_factory=list, description="Findings the question explores")
    asked: bool = False
    answered: bool = False


class Order(BaseModel):
    """Suggested lab or imaging study"""
    model_config = ConfigDict(frozen=True)

    name: str
    kind: OrderKind


class Soap(BaseModel):
    """Four-section clinical note"""
    model_config = ConfigDict(frozen=True)

    S: str = ""
    O: str = ""
    A: str = ""
    P: str = ""


class EncounterView(BaseModel):
    """Read-only snapshot of the session for the panels"""
    model_config = ConfigDict(frozen=True)

    transcript: List[TranscriptLine] = Field(default_factory=list)
    followups: List[FollowUp] = Field(default_factory=list)
    diffs: List[Diff] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)
    soap: Soap = Field(default_factory=Soap)


class UtteranceIn(BaseModel):
    """Recognized phrase delivered by the speech collaborator"""
    text: str = ""
