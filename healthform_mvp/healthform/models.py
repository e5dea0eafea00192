from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ParsingStatus(str, Enum):
    OK = "ok"
    INCOMPLETE_PROFILE = "incomplete_profile"


class FinalStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


class Stage(str, Enum):
    PARSING = "parsing"
    FACTORS = "factors"
    CLASSIFICATION = "classification"
    FINAL = "final"


STAGE_ORDER: Tuple[Stage, ...] = (Stage.PARSING, Stage.FACTORS, Stage.CLASSIFICATION, Stage.FINAL)


class Outcome(str, Enum):
    INCOMPLETE_PROFILE = "incomplete_profile"
    PARTIAL = "partial"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ParsingResult:
    answers: Dict[str, Any]
    missing_fields: Tuple[str, ...]
    confidence: float
    status: ParsingStatus
    reason: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.status is ParsingStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "answers": dict(self.answers),
            "missing_fields": list(self.missing_fields),
            "confidence": self.confidence,
            "status": self.status.value,
        }
        if self.reason is not None:
            out["reason"] = self.reason
        return out


@dataclass(frozen=True)
class FactorExtractionResult:
    factors: Tuple[str, ...]
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"factors": list(self.factors), "confidence": self.confidence}


@dataclass(frozen=True)
class RiskClassificationResult:
    risk_level: RiskLevel
    score: int
    rationale: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "score": self.score,
            "rationale": list(self.rationale),
        }


@dataclass(frozen=True)
class FinalRecommendationResult:
    risk_level: RiskLevel
    factors: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    status: FinalStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "factors": list(self.factors),
            "recommendations": list(self.recommendations),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class ProfilePipelineResult:
    """
    Validated result of one analysis call.

    Later stages may be None. Always branch on `parsing.status` and on the
    presence of `factors` / `classification` / `final` before using them.
    """
    parsing: ParsingResult
    factors: Optional[FactorExtractionResult] = None
    classification: Optional[RiskClassificationResult] = None
    final: Optional[FinalRecommendationResult] = None

    def completed_stages(self) -> List[Stage]:
        present = {
            Stage.PARSING: self.parsing,
            Stage.FACTORS: self.factors,
            Stage.CLASSIFICATION: self.classification,
            Stage.FINAL: self.final,
        }
        return [s for s in STAGE_ORDER if present[s] is not None]

    @property
    def outcome(self) -> Outcome:
        if not self.parsing.is_ok:
            return Outcome.INCOMPLETE_PROFILE
        if self.final is not None:
            return Outcome.COMPLETE
        return Outcome.PARTIAL

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"parsing": self.parsing.to_dict()}
        for name, stage in (("factors", self.factors), ("classification", self.classification), ("final", self.final)):
            if stage is not None:
                out[name] = stage.to_dict()
        return out
