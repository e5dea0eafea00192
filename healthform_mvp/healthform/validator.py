import json
import logging
import re
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError, best_match

from .errors import MalformedResponseError, SchemaViolationError
from .models import (
    STAGE_ORDER,
    FactorExtractionResult,
    FinalRecommendationResult,
    FinalStatus,
    ParsingResult,
    ParsingStatus,
    ProfilePipelineResult,
    RiskClassificationResult,
    RiskLevel,
    Stage,
)
from .prompts import MAX_MISSING_REQUIRED, REQUIRED_FIELDS, band_for_score
from .schemas import PIPELINE_RESULT_SCHEMA

logger = logging.getLogger(__name__)

_validator = Draft7Validator(PIPELINE_RESULT_SCHEMA)

# ```json {...} ``` with the closing fence on its own line or not
_FENCED = re.compile(r"^```[\w-]*\s*(.*?)\s*```$", re.S)


def strip_code_fence(text: str) -> str:
    out = text.strip()
    if not out.startswith("```"):
        return out
    m = _FENCED.match(out)
    if m:
        return m.group(1)
    # unclosed fence: drop the opening line only
    return out.partition("\n")[2].strip()


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON and slip past minimum/maximum
    raise ValueError(f"non-finite number {name} is not allowed")


def parse_payload(raw: Optional[str]) -> Any:
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedResponseError("empty response from analysis service", raw=raw)
    try:
        return json.loads(strip_code_fence(raw), parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise MalformedResponseError(
            f"could not parse response into the required schema: {exc}", raw=raw
        ) from exc


def is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def absent_required_fields(answers: Dict[str, Any]) -> List[str]:
    return [f for f in REQUIRED_FIELDS if is_absent(answers.get(f))]


def _error_path(err: ValidationError) -> str:
    parts = [str(p) for p in err.absolute_path]
    if err.validator == "required" and isinstance(err.instance, dict):
        # point at the missing key, not at its parent
        missing = [k for k in err.validator_value if k not in err.instance]
        if missing:
            parts.append(str(missing[0]))
    return ".".join(parts) or "$"


def check_schema(doc: Any) -> None:
    err = best_match(_validator.iter_errors(doc))
    if err is not None:
        raise SchemaViolationError(err.message, path=_error_path(err))


def check_stage_order(doc: Dict[str, Any]) -> List[Stage]:
    """
    Return the stages present in `doc`, enforcing strict prefix order.

    incomplete_profile must stand alone; otherwise trailing stages may be
    missing (partial success) but no stage may follow a gap.
    """
    present = [s for s in STAGE_ORDER if doc.get(s.value) is not None]

    if doc["parsing"]["status"] == ParsingStatus.INCOMPLETE_PROFILE.value:
        later = [s for s in present if s is not Stage.PARSING]
        if later:
            raise SchemaViolationError(
                "stage must be omitted when parsing.status is incomplete_profile",
                path=later[0].value,
            )
        return present

    for i, stage in enumerate(STAGE_ORDER):
        if stage in present:
            continue
        after = [s for s in STAGE_ORDER[i + 1:] if s in present]
        if after:
            raise SchemaViolationError(
                f"stage present without preceding stage {stage.value!r}",
                path=after[0].value,
            )
        break
    return present


def check_parsing(parsing: Dict[str, Any]) -> None:
    answers = parsing["answers"]
    absent = absent_required_fields(answers)
    incomplete = parsing["status"] == ParsingStatus.INCOMPLETE_PROFILE.value
    expected_incomplete = len(absent) > MAX_MISSING_REQUIRED

    if incomplete != expected_incomplete:
        raise SchemaViolationError(
            f"status {parsing['status']!r} inconsistent with {len(absent)} missing required fields {absent}",
            path="parsing.status",
        )

    listed = {f for f in parsing["missing_fields"] if f in REQUIRED_FIELDS}
    if listed != set(absent):
        raise SchemaViolationError(
            f"lists {sorted(listed)} but answers are missing {absent}",
            path="parsing.missing_fields",
        )

    has_reason = not is_absent(parsing.get("reason"))
    if incomplete and not has_reason:
        raise SchemaViolationError("reason is required for incomplete_profile", path="parsing.reason")
    if not incomplete and has_reason:
        raise SchemaViolationError("reason is only allowed for incomplete_profile", path="parsing.reason")


def _check_non_blank(items: List[str], path: str) -> None:
    for i, item in enumerate(items):
        if not item.strip():
            raise SchemaViolationError("must be a non-empty string", path=f"{path}.{i}")


def check_classification(classification: Dict[str, Any]) -> None:
    score = int(classification["score"])
    expected = band_for_score(score)
    if classification["risk_level"] != expected:
        raise SchemaViolationError(
            f"risk_level {classification['risk_level']!r} does not match score {score} (expected {expected!r})",
            path="classification.risk_level",
        )
    _check_non_blank(classification["rationale"], "classification.rationale")


def check_final(final: Dict[str, Any], factors: Dict[str, Any], classification: Dict[str, Any]) -> None:
    _check_non_blank(final["recommendations"], "final.recommendations")
    if final["risk_level"] != classification["risk_level"]:
        raise SchemaViolationError(
            f"{final['risk_level']!r} differs from classification.risk_level {classification['risk_level']!r}",
            path="final.risk_level",
        )
    if set(final["factors"]) != set(factors["factors"]):
        raise SchemaViolationError("must echo factors.factors", path="final.factors")


def _drop_null_stages(doc: Any) -> Any:
    if not isinstance(doc, dict):
        return doc
    return {k: v for k, v in doc.items() if not (k != "parsing" and v is None)}


def build_result(doc: Dict[str, Any]) -> ProfilePipelineResult:
    p = doc["parsing"]
    parsing = ParsingResult(
        answers=dict(p["answers"]),
        missing_fields=tuple(p["missing_fields"]),
        confidence=float(p["confidence"]),
        status=ParsingStatus(p["status"]),
        reason=None if is_absent(p.get("reason")) else p["reason"],
    )

    factors = None
    if doc.get("factors") is not None:
        f = doc["factors"]
        factors = FactorExtractionResult(factors=tuple(f["factors"]), confidence=float(f["confidence"]))

    classification = None
    if doc.get("classification") is not None:
        c = doc["classification"]
        classification = RiskClassificationResult(
            risk_level=RiskLevel(c["risk_level"]),
            score=int(c["score"]),
            rationale=tuple(c["rationale"]),
        )

    final = None
    if doc.get("final") is not None:
        fin = doc["final"]
        final = FinalRecommendationResult(
            risk_level=RiskLevel(fin["risk_level"]),
            factors=tuple(fin["factors"]),
            recommendations=tuple(fin["recommendations"]),
            status=FinalStatus(fin["status"]),
        )

    return ProfilePipelineResult(parsing=parsing, factors=factors, classification=classification, final=final)


def validate_document(doc: Any) -> ProfilePipelineResult:
    doc = _drop_null_stages(doc)
    check_schema(doc)
    present = check_stage_order(doc)

    check_parsing(doc["parsing"])
    if Stage.FACTORS in present:
        _check_non_blank(doc["factors"]["factors"], "factors.factors")
    if Stage.CLASSIFICATION in present:
        check_classification(doc["classification"])
    if Stage.FINAL in present:
        check_final(doc["final"], doc["factors"], doc["classification"])

    logger.debug("response accepted: stages=%s", [s.value for s in present])
    return build_result(doc)


def validate_response(raw: Optional[str]) -> ProfilePipelineResult:
    """Parse untrusted response text into a validated ProfilePipelineResult.

    Raises MalformedResponseError when the text is not JSON at all and
    SchemaViolationError for anything that parses but breaks the contract.
    Nothing is clamped or filled in.
    """
    return validate_document(parse_payload(raw))
