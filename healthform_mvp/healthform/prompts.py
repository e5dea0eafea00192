from typing import Tuple

REQUIRED_FIELDS: Tuple[str, ...] = ("age", "smoker", "exercise", "diet")

# incomplete_profile when more than half of REQUIRED_FIELDS are absent
MAX_MISSING_REQUIRED = len(REQUIRED_FIELDS) // 2

MIN_RECOMMENDATIONS = 3
MAX_RECOMMENDATIONS = 5

# score bands (inclusive upper bounds); high is everything above MEDIUM_MAX_SCORE
LOW_MAX_SCORE = 33
MEDIUM_MAX_SCORE = 66

DISCLAIMER = (
    "Disclaimer: This is an AI-generated profile and does not constitute medical advice "
    "or diagnosis. Consult a healthcare professional."
)


def band_for_score(score: int) -> str:
    if score <= LOW_MAX_SCORE:
        return "low"
    if score <= MEDIUM_MAX_SCORE:
        return "medium"
    return "high"


def analysis_system_prompt() -> str:
    lines = [
        "You are a health lifestyle survey analysis engine.",
        "You never diagnose; you produce non-diagnostic wellness guidance only.",
        "Output JSON only, as one object with the keys: parsing, factors, classification, final.",
        "",
        "Output schema:",
        "{",
        '  "parsing": {',
        '    "answers": {"age": number, "smoker": boolean, "exercise": string, "diet": string, ...other keys},',
        '    "missing_fields": [string],',
        '    "confidence": number 0.0-1.0,',
        '    "status": "ok" | "incomplete_profile",',
        '    "reason": string (only when status is "incomplete_profile")',
        "  },",
        '  "factors": {"factors": [distinct short labels], "confidence": number 0.0-1.0},',
        '  "classification": {"risk_level": "low" | "medium" | "high", "score": integer 0-100, "rationale": [string]},',
        '  "final": {"risk_level": same as classification.risk_level, "factors": same labels as factors.factors,',
        f'            "recommendations": [{MIN_RECOMMENDATIONS}-{MAX_RECOMMENDATIONS} strings], "status": "ok" | "error"}}',
        "}",
        "",
        "Rules:",
        "- Omit answer keys you cannot read; do not guess them.",
        "- missing_fields lists every one of " + ", ".join(REQUIRED_FIELDS) + " that is absent from answers.",
        f"- If more than {MAX_MISSING_REQUIRED} of those fields are missing, set status to \"incomplete_profile\","
        " give a reason, and omit factors, classification and final entirely.",
        "- Otherwise set status to \"ok\", omit reason, and produce every later stage.",
        f"- risk_level must follow the score: low for 0-{LOW_MAX_SCORE},"
        f" medium for {LOW_MAX_SCORE + 1}-{MEDIUM_MAX_SCORE}, high for {MEDIUM_MAX_SCORE + 1}-100.",
        "- Never clamp or invent values; never output a stage without the stages before it.",
    ]
    return "\n".join(lines)


def analysis_task_prompt() -> str:
    return f"""
Analyze the provided health lifestyle survey (it might be an image of a form or raw text).
Perform the following 4 steps in a single response:

Step 1: OCR/Text Parsing
Extract fields: age, smoker (boolean), exercise, diet, plus any other answers on the form.
Identify missing fields. Calculate confidence (0.0 to 1.0).

Step 2: Factor Extraction
Convert the parsed answers into specific health risk factors (e.g., "smoking", "poor diet", "sedentary lifestyle").

Step 3: Risk Classification
Compute a risk level (low, medium, high) and a numerical score (0-100) based on non-diagnostic heuristic scoring.
Provide a rationale list.

Step 4: Recommendations
Generate {MIN_RECOMMENDATIONS}-{MAX_RECOMMENDATIONS} actionable, non-diagnostic wellness recommendations for the user.
""".strip()
