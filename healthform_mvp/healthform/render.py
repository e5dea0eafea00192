from typing import Any, List

from .models import ProfilePipelineResult
from .prompts import DISCLAIMER


def _fmt_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if value is None:
        return "-"
    return str(value)


def _pct(x: float) -> str:
    return f"{round(x * 100)}%"


def render_text(result: ProfilePipelineResult) -> str:
    """Plain-text report; each section only appears if its stage is present."""
    p = result.parsing
    lines: List[str] = ["== Parsed answers =="]
    for key, value in p.answers.items():
        lines.append(f"  {key.replace('_', ' ')}: {_fmt_value(value)}")
    if p.missing_fields:
        lines.append("  missing: " + ", ".join(p.missing_fields))
    lines.append(f"  confidence: {_pct(p.confidence)}")

    if not p.is_ok:
        lines += ["", "Profile incomplete", f"  {p.reason}"]

    if result.factors is not None:
        lines += ["", f"== Risk factors (confidence {_pct(result.factors.confidence)}) =="]
        lines += [f"  - {f}" for f in result.factors.factors] or ["  (none)"]

    if result.classification is not None:
        c = result.classification
        lines += ["", "== Risk classification ==", f"  level: {c.risk_level.value.upper()}  score: {c.score}/100"]
        lines += [f"  * {r}" for r in c.rationale]

    if result.final is not None:
        lines += ["", "== Recommendations =="]
        lines += [f"  {i}. {r}" for i, r in enumerate(result.final.recommendations, start=1)]
        if result.final.status.value != "ok":
            lines.append("  (the service reported an error while preparing recommendations)")

    lines += ["", DISCLAIMER]
    return "\n".join(lines)
