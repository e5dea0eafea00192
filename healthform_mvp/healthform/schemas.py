from .prompts import MAX_RECOMMENDATIONS, MIN_RECOMMENDATIONS


CONFIDENCE = {"type": "number", "minimum": 0, "maximum": 1}
RISK_LEVEL = {"type": "string", "enum": ["low", "medium", "high"]}
LABELS = {"type": "array", "items": {"type": "string"}}
DISTINCT_LABELS = {"type": "array", "items": {"type": "string"}, "uniqueItems": True}


PARSING_SCHEMA = {
  "type": "object",
  "additionalProperties": False,
  "required": ["answers", "missing_fields", "confidence", "status"],
  "properties": {
    "answers": {
      "type": "object",
      # extra survey keys are preserved untouched
      "additionalProperties": True,
      "properties": {
        "age": {"type": ["number", "null"], "minimum": 0},
        "smoker": {"type": ["boolean", "null"]},
        "exercise": {"type": ["string", "null"]},
        "diet": {"type": ["string", "null"]},
      }
    },
    "missing_fields": LABELS,
    "confidence": CONFIDENCE,
    "status": {"type": "string", "enum": ["ok", "incomplete_profile"]},
    "reason": {"type": ["string", "null"]},
  }
}

FACTORS_SCHEMA = {
  "type": "object",
  "additionalProperties": False,
  "required": ["factors", "confidence"],
  "properties": {
    "factors": DISTINCT_LABELS,
    "confidence": CONFIDENCE,
  }
}

CLASSIFICATION_SCHEMA = {
  "type": "object",
  "additionalProperties": False,
  "required": ["risk_level", "score", "rationale"],
  "properties": {
    "risk_level": RISK_LEVEL,
    "score": {"type": "integer", "minimum": 0, "maximum": 100},
    "rationale": LABELS,
  }
}

FINAL_SCHEMA = {
  "type": "object",
  "additionalProperties": False,
  "required": ["risk_level", "factors", "recommendations", "status"],
  "properties": {
    "risk_level": RISK_LEVEL,
    "factors": DISTINCT_LABELS,
    "recommendations": {
      "type": "array",
      "items": {"type": "string", "minLength": 1},
      "minItems": MIN_RECOMMENDATIONS,
      "maxItems": MAX_RECOMMENDATIONS,
    },
    "status": {"type": "string", "enum": ["ok", "error"]},
  }
}

PIPELINE_RESULT_SCHEMA = {
  "type": "object",
  "additionalProperties": False,
  "required": ["parsing"],
  "properties": {
    "parsing": PARSING_SCHEMA,
    "factors": FACTORS_SCHEMA,
    "classification": CLASSIFICATION_SCHEMA,
    "final": FINAL_SCHEMA,
  }
}
