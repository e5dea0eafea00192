import copy
import json

import pytest


FULL_DOC = {
    "parsing": {
        "answers": {"age": 42, "smoker": True, "exercise": "rarely", "diet": "high sugar"},
        "missing_fields": [],
        "confidence": 0.95,
        "status": "ok",
    },
    "factors": {
        "factors": ["smoking", "sedentary lifestyle", "poor diet"],
        "confidence": 0.9,
    },
    "classification": {
        "risk_level": "high",
        "score": 78,
        "rationale": ["Active smoker", "Rare exercise", "High sugar intake"],
    },
    "final": {
        "risk_level": "high",
        "factors": ["smoking", "sedentary lifestyle", "poor diet"],
        "recommendations": [
            "Talk to a professional about a plan to quit smoking.",
            "Add a 20 minute walk to most days of the week.",
            "Swap sugary drinks for water or unsweetened tea.",
        ],
        "status": "ok",
    },
}

INCOMPLETE_DOC = {
    "parsing": {
        "answers": {"age": 30},
        "missing_fields": ["smoker", "exercise", "diet"],
        "confidence": 0.4,
        "status": "incomplete_profile",
        "reason": "Only age could be read from the form.",
    },
}


@pytest.fixture
def full_doc():
    return copy.deepcopy(FULL_DOC)


@pytest.fixture
def incomplete_doc():
    return copy.deepcopy(INCOMPLETE_DOC)


class FakeEngine:
    """Stands in for LLMClient; returns a canned payload and records calls."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def json_call(self, system, user):
        self.calls.append((system, user))
        if isinstance(self.payload, Exception):
            raise self.payload
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload)


@pytest.fixture
def fake_engine():
    return FakeEngine
