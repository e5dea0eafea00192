"""Tests for the text report and the analyze CLI."""

import json

import pytest

import analyze
from healthform.errors import UpstreamUnavailableError
from healthform.llm_client import LLMClient
from healthform.prompts import DISCLAIMER
from healthform.render import render_text
from healthform.validator import validate_document


class TestRenderText:

    def test_full_report(self, full_doc):
        out = render_text(validate_document(full_doc))
        assert "smoker: Yes" in out
        assert "confidence: 95%" in out
        assert "level: HIGH  score: 78/100" in out
        assert "1. Talk to a professional" in out
        assert out.endswith(DISCLAIMER)

    def test_incomplete_report_has_no_later_sections(self, incomplete_doc):
        out = render_text(validate_document(incomplete_doc))
        assert "Profile incomplete" in out
        assert "Only age could be read" in out
        assert "missing: smoker, exercise, diet" in out
        assert "Risk factors" not in out
        assert "Recommendations" not in out
        assert DISCLAIMER in out

    def test_partial_report(self, full_doc):
        del full_doc["final"]
        out = render_text(validate_document(full_doc))
        assert "Risk classification" in out
        assert "Recommendations" not in out


@pytest.fixture
def api_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("MAX_IMAGE_BYTES", raising=False)
    monkeypatch.delenv("MAX_RETRIES", raising=False)
    monkeypatch.delenv("REQUEST_TIMEOUT_SECONDS", raising=False)


def stub_engine(monkeypatch, payload):
    def fake_json_call(self, system, user):
        if isinstance(payload, Exception):
            raise payload
        return payload if isinstance(payload, str) else json.dumps(payload)

    monkeypatch.setattr(LLMClient, "json_call", fake_json_call)


class TestCli:

    def test_json_output(self, api_env, monkeypatch, capsys, full_doc):
        stub_engine(monkeypatch, full_doc)
        code = analyze.main(["--text", '{"age":42}', "--format", "json"])
        assert code == 0
        assert json.loads(capsys.readouterr().out) == full_doc

    def test_text_output_from_file(self, api_env, monkeypatch, capsys, tmp_path, incomplete_doc):
        stub_engine(monkeypatch, incomplete_doc)
        p = tmp_path / "survey.txt"
        p.write_text("age: 30", encoding="utf-8")
        assert analyze.main(["--text-file", str(p)]) == 0
        assert "Profile incomplete" in capsys.readouterr().out

    def test_image_input(self, api_env, monkeypatch, capsys, tmp_path, full_doc):
        stub_engine(monkeypatch, full_doc)
        p = tmp_path / "form.jpg"
        p.write_bytes(b"\xff\xd8\xff\xe0jpeg")
        assert analyze.main(["--image", str(p), "--format", "json"]) == 0

    @pytest.mark.parametrize("payload,args,code", [
        (None, ["--text", "   "], 2),
        (UpstreamUnavailableError("down"), ["--text", "age 42"], 3),
        ("not json", ["--text", "age 42"], 4),
        ({"parsing": {}}, ["--text", "age 42"], 5),
    ])
    def test_error_exit_codes(self, api_env, monkeypatch, capsys, payload, args, code):
        stub_engine(monkeypatch, payload)
        assert analyze.main(args) == code
        assert capsys.readouterr().err.startswith("Error: ")

    def test_unsupported_image_type(self, api_env, capsys, tmp_path):
        p = tmp_path / "form.pdf"
        p.write_bytes(b"%PDF-1.4")
        assert analyze.main(["--image", str(p)]) == 2
        assert "Unsupported image type" in capsys.readouterr().err

    def test_missing_api_key_is_reported(self, monkeypatch, capsys):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert analyze.main(["--text", "age 42"]) == analyze.EXIT_CONFIG
        err = capsys.readouterr().err
        assert err.startswith("Error: ")
        assert "OPENAI_API_KEY" in err
