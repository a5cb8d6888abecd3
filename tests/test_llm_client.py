import sys
from pathlib import Path

import pytest
import requests

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from grading.llm_client import (  # noqa: E402
    LLMResponseError,
    _extract_responses_text,
    _parse_error_message,
    grade_submission,
    upload_file,
)
from grading.prompts import build_grading_prompt  # noqa: E402


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


def test_extract_text_prefers_output_text():
    assert _extract_responses_text({"output_text": "Report", "output": []}) == "Report"


def test_extract_text_joins_message_parts():
    data = {
        "output": [
            {"type": "reasoning", "content": [{"type": "output_text", "text": "skip"}]},
            {
                "type": "message",
                "content": [
                    {"type": "output_text", "text": "Score: 80\n"},
                    {"type": "output_text", "text": "Solid."},
                ],
            },
        ]
    }
    assert _extract_responses_text(data) == "Score: 80\nSolid."


def test_parse_error_message():
    assert _parse_error_message('{"error": {"message": "Nope"}}') == "Nope"
    assert _parse_error_message("plain text") == "plain text"
    assert _parse_error_message("plain text", "fallback") == "fallback"


def test_grading_prompt_includes_student_and_instruction():
    prompt = build_grading_prompt("Jane Doe", "Be brief.")
    assert "Student: Jane Doe." in prompt
    assert prompt.endswith("Be brief.")
    assert "Grade this submission against the memo" in build_grading_prompt("Jane Doe", "")


def test_upload_requires_api_key():
    with pytest.raises(ValueError):
        upload_file("a.txt", b"a", "text/plain", "user_data", "https://example.test/v1", "")


def test_grade_submission_returns_report_and_id(monkeypatch):
    def fake_post(url, **kwargs):
        assert url == "https://example.test/v1/responses"
        assert kwargs["json"]["model"] == "gpt-4.1-mini"
        return FakeResponse(payload={"id": "resp_1", "output_text": "Well done"})

    monkeypatch.setattr(requests, "post", fake_post)
    report, response_id = grade_submission(
        "Jane Doe", "", "file-1", "file-2", "gpt-4.1-mini", "https://example.test/v1/", "sk-test"
    )
    assert report == "Well done"
    assert response_id == "resp_1"


def test_grade_submission_wraps_transport_errors(monkeypatch):
    def fake_post(url, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "post", fake_post)
    with pytest.raises(LLMResponseError) as excinfo:
        grade_submission(
            "Jane Doe", "", "file-1", "file-2", "gpt-4.1-mini", "https://example.test/v1", "sk-test"
        )
    assert excinfo.value.status_code is None
    assert "connection refused" in str(excinfo.value)
