import json
import logging

import requests

from grading.prompts import EMPTY_REPORT, build_grading_prompt

logger = logging.getLogger(__name__)

CHATKIT_BETA_HEADER = "chatkit_beta=v1"
CHATKIT_MAX_FILE_SIZE_MB = 20
CHATKIT_MAX_FILES = 5


class LLMResponseError(Exception):
    def __init__(self, message, raw_text=None, status_code=None):
        super().__init__(message)
        self.raw_text = raw_text
        self.status_code = status_code


def _parse_error_message(text, default=None):
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return text if default is None else default
    message = (data.get("error") or {}).get("message") if isinstance(data, dict) else None
    if isinstance(message, str) and message:
        return message
    return text if default is None else default


def _auth_headers(api_key, **extra):
    if not api_key:
        raise ValueError("OPENAI_API_KEY is not configured")
    headers = {"Authorization": f"Bearer {api_key}"}
    headers.update(extra)
    return headers


def _url(endpoint, path):
    return endpoint.rstrip("/") + path


def _extract_responses_text(data):
    output_text = data.get("output_text")
    if isinstance(output_text, str) and output_text.strip():
        return output_text

    texts = []
    for item in data.get("output", []) or []:
        if item.get("type") != "message":
            continue
        for content in item.get("content", []) or []:
            if content.get("type") in {"output_text", "text"}:
                text = content.get("text", "")
                if text:
                    texts.append(text)
    return "".join(texts)


def upload_file(file_name, data, mime_type, purpose, endpoint, api_key, timeout=120):
    headers = _auth_headers(api_key)
    files = {"file": (file_name, data, mime_type or "application/octet-stream")}
    try:
        response = requests.post(
            _url(endpoint, "/files"),
            headers=headers,
            data={"purpose": purpose},
            files=files,
            timeout=timeout,
        )
        response.raise_for_status()
        uploaded = response.json()
    except requests.HTTPError as exc:
        raise LLMResponseError(
            f"Failed to upload {file_name}: {response.text}",
            raw_text=response.text,
            status_code=response.status_code,
        ) from exc
    except requests.JSONDecodeError as exc:
        raise LLMResponseError(
            f"Failed to upload {file_name}: invalid JSON response", raw_text=response.text
        ) from exc
    except requests.RequestException as exc:
        raise LLMResponseError(f"Failed to upload {file_name}: {exc}") from exc

    logger.info("Uploaded %s as %s", file_name, uploaded.get("id"))
    return uploaded


def grade_submission(
    student_name,
    instruction,
    memo_file_id,
    answer_file_id,
    model,
    endpoint,
    api_key,
    timeout=120,
):
    headers = _auth_headers(api_key, **{"Content-Type": "application/json"})
    payload = {
        "model": model,
        "input": [
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": build_grading_prompt(student_name, instruction)},
                    {"type": "input_file", "file_id": memo_file_id},
                    {"type": "input_file", "file_id": answer_file_id},
                ],
            }
        ],
    }

    try:
        response = requests.post(
            _url(endpoint, "/responses"), headers=headers, json=payload, timeout=timeout
        )
        response.raise_for_status()
        data = response.json()
    except requests.HTTPError as exc:
        raise LLMResponseError(
            f"Grading failed: {response.text}",
            raw_text=response.text,
            status_code=response.status_code,
        ) from exc
    except requests.JSONDecodeError as exc:
        raise LLMResponseError(
            "Grading failed: invalid JSON response", raw_text=response.text
        ) from exc
    except requests.RequestException as exc:
        raise LLMResponseError(f"Grading failed: {exc}") from exc

    report = _extract_responses_text(data)
    if not report.strip():
        report = EMPTY_REPORT
    return report, data.get("id")


def create_chatkit_session(user_id, workflow_id, endpoint, api_key, timeout=120):
    headers = _auth_headers(
        api_key,
        **{"Content-Type": "application/json", "OpenAI-Beta": CHATKIT_BETA_HEADER},
    )
    payload = {
        "user": user_id,
        "workflow": {"id": workflow_id},
        "chatkit_configuration": {
            "file_upload": {
                "enabled": True,
                "max_file_size": CHATKIT_MAX_FILE_SIZE_MB,
                "max_files": CHATKIT_MAX_FILES,
            }
        },
    }

    try:
        response = requests.post(
            _url(endpoint, "/chatkit/sessions"), headers=headers, json=payload, timeout=timeout
        )
        response.raise_for_status()
        data = response.json()
    except requests.HTTPError as exc:
        raise LLMResponseError(
            _parse_error_message(
                response.text, f"OpenAI ChatKit session error: {response.status_code}"
            ),
            raw_text=response.text,
            status_code=response.status_code,
        ) from exc
    except requests.JSONDecodeError as exc:
        raise LLMResponseError(
            "OpenAI ChatKit session error: invalid JSON response", raw_text=response.text
        ) from exc
    except requests.RequestException as exc:
        raise LLMResponseError(f"OpenAI ChatKit session error: {exc}") from exc

    return data.get("client_secret")
