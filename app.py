import io
import logging
import uuid

from flask import Flask, jsonify, request, send_file

from config import Config, DATA_DIR, SUBMISSIONS_DIR, validate_config
from db import db
from grading.llm_client import (
    LLMResponseError,
    create_chatkit_session,
    grade_submission,
    upload_file,
)
from grading.prompts import DEFAULT_GRADING_INSTRUCTION
from grading.schemas import report_filename, submission_to_dict
from models import FileLabel
from reports.pdf_report import encode_report_pdf
from storage.files import (
    create_submission_record,
    find_submission_by_id,
    list_submission_records,
    list_submission_records_by_student,
    persist_uploaded_file,
    read_stored_file,
    remove_submission_files,
    storage_info,
)

logger = logging.getLogger(__name__)

GRADING_FILE_PURPOSE = "user_data"
CHAT_FILE_PURPOSE = "responses"
DOWNLOAD_TARGETS = {FileLabel.MEMO, FileLabel.ANSWER, "report"}
USER_COOKIE_NAME = "chatkit_user_id"
USER_COOKIE_MAX_AGE = 60 * 60 * 24 * 365
MISSING_KEY_MESSAGE = (
    "OPENAI_API_KEY is not configured. Add it to .env and restart the server."
)


def _ensure_data_dirs():
    for path in (DATA_DIR, SUBMISSIONS_DIR):
        path.mkdir(parents=True, exist_ok=True)


def _init_logging():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")


def _error(message, status):
    return jsonify({"error": message}), status


def _download(data, mimetype, filename):
    return send_file(
        io.BytesIO(data), mimetype=mimetype, as_attachment=True, download_name=filename
    )


def create_app():
    app = Flask(__name__)
    app.config.from_object(Config)
    validate_config(app.config)

    _init_logging()
    db.init_app(app)

    with app.app_context():
        _ensure_data_dirs()
        db.create_all()

    def _provider_settings():
        return (
            app.config.get("OPENAI_API_BASE_URL"),
            app.config.get("OPENAI_API_KEY"),
            app.config.get("OPENAI_REQUEST_TIMEOUT"),
        )

    @app.errorhandler(413)
    def too_large(error):
        return _error("Upload too large. Adjust MAX_CONTENT_LENGTH.", 413)

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(
            "Unhandled error on %s: %r",
            request.path,
            getattr(error, "original_exception", None) or error,
        )
        return _error("Internal server error", 500)

    @app.route("/api/grade", methods=["POST"])
    def grade():
        endpoint, api_key, timeout = _provider_settings()
        if not api_key:
            return _error("OPENAI_API_KEY is not configured.", 500)

        student_name = request.form.get("studentName", "").strip()
        instruction = request.form.get("prompt", "").strip() or DEFAULT_GRADING_INSTRUCTION
        memo = request.files.get("memo")
        answer = request.files.get("answer")

        if not student_name:
            return _error("studentName is required", 400)
        if not memo or not memo.filename or not answer or not answer.filename:
            return _error("Both memo and answer files are required", 400)

        memo_data = memo.read()
        answer_data = answer.read()

        try:
            memo_upload = upload_file(
                memo.filename, memo_data, memo.mimetype, GRADING_FILE_PURPOSE,
                endpoint, api_key, timeout=timeout,
            )
            answer_upload = upload_file(
                answer.filename, answer_data, answer.mimetype, GRADING_FILE_PURPOSE,
                endpoint, api_key, timeout=timeout,
            )
        except LLMResponseError as exc:
            logger.error("Grading upload failed for %s: %s", student_name, exc)
            return _error(str(exc), 500)

        try:
            report, response_id = grade_submission(
                student_name,
                instruction,
                memo_upload["id"],
                answer_upload["id"],
                app.config.get("OPENAI_MODEL"),
                endpoint,
                api_key,
                timeout=timeout,
            )
        except LLMResponseError as exc:
            logger.error("Grading failed for %s: %s", student_name, exc)
            return _error(str(exc), exc.status_code or 500)

        submission_id = str(uuid.uuid4())
        try:
            stored_files = [
                persist_uploaded_file(
                    submission_id, FileLabel.MEMO, memo.filename, memo_data, memo.mimetype
                ),
                persist_uploaded_file(
                    submission_id, FileLabel.ANSWER, answer.filename, answer_data, answer.mimetype
                ),
            ]
            submission = create_submission_record(
                submission_id,
                student_name,
                instruction,
                report,
                stored_files,
                openai_response_id=response_id,
            )
        except Exception:
            logger.exception("Failed saving submission for %s", student_name)
            db.session.rollback()
            remove_submission_files(submission_id)
            return _error("Internal server error", 500)

        return jsonify({"submission": submission_to_dict(submission)})

    @app.route("/api/upload", methods=["POST"])
    def upload():
        endpoint, api_key, timeout = _provider_settings()
        if not api_key:
            return _error(MISSING_KEY_MESSAGE, 500)

        file = request.files.get("file")
        if not file or not file.filename:
            return _error("No file provided", 400)

        try:
            uploaded = upload_file(
                file.filename, file.read(), file.mimetype, CHAT_FILE_PURPOSE,
                endpoint, api_key, timeout=timeout,
            )
        except LLMResponseError as exc:
            logger.error("File upload error: %s", exc)
            if exc.status_code:
                return _error("Failed to upload file", exc.status_code)
            return _error("Internal server error", 500)

        return jsonify(
            {
                "fileId": uploaded.get("id"),
                "fileName": uploaded.get("filename"),
                "fileSize": uploaded.get("bytes"),
            }
        )

    @app.route("/api/submissions")
    def list_submissions():
        student_name = request.args.get("studentName", "").strip()
        include_all = request.args.get("includeAll") == "true"

        if include_all:
            submissions = list_submission_records()
        elif student_name:
            submissions = list_submission_records_by_student(student_name)
        else:
            submissions = []

        return jsonify(
            {
                "submissions": [submission_to_dict(s) for s in submissions],
                "storage": storage_info(),
            }
        )

    @app.route("/api/submissions/<submission_id>/download")
    def download_submission_file(submission_id):
        target = request.args.get("file")
        if target not in DOWNLOAD_TARGETS:
            return _error("file query must be memo, answer, or report", 400)

        submission = find_submission_by_id(submission_id)
        if not submission:
            return _error("Submission not found", 404)

        if target == "report":
            report_format = request.args.get("format", "pdf").strip().lower()
            if report_format in {"text", "txt"}:
                return _download(
                    submission.report.encode("utf-8"),
                    "text/plain; charset=utf-8",
                    report_filename(submission.student_name, "txt"),
                )
            if report_format != "pdf":
                return _error("format query must be pdf or text", 400)
            return _download(
                encode_report_pdf(submission.student_name, submission.report),
                "application/pdf",
                report_filename(submission.student_name, "pdf"),
            )

        stored_file = submission.file_for(target)
        if stored_file is None:
            return _error("File not found", 404)
        try:
            data = read_stored_file(stored_file)
        except OSError:
            logger.exception("Failed reading stored file %s", stored_file.relative_path)
            return _error("File not found", 404)

        return _download(data, stored_file.mime_type, stored_file.original_name)

    @app.route("/api/chatkit/session", methods=["POST"])
    def chatkit_session():
        endpoint, api_key, timeout = _provider_settings()
        workflow_id = app.config.get("OPENAI_WORKFLOW_ID")
        if not api_key:
            return _error(MISSING_KEY_MESSAGE, 500)
        if not workflow_id:
            return _error(
                "OPENAI_WORKFLOW_ID is not configured. "
                "Set it to your Agent Builder workflow id (wf_...).",
                500,
            )

        existing_user_id = request.cookies.get(USER_COOKIE_NAME)
        user_id = existing_user_id or f"user_{uuid.uuid4()}"

        try:
            client_secret = create_chatkit_session(
                user_id, workflow_id, endpoint, api_key, timeout=timeout
            )
        except LLMResponseError as exc:
            logger.error("ChatKit session error: %s", exc)
            return _error(str(exc), exc.status_code or 500)

        if not client_secret:
            return _error("Missing client_secret in ChatKit session response.", 502)

        response = jsonify({"client_secret": client_secret})
        if not existing_user_id:
            response.set_cookie(
                USER_COOKIE_NAME,
                user_id,
                max_age=USER_COOKIE_MAX_AGE,
                path="/",
                httponly=True,
                samesite="Lax",
            )
        return response

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
