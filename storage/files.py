import logging
import shutil
import uuid
from pathlib import Path

from werkzeug.utils import secure_filename

from config import DATA_DIR, SUBMISSIONS_DIR
from db import db
from models import StoredFile, Submission

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def ensure_dir(path):
    path.mkdir(parents=True, exist_ok=True)
    return path


def submission_upload_dir(submission_id):
    return ensure_dir(SUBMISSIONS_DIR / submission_id)


def relpath_from_data(path):
    return str(Path(path).relative_to(DATA_DIR).as_posix())


def resolve_data_path(rel_path):
    path = Path(rel_path)
    if path.is_absolute():
        return path
    return DATA_DIR / path


def persist_uploaded_file(submission_id, label, filename, data, mime_type=None):
    ext = Path(secure_filename(filename or "")).suffix.lower() or ".bin"
    saved_name = f"{label}_{uuid.uuid4()}{ext}"
    dest_path = submission_upload_dir(submission_id) / saved_name
    dest_path.write_bytes(data)

    return StoredFile(
        submission_id=submission_id,
        label=label,
        original_name=filename or saved_name,
        saved_name=saved_name,
        relative_path=relpath_from_data(dest_path),
        size=len(data),
        mime_type=mime_type or DEFAULT_MIME_TYPE,
    )


def remove_submission_files(submission_id):
    shutil.rmtree(SUBMISSIONS_DIR / submission_id, ignore_errors=True)


def student_key(student_name):
    # SQLite lower() only folds ASCII, so lookups go through this column.
    return " ".join((student_name or "").split()).casefold()


def read_stored_file(stored_file):
    return resolve_data_path(stored_file.relative_path).read_bytes()


def create_submission_record(submission_id, student_name, prompt, report, files, openai_response_id=None):
    submission = Submission(
        id=submission_id,
        student_name=student_name,
        student_key=student_key(student_name),
        prompt=prompt,
        report=report,
        openai_response_id=openai_response_id,
    )
    submission.files.extend(files)
    db.session.add(submission)
    db.session.commit()
    logger.info("Saved submission %s for %s", submission.id, student_name)
    return submission


def list_submission_records():
    return Submission.query.order_by(Submission.created_at.desc()).all()


def list_submission_records_by_student(student_name):
    key = student_key(student_name)
    if not key:
        return []
    return (
        Submission.query.filter(Submission.student_key == key)
        .order_by(Submission.created_at.desc())
        .all()
    )


def find_submission_by_id(submission_id):
    return db.session.get(Submission, submission_id)


def storage_info():
    return {
        "backend": "database",
        "dialect": db.engine.dialect.name,
        "dataDir": str(DATA_DIR),
    }
