import uuid
from datetime import datetime, timezone

from db import db


class FileLabel:
    MEMO = "memo"
    ANSWER = "answer"


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return str(uuid.uuid4())


class Submission(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    student_name = db.Column(db.String(255), nullable=False)
    student_key = db.Column(db.String(255), nullable=False, index=True)
    prompt = db.Column(db.Text, default="", nullable=False)
    report = db.Column(db.Text, default="", nullable=False)
    openai_response_id = db.Column(db.String(128))
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    files = db.relationship(
        "StoredFile", backref="submission", lazy=True, cascade="all, delete-orphan"
    )

    def file_for(self, label):
        for stored in self.files:
            if stored.label == label:
                return stored
        return None


class StoredFile(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.String(36), db.ForeignKey("submission.id"), nullable=False)
    label = db.Column(db.String(20), nullable=False)
    original_name = db.Column(db.String(255), nullable=False)
    saved_name = db.Column(db.String(255), nullable=False)
    relative_path = db.Column(db.Text, nullable=False)
    size = db.Column(db.Integer, default=0, nullable=False)
    mime_type = db.Column(db.String(128), default="application/octet-stream", nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
