from datetime import timezone

from models import FileLabel


def _isoformat(value):
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def stored_file_to_dict(stored_file):
    if stored_file is None:
        return None
    return {
        "originalName": stored_file.original_name,
        "savedName": stored_file.saved_name,
        "relativePath": stored_file.relative_path,
        "size": stored_file.size,
        "mimeType": stored_file.mime_type,
    }


def submission_to_dict(submission):
    return {
        "id": submission.id,
        "studentName": submission.student_name,
        "prompt": submission.prompt,
        "report": submission.report,
        "createdAt": _isoformat(submission.created_at),
        "openaiResponseId": submission.openai_response_id,
        "files": {
            FileLabel.MEMO: stored_file_to_dict(submission.file_for(FileLabel.MEMO)),
            FileLabel.ANSWER: stored_file_to_dict(submission.file_for(FileLabel.ANSWER)),
        },
    }


def report_filename(student_name, extension):
    return f"{'_'.join(student_name.split())}_report.{extension}"
