# downloadsubmissions/models/enums.py
from enum import Enum

class FolderMode(str, Enum):
    """How the archive nests question folders and student attempt folders."""
    QUESTIONWISE = "questionwise"
    ATTEMPTWISE = "attemptwise"

class ExportOutcome(str, Enum):
    """Terminal states of one export request."""
    NO_QUESTIONS = "no_questions"
    NO_ESSAY_QUESTIONS = "no_essay_questions"
    NO_STUDENTS = "no_students"
    NO_ATTEMPTS = "no_attempts"
    NO_SUBMISSIONS = "no_submissions"
    ARCHIVE_FAILED = "archive_failed"
    READY = "ready"
