# downloadsubmissions/services/path_builder.py
"""
Archive path derivation for exported submissions.

Everything here is a pure function of an AttemptRecord and the folder mode,
so the same record always lands at the same archive path.

Layout for folders=questionwise::

    Q1 - Essay name/
        Attempt1_questiontext.txt
        s123 - Ada Lovelace - Attempt1 - 2024-03-01-09-30/
            Attempt1_filesubmission_report.pdf
            Attempt1_responsetext.txt

and for folders=attemptwise::

    s123 - Ada Lovelace - Attempt1 - 2024-03-01-09-30/
        Q1 - Essay name/
            Attempt1_filesubmission_report.pdf
            Attempt1_responsetext.txt
            Attempt1_questiontext.txt
"""
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional, Set
from zoneinfo import ZoneInfo

from downloadsubmissions.models.enums import FolderMode
from downloadsubmissions.models.export import AttemptRecord
from downloadsubmissions.utils.config import settings
from downloadsubmissions.utils.filenames import clean_filename, clean_path

FILENAME_TEXTQUESTION = "questiontext"
FILENAME_TEXTRESPONSE = "responsetext"
FILENAME_FORMAT_DATETIME = "%Y-%m-%d-%H-%M"
FILETYPE_EXTENSION_TEXT = ".txt"


class PathFragments(NamedTuple):
    question: str
    student: str
    attempt_prefix: str


def fullname(record: AttemptRecord, name_format: Optional[str] = None) -> str:
    name_format = name_format or settings.fullname_format
    name = name_format.format(
        firstname=record.firstname,
        lastname=record.lastname,
        middlename=record.middlename,
        alternatename=record.alternatename,
        firstnamephonetic=record.firstnamephonetic,
        lastnamephonetic=record.lastnamephonetic,
    )
    return " ".join(name.split())


def format_timestart(timestamp: int, timezone: Optional[str] = None) -> str:
    tz = ZoneInfo(timezone or settings.timezone)
    return datetime.fromtimestamp(timestamp, tz).strftime(FILENAME_FORMAT_DATETIME)


def question_fragment(record: AttemptRecord) -> str:
    fragment = f"Q{record.slot}"
    if record.questionname:
        fragment += f" - {record.questionname}"
    return clean_filename(fragment)


def student_fragment(record: AttemptRecord, with_userid: bool = False) -> str:
    identifier = record.idnumber or record.username
    name = fullname(record).replace("_", " ")
    fragment = f"{identifier} - {name} - Attempt{record.attempt} - {format_timestart(record.timestart)}"
    if with_userid:
        fragment += f" - {record.userid}"
    return clean_filename(fragment)


def build_fragments(record: AttemptRecord, with_userid: bool = False) -> PathFragments:
    return PathFragments(
        question=question_fragment(record),
        student=student_fragment(record, with_userid),
        attempt_prefix=f"Attempt{record.attempt}_",
    )


def build_all_fragments(records: List[AttemptRecord]) -> List[PathFragments]:
    """
    Fragments for each record, in order. Students whose folder names would
    render identically get their user id appended so their folders stay apart.
    """
    owners: Dict[str, Set[int]] = defaultdict(set)
    for record in records:
        owners[student_fragment(record)].add(record.userid)
    return [
        build_fragments(record, with_userid=len(owners[student_fragment(record)]) > 1)
        for record in records
    ]


def folder_prefix(fragments: PathFragments, folders: FolderMode) -> str:
    if folders == FolderMode.ATTEMPTWISE:
        return f"{fragments.student}/{fragments.question}"
    return f"{fragments.question}/{fragments.student}"


def attachment_path(fragments: PathFragments, folders: FolderMode, filepath: str, filename: str) -> str:
    prefix = folder_prefix(fragments, folders)
    leaf = f"{fragments.attempt_prefix}filesubmission_{clean_filename(filename)}"
    return clean_path(f"{prefix}{filepath or '/'}{leaf}")


def response_text_path(fragments: PathFragments, folders: FolderMode) -> str:
    prefix = folder_prefix(fragments, folders)
    return clean_path(f"{prefix}/{fragments.attempt_prefix}{FILENAME_TEXTRESPONSE}{FILETYPE_EXTENSION_TEXT}")


def question_text_path(fragments: PathFragments, folders: FolderMode) -> str:
    # Question-wise archives keep one question text per attempt number beside the student folders.
    if folders == FolderMode.ATTEMPTWISE:
        base = folder_prefix(fragments, folders)
    else:
        base = fragments.question
    return clean_path(f"{base}/{fragments.attempt_prefix}{FILENAME_TEXTQUESTION}{FILETYPE_EXTENSION_TEXT}")


def question_text_filename(record: AttemptRecord) -> str:
    """Content store name of the question text artifact, shared by every student of one quiz."""
    return clean_filename(
        f"Quiz{record.quizid} - Q{record.slot} - {record.questionid} - "
        f"{FILENAME_TEXTQUESTION}{FILETYPE_EXTENSION_TEXT}"
    )


def response_text_filename(record: AttemptRecord) -> str:
    return clean_filename(
        f"{question_fragment(record)} - {record.questionattemptid} - {FILENAME_TEXTRESPONSE}{FILETYPE_EXTENSION_TEXT}"
    )


def archive_filename(course_shortname: str, quiz_name: str, quiz_id: int) -> str:
    return clean_filename(f"{course_shortname} - {quiz_name} - {quiz_id}.zip")
