# downloadsubmissions/models/export.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from downloadsubmissions.models.enums import FolderMode, ExportOutcome


class ExportRequest(BaseModel):
    folders: FolderMode = Field(
        FolderMode.QUESTIONWISE,
        description="'questionwise' nests attempts under each question, 'attemptwise' nests questions under each attempt.",
    )
    textresponse: bool = Field(True, description="Include a text file with each online text response.")
    questiontext: bool = Field(True, description="Include a text file with the question text.")


class AttemptRecord(BaseModel):
    """One student's attempt at one essay question slot."""
    model_config = ConfigDict(frozen=True)

    questionattemptid: int
    quizattemptid: int
    quizid: int
    attempt: int
    state: str
    timestart: int
    timefinish: int
    duration: Optional[int] = None
    qubaid: int
    slot: int
    questionid: int
    qtype: str
    questionname: str

    userid: int
    username: str
    idnumber: str = ""
    firstname: str = ""
    lastname: str = ""
    middlename: str = ""
    alternatename: str = ""
    firstnamephonetic: str = ""
    lastnamephonetic: str = ""


class ExportResult(BaseModel):
    outcome: ExportOutcome
    filename: Optional[str] = None
    archive_path: Optional[str] = None
    entry_count: int = 0
    overwritten_paths: list[str] = []
    error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.outcome == ExportOutcome.READY
