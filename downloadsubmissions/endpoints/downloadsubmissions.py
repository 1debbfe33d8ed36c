# downloadsubmissions/endpoints/downloadsubmissions.py
import os
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.background import BackgroundTask

from downloadsubmissions.models.enums import ExportOutcome, FolderMode
from downloadsubmissions.models.export import ExportRequest
from downloadsubmissions.models.lms import Quiz
from downloadsubmissions.services.attempt_selector import AttemptSelector
from downloadsubmissions.services.content_store import ContentStore
from downloadsubmissions.services.exporter import NOTICES, SubmissionExporter
from downloadsubmissions.services.packer import ZipPacker
from downloadsubmissions.services.question_engine import QuestionEngine
from downloadsubmissions.utils.db import get_db
from downloadsubmissions.utils.logger import logger

router = APIRouter(
    prefix="/quizzes/{quiz_id}/downloadsubmissions",
    tags=["Download Submissions"]
)

PLUGIN_DESCRIPTION = (
    "Download the files and online text submitted by students in response "
    "to the essay questions of this quiz, packed into one zip archive."
)

# --- Pydantic Models ---
class FormField(BaseModel):
    name: str
    label: str
    choices: Dict[str, str]
    default: str

class SettingsForm(BaseModel):
    quiz_id: int
    mode: str = "downloadsubmissions"
    description: str = PLUGIN_DESCRIPTION
    attempt_summary: Optional[str] = None
    fields: List[FormField]

class ExportNotice(BaseModel):
    outcome: ExportOutcome
    notice: str
    form: SettingsForm


def build_settings_form(quiz_id: int, attempt_count: int, current: Optional[ExportRequest] = None) -> SettingsForm:
    current = current or ExportRequest()
    yes_no = {"1": "Yes", "0": "No"}
    return SettingsForm(
        quiz_id=quiz_id,
        attempt_summary=f"Attempts: {attempt_count}" if attempt_count else None,
        fields=[
            FormField(
                name="folders",
                label="Folder hierarchy",
                choices={
                    FolderMode.QUESTIONWISE.value: "Essay question-wise",
                    FolderMode.ATTEMPTWISE.value: "User attempt-wise",
                },
                default=current.folders.value,
            ),
            FormField(
                name="textresponse",
                label="Include text response file",
                choices=yes_no,
                default=str(int(current.textresponse)),
            ),
            FormField(
                name="questiontext",
                label="Include question text file",
                choices=yes_no,
                default=str(int(current.questiontext)),
            ),
        ],
    )


async def get_quiz_or_404(quiz_id: int, db: AsyncSession = Depends(get_db)) -> Quiz:
    quiz = await AttemptSelector(db).get_quiz(quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


def get_exporter(db: AsyncSession = Depends(get_db)) -> SubmissionExporter:
    return SubmissionExporter(
        selector=AttemptSelector(db),
        question_engine=QuestionEngine(db),
        content_store=ContentStore(db),
        packer=ZipPacker(),
    )


@router.get("/", response_model=SettingsForm)
async def get_settings_form(quiz: Quiz = Depends(get_quiz_or_404), db: AsyncSession = Depends(get_db)):
    """Returns the export preferences form with its defaults and the attempt summary."""
    attempt_count = await AttemptSelector(db).count_attempts(quiz.id)
    return build_settings_form(quiz.id, attempt_count)


@router.post("/", response_model=ExportNotice, responses={200: {"content": {"application/zip": {}}}})
async def download_submissions(
    request: ExportRequest,
    quiz: Quiz = Depends(get_quiz_or_404),
    exporter: SubmissionExporter = Depends(get_exporter),
    db: AsyncSession = Depends(get_db),
):
    """
    Streams a zip archive of the essay submissions for the quiz. When there
    is nothing to export, returns a notice together with the form instead.
    """
    result = await exporter.export(quiz, request)
    # Persist any question/response text files written while collecting entries.
    try:
        await db.commit()
    except Exception as e:
        logger.error(f"Saving export artifacts for quiz {quiz.id} failed: {e}")
        if result.archive_path:
            os.remove(result.archive_path)
        raise

    if result.outcome == ExportOutcome.READY:
        logger.info(f"Sending {result.filename} ({result.entry_count} files) for quiz {quiz.id}")
        return FileResponse(
            result.archive_path,
            media_type="application/zip",
            filename=result.filename,
            background=BackgroundTask(os.remove, result.archive_path),
        )

    if result.outcome == ExportOutcome.ARCHIVE_FAILED:
        raise HTTPException(status_code=500, detail=f"{NOTICES[result.outcome]} {result.error or ''}".strip())

    attempt_count = await exporter.selector.count_attempts(quiz.id)
    return ExportNotice(
        outcome=result.outcome,
        notice=NOTICES[result.outcome],
        form=build_settings_form(quiz.id, attempt_count, current=request),
    )
