# downloadsubmissions/services/question_engine.py
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from downloadsubmissions.models.lms import (
    Question,
    QuestionAttempt,
    QuestionAttemptStep,
    StoredFile,
)
from downloadsubmissions.utils.logger import logger

# File areas in which each question type stores submitted response files.
RESPONSE_FILE_AREAS: Dict[str, Tuple[str, ...]] = {
    "essay": ("answer", "attachments"),
}


def response_file_areas(qtype: str) -> Tuple[str, ...]:
    return RESPONSE_FILE_AREAS.get(qtype, ())


class QuestionAttemptView:
    """Read-only view of one question attempt and its submitted steps."""

    def __init__(self, question_attempt: QuestionAttempt, context_id: int):
        self._qa = question_attempt
        self.context_id = context_id

    @property
    def question(self) -> Question:
        return self._qa.question

    @property
    def slot(self) -> int:
        return self._qa.slot

    def get_question_summary(self) -> str:
        return self._qa.questionsummary or ""

    def get_response_summary(self) -> str:
        return self._qa.responsesummary or ""

    def get_last_step_with_qt_var(self, name: str) -> Optional[QuestionAttemptStep]:
        for step in reversed(self._qa.steps):
            if any(d.name == name for d in step.data):
                return step
        return None

    def get_last_qt_var(self, name: str) -> Optional[str]:
        step = self.get_last_step_with_qt_var(name)
        if step is None:
            return None
        return next(d.value for d in step.data if d.name == name)


class QuestionEngine:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_question_attempt(self, usage_id: int, slot: int) -> Optional[QuestionAttemptView]:
        result = await self.session.execute(
            select(QuestionAttempt)
            .where(QuestionAttempt.questionusageid == usage_id, QuestionAttempt.slot == slot)
            .options(
                selectinload(QuestionAttempt.question),
                selectinload(QuestionAttempt.usage),
                selectinload(QuestionAttempt.steps).selectinload(QuestionAttemptStep.data),
            )
        )
        qa = result.scalars().first()
        if qa is None:
            logger.warning(f"No question attempt found for usage {usage_id}, slot {slot}")
            return None
        return QuestionAttemptView(qa, qa.usage.context_id)

    async def get_last_qt_files(self, qa: QuestionAttemptView, name: str) -> List[StoredFile]:
        """Files saved in the response area `name` by the step that last submitted it."""
        step = qa.get_last_step_with_qt_var(name)
        if step is None:
            return []
        result = await self.session.execute(
            select(StoredFile)
            .where(
                StoredFile.context_id == qa.context_id,
                StoredFile.component == "question",
                StoredFile.filearea == f"response_{name}",
                StoredFile.itemid == step.id,
                StoredFile.filename != ".",
            )
            .order_by(StoredFile.filepath, StoredFile.filename)
        )
        return list(result.scalars().all())
