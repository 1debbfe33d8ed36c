# downloadsubmissions/services/attempt_selector.py
from typing import List, Optional
from sqlalchemy import and_, case, func, null, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from downloadsubmissions.models.export import AttemptRecord
from downloadsubmissions.models.lms import (
    Enrolment,
    Question,
    QuestionAttempt,
    Quiz,
    QuizAttempt,
    QuizSlot,
    User,
)
from downloadsubmissions.utils.logger import logger

# Slot question types that may hold an essay; 'random' slots draw from a category.
ESSAY_SLOT_TYPES = ("essay", "random")


class AttemptSelector:
    """Read-only queries that decide what an export can contain."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_quiz(self, quiz_id: int) -> Optional[Quiz]:
        result = await self.session.execute(
            select(Quiz).where(Quiz.id == quiz_id).options(selectinload(Quiz.course))
        )
        return result.scalars().first()

    async def quiz_has_questions(self, quiz_id: int) -> bool:
        result = await self.session.execute(
            select(QuizSlot.id).where(QuizSlot.quiz_id == quiz_id).limit(1)
        )
        return result.first() is not None

    async def quiz_has_essay_questions(self, quiz_id: int) -> bool:
        result = await self.session.execute(
            select(QuizSlot.id)
            .join(Question, Question.id == QuizSlot.question_id)
            .where(QuizSlot.quiz_id == quiz_id, Question.qtype.in_(ESSAY_SLOT_TYPES))
            .limit(1)
        )
        return result.first() is not None

    async def course_has_students(self, course_id: int) -> bool:
        result = await self.session.execute(
            select(User.id)
            .join(Enrolment, Enrolment.user_id == User.id)
            .where(Enrolment.course_id == course_id, User.deleted.is_(False))
            .limit(1)
        )
        return result.first() is not None

    async def count_attempts(self, quiz_id: int) -> int:
        result = await self.session.execute(
            select(func.count(QuizAttempt.id))
            .where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.preview.is_(False))
        )
        return result.scalar_one()

    async def get_user_attempts(self, quiz_id: int) -> List[AttemptRecord]:
        """
        Returns one record per (student, essay question attempt) across all
        non-preview attempts at the quiz by users that are not deleted.
        """
        duration = case(
            (QuizAttempt.timefinish == 0, null()),
            (QuizAttempt.timefinish > QuizAttempt.timestart, QuizAttempt.timefinish - QuizAttempt.timestart),
            else_=0,
        )
        stmt = (
            select(
                QuestionAttempt.id.label("questionattemptid"),
                QuizAttempt.id.label("quizattemptid"),
                QuizAttempt.quiz_id.label("quizid"),
                QuizAttempt.attempt,
                QuizAttempt.state,
                QuizAttempt.timestart,
                QuizAttempt.timefinish,
                duration.label("duration"),
                QuizAttempt.uniqueid.label("qubaid"),
                QuestionAttempt.slot,
                QuestionAttempt.questionid,
                Question.qtype,
                Question.name.label("questionname"),
                User.id.label("userid"),
                User.username,
                func.coalesce(User.idnumber, "").label("idnumber"),
                func.coalesce(User.firstname, "").label("firstname"),
                func.coalesce(User.lastname, "").label("lastname"),
                func.coalesce(User.middlename, "").label("middlename"),
                func.coalesce(User.alternatename, "").label("alternatename"),
                func.coalesce(User.firstnamephonetic, "").label("firstnamephonetic"),
                func.coalesce(User.lastnamephonetic, "").label("lastnamephonetic"),
            )
            .select_from(User)
            .join(QuizAttempt, and_(QuizAttempt.user_id == User.id, QuizAttempt.quiz_id == quiz_id))
            .join(QuestionAttempt, QuestionAttempt.questionusageid == QuizAttempt.uniqueid)
            .join(Question, Question.id == QuestionAttempt.questionid)
            .where(
                Question.qtype == "essay",
                QuizAttempt.preview.is_(False),
                User.deleted.is_(False),
            )
            .distinct()
            .order_by(User.id, QuizAttempt.attempt, QuestionAttempt.slot)
        )
        result = await self.session.execute(stmt)
        records = [AttemptRecord(**row._mapping) for row in result.all()]
        logger.debug(f"Found {len(records)} essay question attempts for quiz {quiz_id}")
        return records
