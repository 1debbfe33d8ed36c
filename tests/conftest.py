# tests/conftest.py
import asyncio
import os
import shutil
import sys
import tempfile
import logging
import pytest
from fastapi.testclient import TestClient

# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# --- Point the app at a throwaway database before anything imports its settings ---
TEST_ROOT = tempfile.mkdtemp(prefix="downloadsubmissions_tests_")
TEST_DB_PATH = os.path.join(TEST_ROOT, "test.db")
TEST_TEMP_DIR = os.path.join(TEST_ROOT, "archives")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["TEMP_DIR"] = TEST_TEMP_DIR
os.environ["TIMEZONE"] = "UTC"

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from downloadsubmissions.utils.config import settings
from downloadsubmissions.models.lms import (
    Base,
    Course,
    Enrolment,
    Question,
    QuestionAttempt,
    QuestionAttemptStep,
    QuestionAttemptStepData,
    QuestionUsage,
    Quiz,
    QuizAttempt,
    QuizSlot,
    StoredFile,
    User,
)

# 2024-03-01 09:30 UTC
TIMESTART = 1709285400


def run_db(fn):
    """
    Runs `await fn(session)` on a fresh engine bound to the test database and
    commits afterwards. Each call gets its own event loop, so nothing is
    shared with the TestClient's loop.
    """
    async def _run():
        engine = create_async_engine(settings.database_url, echo=False)
        session_factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        try:
            async with session_factory() as session:
                result = await fn(session)
                await session.commit()
                return result
        finally:
            await engine.dispose()

    return asyncio.run(_run())


class LmsBuilder:
    """Inserts host quiz data the way the quiz module would have stored it."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _add(self, obj):
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def course(self, shortname="PHIL101"):
        return await self._add(Course(shortname=shortname, fullname=f"{shortname} full name"))

    async def student(self, course, username, firstname="Ada", lastname="Lovelace",
                      idnumber="", deleted=False, enrol=True):
        user = await self._add(User(
            username=username, idnumber=idnumber, firstname=firstname,
            lastname=lastname, deleted=deleted,
        ))
        if enrol:
            await self._add(Enrolment(course_id=course.id, user_id=user.id))
        return user

    async def quiz(self, course, name="Midterm"):
        return await self._add(Quiz(course_id=course.id, name=name))

    async def question(self, name="Reflective essay", qtype="essay", questiontext="Reflect on the reading."):
        return await self._add(Question(name=name, qtype=qtype, questiontext=questiontext))

    async def slot(self, quiz, question, slot=1):
        return await self._add(QuizSlot(quiz_id=quiz.id, slot=slot, question_id=question.id))

    async def attempt(self, quiz, user, attempt=1, timestart=TIMESTART, timefinish=None,
                      preview=False, state="finished", context_id=None):
        usage = await self._add(QuestionUsage(context_id=context_id or 1000 + user.id))
        return await self._add(QuizAttempt(
            quiz_id=quiz.id, user_id=user.id, attempt=attempt, uniqueid=usage.id,
            preview=preview, state=state, timestart=timestart,
            timefinish=timestart + 600 if timefinish is None else timefinish,
        ))

    async def answer(self, quiz_attempt, question, slot=1, question_summary="Reflect on the reading.",
                     response_summary="", attachments=None):
        """Records one submitted step; `attachments` is a list of (filename, bytes)."""
        usage = await self.session.get(QuestionUsage, quiz_attempt.uniqueid)
        qa = await self._add(QuestionAttempt(
            questionusageid=usage.id, slot=slot, questionid=question.id,
            questionsummary=question_summary, responsesummary=response_summary,
        ))
        await self.submit_step(qa, usage.context_id, 1, response_summary, attachments)
        return qa

    async def submit_step(self, qa, context_id, sequencenumber, answer_text="", attachments=None):
        step = await self._add(QuestionAttemptStep(
            questionattemptid=qa.id, sequencenumber=sequencenumber, state="complete",
        ))
        if answer_text:
            await self._add(QuestionAttemptStepData(attemptstepid=step.id, name="answer", value=answer_text))
        if attachments:
            await self._add(QuestionAttemptStepData(attemptstepid=step.id, name="attachments", value=str(step.id)))
            for filename, content in attachments:
                await self._add(StoredFile(
                    context_id=context_id, component="question", filearea="response_attachments",
                    itemid=step.id, filepath="/", filename=filename, content=content,
                ))
        return step


async def _reset_schema():
    engine = create_async_engine(settings.database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


# --- State Reset Fixture ---
@pytest.fixture(autouse=True)
def reset_database():
    asyncio.run(_reset_schema())
    yield


@pytest.fixture
def essay_quiz():
    """
    One course, one essay question in slot 1, one enrolled student with a
    finished attempt that has an attachment and a text response.
    """
    async def _seed(session):
        lms = LmsBuilder(session)
        course = await lms.course()
        student = await lms.student(course, "student1", idnumber="S001")
        quiz = await lms.quiz(course)
        question = await lms.question()
        await lms.slot(quiz, question)
        attempt = await lms.attempt(quiz, student)
        await lms.answer(
            attempt, question,
            response_summary="Reading taught me patience.",
            attachments=[("report.pdf", b"%PDF-1.4 essay")],
        )
        return {"quiz_id": quiz.id, "course_id": course.id, "user_id": student.id}

    return run_db(_seed)


# --- TestClient Fixture ---
@pytest.fixture(scope="session")
def client():
    from downloadsubmissions.main import app
    logger.info("Creating TestClient instance for the session.")
    with TestClient(app) as c:
        yield c


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(TEST_ROOT, ignore_errors=True)
