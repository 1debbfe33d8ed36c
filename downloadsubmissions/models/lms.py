# downloadsubmissions/models/lms.py
# Host quiz tables read by the exporter, plus the `files` content store table.
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    ForeignKey,
    Text,
    Boolean,
    LargeBinary,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False, unique=True)
    idnumber = Column(String, default="")
    firstname = Column(String, default="")
    lastname = Column(String, default="")
    middlename = Column(String, default="")
    alternatename = Column(String, default="")
    firstnamephonetic = Column(String, default="")
    lastnamephonetic = Column(String, default="")
    deleted = Column(Boolean, default=False)

    enrolments = relationship("Enrolment", back_populates="user")


class Course(Base):
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True, index=True)
    shortname = Column(String, nullable=False)
    fullname = Column(String, default="")

    enrolments = relationship("Enrolment", back_populates="course")
    quizzes = relationship("Quiz", back_populates="course")


class Enrolment(Base):
    __tablename__ = "enrolments"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)

    course = relationship("Course", back_populates="enrolments")
    user = relationship("User", back_populates="enrolments")


class Quiz(Base):
    __tablename__ = "quizzes"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)
    name = Column(String, nullable=False)

    course = relationship("Course", back_populates="quizzes")
    slots = relationship("QuizSlot", back_populates="quiz", order_by="QuizSlot.slot")


class Question(Base):
    __tablename__ = "questions"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    qtype = Column(String, nullable=False)  # 'essay', 'random', 'multichoice', ...
    questiontext = Column(Text, default="")


class QuizSlot(Base):
    __tablename__ = "quiz_slots"
    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), index=True)
    slot = Column(Integer, nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id"))
    maxmark = Column(Float, default=1.0)

    quiz = relationship("Quiz", back_populates="slots")
    question = relationship("Question")


class QuestionUsage(Base):
    __tablename__ = "question_usages"
    id = Column(Integer, primary_key=True, index=True)
    context_id = Column(Integer, nullable=False)  # owning context of attempt files

    question_attempts = relationship("QuestionAttempt", back_populates="usage")


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    attempt = Column(Integer, nullable=False)
    uniqueid = Column(Integer, ForeignKey("question_usages.id"), unique=True)
    preview = Column(Boolean, default=False)
    state = Column(String, default="inprogress")
    # Unix timestamps; timefinish is 0 while the attempt is open
    timestart = Column(Integer, default=0)
    timefinish = Column(Integer, default=0)


class QuestionAttempt(Base):
    __tablename__ = "question_attempts"
    id = Column(Integer, primary_key=True, index=True)
    questionusageid = Column(Integer, ForeignKey("question_usages.id"), index=True)
    slot = Column(Integer, nullable=False)
    questionid = Column(Integer, ForeignKey("questions.id"))
    questionsummary = Column(Text, nullable=True)
    responsesummary = Column(Text, nullable=True)

    usage = relationship("QuestionUsage", back_populates="question_attempts")
    question = relationship("Question")
    steps = relationship(
        "QuestionAttemptStep",
        back_populates="question_attempt",
        order_by="QuestionAttemptStep.sequencenumber",
    )


class QuestionAttemptStep(Base):
    __tablename__ = "question_attempt_steps"
    id = Column(Integer, primary_key=True, index=True)
    questionattemptid = Column(Integer, ForeignKey("question_attempts.id"), index=True)
    sequencenumber = Column(Integer, nullable=False)
    state = Column(String, default="todo")
    timecreated = Column(Integer, default=0)

    question_attempt = relationship("QuestionAttempt", back_populates="steps")
    data = relationship("QuestionAttemptStepData", back_populates="step")


class QuestionAttemptStepData(Base):
    __tablename__ = "question_attempt_step_data"
    id = Column(Integer, primary_key=True, index=True)
    attemptstepid = Column(Integer, ForeignKey("question_attempt_steps.id"), index=True)
    name = Column(String, nullable=False)
    value = Column(Text, nullable=True)

    step = relationship("QuestionAttemptStep", back_populates="data")


class StoredFile(Base):
    __tablename__ = "files"
    __table_args__ = (
        UniqueConstraint(
            "context_id", "component", "filearea", "itemid", "filepath", "filename",
            name="uq_files_location",
        ),
    )
    id = Column(Integer, primary_key=True, index=True)
    context_id = Column(Integer, nullable=False)
    component = Column(String, nullable=False)
    filearea = Column(String, nullable=False)
    itemid = Column(Integer, nullable=False, default=0)
    filepath = Column(String, nullable=False, default="/")
    filename = Column(String, nullable=False)
    content = Column(LargeBinary, nullable=False, default=b"")
    mimetype = Column(String, nullable=True)
