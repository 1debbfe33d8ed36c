# downloadsubmissions/services/exporter.py
from typing import Dict, List, Tuple

from downloadsubmissions.models.enums import ExportOutcome
from downloadsubmissions.models.export import AttemptRecord, ExportRequest, ExportResult
from downloadsubmissions.models.lms import Quiz, StoredFile
from downloadsubmissions.services import path_builder
from downloadsubmissions.services.attempt_selector import AttemptSelector
from downloadsubmissions.services.content_store import ContentStore, artifact_key
from downloadsubmissions.services.packer import PackingError, ZipPacker
from downloadsubmissions.services.question_engine import QuestionEngine, response_file_areas
from downloadsubmissions.utils.logger import logger

ATTACHMENTS_AREA = "attachments"

# User-facing notices for every outcome that falls back to the settings form.
NOTICES = {
    ExportOutcome.NO_QUESTIONS: "This quiz has no questions.",
    ExportOutcome.NO_ESSAY_QUESTIONS: "This quiz does not contain any essay questions.",
    ExportOutcome.NO_STUDENTS: "No students enrolled in this course yet.",
    ExportOutcome.NO_ATTEMPTS: "No attempts have been made on this quiz yet.",
    ExportOutcome.NO_SUBMISSIONS: "No essay submissions found for this quiz.",
    ExportOutcome.ARCHIVE_FAILED: "The submissions archive could not be created.",
}


class SubmissionExporter:
    """
    Collects essay attachments and text responses for a quiz and packs them
    into one archive. Each guard that fails ends the export with its own
    outcome; only a READY result carries an archive.
    """

    def __init__(
        self,
        selector: AttemptSelector,
        question_engine: QuestionEngine,
        content_store: ContentStore,
        packer: ZipPacker,
    ):
        self.selector = selector
        self.question_engine = question_engine
        self.content_store = content_store
        self.packer = packer

    async def export(self, quiz: Quiz, request: ExportRequest) -> ExportResult:
        logger.info(f"Export requested for quiz {quiz.id} (folders={request.folders.value}, "
                    f"textresponse={request.textresponse}, questiontext={request.questiontext})")

        if not await self.selector.quiz_has_questions(quiz.id):
            return self._stop(quiz, ExportOutcome.NO_QUESTIONS)
        if not await self.selector.quiz_has_essay_questions(quiz.id):
            return self._stop(quiz, ExportOutcome.NO_ESSAY_QUESTIONS)
        if not await self.selector.course_has_students(quiz.course_id):
            return self._stop(quiz, ExportOutcome.NO_STUDENTS)

        records = await self.selector.get_user_attempts(quiz.id)
        if not records:
            return self._stop(quiz, ExportOutcome.NO_ATTEMPTS)

        files, overwritten = await self.build_entries(quiz.course_id, records, request)
        if not files:
            return self._stop(quiz, ExportOutcome.NO_SUBMISSIONS)

        filename = path_builder.archive_filename(quiz.course.shortname, quiz.name, quiz.id)
        try:
            zip_path = self.packer.pack(files)
        except PackingError as e:
            logger.error(f"Packing submissions for quiz {quiz.id} failed: {e}")
            return ExportResult(
                outcome=ExportOutcome.ARCHIVE_FAILED,
                filename=filename,
                entry_count=len(files),
                overwritten_paths=overwritten,
                error=str(e),
            )

        return ExportResult(
            outcome=ExportOutcome.READY,
            filename=filename,
            archive_path=zip_path,
            entry_count=len(files),
            overwritten_paths=overwritten,
        )

    async def build_entries(
        self, context_id: int, records: List[AttemptRecord], request: ExportRequest
    ) -> Tuple[Dict[str, StoredFile], List[str]]:
        """Maps archive paths to the stored files that belong there, in record order."""
        files: Dict[str, StoredFile] = {}
        overwritten: List[str] = []

        def add(path: str, handle: StoredFile):
            previous = files.get(path)
            if previous is not None and previous.id != handle.id:
                # Two different files derived the same archive path; the later one wins.
                logger.warning(f"Archive path '{path}' is used by more than one file, keeping the last one.")
                overwritten.append(path)
            files[path] = handle

        for record, fragments in zip(records, path_builder.build_all_fragments(records)):
            qa = await self.question_engine.load_question_attempt(record.qubaid, record.slot)
            if qa is None or qa.question.qtype != "essay":
                continue

            question_text_file = None
            if request.questiontext:
                question_text_file = await self.content_store.ensure_text_file(
                    artifact_key(context_id, path_builder.question_text_filename(record)),
                    qa.get_question_summary(),
                )

            text_file = None
            if request.textresponse:
                text_file = await self.content_store.ensure_text_file(
                    artifact_key(context_id, path_builder.response_text_filename(record)),
                    qa.get_response_summary(),
                )

            attachments = []
            if (ATTACHMENTS_AREA in response_file_areas(qa.question.qtype)
                    and qa.get_last_qt_var(ATTACHMENTS_AREA) is not None):
                attachments = await self.question_engine.get_last_qt_files(qa, ATTACHMENTS_AREA)

            for stored in attachments:
                add(path_builder.attachment_path(fragments, request.folders, stored.filepath, stored.filename), stored)

            if text_file is not None:
                add(path_builder.response_text_path(fragments, request.folders), text_file)

            # Question text only accompanies attempts that actually submitted something.
            if question_text_file is not None and (attachments or text_file is not None):
                add(path_builder.question_text_path(fragments, request.folders), question_text_file)

        logger.info(f"Collected {len(files)} files from {len(records)} essay question attempts")
        return files, overwritten

    def _stop(self, quiz: Quiz, outcome: ExportOutcome) -> ExportResult:
        logger.info(f"Nothing to export for quiz {quiz.id}: {outcome.value}")
        return ExportResult(outcome=outcome)
