"""Survey response service."""
import logging
from typing import Dict, List, Optional, Tuple
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.ops_metrics import observe_submission
from app.repositories.response_repository import ResponseRepository
from app.models.response import SurveyResponse
from app.models.user import User
from app.schemas.analytics import ResponseSnapshot, SurveyAnalytics
from app.schemas.answer import AnswerIn
from app.schemas.response import RespondentCheckResult, SubmissionResult
from app.schemas.survey import FileUploadQuestion, QuestionType, SurveyDefinition
from app.services.analytics import build_survey_analytics
from app.services.assembly import (
    AttachmentRef,
    SubmissionRejected,
    assemble_response,
    attachment_placeholders,
)
from app.services.progression import SurveyNavigator
from app.services.session_service import SessionService
from app.services.storage_service import StorageError, StorageService
from app.services.survey_service import SurveyService, definition_of, parse_answers
from app.services.telemetry import SessionTracker

logger = logging.getLogger(__name__)

# question_id -> (original filename, content)
Uploads = Dict[str, Tuple[Optional[str], bytes]]


def _bad_request(code: str, message: str, **extra) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": code, "message": message, "retriable": False, **extra},
    )


def _duplicate() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "code": "already_responded",
            "message": "You have already responded to this survey",
            "retriable": False,
        },
    )


def _rejected(missing: List[str]) -> HTTPException:
    return _bad_request(
        "required_questions_unanswered",
        "Please answer all required questions",
        missing=missing,
    )


class ResponseService:
    """Survey response business logic."""

    def __init__(self, db: Session, storage: Optional[StorageService] = None):
        self.db = db
        self.response_repo = ResponseRepository(db)
        self.survey_service = SurveyService(db)
        self.storage = storage or StorageService()

    def _validate_uploads(self, definition: SurveyDefinition, uploads: Uploads,
                          expected: QuestionType) -> None:
        for question_id, (filename, content) in uploads.items():
            question = definition.find_question(question_id)
            if question is None or question.type != expected:
                raise _bad_request(
                    "unexpected_attachment",
                    f"Question '{question_id}' does not accept this attachment",
                )

            limit = settings.max_upload_bytes
            if isinstance(question, FileUploadQuestion):
                limit = min(limit, question.file_settings.max_file_size_mb * 1024 * 1024)
                if not question.file_settings.allows(filename or ""):
                    raise _bad_request(
                        "file_type_not_allowed",
                        f"File type not allowed for question '{question_id}'",
                    )

            if len(content) > limit:
                raise _bad_request(
                    "file_too_large",
                    f"Attachment for question '{question_id}' exceeds {limit // (1024 * 1024)} MB",
                )

    def _store_uploads(self, audio: Uploads, files: Uploads) -> Dict[str, AttachmentRef]:
        attachments: Dict[str, AttachmentRef] = {}
        try:
            for question_id, (filename, content) in audio.items():
                attachments[question_id] = self.storage.store_audio(content, filename)
            for question_id, (filename, content) in files.items():
                attachments[question_id] = self.storage.store_file(content, filename)
        except StorageError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"code": "attachment_storage_failed", "message": str(exc), "retriable": True},
            )
        return attachments

    def submit_response(
        self,
        shareable_id: str,
        respondent_id: str,
        answers: List[AnswerIn],
        audio: Optional[Uploads] = None,
        files: Optional[Uploads] = None,
    ) -> SubmissionResult:
        """
        Validate, assemble and store one respondent's answers.

        Steps: survey must be open; one response per respondent; attachments
        must match their question and limits; every visible required question
        must be answered (uploaded attachments count as answers). Answers of
        questions hidden after being answered are stored as they are.

        Raises:
            HTTPException: 404/410 for unknown or closed surveys, 409 for a
                repeat submission, 400 for missing answers or bad attachments,
                502 when attachment storage fails
        """
        audio = audio or {}
        files = files or {}
        survey = self.survey_service.get_open_survey(shareable_id)
        definition = definition_of(survey)

        if self.response_repo.get_by_respondent(survey.id, respondent_id):
            observe_submission(duplicate=True)
            raise _duplicate()

        answer_set = parse_answers(definition, {a.question_id: a.answer for a in answers})
        self._validate_uploads(definition, audio, QuestionType.AUDIO)
        self._validate_uploads(definition, files, QuestionType.FILE_UPLOAD)

        # Gate before uploading so rejected submissions leave no orphaned attachments
        pending = {
            qid: AttachmentRef(reference=filename or qid, filename=filename)
            for qid, (filename, _) in {**audio, **files}.items()
        }
        check = SurveyNavigator(definition).can_submit(
            attachment_placeholders(definition, answer_set, pending)
        )
        if not check:
            observe_submission(rejected=True)
            logger.info("Rejected submission for survey %s: missing %s", survey.id, check.missing)
            raise _rejected(check.missing)

        attachments = self._store_uploads(audio, files)
        answer_set = attachment_placeholders(definition, answer_set, attachments)

        try:
            record = assemble_response(definition, answer_set, survey.id, respondent_id, attachments)
        except SubmissionRejected as exc:
            observe_submission(rejected=True)
            raise _rejected(exc.missing)

        try:
            response = self.response_repo.create_from_record(record)
        except IntegrityError:
            # Concurrent submission by the same respondent
            self.db.rollback()
            logger.warning(
                "Duplicate response for survey %s by %s; discarding %d attachment(s)",
                survey.id, respondent_id, len(attachments),
            )
            for attachment in attachments.values():
                self.storage.discard(attachment)
            observe_submission(duplicate=True)
            raise _duplicate()

        observe_submission()
        logger.info(
            "Stored response %s for survey %s (%d answers)",
            response.id, survey.id, len(record.answers),
        )

        SessionTracker(SessionService(self.db), survey.id, respondent_id).completed()

        return SubmissionResult(response_id=response.id)

    def check_respondent(self, survey_id: int, respondent_id: str) -> RespondentCheckResult:
        """Whether ``respondent_id`` already submitted ``survey_id``."""
        response = self.response_repo.get_by_respondent(survey_id, respondent_id)
        if not response:
            return RespondentCheckResult(has_responded=False)
        return RespondentCheckResult(
            has_responded=True,
            response_id=response.id,
            submitted_at=response.submitted_at,
        )

    def get_survey_responses(self, survey_id: int, user: User, skip: int = 0,
                             limit: int = 100) -> List[SurveyResponse]:
        """Responses of a survey the user may manage, newest first."""
        survey = self.survey_service.get_owned_survey(survey_id, user)
        return self.response_repo.get_by_survey(survey.id, skip=skip, limit=limit)

    def get_analytics(self, survey_id: int, user: User) -> SurveyAnalytics:
        """Per-question aggregates over every stored response."""
        survey = self.survey_service.get_owned_survey(survey_id, user)
        snapshots = [
            ResponseSnapshot(
                submitted_at=response.submitted_at,
                answers={a.question_id: a.answer for a in response.answers},
            )
            for response in self.response_repo.get_by_survey(survey.id, limit=None)
        ]
        return build_survey_analytics(survey.id, definition_of(survey), snapshots)
