"""Survey service."""
import logging
import uuid
from typing import List, Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.timeutils import utcnow, as_utc
from app.repositories.survey_repository import SurveyRepository
from app.models.survey import Survey
from app.models.user import User, UserRole
from app.schemas.answer import AnswerSet, answer_from_wire
from app.schemas.evaluation import EvaluationRequest, EvaluationResult
from app.schemas.survey import SurveyCreate, SurveyUpdate, SurveyDefinition, SurveyListItem
from app.services.progression import SectionProgress, SurveyNavigator

logger = logging.getLogger(__name__)

SHAREABLE_ID_LENGTH = 12


def definition_of(survey: Survey) -> SurveyDefinition:
    """Validated definition of a stored survey."""
    return SurveyDefinition.model_validate(survey.definition or {})


def is_open(survey: Survey) -> bool:
    """Active and inside its scheduled/expiration window."""
    if not survey.is_active:
        return False
    now = utcnow()
    scheduled = as_utc(survey.scheduled_date)
    expiration = as_utc(survey.expiration_date)
    if scheduled is not None and now < scheduled:
        return False
    if expiration is not None and now > expiration:
        return False
    return True


def parse_answers(definition: SurveyDefinition, raw_answers: dict) -> AnswerSet:
    """
    Build an AnswerSet from client-sent answers.

    Ids the survey does not define are dropped.
    """
    questions = {q.id: q for q in reversed(definition.all_questions())}
    entries = {}
    for question_id, raw in raw_answers.items():
        question = questions.get(question_id)
        if question is None:
            logger.warning("Ignoring answer for unknown question '%s'", question_id)
            continue
        entries[question_id] = answer_from_wire(question, raw)
    return AnswerSet.from_mapping(entries)


class SurveyService:
    """Survey business logic."""

    def __init__(self, db: Session):
        self.db = db
        self.survey_repo = SurveyRepository(db)

    def _new_shareable_id(self) -> str:
        while True:
            candidate = uuid.uuid4().hex[:SHAREABLE_ID_LENGTH]
            if not self.survey_repo.exists_by_shareable_id(candidate):
                return candidate

    def create_survey(self, survey_data: SurveyCreate, author: User) -> Survey:
        """Create a survey owned by ``author`` with a fresh shareable id."""
        survey = self.survey_repo.create(
            title=survey_data.title,
            description=survey_data.description,
            shareable_id=self._new_shareable_id(),
            definition=survey_data.to_definition().model_dump(mode="json"),
            created_by=author.id,
            is_active=survey_data.is_active,
            scheduled_date=survey_data.scheduled_date,
            expiration_date=survey_data.expiration_date,
        )
        logger.info("User %s created survey %s (%s)", author.id, survey.id, survey.shareable_id)
        return survey

    def get_survey(self, survey_id: int) -> Survey:
        """
        Get survey by ID.

        Raises:
            HTTPException: If survey not found
        """
        survey = self.survey_repo.get_by_id(survey_id)

        if not survey:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Survey not found"
            )

        return survey

    def get_owned_survey(self, survey_id: int, user: User) -> Survey:
        """
        Get a survey the user may manage: admins any, researchers their own.

        Raises:
            HTTPException: 404 if missing, 403 if owned by someone else
        """
        survey = self.get_survey(survey_id)
        if user.role != UserRole.ADMIN and survey.created_by != user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have access to this survey"
            )
        return survey

    def get_surveys(self, user: User, skip: int = 0, limit: int = 100,
                    is_active: Optional[bool] = None,
                    search: Optional[str] = None) -> List[SurveyListItem]:
        """Surveys visible to ``user`` with their response counts."""
        created_by = None if user.role == UserRole.ADMIN else user.id
        rows = self.survey_repo.get_all(
            skip=skip, limit=limit, is_active=is_active,
            created_by=created_by, search=search,
        )
        return [self._list_item(survey, count) for survey, count in rows]

    def get_public_surveys(self, search: Optional[str] = None, limit: int = 50) -> List[SurveyListItem]:
        """Active surveys open for responses."""
        rows = self.survey_repo.get_all(limit=limit, is_active=True, search=search, open_at=utcnow())
        return [self._list_item(survey, count) for survey, count in rows if is_open(survey)]

    @staticmethod
    def _list_item(survey: Survey, count: int) -> SurveyListItem:
        return SurveyListItem(
            id=survey.id,
            title=survey.title,
            description=survey.description or "",
            shareable_id=survey.shareable_id,
            is_active=survey.is_active,
            created_at=survey.created_at,
            response_count=count,
        )

    def update_survey(self, survey_id: int, survey_data: SurveyUpdate, user: User) -> Survey:
        """
        Update survey fields; sections/questions replace the whole definition.

        Raises:
            HTTPException: If survey not found, not owned or the date window is invalid
        """
        survey = self.get_owned_survey(survey_id, user)

        fields_set = survey_data.model_fields_set
        scheduled = survey_data.scheduled_date if "scheduled_date" in fields_set else survey.scheduled_date
        expiration = survey_data.expiration_date if "expiration_date" in fields_set else survey.expiration_date
        if scheduled and expiration and as_utc(expiration) <= as_utc(scheduled):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="expiration_date must be after scheduled_date"
            )

        kwargs: dict = survey_data.model_dump(
            exclude_unset=True, exclude={"sections", "questions"}
        )
        definition = survey_data.to_definition()
        if definition is not None:
            kwargs["definition"] = definition.model_dump(mode="json")

        # Explicit nulls reopen the schedule window
        clear = tuple(
            field for field in ("scheduled_date", "expiration_date")
            if field in fields_set and getattr(survey_data, field) is None
        )
        updated = self.survey_repo.update(survey_id=survey.id, clear=clear, **kwargs)
        logger.info("User %s updated survey %s", user.id, survey.id)
        return updated

    def delete_survey(self, survey_id: int, user: User) -> None:
        """Delete a survey and everything collected for it."""
        survey = self.get_owned_survey(survey_id, user)
        self.survey_repo.delete(survey.id)
        logger.info("User %s deleted survey %s", user.id, survey_id)

    def get_open_survey(self, shareable_id: str) -> Survey:
        """
        Survey addressed by a public link.

        Raises:
            HTTPException: 404 if unknown, 410 if inactive, not started or expired
        """
        survey = self.survey_repo.get_by_shareable_id(shareable_id)
        if not survey:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "survey_not_found", "message": "Survey not found", "retriable": False},
            )
        if not is_open(survey):
            raise HTTPException(
                status_code=status.HTTP_410_GONE,
                detail={"code": "survey_closed", "message": "This survey is not accepting responses", "retriable": False},
            )
        return survey

    def evaluate(self, shareable_id: str, request: EvaluationRequest) -> EvaluationResult:
        """Visibility and navigation gates for a partially filled survey."""
        survey = self.get_open_survey(shareable_id)
        definition = definition_of(survey)
        navigator = SurveyNavigator(definition)
        answer_set = parse_answers(definition, request.answers)

        if request.section_index >= navigator.section_count:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"section_index must be below {navigator.section_count}"
            )
        progress = SectionProgress(section_index=request.section_index)

        advance = navigator.can_advance(progress, answer_set)
        submit = navigator.can_submit(answer_set)
        return EvaluationResult(
            section_index=progress.section_index,
            section_count=navigator.section_count,
            is_sectioned=navigator.is_sectioned,
            is_first_section=navigator.is_first_section(progress),
            is_last_section=navigator.is_last_section(progress),
            progress=navigator.progress_ratio(progress),
            visible_questions=navigator.visible_by_section(answer_set),
            can_advance=advance.ok,
            missing_in_section=advance.missing,
            can_submit=submit.ok,
            missing_required=submit.missing,
        )
