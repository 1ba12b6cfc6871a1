"""Public fill-in router (no authentication).

Respondents are anonymous: they are identified by a client-generated
``respondent_id`` that is stable per browser.
"""
from typing import Annotated, Dict, List, Optional, Tuple
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from app.core.database import get_db
from app.core.limiter import limiter
from app.schemas.answer import AnswerIn
from app.schemas.evaluation import EvaluationRequest, EvaluationResult
from app.schemas.response import RespondentCheckRequest, RespondentCheckResult, SubmissionResult
from app.schemas.session import SessionEvent, SessionEventResult
from app.schemas.survey import PublicSurvey, SurveyListItem
from app.services.response_service import ResponseService
from app.services.session_service import SessionService
from app.services.survey_service import SurveyService

router = APIRouter(prefix="/public", tags=["Public"])

AUDIO_FIELD_PREFIX = "audio_"
FILE_FIELD_PREFIX = "file_"
MAX_RESPONDENT_ID_LENGTH = 64

_answers_adapter = TypeAdapter(List[AnswerIn])


def _form_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": "invalid_submission", "message": message, "retriable": False},
    )


@router.get("/surveys", response_model=List[SurveyListItem])
def list_public_surveys(
    db: Annotated[Session, Depends(get_db)],
    search: Optional[str] = Query(None, max_length=255),
    limit: int = Query(50, ge=1, le=200)
):
    """Surveys currently accepting responses, newest first."""
    return SurveyService(db).get_public_surveys(search=search, limit=limit)


@router.get("/surveys/{shareable_id}", response_model=PublicSurvey)
def get_public_survey(
    shareable_id: str,
    db: Annotated[Session, Depends(get_db)]
):
    """
    Survey definition for a shareable link.

    404 when the link is unknown, 410 when the survey is inactive, not yet
    started or expired.
    """
    return SurveyService(db).get_open_survey(shareable_id)


@router.post("/surveys/{shareable_id}/evaluate", response_model=EvaluationResult)
def evaluate_survey(
    shareable_id: str,
    payload: EvaluationRequest,
    db: Annotated[Session, Depends(get_db)]
):
    """Visible questions and navigation gates for the answers so far."""
    return SurveyService(db).evaluate(shareable_id, payload)


@router.post("/check-respondent", response_model=RespondentCheckResult)
def check_respondent(
    payload: RespondentCheckRequest,
    db: Annotated[Session, Depends(get_db)]
):
    """Whether this respondent already submitted the survey."""
    return ResponseService(db).check_respondent(payload.survey_id, payload.respondent_id)


async def _read_uploads(form, prefix: str) -> Dict[str, Tuple[Optional[str], bytes]]:
    uploads: Dict[str, Tuple[Optional[str], bytes]] = {}
    for key, value in form.multi_items():
        if not key.startswith(prefix) or not isinstance(value, UploadFile):
            continue
        question_id = key[len(prefix):]
        if question_id:
            uploads[question_id] = (value.filename, await value.read())
    return uploads


@router.post("/surveys/{shareable_id}/responses", response_model=SubmissionResult, status_code=201)
@limiter.limit("10/minute")
async def submit_response(
    request: Request,
    shareable_id: str,
    db: Annotated[Session, Depends(get_db)]
):
    """
    Submit a completed survey.

    Multipart form fields:
    - respondent_id: client-generated id
    - answers: JSON list of ``{"question_id", "answer"}``
    - audio_<question_id>: recorded audio
    - file_<question_id>: uploaded file
    """
    form = await request.form()

    respondent_id = form.get("respondent_id")
    if not isinstance(respondent_id, str) or not respondent_id.strip():
        raise _form_error("respondent_id is required")
    respondent_id = respondent_id.strip()
    if len(respondent_id) > MAX_RESPONDENT_ID_LENGTH:
        raise _form_error("respondent_id is too long")

    raw_answers = form.get("answers") or "[]"
    if not isinstance(raw_answers, str):
        raise _form_error("answers must be a JSON list")
    try:
        answers = _answers_adapter.validate_json(raw_answers)
    except ValidationError:
        raise _form_error("answers must be a JSON list of {question_id, answer}")

    audio = await _read_uploads(form, AUDIO_FIELD_PREFIX)
    files = await _read_uploads(form, FILE_FIELD_PREFIX)

    return ResponseService(db).submit_response(
        shareable_id, respondent_id, answers, audio=audio, files=files
    )


@router.post("/sessions", response_model=SessionEventResult)
@limiter.limit("120/minute")
def record_session_event(
    request: Request,
    payload: SessionEvent,
    db: Annotated[Session, Depends(get_db)]
):
    """Telemetry sink for fill-in clients."""
    session = SessionService(db).record(
        payload,
        user_agent=request.headers.get("user-agent"),
        language=request.headers.get("accept-language"),
    )
    return SessionEventResult(session_id=session.id)
