"""Fill-in session telemetry schemas."""
from typing import Optional

from pydantic import BaseModel, Field

from app.models.session import SessionAction

SURVEY_STEP_ID = "survey"
COMPLETED_STEP_ID = "survey-completed"


class SessionEvent(BaseModel):
    """One telemetry event as sent by a fill-in client."""
    survey_id: int
    respondent_id: str = Field(..., min_length=1, max_length=64)
    action: SessionAction
    question_id: Optional[str] = Field(None, max_length=64)
    question_index: Optional[int] = None
    time_spent: int = Field(0, ge=0)
    answer: Optional[str] = None

    @property
    def step_question_id(self) -> str:
        if self.question_id:
            return self.question_id
        return COMPLETED_STEP_ID if self.action == SessionAction.COMPLETED else SURVEY_STEP_ID

    @property
    def step_question_index(self) -> int:
        if self.question_index is not None:
            return self.question_index
        return -1 if self.action == SessionAction.COMPLETED else 0


class SessionEventResult(BaseModel):
    success: bool = True
    session_id: int
