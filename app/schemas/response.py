"""Survey response schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class QuestionAnswerResponse(BaseModel):
    """Stored answer."""
    question_id: str
    answer: str
    audio_path: Optional[str] = None
    file_path: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SurveyResponseDetail(BaseModel):
    """Stored response with its answers."""
    id: int
    survey_id: int
    respondent_id: str
    submitted_at: datetime
    answers: List[QuestionAnswerResponse] = []

    model_config = ConfigDict(from_attributes=True)


class SubmissionResult(BaseModel):
    message: str = "Response submitted successfully"
    response_id: int


class RespondentCheckRequest(BaseModel):
    survey_id: int
    respondent_id: str = Field(..., min_length=1, max_length=64)


class RespondentCheckResult(BaseModel):
    has_responded: bool
    response_id: Optional[int] = None
    submitted_at: Optional[datetime] = None
