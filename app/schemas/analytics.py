"""Analytics schemas."""
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from app.schemas.survey import LikertScaleType, QuestionType


class ResponseSnapshot(BaseModel):
    """Minimal view of a stored response used for aggregation."""
    submitted_at: datetime
    answers: Dict[str, str] = {}


class OptionCount(BaseModel):
    name: str
    value: int
    percentage: float


class QuestionAnalytics(BaseModel):
    question_id: str
    question: str
    type: QuestionType
    total_responses: int
    response_rate: float
    # multiple-choice / likert
    data: List[OptionCount] = []
    # short / long answer
    avg_word_count: Optional[float] = None
    sample_answers: List[str] = []
    # likert
    scale_type: Optional[LikertScaleType] = None
    scale_size: Optional[int] = None
    average_score: Optional[float] = None


class TrendPoint(BaseModel):
    date: date
    responses: int


class SurveyAnalytics(BaseModel):
    survey_id: int
    total_responses: int
    question_analytics: List[QuestionAnalytics] = []
    submission_trend: List[TrendPoint] = []


class AbandonmentPoint(BaseModel):
    question_id: str
    question_index: int
    count: int


class QuestionTiming(BaseModel):
    question_id: str
    question_index: int
    avg_time: float
    count: int


class SessionAnalytics(BaseModel):
    survey_id: int
    total_sessions: int
    completed_sessions: int
    abandoned_sessions: int
    completion_rate: float
    abandonment_rate: float
    abandonment_points: List[AbandonmentPoint] = []
    avg_time_per_question: List[QuestionTiming] = []
