"""Schemas for evaluating a partially filled survey."""
from typing import Dict, List, Union

from pydantic import BaseModel, Field


class EvaluationRequest(BaseModel):
    """Answers collected so far and the section the respondent is on."""
    answers: Dict[str, Union[str, List[str]]] = {}
    section_index: int = Field(0, ge=0)


class EvaluationResult(BaseModel):
    """Visibility and gating state for the current answers."""
    section_index: int
    section_count: int
    is_sectioned: bool
    is_first_section: bool
    is_last_section: bool
    progress: float
    visible_questions: Dict[str, List[str]]
    can_advance: bool
    missing_in_section: List[str] = []
    can_submit: bool
    missing_required: List[str] = []
