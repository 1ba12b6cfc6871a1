"""Section-by-section progression through a survey.

``SectionProgress`` is an immutable position (current section plus the
in-section question cursor). ``SurveyNavigator`` computes transitions and the
validation gates; it never mutates its inputs, so the position only changes
when a caller adopts the value returned by ``go_next``/``go_previous``.

Legacy flat surveys are normalized into a single section: they are always on
their last section and navigation is a no-op.
"""
from typing import Dict, Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.answer import AnswerSet
from app.schemas.survey import Question, Section, SurveyDefinition
from app.services.visibility import visible_questions


class SectionProgress(BaseModel):
    """Where a respondent currently is."""
    model_config = ConfigDict(frozen=True)

    section_index: int = Field(0, ge=0)
    question_cursor: int = Field(0, ge=0)


class AdvanceCheck(BaseModel):
    """Result of a validation gate; truthy when the gate is open."""
    model_config = ConfigDict(frozen=True)

    ok: bool
    missing: List[str] = []

    def __bool__(self) -> bool:
        return self.ok


def _unanswered_required(questions: Iterable[Question], answer_set: AnswerSet) -> List[str]:
    return [
        q.id
        for q in visible_questions(questions, answer_set)
        if q.required and not answer_set.has_value(q.id)
    ]


def _check(missing: List[str]) -> AdvanceCheck:
    return AdvanceCheck(ok=not missing, missing=missing)


class SurveyNavigator:
    """Progression rules for one survey definition."""

    def __init__(self, definition: SurveyDefinition):
        self.definition = definition
        self.sections: List[Section] = definition.normalized_sections()

    @property
    def is_sectioned(self) -> bool:
        return self.definition.is_sectioned

    @property
    def section_count(self) -> int:
        return len(self.sections)

    def start(self) -> SectionProgress:
        return SectionProgress()

    def current_section(self, progress: SectionProgress) -> Section:
        if progress.section_index >= self.section_count:
            raise ValueError(
                f"Section index {progress.section_index} out of range "
                f"(survey has {self.section_count} sections)"
            )
        return self.sections[progress.section_index]

    def is_first_section(self, progress: SectionProgress) -> bool:
        return progress.section_index == 0

    def is_last_section(self, progress: SectionProgress) -> bool:
        if not self.is_sectioned:
            return True
        return progress.section_index == self.section_count - 1

    def can_advance(self, progress: SectionProgress, answer_set: AnswerSet) -> AdvanceCheck:
        """Every visible required question of the current section is answered."""
        section = self.current_section(progress)
        return _check(_unanswered_required(section.questions, answer_set))

    def can_submit(self, answer_set: AnswerSet) -> AdvanceCheck:
        """Every visible required question of the whole survey is answered."""
        return _check(_unanswered_required(self.definition.all_questions(), answer_set))

    def go_next(self, progress: SectionProgress, answer_set: AnswerSet) -> SectionProgress:
        """Next section with the cursor reset, or ``progress`` unchanged if blocked."""
        if self.is_last_section(progress) or not self.can_advance(progress, answer_set):
            return progress
        return SectionProgress(section_index=progress.section_index + 1, question_cursor=0)

    def go_previous(self, progress: SectionProgress) -> SectionProgress:
        """
        Previous section, landing on its last question.

        Returns ``progress`` unchanged on the first section and for legacy
        surveys.
        """
        if not self.is_sectioned or self.is_first_section(progress):
            return progress
        previous = self.sections[progress.section_index - 1]
        return SectionProgress(
            section_index=progress.section_index - 1,
            question_cursor=max(len(previous.questions) - 1, 0),
        )

    def progress_ratio(self, progress: SectionProgress) -> float:
        return (progress.section_index + 1) / self.section_count

    def visible_by_section(self, answer_set: AnswerSet) -> Dict[str, List[str]]:
        """Visible question ids keyed by section id."""
        return {
            section.id: [q.id for q in visible_questions(section, answer_set)]
            for section in self.sections
        }
