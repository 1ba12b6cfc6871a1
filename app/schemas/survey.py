"""Survey schemas.

A survey definition is an ordered list of sections, each holding ordered
questions. Legacy surveys carry a flat ``questions`` list instead; they are
normalized into one synthetic section so evaluation has a single code path.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


LEGACY_SECTION_ID = "__legacy__"
# Matches the question_id columns of answers and session steps
MAX_ID_LENGTH = 64


class QuestionType(str, Enum):
    """Question kinds supported by the builder."""
    SHORT_ANSWER = "short-answer"
    LONG_ANSWER = "long-answer"
    MULTIPLE_CHOICE = "multiple-choice"
    LIKERT_SCALE = "likert-scale"
    DATE_TIME = "date-time"
    AUDIO = "audio"
    FILE_UPLOAD = "file-upload"


class ConditionOperator(str, Enum):
    """How a dependent answer is compared against ``show_when``."""
    EQUALS = "equals"
    CONTAINS = "contains"
    NOT_EQUALS = "not_equals"


class LikertScaleType(str, Enum):
    AGREEMENT = "agreement"
    SATISFACTION = "satisfaction"
    FREQUENCY = "frequency"
    IMPORTANCE = "importance"
    QUALITY = "quality"
    LIKELIHOOD = "likelihood"
    CUSTOM = "custom"


class ConditionalLogic(BaseModel):
    """
    Visibility rule: show the question only when ``depends_on`` was answered
    with a value matching ``show_when`` under ``operator``.

    ``operator`` is kept as a plain string so stored surveys with an unknown
    operator still load; authoring-time validation rejects them.
    """
    depends_on: Optional[str] = None
    show_when: Union[str, List[str]] = ""
    operator: Optional[str] = ConditionOperator.EQUALS.value


# Kind-specific settings
class MultipleChoiceSettings(BaseModel):
    allow_multiple_answers: bool = False
    randomize_order: bool = False


class LikertSettings(BaseModel):
    scale_type: LikertScaleType = LikertScaleType.AGREEMENT
    scale_size: Literal[3, 4, 5, 7, 10] = 5
    left_label: Optional[str] = None
    right_label: Optional[str] = None
    center_label: Optional[str] = None
    custom_labels: List[str] = []
    show_numbers: bool = True
    show_neutral: bool = True


class AudioSettings(BaseModel):
    can_re_record: bool = True
    max_duration_minutes: int = Field(5, ge=1)


class FileSettings(BaseModel):
    allowed_extensions: List[str] = []
    max_file_size_mb: int = Field(10, ge=1)

    def allows(self, filename: str) -> bool:
        """An empty extension list accepts any file."""
        if not self.allowed_extensions:
            return True
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        allowed = {e.lower().lstrip(".") for e in self.allowed_extensions}
        return ext in allowed


class DateTimeSettings(BaseModel):
    include_date: bool = True
    include_time: bool = True
    min_date: Optional[str] = None
    max_date: Optional[str] = None


# Questions
class QuestionBase(BaseModel):
    """Fields shared by every question kind."""
    id: str = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    question: str
    required: bool = False
    conditional_logic: Optional[ConditionalLogic] = None


class ShortAnswerQuestion(QuestionBase):
    type: Literal[QuestionType.SHORT_ANSWER] = QuestionType.SHORT_ANSWER


class LongAnswerQuestion(QuestionBase):
    type: Literal[QuestionType.LONG_ANSWER] = QuestionType.LONG_ANSWER


class MultipleChoiceQuestion(QuestionBase):
    type: Literal[QuestionType.MULTIPLE_CHOICE] = QuestionType.MULTIPLE_CHOICE
    options: List[str] = []
    multiple_choice_settings: MultipleChoiceSettings = Field(default_factory=MultipleChoiceSettings)

    @property
    def allows_multiple(self) -> bool:
        return self.multiple_choice_settings.allow_multiple_answers


class LikertScaleQuestion(QuestionBase):
    type: Literal[QuestionType.LIKERT_SCALE] = QuestionType.LIKERT_SCALE
    likert_settings: LikertSettings = Field(default_factory=LikertSettings)


class DateTimeQuestion(QuestionBase):
    type: Literal[QuestionType.DATE_TIME] = QuestionType.DATE_TIME
    date_time_settings: DateTimeSettings = Field(default_factory=DateTimeSettings)


class AudioQuestion(QuestionBase):
    type: Literal[QuestionType.AUDIO] = QuestionType.AUDIO
    audio_settings: AudioSettings = Field(default_factory=AudioSettings)


class FileUploadQuestion(QuestionBase):
    type: Literal[QuestionType.FILE_UPLOAD] = QuestionType.FILE_UPLOAD
    file_settings: FileSettings = Field(default_factory=FileSettings)


Question = Annotated[
    Union[
        ShortAnswerQuestion,
        LongAnswerQuestion,
        MultipleChoiceQuestion,
        LikertScaleQuestion,
        DateTimeQuestion,
        AudioQuestion,
        FileUploadQuestion,
    ],
    Field(discriminator="type"),
]


class Section(BaseModel):
    """Ordered group of questions; the unit of stepwise navigation."""
    id: str = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    title: str
    description: Optional[str] = None
    questions: List[Question] = []
    order: int = 0


class SurveyDefinition(BaseModel):
    """Question structure of a survey, immutable during response collection."""
    sections: List[Section] = []
    questions: List[Question] = []  # legacy flat surveys

    @property
    def is_sectioned(self) -> bool:
        return bool(self.sections)

    def normalized_sections(self) -> List[Section]:
        """Sections in display order; a legacy survey becomes one synthetic section."""
        if self.sections:
            return list(self.sections)
        return [Section(id=LEGACY_SECTION_ID, title="", questions=list(self.questions))]

    def all_questions(self) -> List[Question]:
        """Every question in global order."""
        return [q for section in self.normalized_sections() for q in section.questions]

    def find_question(self, question_id: str) -> Optional[Question]:
        for question in self.all_questions():
            if question.id == question_id:
                return question
        return None

    def question_positions(self) -> Dict[str, int]:
        """Global 0-based position of each question id (first occurrence wins)."""
        positions: Dict[str, int] = {}
        for index, question in enumerate(self.all_questions()):
            positions.setdefault(question.id, index)
        return positions

    def definition_issues(self) -> List[str]:
        """
        Authoring-time problems with this definition.

        Checks unique section/question ids, that every ``depends_on`` names a
        question placed strictly earlier in the survey, and that operators are
        known. Returns an empty list for a valid definition.
        """
        issues: List[str] = []

        section_ids = [s.id for s in self.sections]
        for sid in sorted({s for s in section_ids if section_ids.count(s) > 1}):
            issues.append(f"Duplicate section id '{sid}'")

        questions = self.all_questions()
        seen: Dict[str, int] = {}
        for index, question in enumerate(questions):
            if question.id in seen:
                issues.append(f"Duplicate question id '{question.id}'")
                continue
            seen[question.id] = index

        valid_operators = {op.value for op in ConditionOperator}
        for index, question in enumerate(questions):
            logic = question.conditional_logic
            if logic is None or not logic.depends_on:
                continue
            target = seen.get(logic.depends_on)
            if target is None:
                issues.append(
                    f"Question '{question.id}' depends on unknown question '{logic.depends_on}'"
                )
            elif target >= index:
                issues.append(
                    f"Question '{question.id}' must depend on an earlier question, "
                    f"not '{logic.depends_on}'"
                )
            if logic.operator not in valid_operators:
                issues.append(
                    f"Question '{question.id}' uses unknown operator '{logic.operator}'"
                )

        return issues


# Survey CRUD schemas
class SurveyBase(BaseModel):
    """Base survey schema."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    scheduled_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None


def _check_window(scheduled: Optional[datetime], expiration: Optional[datetime]) -> None:
    if scheduled and expiration and expiration <= scheduled:
        raise ValueError("expiration_date must be after scheduled_date")


class SurveyCreate(SurveyBase, SurveyDefinition):
    """Create survey with its sections (or legacy flat questions)."""
    is_active: bool = True

    @model_validator(mode="after")
    def check_definition(self):
        issues = self.definition_issues()
        if issues:
            raise ValueError("; ".join(issues))
        _check_window(self.scheduled_date, self.expiration_date)
        return self

    def to_definition(self) -> SurveyDefinition:
        return SurveyDefinition(sections=self.sections, questions=self.questions)


class SurveyUpdate(BaseModel):
    """Update survey; sections/questions replace the whole definition."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    scheduled_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    sections: Optional[List[Section]] = None
    questions: Optional[List[Question]] = None

    @model_validator(mode="after")
    def check_definition(self):
        definition = self.to_definition()
        if definition is not None:
            issues = definition.definition_issues()
            if issues:
                raise ValueError("; ".join(issues))
        _check_window(self.scheduled_date, self.expiration_date)
        return self

    def to_definition(self) -> Optional[SurveyDefinition]:
        if self.sections is None and self.questions is None:
            return None
        return SurveyDefinition(sections=self.sections or [], questions=self.questions or [])


class SurveyDetail(SurveyBase):
    """Survey response for authors."""
    id: int
    shareable_id: str
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    definition: SurveyDefinition

    model_config = ConfigDict(from_attributes=True)


class SurveyListItem(BaseModel):
    """Survey list entry (without definition)."""
    id: int
    title: str
    description: str
    shareable_id: str
    is_active: bool
    created_at: datetime
    response_count: int = 0


class PublicSurvey(BaseModel):
    """What a respondent receives for a shareable link."""
    id: int
    title: str
    description: str
    shareable_id: str
    definition: SurveyDefinition

    model_config = ConfigDict(from_attributes=True)
