"""Turn a completed AnswerSet into a persistable response record.

Answers of questions that were hidden after being answered are kept: the
record holds one entry per key in the AnswerSet, whether or not the question
is currently visible.
"""
from typing import Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.answer import AnswerSet
from app.schemas.survey import QuestionType, SurveyDefinition
from app.services.progression import SurveyNavigator


AUDIO_PLACEHOLDER = "Audio response recorded"


def file_placeholder(filename: str) -> str:
    return f"File: {filename}"


class AttachmentRef(BaseModel):
    """Stable reference returned by attachment storage after a successful upload."""
    model_config = ConfigDict(frozen=True)

    reference: str = Field(..., min_length=1)
    filename: Optional[str] = None


class _NoAttachment:
    """Explicit "nothing was stored" marker."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_ATTACHMENT"

    def __bool__(self) -> bool:
        return False


NO_ATTACHMENT = _NoAttachment()

Attachment = Union[AttachmentRef, _NoAttachment]


class SubmissionRejected(Exception):
    """Assembly was invoked while required visible questions are unanswered."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            "Required questions unanswered: " + ", ".join(self.missing)
        )


class AssembledAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    answer: str
    audio_path: Optional[str] = None
    file_path: Optional[str] = None


class ResponseRecord(BaseModel):
    """Immutable response ready for persistence."""
    model_config = ConfigDict(frozen=True)

    survey_id: Union[int, str]
    respondent_id: str
    answers: List[AssembledAnswer] = []

    def answer_for(self, question_id: str) -> Optional[AssembledAnswer]:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None


def assemble_response(
    definition: SurveyDefinition,
    answer_set: AnswerSet,
    survey_id: Union[int, str],
    respondent_id: str,
    attachments: Optional[Mapping[str, Attachment]] = None,
) -> ResponseRecord:
    """
    Package ``answer_set`` for storage.

    Answers are ordered by survey position; ids the survey does not know keep
    their AnswerSet order at the end. Attachment references are embedded
    verbatim on audio and file-upload answers; ``NO_ATTACHMENT`` leaves the
    answer as it is.

    Raises:
        SubmissionRejected: if the survey cannot be submitted yet. Callers
            are expected to gate on ``SurveyNavigator.can_submit`` first.
    """
    check = SurveyNavigator(definition).can_submit(answer_set)
    if not check:
        raise SubmissionRejected(check.missing)

    attachments = attachments or {}
    questions = {q.id: q for q in reversed(definition.all_questions())}
    positions = definition.question_positions()
    ordered_ids = sorted(
        answer_set.question_ids(),
        key=lambda qid: positions.get(qid, len(positions)),
    )

    answers: List[AssembledAnswer] = []
    for question_id in ordered_ids:
        text = answer_set.text(question_id)
        audio_path = None
        file_path = None

        question = questions.get(question_id)
        attachment = attachments.get(question_id, NO_ATTACHMENT)
        if question is not None and isinstance(attachment, AttachmentRef):
            if question.type == QuestionType.AUDIO:
                text = AUDIO_PLACEHOLDER
                audio_path = attachment.reference
            elif question.type == QuestionType.FILE_UPLOAD:
                text = file_placeholder(attachment.filename or attachment.reference)
                file_path = attachment.reference

        answers.append(
            AssembledAnswer(
                question_id=question_id,
                answer=text,
                audio_path=audio_path,
                file_path=file_path,
            )
        )

    return ResponseRecord(survey_id=survey_id, respondent_id=respondent_id, answers=answers)


def attachment_placeholders(
    definition: SurveyDefinition,
    answer_set: AnswerSet,
    attachments: Mapping[str, Attachment],
) -> AnswerSet:
    """
    Record placeholder answers for uploaded attachments the AnswerSet lacks.

    Mirrors what the fill-in client does when a recording or file is picked,
    so a required audio/file question counts as answered once its upload
    succeeded.
    """
    questions: Dict[str, QuestionType] = {q.id: q.type for q in definition.all_questions()}
    for question_id, attachment in attachments.items():
        if not isinstance(attachment, AttachmentRef) or answer_set.has_value(question_id):
            continue
        kind = questions.get(question_id)
        if kind == QuestionType.AUDIO:
            answer_set = answer_set.with_answer(question_id, AUDIO_PLACEHOLDER)
        elif kind == QuestionType.FILE_UPLOAD:
            answer_set = answer_set.with_answer(
                question_id, file_placeholder(attachment.filename or attachment.reference)
            )
    return answer_set
