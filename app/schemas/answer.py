"""Answer values and the in-progress AnswerSet of a fill-in session.

Multi-select answers are kept as a tuple of selections and only joined into
the comma-separated wire form (``as_text``) at the persistence boundary.
"""
from typing import Annotated, Dict, Iterable, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.survey import MultipleChoiceQuestion, Question


WIRE_SEPARATOR = ","


class ScalarAnswer(BaseModel):
    """A single text value."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    value: str = ""

    def as_text(self) -> str:
        return self.value


class MultiAnswer(BaseModel):
    """Selections of a multi-select multiple-choice question, in selection order."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["multi"] = "multi"
    values: Tuple[str, ...] = ()

    def as_text(self) -> str:
        return WIRE_SEPARATOR.join(self.values)


AnswerValue = Annotated[Union[ScalarAnswer, MultiAnswer], Field(discriminator="kind")]

RawAnswer = Union[str, List[str], Tuple[str, ...], ScalarAnswer, MultiAnswer]


def to_answer_value(raw: RawAnswer) -> Union[ScalarAnswer, MultiAnswer]:
    """Coerce a plain string / list of strings into an answer value."""
    if isinstance(raw, (ScalarAnswer, MultiAnswer)):
        return raw
    if isinstance(raw, str):
        return ScalarAnswer(value=raw)
    return MultiAnswer(values=tuple(raw))


def answer_from_wire(question: Optional[Question], raw: Union[str, List[str]]) -> Union[ScalarAnswer, MultiAnswer]:
    """
    Parse a stored or submitted answer for ``question``.

    Comma-joined text is split only for multiple-choice questions that allow
    several answers; everything else stays scalar.
    """
    if not isinstance(raw, str):
        return MultiAnswer(values=tuple(raw))
    if isinstance(question, MultipleChoiceQuestion) and question.allows_multiple:
        parts = [part.strip() for part in raw.split(WIRE_SEPARATOR)]
        return MultiAnswer(values=tuple(p for p in parts if p))
    return ScalarAnswer(value=raw)


class AnswerSet(BaseModel):
    """
    Answers collected so far, keyed by question id.

    Immutable: every update returns a new AnswerSet.
    """
    model_config = ConfigDict(frozen=True)

    entries: Dict[str, AnswerValue] = {}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, RawAnswer]) -> "AnswerSet":
        return cls(entries={qid: to_answer_value(raw) for qid, raw in mapping.items()})

    def with_answer(self, question_id: str, raw: RawAnswer) -> "AnswerSet":
        entries = dict(self.entries)
        entries[question_id] = to_answer_value(raw)
        return AnswerSet(entries=entries)

    def without(self, question_id: str) -> "AnswerSet":
        if question_id not in self.entries:
            return self
        entries = dict(self.entries)
        del entries[question_id]
        return AnswerSet(entries=entries)

    def get(self, question_id: str) -> Optional[Union[ScalarAnswer, MultiAnswer]]:
        return self.entries.get(question_id)

    def text(self, question_id: str) -> str:
        """Wire-form text of an answer, empty string when absent."""
        answer = self.entries.get(question_id)
        return answer.as_text() if answer is not None else ""

    def has_value(self, question_id: str) -> bool:
        return self.text(question_id) != ""

    def question_ids(self) -> List[str]:
        return list(self.entries)

    def items(self) -> Iterable[Tuple[str, Union[ScalarAnswer, MultiAnswer]]]:
        return self.entries.items()

    def __contains__(self, question_id: object) -> bool:
        return question_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)


class AnswerIn(BaseModel):
    """Answer as sent by a respondent's client."""
    question_id: str = Field(..., min_length=1)
    answer: Union[str, List[str]] = ""
