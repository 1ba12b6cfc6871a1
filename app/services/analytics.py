"""Aggregate analytics over submitted responses (dashboard charts)."""
from collections import Counter
from typing import List, Sequence

from app.schemas.analytics import (
    OptionCount,
    QuestionAnalytics,
    ResponseSnapshot,
    SurveyAnalytics,
    TrendPoint,
)
from app.schemas.answer import MultiAnswer, answer_from_wire
from app.schemas.survey import (
    LikertScaleQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionType,
    SurveyDefinition,
)

SAMPLE_ANSWER_COUNT = 3


def _pct(part: int, total: int, digits: int = 1) -> float:
    return round(part / total * 100, digits) if total > 0 else 0.0


def _answers_for(question: Question, responses: Sequence[ResponseSnapshot]) -> List[str]:
    return [
        r.answers[question.id]
        for r in responses
        if r.answers.get(question.id, "") != ""
    ]


def _multiple_choice(question: MultipleChoiceQuestion, answers: List[str]) -> List[OptionCount]:
    counts: Counter = Counter()
    for raw in answers:
        value = answer_from_wire(question, raw)
        if isinstance(value, MultiAnswer):
            counts.update(set(value.values))
        else:
            counts[value.value] += 1
    return [
        OptionCount(name=option, value=counts[option], percentage=_pct(counts[option], len(answers)))
        for option in question.options
    ]


def _likert(question: LikertScaleQuestion, answers: List[str]) -> tuple:
    size = question.likert_settings.scale_size
    counts = Counter(answers)
    distribution = [
        OptionCount(name=str(point), value=counts[str(point)], percentage=_pct(counts[str(point)], len(answers)))
        for point in range(1, size + 1)
    ]
    scores = []
    for answer in answers:
        try:
            scores.append(int(answer))
        except ValueError:
            continue
    average = round(sum(scores) / len(scores), 2) if scores else 0.0
    return distribution, average


def _word_count(text: str) -> int:
    return len(text.split())


def question_analytics(
    question: Question,
    responses: Sequence[ResponseSnapshot],
) -> QuestionAnalytics:
    """Aggregate one question across ``responses``."""
    answers = _answers_for(question, responses)
    result = QuestionAnalytics(
        question_id=question.id,
        question=question.question,
        type=question.type,
        total_responses=len(answers),
        response_rate=_pct(len(answers), len(responses)),
    )

    if isinstance(question, MultipleChoiceQuestion):
        result.data = _multiple_choice(question, answers)
    elif isinstance(question, LikertScaleQuestion):
        result.data, result.average_score = _likert(question, answers)
        result.scale_type = question.likert_settings.scale_type
        result.scale_size = question.likert_settings.scale_size
    elif question.type in (QuestionType.SHORT_ANSWER, QuestionType.LONG_ANSWER):
        words = [_word_count(a) for a in answers]
        result.avg_word_count = round(sum(words) / len(words), 1) if words else 0.0
        result.sample_answers = answers[:SAMPLE_ANSWER_COUNT]

    return result


def submission_trend(responses: Sequence[ResponseSnapshot]) -> List[TrendPoint]:
    """Responses per calendar day, oldest first."""
    per_day = Counter(r.submitted_at.date() for r in responses)
    return [TrendPoint(date=day, responses=count) for day, count in sorted(per_day.items())]


def build_survey_analytics(
    survey_id: int,
    definition: SurveyDefinition,
    responses: Sequence[ResponseSnapshot],
) -> SurveyAnalytics:
    return SurveyAnalytics(
        survey_id=survey_id,
        total_responses=len(responses),
        question_analytics=[question_analytics(q, responses) for q in definition.all_questions()],
        submission_trend=submission_trend(responses),
    )
