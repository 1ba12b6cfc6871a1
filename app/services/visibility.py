"""Conditional question visibility.

Pure functions: no I/O, no state. Called on every answer change, so they are
O(questions) and never cache.
"""
from typing import Iterable, List, Union

from app.schemas.answer import AnswerSet
from app.schemas.survey import ConditionOperator, Question, Section, SurveyDefinition


def _matches(answer_text: str, show_when: Union[str, List[str]], operator: str) -> bool:
    if operator == ConditionOperator.EQUALS.value:
        if isinstance(show_when, list):
            return answer_text in show_when
        return answer_text == show_when

    if operator == ConditionOperator.CONTAINS.value:
        if isinstance(show_when, list):
            return any(value in answer_text for value in show_when)
        return show_when in answer_text

    if operator == ConditionOperator.NOT_EQUALS.value:
        return not _matches(answer_text, show_when, ConditionOperator.EQUALS.value)

    # Unknown or null operator: fail open
    return True


def is_visible(question: Question, answer_set: AnswerSet) -> bool:
    """
    Whether ``question`` should be shown given the answers so far.

    A conditional question stays hidden until the question it depends on has
    a non-empty answer. A ``depends_on`` naming a question that does not exist
    can never be answered, so such a question stays hidden too.
    """
    logic = question.conditional_logic
    if logic is None or not logic.depends_on:
        return True

    answer_text = answer_set.text(logic.depends_on)
    if answer_text == "":
        return False

    return _matches(answer_text, logic.show_when, logic.operator)


def visible_questions(
    source: Union[Section, Iterable[Question]],
    answer_set: AnswerSet,
) -> List[Question]:
    """Visible questions of a section (or a flat question list), in stable order."""
    questions = source.questions if isinstance(source, Section) else source
    return [q for q in questions if is_visible(q, answer_set)]


def visible_survey_questions(definition: SurveyDefinition, answer_set: AnswerSet) -> List[Question]:
    """Visible questions across every section, in global order."""
    return visible_questions(definition.all_questions(), answer_set)
