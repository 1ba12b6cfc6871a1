from pydantic import TypeAdapter
import pytest

from app.schemas.answer import AnswerSet, MultiAnswer
from app.schemas.survey import Question, Section, SurveyDefinition
from app.services.visibility import is_visible, visible_questions, visible_survey_questions

_question = TypeAdapter(Question)


def question(qid, logic=None, **extra):
    data = {"id": qid, "type": "short-answer", "question": f"Question {qid}"}
    if logic is not None:
        data["conditional_logic"] = logic
    data.update(extra)
    return _question.validate_python(data)


def test_question_without_logic_is_always_visible():
    assert is_visible(question("q1"), AnswerSet())


def test_empty_depends_on_is_treated_as_no_logic():
    q = question("q2", {"depends_on": "", "show_when": "Yes"})
    assert is_visible(q, AnswerSet())


def test_hidden_until_dependency_answered():
    q = question("q2", {"depends_on": "q1", "show_when": "Yes", "operator": "equals"})
    assert not is_visible(q, AnswerSet())
    assert not is_visible(q, AnswerSet.from_mapping({"q1": ""}))


def test_not_equals_still_hidden_while_dependency_unanswered():
    q = question("q2", {"depends_on": "q1", "show_when": "No", "operator": "not_equals"})
    assert not is_visible(q, AnswerSet())
    assert is_visible(q, AnswerSet.from_mapping({"q1": "Yes"}))
    assert not is_visible(q, AnswerSet.from_mapping({"q1": "No"}))


@pytest.mark.parametrize(
    "answer, show_when, expected",
    [
        ("Yes", "Yes", True),
        ("No", "Yes", False),
        ("B", ["A", "B"], True),
        ("C", ["A", "B"], False),
    ],
)
def test_equals(answer, show_when, expected):
    q = question("q2", {"depends_on": "q1", "show_when": show_when, "operator": "equals"})
    assert is_visible(q, AnswerSet.from_mapping({"q1": answer})) is expected


def test_contains_is_substring_match():
    q = question("q2", {"depends_on": "q1", "show_when": "Laptop", "operator": "contains"})
    assert is_visible(q, AnswerSet.from_mapping({"q1": "Notebook,Laptop"}))
    assert not is_visible(q, AnswerSet.from_mapping({"q1": "Notebook"}))


def test_contains_with_list_matches_any():
    q = question("q2", {"depends_on": "q1", "show_when": ["cat", "dog"], "operator": "contains"})
    assert is_visible(q, AnswerSet.from_mapping({"q1": "hotdog"}))
    assert not is_visible(q, AnswerSet.from_mapping({"q1": "bird"}))


def test_multi_select_compares_joined_text():
    q = question("q2", {"depends_on": "q1", "show_when": "A,B", "operator": "equals"})
    answers = AnswerSet(entries={"q1": MultiAnswer(values=("A", "B"))})
    assert is_visible(q, answers)


def test_missing_operator_defaults_to_equals():
    q = question("q2", {"depends_on": "q1", "show_when": "Yes"})
    assert is_visible(q, AnswerSet.from_mapping({"q1": "Yes"}))
    assert not is_visible(q, AnswerSet.from_mapping({"q1": "No"}))


@pytest.mark.parametrize("operator", ["greater_than", None])
def test_unknown_or_null_operator_fails_open(operator):
    q = question("q2", {"depends_on": "q1", "show_when": "Yes", "operator": operator})
    assert is_visible(q, AnswerSet.from_mapping({"q1": "anything"}))


def test_unknown_operator_still_requires_an_answer():
    q = question("q2", {"depends_on": "q1", "show_when": "Yes", "operator": "greater_than"})
    assert not is_visible(q, AnswerSet())


def test_dependency_on_missing_question_stays_hidden():
    definition = SurveyDefinition.model_validate({
        "questions": [
            {"id": "q1", "type": "short-answer", "question": "One"},
            {
                "id": "q2", "type": "short-answer", "question": "Two",
                "conditional_logic": {"depends_on": "ghost", "show_when": "x"},
            },
        ]
    })
    visible = visible_survey_questions(definition, AnswerSet.from_mapping({"q1": "x"}))
    assert [q.id for q in visible] == ["q1"]


def test_visible_questions_keeps_section_order():
    section = Section(
        id="s1",
        title="S",
        questions=[
            question("a"),
            question("b", {"depends_on": "a", "show_when": "go"}),
            question("c"),
        ],
    )
    assert [q.id for q in visible_questions(section, AnswerSet())] == ["a", "c"]
    answers = AnswerSet.from_mapping({"a": "go"})
    assert [q.id for q in visible_questions(section, answers)] == ["a", "b", "c"]


def test_visibility_does_not_mutate_answers():
    answers = AnswerSet.from_mapping({"q1": "Yes"})
    q = question("q2", {"depends_on": "q1", "show_when": "Yes"})
    is_visible(q, answers)
    assert answers.text("q1") == "Yes"
    assert len(answers) == 1


@pytest.mark.parametrize(
    "answer, show_when",
    [
        ("Yes", "Yes"),
        ("No", "Yes"),
        ("yes", "Yes"),
        ("B", ["A", "B"]),
        ("C", ["A", "B"]),
        ("A,B", ["A", "B"]),
        ("A,B", "A,B"),
    ],
)
def test_not_equals_is_complement_of_equals(answer, show_when):
    answers = AnswerSet.from_mapping({"q1": answer})
    equals = question("q2", {"depends_on": "q1", "show_when": show_when, "operator": "equals"})
    not_equals = question("q2", {"depends_on": "q1", "show_when": show_when, "operator": "not_equals"})

    assert is_visible(not_equals, answers) is (not is_visible(equals, answers))


def test_not_equals_with_multi_select_answer():
    q = question("q2", {"depends_on": "q1", "show_when": ["Laptop"], "operator": "not_equals"})
    assert is_visible(q, AnswerSet().with_answer("q1", MultiAnswer(values=["Laptop", "Phone"])))
    assert not is_visible(q, AnswerSet().with_answer("q1", MultiAnswer(values=["Laptop"])))
