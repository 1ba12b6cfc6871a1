from datetime import datetime, timedelta, timezone

from pydantic import ValidationError
import pytest

from app.schemas.survey import (
    FileSettings,
    MultipleChoiceQuestion,
    SurveyCreate,
    SurveyDefinition,
    SurveyUpdate,
)


def short(qid, **extra):
    return {"id": qid, "type": "short-answer", "question": qid, **extra}


def test_valid_definition_has_no_issues(sectioned_payload):
    survey = SurveyCreate.model_validate(sectioned_payload)
    assert survey.definition_issues() == []
    assert survey.to_definition().is_sectioned


def test_question_kinds_are_discriminated():
    definition = SurveyDefinition.model_validate({"questions": [
        {"id": "mc", "type": "multiple-choice", "question": "?", "options": ["a"]},
    ]})
    assert isinstance(definition.questions[0], MultipleChoiceQuestion)


def test_unknown_question_type_is_rejected():
    with pytest.raises(ValidationError):
        SurveyDefinition.model_validate({"questions": [{"id": "x", "type": "slider", "question": "?"}]})


def test_duplicate_question_ids_rejected_across_sections():
    with pytest.raises(ValidationError, match="Duplicate question id 'q1'"):
        SurveyCreate.model_validate({
            "title": "T",
            "sections": [
                {"id": "a", "title": "A", "questions": [short("q1")]},
                {"id": "b", "title": "B", "questions": [short("q1")]},
            ],
        })


def test_duplicate_section_ids_rejected():
    with pytest.raises(ValidationError, match="Duplicate section id 'a'"):
        SurveyCreate.model_validate({
            "title": "T",
            "sections": [
                {"id": "a", "title": "A", "questions": [short("q1")]},
                {"id": "a", "title": "B", "questions": [short("q2")]},
            ],
        })


def test_depends_on_must_exist():
    with pytest.raises(ValidationError, match="unknown question 'ghost'"):
        SurveyCreate.model_validate({
            "title": "T",
            "questions": [short("q1", conditional_logic={"depends_on": "ghost", "show_when": "x"})],
        })


def test_depends_on_must_point_backwards():
    with pytest.raises(ValidationError, match="earlier question"):
        SurveyCreate.model_validate({
            "title": "T",
            "questions": [
                short("q1", conditional_logic={"depends_on": "q2", "show_when": "x"}),
                short("q2"),
            ],
        })


def test_self_dependency_rejected():
    definition = SurveyDefinition.model_validate({
        "questions": [short("q1", conditional_logic={"depends_on": "q1", "show_when": "x"})],
    })
    assert any("earlier question" in issue for issue in definition.definition_issues())


def test_unknown_operator_rejected_at_authoring():
    with pytest.raises(ValidationError, match="unknown operator 'greater_than'"):
        SurveyCreate.model_validate({
            "title": "T",
            "questions": [
                short("q1"),
                short("q2", conditional_logic={"depends_on": "q1", "show_when": "1", "operator": "greater_than"}),
            ],
        })


def test_stored_definition_with_unknown_operator_still_loads():
    definition = SurveyDefinition.model_validate({
        "questions": [
            short("q1"),
            short("q2", conditional_logic={"depends_on": "q1", "show_when": "1", "operator": "greater_than"}),
        ],
    })
    assert definition.questions[1].conditional_logic.operator == "greater_than"


def test_expiration_must_follow_schedule():
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    with pytest.raises(ValidationError, match="expiration_date"):
        SurveyCreate.model_validate({
            "title": "T",
            "questions": [short("q1")],
            "scheduled_date": start,
            "expiration_date": start - timedelta(days=1),
        })


def test_update_without_structure_keeps_definition():
    assert SurveyUpdate(title="New").to_definition() is None


def test_update_validates_replacement_definition():
    with pytest.raises(ValidationError):
        SurveyUpdate.model_validate({"questions": [short("a"), short("a")]})


def test_legacy_positions_and_lookup():
    definition = SurveyDefinition.model_validate({"questions": [short("a"), short("b")]})
    assert definition.question_positions() == {"a": 0, "b": 1}
    assert definition.find_question("b").id == "b"
    assert definition.find_question("zzz") is None


@pytest.mark.parametrize(
    "extensions, filename, allowed",
    [
        ([], "anything.exe", True),
        (["pdf", ".PNG"], "scan.png", True),
        (["pdf"], "scan.PDF", True),
        (["pdf"], "scan.docx", False),
        (["pdf"], "noextension", False),
    ],
)
def test_file_settings_extension_filter(extensions, filename, allowed):
    assert FileSettings(allowed_extensions=extensions).allows(filename) is allowed


def test_question_ids_longer_than_storage_column_rejected():
    with pytest.raises(ValidationError):
        SurveyCreate.model_validate({"title": "T", "questions": [short("q" * 65)]})

    created = SurveyCreate.model_validate({"title": "T", "questions": [short("q" * 64)]})
    assert created.questions[0].id == "q" * 64


def test_section_ids_longer_than_storage_column_rejected():
    with pytest.raises(ValidationError):
        SurveyCreate.model_validate({
            "title": "T",
            "sections": [{"id": "s" * 65, "title": "Intro", "questions": [short("q1")]}],
        })
