import pytest

from app.schemas.answer import AnswerSet
from app.schemas.survey import SurveyDefinition
from app.services.assembly import (
    AUDIO_PLACEHOLDER,
    NO_ATTACHMENT,
    AttachmentRef,
    SubmissionRejected,
    assemble_response,
    attachment_placeholders,
)


@pytest.fixture
def definition():
    return SurveyDefinition.model_validate({
        "sections": [
            {"id": "s1", "title": "One", "questions": [
                {"id": "q1", "type": "multiple-choice", "question": "Student?",
                 "required": True, "options": ["Yes", "No"]},
                {"id": "q2", "type": "short-answer", "question": "University", "required": True,
                 "conditional_logic": {"depends_on": "q1", "show_when": "Yes"}},
            ]},
            {"id": "s2", "title": "Two", "questions": [
                {"id": "voice", "type": "audio", "question": "Say hi"},
                {"id": "doc", "type": "file-upload", "question": "CV", "required": True},
                {"id": "tools", "type": "multiple-choice", "question": "Tools",
                 "options": ["Laptop", "Phone"],
                 "multiple_choice_settings": {"allow_multiple_answers": True}},
            ]},
        ]
    })


def test_rejects_when_required_visible_question_missing(definition):
    answers = AnswerSet.from_mapping({"q1": "Yes", "doc": "File: cv.pdf"})
    with pytest.raises(SubmissionRejected) as exc_info:
        assemble_response(definition, answers, 1, "r-1")
    assert exc_info.value.missing == ["q2"]


def test_stale_answer_of_hidden_question_is_kept(definition):
    answers = AnswerSet.from_mapping({"q1": "No", "q2": "MIT", "doc": "File: cv.pdf"})
    record = assemble_response(definition, answers, 1, "r-1")

    assert record.answer_for("q2").answer == "MIT"
    assert len(record.answers) == 3


def test_answers_are_ordered_by_survey_position(definition):
    answers = AnswerSet.from_mapping({
        "extra": "x",
        "tools": ["Phone", "Laptop"],
        "doc": "File: cv.pdf",
        "q1": "No",
    })
    record = assemble_response(definition, answers, 1, "r-1")

    assert [a.question_id for a in record.answers] == ["q1", "doc", "tools", "extra"]
    assert record.answer_for("tools").answer == "Phone,Laptop"


def test_attachment_references_are_embedded(definition):
    attachments = {
        "voice": AttachmentRef(reference="/uploads/audio/abc.webm"),
        "doc": AttachmentRef(reference="/uploads/files/def.pdf", filename="cv.pdf"),
    }
    answers = attachment_placeholders(
        definition, AnswerSet.from_mapping({"q1": "No"}), attachments
    )
    record = assemble_response(definition, answers, 7, "r-2", attachments)

    voice = record.answer_for("voice")
    assert voice.answer == AUDIO_PLACEHOLDER
    assert voice.audio_path == "/uploads/audio/abc.webm"
    assert voice.file_path is None

    doc = record.answer_for("doc")
    assert doc.answer == "File: cv.pdf"
    assert doc.file_path == "/uploads/files/def.pdf"
    assert record.survey_id == 7
    assert record.respondent_id == "r-2"


def test_no_attachment_leaves_answer_untouched(definition):
    answers = AnswerSet.from_mapping({"q1": "No", "doc": "File: cv.pdf", "voice": "typed instead"})
    record = assemble_response(
        definition, answers, 1, "r-1", {"voice": NO_ATTACHMENT, "doc": NO_ATTACHMENT}
    )

    voice = record.answer_for("voice")
    assert voice.answer == "typed instead"
    assert voice.audio_path is None
    assert record.answer_for("doc").file_path is None


def test_placeholders_do_not_overwrite_existing_answers(definition):
    answers = AnswerSet.from_mapping({"doc": "already here"})
    updated = attachment_placeholders(
        definition, answers, {"doc": AttachmentRef(reference="/x.pdf", filename="x.pdf")}
    )
    assert updated.text("doc") == "already here"


def test_no_attachment_is_falsy_singleton():
    assert not NO_ATTACHMENT
    assert type(NO_ATTACHMENT)() is NO_ATTACHMENT
