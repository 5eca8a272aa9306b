"""Functional tests for the Mongo form repository against a mocked collection.

The collection is a `mocker.MagicMock`, so these tests pin the filters,
updates and document layout sent to MongoDB without a server.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from formdesk.logic.repository_forms import MongoFormRepository, form_from_document, form_to_document
from formdesk.models.form import Form, Option, Question
from formdesk.models.question_type import QuestionType

NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
OID = ObjectId("65f1a2b3c4d5e6f708091a2b")


def _form(**overrides) -> Form:
    data = dict(
        form_id="",
        title="Survey",
        description="About the course",
        header_title="Hello",
        created_by="u-admin",
        questions=[
            Question(question_id="q2", label="Pick", type=QuestionType.SINGLE_SELECT, order=2,
                     options=[Option(option_id="o1", label="One")]),
            Question(question_id="q1", label="Name", type=QuestionType.SHORT_TEXT, required=True, order=1),
        ],
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return Form(**data)


@pytest.fixture
def collection(mocker):
    return mocker.MagicMock(name="forms_collection")


@pytest.fixture
def repo(collection):
    return MongoFormRepository(collection)


def test_document_layout_uses_camel_case_and_omits_null_options():
    doc = form_to_document(_form())

    assert set(doc) == {
        "title", "description", "headerTitle", "headerDescription", "isPublished", "isDeleted",
        "visibility", "createdBy", "publishedBy", "questions", "createdAt", "updatedAt",
    }
    assert doc["questions"][0]["options"] == [{"optionId": "o1", "label": "One"}]
    assert doc["questions"][0]["type"] == "singleSelect"
    assert "options" not in doc["questions"][1]
    assert doc["questions"][1]["questionId"] == "q1"


def test_document_roundtrip_sorts_questions_by_order():
    doc = {"_id": OID, **form_to_document(_form())}
    form = form_from_document(doc)

    assert form.form_id == str(OID)
    assert [q.question_id for q in form.questions] == ["q1", "q2"]
    assert form.questions[1].options[0].option_id == "o1"
    assert form.header_title == "Hello"


def test_from_document_tolerates_legacy_type_tags_and_naive_dates():
    doc = {
        "_id": OID,
        "title": "Old",
        "createdBy": "u1",
        "questions": [{"questionId": "q", "label": "L", "type": "Multi-Select", "order": 1, "options": []}],
        "createdAt": datetime(2023, 1, 1, 8, 0),
    }
    form = form_from_document(doc)

    assert form.questions[0].type is QuestionType.MULTI_SELECT
    assert form.created_at.tzinfo is not None
    assert form.visibility is True
    assert form.is_deleted is False


def test_create_returns_form_with_inserted_id(repo, collection):
    collection.insert_one.return_value.inserted_id = OID

    created = repo.create(_form())

    assert created.form_id == str(OID)
    inserted = collection.insert_one.call_args.args[0]
    assert "_id" not in inserted
    assert inserted["isDeleted"] is False


def test_get_excludes_deleted_and_rejects_malformed_ids(repo, collection):
    collection.find_one.return_value = None

    assert repo.get(str(OID)) is None
    collection.find_one.assert_called_once_with({"_id": OID, "isDeleted": False})

    assert repo.get("not-an-id") is None
    assert collection.find_one.call_count == 1


def test_list_builds_filter_sort_and_paging(repo, collection):
    cursor = collection.find.return_value.sort.return_value.skip.return_value.limit.return_value
    cursor.__iter__.return_value = iter([{"_id": OID, **form_to_document(_form())}])

    forms = repo.list(3, 5, search_text="a.b", published_only=True)

    assert [f.form_id for f in forms] == [str(OID)]
    flt = collection.find.call_args.args[0]
    assert flt == {
        "isDeleted": False,
        "isPublished": True,
        "visibility": True,
        "title": {"$regex": r"a\.b", "$options": "i"},
    }
    collection.find.return_value.sort.assert_called_once_with("createdAt", -1)
    collection.find.return_value.sort.return_value.skip.assert_called_once_with(10)
    collection.find.return_value.sort.return_value.skip.return_value.limit.assert_called_once_with(5)


def test_list_clamps_paging(repo, collection):
    cursor = collection.find.return_value.sort.return_value.skip.return_value.limit.return_value
    cursor.__iter__.return_value = iter([])

    repo.list(0, 10_000)

    collection.find.return_value.sort.return_value.skip.assert_called_once_with(0)
    collection.find.return_value.sort.return_value.skip.return_value.limit.assert_called_once_with(100)


def test_count_uses_the_list_filter(repo, collection):
    collection.count_documents.return_value = 4

    assert repo.count("  ", published_only=False) == 4
    collection.count_documents.assert_called_once_with({"isDeleted": False})


def test_update_leaves_lifecycle_fields_alone(repo, collection):
    collection.update_one.return_value.matched_count = 1

    assert repo.update(_form(form_id=str(OID), title="New")) is True

    flt, update = collection.update_one.call_args.args
    assert flt == {"_id": OID, "isDeleted": False}
    assert update["$set"]["title"] == "New"
    for key in ("createdBy", "createdAt", "isDeleted", "isPublished", "publishedBy"):
        assert key not in update["$set"]


def test_publish_only_matches_drafts(repo, collection):
    collection.update_one.return_value.modified_count = 0

    assert repo.publish(str(OID), "u-admin") is False

    flt, update = collection.update_one.call_args.args
    assert flt == {"_id": OID, "isDeleted": False, "isPublished": False}
    assert update["$set"]["publishedBy"] == "u-admin"
    assert update["$set"]["isPublished"] is True


def test_visibility_update_reports_change(repo, collection):
    collection.update_one.return_value.modified_count = 1

    assert repo.set_visibility(str(OID), False) is True
    flt = collection.update_one.call_args.args[0]
    assert flt["visibility"] == {"$ne": False}


def test_soft_delete_unpublish_and_hard_delete(repo, collection):
    collection.update_one.return_value.modified_count = 1
    collection.delete_one.return_value.deleted_count = 1

    assert repo.soft_delete(str(OID)) is True
    assert collection.update_one.call_args.args[1]["$set"]["isDeleted"] is True
    assert repo.unpublish(str(OID)) is True
    assert collection.update_one.call_args.args[0]["isPublished"] is True
    assert repo.hard_delete(str(OID)) is True
    collection.delete_one.assert_called_once_with({"_id": OID})

    assert repo.soft_delete("bogus") is False
