"""Functional tests for access predicates, the answer codec and pagination."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from formdesk.logic.answer_codec import canonicalize_scalar, decode_answer_value, encode_answer_value
from formdesk.logic.authorization import (
    can_manage_form,
    can_view_form,
    can_view_form_responses,
    can_view_response,
    is_privileged,
)
from formdesk.logic.keyed_lock import KeyedLock
from formdesk.logic.pagination import clamp_page, total_pages
from formdesk.logic.validation import is_blank
from formdesk.models.caller import Caller
from formdesk.models.form import Form
from formdesk.models.question_type import QuestionType
from formdesk.models.response_types import ResponseRecord

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _form(**overrides) -> Form:
    data = dict(
        form_id="f1",
        title="Survey",
        created_by="creator",
        is_published=True,
        visibility=True,
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return Form(**data)


def _response(submitted_by="learner-1") -> ResponseRecord:
    return ResponseRecord(response_id="r1", form_id="f1", submitted_by=submitted_by, submitted_at=NOW)


# ---------------------------------------------------------------------------
# authorization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("role,expected", [("admin", True), ("ADMIN", True), (" Admin ", True), ("learner", False), (None, False), ("", False)])
def test_is_privileged_is_case_insensitive(role, expected):
    assert is_privileged(role) is expected


def test_privileged_role_is_configurable(monkeypatch):
    from formdesk.config import get_config

    monkeypatch.setenv("PRIVILEGED_ROLE", "instructor")
    get_config.cache_clear()
    assert is_privileged("instructor") is True
    assert is_privileged("admin") is False


@pytest.mark.parametrize(
    "overrides,learner_sees",
    [
        ({}, True),
        ({"is_published": False}, False),
        ({"visibility": False}, False),
        ({"is_deleted": True}, False),
    ],
)
def test_can_view_form(overrides, learner_sees):
    form = _form(**overrides)
    assert can_view_form("learner", form) is learner_sees
    assert can_view_form("admin", form) is (not form.is_deleted)


def test_can_view_form_missing_form():
    assert can_view_form("admin", None) is False


def test_can_manage_form_is_role_gated_only():
    form = _form(created_by="someone-else")
    assert can_manage_form(Caller(user_id="a2", role="admin"), form) is True
    assert can_manage_form(Caller(user_id="creator", role="learner"), form) is False


def test_can_view_response():
    form = _form()
    response = _response("learner-1")
    assert can_view_response("learner-1", "learner", response, form) is True
    assert can_view_response("creator", "learner", response, form) is True
    assert can_view_response("any-admin", "admin", response, form) is True
    assert can_view_response("learner-2", "learner", response, form) is False
    assert can_view_response("creator", "learner", response, None) is False


def test_can_view_form_responses_is_creator_only():
    form = _form()
    assert can_view_form_responses("creator", form) is True
    assert can_view_form_responses("other-admin", form) is False


# ---------------------------------------------------------------------------
# answer codec
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value,expected",
    [(True, "true"), (False, "false"), (3, "3"), (3.0, "3"), (2.5, "2.5"), ("abc", "abc"), (None, None)],
)
def test_canonicalize_scalar(value, expected):
    assert canonicalize_scalar(value) == expected


def test_encode_by_type_tag():
    assert encode_answer_value(QuestionType.MULTI_SELECT, ["b", "a"]) == '["b", "a"]'
    assert encode_answer_value(QuestionType.SINGLE_SELECT, "x") == '["x"]'
    assert encode_answer_value(QuestionType.SINGLE_SELECT, None) == "[]"
    assert encode_answer_value(QuestionType.FILE, "ignored") is None
    assert encode_answer_value(QuestionType.NUMBER, 42) == "42"
    assert encode_answer_value(QuestionType.DATE, "2024-01-31") == "2024-01-31"
    assert encode_answer_value(QuestionType.SHORT_TEXT, None) is None


def test_decode_by_type_tag():
    assert decode_answer_value(QuestionType.MULTI_SELECT, '["a", "b"]') == ["a", "b"]
    assert decode_answer_value(QuestionType.SINGLE_SELECT, '"x"') == ["x"]
    assert decode_answer_value(QuestionType.SINGLE_SELECT, "not json") == ["not json"]
    assert decode_answer_value(QuestionType.MULTI_SELECT, None) == []
    assert decode_answer_value(QuestionType.NUMBER, "12") == 12
    assert decode_answer_value(QuestionType.NUMBER, "1.5") == 1.5
    assert decode_answer_value(QuestionType.NUMBER, "twelve") == "twelve"
    assert decode_answer_value(QuestionType.LONG_TEXT, "12") == "12"
    assert decode_answer_value(QuestionType.FILE, None) is None


def test_multi_select_preserves_order_through_storage():
    stored = encode_answer_value(QuestionType.MULTI_SELECT, ["a", "b"])
    assert decode_answer_value(QuestionType.MULTI_SELECT, stored) == ["a", "b"]

    mixed = encode_answer_value(QuestionType.MULTI_SELECT, [2, True, "c", 1.5])
    assert mixed == '[2, true, "c", 1.5]'
    assert decode_answer_value(QuestionType.MULTI_SELECT, mixed) == [2, True, "c", 1.5]
    assert decode_answer_value(QuestionType.SINGLE_SELECT, encode_answer_value(QuestionType.SINGLE_SELECT, 3)) == [3]


# ---------------------------------------------------------------------------
# question type tag, blankness, pagination, locks
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw", ["shortText", "short-text", "short_text", "SHORTTEXT", "Short Text"])
def test_question_type_parse_is_tolerant(raw):
    assert QuestionType.parse(raw) is QuestionType.SHORT_TEXT


def test_question_type_parse_rejects_unknown():
    with pytest.raises(ValueError):
        QuestionType.parse("slider")
    assert QuestionType.MULTI_SELECT.is_select is True
    assert QuestionType.DATE.is_select is False


@pytest.mark.parametrize("value,blank", [(None, True), ("", True), (" \t", True), ([], True), ("x", False), (0, False), (False, False), (["a"], False)])
def test_is_blank(value, blank):
    assert is_blank(value) is blank


def test_clamp_page_and_total_pages():
    assert clamp_page(0, 0) == (1, 1)
    assert clamp_page(-5, 500) == (1, 100)
    assert clamp_page(3, None) == (3, 10)
    assert total_pages(0, 10) == 0
    assert total_pages(21, 10) == 3


def test_keyed_lock_releases_keys_when_idle():
    locks = KeyedLock()
    with locks.hold("form-1"):
        with locks.hold("form-1"):
            assert locks.active_keys() == ["form-1"]
    assert locks.active_keys() == []
