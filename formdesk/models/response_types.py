"""Pydantic models for response submission, storage records and read views."""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from formdesk.models.question_type import QuestionType


# -- submission payloads ---------------------------------------------------

class SubmittedFile(BaseModel):
    file_name: str = Field(min_length=1, max_length=260)
    mime_type: str = Field(min_length=1, max_length=100)
    file_size_bytes: int
    base64_content: str


class SubmittedAnswer(BaseModel):
    question_id: str
    value: Any = None
    file_data: Optional[SubmittedFile] = None


class SubmitResponseRequest(BaseModel):
    answers: List[SubmittedAnswer] = Field(min_length=1)


class ClientMeta(BaseModel):
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None


class SubmissionResult(BaseModel):
    success: bool
    response_id: str
    submitted_at: datetime
    message: str


# -- relational records ----------------------------------------------------

class FileMetadata(BaseModel):
    file_id: str
    file_name: str
    mime_type: str
    file_size_bytes: int
    uploaded_at: datetime


class FileRecord(BaseModel):
    file_id: str
    answer_id: str
    response_id: str
    file_name: str
    mime_type: str
    file_size_bytes: int
    content: str
    created_at: datetime

    def content_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.content, validate=True)
        except (binascii.Error, ValueError):
            # Stored content predates validation; serve it verbatim
            return self.content.encode("utf-8")


class AnswerRecord(BaseModel):
    answer_id: str
    response_id: str
    question_id: str
    answer_type: QuestionType
    answer_value: Optional[str] = None
    created_at: datetime
    files: List[FileMetadata] = Field(default_factory=list)


class ResponseRecord(BaseModel):
    response_id: str
    form_id: str
    submitted_by: str
    submitted_at: datetime
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    answer_count: int = 0
    answers: List[AnswerRecord] = Field(default_factory=list)


# -- read views ------------------------------------------------------------

class ResponseSummary(BaseModel):
    response_id: str
    form_id: str
    form_title: Optional[str] = None
    submitted_by: str
    submitter_username: str
    submitted_at: datetime
    answer_count: int


class ResponseList(BaseModel):
    responses: List[ResponseSummary]
    current_page: int
    page_size: int
    total_count: int
    total_pages: int


class AnswerDetail(BaseModel):
    answer_id: str
    question_id: str
    question_label: str
    question_type: QuestionType
    value: Any = None
    files: List[FileMetadata] = Field(default_factory=list)


class ResponseDetail(BaseModel):
    response_id: str
    form_id: str
    form_title: str
    submitted_by: str
    submitter_username: str
    submitted_at: datetime
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    answers: List[AnswerDetail]


__all__ = [
    "SubmittedFile",
    "SubmittedAnswer",
    "SubmitResponseRequest",
    "ClientMeta",
    "SubmissionResult",
    "FileMetadata",
    "FileRecord",
    "AnswerRecord",
    "ResponseRecord",
    "ResponseSummary",
    "ResponseList",
    "AnswerDetail",
    "ResponseDetail",
]
