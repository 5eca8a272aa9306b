"""Pydantic models for form definitions (input) and stored forms."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from formdesk.models.question_type import QuestionType


class OptionDefinition(BaseModel):
    id: Optional[str] = None
    label: str = ""


class QuestionDefinition(BaseModel):
    # Optional so that updates can preserve question identity across edits
    id: Optional[str] = None
    label: str = ""
    description: Optional[str] = None
    # Kept as raw text; the lifecycle manager owns tag validation
    type: str
    required: bool = False
    options: Optional[List[OptionDefinition]] = None
    date_format: Optional[str] = None
    order: int = 0


class FormDefinition(BaseModel):
    """Create/update payload. Title blankness is a domain rule, not a schema one."""

    title: str = ""
    description: Optional[str] = Field(default=None, max_length=1000)
    header_title: Optional[str] = Field(default=None, max_length=200)
    header_description: Optional[str] = Field(default=None, max_length=1000)
    visibility: bool = True
    questions: List[QuestionDefinition] = Field(default_factory=list)


class Option(BaseModel):
    option_id: str
    label: str


class Question(BaseModel):
    question_id: str
    label: str
    description: Optional[str] = None
    type: QuestionType
    required: bool = False
    options: Optional[List[Option]] = None
    date_format: Optional[str] = None
    order: int


class Form(BaseModel):
    form_id: str
    title: str
    description: Optional[str] = None
    header_title: Optional[str] = None
    header_description: Optional[str] = None
    is_published: bool = False
    is_deleted: bool = False
    visibility: bool = True
    created_by: str
    published_by: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def question_by_id(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.question_id == question_id:
                return q
        return None

    def ordered_questions(self) -> List[Question]:
        return sorted(self.questions, key=lambda q: q.order)


class FormListItem(BaseModel):
    form_id: str
    title: str
    description: Optional[str] = None
    question_count: int
    is_published: bool
    visibility: bool
    created_at: datetime
    created_by: str
    creator_name: Optional[str] = None
    published_by: Optional[str] = None
    publisher_name: Optional[str] = None
    responded: bool = False


class FormList(BaseModel):
    forms: List[FormListItem]
    current_page: int
    page_size: int
    total_count: int
    total_pages: int


class VisibilityUpdate(BaseModel):
    visible: bool


class ChangeResult(BaseModel):
    form_id: str
    changed: bool


__all__ = [
    "OptionDefinition",
    "QuestionDefinition",
    "FormDefinition",
    "Option",
    "Question",
    "Form",
    "FormListItem",
    "FormList",
    "VisibilityUpdate",
    "ChangeResult",
]
