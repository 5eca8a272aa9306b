"""Shared constants and payload builders for the functional suite."""

from __future__ import annotations

import base64
from typing import Dict

from formdesk.models.form import FormDefinition

ADMIN_ID = "u-admin"
OTHER_ADMIN_ID = "u-admin-2"
LEARNER_ID = "u-learner"
OTHER_LEARNER_ID = "u-learner-2"

PDF_BYTES = b"%PDF-1.4 minimal"
PDF_B64 = base64.b64encode(PDF_BYTES).decode("ascii")


def survey_definition(**overrides) -> FormDefinition:
    """Four-question form: required text, multi-select, number, required file."""
    payload: Dict = {
        "title": "Survey",
        "description": "Course feedback",
        "questions": [
            {"id": "q-name", "label": "Name", "type": "shortText", "required": True},
            {
                "id": "q-topics",
                "label": "Topics",
                "type": "multiSelect",
                "options": [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}],
            },
            {"id": "q-score", "label": "Score", "type": "number"},
            {"id": "q-upload", "label": "Upload", "type": "file", "required": True},
        ],
    }
    payload.update(overrides)
    return FormDefinition.model_validate(payload)


def file_answer(question_id: str = "q-upload", **overrides) -> Dict:
    data = {
        "file_name": "notes.pdf",
        "mime_type": "application/pdf",
        "file_size_bytes": len(PDF_BYTES),
        "base64_content": PDF_B64,
    }
    data.update(overrides)
    return {"question_id": question_id, "value": None, "file_data": data}
