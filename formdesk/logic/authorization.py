"""Access authorization rules.

Pure predicates over a caller identity and the records involved. They never
touch storage; callers load the form/response first and pass it in.
"""

from __future__ import annotations

from typing import Optional

from formdesk.config import get_config
from formdesk.models.caller import Caller
from formdesk.models.form import Form
from formdesk.models.response_types import ResponseRecord


def _privileged_role() -> str:
    return get_config().access.privileged_role


def is_privileged(role: Optional[str]) -> bool:
    if not role:
        return False
    return role.strip().lower() == _privileged_role().strip().lower()


def can_view_form(role: Optional[str], form: Optional[Form]) -> bool:
    """Privileged callers see every live form; everyone else only published, visible ones."""
    if form is None or form.is_deleted:
        return False
    if is_privileged(role):
        return True
    return form.is_published and form.visibility


def can_manage_form(caller: Caller, form: Optional[Form] = None) -> bool:
    # Role-gated only: admins manage every form, not just their own
    return is_privileged(caller.role)


def can_view_response(
    caller_id: str,
    caller_role: Optional[str],
    response: ResponseRecord,
    form: Optional[Form],
) -> bool:
    if is_privileged(caller_role):
        return True
    if response.submitted_by == caller_id:
        return True
    return form is not None and form.created_by == caller_id


def can_view_form_responses(caller_id: str, form: Form) -> bool:
    return form.created_by == caller_id


__all__ = [
    "is_privileged",
    "can_view_form",
    "can_manage_form",
    "can_view_response",
    "can_view_form_responses",
]
