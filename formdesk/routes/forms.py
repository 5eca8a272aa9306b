"""Form lifecycle endpoints.

Implements:
- POST   /forms                         create a draft (admin)
- GET    /forms                         paged listing, role-filtered
- GET    /forms/{form_id}               single form, role-filtered
- PUT    /forms/{form_id}               replace definition unless locked (admin)
- DELETE /forms/{form_id}               soft delete (admin)
- POST   /forms/{form_id}/publish       publish a draft (admin)
- PATCH  /forms/{form_id}/visibility    show/hide from learners (admin)
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from formdesk.logic.authorization import can_view_form
from formdesk.logic.errors import FormNotFoundError
from formdesk.logic.form_lifecycle import FormLifecycleManager
from formdesk.models.caller import Caller
from formdesk.models.form import ChangeResult, Form, FormDefinition, FormList, VisibilityUpdate
from formdesk.routes.deps import get_caller, get_form_manager, require_privileged

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/forms", status_code=201, response_model=Form, summary="Create a draft form")
def create_form(
    definition: FormDefinition,
    caller: Caller = Depends(require_privileged),
    manager: FormLifecycleManager = Depends(get_form_manager),
) -> Form:
    return manager.create(definition, caller.user_id)


@router.get("/forms", response_model=FormList, summary="List forms")
def list_forms(
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
    manager: FormLifecycleManager = Depends(get_form_manager),
) -> FormList:
    return manager.list(page, page_size, search, caller.role, caller.user_id)


@router.get("/forms/{form_id}", response_model=Form, summary="Get a form")
def get_form(
    form_id: str,
    caller: Caller = Depends(get_caller),
    manager: FormLifecycleManager = Depends(get_form_manager),
) -> Form:
    form = manager.get(form_id)
    if not can_view_form(caller.role, form):
        # Hidden and draft forms do not exist as far as learners can tell
        raise FormNotFoundError(form_id)
    return form


@router.put("/forms/{form_id}", response_model=Form, summary="Update a form definition")
def update_form(
    form_id: str,
    definition: FormDefinition,
    caller: Caller = Depends(require_privileged),
    manager: FormLifecycleManager = Depends(get_form_manager),
) -> Form:
    return manager.update(form_id, definition, caller.user_id)


@router.delete("/forms/{form_id}", response_model=ChangeResult, summary="Soft delete a form")
def delete_form(
    form_id: str,
    caller: Caller = Depends(require_privileged),
    manager: FormLifecycleManager = Depends(get_form_manager),
) -> ChangeResult:
    return ChangeResult(form_id=form_id, changed=manager.delete(form_id, caller.user_id))


@router.post("/forms/{form_id}/publish", response_model=ChangeResult, summary="Publish a form")
def publish_form(
    form_id: str,
    caller: Caller = Depends(require_privileged),
    manager: FormLifecycleManager = Depends(get_form_manager),
) -> ChangeResult:
    return ChangeResult(form_id=form_id, changed=manager.publish(form_id, caller.user_id))


@router.patch("/forms/{form_id}/visibility", response_model=ChangeResult, summary="Show or hide a form")
def set_form_visibility(
    form_id: str,
    body: VisibilityUpdate,
    caller: Caller = Depends(require_privileged),
    manager: FormLifecycleManager = Depends(get_form_manager),
) -> ChangeResult:
    return ChangeResult(form_id=form_id, changed=manager.toggle_visibility(form_id, body.visible))


__all__ = ["router"]
