"""
api/routes/v1/contacts.py -- Contact form intake and the admin inbox.

Auth policy:
  POST   /api/v1/contacts        public -- the site's contact form, 10/minute per IP
  GET    /api/v1/contacts        {admin, editor}
  PUT    /api/v1/contacts/{id}   {admin, editor} -- status / reply
  DELETE /api/v1/contacts/{id}   {admin}
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.limiter import limiter
from api.models import ContactIn, ContactList, ContactOut, ContactStatusEnum, ContactStatusUpdate, MessageResponse, Pagination
from auth.dependencies import require_roles
from auth.models import ROLE_ADMIN, ROLE_EDITOR, Principal
from content.models import ContactMessage
from content.store import ContentStore, page_count

router = APIRouter()

can_read = require_roles(ROLE_ADMIN, ROLE_EDITOR)
can_delete = require_roles(ROLE_ADMIN)

CONTACT_FORM_LIMIT = "10/minute"


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "Contact not found."})


@router.post("/contacts", response_model=ContactOut, status_code=201)
@limiter.limit(CONTACT_FORM_LIMIT)
def create_contact(request: Request, body: ContactIn) -> ContactOut:
    store: ContentStore = request.app.state.content_store
    contact_id = store.create_contact(
        ContactMessage(
            name=body.name,
            email=body.email,
            phone=body.phone,
            company=body.company,
            subject=body.subject,
            message=body.message,
        )
    )
    return contact_to_out(store.get_contact(contact_id))


@router.get("/contacts", response_model=ContactList)
def list_contacts(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[ContactStatusEnum] = None,
    principal: Principal = Depends(can_read),
) -> ContactList:
    store: ContentStore = request.app.state.content_store
    rows, total = store.list_contacts(page=page, limit=limit, status=status.value if status else None)
    return ContactList(
        data=[contact_to_out(c) for c in rows],
        pagination=Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)),
    )


@router.put("/contacts/{contact_id}", response_model=ContactOut)
def update_contact_status(
    request: Request,
    contact_id: str,
    body: ContactStatusUpdate,
    principal: Principal = Depends(can_read),
) -> ContactOut:
    store: ContentStore = request.app.state.content_store
    if not store.update_contact_status(contact_id, body.status.value, body.reply):
        raise _not_found()
    return contact_to_out(store.get_contact(contact_id))


@router.delete("/contacts/{contact_id}", response_model=MessageResponse)
def delete_contact(
    request: Request,
    contact_id: str,
    principal: Principal = Depends(can_delete),
) -> MessageResponse:
    store: ContentStore = request.app.state.content_store
    if not store.delete_contact(contact_id):
        raise _not_found()
    return MessageResponse(message="Contact deleted successfully.")


def contact_to_out(contact: ContactMessage) -> ContactOut:
    return ContactOut(
        id=contact.id,
        name=contact.name,
        email=contact.email,
        phone=contact.phone,
        company=contact.company,
        subject=contact.subject,
        message=contact.message,
        status=contact.status,
        reply=contact.reply,
        created_at=contact.created_at,
        updated_at=contact.updated_at,
    )
