"""Support contact endpoints."""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import ADMIN_ROLES, admin_required, get_current_active_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.common import serialize, serialize_many
from app.schemas.contacts import ContactCreate, ContactReply, ContactResponse, ContactStatusUpdate
from app.services import contacts as contact_service

router = APIRouter()


@router.get("/stats/overview")
async def get_contact_stats(admin: User = Depends(admin_required), db: AsyncSession = Depends(get_db)):
    stats = await contact_service.get_contact_stats(db)
    return success_response("Contact statistics retrieved successfully", stats)


@router.get("")
async def list_contacts(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Admins see every ticket; everyone else sees their own."""
    if current_user.role in ADMIN_ROLES:
        page = await contact_service.list_contacts(db, request.query_params)
    else:
        page = await contact_service.list_my_contacts(db, current_user, request.query_params)
    return success_response("Contacts retrieved successfully", serialize_many(ContactResponse, page.items), page.meta)


@router.get("/{contact_id}")
async def get_contact(
    contact_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    ticket = await contact_service.get_contact(db, contact_id, current_user)
    return success_response("Contact retrieved successfully", serialize(ContactResponse, ticket))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact(
    data: ContactCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    ticket = await contact_service.create_contact(db, current_user, data)
    return success_response("Contact message sent successfully", serialize(ContactResponse, ticket))


@router.post("/{contact_id}/reply")
async def reply_to_contact(
    contact_id: str,
    data: ContactReply,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    ticket = await contact_service.reply_to_contact(db, contact_id, admin, data.reply)
    return success_response("Reply sent successfully", serialize(ContactResponse, ticket))


@router.patch("/{contact_id}/status")
async def update_contact_status(
    contact_id: str,
    data: ContactStatusUpdate,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    ticket = await contact_service.update_contact_status(db, contact_id, data.status)
    return success_response("Contact status updated successfully", serialize(ContactResponse, ticket))


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    await contact_service.delete_contact(db, contact_id)
    return success_response("Contact deleted successfully")
