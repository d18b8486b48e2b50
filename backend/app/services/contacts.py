"""Support contact tickets."""
import logging
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.builder.query_builder import QueryBuilder
from app.builder.sql import Page, fetch_builder_page
from app.errors import BadRequestError, ForbiddenError, NotFoundError
from app.models.contact import CONTACT_CATEGORIES, CONTACT_PRIORITIES, CONTACT_STATUSES, ContactTicket
from app.models.user import User, UserRole
from app.schemas.contacts import ContactCreate
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

CONTACT_ROLES = (UserRole.SUBSCRIBER, UserRole.AUTHOR)

CONTACT_FIELDS = {
    "subject": ContactTicket.subject,
    "message": ContactTicket.message,
    "status": ContactTicket.status,
    "category": ContactTicket.category,
    "priority": ContactTicket.priority,
    "user": ContactTicket.user_id,
    "createdAt": ContactTicket.created_at,
}


async def create_contact(db: AsyncSession, user: User, data: ContactCreate) -> ContactTicket:
    if user.role not in CONTACT_ROLES:
        raise ForbiddenError("Only subscribers and authors can contact support")
    ticket = ContactTicket(
        user_id=user.uuid,
        user=user,
        subject=data.subject.strip(),
        category=data.category,
        priority=data.priority,
        message=data.message.strip(),
    )
    db.add(ticket)
    await db.commit()
    logger.info(f"Contact ticket {ticket.uuid} opened by {user.uuid}")
    return ticket


async def _get_ticket(db: AsyncSession, contact_id: str) -> ContactTicket:
    ticket = await db.get(ContactTicket, contact_id)
    if ticket is None:
        raise NotFoundError("Contact message not found")
    return ticket


async def get_contact(db: AsyncSession, contact_id: str, user: User) -> ContactTicket:
    ticket = await _get_ticket(db, contact_id)
    if ticket.user_id != user.uuid and user.role not in UserRole.STAFF:
        raise ForbiddenError("You do not have permission to view this contact")
    return ticket


async def reply_to_contact(db: AsyncSession, contact_id: str, admin: User, reply: str) -> ContactTicket:
    if admin.role not in UserRole.STAFF:
        raise ForbiddenError("Only admins can reply to contacts")
    ticket = await _get_ticket(db, contact_id)
    if ticket.status == "closed":
        raise BadRequestError("Cannot reply to a closed contact")

    ticket.admin_reply = reply
    ticket.replied_by_id = admin.uuid
    ticket.replied_at = datetime.utcnow()
    ticket.status = "replied"
    await db.commit()

    EmailService.send_contact_reply_email(ticket.user, ticket)
    return ticket


async def update_contact_status(db: AsyncSession, contact_id: str, status: str) -> ContactTicket:
    ticket = await _get_ticket(db, contact_id)
    ticket.status = status
    await db.commit()
    return ticket


async def delete_contact(db: AsyncSession, contact_id: str) -> None:
    ticket = await _get_ticket(db, contact_id)
    await db.delete(ticket)
    await db.commit()


async def list_contacts(db: AsyncSession, params) -> Page:
    builder = (
        QueryBuilder(params)
        .search(["subject", "message"])
        .filter_exact("status", "status")
        .filter_exact("category", "category")
        .filter_exact("priority", "priority")
        .sort()
        .paginate()
    )
    return await fetch_builder_page(db, ContactTicket, builder, CONTACT_FIELDS)


async def list_my_contacts(db: AsyncSession, user: User, params) -> Page:
    builder = QueryBuilder(params).filter_exact("status", "status").sort().paginate()
    return await fetch_builder_page(
        db, ContactTicket, builder, CONTACT_FIELDS, scope=[ContactTicket.user_id == user.uuid]
    )


async def _counts(db: AsyncSession, column, keys) -> Dict[str, int]:
    result = await db.execute(select(column, func.count()).group_by(column))
    counts = {key: 0 for key in keys}
    counts.update({key: int(count) for key, count in result.all()})
    return counts


async def get_contact_stats(db: AsyncSession) -> Dict[str, Any]:
    total = (await db.execute(select(func.count()).select_from(ContactTicket))).scalar_one()
    return {
        "total": int(total),
        "byStatus": await _counts(db, ContactTicket.status, CONTACT_STATUSES),
        "byCategory": await _counts(db, ContactTicket.category, CONTACT_CATEGORIES),
        "byPriority": await _counts(db, ContactTicket.priority, CONTACT_PRIORITIES),
    }
