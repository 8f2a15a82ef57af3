import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update, delete
from sqlmodel import Session, select, func

from app.constants.order_status import UserRole
from app.exceptions import NotFoundError
from app.models.notifications import Notification, NotificationType
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)


def create_notification(
    *,
    session: Session,
    user_id: int,
    user_role: UserRole,
    type: NotificationType,
    title: str,
    message: str,
    data: Optional[dict] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        user_role=user_role,
        type=type,
        title=title,
        message=message,
        data=data or {},
    )
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification


def list_user_notifications(
    session: Session,
    user_id: int,
    *,
    page: int = 1,
    limit: int = 20,
    read: Optional[bool] = None,
    type: Optional[NotificationType] = None,
):
    query = select(Notification).where(Notification.user_id == user_id)

    if read is not None:
        query = query.where(Notification.read == read)

    if type:
        query = query.where(Notification.type == type)

    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    return paginate(session=session, query=query, page=page, limit=limit)


def get_unread_count(session: Session, user_id: int) -> int:
    return session.exec(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
    ).one()


def _get_owned(session: Session, notification_id: int, user_id: int) -> Notification:
    notification = session.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFoundError("Notification not found")
    return notification


def mark_as_read(session: Session, notification_id: int, user_id: int) -> Notification:
    notification = _get_owned(session, notification_id, user_id)

    if not notification.read:
        notification.read = True
        notification.read_at = datetime.utcnow()
        session.add(notification)
        session.commit()
        session.refresh(notification)

    return notification


def mark_all_as_read(session: Session, user_id: int) -> int:
    result = session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
        .values(read=True, read_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    session.commit()
    return result.rowcount


def delete_notification(session: Session, notification_id: int, user_id: int) -> None:
    notification = _get_owned(session, notification_id, user_id)
    session.delete(notification)
    session.commit()


def delete_all_for_user(session: Session, user_id: int) -> int:
    result = session.execute(
        delete(Notification)
        .where(Notification.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    session.commit()
    return result.rowcount
