# -------- USER NOTIFICATIONS --------
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.database import get_session
from app.models.notifications import NotificationType
from app.models.user import User
from app.services.notification_service import (
    delete_all_for_user,
    delete_notification,
    get_unread_count,
    list_user_notifications,
    mark_all_as_read,
    mark_as_read,
)
from app.utils.token import get_current_user

router = APIRouter()


@router.get("")
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    read: bool | None = None,
    type: NotificationType | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return list_user_notifications(
        session, current_user.id, page=page, limit=limit, read=read, type=type
    )


@router.get("/unread-count")
def unread_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return {"unread_count": get_unread_count(session, current_user.id)}


@router.put("/read-all")
def read_all(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    updated = mark_all_as_read(session, current_user.id)
    return {"message": "All notifications marked as read", "modified_count": updated}


@router.put("/{notification_id}/read")
def read_one(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    notification = mark_as_read(session, notification_id, current_user.id)
    return {"message": "Notification marked as read", "notification": notification}


@router.delete("/{notification_id}")
def remove_one(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    delete_notification(session, notification_id, current_user.id)
    return {"message": "Notification deleted successfully"}


@router.delete("")
def remove_all(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    deleted = delete_all_for_user(session, current_user.id)
    return {"message": "All notifications deleted", "deleted_count": deleted}
