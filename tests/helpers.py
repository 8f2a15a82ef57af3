from datetime import datetime, timedelta

from sqlmodel import Session

from app.models.user import User
from app.utils.token import create_access_token


def auth_headers(user: User) -> dict:
    token = create_access_token({"user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def reload(session: Session, model, pk):
    session.expire_all()
    return session.get(model, pk)


def days_ago(days: int) -> datetime:
    return datetime.utcnow() - timedelta(days=days)


class RecordingChannel:
    def __init__(self):
        self.pushes = []

    def push_to_user(self, user_id, event, payload):
        self.pushes.append((user_id, getattr(event, "value", event), payload))


class BrokenChannel:
    def push_to_user(self, user_id, event, payload):
        raise ConnectionError("socket gone")
