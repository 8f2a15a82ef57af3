from fastapi import Depends, HTTPException

from app.constants.order_status import UserRole
from app.models.user import User
from app.services.order_service import Actor
from app.utils.token import get_current_user


def require_role(*roles: UserRole):
    allowed = {UserRole(role) for role in roles}

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            names = ", ".join(sorted(role.value for role in allowed))
            raise HTTPException(status_code=403, detail=f"Access restricted to: {names}")
        return current_user

    return checker


def get_actor(current_user: User = Depends(get_current_user)) -> Actor:
    return Actor(user_id=current_user.id, role=current_user.role)


require_customer = require_role(UserRole.customer)
require_rider = require_role(UserRole.rider)
require_restaurant_owner = require_role(UserRole.restaurant_owner)
