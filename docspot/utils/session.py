"""
Current-session accessor. Only the HTTP layer calls this; services get the
identity passed in.
"""
from typing import Optional

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from docspot.extensions import db
from docspot.models import User
from docspot.services.identity import Identity, identity_for


def current_user() -> Optional[User]:
    """The signed-in, active user, or None when unauthenticated"""
    verify_jwt_in_request(optional=True)
    user_id = get_jwt_identity()
    if user_id is None:
        return None
    try:
        user = db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None
    if not user or not user.is_active:
        return None
    return user


def current_identity() -> Optional[Identity]:
    user = current_user()
    return identity_for(user) if user else None
