from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .db import User, get_db
from .errors import Unauthenticated


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str
    name: str


def get_session(request: Request, db: Session) -> Optional[SessionUser]:
    """Resolve the caller from the ``Authorization`` header.

    Sessions are issued elsewhere; here the bearer token is the id of a
    registered user. Anything else resolves to no session.
    """
    header = request.headers.get("Authorization", "")
    prefix = "Bearer "
    if not header.startswith(prefix):
        return None
    token = header[len(prefix) :].strip()
    if not token:
        return None
    user = db.get(User, token)
    if user is None:
        return None
    return SessionUser(id=user.id, email=user.email, name=user.name)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> SessionUser:
    session = get_session(request, db)
    if session is None:
        raise Unauthenticated()
    return session
