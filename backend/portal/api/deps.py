from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from portal.config import Settings
from portal.database import get_session
from portal.services.users import UserRepository
from portal.sessions import RequestSession


class LoginRequired(Exception):
    """Raised by guards when the request carries no authenticated session."""

    def __init__(self, location: str = "/login"):
        self.location = location


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_request_session(request: Request) -> RequestSession:
    return request.state.session


def get_users(db: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(db)


def is_valid_session(session: RequestSession) -> bool:
    return bool(session.authenticated)


def is_admin(session: RequestSession) -> bool:
    return session.user_type == "admin"


async def require_session(
    session: RequestSession = Depends(get_request_session),
) -> RequestSession:
    if not is_valid_session(session):
        raise LoginRequired()
    return session


async def require_admin(
    session: RequestSession = Depends(require_session),
) -> RequestSession:
    if not is_admin(session):
        raise HTTPException(status_code=403, detail="Not Authorized")
    return session
