"""Server-side sessions keyed by a signed cookie.

The cookie only carries a signed session id. The payload lives in the
``sessions`` table, encrypted with a key derived from the store secret.
"""

import base64
import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta

from cryptography.fernet import Fernet, InvalidToken
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlmodel import Session, select
from starlette.middleware.base import BaseHTTPMiddleware

from portal.models.session import SessionRecord

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class SessionData(BaseModel):
    authenticated: bool = False
    name: str | None = None
    user_type: str | None = None


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def sign_session_id(sid: str, secret: str) -> str:
    return jwt.encode({"sid": sid}, secret, algorithm=ALGORITHM)


def unsign_session_id(token: str, secret: str) -> str | None:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None


def _fernet_for(secret: str) -> Fernet:
    key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode()).digest())
    return Fernet(key)


class SessionStore:
    def __init__(self, engine: Engine, secret: str, max_age: int):
        self.engine = engine
        self.max_age = max_age
        self._fernet = _fernet_for(secret)

    def load(self, sid: str) -> SessionData | None:
        with Session(self.engine) as db:
            record = db.get(SessionRecord, sid)
            if not record:
                return None
            if record.expires_at_utc() <= datetime.now(UTC):
                db.delete(record)
                db.commit()
                return None
            try:
                raw = self._fernet.decrypt(record.data.encode())
            except InvalidToken:
                logger.warning(f"Discarding undecryptable session {sid[:8]}")
                return None
        return SessionData.model_validate_json(raw)

    def save(self, sid: str, data: SessionData, max_age: int | None = None) -> None:
        if max_age is None:
            max_age = self.max_age
        expires_at = datetime.now(UTC) + timedelta(seconds=max_age)
        encrypted = self._fernet.encrypt(data.model_dump_json().encode()).decode()
        with Session(self.engine) as db:
            record = db.get(SessionRecord, sid)
            if record:
                record.data = encrypted
                record.expires_at = expires_at
            else:
                record = SessionRecord(id=sid, data=encrypted, expires_at=expires_at)
            db.add(record)
            db.commit()

    def destroy(self, sid: str) -> None:
        with Session(self.engine) as db:
            record = db.get(SessionRecord, sid)
            if record:
                db.delete(record)
                db.commit()

    def purge_expired(self) -> int:
        with Session(self.engine) as db:
            expired = db.exec(
                select(SessionRecord).where(SessionRecord.expires_at <= datetime.now(UTC))
            ).all()
            for record in expired:
                db.delete(record)
            db.commit()
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)


class RequestSession:
    """The session attached to one request as ``request.state.session``."""

    def __init__(self, sid: str | None = None, data: SessionData | None = None):
        self.sid = sid
        self.replaced_sid: str | None = None
        self.data = data or SessionData()
        self.max_age: int | None = None
        self.modified = False
        self.destroyed = False

    @property
    def authenticated(self) -> bool:
        return self.data.authenticated

    @property
    def name(self) -> str | None:
        return self.data.name

    @property
    def user_type(self) -> str | None:
        return self.data.user_type

    def authenticate(self, name: str, user_type: str, max_age: int) -> None:
        # A new identity always gets a fresh session id.
        if self.sid:
            self.replaced_sid = self.sid
            self.sid = None
        self.data = SessionData(authenticated=True, name=name, user_type=user_type)
        self.max_age = max_age
        self.modified = True
        self.destroyed = False

    def destroy(self) -> None:
        self.data = SessionData()
        self.destroyed = True
        self.modified = False


class SessionMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        store: SessionStore,
        secret: str,
        cookie_name: str,
        secure: bool = False,
    ):
        super().__init__(app)
        self.store = store
        self.secret = secret
        self.cookie_name = cookie_name
        self.secure = secure

    def _resolve(self, token: str | None) -> RequestSession:
        sid = unsign_session_id(token, self.secret) if token else None
        data = self.store.load(sid) if sid else None
        if data is None:
            return RequestSession()
        return RequestSession(sid, data)

    async def dispatch(self, request, call_next):
        session = self._resolve(request.cookies.get(self.cookie_name))
        request.state.session = session

        response = await call_next(request)

        if session.destroyed:
            for sid in (session.sid, session.replaced_sid):
                if sid:
                    self.store.destroy(sid)
            response.delete_cookie(self.cookie_name, path="/")
        elif session.modified:
            if session.replaced_sid:
                self.store.destroy(session.replaced_sid)
            if not session.sid:
                session.sid = new_session_id()
            max_age = session.max_age if session.max_age is not None else self.store.max_age
            self.store.save(session.sid, session.data, max_age)
            response.set_cookie(
                self.cookie_name,
                sign_session_id(session.sid, self.secret),
                max_age=max_age,
                path="/",
                httponly=True,
                samesite="lax",
                secure=self.secure,
            )
        return response
