import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.api.admin import router as admin_router
from portal.api.auth import router as auth_router
from portal.api.deps import LoginRequired
from portal.api.pages import router as pages_router
from portal.auth import hash_password
from portal.config import Settings
from portal.database import build_engine, init_db
from portal.services.users import UserRepository
from portal.sessions import SessionMiddleware, SessionStore
from portal.views import STATIC_DIR, render

logger = logging.getLogger(__name__)


def _seed_admin(app: FastAPI) -> None:
    settings: Settings = app.state.settings
    if not (settings.admin_name and settings.admin_email and settings.admin_password):
        return
    with Session(app.state.engine) as db:
        UserRepository(db).ensure_admin(
            settings.admin_name,
            settings.admin_email,
            hash_password(settings.admin_password, rounds=settings.bcrypt_rounds),
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.engine)
    app.state.session_store.purge_expired()
    _seed_admin(app)
    yield


async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(exc.location, status_code=302)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return render(request, "404.html", status_code=404)
    return render(
        request,
        "error.html",
        {"error": exc.detail},
        status_code=exc.status_code,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    settings.validate_runtime()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Members Portal", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url)
    app.state.session_store = SessionStore(
        app.state.engine,
        secret=settings.session_store_secret,
        max_age=settings.session_max_age,
    )

    app.add_middleware(
        SessionMiddleware,
        store=app.state.session_store,
        secret=settings.session_secret,
        cookie_name=settings.session_cookie_name,
        secure=settings.session_cookie_secure,
    )
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    app.include_router(pages_router)
    app.include_router(auth_router)
    app.include_router(admin_router)
    return app
