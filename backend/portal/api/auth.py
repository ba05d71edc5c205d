import logging

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field, ValidationError, field_validator

from portal.api.deps import get_request_session, get_settings, get_users
from portal.auth import hash_password, verify_password
from portal.config import Settings
from portal.services.users import UserRepository
from portal.sessions import RequestSession
from portal.views import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

FIELD_MAX_LENGTH = 20

ERROR_MESSAGES = {
    "missing": "{field} is required.",
    "string_too_short": "{field} is required.",
    "string_too_long": f"{{field}} must be at most {FIELD_MAX_LENGTH} characters.",
    "string_pattern_mismatch": "{field} may only contain letters and numbers.",
    "value_error": "{field} is not valid.",
}


def _check_email(value: str) -> str:
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc


def _check_password(value: str) -> str:
    # bcrypt only accepts 72 bytes of input
    if len(value.encode()) > 72:
        raise ValueError("password is too long")
    return value


# --- Form schemas ---


class SignupForm(BaseModel):
    name: str = Field(min_length=1, max_length=FIELD_MAX_LENGTH, pattern=r"^[A-Za-z0-9]+$")
    email: str = Field(min_length=1, max_length=FIELD_MAX_LENGTH)
    password: str = Field(min_length=1, max_length=FIELD_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def email_syntax(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def password_bytes(cls, value: str) -> str:
        return _check_password(value)


class LoginForm(BaseModel):
    email: str = Field(min_length=1, max_length=FIELD_MAX_LENGTH)
    password: str = Field(min_length=1, max_length=FIELD_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def email_syntax(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def password_bytes(cls, value: str) -> str:
        return _check_password(value)


def first_error(exc: ValidationError) -> tuple[str, str, str]:
    """Return ``(field, type, message)`` for the first failing field."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error["loc"] else "input"
    template = ERROR_MESSAGES.get(error["type"], "{field} is not valid.")
    return field, error["type"], template.format(field=field.capitalize())


# --- Endpoints ---


@router.get("/signup")
async def signup(request: Request):
    return render(request, "signup.html")


@router.post("/signupSubmit")
async def signup_submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    session: RequestSession = Depends(get_request_session),
    users: UserRepository = Depends(get_users),
    settings: Settings = Depends(get_settings),
):
    try:
        form = SignupForm(name=name, email=email, password=password)
    except ValidationError as exc:
        field, error_type, message = first_error(exc)
        return render(
            request,
            "signup_submit.html",
            {"field": field, "type": error_type, "message": message, "name": name, "email": email},
        )

    hashed = hash_password(form.password, rounds=settings.bcrypt_rounds)
    users.insert(form.name, form.email, hashed)

    session.authenticate(form.name, "user", settings.session_max_age)
    return RedirectResponse("/members", status_code=302)


@router.get("/login")
async def login(request: Request):
    return render(request, "login.html")


@router.post("/loginSubmit")
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    session: RequestSession = Depends(get_request_session),
    users: UserRepository = Depends(get_users),
    settings: Settings = Depends(get_settings),
):
    try:
        form = LoginForm(email=email, password=password)
    except ValidationError as exc:
        logger.info(f"Rejected login form: {first_error(exc)[1]}")
        return render(request, "login_submit.html", {"error": "invalid chars"})

    matches = users.find_by_email(form.email)
    if len(matches) != 1:
        logger.info(f"User not found ({len(matches)} matches)")
        return render(request, "login_submit.html", {"error": "no user"})

    user = matches[0]
    if not verify_password(form.password, user.password):
        logger.info(f"Incorrect password for user {user.id}")
        return render(request, "login_submit.html", {"error": "bad password"})

    logger.info(f"User {user.id} logged in")
    session.authenticate(user.name, user.user_type, settings.session_max_age)
    return RedirectResponse("/members", status_code=302)


@router.get("/logout")
async def logout(session: RequestSession = Depends(get_request_session)):
    session.destroy()
    return RedirectResponse("/", status_code=302)
