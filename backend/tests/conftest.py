import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from portal.config import Settings
from portal.main import create_app
from portal.models.user import User
from portal.sessions import unsign_session_id

ADMIN = {"name": "admin", "email": "admin@mail.com", "password": "adminpass"}


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    return Settings(
        database_url="sqlite://",
        session_secret="test-cookie-secret",
        session_store_secret="test-store-secret",
        bcrypt_rounds=4,
        admin_name=ADMIN["name"],
        admin_email=ADMIN["email"],
        admin_password=ADMIN["password"],
    )


@pytest.fixture(name="app")
def app_fixture(settings: Settings):
    return create_app(settings)


@pytest.fixture(name="client")
def client_fixture(app):
    # Entering the client runs the lifespan: tables, purge, admin seed.
    with TestClient(app) as client:
        yield client


@pytest.fixture
def fetch_users(app, client):
    def _fetch(**filters) -> list[User]:
        with Session(app.state.engine) as db:
            query = select(User).order_by(User.id)
            for field, value in filters.items():
                query = query.where(getattr(User, field) == value)
            return list(db.exec(query).all())

    return _fetch


@pytest.fixture
def read_session(app):
    """Load the session the client's cookie currently points at."""

    def _read(client: TestClient):
        settings = app.state.settings
        token = client.cookies.get(settings.session_cookie_name)
        if not token:
            return None
        sid = unsign_session_id(token, settings.session_secret)
        return app.state.session_store.load(sid) if sid else None

    return _read


@pytest.fixture
def signup():
    def _signup(client: TestClient, name="alice", email="alice@mail.com", password="secret1"):
        return client.post(
            "/signupSubmit",
            data={"name": name, "email": email, "password": password},
            follow_redirects=False,
        )

    return _signup


@pytest.fixture
def login():
    def _login(client: TestClient, email: str, password: str):
        return client.post(
            "/loginSubmit",
            data={"email": email, "password": password},
            follow_redirects=False,
        )

    return _login


@pytest.fixture
def admin_client(client: TestClient, login) -> TestClient:
    response = login(client, ADMIN["email"], ADMIN["password"])
    assert response.status_code == 302
    return client
