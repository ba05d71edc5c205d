from pydantic_settings import BaseSettings

PLACEHOLDER_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    app_env: str = "development"
    database_url: str = "sqlite:///portal.db"

    # Signs the session id carried in the cookie.
    session_secret: str = PLACEHOLDER_SECRET
    # Encrypts session payloads at rest in the session store.
    session_store_secret: str = PLACEHOLDER_SECRET
    session_cookie_name: str = "portal_session"
    session_max_age: int = 60 * 60
    session_cookie_secure: bool = False

    bcrypt_rounds: int = 12

    admin_name: str | None = None
    admin_email: str | None = None
    admin_password: str | None = None

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3020

    class Config:
        env_prefix = "PORTAL_"
        env_file = ".env"

    def validate_runtime(self) -> None:
        if self.app_env.lower() != "production":
            return
        if PLACEHOLDER_SECRET in (self.session_secret, self.session_store_secret):
            raise RuntimeError(
                "PORTAL_SESSION_SECRET and PORTAL_SESSION_STORE_SECRET must be set in production."
            )
