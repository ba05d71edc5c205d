"""User repository over the ``users`` table."""

import logging

from sqlmodel import Session, func, select

from portal.models.user import ROLES, User

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def insert(
        self, name: str, email: str, hashed_password: str, user_type: str = "user"
    ) -> User:
        """Append a user. Names and emails are not checked for duplicates."""
        user = User(name=name, email=email, password=hashed_password, user_type=user_type)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Inserted user {user.id} ({user.name})")
        return user

    def find_by_email(self, email: str) -> list[User]:
        return list(self.db.exec(select(User).where(User.email == email)).all())

    def list_all(self) -> list[User]:
        return list(self.db.exec(select(User).order_by(User.id)).all())

    def count(self) -> int:
        return self.db.exec(select(func.count()).select_from(User)).one()

    def set_role(self, name: str, role: str) -> bool:
        """Set ``user_type`` on the first user named ``name``.

        Returns False when no user matched; callers treat that as a no-op.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        user = self.db.exec(
            select(User).where(User.name == name).order_by(User.id)
        ).first()
        if not user:
            logger.info(f"No user named {name!r}; role unchanged")
            return False
        user.user_type = role
        self.db.add(user)
        self.db.commit()
        logger.info(f"Set role of {name!r} to {role}")
        return True

    def ensure_admin(self, name: str, email: str, hashed_password: str) -> bool:
        """Seed an admin account unless a user with ``email`` already exists."""
        if self.find_by_email(email):
            return False
        self.insert(name, email, hashed_password, user_type="admin")
        logger.info(f"Seeded admin user {name!r}")
        return True
