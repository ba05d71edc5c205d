from portal.models.session import SessionRecord
from portal.models.user import ROLES, User

__all__ = [
    "ROLES",
    "SessionRecord",
    "User",
]
