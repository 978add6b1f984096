from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from ..core.security import verify_password
from ..models.user import User


class UserRepository:
    """Read access to user accounts."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_uuid(self, user_uuid: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.uuid == user_uuid).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def check_password(self, email: str, password: str) -> bool:
        """Compare the given password with the stored hash of the account."""
        user = self.find_by_email(email)
        if not user or not user.password_hash:
            return False
        return verify_password(password, user.password_hash)
