from sqlalchemy import Column, Integer, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base
from ..core.security import UserRole


class User(Base):
    __tablename__ = "tb_user"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    email = Column(String(250), unique=True, index=True, nullable=False)
    password_hash = Column("password", String(250), nullable=False)
    role = Column(SQLEnum(UserRole, native_enum=False, length=50), nullable=False)

    # Exactly one of these is populated, selected by role
    patient = relationship("Patient", back_populates="user", uselist=False)
    doctor = relationship("Doctor", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
