from sqlalchemy import Column, Integer, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base


class Patient(Base):
    __tablename__ = "tb_patient"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    user_id = Column(Integer, ForeignKey("tb_user.id"), unique=True, nullable=False)

    name = Column(String(250), nullable=False)
    email = Column(String(250), unique=True, nullable=False)
    mobile_phone = Column(String(12), nullable=True)

    # Relationships
    user = relationship("User", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.name}')>"
