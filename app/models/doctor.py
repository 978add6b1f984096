from sqlalchemy import Column, Integer, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base


class Doctor(Base):
    __tablename__ = "tb_doctor"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    user_id = Column(Integer, ForeignKey("tb_user.id"), unique=True, nullable=False)

    name = Column(String(250), nullable=False)
    email = Column(String(250), unique=True, nullable=False)
    mobile_phone = Column(String(12), nullable=True)
    specialty = Column(String(250), nullable=True)

    # Relationships
    user = relationship("User", back_populates="doctor")
    appointments = relationship("Appointment", back_populates="doctor")
    block_periods = relationship("BlockPeriod", back_populates="doctor")

    def __repr__(self):
        return f"<Doctor(id={self.id}, name='{self.name}', specialty='{self.specialty}')>"
