from sqlalchemy import Column, Integer, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base


class Appointment(Base):
    __tablename__ = "tb_appointment"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)

    # Relationships
    doctor_id = Column(Integer, ForeignKey("tb_doctor.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("tb_patient.id"), nullable=False)

    # Start of the booked hour
    date = Column(DateTime, nullable=False, index=True)

    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.date}')>"
