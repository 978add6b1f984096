from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base


class BlockPeriod(Base):
    __tablename__ = "tb_block_period"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4)
    doctor_id = Column(Integer, ForeignKey("tb_doctor.id"), nullable=False)

    # Closed range, both ends truncated to the hour
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    description = Column(String(250), nullable=True)

    doctor = relationship("Doctor", back_populates="block_periods")

    def __repr__(self):
        return f"<BlockPeriod(id={self.id}, doctor_id={self.doctor_id}, start='{self.start_date}', end='{self.end_date}')>"
