from datetime import datetime
from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class PatientResponse(BaseModel):
    uuid: UUID
    name: str
    email: str
    mobile_phone: Optional[str] = None


class Entry(BaseModel):
    """One working hour of a doctor's day."""

    hour: int
    available: bool
    patient: Optional[PatientResponse] = None


class AppointmentRequest(BaseModel):
    hour: Optional[int] = None


class BlockPeriodRequest(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    description: Optional[str] = None
