from datetime import date, datetime, time, timedelta
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from ..models.appointment import Appointment
from ..models.block_period import BlockPeriod
from ..models.doctor import Doctor
from ..models.patient import Patient


def _day_bounds(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class CalendarRepository:
    """Access to doctors, patients, blockers and appointments."""

    def __init__(self, db: Session):
        self.db = db

    def find_doctor_by_uuid(self, doctor_uuid: UUID) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.uuid == doctor_uuid).first()

    def find_doctor_by_user_id(self, user_id: int) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.user_id == user_id).first()

    def find_patient_by_id(self, patient_id: int) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def find_patient_by_user_id(self, user_id: int) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.user_id == user_id).first()

    def list_blockers(self, doctor_id: int, day: date) -> List[BlockPeriod]:
        """
        List the doctor's blockers touching the given day.

        A blocker matches when the day lies between the day-truncated start
        and the day-truncated end, both inclusive.
        """
        day_start, next_day = _day_bounds(day)
        return (
            self.db.query(BlockPeriod)
            .filter(
                BlockPeriod.doctor_id == doctor_id,
                BlockPeriod.start_date < next_day,
                BlockPeriod.end_date >= day_start,
            )
            .order_by(BlockPeriod.start_date)
            .all()
        )

    def list_appointments(self, doctor_id: int, day: date) -> List[Appointment]:
        """List the doctor's appointments on the given day."""
        day_start, next_day = _day_bounds(day)
        return (
            self.db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date >= day_start,
                Appointment.date < next_day,
            )
            .order_by(Appointment.date)
            .all()
        )

    def insert_blocker(self, blocker: BlockPeriod) -> None:
        self._insert(blocker, "blocker not inserted")

    def insert_appointment(self, appointment: Appointment) -> None:
        self._insert(appointment, "appointment not inserted")

    def _insert(self, entity, failure_message: str) -> None:
        self.db.add(entity)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(entity)
        if entity.id is None:
            raise RuntimeError(failure_message)
