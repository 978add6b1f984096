"""
Doctor calendars: hourly availability and bookings.

A working day is the closed range of hours [START_WORK_HOUR, END_WORK_HOUR].
Every hour is either blocked by one of the doctor's block periods, booked by
an appointment, or available.
"""
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4
import logging

from ..core.exceptions import BadRequestError, NotFoundError, ValidationError
from ..core.security import AuthorizationError
from ..models.appointment import Appointment
from ..models.block_period import BlockPeriod
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User
from ..repositories.calendar_repository import CalendarRepository
from ..schemas.calendar import AppointmentRequest, BlockPeriodRequest, Entry, PatientResponse

logger = logging.getLogger(__name__)

START_WORK_HOUR = 9
END_WORK_HOUR = 17

ERR_DOCTOR_NOT_FOUND = "doctor not found"
ERR_ONLY_DOCTOR_CAN_CREATE_BLOCKER = "only a doctor can create a blocker"
ERR_ONLY_PATIENT_CAN_CREATE_APPOINTMENT = "only a patient can create an appointment"
ERR_ONLY_DOCTOR_CAN_CHECK_ITS_APPOINTMENTS = "only a doctor can check its appointments"
ERR_SLOT_NOT_AVAILABLE = "chosen slot is not available"


def to_patient_response(patient: Patient) -> PatientResponse:
    return PatientResponse(
        uuid=patient.uuid,
        name=patient.name,
        email=patient.email,
        mobile_phone=patient.mobile_phone,
    )


def at_hour(day: date, hour: int) -> datetime:
    """The naive timestamp of the given hour on the given day."""
    return datetime(day.year, day.month, day.day, hour, 0, 0)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def truncate_to_hour(value: datetime) -> datetime:
    return value.replace(minute=0, second=0, microsecond=0)


def hour_is_blocked(blockers: List[BlockPeriod], reference: datetime) -> bool:
    return any(b.start_date <= reference <= b.end_date for b in blockers)


def find_appointment(appointments: List[Appointment], reference: datetime) -> Optional[Appointment]:
    for appointment in appointments:
        if appointment.date == reference:
            return appointment
    return None


class CalendarService:
    def __init__(self, repository: CalendarRepository):
        self.repository = repository

    def compute_day_schedule(self, doctor: Doctor, day: date) -> List[Entry]:
        """
        Build one entry per working hour of the doctor's day, in ascending
        order. Booked entries carry the patient who booked them.
        """
        blockers = self.repository.list_blockers(doctor.id, day)
        appointments = self.repository.list_appointments(doctor.id, day)

        entries = []
        for hour in range(START_WORK_HOUR, END_WORK_HOUR + 1):
            reference = at_hour(day, hour)
            if hour_is_blocked(blockers, reference):
                entries.append(Entry(hour=hour, available=False))
                continue

            appointment = find_appointment(appointments, reference)
            if appointment is None:
                entries.append(Entry(hour=hour, available=True))
                continue

            patient = self.repository.find_patient_by_id(appointment.patient_id)
            entries.append(Entry(
                hour=hour,
                available=False,
                patient=to_patient_response(patient) if patient else None,
            ))

        return entries

    def get_doctor_calendar(self, doctor_uuid: UUID, day: date) -> List[Entry]:
        """Open slots of a doctor's day, as offered to patients."""
        doctor = self.repository.find_doctor_by_uuid(doctor_uuid)
        if not doctor:
            raise NotFoundError(ERR_DOCTOR_NOT_FOUND)

        return self._open_slots(doctor, day)

    def get_appointments(self, user: User, day: date) -> List[Entry]:
        """The authenticated doctor's full day, blocked hours included."""
        doctor = self.repository.find_doctor_by_user_id(user.id)
        if not doctor:
            raise AuthorizationError(ERR_ONLY_DOCTOR_CAN_CHECK_ITS_APPOINTMENTS)

        return self.compute_day_schedule(doctor, day)

    def insert_appointment(
        self,
        user: User,
        doctor_uuid: UUID,
        day: Optional[date],
        appointment_request: AppointmentRequest,
    ) -> Appointment:
        """Book one hour of a doctor's day for the authenticated patient."""
        hour = appointment_request.hour
        if hour is None or not START_WORK_HOUR <= hour <= END_WORK_HOUR:
            raise ValidationError("hour", "out of working hours")
        if day is None:
            raise ValidationError("date", "required")

        patient = self.repository.find_patient_by_user_id(user.id)
        if not patient:
            raise AuthorizationError(ERR_ONLY_PATIENT_CAN_CREATE_APPOINTMENT)

        doctor = self.repository.find_doctor_by_uuid(doctor_uuid)
        if not doctor:
            raise NotFoundError(ERR_DOCTOR_NOT_FOUND)

        # Not isolated from concurrent bookings of the same slot
        open_hours = {entry.hour for entry in self._open_slots(doctor, day)}
        if hour not in open_hours:
            raise BadRequestError(ERR_SLOT_NOT_AVAILABLE)

        appointment = Appointment(
            uuid=uuid4(),
            doctor_id=doctor.id,
            patient_id=patient.id,
            date=at_hour(day, hour),
        )
        self.repository.insert_appointment(appointment)

        logger.info(f"Appointment {appointment.uuid} booked with doctor {doctor.uuid} at {appointment.date}")
        return appointment

    def insert_blocker(self, user: User, block_period: BlockPeriodRequest) -> BlockPeriod:
        """Block a period of the authenticated doctor's calendar."""
        doctor = self.repository.find_doctor_by_user_id(user.id)
        if not doctor:
            raise AuthorizationError(ERR_ONLY_DOCTOR_CAN_CREATE_BLOCKER)

        if block_period.start_date is None:
            raise ValidationError("start_date", "required")
        if block_period.end_date is None:
            raise ValidationError("end_date", "required")

        start_date = to_naive_utc(block_period.start_date)
        end_date = to_naive_utc(block_period.end_date)
        if end_date < start_date:
            raise ValidationError("end_date", "invalid period")
        start_date, end_date = truncate_to_hour(start_date), truncate_to_hour(end_date)

        blocker = BlockPeriod(
            uuid=uuid4(),
            doctor_id=doctor.id,
            start_date=start_date,
            end_date=end_date,
            description=block_period.description,
        )
        self.repository.insert_blocker(blocker)

        logger.info(f"Blocker {blocker.uuid} created for doctor {doctor.uuid} from {start_date} to {end_date}")
        return blocker

    def _open_slots(self, doctor: Doctor, day: date) -> List[Entry]:
        return [
            Entry(hour=entry.hour, available=True)
            for entry in self.compute_day_schedule(doctor, day)
            if entry.available
        ]
