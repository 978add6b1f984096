from datetime import date
from fastapi import APIRouter, Depends, Response, status
from typing import List
from uuid import UUID
import re

from ...api.deps import (
    get_authenticated_user, get_calendar_service, get_doctor_user, get_patient_user
)
from ...core.exceptions import BadRequestError
from ...services.calendar_service import CalendarService
from ...schemas.calendar import AppointmentRequest, BlockPeriodRequest, Entry
from ...models.user import User

router = APIRouter(prefix="/calendar", tags=["Calendar"])

ERR_INVALID_IDENTIFIER = "invalid identifier"
ERR_INVALID_DATE_REFERENCE = "invalid date reference"
ERR_INVALID_YEAR_REFERENCE = "invalid year reference - e.g. 2021"
ERR_INVALID_MONTH_REFERENCE = "invalid month reference - e.g. 08"
ERR_INVALID_DAY_REFERENCE = "invalid day reference - e.g. 10"


def parse_date_parameters(year: str, month: str, day: str) -> date:
    """Parse year/month/day path segments into a calendar date."""
    if not re.fullmatch(r"[0-9]{4}", year):
        raise BadRequestError(ERR_INVALID_YEAR_REFERENCE)
    if not re.fullmatch(r"[0-9]{1,2}", month):
        raise BadRequestError(ERR_INVALID_MONTH_REFERENCE)
    if not re.fullmatch(r"[0-9]{1,2}", day):
        raise BadRequestError(ERR_INVALID_DAY_REFERENCE)

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        raise BadRequestError(ERR_INVALID_DATE_REFERENCE)


def parse_uuid_parameter(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise BadRequestError(ERR_INVALID_IDENTIFIER)


# Doctor routes
@router.post(
    "/blockers",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_doctor_user)]
)
async def insert_block_period(
    block_period: BlockPeriodRequest,
    user: User = Depends(get_authenticated_user),
    calendar_service: CalendarService = Depends(get_calendar_service)
):
    """Block a period of the authenticated doctor's calendar."""
    calendar_service.insert_blocker(user, block_period)
    return Response(status_code=status.HTTP_201_CREATED)


@router.get(
    "/{year}/{month}/{day}",
    response_model=List[Entry],
    response_model_exclude_none=True,
    dependencies=[Depends(get_doctor_user)]
)
async def get_appointments(
    year: str,
    month: str,
    day: str,
    user: User = Depends(get_authenticated_user),
    calendar_service: CalendarService = Depends(get_calendar_service)
):
    """Every working hour of the authenticated doctor's day."""
    reference = parse_date_parameters(year, month, day)
    return calendar_service.get_appointments(user, reference)


# Patient routes
@router.get(
    "/{doctor_uuid}/{year}/{month}/{day}",
    response_model=List[Entry],
    response_model_exclude_none=True,
    dependencies=[Depends(get_patient_user)]
)
async def get_doctor_calendar(
    doctor_uuid: str,
    year: str,
    month: str,
    day: str,
    calendar_service: CalendarService = Depends(get_calendar_service)
):
    """Open slots of a doctor's day."""
    reference = parse_date_parameters(year, month, day)
    doctor = parse_uuid_parameter(doctor_uuid)
    return calendar_service.get_doctor_calendar(doctor, reference)


@router.post(
    "/{doctor_uuid}/{year}/{month}/{day}",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_patient_user)]
)
async def insert_appointment(
    doctor_uuid: str,
    year: str,
    month: str,
    day: str,
    appointment_request: AppointmentRequest,
    user: User = Depends(get_authenticated_user),
    calendar_service: CalendarService = Depends(get_calendar_service)
):
    """Book one hour of a doctor's day."""
    reference = parse_date_parameters(year, month, day)
    doctor = parse_uuid_parameter(doctor_uuid)
    calendar_service.insert_appointment(user, doctor, reference, appointment_request)
    return Response(status_code=status.HTTP_201_CREATED)
