import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.core.choices import STATUS_PENDING
from backend.core.listing import filter_by_status, load_appointments, normalize_status_filter
from backend.models.appointment import Appointment
from backend.models.user import User
from backend.routes.common import database_unavailable, ensure_database_ready, get_db, publish_change
from backend.schemas import AppointmentDefaultsResponse, AppointmentResponse, CreateAppointmentRequest

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

COLLECTION = 'appointments'


def build_appointment_defaults(user: User) -> AppointmentDefaultsResponse:
    return AppointmentDefaultsResponse(
        appointee_name=user.name or '',
        appointee_phone=user.phone or '',
        appointee_email=user.email or '',
        relationship='Self',
    )


@router.get('/defaults', response_model=AppointmentDefaultsResponse)
def get_appointment_defaults(current_user: User = Depends(get_current_user)):
    return build_appointment_defaults(current_user)


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    appointment = Appointment(
        user_id=current_user.id,
        booker_name=current_user.name,
        booker_phone=current_user.phone,
        booker_email=current_user.email,
        appointee_name=data.appointee_name or current_user.name,
        appointee_phone=data.appointee_phone or current_user.phone,
        appointee_email=data.appointee_email or current_user.email,
        relationship=data.relationship,
        reason=data.reason,
        department=data.department,
        preferred_date=data.preferred_date,
        preferred_time=data.preferred_time,
        additional_notes=data.additional_notes,
        status=STATUS_PENDING,
    )

    try:
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Appointment %s submitted by user %s', appointment.id, current_user.id)
    publish_change(COLLECTION, appointment.id, appointment.user_id)
    return appointment


@router.get('', response_model=list[AppointmentResponse])
def list_my_appointments(
    status_filter: str = Query(default='all', alias='status'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    normalized_filter = normalize_status_filter(status_filter)

    ensure_database_ready()

    try:
        return filter_by_status(load_appointments(db, current_user.id), normalized_filter)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
