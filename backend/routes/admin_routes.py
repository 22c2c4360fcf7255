import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_admin, get_stream_admin
from backend.core.choices import STATUS_PENDING
from backend.core.listing import (
    build_admin_stats,
    filter_by_status,
    load_appointments,
    load_help_requests,
    normalize_status_filter,
)
from backend.database import utc_now
from backend.models.appointment import Appointment
from backend.models.help_request import HelpRequest
from backend.models.user import User
from backend.realtime import snapshot_stream
from backend.routes.common import (
    database_unavailable,
    ensure_database_ready,
    get_db,
    load_stream_snapshot,
    publish_change,
)
from backend.routes.request_routes import STREAM_HEADERS
from backend.schemas import (
    AdminStatsResponse,
    AppointmentResponse,
    DiagnosticsResponse,
    HelpRequestResponse,
    StatusUpdateRequest,
)

router = APIRouter(tags=['admin'])

logger = logging.getLogger(__name__)


def apply_admin_decision(
    record: Appointment | HelpRequest | None,
    new_status: str,
    admin_username: str,
    label: str,
) -> Appointment | HelpRequest:
    """Move a Pending record to ``new_status`` and stamp the admin audit fields."""
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f'{label} not found.',
        )

    if record.status != STATUS_PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Only pending requests can be reviewed. This {label.lower()} is {record.status}.',
        )

    now = utc_now()
    record.status = new_status
    record.updated_at = now
    record.updated_by = 'admin'
    record.admin_action_by = admin_username
    record.admin_action_at = now
    return record


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_all_appointments(
    status_filter: str = Query(default='all', alias='status'),
    admin_username: str = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    normalized_filter = normalize_status_filter(status_filter)

    ensure_database_ready()

    try:
        return filter_by_status(load_appointments(db), normalized_filter)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/help-requests', response_model=list[HelpRequestResponse])
def list_all_help_requests(
    status_filter: str = Query(default='all', alias='status'),
    admin_username: str = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    normalized_filter = normalize_status_filter(status_filter)

    ensure_database_ready()

    try:
        return filter_by_status(load_help_requests(db), normalized_filter)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/stats', response_model=AdminStatsResponse)
def get_admin_stats(
    admin_username: str = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return build_admin_stats(load_appointments(db), load_help_requests(db))
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.patch('/appointments/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: StatusUpdateRequest,
    admin_username: str = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        apply_admin_decision(appointment, data.status, admin_username, 'Appointment')
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Appointment %s %s by %s', appointment.id, appointment.status.lower(), admin_username)
    publish_change('appointments', appointment.id, appointment.user_id)
    return appointment


@router.patch('/help-requests/{help_request_id}/status', response_model=HelpRequestResponse)
def update_help_request_status(
    help_request_id: int,
    data: StatusUpdateRequest,
    admin_username: str = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        help_request = db.query(HelpRequest).filter(HelpRequest.id == help_request_id).first()
        apply_admin_decision(help_request, data.status, admin_username, 'Help request')
        db.commit()
        db.refresh(help_request)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Help request %s %s by %s', help_request.id, help_request.status.lower(), admin_username)
    publish_change('help_requests', help_request.id, help_request.user_id)
    return help_request


@router.get('/stream')
def stream_all_requests(admin_username: str = Depends(get_stream_admin)):
    ensure_database_ready()

    return StreamingResponse(
        snapshot_stream(None, lambda: load_stream_snapshot(None)),
        media_type='text/event-stream',
        headers=STREAM_HEADERS,
    )


@router.get('/diagnostics', response_model=DiagnosticsResponse)
def run_diagnostics(
    admin_username: str = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return DiagnosticsResponse(
            users=db.query(User).count(),
            appointments=db.query(Appointment).count(),
            help_requests=db.query(HelpRequest).count(),
        )
    except SQLAlchemyError as exc:
        logger.exception('Database diagnostics failed')
        raise database_unavailable() from exc
