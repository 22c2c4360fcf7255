from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user, get_stream_user
from backend.core.choices import STATUS_PENDING
from backend.core.listing import (
    count_statuses,
    filter_by_status,
    load_appointments,
    load_help_requests,
    normalize_status_filter,
    recent_requests,
)
from backend.models.user import User
from backend.realtime import snapshot_stream
from backend.routes.common import database_unavailable, ensure_database_ready, get_db, load_stream_snapshot
from backend.schemas import (
    AppointmentResponse,
    HelpRequestResponse,
    RequestListResponse,
    RequestSummaryResponse,
)

router = APIRouter(tags=['requests'])

STREAM_HEADERS = {'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'}


@router.get('', response_model=RequestListResponse)
def list_my_requests(
    status_filter: str = Query(default='all', alias='status'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    normalized_filter = normalize_status_filter(status_filter)

    ensure_database_ready()

    try:
        appointments = load_appointments(db, current_user.id)
        help_requests = load_help_requests(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return RequestListResponse(
        appointments=[
            AppointmentResponse.model_validate(appointment)
            for appointment in filter_by_status(appointments, normalized_filter)
        ],
        help_requests=[
            HelpRequestResponse.model_validate(help_request)
            for help_request in filter_by_status(help_requests, normalized_filter)
        ],
        counts=count_statuses(appointments, help_requests),
    )


@router.get('/summary', response_model=RequestSummaryResponse)
def get_request_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointments = load_appointments(db, current_user.id)
        help_requests = load_help_requests(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return RequestSummaryResponse(
        total_appointments=len(appointments),
        pending_appointments=sum(1 for item in appointments if item.status == STATUS_PENDING),
        total_help_requests=len(help_requests),
        pending_help_requests=sum(1 for item in help_requests if item.status == STATUS_PENDING),
        recent=recent_requests(appointments, help_requests),
    )


@router.get('/stream')
def stream_my_requests(current_user: User = Depends(get_stream_user)):
    ensure_database_ready()

    owner_id = current_user.id
    return StreamingResponse(
        snapshot_stream(owner_id, lambda: load_stream_snapshot(owner_id)),
        media_type='text/event-stream',
        headers=STREAM_HEADERS,
    )
