"""Query, filter and aggregate helpers for the request lists."""

from datetime import datetime
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from backend.core.choices import STATUS_APPROVED, STATUS_FILTERS, STATUS_PENDING, STATUS_REJECTED
from backend.models.appointment import Appointment
from backend.models.help_request import HelpRequest
from backend.schemas import (
    AdminStatsResponse,
    AppointmentResponse,
    HelpRequestResponse,
    RecentRequestResponse,
    StatusCounts,
)

RECENT_REQUEST_LIMIT = 3


def normalize_status_filter(value: str | None) -> str:
    normalized = (value or 'all').strip().lower()
    if normalized not in STATUS_FILTERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Status filter must be one of: all, pending, approved, rejected.',
        )
    return normalized


def sort_newest_first(records: Iterable) -> list:
    # Records without a creation time keep their relative order at the end.
    return sorted(records, key=lambda record: record.created_at or datetime.min, reverse=True)


def filter_by_status(records: Iterable, status_filter: str) -> list:
    if status_filter == 'all':
        return list(records)
    return [record for record in records if (record.status or '').lower() == status_filter]


def count_statuses(*record_groups: Iterable) -> StatusCounts:
    counts = StatusCounts()
    for records in record_groups:
        for record in records:
            counts.all += 1
            if record.status == STATUS_PENDING:
                counts.pending += 1
            elif record.status == STATUS_APPROVED:
                counts.approved += 1
            elif record.status == STATUS_REJECTED:
                counts.rejected += 1
    return counts


def load_appointments(db: Session, user_id: int | None = None) -> list[Appointment]:
    query = db.query(Appointment)
    if user_id is not None:
        query = query.filter(Appointment.user_id == user_id)
    return sort_newest_first(query.order_by(Appointment.id.desc()).all())


def load_help_requests(db: Session, user_id: int | None = None) -> list[HelpRequest]:
    query = db.query(HelpRequest)
    if user_id is not None:
        query = query.filter(HelpRequest.user_id == user_id)
    return sort_newest_first(query.order_by(HelpRequest.id.desc()).all())


def to_recent_request(record: Appointment | HelpRequest) -> RecentRequestResponse:
    if isinstance(record, Appointment):
        return RecentRequestResponse(
            kind='appointment',
            id=record.id,
            title='Appointment',
            name=record.appointee_name,
            status=record.status,
            created_at=record.created_at,
        )
    return RecentRequestResponse(
        kind='help_request',
        id=record.id,
        title=f'Help - {record.help_type}',
        name=record.name,
        status=record.status,
        created_at=record.created_at,
    )


def recent_requests(
    appointments: Iterable[Appointment],
    help_requests: Iterable[HelpRequest],
    limit: int = RECENT_REQUEST_LIMIT,
) -> list[RecentRequestResponse]:
    dated = [record for record in [*appointments, *help_requests] if record.created_at]
    return [to_recent_request(record) for record in sort_newest_first(dated)[:limit]]


def build_admin_stats(
    appointments: list[Appointment],
    help_requests: list[HelpRequest],
) -> AdminStatsResponse:
    appointment_counts = count_statuses(appointments)
    help_request_counts = count_statuses(help_requests)
    return AdminStatsResponse(
        total_appointments=appointment_counts.all,
        total_help_requests=help_request_counts.all,
        pending_appointments=appointment_counts.pending,
        approved_appointments=appointment_counts.approved,
        rejected_appointments=appointment_counts.rejected,
        pending_help_requests=help_request_counts.pending,
        approved_help_requests=help_request_counts.approved,
        rejected_help_requests=help_request_counts.rejected,
    )


def build_snapshot(db: Session, user_id: int | None = None) -> dict:
    """Serialise both collections, newest first, for one stream event."""
    appointments = load_appointments(db, user_id)
    help_requests = load_help_requests(db, user_id)
    return {
        'appointments': [
            AppointmentResponse.model_validate(appointment).model_dump(mode='json')
            for appointment in appointments
        ],
        'help_requests': [
            HelpRequestResponse.model_validate(help_request).model_dump(mode='json')
            for help_request in help_requests
        ],
        'counts': count_statuses(appointments, help_requests).model_dump(),
    }
