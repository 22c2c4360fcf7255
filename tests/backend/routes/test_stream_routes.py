import asyncio
import json
from datetime import date, datetime, time, timedelta

import pytest
from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool

from backend.auth import jwt_handler
from backend.auth.dependencies import get_stream_admin, get_stream_user
from backend.models.appointment import Appointment
from backend.models.help_request import HelpRequest
from backend.realtime import broker
from backend.routes.admin_routes import stream_all_requests
from backend.routes.appointment_routes import create_appointment
from backend.routes.request_routes import stream_my_requests
from backend.schemas import CreateAppointmentRequest


@pytest.fixture
def stream_sessions(monkeypatch: pytest.MonkeyPatch, request_session_factory) -> None:
    monkeypatch.setattr('backend.auth.dependencies.SessionLocal', request_session_factory)
    monkeypatch.setattr('backend.routes.common.SessionLocal', request_session_factory)


def _parse_event(chunk: str) -> tuple[str, dict]:
    event_line, data_line = chunk.strip().split('\n')
    return event_line.removeprefix('event: '), json.loads(data_line.removeprefix('data: '))


def _read_first_chunk(response) -> str:
    async def first_chunk() -> str:
        stream = response.body_iterator
        try:
            return await anext(stream)
        finally:
            await stream.aclose()

    return asyncio.run(first_chunk())


def _add_appointment(db, user_id: int, created_at: datetime) -> Appointment:
    appointment = Appointment(
        user_id=user_id,
        appointee_name='Requester',
        relationship='Self',
        reason='Consultation',
        department='Medical',
        preferred_date=date(2026, 2, 2),
        preferred_time=time(14, 0),
        status='Pending',
        created_at=created_at,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def _add_help_request(db, user_id: int, created_at: datetime) -> HelpRequest:
    help_request = HelpRequest(
        user_id=user_id,
        name='Requester',
        help_type='Medical Help',
        urgency_level='High',
        description='Needs a ride to the clinic.',
        contact_preference='Email',
        status='Pending',
        created_at=created_at,
    )
    db.add(help_request)
    db.commit()
    db.refresh(help_request)
    return help_request


def test_stream_user_resolves_query_token(request_db, stream_sessions, make_user) -> None:
    owner = make_user(email='owner@example.edu')
    token = jwt_handler.create_access_token(subject='owner@example.edu', role='user')

    user = get_stream_user(token=token)

    assert user.id == owner.id


def test_user_stream_refuses_admin_token() -> None:
    token = jwt_handler.create_access_token(subject='admin', role='admin')

    with pytest.raises(HTTPException) as exception_info:
        get_stream_user(token=token)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Admin tokens cannot act as a user'


def test_admin_stream_refuses_user_token() -> None:
    token = jwt_handler.create_access_token(subject='owner@example.edu', role='user')

    with pytest.raises(HTTPException) as exception_info:
        get_stream_admin(token=token)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Admin access required'


def test_user_stream_first_snapshot_only_holds_own_records(
    request_db, skip_schema_check, stream_sessions, make_user
) -> None:
    owner = make_user(email='owner@example.edu')
    other = make_user(email='other@example.edu')
    older = _add_appointment(request_db, owner.id, datetime(2026, 1, 1, 9, 0))
    newer = _add_appointment(request_db, owner.id, datetime(2026, 1, 2, 9, 0))
    _add_appointment(request_db, other.id, datetime(2026, 1, 3, 9, 0))
    _add_help_request(request_db, other.id, datetime(2026, 1, 4, 9, 0))

    response = stream_my_requests(current_user=owner)
    event, payload = _parse_event(_read_first_chunk(response))

    assert response.media_type == 'text/event-stream'
    assert response.headers['cache-control'] == 'no-cache'
    assert event == 'snapshot'
    assert [item['id'] for item in payload['appointments']] == [newer.id, older.id]
    assert payload['help_requests'] == []
    assert payload['counts'] == {'all': 2, 'pending': 2, 'approved': 0, 'rejected': 0}


def test_admin_stream_first_snapshot_covers_every_owner(
    request_db, skip_schema_check, stream_sessions, make_user
) -> None:
    owner = make_user(email='owner@example.edu')
    other = make_user(email='other@example.edu')
    _add_appointment(request_db, owner.id, datetime(2026, 1, 1, 9, 0))
    _add_help_request(request_db, other.id, datetime(2026, 1, 2, 9, 0))

    event, payload = _parse_event(_read_first_chunk(stream_all_requests(admin_username='admin')))

    assert event == 'snapshot'
    assert [item['user_id'] for item in payload['appointments']] == [owner.id]
    assert [item['user_id'] for item in payload['help_requests']] == [other.id]
    assert payload['counts']['all'] == 2


def test_stream_response_subscribes_while_open_and_unsubscribes_on_close(
    request_db, skip_schema_check, stream_sessions, make_user
) -> None:
    owner = make_user()
    open_before = broker.subscriber_count

    response = stream_my_requests(current_user=owner)
    # Nothing registers until the response body is read.
    assert broker.subscriber_count == open_before

    async def read_then_close() -> int:
        stream = response.body_iterator
        await anext(stream)
        open_while_reading = broker.subscriber_count
        await stream.aclose()
        return open_while_reading

    assert asyncio.run(read_then_close()) == open_before + 1
    assert broker.subscriber_count == open_before


def test_user_stream_pushes_refresh_after_booking(request_db, skip_schema_check, stream_sessions, make_user) -> None:
    owner = make_user()
    booking = CreateAppointmentRequest(
        reason='Follow-up visit',
        department='Medical',
        preferred_date=date.today() + timedelta(days=1),
        preferred_time=time(10, 30),
    )

    async def book_while_streaming() -> tuple[str, str]:
        stream = stream_my_requests(current_user=owner).body_iterator
        try:
            first = await anext(stream)
            await run_in_threadpool(create_appointment, booking, current_user=owner, db=request_db)
            second = await asyncio.wait_for(anext(stream), timeout=5)
            return first, second
        finally:
            await stream.aclose()

    first, second = asyncio.run(book_while_streaming())

    assert _parse_event(first)[1]['appointments'] == []
    event, payload = _parse_event(second)
    assert event == 'snapshot'
    assert [item['reason'] for item in payload['appointments']] == ['Follow-up visit']
