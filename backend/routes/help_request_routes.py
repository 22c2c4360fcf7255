import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.core.choices import STATUS_PENDING
from backend.core.listing import filter_by_status, load_help_requests, normalize_status_filter
from backend.models.help_request import HelpRequest
from backend.models.user import User
from backend.routes.common import database_unavailable, ensure_database_ready, get_db, publish_change
from backend.schemas import CreateHelpRequestRequest, HelpRequestResponse

router = APIRouter(tags=['help-requests'])

logger = logging.getLogger(__name__)

COLLECTION = 'help_requests'


@router.post('', response_model=HelpRequestResponse, status_code=status.HTTP_201_CREATED)
def create_help_request(
    data: CreateHelpRequestRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    help_request = HelpRequest(
        user_id=current_user.id,
        name=current_user.name,
        phone=current_user.phone,
        email=current_user.email,
        help_type=data.help_type,
        urgency_level=data.urgency_level,
        description=data.description,
        contact_preference=data.contact_preference,
        additional_contact=data.additional_contact,
        status=STATUS_PENDING,
    )

    try:
        db.add(help_request)
        db.commit()
        db.refresh(help_request)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info(
        'Help request %s (%s, %s) submitted by user %s',
        help_request.id,
        help_request.help_type,
        help_request.urgency_level,
        current_user.id,
    )
    publish_change(COLLECTION, help_request.id, help_request.user_id)
    return help_request


@router.get('', response_model=list[HelpRequestResponse])
def list_my_help_requests(
    status_filter: str = Query(default='all', alias='status'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    normalized_filter = normalize_status_filter(status_filter)

    ensure_database_ready()

    try:
        return filter_by_status(load_help_requests(db, current_user.id), normalized_filter)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
