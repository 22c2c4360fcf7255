"""Request and response bodies shared by the user and admin routes."""

import re
from datetime import date, datetime, time

from pydantic import BaseModel, field_validator, model_validator

from backend.core.choices import (
    ADMIN_DECISIONS,
    CONTACT_PREFERENCES,
    DEPARTMENTS,
    HELP_TYPES,
    RELATIONSHIPS,
    URGENCY_LEVELS,
)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^[+]?[1-9][\d]{0,15}$')
MIN_PASSWORD_LENGTH = 6
# bcrypt only hashes the first 72 bytes.
MAX_PASSWORD_BYTES = 72
MIN_NAME_LENGTH = 2
MAX_APPOINTMENT_NOTES_LENGTH = 600
MAX_DESCRIPTION_LENGTH = 2000


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError('Email is required')
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError('Please enter a valid email address')
    return normalized


def normalize_phone(value: str) -> str:
    normalized = re.sub(r'\s', '', value)
    if not normalized:
        raise ValueError('Phone number is required')
    if not PHONE_PATTERN.match(normalized):
        raise ValueError('Please enter a valid phone number')
    return normalized


def normalize_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Name is required')
    if len(normalized) < MIN_NAME_LENGTH:
        raise ValueError(f'Name must be at least {MIN_NAME_LENGTH} characters')
    return normalized


def match_choice(value: str, choices: tuple[str, ...], message: str) -> str:
    """Return the canonical spelling of ``value`` from ``choices``, ignoring case."""
    normalized = value.strip().lower()
    for choice in choices:
        if choice.lower() == normalized:
            return choice
    raise ValueError(message)


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class SignupRequest(BaseModel):
    name: str
    email: str
    phone: str
    password: str
    confirm_password: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_name(value)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return normalize_phone(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required')
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        if len(value.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError('Password is too long')
        return value

    @model_validator(mode='after')
    def validate_passwords_match(self) -> 'SignupRequest':
        if self.password != self.confirm_password:
            raise ValueError('Passwords do not match')
        return self


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required')
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        return value


class AdminLoginRequest(BaseModel):
    username: str
    password: str

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str) -> str:
        return value.strip()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    role: str


class ProfileResponse(BaseModel):
    id: int
    name: str | None = None
    email: str
    phone: str | None = None
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class UpdateProfileRequest(BaseModel):
    name: str
    phone: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_name(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return normalize_phone(value)


class AppointmentDefaultsResponse(BaseModel):
    appointee_name: str
    appointee_phone: str
    appointee_email: str
    relationship: str


class CreateAppointmentRequest(BaseModel):
    appointee_name: str | None = None
    appointee_phone: str | None = None
    appointee_email: str | None = None
    relationship: str = 'Self'
    reason: str
    department: str
    preferred_date: date
    preferred_time: time
    additional_notes: str | None = None

    @field_validator('appointee_name')
    @classmethod
    def validate_appointee_name(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return normalize_name(value)

    @field_validator('appointee_phone')
    @classmethod
    def validate_appointee_phone(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return normalize_phone(value)

    @field_validator('appointee_email')
    @classmethod
    def validate_appointee_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return normalize_email(value)

    @field_validator('relationship')
    @classmethod
    def validate_relationship(cls, value: str) -> str:
        return match_choice(value, RELATIONSHIPS, 'Invalid relationship.')

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Reason for appointment is required.')
        return normalized

    @field_validator('department')
    @classmethod
    def validate_department(cls, value: str) -> str:
        return match_choice(value, DEPARTMENTS, 'Invalid department.')

    @field_validator('preferred_date')
    @classmethod
    def validate_preferred_date(cls, value: date) -> date:
        if value < date.today():
            raise ValueError('Preferred date cannot be in the past.')
        return value

    @field_validator('additional_notes')
    @classmethod
    def validate_additional_notes(cls, value: str | None) -> str | None:
        normalized = _optional_text(value)
        if normalized and len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')
        return normalized


class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    booker_name: str | None = None
    booker_phone: str | None = None
    booker_email: str | None = None
    appointee_name: str
    appointee_phone: str | None = None
    appointee_email: str | None = None
    relationship: str
    reason: str
    department: str
    preferred_date: date
    preferred_time: time
    additional_notes: str | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None
    admin_action_by: str | None = None
    admin_action_at: datetime | None = None

    class Config:
        from_attributes = True


class CreateHelpRequestRequest(BaseModel):
    help_type: str
    urgency_level: str
    description: str
    contact_preference: str
    additional_contact: str | None = None

    @field_validator('help_type')
    @classmethod
    def validate_help_type(cls, value: str) -> str:
        return match_choice(value, HELP_TYPES, 'Invalid help type.')

    @field_validator('urgency_level')
    @classmethod
    def validate_urgency_level(cls, value: str) -> str:
        return match_choice(value, URGENCY_LEVELS, 'Invalid urgency level.')

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Description is required.')
        if len(normalized) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.')
        return normalized

    @field_validator('contact_preference')
    @classmethod
    def validate_contact_preference(cls, value: str) -> str:
        return match_choice(value, CONTACT_PREFERENCES, 'Invalid contact preference.')

    @field_validator('additional_contact')
    @classmethod
    def validate_additional_contact(cls, value: str | None) -> str | None:
        return _optional_text(value)


class HelpRequestResponse(BaseModel):
    id: int
    user_id: int
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    help_type: str
    urgency_level: str
    description: str
    contact_preference: str
    additional_contact: str | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None
    admin_action_by: str | None = None
    admin_action_at: datetime | None = None

    class Config:
        from_attributes = True


class StatusUpdateRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return match_choice(value, ADMIN_DECISIONS, 'Status must be Approved or Rejected.')


class StatusCounts(BaseModel):
    all: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class RequestListResponse(BaseModel):
    appointments: list[AppointmentResponse]
    help_requests: list[HelpRequestResponse]
    counts: StatusCounts


class RecentRequestResponse(BaseModel):
    kind: str
    id: int
    title: str
    name: str | None = None
    status: str
    created_at: datetime


class RequestSummaryResponse(BaseModel):
    total_appointments: int
    pending_appointments: int
    total_help_requests: int
    pending_help_requests: int
    recent: list[RecentRequestResponse]


class AdminStatsResponse(BaseModel):
    total_appointments: int
    total_help_requests: int
    pending_appointments: int
    approved_appointments: int
    rejected_appointments: int
    pending_help_requests: int
    approved_help_requests: int
    rejected_help_requests: int


class DiagnosticsResponse(BaseModel):
    users: int
    appointments: int
    help_requests: int
