"""Appointment model definitions."""

from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String, Text, Time
from backend.database import Base, utc_now


class Appointment(Base):
    """Represents an appointment request awaiting or past admin review."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)

    booker_name = Column(String)
    booker_phone = Column(String)
    booker_email = Column(String)

    appointee_name = Column(String)
    appointee_phone = Column(String)
    appointee_email = Column(String)
    relationship = Column(String)

    reason = Column(Text)
    department = Column(String)
    preferred_date = Column(Date)
    preferred_time = Column(Time)
    additional_notes = Column(Text)

    status = Column(String, default="Pending", index=True)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now)
    updated_by = Column(String)
    admin_action_by = Column(String)
    admin_action_at = Column(DateTime)
