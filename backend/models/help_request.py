"""Help request model definitions."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Text
from backend.database import Base, utc_now


class HelpRequest(Base):
    """Represents a request for assistance."""
    __tablename__ = "help_requests"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)

    name = Column(String)
    phone = Column(String)
    email = Column(String)

    help_type = Column(String)
    urgency_level = Column(String)
    description = Column(Text)
    contact_preference = Column(String)
    additional_contact = Column(String)

    status = Column(String, default="Pending", index=True)
    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now)
    updated_by = Column(String)
    admin_action_by = Column(String)
    admin_action_at = Column(DateTime)
