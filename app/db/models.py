from datetime import datetime, timedelta
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, Text, Boolean, Integer, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from app.db.base import Base


CLIENT_FIELDS = ("first_name", "last_name", "email", "phone")


class FeedbackSession(Base):
    """
    One feedback-collection episode on a kiosk.

    `session_id` is the external identifier handed to the kiosk; it is set
    to the storage `id` right after the row is created.
    """
    __tablename__ = "feedback_sessions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    session_id = Column(String(64), unique=True, nullable=True, index=True)
    device_id = Column(String(255), nullable=False, index=True)
    pharmacy_rating = Column(Integer, nullable=True)
    employee_ratings = Column(JSON, nullable=False, default=lambda: [])  # [{employee_id, rating, comment}]
    client_first_name = Column(String(255), nullable=True)
    client_last_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    client_consent = Column(Boolean, default=False, nullable=False)
    suggestion = Column(Text, nullable=True)
    status = Column(String(20), default="active", nullable=False, index=True)  # active | completed | abandoned | processed
    completed = Column(Boolean, default=False, nullable=False)
    processed = Column(Boolean, default=False, nullable=False)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_active_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    inactivity_timeout = Column(Integer, default=1440, nullable=False)  # minutes
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def client_data(self) -> dict | None:
        """Contact details left by the client, or None when nothing was entered."""
        values = {field: getattr(self, f"client_{field}") for field in CLIENT_FIELDS}
        if not any(values.values()):
            return None
        values["consent"] = bool(self.client_consent)
        return values

    @client_data.setter
    def client_data(self, data: dict | None):
        data = data or {}
        for field in CLIENT_FIELDS:
            setattr(self, f"client_{field}", data.get(field) or None)
        self.client_consent = bool(data.get("consent", False))

    @property
    def client_name(self) -> str | None:
        parts = [p for p in (self.client_first_name, self.client_last_name) if p]
        return " ".join(parts) if parts else None

    def is_stale(self, now: datetime | None = None) -> bool:
        """True once the session has been idle longer than its inactivity timeout."""
        now = now or datetime.utcnow()
        return now - self.last_active_at > timedelta(minutes=self.inactivity_timeout)


class Report(Base):
    """Generated PDF/Excel artifact stored under the public reports directory"""
    __tablename__ = "reports"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    format = Column(String(10), nullable=False)  # PDF | EXCEL
    size = Column(String(20), nullable=False)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    file_path = Column(String(500), nullable=False)
    download_count = Column(Integer, default=0, nullable=False)
    generated_by = Column(String(64), nullable=True)
    date_range_start = Column(DateTime, nullable=True)
    date_range_end = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Settings(Base):
    """Application-wide display, report and kiosk page toggles (single row)"""
    __tablename__ = "settings"

    id = Column(Uuid, primary_key=True, default=uuid4)
    dark_mode = Column(Boolean, default=False, nullable=False)
    email_notifications = Column(Boolean, default=True, nullable=False)
    auto_generate_monthly_report = Column(Boolean, default=False, nullable=False)
    monthly_report_format = Column(String(10), default="PDF", nullable=False)  # PDF | EXCEL | BOTH
    feedback_collection_enabled = Column(Boolean, default=True, nullable=False)
    client_info_enabled = Column(Boolean, default=True, nullable=False)
    suggestion_enabled = Column(Boolean, default=True, nullable=False)
    thank_you_enabled = Column(Boolean, default=True, nullable=False)
    updated_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Position(Base):
    """Job title employees can be assigned to"""
    __tablename__ = "positions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    title = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class User(Base):
    """
    Pharmacy staff member. Employees are the ones rated on the kiosk;
    managers use the back-office.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), default="employee", nullable=False)  # employee | manager
    position_id = Column(Uuid, ForeignKey("positions.id"), nullable=True, index=True)
    current_position = Column(String(255), nullable=True)  # legacy free-text title
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    position = relationship("Position", lazy="selectin")

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}"

    @property
    def position_title(self) -> str | None:
        if self.position is not None:
            return self.position.title
        return self.current_position
