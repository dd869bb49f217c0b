import uuid
from datetime import datetime, timezone
from functools import partial

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship as orm_relationship

from ..config import Base
from ..constants import ROLE_PRIORITY


def utcnow():
    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String, primary_key=True, default=partial(generate_id, "user"))
    role = Column(String, nullable=False, default="Homeowner")
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    block = Column(Integer, nullable=True)
    lot = Column(Integer, nullable=True)
    hashed_password = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")
    date_created = Column(DateTime, default=utcnow, nullable=False)

    dues = orm_relationship("Due", back_populates="user", foreign_keys="Due.user_id", cascade="all, delete-orphan")

    @property
    def unit(self) -> str:
        return f"B{self.block} L{self.lot}"

    @property
    def address(self) -> str:
        return f"Blk {self.block} Lot {self.lot}"

    def has_role(self, role_name: str) -> bool:
        return self.role == role_name

    def has_any_role(self, *role_names: str) -> bool:
        return self.role in set(role_names)

    @property
    def role_priority(self) -> int:
        return ROLE_PRIORITY.get(self.role, 0)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=utcnow, index=True, nullable=False)
    actor_user_id = Column(String, ForeignKey("users.user_id"), nullable=True)
    action = Column(String, nullable=False)
    target_entity_type = Column(String, nullable=True)
    target_entity_id = Column(String, nullable=True)
    before = Column(Text, nullable=True)
    after = Column(Text, nullable=True)


class AppSetting(Base):
    __tablename__ = "app_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Announcement(Base):
    __tablename__ = "announcements"

    ann_id = Column(String, primary_key=True, default=partial(generate_id, "ann"))
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String, nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    audience = Column(String, nullable=False, default="all")


class Due(Base):
    __tablename__ = "dues"
    __table_args__ = (UniqueConstraint("user_id", "billing_month", name="uq_due_user_month"),)

    due_id = Column(String, primary_key=True, default=partial(generate_id, "due"))
    user_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    billing_month = Column(Date, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    penalty = Column(Numeric(10, 2), nullable=False, default=0)
    total_due = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default="unpaid")
    notes = Column(Text, nullable=True)
    settled_at = Column(DateTime, nullable=True)
    settled_by_user_id = Column(String, ForeignKey("users.user_id"), nullable=True)
    settlement_method = Column(String, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    user = orm_relationship("User", back_populates="dues", foreign_keys=[user_id])
    payments = orm_relationship(
        "Payment",
        back_populates="due",
        order_by="Payment.date_paid",
        cascade="all, delete-orphan",
    )


class ReviewableMixin:
    """Columns shared by every record that goes through admin verification."""

    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String, nullable=False)
    proof_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")
    date_paid = Column(DateTime, default=utcnow, nullable=False)
    notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False, default=1)


class Payment(ReviewableMixin, Base):
    __tablename__ = "payments"

    payment_id = Column(String, primary_key=True, default=partial(generate_id, "pay"))
    due_id = Column(String, ForeignKey("dues.due_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    reviewed_by_user_id = Column(String, ForeignKey("users.user_id"), nullable=True)

    due = orm_relationship("Due", back_populates="payments")
    user = orm_relationship("User", foreign_keys=[user_id])

    @property
    def record_id(self) -> str:
        return self.payment_id


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(String, primary_key=True, default=partial(generate_id, "proj"))
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="Planning")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    budget = Column(Numeric(12, 2), nullable=False, default=0)
    funds_allocated = Column(Numeric(12, 2), nullable=False, default=0)
    funds_spent = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    contributions = orm_relationship(
        "ProjectContribution",
        back_populates="project",
        cascade="all, delete-orphan",
    )


class ProjectContribution(ReviewableMixin, Base):
    __tablename__ = "project_contributions"

    contribution_id = Column(String, primary_key=True, default=partial(generate_id, "ctb"))
    project_id = Column(String, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    reviewed_by_user_id = Column(String, ForeignKey("users.user_id"), nullable=True)

    project = orm_relationship("Project", back_populates="contributions")
    user = orm_relationship("User", foreign_keys=[user_id])

    @property
    def record_id(self) -> str:
        return self.contribution_id


class Visitor(Base):
    __tablename__ = "visitors"

    visitor_id = Column(String, primary_key=True, default=partial(generate_id, "vis"))
    homeowner_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    vehicle = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    time_in = Column(DateTime, nullable=True)
    time_out = Column(DateTime, nullable=True)
    qr_code = Column(String, unique=True, nullable=False)
    status = Column(String, nullable=False, default="expected")

    homeowner = orm_relationship("User")


class AmenityReservation(Base):
    __tablename__ = "amenity_reservations"

    reservation_id = Column(String, primary_key=True, default=partial(generate_id, "res"))
    user_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    amenity_name = Column(String, nullable=False)
    reservation_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    status = Column(String, nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    user = orm_relationship("User")


class CCTVCamera(Base):
    __tablename__ = "cctv_cameras"

    cctv_id = Column(String, primary_key=True, default=partial(generate_id, "cam"))
    name = Column(String, nullable=False)
    stream_url = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Expense(Base):
    __tablename__ = "expenses"

    expense_id = Column(String, primary_key=True, default=partial(generate_id, "exp"))
    date = Column(Date, nullable=False, index=True)
    category = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payee = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
