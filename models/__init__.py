from datetime import datetime, date as dt_date
from enum import Enum as PyEnum

from sqlalchemy import (
    ForeignKey, Index, CheckConstraint, Boolean, Date, DateTime, Integer, String, Text
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from extensions import db

# ---------- Enums ----------
class AdminRole(str, PyEnum):
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


# ---------- Admins ----------
class Admin(UserMixin, db.Model):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # строковое поле, чтобы не зависеть от конкретного типа БД
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=AdminRole.ADMIN.value, index=True)
    is_active_flag: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return check_password_hash(self.password_hash, raw)

    # Flask-Login ожидает .is_active
    @property
    def is_active(self):
        return bool(self.is_active_flag)

    @property
    def is_superadmin(self) -> bool:
        return self.role == AdminRole.SUPERADMIN.value

    def __repr__(self):
        return f"<Admin {self.username}>"


# ---------- Courses ----------
class Course(db.Model):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[dt_date] = mapped_column(Date, nullable=False, index=True)
    link: Mapped[str] = mapped_column(String(500), nullable=False)
    # оставшиеся места; меняется только через ledger
    tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    enrollments = relationship("Enrollment", back_populates="course")

    __table_args__ = (
        CheckConstraint("tickets >= 0", name="ck_courses_tickets_non_negative"),
    )

    def __repr__(self):
        return f"<Course {self.title} tickets={self.tickets}>"


# ---------- Enrollments ----------
class EnrollmentGroup(db.Model):
    """Источник group_id: автоинкремент вместо max(group_id) + 1."""
    __tablename__ = "enrollment_groups"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Enrollment(db.Model):
    __tablename__ = "enrollments"

    id: Mapped[int] = mapped_column(primary_key=True)
    fullname: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    gender: Mapped[str] = mapped_column(String(16), nullable=False, default="NS/NC")
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_first_activity: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    id_admin: Mapped[int | None] = mapped_column(ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    id_course: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False)
    group_id: Mapped[int] = mapped_column(ForeignKey("enrollment_groups.id", ondelete="RESTRICT"), nullable=False)
    accepts_newsletter: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="enrollments")
    admin = relationship("Admin")
    minors = relationship("Minor", back_populates="enrollment", order_by="Minor.id")

    __table_args__ = (
        Index("ix_enrollments_group_id", "group_id"),
        Index("ix_enrollments_course", "id_course"),
    )

    def __repr__(self):
        return f"<Enrollment {self.fullname} group={self.group_id}>"


class Minor(db.Model):
    __tablename__ = "minors"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    enrollment_id: Mapped[int] = mapped_column(
        ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    enrollment = relationship("Enrollment", back_populates="minors")

    __table_args__ = (
        CheckConstraint("age >= 0 AND age <= 14", name="ck_minors_age_range"),
    )
