import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _uuid():
    return str(uuid.uuid4())


def _now():
    return datetime.now(timezone.utc)


class User(Base):
    """Local stand-in for the managed auth users table."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    user_metadata = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)


class Student(Base):
    """Student profile, one row per authenticated user account."""
    __tablename__ = "students"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    roll_number = Column(String, index=True, nullable=False)
    department = Column(String, nullable=False)
    year = Column(String, nullable=False)
    division = Column(String, nullable=True)
    face_image = Column(Text, nullable=True)  # data URL, not a biometric template
    face_registered = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    def __repr__(self):
        return f"<Student(id={self.id}, roll_number={self.roll_number})>"


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    department = Column(String, nullable=False)
    subject_details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    def __repr__(self):
        return f"<Teacher(id={self.id}, full_name={self.full_name})>"


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(String, primary_key=True, default=_uuid)
    teacher_id = Column(String, ForeignKey("teachers.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    department = Column(String, nullable=False)
    year = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)


class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(String, primary_key=True, default=_uuid)
    class_id = Column(String, ForeignKey("classes.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    date = Column(String, nullable=True)
    qr_code = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now)


class AttendanceRecord(Base):
    """Attendance rows. No unique constraint on (student, lecture)."""
    __tablename__ = "attendance_records"

    id = Column(String, primary_key=True, default=_uuid)
    student_id = Column(String, ForeignKey("students.id"), index=True, nullable=False)
    class_id = Column(String, index=True, nullable=False)
    lecture_id = Column(String, index=True, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=_now, index=True)
    status = Column(String, default="Present")  # "Present", "Absent" or "Late"
    verification_method = Column(String, nullable=False)

    def __repr__(self):
        return f"<AttendanceRecord(student_id={self.student_id}, lecture_id={self.lecture_id})>"


# Table name -> model, the same names the managed database uses
TABLES = {
    model.__tablename__: model
    for model in (Student, Teacher, SchoolClass, Lecture, AttendanceRecord)
}
